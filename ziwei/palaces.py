"""
Palace assignment.

Handles:
- Ming (命宮) and Shen (身宮) palace positions
- Role names around the ring, with combined labels where Shen lands
- Palace stems and branches
- Five-element loci (五行局) from the Ming palace's stem and branch

Every later stage depends on all twelve palaces existing, so anything
wrong here raises instead of returning a partial set.
"""

from dataclasses import dataclass
from typing import Optional

from ziwei.basics import palace_stem_index
from ziwei.lunar_calendar import STEM_NAMES, BRANCH_NAMES


# ============================================================
# ROLE NAMES
# ============================================================

# Counted from the Ming palace, one ring step (+1) per role
PALACE_ROLES = ["命宮", "父母", "福德", "田宅", "事業", "交友",
                "遷移", "疾厄", "財帛", "子女", "夫妻", "兄弟"]

# Label used instead when the Shen palace falls on one of these roles
SHEN_COMBINED_NAMES = {
    "命宮": "身命",
    "福德": "身福",
    "事業": "身事",
    "官祿": "身官",
    "夫妻": "身夫",
    "財帛": "身財",
    "遷移": "身遷",
}

MIGRATION_ROLE = "遷移"


@dataclass(frozen=True)
class Palace:
    index: int  # 0-11 ring position, 0 = 子
    name: str  # display name, combined with 身 where Shen lands
    role: str  # base role name
    is_ming: bool
    is_shen: bool
    stem_index: int
    branch_index: int

    @property
    def stem(self) -> str:
        return STEM_NAMES[self.stem_index]

    @property
    def branch(self) -> str:
        return BRANCH_NAMES[self.branch_index]

    def to_dict(self):
        return {
            "index": self.index,
            "name": self.name,
            "role": self.role,
            "isMing": self.is_ming,
            "isShen": self.is_shen,
            "stem": self.stem,
            "stemIndex": self.stem_index,
            "branch": self.branch,
            "branchIndex": self.branch_index,
        }


# ============================================================
# MING / SHEN
# ============================================================

def ming_palace_index(month_index: int, time_index: int) -> int:
    return (14 + month_index - time_index) % 12


def shen_palace_index(month_index: int, time_index: int) -> int:
    return (14 + month_index + time_index) % 12


def assign_palaces(month_index: int, time_index: int, year_stem_index: int) -> list[Palace]:
    """
    Build all twelve palaces.

    Args:
        month_index: canonical lunar month index (0-11)
        time_index: double-hour index (0-11)
        year_stem_index: birth year stem (0-9)

    Returns:
        List of 12 Palace objects ordered by ring index (0 = 子)
    """
    for label, value, upper in (("month_index", month_index, 11),
                                ("time_index", time_index, 11),
                                ("year_stem_index", year_stem_index, 9)):
        if value is None or not 0 <= value <= upper:
            raise ValueError(f"{label} must be 0-{upper}, got {value!r}")

    ming = ming_palace_index(month_index, time_index)
    shen = shen_palace_index(month_index, time_index)

    palaces = []
    for index in range(12):
        role = PALACE_ROLES[(index - ming) % 12]
        is_shen = index == shen
        name = SHEN_COMBINED_NAMES.get(role, role) if is_shen else role
        palaces.append(Palace(
            index=index,
            name=name,
            role=role,
            is_ming=index == ming,
            is_shen=is_shen,
            stem_index=palace_stem_index(index, year_stem_index),
            branch_index=index,
        ))

    migration_palace_index(palaces)
    return palaces


def find_palace(palaces: list[Palace], role: str) -> Optional[Palace]:
    for palace in palaces:
        if palace.role == role:
            return palace
    return None


def migration_palace_index(palaces: list[Palace]) -> int:
    """Index of the 遷移 palace. The stars flanking it cannot be placed without one."""
    palace = find_palace(palaces, MIGRATION_ROLE)
    if palace is None:
        raise ValueError("Migration palace (遷移) missing from palace assignment")
    return palace.index


# ============================================================
# FIVE-ELEMENT LOCI (納音五行局)
# ============================================================
#
# Rows: branch pairs 子丑, 寅卯, 辰巳, 午未, 申酉, 戌亥
# Columns: stem pairs 甲乙, 丙丁, 戊己, 庚辛, 壬癸

NAYIN_LOCI = [
    [4, 2, 6, 5, 3],
    [2, 6, 5, 3, 4],
    [6, 5, 3, 4, 2],
    [4, 2, 6, 5, 3],
    [2, 6, 5, 3, 4],
    [6, 5, 3, 4, 2],
]

LOCI_NAMES = {
    2: "水二局",
    3: "木三局",
    4: "金四局",
    5: "土五局",
    6: "火六局",
}


def nayin_loci(stem_index: int, branch_index: int) -> int:
    """Loci number (2-6) for a stem/branch pair, normally the Ming palace's."""
    return NAYIN_LOCI[branch_index // 2][stem_index // 2]


def nayin_info(ming: Palace) -> dict:
    loci = nayin_loci(ming.stem_index, ming.branch_index)
    return {"loci": loci, "name": LOCI_NAMES[loci]}


# ============================================================
# RING LAYOUT
# ============================================================

# 4x4 chart grid, branch index per cell, -1 for the centre block
GRID_BRANCH_MAP = [
    [5, 6, 7, 8],
    [4, -1, -1, 9],
    [3, -1, -1, 10],
    [2, 1, 0, 11],
]


def tri_square(index: int) -> dict:
    """三方四正: the palace itself, its opposite and its two trines."""
    return {
        "self": index,
        "opposition": (index + 6) % 12,
        "trine1": (index + 4) % 12,
        "trine2": (index + 8) % 12,
    }


TRI_SQUARE_MAP = {index: tri_square(index) for index in range(12)}
