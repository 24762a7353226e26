"""
Minor (雜曜) star placement.

Handles:
- Stem-keyed stars (天官, 天福, 天廚)
- Void pairs 截空 / 旬空 and their primary/deputy split
- Year-branch stars (direct tables and period-3/period-4 patterns)
- Month-keyed stars (天刑, 天姚, 解神, 天巫, 天月, 陰煞)
- Stars flanking the Migration palace (天傷, 天使)
- Stars counted from 文昌 / 文曲 / 左輔 / 右弼 by lunar day

Stars derived from secondary-star positions recompute those positions
from the same pure formulas instead of reading another family's output.
"""

from enum import Enum
from typing import Union

from ziwei.basics import is_clockwise, branch_polarity
from ziwei.stars import zuofu_position, youbi_position, wenchang_position, wenqu_position


class WoundedServantPolicy(Enum):
    ZHONGZHOU = "zhongzhou"  # side depends on the chart's rotation direction
    NO_DISTINCTION = "noDistinction"  # 天傷 always before, 天使 always after


class VoidDisplay(Enum):
    MARKED = "marked"  # deputy occurrence renamed 副截 / 副旬
    NO_DISTINCT = "noDistinct"  # both occurrences keep the base name
    PRIMARY_ONLY = "primaryOnly"  # deputy occurrence dropped


VOID_DEPUTY_NAMES = {
    "截空": "副截",
    "旬空": "副旬",
}


# ============================================================
# LOOKUP TABLES
# ============================================================

# Indexed by year stem
TIANGUAN = [7, 4, 5, 2, 3, 9, 11, 9, 10, 6]
TIANFU_MINOR = [9, 8, 0, 11, 3, 2, 6, 5, 6, 5]
TIANCHU = [5, 6, 0, 5, 6, 8, 2, 6, 9, 11]

# Indexed by year branch
GUCHEN = [2, 2, 5, 5, 5, 8, 8, 8, 11, 11, 11, 2]
GUASU = [10, 10, 1, 1, 1, 4, 4, 4, 7, 7, 7, 10]
DAHAO = [7, 6, 9, 8, 11, 10, 1, 0, 3, 2, 5, 4]

# Indexed by year branch mod period
TIANMA = [2, 11, 8, 5]
JIESHA = [5, 2, 11, 8]
HUAGAI = [4, 1, 10, 7]
XIANCHI = [9, 6, 3, 0]
POSUI = [5, 1, 9]

# Indexed by month index
TIANYUE_MONTH = [10, 5, 4, 2, 7, 3, 11, 7, 2, 6, 10, 2]
TIANWU = [5, 8, 2, 11]


# ============================================================
# VOID PAIRS
# ============================================================

def jiekong_pair(stem_index: int) -> list[int]:
    base = (8 - (stem_index % 5) * 2) % 12
    return [base, (base + 1) % 12]


def xunkong_pair(stem_index: int, branch_index: int) -> list[int]:
    # Count forward to the 癸 of the current decade, the two branches after it are void
    base = (branch_index + 9 - stem_index) % 12
    return [(base + 1) % 12, (base + 2) % 12]


def split_void_pair(pair: list[int], year_branch_index: int) -> tuple[int, int]:
    """
    Order a void pair as (primary, deputy).

    The occurrence whose branch polarity matches the birth year's branch
    is the primary one. The pair is always two adjacent branches, so
    exactly one of them matches.
    """
    first, second = pair
    if branch_polarity(first) is branch_polarity(year_branch_index):
        return first, second
    return second, first


def resolve_void_stars(stars: dict, year_branch_index: int,
                       display=VoidDisplay.MARKED) -> dict:
    """
    Replace void pairs in a placement map according to the display policy.

    Returns a new map; entries that are not void pairs are kept as is.
    """
    display = VoidDisplay(display)
    resolved = {}
    for name, placement in stars.items():
        if name not in VOID_DEPUTY_NAMES or not isinstance(placement, list):
            resolved[name] = placement
            continue
        primary, deputy = split_void_pair(placement, year_branch_index)
        if display is VoidDisplay.NO_DISTINCT:
            resolved[name] = [primary, deputy]
        elif display is VoidDisplay.PRIMARY_ONLY:
            resolved[name] = primary
        else:
            resolved[name] = primary
            resolved[VOID_DEPUTY_NAMES[name]] = deputy
    return resolved


# ============================================================
# MIGRATION-FLANKING STARS
# ============================================================

def wounded_servant_positions(migration_index: int, gender: str, lunar_year: int,
                              policy=WoundedServantPolicy.ZHONGZHOU) -> tuple[int, int]:
    """(天傷, 天使) around the Migration palace."""
    policy = WoundedServantPolicy(policy)
    if policy is WoundedServantPolicy.NO_DISTINCTION:
        offset = -1
    else:
        offset = -1 if is_clockwise(gender, lunar_year) else 1
    return (migration_index + offset) % 12, (migration_index - offset) % 12


# ============================================================
# FULL SET
# ============================================================

def place_minor_stars(month_index: int, time_index: int,
                      stem_index: int, branch_index: int,
                      ming_index: int, shen_index: int, migration_index: int,
                      lunar_day: int, gender: str, lunar_year: int,
                      wounded_servant=WoundedServantPolicy.ZHONGZHOU) -> dict[str, Union[int, list[int]]]:
    """
    Place every minor star.

    Void stars (截空, 旬空) map to a two-element list; everything else to
    a single palace index. Use resolve_void_stars() to split the pairs.

    Args:
        month_index: canonical lunar month index (0-11)
        time_index: double-hour index (0-11)
        stem_index, branch_index: birth year stem (0-9) and branch (0-11)
        ming_index, shen_index, migration_index: palace anchors from palace assignment
        lunar_day: 1-30
        gender: 'M' or 'F'
        lunar_year: birth lunar year, for the rotation direction
        wounded_servant: WoundedServantPolicy for 天傷 / 天使
    """
    if not 1 <= lunar_day <= 30:
        raise ValueError(f"Lunar day must be 1-30, got {lunar_day}")

    b = branch_index
    m = month_index
    stars = {}

    # --- stem ---
    stars["天官"] = TIANGUAN[stem_index]
    stars["天福"] = TIANFU_MINOR[stem_index]
    stars["天廚"] = TIANCHU[stem_index]
    stars["截空"] = jiekong_pair(stem_index)
    stars["旬空"] = xunkong_pair(stem_index, b)

    # --- year branch ---
    stars["天馬"] = TIANMA[b % 4]
    stars["天空"] = (b + 1) % 12
    stars["天哭"] = (6 - b) % 12
    stars["天虛"] = (6 + b) % 12
    stars["紅鸞"] = (3 - b) % 12
    stars["天喜"] = (9 - b) % 12
    stars["孤辰"] = GUCHEN[b]
    stars["寡宿"] = GUASU[b]
    stars["劫殺"] = JIESHA[b % 4]
    stars["大耗"] = DAHAO[b]
    stars["蜚廉"] = ((b // 3 * 3 + 8) % 12 + b % 3) % 12
    stars["破碎"] = POSUI[b % 3]
    stars["華蓋"] = HUAGAI[b % 4]
    stars["咸池"] = XIANCHI[b % 4]
    stars["龍德"] = (7 + b) % 12
    stars["月德"] = (5 + b) % 12
    stars["天德"] = (9 + b) % 12
    stars["年解"] = (10 - b) % 12
    stars["天才"] = (ming_index + b) % 12
    stars["天壽"] = (shen_index + b) % 12
    stars["龍池"] = (4 + b) % 12
    stars["鳳閣"] = (10 - b) % 12

    # --- month ---
    stars["天刑"] = (9 + m) % 12
    stars["天姚"] = (1 + m) % 12
    stars["解神"] = (8 + m // 2 * 2) % 12
    stars["天巫"] = TIANWU[m % 4]
    stars["天月"] = TIANYUE_MONTH[m]
    stars["陰煞"] = (2 - (m % 6) * 2) % 12

    # --- Migration palace ---
    stars["天傷"], stars["天使"] = wounded_servant_positions(
        migration_index, gender, lunar_year, wounded_servant)

    # --- counted from secondary stars ---
    wenchang = wenchang_position(time_index)
    wenqu = wenqu_position(time_index)
    stars["台輔"] = (wenqu + 2) % 12
    stars["封誥"] = (wenqu - 2) % 12
    stars["三台"] = (zuofu_position(m) + lunar_day - 1) % 12
    stars["八座"] = (youbi_position(m) - (lunar_day - 1)) % 12
    stars["恩光"] = (wenchang + lunar_day - 2) % 12
    stars["天貴"] = (wenqu + lunar_day - 2) % 12

    return stars
