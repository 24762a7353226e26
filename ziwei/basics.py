"""
Basic indices every placement formula is built on.

Handles:
- Year stem / branch indices and year polarity
- Leap-month resolution into a canonical month index
- Rotation direction (gender x year polarity)
- Gender classification label (陽男 / 陰男 / 陽女 / 陰女)
- Master star (命主) and body star (身主) by year branch
- Palace stems anchored on the year stem
"""

from dataclasses import dataclass
from enum import Enum

from ziwei.lunar_calendar import LunarDate, STEM_NAMES, BRANCH_NAMES


# ============================================================
# ENUMS
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class LeapMonthHandling(Enum):
    MID = "mid"  # day <= 15 belongs to the prior month, later days to the next
    CURRENT = "current"  # always the month being repeated
    NEXT = "next"  # always the following month


class ZiHourHandling(Enum):
    MIDNIGHT_CHANGE = "midnightChange"  # date changes at 00:00
    ZI_CHANGE = "ziChange"  # date changes at 23:00 (early 子 belongs to the next day)


# Names used by the settings panel for the same policies
LEAP_HANDLING_ALIASES = {
    "mid": LeapMonthHandling.MID,
    "monthMid": LeapMonthHandling.MID,
    "current": LeapMonthHandling.CURRENT,
    "currentMonth": LeapMonthHandling.CURRENT,
    "next": LeapMonthHandling.NEXT,
    "nextMonth": LeapMonthHandling.NEXT,
}

LEAP_MONTH_MIDPOINT = 15

MALE = "M"
FEMALE = "F"


def parse_leap_handling(value) -> LeapMonthHandling:
    if isinstance(value, LeapMonthHandling):
        return value
    try:
        return LEAP_HANDLING_ALIASES[value]
    except KeyError:
        raise ValueError(f"Unknown leap month handling: {value!r}. "
                         f"Use one of {sorted(LEAP_HANDLING_ALIASES)}") from None


# ============================================================
# YEAR INDICES
# ============================================================

def year_stem_index(lunar_year: int) -> int:
    return (lunar_year - 4) % 10


def year_branch_index(lunar_year: int) -> int:
    return (lunar_year - 4) % 12


def year_polarity(lunar_year: int) -> Polarity:
    return branch_polarity(year_branch_index(lunar_year))


def branch_polarity(branch_index: int) -> Polarity:
    return Polarity.YANG if branch_index % 2 == 0 else Polarity.YIN


# ============================================================
# INDEX DERIVATION
# ============================================================

@dataclass(frozen=True)
class Indices:
    month_index: int  # 0-11, 0 = first lunar month
    time_index: int  # 0-11, 0 = 子
    year_stem_index: int  # 0-9
    year_branch_index: int  # 0-11

    def to_dict(self):
        return {
            "monthIndex": self.month_index,
            "timeIndex": self.time_index,
            "yearStemIndex": self.year_stem_index,
            "yearStem": STEM_NAMES[self.year_stem_index],
            "yearBranchIndex": self.year_branch_index,
            "yearBranch": BRANCH_NAMES[self.year_branch_index],
        }


def month_index(lunar_month: int, lunar_day: int, is_leap: bool,
                handling=LeapMonthHandling.MID) -> int:
    """
    Canonical 0-11 month index for a lunar month.

    A leap month repeats the month before it, so it is resolved either to
    that month, to the next one, or split at the 15th day.
    """
    if not 1 <= lunar_month <= 12:
        raise ValueError(f"Lunar month must be 1-12, got {lunar_month}")
    prior = lunar_month - 1
    if not is_leap:
        return prior

    following = lunar_month % 12
    handling = parse_leap_handling(handling)
    if handling is LeapMonthHandling.CURRENT:
        return prior
    if handling is LeapMonthHandling.NEXT:
        return following
    return prior if lunar_day <= LEAP_MONTH_MIDPOINT else following


def derive_indices(lunar: LunarDate, handling=LeapMonthHandling.MID) -> Indices:
    """Resolve a LunarDate into the indices used by every placement formula."""
    return Indices(
        month_index=month_index(lunar.lunar_month, lunar.lunar_day, lunar.is_leap, handling),
        time_index=lunar.time_index,
        year_stem_index=year_stem_index(lunar.lunar_year),
        year_branch_index=year_branch_index(lunar.lunar_year),
    )


# ============================================================
# DIRECTION AND GENDER
# ============================================================

def is_clockwise(gender: str, lunar_year: int) -> bool:
    """Yang-year males and yin-year females count forward around the ring."""
    yang = year_polarity(lunar_year) == Polarity.YANG
    return (gender == MALE and yang) or (gender == FEMALE and not yang)


def gender_classification(gender: str, lunar_year: int) -> str:
    polarity = "陽" if year_polarity(lunar_year) == Polarity.YANG else "陰"
    return polarity + ("男" if gender == MALE else "女")


# ============================================================
# MASTER / BODY STARS
# ============================================================

# Indexed by year branch
MASTER_STARS = ["貪狼", "巨門", "祿存", "文曲", "廉貞", "武曲",
                "破軍", "武曲", "廉貞", "文曲", "祿存", "巨門"]
BODY_STARS = ["火星", "天相", "天梁", "天同", "文昌", "天機",
              "火星", "天相", "天梁", "天同", "文昌", "天機"]


def master_star(lunar_year: int) -> dict:
    branch = year_branch_index(lunar_year)
    return {"branchIndex": branch, "starName": MASTER_STARS[branch]}


def body_star(lunar_year: int) -> dict:
    branch = year_branch_index(lunar_year)
    return {"branchIndex": branch, "starName": BODY_STARS[branch]}


# ============================================================
# PALACE STEMS
# ============================================================

# Stem of the 寅 palace by year stem (五虎遁): 甲己 -> 丙, 乙庚 -> 戊, ...
YIN_PALACE_STEM = [2, 4, 6, 8, 0]


def palace_stem_index(palace_index: int, stem_index: int) -> int:
    """Heavenly stem of a palace, counted from the 寅 palace of the given year stem."""
    start = YIN_PALACE_STEM[stem_index % 5]
    return (start + (palace_index - 2) % 12) % 10
