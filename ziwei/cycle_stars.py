"""
Major-cycle (大限) and annual-cycle (流年) star placement.

Handles:
- Stem-keyed cycle stars (昌, 曲, 魁, 鉞, 祿, 羊, 陀)
- Branch-keyed cycle stars (火, 鈴, 馬, 鸞, 喜)
- Prefix swap: the same formulas serve 大 (major) and 流 (annual) stars

Major cycles key on the cycle palace's stem and branch; annual cycles
on the stem and branch of the year itself.
"""

from ziwei.stars import TIANKUI, TIANYUE, LUCUN, fire_bell_positions
from ziwei.minor_stars import TIANMA

MAJOR_PREFIX = "大"
ANNUAL_PREFIX = "流"

# Indexed by cycle stem
CYCLE_WENCHANG = [5, 6, 8, 9, 8, 9, 11, 0, 2, 3]
CYCLE_WENQU = [9, 8, 6, 5, 6, 5, 3, 2, 0, 11]


def place_cycle_stars(stem_index: int, branch_index: int, time_index: int,
                      prefix: str = MAJOR_PREFIX) -> dict:
    """
    Cycle stars for one major cycle or one year.

    Args:
        stem_index: stem of the cycle palace (major) or of the year (annual), 0-9
        branch_index: branch of the cycle palace or of the year, 0-11
        time_index: birth double-hour index, 0-11
        prefix: 大 for major cycles, 流 for annual cycles

    Returns:
        {star name: palace index}
    """
    if not 0 <= stem_index <= 9:
        raise ValueError(f"Stem index must be 0-9, got {stem_index}")
    if not 0 <= branch_index <= 11:
        raise ValueError(f"Branch index must be 0-11, got {branch_index}")

    lucun = LUCUN[stem_index]
    fire, bell = fire_bell_positions(branch_index, time_index)
    positions = {
        "昌": CYCLE_WENCHANG[stem_index],
        "曲": CYCLE_WENQU[stem_index],
        "魁": TIANKUI[stem_index],
        "鉞": TIANYUE[stem_index],
        "祿": lucun,
        "羊": (lucun + 1) % 12,
        "陀": (lucun - 1) % 12,
        "火": fire,
        "鈴": bell,
        "馬": TIANMA[branch_index % 4],
        "鸞": (3 - branch_index) % 12,
        "喜": (9 - branch_index) % 12,
    }
    return {prefix + name: index for name, index in positions.items()}


def place_major_cycle_stars(stem_index: int, branch_index: int, time_index: int) -> dict:
    return place_cycle_stars(stem_index, branch_index, time_index, MAJOR_PREFIX)


def place_annual_cycle_stars(stem_index: int, branch_index: int, time_index: int) -> dict:
    return place_cycle_stars(stem_index, branch_index, time_index, ANNUAL_PREFIX)
