"""
Primary and secondary star placement.

Handles:
- 紫微 anchor from lunar day + five-element loci, and its five satellites
- 天府 anchor mirrored from 紫微, and its seven satellites
- Month-keyed stars (左輔, 右弼)
- Hour-keyed stars (文昌, 文曲, 地空, 地劫)
- Stem-keyed stars (天魁, 天鉞, 祿存, 擎羊, 陀羅)
- Branch-group stars (火星, 鈴星)

Every function here is pure: indices in, palace indices out.
A placement map is {star name: palace index (0-11)}.
"""

import math


# ============================================================
# PRIMARY STARS (十四主星)
# ============================================================

ZIWEI_SATELLITES = {
    "廉貞": 4,
    "天同": 7,
    "武曲": 8,
    "太陽": 9,
    "天機": 11,
}

TIANFU_SATELLITES = {
    "太陰": 1,
    "貪狼": 2,
    "巨門": 3,
    "天相": 4,
    "天梁": 5,
    "七殺": 6,
    "破軍": 10,
}

VALID_LOCI = (2, 3, 4, 5, 6)


def ziwei_position(lunar_day: int, loci: int) -> int:
    """
    Palace of 紫微.

    Count how many loci-sized steps the lunar day needs, then move back
    or forward by the shortfall depending on its parity, starting at 寅.

    Args:
        lunar_day: 1-30
        loci: five-element loci, 2-6

    Returns:
        Palace index 0-11
    """
    if not 1 <= lunar_day <= 30:
        raise ValueError(f"Lunar day must be 1-30, got {lunar_day}")
    if loci not in VALID_LOCI:
        raise ValueError(f"Loci must be one of {VALID_LOCI}, got {loci}")

    step = math.ceil(lunar_day / loci)
    remainder = step * loci - lunar_day
    if remainder % 2 == 0:
        total_step = step + remainder - 1
    else:
        total_step = step - remainder - 1
    return (2 + total_step) % 12


def tianfu_position(ziwei_index: int) -> int:
    """天府 mirrors 紫微 across the 寅-申 axis."""
    return (4 - ziwei_index) % 12


def satellites(anchor_index: int, offsets: dict) -> dict:
    return {name: (anchor_index + offset) % 12 for name, offset in offsets.items()}


def place_primary_stars(lunar_day: int, loci: int) -> dict:
    """All fourteen primary stars."""
    ziwei = ziwei_position(lunar_day, loci)
    tianfu = tianfu_position(ziwei)

    stars = {"紫微": ziwei}
    stars.update(satellites(ziwei, ZIWEI_SATELLITES))
    stars["天府"] = tianfu
    stars.update(satellites(tianfu, TIANFU_SATELLITES))
    return stars


# ============================================================
# SECONDARY STARS (六吉六煞 + 祿存)
# ============================================================

# Indexed by year stem
TIANKUI = [1, 0, 11, 11, 1, 0, 1, 6, 3, 3]
TIANYUE = [7, 8, 9, 9, 7, 8, 7, 2, 5, 5]
LUCUN = [2, 3, 5, 6, 5, 6, 8, 9, 11, 0]

# 火星 / 鈴星 start palaces by year branch triad
#   申子辰 -> 寅 / 戌, 寅午戌 -> 丑 / 卯, 巳酉丑 -> 卯 / 戌, 亥卯未 -> 酉 / 戌
FIRE_BELL_START = {
    0: (2, 10), 4: (2, 10), 8: (2, 10),
    2: (1, 3), 6: (1, 3), 10: (1, 3),
    1: (3, 10), 5: (3, 10), 9: (3, 10),
    3: (9, 10), 7: (9, 10), 11: (9, 10),
}


def zuofu_position(month_index: int) -> int:
    return (4 + month_index) % 12


def youbi_position(month_index: int) -> int:
    return (10 - month_index) % 12


def wenchang_position(time_index: int) -> int:
    return (10 - time_index) % 12


def wenqu_position(time_index: int) -> int:
    return (4 + time_index) % 12


def lucun_position(stem_index: int) -> int:
    return LUCUN[stem_index]


def fire_bell_positions(branch_index: int, time_index: int) -> tuple[int, int]:
    fire_start, bell_start = FIRE_BELL_START[branch_index]
    return (fire_start + time_index) % 12, (bell_start + time_index) % 12


def place_secondary_stars(month_index: int, time_index: int,
                          stem_index: int, branch_index: int) -> dict:
    """
    The thirteen secondary stars.

    Args:
        month_index: canonical lunar month index (0-11)
        time_index: double-hour index (0-11)
        stem_index: birth year stem (0-9)
        branch_index: birth year branch (0-11)
    """
    lucun = lucun_position(stem_index)
    fire, bell = fire_bell_positions(branch_index, time_index)
    return {
        "左輔": zuofu_position(month_index),
        "右弼": youbi_position(month_index),
        "文昌": wenchang_position(time_index),
        "文曲": wenqu_position(time_index),
        "地空": (11 - time_index) % 12,
        "地劫": (11 + time_index) % 12,
        "天魁": TIANKUI[stem_index],
        "天鉞": TIANYUE[stem_index],
        "祿存": lucun,
        "擎羊": (lucun + 1) % 12,
        "陀羅": (lucun - 1) % 12,
        "火星": fire,
        "鈴星": bell,
    }


# Quick verification
if __name__ == "__main__":
    for day in (1, 15, 30):
        for loci in VALID_LOCI:
            print(f"day {day:2d} loci {loci}: 紫微 at {ziwei_position(day, loci)}")
    print(place_secondary_stars(0, 0, 0, 0))
