"""
Spirit / attribute stars: three interleaved twelve-star sequences.

Handles:
- 太歲 sequence, starting at the year branch
- 將前 sequence, starting at a branch-triad anchor
- 博士 sequence, starting at 祿存 and following the rotation direction
"""

from ziwei.stars import lucun_position

TAI_SUI_STARS = ["太歲", "晦氣", "喪門", "貫索", "官符", "小耗",
                 "歲破", "龍德", "白虎", "天德", "吊客", "病符"]

JIANG_QIAN_STARS = ["將星", "攀鞍", "歲驛", "息神", "華蓋", "劫煞",
                    "災煞", "天煞", "指背", "咸池", "月煞", "亡神"]

BO_SHI_STARS = ["博士", "力士", "青龍", "小耗", "將軍", "奏書",
                "飛廉", "喜神", "病符", "大耗", "伏兵", "官符"]

# 將星 start by year branch mod 4 (子 / 午 / 酉 / 卯 groups)
JIANG_QIAN_START = [0, 9, 6, 3]


def _sequence(names: list[str], start: int, clockwise: bool = True) -> dict:
    step = 1 if clockwise else -1
    return {name: (start + step * i) % 12 for i, name in enumerate(names)}


def tai_sui_stars(year_branch_index: int) -> dict:
    return _sequence(TAI_SUI_STARS, year_branch_index)


def jiang_qian_stars(year_branch_index: int) -> dict:
    return _sequence(JIANG_QIAN_STARS, JIANG_QIAN_START[year_branch_index % 4])


def bo_shi_stars(lucun_index: int, clockwise: bool) -> dict:
    return _sequence(BO_SHI_STARS, lucun_index, clockwise)


def place_attribute_stars(year_stem_index: int, year_branch_index: int, clockwise: bool) -> dict:
    """
    Attribute stars grouped by palace.

    Some names (小耗, 官符, 病符, ...) exist in more than one sequence, so
    the result maps palace index -> ordered list of names rather than
    name -> palace. Within a palace the order is 太歲, 將前, 博士.
    """
    sequences = (
        tai_sui_stars(year_branch_index),
        jiang_qian_stars(year_branch_index),
        bo_shi_stars(lucun_position(year_stem_index), clockwise),
    )
    by_palace = {index: [] for index in range(12)}
    for sequence in sequences:
        for name, index in sequence.items():
            by_palace[index].append(name)
    return by_palace
