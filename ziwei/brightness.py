"""
Star brightness (廟旺利陷) grading.

Pure two-key lookup: star name x palace branch -> grade.
Table follows the 數術 school for the fourteen primary stars and the
secondary stars. Unknown pairs grade as empty, never as an error.
"""

from enum import Enum
from typing import Optional

from ziwei.lunar_calendar import STEM_NAMES, BRANCH_NAMES

SCHOOL = "shuoshu"


class Brightness(Enum):
    EXCELLENT = "excellent"
    STRONG = "strong"
    GOOD = "good"
    NEUTRAL = "neutral"
    FALLEN = "fallen"


LABEL_GRADES = {
    "廟": Brightness.EXCELLENT,
    "旺": Brightness.STRONG,
    "利": Brightness.GOOD,
    "地": Brightness.GOOD,
    "平": Brightness.NEUTRAL,
    "閒": Brightness.NEUTRAL,
    "陷": Brightness.FALLEN,
    "失": Brightness.FALLEN,
}

# Star -> label per branch (子 ... 亥), "" where the table has no entry
BRIGHTNESS_TABLE = {
    "紫微": ["平", "廟", "廟", "旺", "陷", "旺", "廟", "廟", "旺", "平", "閒", "旺"],
    "天機": ["廟", "陷", "地", "旺", "利", "平", "廟", "陷", "地", "旺", "利", "平"],
    "太陽": ["陷", "失", "旺", "廟", "旺", "旺", "旺", "地", "地", "平", "失", "陷"],
    "武曲": ["旺", "廟", "地", "利", "廟", "平", "旺", "廟", "地", "利", "廟", "平"],
    "天同": ["旺", "失", "利", "平", "平", "廟", "陷", "失", "旺", "平", "平", "廟"],
    "廉貞": ["平", "利", "廟", "平", "利", "陷", "平", "利", "廟", "平", "利", "陷"],
    "天府": ["廟", "廟", "廟", "地", "廟", "地", "旺", "廟", "地", "旺", "廟", "地"],
    "太陰": ["廟", "廟", "旺", "陷", "陷", "陷", "失", "失", "利", "旺", "旺", "廟"],
    "貪狼": ["旺", "廟", "平", "利", "廟", "陷", "旺", "廟", "平", "利", "廟", "陷"],
    "巨門": ["旺", "失", "廟", "廟", "陷", "旺", "旺", "失", "廟", "廟", "陷", "旺"],
    "天相": ["廟", "廟", "廟", "陷", "地", "地", "廟", "廟", "廟", "陷", "地", "地"],
    "天梁": ["廟", "旺", "廟", "廟", "廟", "陷", "廟", "旺", "陷", "地", "廟", "陷"],
    "七殺": ["旺", "廟", "廟", "旺", "廟", "平", "旺", "廟", "廟", "旺", "廟", "平"],
    "破軍": ["廟", "旺", "地", "陷", "旺", "平", "廟", "旺", "地", "陷", "旺", "平"],

    "天魁": ["旺", "旺", "", "廟", "", "", "廟", "", "", "", "", "旺"],
    "天鉞": ["", "", "旺", "", "", "旺", "", "旺", "廟", "廟", "", ""],
    "左輔": ["旺", "廟", "廟", "陷", "廟", "平", "旺", "廟", "平", "陷", "廟", "閒"],
    "右弼": ["廟", "廟", "旺", "陷", "廟", "平", "旺", "廟", "閒", "陷", "廟", "平"],
    "文昌": ["地", "廟", "陷", "利", "地", "廟", "陷", "利", "地", "廟", "陷", "利"],
    "文曲": ["地", "廟", "平", "旺", "地", "廟", "陷", "旺", "地", "廟", "陷", "旺"],
    "火星": ["陷", "地", "廟", "利", "陷", "地", "廟", "利", "陷", "地", "廟", "利"],
    "鈴星": ["陷", "地", "廟", "利", "陷", "地", "廟", "利", "陷", "地", "廟", "利"],
    "祿存": ["廟", "", "廟", "廟", "", "廟", "廟", "", "廟", "廟", "", "廟"],
    "擎羊": ["陷", "廟", "", "陷", "廟", "", "平", "廟", "", "陷", "廟", ""],
    "陀羅": ["", "廟", "陷", "", "廟", "陷", "", "廟", "陷", "", "廟", "陷"],
    "地空": ["平", "陷", "陷", "平", "陷", "廟", "廟", "平", "廟", "廟", "陷", "陷"],
    "地劫": ["陷", "陷", "平", "平", "陷", "閒", "廟", "平", "廟", "平", "平", "旺"],
}


def brightness_label(star: str, branch_index: int) -> str:
    """Raw table label ('廟', '旺', ...) or '' if the pair is not graded."""
    row = BRIGHTNESS_TABLE.get(star)
    if row is None or not 0 <= branch_index <= 11:
        return ""
    return row[branch_index]


def grade(star: str, branch_index: int) -> Optional[Brightness]:
    """Brightness grade of a star in a branch, None when the pair is not graded."""
    return LABEL_GRADES.get(brightness_label(star, branch_index))


def grade_placements(stars: dict, palaces: list) -> dict:
    """
    Grade every graded star of one placement family.

    Args:
        stars: {star name: palace index}; pair placements are skipped
        palaces: the twelve Palace objects, indexed by ring position

    Returns:
        {star name: {grade, label, palaceIndex, branchIndex, stem, branch}}
        for stars that have a grade at their position
    """
    result = {}
    for star, palace_index in stars.items():
        if not isinstance(palace_index, int):
            continue
        palace = palaces[palace_index]
        label = brightness_label(star, palace.branch_index)
        level = LABEL_GRADES.get(label)
        if level is None:
            continue
        result[star] = {
            "grade": level.value,
            "label": label,
            "palaceIndex": palace_index,
            "branchIndex": palace.branch_index,
            "stem": STEM_NAMES[palace.stem_index],
            "branch": BRANCH_NAMES[palace.branch_index],
        }
    return result


def grade_chart(primary_stars: dict, secondary_stars: dict, palaces: list) -> dict:
    """Brightness for the primary and secondary families, graded separately."""
    return {
        "school": SCHOOL,
        "primary": grade_placements(primary_stars, palaces),
        "secondary": grade_placements(secondary_stars, palaces),
    }
