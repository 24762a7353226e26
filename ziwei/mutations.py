"""
Four transformations (四化) resolver.

Maps a heavenly stem to the stars receiving 化祿, 化權, 化科 and 化忌.
Six stems have published variants; callers select one per stem, the
default being the 中州派 reading.

The same resolve() call serves the birth year, every major cycle and
any annual cycle, only the stem differs.
"""

from typing import Optional

from ziwei.lunar_calendar import STEM_NAMES

MUTATION_TYPES = ["祿", "權", "科", "忌"]

SCHOOL_NAME = "中州派四化"

# 中州派 table: stem -> [祿, 權, 科, 忌]
ZHONGZHOU_MUTATIONS = {
    "甲": ["廉貞", "破軍", "武曲", "太陽"],
    "乙": ["天機", "天梁", "紫微", "太陰"],
    "丙": ["天同", "天機", "文昌", "廉貞"],
    "丁": ["太陰", "天同", "天機", "巨門"],
    "戊": ["貪狼", "太陰", "太陽", "天機"],
    "己": ["武曲", "貪狼", "天梁", "文曲"],
    "庚": ["太陽", "武曲", "天府", "天同"],
    "辛": ["巨門", "太陽", "文曲", "文昌"],
    "壬": ["天梁", "紫微", "天府", "武曲"],
    "癸": ["破軍", "巨門", "太陰", "貪狼"],
}

DEFAULT_VARIANT = "interpretation_1"

# Disputed stems: variant id -> (display name, [祿, 權, 科, 忌])
DISPUTED_STEM_VARIANTS = {
    "甲": {
        "interpretation_1": ("甲廉破武陽 - 預設", ["廉貞", "破軍", "武曲", "太陽"]),
        "interpretation_2": ("甲廉破曲陽", ["廉貞", "破軍", "文曲", "太陽"]),
    },
    "戊": {
        "interpretation_1": ("戊貪陰陽機 - 預設", ["貪狼", "太陰", "太陽", "天機"]),
        "interpretation_2": ("戊貪陰右機", ["貪狼", "太陰", "右弼", "天機"]),
    },
    "庚": {
        "interpretation_1": ("庚陽武府同 - 預設", ["太陽", "武曲", "天府", "天同"]),
        "interpretation_2": ("庚陽武陰同", ["太陽", "武曲", "太陰", "天同"]),
        "interpretation_3": ("庚陽武同陰", ["太陽", "武曲", "天同", "太陰"]),
        "interpretation_4": ("庚陽武同相", ["太陽", "武曲", "天同", "天相"]),
    },
    "辛": {
        "interpretation_1": ("辛巨陽曲昌 - 預設", ["巨門", "太陽", "文曲", "文昌"]),
        "interpretation_2": ("辛巨陽武昌", ["巨門", "太陽", "武曲", "文昌"]),
    },
    "壬": {
        "interpretation_1": ("壬梁紫府武 - 預設", ["天梁", "紫微", "天府", "武曲"]),
        "interpretation_2": ("壬梁紫左武", ["天梁", "紫微", "左輔", "武曲"]),
    },
    "癸": {
        "interpretation_1": ("癸破巨陰貪 - 預設", ["破軍", "巨門", "太陰", "貪狼"]),
        "interpretation_2": ("癸破巨陽貪", ["破軍", "巨門", "太陽", "貪狼"]),
    },
}

DISPUTED_STEMS = list(DISPUTED_STEM_VARIANTS)


def available_variants(stem: str) -> list[str]:
    return list(DISPUTED_STEM_VARIANTS.get(stem, {}))


def validate_selections(selections: Optional[dict]) -> dict:
    """
    Check a {stem: variant id} mapping and return it with defaults filled in.

    Raises ValueError naming the first unknown stem or variant.
    """
    selections = dict(selections or {})
    for stem, variant in selections.items():
        if stem not in DISPUTED_STEM_VARIANTS:
            raise ValueError(f"Stem {stem!r} has no variants; disputed stems are {''.join(DISPUTED_STEMS)}")
        if variant not in DISPUTED_STEM_VARIANTS[stem]:
            raise ValueError(f"Unknown variant {variant!r} for stem {stem}; "
                             f"choose from {available_variants(stem)}")
    return {stem: selections.get(stem, DEFAULT_VARIANT) for stem in DISPUTED_STEMS}


def resolve(stem, selections: Optional[dict] = None) -> dict:
    """
    Resolve the four transformations for a stem.

    Args:
        stem: stem character ('甲'...) or stem index (0-9)
        selections: optional {disputed stem: variant id}

    Returns:
        dict with 'stem', 'variant', 'variantName', 'byType' and 'byStar'
    """
    if isinstance(stem, int):
        if not 0 <= stem <= 9:
            raise ValueError(f"Stem index must be 0-9, got {stem}")
        stem = STEM_NAMES[stem]
    if stem not in ZHONGZHOU_MUTATIONS:
        raise ValueError(f"Unknown heavenly stem: {stem!r}")

    variant = None
    variant_name = SCHOOL_NAME
    stars = ZHONGZHOU_MUTATIONS[stem]
    if stem in DISPUTED_STEM_VARIANTS:
        variant = (selections or {}).get(stem, DEFAULT_VARIANT)
        if variant not in DISPUTED_STEM_VARIANTS[stem]:
            raise ValueError(f"Unknown variant {variant!r} for stem {stem}")
        variant_name, stars = DISPUTED_STEM_VARIANTS[stem][variant]

    by_type = dict(zip(MUTATION_TYPES, stars))
    return {
        "stem": stem,
        "variant": variant,
        "variantName": variant_name,
        "byType": by_type,
        "byStar": {star: kind for kind, star in by_type.items()},
    }
