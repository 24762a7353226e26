"""
Chart orchestrator.

Handles:
- Birth input normalization and validation (BirthInput)
- Calendar conversion, including the early-zi date shift
- Index derivation and palace assignment (fatal on failure)
- Star families, mutations, life cycles, brightness (isolated per section)
- Merging everything into one chart result dict
- Optional FIFO result cache keyed by an input fingerprint

Usage from Python:
    from ziwei.chart import compute_chart, ChartCache
    chart = compute_chart({
        "year": 1990, "month": 3, "day": 15, "hour": 10, "minute": 30,
        "gender": "M", "calendarType": "solar",
    }, cache=ChartCache())

Design principle: This module COMPUTES and FLAGS. It does not interpret.
"""

import copy
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ziwei import config
from ziwei.attributes import place_attribute_stars
from ziwei.basics import (
    Indices, LeapMonthHandling, ZiHourHandling, derive_indices, parse_leap_handling,
    is_clockwise, gender_classification, master_star, body_star, MALE, FEMALE,
)
from ziwei.brightness import grade_chart, SCHOOL
from ziwei.cycle_stars import place_major_cycle_stars, place_annual_cycle_stars
from ziwei.errors import ChartError, ErrorKind
from ziwei.life_cycle import compute_life_cycles, cycle_for_age, MajorCycle
from ziwei.lunar_calendar import (
    LunarDate, SolarDate, MIN_YEAR, MAX_YEAR, BRANCH_NAMES, STEM_NAMES,
    to_lunar, to_solar, shift_days, day_number, year_stem_branch,
    ganzhi_year_label, lunar_date_label,
)
from ziwei.minor_stars import (
    WoundedServantPolicy, VoidDisplay, place_minor_stars, resolve_void_stars,
)
from ziwei.mutations import resolve, validate_selections
from ziwei.palaces import (
    Palace, assign_palaces, migration_palace_index, nayin_info,
    GRID_BRANCH_MAP, TRI_SQUARE_MAP,
)
from ziwei.stars import place_primary_stars, place_secondary_stars

logger = logging.getLogger(__name__)

DEFAULT_NAME = "無名氏"

GENDER_ALIASES = {
    "m": MALE, "male": MALE, "男": MALE,
    "f": FEMALE, "female": FEMALE, "女": FEMALE,
}

# Fields removed from a result before it is stored in the cache
PERSONAL_FIELDS = ("name", "birthplace", "gender")


# ============================================================
# INPUT
# ============================================================

class BirthInput(BaseModel):
    """Normalized birth data. Immutable once constructed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    calendar_type: Literal["solar", "lunar"] = Field("solar", alias="calendarType")
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    gender: Literal["M", "F"]
    name: str = DEFAULT_NAME
    birthplace: str = ""
    leap_month: bool = Field(False, alias="leapMonth")
    leap_month_handling: LeapMonthHandling = Field(
        default_factory=lambda: parse_leap_handling(config.LEAP_MONTH_HANDLING),
        alias="leapMonthHandling")
    zi_hour_handling: ZiHourHandling = Field(
        default_factory=lambda: ZiHourHandling(config.ZI_HOUR_HANDLING),
        alias="ziHourHandling")
    wounded_servant: WoundedServantPolicy = Field(
        default_factory=lambda: WoundedServantPolicy(config.WOUNDED_SERVANT),
        alias="woundedServant")
    void_display: VoidDisplay = Field(
        default_factory=lambda: VoidDisplay(config.VOID_DISPLAY),
        alias="voidDisplay")
    stem_interpretations: dict[str, str] = Field(
        default_factory=dict, alias="stemInterpretations", validate_default=True)

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, value):
        if isinstance(value, str):
            return GENDER_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("calendar_type", mode="before")
    @classmethod
    def normalize_calendar_type(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name", "birthplace", mode="before")
    @classmethod
    def sanitize_text(cls, value, info):
        text = "" if value is None else str(value)
        text = text.replace("<", "").replace(">", "").strip()
        if info.field_name == "name" and not text:
            return DEFAULT_NAME
        return text

    @field_validator("leap_month_handling", mode="before")
    @classmethod
    def resolve_leap_alias(cls, value):
        return parse_leap_handling(value)

    @field_validator("stem_interpretations")
    @classmethod
    def fill_stem_defaults(cls, value):
        return validate_selections(value)

    @model_validator(mode="after")
    def check_date(self):
        if self.calendar_type == "solar":
            day_number(self.year, self.month, self.day)
        elif self.day > 30:
            raise ValueError(f"Lunar day must be 1-30, got {self.day}")
        return self

    def settings(self) -> dict:
        return {
            "leapMonthHandling": self.leap_month_handling.value,
            "ziHourHandling": self.zi_hour_handling.value,
            "woundedServant": self.wounded_servant.value,
            "voidDisplay": self.void_display.value,
            "stemInterpretations": dict(self.stem_interpretations),
        }


def normalize_input(raw) -> BirthInput:
    """
    Validate raw form data into a BirthInput.

    Raises:
        ChartError(INPUT_VALIDATION_FAILED) with context['errors'] mapping
        each offending field to a message.
    """
    if isinstance(raw, BirthInput):
        return raw
    if not isinstance(raw, dict):
        raise ChartError(ErrorKind.INPUT_VALIDATION_FAILED,
                         "Birth input must be a mapping", {"input": repr(raw)})
    try:
        return BirthInput.model_validate(raw)
    except ValidationError as e:
        errors = {}
        for item in e.errors():
            field = ".".join(str(part) for part in item["loc"]) or "input"
            errors.setdefault(field, item["msg"])
        raise ChartError(ErrorKind.INPUT_VALIDATION_FAILED,
                         f"Invalid birth input: {', '.join(sorted(errors))}",
                         {"errors": errors}, e) from e


# ============================================================
# CONVERSION
# ============================================================

def conversion_date(birth: BirthInput) -> tuple[SolarDate, SolarDate]:
    """
    (Gregorian birth date, Gregorian date used for lunar conversion).

    They differ only under early-zi handling, where 23:00-23:59 already
    belongs to the next day.
    """
    if birth.calendar_type == "lunar":
        solar = to_solar(birth.year, birth.month, birth.day, birth.leap_month)
    else:
        solar = SolarDate(birth.year, birth.month, birth.day)

    target = solar
    if birth.zi_hour_handling is ZiHourHandling.ZI_CHANGE and birth.hour == 23:
        target = shift_days(solar.year, solar.month, solar.day, 1)
    return solar, target


def convert(birth: BirthInput) -> tuple[SolarDate, SolarDate, LunarDate]:
    context = {"year": birth.year, "month": birth.month, "day": birth.day,
               "calendarType": birth.calendar_type, "leapMonth": birth.leap_month}
    try:
        solar, target = conversion_date(birth)
    except ValueError as e:
        raise ChartError(ErrorKind.LUNAR_CONVERSION_FAILED, str(e), context, e) from e

    if not MIN_YEAR <= target.year <= MAX_YEAR:
        raise ChartError(ErrorKind.LUNAR_YEAR_OUT_OF_RANGE,
                         f"Year {target.year} outside supported range {MIN_YEAR}-{MAX_YEAR}",
                         dict(context, conversionDate=str(target)))
    try:
        lunar = to_lunar(target.year, target.month, target.day, birth.hour, birth.minute)
    except ValueError as e:
        raise ChartError(ErrorKind.LUNAR_CONVERSION_FAILED, str(e), context, e) from e
    return solar, target, lunar


# ============================================================
# SECTIONS
# ============================================================

@dataclass(frozen=True)
class ChartContext:
    birth: BirthInput
    lunar: LunarDate
    indices: Indices
    palaces: list[Palace]
    ming_index: int
    shen_index: int
    migration_index: int
    loci: int
    clockwise: bool


def _primary_stars(ctx: ChartContext, results: dict):
    return place_primary_stars(ctx.lunar.lunar_day, ctx.loci)


def _secondary_stars(ctx: ChartContext, results: dict):
    i = ctx.indices
    return place_secondary_stars(i.month_index, i.time_index,
                                 i.year_stem_index, i.year_branch_index)


def _minor_stars(ctx: ChartContext, results: dict):
    i = ctx.indices
    stars = place_minor_stars(
        i.month_index, i.time_index, i.year_stem_index, i.year_branch_index,
        ctx.ming_index, ctx.shen_index, ctx.migration_index,
        ctx.lunar.lunar_day, ctx.birth.gender, ctx.lunar.lunar_year,
        ctx.birth.wounded_servant,
    )
    return resolve_void_stars(stars, i.year_branch_index, ctx.birth.void_display)


def _attributes(ctx: ChartContext, results: dict):
    return place_attribute_stars(ctx.indices.year_stem_index,
                                 ctx.indices.year_branch_index, ctx.clockwise)


def _mutations(ctx: ChartContext, results: dict):
    return resolve(ctx.indices.year_stem_index, ctx.birth.stem_interpretations)


def _life_cycles(ctx: ChartContext, results: dict):
    return compute_life_cycles(ctx.loci, ctx.birth.gender, ctx.lunar.lunar_year, ctx.ming_index)


def _brightness(ctx: ChartContext, results: dict):
    # Each family is graded on its own; a failed family simply has nothing to grade
    return grade_chart(results.get("primaryStars") or {},
                       results.get("secondaryStars") or {},
                       ctx.palaces)


def _major_cycle_stars(ctx: ChartContext, results: dict):
    if "lifeCycles" in results.get("_failed", ()):
        raise ChartError(ErrorKind.MODULE_MISSING,
                         "Major cycles unavailable, cycle stars cannot be placed",
                         {"dependsOn": "lifeCycles"})
    overlays = []
    for entry in results["lifeCycles"]["major"]:
        palace = ctx.palaces[entry["palaceIndex"]]
        overlays.append({
            "cycleIndex": entry["cycleIndex"],
            "ageRange": entry["ageRange"],
            "palaceIndex": palace.index,
            "stem": palace.stem,
            "branch": palace.branch,
            "stars": place_major_cycle_stars(palace.stem_index, palace.branch_index,
                                             ctx.indices.time_index),
            "mutations": resolve(palace.stem_index, ctx.birth.stem_interpretations),
        })
    return overlays


# (result key, error kind, function, fallback), run in this order
SECTIONS = [
    ("primaryStars", ErrorKind.PRIMARY_STARS_FAILED, _primary_stars, {}),
    ("secondaryStars", ErrorKind.SECONDARY_STARS_FAILED, _secondary_stars, {}),
    ("minorStars", ErrorKind.MINOR_STARS_FAILED, _minor_stars, {}),
    ("attributes", ErrorKind.ATTRIBUTES_FAILED, _attributes, {}),
    ("mutations", ErrorKind.MUTATIONS_FAILED, _mutations, {"byType": {}, "byStar": {}}),
    ("lifeCycles", ErrorKind.LIFE_CYCLE_FAILED, _life_cycles, {"major": [], "twelveLongLife": {}}),
    ("brightness", ErrorKind.BRIGHTNESS_FAILED, _brightness,
     {"school": SCHOOL, "primary": {}, "secondary": {}}),
    ("majorCycleStars", ErrorKind.CYCLE_STARS_FAILED, _major_cycle_stars, []),
]


def safe_compute(section: str, kind: ErrorKind, fn: Callable, errors: dict, fallback):
    """
    Run one section, recording any failure under its name.

    The fallback is deep-copied so sections never share mutable defaults.
    """
    try:
        return fn()
    except Exception as e:
        error = e if isinstance(e, ChartError) else ChartError(
            kind, f"Section {section} failed: {e}", {"section": section}, e)
        errors[section] = error.to_dict()
        logger.warning(f"Section {section} failed: {error}", exc_info=True)
        return copy.deepcopy(fallback)


# ============================================================
# CACHE
# ============================================================

def cache_key(birth: BirthInput) -> str:
    """Fingerprint of every input field that changes the chart."""
    parts = [
        birth.year, birth.month, birth.day, birth.hour, birth.minute,
        birth.gender, birth.calendar_type, int(birth.leap_month),
        birth.leap_month_handling.value, birth.zi_hour_handling.value,
        birth.wounded_servant.value, birth.void_display.value,
    ]
    stems = ",".join(f"{stem}:{variant}"
                     for stem, variant in sorted(birth.stem_interpretations.items()))
    return "|".join(str(part) for part in parts) + "|" + stems


class ChartCache:
    """
    Bounded FIFO store of chart results.

    Stored results have personal fields stripped; get() always hands back
    a deep copy so callers cannot mutate what is cached.
    """

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = config.CACHE_MAX_SIZE if max_size is None else max_size
        if self.max_size < 1:
            raise ValueError(f"Cache size must be at least 1, got {self.max_size}")
        self._entries = OrderedDict()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return key in self._entries

    def get(self, key: str) -> Optional[dict]:
        entry = self._entries.get(key)
        return copy.deepcopy(entry) if entry is not None else None

    def put(self, key: str, result: dict):
        if key in self._entries:
            self._entries[key] = _sanitize(result)
            return
        while len(self._entries) >= self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.info(f"Chart cache full, evicted {evicted}")
        self._entries[key] = _sanitize(result)

    def clear(self):
        self._entries.clear()


def _sanitize(result: dict) -> dict:
    stored = copy.deepcopy(result)
    for field in PERSONAL_FIELDS:
        stored["meta"].pop(field, None)
    return stored


def _personalize(result: dict, birth: BirthInput) -> dict:
    result["meta"]["name"] = birth.name
    result["meta"]["birthplace"] = birth.birthplace
    result["meta"]["gender"] = birth.gender
    return result


# ============================================================
# META
# ============================================================

def build_meta(birth: BirthInput, solar: SolarDate, target: SolarDate, lunar: LunarDate) -> dict:
    hour_label = f"{BRANCH_NAMES[lunar.time_index]}時"
    year_label = ganzhi_year_label(lunar.lunar_year)
    date_label = lunar_date_label(lunar.lunar_month, lunar.lunar_day, lunar.is_leap)
    meta = {
        "name": birth.name,
        "gender": birth.gender,
        "birthplace": birth.birthplace,
        "calendarType": birth.calendar_type,
        "birthdate": str(solar),
        "birthtime": f"{birth.hour:02d}:{birth.minute:02d}",
        "solar": {
            "year": solar.year,
            "month": solar.month,
            "day": solar.day,
            "hour": birth.hour,
            "minute": birth.minute,
            "display": f"{solar.year}年{solar.month}月{solar.day}日 {birth.hour:02d}:{birth.minute:02d}",
        },
        "lunar": {
            "year": year_label,
            "date": date_label,
            "hour": hour_label,
            "display": f"{year_label} {date_label} {hour_label}",
        },
        "conversionDate": str(target),
        "settings": birth.settings(),
    }
    if birth.calendar_type == "lunar":
        meta["lunarInput"] = {"year": birth.year, "month": birth.month,
                              "day": birth.day, "leapMonth": birth.leap_month}
    return meta


# ============================================================
# PIPELINE
# ============================================================

def compute_chart(raw, cache: Optional[ChartCache] = None,
                  on_result: Optional[Callable[[dict], None]] = None) -> dict:
    """
    Compute a full natal chart.

    Args:
        raw: dict of form fields (camelCase or snake_case) or a BirthInput
        cache: optional ChartCache; a hit skips the whole pipeline
        on_result: optional callback given a copy of every fresh result
            (e.g. to forward it to an external validation service);
            its failures are logged and never affect the returned chart

    Returns:
        Chart result dict. Sections that failed are present with an empty
        value and listed in result['errors'].

    Raises:
        ChartError: input validation, calendar conversion or palace
            assignment failed; no chart exists in that case.
    """
    birth = normalize_input(raw)

    key = cache_key(birth)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            logger.info(f"Chart cache hit: {key}")
            return _personalize(cached, birth)
        logger.info(f"Chart cache miss: {key}")

    solar, target, lunar = convert(birth)
    logger.debug(f"Converted {solar} (as {target}) -> {lunar}")

    try:
        indices = derive_indices(lunar, birth.leap_month_handling)
        palaces = assign_palaces(indices.month_index, indices.time_index, indices.year_stem_index)
        migration = migration_palace_index(palaces)
    except ValueError as e:
        raise ChartError(ErrorKind.PALACE_CALC_FAILED, str(e), lunar.to_dict(), e) from e

    ming = next(p for p in palaces if p.is_ming)
    shen = next(p for p in palaces if p.is_shen)
    nayin = nayin_info(ming)
    clockwise = is_clockwise(birth.gender, lunar.lunar_year)

    ctx = ChartContext(
        birth=birth, lunar=lunar, indices=indices, palaces=palaces,
        ming_index=ming.index, shen_index=shen.index, migration_index=migration,
        loci=nayin["loci"], clockwise=clockwise,
    )

    errors = {}
    results = {"_failed": set()}
    for section, kind, fn, fallback in SECTIONS:
        results[section] = safe_compute(section, kind, lambda: fn(ctx, results), errors, fallback)
        if section in errors:
            results["_failed"].add(section)
        logger.debug(f"Section {section} done")
    del results["_failed"]

    result = {
        "meta": build_meta(birth, solar, target, lunar),
        "lunar": lunar.to_dict(),
        "indices": indices.to_dict(),
        "palaces": [palace.to_dict() for palace in palaces],
        "derived": {
            "mingPalaceIndex": ming.index,
            "shenPalaceIndex": shen.index,
            "migrationPalaceIndex": migration,
            "clockwise": clockwise,
            "genderClassification": gender_classification(birth.gender, lunar.lunar_year),
            "masterStar": master_star(lunar.lunar_year),
            "bodyStar": body_star(lunar.lunar_year),
            "nayin": nayin,
        },
        **results,
        "constants": {
            "grid": copy.deepcopy(GRID_BRANCH_MAP),
            "triSquare": copy.deepcopy(TRI_SQUARE_MAP),
        },
        "errors": errors,
    }

    if cache is not None:
        cache.put(key, result)

    if on_result is not None:
        try:
            on_result(copy.deepcopy(result))
        except Exception:
            logger.warning("Result hook failed; chart returned unchanged", exc_info=True)

    return result


# ============================================================
# ANNUAL OVERLAY
# ============================================================

def annual_overlay(chart: dict, year: int) -> dict:
    """
    Annual-cycle (流年) data for a Gregorian year, laid over a computed chart.

    Age is the nominal age (虛歲): the birth lunar year counts as 1.
    """
    birth_year = chart["lunar"]["lunarYear"]
    age = year - birth_year + 1
    if age < 1:
        raise ValueError(f"Year {year} is before the birth year {birth_year}")

    stem, branch = year_stem_branch(year)
    palace = next(p for p in chart["palaces"] if p["branchIndex"] == branch)
    cycles = [
        MajorCycle(c["startAge"], c["endAge"], c["palaceIndex"], c["cycleIndex"])
        for c in chart["lifeCycles"]["major"]
    ]
    active = cycle_for_age(cycles, age)

    return {
        "year": year,
        "age": age,
        "stem": STEM_NAMES[stem],
        "branch": BRANCH_NAMES[branch],
        "label": ganzhi_year_label(year),
        "palaceIndex": palace["index"],
        "palaceName": palace["name"],
        "stars": place_annual_cycle_stars(stem, branch, chart["indices"]["timeIndex"]),
        "mutations": resolve(stem, chart["meta"]["settings"]["stemInterpretations"]),
        "majorCycle": active.to_dict() if active else None,
    }
