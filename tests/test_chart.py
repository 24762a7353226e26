import pytest

import ziwei.chart as chart_module
from ziwei.chart import ChartCache, annual_overlay, compute_chart, normalize_input
from ziwei.errors import ChartError, ErrorKind


def birth(**overrides):
    data = {
        "calendarType": "solar",
        "year": 2000, "month": 1, "day": 1,
        "hour": 0, "minute": 0,
        "gender": "M",
    }
    data.update(overrides)
    return data


# ============================================================
# FULL CHART
# ============================================================

def test_new_year_2000_chart():
    chart = compute_chart(birth())
    assert chart["errors"] == {}

    lunar = chart["lunar"]
    assert (lunar["lunarYear"], lunar["lunarMonth"], lunar["lunarDay"]) == (1999, 11, 25)
    assert chart["indices"]["monthIndex"] == 10
    assert chart["indices"]["yearStem"] == "己"

    derived = chart["derived"]
    assert derived["mingPalaceIndex"] == 0
    assert derived["shenPalaceIndex"] == 0
    assert derived["migrationPalaceIndex"] == 6
    assert derived["clockwise"] is False
    assert derived["genderClassification"] == "陰男"
    assert derived["nayin"] == {"loci": 2, "name": "水二局"}

    assert chart["palaces"][0]["name"] == "身命"
    assert chart["primaryStars"]["紫微"] == 1
    assert chart["secondaryStars"]["祿存"] == 6
    assert chart["mutations"]["byType"]["忌"] == "文曲"
    assert chart["brightness"]["primary"]["紫微"]["grade"] == "excellent"
    assert chart["lifeCycles"]["major"][0]["ageRange"] == "2-11"
    assert chart["meta"]["lunar"]["display"] == "己卯年，兔 十一月廿五 子時"


def test_void_stars_are_split_by_default():
    chart = compute_chart(birth())
    minor = chart["minorStars"]
    assert isinstance(minor["截空"], int)
    assert "副截" in minor and "副旬" in minor


def test_major_cycle_stars_per_cycle():
    chart = compute_chart(birth())
    overlays = chart["majorCycleStars"]
    assert len(overlays) == 12
    for overlay, cycle in zip(overlays, chart["lifeCycles"]["major"]):
        assert overlay["palaceIndex"] == cycle["palaceIndex"]
        assert len(overlay["stars"]) == 12
        assert all(name.startswith("大") for name in overlay["stars"])
        assert len(overlay["mutations"]["byType"]) == 4


def test_snake_case_fields_accepted():
    chart = compute_chart({
        "calendar_type": "solar", "year": 2000, "month": 1, "day": 1,
        "hour": 0, "minute": 0, "gender": "M",
    })
    assert chart["derived"]["mingPalaceIndex"] == 0


# ============================================================
# CALENDAR POLICIES
# ============================================================

def test_early_zi_moves_to_next_day():
    late = compute_chart(birth(hour=23, ziHourHandling="ziChange"))
    assert late["lunar"]["lunarDay"] == 26
    assert late["lunar"]["timeIndex"] == 0
    assert late["meta"]["birthdate"] == "2000-01-01"
    assert late["meta"]["conversionDate"] == "2000-01-02"

    same_day = compute_chart(birth(hour=23, ziHourHandling="midnightChange"))
    assert same_day["lunar"]["lunarDay"] == 25


def test_lunar_input_in_leap_month():
    first_half = compute_chart(birth(calendarType="lunar", year=2020, month=4, day=15,
                                     leapMonth=True, leapMonthHandling="mid"))
    assert first_half["lunar"]["isLeapMonth"] is True
    assert first_half["indices"]["monthIndex"] == 3
    assert first_half["meta"]["birthdate"] == "2020-06-06"
    assert first_half["meta"]["lunarInput"]["leapMonth"] is True

    second_half = compute_chart(birth(calendarType="lunar", year=2020, month=4, day=16,
                                      leapMonth=True, leapMonthHandling="mid"))
    assert second_half["indices"]["monthIndex"] == 4

    current = compute_chart(birth(calendarType="lunar", year=2020, month=4, day=16,
                                  leapMonth=True, leapMonthHandling="currentMonth"))
    assert current["indices"]["monthIndex"] == 3


def test_solar_date_in_a_later_leap_month():
    chart = compute_chart(birth(year=2025, month=7, day=25, hour=12))
    assert chart["errors"] == {}
    lunar = chart["lunar"]
    assert (lunar["lunarYear"], lunar["lunarMonth"], lunar["lunarDay"]) == (2025, 6, 1)
    assert lunar["isLeapMonth"] is True
    assert chart["indices"]["monthIndex"] == 5


def test_birth_before_1900_new_year():
    chart = compute_chart(birth(year=1900, month=1, day=15))
    assert chart["errors"] == {}
    assert chart["lunar"]["lunarYear"] == 1899
    assert chart["indices"]["yearStem"] + chart["indices"]["yearBranch"] == "己亥"


def test_charts_across_the_range_have_no_section_errors():
    for year in range(1900, 2101, 7):
        for month, day in ((1, 3), (6, 17), (11, 29)):
            for hour in (0, 11, 23):
                chart = compute_chart(birth(year=year, month=month, day=day, hour=hour,
                                            gender="F" if year % 2 else "M"))
                assert chart["errors"] == {}, (year, month, day, hour)


def test_lunar_input_with_missing_leap_month_fails_conversion():
    with pytest.raises(ChartError) as excinfo:
        compute_chart(birth(calendarType="lunar", year=2021, month=4, day=1, leapMonth=True))
    assert excinfo.value.kind is ErrorKind.LUNAR_CONVERSION_FAILED


def test_early_zi_past_last_supported_day():
    with pytest.raises(ChartError) as excinfo:
        compute_chart(birth(year=2100, month=12, day=31, hour=23, ziHourHandling="ziChange"))
    assert excinfo.value.kind is ErrorKind.LUNAR_YEAR_OUT_OF_RANGE


# ============================================================
# VALIDATION
# ============================================================

def test_year_out_of_range_rejected():
    with pytest.raises(ChartError) as excinfo:
        compute_chart(birth(year=1899))
    assert excinfo.value.kind is ErrorKind.INPUT_VALIDATION_FAILED
    assert "year" in excinfo.value.context["errors"]


def test_missing_gender_rejected():
    data = birth()
    del data["gender"]
    with pytest.raises(ChartError) as excinfo:
        compute_chart(data)
    assert "gender" in excinfo.value.context["errors"]


def test_impossible_solar_date_rejected():
    with pytest.raises(ChartError) as excinfo:
        compute_chart(birth(month=2, day=30))
    assert excinfo.value.kind is ErrorKind.INPUT_VALIDATION_FAILED


def test_unknown_stem_variant_rejected():
    with pytest.raises(ChartError) as excinfo:
        compute_chart(birth(stemInterpretations={"庚": "interpretation_9"}))
    assert any("stem" in field.lower() for field in excinfo.value.context["errors"])


def test_non_mapping_input_rejected():
    with pytest.raises(ChartError):
        normalize_input(["2000-01-01"])


def test_gender_aliases_and_text_sanitizing():
    assert normalize_input(birth(gender="female")).gender == "F"
    assert normalize_input(birth(gender="男")).gender == "M"
    normalized = normalize_input(birth(name="<b>Lin</b>", birthplace=" Taipei "))
    assert normalized.name == "bLin/b"
    assert normalized.birthplace == "Taipei"
    assert normalize_input(birth(name="  ")).name == "無名氏"


def test_defaults_filled_into_settings():
    chart = compute_chart(birth())
    settings = chart["meta"]["settings"]
    assert settings["leapMonthHandling"] == "mid"
    assert settings["ziHourHandling"] == "midnightChange"
    assert len(settings["stemInterpretations"]) == 6


# ============================================================
# SECTION ISOLATION
# ============================================================

def test_failed_section_is_isolated(monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(chart_module, "place_minor_stars", broken)
    chart = compute_chart(birth())
    assert set(chart["errors"]) == {"minorStars"}
    assert chart["errors"]["minorStars"]["kind"] == "MINOR_STARS_FAILED"
    assert chart["minorStars"] == {}
    assert chart["primaryStars"]["紫微"] == 1
    assert len(chart["palaces"]) == 12


def test_life_cycle_failure_marks_cycle_stars_missing(monkeypatch):
    def broken(*args, **kwargs):
        raise ValueError("no cycles")

    monkeypatch.setattr(chart_module, "compute_life_cycles", broken)
    chart = compute_chart(birth())
    assert set(chart["errors"]) == {"lifeCycles", "majorCycleStars"}
    assert chart["errors"]["majorCycleStars"]["kind"] == "MODULE_MISSING"
    assert chart["lifeCycles"] == {"major": [], "twelveLongLife": {}}
    assert chart["majorCycleStars"] == []
    assert chart["primaryStars"]["紫微"] == 1


def test_brightness_survives_missing_family(monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(chart_module, "place_secondary_stars", broken)
    chart = compute_chart(birth())
    assert set(chart["errors"]) == {"secondaryStars"}
    assert chart["brightness"]["secondary"] == {}
    assert "紫微" in chart["brightness"]["primary"]


def test_palace_failure_is_fatal(monkeypatch):
    monkeypatch.setattr(chart_module, "assign_palaces", lambda *args: [])
    with pytest.raises(ChartError) as excinfo:
        compute_chart(birth())
    assert excinfo.value.kind is ErrorKind.PALACE_CALC_FAILED


# ============================================================
# CACHE
# ============================================================

def test_cache_hit_returns_equal_result():
    cache = ChartCache()
    first = compute_chart(birth(), cache=cache)
    second = compute_chart(birth(), cache=cache)
    assert len(cache) == 1
    assert second == first


def test_cached_copy_is_independent():
    cache = ChartCache()
    first = compute_chart(birth(), cache=cache)
    first["primaryStars"]["紫微"] = 99
    second = compute_chart(birth(), cache=cache)
    assert second["primaryStars"]["紫微"] == 1


def test_cache_stores_no_personal_fields():
    cache = ChartCache()
    compute_chart(birth(name="Lin", birthplace="Taipei"), cache=cache)
    key = next(iter(cache._entries))
    stored = cache._entries[key]
    assert "name" not in stored["meta"]
    assert "birthplace" not in stored["meta"]


def test_cache_hit_restores_personal_fields():
    cache = ChartCache()
    compute_chart(birth(name="Lin"), cache=cache)
    other = compute_chart(birth(name="Chen"), cache=cache)
    assert len(cache) == 1
    assert other["meta"]["name"] == "Chen"


def test_policy_change_is_a_cache_miss():
    cache = ChartCache()
    compute_chart(birth(), cache=cache)
    compute_chart(birth(ziHourHandling="ziChange"), cache=cache)
    compute_chart(birth(stemInterpretations={"甲": "interpretation_2"}), cache=cache)
    assert len(cache) == 3


def test_cache_evicts_oldest_first():
    cache = ChartCache(max_size=2)
    for day in (1, 2, 3):
        compute_chart(birth(day=day), cache=cache)
    assert len(cache) == 2
    keys = list(cache._entries)
    assert keys[0].startswith("2000|1|2|")
    assert keys[1].startswith("2000|1|3|")


def test_cache_size_must_be_positive():
    with pytest.raises(ValueError):
        ChartCache(max_size=0)


# ============================================================
# RESULT HOOK
# ============================================================

def test_result_hook_receives_copy():
    seen = []
    chart = compute_chart(birth(), on_result=seen.append)
    assert seen == [chart]
    seen[0]["primaryStars"].clear()
    assert chart["primaryStars"]["紫微"] == 1


def test_result_hook_failure_is_ignored():
    def broken(result):
        raise RuntimeError("service down")

    chart = compute_chart(birth(), on_result=broken)
    assert chart["errors"] == {}


# ============================================================
# ANNUAL OVERLAY
# ============================================================

def test_annual_overlay():
    chart = compute_chart(birth())
    overlay = annual_overlay(chart, 2024)
    assert overlay["age"] == 26
    assert overlay["stem"] + overlay["branch"] == "甲辰"
    assert overlay["palaceIndex"] == 4
    assert overlay["majorCycle"]["cycleIndex"] == 2
    assert all(name.startswith("流") for name in overlay["stars"])
    assert overlay["mutations"]["byType"]["祿"] == "廉貞"


def test_annual_overlay_before_birth_raises():
    chart = compute_chart(birth())
    with pytest.raises(ValueError):
        annual_overlay(chart, 1990)
