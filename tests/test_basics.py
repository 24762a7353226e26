import pytest

from ziwei.basics import (
    LeapMonthHandling, month_index, derive_indices, parse_leap_handling,
    Polarity, branch_polarity, year_polarity,
    year_stem_index, year_branch_index, is_clockwise, gender_classification,
    master_star, body_star, palace_stem_index,
)
from ziwei.lunar_calendar import LunarDate


def test_year_indices():
    assert (year_stem_index(1984), year_branch_index(1984)) == (0, 0)  # 甲子
    assert (year_stem_index(1999), year_branch_index(1999)) == (5, 3)  # 己卯
    assert (year_stem_index(2024), year_branch_index(2024)) == (0, 4)  # 甲辰


def test_regular_month_ignores_policy():
    for policy in ("mid", "current", "next"):
        assert month_index(5, 20, False, policy) == 4


def test_leap_month_mid_splits_after_fifteenth():
    assert month_index(4, 15, True, LeapMonthHandling.MID) == 3
    assert month_index(4, 16, True, LeapMonthHandling.MID) == 4


def test_leap_month_current_and_next():
    assert month_index(4, 28, True, "current") == 3
    assert month_index(4, 2, True, "next") == 4
    assert month_index(12, 1, True, "next") == 0


def test_settings_panel_aliases():
    assert parse_leap_handling("monthMid") is LeapMonthHandling.MID
    assert parse_leap_handling("currentMonth") is LeapMonthHandling.CURRENT
    assert parse_leap_handling("nextMonth") is LeapMonthHandling.NEXT
    with pytest.raises(ValueError):
        parse_leap_handling("sometimes")


def test_derive_indices():
    lunar = LunarDate(2020, 4, 16, is_leap=True, time_index=7)
    indices = derive_indices(lunar, "mid")
    assert indices.month_index == 4
    assert indices.time_index == 7
    assert indices.year_stem_index == 6  # 庚
    assert indices.year_branch_index == 0  # 子


def test_direction_and_classification():
    # 2000 is 庚辰, a yang year
    assert is_clockwise("M", 2000) is True
    assert is_clockwise("F", 2000) is False
    # 1999 is 己卯, a yin year
    assert is_clockwise("M", 1999) is False
    assert is_clockwise("F", 1999) is True
    assert gender_classification("M", 2000) == "陽男"
    assert gender_classification("F", 1999) == "陰女"


def test_master_and_body_stars():
    assert master_star(1984) == {"branchIndex": 0, "starName": "貪狼"}
    assert body_star(1984) == {"branchIndex": 0, "starName": "火星"}
    assert master_star(1999)["starName"] == "文曲"
    assert body_star(1999)["starName"] == "天同"


def test_palace_stems_follow_five_tigers_rule():
    # 甲 year: 丙寅, 丁卯 ... 丙子, 丁丑
    assert palace_stem_index(2, 0) == 2
    assert palace_stem_index(3, 0) == 3
    assert palace_stem_index(0, 0) == 2
    assert palace_stem_index(1, 0) == 3
    # 乙 year starts 寅 at 戊
    assert palace_stem_index(2, 1) == 4
    # 己 shares 甲's start
    assert palace_stem_index(2, 5) == 2


def test_polarity_follows_branch_parity():
    assert branch_polarity(0) is Polarity.YANG
    assert branch_polarity(11) is Polarity.YIN
    assert year_polarity(2000) is Polarity.YANG  # 辰
    assert year_polarity(1999) is Polarity.YIN  # 卯
