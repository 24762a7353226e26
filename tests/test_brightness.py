from ziwei.brightness import Brightness, grade, grade_placements, grade_chart, SCHOOL
from ziwei.palaces import assign_palaces


def test_grade_lookup():
    assert grade("紫微", 0) is Brightness.NEUTRAL
    assert grade("紫微", 1) is Brightness.EXCELLENT
    assert grade("紫微", 4) is Brightness.FALLEN


def test_missing_entries_grade_as_none():
    assert grade("天魁", 2) is None
    assert grade("紅鸞", 0) is None
    assert grade("紫微", 12) is None


def test_grade_placements_keeps_graded_stars_only():
    palaces = assign_palaces(10, 0, 5)
    graded = grade_placements({"紫微": 1, "天魁": 2, "截空": [8, 9]}, palaces)
    assert list(graded) == ["紫微"]
    assert graded["紫微"]["grade"] == "excellent"
    assert graded["紫微"]["label"] == "廟"
    assert graded["紫微"]["branch"] == "丑"


def test_grade_chart_shape():
    palaces = assign_palaces(10, 0, 5)
    chart = grade_chart({"紫微": 1}, {}, palaces)
    assert chart["school"] == SCHOOL
    assert chart["secondary"] == {}
