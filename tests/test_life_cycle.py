import pytest

from ziwei.life_cycle import (
    major_cycles, life_stage_positions, cycle_for_age, compute_life_cycles, LIFE_STAGES,
)


def test_major_cycles_counter_clockwise():
    # 己卯 (yin) male runs counter-clockwise
    cycles = major_cycles(2, "M", 1999, 0)
    assert len(cycles) == 12
    assert cycles[0].palace_index == 0 and cycles[0].age_range == "2-11"
    assert cycles[1].palace_index == 11 and cycles[1].age_range == "12-21"
    assert cycles[11].end_age == 121


def test_major_cycles_clockwise():
    cycles = major_cycles(6, "M", 2000, 4)
    assert cycles[0].start_age == 6
    assert [c.palace_index for c in cycles[:3]] == [4, 5, 6]


def test_major_cycles_visit_every_palace_once():
    for loci in (2, 3, 4, 5, 6):
        cycles = major_cycles(loci, "F", 2000, 7)
        assert sorted(c.palace_index for c in cycles) == list(range(12))


def test_life_stages():
    stages = life_stage_positions(2, "M", 1999)
    assert stages[8] == "長生"
    assert stages[7] == "沐浴"
    assert sorted(stages.values()) == sorted(LIFE_STAGES)
    assert life_stage_positions(6, "M", 2000)[3] == "沐浴"


def test_cycle_for_age():
    cycles = major_cycles(2, "M", 1999, 0)
    assert cycle_for_age(cycles, 26).cycle_index == 2
    assert cycle_for_age(cycles, 1) is None


def test_bad_loci_raises():
    with pytest.raises(ValueError):
        compute_life_cycles(7, "M", 2000, 0)
