import pytest

from ziwei.palaces import (
    PALACE_ROLES, assign_palaces, ming_palace_index, shen_palace_index,
    migration_palace_index, find_palace, nayin_loci, nayin_info, tri_square,
    GRID_BRANCH_MAP,
)


def test_ming_and_shen_for_first_month_zi_hour():
    assert ming_palace_index(0, 0) == 2
    assert shen_palace_index(0, 0) == 2


def test_every_month_and_hour_gives_twelve_distinct_roles():
    for month in range(12):
        for hour in range(12):
            palaces = assign_palaces(month, hour, 0)
            assert len(palaces) == 12
            assert sorted(p.role for p in palaces) == sorted(PALACE_ROLES)
            ming = [p for p in palaces if p.is_ming]
            shen = [p for p in palaces if p.is_shen]
            assert len(ming) == 1 and len(shen) == 1
            assert ming[0].role == "命宮"
            assert ming[0].index == ming_palace_index(month, hour)
            assert shen[0].name.startswith("身")


def test_roles_follow_ring_order_from_ming():
    palaces = assign_palaces(3, 5, 2)
    ming = ming_palace_index(3, 5)
    for offset, role in enumerate(PALACE_ROLES):
        assert palaces[(ming + offset) % 12].role == role


def test_shen_sharing_ming_palace_is_labelled_combined():
    palaces = assign_palaces(10, 0, 5)
    assert palaces[0].is_ming and palaces[0].is_shen
    assert palaces[0].name == "身命"
    assert palaces[0].role == "命宮"


def test_palace_stems_and_branches():
    palaces = assign_palaces(10, 0, 5)  # 己 year
    assert palaces[0].stem == "丙" and palaces[0].branch == "子"
    assert palaces[2].stem == "丙" and palaces[2].branch == "寅"
    assert [p.branch_index for p in palaces] == list(range(12))


def test_migration_palace_opposite_ming():
    palaces = assign_palaces(10, 0, 5)
    assert migration_palace_index(palaces) == 6
    assert find_palace(palaces, "遷移").index == 6


def test_missing_migration_palace_raises():
    with pytest.raises(ValueError):
        migration_palace_index([])
    assert find_palace([], "遷移") is None


def test_out_of_range_indices_raise():
    with pytest.raises(ValueError):
        assign_palaces(12, 0, 0)
    with pytest.raises(ValueError):
        assign_palaces(0, -1, 0)
    with pytest.raises(ValueError):
        assign_palaces(0, 0, 10)


@pytest.mark.parametrize("stem, branch, loci", [
    (0, 0, 4),  # 甲子 海中金
    (2, 2, 6),  # 丙寅 爐中火
    (4, 4, 3),  # 戊辰 大林木
    (8, 8, 4),  # 壬申 劍鋒金
    (2, 0, 2),  # 丙子 澗下水
])
def test_nayin_loci(stem, branch, loci):
    assert nayin_loci(stem, branch) == loci


def test_nayin_info_of_ming_palace():
    palaces = assign_palaces(10, 0, 5)
    assert nayin_info(palaces[0]) == {"loci": 2, "name": "水二局"}


def test_tri_square_and_grid():
    assert tri_square(0) == {"self": 0, "opposition": 6, "trine1": 4, "trine2": 8}
    assert tri_square(10)["opposition"] == 4
    cells = sorted(b for row in GRID_BRANCH_MAP for b in row if b >= 0)
    assert cells == list(range(12))
