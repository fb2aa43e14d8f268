"""Stems, branches, element cycles and Ten Gods"""

import pytest

from saju.bazi import (
    ELEMENT_ORDER,
    Element,
    TenGod,
    branch_by,
    controlled_by,
    controls,
    generated_by,
    generates,
    pillar_at,
    stem_by,
    ten_god,
    ten_god_distribution,
    weakest_element,
)


class TestCycles:
    @pytest.mark.parametrize("element", ELEMENT_ORDER)
    def test_inverse_helpers(self, element):
        assert generated_by(generates(element)) == element
        assert controlled_by(controls(element)) == element

    def test_production_and_control(self):
        assert generates(Element.WOOD) == Element.FIRE
        assert controls(Element.WATER) == Element.FIRE
        assert controlled_by(Element.WOOD) == Element.METAL


class TestLookups:
    def test_stem_lookup(self):
        assert stem_by("甲") is stem_by("Jia") is stem_by("갑")
        with pytest.raises(KeyError):
            stem_by("X")

    def test_branch_lookup(self):
        assert branch_by("午") is branch_by(6) is branch_by("Horse")

    @pytest.mark.parametrize("n,expected", [(0, "甲子"), (19, "癸未"), (59, "癸亥"), (60, "甲子"), (-1, "癸亥")])
    def test_pillar_at(self, n, expected):
        pillar = pillar_at(n, "luck")
        assert pillar.chinese == expected
        assert pillar.sexagenary_index == n % 60


class TestTenGods:
    @pytest.mark.parametrize("other,expected", [
        ("甲", TenGod.COMPANION),
        ("乙", TenGod.ROB_WEALTH),
        ("丙", TenGod.EATING_GOD),
        ("丁", TenGod.HURTING_OFFICER),
        ("戊", TenGod.INDIRECT_WEALTH),
        ("己", TenGod.DIRECT_WEALTH),
        ("庚", TenGod.SEVEN_KILLINGS),
        ("辛", TenGod.DIRECT_OFFICER),
        ("壬", TenGod.INDIRECT_RESOURCE),
        ("癸", TenGod.DIRECT_RESOURCE),
    ])
    def test_from_jia(self, other, expected):
        assert ten_god(stem_by("甲"), stem_by(other)) is expected

    def test_distribution_skips_day_master(self):
        dm = stem_by("甲")
        dist = ten_god_distribution(dm, [(dm, 1.0), (stem_by("乙"), 1.0), (stem_by("癸"), 0.67)])
        assert dist[TenGod.COMPANION] == 0.0
        assert dist[TenGod.ROB_WEALTH] == 1.0
        assert dist[TenGod.DIRECT_RESOURCE] == pytest.approx(0.67)
        assert set(dist) == set(TenGod)


def test_weakest_element_ties_take_first():
    counts = {Element.WOOD: 2, Element.FIRE: 2, Element.EARTH: 0, Element.METAL: 0, Element.WATER: 4}
    assert weakest_element(counts) == Element.EARTH
