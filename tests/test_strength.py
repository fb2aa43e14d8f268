"""Day Master strength scoring"""

import pytest

from saju.bazi import TenGod, branch_by, stem_by
from saju.strength import (
    COMPANION_THRESHOLDS,
    DRAIN_THRESHOLDS,
    RESOURCE_THRESHOLDS,
    SeasonalCommand,
    StrengthLevel,
    apply_threshold,
    day_master_strength,
    evaluate_strength,
    level_for_score,
    seasonal_command,
)


def gods(**weights):
    distribution = {god: 0.0 for god in TenGod}
    for name, weight in weights.items():
        distribution[TenGod[name]] = weight
    return distribution


class TestThresholds:
    @pytest.mark.parametrize("value,expected", [
        (4.5, (4, 25)),
        (2.0, (2, 15)),
        (1.0, (1, 5)),
        (0.5, (0, -10)),
        (0.0, (0, -10)),
    ])
    def test_companion(self, value, expected):
        assert apply_threshold(COMPANION_THRESHOLDS, value) == expected

    def test_no_row_fires(self):
        assert apply_threshold(RESOURCE_THRESHOLDS, 0.9) is None
        assert apply_threshold(DRAIN_THRESHOLDS, 3.99) is None
        assert apply_threshold(DRAIN_THRESHOLDS, 6) == (6, -15)

    @pytest.mark.parametrize("score,level", [
        (0, StrengthLevel.VERY_WEAK),
        (24, StrengthLevel.VERY_WEAK),
        (25, StrengthLevel.WEAK),
        (39, StrengthLevel.WEAK),
        (40, StrengthLevel.MEDIUM),
        (64, StrengthLevel.MEDIUM),
        (65, StrengthLevel.STRONG),
        (79, StrengthLevel.STRONG),
        (80, StrengthLevel.VERY_STRONG),
        (100, StrengthLevel.VERY_STRONG),
    ])
    def test_levels(self, score, level):
        assert level_for_score(score) is level


class TestSeasonalCommand:
    @pytest.mark.parametrize("branch,command", [
        ("寅", SeasonalCommand.STRONG),   # main qi 甲 wood
        ("子", SeasonalCommand.MEDIUM),   # main qi 癸 water produces wood
        ("酉", SeasonalCommand.WEAK),     # main qi 辛 metal controls wood
        ("午", SeasonalCommand.MEDIUM),   # main qi 丁 fire, wood produces it
    ])
    def test_for_jia(self, branch, command):
        assert seasonal_command(stem_by("甲"), branch_by(branch)) is command


class TestEvaluateStrength:
    def test_no_support(self):
        result = evaluate_strength(stem_by("甲"), branch_by("寅"), gods())
        assert result.score == 80
        assert result.level is StrengthLevel.VERY_STRONG
        assert result.companion == 0.0

    def test_weak_and_drained(self):
        result = evaluate_strength(stem_by("甲"), branch_by("酉"), gods(DIRECT_WEALTH=4, DIRECT_OFFICER=3))
        # 50 - 20 (season) - 10 (no companion) - 15 (drain 7)
        assert result.score == 5
        assert result.level is StrengthLevel.VERY_WEAK
        assert result.drain == 7

    def test_score_is_clamped(self):
        result = evaluate_strength(stem_by("甲"), branch_by("寅"), gods(COMPANION=5, INDIRECT_RESOURCE=3))
        assert result.score == 100

    def test_reasoning_lists_every_fired_rule(self):
        result = evaluate_strength(stem_by("甲"), branch_by("子"), gods(ROB_WEALTH=2, DIRECT_RESOURCE=1))
        # season, companion, resource, final score
        assert len(result.reasoning) == 4
        assert result.score == 50 + 20 + 15 + 5

    def test_chart_helper(self, reference_chart):
        assert day_master_strength(reference_chart) == reference_chart.strength

    def test_to_dict(self, reference_chart):
        data = reference_chart.strength.to_dict()
        assert data["level"] == "very_strong"
        assert data["seasonal_command"] == "medium"
