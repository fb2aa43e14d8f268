"""
Day Master strength (신강/신약) scoring.

Starts from a neutral 50 and applies fixed deltas from ordered threshold
tables: seasonal command (월령), companion support, resource support and
draining pressure. The thresholds are data so they can be tested and tuned
independently of the scoring loop.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from saju.bazi import (
    EarthlyBranch,
    HeavenlyStem,
    TenGod,
    category_total,
    controls,
    generates,
)
from saju.hidden_stems import main_qi


class SeasonalCommand(Enum):
    STRONG = "strong"  # 득령
    MEDIUM = "medium"
    WEAK = "weak"  # 실령


class StrengthLevel(Enum):
    VERY_WEAK = "very_weak"
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"
    VERY_STRONG = "very_strong"

    @property
    def is_strong(self) -> bool:
        return self in (StrengthLevel.STRONG, StrengthLevel.VERY_STRONG)

    @property
    def is_weak(self) -> bool:
        return self in (StrengthLevel.WEAK, StrengthLevel.VERY_WEAK)

    @property
    def is_extreme(self) -> bool:
        return self in (StrengthLevel.VERY_STRONG, StrengthLevel.VERY_WEAK)


# ============================================================
# THRESHOLD TABLES
# ============================================================

BASELINE_SCORE = 50

SEASONAL_DELTAS = {
    SeasonalCommand.STRONG: 40,
    SeasonalCommand.MEDIUM: 20,
    SeasonalCommand.WEAK: -20,
}

# (minimum count, delta), checked top-down; first match wins
COMPANION_THRESHOLDS = [(4, 25), (2, 15), (1, 5), (0, -10)]
RESOURCE_THRESHOLDS = [(3, 20), (2, 15), (1, 5)]
DRAIN_THRESHOLDS = [(6, -15), (4, -5)]

# (exclusive upper score, level); anything above the last bound is very_strong
LEVEL_BOUNDS = [
    (25, StrengthLevel.VERY_WEAK),
    (40, StrengthLevel.WEAK),
    (65, StrengthLevel.MEDIUM),
    (80, StrengthLevel.STRONG),
]


def apply_threshold(table: list[tuple[float, int]], value: float) -> Optional[tuple[float, int]]:
    """First (bound, delta) row with value >= bound, or None."""
    for bound, delta in table:
        if value >= bound:
            return bound, delta
    return None


def level_for_score(score: int) -> StrengthLevel:
    for upper, level in LEVEL_BOUNDS:
        if score < upper:
            return level
    return StrengthLevel.VERY_STRONG


def seasonal_command(day_master: HeavenlyStem, month_branch: EarthlyBranch) -> SeasonalCommand:
    """
    Compare the month branch's main qi with the Day Master.

    Same element → strong; main qi produces the Day Master → medium;
    main qi controls the Day Master → weak; anything else → medium.
    """
    season = main_qi(month_branch).element
    if season == day_master.element:
        return SeasonalCommand.STRONG
    if generates(season) == day_master.element:
        return SeasonalCommand.MEDIUM
    if controls(season) == day_master.element:
        return SeasonalCommand.WEAK
    return SeasonalCommand.MEDIUM


@dataclass(frozen=True)
class DayMasterStrength:
    level: StrengthLevel
    score: int
    reasoning: tuple[str, ...]
    seasonal_command: SeasonalCommand
    companion: float
    resource: float
    drain: float

    def to_dict(self):
        return {
            "level": self.level.value,
            "score": self.score,
            "reasoning": list(self.reasoning),
            "seasonal_command": self.seasonal_command.value,
            "companion": round(self.companion, 2),
            "resource": round(self.resource, 2),
            "drain": round(self.drain, 2),
        }


def evaluate_strength(day_master: HeavenlyStem, month_branch: EarthlyBranch,
                      ten_gods: dict[TenGod, float]) -> DayMasterStrength:
    """
    Score the Day Master from the month branch and the Ten God distribution.

    Args:
        day_master: the day stem
        month_branch: branch of the month pillar
        ten_gods: weighted Ten God counts (see bazi.ten_god_distribution)
    """
    score = BASELINE_SCORE
    reasoning = []

    command = seasonal_command(day_master, month_branch)
    delta = SEASONAL_DELTAS[command]
    score += delta
    reasoning.append(f"Seasonal command ({month_branch.chinese} month) is {command.value}: {delta:+d}")

    companion = category_total(ten_gods, "companion")
    resource = category_total(ten_gods, "resource")
    drain = sum(category_total(ten_gods, c) for c in ("wealth", "officer", "output"))

    for label, value, table in (
        ("Companion (비겁)", companion, COMPANION_THRESHOLDS),
        ("Resource (인성)", resource, RESOURCE_THRESHOLDS),
        ("Drain (재관식상)", drain, DRAIN_THRESHOLDS),
    ):
        fired = apply_threshold(table, value)
        if fired is None:
            continue
        bound, delta = fired
        score += delta
        reasoning.append(f"{label} count {value:.2f} >= {bound}: {delta:+d}")

    score = min(max(score, 0), 100)
    level = level_for_score(score)
    reasoning.append(f"Score {score} → {level.value}")

    return DayMasterStrength(
        level=level,
        score=score,
        reasoning=tuple(reasoning),
        seasonal_command=command,
        companion=companion,
        resource=resource,
        drain=drain,
    )


def day_master_strength(chart) -> DayMasterStrength:
    """Strength of a derived chart's Day Master."""
    return evaluate_strength(chart.day.stem, chart.month.branch, chart.ten_gods)
