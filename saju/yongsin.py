"""
YongSin (용신, useful element) selection.

Four interchangeable strategies share one contract: `select(chart)` returns
a YongSinResult and `applicability(chart)` scores in [0, 1] how well the
strategy suits the chart. A closed registry maps each YongSinMethod to its
strategy; the selector dispatches through it.

    strength   강약용신  support a weak Day Master, drain a strong one
    seasonal   조후용신  balance the birth season's heat/cold and moisture
    mediation  통관용신  bridge two clashing elements
    disease    병약용신  cure the chart's most severe imbalance
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from saju.bazi import (
    ELEMENT_ORDER,
    Element,
    controlled_by,
    controls,
    generated_by,
    generates,
    weakest_element,
)
from saju.errors import UnknownAlgorithmError
from saju.strength import StrengthLevel

logger = logging.getLogger(__name__)


class YongSinMethod(Enum):
    STRENGTH = "strength"
    SEASONAL = "seasonal"
    MEDIATION = "mediation"
    DISEASE = "disease"


@dataclass(frozen=True)
class YongSinResult:
    primary: Element  # 용신
    secondary: Optional[Element]
    supportive: tuple[Element, ...]  # 희신
    unfavorable: tuple[Element, ...]  # 기신
    adverse: tuple[Element, ...]  # 구신
    reasoning: str
    method: YongSinMethod
    confidence: float
    recommended_method: Optional[YongSinMethod] = None

    def to_dict(self):
        return {
            "primary": self.primary.value,
            "secondary": self.secondary.value if self.secondary else None,
            "supportive": [e.value for e in self.supportive],
            "unfavorable": [e.value for e in self.unfavorable],
            "adverse": [e.value for e in self.adverse],
            "reasoning": self.reasoning,
            "method": self.method.value,
            "confidence": self.confidence,
            "recommended_method": self.recommended_method.value if self.recommended_method else None,
        }


def _unique(*elements: Element) -> tuple[Element, ...]:
    return tuple(dict.fromkeys(elements))


def _level(chart) -> Optional[StrengthLevel]:
    return chart.strength.level if chart.strength is not None else None


def _strength_choice(chart) -> tuple[Element, Optional[Element]]:
    """(primary, secondary) by the strength rule; medium picks the weakest element."""
    level = _level(chart)
    dm = chart.day_master.element
    if level is not None and level.is_strong:
        return generates(dm), controlled_by(dm)
    if level is not None and level.is_weak:
        return generated_by(dm), dm
    return weakest_element(chart.element_counts), None


def _strength_fallback(chart, method: YongSinMethod, confidence: float, reason: str) -> YongSinResult:
    primary, secondary = _strength_choice(chart)
    supportive = _unique(primary, secondary) if secondary else (primary,)
    return YongSinResult(
        primary=primary,
        secondary=secondary,
        supportive=supportive,
        unfavorable=(controlled_by(primary),),
        adverse=(controls(primary),),
        reasoning=f"{reason}; falling back to the strength rule and choosing {primary.value}.",
        method=method,
        confidence=confidence,
    )


class YongSinStrategy(ABC):
    method: YongSinMethod
    name: str
    description: str

    @abstractmethod
    def select(self, chart) -> YongSinResult:
        ...

    @abstractmethod
    def applicability(self, chart) -> float:
        ...


# ============================================================
# STRENGTH (강약용신)
# ============================================================

class StrengthStrategy(YongSinStrategy):
    method = YongSinMethod.STRENGTH
    name = "Strength balance (강약용신)"
    description = "Balance the Day Master: drain it when strong, support it when weak."

    def select(self, chart) -> YongSinResult:
        level = _level(chart) or StrengthLevel.MEDIUM
        dm = chart.day_master.element

        if level.is_strong:
            primary, secondary = generates(dm), controlled_by(dm)
            resource = generated_by(dm)
            return YongSinResult(
                primary=primary,
                secondary=secondary,
                supportive=_unique(primary, secondary),
                unfavorable=_unique(dm, resource),
                adverse=(resource,),
                reasoning=(f"Day Master {dm.value} is {level.value.replace('_', ' ')}; "
                           f"drain it with {primary.value} (output) and restrain it with "
                           f"{secondary.value} (officer)."),
                method=self.method,
                confidence=0.9 if level is StrengthLevel.VERY_STRONG else 0.8,
            )

        if level.is_weak:
            primary, secondary = generated_by(dm), dm
            wealth = controls(dm)
            return YongSinResult(
                primary=primary,
                secondary=secondary,
                supportive=_unique(primary, secondary),
                unfavorable=_unique(wealth, controlled_by(dm)),
                adverse=(wealth,),
                reasoning=(f"Day Master {dm.value} is {level.value.replace('_', ' ')}; "
                           f"support it with {primary.value} (resource) and "
                           f"{secondary.value} (companion)."),
                method=self.method,
                confidence=0.9 if level is StrengthLevel.VERY_WEAK else 0.8,
            )

        weakest = weakest_element(chart.element_counts)
        return YongSinResult(
            primary=weakest,
            secondary=None,
            supportive=_unique(weakest, generates(weakest)),
            unfavorable=(controls(weakest),),
            adverse=(controlled_by(weakest),),
            reasoning=(f"Day Master {dm.value} is balanced; reinforce the weakest "
                       f"element {weakest.value}."),
            method=self.method,
            confidence=0.6,
        )

    def applicability(self, chart) -> float:
        level = _level(chart)
        if level is None:
            return 0.5
        if level.is_extreme:
            return 0.95
        if level.is_strong or level.is_weak:
            return 0.85
        return 0.4


# ============================================================
# SEASONAL (조후용신)
# ============================================================

@dataclass(frozen=True)
class SeasonClimate:
    name: str
    temperature: str  # cold / cool / warm / hot
    humidity: str  # dry / humid
    adjustment: str  # 온조 warm-dry, 한습 cool-moist, 자윤 moisten, 청량 refresh
    preferred: tuple[Element, ...]
    avoid: tuple[Element, ...]


W, F, E, M, A = Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER

# adjustment → label used in reasoning
ADJUSTMENT_LABELS = {
    "온조": "warming and drying (온조)",
    "한습": "cooling and moistening (한습)",
    "자윤": "moistening (자윤)",
    "청량": "refreshing (청량)",
}

# month branch index → climate
SEASON_MAP = {
    0: SeasonClimate("midwinter (子月)", "cold", "humid", "온조", (F,), (A, M)),
    1: SeasonClimate("late winter (丑月)", "cold", "dry", "온조", (F, W), (A, E)),
    2: SeasonClimate("early spring (寅月)", "cold", "dry", "온조", (F, W), (A, M)),
    3: SeasonClimate("mid-spring (卯月)", "warm", "dry", "자윤", (A,), (F,)),
    4: SeasonClimate("late spring (辰月)", "warm", "humid", "청량", (M, A), (E,)),
    5: SeasonClimate("early summer (巳月)", "hot", "dry", "한습", (A, M), (F,)),
    6: SeasonClimate("midsummer (午月)", "hot", "dry", "한습", (A,), (F, W)),
    7: SeasonClimate("late summer (未月)", "hot", "humid", "청량", (M, A), (E, F)),
    8: SeasonClimate("early autumn (申月)", "cool", "dry", "자윤", (A, W), (M,)),
    9: SeasonClimate("mid-autumn (酉月)", "cool", "dry", "온조", (F, W), (M,)),
    10: SeasonClimate("late autumn (戌月)", "cool", "dry", "온조", (F,), (A, M)),
    11: SeasonClimate("early winter (亥月)", "cold", "humid", "온조", (F, W), (A,)),
}


class SeasonalStrategy(YongSinStrategy):
    method = YongSinMethod.SEASONAL
    name = "Seasonal climate (조후용신)"
    description = "Temper the heat, cold, dryness or damp of the birth season."

    def select(self, chart) -> YongSinResult:
        season = SEASON_MAP[chart.month.branch.index]
        dm = chart.day_master.element

        primary = season.preferred[0]
        secondary = season.preferred[1] if len(season.preferred) > 1 else None

        if dm in season.preferred:
            confidence = 0.95
        elif dm in season.avoid:
            confidence = 0.6
        else:
            confidence = 0.8

        feel = "warm" if season.temperature in ("hot", "warm") else "cold"
        return YongSinResult(
            primary=primary,
            secondary=secondary,
            supportive=_unique(*season.preferred[:2], generated_by(primary)),
            unfavorable=_unique(*season.avoid),
            adverse=(controlled_by(primary),),
            reasoning=(f"Born in {season.name}, a {feel} and {season.humidity} season; "
                       f"{ADJUSTMENT_LABELS[season.adjustment]} calls for {primary.value}."),
            method=self.method,
            confidence=confidence,
        )

    def applicability(self, chart) -> float:
        season = SEASON_MAP[chart.month.branch.index]
        counts = chart.element_counts
        if season.adjustment == "한습" and counts[Element.FIRE] >= 3:
            return 0.95
        if season.adjustment == "온조" and counts[Element.WATER] >= 3:
            return 0.95
        if season.temperature in ("hot", "cold"):
            return 0.85
        return 0.7


# ============================================================
# MEDIATION (통관용신)
# ============================================================

@dataclass(frozen=True)
class ElementConflict:
    controller: Element
    controlled: Element
    strength: int  # combined count of both sides
    mediator: Element  # produced by the controller, produces the controlled


def find_conflicts(counts: dict[Element, int]) -> list[ElementConflict]:
    """Controlling pairs where both elements appear at least twice."""
    conflicts = []
    for i, first in enumerate(ELEMENT_ORDER):
        for second in ELEMENT_ORDER[i + 1:]:
            if counts[first] < 2 or counts[second] < 2:
                continue
            if controls(first) == second:
                controller, controlled = first, second
            elif controls(second) == first:
                controller, controlled = second, first
            else:
                continue
            conflicts.append(ElementConflict(
                controller, controlled, counts[first] + counts[second], generates(controller)))
    return conflicts


def _main_conflict(conflicts: list[ElementConflict]) -> ElementConflict:
    main = conflicts[0]
    for conflict in conflicts[1:]:
        if conflict.strength > main.strength:
            main = conflict
    return main


class MediationStrategy(YongSinStrategy):
    method = YongSinMethod.MEDIATION
    name = "Mediation (통관용신)"
    description = "Bridge two strong clashing elements with the element between them."

    def select(self, chart) -> YongSinResult:
        counts = chart.element_counts
        conflicts = find_conflicts(counts)
        if not conflicts:
            return _strength_fallback(chart, self.method, 0.5, "No clashing elements")

        conflict = _main_conflict(conflicts)
        mediator = conflict.mediator
        dm = chart.day_master.element

        if mediator == dm:
            confidence = 0.95
        elif generates(mediator) == dm:
            confidence = 0.9
        elif conflict.strength >= 6:
            confidence = 0.85
        elif conflict.strength >= 4:
            confidence = 0.75
        else:
            confidence = 0.6

        return YongSinResult(
            primary=mediator,
            secondary=generated_by(mediator),
            supportive=_unique(mediator, generated_by(mediator)),
            unfavorable=_unique(conflict.controller, conflict.controlled),
            adverse=(controlled_by(mediator),),
            reasoning=(f"{conflict.controller.value} ({counts[conflict.controller]}) clashes with "
                       f"{conflict.controlled.value} ({counts[conflict.controlled]}); "
                       f"{mediator.value} drains the first and feeds the second."),
            method=self.method,
            confidence=confidence,
        )

    def applicability(self, chart) -> float:
        conflicts = find_conflicts(chart.element_counts)
        if not conflicts:
            return 0.2
        if len(conflicts) >= 2:
            return 0.95
        strength = conflicts[0].strength
        if strength >= 6:
            return 0.9
        if strength >= 4:
            return 0.75
        return 0.5


# ============================================================
# DISEASE (병약용신)
# ============================================================

@dataclass(frozen=True)
class ChartDisease:
    kind: str  # excess / deficiency / officer_pressure / wealth_over_resource
    element: Element  # the problematic element
    severity: int  # 1-10
    cure: Element
    diagnosis: str


def diagnose(chart) -> list[ChartDisease]:
    counts = chart.element_counts
    dm = chart.day_master.element
    diseases = []

    for element in ELEMENT_ORDER:
        if counts[element] >= 4:
            diseases.append(ChartDisease(
                "excess", element, min(10, counts[element] + 2), controlled_by(element),
                f"{element.value} is excessive ({counts[element]})."))

    for element in ELEMENT_ORDER:
        if counts[element] == 0:
            diseases.append(ChartDisease(
                "deficiency", element, 6, element,
                f"{element.value} is missing entirely."))

    officer = controlled_by(dm)
    if counts[officer] >= 3:
        diseases.append(ChartDisease(
            "officer_pressure", officer, min(10, counts[officer] + 1), controlled_by(officer),
            f"{officer.value} ({counts[officer]}) presses on the Day Master {dm.value}."))

    wealth, resource = controls(dm), generated_by(dm)
    if counts[wealth] >= 3 and counts[resource] <= 1:
        diseases.append(ChartDisease(
            "wealth_over_resource", wealth, min(10, counts[wealth]), controlled_by(wealth),
            f"{wealth.value} (wealth, {counts[wealth]}) overwhelms {resource.value} (resource)."))

    return diseases


class DiseaseStrategy(YongSinStrategy):
    method = YongSinMethod.DISEASE
    name = "Disease and cure (병약용신)"
    description = "Diagnose the chart's worst imbalance and pick the element that cures it."

    def select(self, chart) -> YongSinResult:
        diseases = diagnose(chart)
        if not diseases:
            return _strength_fallback(chart, self.method, 0.6, "No imbalance found")

        main = diseases[0]
        for disease in diseases[1:]:
            if disease.severity > main.severity:
                main = disease

        cure = main.cure
        unfavorable = [main.element]
        if main.kind == "excess":
            unfavorable.append(generated_by(main.element))

        return YongSinResult(
            primary=cure,
            secondary=generated_by(cure),
            supportive=_unique(cure, generated_by(cure)),
            unfavorable=_unique(*unfavorable),
            adverse=(controlled_by(cure),),
            reasoning=f"{main.diagnosis} {cure.value} restores the balance.",
            method=self.method,
            confidence=min(0.95, 0.5 + main.severity * 0.05),
        )

    def applicability(self, chart) -> float:
        diseases = diagnose(chart)
        if not diseases:
            return 0.3
        worst = max(d.severity for d in diseases)
        if worst >= 8:
            return 0.95
        if worst >= 6:
            return 0.85
        if worst >= 4:
            return 0.7
        return 0.5


# ============================================================
# SELECTOR
# ============================================================

STRATEGIES = {
    YongSinMethod.STRENGTH: StrengthStrategy(),
    YongSinMethod.SEASONAL: SeasonalStrategy(),
    YongSinMethod.MEDIATION: MediationStrategy(),
    YongSinMethod.DISEASE: DiseaseStrategy(),
}


def get_strategy(method: Union[str, YongSinMethod]) -> YongSinStrategy:
    """
    Raises:
        UnknownAlgorithmError: method names no registered strategy
    """
    try:
        return STRATEGIES[YongSinMethod(method)]
    except ValueError:
        raise UnknownAlgorithmError(
            f"Unknown YongSin method: {method!r}",
            {"method": str(method), "available": [m.value for m in STRATEGIES]},
        ) from None


def select_yongsin(chart, method: Union[str, YongSinMethod] = YongSinMethod.STRENGTH) -> YongSinResult:
    return get_strategy(method).select(chart)


def select_yongsin_all(chart) -> dict[YongSinMethod, YongSinResult]:
    """Run every strategy; a failing strategy is logged and left out."""
    results = {}
    for method, strategy in STRATEGIES.items():
        try:
            results[method] = strategy.select(chart)
        except Exception:
            logger.exception("YongSin strategy %s failed", method.value)
    return results


def evaluate_applicability(chart) -> dict[YongSinMethod, float]:
    return {method: strategy.applicability(chart) for method, strategy in STRATEGIES.items()}


def select_yongsin_auto(chart) -> YongSinResult:
    """
    Pick the most applicable strategy and return its result.

    Ties keep registry order, so an even score defaults to strength.
    """
    scores = evaluate_applicability(chart)
    order = list(STRATEGIES)
    best = sorted(scores, key=lambda m: (-scores[m], order.index(m)))[0]
    logger.debug("YongSin auto-selection scores: %s → %s",
                 {m.value: s for m, s in scores.items()}, best.value)
    return replace(STRATEGIES[best].select(chart), recommended_method=best)
