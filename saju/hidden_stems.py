"""
Hidden stems (지장간 / JiJangGan) with day-precise strength.

Each branch's month is split into phases: residual qi (여기), an optional
transitional qi (중기), and the dominant main qi (정기). Which hidden stem
governs depends on how many days have elapsed since the month's Jie term.
"""

from dataclasses import dataclass
from typing import Optional, Union

from saju.bazi import EarthlyBranch, HeavenlyStem, branch_by, stem_by


@dataclass(frozen=True)
class HiddenStemPhase:
    stem: HeavenlyStem
    days: int
    strength: int  # percent of the branch's qi; a branch's phases sum to 100
    role: str  # "residual" (여기), "transitional" (중기), "main" (정기)

    def to_dict(self):
        return {
            "stem": self.stem.chinese,
            "element": self.stem.element.value,
            "days": self.days,
            "strength": self.strength,
            "role": self.role,
        }


@dataclass(frozen=True)
class HiddenStemReading:
    branch: EarthlyBranch
    elapsed_days: int  # after clamping into the branch interval
    primary: HiddenStemPhase
    secondary: Optional[HiddenStemPhase]  # phase after the primary
    residual: Optional[HiddenStemPhase]  # phase before the primary

    def phases(self) -> list[HiddenStemPhase]:
        """Active phases, primary first."""
        return [p for p in (self.primary, self.secondary, self.residual) if p is not None]

    def to_dict(self):
        return {
            "branch": self.branch.chinese,
            "elapsed_days": self.elapsed_days,
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict() if self.secondary else None,
            "residual": self.residual.to_dict() if self.residual else None,
        }


# branch: [(stem, days, strength %), ...] ordered residual → transitional → main
_PHASE_DATA = {
    "子": [("壬", 10, 33), ("癸", 20, 67)],
    "丑": [("癸", 9, 29), ("辛", 3, 10), ("己", 19, 61)],
    "寅": [("戊", 7, 23), ("丙", 7, 23), ("甲", 16, 54)],
    "卯": [("甲", 10, 33), ("乙", 20, 67)],
    "辰": [("乙", 9, 30), ("癸", 3, 10), ("戊", 18, 60)],
    "巳": [("戊", 7, 23), ("庚", 9, 29), ("丙", 15, 48)],
    "午": [("丙", 10, 33), ("己", 10, 33), ("丁", 10, 34)],
    "未": [("丁", 9, 29), ("乙", 3, 10), ("己", 19, 61)],
    "申": [("己", 7, 23), ("壬", 7, 23), ("庚", 17, 54)],
    "酉": [("庚", 10, 33), ("辛", 20, 67)],
    "戌": [("辛", 9, 29), ("丁", 3, 10), ("戊", 19, 61)],
    "亥": [("戊", 7, 23), ("甲", 9, 29), ("壬", 15, 48)],
}


def _role(position: int, count: int) -> str:
    if position == count - 1:
        return "main"
    if position == 0:
        return "residual"
    return "transitional"


def _build_phases(rows) -> tuple[HiddenStemPhase, ...]:
    return tuple(
        HiddenStemPhase(stem_by(stem), days, strength, _role(i, len(rows)))
        for i, (stem, days, strength) in enumerate(rows)
    )


HIDDEN_STEM_PHASES = {
    branch_by(branch).index: _build_phases(rows) for branch, rows in _PHASE_DATA.items()
}


def branch_phases(branch: Union[str, int, EarthlyBranch]) -> tuple[HiddenStemPhase, ...]:
    """
    Ordered phases for a branch.

    Raises:
        UnknownBranchError: branch is not one of the twelve
    """
    return HIDDEN_STEM_PHASES[branch_by(branch).index]


def branch_total_days(branch: Union[str, int, EarthlyBranch]) -> int:
    return sum(phase.days for phase in branch_phases(branch))


def main_qi(branch: Union[str, int, EarthlyBranch]) -> HeavenlyStem:
    """The dominant (정기) hidden stem of a branch."""
    return branch_phases(branch)[-1].stem


def hidden_stem_strength(branch: Union[str, int, EarthlyBranch], elapsed_days: int) -> HiddenStemReading:
    """
    Which hidden stem governs a branch after `elapsed_days` days of its month.

    Elapsed days are clamped into [0, total_days - 1]. The primary phase is
    the one whose cumulative day range contains the clamped value.

    Raises:
        UnknownBranchError: branch is not one of the twelve
    """
    resolved = branch_by(branch)
    phases = HIDDEN_STEM_PHASES[resolved.index]
    total = sum(phase.days for phase in phases)
    clamped = min(max(int(elapsed_days), 0), total - 1)

    cumulative = 0
    position = len(phases) - 1
    for i, phase in enumerate(phases):
        cumulative += phase.days
        if clamped < cumulative:
            position = i
            break

    return HiddenStemReading(
        branch=resolved,
        elapsed_days=clamped,
        primary=phases[position],
        secondary=phases[position + 1] if position + 1 < len(phases) else None,
        residual=phases[position - 1] if position > 0 else None,
    )
