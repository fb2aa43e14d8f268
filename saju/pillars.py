"""
Four Pillars (사주팔자) derivation.

Handles:
- Year pillar with the Li Chun (입춘) year boundary
- Month pillar from the governing Jie solar term (Five Tigers rule)
- Day pillar from the day offset to the 1900-01-01 anchor
- Hour pillar from the two-hour bucket (Five Rats rule)
- Chart assembly: element counts, weighted Ten Gods, Day Master strength

A chart is derived in one step from a normalized moment and is never
mutated afterwards. Any missing solar term aborts the whole derivation.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

from saju.astro_calendar import SolarTermEvent, governing_jie, start_of_spring
from saju.bazi import (
    EARTHLY_BRANCHES,
    HEAVENLY_STEMS,
    Element,
    HeavenlyStem,
    Pillar,
    TenGod,
    element_counts,
    ten_god_distribution,
)
from saju.hidden_stems import HiddenStemReading, hidden_stem_strength
from saju.lunar_calendar import NormalizedMoment
from saju.settings import DEFAULT_SETTINGS, AnalysisSettings
from saju.strength import DayMasterStrength, evaluate_strength

logger = logging.getLogger(__name__)

DAY_ANCHOR = date(1900, 1, 1)
DAY_ANCHOR_STEM = 2  # 丙
DAY_ANCHOR_BRANCH = 0  # 子


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"


# ============================================================
# PILLAR COMPUTATION
# ============================================================

def pillar_year(moment: datetime, utc_offset_hours: float = 9.0) -> int:
    """Civil year whose stem/branch the moment takes (switches at Li Chun)."""
    if moment < start_of_spring(moment.year, utc_offset_hours).moment:
        return moment.year - 1
    return moment.year


def year_pillar(moment: datetime, utc_offset_hours: float = 9.0) -> Pillar:
    """
    Compute the Year Pillar.

    The pillar year starts at the exact Li Chun moment, usually Feb 3-5.
    A birth before Li Chun takes the previous year's pillar.
    """
    effective_year = pillar_year(moment, utc_offset_hours)

    # Year 4 CE was 甲子, the start of the cycle
    stem_index = (effective_year - 4) % 10
    branch_index = (effective_year - 4) % 12

    return Pillar(
        stem=HEAVENLY_STEMS[stem_index],
        branch=EARTHLY_BRANCHES[branch_index],
        position="year"
    )


def month_pillar(year_stem_index: int, month_branch_index: int) -> Pillar:
    """
    Compute the Month Pillar using the Five Tigers Escape (오호둔) rule.

    The month branch comes from the governing Jie term; the stem of the
    Tiger month is fixed by the year stem and advances one per month:
    - Jia/Ji year → Bing Tiger
    - Yi/Geng year → Wu Tiger
    - Bing/Xin year → Geng Tiger
    - Ding/Ren year → Ren Tiger
    - Wu/Gui year → Jia Tiger
    """
    tiger_start_stems = {
        0: 2, 5: 2,
        1: 4, 6: 4,
        2: 6, 7: 6,
        3: 8, 8: 8,
        4: 0, 9: 0,
    }

    start_stem = tiger_start_stems[year_stem_index]
    months_from_tiger = (month_branch_index - 2) % 12
    stem_index = (start_stem + months_from_tiger) % 10

    return Pillar(
        stem=HEAVENLY_STEMS[stem_index],
        branch=EARTHLY_BRANCHES[month_branch_index],
        position="month"
    )


def day_offset(day: date) -> int:
    """Civil days since 1900-01-01 (negative before it)."""
    return (day - DAY_ANCHOR).days


def day_pillar(day: date) -> Pillar:
    """
    Compute the Day Pillar.

    1900-01-01 is 丙子; every later or earlier day steps the 60-cycle by one.
    """
    offset = day_offset(day)
    return Pillar(
        stem=HEAVENLY_STEMS[(DAY_ANCHOR_STEM + offset) % 10],
        branch=EARTHLY_BRANCHES[(DAY_ANCHOR_BRANCH + offset) % 12],
        position="day"
    )


def hour_branch_index(hour: int) -> int:
    """
    Two-hour bucket (시진) for a clock hour:
    23:00-00:59 = 子 0, 01:00-02:59 = 丑 1, ... 21:00-22:59 = 亥 11
    """
    if hour == 23 or hour == 0:
        return 0
    return ((hour + 1) // 2) % 12


def hour_pillar(day_stem_index: int, hour: int) -> Pillar:
    """
    Compute the Hour Pillar using the Five Rats Escape (오서둔) rule.

    23:00-23:59 stays on the same civil day; the day pillar does not roll
    over until midnight.
    """
    branch_index = hour_branch_index(hour)

    zi_start_stems = {
        0: 0, 5: 0,   # Jia/Ji day → Jia Zi hour
        1: 2, 6: 2,   # Yi/Geng day → Bing Zi hour
        2: 4, 7: 4,   # Bing/Xin day → Wu Zi hour
        3: 6, 8: 6,   # Ding/Ren day → Geng Zi hour
        4: 8, 9: 8,   # Wu/Gui day → Ren Zi hour
    }

    stem_index = (zi_start_stems[day_stem_index] + branch_index) % 10

    return Pillar(
        stem=HEAVENLY_STEMS[stem_index],
        branch=EARTHLY_BRANCHES[branch_index],
        position="hour"
    )


# ============================================================
# CHART
# ============================================================

@dataclass(frozen=True)
class Chart:
    moment: NormalizedMoment
    gender: Gender
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Pillar
    element_counts: Mapping[Element, int]  # read-only view
    ten_gods: Mapping[TenGod, float]  # read-only view
    hidden_stems: tuple[HiddenStemReading, ...]  # year, month, day, hour branches
    governing_term: SolarTermEvent
    elapsed_days: int  # whole days since the governing Jie term
    strength: DayMasterStrength

    @property
    def day_master(self) -> HeavenlyStem:
        return self.day.stem

    def pillars(self) -> list[Pillar]:
        return [self.year, self.month, self.day, self.hour]

    def to_dict(self):
        return {
            "gender": self.gender.value,
            "day_master": {
                "chinese": self.day_master.chinese,
                "korean": self.day_master.korean,
                "element": self.day_master.element.value,
                "polarity": self.day_master.polarity.value,
                "description": str(self.day_master),
            },
            "pillars": {p.position: p.to_dict() for p in self.pillars()},
            "element_counts": {e.value: n for e, n in self.element_counts.items()},
            "ten_gods": {g.value: round(w, 2) for g, w in self.ten_gods.items()},
            "hidden_stems": {
                p.position: reading.to_dict()
                for p, reading in zip(self.pillars(), self.hidden_stems)
            },
            "governing_term": self.governing_term.to_dict(),
            "elapsed_days": self.elapsed_days,
            "strength": self.strength.to_dict(),
        }


def derive_chart(moment: NormalizedMoment, gender: Union[str, Gender],
                 settings: AnalysisSettings = DEFAULT_SETTINGS) -> Chart:
    """
    Derive the full chart from a normalized moment.

    Raises:
        UnknownSolarTermError: the moment needs a solar term outside the
            covered range (no partial chart is returned)
    """
    gender = Gender(gender)
    when = moment.moment
    offset = settings.utc_offset_hours

    yp = year_pillar(when, offset)
    term = governing_jie(when, offset)
    mp = month_pillar(yp.stem.index, term.branch_index)
    dp = day_pillar(when.date())
    hp = hour_pillar(dp.stem.index, when.hour)
    pillars = [yp, mp, dp, hp]

    elapsed = (when - term.moment).days
    readings = tuple(hidden_stem_strength(p.branch, elapsed) for p in pillars)

    weighted = [(p.stem, 1.0) for p in (yp, mp, hp)]
    for reading in readings:
        weighted.extend((phase.stem, phase.strength / 100) for phase in reading.phases())
    ten_gods = ten_god_distribution(dp.stem, weighted)

    strength = evaluate_strength(dp.stem, mp.branch, ten_gods)

    logger.debug("Derived chart %s %s %s %s for %s",
                 yp.chinese, mp.chinese, dp.chinese, hp.chinese, when.isoformat())

    return Chart(
        moment=moment,
        gender=gender,
        year=yp,
        month=mp,
        day=dp,
        hour=hp,
        element_counts=MappingProxyType(element_counts(pillars)),
        ten_gods=MappingProxyType(ten_gods),
        hidden_stems=readings,
        governing_term=term,
        elapsed_days=elapsed,
        strength=strength,
    )
