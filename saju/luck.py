"""
Decade Luck (대운 / DaeUn) periods.

Direction follows year-stem polarity and gender. The first period's
starting age comes from the distance between birth and the nearest Jie
term in that direction, using the traditional ratio: one day = four
months, one hour = 20/3 months. Each later period steps the month pillar
one place along the 60-cycle and lasts exactly ten years.
"""

import math
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

from saju.astro_calendar import SolarTermEvent, next_jie, previous_jie
from saju.bazi import HeavenlyStem, Pillar, Polarity, pillar_at
from saju.pillars import Gender
from saju.settings import DEFAULT_SETTINGS, AnalysisSettings

MONTHS_PER_DAY = 4
MONTHS_PER_HOUR = 20 / 3
MAX_START_AGE = 10


class LuckDirection(Enum):
    FORWARD = "forward"  # 순행
    BACKWARD = "backward"  # 역행


@dataclass(frozen=True)
class DecadeLuckPeriod:
    index: int
    start_age: int
    end_age: int
    pillar: Pillar
    direction: LuckDirection

    @property
    def stem(self):
        return self.pillar.stem

    @property
    def branch(self):
        return self.pillar.branch

    def to_dict(self):
        return {
            "index": self.index,
            "start_age": self.start_age,
            "end_age": self.end_age,
            "stem": self.pillar.stem.chinese,
            "branch": self.pillar.branch.chinese,
            "combined": self.pillar.chinese,
            "element": self.pillar.stem.element.value,
            "direction": self.direction.value,
            "description": f"Age {self.start_age}-{self.end_age}: {self.pillar}",
        }


@dataclass(frozen=True)
class LuckStart:
    direction: LuckDirection
    boundary: SolarTermEvent  # the Jie term measured to
    interval: timedelta  # always non-negative
    start_age: int


def luck_direction(year_stem: HeavenlyStem, gender: Gender) -> LuckDirection:
    """Yang-year male or yin-year female runs forward; the rest run backward."""
    gender = Gender(gender)
    yang = year_stem.polarity == Polarity.YANG
    if (yang and gender is Gender.MALE) or (not yang and gender is Gender.FEMALE):
        return LuckDirection.FORWARD
    return LuckDirection.BACKWARD


def start_age_from_interval(interval: timedelta) -> int:
    """
    Convert the birth-to-term distance into the first period's starting age.

    months = days * 4 + (hours + minutes / 60) * 20 / 3, then years are
    rounded half up and clamped to [0, 10].
    """
    seconds = abs(interval.total_seconds())
    days, remainder = divmod(seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    months = days * MONTHS_PER_DAY + (hours + minutes / 60) * MONTHS_PER_HOUR
    age = math.floor(months / 12 + 0.5)
    return min(max(int(age), 0), MAX_START_AGE)


def luck_start(chart, settings: AnalysisSettings = DEFAULT_SETTINGS) -> LuckStart:
    """
    Direction, boundary term and starting age for a chart.

    Raises:
        UnknownSolarTermError: the boundary term is outside the covered range
    """
    direction = luck_direction(chart.year.stem, chart.gender)
    birth = chart.moment.moment
    if direction is LuckDirection.FORWARD:
        boundary = next_jie(birth, settings.utc_offset_hours)
        interval = boundary.moment - birth
    else:
        boundary = previous_jie(birth, settings.utc_offset_hours)
        interval = birth - boundary.moment
    return LuckStart(direction, boundary, interval, start_age_from_interval(interval))


def luck_start_age(chart, settings: AnalysisSettings = DEFAULT_SETTINGS) -> int:
    return luck_start(chart, settings).start_age


def decade_luck_periods(chart, settings: AnalysisSettings = DEFAULT_SETTINGS) -> list[DecadeLuckPeriod]:
    """
    Contiguous ten-year luck periods from the starting age up to the
    configured lifespan.
    """
    start = luck_start(chart, settings)
    step = 1 if start.direction is LuckDirection.FORWARD else -1
    base = chart.month.sexagenary_index

    periods = []
    i = 0
    age = start.start_age
    while age < settings.luck_lifespan:
        periods.append(DecadeLuckPeriod(
            index=i,
            start_age=age,
            end_age=age + 9,
            pillar=pillar_at(base + step * (i + 1), "luck"),
            direction=start.direction,
        ))
        i += 1
        age += 10
    return periods


def luck_period_at_age(periods: list[DecadeLuckPeriod], age: int) -> Optional[DecadeLuckPeriod]:
    """The period covering `age`, or None before the first period starts."""
    for period in periods:
        if period.start_age <= age <= period.end_age:
            return period
    return None
