"""
Astronomical calendar utilities.
Handles the 24 solar terms, true solar time correction,
and daylight-saving removal for birth clock times.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

import swisseph as swe

from saju.errors import UnknownSolarTermError

logger = logging.getLogger(__name__)

FIRST_TERM_YEAR = 1900
LAST_TERM_YEAR = 2200


# ============================================================
# SOLAR TERM COMPUTATION
# ============================================================
#
# The 24 solar terms (절기) are the moments the Sun reaches each multiple
# of 15° of ecliptic longitude. The 12 Jie (節) terms open a month and fix
# its branch; the 12 Qi (中氣) terms fall mid-month and do not.
# Swiss Ephemeris swe.solcross_ut() finds the exact crossing moment.
#
# 입춘 Li Chun (315°)    → Tiger month (寅)
# 경칩 Jing Zhe (345°)   → Rabbit month (卯)
# 청명 Qing Ming (15°)   → Dragon month (辰)
# 입하 Li Xia (45°)      → Snake month (巳)
# 망종 Mang Zhong (75°)  → Horse month (午)
# 소서 Xiao Shu (105°)   → Goat month (未)
# 입추 Li Qiu (135°)     → Monkey month (申)
# 백로 Bai Lu (165°)     → Rooster month (酉)
# 한로 Han Lu (195°)     → Dog month (戌)
# 입동 Li Dong (225°)    → Pig month (亥)
# 대설 Da Xue (255°)     → Rat month (子)
# 소한 Xiao Han (285°)   → Ox month (丑)

# (longitude, korean, chinese, pinyin, branch_index or None), in civil-year order
SOLAR_TERM_DEFINITIONS = [
    (285, "소한", "小寒", "Xiao Han", 1),
    (300, "대한", "大寒", "Da Han", None),
    (315, "입춘", "立春", "Li Chun", 2),
    (330, "우수", "雨水", "Yu Shui", None),
    (345, "경칩", "驚蟄", "Jing Zhe", 3),
    (0, "춘분", "春分", "Chun Fen", None),
    (15, "청명", "清明", "Qing Ming", 4),
    (30, "곡우", "穀雨", "Gu Yu", None),
    (45, "입하", "立夏", "Li Xia", 5),
    (60, "소만", "小滿", "Xiao Man", None),
    (75, "망종", "芒種", "Mang Zhong", 6),
    (90, "하지", "夏至", "Xia Zhi", None),
    (105, "소서", "小暑", "Xiao Shu", 7),
    (120, "대서", "大暑", "Da Shu", None),
    (135, "입추", "立秋", "Li Qiu", 8),
    (150, "처서", "處暑", "Chu Shu", None),
    (165, "백로", "白露", "Bai Lu", 9),
    (180, "추분", "秋分", "Qiu Fen", None),
    (195, "한로", "寒露", "Han Lu", 10),
    (210, "상강", "霜降", "Shuang Jiang", None),
    (225, "입동", "立冬", "Li Dong", 11),
    (240, "소설", "小雪", "Xiao Xue", None),
    (255, "대설", "大雪", "Da Xue", 0),
    (270, "동지", "冬至", "Dong Zhi", None),
]

START_OF_SPRING_LONGITUDE = 315


@dataclass(frozen=True)
class SolarTermEvent:
    name: str  # Korean name
    chinese: str
    pinyin: str
    longitude: int  # solar ecliptic longitude in degrees
    moment: datetime  # local standard time, naive
    branch_index: Optional[int]  # month branch opened by a Jie term

    @property
    def is_jie(self) -> bool:
        return self.branch_index is not None

    def to_dict(self):
        return {
            "name": self.name,
            "chinese": self.chinese,
            "pinyin": self.pinyin,
            "longitude": self.longitude,
            "moment": self.moment.isoformat(),
            "is_jie": self.is_jie,
            "branch_index": self.branch_index,
        }


def jd_to_datetime(jd: float) -> datetime:
    """Convert a UT Julian Day to a naive UT datetime, rounded to the second."""
    year, month, day, hour = swe.revjul(jd)
    return datetime(year, month, day) + timedelta(seconds=round(hour * 3600))


def _check_term_year(year: int):
    if not FIRST_TERM_YEAR <= year <= LAST_TERM_YEAR:
        raise UnknownSolarTermError(
            f"No solar term data for {year} (covered: {FIRST_TERM_YEAR}-{LAST_TERM_YEAR})",
            {"year": year, "min_year": FIRST_TERM_YEAR, "max_year": LAST_TERM_YEAR},
        )


@lru_cache(maxsize=None)
def solar_terms(year: int, utc_offset_hours: float = 9.0) -> tuple[SolarTermEvent, ...]:
    """
    Compute all 24 solar terms for a civil year.

    Uses the Moshier ephemeris built into Swiss Ephemeris, so no data files
    are needed. Returns events in chronological order, in local standard time.

    Args:
        year: Gregorian year (1900-2200)
        utc_offset_hours: standard-time offset the moments are expressed in

    Raises:
        UnknownSolarTermError: year outside the covered range
    """
    _check_term_year(year)
    logger.debug("Computing solar terms for %d (UTC%+g)", year, utc_offset_hours)

    jd_year_start = swe.julday(year, 1, 1, 0.0)
    events = []
    for lon, korean, chinese, pinyin, branch_index in SOLAR_TERM_DEFINITIONS:
        jd_cross = swe.solcross_ut(float(lon), jd_year_start, swe.FLG_MOSEPH)
        moment = jd_to_datetime(jd_cross) + timedelta(hours=utc_offset_hours)
        events.append(SolarTermEvent(korean, chinese, pinyin, lon, moment, branch_index))

    events.sort(key=lambda e: e.moment)
    return tuple(events)


def jie_terms(year: int, utc_offset_hours: float = 9.0) -> tuple[SolarTermEvent, ...]:
    """The 12 month-opening Jie terms of a civil year."""
    return tuple(e for e in solar_terms(year, utc_offset_hours) if e.is_jie)


def governing_jie(moment: datetime, utc_offset_hours: float = 9.0) -> SolarTermEvent:
    """The Jie term whose month contains `moment` (last Jie at or before it)."""
    earlier = [t for t in jie_terms(moment.year, utc_offset_hours) if t.moment <= moment]
    if earlier:
        return earlier[-1]
    return jie_terms(moment.year - 1, utc_offset_hours)[-1]


def previous_jie(moment: datetime, utc_offset_hours: float = 9.0) -> SolarTermEvent:
    """Last Jie term strictly before `moment`."""
    earlier = [t for t in jie_terms(moment.year, utc_offset_hours) if t.moment < moment]
    if earlier:
        return earlier[-1]
    return jie_terms(moment.year - 1, utc_offset_hours)[-1]


def next_jie(moment: datetime, utc_offset_hours: float = 9.0) -> SolarTermEvent:
    """First Jie term strictly after `moment`."""
    later = [t for t in jie_terms(moment.year, utc_offset_hours) if t.moment > moment]
    if later:
        return later[0]
    return jie_terms(moment.year + 1, utc_offset_hours)[0]


def start_of_spring(year: int, utc_offset_hours: float = 9.0) -> SolarTermEvent:
    """입춘 (Li Chun) of a civil year: the boundary of the pillar year."""
    for term in jie_terms(year, utc_offset_hours):
        if term.longitude == START_OF_SPRING_LONGITUDE:
            return term
    raise UnknownSolarTermError(f"Li Chun not found for {year}", {"year": year})


# ============================================================
# LOCAL TIME CORRECTIONS
# ============================================================

def true_solar_time_offset(longitude: float, standard_meridian: float = 135.0) -> int:
    """
    True solar time correction in whole minutes.

    Korea keeps clocks on the 135°E meridian. Seoul (126.98°E) sits about
    8° west of it, so its local solar noon comes roughly half an hour late.

    Args:
        longitude: birth location longitude in degrees (east positive)
        standard_meridian: meridian of the clock's standard time

    Returns:
        Correction in minutes (negative = subtract from clock time),
        rounded half up

    Example:
        Seoul (126.9784°E): (126.9784 - 135.0) * 4 = -32.09 → -32 min
    """
    return math.floor((longitude - standard_meridian) * 4.0 + 0.5)


def apply_true_solar_time(clock_time: datetime, longitude: float,
                          standard_meridian: float = 135.0) -> datetime:
    """Convert standard clock time to true local solar time."""
    return clock_time + timedelta(minutes=true_solar_time_offset(longitude, standard_meridian))


def standard_clock_time(local_time: datetime, tz_name: str) -> tuple[datetime, int]:
    """
    Strip daylight saving from a civil clock reading.

    Pillars are reckoned in standard time, so an hour of DST (e.g. Korea
    1987-1988) must be removed before any solar correction.

    Returns:
        (standard_time, dst_minutes) where dst_minutes is 0 when DST was not active
    """
    aware = local_time.replace(tzinfo=ZoneInfo(tz_name))
    dst = aware.dst()
    if dst is None or dst.total_seconds() <= 0:
        return local_time, 0

    dst_minutes = int(dst.total_seconds() // 60)
    logger.warning("DST active in %s at %s; removing %d minutes",
                   tz_name, local_time.isoformat(), dst_minutes)
    return local_time - dst, dst_minutes
