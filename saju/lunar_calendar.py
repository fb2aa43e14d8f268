"""
Calendar normalization.

Turns raw birth input (date, clock time, solar or lunar calendar, leap-month
flag, optional city or longitude) into one normalized civil moment in local
standard time, corrected to true solar time when a location is known.

Usage:
    from saju.lunar_calendar import normalize_calendar
    moment = normalize_calendar("1990-05-23", "10:30", "lunar", location="Busan")
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

from saju.astro_calendar import standard_clock_time, true_solar_time_offset
from saju.errors import InvalidLeapMonthError
from saju.lunar_tables import lunar_year
from saju.settings import DEFAULT_SETTINGS, AnalysisSettings

logger = logging.getLogger(__name__)


class CalendarType(Enum):
    SOLAR = "solar"
    LUNAR = "lunar"


@dataclass(frozen=True)
class LunarDate:
    year: int
    month: int
    day: int
    is_leap: bool = False

    def __str__(self):
        leap = " (leap)" if self.is_leap else ""
        return f"lunar {self.year}-{self.month:02d}-{self.day:02d}{leap}"

    def to_dict(self):
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "is_leap": self.is_leap,
        }


# ============================================================
# SOLAR <-> LUNAR CONVERSION
# ============================================================

def solar_to_lunar(solar_date: date) -> LunarDate:
    """
    Convert a civil date to its lunar date.

    A date before its civil year's lunar new year belongs to the previous
    lunar year.

    Raises:
        UnsupportedYearError: the lunar year needed is outside 1900-2200
    """
    record = lunar_year(solar_date.year)
    if solar_date < record.new_year:
        record = lunar_year(solar_date.year - 1)

    remaining = (solar_date - record.new_year).days
    for slot, days in enumerate(record.month_days):
        if remaining < days:
            month, is_leap = record.slot_month(slot)
            return LunarDate(record.year, month, remaining + 1, is_leap)
        remaining -= days

    raise ValueError(f"{solar_date} lies past the end of lunar year {record.year}")


def lunar_to_solar(year: int, month: int, day: int, is_leap: bool = False) -> date:
    """
    Convert a lunar date to its civil date.

    Raises:
        UnsupportedYearError: lunar year outside 1900-2200
        InvalidLeapMonthError: is_leap set but `month` is not that year's leap month
        ValueError: month or day out of range for the lunar month
    """
    record = lunar_year(year)
    if not 1 <= month <= 12:
        raise ValueError(f"Lunar month must be 1-12, got {month}")
    if is_leap and record.leap_month != month:
        raise InvalidLeapMonthError(
            f"Lunar year {year} has no leap month {month}"
            + (f" (leap month is {record.leap_month})" if record.leap_month else " (no leap month)"),
            {"year": year, "month": month, "leap_month": record.leap_month},
        )

    slot = record.month_slot(month, is_leap)
    month_length = record.month_days[slot]
    if not 1 <= day <= month_length:
        raise ValueError(f"Lunar {year}-{month} has {month_length} days, got day {day}")

    days_before = sum(record.month_days[:slot])
    return record.new_year + timedelta(days=days_before + day - 1)


# ============================================================
# LOCATIONS
# ============================================================

# English name: (Korean name, longitude °E)
CITY_LONGITUDES = {
    "Seoul": ("서울", 126.9784),
    "Busan": ("부산", 129.0756),
    "Daegu": ("대구", 128.6014),
    "Incheon": ("인천", 126.7052),
    "Gwangju": ("광주", 126.8526),
    "Daejeon": ("대전", 127.3845),
    "Ulsan": ("울산", 129.3114),
    "Sejong": ("세종", 127.2890),
    "Jeju": ("제주", 126.5219),
    "Suwon": ("수원", 127.0289),
    "Chuncheon": ("춘천", 127.7341),
    "Gangneung": ("강릉", 128.8965),
    "Cheongju": ("청주", 127.4897),
    "Jeonju": ("전주", 127.1479),
    "Mokpo": ("목포", 126.3922),
    "Pohang": ("포항", 129.3650),
    "Gyeongju": ("경주", 129.2249),
    "Changwon": ("창원", 128.6811),
    "Andong": ("안동", 128.7294),
    "Yeosu": ("여수", 127.6622),
}

_CITY_LOOKUP = {}
for _english, (_korean, _longitude) in CITY_LONGITUDES.items():
    _CITY_LOOKUP[_english.lower()] = (_english, _longitude)
    _CITY_LOOKUP[_korean] = (_english, _longitude)


def find_city(name: str) -> Optional[tuple[str, float]]:
    """(canonical English name, longitude) for a city, or None if unknown."""
    return _CITY_LOOKUP.get(name.strip().lower()) or _CITY_LOOKUP.get(name.strip())


def resolve_location(location: Union[str, float, int, None],
                     settings: AnalysisSettings = DEFAULT_SETTINGS) -> tuple[Optional[str], Optional[float], bool]:
    """
    Resolve a city name or longitude.

    Unknown city names fall back to the configured default city; the
    fallback is reported, not raised.

    Returns:
        (city, longitude, used_fallback)
    """
    if location is None:
        return None, None, False
    if isinstance(location, (int, float)) and not isinstance(location, bool):
        return None, float(location), False

    found = find_city(location)
    if found is not None:
        return found[0], found[1], False

    default = find_city(settings.default_city)
    if default is None:
        raise ValueError(f"Default city {settings.default_city!r} is not in the city table")
    logger.warning("Unknown city %r; using default %s (%.4f°E)", location, default[0], default[1])
    return default[0], default[1], True


# ============================================================
# NORMALIZATION
# ============================================================

@dataclass(frozen=True)
class NormalizedMoment:
    solar_date: date
    clock_time: time
    standard_moment: datetime  # civil clock time with any DST removed
    moment: datetime  # standard_moment after true solar time correction
    calendar_type: CalendarType
    is_leap_month: bool
    lunar_date: LunarDate
    longitude: Optional[float] = None
    city: Optional[str] = None
    location_fallback: bool = False
    true_solar_offset_minutes: int = 0
    dst_offset_minutes: int = 0

    def to_dict(self):
        return {
            "solar_date": self.solar_date.isoformat(),
            "clock_time": self.clock_time.strftime("%H:%M"),
            "standard_moment": self.standard_moment.isoformat(),
            "moment": self.moment.isoformat(),
            "calendar_type": self.calendar_type.value,
            "is_leap_month": self.is_leap_month,
            "lunar_date": self.lunar_date.to_dict(),
            "longitude": self.longitude,
            "city": self.city,
            "location_fallback": self.location_fallback,
            "true_solar_offset_minutes": self.true_solar_offset_minutes,
            "dst_offset_minutes": self.dst_offset_minutes,
        }


def _parse_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def _parse_lunar_date(value: Union[str, date]) -> tuple[int, int, int]:
    """
    Split lunar input into (year, month, day) without civil-calendar checks;
    lunar months can have a 30th day where the civil month does not.
    """
    if isinstance(value, date):
        return value.year, value.month, value.day
    try:
        year, month, day = (int(part) for part in value.strip().split("-"))
    except ValueError:
        raise ValueError(f"Lunar date must be YYYY-MM-DD, got {value!r}") from None
    return year, month, day


def _parse_time(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value
    return datetime.strptime(value, "%H:%M").time()


def normalize_calendar(birth_date: Union[str, date],
                       birth_time: Union[str, time],
                       calendar_type: Union[str, CalendarType] = CalendarType.SOLAR,
                       is_leap_month: bool = False,
                       location: Union[str, float, None] = None,
                       settings: AnalysisSettings = DEFAULT_SETTINGS) -> NormalizedMoment:
    """
    Normalize raw birth input to a civil moment in local standard time.

    Args:
        birth_date: "YYYY-MM-DD" or date; read as a lunar date when
            calendar_type is lunar
        birth_time: "HH:MM" (24h, local clock time) or time
        calendar_type: "solar" / "lunar"
        is_leap_month: lunar input falls in the year's leap month
        location: city name (English or Korean), longitude, or None to
            skip true solar time correction
        settings: standard meridian, timezone, default city

    Raises:
        UnsupportedYearError: date outside 1900-2200 lunar table coverage
        InvalidLeapMonthError: leap month flag does not match the table
    """
    calendar_type = CalendarType(calendar_type)
    birth_time = _parse_time(birth_time)

    if calendar_type is CalendarType.LUNAR:
        lunar = LunarDate(*_parse_lunar_date(birth_date), is_leap_month)
        solar_date = lunar_to_solar(lunar.year, lunar.month, lunar.day, lunar.is_leap)
    else:
        solar_date = _parse_date(birth_date)
        lunar = solar_to_lunar(solar_date)

    clock = datetime.combine(solar_date, birth_time)
    standard, dst_minutes = standard_clock_time(clock, settings.timezone)

    city, longitude, fallback = resolve_location(location, settings)
    offset = 0
    if longitude is not None:
        offset = true_solar_time_offset(longitude, settings.standard_meridian)

    return NormalizedMoment(
        solar_date=solar_date,
        clock_time=birth_time,
        standard_moment=standard,
        moment=standard + timedelta(minutes=offset),
        calendar_type=calendar_type,
        is_leap_month=lunar.is_leap,
        lunar_date=lunar,
        longitude=longitude,
        city=city,
        location_fallback=fallback,
        true_solar_offset_minutes=offset,
        dst_offset_minutes=dst_minutes,
    )
