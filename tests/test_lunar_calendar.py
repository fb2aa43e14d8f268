"""Lunar tables, solar/lunar conversion and calendar normalization"""

import logging
from datetime import date, datetime, time, timedelta

import pytest

from saju.errors import InvalidLeapMonthError, UnsupportedYearError
from saju.lunar_calendar import (
    CalendarType,
    LunarDate,
    find_city,
    lunar_to_solar,
    normalize_calendar,
    resolve_location,
    solar_to_lunar,
)
from saju.lunar_tables import PACKED_PARTITIONS, lunar_year
from saju.settings import AnalysisSettings

# (civil date of lunar new year, leap month)
NEW_YEARS = [
    (date(1901, 2, 19), 0),
    (date(1950, 2, 17), 0),
    (date(1984, 2, 2), 10),
    (date(1990, 1, 27), 5),
    (date(2000, 2, 5), 0),
    (date(2017, 1, 28), 6),
    (date(2020, 1, 25), 4),
    (date(2023, 1, 22), 2),
    (date(2024, 2, 10), 0),
    (date(2025, 1, 29), 6),
]


class TestLunarTables:
    @pytest.mark.parametrize("new_year,leap", NEW_YEARS, ids=[str(d.year) for d, _ in NEW_YEARS])
    def test_known_new_years(self, new_year, leap):
        record = lunar_year(new_year.year)
        assert record.new_year == new_year
        assert record.leap_month == leap

    def test_month_slots(self):
        record = lunar_year(2023)
        assert len(record.month_days) == 13
        assert record.total_days == sum(record.month_days) == 384
        assert record.month_slot(2) == 1
        assert record.month_slot(2, is_leap=True) == 2
        assert record.month_slot(3) == 3
        assert record.slot_month(2) == (2, True)
        assert record.slot_month(3) == (3, False)

    def test_year_without_leap_has_twelve_months(self):
        record = lunar_year(2024)
        assert len(record.month_days) == 12
        assert set(record.month_days) <= {29, 30}

    @pytest.mark.parametrize("year", [1899, 2201, 1000])
    def test_unsupported_year(self, year):
        with pytest.raises(UnsupportedYearError) as exc:
            lunar_year(year)
        assert exc.value.code == "UNSUPPORTED_YEAR"

    def test_packed_partitions_chain(self):
        for earlier, later in zip(PACKED_PARTITIONS, PACKED_PARTITIONS[1:]):
            last = earlier.record(earlier.last_year)
            assert last.new_year + timedelta(days=last.total_days) == later.record(later.first_year).new_year

    def test_generated_partition_continues_chain(self):
        for year in (2100, 2101, 2150, 2199):
            record = lunar_year(year)
            assert record.new_year + timedelta(days=record.total_days) == lunar_year(year + 1).new_year

    def test_generated_partition_shape(self):
        record = lunar_year(2200)
        assert 353 <= record.total_days <= 385
        assert len(record.month_days) == (13 if record.leap_month else 12)


class TestConversion:
    def test_solar_to_lunar(self):
        assert solar_to_lunar(date(1990, 6, 15)) == LunarDate(1990, 5, 23, False)

    def test_leap_month_both_directions(self):
        assert lunar_to_solar(2023, 2, 1, is_leap=True) == date(2023, 3, 22)
        assert lunar_to_solar(2023, 3, 1) == date(2023, 4, 20)
        assert solar_to_lunar(date(2023, 3, 22)) == LunarDate(2023, 2, 1, True)
        assert lunar_to_solar(1990, 5, 1, is_leap=True) == date(1990, 6, 23)

    def test_new_year_boundary_uses_previous_year(self):
        # the day before lunar new year belongs to the previous lunar year
        assert solar_to_lunar(date(2024, 2, 9)) == LunarDate(2023, 12, 30, False)
        assert lunar_to_solar(2023, 12, 30) == date(2024, 2, 9)
        assert solar_to_lunar(date(2024, 2, 10)) == LunarDate(2024, 1, 1, False)
        assert solar_to_lunar(date(2024, 1, 1)).year == 2023

    def test_leap_day_2000(self):
        lunar = solar_to_lunar(date(2000, 2, 29))
        assert lunar == LunarDate(2000, 1, 25, False)
        assert lunar_to_solar(lunar.year, lunar.month, lunar.day, lunar.is_leap) == date(2000, 2, 29)

    def test_str(self):
        assert str(LunarDate(2023, 2, 1, True)) == "lunar 2023-02-01 (leap)"
        assert str(LunarDate(1990, 5, 23)) == "lunar 1990-05-23"

    def test_round_trip_sampled(self):
        d = date(1900, 2, 1)
        end = date(2200, 12, 1)
        while d <= end:
            lunar = solar_to_lunar(d)
            assert lunar_to_solar(lunar.year, lunar.month, lunar.day, lunar.is_leap) == d, d
            d += timedelta(days=97)

    @pytest.mark.parametrize("year,month", [(2024, 3), (2023, 3), (2023, 1)])
    def test_invalid_leap_month(self, year, month):
        with pytest.raises(InvalidLeapMonthError) as exc:
            lunar_to_solar(year, month, 1, is_leap=True)
        assert exc.value.details["month"] == month

    def test_day_out_of_range(self):
        with pytest.raises(ValueError):
            lunar_to_solar(2024, 1, 31)
        with pytest.raises(ValueError):
            lunar_to_solar(2024, 13, 1)

    def test_before_first_new_year_is_unsupported(self):
        with pytest.raises(UnsupportedYearError):
            solar_to_lunar(date(1900, 1, 15))
        with pytest.raises(UnsupportedYearError):
            solar_to_lunar(date(2201, 6, 1))


class TestLocations:
    def test_english_and_korean_names(self):
        assert find_city("Busan") == ("Busan", 129.0756)
        assert find_city("부산") == ("Busan", 129.0756)
        assert find_city("seoul") == ("Seoul", 126.9784)
        assert find_city("Atlantis") is None

    def test_unknown_city_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="saju.lunar_calendar"):
            city, longitude, fallback = resolve_location("Atlantis")
        assert (city, longitude, fallback) == ("Seoul", 126.9784, True)
        assert "Atlantis" in caplog.text

    def test_numeric_longitude(self):
        assert resolve_location(127.5) == (None, 127.5, False)
        assert resolve_location(None) == (None, None, False)

    def test_bad_default_city(self):
        with pytest.raises(ValueError):
            resolve_location("Atlantis", AnalysisSettings(default_city="Nowhere"))


class TestNormalizeCalendar:
    def test_solar_without_location(self):
        moment = normalize_calendar("1990-06-15", "10:30", "solar")
        assert moment.calendar_type is CalendarType.SOLAR
        assert moment.moment == datetime(1990, 6, 15, 10, 30)
        assert moment.lunar_date == LunarDate(1990, 5, 23, False)
        assert moment.true_solar_offset_minutes == 0
        assert moment.city is None

    def test_lunar_leap_input(self):
        moment = normalize_calendar("1990-05-01", "12:00", CalendarType.LUNAR, is_leap_month=True)
        assert moment.solar_date == date(1990, 6, 23)
        assert moment.is_leap_month is True

    def test_city_true_solar_time(self):
        moment = normalize_calendar(date(1990, 6, 15), time(10, 30), "solar", location="Seoul")
        assert moment.true_solar_offset_minutes == -32
        assert moment.moment == datetime(1990, 6, 15, 9, 58)
        assert moment.location_fallback is False

    def test_unknown_city_is_flagged(self):
        moment = normalize_calendar("1990-06-15", "10:30", location="Atlantis")
        assert moment.location_fallback is True
        assert moment.city == "Seoul"

    def test_dst_is_stripped(self):
        moment = normalize_calendar("1988-07-01", "12:00")
        assert moment.dst_offset_minutes == 60
        assert moment.standard_moment == datetime(1988, 7, 1, 11, 0)

    def test_leap_day_normalizes(self):
        moment = normalize_calendar("2000-02-29", "08:00")
        assert moment.lunar_date == LunarDate(2000, 1, 25, False)

    @pytest.mark.parametrize("lunar_date,solar_date", [
        ("2023-02-30", date(2023, 3, 21)),  # 30th day of a 30-day second month
        ("2023-02-29", date(2023, 3, 20)),  # 2/29 in a non-leap civil year
    ])
    def test_lunar_days_missing_from_civil_calendar(self, lunar_date, solar_date):
        moment = normalize_calendar(lunar_date, "12:00", "lunar")
        assert moment.solar_date == solar_date
        assert moment.lunar_date == LunarDate(2023, 2, int(lunar_date[-2:]), False)

    def test_lunar_day_past_month_length(self):
        # leap month 2 of 2023 has 29 days
        with pytest.raises(ValueError):
            normalize_calendar("2023-02-30", "12:00", "lunar", is_leap_month=True)
        with pytest.raises(ValueError):
            normalize_calendar("2023-02", "12:00", "lunar")

    def test_invalid_leap_raises(self):
        with pytest.raises(InvalidLeapMonthError):
            normalize_calendar("2024-03-01", "08:00", "lunar", is_leap_month=True)

    def test_malformed_input(self):
        with pytest.raises(ValueError):
            normalize_calendar("1990/06/15", "10:30")
        with pytest.raises(ValueError):
            normalize_calendar("1990-06-15", "10:30", "julian")

    def test_to_dict(self):
        data = normalize_calendar("1990-06-15", "10:30", location="Busan").to_dict()
        assert data["city"] == "Busan"
        assert data["true_solar_offset_minutes"] == -24
        assert data["lunar_date"] == {"year": 1990, "month": 5, "day": 23, "is_leap": False}
