"""
Lunisolar year tables covering 1900-2200.

The range is split into four partitions. The first three are packed
month-size words, one per year:

    bits 0-3    leap month index (0 = no leap month)
    bits 15..4  months 1..12, set bit = 30-day month, clear bit = 29 days
    bit 16      leap month size (set = 30 days)

Each packed partition carries the civil date of its first lunar new year;
later new years are chained by adding the previous year's length. The
2101-2200 partition is generated once, on first use, from lunar_python.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache

from lunar_python import Lunar, LunarMonth, LunarYear

from saju.errors import UnsupportedYearError

logger = logging.getLogger(__name__)

FIRST_YEAR = 1900
LAST_YEAR = 2200


@dataclass(frozen=True)
class LunarYearRecord:
    year: int
    leap_month: int  # 0 = none
    month_days: tuple[int, ...]  # leap slot sits right after its host month
    total_days: int
    new_year: date  # civil date of lunar 1/1

    def month_slot(self, month: int, is_leap: bool = False) -> int:
        """Index into month_days for a lunar month."""
        if is_leap:
            return month
        if self.leap_month and month > self.leap_month:
            return month
        return month - 1

    def slot_month(self, slot: int) -> tuple[int, bool]:
        """Inverse of month_slot: (month, is_leap) for an index into month_days."""
        if not self.leap_month or slot < self.leap_month:
            return slot + 1, False
        if slot == self.leap_month:
            return self.leap_month, True
        return slot, False

    def to_dict(self):
        return {
            "year": self.year,
            "leap_month": self.leap_month,
            "month_days": list(self.month_days),
            "total_days": self.total_days,
            "new_year": self.new_year.isoformat(),
        }


@dataclass(frozen=True)
class LunarTablePartition:
    first_year: int
    last_year: int
    records: tuple[LunarYearRecord, ...]

    def covers(self, year: int) -> bool:
        return self.first_year <= year <= self.last_year

    def record(self, year: int) -> LunarYearRecord:
        return self.records[year - self.first_year]


# ============================================================
# PACKED TABLES
# ============================================================

LUNAR_INFO_1900_2019 = [
    0x04bd8, 0x04ae0, 0x0a570, 0x054d5, 0x0d260, 0x0d950, 0x16554, 0x056a0, 0x09ad0, 0x055d2,  # 1900-1909
    0x04ae0, 0x0a5b6, 0x0a4d0, 0x0d250, 0x1d255, 0x0b540, 0x0d6a0, 0x0ada2, 0x095b0, 0x14977,  # 1910-1919
    0x04970, 0x0a4b0, 0x0b4b5, 0x06a50, 0x06d40, 0x1ab54, 0x02b60, 0x09570, 0x052f2, 0x04970,  # 1920-1929
    0x06566, 0x0d4a0, 0x0ea50, 0x16a95, 0x05ad0, 0x02b60, 0x186e3, 0x092e0, 0x1c8d7, 0x0c950,  # 1930-1939
    0x0d4a0, 0x1d8a6, 0x0b550, 0x056a0, 0x1a5b4, 0x025d0, 0x092d0, 0x0d2b2, 0x0a950, 0x0b557,  # 1940-1949
    0x06ca0, 0x0b550, 0x15355, 0x04da0, 0x0a5b0, 0x14573, 0x052b0, 0x0a9a8, 0x0e950, 0x06aa0,  # 1950-1959
    0x0aea6, 0x0ab50, 0x04b60, 0x0aae4, 0x0a570, 0x05260, 0x0f263, 0x0d950, 0x05b57, 0x056a0,  # 1960-1969
    0x096d0, 0x04dd5, 0x04ad0, 0x0a4d0, 0x0d4d4, 0x0d250, 0x0d558, 0x0b540, 0x0b6a0, 0x195a6,  # 1970-1979
    0x095b0, 0x049b0, 0x0a974, 0x0a4b0, 0x0b27a, 0x06a50, 0x06d40, 0x0af46, 0x0ab60, 0x09570,  # 1980-1989
    0x04af5, 0x04970, 0x064b0, 0x074a3, 0x0ea50, 0x06b58, 0x05ac0, 0x0ab60, 0x096d5, 0x092e0,  # 1990-1999
    0x0c960, 0x0d954, 0x0d4a0, 0x0da50, 0x07552, 0x056a0, 0x0abb7, 0x025d0, 0x092d0, 0x0cab5,  # 2000-2009
    0x0a950, 0x0b4a0, 0x0baa4, 0x0ad50, 0x055d9, 0x04ba0, 0x0a5b0, 0x15176, 0x052b0, 0x0a930,  # 2010-2019
]

LUNAR_INFO_2020_2030 = [
    0x07954, 0x06aa0, 0x0ad50, 0x05b52, 0x04b60, 0x0a6e6, 0x0a4e0, 0x0d260, 0x0ea65, 0x0d530,  # 2020-2029
    0x05aa0,  # 2030
]

LUNAR_INFO_2031_2100 = [
    0x076a3, 0x096d0, 0x04afb, 0x04ad0, 0x0a4d0, 0x1d0b6, 0x0d250, 0x0d520, 0x0dd45, 0x0b5a0,  # 2031-2040
    0x056d0, 0x055b2, 0x049b0, 0x0a577, 0x0a4b0, 0x0aa50, 0x1b255, 0x06d20, 0x0ada0, 0x14b63,  # 2041-2050
    0x09370, 0x049f8, 0x04970, 0x064b0, 0x168a6, 0x0ea50, 0x06b20, 0x1a6c4, 0x0aae0, 0x092e0,  # 2051-2060
    0x0d2e3, 0x0c960, 0x0d557, 0x0d4a0, 0x0da50, 0x05d55, 0x056a0, 0x0a6d0, 0x055d4, 0x052d0,  # 2061-2070
    0x0a9b8, 0x0a950, 0x0b4a0, 0x0b6a6, 0x0ad50, 0x055a0, 0x0aba4, 0x0a5b0, 0x052b0, 0x0b273,  # 2071-2080
    0x06930, 0x07337, 0x06aa0, 0x0ad50, 0x14b55, 0x04b60, 0x0a570, 0x054e4, 0x0d160, 0x0e968,  # 2081-2090
    0x0d520, 0x0daa0, 0x16aa6, 0x056d0, 0x04ae0, 0x0a9d4, 0x0a2d0, 0x0d150, 0x0f252, 0x0d520,  # 2091-2100
]


def decode_year(year: int, word: int, new_year: date) -> LunarYearRecord:
    """Unpack one packed year word into a LunarYearRecord."""
    leap_month = word & 0xF
    month_days = [30 if word & (0x10000 >> month) else 29 for month in range(1, 13)]
    if leap_month:
        month_days.insert(leap_month, 30 if word & 0x10000 else 29)
    return LunarYearRecord(
        year=year,
        leap_month=leap_month,
        month_days=tuple(month_days),
        total_days=sum(month_days),
        new_year=new_year,
    )


def packed_partition(first_year: int, anchor: date, words: list[int]) -> LunarTablePartition:
    records = []
    new_year = anchor
    for offset, word in enumerate(words):
        record = decode_year(first_year + offset, word, new_year)
        records.append(record)
        new_year += timedelta(days=record.total_days)
    return LunarTablePartition(first_year, first_year + len(words) - 1, tuple(records))


PACKED_PARTITIONS = (
    packed_partition(1900, date(1900, 1, 31), LUNAR_INFO_1900_2019),
    packed_partition(2020, date(2020, 1, 25), LUNAR_INFO_2020_2030),
    packed_partition(2031, date(2031, 1, 23), LUNAR_INFO_2031_2100),
)


# ============================================================
# GENERATED TABLE (2101-2200)
# ============================================================

def library_year(year: int) -> LunarYearRecord:
    """Build one year's record from lunar_python's calendar."""
    leap_month = LunarYear.fromYear(year).getLeapMonth()
    month_days = []
    for month in range(1, 13):
        month_days.append(LunarMonth.fromYm(year, month).getDayCount())
        if month == leap_month:
            # lunar_python addresses leap months with a negative month number
            month_days.append(LunarMonth.fromYm(year, -month).getDayCount())
    solar = Lunar.fromYmd(year, 1, 1).getSolar()
    return LunarYearRecord(
        year=year,
        leap_month=leap_month,
        month_days=tuple(month_days),
        total_days=sum(month_days),
        new_year=date(solar.getYear(), solar.getMonth(), solar.getDay()),
    )


@lru_cache(maxsize=1)
def generated_partition() -> LunarTablePartition:
    logger.debug("Generating lunar table partition 2101-%d", LAST_YEAR)
    records = tuple(library_year(year) for year in range(2101, LAST_YEAR + 1))
    return LunarTablePartition(2101, LAST_YEAR, records)


def partitions() -> tuple[LunarTablePartition, ...]:
    return PACKED_PARTITIONS + (generated_partition(),)


def is_supported_year(year: int) -> bool:
    return FIRST_YEAR <= year <= LAST_YEAR


def lunar_year(year: int) -> LunarYearRecord:
    """
    Table record for a lunar year.

    Raises:
        UnsupportedYearError: year outside 1900-2200
    """
    if not is_supported_year(year):
        raise UnsupportedYearError(
            f"Lunar year {year} is outside the supported range {FIRST_YEAR}-{LAST_YEAR}",
            {"year": year, "min_year": FIRST_YEAR, "max_year": LAST_YEAR},
        )
    for partition in PACKED_PARTITIONS:
        if partition.covers(year):
            return partition.record(year)
    return generated_partition().record(year)
