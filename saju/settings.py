"""
Analysis settings.

One immutable value object is passed to every function that needs a
tunable (standard meridian, default YongSin method, lifespan for luck
periods, cache sizing). There is no process-wide mutable configuration.
"""

import os
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class AnalysisSettings:
    """Tunables for chart computation and analysis."""
    yongsin_method: str = "strength"
    standard_meridian: float = 135.0  # KST meridian (UTC+9)
    utc_offset_hours: float = 9.0
    timezone: str = "Asia/Seoul"
    default_city: str = "Seoul"
    luck_lifespan: int = 120
    cache_capacity: int = 1000
    cache_ttl_seconds: float = 3600.0

    @classmethod
    def from_env(cls) -> "AnalysisSettings":
        """Build settings from SAJU_* environment variables, falling back to defaults."""
        return cls(
            yongsin_method=os.getenv("SAJU_YONGSIN_METHOD", "strength").lower(),
            standard_meridian=float(os.getenv("SAJU_STANDARD_MERIDIAN", "135.0")),
            utc_offset_hours=float(os.getenv("SAJU_UTC_OFFSET_HOURS", "9.0")),
            timezone=os.getenv("SAJU_TIMEZONE", "Asia/Seoul"),
            default_city=os.getenv("SAJU_DEFAULT_CITY", "Seoul"),
            luck_lifespan=int(os.getenv("SAJU_LUCK_LIFESPAN", "120")),
            cache_capacity=int(os.getenv("SAJU_CACHE_CAPACITY", "1000")),
            cache_ttl_seconds=float(os.getenv("SAJU_CACHE_TTL_SECONDS", "3600")),
        )

    def with_overrides(self, **changes) -> "AnalysisSettings":
        return replace(self, **changes)


DEFAULT_SETTINGS = AnalysisSettings()
