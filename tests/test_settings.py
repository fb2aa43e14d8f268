"""Settings and error taxonomy"""

import os
from dataclasses import FrozenInstanceError
from unittest.mock import patch

import pytest

from saju.errors import (
    InvalidLeapMonthError,
    SajuError,
    UnknownAlgorithmError,
    UnknownBranchError,
    UnknownSolarTermError,
    UnsupportedYearError,
)
from saju.settings import DEFAULT_SETTINGS, AnalysisSettings


class TestAnalysisSettings:
    def test_defaults(self):
        settings = AnalysisSettings()
        assert settings == DEFAULT_SETTINGS
        assert settings.yongsin_method == "strength"
        assert settings.standard_meridian == 135.0
        assert settings.timezone == "Asia/Seoul"
        assert settings.luck_lifespan == 120

    def test_from_env(self):
        env = {
            "SAJU_YONGSIN_METHOD": "Seasonal",
            "SAJU_STANDARD_MERIDIAN": "120",
            "SAJU_UTC_OFFSET_HOURS": "8",
            "SAJU_TIMEZONE": "Asia/Shanghai",
            "SAJU_DEFAULT_CITY": "Busan",
            "SAJU_LUCK_LIFESPAN": "90",
            "SAJU_CACHE_CAPACITY": "10",
            "SAJU_CACHE_TTL_SECONDS": "30",
        }
        with patch.dict(os.environ, env):
            settings = AnalysisSettings.from_env()
        assert settings.yongsin_method == "seasonal"
        assert settings.standard_meridian == 120.0
        assert settings.utc_offset_hours == 8.0
        assert settings.timezone == "Asia/Shanghai"
        assert settings.default_city == "Busan"
        assert settings.luck_lifespan == 90
        assert settings.cache_capacity == 10
        assert settings.cache_ttl_seconds == 30.0

    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            assert AnalysisSettings.from_env() == AnalysisSettings()

    def test_immutable(self):
        settings = AnalysisSettings()
        with pytest.raises(FrozenInstanceError):
            settings.luck_lifespan = 10
        changed = settings.with_overrides(luck_lifespan=10)
        assert changed.luck_lifespan == 10
        assert settings.luck_lifespan == 120


class TestErrors:
    @pytest.mark.parametrize("cls,code", [
        (UnsupportedYearError, "UNSUPPORTED_YEAR"),
        (InvalidLeapMonthError, "INVALID_LEAP_MONTH"),
        (UnknownSolarTermError, "UNKNOWN_SOLAR_TERM"),
        (UnknownBranchError, "UNKNOWN_BRANCH"),
        (UnknownAlgorithmError, "UNKNOWN_ALGORITHM"),
    ])
    def test_codes(self, cls, code):
        error = cls("bad input", {"year": 1800})
        assert isinstance(error, SajuError)
        assert isinstance(error, ValueError)
        assert error.to_dict() == {"error": code, "message": "bad input", "details": {"year": 1800}}

    def test_details_default_to_empty(self):
        assert SajuError("oops").details == {}
