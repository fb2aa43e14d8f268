"""
Pytest shared fixtures.

The reference chart is 1990-06-15 10:30 (solar calendar), male, no
location correction: 庚午 / 壬午 / 癸丑 / 丁巳.
"""

from types import SimpleNamespace

import pytest

from saju.bazi import ELEMENT_ORDER, branch_by, stem_by
from saju.lunar_calendar import normalize_calendar
from saju.pillars import derive_chart
from saju.settings import AnalysisSettings


@pytest.fixture(scope="session")
def settings():
    return AnalysisSettings()


@pytest.fixture(scope="session")
def reference_moment(settings):
    return normalize_calendar("1990-06-15", "10:30", "solar", settings=settings)


@pytest.fixture(scope="session")
def reference_chart(reference_moment, settings):
    return derive_chart(reference_moment, "male", settings)


@pytest.fixture
def make_chart():
    """
    Build a lightweight chart stand-in for strategy tests.

    Only the attributes the YongSin strategies read are provided.
    """
    def _make(day_stem="甲", month_branch="寅", level=None, counts=None):
        counts = counts or {}
        return SimpleNamespace(
            day_master=stem_by(day_stem),
            month=SimpleNamespace(branch=branch_by(month_branch)),
            strength=SimpleNamespace(level=level) if level is not None else None,
            element_counts={e: counts.get(e, 0) for e in ELEMENT_ORDER},
        )
    return _make
