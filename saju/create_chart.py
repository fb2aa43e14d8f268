"""
Chart creation library.
Normalizes birth input, derives the Four Pillars chart, runs every analysis
and returns one JSON-ready payload (optionally written to disk).

Usage from Python:
    from saju.create_chart import compute_and_save_chart
    compute_and_save_chart(
        name="Minji", birth_date="1990-06-15", birth_time="10:30",
        gender="female", calendar_type="solar", city="Seoul",
        output_dir="chart_data",
    )
"""

import copy
import json
import logging
from pathlib import Path
from typing import Optional, Union

from saju.cache import TTLCache, chart_cache_key
from saju.lunar_calendar import normalize_calendar
from saju.luck import decade_luck_periods, luck_start
from saju.pillars import derive_chart
from saju.settings import DEFAULT_SETTINGS, AnalysisSettings
from saju.yongsin import (
    evaluate_applicability,
    get_strategy,
    select_yongsin,
    select_yongsin_all,
    select_yongsin_auto,
)

logger = logging.getLogger(__name__)

AUTO_METHOD = "auto"


def _run_analysis(birth_date, birth_time, gender, calendar_type, is_leap_month,
                  location, method, settings) -> dict:
    moment = normalize_calendar(birth_date, birth_time, calendar_type, is_leap_month,
                                location, settings)
    chart = derive_chart(moment, gender, settings)

    if method == AUTO_METHOD:
        yongsin = select_yongsin_auto(chart)
    else:
        yongsin = select_yongsin(chart, method)

    start = luck_start(chart, settings)
    periods = decade_luck_periods(chart, settings)

    return {
        "input": {
            "birth_date": str(birth_date),
            "birth_time": str(birth_time),
            "calendar_type": moment.calendar_type.value,
            "is_leap_month": is_leap_month,
            "gender": chart.gender.value,
            "location": location,
            "method": method,
        },
        "normalized": moment.to_dict(),
        "chart": chart.to_dict(),
        "day_master_strength": chart.strength.to_dict(),
        "yongsin": yongsin.to_dict(),
        "yongsin_all": {m.value: r.to_dict() for m, r in select_yongsin_all(chart).items()},
        "applicability": {m.value: s for m, s in evaluate_applicability(chart).items()},
        "decade_luck": {
            "direction": start.direction.value,
            "start_age": start.start_age,
            "boundary_term": start.boundary.to_dict(),
            "periods": [p.to_dict() for p in periods],
        },
    }


def analyze(birth_date, birth_time, gender, calendar_type="solar", is_leap_month=False,
            location: Union[str, float, None] = None, method: Optional[str] = None,
            settings: AnalysisSettings = DEFAULT_SETTINGS,
            cache: Optional[TTLCache] = None) -> dict:
    """
    Full analysis payload for one birth.

    Args:
        birth_date: "YYYY-MM-DD" (lunar date when calendar_type is "lunar")
        birth_time: "HH:MM" (24h, local clock time)
        gender: "male" or "female"
        calendar_type: "solar" or "lunar"
        is_leap_month: lunar date falls in the leap month
        location: city name or longitude for true solar time, or None
        method: YongSin method, "auto", or None for settings.yongsin_method
        settings: analysis settings
        cache: optional memo keyed by the full input tuple; callers always
            receive their own copy of the cached payload

    Raises:
        SajuError subclasses from normalization, derivation or method lookup
    """
    method = method or settings.yongsin_method
    if method != AUTO_METHOD:
        # Fail on a bad method before any computation or caching
        get_strategy(method)

    def compute():
        return _run_analysis(birth_date, birth_time, gender, calendar_type, is_leap_month,
                             location, method, settings)

    if cache is None:
        return compute()
    key = chart_cache_key(birth_date, birth_time, calendar_type, is_leap_month,
                          gender, location, method, settings)
    return copy.deepcopy(cache.get_or_compute(key, compute))


def compute_and_save_chart(name, birth_date, birth_time, gender, calendar_type="solar",
                           is_leap_month=False, city=None, longitude=None, method=None,
                           output_dir=None, settings: AnalysisSettings = DEFAULT_SETTINGS,
                           cache: Optional[TTLCache] = None) -> dict:
    """
    Compute the full analysis and, when output_dir is given, save it to
    <output_dir>/<name>.json.

    Returns:
        dict with keys: name, path (None when not saved), and the analysis payload
    """
    location = longitude if longitude is not None else city
    payload = analyze(birth_date, birth_time, gender, calendar_type, is_leap_month,
                      location, method, settings, cache)

    chart_path = None
    if output_dir is not None:
        chart_dir = Path(output_dir)
        chart_dir.mkdir(parents=True, exist_ok=True)
        filename = name.lower().replace(" ", "_")
        chart_path = chart_dir / f"{filename}.json"
        with open(chart_path, "w", encoding="utf-8") as f:
            json.dump({"name": name, **payload}, f, indent=2, ensure_ascii=False)
        logger.info("Saved chart for %s to %s", name, chart_path)

    return {
        "name": name,
        "path": str(chart_path) if chart_path else None,
        **payload,
    }
