"""
CLI wrapper for compute_and_save_chart().

Usage:
    saju-chart --birth-date YYYY-MM-DD --birth-time HH:MM --gender GENDER \
        [--calendar solar|lunar] [--leap-month] [--city CITY | --longitude LON] \
        [--method METHOD] [--name NAME] [--output-dir DIR] [--log-level LEVEL]
"""

import argparse
import json
import logging
import sys

from saju.create_chart import AUTO_METHOD, compute_and_save_chart
from saju.errors import SajuError
from saju.settings import AnalysisSettings
from saju.yongsin import YongSinMethod


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute a Four Pillars (사주) chart and its analyses.")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--birth-time", required=True, dest="birth_time")
    parser.add_argument("--gender", required=True, choices=["male", "female"])
    parser.add_argument("--calendar", dest="calendar_type", default="solar",
                        choices=["solar", "lunar"])
    parser.add_argument("--leap-month", dest="is_leap_month", action="store_true")
    location = parser.add_mutually_exclusive_group()
    location.add_argument("--city", default=None)
    location.add_argument("--longitude", type=float, default=None)
    parser.add_argument("--method", default=None,
                        choices=[m.value for m in YongSinMethod] + [AUTO_METHOD])
    parser.add_argument("--name", default="chart")
    parser.add_argument("--output-dir", dest="output_dir", default=None)
    parser.add_argument("--log-level", dest="log_level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        result = compute_and_save_chart(
            name=args.name,
            birth_date=args.birth_date,
            birth_time=args.birth_time,
            gender=args.gender,
            calendar_type=args.calendar_type,
            is_leap_month=args.is_leap_month,
            city=args.city,
            longitude=args.longitude,
            method=args.method,
            output_dir=args.output_dir,
            settings=AnalysisSettings.from_env(),
        )
    except SajuError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False), file=sys.stderr)
        return 2

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
