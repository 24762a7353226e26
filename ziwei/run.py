"""
CLI wrapper for compute_chart().

Usage:
    ziwei-chart --birth-date YYYY-MM-DD --birth-time HH:MM --gender GENDER \
        [--lunar] [--leap-month] [--leap-handling {mid,current,next}] \
        [--zi-handling {midnightChange,ziChange}] [--stem 甲=interpretation_2] \
        [--wounded-servant {zhongzhou,noDistinction}] \
        [--void-display {marked,noDistinct,primaryOnly}] \
        [--name NAME] [--birthplace PLACE] [--annual-year YEAR]

With --lunar the birth date is read as a lunar date.
"""

import argparse
import json
import logging
import sys

from ziwei import config
from ziwei.chart import compute_chart, annual_overlay
from ziwei.errors import ChartError


def parse_stem_selection(value: str) -> tuple[str, str]:
    stem, sep, variant = value.partition("=")
    if not sep or not stem or not variant:
        raise argparse.ArgumentTypeError(f"Expected STEM=VARIANT, got {value!r}")
    return stem.strip(), variant.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute a Zi Wei Dou Shu natal chart.")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--birth-time", required=True, dest="birth_time")
    parser.add_argument("--gender", required=True, choices=["male", "female"])
    parser.add_argument("--lunar", action="store_true", help="birth date is a lunar date")
    parser.add_argument("--leap-month", action="store_true", dest="leap_month")
    parser.add_argument("--leap-handling", dest="leap_handling", default=None,
                        choices=["mid", "current", "next"])
    parser.add_argument("--zi-handling", dest="zi_handling", default=None,
                        choices=["midnightChange", "ziChange"])
    parser.add_argument("--stem", dest="stems", action="append", default=[],
                        type=parse_stem_selection, metavar="STEM=VARIANT")
    parser.add_argument("--wounded-servant", dest="wounded_servant", default=None,
                        choices=["zhongzhou", "noDistinction"])
    parser.add_argument("--void-display", dest="void_display", default=None,
                        choices=["marked", "noDistinct", "primaryOnly"])
    parser.add_argument("--name", default="")
    parser.add_argument("--birthplace", default="")
    parser.add_argument("--annual-year", dest="annual_year", type=int, default=None)
    return parser


def build_input(args) -> dict:
    year, month, day = (int(part) for part in args.birth_date.split("-"))
    hour, minute = (int(part) for part in args.birth_time.split(":"))
    data = {
        "calendarType": "lunar" if args.lunar else "solar",
        "year": year,
        "month": month,
        "day": day,
        "hour": hour,
        "minute": minute,
        "gender": args.gender,
        "name": args.name,
        "birthplace": args.birthplace,
        "leapMonth": args.leap_month,
        "stemInterpretations": dict(args.stems),
    }
    optional = {
        "leapMonthHandling": args.leap_handling,
        "ziHourHandling": args.zi_handling,
        "woundedServant": args.wounded_servant,
        "voidDisplay": args.void_display,
    }
    data.update({k: v for k, v in optional.items() if v is not None})
    return data


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL)

    try:
        data = build_input(args)
    except ValueError:
        parser.error("--birth-date must be YYYY-MM-DD and --birth-time HH:MM")

    try:
        result = compute_chart(data)
        if args.annual_year is not None:
            result["annualCycle"] = annual_overlay(result, args.annual_year)
    except ChartError as e:
        print(json.dumps(e.to_dict(), indent=2, ensure_ascii=False))
        return 1
    except ValueError as e:
        print(json.dumps({"kind": "INPUT_VALIDATION_FAILED", "message": str(e)},
                         indent=2, ensure_ascii=False))
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
