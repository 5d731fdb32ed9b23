"""
Entry point for the UK PAYE take-home pay calculator.

Usage:
    python main.py                      # launches the web app at localhost:5000
    python main.py --cli                # runs the terminal interface
    python main.py --cli --tax-year 2025-26
"""

import argparse
import os
from dataclasses import replace
from typing import List, Optional

import config as cfg
from logging_config import configure_logging


def main(argv: Optional[List[str]] = None) -> None:
    settings = cfg.load_settings()

    parser = argparse.ArgumentParser(
        description="UK PAYE take-home pay calculator",
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Run in terminal mode instead of launching the web app",
    )
    parser.add_argument(
        "--tax-year",
        choices=sorted(cfg.TAX_YEARS),
        default=None,
        help=f"Rate table to use (default {settings.tax_year})",
    )
    parser.add_argument("--report", default=None, help="Where to write the PDF report")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument("--log-json", action="store_true", default=settings.log_json,
                        help="Emit logs as JSON lines")
    parser.add_argument("--no-debug", action="store_true", help="Disable the Flask debugger")
    args = parser.parse_args(argv)

    configure_logging(args.log_level, json_format=args.log_json)
    settings = replace(
        settings,
        tax_year=args.tax_year or settings.tax_year,
        report_path=args.report or settings.report_path,
    )

    if args.cli:
        from cli import run_cli
        # Only skip the tax year prompt when a year was actually chosen
        chosen = args.tax_year or os.environ.get("PAYE_TAX_YEAR")
        run_cli(tax_year=settings.tax_year if chosen else None,
                report_path=settings.report_path)
    else:
        from app import run_web
        run_web(debug=not args.no_debug, settings=settings)


if __name__ == "__main__":
    main()
