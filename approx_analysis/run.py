"""Command-line runner for the binomial vs normal approximation report.

Usage example:
python -m approx_analysis.run --n 5000 --p 0.001 --confidence 0.99 --output-dir ./approx_output
"""
from __future__ import annotations

import argparse
import logging
import sys

from . import config
from .errors import InvalidParameter
from .report import build_summary, write_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare binomial probabilities with their normal approximation"
    )
    parser.add_argument("--n", type=int, required=True, help="Number of trials")
    parser.add_argument("--p", type=float, required=True, help="Success probability in [0, 1]")
    parser.add_argument(
        "--confidence", type=float, default=config.DEFAULT_CONFIDENCE_LEVEL,
        help="Confidence level for the bounds (default 0.95)"
    )
    parser.add_argument("--output-dir", default="./approx_output")
    parser.add_argument(
        "--ns", type=int, nargs="+", default=None,
        help="Trial counts for the error-by-n grid"
    )
    parser.add_argument(
        "--ps", type=float, nargs="+", default=None,
        help="Success probabilities for the grids"
    )
    parser.add_argument(
        "--expected", type=float, default=config.DEFAULT_EXPECTED_SUCCESSES,
        help="Expected successes held fixed for the p sweep"
    )
    parser.add_argument("--workers", type=int, default=1, help="Parallel workers for grid sweeps")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format=config.LOG_FORMAT,
    )

    try:
        report = write_report(
            args.n,
            args.p,
            args.output_dir,
            confidence_level=args.confidence,
            ns=args.ns,
            ps=args.ps,
            expected=args.expected,
            workers=args.workers,
        )
    except InvalidParameter as e:
        logger.error(f"Invalid parameter: {e}")
        return 2

    print(build_summary(report))
    print("Report:", report["report_path"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
