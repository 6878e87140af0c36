"""Figures and JSON report for one trial configuration.

Produces an exact-vs-normal curve plot, a total-absolute-error-by-n plot for a
grid of configurations, the underlying CSV tables, and a JSON summary.
"""
from __future__ import annotations

import json
import logging
import os
import warnings
from typing import Any, Dict, Iterable, Optional

import matplotlib.pyplot as plt
import pandas as pd

from . import config
from .approximation import compare, curve_frame, trial_config
from .errors import DegenerateTestWarning, InvalidParameter
from .grid import best_p, evaluate_grid, expected_count_grid

logger = logging.getLogger(__name__)


def plot_curves(n, p, output_dir: str, curve: Optional[pd.DataFrame] = None) -> str:
    """Bar chart of the binomial pmf with the normal density overlaid."""
    os.makedirs(output_dir, exist_ok=True)
    cfg = trial_config(n, p)
    if curve is None:
        curve = curve_frame(cfg.n, cfg.p)

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.bar(curve["k"], curve["exact"], color="C0", alpha=0.6, label="Binomial pmf")
    ax.plot(curve["k"], curve["approx"], color="C1", marker=".", label="Normal density")
    ax.set_xlabel("Number of successes k")
    ax.set_ylabel("Probability")
    ax.set_title(f"Binomial vs normal approximation (n={cfg.n}, p={cfg.p:g})")
    ax.legend()

    plt.tight_layout()
    png_path = os.path.join(output_dir, config.OUTPUT_FILES["curve_png"])
    plt.savefig(png_path, dpi=config.FIGURE_DPI)
    plt.close(fig)
    return png_path


def plot_error_by_n(grid_df: pd.DataFrame, output_dir: str) -> str:
    """Total absolute error against n, one line per p (log-scaled n axis)."""
    os.makedirs(output_dir, exist_ok=True)
    ok = grid_df[grid_df["error"].isna()]

    fig, ax = plt.subplots(figsize=(8, 4))
    for p, group in ok.groupby("p"):
        ax.plot(group["n"], group["total_abs_error"], marker="o", label=f"p={p:g}")
    ax.set_xscale("log")
    ax.set_xlabel("Number of trials n")
    ax.set_ylabel("Total absolute error")
    ax.set_title("Normal approximation error by sample size")
    if not ok.empty:
        ax.legend()

    plt.tight_layout()
    png_path = os.path.join(output_dir, config.OUTPUT_FILES["error_png"])
    plt.savefig(png_path, dpi=config.FIGURE_DPI)
    plt.close(fig)
    return png_path


def write_report(
    n,
    p,
    output_dir: str,
    confidence_level: float = config.DEFAULT_CONFIDENCE_LEVEL,
    ns: Optional[Iterable[int]] = None,
    ps: Optional[Iterable[float]] = None,
    expected: float = config.DEFAULT_EXPECTED_SUCCESSES,
    workers: int = 1,
) -> Dict[str, Any]:
    """Run the full comparison for (n, p) and save tables, figures and JSON.

    Parameters
    ----------
    n, p : int, float
        Trial configuration to report on.
    output_dir : str
        Directory for CSV, PNG and JSON outputs.
    confidence_level : float
        Level for the confidence bounds.
    ns, ps : iterables, optional
        Grid for the error-by-n sweep (defaults from config).
    expected : float
        Expected success count held fixed for the p sweep.
    workers : int
        Process count for the grid sweeps.

    Returns
    -------
    dict
        Metrics from compare() plus output paths.
    """
    ns = list(config.DEFAULT_NS if ns is None else ns)
    ps = list(config.DEFAULT_PS if ps is None else ps)

    # Validate everything before the first file is written
    if not expected > 0:
        raise InvalidParameter(f"expected successes must be positive, got {expected}")
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", DegenerateTestWarning)
        metrics = compare(n, p, confidence_level=confidence_level)
    for w in caught:
        if issubclass(w.category, DegenerateTestWarning):
            logger.warning(str(w.message))

    # n*p cannot be held fixed outside (0, 1]; those p only appear in the n grid
    expected_ps = [q for q in ps if 0.0 < q <= 1.0]
    skipped = len(ps) - len(expected_ps)
    if skipped:
        logger.warning(f"Skipping {skipped} p values outside (0, 1] in the fixed-expectation sweep")

    os.makedirs(output_dir, exist_ok=True)
    curve = curve_frame(n, p)
    curve_csv = os.path.join(output_dir, config.OUTPUT_FILES["curve_csv"])
    curve.to_csv(curve_csv, index=False)
    curve_png = plot_curves(n, p, output_dir, curve=curve)

    grid_df = evaluate_grid(ns, ps, confidence_level=confidence_level, workers=workers)
    grid_csv = os.path.join(output_dir, config.OUTPUT_FILES["grid_csv"])
    grid_df.to_csv(grid_csv, index=False)
    error_png = plot_error_by_n(grid_df, output_dir)

    expected_df = expected_count_grid(expected, expected_ps, confidence_level=confidence_level, workers=workers)
    expected_csv = os.path.join(output_dir, config.OUTPUT_FILES["expected_grid_csv"])
    expected_df.to_csv(expected_csv, index=False)

    report = dict(metrics)
    report.update({
        "curve_max_abs_error": float(curve["abs_error"].max()),
        "grid_cells": int(len(grid_df)),
        "grid_non_viable_cells": int((~grid_df["viable"]).sum()),
        "expected_successes": float(expected),
        "best_p_at_fixed_expected": best_p(expected_df),
        "curve_csv": curve_csv,
        "curve_png": curve_png,
        "grid_csv": grid_csv,
        "error_png": error_png,
        "expected_grid_csv": expected_csv,
    })

    json_path = os.path.join(output_dir, config.OUTPUT_FILES["report_json"])
    with open(json_path, "w") as f:
        json.dump(report, f, indent=2)
    logger.info(f"Report written to {json_path}")

    report["report_path"] = json_path
    return report


def _fmt_pct(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2%}"


def build_summary(report: Dict[str, Any]) -> str:
    """Short plain-text summary of a report dict."""
    lines = [
        f"n={report['n']}, p={report['p']:g} (mean {report['mean']:.3f}, sd {report['std']:.3f})",
        f"P(X={report['k']}): exact {_fmt_pct(report['point_probability'])}, "
        f"normal {_fmt_pct(report['approx_point_density'])}, "
        f"ratio {_fmt_pct(report['point_estimate_ratio'])}",
        f"Total absolute error: {report['total_abs_error']:.4f}",
        f"{report['confidence_level']:.0%} bounds (z={report['z']:.3f}): "
        f"[{report['lower_bound']:.3f}, {report['upper_bound']:.3f}]",
    ]
    if not report["viable"]:
        lines.append("Hypothesis test not viable at this sample size")
    if not report["success_failure_ok"]:
        lines.append(
            f"Success-failure condition not met (n*p or n*(1-p) below {config.SUCCESS_FAILURE_THRESHOLD})"
        )
    return "\n".join(lines)
