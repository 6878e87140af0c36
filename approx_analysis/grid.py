"""Grid sweeps over trial configurations.

Evaluates the approximation metrics for every (n, p) cell of a grid and returns
a tidy DataFrame for charting. Cells are independent, so a process pool can
compute them in any order.
"""
from __future__ import annotations

import logging
import warnings
from itertools import product
from multiprocessing import Pool
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from . import config
from .approximation import compare
from .errors import DegenerateTestWarning, InvalidParameter

logger = logging.getLogger(__name__)

METRIC_COLUMNS = [
    "mean",
    "std",
    "k",
    "point_probability",
    "approx_point_density",
    "point_estimate_ratio",
    "total_abs_error",
    "z",
    "lower_bound",
    "upper_bound",
]

COLUMNS = ["n", "p", "confidence_level"] + METRIC_COLUMNS + ["viable", "success_failure_ok", "error"]


def evaluate_config(n, p, confidence_level: float = config.DEFAULT_CONFIDENCE_LEVEL) -> Dict[str, Any]:
    """Compute one grid row.

    Bound warnings are folded into the 'viable' column. An invalid cell (for
    example p=0, where the normal approximation is undefined) gets NaN metrics
    and the error message instead of aborting the sweep.
    """
    row: Dict[str, Any] = {"n": n, "p": p, "confidence_level": confidence_level, "error": None}
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DegenerateTestWarning)
            row.update(compare(n, p, confidence_level=confidence_level))
    except InvalidParameter as e:
        row.update({col: np.nan for col in METRIC_COLUMNS})
        row.update({"viable": False, "success_failure_ok": False, "error": str(e)})
    return row


def _evaluate_config_star(args: Tuple[Any, ...]) -> Dict[str, Any]:
    return evaluate_config(*args)


def _run_tasks(task_args: List[Tuple[Any, ...]], workers: int, desc: str) -> List[Dict[str, Any]]:
    if workers > 1:
        with Pool(workers) as pool:
            return list(
                tqdm(
                    pool.imap_unordered(_evaluate_config_star, task_args),
                    total=len(task_args),
                    desc=desc,
                )
            )
    return [evaluate_config(*args) for args in tqdm(task_args, desc=desc)]


def _to_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=COLUMNS)
    df = df.sort_values(["n", "p"]).reset_index(drop=True)

    n_errors = int(df["error"].notna().sum())
    n_degenerate = int((~df["viable"] & df["error"].isna()).sum())
    if n_errors:
        logger.warning(f"{n_errors} of {len(df)} cells could not be evaluated")
    if n_degenerate:
        logger.warning(
            f"{n_degenerate} of {len(df)} cells have confidence bounds outside [0, n]; "
            "hypothesis test not viable there"
        )
    return df


def evaluate_grid(
    ns: Iterable[int],
    ps: Iterable[float],
    confidence_level: float = config.DEFAULT_CONFIDENCE_LEVEL,
    workers: int = 1,
) -> pd.DataFrame:
    """Evaluate every (n, p) combination.

    Parameters
    ----------
    ns : iterable of int
        Trial counts.
    ps : iterable of float
        Success probabilities.
    confidence_level : float
        Level used for the confidence bounds.
    workers : int
        Process count; 1 runs sequentially.

    Returns
    -------
    DataFrame
        One row per (n, p), sorted by n then p, with columns COLUMNS.
    """
    task_args = [(n, p, confidence_level) for n, p in product(list(ns), list(ps))]
    logger.info(f"Evaluating {len(task_args)} grid cells with {workers} workers")
    return _to_frame(_run_tasks(task_args, workers, "Evaluating grid"))


def expected_count_grid(
    expected: float,
    ps: Iterable[float],
    confidence_level: float = config.DEFAULT_CONFIDENCE_LEVEL,
    workers: int = 1,
) -> pd.DataFrame:
    """Evaluate configurations that share the same expected success count.

    For each p, n is round(expected / p) (at least 1), so n*p stays close to
    `expected` while p varies.
    """
    if not expected > 0:
        raise InvalidParameter(f"expected successes must be positive, got {expected}")

    task_args = []
    for p in ps:
        if not (0.0 < p <= 1.0):
            raise InvalidParameter(f"p must be in (0, 1] to hold n*p fixed, got {p}")
        n = max(1, int(round(expected / p)))
        task_args.append((n, p, confidence_level))

    logger.info(f"Evaluating {len(task_args)} configurations with n*p ~= {expected}")
    df = _to_frame(_run_tasks(task_args, workers, "Evaluating fixed-expectation grid"))
    df.insert(2, "expected", expected)
    return df


def best_p(df: pd.DataFrame) -> Optional[float]:
    """p with the smallest total absolute error among evaluable rows."""
    ok = df[df["error"].isna()]
    if ok.empty:
        return None
    return float(ok.loc[ok["total_abs_error"].idxmin(), "p"])
