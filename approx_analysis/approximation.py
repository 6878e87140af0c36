"""
approximation.py

Core functions for comparing the binomial distribution with its normal
approximation. Every quantity is a pure function of (n, p, k): point,
cumulative and tail probabilities under both families, total absolute error,
point-estimate ratios, and two-sided confidence bounds on the success count.
Uses scipy.stats for the distributions and numpy for vectorized sums.
"""

import logging
import math
import numbers
import warnings
from typing import Any, Dict, Iterator, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.stats import binom, norm

from . import config
from .errors import DegenerateTestWarning, InvalidParameter

logger = logging.getLogger(__name__)

FAMILIES = ("exact", "approx")


class TrialConfig(NamedTuple):
    """Validated (n, p) pair."""

    n: int
    p: float

    @property
    def mean(self) -> float:
        return self.n * self.p

    @property
    def std(self) -> float:
        return math.sqrt(self.n * self.p * (1.0 - self.p))


class ConfidenceBounds(NamedTuple):
    lower: float
    upper: float
    z: float
    confidence_level: float
    viable: bool


# ============================================================================
# Validation
# ============================================================================


def trial_config(n, p) -> TrialConfig:
    """
    Build a validated trial configuration.

    Args:
        n: Number of trials (positive integer)
        p: Success probability in [0, 1]

    Returns:
        TrialConfig

    Raises:
        InvalidParameter: If n is not a positive integer or p is outside [0, 1]
    """
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise InvalidParameter(f"n must be a positive integer, got {n!r}")
    if n <= 0:
        raise InvalidParameter(f"n must be a positive integer, got {n}")

    try:
        p = float(p)
    except (TypeError, ValueError):
        raise InvalidParameter(f"p must be a number in [0, 1], got {p!r}")
    # NaN fails both comparisons
    if not (0.0 <= p <= 1.0):
        raise InvalidParameter(f"p must be in [0, 1], got {p}")

    return TrialConfig(int(n), p)


def _check_count(cfg: TrialConfig, k) -> int:
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidParameter(f"k must be an integer in [0, {cfg.n}], got {k!r}")
    if not (0 <= k <= cfg.n):
        raise InvalidParameter(f"k must be in [0, {cfg.n}], got {k}")
    return int(k)


def _approx_params(cfg: TrialConfig) -> Tuple[float, float]:
    sd = cfg.std
    if sd == 0.0:
        raise InvalidParameter(
            f"normal approximation undefined for p={cfg.p}: standard deviation is zero"
        )
    return cfg.mean, sd


def success_failure_ok(n, p, threshold: float = config.SUCCESS_FAILURE_THRESHOLD) -> bool:
    """True when both n*p and n*(1-p) reach the threshold."""
    cfg = trial_config(n, p)
    return cfg.n * cfg.p >= threshold and cfg.n * (1.0 - cfg.p) >= threshold


def modal_count(n, p) -> int:
    """Most likely success count, floor((n + 1) * p) capped at n."""
    cfg = trial_config(n, p)
    return min(int(math.floor((cfg.n + 1) * cfg.p)), cfg.n)


# ============================================================================
# Point, cumulative and tail probabilities
# ============================================================================


def point_probability(n, p, k) -> float:
    """
    Exact probability of exactly k successes: C(n, k) p^k (1-p)^(n-k).

    Examples:
        - point_probability(10, 0.5, 5) → 0.2461
        - point_probability(10, 0.5, 11) → InvalidParameter
    """
    cfg = trial_config(n, p)
    k = _check_count(cfg, k)
    return float(binom.pmf(k, cfg.n, cfg.p))


def approx_point_density(n, p, k) -> float:
    """
    Normal density at k with mean n*p and sd sqrt(n*p*(1-p)).

    Raises:
        InvalidParameter: If p is 0 or 1 (zero standard deviation)
    """
    cfg = trial_config(n, p)
    k = _check_count(cfg, k)
    mean, sd = _approx_params(cfg)
    return float(norm.pdf(k, loc=mean, scale=sd))


def cumulative_probability(n, p, k) -> float:
    """Exact P(X <= k)."""
    cfg = trial_config(n, p)
    k = _check_count(cfg, k)
    return float(binom.cdf(k, cfg.n, cfg.p))


def approx_cumulative_probability(
    n, p, k, continuity_correction: bool = config.DEFAULT_CONTINUITY_CORRECTION
) -> float:
    """
    Normal approximation of P(X <= k).

    Evaluates Phi((k - mean) / sd). With continuity_correction the evaluation
    point becomes k + 0.5.
    """
    cfg = trial_config(n, p)
    k = _check_count(cfg, k)
    mean, sd = _approx_params(cfg)
    x = k + 0.5 if continuity_correction else k
    return float(norm.cdf((x - mean) / sd))


def tail_probability(n, p, k) -> float:
    """Exact P(X >= k)."""
    cfg = trial_config(n, p)
    k = _check_count(cfg, k)
    return float(binom.sf(k - 1, cfg.n, cfg.p))


def approx_tail_probability(
    n, p, k, continuity_correction: bool = config.DEFAULT_CONTINUITY_CORRECTION
) -> float:
    """Normal approximation of P(X >= k); corrected point is k - 0.5."""
    cfg = trial_config(n, p)
    k = _check_count(cfg, k)
    mean, sd = _approx_params(cfg)
    x = k - 0.5 if continuity_correction else k
    return float(norm.sf((x - mean) / sd))


# ============================================================================
# Curves
# ============================================================================


def probability_curve(n, p, family: str = "exact") -> Iterator[Tuple[int, float]]:
    """
    Lazily yield (k, probability) for k = 0..n under one family.

    Args:
        n: Number of trials
        p: Success probability
        family: 'exact' (binomial pmf) or 'approx' (normal density)

    Returns:
        Iterator of (k, probability) pairs
    """
    cfg = trial_config(n, p)
    if family not in FAMILIES:
        raise InvalidParameter(f"family must be one of {FAMILIES}, got {family!r}")

    if family == "exact":
        return ((k, float(binom.pmf(k, cfg.n, cfg.p))) for k in range(cfg.n + 1))

    mean, sd = _approx_params(cfg)
    return ((k, float(norm.pdf(k, loc=mean, scale=sd))) for k in range(cfg.n + 1))


def _curve_arrays(cfg: TrialConfig) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    mean, sd = _approx_params(cfg)
    ks = np.arange(cfg.n + 1)
    return ks, binom.pmf(ks, cfg.n, cfg.p), norm.pdf(ks, loc=mean, scale=sd)


def curve_frame(n, p) -> pd.DataFrame:
    """Exact and approximate point probabilities side by side, one row per k."""
    cfg = trial_config(n, p)
    ks, exact, approx = _curve_arrays(cfg)
    return pd.DataFrame({
        "k": ks,
        "exact": exact,
        "approx": approx,
        "abs_error": np.abs(exact - approx),
    })


# ============================================================================
# Error metrics
# ============================================================================


def total_absolute_error(n, p) -> float:
    """
    Sum over k = 0..n of |pmf(k) - density(k)|.

    Shrinks toward 0 as n*p and n*(1-p) grow; for a fixed expected count it
    is smallest near p = 0.5.
    """
    cfg = trial_config(n, p)
    _, exact, approx = _curve_arrays(cfg)
    return float(np.abs(exact - approx).sum())


def point_estimate_ratio(n, p, k: Optional[int] = None) -> float:
    """
    Ratio of exact point probability to approximate density at k.

    Values above 1 mean the normal curve underestimates the exact probability.
    k defaults to the most likely count (see modal_count).
    """
    if k is None:
        k = modal_count(n, p)
    return point_probability(n, p, k) / approx_point_density(n, p, k)


def confidence_bounds(n, p, confidence_level: float = config.DEFAULT_CONFIDENCE_LEVEL) -> ConfidenceBounds:
    """
    Two-sided approximate rejection bounds n*p +/- z*sqrt(n*p*(1-p)).

    Bounds are returned as computed. If either one lies outside [0, n] a
    DegenerateTestWarning is emitted and the result is marked not viable.

    Examples:
        - confidence_level=0.95 → z = 1.960
        - confidence_level=0.99 → z = 2.576
    """
    cfg = trial_config(n, p)
    try:
        level = float(confidence_level)
    except (TypeError, ValueError):
        raise InvalidParameter(f"confidence_level must be a number in (0, 1), got {confidence_level!r}")
    if not (0.0 < level < 1.0):
        raise InvalidParameter(f"confidence_level must be in (0, 1), got {confidence_level}")

    mean, sd = _approx_params(cfg)
    z = float(norm.ppf(1.0 - (1.0 - level) / 2.0))
    lower = mean - z * sd
    upper = mean + z * sd
    viable = lower >= 0.0 and upper <= cfg.n

    if not viable:
        warnings.warn(
            f"Confidence bounds [{lower:.3f}, {upper:.3f}] at {level:.1%} fall outside "
            f"[0, {cfg.n}] for n={cfg.n}, p={cfg.p}: hypothesis test not viable at this sample size",
            DegenerateTestWarning,
            stacklevel=2,
        )

    return ConfidenceBounds(lower, upper, z, level, viable)


def compare(
    n, p, k: Optional[int] = None, confidence_level: float = config.DEFAULT_CONFIDENCE_LEVEL
) -> Dict[str, Any]:
    """
    Bundle the error metrics for one configuration.

    Returns:
        Dict with keys:
            - 'n', 'p', 'mean', 'std'
            - 'k': Count the point metrics were evaluated at
            - 'point_probability', 'approx_point_density', 'point_estimate_ratio'
            - 'total_abs_error'
            - 'confidence_level', 'z', 'lower_bound', 'upper_bound', 'viable'
            - 'success_failure_ok'
    """
    cfg = trial_config(n, p)
    if k is None:
        k = modal_count(cfg.n, cfg.p)

    exact = point_probability(cfg.n, cfg.p, k)
    approx = approx_point_density(cfg.n, cfg.p, k)
    bounds = confidence_bounds(cfg.n, cfg.p, confidence_level)

    logger.debug(f"Compared n={cfg.n}, p={cfg.p} at k={k}: exact={exact:.4f}, approx={approx:.4f}")

    return {
        "n": cfg.n,
        "p": cfg.p,
        "mean": cfg.mean,
        "std": cfg.std,
        "k": int(k),
        "point_probability": exact,
        "approx_point_density": approx,
        "point_estimate_ratio": exact / approx,
        "total_abs_error": total_absolute_error(cfg.n, cfg.p),
        "confidence_level": bounds.confidence_level,
        "z": bounds.z,
        "lower_bound": bounds.lower,
        "upper_bound": bounds.upper,
        "viable": bounds.viable,
        "success_failure_ok": success_failure_ok(cfg.n, cfg.p),
    }
