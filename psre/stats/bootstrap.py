"""
Nonparametric bootstrap resampling and confidence intervals.

Statistics are callables taking an integer index array (the rows of the
resampled data) and returning a 1-D array with one value per quantity of
interest, so a single resampling run serves several estimates at once.
"""

from __future__ import annotations

import logging
import warnings
from typing import Callable, Optional

import numpy as np
from scipy import stats

logger = logging.getLogger(__name__)

CI_METHODS = ("perc", "norm", "bca")

IndexStatistic = Callable[[np.ndarray], np.ndarray]


def bootstrap_replicates(
    statistic: IndexStatistic,
    n: int,
    n_boot: int,
    random_state=None,
) -> np.ndarray:
    """Evaluate ``statistic`` on ``n_boot`` resamples of ``n`` rows.

    Args:
        statistic (Callable): Maps an index array of length ``n`` to a 1-D
            array of statistics.
        n (int): Number of rows in the original data.
        n_boot (int): Number of bootstrap resamples.
        random_state: Seed or :class:`numpy.random.Generator`.

    Returns:
        numpy.ndarray: Replicates with shape ``(n_boot, k)``.
    """
    if n_boot < 1:
        raise ValueError("n_boot must be >= 1")
    rng = np.random.default_rng(random_state)
    rows = []
    for _ in range(int(n_boot)):
        idx = rng.integers(0, n, size=n)
        rows.append(np.atleast_1d(np.asarray(statistic(idx), dtype=float)))
    return np.vstack(rows)


def jackknife_values(statistic: IndexStatistic, n: int) -> np.ndarray:
    """Leave-one-out values of ``statistic`` with shape ``(n, k)``."""
    all_idx = np.arange(n)
    return np.vstack(
        [np.atleast_1d(np.asarray(statistic(np.delete(all_idx, i)), dtype=float))
         for i in range(n)]
    )


def _percentile_interval(replicates, probs):
    return np.nanquantile(replicates, probs, axis=0)


def _bca_interval(t0, replicates, jack, level):
    alpha = (1.0 - level) / 2.0
    z_alpha = stats.norm.ppf([alpha, 1.0 - alpha])
    out = np.full((len(t0), 2), np.nan)

    for j in range(len(t0)):
        reps = replicates[:, j]
        reps = reps[np.isfinite(reps)]
        prop_below = np.mean(reps < t0[j]) if len(reps) else np.nan
        z0 = stats.norm.ppf(prop_below)
        if not np.isfinite(z0):
            warnings.warn(
                "All bootstrap replicates fall on one side of the estimate; "
                "BCa interval is undefined.",
                UserWarning,
                stacklevel=3,
            )
            continue
        empinf = jack[:, j].mean() - jack[:, j]
        denom = 6.0 * np.sum(empinf**2) ** 1.5
        accel = np.sum(empinf**3) / denom if denom > 0 else 0.0
        adj = stats.norm.cdf(z0 + (z0 + z_alpha) / (1.0 - accel * (z0 + z_alpha)))
        out[j] = np.quantile(reps, adj)
    return out


def bootstrap_ci(
    t0,
    replicates,
    level: float = 0.95,
    method: str = "perc",
    jackknife: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Bootstrap confidence intervals for one or more statistics.

    Args:
        t0: Estimates on the original data, shape ``(k,)``.
        replicates: Bootstrap replicates, shape ``(R, k)``.
        level (float, optional): Confidence level. Defaults to ``0.95``.
        method (str, optional): ``"perc"`` (percentile), ``"norm"``
            (bias-corrected normal approximation) or ``"bca"``
            (bias-corrected and accelerated). Defaults to ``"perc"``.
        jackknife: Leave-one-out values with shape ``(n, k)``; required for
            ``"bca"``.

    Returns:
        numpy.ndarray: Lower and upper limits, shape ``(k, 2)``.

    Raises:
        ValueError: If ``method`` or ``level`` is invalid, or ``"bca"`` is
            requested without jackknife values.

    References:
        Davison, A. C. and Hinkley, D. V. (1997). Bootstrap Methods and
        their Application, chapter 5.
    """
    if method not in CI_METHODS:
        raise ValueError(f"ci_method must be one of {', '.join(CI_METHODS)}; got {method!r}.")
    if not 0 < level < 1:
        raise ValueError("level must lie strictly between 0 and 1.")

    t0 = np.atleast_1d(np.asarray(t0, dtype=float))
    reps = np.asarray(replicates, dtype=float).reshape(-1, len(t0))
    n_finite = np.sum(np.isfinite(reps), axis=0)
    if np.any(n_finite < 2):
        warnings.warn(
            "Fewer than two finite bootstrap replicates for some statistics.",
            UserWarning,
            stacklevel=2,
        )

    alpha = (1.0 - level) / 2.0
    if method == "perc":
        bounds = _percentile_interval(reps, [alpha, 1.0 - alpha]).T
    elif method == "norm":
        bias = np.nanmean(reps, axis=0) - t0
        half = stats.norm.ppf(1.0 - alpha) * np.nanstd(reps, axis=0, ddof=1)
        center = t0 - bias
        bounds = np.column_stack([center - half, center + half])
    else:
        if jackknife is None:
            raise ValueError("BCa intervals require jackknife values.")
        jack = np.asarray(jackknife, dtype=float).reshape(-1, len(t0))
        bounds = _bca_interval(t0, reps, jack, level)

    logger.debug("Computed %s bootstrap intervals from %d replicates", method, len(reps))
    return bounds
