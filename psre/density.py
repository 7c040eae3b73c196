"""Kernel density estimates with variability bands and a matched normal reference.

The table produced here draws two ribbons on a common grid:

- the kernel density estimate of the sample with the Bowman-Azzalini
  variability band, built on the square-root scale where the variance of a
  Gaussian-kernel estimate is approximately constant, and
- the density a Gaussian-kernel estimate would have on average if the data
  were normal with the sample mean and standard deviation, together with its
  exact pointwise sampling variance.

If the observed curve leaves the normal band, the sample departs from
normality in a way that cannot be attributed to smoothing noise.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

from .data_processing import clean_sample, require_variance
from .schema import DENSITY_COLUMNS as COLS

logger = logging.getLogger(__name__)

BAND_MULTIPLIER = 2.0
DEFAULT_GRIDSIZE = 512
DEFAULT_CUT = 3.0


def select_grid(values: np.ndarray, bw="silverman", gridsize=DEFAULT_GRIDSIZE, cut=DEFAULT_CUT):
    """Fit a Gaussian-kernel density estimate and return its grid and bandwidth.

    Args:
        values (numpy.ndarray): Cleaned, non-constant sample.
        bw (str | float, optional): Bandwidth rule understood by
            :class:`statsmodels.nonparametric.kde.KDEUnivariate` (``"silverman"``,
            ``"scott"``, ``"normal_reference"``) or a positive float.
        gridsize (int, optional): Number of evaluation points.
        cut (float, optional): Grid extends ``cut`` bandwidths beyond the data.

    Returns:
        tuple[numpy.ndarray, float]: Evaluation grid and bandwidth ``h``.

    Raises:
        ValueError: If the selected bandwidth is not positive and finite.
    """
    if not isinstance(bw, str) and not (np.isfinite(bw) and bw > 0):
        raise ValueError(f"Bandwidth must be positive and finite, got {bw!r}.")

    kde = sm.nonparametric.KDEUnivariate(values)
    kde.fit(kernel="gau", bw=bw, fft=True, gridsize=gridsize, cut=cut)
    h = float(kde.bw)
    if not np.isfinite(h) or h <= 0:
        raise ValueError(f"Selected bandwidth must be positive and finite, got {h!r}.")
    logger.debug("KDE bandwidth %.6g on %d grid points", h, len(kde.support))
    return np.asarray(kde.support, dtype=float), h


def variability_band(values: np.ndarray, grid: np.ndarray, h: float):
    """Gaussian-kernel estimate on ``grid`` with its variability band.

    The standard error on the square-root scale is
    ``sqrt(int K^2 / (4 n h))``, where ``int K^2 = phi(0; 0, sqrt(2))`` for the
    standard normal kernel. The band is ``(sqrt(f) +/- 2 se)^2`` with the
    lower limit truncated at zero before squaring.

    Returns:
        tuple[numpy.ndarray, numpy.ndarray, numpy.ndarray]: Estimate, lower
        and upper limits at each grid point.

    References:
        Bowman, A. W. and Azzalini, A. (1997). Applied Smoothing Techniques
        for Data Analysis, section 2.3.
    """
    n = len(values)
    kde = stats.gaussian_kde(values, bw_method=h / np.std(values, ddof=1))
    estimate = kde(grid)

    se = np.sqrt(stats.norm.pdf(0.0, scale=np.sqrt(2.0)) / (4.0 * n * h))
    root = np.sqrt(estimate)
    upper = (root + BAND_MULTIPLIER * se) ** 2
    lower = np.maximum(root - BAND_MULTIPLIER * se, 0.0) ** 2
    return estimate, lower, upper


def normal_reference_band(grid: np.ndarray, xbar: float, sd: float, h: float, n: int):
    """Mean and pointwise band of a kernel estimate under normality.

    For ``X ~ N(xbar, sd^2)`` and a Gaussian kernel of bandwidth ``h``, the
    expected estimate is ``phi(t; xbar, sqrt(sd^2 + h^2))`` and its variance is

        ``[phi(0; 0, sqrt(2 h^2)) phi(t; xbar, sqrt(sd^2 + h^2 / 2)) - mean^2] / n``.

    Returns:
        tuple[numpy.ndarray, numpy.ndarray, numpy.ndarray]: Mean density,
        lower and upper limits.
    """
    mean = stats.norm.pdf(grid, xbar, np.sqrt(sd**2 + h**2))
    var = (
        stats.norm.pdf(0.0, 0.0, np.sqrt(2.0 * h**2))
        * stats.norm.pdf(grid, xbar, np.sqrt(sd**2 + 0.5 * h**2))
        - mean**2
    ) / n
    # Far in the tails both terms underflow and the difference can round below zero.
    half = BAND_MULTIPLIER * np.sqrt(np.maximum(var, 0.0))
    return mean, mean - half, mean + half


def norm_band(x, bw="silverman", gridsize=DEFAULT_GRIDSIZE, cut=DEFAULT_CUT) -> pd.DataFrame:
    """Kernel density of a sample with a normal-density overlay and bands.

    Args:
        x: Sample; missing values are dropped.
        bw (str | float, optional): Bandwidth rule or value. Defaults to
            Silverman's rule of thumb.
        gridsize (int, optional): Number of evaluation points. Defaults to 512.
        cut (float, optional): Grid extension in bandwidths. Defaults to 3.

    Returns:
        pandas.DataFrame: One row per grid point with columns
        ``eval_point``, ``obs_density``, ``obs_lower``, ``obs_upper``,
        ``normal_density``, ``normal_lower`` and ``normal_upper``.

    Raises:
        ValueError: If fewer than two values remain after cleaning, the
            sample is constant, or the bandwidth is invalid.

    Note:
        Both curves share the same grid and bandwidth, so their bands are
        directly comparable.
    """
    values = clean_sample(x, min_size=2)
    require_variance(values)

    grid, h = select_grid(values, bw=bw, gridsize=gridsize, cut=cut)
    obs, obs_lower, obs_upper = variability_band(values, grid, h)

    xbar = float(np.mean(values))
    sd = float(np.std(values, ddof=1))
    normal, normal_lower, normal_upper = normal_reference_band(grid, xbar, sd, h, len(values))

    return pd.DataFrame(
        {
            COLS.eval_point: grid,
            COLS.obs_density: obs,
            COLS.obs_lower: obs_lower,
            COLS.obs_upper: obs_upper,
            COLS.normal_density: normal,
            COLS.normal_lower: normal_lower,
            COLS.normal_upper: normal_upper,
        }
    )
