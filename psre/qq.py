"""
Quantile comparison (QQ) coordinates with pointwise confidence envelopes.
"""

# Algorithm summary: sort the cleaned sample, map plotting positions through
# the theoretical quantile function, fit a reference line (quartile or
# robust), and surround it with the order-statistic standard error
# (b / d(z)) * sqrt(P (1 - P) / n) scaled by a normal critical value.

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy import stats

from .data_processing import clean_sample
from .distributions import resolve_distribution
from .schema import QQ_COLUMNS as COLS
from .stats.regression import quartile_line, robust_line

logger = logging.getLogger(__name__)

LINE_METHODS = ("quartiles", "robust", "none")


@dataclass(frozen=True)
class QQPoints:
    """Quantile comparison table plus the reference line through it.

    Attributes:
        table: Rows sorted by ``observed`` with columns ``observed``,
            ``theoretical``, ``lower`` and ``upper``.
        intercept: Intercept ``a`` of the reference line.
        slope: Slope ``b`` of the reference line.
    """

    table: pd.DataFrame
    intercept: float
    slope: float

    @property
    def fitted(self) -> np.ndarray:
        """Reference-line value at each theoretical quantile."""
        return self.intercept + self.slope * self.table[COLS.theoretical].to_numpy()

    def line_endpoints(self):
        """Return ``((z_min, y_min), (z_max, y_max))`` for drawing the line."""
        z = self.table[COLS.theoretical].to_numpy()
        finite = z[np.isfinite(z)]
        lo, hi = float(finite.min()), float(finite.max())
        return (lo, self.intercept + self.slope * lo), (hi, self.intercept + self.slope * hi)


def plotting_positions(n: int) -> np.ndarray:
    """Probabilities ``(i - a) / (n + 1 - 2a)`` for ``i = 1..n``.

    ``a = 3/8`` for ``n <= 10`` and ``1/2`` otherwise.
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    a = 3.0 / 8.0 if n <= 10 else 0.5
    return (np.arange(1, n + 1) - a) / (n + 1 - 2 * a)


def qq_points(x, distribution="norm", line="quartiles", conf=0.95, **dist_params) -> QQPoints:
    """Coordinates for a quantile comparison plot with confidence bounds.

    Args:
        x: Sample; missing values are dropped.
        distribution (str, optional): Theoretical family identifier resolved
            through :mod:`psre.distributions`. Defaults to ``"norm"``.
        line (str, optional): ``"quartiles"``, ``"robust"`` or ``"none"``.
            ``"none"`` still computes the quartile line, which the bounds
            are built around. Defaults to ``"quartiles"``.
        conf (float, optional): Confidence level of the pointwise envelope.
            Defaults to ``0.95``.
        **dist_params: Shape/location/scale parameters of the family using
            scipy keyword names (for example ``df=3`` for ``"t"`` or
            ``"chisq"``).

    Returns:
        QQPoints: Table sorted by observed value and the line coefficients.

    Raises:
        ValueError: If the family or line method is unknown, ``conf`` is not
            in ``(0, 1)``, or fewer than two values remain after cleaning.

    Note:
        Where the theoretical density is zero at a plotting position the
        standard error is infinite. Such rows are kept and carry non-finite
        ``lower``/``upper`` values so the caller can filter them.
    """
    family = resolve_distribution(distribution)
    if line not in LINE_METHODS:
        raise ValueError(f"line must be one of {', '.join(LINE_METHODS)}; got {line!r}.")
    if not 0 < conf < 1:
        raise ValueError("conf must lie strictly between 0 and 1.")

    ordered = np.sort(clean_sample(x, min_size=2))
    n = len(ordered)
    probs = plotting_positions(n)
    z = np.asarray(family.quantile(probs, **dist_params), dtype=float)

    if line == "robust":
        fit = robust_line(z, ordered)
        intercept, slope = fit["a"], fit["b"]
    else:
        intercept, slope = quartile_line(ordered, family.quantile, **dist_params)

    crit = stats.norm.ppf(1.0 - (1.0 - conf) / 2.0)
    density = np.asarray(family.density(z, **dist_params), dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        se = (slope / density) * np.sqrt(probs * (1.0 - probs) / n)
    n_bad = int(np.sum(~np.isfinite(se)))
    if n_bad:
        logger.debug("%d quantile positions have zero theoretical density", n_bad)

    fitted = intercept + slope * z
    # abs() keeps lower <= upper when a negative slope makes se negative.
    half = crit * np.abs(se)

    table = pd.DataFrame(
        {
            COLS.observed: ordered,
            COLS.theoretical: z,
            COLS.lower: fitted - half,
            COLS.upper: fitted + half,
        }
    )
    return QQPoints(table=table, intercept=float(intercept), slope=float(slope))
