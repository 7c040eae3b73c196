"""Search for the power transformation that best normalizes a sample.

The search follows Velez, Correa and Marmolejo-Ramos (2015): evaluate a grid
of Box-Cox or Yeo-Johnson parameters, run several normality tests on each
standardized transform, combine their p-values and keep the parameter whose
transform looks most normal.

Interpretation:
    The combined p-value is used as a score for ranking candidates, not as a
    test of the chosen transform. Because every candidate is scored on the
    same data, the maximum is optimistic.

References:
    Velez, J. I., Correa, J. C. and Marmolejo-Ramos, F. (2015). A new
    approach to the Box-Cox transformation. Frontiers in Applied
    Mathematics and Statistics 1.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import special, stats

from .data_processing import clean_sample
from .stats.combine import P_FLOOR, clamp_pvalues, combine_pvalues, resolve_combine_method
from .stats.normality import NORMALITY_TESTS, NormalityTest, normality_test_label

logger = logging.getLogger(__name__)

DEFAULT_START = 0.01
DEFAULT_LAMBDA_RANGE = (-2.0, 2.0)
LAMBDA_GRID_SIZE = 50
MIN_SEARCH_SIZE = 8

_FAMILY_ALIASES: Dict[str, str] = {
    "bc": "bc",
    "box-cox": "bc",
    "boxcox": "bc",
    "yj": "yj",
    "yeo-johnson": "yj",
    "yeojohnson": "yj",
}


def resolve_family(family: str) -> str:
    """Return ``"bc"`` or ``"yj"`` for a transform family name.

    Raises:
        ValueError: If ``family`` is not a Box-Cox or Yeo-Johnson spelling.
    """
    key = str(family).strip().lower()
    if key not in _FAMILY_ALIASES:
        raise ValueError(f"family must be 'bc' (Box-Cox) or 'yj' (Yeo-Johnson); got {family!r}.")
    return _FAMILY_ALIASES[key]


def power_transform(x, lam: float, family: str = "bc") -> np.ndarray:
    """Apply a Box-Cox or Yeo-Johnson transform with parameter ``lam``.

    Box-Cox: ``(x^lam - 1) / lam``, or ``log(x)`` at ``lam = 0``; requires
    strictly positive values. Yeo-Johnson extends the transform to the whole
    real line.

    Raises:
        ValueError: If Box-Cox is requested for data with values <= 0.
    """
    values = np.asarray(x, dtype=float)
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        if resolve_family(family) == "bc":
            if np.any(values <= 0):
                raise ValueError("Box-Cox transform requires strictly positive values.")
            return special.boxcox(values, float(lam))
        return stats.yeojohnson(values, lmbda=float(lam))


def _lambda_grid(lams) -> np.ndarray:
    try:
        lo, hi = (float(v) for v in lams)
    except (TypeError, ValueError):
        raise ValueError(f"lams must be a pair of numbers, got {lams!r}.") from None
    if not (np.isfinite(lo) and np.isfinite(hi)) or lo > hi:
        raise ValueError(f"lams must be finite with lams[0] <= lams[1], got {lams!r}.")
    return np.linspace(lo, hi, LAMBDA_GRID_SIZE)


def _prepare(x, start: float, family: str) -> np.ndarray:
    values = clean_sample(x, min_size=MIN_SEARCH_SIZE)
    if family == "bc" and np.any(values <= 0):
        if not start > 0:
            raise ValueError(f"start must be positive, got {start!r}.")
        logger.debug("Shifting sample by %.6g so that Box-Cox input is positive",
                     -values.min() + start)
        values = values - values.min() + start
    return values


def _candidates(values: np.ndarray, lambdas: np.ndarray, family: str) -> Tuple[np.ndarray, list]:
    """Transform for every lambda, keeping finite, non-constant results."""
    kept_lambdas = []
    kept = []
    for lam in lambdas:
        transformed = power_transform(values, lam, family)
        if not np.all(np.isfinite(transformed)):
            logger.debug("Discarding lambda=%.4f: transform is not finite", lam)
            continue
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            sd = np.std(transformed, ddof=1)
            standardized = (transformed - transformed.mean()) / sd
        if not np.isfinite(sd):
            logger.debug("Discarding lambda=%.4f: variance of transform overflows", lam)
            continue
        if np.ptp(transformed) == 0 or sd == 0 or not np.all(np.isfinite(standardized)):
            logger.debug("Discarding lambda=%.4f: transform has zero variance", lam)
            continue
        if np.ptp(standardized) == 0:
            logger.debug("Discarding lambda=%.4f: standardized transform is constant", lam)
            continue
        kept_lambdas.append(lam)
        kept.append(standardized)
    return np.asarray(kept_lambdas, dtype=float), kept


def normality_table(
    x,
    start: float = DEFAULT_START,
    family: str = "bc",
    lams: Sequence[float] = DEFAULT_LAMBDA_RANGE,
    combine_method: str = "Stouffer",
    tests: Optional[Sequence[NormalityTest]] = None,
) -> pd.DataFrame:
    """Score every lambda on the search grid.

    Arguments are as for :func:`trans_norm`.

    Returns:
        pandas.DataFrame: One row per surviving lambda with a ``lambda``
        column, one p-value column per normality test (after the
        ``1e-7`` floor) and the ``combined`` p-value.

    Raises:
        ValueError: On invalid arguments, fewer than 8 usable observations,
            or when every lambda yields a degenerate transform.
    """
    family = resolve_family(family)
    method = resolve_combine_method(combine_method)
    tests = list(NORMALITY_TESTS if tests is None else tests)
    if not tests:
        raise ValueError("At least one normality test is required.")
    lambdas = _lambda_grid(lams)

    values = _prepare(x, start, family)
    kept_lambdas, standardized = _candidates(values, lambdas, family)
    if len(kept_lambdas) == 0:
        raise ValueError(
            "No valid transformation candidates: every lambda in the grid "
            "produced a zero-variance (constant) or non-finite transform."
        )
    logger.debug("%d of %d lambda candidates retained", len(kept_lambdas), len(lambdas))

    pvalues = np.array([[test(z) for test in tests] for z in standardized], dtype=float)
    n_floored = int(np.sum(pvalues < P_FLOOR))
    if n_floored:
        logger.debug("Clamped %d p-values to the %.0e floor", n_floored, P_FLOOR)
    pvalues = clamp_pvalues(pvalues)

    table = pd.DataFrame(pvalues, columns=[normality_test_label(t) for t in tests])
    table.insert(0, "lambda", kept_lambdas)
    table["combined"] = [combine_pvalues(row, method) for row in pvalues]
    return table


def trans_norm(
    x,
    start: float = DEFAULT_START,
    family: str = "bc",
    lams: Sequence[float] = DEFAULT_LAMBDA_RANGE,
    combine_method: str = "Stouffer",
    tests: Optional[Sequence[NormalityTest]] = None,
) -> float:
    """Return the transformation parameter that best normalizes ``x``.

    Args:
        x: Sample; missing values are dropped.
        start (float, optional): Offset used when Box-Cox input contains
            values <= 0; the sample becomes ``x - min(x) + start``. Defaults
            to ``0.01``.
        family (str, optional): ``"bc"`` (Box-Cox) or ``"yj"``
            (Yeo-Johnson). Defaults to ``"bc"``.
        lams (Sequence[float], optional): Closed interval searched with 50
            evenly spaced values. Defaults to ``(-2, 2)``.
        combine_method (str, optional): ``"Stouffer"``, ``"Fisher"`` or
            ``"Average"``. Defaults to ``"Stouffer"``.
        tests (Sequence[Callable], optional): Normality tests, each mapping a
            sample to a p-value. Defaults to the six tests in
            :data:`psre.stats.normality.NORMALITY_TESTS`.

    Returns:
        float: The lambda with the largest combined p-value. Ties resolve to
        the smallest such lambda. Always within ``lams``.

    Raises:
        ValueError: On an unknown family or combination rule, an invalid
            range, fewer than 8 usable observations, or a sample for which
            no lambda gives a non-degenerate transform (such as a constant
            sample).
    """
    table = normality_table(
        x, start=start, family=family, lams=lams, combine_method=combine_method, tests=tests
    )
    best = float(table["lambda"].iloc[int(np.argmax(table["combined"].to_numpy()))])
    logger.debug("Best lambda %.4f (combined p=%.4g)", best, table["combined"].max())
    return best
