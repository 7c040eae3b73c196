"""
Combine several p-values into one.

Stouffer and Fisher are delegated to :func:`scipy.stats.combine_pvalues`.
The ``Average`` rule is the arithmetic mean of the p-values. It has no exact
sampling distribution and is kept as a simple, informal summary; it should
not be read as a calibrated p-value.
"""

from __future__ import annotations

from typing import Callable, Dict

import numpy as np
from scipy import stats

P_FLOOR = 1e-7

COMBINE_METHODS = ("Stouffer", "Fisher", "Average")


def clamp_pvalues(pvalues, floor: float = P_FLOOR) -> np.ndarray:
    """Raise every p-value below ``floor`` to exactly ``floor``.

    Zero p-values make both ``log(p)`` and ``Phi^-1(1 - p)`` infinite, so the
    combination formulas need a strictly positive lower bound.
    """
    p = np.asarray(pvalues, dtype=float)
    return np.where(p < floor, floor, p)


def stouffer(pvalues) -> float:
    """Stouffer's Z: ``sum(Phi^-1(1 - p_i)) / sqrt(k)`` referred to ``N(0, 1)``.

    p-values equal to 1 correspond to an infinite negative z-score and are
    left out of the sum. If none remain the combined p-value is 1.
    """
    p = np.asarray(pvalues, dtype=float)
    keep = (p > 0) & (p < 1)
    if not np.any(keep):
        return 1.0
    _, pvalue = stats.combine_pvalues(p[keep], method="stouffer")
    return float(pvalue)


def fisher(pvalues) -> float:
    """Fisher's method: ``-2 sum(log p_i)`` referred to ``chi2(2k)``."""
    p = np.asarray(pvalues, dtype=float)
    _, pvalue = stats.combine_pvalues(p, method="fisher")
    return float(pvalue)


def average(pvalues) -> float:
    """Arithmetic mean of the p-values (informal, not a calibrated test)."""
    return float(np.mean(np.asarray(pvalues, dtype=float)))


_COMBINERS: Dict[str, Callable[[np.ndarray], float]] = {
    "stouffer": stouffer,
    "fisher": fisher,
    "average": average,
}


def resolve_combine_method(method: str) -> str:
    """Validate a combination rule name and return its canonical spelling.

    Raises:
        ValueError: If ``method`` is not Stouffer, Fisher or Average.
    """
    key = str(method).strip().lower()
    if key not in _COMBINERS:
        raise ValueError(
            f"combine_method must be one of {', '.join(COMBINE_METHODS)}; got {method!r}."
        )
    return COMBINE_METHODS[list(_COMBINERS).index(key)]


def combine_pvalues(pvalues, method: str = "Stouffer") -> float:
    """Combine p-values with the named rule.

    Args:
        pvalues: One-dimensional sequence of p-values in ``(0, 1]``.
        method (str, optional): ``"Stouffer"``, ``"Fisher"`` or ``"Average"``
            (case-insensitive). Defaults to ``"Stouffer"``.

    Returns:
        float: Combined p-value.

    Raises:
        ValueError: If ``method`` is unknown or ``pvalues`` is empty.
    """
    name = resolve_combine_method(method)
    p = np.asarray(pvalues, dtype=float)
    if p.size == 0:
        raise ValueError("At least one p-value is required for combination.")
    return _COMBINERS[name.lower()](p)
