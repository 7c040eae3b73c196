"""Provide reference-line fits used by quantile comparison tables.

This module supports:
- the quartile line through the 25th/75th empirical and theoretical
  percentiles, and
- a robust (Huber M-estimator) straight-line fit by iteratively reweighted
  least squares.
"""

from __future__ import annotations

from typing import Callable, Dict, Tuple

import numpy as np
import statsmodels.api as sm

ROBUST_MAXITER = 50
ROBUST_TOL = 1e-8


def quartile_line(
    ordered: np.ndarray, quantile: Callable[..., np.ndarray], **dist_params
) -> Tuple[float, float]:
    """Return the line through the sample and theoretical quartiles.

    Args:
        ordered (numpy.ndarray): Sample values (order does not matter).
        quantile (Callable): Quantile function of the reference distribution.
        **dist_params: Parameters forwarded to ``quantile``.

    Returns:
        tuple[float, float]: Intercept ``a`` and slope ``b`` with
        ``b = (x75 - x25) / (z75 - z25)`` and ``a = x25 - b * z25``.

    Note:
        Sample quartiles use linear interpolation between order statistics
        (Hyndman-Fan type 7).
    """
    x25, x75 = np.quantile(np.asarray(ordered, dtype=float), [0.25, 0.75])
    z25, z75 = np.asarray(quantile(np.array([0.25, 0.75]), **dist_params), dtype=float)
    slope = (x75 - x25) / (z75 - z25)
    intercept = x25 - slope * z25
    return float(intercept), float(slope)


def robust_line(
    x: np.ndarray,
    y: np.ndarray,
    maxiter: int = ROBUST_MAXITER,
    tol: float = ROBUST_TOL,
) -> Dict[str, float]:
    """Fit ``y = a + b x`` with a Huber M-estimator.

    Args:
        x (numpy.ndarray): Regressor values.
        y (numpy.ndarray): Response values.
        maxiter (int, optional): Iteration cap for IRLS.
        tol (float, optional): Convergence tolerance for IRLS.

    Returns:
        dict[str, float]: ``a`` (intercept), ``b`` (slope), their standard
        errors ``se_a``/``se_b`` and the robust residual ``scale``.

    Raises:
        ValueError: If fewer than two finite pairs are available or ``x`` is
            constant.

    Note:
        Uses Huber's psi with tuning constant 1.345 and a MAD scale estimate,
        the usual defaults for robust linear models. Given the iteration cap
        and tolerance the fit is deterministic.

    References:
        Huber, P. J. (1981). Robust Statistics.
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    mask = np.isfinite(x_arr) & np.isfinite(y_arr)
    x_arr = x_arr[mask]
    y_arr = y_arr[mask]
    if len(x_arr) < 2:
        raise ValueError("Insufficient valid data for robust regression.")
    if np.ptp(x_arr) == 0:
        raise ValueError("Insufficient variance in x for robust regression.")

    model = sm.RLM(y_arr, sm.add_constant(x_arr), M=sm.robust.norms.HuberT())
    fit = model.fit(maxiter=maxiter, tol=tol)
    params = np.asarray(fit.params, dtype=float)
    bse = np.asarray(fit.bse, dtype=float)

    return {
        "a": float(params[0]),
        "b": float(params[1]),
        "se_a": float(bse[0]),
        "se_b": float(bse[1]),
        "scale": float(fit.scale),
    }
