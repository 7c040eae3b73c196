"""Nonparametric association measured by the R^2 of a LOESS fit.

``loess_association(x, y)`` regresses ``y`` on ``x`` with a local-linear,
tricube-weighted smoother (degree-1 LOESS without robustness iterations)
and returns the squared correlation between ``y`` and the fitted values.
The span is chosen by generalized cross-validation,

    ``GCV(span) = n * RSS / (n - tr(S))^2``,

where ``S`` is the smoother matrix. The fit at ``x_i`` is a weighted sum
``sum_j S_ij y_j``; the diagonal entry ``S_ii`` is the weight point ``i``
receives in its own local fit, so the trace comes out of the same pass that
produces the fitted values.

The measure is asymmetric: the association of ``y`` on ``x`` generally
differs from ``x`` on ``y``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SPAN_GRID = np.linspace(0.2, 0.95, 16)
MIN_PAIRS = 5
# Rows of the distance matrix processed at once.
_CHUNK = 256


def local_linear(x: np.ndarray, y: np.ndarray, span: float) -> Tuple[np.ndarray, np.ndarray]:
    """Degree-1 LOESS fit at every observation.

    Each local fit uses the ``floor(span * n)`` nearest neighbours of the
    target point, weighted by the tricube of distance over the largest
    neighbour distance. Where the neighbourhood has no spread in ``x`` the
    fit falls back to a weighted mean.

    Returns:
        tuple: ``(fitted, leverage)``, where ``leverage[i]`` is ``S_ii``.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    n = len(x)
    q = min(max(int(np.floor(span * n)), 2), n)
    fitted = np.empty(n)
    leverage = np.empty(n)
    for start in range(0, n, _CHUNK):
        rows = slice(start, min(start + _CHUNK, n))
        d = x[None, :] - x[rows, None]
        dist = np.abs(d)
        radius = np.partition(dist, q - 1, axis=1)[:, q - 1]
        # Stretch the radius slightly so the q-th neighbour keeps some weight.
        radius = radius[:, None] * 1.001
        with np.errstate(divide="ignore", invalid="ignore"):
            u = np.where(radius > 0, np.clip(dist / radius, 0.0, 1.0), (dist > 0).astype(float))
        w = (1.0 - u**3) ** 3

        s0 = w.sum(axis=1)
        s1 = (w * d).sum(axis=1)
        s2 = (w * d**2).sum(axis=1)
        denom = s0 * s2 - s1**2
        linear = (s2 > 0) & (denom > 1e-10 * s0 * s2)

        safe = np.where(linear, denom, 1.0)
        weights = np.where(
            linear[:, None],
            w * (s2[:, None] - d * s1[:, None]) / safe[:, None],
            w / s0[:, None],
        )
        fitted[rows] = weights @ y
        leverage[rows] = np.where(linear, s2 / safe, 1.0 / s0)
    return fitted, leverage


def gcv_span(x: np.ndarray, y: np.ndarray, spans: Sequence[float] = SPAN_GRID) -> float:
    """Return the span in ``spans`` with the smallest GCV score."""
    n = len(x)
    best_span, best_score = None, np.inf
    for span in spans:
        # A local linear fit needs at least three neighbours.
        if span * n < 3:
            continue
        fitted, leverage = local_linear(x, y, span)
        rss = float(np.sum((y - fitted) ** 2))
        dof = n - float(leverage.sum())
        if dof <= 0:
            continue
        score = n * rss / dof**2
        if score < best_score:
            best_span, best_score = float(span), score
    if best_span is None:
        raise ValueError("No span in the grid leaves positive residual degrees of freedom.")
    logger.debug("GCV selected span %.3f (score %.4g)", best_span, best_score)
    return best_span


def loess_association(x, y, spans: Sequence[float] = SPAN_GRID) -> float:
    """R^2 of a GCV-tuned LOESS regression of ``y`` on ``x``.

    Args:
        x: Predictor values.
        y: Response values; pairs with a missing value are dropped.
        spans (Sequence[float], optional): Candidate spans (fractions of the
            data used in each local fit).

    Returns:
        float: Squared correlation between ``y`` and the LOESS fit.

    Raises:
        ValueError: If ``x`` and ``y`` differ in length, fewer than 5
            complete pairs remain, or either variable is constant.
    """
    x_arr = pd.to_numeric(pd.Series(np.asarray(x, dtype=object)), errors="coerce").to_numpy(float)
    y_arr = pd.to_numeric(pd.Series(np.asarray(y, dtype=object)), errors="coerce").to_numpy(float)
    if len(x_arr) != len(y_arr):
        raise ValueError("x and y must have the same length.")
    mask = np.isfinite(x_arr) & np.isfinite(y_arr)
    x_arr, y_arr = x_arr[mask], y_arr[mask]
    if len(x_arr) < MIN_PAIRS:
        raise ValueError(f"At least {MIN_PAIRS} complete pairs are required.")
    if np.ptp(x_arr) == 0 or np.ptp(y_arr) == 0:
        raise ValueError("x and y must both vary.")

    span = gcv_span(x_arr, y_arr, spans)
    fitted, _ = local_linear(x_arr, y_arr, span)
    if np.ptp(fitted) == 0:
        return 0.0
    return float(np.corrcoef(y_arr, fitted)[0, 1] ** 2)


def association_matrix(
    data: pd.DataFrame, columns: Optional[Sequence[str]] = None, spans: Sequence[float] = SPAN_GRID
) -> pd.DataFrame:
    """LOESS association for every ordered pair of columns.

    Entry ``[a, b]`` is the association of ``b`` (response) on ``a``
    (predictor). The diagonal is 1.

    Args:
        data (pandas.DataFrame): Source data.
        columns (Sequence[str], optional): Columns to use; defaults to all
            numeric columns.
        spans (Sequence[float], optional): Candidate spans for GCV.

    Returns:
        pandas.DataFrame: Square matrix indexed and labelled by column name.
    """
    if columns is None:
        columns = list(data.select_dtypes(include="number").columns)
    missing = [c for c in columns if c not in data.columns]
    if missing:
        raise ValueError(f"Columns not found in data: {missing}")

    out = pd.DataFrame(np.eye(len(columns)), index=columns, columns=columns)
    for a in columns:
        for b in columns:
            if a != b:
                out.loc[a, b] = loess_association(data[a], data[b], spans)
    return out
