"""
Cleans numeric samples before any density, quantile or transform computation.
"""

# Every public routine in the package routes its input through clean_sample:
# values are coerced to float, missing and non-finite entries are dropped
# (never imputed), and the remaining observations keep their input order.

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def clean_sample(x, min_size=2, name="x"):
    """Coerce a sample to a 1-D float array and drop missing values.

    Lists, tuples, numpy arrays and pandas Series are accepted. Entries that
    cannot be parsed as numbers are treated as missing, as are ``inf`` and
    ``-inf``.

    Args:
        x: Sequence of observations.
        min_size (int, optional): Minimum number of values required after
            cleaning. Defaults to ``2``.
        name (str, optional): Argument name used in error messages.

    Returns:
        numpy.ndarray: Finite observations in their original order.

    Raises:
        ValueError: If the input is not one-dimensional or fewer than
            ``min_size`` finite values remain.
    """
    if np.ndim(x) > 1:
        raise ValueError(f"{name} must be one-dimensional, got shape {np.shape(x)}.")

    raw = np.atleast_1d(np.asarray(x, dtype=object))
    values = pd.to_numeric(pd.Series(raw), errors="coerce").to_numpy(dtype=float)
    finite = np.isfinite(values)
    n_dropped = int(np.sum(~finite))
    if n_dropped:
        logger.debug("Dropped %d missing or non-finite values from %s", n_dropped, name)
    values = values[finite]

    if len(values) < min_size:
        raise ValueError(
            f"{name} must contain at least {min_size} finite values after "
            f"dropping missing data; found {len(values)}."
        )
    return values


def has_variance(values) -> bool:
    """Return ``True`` when a cleaned sample is not constant."""
    values = np.asarray(values, dtype=float)
    return bool(len(values) > 1 and np.ptp(values) > 0)


def require_variance(values, name="x"):
    """Raise if a cleaned sample has zero variance.

    Args:
        values (numpy.ndarray): Cleaned sample.
        name (str, optional): Argument name used in error messages.

    Raises:
        ValueError: If every value in ``values`` is identical.
    """
    if not has_variance(values):
        raise ValueError(
            f"{name} has zero variance; a constant sample cannot be used here."
        )
