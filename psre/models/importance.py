"""
Absolute importance of model terms.

``srr_importance`` measures each term on the linear-predictor scale with
bootstrap intervals; ``glm_importance`` measures one variable on the scale of
the predicted mean with intervals from simulated coefficients.
"""

# Importance of a term is the standard deviation of its centered contribution
# to the linear predictor, X_term beta_term (Silber, Rosenbaum and Ross, 1995).
# Dummy columns of a factor, and interaction columns, are grouped into a single
# term so the measure reflects the whole term rather than one contrast.

from __future__ import annotations

import logging
import re
from typing import Dict, List

import numpy as np
import pandas as pd
from patsy import build_design_matrices
from scipy import stats

from psre.schema import IMPORTANCE_COLUMNS as COLS
from psre.stats.bootstrap import (
    CI_METHODS,
    bootstrap_ci,
    bootstrap_replicates,
    jackknife_values,
)

logger = logging.getLogger(__name__)

DEFAULT_BOOT_REPLICATES = 250
_INTERCEPT_NAMES = {"Intercept", "const"}
_LEVEL_SUFFIX = re.compile(r"\[[^\]]*\]")


def term_label(column: str) -> str:
    """Strip factor-level suffixes: ``"x:C(g)[T.b]"`` becomes ``"x:C(g)"``."""
    return _LEVEL_SUFFIX.sub("", column)


def term_contributions(results) -> pd.DataFrame:
    """Centered contribution of every model term to the linear predictor.

    Args:
        results: Fitted statsmodels regression results.

    Returns:
        pandas.DataFrame: One column per term (intercept excluded), one row
        per observation used in the fit.
    """
    exog = np.asarray(results.model.exog, dtype=float)
    beta = np.asarray(results.params, dtype=float)
    groups: Dict[str, List[int]] = {}
    for k, name in enumerate(results.model.exog_names):
        if name in _INTERCEPT_NAMES:
            continue
        groups.setdefault(term_label(name), []).append(k)

    centered = exog - exog.mean(axis=0)
    return pd.DataFrame({term: centered[:, cols] @ beta[cols] for term, cols in groups.items()})


def _importance(results) -> pd.Series:
    return term_contributions(results).std(ddof=1)


def _refit(results, data: pd.DataFrame):
    model = results.model
    formula = getattr(model, "formula", None)
    if formula is None:
        raise ValueError("Bootstrap importance requires a model fitted from a formula.")
    kwargs = {}
    if hasattr(model, "family"):
        kwargs["family"] = model.family
    return type(model).from_formula(formula, data=data, **kwargs).fit()


def srr_importance(
    results,
    data: pd.DataFrame,
    boot: bool = True,
    n_boot: int = DEFAULT_BOOT_REPLICATES,
    level: float = 0.95,
    ci_method: str = "perc",
    random_state=None,
) -> pd.DataFrame:
    """Absolute importance of each term, optionally with bootstrap intervals.

    Args:
        results: Fitted statsmodels formula model.
        data (pandas.DataFrame): Data the model was fitted to; rows are
            resampled for the bootstrap.
        boot (bool, optional): Add bootstrap confidence limits. Defaults to
            ``True``.
        n_boot (int, optional): Number of bootstrap resamples. Defaults to 250.
        level (float, optional): Confidence level. Defaults to ``0.95``.
        ci_method (str, optional): ``"perc"``, ``"norm"`` or ``"bca"``.
        random_state: Seed or :class:`numpy.random.Generator`.

    Returns:
        pandas.DataFrame: Columns ``var`` and ``importance``, plus ``lower``
        and ``upper`` when ``boot`` is true.

    Raises:
        ValueError: If ``ci_method`` is unknown or the model cannot be
            refitted from a formula.

    References:
        Silber, J. H., Rosenbaum, P. R. and Ross, R. N. (1995). Comparing the
        contributions of groups of predictors. JASA 90.
    """
    if ci_method not in CI_METHODS:
        raise ValueError(f"ci_method must be one of {', '.join(CI_METHODS)}; got {ci_method!r}.")

    t0 = _importance(results)
    out = pd.DataFrame({COLS.var: t0.index, COLS.importance: t0.to_numpy()})
    if not boot:
        return out

    data = data.reset_index(drop=True)
    terms = list(t0.index)

    def statistic(idx):
        # Resamples that lose a factor level drop that term; report NaN for it.
        return _importance(_refit(results, data.iloc[idx])).reindex(terms).to_numpy()

    replicates = bootstrap_replicates(statistic, len(data), n_boot, random_state=random_state)
    jack = jackknife_values(statistic, len(data)) if ci_method == "bca" else None
    bounds = bootstrap_ci(t0.to_numpy(), replicates, level=level, method=ci_method, jackknife=jack)
    logger.debug("Bootstrapped importance for %d terms", len(terms))

    out[COLS.lower] = bounds[:, 0]
    out[COLS.upper] = bounds[:, 1]
    return out


DEFAULT_SIMULATIONS = 1500
DEFAULT_GRID_VALUES = 25
GLM_CI_METHODS = ("perc", "norm")


def _is_factor(column: pd.Series) -> bool:
    return not pd.api.types.is_numeric_dtype(column) or pd.api.types.is_bool_dtype(column)


def _variable_values(column: pd.Series, n_values: int) -> list:
    observed = column.dropna()
    if _is_factor(column):
        if isinstance(column.dtype, pd.CategoricalDtype):
            return list(column.cat.categories)
        return sorted(observed.unique())
    return list(np.linspace(observed.min(), observed.max(), n_values))


def average_effect_simulations(
    results,
    varname: str,
    data: pd.DataFrame,
    n_sims: int = DEFAULT_SIMULATIONS,
    n_values: int = DEFAULT_GRID_VALUES,
    random_state=None,
) -> pd.DataFrame:
    """Simulated average predicted means over the values of one variable.

    Coefficients are drawn from ``N(params, cov_params)``. For every value of
    ``varname`` (an evenly spaced grid for a numeric variable, every level
    for a factor) the variable is set to that value in all rows of ``data``
    and the predicted mean response is averaged over rows.

    Returns:
        pandas.DataFrame: ``n_sims`` rows, one column per variable value.

    Raises:
        ValueError: If the model was not fitted from a formula or
            ``varname`` is not a column of ``data`` with at least two values.
    """
    design_info = getattr(results.model.data, "design_info", None)
    if design_info is None:
        raise ValueError("Average effects require a model fitted from a formula.")
    if varname not in data.columns:
        raise ValueError(f"Column {varname!r} not found in data.")
    values = _variable_values(data[varname], n_values)
    if len(values) < 2 or values[0] == values[-1]:
        raise ValueError(f"Variable {varname!r} must take at least two distinct values.")

    params = np.asarray(results.params, dtype=float)
    cov = np.asarray(results.cov_params(), dtype=float)
    rng = np.random.default_rng(random_state)
    draws = rng.multivariate_normal(params, cov, size=n_sims)

    family = getattr(results.model, "family", None)
    inverse_link = family.link.inverse if family is not None else (lambda eta: eta)

    frame = data.copy()
    dtype = data[varname].dtype if _is_factor(data[varname]) else float
    sims = np.empty((n_sims, len(values)))
    for k, value in enumerate(values):
        frame[varname] = pd.Series([value] * len(frame), index=frame.index, dtype=dtype)
        exog = build_design_matrices([design_info], frame, return_type="dataframe")[0]
        eta = np.asarray(exog, dtype=float) @ draws.T
        sims[:, k] = inverse_link(eta).mean(axis=0)
    logger.debug("Simulated %d average effects over %d values of %s", n_sims, len(values), varname)
    return pd.DataFrame(sims, columns=values)


def glm_importance(
    results,
    varname: str,
    data: pd.DataFrame,
    level: float = 0.95,
    ci_method: str = "perc",
    n_sims: int = DEFAULT_SIMULATIONS,
    n_values: int = DEFAULT_GRID_VALUES,
    random_state=None,
) -> pd.DataFrame:
    """Importance of one variable on the scale of the predicted mean.

    The average predicted mean is simulated over the values of ``varname``
    (see :func:`average_effect_simulations`). Importance is the standard
    deviation of the simulation-averaged curve for a numeric variable, or a
    quarter of its range for a factor. The interval comes from the
    per-simulation standard deviations: their quantiles (``"perc"``) or the
    point estimate plus or minus normal quantiles times their SD
    (``"norm"``).

    Returns:
        pandas.DataFrame: One row with columns ``var``, ``importance``,
        ``lower`` and ``upper``.

    Raises:
        ValueError: If ``ci_method`` or ``level`` is invalid, or for the
            reasons listed in :func:`average_effect_simulations`.
    """
    if ci_method not in GLM_CI_METHODS:
        raise ValueError(f"ci_method must be one of {', '.join(GLM_CI_METHODS)}; got {ci_method!r}.")
    if not 0 < level < 1:
        raise ValueError(f"level must lie strictly between 0 and 1, got {level!r}.")
    alpha = (1.0 - level) / 2.0

    sims = average_effect_simulations(
        results, varname, data, n_sims=n_sims, n_values=n_values, random_state=random_state
    ).to_numpy()
    per_sim = sims.std(axis=1, ddof=1)
    curve = sims.mean(axis=0)
    if _is_factor(data[varname]):
        estimate = float(np.ptp(curve)) / 4.0
    else:
        estimate = float(np.std(curve, ddof=1))

    if ci_method == "norm":
        lower, upper = estimate + stats.norm.ppf([alpha, 1.0 - alpha]) * np.std(per_sim, ddof=1)
    else:
        lower, upper = np.quantile(per_sim, [alpha, 1.0 - alpha])
    return pd.DataFrame(
        {
            COLS.var: [varname],
            COLS.importance: [estimate],
            COLS.lower: [float(lower)],
            COLS.upper: [float(upper)],
        }
    )
