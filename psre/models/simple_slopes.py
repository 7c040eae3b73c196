"""Conditional slopes of a quantitative variable across the levels of a factor.

For a linear model with an interaction between a quantitative variable
``x`` and a factor ``g`` fitted with treatment coding, the slope of ``x`` in
the baseline level is the ``x`` coefficient and the slope in any other level
adds the matching ``x:g`` interaction coefficient. Every slope (and every
difference between two slopes) is a linear combination ``L beta`` of the
coefficients, with variance ``L V L'``.

The compact letter display summarizes the pairwise differences: levels that
share a letter are not significantly different.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass
from string import ascii_lowercase
from typing import List

import numpy as np
import pandas as pd
from scipy import stats

_LEVEL_PATTERN = re.compile(r"\[(?:T\.)?(.*)\]$")


@dataclass
class SimpleSlopes:
    """Simple slopes and their pairwise comparisons.

    Attributes:
        est: One row per factor level with ``group``, ``slope``, ``se``,
            ``t`` and ``p``.
        comp: One row per pair of levels with ``comp`` (``"g1-g2"``),
            ``g1``, ``g2``, ``diff``, ``se``, ``t`` and ``p``.
        df_resid: Residual degrees of freedom used for the t reference.
    """

    est: pd.DataFrame
    comp: pd.DataFrame
    df_resid: float

    def __str__(self) -> str:
        return (
            "Simple Slopes:\n"
            f"{self.est.to_string(index=False)}\n\n"
            "Pairwise Comparisons:\n"
            f"{self.comp.to_string(index=False)}"
        )


def _interaction_terms(names: List[str], quant_var: str, cat_var: str):
    """Return ``(param_name, level)`` for each ``quant_var`` x ``cat_var`` term."""
    terms = []
    for name in names:
        parts = name.split(":")
        if len(parts) != 2 or quant_var not in parts:
            continue
        other = parts[1] if parts[0] == quant_var else parts[0]
        if cat_var not in other:
            continue
        match = _LEVEL_PATTERN.search(other)
        if match is None:
            continue
        terms.append((name, match.group(1)))
    return terms


def _factor_levels(results, cat_var: str, treated: List[str]) -> List[str]:
    frame = getattr(results.model.data, "frame", None)
    if frame is None or cat_var not in frame:
        raise ValueError(f"Model data does not contain the factor '{cat_var}'.")
    column = frame[cat_var]
    if isinstance(column.dtype, pd.CategoricalDtype):
        levels = [str(v) for v in column.cat.categories]
    else:
        levels = [str(v) for v in sorted(column.dropna().unique())]
    baseline = [lev for lev in levels if lev not in treated]
    if len(baseline) != 1:
        raise ValueError(
            f"Could not identify the baseline level of '{cat_var}' from the model terms."
        )
    return baseline + treated


def _contrast_table(matrix: np.ndarray, beta: np.ndarray, cov: np.ndarray, df_resid: float):
    est = matrix @ beta
    se = np.sqrt(np.diag(matrix @ cov @ matrix.T))
    t_stat = est / se
    p = 2.0 * stats.t.sf(np.abs(t_stat), df_resid)
    return est, se, t_stat, p


def simple_slopes(results, quant_var: str, cat_var: str) -> SimpleSlopes:
    """Compute simple slopes from a quantitative-by-factor interaction.

    Args:
        results: Fitted statsmodels formula model (for example
            ``smf.ols("y ~ x * C(g)", data).fit()``).
        quant_var (str): Name of the quantitative variable.
        cat_var (str): Name of the factor variable.

    Returns:
        SimpleSlopes: Slopes by level and all pairwise slope differences,
        with t-tests on the model's residual degrees of freedom.

    Raises:
        ValueError: If the model has no main effect for ``quant_var`` or no
            interaction between ``quant_var`` and ``cat_var``.
    """
    names = list(results.params.index)
    if quant_var not in names:
        raise ValueError(f"Model has no coefficient named '{quant_var}'.")
    terms = _interaction_terms(names, quant_var, cat_var)
    if not terms:
        raise ValueError(f"Model has no interaction between '{quant_var}' and '{cat_var}'.")

    levels = _factor_levels(results, cat_var, [lev for _, lev in terms])
    beta = results.params.to_numpy(dtype=float)
    cov = np.asarray(results.cov_params(), dtype=float)
    df_resid = float(results.df_resid)

    main = names.index(quant_var)
    slope_matrix = np.zeros((len(levels), len(names)))
    slope_matrix[:, main] = 1.0
    for row, (name, _) in enumerate(terms, start=1):
        slope_matrix[row, names.index(name)] = 1.0

    slope, se, t_stat, p = _contrast_table(slope_matrix, beta, cov, df_resid)
    est = pd.DataFrame({"group": levels, "slope": slope, "se": se, "t": t_stat, "p": p})

    pairs = list(itertools.combinations(range(len(levels)), 2))
    diff_matrix = np.array([slope_matrix[i] - slope_matrix[j] for i, j in pairs])
    diff, dse, dt, dp = _contrast_table(diff_matrix, beta, cov, df_resid)
    comp = pd.DataFrame(
        {
            "comp": [f"{levels[i]}-{levels[j]}" for i, j in pairs],
            "g1": [levels[i] for i, _ in pairs],
            "g2": [levels[j] for _, j in pairs],
            "diff": diff,
            "se": dse,
            "t": dt,
            "p": dp,
        }
    )
    return SimpleSlopes(est=est, comp=comp, df_resid=df_resid)


def _absorb(columns: List[np.ndarray]) -> List[np.ndarray]:
    """Drop letter columns that are contained in another column."""
    kept: List[np.ndarray] = []
    for i, col in enumerate(columns):
        redundant = False
        for j, other in enumerate(columns):
            if i == j:
                continue
            if np.all(col <= other) and (not np.array_equal(col, other) or j < i):
                redundant = True
                break
        if not redundant:
            kept.append(col)
    return kept


def compact_letters(ss: SimpleSlopes, level: float = 0.05) -> pd.DataFrame:
    """Compact letter display for the pairwise slope comparisons.

    Uses the insert-absorb algorithm: begin with a single letter shared by
    every level; for each significant pair split every letter held by both
    levels into two letters, one without each level, then drop letters
    contained in another.

    Args:
        ss (SimpleSlopes): Output of :func:`simple_slopes`.
        level (float, optional): Significance threshold for the pairwise
            p-values. Defaults to ``0.05``.

    Returns:
        pandas.DataFrame: Boolean letter matrix indexed by level (ordered by
        increasing slope) with columns ``a``, ``b``, ...

    References:
        Piepho, H.-P. (2004). An algorithm for a letter-based representation
        of all-pairwise comparisons. Journal of Computational and Graphical
        Statistics 13.
    """
    order = list(ss.est.sort_values("slope", kind="mergesort")["group"])
    position = {lev: k for k, lev in enumerate(order)}

    columns = [np.ones(len(order), dtype=bool)]
    significant = ss.comp[ss.comp["p"] < level]
    for g1, g2 in zip(significant["g1"], significant["g2"]):
        i, j = position[g1], position[g2]
        updated = []
        for col in columns:
            if col[i] and col[j]:
                without_i = col.copy()
                without_i[i] = False
                without_j = col.copy()
                without_j[j] = False
                updated.extend([without_i, without_j])
            else:
                updated.append(col)
        columns = _absorb(updated)

    # First letter goes to the column that starts earliest in slope order.
    columns.sort(key=lambda col: tuple(~col))
    if len(columns) > len(ascii_lowercase):
        raise ValueError("Too many letters required for a compact letter display.")
    letters = pd.DataFrame(
        np.column_stack(columns), index=order, columns=list(ascii_lowercase[: len(columns)])
    )
    letters.index.name = "group"
    return letters
