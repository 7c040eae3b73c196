"""
Model-based helpers for presenting fitted regressions.

Modules:
    simple_slopes:
        Conditional slopes of a quantitative variable within each level of a
        factor, pairwise slope differences and a compact letter display.

    importance:
        Silber-Rosenbaum-Ross absolute importance of model terms with
        bootstrap confidence intervals, and simulation-based importance of
        one variable on the scale of a GLM's predicted mean.

    association:
        LOESS-based R^2 association between two variables and a matrix of
        such associations.

Design Principle:
    These helpers accept fitted statsmodels results and pandas DataFrames and
    return tables; they do not fit the substantive model themselves.
"""

from .association import association_matrix, loess_association
from .importance import (
    average_effect_simulations,
    glm_importance,
    srr_importance,
    term_contributions,
)
from .simple_slopes import SimpleSlopes, compact_letters, simple_slopes

__all__ = [
    "association_matrix",
    "loess_association",
    "average_effect_simulations",
    "glm_importance",
    "srr_importance",
    "term_contributions",
    "SimpleSlopes",
    "compact_letters",
    "simple_slopes",
]
