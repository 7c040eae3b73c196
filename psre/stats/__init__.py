"""
Statistical utilities shared by the density, quantile and transform helpers.

This subpackage provides numerical routines only. All functions operate on
arrays and primitive types; nothing here builds result tables.

Modules:
    normality:
        Six normality tests (Lilliefors, Shapiro-Francia, Anderson-Darling,
        Shapiro-Wilk, robust Jarque-Bera, Doornik-Hansen), each returning a
        p-value.

    combine:
        Stouffer, Fisher and Average combination of several p-values, with
        the lower p-value floor used before combining.

    regression:
        Quartile-based and robust (Huber IRLS) reference lines.

    bootstrap:
        Index-based bootstrap resampling with percentile, normal and BCa
        confidence intervals.

Design Principle:
    This subpackage has no dependencies on the table-producing modules.
    It provides pure numerical utilities that can be independently tested.
"""

from .bootstrap import bootstrap_ci, bootstrap_replicates, jackknife_values
from .combine import P_FLOOR, clamp_pvalues, combine_pvalues
from .normality import (
    NORMALITY_TESTS,
    anderson_darling_test,
    doornik_hansen_test,
    lilliefors_test,
    robust_jarque_bera_test,
    shapiro_francia_test,
    shapiro_wilk_test,
)
from .regression import quartile_line, robust_line

__all__ = [
    "bootstrap_ci",
    "bootstrap_replicates",
    "jackknife_values",
    "P_FLOOR",
    "clamp_pvalues",
    "combine_pvalues",
    "NORMALITY_TESTS",
    "anderson_darling_test",
    "doornik_hansen_test",
    "lilliefors_test",
    "robust_jarque_bera_test",
    "shapiro_francia_test",
    "shapiro_wilk_test",
    "quartile_line",
    "robust_line",
]
