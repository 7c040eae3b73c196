"""
A Python package computing the numbers behind the figures of a statistics
textbook on presenting statistical results.

Each helper takes a sample (or a fitted model) and returns a tidy table that
a plotting library can draw directly: points, a central curve and lower/upper
bounds. Nothing here renders figures.

Modules:
    - density: Kernel density with a variability band and a matched normal
      density band.
    - qq: Quantile comparison coordinates with pointwise confidence bounds.
    - transform: Box-Cox / Yeo-Johnson parameter search by combined
      normality-test p-values.
    - distributions: Registry of theoretical families for quantile plots.
    - stats: Normality tests, p-value combination, reference lines, bootstrap.
    - models: Simple slopes, compact letter displays, term importance and
      LOESS association.
"""

__version__ = "1.0.0"

from .density import norm_band
from .distributions import available_distributions, resolve_distribution
from .models import (
    association_matrix,
    compact_letters,
    glm_importance,
    loess_association,
    simple_slopes,
    srr_importance,
)
from .qq import QQPoints, qq_points
from .transform import normality_table, power_transform, trans_norm

__all__ = [
    # Density
    "norm_band",
    # Quantile comparison
    "QQPoints",
    "qq_points",
    "available_distributions",
    "resolve_distribution",
    # Transformation
    "normality_table",
    "power_transform",
    "trans_norm",
    # Models
    "association_matrix",
    "compact_letters",
    "glm_importance",
    "loess_association",
    "simple_slopes",
    "srr_importance",
]
