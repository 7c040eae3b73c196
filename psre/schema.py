"""Define standardized column names for result DataFrames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DensityBandColumns:
    """Column labels of the table returned by :func:`psre.density.norm_band`.

    Attributes:
        eval_point: Grid point at which both densities are evaluated. The grid
            comes from the kernel density estimate and spans the sample range
            extended by ``cut`` bandwidths on each side.

        obs_density: Kernel density estimate of the observed sample.
        obs_lower: Lower limit of the Bowman-Azzalini variability band.
        obs_upper: Upper limit of the Bowman-Azzalini variability band.

        normal_density: Normal density with the sample mean and a variance of
            ``s^2 + h^2``, i.e. what a kernel estimate of normal data with the
            same moments would look like on average.
        normal_lower: ``normal_density`` minus two pointwise standard errors.
        normal_upper: ``normal_density`` plus two pointwise standard errors.
    """

    eval_point: str = "eval_point"
    obs_density: str = "obs_density"
    obs_lower: str = "obs_lower"
    obs_upper: str = "obs_upper"
    normal_density: str = "normal_density"
    normal_lower: str = "normal_lower"
    normal_upper: str = "normal_upper"


@dataclass(frozen=True)
class QQColumns:
    """Column labels of the table returned by :func:`psre.qq.qq_points`.

    Attributes:
        observed: Sorted sample value (the i-th order statistic).
        theoretical: Theoretical quantile at the i-th plotting position.
        lower: Lower pointwise confidence limit around the reference line.
        upper: Upper pointwise confidence limit around the reference line.
    """

    observed: str = "observed"
    theoretical: str = "theoretical"
    lower: str = "lower"
    upper: str = "upper"


@dataclass(frozen=True)
class ImportanceColumns:
    """Column labels of the table returned by
    :func:`psre.models.importance.srr_importance`."""

    var: str = "var"
    importance: str = "importance"
    lower: str = "lower"
    upper: str = "upper"


DENSITY_COLUMNS = DensityBandColumns()
QQ_COLUMNS = QQColumns()
IMPORTANCE_COLUMNS = ImportanceColumns()
