import numpy as np
import pytest
from scipy import stats

from psre.stats.regression import quartile_line, robust_line


def test_quartile_line_through_quartiles():
    ordered = np.arange(1.0, 10.0)
    a, b = quartile_line(ordered, stats.norm.ppf)
    z75 = stats.norm.ppf(0.75)

    assert np.isclose(b, 4.0 / (2.0 * z75))
    assert np.isclose(a, 5.0)


def test_quartile_line_passes_parameters():
    ordered = np.arange(1.0, 10.0)
    a, b = quartile_line(ordered, stats.t.ppf, df=3)

    assert np.isclose(b, 4.0 / (stats.t.ppf(0.75, 3) - stats.t.ppf(0.25, 3)))


def test_robust_line_resists_outlier():
    rng = np.random.default_rng(0)
    x = np.linspace(0.0, 10.0, 40)
    y = 2.0 + 3.0 * x + rng.normal(scale=0.1, size=x.size)
    y[5] += 100.0

    fit = robust_line(x, y)

    assert abs(fit["a"] - 2.0) < 0.15
    assert abs(fit["b"] - 3.0) < 0.05
    assert fit["se_b"] > 0


def test_robust_line_requires_variance():
    with pytest.raises(ValueError, match="variance"):
        robust_line(np.ones(5), np.arange(5.0))
    with pytest.raises(ValueError, match="Insufficient valid data"):
        robust_line([1.0, np.nan], [1.0, 2.0])
