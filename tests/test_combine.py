import numpy as np
import pytest
from scipy import stats

from psre.stats.combine import (
    P_FLOOR,
    average,
    clamp_pvalues,
    combine_pvalues,
    fisher,
    resolve_combine_method,
    stouffer,
)


def test_clamp_raises_small_pvalues_to_floor():
    out = clamp_pvalues([0.0, 1e-9, 1e-7, 0.5])
    np.testing.assert_array_equal(out, [P_FLOOR, P_FLOOR, 1e-7, 0.5])


def test_stouffer_formula():
    p = np.array([0.01, 0.2, 0.5])
    z = stats.norm.isf(p).sum() / np.sqrt(3)

    assert np.isclose(stouffer(p), stats.norm.sf(z))
    assert np.isclose(stouffer([0.5, 0.5]), 0.5)


def test_stouffer_ignores_pvalues_of_one():
    assert np.isclose(stouffer([1.0, 0.3]), 0.3)
    assert stouffer([1.0, 1.0]) == 1.0


def test_fisher_formula():
    p = np.array([0.01, 0.2, 0.5])
    expected = stats.chi2.sf(-2.0 * np.log(p).sum(), 2 * len(p))

    assert np.isclose(fisher(p), expected)


def test_average_is_arithmetic_mean():
    assert np.isclose(average([0.1, 0.2, 0.6]), 0.3)


def test_method_names_case_insensitive():
    assert resolve_combine_method("fisher") == "Fisher"
    assert resolve_combine_method(" STOUFFER ") == "Stouffer"
    assert combine_pvalues([0.1, 0.3], "average") == pytest.approx(0.2)


def test_invalid_method_and_empty_input():
    with pytest.raises(ValueError, match="combine_method"):
        combine_pvalues([0.1], "Tippett")
    with pytest.raises(ValueError, match="At least one"):
        combine_pvalues([], "Fisher")
