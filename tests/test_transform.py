import logging

import numpy as np
import pytest

from psre.stats.combine import P_FLOOR
from psre.stats.normality import NORMALITY_TESTS, shapiro_wilk_test
from psre.transform import (
    LAMBDA_GRID_SIZE,
    normality_table,
    power_transform,
    trans_norm,
)

SKEWED = [1, 2, 3, 4, 5, 6, 7, 8, 9, 100]


def test_skewed_scenario_keeps_full_grid():
    table = normality_table(SKEWED, family="bc", lams=(-2, 2))

    assert len(table) == LAMBDA_GRID_SIZE
    np.testing.assert_allclose(table["lambda"], np.linspace(-2, 2, 50))
    pvalue_cols = [c for c in table.columns if c not in ("lambda", "combined")]
    assert len(pvalue_cols) == len(NORMALITY_TESTS)
    assert (table[pvalue_cols] >= P_FLOOR).all().all()
    assert np.all(np.isfinite(table["combined"]))


def test_skewed_scenario_returns_lambda_in_range():
    lam = trans_norm(SKEWED, family="bc", lams=(-2, 2))

    assert np.isfinite(lam)
    assert -2.0 <= lam <= 2.0


def test_best_lambda_maximizes_combined_pvalue():
    table = normality_table(SKEWED, combine_method="Fisher")
    lam = trans_norm(SKEWED, combine_method="Fisher")

    assert lam == table.loc[table["combined"].idxmax(), "lambda"]


@pytest.mark.parametrize("lams", [(-2, 2), (0.5, 1.5), (-1, -0.25)])
@pytest.mark.parametrize("method", ["Stouffer", "Fisher", "Average"])
def test_lambda_within_requested_range(lams, method):
    x = np.random.default_rng(21).gamma(2.0, size=80)
    lam = trans_norm(x, lams=lams, combine_method=method)

    assert lams[0] <= lam <= lams[1]


def test_constant_sample_raises_explicit_error():
    with pytest.raises(ValueError, match="zero-variance"):
        trans_norm([5.0] * 30)
    with pytest.raises(ValueError, match="zero-variance"):
        trans_norm([-1.0] * 30, family="yj")


def test_lognormal_sample_selects_log_transform():
    x = np.random.default_rng(8).lognormal(mean=0.0, sigma=1.0, size=300)

    assert abs(trans_norm(x, family="bc")) < 0.5


def test_normal_sample_prefers_identity_over_extremes():
    rng = np.random.default_rng(9)
    picks = [trans_norm(rng.normal(5.0, 1.0, size=300)) for _ in range(10)]

    assert abs(np.median(picks) - 1.0) < 0.75


def test_box_cox_shifts_non_positive_values():
    x = np.random.default_rng(10).normal(0.0, 1.0, size=60)
    assert np.any(x <= 0)

    lam = trans_norm(x, family="bc", start=0.5)
    assert -2.0 <= lam <= 2.0

    with pytest.raises(ValueError, match="start must be positive"):
        trans_norm(x, family="bc", start=0.0)


def test_yeo_johnson_handles_negative_values():
    x = np.random.default_rng(12).normal(0.0, 1.0, size=60) ** 3
    lam = trans_norm(x, family="yj", lams=(0, 2))

    assert 0.0 <= lam <= 2.0


def test_missing_values_do_not_change_result():
    x = np.random.default_rng(13).exponential(size=50)
    dirty = np.concatenate([x[:25], [np.nan], x[25:], [np.nan]])

    assert trans_norm(dirty) == trans_norm(x)


def test_invalid_arguments_rejected_before_computation():
    with pytest.raises(ValueError, match="family"):
        trans_norm([1.0] * 3, family="log")
    with pytest.raises(ValueError, match="combine_method"):
        trans_norm([1.0] * 3, combine_method="Tippett")
    with pytest.raises(ValueError, match="lams"):
        trans_norm(SKEWED, lams=(2, -2))
    with pytest.raises(ValueError, match="lams"):
        trans_norm(SKEWED, lams=(0, 1, 2))


def test_too_few_observations_rejected():
    with pytest.raises(ValueError, match="at least 8"):
        trans_norm([1.0, 2.0, 3.0, 5.0, 8.0])


def test_custom_tests_are_pluggable():
    table = normality_table(SKEWED, tests=[shapiro_wilk_test])

    assert list(table.columns) == ["lambda", "shapiro_wilk", "combined"]


def test_power_transform_families():
    x = np.array([0.5, 1.0, 2.0])
    np.testing.assert_allclose(power_transform(x, 0.0, "bc"), np.log(x))
    np.testing.assert_allclose(power_transform(x, 2.0, "box-cox"), (x**2 - 1) / 2)
    np.testing.assert_allclose(power_transform(x, 1.0, "yj"), x)

    with pytest.raises(ValueError, match="strictly positive"):
        power_transform([-1.0, 1.0], 1.0, "bc")


def test_search_logs_best_lambda(caplog):
    caplog.set_level(logging.DEBUG, logger="psre.transform")
    trans_norm(SKEWED)

    assert any("Best lambda" in rec.message for rec in caplog.records)


def test_overflowing_candidates_discarded_not_fatal(caplog):
    caplog.set_level(logging.DEBUG, logger="psre.transform")
    x = np.random.default_rng(13).lognormal(size=40) * 1e150

    table = normality_table(x, family="yj", lams=(0, 3))
    lam = trans_norm(x, family="yj", lams=(0, 3))

    assert 0 < len(table) < LAMBDA_GRID_SIZE
    assert table["lambda"].max() < 2.0
    assert lam in set(table["lambda"])
    assert any("overflows" in rec.message for rec in caplog.records)


def test_non_finite_candidates_discarded(caplog):
    caplog.set_level(logging.DEBUG, logger="psre.transform")
    x = np.random.default_rng(14).lognormal(size=40) * 1e100

    table = normality_table(x, family="bc", lams=(0, 4))

    assert table["lambda"].min() == 0.0
    assert table["lambda"].max() < 1.6
    assert any("not finite" in rec.message for rec in caplog.records)
    assert np.all(np.isfinite(table.drop(columns="lambda").to_numpy()))
