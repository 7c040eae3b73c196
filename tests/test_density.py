import numpy as np
import pytest

from psre.density import norm_band, normal_reference_band
from psre.schema import DENSITY_COLUMNS as COLS


@pytest.fixture
def normal_sample():
    return np.random.default_rng(11).normal(loc=2.0, scale=1.5, size=200)


def test_norm_band_columns_and_grid(normal_sample):
    table = norm_band(normal_sample)

    assert list(table.columns) == [
        COLS.eval_point,
        COLS.obs_density,
        COLS.obs_lower,
        COLS.obs_upper,
        COLS.normal_density,
        COLS.normal_lower,
        COLS.normal_upper,
    ]
    assert len(table) == 512
    assert np.all(np.diff(table[COLS.eval_point]) >= 0)
    assert not table.isna().any().any()


def test_norm_band_bounds_bracket_estimates(normal_sample):
    table = norm_band(normal_sample)

    assert np.all(table[COLS.obs_lower] <= table[COLS.obs_density])
    assert np.all(table[COLS.obs_density] <= table[COLS.obs_upper])
    assert np.all(table[COLS.normal_lower] <= table[COLS.normal_density])
    assert np.all(table[COLS.normal_density] <= table[COLS.normal_upper])


def test_densities_integrate_to_about_one(normal_sample):
    table = norm_band(normal_sample)
    step = np.diff(table[COLS.eval_point]).mean()

    assert abs(table[COLS.obs_density].sum() * step - 1.0) < 0.02
    assert abs(table[COLS.normal_density].sum() * step - 1.0) < 0.02


def test_fixed_bandwidth_sets_grid_extent(normal_sample):
    table = norm_band(normal_sample, bw=0.5, gridsize=256)

    assert len(table) == 256
    assert np.isclose(table[COLS.eval_point].iloc[0], normal_sample.min() - 1.5)
    assert np.isclose(table[COLS.eval_point].iloc[-1], normal_sample.max() + 1.5)


def test_missing_values_are_dropped(normal_sample):
    with_missing = np.concatenate([normal_sample, [np.nan, np.nan]])
    clean = norm_band(normal_sample)
    dirty = norm_band(with_missing)

    np.testing.assert_allclose(dirty.to_numpy(), clean.to_numpy())


def test_constant_sample_rejected():
    with pytest.raises(ValueError, match="zero variance"):
        norm_band([3.0] * 20)


def test_invalid_bandwidth_rejected(normal_sample):
    with pytest.raises(ValueError, match="Bandwidth"):
        norm_band(normal_sample, bw=-1.0)


def test_normal_reference_variance_closed_form():
    grid = np.array([0.0])
    mean, lower, upper = normal_reference_band(grid, xbar=0.0, sd=1.0, h=0.5, n=100)

    expected_mean = 1.0 / np.sqrt(2.0 * np.pi * 1.25)
    kernel_sq = 1.0 / np.sqrt(2.0 * np.pi * 0.5)
    smoothed = 1.0 / np.sqrt(2.0 * np.pi * 1.125)
    expected_half = 2.0 * np.sqrt((kernel_sq * smoothed - expected_mean**2) / 100)

    assert np.isclose(mean[0], expected_mean)
    assert np.isclose(upper[0] - mean[0], expected_half)
    assert np.isclose(mean[0] - lower[0], expected_half)
