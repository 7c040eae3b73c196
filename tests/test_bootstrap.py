import numpy as np
import pytest
from scipy import stats

from psre.stats.bootstrap import bootstrap_ci, bootstrap_replicates, jackknife_values


@pytest.fixture
def sample():
    return np.random.default_rng(17).normal(loc=3.0, size=60)


def _mean_and_sd(sample):
    def statistic(idx):
        values = sample[idx]
        return np.array([values.mean(), values.std(ddof=1)])

    return statistic


def test_replicates_shape_and_reproducibility(sample):
    statistic = _mean_and_sd(sample)
    first = bootstrap_replicates(statistic, len(sample), 30, random_state=1)
    second = bootstrap_replicates(statistic, len(sample), 30, random_state=1)

    assert first.shape == (30, 2)
    np.testing.assert_array_equal(first, second)


def test_jackknife_leaves_one_out(sample):
    jack = jackknife_values(lambda idx: np.array([sample[idx].sum()]), len(sample))

    np.testing.assert_allclose(jack[:, 0], sample.sum() - sample)


@pytest.mark.parametrize("method", ["perc", "norm", "bca"])
def test_intervals_contain_estimate(sample, method):
    statistic = _mean_and_sd(sample)
    t0 = statistic(np.arange(len(sample)))
    reps = bootstrap_replicates(statistic, len(sample), 400, random_state=2)
    jack = jackknife_values(statistic, len(sample)) if method == "bca" else None

    bounds = bootstrap_ci(t0, reps, level=0.95, method=method, jackknife=jack)

    assert bounds.shape == (2, 2)
    assert np.all(bounds[:, 0] < t0)
    assert np.all(t0 < bounds[:, 1])


def test_normal_interval_is_bias_corrected():
    t0 = np.array([1.0])
    reps = np.array([[1.5], [2.5], [2.0], [2.0]])
    bounds = bootstrap_ci(t0, reps, level=0.9, method="norm")
    half = stats.norm.ppf(0.95) * reps[:, 0].std(ddof=1)

    np.testing.assert_allclose(bounds[0], [0.0 - half, 0.0 + half])


def test_invalid_requests_rejected():
    with pytest.raises(ValueError, match="ci_method"):
        bootstrap_ci([1.0], [[1.0], [2.0]], method="basic")
    with pytest.raises(ValueError, match="jackknife"):
        bootstrap_ci([1.0], [[1.0], [2.0]], method="bca")
    with pytest.raises(ValueError, match="level"):
        bootstrap_ci([1.0], [[1.0], [2.0]], level=1.5)
