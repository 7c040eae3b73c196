"""
Normality tests used to score candidate power transformations.

Every test is a plain function taking a 1-D sample and returning the p-value
of the null hypothesis that the sample is drawn from a normal distribution.
``NORMALITY_TESTS`` lists the six tests combined by
:func:`psre.transform.trans_norm`; callers can supply their own list of
functions with the same signature.
"""

from __future__ import annotations

import math
import warnings
from typing import Callable, List, Tuple

import numpy as np
from scipy import stats
from statsmodels.stats.diagnostic import lilliefors, normal_ad

NormalityTest = Callable[[np.ndarray], float]


def lilliefors_test(x: np.ndarray) -> float:
    """Kolmogorov-Smirnov test with mean and variance estimated (Lilliefors)."""
    _, pvalue = lilliefors(np.asarray(x, dtype=float), dist="norm")
    return float(pvalue)


def shapiro_francia_test(x: np.ndarray) -> float:
    """Shapiro-Francia test with Royston's normal approximation.

    The statistic is the squared correlation between the ordered sample and
    Blom scores ``Phi^-1((i - 3/8) / (n + 1/4))``; ``log(1 - W')`` is
    approximately normal with mean and SD given as functions of ``log(n)``.

    Raises:
        ValueError: If the sample is constant.

    References:
        Royston, P. (1993). A pocket-calculator algorithm for the
        Shapiro-Francia test for non-normality. Statistical Papers 34.
    """
    values = np.sort(np.asarray(x, dtype=float))
    n = len(values)
    if n < 5 or n > 5000:
        warnings.warn(
            f"Shapiro-Francia approximation is calibrated for 5 <= n <= 5000; got n={n}.",
            UserWarning,
            stacklevel=2,
        )
    if np.ptp(values) == 0:
        raise ValueError("Shapiro-Francia test is undefined for a constant sample.")

    scores = stats.norm.ppf((np.arange(1, n + 1) - 0.375) / (n + 0.25))
    w = float(np.corrcoef(values, scores)[0, 1] ** 2)
    u = math.log(n)
    v = math.log(u)
    mu = -1.2725 + 1.0521 * (v - u)
    sigma = 1.0308 - 0.26758 * (v + 2.0 / u)
    with np.errstate(divide="ignore"):
        z = (np.log1p(-w) - mu) / sigma
    return float(stats.norm.sf(z))


def anderson_darling_test(x: np.ndarray) -> float:
    """Anderson-Darling test for normality with estimated parameters."""
    _, pvalue = normal_ad(np.asarray(x, dtype=float))
    return float(pvalue)


def shapiro_wilk_test(x: np.ndarray) -> float:
    """Shapiro-Wilk test (Royston's algorithm as implemented by scipy)."""
    return float(stats.shapiro(np.asarray(x, dtype=float)).pvalue)


def robust_jarque_bera_test(x: np.ndarray) -> float:
    """Robust Jarque-Bera test of Gel and Gastwirth.

    Skewness and kurtosis are scaled by the average absolute deviation from
    the median, ``J = sqrt(pi / 2) * mean(|x - median(x)|)``, instead of the
    sample standard deviation. The statistic is referred to a chi-square
    distribution with two degrees of freedom.

    References:
        Gel, Y. R. and Gastwirth, J. L. (2008). A robust modification of the
        Jarque-Bera test of normality. Economics Letters 99.
    """
    values = np.asarray(x, dtype=float)
    n = len(values)
    j_n = math.sqrt(math.pi / 2.0) * float(np.mean(np.abs(values - np.median(values))))
    if j_n == 0:
        raise ValueError("Robust Jarque-Bera test is undefined when J_n is zero.")
    centered = values - values.mean()
    mu3 = float(np.mean(centered**3))
    mu4 = float(np.mean(centered**4))
    statistic = n / 6.0 * (mu3 / j_n**3) ** 2 + n / 64.0 * (mu4 / j_n**4 - 3.0) ** 2
    return float(stats.chi2.sf(statistic, 2))


def _doornik_hansen_statistic(values: np.ndarray) -> Tuple[float, float]:
    """Return the transformed skewness and kurtosis z-scores."""
    n = float(len(values))
    centered = values - values.mean()
    m2 = float(np.mean(centered**2))
    sqrt_b1 = float(np.mean(centered**3)) / m2**1.5
    b2 = float(np.mean(centered**4)) / m2**2
    b1 = sqrt_b1**2

    # D'Agostino transformation of skewness.
    beta = (
        3.0 * (n**2 + 27.0 * n - 70.0) * (n + 1.0) * (n + 3.0)
        / ((n - 2.0) * (n + 5.0) * (n + 7.0) * (n + 9.0))
    )
    omega2 = -1.0 + math.sqrt(2.0 * (beta - 1.0))
    delta = 1.0 / math.sqrt(math.log(math.sqrt(omega2)))
    y = sqrt_b1 * math.sqrt(
        (omega2 - 1.0) * (n + 1.0) * (n + 3.0) / (12.0 * (n - 2.0))
    )
    z1 = delta * math.log(y + math.sqrt(y**2 + 1.0))

    # Wilson-Hilferty transformation of a gamma-approximated kurtosis.
    dk = (n - 3.0) * (n + 1.0) * (n**2 + 15.0 * n - 4.0)
    a = (n - 2.0) * (n + 5.0) * (n + 7.0) * (n**2 + 27.0 * n - 70.0) / (6.0 * dk)
    c = (n - 7.0) * (n + 5.0) * (n + 7.0) * (n**2 + 2.0 * n - 5.0) / (6.0 * dk)
    k = (n + 5.0) * (n + 7.0) * (n**3 + 37.0 * n**2 + 11.0 * n - 313.0) / (12.0 * dk)
    alpha = a + b1 * c
    chi = (b2 - 1.0 - b1) * 2.0 * k
    z2 = (float(np.cbrt(chi / (2.0 * alpha))) - 1.0 + 1.0 / (9.0 * alpha)) * math.sqrt(
        9.0 * alpha
    )
    return z1, z2


def doornik_hansen_test(x: np.ndarray) -> float:
    """Doornik-Hansen omnibus test of univariate normality.

    Combines transformed skewness and kurtosis, ``E = z1^2 + z2^2``, which is
    approximately chi-square with two degrees of freedom under normality.

    Raises:
        ValueError: If fewer than 8 observations are supplied or the sample is
            constant.

    References:
        Doornik, J. A. and Hansen, H. (2008). An omnibus test for univariate
        and multivariate normality. Oxford Bulletin of Economics and
        Statistics 70.
    """
    values = np.asarray(x, dtype=float)
    if len(values) < 8:
        raise ValueError("Doornik-Hansen test requires at least 8 observations.")
    if np.ptp(values) == 0:
        raise ValueError("Doornik-Hansen test is undefined for a constant sample.")
    z1, z2 = _doornik_hansen_statistic(values)
    return float(stats.chi2.sf(z1**2 + z2**2, 2))


NORMALITY_TESTS: List[NormalityTest] = [
    lilliefors_test,
    shapiro_francia_test,
    anderson_darling_test,
    shapiro_wilk_test,
    robust_jarque_bera_test,
    doornik_hansen_test,
]

TEST_LABELS = {
    lilliefors_test: "lilliefors",
    shapiro_francia_test: "shapiro_francia",
    anderson_darling_test: "anderson_darling",
    shapiro_wilk_test: "shapiro_wilk",
    robust_jarque_bera_test: "robust_jarque_bera",
    doornik_hansen_test: "doornik_hansen",
}


def normality_test_label(test: NormalityTest) -> str:
    """Return the column label used for ``test`` in candidate tables."""
    return TEST_LABELS.get(test, getattr(test, "__name__", repr(test)))
