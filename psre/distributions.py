"""Registry of theoretical distribution families for quantile comparisons.

Each family is a fixed pair of scipy functions: a quantile function (the
inverse CDF, ``ppf``) and a density function (``pdf``). Families are looked up
by identifier; both the short names used by R (``"norm"``, ``"chisq"``,
``"exp"``) and the scipy names (``"chi2"``, ``"expon"``) are accepted.
Shape, location and scale parameters follow scipy's keyword conventions and
are passed through unchanged to both functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np
from scipy import stats


@dataclass(frozen=True)
class DistributionFamily:
    """Quantile and density functions of one theoretical distribution."""

    name: str
    quantile: Callable[..., np.ndarray]
    density: Callable[..., np.ndarray]


def _family(name: str, dist) -> DistributionFamily:
    return DistributionFamily(name=name, quantile=dist.ppf, density=dist.pdf)


_FAMILIES: Dict[str, DistributionFamily] = {
    "norm": _family("norm", stats.norm),
    "t": _family("t", stats.t),
    "chisq": _family("chisq", stats.chi2),
    "exp": _family("exp", stats.expon),
    "unif": _family("unif", stats.uniform),
    "lnorm": _family("lnorm", stats.lognorm),
    "gamma": _family("gamma", stats.gamma),
    "beta": _family("beta", stats.beta),
    "weibull": _family("weibull", stats.weibull_min),
    "logis": _family("logis", stats.logistic),
    "cauchy": _family("cauchy", stats.cauchy),
    "f": _family("f", stats.f),
}

_ALIASES: Dict[str, str] = {
    "normal": "norm",
    "chi2": "chisq",
    "expon": "exp",
    "uniform": "unif",
    "lognorm": "lnorm",
    "weibull_min": "weibull",
    "logistic": "logis",
}


def available_distributions() -> list[str]:
    """Return the canonical identifiers of all registered families."""
    return sorted(_FAMILIES)


def resolve_distribution(name: str) -> DistributionFamily:
    """Look up a distribution family by identifier.

    Args:
        name (str): Family identifier, case-insensitive (for example
            ``"norm"``, ``"t"``, ``"chisq"`` or ``"chi2"``).

    Returns:
        DistributionFamily: The registered quantile/density pair.

    Raises:
        ValueError: If ``name`` is not a registered family or alias.
    """
    if not isinstance(name, str):
        raise ValueError(f"Distribution identifier must be a string, got {name!r}.")
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return _FAMILIES[key]
    except KeyError:
        raise ValueError(
            f"Unknown distribution '{name}'. "
            f"Known families: {', '.join(available_distributions())}."
        ) from None
