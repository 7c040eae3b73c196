import numpy as np
import pandas as pd
import pytest
import statsmodels.formula.api as smf

from psre.models.simple_slopes import compact_letters, simple_slopes


def _interaction_data(slopes, seed=0, n=60):
    rng = np.random.default_rng(seed)
    frames = []
    for group, slope in slopes.items():
        x = rng.uniform(0.0, 1.0, size=n)
        y = 0.5 + slope * x + rng.normal(scale=0.1, size=n)
        frames.append(pd.DataFrame({"x": x, "y": y, "g": group}))
    return pd.concat(frames, ignore_index=True)


def test_slopes_by_level():
    data = _interaction_data({"a": 0.0, "b": 1.0, "c": 3.0})
    fit = smf.ols("y ~ x * C(g)", data=data).fit()

    ss = simple_slopes(fit, "x", "g")

    assert list(ss.est["group"]) == ["a", "b", "c"]
    np.testing.assert_allclose(ss.est["slope"], [0.0, 1.0, 3.0], atol=0.1)
    assert np.isclose(ss.est["slope"].iloc[1], fit.params["x"] + fit.params["x:C(g)[T.b]"])
    assert np.isclose(ss.est["se"].iloc[0], fit.bse["x"])
    assert ss.df_resid == fit.df_resid


def test_pairwise_comparisons():
    data = _interaction_data({"a": 0.0, "b": 1.0, "c": 3.0})
    fit = smf.ols("y ~ x * C(g)", data=data).fit()

    comp = simple_slopes(fit, "x", "g").comp

    assert list(comp["comp"]) == ["a-b", "a-c", "b-c"]
    assert np.isclose(comp["diff"].iloc[0], -fit.params["x:C(g)[T.b]"])
    assert np.isclose(comp["se"].iloc[0], fit.bse["x:C(g)[T.b]"])
    assert (comp["p"] < 0.001).all()


def test_compact_letters_all_different():
    data = _interaction_data({"a": 0.0, "b": 1.0, "c": 3.0})
    ss = simple_slopes(smf.ols("y ~ x * C(g)", data=data).fit(), "x", "g")

    letters = compact_letters(ss)

    assert list(letters.index) == ["a", "b", "c"]
    assert list(letters.columns) == ["a", "b", "c"]
    np.testing.assert_array_equal(letters.to_numpy(), np.eye(3, dtype=bool))


def test_compact_letters_shared_letter():
    data = _interaction_data({"a": 1.0, "c": 3.0}, seed=1)
    twin = data[data["g"] == "a"].assign(g="b")
    data = pd.concat([data, twin], ignore_index=True)
    ss = simple_slopes(smf.ols("y ~ x * C(g)", data=data).fit(), "x", "g")

    letters = compact_letters(ss)

    assert list(letters.columns) == ["a", "b"]
    assert letters.loc["c"].tolist() == [False, True]
    assert letters.loc["a"].tolist() == letters.loc["b"].tolist() == [True, False]


def test_string_representation():
    data = _interaction_data({"a": 0.0, "b": 1.0})
    ss = simple_slopes(smf.ols("y ~ x * C(g)", data=data).fit(), "x", "g")

    text = str(ss)
    assert text.startswith("Simple Slopes:")
    assert "Pairwise Comparisons:" in text


def test_missing_interaction_rejected():
    data = _interaction_data({"a": 0.0, "b": 1.0})
    additive = smf.ols("y ~ x + C(g)", data=data).fit()

    with pytest.raises(ValueError, match="no interaction"):
        simple_slopes(additive, "x", "g")
    with pytest.raises(ValueError, match="no coefficient"):
        simple_slopes(additive, "z", "g")
