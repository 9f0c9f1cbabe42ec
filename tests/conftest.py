"""
Pytest configuration and shared fixtures for the diagnostic test suites.

Synthetic datasets are generated with a seeded numpy Generator and fitted
with statsmodels, so every test sees the same fitted models.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf


def generate_regression_data(
    n_obs: int = 60,
    collinearity_noise: float = 0.1,
    seed: int = 42,
) -> pd.DataFrame:
    """
    Generate a regression dataset with one near-collinear predictor pair.

    Args:
        n_obs: Number of observations.
        collinearity_noise: Standard deviation of the noise separating x2
            from x1; smaller values give stronger collinearity.
        seed: Random seed for reproducibility.

    Returns:
        DataFrame with columns y, x1, x2, x3 where
        x2 = x1 + noise and x3 is independent of both.
    """
    rng = np.random.default_rng(seed)
    x1 = rng.normal(0, 1, n_obs)
    x2 = x1 + rng.normal(0, collinearity_noise, n_obs)
    x3 = rng.normal(5, 2, n_obs)
    y = 1.0 + 2.0 * x1 - 1.0 * x2 + 0.5 * x3 + rng.normal(0, 1, n_obs)
    return pd.DataFrame({"y": y, "x1": x1, "x2": x2, "x3": x3})


def generate_replicated_data(
    levels: tuple = (1.0, 2.0, 3.0, 4.0, 5.0, 6.0),
    replicates: int = 4,
    curvature: float = 0.3,
    seed: int = 7,
) -> pd.DataFrame:
    """Single-predictor data with repeated x levels and optional curvature."""
    rng = np.random.default_rng(seed)
    x = np.repeat(np.asarray(levels, dtype=float), replicates)
    y = 2.0 + 1.5 * x + curvature * x ** 2 + rng.normal(0, 0.5, len(x))
    return pd.DataFrame({"y": y, "x": x})


@pytest.fixture(autouse=True)
def close_figures():
    """Close every matplotlib figure a test leaves open."""
    yield
    plt.close("all")


@pytest.fixture
def regression_data():
    return generate_regression_data()


@pytest.fixture
def multiple_fit(regression_data):
    """Formula-API fit with intercept and three predictors."""
    return smf.ols("y ~ x1 + x2 + x3", data=regression_data).fit()


@pytest.fixture
def array_fit(regression_data):
    """Array-API fit with an explicit constant column."""
    X = sm.add_constant(regression_data[["x1", "x2", "x3"]].to_numpy())
    return sm.OLS(regression_data["y"].to_numpy(), X).fit()


@pytest.fixture
def replicated_data():
    return generate_replicated_data()


@pytest.fixture
def simple_fit(replicated_data):
    """Simple regression on replicated predictor levels."""
    return smf.ols("y ~ x", data=replicated_data).fit()
