"""
Model-fit assessment for fitted OLS models.

Three views of how well the fitted surface describes the response:

- Residual-fit spread (Cleveland, 1993): quantiles of the centered fitted
  values and of the residuals on a common f-value axis. If the spread of
  the residuals is comparable to the spread of the fit, the model
  explains little of the response.
- Observed vs predicted: response against fitted values. For an OLS fit
  with an intercept the least-squares line through these points is the
  identity line.
- Lack-of-fit F test (pure-error ANOVA): for a simple regression with
  repeated predictor levels, the residual sum of squares splits into

      SSE = SS_lack_of_fit + SS_pure_error

  where SS_pure_error is the within-level variation, which no function of
  x can explain. F = MS_lack_of_fit / MS_pure_error tests whether a
  straight line is adequate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy import stats

from olsdiag.model import (
    InsufficientReplicatesError,
    as_model_view,
    require_simple_regression,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ResidualFitSpread",
    "ObservedVsPredicted",
    "PureErrorAnova",
    "f_values",
    "residual_fit_spread",
    "observed_vs_predicted",
    "lack_of_fit_test",
]


def f_values(n: int) -> NDArray[np.float64]:
    """Cleveland f-values (i - 0.5) / n for i = 1..n."""
    return (np.arange(1, n + 1) - 0.5) / n


@dataclass(frozen=True)
class ResidualFitSpread:
    """
    Data for a residual-fit spread plot.

    Attributes
    ----------
    fit_spread : pd.DataFrame
        Columns ``f_value`` and ``fitted_minus_mean`` (sorted ascending).
    residual_spread : pd.DataFrame
        Columns ``f_value`` and ``residual`` (sorted ascending).
    """
    fit_spread: pd.DataFrame
    residual_spread: pd.DataFrame

    @property
    def fit_range(self) -> float:
        values = self.fit_spread["fitted_minus_mean"]
        return float(values.max() - values.min())

    @property
    def residual_range(self) -> float:
        values = self.residual_spread["residual"]
        return float(values.max() - values.min())


@dataclass(frozen=True)
class ObservedVsPredicted:
    """
    Observed response against fitted values.

    Attributes
    ----------
    data : pd.DataFrame
        Columns ``predicted`` and ``observed``.
    slope, intercept : float
        Least-squares line of observed on predicted.
    response_name : str
        Name of the response variable (axis label).
    """
    data: pd.DataFrame
    slope: float
    intercept: float
    response_name: str


@dataclass(frozen=True)
class PureErrorAnova:
    """
    Lack-of-fit ANOVA table for a simple linear regression.

    Attributes
    ----------
    table : pd.DataFrame
        Indexed by source (``<predictor>``, ``Residual``, ``Lack of fit``,
        ``Pure Error``) with columns ``DF``, ``Sum Sq``, ``Mean Sq``,
        ``F Value``, ``Pr(>F)``. The regression F uses the pure-error mean
        square as its denominator.
    response_name, predictor_name : str
        Variable names of the fitted model.
    n_levels : int
        Number of distinct predictor values.
    """
    table: pd.DataFrame
    response_name: str
    predictor_name: str
    n_levels: int

    @property
    def lack_of_fit_f(self) -> float:
        return float(self.table.loc["Lack of fit", "F Value"])

    @property
    def lack_of_fit_p(self) -> float:
        return float(self.table.loc["Lack of fit", "Pr(>F)"])

    @property
    def pure_error_ss(self) -> float:
        return float(self.table.loc["Pure Error", "Sum Sq"])

    @property
    def lack_of_fit_ss(self) -> float:
        return float(self.table.loc["Lack of fit", "Sum Sq"])

    def __str__(self) -> str:
        shown = self.table.copy()
        shown.index = [
            f" {name}" if name in ("Lack of fit", "Pure Error") else name
            for name in shown.index
        ]
        body = shown.to_string(na_rep="", float_format=lambda v: f"{v:.4f}")
        width = max(len(line) for line in body.splitlines())
        rule = "-" * width
        return (
            f"Lack of Fit F Test\n{rule}\n"
            f"Response :   {self.response_name}\n"
            f"Predictor:   {self.predictor_name}\n\n"
            f"Analysis of Variance Table\n{rule}\n{body}\n{rule}"
        )


def residual_fit_spread(model: object) -> ResidualFitSpread:
    """
    Compute residual-fit spread data.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).

    Returns:
        ResidualFitSpread with sorted centered fitted values and sorted
        residuals on the f-value grid (i - 0.5) / n.
    """
    view = as_model_view(model)
    f = f_values(view.n_obs)

    fit_centered = np.sort(view.fitted - view.fitted.mean())
    resid_sorted = np.sort(view.resid)

    return ResidualFitSpread(
        fit_spread=pd.DataFrame({"f_value": f, "fitted_minus_mean": fit_centered}),
        residual_spread=pd.DataFrame({"f_value": f, "residual": resid_sorted}),
    )


def observed_vs_predicted(model: object) -> ObservedVsPredicted:
    """
    Pair observed responses with fitted values and fit a line through them.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).

    Returns:
        ObservedVsPredicted with the least-squares line of observed on
        predicted.
    """
    view = as_model_view(model)
    predicted = view.fitted
    observed = view.y

    if np.ptp(predicted) > 0:
        slope, intercept = np.polyfit(predicted, observed, deg=1)
    else:
        # Flat fit: no line can be drawn through a single predicted value
        slope, intercept = np.nan, np.nan

    return ObservedVsPredicted(
        data=pd.DataFrame({"predicted": predicted, "observed": observed}),
        slope=float(slope),
        intercept=float(intercept),
        response_name=view.response_name,
    )


def lack_of_fit_test(model: object) -> PureErrorAnova:
    """
    Lack-of-fit F test based on pure error.

    Observations are grouped by distinct predictor value. Pure error is the
    within-group variation around group means; lack of fit is the remainder
    of the residual sum of squares.

    Args:
        model: Fitted statsmodels OLS result with exactly one predictor.

    Returns:
        PureErrorAnova table.

    Raises:
        TypeError: If ``model`` is not a fitted OLS result.
        NotSimpleRegressionError: If the model has more than one predictor.
        InsufficientReplicatesError: If no predictor value is repeated, or
            every level is repeated so lack of fit has no degrees of freedom.
    """
    view = as_model_view(model)
    require_simple_regression(view, "Lack of fit F test")

    predictor = view.predictor_names[0]
    x = view.predictors[:, 0]
    y = view.y
    n = view.n_obs

    frame = pd.DataFrame({"x": x, "y": y})
    group_mean = frame.groupby("x")["y"].transform("mean").to_numpy()
    n_levels = int(frame["x"].nunique())

    ss_pure_error = float(np.sum((y - group_mean) ** 2))
    df_pure_error = n - n_levels
    if df_pure_error <= 0:
        raise InsufficientReplicatesError(
            f"Lack of fit F test needs repeated values of '{predictor}'; "
            f"all {n} observations have distinct values"
        )

    ss_resid = float(np.sum(view.resid ** 2))
    df_resid = view.df_resid
    df_lack_of_fit = df_resid - df_pure_error
    if df_lack_of_fit <= 0:
        raise InsufficientReplicatesError(
            f"Lack of fit has no degrees of freedom: {n_levels} distinct values of "
            f"'{predictor}' leave {df_lack_of_fit:g} df after the fitted line"
        )
    ss_lack_of_fit = ss_resid - ss_pure_error

    fitted_centered = view.fitted - (y.mean() if view.has_intercept else 0.0)
    ss_regression = float(np.sum(fitted_centered ** 2))
    df_regression = 1.0

    ms_pure_error = ss_pure_error / df_pure_error
    ms_lack_of_fit = ss_lack_of_fit / df_lack_of_fit
    ms_regression = ss_regression / df_regression

    if ms_pure_error > 0:
        f_regression = ms_regression / ms_pure_error
        f_lack_of_fit = ms_lack_of_fit / ms_pure_error
        p_regression = float(stats.f.sf(f_regression, df_regression, df_pure_error))
        p_lack_of_fit = float(stats.f.sf(f_lack_of_fit, df_lack_of_fit, df_pure_error))
    else:
        logger.warning("Pure error is zero: replicated observations are identical")
        f_regression = f_lack_of_fit = np.inf
        p_regression = p_lack_of_fit = 0.0

    table = pd.DataFrame(
        {
            "DF": [df_regression, df_resid, df_lack_of_fit, float(df_pure_error)],
            "Sum Sq": [ss_regression, ss_resid, ss_lack_of_fit, ss_pure_error],
            "Mean Sq": [ms_regression, ss_resid / df_resid, ms_lack_of_fit, ms_pure_error],
            "F Value": [f_regression, np.nan, f_lack_of_fit, np.nan],
            "Pr(>F)": [p_regression, np.nan, p_lack_of_fit, np.nan],
        },
        index=pd.Index([predictor, "Residual", "Lack of fit", "Pure Error"], name="Source"),
    )

    logger.debug(
        "Lack of fit: F=%.4f on (%g, %d) df, p=%.4g",
        f_lack_of_fit, df_lack_of_fit, df_pure_error, p_lack_of_fit,
    )
    return PureErrorAnova(
        table=table,
        response_name=view.response_name,
        predictor_name=predictor,
        n_levels=n_levels,
    )
