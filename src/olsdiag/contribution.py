"""
Variable-contribution diagnostics for fitted OLS models.

Added-variable (partial regression) data
    For predictor X_k, let Z be every other design column (intercept
    included). Then

        e_y = residuals of Y   regressed on Z
        e_x = residuals of X_k regressed on Z

    By the Frisch-Waugh-Lovell theorem the slope of e_y on e_x is exactly
    the fitted coefficient b_k, and their correlation is the partial
    correlation of Y and X_k given the other predictors.

Part and partial correlations
    With t_k the t statistic of b_k and df the residual degrees of freedom:

        partial_k = t_k / sqrt(t_k² + df)
        part_k    = t_k * sqrt((1 - R²) / df)

    The zero-order correlation is the plain Pearson correlation of Y and X_k.

Residual-plus-component data
    x_k against e + b_k·x_k. The least-squares slope through these points
    is b_k; curvature suggests a missing transformation of X_k.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from olsdiag.model import as_model_view, require_predictors, residualize

logger = logging.getLogger(__name__)

__all__ = [
    "AddedVariableData",
    "PartCorrelations",
    "ComponentResidualData",
    "added_variable_data",
    "part_correlations",
    "component_residual_data",
]


@dataclass(frozen=True)
class AddedVariableData:
    """
    Residual pairs for added-variable plots.

    Attributes:
        panels: Predictor name -> DataFrame with columns ``x_residual`` and
            ``y_residual``, in design order.
        slopes: Predictor name -> slope of y_residual on x_residual (equal to
            the fitted coefficient).
        response_name: Name of the response variable.
    """
    panels: dict[str, pd.DataFrame]
    slopes: dict[str, float]
    response_name: str

    @property
    def predictors(self) -> list[str]:
        return list(self.panels)

    def __getitem__(self, predictor: str) -> pd.DataFrame:
        return self.panels[predictor]


@dataclass(frozen=True)
class PartCorrelations:
    """Zero-order, partial and part correlations of each predictor with the response."""
    table: pd.DataFrame

    def __str__(self) -> str:
        body = self.table.to_string(float_format=lambda v: f"{v:.4f}")
        rule = "-" * max(len(line) for line in body.splitlines())
        return f"Correlations\n{rule}\n{body}\n{rule}"


@dataclass(frozen=True)
class ComponentResidualData:
    """
    Data for residual-plus-component plots.

    Attributes:
        panels: Predictor name -> DataFrame with columns ``x`` and
            ``component_residual`` (= residual + b_k * x).
        coefficients: Predictor name -> fitted coefficient b_k.
        response_name: Name of the response variable.
    """
    panels: dict[str, pd.DataFrame]
    coefficients: dict[str, float] = field(default_factory=dict)
    response_name: str = ""

    @property
    def predictors(self) -> list[str]:
        return list(self.panels)

    def __getitem__(self, predictor: str) -> pd.DataFrame:
        return self.panels[predictor]


def added_variable_data(model: object) -> AddedVariableData:
    """
    Partial-regression residuals for every predictor.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).

    Returns:
        AddedVariableData with one panel per predictor.

    Raises:
        TypeError: If ``model`` is not a fitted OLS result.
        InsufficientPredictorsError: If the model has fewer than two predictors.
    """
    view = as_model_view(model)
    require_predictors(view, 2, "Added variable plot")

    panels: dict[str, pd.DataFrame] = {}
    slopes: dict[str, float] = {}

    for j in view.predictor_idx:
        name = view.term_names[j]
        others = np.delete(view.X, j, axis=1)

        e_y = residualize(view.y, others)
        e_x = residualize(view.X[:, j], others)

        denom = float(e_x @ e_x)
        slopes[name] = float(e_x @ e_y) / denom if denom > 0 else np.nan
        panels[name] = pd.DataFrame({"x_residual": e_x, "y_residual": e_y})

    return AddedVariableData(panels=panels, slopes=slopes, response_name=view.response_name)


def part_correlations(model: object) -> PartCorrelations:
    """
    Zero-order, partial and part (semi-partial) correlations.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).

    Returns:
        PartCorrelations whose table is indexed by predictor with columns
        ``Zero Order``, ``Partial``, ``Part``.

    Raises:
        TypeError: If ``model`` is not a fitted OLS result.
        InsufficientPredictorsError: If the model has fewer than two predictors.
    """
    view = as_model_view(model)
    require_predictors(view, 2, "Part and partial correlations")

    df = view.df_resid
    r2 = view.rsquared
    t = view.tvalues[view.predictor_idx]
    P = view.predictors

    zero_order = np.array([
        np.corrcoef(view.y, P[:, k])[0, 1] for k in range(P.shape[1])
    ])
    partial = t / np.sqrt(t ** 2 + df)
    part = t * np.sqrt((1.0 - r2) / df)

    table = pd.DataFrame(
        {"Zero Order": zero_order, "Partial": partial, "Part": part},
        index=pd.Index(view.predictor_names, name="Variables"),
    )
    return PartCorrelations(table=table)


def component_residual_data(model: object) -> ComponentResidualData:
    """
    Residual-plus-component values for every predictor.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).

    Returns:
        ComponentResidualData with one panel per predictor.

    Raises:
        TypeError: If ``model`` is not a fitted OLS result.
        InsufficientPredictorsError: If the model has fewer than two predictors.
    """
    view = as_model_view(model)
    require_predictors(view, 2, "Residual plus component plot")

    panels: dict[str, pd.DataFrame] = {}
    coefficients: dict[str, float] = {}
    for j in view.predictor_idx:
        name = view.term_names[j]
        x = view.X[:, j]
        b = float(view.params[j])
        coefficients[name] = b
        panels[name] = pd.DataFrame({"x": x, "component_residual": view.resid + b * x})

    return ComponentResidualData(
        panels=panels,
        coefficients=coefficients,
        response_name=view.response_name,
    )
