"""
Read-only view over a fitted statsmodels OLS model.

Every diagnostic in this package consumes the same handful of quantities
from a fitted model: the response, the design matrix, the coefficients,
the residuals and the residual degrees of freedom. ``as_model_view``
extracts them once, validates the model type, and locates the intercept
column so downstream code can separate predictors from the constant.

Design matrix structure:
    X = [intercept? | predictor columns in design order]

Validation errors derive from ``ModelDiagnosticError`` (a ``ValueError``)
so callers can distinguish "this diagnostic does not apply to this model"
from genuine bugs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

__all__ = [
    "ModelDiagnosticError",
    "InsufficientPredictorsError",
    "NotSimpleRegressionError",
    "InsufficientReplicatesError",
    "OLSModelView",
    "as_model_view",
    "require_predictors",
    "require_simple_regression",
    "residualize",
]


class ModelDiagnosticError(ValueError):
    """Raised when a diagnostic cannot be computed for the supplied model."""
    pass


class InsufficientPredictorsError(ModelDiagnosticError):
    """Raised when a diagnostic needs more predictors than the model has."""
    pass


class NotSimpleRegressionError(ModelDiagnosticError):
    """Raised when a diagnostic is defined only for a single predictor."""
    pass


class InsufficientReplicatesError(ModelDiagnosticError):
    """Raised when pure error cannot be estimated (no repeated predictor levels)."""
    pass


@dataclass(frozen=True)
class OLSModelView:
    """Immutable snapshot of the quantities diagnostics read from a fit.

    Attributes:
        y: Response vector (n,).
        X: Full design matrix (n, p), intercept column included if present.
        term_names: Names of all design columns, in design order.
        response_name: Name of the response variable.
        intercept_idx: Column index of the intercept, or None.
        params: Coefficient estimates (p,).
        tvalues: t statistics of the coefficients (p,).
        fitted: Fitted values (n,).
        resid: Residuals (n,).
        df_resid: Residual degrees of freedom.
        rsquared: Coefficient of determination of the fit.
    """

    y: NDArray[np.float64]
    X: NDArray[np.float64]
    term_names: list[str]
    response_name: str
    intercept_idx: int | None
    params: NDArray[np.float64]
    tvalues: NDArray[np.float64]
    fitted: NDArray[np.float64]
    resid: NDArray[np.float64]
    df_resid: float
    rsquared: float

    @property
    def n_obs(self) -> int:
        return self.X.shape[0]

    @property
    def has_intercept(self) -> bool:
        return self.intercept_idx is not None

    @property
    def predictor_idx(self) -> list[int]:
        """Column indices of the non-intercept terms."""
        return [j for j in range(self.X.shape[1]) if j != self.intercept_idx]

    @property
    def predictor_names(self) -> list[str]:
        return [self.term_names[j] for j in self.predictor_idx]

    @property
    def n_predictors(self) -> int:
        return len(self.predictor_idx)

    @property
    def predictors(self) -> NDArray[np.float64]:
        """Design matrix without the intercept column (n, n_predictors)."""
        return self.X[:, self.predictor_idx]

    def coefficient(self, name: str) -> float:
        return float(self.params[self.term_names.index(name)])


def _is_ols_results(model: object) -> bool:
    from statsmodels.regression.linear_model import (
        OLS,
        RegressionResults,
        RegressionResultsWrapper,
    )

    if not isinstance(model, (RegressionResults, RegressionResultsWrapper)):
        return False
    return isinstance(getattr(model, "model", None), OLS)


def _find_intercept(model: object) -> int | None:
    """Locate the constant column statsmodels detected, if any."""
    k_constant = getattr(model.model, "k_constant", 0)
    if not k_constant:
        return None

    const_idx = getattr(model.model.data, "const_idx", None)
    if const_idx is not None:
        return int(const_idx)

    # Implicit constant (e.g. full set of dummies): no single column to drop
    return None


def as_model_view(model: object) -> OLSModelView:
    """
    Validate a fitted OLS model and extract a read-only view of it.

    Args:
        model: Result of ``statsmodels`` ``OLS(...).fit()`` or
            ``smf.ols(...).fit()``.

    Returns:
        OLSModelView over the model's data and estimates.

    Raises:
        TypeError: If ``model`` is not a fitted statsmodels OLS result.
        InsufficientPredictorsError: If the model has no predictor columns.
    """
    if isinstance(model, OLSModelView):
        return model

    if not _is_ols_results(model):
        raise TypeError(
            f"Expected a fitted statsmodels OLS result, got {type(model).__name__}. "
            f"Fit the model with statsmodels.api.OLS(y, X).fit() or "
            f"statsmodels.formula.api.ols(formula, data).fit()."
        )

    y = np.asarray(model.model.endog, dtype=np.float64)
    X = np.asarray(model.model.exog, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, 1)

    term_names = [str(name) for name in model.model.exog_names]
    intercept_idx = _find_intercept(model)

    n_predictors = X.shape[1] - (0 if intercept_idx is None else 1)
    if n_predictors < 1:
        raise InsufficientPredictorsError(
            "Model has no predictors: the design holds only an intercept"
        )

    view = OLSModelView(
        y=y,
        X=X,
        term_names=term_names,
        response_name=str(model.model.endog_names),
        intercept_idx=intercept_idx,
        params=np.asarray(model.params, dtype=np.float64),
        tvalues=np.asarray(model.tvalues, dtype=np.float64),
        fitted=np.asarray(model.fittedvalues, dtype=np.float64),
        resid=np.asarray(model.resid, dtype=np.float64),
        df_resid=float(model.df_resid),
        rsquared=float(model.rsquared),
    )
    logger.debug(
        "Model view: n=%d, terms=%s, intercept_idx=%s",
        view.n_obs, term_names, intercept_idx,
    )
    return view


def require_predictors(view: OLSModelView, minimum: int, purpose: str) -> None:
    """Raise InsufficientPredictorsError if the model has too few predictors."""
    if view.n_predictors < minimum:
        raise InsufficientPredictorsError(
            f"{purpose} requires at least {minimum} predictors; "
            f"model has {view.n_predictors} ({', '.join(view.predictor_names)})"
        )


def require_simple_regression(view: OLSModelView, purpose: str) -> None:
    """Raise NotSimpleRegressionError unless the model has exactly one predictor."""
    if view.n_predictors != 1:
        raise NotSimpleRegressionError(
            f"{purpose} is available only for simple linear regression; "
            f"model has {view.n_predictors} predictors ({', '.join(view.predictor_names)})"
        )


def residualize(
    y: NDArray[np.float64],
    X: NDArray[np.float64] | None,
) -> NDArray[np.float64]:
    """
    Residuals of the least-squares regression of ``y`` on ``X``.

    Residuals are computed as e = y - X(X'X)⁻X'y using ``lstsq`` so
    rank-deficient ``X`` is handled by the minimum-norm solution.

    Args:
        y: Response vector (n,) or matrix (n, m); columns are residualized
            independently.
        X: Regressor matrix (n, k). None or zero columns returns ``y``.

    Returns:
        Residual array with the shape of ``y``.
    """
    y = np.asarray(y, dtype=np.float64)
    if X is None or X.size == 0 or X.shape[1] == 0:
        return y.copy()

    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    return y - X @ beta
