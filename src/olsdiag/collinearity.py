"""
Collinearity diagnostics for fitted OLS models.

Two complementary views of near-linear dependence among predictors:

1. Variance inflation (per predictor)
   Each predictor X_k is regressed on the remaining predictors (with an
   intercept). Its coefficient of determination R²_k gives

       Tolerance_k = 1 - R²_k
       VIF_k       = 1 / Tolerance_k

   VIF_k is the factor by which Var(b_k) is inflated relative to an
   orthogonal design.

2. Eigenvalue / condition index decomposition (per dimension)
   Following Belsley, Kuh & Welsch (1980), the design columns are scaled
   to unit length, Z'Z is eigen-decomposed, and

       CI_j  = sqrt(λ_max / λ_j)
       π_kj  = (v_kj² / λ_j) / Σ_j (v_kj² / λ_j)

   A large condition index with two or more terms carrying a high
   variance-decomposition proportion π_kj identifies a dependency.

Usage:
    >>> import statsmodels.formula.api as smf
    >>> fit = smf.ols("mpg ~ disp + hp + wt + qsec", data=mtcars).fit()
    >>> print(collinearity_diagnostics(fit))

References:
    Belsley, D. A., Kuh, E. & Welsch, R. E. (1980). Regression Diagnostics:
    Identifying Influential Data and Sources of Collinearity. Wiley.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from olsdiag.model import (
    ModelDiagnosticError,
    as_model_view,
    require_predictors,
    residualize,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_VIF_THRESHOLD",
    "DEFAULT_CONDITION_INDEX_THRESHOLD",
    "DEFAULT_PROPORTION_THRESHOLD",
    "VIFTable",
    "EigenConditionIndex",
    "CollinearityDiagnostics",
    "vif_tolerance",
    "eigen_condition_index",
    "collinearity_diagnostics",
]

DEFAULT_VIF_THRESHOLD = 10.0
DEFAULT_CONDITION_INDEX_THRESHOLD = 30.0
DEFAULT_PROPORTION_THRESHOLD = 0.5

# Tolerances below this are treated as exact linear dependence
_TOLERANCE_EPS = 1e-12


def _format_table(title: str, table: pd.DataFrame, digits: int = 4) -> str:
    body = table.to_string(index=False, float_format=lambda v: f"{v:.{digits}f}")
    width = max(len(line) for line in body.splitlines())
    rule = "-" * max(width, len(title))
    return f"{title}\n{rule}\n{body}\n{rule}"


@dataclass(frozen=True)
class VIFTable:
    """
    Tolerance and variance inflation factor per predictor.

    Attributes
    ----------
    table : pd.DataFrame
        Columns ``Variables``, ``Tolerance``, ``VIF`` in design order.
    r_squared : pd.Series
        R²_k of each auxiliary regression, indexed by predictor name.
    """
    table: pd.DataFrame
    r_squared: pd.Series

    @property
    def vif(self) -> pd.Series:
        return self.table.set_index("Variables")["VIF"]

    @property
    def tolerance(self) -> pd.Series:
        return self.table.set_index("Variables")["Tolerance"]

    def flagged(self, threshold: float = DEFAULT_VIF_THRESHOLD) -> list[str]:
        """Predictors whose VIF exceeds ``threshold``."""
        vif = self.vif
        return list(vif.index[vif > threshold])

    def __str__(self) -> str:
        return _format_table("Tolerance and Variance Inflation Factor", self.table, digits=4)


@dataclass(frozen=True)
class EigenConditionIndex:
    """
    Eigenvalues, condition indices and variance-decomposition proportions.

    Attributes
    ----------
    table : pd.DataFrame
        One row per dimension (eigenvalues sorted descending). Columns
        ``Eigenvalue``, ``Condition Index`` and one proportion column per
        term.
    terms : list[str]
        Term names of the proportion columns.
    include_intercept : bool
        True if the unit-length scaled design (intercept kept) was
        decomposed; False if predictors were centered first, i.e. the
        predictor correlation matrix was decomposed.
    """
    table: pd.DataFrame
    terms: list[str]
    include_intercept: bool

    @property
    def eigenvalues(self) -> NDArray[np.float64]:
        return self.table["Eigenvalue"].to_numpy()

    @property
    def condition_indices(self) -> NDArray[np.float64]:
        return self.table["Condition Index"].to_numpy()

    @property
    def proportions(self) -> pd.DataFrame:
        return self.table[self.terms]

    @property
    def condition_number(self) -> float:
        """Largest condition index."""
        return float(self.condition_indices[-1])

    def __str__(self) -> str:
        return _format_table("Eigenvalue and Condition Index", self.table, digits=4)


@dataclass(frozen=True)
class CollinearityDiagnostics:
    """VIF/tolerance table together with the eigen/condition-index table."""
    vif_table: VIFTable
    eigen_cindex: EigenConditionIndex

    def flagged_dependencies(
        self,
        ci_threshold: float = DEFAULT_CONDITION_INDEX_THRESHOLD,
        proportion_threshold: float = DEFAULT_PROPORTION_THRESHOLD,
    ) -> pd.DataFrame:
        """
        Dimensions that indicate a harmful near-dependency.

        A dimension is reported when its condition index exceeds
        ``ci_threshold`` and at least two terms have a variance-decomposition
        proportion above ``proportion_threshold`` on it.

        Returns
        -------
        pd.DataFrame
            Columns ``dimension`` (1-based), ``condition_index``, ``terms``.
        """
        rows = []
        table = self.eigen_cindex.table
        for pos in range(len(table)):
            ci = table["Condition Index"].iloc[pos]
            if not ci > ci_threshold:
                continue
            props = table[self.eigen_cindex.terms].iloc[pos]
            involved = [t for t in self.eigen_cindex.terms if props[t] > proportion_threshold]
            if len(involved) >= 2:
                rows.append({
                    "dimension": pos + 1,
                    "condition_index": float(ci),
                    "terms": involved,
                })
        return pd.DataFrame(rows, columns=["dimension", "condition_index", "terms"])

    def __str__(self) -> str:
        return f"{self.vif_table}\n\n{self.eigen_cindex}"


def vif_tolerance(model: object) -> VIFTable:
    """
    Tolerance and variance inflation factor of every predictor.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).

    Returns:
        VIFTable with one row per predictor.

    Raises:
        TypeError: If ``model`` is not a fitted OLS result.
        InsufficientPredictorsError: If the model has fewer than two predictors.

    Note:
        An exactly collinear predictor gets Tolerance 0 and VIF ``inf``;
        this is reported as a warning, not an error.
    """
    view = as_model_view(model)
    require_predictors(view, 2, "Collinearity diagnostics")

    P = view.predictors
    n = view.n_obs
    names = view.predictor_names

    tolerances = np.empty(len(names))
    r_squared = np.empty(len(names))

    for k in range(len(names)):
        others = np.delete(P, k, axis=1)
        design = np.column_stack([np.ones(n), others])
        x_k = P[:, k]

        resid = residualize(x_k, design)
        ss_res = float(np.sum(resid ** 2))
        ss_tot = float(np.sum((x_k - x_k.mean()) ** 2))

        tol = ss_res / ss_tot if ss_tot > 0 else 0.0
        if tol < _TOLERANCE_EPS:
            logger.warning(
                "Predictor '%s' is an exact linear combination of the others (VIF=inf)",
                names[k],
            )
            tol = 0.0

        tolerances[k] = tol
        r_squared[k] = 1.0 - tol

    vifs = np.full(len(names), np.inf)
    nonzero = tolerances > 0
    vifs[nonzero] = 1.0 / tolerances[nonzero]

    table = pd.DataFrame({
        "Variables": names,
        "Tolerance": tolerances,
        "VIF": vifs,
    })
    logger.debug("VIF computed for %d predictors (max %.3f)", len(names), float(np.max(vifs)))
    return VIFTable(table=table, r_squared=pd.Series(r_squared, index=names, name="R-Squared"))


def _unit_length(Z: NDArray[np.float64], names: list[str]) -> NDArray[np.float64]:
    norms = np.sqrt(np.sum(Z ** 2, axis=0))
    zero = norms == 0
    if np.any(zero):
        bad = [names[j] for j in np.flatnonzero(zero)]
        raise ModelDiagnosticError(
            f"Cannot scale design columns to unit length; zero-length columns: {bad}"
        )
    return Z / norms


def eigen_condition_index(
    model: object,
    include_intercept: bool = True,
) -> EigenConditionIndex:
    """
    Eigenvalue decomposition and condition indices of the scaled design.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).
        include_intercept: If True (default), decompose the unit-length
            scaled design matrix with the intercept column kept, so the
            intercept takes part in the variance decomposition. If False,
            center the predictors before scaling; Z'Z is then the predictor
            correlation matrix.

    Returns:
        EigenConditionIndex with dimensions ordered by decreasing eigenvalue.

    Raises:
        TypeError: If ``model`` is not a fitted OLS result.
        InsufficientPredictorsError: If the model has fewer than two predictors.

    Note:
        Eigenvalues of an exactly rank-deficient design are floored at
        ``λ_max * p * eps``, so the condition index of an exact dependency
        is very large but finite and every term's proportions still sum to 1.
    """
    view = as_model_view(model)
    require_predictors(view, 2, "Collinearity diagnostics")

    if include_intercept:
        X = view.X
        terms = list(view.term_names)
        if not view.has_intercept:
            logger.debug("Model has no intercept; decomposing predictors only")
    else:
        X = view.predictors - view.predictors.mean(axis=0)
        terms = view.predictor_names

    Z = _unit_length(X, terms)
    eigvals, eigvecs = np.linalg.eigh(Z.T @ Z)

    order = np.argsort(eigvals)[::-1]
    eigvals = eigvals[order]
    eigvecs = eigvecs[:, order]

    # Exact dependencies give eigenvalues of 0 (or tiny negatives); floor them
    # at the rank tolerance numpy.linalg.matrix_rank uses so indices stay finite
    floor = eigvals[0] * len(eigvals) * np.finfo(float).eps
    if eigvals[-1] < floor:
        logger.warning(
            "Design is rank deficient: %d eigenvalue(s) at machine precision",
            int(np.sum(eigvals < floor)),
        )
    eigvals = np.maximum(eigvals, floor)

    cindex = np.sqrt(eigvals[0] / eigvals)
    # phi[k, j] = v_kj^2 / lambda_j ; rows are terms, columns dimensions
    phi = eigvecs ** 2 / eigvals
    proportions = phi / phi.sum(axis=1, keepdims=True)

    table = pd.DataFrame({
        "Eigenvalue": eigvals,
        "Condition Index": cindex,
    })
    for k, term in enumerate(terms):
        table[term] = proportions[k, :]

    logger.debug(
        "Eigen decomposition: %d dimensions, condition number %.3f",
        len(eigvals), float(cindex[-1]),
    )
    return EigenConditionIndex(table=table, terms=terms, include_intercept=include_intercept)


def collinearity_diagnostics(
    model: object,
    include_intercept: bool = True,
) -> CollinearityDiagnostics:
    """
    Combined VIF/tolerance and eigenvalue/condition-index diagnostics.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).
        include_intercept: Passed to ``eigen_condition_index``.

    Returns:
        CollinearityDiagnostics holding both tables.
    """
    view = as_model_view(model)
    return CollinearityDiagnostics(
        vif_table=vif_tolerance(view),
        eigen_cindex=eigen_condition_index(view, include_intercept=include_intercept),
    )
