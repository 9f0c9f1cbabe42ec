"""
olsdiag - Diagnostics for Ordinary Least Squares Regression

Collinearity measures, model-fit assessments and variable-contribution
diagnostics for models fitted with statsmodels OLS:

- VIF / tolerance, eigenvalues, condition indices and variance proportions
- Residual-fit spread, observed vs predicted, lack-of-fit F test
- Added-variable data, part and partial correlations, residual plus component

Examples
--------
>>> import statsmodels.formula.api as smf
>>> from olsdiag import collinearity_diagnostics, run_diagnostics
>>> fit = smf.ols("mpg ~ disp + hp + wt + qsec", data=mtcars).fit()
>>> print(collinearity_diagnostics(fit))
>>> report = run_diagnostics(fit)
>>> report.save("diagnostics/")
"""

__version__ = "0.1.0"

from olsdiag.model import (
    ModelDiagnosticError,
    InsufficientPredictorsError,
    NotSimpleRegressionError,
    InsufficientReplicatesError,
    OLSModelView,
    as_model_view,
)
from olsdiag.collinearity import (
    VIFTable,
    EigenConditionIndex,
    CollinearityDiagnostics,
    vif_tolerance,
    eigen_condition_index,
    collinearity_diagnostics,
)
from olsdiag.fit_assessment import (
    ResidualFitSpread,
    ObservedVsPredicted,
    PureErrorAnova,
    residual_fit_spread,
    observed_vs_predicted,
    lack_of_fit_test,
)
from olsdiag.contribution import (
    AddedVariableData,
    PartCorrelations,
    ComponentResidualData,
    added_variable_data,
    part_correlations,
    component_residual_data,
)
from olsdiag.config import DiagnosticsConfig, PlotConfig, ThresholdConfig, load_config
from olsdiag.report import DiagnosticReport, run_diagnostics

__all__ = [
    # Model view and errors
    "ModelDiagnosticError",
    "InsufficientPredictorsError",
    "NotSimpleRegressionError",
    "InsufficientReplicatesError",
    "OLSModelView",
    "as_model_view",
    # Collinearity
    "VIFTable",
    "EigenConditionIndex",
    "CollinearityDiagnostics",
    "vif_tolerance",
    "eigen_condition_index",
    "collinearity_diagnostics",
    # Model fit assessment
    "ResidualFitSpread",
    "ObservedVsPredicted",
    "PureErrorAnova",
    "residual_fit_spread",
    "observed_vs_predicted",
    "lack_of_fit_test",
    # Variable contributions
    "AddedVariableData",
    "PartCorrelations",
    "ComponentResidualData",
    "added_variable_data",
    "part_correlations",
    "component_residual_data",
    # Configuration and reports
    "DiagnosticsConfig",
    "PlotConfig",
    "ThresholdConfig",
    "load_config",
    "DiagnosticReport",
    "run_diagnostics",
]
