"""Tests for model validation and the read-only model view."""

import numpy as np
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf

from olsdiag.model import (
    InsufficientPredictorsError,
    InsufficientReplicatesError,
    ModelDiagnosticError,
    NotSimpleRegressionError,
    as_model_view,
    require_predictors,
    require_simple_regression,
    residualize,
)


class TestAsModelView:

    def test_formula_fit_terms(self, multiple_fit):
        view = as_model_view(multiple_fit)

        assert view.term_names == ["Intercept", "x1", "x2", "x3"]
        assert view.intercept_idx == 0
        assert view.has_intercept
        assert view.predictor_names == ["x1", "x2", "x3"]
        assert view.n_predictors == 3
        assert view.response_name == "y"
        assert view.predictors.shape == (60, 3)

    def test_array_fit_terms(self, array_fit):
        view = as_model_view(array_fit)

        assert view.intercept_idx == 0
        assert view.predictor_names == ["x1", "x2", "x3"]

    def test_values_match_model(self, multiple_fit):
        view = as_model_view(multiple_fit)

        np.testing.assert_allclose(view.params, multiple_fit.params.to_numpy())
        np.testing.assert_allclose(view.resid, multiple_fit.resid.to_numpy())
        np.testing.assert_allclose(view.fitted + view.resid, view.y)
        assert view.df_resid == pytest.approx(56.0)
        assert view.coefficient("x3") == pytest.approx(multiple_fit.params["x3"])

    def test_no_intercept_model(self, regression_data):
        fit = smf.ols("y ~ x1 + x2 + x3 - 1", data=regression_data).fit()
        view = as_model_view(fit)

        assert view.intercept_idx is None
        assert not view.has_intercept
        assert view.n_predictors == 3

    def test_view_passes_through(self, multiple_fit):
        view = as_model_view(multiple_fit)
        assert as_model_view(view) is view

    def test_rejects_non_model(self, regression_data):
        with pytest.raises(TypeError, match="statsmodels OLS"):
            as_model_view(regression_data)

    def test_rejects_unfitted_model(self, regression_data):
        with pytest.raises(TypeError):
            as_model_view(smf.ols("y ~ x1 + x2", data=regression_data))

    def test_rejects_wls(self, regression_data):
        X = sm.add_constant(regression_data[["x1", "x2"]])
        fit = sm.WLS(regression_data["y"], X, weights=np.ones(len(X))).fit()
        with pytest.raises(TypeError):
            as_model_view(fit)

    def test_rejects_glm(self, regression_data):
        X = sm.add_constant(regression_data[["x1", "x2"]])
        fit = sm.GLM(regression_data["y"], X).fit()
        with pytest.raises(TypeError):
            as_model_view(fit)

    def test_intercept_only_model(self, regression_data):
        fit = smf.ols("y ~ 1", data=regression_data).fit()
        with pytest.raises(InsufficientPredictorsError, match="no predictors"):
            as_model_view(fit)


class TestRequirements:

    def test_error_hierarchy(self):
        for cls in (InsufficientPredictorsError, NotSimpleRegressionError,
                    InsufficientReplicatesError):
            assert issubclass(cls, ModelDiagnosticError)
            assert issubclass(cls, ValueError)

    def test_require_predictors(self, multiple_fit, simple_fit):
        require_predictors(as_model_view(multiple_fit), 2, "Test")
        with pytest.raises(InsufficientPredictorsError, match="at least 2"):
            require_predictors(as_model_view(simple_fit), 2, "Test")

    def test_require_simple_regression(self, multiple_fit, simple_fit):
        require_simple_regression(as_model_view(simple_fit), "Test")
        with pytest.raises(NotSimpleRegressionError, match="simple linear regression"):
            require_simple_regression(as_model_view(multiple_fit), "Test")


class TestResidualize:

    def test_residuals_orthogonal_to_regressors(self):
        rng = np.random.default_rng(0)
        X = np.column_stack([np.ones(30), rng.normal(size=(30, 2))])
        y = rng.normal(size=30)

        e = residualize(y, X)

        np.testing.assert_allclose(X.T @ e, 0.0, atol=1e-10)

    def test_matrix_response(self):
        rng = np.random.default_rng(1)
        X = np.column_stack([np.ones(25), rng.normal(size=25)])
        Y = rng.normal(size=(25, 3))

        E = residualize(Y, X)

        assert E.shape == (25, 3)
        for k in range(3):
            np.testing.assert_allclose(E[:, k], residualize(Y[:, k], X))

    def test_empty_regressors_returns_copy(self):
        y = np.array([1.0, 2.0, 3.0])

        e = residualize(y, np.empty((3, 0)))

        np.testing.assert_array_equal(e, y)
        assert e is not y
        np.testing.assert_array_equal(residualize(y, None), y)
