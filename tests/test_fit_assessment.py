"""Tests for residual-fit spread, observed-vs-predicted and the lack-of-fit F test."""

import numpy as np
import pandas as pd
import pytest
import statsmodels.formula.api as smf
from statsmodels.stats.anova import anova_lm

from olsdiag.fit_assessment import (
    f_values,
    lack_of_fit_test,
    observed_vs_predicted,
    residual_fit_spread,
)
from olsdiag.model import InsufficientReplicatesError, NotSimpleRegressionError

from conftest import generate_replicated_data


class TestResidualFitSpread:

    def test_f_values(self):
        np.testing.assert_allclose(f_values(4), [0.125, 0.375, 0.625, 0.875])

    def test_sorted_quantiles(self, multiple_fit):
        result = residual_fit_spread(multiple_fit)
        fitted = multiple_fit.fittedvalues.to_numpy()
        resid = multiple_fit.resid.to_numpy()

        np.testing.assert_allclose(
            result.fit_spread["fitted_minus_mean"], np.sort(fitted - fitted.mean())
        )
        np.testing.assert_allclose(result.residual_spread["residual"], np.sort(resid))
        np.testing.assert_allclose(result.fit_spread["f_value"], f_values(60))
        assert result.fit_spread["fitted_minus_mean"].mean() == pytest.approx(0.0, abs=1e-10)

    def test_ranges(self, multiple_fit):
        result = residual_fit_spread(multiple_fit)
        resid = multiple_fit.resid.to_numpy()
        fitted = multiple_fit.fittedvalues.to_numpy()

        assert result.residual_range == pytest.approx(resid.max() - resid.min())
        assert result.fit_range == pytest.approx(fitted.max() - fitted.min())

    def test_works_for_simple_regression(self, simple_fit):
        result = residual_fit_spread(simple_fit)
        assert len(result.fit_spread) == 24


class TestObservedVsPredicted:

    def test_identity_line_with_intercept(self, multiple_fit):
        result = observed_vs_predicted(multiple_fit)

        assert result.slope == pytest.approx(1.0)
        assert result.intercept == pytest.approx(0.0, abs=1e-8)

    def test_data_columns(self, multiple_fit, regression_data):
        result = observed_vs_predicted(multiple_fit)

        assert list(result.data.columns) == ["predicted", "observed"]
        np.testing.assert_allclose(result.data["observed"], regression_data["y"])
        np.testing.assert_allclose(result.data["predicted"], multiple_fit.fittedvalues)
        assert result.response_name == "y"


class TestLackOfFit:

    def test_matches_nested_model_f_test(self, replicated_data, simple_fit):
        full = smf.ols("y ~ C(x)", data=replicated_data).fit()
        nested = anova_lm(simple_fit, full)

        result = lack_of_fit_test(simple_fit)

        assert result.pure_error_ss == pytest.approx(full.ssr)
        assert result.lack_of_fit_ss == pytest.approx(simple_fit.ssr - full.ssr)
        assert result.lack_of_fit_f == pytest.approx(nested["F"].iloc[1])
        assert result.lack_of_fit_p == pytest.approx(nested["Pr(>F)"].iloc[1])

    def test_degrees_of_freedom(self, simple_fit):
        table = lack_of_fit_test(simple_fit).table

        # 6 levels x 4 replicates
        assert table.loc["x", "DF"] == 1
        assert table.loc["Residual", "DF"] == 22
        assert table.loc["Lack of fit", "DF"] == 4
        assert table.loc["Pure Error", "DF"] == 18

    def test_sums_of_squares_decompose(self, simple_fit):
        table = lack_of_fit_test(simple_fit).table

        assert (
            table.loc["Lack of fit", "Sum Sq"] + table.loc["Pure Error", "Sum Sq"]
            == pytest.approx(table.loc["Residual", "Sum Sq"])
        )
        assert table.loc["x", "Sum Sq"] == pytest.approx(simple_fit.ess)

    def test_regression_f_uses_pure_error(self, simple_fit):
        table = lack_of_fit_test(simple_fit).table

        expected = table.loc["x", "Mean Sq"] / table.loc["Pure Error", "Mean Sq"]
        assert table.loc["x", "F Value"] == pytest.approx(expected)

    def test_detects_curvature(self):
        curved = smf.ols("y ~ x", data=generate_replicated_data(curvature=1.0)).fit()
        straight = smf.ols("y ~ x", data=generate_replicated_data(curvature=0.0)).fit()

        assert lack_of_fit_test(curved).lack_of_fit_p < 0.001
        assert lack_of_fit_test(straight).lack_of_fit_p > lack_of_fit_test(curved).lack_of_fit_p

    def test_table_layout(self, simple_fit):
        result = lack_of_fit_test(simple_fit)

        assert list(result.table.index) == ["x", "Residual", "Lack of fit", "Pure Error"]
        assert list(result.table.columns) == ["DF", "Sum Sq", "Mean Sq", "F Value", "Pr(>F)"]
        assert result.n_levels == 6
        assert result.predictor_name == "x"

    def test_rejects_multiple_regression(self, multiple_fit):
        with pytest.raises(NotSimpleRegressionError):
            lack_of_fit_test(multiple_fit)

    def test_rejects_distinct_predictor_values(self):
        data = pd.DataFrame({"x": np.arange(10.0), "y": np.arange(10.0) ** 1.5})
        fit = smf.ols("y ~ x", data=data).fit()

        with pytest.raises(InsufficientReplicatesError, match="repeated values"):
            lack_of_fit_test(fit)

    def test_rejects_two_levels(self):
        data = generate_replicated_data(levels=(0.0, 1.0), replicates=5)
        fit = smf.ols("y ~ x", data=data).fit()

        with pytest.raises(InsufficientReplicatesError, match="no degrees of freedom"):
            lack_of_fit_test(fit)

    def test_str_prints_anova(self, simple_fit):
        text = str(lack_of_fit_test(simple_fit))

        assert "Lack of Fit F Test" in text
        assert "Pure Error" in text
        assert "Response :   y" in text

    def test_no_intercept_matches_nested_model_f_test(self, replicated_data):
        fit = smf.ols("y ~ x - 1", data=replicated_data).fit()
        full = smf.ols("y ~ C(x) - 1", data=replicated_data).fit()
        nested = anova_lm(fit, full)

        result = lack_of_fit_test(fit)
        table = result.table

        # 6 levels: one slope and no intercept leaves 6 - 1 lack-of-fit df
        assert table.loc["Residual", "DF"] == 23
        assert table.loc["Lack of fit", "DF"] == 5
        assert table.loc["Pure Error", "DF"] == 18
        assert table.loc["x", "Sum Sq"] == pytest.approx(np.sum(fit.fittedvalues ** 2))
        assert table.loc["x", "Sum Sq"] == pytest.approx(fit.ess)
        assert result.lack_of_fit_f == pytest.approx(nested["F"].iloc[1])
        assert result.lack_of_fit_p == pytest.approx(nested["Pr(>F)"].iloc[1])

    def test_zero_pure_error(self, caplog):
        x = np.repeat(np.arange(1.0, 7.0), 3)
        data = pd.DataFrame({"x": x, "y": x ** 2})
        fit = smf.ols("y ~ x", data=data).fit()

        with caplog.at_level("WARNING", logger="olsdiag.fit_assessment"):
            result = lack_of_fit_test(fit)

        assert result.pure_error_ss == 0.0
        assert np.isinf(result.lack_of_fit_f)
        assert result.lack_of_fit_p == 0.0
        assert np.isinf(result.table.loc["x", "F Value"])
        assert "Pure error is zero" in caplog.text
