"""Tests for run_diagnostics and DiagnosticReport outputs."""

import json

import matplotlib.pyplot as plt
import pandas as pd
import pytest
import statsmodels.formula.api as smf

from olsdiag import run_diagnostics
from olsdiag.config import DiagnosticsConfig, PlotConfig


@pytest.fixture
def fast_config():
    return DiagnosticsConfig(plots=PlotConfig(dpi=40))


class TestRunDiagnostics:

    def test_multiple_regression(self, multiple_fit, fast_config):
        report = run_diagnostics(multiple_fit, fast_config)

        assert report.collinearity is not None
        assert report.correlations is not None
        assert report.added_variable is not None
        assert report.component_residual is not None
        assert report.lack_of_fit is None
        assert list(report.skipped) == ["lack_of_fit"]
        assert "simple linear regression" in report.skipped["lack_of_fit"]
        assert report.figures.keys() == [
            "residual_fit_spread",
            "observed_vs_predicted",
            "added_variable",
            "component_residual",
            "vif",
            "condition_indices",
        ]

    def test_simple_regression(self, simple_fit, fast_config):
        report = run_diagnostics(simple_fit, fast_config)

        assert report.lack_of_fit is not None
        assert report.collinearity is None
        assert set(report.skipped) == {
            "collinearity", "correlations", "added_variable", "component_residual"
        }
        assert report.figures.keys() == ["residual_fit_spread", "observed_vs_predicted"]

    def test_collinearity_warnings(self, multiple_fit, caplog):
        with caplog.at_level("WARNING", logger="olsdiag.report"):
            report = run_diagnostics(multiple_fit, DiagnosticsConfig(make_plots=False))

        vif_warnings = [w for w in report.warnings if w.startswith("VIF")]
        assert len(vif_warnings) == 2
        assert "VIF of 'x1'" in caplog.text

    def test_skips_logged_at_info(self, multiple_fit, caplog):
        with caplog.at_level("INFO", logger="olsdiag.report"):
            run_diagnostics(multiple_fit, DiagnosticsConfig(make_plots=False))

        assert "Skipping lack_of_fit" in caplog.text

    def test_figure_width_from_config(self, multiple_fit):
        config = DiagnosticsConfig(plots=PlotConfig(dpi=40, width=8.0))

        report = run_diagnostics(multiple_fit, config)

        for _, fig in report.figures:
            assert fig.fig.get_size_inches()[0] == pytest.approx(8.0)

    def test_leaves_global_rcparams_untouched(self, multiple_fit, fast_config):
        with plt.rc_context({"font.size": 7.0, "axes.spines.top": True}):
            before = dict(plt.rcParams)

            run_diagnostics(multiple_fit, fast_config)

            assert dict(plt.rcParams) == before

    def test_exact_collinearity_is_reported(self, regression_data):
        data = regression_data.assign(x1_copy=regression_data["x1"])
        fit = smf.ols("y ~ x1 + x1_copy + x3", data=data).fit()

        report = run_diagnostics(fit, DiagnosticsConfig(make_plots=False))

        dependency = [w for w in report.warnings if w.startswith("Dimension")]
        assert len(dependency) == 1
        assert "x1, x1_copy" in dependency[0]
        assert report.summary()["collinearity"]["condition_number"] > 1e6

    def test_no_plots(self, multiple_fit):
        report = run_diagnostics(multiple_fit, DiagnosticsConfig(make_plots=False))

        assert len(report.figures) == 0

    def test_rejects_non_model(self, regression_data):
        with pytest.raises(TypeError):
            run_diagnostics(regression_data)

    def test_str_contains_tables(self, multiple_fit):
        text = str(run_diagnostics(multiple_fit, DiagnosticsConfig(make_plots=False)))

        assert "y ~ x1 + x2 + x3" in text
        assert "Variance Inflation Factor" in text
        assert "Correlations" in text
        assert "Skipped:" in text

    def test_str_reports_lack_of_fit_p_value(self, simple_fit):
        text = str(run_diagnostics(simple_fit, DiagnosticsConfig(make_plots=False)))

        assert "Lack of fit: F = " in text
        assert "on (4, 18) df, p " in text


class TestReportOutputs:

    def test_tables(self, simple_fit):
        report = run_diagnostics(simple_fit, DiagnosticsConfig(make_plots=False))

        assert list(report.tables()) == ["lack_of_fit"]

    def test_summary_is_json_serializable(self, multiple_fit):
        report = run_diagnostics(multiple_fit, DiagnosticsConfig(make_plots=False))

        summary = json.loads(json.dumps(report.summary()))

        assert summary["model"]["predictors"] == ["x1", "x2", "x3"]
        assert summary["collinearity"]["flagged_vif"] == ["x1", "x2"]
        assert summary["collinearity"]["max_vif"] > 10

    def test_save_writes_all_outputs(self, multiple_fit, fast_config, tmp_path):
        report = run_diagnostics(multiple_fit, fast_config)

        written = report.save(tmp_path / "out")
        names = {p.relative_to(tmp_path / "out").as_posix() for p in written}

        assert {
            "vif_tolerance.csv",
            "eigen_condition_index.csv",
            "correlations.csv",
            "summary.json",
            "report.html",
            "figures/vif.png",
            "figures/added_variable.png",
        } <= names

        vif = pd.read_csv(tmp_path / "out" / "vif_tolerance.csv", index_col=0)
        assert list(vif.index) == ["x1", "x2", "x3"]
        assert "Regression Diagnostics: y" in (tmp_path / "out" / "report.html").read_text()
        assert list((tmp_path / "out").rglob("*.tmp")) == []

        report.close()
        assert len(report.figures) == 0

    def test_html_description_includes_lack_of_fit(self, simple_fit, tmp_path):
        report = run_diagnostics(simple_fit, DiagnosticsConfig(make_plots=False))

        report.save(tmp_path)

        html = (tmp_path / "report.html").read_text()
        assert "Lack of fit: F = " in html
