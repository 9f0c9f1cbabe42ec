"""
Run every applicable diagnostic on a fitted OLS model.

``run_diagnostics`` is the one-call entry point: it computes the
collinearity, fit-assessment and variable-contribution diagnostics that
apply to the model, renders their figures, and collects everything in a
``DiagnosticReport`` that can be printed or saved as CSV tables, figures,
a JSON summary and an HTML report.

Diagnostics that do not apply to the model (collinearity measures on a
single predictor, the lack-of-fit test on a multiple regression or on data
without repeated predictor values) are skipped, and the reason is kept in
``DiagnosticReport.skipped``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from olsdiag.collinearity import CollinearityDiagnostics, collinearity_diagnostics
from olsdiag.config import DiagnosticsConfig
from olsdiag.contribution import (
    AddedVariableData,
    ComponentResidualData,
    PartCorrelations,
    added_variable_data,
    component_residual_data,
    part_correlations,
)
from olsdiag.fileio import atomic_write_csv, atomic_write_json
from olsdiag.fit_assessment import (
    ObservedVsPredicted,
    PureErrorAnova,
    ResidualFitSpread,
    lack_of_fit_test,
    observed_vs_predicted,
    residual_fit_spread,
)
from olsdiag.model import ModelDiagnosticError, OLSModelView, as_model_view
from olsdiag.viz.core import FigureCollection
from olsdiag.viz.diagnostics import DiagnosticVisualizer
from olsdiag.viz.styles import format_pvalue

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DiagnosticReport:
    """
    Results of all diagnostics applicable to one fitted model.

    Attributes:
        model_summary: Response, predictors, n, R² and residual df.
        residual_fit_spread: Always computed.
        observed_vs_predicted: Always computed.
        collinearity: None if the model has fewer than two predictors.
        correlations: None if the model has fewer than two predictors.
        added_variable: None if the model has fewer than two predictors.
        component_residual: None if the model has fewer than two predictors.
        lack_of_fit: None unless the model is a simple regression with
            replicated predictor values.
        skipped: Diagnostic name -> reason it was not computed.
        warnings: Threshold violations found in the diagnostics.
        figures: Rendered figures (empty if plotting is disabled).
        config: Configuration the report was produced with.
    """
    model_summary: dict[str, Any]
    residual_fit_spread: ResidualFitSpread
    observed_vs_predicted: ObservedVsPredicted
    collinearity: Optional[CollinearityDiagnostics] = None
    correlations: Optional[PartCorrelations] = None
    added_variable: Optional[AddedVariableData] = None
    component_residual: Optional[ComponentResidualData] = None
    lack_of_fit: Optional[PureErrorAnova] = None
    skipped: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    figures: FigureCollection = field(default_factory=FigureCollection)
    config: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)

    def tables(self) -> dict[str, pd.DataFrame]:
        """All tabular results keyed by file stem."""
        out: dict[str, pd.DataFrame] = {}
        if self.collinearity is not None:
            out["vif_tolerance"] = self.collinearity.vif_table.table.set_index("Variables")
            out["eigen_condition_index"] = self.collinearity.eigen_cindex.table
        if self.correlations is not None:
            out["correlations"] = self.correlations.table
        if self.lack_of_fit is not None:
            out["lack_of_fit"] = self.lack_of_fit.table
        return out

    def summary(self) -> dict[str, Any]:
        """JSON-serializable overview of the report."""
        summary: dict[str, Any] = {
            "model": self.model_summary,
            "skipped": dict(self.skipped),
            "warnings": list(self.warnings),
            "residual_fit_spread": {
                "fit_range": self.residual_fit_spread.fit_range,
                "residual_range": self.residual_fit_spread.residual_range,
            },
        }
        if self.collinearity is not None:
            vif = self.collinearity.vif_table.vif
            summary["collinearity"] = {
                "max_vif": _json_float(vif.max()),
                "condition_number": _json_float(self.collinearity.eigen_cindex.condition_number),
                "flagged_vif": self.collinearity.vif_table.flagged(self.config.thresholds.vif),
            }
        if self.lack_of_fit is not None:
            summary["lack_of_fit"] = {
                "f_value": _json_float(self.lack_of_fit.lack_of_fit_f),
                "p_value": _json_float(self.lack_of_fit.lack_of_fit_p),
            }
        summary["figures"] = self.figures.keys()
        return summary

    def save(self, output_dir: Path | str) -> list[Path]:
        """
        Write tables (CSV), figures, ``summary.json`` and ``report.html``.

        Returns:
            Paths of every file written.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []

        tables = self.tables()
        for stem, table in tables.items():
            path = output_dir / f"{stem}.csv"
            atomic_write_csv(path, table, index=stem != "eigen_condition_index")
            written.append(path)

        if len(self.figures):
            written.extend(self.figures.save_all(
                output_dir / "figures",
                format=self.config.plots.format,
                dpi=self.config.plots.dpi,
            ))

        summary_path = output_dir / "summary.json"
        atomic_write_json(summary_path, self.summary())
        written.append(summary_path)

        html_tables = {
            stem.replace("_", " ").title(): table.to_html(float_format=lambda v: f"{v:.4f}")
            for stem, table in tables.items()
        }
        written.append(self.figures.to_html_report(
            output_dir / "report.html",
            title=f"Regression Diagnostics: {self.model_summary['response']}",
            description=_report_description(self),
            tables=html_tables,
        ))

        logger.info("Saved %d diagnostic outputs to %s", len(written), output_dir)
        return written

    def close(self) -> None:
        self.figures.close_all()

    def __str__(self) -> str:
        parts = [_describe(self.model_summary)]
        for result in (self.collinearity, self.correlations, self.lack_of_fit):
            if result is not None:
                parts.append(str(result))
        if self.skipped:
            parts.append("Skipped:\n" + "\n".join(
                f"  {name}: {reason}" for name, reason in self.skipped.items()
            ))
        if self.lack_of_fit is not None:
            parts.append(_lack_of_fit_line(self.lack_of_fit))
        if self.warnings:
            parts.append("Warnings:\n" + "\n".join(f"  {w}" for w in self.warnings))
        return "\n\n".join(parts)


def _json_float(value: float) -> float | None:
    value = float(value)
    return value if np.isfinite(value) else None


def _describe(model_summary: dict[str, Any]) -> str:
    return (
        f"{model_summary['response']} ~ {' + '.join(model_summary['predictors'])} "
        f"(n={model_summary['n_obs']}, R²={model_summary['rsquared']:.4f}, "
        f"df_resid={model_summary['df_resid']:g})"
    )


def _lack_of_fit_line(result: PureErrorAnova) -> str:
    table = result.table
    return (
        f"Lack of fit: F = {result.lack_of_fit_f:.3f} on "
        f"({table.loc['Lack of fit', 'DF']:g}, {table.loc['Pure Error', 'DF']:g}) df, "
        f"{format_pvalue(result.lack_of_fit_p)}"
    )


def _report_description(report: DiagnosticReport) -> str:
    description = _describe(report.model_summary)
    if report.lack_of_fit is not None:
        description += f". {_lack_of_fit_line(report.lack_of_fit)}"
    return description


def _attempt(name: str, compute: Callable[[], T], skipped: dict[str, str]) -> Optional[T]:
    """Run one diagnostic; record and log the reason if it does not apply."""
    try:
        return compute()
    except ModelDiagnosticError as e:
        skipped[name] = str(e)
        logger.info("Skipping %s: %s", name, e)
        return None


def _collinearity_warnings(
    diagnostics: CollinearityDiagnostics,
    config: DiagnosticsConfig,
) -> list[str]:
    thresholds = config.thresholds
    found = []

    vif = diagnostics.vif_table.vif
    for name in diagnostics.vif_table.flagged(thresholds.vif):
        found.append(f"VIF of '{name}' is {vif[name]:.2f} (> {thresholds.vif:g})")

    tolerance = diagnostics.vif_table.tolerance
    for name in tolerance.index[tolerance < thresholds.tolerance]:
        found.append(
            f"Tolerance of '{name}' is {tolerance[name]:.4f} (< {thresholds.tolerance:g})"
        )

    dependencies = diagnostics.flagged_dependencies(
        ci_threshold=thresholds.condition_index,
        proportion_threshold=thresholds.variance_proportion,
    )
    for row in dependencies.itertuples(index=False):
        found.append(
            f"Dimension {row.dimension} (condition index {row.condition_index:.1f}) "
            f"links {', '.join(row.terms)}"
        )
    return found


def run_diagnostics(
    model: object,
    config: Optional[DiagnosticsConfig] = None,
) -> DiagnosticReport:
    """
    Compute every applicable diagnostic for a fitted OLS model.

    Args:
        model: Fitted statsmodels OLS result (or an OLSModelView).
        config: Thresholds and plot options. Defaults to DiagnosticsConfig().

    Returns:
        DiagnosticReport with tables, figures, skipped diagnostics and
        threshold warnings.

    Raises:
        TypeError: If ``model`` is not a fitted statsmodels OLS result.
    """
    config = config or DiagnosticsConfig()
    view: OLSModelView = as_model_view(model)
    skipped: dict[str, str] = {}

    logger.info(
        "Running diagnostics for %s on %d predictors (n=%d)",
        view.response_name, view.n_predictors, view.n_obs,
    )

    report = DiagnosticReport(
        model_summary={
            "response": view.response_name,
            "predictors": view.predictor_names,
            "intercept": view.has_intercept,
            "n_obs": view.n_obs,
            "rsquared": view.rsquared,
            "df_resid": view.df_resid,
        },
        residual_fit_spread=residual_fit_spread(view),
        observed_vs_predicted=observed_vs_predicted(view),
        collinearity=_attempt(
            "collinearity",
            lambda: collinearity_diagnostics(view, include_intercept=config.include_intercept),
            skipped,
        ),
        correlations=_attempt("correlations", lambda: part_correlations(view), skipped),
        added_variable=_attempt("added_variable", lambda: added_variable_data(view), skipped),
        component_residual=_attempt(
            "component_residual", lambda: component_residual_data(view), skipped
        ),
        lack_of_fit=_attempt("lack_of_fit", lambda: lack_of_fit_test(view), skipped),
        skipped=skipped,
        config=config,
    )

    if report.collinearity is not None:
        report.warnings.extend(_collinearity_warnings(report.collinearity, config))
    for message in report.warnings:
        logger.warning(message)

    if config.make_plots:
        _render_figures(report, config)

    return report


def _render_figures(report: DiagnosticReport, config: DiagnosticsConfig) -> None:
    # Styling stays local to these figures; the caller's rcParams are restored
    with plt.rc_context():
        _draw_figures(report, config)
    logger.debug("Rendered %d figures", len(report.figures))


def _draw_figures(report: DiagnosticReport, config: DiagnosticsConfig) -> None:
    viz = DiagnosticVisualizer(
        palette=config.plots.palette,
        style=config.plots.style,
        vif_threshold=config.thresholds.vif,
        condition_index_threshold=config.thresholds.condition_index,
        figure_width=config.plots.width,
    )
    figures = report.figures

    figures.add("residual_fit_spread", viz.plot_residual_fit_spread(report.residual_fit_spread))
    figures.add("observed_vs_predicted", viz.plot_observed_vs_predicted(report.observed_vs_predicted))
    if report.added_variable is not None:
        figures.add("added_variable", viz.plot_added_variable(report.added_variable))
    if report.component_residual is not None:
        figures.add("component_residual", viz.plot_component_residual(report.component_residual))
    if report.collinearity is not None:
        figures.add("vif", viz.plot_vif(report.collinearity.vif_table))
        figures.add("condition_indices", viz.plot_condition_indices(report.collinearity.eigen_cindex))
