"""
Diagnostic plots for fitted OLS models.

Each plot answers one question about the fit:

    Residual-fit spread      Does the fit explain more spread than is left over?
    Observed vs predicted    Do fitted values track the response along y = x?
    Added variable           What does X_k add once the other predictors are in?
    Residual + component     Is the partial relationship with X_k linear?
    Condition indices        Which dimensions of the design are near-singular?
    VIF                      Which coefficients are inflated by collinearity?

Every ``plot_*`` method accepts either a fitted statsmodels OLS result or
the matching precomputed data object, and returns a ``Figure`` that
carries the data it was drawn from in ``Figure.data``.
"""

from __future__ import annotations

import math
from typing import Literal, Optional

import numpy as np
import matplotlib.pyplot as plt

from olsdiag.collinearity import (
    DEFAULT_CONDITION_INDEX_THRESHOLD,
    DEFAULT_VIF_THRESHOLD,
    EigenConditionIndex,
    VIFTable,
    eigen_condition_index,
    vif_tolerance,
)
from olsdiag.contribution import (
    AddedVariableData,
    ComponentResidualData,
    added_variable_data,
    component_residual_data,
)
from olsdiag.fit_assessment import (
    ObservedVsPredicted,
    ResidualFitSpread,
    observed_vs_predicted,
    residual_fit_spread,
)
from olsdiag.viz.core import Figure
from olsdiag.viz.styles import Palette, configure_style, resolve_palette

MODERATE_CONDITION_INDEX = 10.0


def _panel_grid(n_panels: int, ncols: int, panel_size: tuple[float, float]):
    """Figure with a grid of at least ``n_panels`` axes; unused axes hidden."""
    ncols = max(1, min(ncols, n_panels))
    nrows = math.ceil(n_panels / ncols)
    fig, axes = plt.subplots(
        nrows, ncols,
        figsize=(panel_size[0] * ncols, panel_size[1] * nrows),
        squeeze=False,
    )
    flat = axes.ravel()
    for ax in flat[n_panels:]:
        ax.set_visible(False)
    return fig, flat[:n_panels]


class DiagnosticVisualizer:
    """
    Matplotlib renderings of the OLS diagnostics.

    Parameters
    ----------
    palette : str or Palette
        Palette name ("default", "colorblind", "print") or instance.
    style : {"paper", "presentation", "notebook"}
        Plot style applied through ``configure_style``.
    vif_threshold : float
        VIF above which bars are drawn in the flagged color.
    condition_index_threshold : float
        Condition index above which a dimension is drawn as severe.
    figure_width : float, optional
        Width in inches of every figure; heights keep each plot's default
        aspect. None keeps the per-plot default sizes.

    Creating a visualizer applies ``style`` to matplotlib's global
    rcParams. Wrap it in ``matplotlib.pyplot.rc_context()`` to keep the
    caller's settings.
    """

    def __init__(
        self,
        palette: str | Palette = "default",
        style: Literal["paper", "presentation", "notebook"] = "paper",
        vif_threshold: float = DEFAULT_VIF_THRESHOLD,
        condition_index_threshold: float = DEFAULT_CONDITION_INDEX_THRESHOLD,
        figure_width: Optional[float] = None,
    ):
        if figure_width is not None and figure_width <= 0:
            raise ValueError(f"figure_width must be positive, got {figure_width}")
        self.palette = resolve_palette(palette)
        self.style = style
        self.vif_threshold = vif_threshold
        self.condition_index_threshold = condition_index_threshold
        self.figure_width = figure_width
        configure_style(style=style, palette=self.palette)

    def _size(self, default: tuple[float, float]) -> tuple[float, float]:
        """Scale a default figure size to ``figure_width``, keeping its aspect."""
        if self.figure_width is None:
            return default
        return (self.figure_width, default[1] * self.figure_width / default[0])

    def _panel_size(
        self,
        default: tuple[float, float],
        n_panels: int,
        ncols: int,
    ) -> tuple[float, float]:
        if self.figure_width is None:
            return default
        width = self.figure_width / max(1, min(ncols, n_panels))
        return (width, default[1] * width / default[0])

    # =========================================================================
    # MODEL FIT ASSESSMENT
    # =========================================================================

    def plot_residual_fit_spread(
        self,
        model_or_data: object,
        figsize: Optional[tuple[float, float]] = None
    ) -> Figure:
        """
        Two panels on a shared y-axis: centered fit quantiles and residual quantiles.

        If the residual panel spans as much as the fit panel, the predictors
        explain little of the variation in the response.
        """
        data = (
            model_or_data if isinstance(model_or_data, ResidualFitSpread)
            else residual_fit_spread(model_or_data)
        )

        figsize = figsize or self._size((10, 5))
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize, sharey=True)

        fit = data.fit_spread
        ax1.scatter(fit["f_value"], fit["fitted_minus_mean"], s=15,
                    c=self.palette.points, edgecolors="none")
        ax1.set_xlabel("Proportion Less")
        ax1.set_ylabel("Fit - Mean")
        ax1.set_title("Fit - Mean Spread")

        resid = data.residual_spread
        ax2.scatter(resid["f_value"], resid["residual"], s=15,
                    c=self.palette.points, edgecolors="none")
        ax2.set_xlabel("Proportion Less")
        ax2.set_ylabel("Residual")
        ax2.set_title("Residual Spread")

        for ax in (ax1, ax2):
            ax.axhline(0, color=self.palette.reference, linestyle="--", linewidth=1)
            ax.set_xlim(0, 1)

        plt.tight_layout()

        return Figure(
            fig=fig,
            title="Residual Fit Spread",
            description=(
                f"Fit range {data.fit_range:.3g} vs residual range {data.residual_range:.3g}"
            ),
            data=data,
        )

    def plot_observed_vs_predicted(
        self,
        model_or_data: object,
        figsize: Optional[tuple[float, float]] = None
    ) -> Figure:
        """Observed response against fitted values with the identity and fitted lines."""
        data = (
            model_or_data if isinstance(model_or_data, ObservedVsPredicted)
            else observed_vs_predicted(model_or_data)
        )
        predicted = data.data["predicted"].to_numpy()
        observed = data.data["observed"].to_numpy()

        figsize = figsize or self._size((6, 6))
        fig, ax = plt.subplots(figsize=figsize)
        ax.scatter(predicted, observed, s=20, alpha=0.7,
                   c=self.palette.points, edgecolors="none")

        lims = [min(predicted.min(), observed.min()), max(predicted.max(), observed.max())]
        ax.plot(lims, lims, linestyle="--", color=self.palette.reference,
                linewidth=1, label="y = x")
        if np.isfinite(data.slope):
            xs = np.array([predicted.min(), predicted.max()])
            ax.plot(xs, data.intercept + data.slope * xs, color=self.palette.fit,
                    linewidth=1.5, label=f"Fit (slope {data.slope:.3f})")

        ax.set_xlabel("Predicted Value")
        ax.set_ylabel(data.response_name)
        ax.set_title(f"Actual vs Fitted for {data.response_name}")
        ax.legend(loc="upper left")

        plt.tight_layout()

        return Figure(
            fig=fig,
            title="Observed vs Predicted",
            description=f"{len(predicted):,} observations of {data.response_name}",
            data=data,
        )

    # =========================================================================
    # VARIABLE CONTRIBUTIONS
    # =========================================================================

    def plot_added_variable(
        self,
        model_or_data: object,
        ncols: int = 2,
        panel_size: Optional[tuple[float, float]] = None
    ) -> Figure:
        """
        One added-variable panel per predictor.

        Each panel plots residuals of the response against residuals of the
        predictor, both after regressing on all other predictors. The drawn
        line has slope equal to the predictor's fitted coefficient.
        """
        data = (
            model_or_data if isinstance(model_or_data, AddedVariableData)
            else added_variable_data(model_or_data)
        )

        panel_size = panel_size or self._panel_size((5, 4), len(data.predictors), ncols)
        fig, axes = _panel_grid(len(data.predictors), ncols, panel_size)
        for ax, name in zip(axes, data.predictors):
            panel = data[name]
            e_x = panel["x_residual"].to_numpy()
            e_y = panel["y_residual"].to_numpy()

            ax.scatter(e_x, e_y, s=15, alpha=0.7, c=self.palette.points, edgecolors="none")
            slope = data.slopes[name]
            if np.isfinite(slope):
                xs = np.array([e_x.min(), e_x.max()])
                ax.plot(xs, slope * xs, color=self.palette.fit, linewidth=1.5)
            ax.set_xlabel(f"{name} | others")
            ax.set_ylabel(f"{data.response_name} | others")
            ax.set_title(f"{name} (slope {slope:.3g})")

        plt.tight_layout()

        return Figure(
            fig=fig,
            title="Added Variable Plot",
            description=f"Partial regression of {data.response_name} on {len(data.predictors)} predictors",
            data=data,
        )

    def plot_component_residual(
        self,
        model_or_data: object,
        ncols: int = 2,
        panel_size: Optional[tuple[float, float]] = None
    ) -> Figure:
        """One residual-plus-component panel per predictor, with its least-squares line."""
        data = (
            model_or_data if isinstance(model_or_data, ComponentResidualData)
            else component_residual_data(model_or_data)
        )

        panel_size = panel_size or self._panel_size((5, 4), len(data.predictors), ncols)
        fig, axes = _panel_grid(len(data.predictors), ncols, panel_size)
        for ax, name in zip(axes, data.predictors):
            panel = data[name]
            x = panel["x"].to_numpy()
            cr = panel["component_residual"].to_numpy()

            ax.scatter(x, cr, s=15, alpha=0.7, c=self.palette.points, edgecolors="none")
            if np.ptp(x) > 0:
                slope, intercept = np.polyfit(x, cr, deg=1)
                xs = np.array([x.min(), x.max()])
                ax.plot(xs, intercept + slope * xs, color=self.palette.fit, linewidth=1.5)
            ax.set_xlabel(name)
            ax.set_ylabel(f"Residual + Component ({name})")
            ax.set_title(name)

        plt.tight_layout()

        return Figure(
            fig=fig,
            title="Residual Plus Component Plot",
            description=f"Component-plus-residual for {len(data.predictors)} predictors",
            data=data,
        )

    # =========================================================================
    # COLLINEARITY
    # =========================================================================

    def plot_condition_indices(
        self,
        model_or_data: object,
        figsize: Optional[tuple[float, float]] = None
    ) -> Figure:
        """Condition index per dimension, colored by moderate / severe thresholds."""
        data = (
            model_or_data if isinstance(model_or_data, EigenConditionIndex)
            else eigen_condition_index(model_or_data)
        )
        cindex = data.condition_indices
        dims = np.arange(1, len(cindex) + 1)
        shown = np.where(np.isfinite(cindex), cindex, np.nanmax(cindex[np.isfinite(cindex)]))

        colors = []
        for ci in cindex:
            if ci > self.condition_index_threshold:
                colors.append(self.palette.flagged)
            elif ci > MODERATE_CONDITION_INDEX:
                colors.append(self.palette.moderate)
            else:
                colors.append(self.palette.neutral)

        figsize = figsize or self._size((7, 4))
        fig, ax = plt.subplots(figsize=figsize)
        ax.bar(dims, shown, color=colors, edgecolor="white")
        ax.axhline(MODERATE_CONDITION_INDEX, color=self.palette.moderate,
                   linestyle=":", linewidth=1, label=f"Moderate ({MODERATE_CONDITION_INDEX:g})")
        ax.axhline(self.condition_index_threshold, color=self.palette.flagged,
                   linestyle="--", linewidth=1, label=f"Severe ({self.condition_index_threshold:g})")
        ax.set_xticks(dims)
        ax.set_xlabel("Dimension")
        ax.set_ylabel("Condition Index")
        ax.set_title("Condition Indices")
        ax.legend(loc="upper left")

        plt.tight_layout()

        n_severe = int(np.sum(cindex > self.condition_index_threshold))
        return Figure(
            fig=fig,
            title="Condition Indices",
            description=(
                f"Condition number {data.condition_number:.3g}; "
                f"{n_severe} dimension(s) above {self.condition_index_threshold:g}"
            ),
            data=data,
        )

    def plot_vif(
        self,
        model_or_data: object,
        figsize: Optional[tuple[float, float]] = None
    ) -> Figure:
        """Horizontal VIF bars per predictor with the warning threshold marked."""
        data = (
            model_or_data if isinstance(model_or_data, VIFTable)
            else vif_tolerance(model_or_data)
        )
        vif = data.vif
        finite_max = vif[np.isfinite(vif)].max() if np.isfinite(vif).any() else self.vif_threshold
        shown = vif.where(np.isfinite(vif), max(finite_max, self.vif_threshold) * 1.5)

        if figsize is None:
            figsize = (self.figure_width or 7, max(2.5, 0.4 * len(vif) + 1.0))

        colors = [
            self.palette.flagged if v > self.vif_threshold else self.palette.neutral
            for v in vif
        ]

        fig, ax = plt.subplots(figsize=figsize)
        positions = np.arange(len(vif))
        ax.barh(positions, shown.to_numpy(), color=colors, edgecolor="white")
        ax.set_yticks(positions)
        ax.set_yticklabels(list(vif.index))
        ax.invert_yaxis()
        ax.axvline(self.vif_threshold, color=self.palette.flagged, linestyle="--",
                   linewidth=1, label=f"VIF = {self.vif_threshold:g}")
        ax.set_xlabel("Variance Inflation Factor")
        ax.set_title("Variance Inflation Factors")
        ax.legend(loc="lower right")

        plt.tight_layout()

        flagged = data.flagged(self.vif_threshold)
        return Figure(
            fig=fig,
            title="Variance Inflation Factors",
            description=(
                f"{len(flagged)} of {len(vif)} predictors above VIF {self.vif_threshold:g}"
                + (f": {', '.join(flagged)}" if flagged else "")
            ),
            data=data,
        )
