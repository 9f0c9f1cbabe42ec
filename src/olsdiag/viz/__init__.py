"""
Visualization module for OLS regression diagnostics.

Static matplotlib figures (seaborn theming) for:
- Model fit assessment (residual-fit spread, observed vs predicted)
- Variable contributions (added-variable, residual-plus-component)
- Collinearity (condition indices, variance inflation factors)

Examples
--------
>>> from olsdiag.viz import DiagnosticVisualizer, FigureCollection
>>>
>>> viz = DiagnosticVisualizer(style="notebook")
>>> fig = viz.plot_added_variable(model)
>>> fig.save("figures/added_variable.pdf")
>>>
>>> collection = FigureCollection()
>>> collection.add("added_variable", fig)
>>> collection.save_all(Path("figures/"), format="pdf")
"""

from olsdiag.viz.core import Figure, FigureCollection
from olsdiag.viz.styles import Palette, PALETTES, configure_style
from olsdiag.viz.diagnostics import DiagnosticVisualizer

__all__ = [
    # Core
    "Figure",
    "FigureCollection",
    # Styles
    "Palette",
    "PALETTES",
    "configure_style",
    # Visualizers
    "DiagnosticVisualizer",
]
