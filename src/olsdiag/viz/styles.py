"""
Consistent visual styles for regression diagnostic plots.

Conventions
-----------
- Observations = Blue (#2563eb), fitted / reference lines = Orange (#f97316)
- Identity and zero reference lines = dashed gray
- Values above a warning threshold (VIF, condition index) = Red (#ef4444)
- All palettes colorblind-safe or print-safe
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import matplotlib.pyplot as plt
import seaborn as sns


@dataclass(frozen=True)
class Palette:
    """
    Color palette for diagnostic plots.

    Attributes
    ----------
    points : str
        Color for observation markers
    fit : str
        Color for fitted / regression lines
    reference : str
        Color for identity and zero reference lines
    flagged : str
        Color for values beyond a warning threshold
    neutral : str
        Color for bars and elements below thresholds
    moderate : str
        Color for values between the moderate and severe thresholds
    """
    points: str = "#2563eb"      # Blue-600
    fit: str = "#f97316"         # Orange-500
    reference: str = "#6b7280"   # Gray-500
    flagged: str = "#ef4444"     # Red-500
    neutral: str = "#9ca3af"     # Gray-400
    moderate: str = "#f59e0b"    # Amber-500


PALETTES = {
    "default": Palette(),
    "colorblind": Palette(
        points="#0077bb",    # Blue
        fit="#ee7733",       # Orange
        reference="#999999",
        flagged="#cc3311",   # Red
        neutral="#bbbbbb",
        moderate="#ddaa33",  # Sand
    ),
    "print": Palette(
        points="#1a1a1a",    # Near-black
        fit="#666666",
        reference="#999999",
        flagged="#000000",
        neutral="#b3b3b3",
        moderate="#808080",
    ),
}

StyleName = Literal["paper", "presentation", "notebook"]

_STYLE_PARAMS = {
    "paper": ({
        "font.size": 10,
        "axes.titlesize": 11,
        "axes.labelsize": 10,
        "xtick.labelsize": 9,
        "ytick.labelsize": 9,
        "legend.fontsize": 9,
        "figure.dpi": 300,
        "savefig.dpi": 300,
        "lines.linewidth": 1.0,
        "axes.linewidth": 0.8,
    }, "paper"),
    "presentation": ({
        "font.size": 14,
        "axes.titlesize": 18,
        "axes.labelsize": 14,
        "xtick.labelsize": 12,
        "ytick.labelsize": 12,
        "legend.fontsize": 12,
        "figure.dpi": 150,
        "savefig.dpi": 150,
        "lines.linewidth": 2.0,
        "axes.linewidth": 1.5,
    }, "talk"),
    "notebook": ({
        "font.size": 11,
        "axes.titlesize": 12,
        "axes.labelsize": 11,
        "xtick.labelsize": 10,
        "ytick.labelsize": 10,
        "legend.fontsize": 10,
        "figure.dpi": 100,
        "savefig.dpi": 150,
        "lines.linewidth": 1.5,
        "axes.linewidth": 1.0,
    }, "notebook"),
}


def resolve_palette(palette: str | Palette) -> Palette:
    """Look up a named palette, falling back to the default."""
    if isinstance(palette, Palette):
        return palette
    return PALETTES.get(palette, PALETTES["default"])


def configure_style(
    style: StyleName = "paper",
    palette: str | Palette = "default",
    font_scale: float = 1.0
) -> Palette:
    """
    Configure matplotlib and seaborn for consistent diagnostic plots.

    Parameters
    ----------
    style : {"paper", "presentation", "notebook"}
        Target medium:
        - paper: High DPI, publication-quality, minimal decoration
        - presentation: Large fonts, high contrast
        - notebook: Interactive-friendly, moderate sizes
    palette : str or Palette
        Color palette name or Palette instance.
    font_scale : float
        Multiplier for all font sizes.

    Returns
    -------
    Palette
        The configured color palette.
    """
    if style not in _STYLE_PARAMS:
        raise ValueError(f"Unknown style '{style}'. Choose from {sorted(_STYLE_PARAMS)}")

    palette = resolve_palette(palette)

    base_params = {
        "figure.facecolor": "white",
        "axes.facecolor": "white",
        "axes.edgecolor": "#333333",
        "axes.labelcolor": "#333333",
        "text.color": "#333333",
        "xtick.color": "#333333",
        "ytick.color": "#333333",
        "axes.spines.top": False,
        "axes.spines.right": False,
        "legend.frameon": False,
    }

    sized, context = _STYLE_PARAMS[style]
    style_params = {
        key: (value * font_scale if key.endswith("size") else value)
        for key, value in sized.items()
    }

    sns.set_theme(style="whitegrid", context=context, font_scale=font_scale)
    plt.rcParams.update({**base_params, **style_params})

    return palette


def format_pvalue(p: float) -> str:
    """Format p-value with appropriate precision (e.g. "p < 0.001", "p = 0.034")."""
    if p < 0.001:
        return "p < 0.001"
    elif p < 0.01:
        return f"p = {p:.3f}"
    else:
        return f"p = {p:.2f}"
