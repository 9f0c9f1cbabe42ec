"""
Core visualization primitives: Figure wrapper and FigureCollection.

Every plotting method in ``olsdiag.viz`` returns a ``Figure`` so callers
get the same save/show/embed interface regardless of how many panels the
underlying matplotlib figure holds. ``FigureCollection`` batches figures
for saving and for a single self-contained HTML report.
"""

from __future__ import annotations

import base64
import html
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

import matplotlib.figure
import matplotlib.pyplot as plt

from olsdiag.fileio import atomic_write_bytes, atomic_write_text

logger = logging.getLogger(__name__)

OutputFormat = Literal["png", "pdf", "svg", "html"]
_FORMATS = ("png", "pdf", "svg", "html")


@dataclass
class Figure:
    """
    Wrapper around a matplotlib figure with title and description.

    Attributes
    ----------
    fig : matplotlib.figure.Figure
        The underlying figure object
    title : str
        Human-readable title for the figure
    description : str
        Longer description explaining what the figure shows
    data : object, optional
        The diagnostic data object the figure was drawn from
    metadata : dict
        Additional metadata (creation time, parameters used, etc.)

    Examples
    --------
    >>> fig = DiagnosticVisualizer().plot_added_variable(model)
    >>> fig.save("added_variable.pdf")
    """
    fig: matplotlib.figure.Figure
    title: str
    description: str
    data: object = None
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if "created_at" not in self.metadata:
            self.metadata["created_at"] = datetime.now().isoformat()

    @property
    def axes(self) -> list:
        return list(self.fig.axes)

    def save(
        self,
        path: Path | str,
        format: Optional[OutputFormat] = None,
        dpi: int = 300,
        **kwargs
    ) -> Path:
        """
        Save figure to file.

        Parameters
        ----------
        path : Path or str
            Output file path. Format inferred from extension if not specified.
        format : str, optional
            Output format. If None, inferred from path extension.
        dpi : int, default 300
            DPI for raster formats. Ignored for vector formats.
        **kwargs
            Additional arguments passed to ``savefig``.

        Returns
        -------
        Path
            The path where the figure was saved.
        """
        path = Path(path)

        if format is None:
            format = path.suffix.lstrip(".").lower()
            if format not in _FORMATS:
                format = "png"

        path.parent.mkdir(parents=True, exist_ok=True)

        save_kwargs = {
            "dpi": dpi,
            "bbox_inches": "tight",
            "facecolor": "white",
            **kwargs
        }

        if format == "html":
            img_b64 = self.to_base64(format="png", dpi=dpi)
            title = html.escape(self.title)
            atomic_write_text(path, f"""<!DOCTYPE html>
<html><head><title>{title}</title></head>
<body style="margin:0;display:flex;justify-content:center;align-items:center;min-height:100vh;background:#f5f5f5;">
<img src="data:image/png;base64,{img_b64}" alt="{title}">
</body></html>""")
        else:
            # Render fully in memory so a failed render leaves no partial file
            buf = io.BytesIO()
            self.fig.savefig(buf, format=format, **save_kwargs)
            atomic_write_bytes(path, buf.getvalue())

        logger.debug("Saved figure '%s' to %s", self.title, path)
        return path

    def show(self):
        """Display figure interactively."""
        plt.show()

    def to_base64(self, format: str = "png", dpi: int = 150) -> str:
        """Render the figure and return it base64-encoded."""
        buf = io.BytesIO()
        self.fig.savefig(buf, format=format, dpi=dpi, bbox_inches="tight")
        return base64.b64encode(buf.getvalue()).decode()

    def close(self):
        """Close the figure to free memory."""
        plt.close(self.fig)


class FigureCollection:
    """
    Collection of figures for batch saving and HTML report generation.

    Attributes
    ----------
    figures : dict[str, Figure]
        Named collection of figures.

    Examples
    --------
    >>> collection = FigureCollection()
    >>> collection.add("added_variable", viz.plot_added_variable(model))
    >>> collection.add("condition_index", viz.plot_condition_indices(model))
    >>> collection.save_all(Path("figures/"), format="pdf")
    >>> collection.to_html_report(Path("report.html"), title="Regression Diagnostics")
    """

    def __init__(self):
        self.figures: dict[str, Figure] = {}
        self._creation_order: list[str] = []

    def add(self, key: str, fig: Figure) -> "FigureCollection":
        """Add a named figure; returns self for chaining."""
        self.figures[key] = fig
        if key not in self._creation_order:
            self._creation_order.append(key)
        return self

    def get(self, key: str) -> Optional[Figure]:
        """Get figure by key, or None if not found."""
        return self.figures.get(key)

    def keys(self) -> list[str]:
        return list(self._creation_order)

    def __getitem__(self, key: str) -> Figure:
        return self.figures[key]

    def __contains__(self, key: str) -> bool:
        return key in self.figures

    def __len__(self) -> int:
        return len(self.figures)

    def __iter__(self):
        """Iterate in creation order."""
        for key in self._creation_order:
            yield key, self.figures[key]

    def save_all(
        self,
        output_dir: Path | str,
        format: OutputFormat = "png",
        dpi: int = 300
    ) -> list[Path]:
        """
        Save all figures to a directory as ``<key>.<format>``.

        Returns
        -------
        list[Path]
            Paths to saved files.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        saved = []
        for key, fig in self:
            path = output_dir / f"{key}.{format}"
            fig.save(path, format=format, dpi=dpi)
            saved.append(path)

        return saved

    def to_html_report(
        self,
        output_path: Path | str,
        title: str = "Regression Diagnostics",
        description: str = "",
        tables: Optional[dict[str, str]] = None,
    ) -> Path:
        """
        Generate a self-contained HTML report with all figures embedded.

        Parameters
        ----------
        output_path : Path or str
            Output HTML file path.
        title : str
            Report title.
        description : str
            Report description.
        tables : dict[str, str], optional
            Heading -> pre-rendered HTML table, placed before the figures.

        Returns
        -------
        Path
            Path to generated report.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        sections = []
        for heading, table_html in (tables or {}).items():
            sections.append(f"""
            <section class="table-section">
                <h2>{html.escape(heading)}</h2>
                <div class="table-content">{table_html}</div>
            </section>
            """)

        for key, fig in self:
            img_b64 = fig.to_base64(format="png", dpi=150)
            sections.append(f"""
            <section class="figure-section" id="{html.escape(key)}">
                <h2>{html.escape(fig.title)}</h2>
                <p class="description">{html.escape(fig.description)}</p>
                <div class="figure-content"><img src="data:image/png;base64,{img_b64}" alt="{html.escape(fig.title)}"></div>
            </section>
            """)

        page = self._default_template()
        page = page.replace("{{title}}", html.escape(title))
        page = page.replace("{{description}}", html.escape(description))
        page = page.replace("{{timestamp}}", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))
        page = page.replace("{{sections}}", "\n".join(sections))

        atomic_write_text(output_path, page)
        logger.info("Wrote HTML report with %d figures to %s", len(self), output_path)
        return output_path

    def _default_template(self) -> str:
        """Default HTML report template."""
        return """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{title}}</title>
    <style>
        :root {
            --bg: #fafafa;
            --fg: #1a1a1a;
            --border: #e5e7eb;
            --section-bg: #ffffff;
        }
        * { box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            line-height: 1.6;
            color: var(--fg);
            background: var(--bg);
            margin: 0;
            padding: 2rem;
        }
        .container { max-width: 1200px; margin: 0 auto; }
        header {
            margin-bottom: 2rem;
            padding-bottom: 1rem;
            border-bottom: 2px solid var(--border);
        }
        h1 { font-size: 2rem; font-weight: 600; margin: 0 0 0.5rem 0; }
        .timestamp { color: #6b7280; font-size: 0.875rem; }
        .figure-section, .table-section {
            background: var(--section-bg);
            border-radius: 8px;
            padding: 1.5rem;
            margin-bottom: 1.5rem;
            box-shadow: 0 1px 3px rgba(0,0,0,0.1);
        }
        h2 { font-size: 1.25rem; font-weight: 600; margin: 0 0 0.5rem 0; }
        .description { color: #6b7280; font-size: 0.875rem; margin: 0 0 1rem 0; }
        .figure-content { display: flex; justify-content: center; overflow-x: auto; }
        .figure-content img { max-width: 100%; height: auto; }
        table { border-collapse: collapse; font-size: 0.875rem; }
        th, td { padding: 0.25rem 0.75rem; border-bottom: 1px solid var(--border); text-align: right; }
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>{{title}}</h1>
            <p class="timestamp">Generated: {{timestamp}}</p>
            <p>{{description}}</p>
        </header>
        <main>
            {{sections}}
        </main>
    </div>
</body>
</html>"""

    def close_all(self):
        """Close all figures to free memory."""
        for _, fig in self:
            fig.close()
        self.figures.clear()
        self._creation_order.clear()
