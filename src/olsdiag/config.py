"""
Configuration for diagnostic runs.

Supports YAML and JSON config files. A config file holds two optional
sections plus top-level switches:

    thresholds:
      vif: 10.0
      tolerance: 0.1
      condition_index: 30.0
      variance_proportion: 0.5
    plots:
      style: paper
      palette: colorblind
      format: png
      dpi: 300
      width: 8.0        # inches; omit for per-plot defaults
    include_intercept: true
    make_plots: true
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

_STYLES = ("paper", "presentation", "notebook")
_PALETTES = ("default", "colorblind", "print")
_FORMATS = ("png", "pdf", "svg")


@dataclass
class ThresholdConfig:
    """Warning thresholds for collinearity diagnostics."""
    vif: float = 10.0
    tolerance: float = 0.1
    condition_index: float = 30.0
    variance_proportion: float = 0.5

    def __post_init__(self):
        if self.vif <= 1.0:
            raise ValueError(f"thresholds.vif must be > 1, got {self.vif}")
        if not 0.0 < self.tolerance < 1.0:
            raise ValueError(f"thresholds.tolerance must be in (0, 1), got {self.tolerance}")
        if self.condition_index <= 1.0:
            raise ValueError(
                f"thresholds.condition_index must be > 1, got {self.condition_index}"
            )
        if not 0.0 < self.variance_proportion < 1.0:
            raise ValueError(
                f"thresholds.variance_proportion must be in (0, 1), got {self.variance_proportion}"
            )


@dataclass
class PlotConfig:
    """Figure styling and output options."""
    style: str = "paper"
    palette: str = "default"
    format: str = "png"
    dpi: int = 300
    width: Optional[float] = None

    def __post_init__(self):
        if self.style not in _STYLES:
            raise ValueError(f"plots.style must be one of {_STYLES}, got '{self.style}'")
        if self.palette not in _PALETTES:
            raise ValueError(f"plots.palette must be one of {_PALETTES}, got '{self.palette}'")
        if self.format not in _FORMATS:
            raise ValueError(f"plots.format must be one of {_FORMATS}, got '{self.format}'")
        if self.dpi <= 0:
            raise ValueError(f"plots.dpi must be positive, got {self.dpi}")
        if self.width is not None and self.width <= 0:
            raise ValueError(f"plots.width must be positive, got {self.width}")


@dataclass
class DiagnosticsConfig:
    """
    Complete configuration for ``run_diagnostics``.

    Attributes:
        thresholds: Collinearity warning thresholds.
        plots: Figure styling and output options.
        include_intercept: Keep the intercept in the eigen decomposition.
        make_plots: Render figures (False gives tables only).
    """
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    plots: PlotConfig = field(default_factory=PlotConfig)
    include_intercept: bool = True
    make_plots: bool = True

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "DiagnosticsConfig":
        """
        Build a config from a nested dictionary.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        _check_keys(config, cls, "config")

        kwargs: Dict[str, Any] = {}
        if config.get("thresholds") is not None:
            _check_keys(config["thresholds"], ThresholdConfig, "thresholds")
            kwargs["thresholds"] = ThresholdConfig(**{
                k: _convert(v, float, f"thresholds.{k}")
                for k, v in config["thresholds"].items()
            })
        if config.get("plots") is not None:
            _check_keys(config["plots"], PlotConfig, "plots")
            plots = dict(config["plots"])
            if "dpi" in plots:
                plots["dpi"] = _convert(plots["dpi"], int, "plots.dpi")
            if plots.get("width") is not None:
                plots["width"] = _convert(plots["width"], float, "plots.width")
            kwargs["plots"] = PlotConfig(**plots)
        for flag in ("include_intercept", "make_plots"):
            if flag in config:
                if not isinstance(config[flag], bool):
                    raise ValueError(f"{flag} must be true or false, got {config[flag]!r}")
                kwargs[flag] = config[flag]

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thresholds": {f.name: getattr(self.thresholds, f.name) for f in fields(ThresholdConfig)},
            "plots": {f.name: getattr(self.plots, f.name) for f in fields(PlotConfig)},
            "include_intercept": self.include_intercept,
            "make_plots": self.make_plots,
        }


def _convert(value: Any, kind: Callable[[Any], Any], label: str) -> Any:
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number, got {value!r}") from None


def _check_keys(section: Any, schema: type, label: str) -> None:
    if not isinstance(section, dict):
        raise ValueError(f"'{label}' must be a mapping, got {type(section).__name__}")
    allowed = {f.name for f in fields(schema)}
    unknown = set(section) - allowed
    if unknown:
        raise ValueError(
            f"Unknown key(s) in {label}: {sorted(unknown)}. Allowed: {sorted(allowed)}"
        )


def load_config(config_path: Path) -> DiagnosticsConfig:
    """
    Load a diagnostics configuration from a YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        DiagnosticsConfig; an empty file yields the defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("diagnostics.yaml"))
        >>> config.thresholds.vif
        10.0
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    try:
        with open(config_path, 'r') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            elif suffix == '.json':
                config = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported config format: {suffix}. "
                    f"Use .yaml, .yml, or .json"
                )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return DiagnosticsConfig()

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return DiagnosticsConfig.from_dict(config)
