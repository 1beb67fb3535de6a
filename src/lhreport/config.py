"""YAML config loader — reads report-config.yml into ReportConfig."""

from pathlib import Path

import yaml

from lhreport.schemas.config import ReportConfig


def load_config(path: str | Path | None = None) -> ReportConfig:
    """Load and validate a report config file.

    With no path the defaults are returned. Raises ``FileNotFoundError`` if
    the path doesn't exist and ``pydantic.ValidationError`` if the YAML
    content is invalid.
    """
    if path is None:
        return ReportConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        return ReportConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # A section with all keys commented out loads as None; treat it as absent.
    for key in ("contact", "renderer"):
        if key in raw and raw[key] is None:
            del raw[key]

    if isinstance(raw.get("renderer"), dict) and raw["renderer"].get("launch_args") is None:
        raw["renderer"].pop("launch_args", None)

    return ReportConfig(**raw)
