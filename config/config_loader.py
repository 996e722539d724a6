"""Load settings.yaml into typed dataclasses."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"
SETTINGS_ENV = "FEEDBACK_LOGIC_SETTINGS"


@dataclass
class ResolutionConfig:
    strict_recipient_types: bool = False
    privileges_without_snapshot: bool = True


@dataclass
class NumberingConfig:
    verify_on_read: bool = True


@dataclass
class OutputConfig:
    max_rows: int = 200
    show_labels: bool = True


@dataclass
class AppConfig:
    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)
    numbering: NumberingConfig = field(default_factory=NumberingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def settings_path_from_env() -> Path:
    """Return the settings path, honouring FEEDBACK_LOGIC_SETTINGS when set."""
    override = os.environ.get(SETTINGS_ENV, "").strip()
    return Path(override) if override else _SETTINGS_PATH


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing. Missing sections fall
    back to dataclass defaults.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    resolution_raw = raw.get("resolution", {})
    resolution = ResolutionConfig(
        strict_recipient_types=bool(resolution_raw.get("strict_recipient_types", False)),
        privileges_without_snapshot=bool(resolution_raw.get("privileges_without_snapshot", True)),
    )

    numbering_raw = raw.get("numbering", {})
    numbering = NumberingConfig(
        verify_on_read=bool(numbering_raw.get("verify_on_read", True)),
    )

    output_raw = raw.get("output", {})
    output = OutputConfig(
        max_rows=int(output_raw.get("max_rows", 200)),
        show_labels=bool(output_raw.get("show_labels", True)),
    )

    if resolution.strict_recipient_types:
        logger.info("Strict recipient types enabled: unknown tags will raise")
    if not resolution.privileges_without_snapshot:
        logger.info("Instructor privileges only applied to snapshot rosters")

    return AppConfig(resolution=resolution, numbering=numbering, output=output)
