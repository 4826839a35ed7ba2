"""Configuration module for report settings and environment variables.

This module manages configuration settings for the pediatric ART report.
Values come from environment variables (a local ``.env`` file is honoured)
with defaults relative to the project root.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from art_pipeline.exceptions import ConfigurationError
from art_pipeline.logging_config import create_logger

load_dotenv()

logger = create_logger(__name__)

# get the local root directory
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DATA_DIR = os.path.join(ROOT_DIR, "data")
RAW_DATA_DIR = os.getenv("RAW_DATA_DIR", os.path.join(DATA_DIR, "raw"))

INDICATORS_PATH = os.getenv(
    "INDICATORS_PATH", os.path.join(RAW_DATA_DIR, "indicators.csv")
)
METADATA_PATH = os.getenv("METADATA_PATH", os.path.join(RAW_DATA_DIR, "metadata.csv"))
GEOMETRY_PATH = os.getenv("GEOMETRY_PATH", os.path.join(RAW_DATA_DIR, "world_map.csv"))

OUTPUT_DIR = os.getenv("OUTPUT_DIR", os.path.join(ROOT_DIR, "output"))

# The single indicator in scope for the whole report
TARGET_INDICATOR = os.getenv(
    "TARGET_INDICATOR", "Reported number of children (aged 0-14) receiving ART"
)


def _env_int(name: str, default: int):
    """Read an integer setting; unparsable values are kept for validate_config."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return value


TOP_N = _env_int("TOP_N", 10)

EXPORT_FORMAT = os.getenv("EXPORT_FORMAT", "csv").lower()
SUPPORTED_EXPORT_FORMATS = ("csv", "parquet")

STRICT_METADATA_KEYS = os.getenv("STRICT_METADATA_KEYS", "false").lower() == "true"


@dataclass
class ReportConfig:
    """Settings for one report run."""

    indicators_path: str = INDICATORS_PATH
    metadata_path: str = METADATA_PATH
    geometry_path: Optional[str] = GEOMETRY_PATH
    output_dir: str = OUTPUT_DIR
    target_indicator: str = TARGET_INDICATOR
    top_n: int = TOP_N
    export_format: str = EXPORT_FORMAT
    strict_metadata_keys: bool = STRICT_METADATA_KEYS
    render: bool = True

    @classmethod
    def from_env(cls, **overrides) -> "ReportConfig":
        """Build a config from the module constants, applying non-None overrides."""
        values = {
            "indicators_path": INDICATORS_PATH,
            "metadata_path": METADATA_PATH,
            "geometry_path": GEOMETRY_PATH,
            "output_dir": OUTPUT_DIR,
            "target_indicator": TARGET_INDICATOR,
            "top_n": TOP_N,
            "export_format": EXPORT_FORMAT,
            "strict_metadata_keys": STRICT_METADATA_KEYS,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def validate_config(config: ReportConfig) -> None:
    """
    Validate critical configuration parameters.
    Raises ConfigurationError if any required config is missing or invalid.

    :param config: The run configuration to validate
    :raises ConfigurationError: If configuration is invalid
    """
    required_paths = [
        ("indicators_path", config.indicators_path),
        ("metadata_path", config.metadata_path),
        ("output_dir", config.output_dir),
    ]

    for name, value in required_paths:
        if not value:
            raise ConfigurationError(f"Missing required path configuration: {name}")

    if not config.target_indicator or not config.target_indicator.strip():
        raise ConfigurationError("TARGET_INDICATOR must be a non-empty label")

    top_n = config.top_n
    if isinstance(top_n, bool) or not isinstance(top_n, int) or top_n < 1:
        raise ConfigurationError(f"TOP_N must be a positive integer, got {config.top_n!r}")

    if config.export_format not in SUPPORTED_EXPORT_FORMATS:
        raise ConfigurationError(
            f"Unsupported export format '{config.export_format}', "
            f"expected one of {SUPPORTED_EXPORT_FORMATS}"
        )

    try:
        os.makedirs(config.output_dir, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"Unable to create output directory at {config.output_dir}: {e}"
        ) from e

    logger.info("Configuration validation successful")
