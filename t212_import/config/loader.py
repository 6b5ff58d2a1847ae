from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import CsvConfig, ErrorLogConfig, ImportConfig, ProcessingConfig

"""Config loader.

Responsibilities:
- Load the YAML config (config/t212_import.yml by default)
- Validate it against config_schema.json (unknown keys are rejected)
- Apply defaults for every missing key
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "config_from_dict",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/t212_import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_dict(data: dict[str, Any]) -> ImportConfig:
    """Build an ImportConfig from already validated data, applying defaults."""
    csv_raw = data.get("csv") or {}
    proc_raw = data.get("processing") or {}
    log_raw = data.get("error_log") or {}

    csv_defaults = CsvConfig()
    csv_cfg = CsvConfig(
        delimiter=csv_raw.get("delimiter", csv_defaults.delimiter),
        encoding=csv_raw.get("encoding", csv_defaults.encoding),
        max_errors_displayed=csv_raw.get("max_errors_displayed", csv_defaults.max_errors_displayed),
        validate_yearly_structure=csv_raw.get(
            "validate_yearly_structure", csv_defaults.validate_yearly_structure
        ),
    )

    proc_defaults = ProcessingConfig()
    proc_cfg = ProcessingConfig(
        max_workers=proc_raw.get("max_workers", proc_defaults.max_workers),
        tax_year=proc_raw.get("tax_year", proc_defaults.tax_year),
        currency=proc_raw.get("currency", proc_defaults.currency),
        jurisdiction=proc_raw.get("jurisdiction", proc_defaults.jurisdiction),
        include_withholding_tax=proc_raw.get(
            "include_withholding_tax", proc_defaults.include_withholding_tax
        ),
    )

    log_defaults = ErrorLogConfig()
    log_cfg = ErrorLogConfig(
        enabled=log_raw.get("enabled", log_defaults.enabled),
        directory=Path(log_raw.get("directory", log_defaults.directory)),
    )
    return ImportConfig(csv=csv_cfg, processing=proc_cfg, error_log=log_cfg)


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)
    return config_from_dict(data)
