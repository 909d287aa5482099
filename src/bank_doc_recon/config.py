"""Configuration loader and validation for reconciliation settings."""

from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class MatchingPreferences(BaseModel):
    """
    Matching preferences for one reconciliation run.

    Every field is optional. Unknown keys are ignored and explicit nulls
    fall back to the field default. Day counts may be fractional; the date
    window only widens by whole calendar days.
    """

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    # Window size after the issue date when a document has no due date
    date_tolerance_days: float = 0
    # Days a transaction may precede the issue date
    pre_issue_grace_days: float = 0
    # Days a transaction may follow the due date
    post_due_grace_days: float = 0
    min_confidence_auto_match: float = 1.0
    min_confidence_candidate: float = 0.0
    allow_cross_currency: bool = False
    allow_partial_payments: bool = False

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    matched: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Matched Pairs"))
    ambiguous: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Ambiguous Matches")
    )
    unmatched_transactions: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched Transactions")
    )
    unmatched_documents: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched Documents")
    )
    rule_audit: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Rule Audit"))


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    # Optional rotating log file
    file: Optional[str] = None


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    matching: MatchingPreferences = Field(default_factory=MatchingPreferences)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "matching": {
            "date_tolerance_days": 3,
            "pre_issue_grace_days": 0,
            "post_due_grace_days": 7,
            "min_confidence_auto_match": 0.9,
            "min_confidence_candidate": 0.5,
            "allow_cross_currency": False,
            "allow_partial_payments": False,
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_report_{date}_{time}.xlsx",
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "matched": {"enabled": True, "name": "Matched Pairs"},
                "ambiguous": {"enabled": True, "name": "Ambiguous Matches"},
                "unmatched_transactions": {
                    "enabled": True,
                    "name": "Unmatched Transactions",
                },
                "unmatched_documents": {"enabled": True, "name": "Unmatched Documents"},
                "rule_audit": {"enabled": True, "name": "Rule Audit"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {config_path}"
            )

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Bank transaction to document reconciliation configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
