"""Configuration schema for driver-wizard.

Defines the driver-wizard.yml configuration file format using Pydantic
models. Every field is optional; a missing file means defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from driver_wizard.constants import (
    CONFIG_FILENAMES,
    DEFAULT_LOG_LINES,
    DEFAULT_STEP_DELAY,
)
from driver_wizard.errors import ConfigError


class StepOverride(BaseModel):
    """One step of a custom uninstall pipeline."""

    name: str
    description: str = ""

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Step names are identifiers and may not be blank."""
        if not v.strip():
            raise ValueError("Step name must not be empty")
        return v.strip()

    def as_mapping(self) -> dict[str, str]:
        return {"name": self.name, "description": self.description or self.name}


class WizardSettings(BaseModel):
    """
    Root configuration for driver-wizard.

    Example:
        log_lines: 15
        auto_advance: true
        step_delay: 0.2
        default_driver: "535"
        components: [driver, cuda]

        # Replace the default uninstall pipeline
        uninstall_steps:
          - name: unload_modules
            description: Unload kernel modules
          - name: remove_packages
            description: Remove packages

        # Make the simulated engine fail at this step
        simulate_failure: update
    """

    log_lines: int = Field(default=DEFAULT_LOG_LINES, gt=0)
    auto_advance: bool = False  # Leave the progress screen once the run ends
    step_delay: float = Field(default=DEFAULT_STEP_DELAY, ge=0)
    default_driver: str | None = None  # Branch version, e.g. "550"
    components: list[str] | None = None  # None keeps the catalogue defaults
    uninstall_steps: list[StepOverride] = Field(default_factory=list)
    simulate_failure: str | None = None

    model_config = {"frozen": True}

    @field_validator("default_driver", mode="before")
    @classmethod
    def parse_driver(cls, v: Any) -> str | None:
        """Accept unquoted YAML numbers as driver versions."""
        if v is None:
            return None
        return str(v)

    @field_validator("uninstall_steps")
    @classmethod
    def validate_unique_steps(cls, v: list[StepOverride]) -> list[StepOverride]:
        names = [step.name for step in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate uninstall step names: {duplicates}")
        return v

    @property
    def uninstall_step_mappings(self) -> list[dict[str, str]]:
        """Uninstall overrides in the shape the pipeline builder takes."""
        return [step.as_mapping() for step in self.uninstall_steps]

    @classmethod
    def from_yaml(cls, content: str) -> WizardSettings:
        """Parse settings from a YAML string. An empty document means defaults."""
        data = yaml.safe_load(content)
        if data is None:
            data = {}
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: Path | str) -> WizardSettings:
        """Load settings from a YAML file."""
        path = Path(path)
        content = path.read_text(encoding="utf-8")
        return cls.from_yaml(content)


def find_config(start_dir: Path | str | None = None) -> Path | None:
    """
    Find a driver-wizard config file.

    Searches in:
    1. start_dir (if provided)
    2. Current working directory
    3. Parent directories up to root

    Args:
        start_dir: Directory to start search from

    Returns:
        Path to config file, or None if not found
    """
    if start_dir is None:
        start_dir = Path.cwd()
    else:
        start_dir = Path(start_dir)

    current = start_dir.resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path | str | None = None) -> WizardSettings:
    """
    Load settings from file.

    If path is not provided, searches for a config file in the current
    and parent directories and falls back to defaults when none exists.

    Args:
        path: Explicit path to config file

    Returns:
        Parsed WizardSettings

    Raises:
        ConfigError: If an explicit path does not exist, or the file is not
            valid YAML or fails validation
    """
    if path is None:
        path = find_config()
        if path is None:
            return WizardSettings()
    else:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")

    try:
        return WizardSettings.from_file(path)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e
