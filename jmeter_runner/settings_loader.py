"""Load run settings from YAML files."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from jmeter_runner.models.settings import RunSettings


def load_run_settings(path: Path) -> RunSettings:
    """Load and validate run settings from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty, is not valid YAML or does not match
            the settings schema

    """
    if not path.is_file():
        raise FileNotFoundError(f"Settings file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        raise ValueError(f"Empty settings file: {path}")
    if not isinstance(data, dict):
        raise ValueError(
            f"Invalid settings in {path}: expected a mapping, got {type(data).__name__}"
        )

    try:
        return RunSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid settings in {path}: {exc}") from exc
