# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# EXPORT SETTINGS
# -----------------------------------------------------------------------------
# Responsibility: Tool-wide defaults for an export, loaded from
# procfleet.yaml. Missing file means built-in defaults.
# -----------------------------------------------------------------------------

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from rich.console import Console
from rich.markup import escape

from procfleet.domain.models import (
    DEFAULT_BASE_PORT,
    DEFAULT_PORT_STRIDE,
    DEFAULT_RELOAD_SIGNAL,
    DEFAULT_STOP_SIGNAL,
)

console = Console()

# Settings file location
SETTINGS_PATH = Path(__file__).parent.parent.parent / "procfleet.yaml"


class SettingsError(Exception):
    """Raised when the settings file exists but is invalid."""

    pass


class ExportSettings(BaseModel):
    """
    Pydantic model for procfleet.yaml.

    Every field has a default, so an empty file is valid.
    """

    export_format: str = "upstart"
    base_port: int = Field(DEFAULT_BASE_PORT, ge=1, le=65535)
    port_stride: int = Field(DEFAULT_PORT_STRIDE, ge=1)
    default_reload_signal: str = DEFAULT_RELOAD_SIGNAL
    default_stop_signal: str = DEFAULT_STOP_SIGNAL
    home_dir_name: str = ".procfleet"
    extension: str = ".conf"


def load_settings(path: Path | str | None = None) -> ExportSettings:
    """
    Load settings from a YAML file.

    Args:
        path: Settings file; defaults to procfleet.yaml next to the package.

    Returns:
        ExportSettings with validated values.

    Raises:
        SettingsError: If the file is not valid YAML or has invalid values.
    """
    settings_path = Path(path) if path is not None else SETTINGS_PATH

    if not settings_path.exists():
        console.print("[yellow][SETTINGS] Settings file not found, using defaults[/yellow]")
        return ExportSettings()

    try:
        with open(settings_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {settings_path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"{settings_path} must contain a mapping")

    try:
        settings = ExportSettings(**data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {settings_path}: {e}") from e

    console.print(f"[green][SETTINGS] Loaded {escape(str(settings_path))}[/green]")
    return settings
