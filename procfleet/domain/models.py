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
# DOMAIN MODELS - EXPORT INSTRUCTIONS
# -----------------------------------------------------------------------------
# These Pydantic models describe what an export run works on:
# - ProcessSpec: one named process from the manifest (Procfile)
# - Formation: how many instances of each process to export
# - ExportTarget: one unit file the run must leave on disk
# - EngineContext: everything a template needs to render a target
#
# Invalid names are rejected here, before any filename is generated.
# -----------------------------------------------------------------------------

import re
from enum import Enum

from pydantic import BaseModel, Field, NonNegativeInt, field_validator

DEFAULT_RELOAD_SIGNAL = "SIGHUP"
DEFAULT_STOP_SIGNAL = "SIGTERM"
DEFAULT_BASE_PORT = 5000
DEFAULT_PORT_STRIDE = 100

# Keys rendered as `env KEY=...` stanzas
ENV_KEY_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class TargetKind(str, Enum):
    """
    The three kinds of exported unit files.

    Each kind maps to its own template in the template search path.
    """

    MASTER = "master"
    PROCESS_GROUP = "process_group"
    INSTANCE = "instance"


class ProcessSpec(BaseModel):
    """
    A single manifest entry: a process name and the command that runs it.

    The name becomes dash-delimited filename segments, so path separators
    and whitespace are not allowed. Its last segment may not be numeric:
    "alpha-1" would collide with instance 1 of "alpha".
    """

    name: str = Field(
        ...,
        min_length=1,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Process name (e.g., 'web', 'worker', 'foo-bar')",
    )
    command: str = Field(..., min_length=1, description="Command line to execute")

    class Config:
        """Manifest entries are immutable once loaded."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("name")
    @classmethod
    def _check_segments(cls, value: str) -> str:
        segments = value.split("-")
        if "" in segments:
            raise ValueError("process name must not start, end or repeat a dash")
        if segments[-1].isdigit():
            raise ValueError(
                f"process name '{value}' ends in a numeric segment, which is reserved for instance indexes"
            )
        return value


class Formation(BaseModel):
    """
    Desired instance count per process name.

    Names missing from `counts` fall back to `default` (1 unless the
    formation spec said otherwise with `all=N`).
    """

    counts: dict[str, NonNegativeInt] = Field(default_factory=dict)
    default: NonNegativeInt = 1

    class Config:
        frozen = True

    def count_for(self, name: str) -> int:
        """Return the number of instances to export for `name`."""
        return self.counts.get(name, self.default)


class ExportTarget(BaseModel):
    """
    One unit file that the current export must leave on disk.

    Frozen so targets are hashable and the full target set is a plain `set`.
    """

    filename: str = Field(..., min_length=1)
    kind: TargetKind
    process_name: str | None = None
    index: int | None = Field(None, ge=1)

    class Config:
        frozen = True


class EngineContext(BaseModel):
    """
    The render context for one export run.

    Owned by the caller and handed to the renderer by reference. The core
    never mutates it; the model is frozen to keep it that way.

    Fields:
    - app: Base application name, first segment of every filename
    - processes: The manifest, in Procfile order (order drives port offsets)
    - formation: Resolved instance counts
    - env: Environment exported into every instance file
    - reload_signals / stop_signals: Per-process signal overrides
    - base_port / port_stride: Port of instance N of the Kth process is
      base_port + K * port_stride + (N - 1)
    """

    app: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
    processes: list[ProcessSpec] = Field(default_factory=list)
    formation: Formation = Field(default_factory=Formation)
    env: dict[str, str] = Field(default_factory=dict)
    reload_signals: dict[str, str] = Field(default_factory=dict)
    stop_signals: dict[str, str] = Field(default_factory=dict)
    default_reload_signal: str = DEFAULT_RELOAD_SIGNAL
    default_stop_signal: str = DEFAULT_STOP_SIGNAL
    base_port: int = Field(DEFAULT_BASE_PORT, ge=1, le=65535)
    port_stride: int = Field(DEFAULT_PORT_STRIDE, ge=1)
    user: str | None = None
    log_dir: str | None = None
    root: str = "."

    class Config:
        frozen = True

    @field_validator("env")
    @classmethod
    def _check_env_keys(cls, value: dict[str, str]) -> dict[str, str]:
        bad = sorted(key for key in value if not ENV_KEY_PATTERN.fullmatch(key))
        if bad:
            raise ValueError(f"invalid environment variable names: {', '.join(bad)}")
        return value

    @property
    def process_names(self) -> list[str]:
        """Names of all manifest processes, in manifest order."""
        return [process.name for process in self.processes]

    @property
    def effective_user(self) -> str:
        """The user the exported processes run as (defaults to the app name)."""
        return self.user or self.app

    @property
    def effective_log_dir(self) -> str:
        """Log directory (defaults to /var/log/<app>)."""
        return self.log_dir or f"/var/log/{self.app}"

    def process(self, name: str) -> ProcessSpec:
        """
        Look up a manifest process by name.

        Raises:
            KeyError: If the manifest has no process called `name`.
        """
        for process in self.processes:
            if process.name == name:
                return process
        raise KeyError(name)

    def port_for(self, name: str, index: int) -> int:
        """
        Compute the PORT for instance `index` (1-based) of process `name`.

        Raises:
            KeyError: If `name` is not a manifest process.
        """
        names = self.process_names
        if name not in names:
            raise KeyError(name)
        return self.base_port + names.index(name) * self.port_stride + (index - 1)

    def reload_signal_for(self, name: str) -> str:
        """Reload signal for a process: override if present, else the default."""
        return self.reload_signals.get(name, self.default_reload_signal)

    def stop_signal_for(self, name: str) -> str:
        """Stop signal for a process: override if present, else the default."""
        return self.stop_signals.get(name, self.default_stop_signal)
