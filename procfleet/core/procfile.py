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
# PROCFILE & ENVIRONMENT LOADING
# -----------------------------------------------------------------------------
# Responsibility: Read the process manifest (Procfile) and the application
# environment (.env files) that feed an export.
#
# Procfile grammar, one process per line:
#   name: command
# Blank lines and "#" comments are ignored.
# -----------------------------------------------------------------------------

import re
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from procfleet.domain.models import ProcessSpec

console = Console()

PROCFILE_LINE = re.compile(r"^([A-Za-z0-9_-]+):\s*(.+)$")


class ProcfileError(Exception):
    """Raised when a Procfile cannot be read or parsed."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


def parse_procfile(text: str) -> list[ProcessSpec]:
    """
    Parse Procfile text into process specs, preserving file order.

    Raises:
        ProcfileError: On malformed lines, duplicate names or an empty manifest.
    """
    processes: list[ProcessSpec] = []
    seen: set[str] = set()

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        match = PROCFILE_LINE.match(line)
        if not match:
            raise ProcfileError(f"Line {line_number}: expected 'name: command'", line_number)

        name, command = match.group(1), match.group(2).strip()
        if name in seen:
            raise ProcfileError(f"Line {line_number}: duplicate process '{name}'", line_number)

        try:
            processes.append(ProcessSpec(name=name, command=command))
        except ValidationError as e:
            raise ProcfileError(f"Line {line_number}: {e}", line_number) from e
        seen.add(name)

    if not processes:
        raise ProcfileError("Procfile defines no processes")

    return processes


def load_procfile(path: Path | str) -> list[ProcessSpec]:
    """
    Load and parse a Procfile from disk.

    Raises:
        ProcfileError: If the file is missing, unreadable or invalid.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProcfileError(f"Cannot read {path}: {e}") from e

    processes = parse_procfile(text)
    console.print(f"[cyan][PROCFILE] Loaded {len(processes)} processes from {escape(str(path))}[/cyan]")
    return processes


def load_env(paths: Iterable[Path | str]) -> dict[str, str]:
    """
    Merge .env files into one environment map.

    Later files win. Missing files are skipped with a warning and keys
    without a value (a bare "KEY" line) are dropped.
    """
    env: dict[str, str] = {}
    for path in paths:
        path = Path(path)
        if not path.is_file():
            console.print(f"[yellow][PROCFILE] Env file not found: {escape(str(path))}[/yellow]")
            continue
        values = dotenv_values(path)
        env.update({key: value for key, value in values.items() if value is not None})
    return env
