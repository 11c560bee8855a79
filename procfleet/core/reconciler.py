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
# THE EXPORT RECONCILER
# -----------------------------------------------------------------------------
# Responsibility: Make the output directory match the current target set.
#
# Per export call:
#   0. Render   - every target, before anything on disk changes
#   1. Discover - files already in the directory that belong to this app
#   2. Diff     - stale = previous - current
#   3. Delete   - best effort, each failure reported, never fatal
#   4. Write    - mkdir -p, then (re)write every current target
#
# Not transactional. A crash mid-run is repaired by the next export.
# -----------------------------------------------------------------------------

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from procfleet.core.namer import DEFAULT_EXTENSION, is_owned_filename
from procfleet.domain.models import ExportTarget
from procfleet.infra.filesystem import FileSystemError, LocalFileSystem

console = Console()


class ExportReporter(Protocol):
    """Capability the reconciler reports every file operation to."""

    def on_file_written(self, path: Path) -> None:
        ...

    def on_file_deleted(self, path: Path) -> None:
        ...

    def on_error(self, error: FileSystemError) -> None:
        ...


class ConsoleReporter:
    """Reports export progress on the rich console."""

    def on_file_written(self, path: Path) -> None:
        console.print(f"[green][EXPORT] writing: {escape(str(path))}[/green]")

    def on_file_deleted(self, path: Path) -> None:
        console.print(f"[cyan][EXPORT] cleaning up: {escape(str(path))}[/cyan]")

    def on_error(self, error: FileSystemError) -> None:
        console.print(f"[red][EXPORT] {escape(str(error))}[/red]")


@dataclass
class ExportReport:
    """Outcome of one export call."""

    output_dir: Path
    written: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    errors: list[FileSystemError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every stale file was removed."""
        return not self.errors


class ExportReconciler:
    """
    Diffs the on-disk export against the current target set and commits it.

    There is no record of earlier exports. The previous target set is
    inferred from the filenames found in the output directory.
    """

    def __init__(
        self,
        fs: LocalFileSystem | None = None,
        reporter: ExportReporter | None = None,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        """
        Initialize the reconciler.

        Args:
            fs: Filesystem abstraction (defaults to the local disk).
            reporter: Receives a callback per written/deleted file and per error.
            extension: Extension of exported unit files.
        """
        self._fs = fs or LocalFileSystem()
        self._reporter = reporter or ConsoleReporter()
        self._extension = extension

    def discover(self, app: str, output_dir: Path, process_names: Iterable[str]) -> set[str]:
        """
        Find files in `output_dir` exported earlier for `app`.

        Raises:
            FileSystemError: If the directory cannot be listed.
        """
        names = list(process_names)
        return {
            filename
            for filename in self._fs.list_files(output_dir)
            if is_owned_filename(filename, app, names, self._extension)
        }

    def export(
        self,
        app: str,
        targets: set[ExportTarget],
        render: Callable[[ExportTarget], str],
        output_dir: Path | str,
        process_names: Iterable[str] | None = None,
    ) -> ExportReport:
        """
        Reconcile `output_dir` with the current target set.

        Args:
            app: Base application name.
            targets: Every unit file the export must leave on disk.
            render: Produces the content of a target.
            output_dir: Directory the unit files live in.
            process_names: All process names of the application, including
                those scaled to zero. Defaults to the names in `targets`.

        Returns:
            ExportReport listing written and deleted files and delete errors.

        Raises:
            FileSystemError: If discovery, directory creation or a write fails.
            Any error raised by `render`, before the directory is touched.
        """
        output_dir = Path(output_dir)
        if process_names is None:
            process_names = {t.process_name for t in targets if t.process_name is not None}

        ordered = sorted(targets, key=lambda t: t.filename)
        contents = {target.filename: render(target) for target in ordered}

        previous = self.discover(app, output_dir, process_names)
        stale = previous - set(contents)

        report = ExportReport(output_dir=output_dir)

        for filename in sorted(stale):
            path = output_dir / filename
            try:
                self._fs.remove(path)
            except FileSystemError as e:
                report.errors.append(e)
                self._reporter.on_error(e)
                continue
            report.deleted.append(path)
            self._reporter.on_file_deleted(path)

        self._fs.ensure_dir(output_dir)

        for filename, content in contents.items():
            path = output_dir / filename
            self._fs.write_text(path, content)
            report.written.append(path)
            self._reporter.on_file_written(path)

        return report
