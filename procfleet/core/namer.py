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
# THE INSTANCE NAMER
# -----------------------------------------------------------------------------
# Responsibility: Name every exported unit and recognise our own files.
#
# Naming scheme (each segment delimited by a single dash, index always last):
#   <app>.conf                    master
#   <app>-<process>.conf          process group
#   <app>-<process>-<index>.conf  instance
#
# Ownership is decided by a dash tokenizer, never by a plain string prefix:
# "app2.conf" is not ours, and neither is "app-worker-worker.conf" unless
# "worker-worker" is one of our processes.
# -----------------------------------------------------------------------------

from collections.abc import Iterable
from dataclasses import dataclass

from procfleet.domain.models import ExportTarget, Formation, ProcessSpec, TargetKind

DEFAULT_EXTENSION = ".conf"


@dataclass(frozen=True)
class OwnedName:
    """A filename parsed back into its process and index segments."""

    process_name: str | None = None
    index: int | None = None


def target_filename(
    app: str,
    process_name: str | None = None,
    index: int | None = None,
    extension: str = DEFAULT_EXTENSION,
) -> str:
    """Build the canonical filename for a master, group or instance unit."""
    segments = [app]
    if process_name is not None:
        segments.append(process_name)
        if index is not None:
            segments.append(str(index))
    return "-".join(segments) + extension


def enumerate_targets(
    app: str,
    processes: Iterable[ProcessSpec],
    formation: Formation,
    extension: str = DEFAULT_EXTENSION,
) -> set[ExportTarget]:
    """
    Enumerate every unit file the export must produce.

    Args:
        app: Base application name.
        processes: Manifest processes.
        formation: Resolved instance counts.
        extension: Filename extension for every unit.

    Returns:
        The target set: one master, and for each process with a count of at
        least one, a process-group target plus one instance target per index.
    """
    targets = {
        ExportTarget(filename=target_filename(app, extension=extension), kind=TargetKind.MASTER)
    }

    for process in processes:
        count = formation.count_for(process.name)
        if count < 1:
            continue

        targets.add(
            ExportTarget(
                filename=target_filename(app, process.name, extension=extension),
                kind=TargetKind.PROCESS_GROUP,
                process_name=process.name,
            )
        )
        for index in range(1, count + 1):
            targets.add(
                ExportTarget(
                    filename=target_filename(app, process.name, index, extension=extension),
                    kind=TargetKind.INSTANCE,
                    process_name=process.name,
                    index=index,
                )
            )

    return targets


def _is_index(segment: str) -> bool:
    return segment.isascii() and segment.isdigit()


def parse_owned_filename(
    filename: str,
    app: str,
    process_names: Iterable[str],
    extension: str = DEFAULT_EXTENSION,
) -> OwnedName | None:
    """
    Parse a filename back into (process, index) if it belongs to `app`.

    The leading `app` and an optional trailing extension are removed. What is
    left must be empty (the master file), or a dash followed by a known
    process name taken as whole dash-segments, optionally followed by a dash
    and a numeric index.

    Args:
        filename: Bare filename (no directory).
        app: Base application name.
        process_names: Every process name the application knows about.
        extension: Extension the exporter writes.

    Returns:
        OwnedName for files that belong to the application, None otherwise.
    """
    if not filename.startswith(app):
        return None

    remainder = filename[len(app):]
    if extension and remainder.endswith(extension):
        remainder = remainder[: -len(extension)]

    if remainder == "":
        return OwnedName()
    if not remainder.startswith("-"):
        return None

    segments = remainder[1:].split("-")
    if any(segment == "" for segment in segments):
        return None

    known = set(process_names)

    whole = "-".join(segments)
    if whole in known:
        return OwnedName(process_name=whole)

    if len(segments) > 1 and _is_index(segments[-1]):
        name = "-".join(segments[:-1])
        if name in known:
            return OwnedName(process_name=name, index=int(segments[-1]))

    return None


def is_owned_filename(
    filename: str,
    app: str,
    process_names: Iterable[str],
    extension: str = DEFAULT_EXTENSION,
) -> bool:
    """Return True if `filename` is a unit file previously exported for `app`."""
    return parse_owned_filename(filename, app, process_names, extension) is not None
