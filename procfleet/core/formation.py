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
# THE FORMATION RESOLVER
# -----------------------------------------------------------------------------
# Responsibility: Turn compact "name=value" spec strings into validated maps:
# - Formation: "alpha=2,bravo=1" -> instance count per process
# - Signal maps: "alpha=USR2" -> reload/stop signal override per process
#
# Pure functions. Malformed specs are rejected here, before the exporter
# touches the filesystem.
# -----------------------------------------------------------------------------

from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape

from procfleet.domain.models import Formation

console = Console()

# Formation keyword that sets the count of every unlisted process
ALL_KEYWORD = "all"


class InvalidFormationSpec(ValueError):
    """Raised when a formation segment is not `name=nonNegativeInteger`."""

    def __init__(self, message: str, spec: str, segment: str) -> None:
        super().__init__(message)
        self.spec = spec
        self.segment = segment


class InvalidSignalSpec(ValueError):
    """Raised when a signal segment is not `name=SIGNAL`."""

    def __init__(self, message: str, spec: str, segment: str) -> None:
        super().__init__(message)
        self.spec = spec
        self.segment = segment


def _split_pairs(spec: str) -> list[tuple[str, str, str]]:
    """
    Split a comma-separated spec into (segment, name, value) triples.

    Whitespace around names and values is dropped and empty segments
    (e.g. a trailing comma) are skipped. A segment without "=" comes back
    with an empty name so the caller can report it.
    """
    pairs = []
    for segment in spec.split(","):
        segment = segment.strip()
        if not segment:
            continue
        name, sep, value = segment.partition("=")
        if not sep:
            pairs.append((segment, "", ""))
            continue
        pairs.append((segment, name.strip(), value.strip()))
    return pairs


def _warn_unknown(names: Iterable[str], known: set[str], label: str) -> None:
    for name in sorted(set(names) - known):
        console.print(
            f"[yellow][FORMATION] {label} names unknown process '{escape(name)}' - ignored[/yellow]"
        )


def resolve_formation(spec: str | None, known_names: Iterable[str]) -> Formation:
    """
    Resolve a formation spec into a Formation.

    Args:
        spec: Comma-separated "name=count" pairs, or None/blank for the
            default formation (one instance of every process).
        known_names: Process names from the manifest.

    Returns:
        Formation with a count for every known process. Names that are not
        manifest processes are kept in `counts` but never exported.

    Raises:
        InvalidFormationSpec: If a segment is not "name=nonNegativeInteger".
    """
    known = set(known_names)

    if spec is None or not spec.strip():
        return Formation(counts={name: 1 for name in known})

    explicit: dict[str, int] = {}
    default = 1

    for segment, name, value in _split_pairs(spec):
        if not name:
            raise InvalidFormationSpec(
                f"Invalid formation segment '{segment}': expected name=count",
                spec=spec,
                segment=segment,
            )
        if not (value.isascii() and value.isdigit()):
            raise InvalidFormationSpec(
                f"Invalid formation count in '{segment}': expected a non-negative integer",
                spec=spec,
                segment=segment,
            )

        if name == ALL_KEYWORD and ALL_KEYWORD not in known:
            default = int(value)
        else:
            explicit[name] = int(value)

    _warn_unknown(explicit, known, "Formation")

    counts = {name: default for name in known}
    counts.update(explicit)
    return Formation(counts=counts, default=default)


def parse_signal_map(
    spec: str | None, known_names: Iterable[str] | None = None, kind: str = "reload"
) -> dict[str, str]:
    """
    Parse a signal override spec such as "alpha=USR2,bravo=QUIT".

    Signal names are kept verbatim; they end up in the unit files as written.

    Args:
        spec: Comma-separated "name=SIGNAL" pairs, or None/blank for no overrides.
        known_names: Manifest process names, used only to warn about unknown names.
        kind: "reload" or "stop", used in messages.

    Returns:
        Mapping of process name to signal name.

    Raises:
        InvalidSignalSpec: If a segment is not "name=SIGNAL".
    """
    if spec is None or not spec.strip():
        return {}

    signals: dict[str, str] = {}
    for segment, name, value in _split_pairs(spec):
        if not name or not value:
            raise InvalidSignalSpec(
                f"Invalid {kind} signal segment '{segment}': expected name=SIGNAL",
                spec=spec,
                segment=segment,
            )
        if not (value.isascii() and value.isalnum()):
            raise InvalidSignalSpec(
                f"Invalid {kind} signal name '{value}' in '{segment}'",
                spec=spec,
                segment=segment,
            )
        signals[name] = value

    if known_names is not None:
        _warn_unknown(signals, set(known_names), f"{kind.capitalize()} signal spec")

    return signals
