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
# LOCAL FILESYSTEM
# -----------------------------------------------------------------------------
# Responsibility: The only place the exporter touches the disk.
#
# Every OS error is wrapped in FileSystemError carrying the operation and
# path, so the reconciler can decide what is fatal (list, mkdir, write) and
# what is merely reported (delete).
# -----------------------------------------------------------------------------

from pathlib import Path


class FileSystemError(Exception):
    """Raised when a filesystem operation fails."""

    def __init__(self, message: str, operation: str, path: Path, cause: OSError | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.path = Path(path)
        self.cause = cause


class LocalFileSystem:
    """
    Thin wrapper over pathlib for the operations an export needs.

    Tests swap in a subclass or a mock to inject failures.
    """

    def list_files(self, directory: Path) -> list[str]:
        """
        List the names of regular files in `directory`.

        A missing directory has no files. Subdirectories are skipped.

        Raises:
            FileSystemError: If the directory exists but cannot be read.
        """
        directory = Path(directory)
        if not directory.exists():
            return []
        try:
            return sorted(entry.name for entry in directory.iterdir() if entry.is_file())
        except OSError as e:
            raise FileSystemError(
                f"Cannot list {directory}: {e}", operation="list", path=directory, cause=e
            ) from e

    def ensure_dir(self, directory: Path) -> None:
        """Create `directory` and any missing parents."""
        directory = Path(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(
                f"Cannot create {directory}: {e}", operation="mkdir", path=directory, cause=e
            ) from e

    def write_text(self, path: Path, content: str) -> None:
        """Write `content` to `path`, replacing any existing file."""
        path = Path(path)
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise FileSystemError(
                f"Cannot write {path}: {e}", operation="write", path=path, cause=e
            ) from e

    def remove(self, path: Path) -> None:
        """Delete the file at `path`."""
        path = Path(path)
        try:
            path.unlink()
        except OSError as e:
            raise FileSystemError(
                f"Cannot delete {path}: {e}", operation="delete", path=path, cause=e
            ) from e
