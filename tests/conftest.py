"""
Pytest configuration and fixtures for procfleet tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from procfleet.core.engine import ExportEngine
from procfleet.domain.models import ProcessSpec

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class RecordingReporter:
    """Collects reconciler callbacks instead of printing them."""

    def __init__(self) -> None:
        self.written: list[Path] = []
        self.deleted: list[Path] = []
        self.errors: list = []

    def on_file_written(self, path):
        self.written.append(path)

    def on_file_deleted(self, path):
        self.deleted.append(path)

    def on_error(self, error):
        self.errors.append(error)


def example_export_file(name: str) -> str:
    """Read a golden export file from tests/fixtures."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def processes():
    """The alpha/bravo manifest used throughout the export tests."""
    return [
        ProcessSpec(name="alpha", command="./alpha"),
        ProcessSpec(name="bravo", command="./bravo"),
    ]


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def fake_home(tmp_path):
    """An empty home directory so the real ~/.procfleet never leaks in."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "init"


@pytest.fixture
def engine(reporter):
    return ExportEngine(reporter=reporter)


@pytest.fixture
def run_export(engine, processes, output_dir, fake_home):
    """Export the alpha/bravo manifest as app 'app' rooted at /tmp/app."""

    def _run(**kwargs):
        options = {"home": fake_home, "root": "/tmp/app"}
        options.update(kwargs)
        return engine.export(processes, "app", output_dir, **options)

    return _run
