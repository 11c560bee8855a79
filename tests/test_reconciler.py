"""
Tests for the Export Reconciler: discover, diff, delete, write.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from procfleet.core.namer import enumerate_targets
from procfleet.core.reconciler import ConsoleReporter, ExportReconciler, ExportReport
from procfleet.domain.models import Formation
from procfleet.infra.filesystem import FileSystemError, LocalFileSystem


def render(target):
    return f"# {target.filename}\n"


class FailingRemoveFileSystem(LocalFileSystem):
    """Refuses to delete the listed filenames."""

    def __init__(self, protected):
        self.protected = set(protected)

    def remove(self, path):
        if Path(path).name in self.protected:
            raise FileSystemError(
                f"Cannot delete {path}: permission denied",
                operation="delete",
                path=path,
                cause=PermissionError(13, "Permission denied"),
            )
        super().remove(path)


@pytest.fixture
def reconciler(reporter):
    return ExportReconciler(reporter=reporter)


def targets_for(processes, **counts):
    return enumerate_targets("app", processes, Formation(counts=counts))


def touch(directory, *names):
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_text("old\n")


class TestExportReconciler:
    """Tests for ExportReconciler.export."""

    def test_writes_into_missing_directory(self, reconciler, processes, output_dir):
        report = reconciler.export("app", targets_for(processes), render, output_dir)

        assert sorted(p.name for p in output_dir.iterdir()) == [
            "app-alpha-1.conf",
            "app-alpha.conf",
            "app-bravo-1.conf",
            "app-bravo.conf",
            "app.conf",
        ]
        assert (output_dir / "app-alpha-1.conf").read_text() == "# app-alpha-1.conf\n"
        assert len(report.written) == 5
        assert report.deleted == []
        assert report.ok

    def test_overwrites_existing_current_files(self, reconciler, processes, output_dir):
        touch(output_dir, "app.conf")
        report = reconciler.export("app", targets_for(processes), render, output_dir)

        assert (output_dir / "app.conf").read_text() == "# app.conf\n"
        assert report.deleted == []

    def test_idempotent(self, reconciler, processes, output_dir):
        targets = targets_for(processes, alpha=2)
        reconciler.export("app", targets, render, output_dir)
        first = {p.name: p.read_text() for p in output_dir.iterdir()}

        report = reconciler.export("app", targets, render, output_dir)
        second = {p.name: p.read_text() for p in output_dir.iterdir()}

        assert first == second
        assert report.deleted == []

    def test_removes_stale_instances(self, reconciler, processes, output_dir):
        reconciler.export("app", targets_for(processes, alpha=3, bravo=1), render, output_dir)
        report = reconciler.export("app", targets_for(processes, alpha=2), render, output_dir)

        assert not (output_dir / "app-alpha-3.conf").exists()
        assert (output_dir / "app-alpha-2.conf").exists()
        assert (output_dir / "app-bravo-1.conf").exists()
        assert report.deleted == [output_dir / "app-alpha-3.conf"]

    def test_scaled_to_zero_needs_process_names(self, reconciler, processes, output_dir):
        """Files of a process scaled to zero are only found via process_names."""
        reconciler.export("app", targets_for(processes), render, output_dir)
        reconciler.export(
            "app",
            targets_for(processes, bravo=0),
            render,
            output_dir,
            process_names=["alpha", "bravo"],
        )

        assert not (output_dir / "app-bravo.conf").exists()
        assert not (output_dir / "app-bravo-1.conf").exists()
        assert (output_dir / "app-alpha-1.conf").exists()

    def test_similarly_named_applications_untouched(self, reconciler, processes, output_dir):
        touch(output_dir, "app2.conf", "app2-alpha.conf", "app2-alpha-1.conf")
        reconciler.export("app", targets_for(processes), render, output_dir)

        for name in ("app2.conf", "app2-alpha.conf", "app2-alpha-1.conf"):
            assert (output_dir / name).read_text() == "old\n"

    def test_shared_process_prefix_untouched(self, reconciler, output_dir):
        from procfleet.domain.models import ProcessSpec

        processes = [ProcessSpec(name="worker", command="./worker")]
        touch(output_dir, "app-worker.conf", "app-worker-worker.conf", "app-worker-worker-1.conf")
        report = reconciler.export("app", targets_for(processes), render, output_dir)

        assert (output_dir / "app.conf").exists()
        assert (output_dir / "app-worker.conf").read_text() == "# app-worker.conf\n"
        assert (output_dir / "app-worker-worker.conf").read_text() == "old\n"
        assert (output_dir / "app-worker-worker-1.conf").read_text() == "old\n"
        assert report.deleted == []

    def test_unrelated_files_untouched(self, reconciler, processes, output_dir):
        touch(output_dir, "README", "other-alpha-1.conf", "app-alpha.conf.bak")
        (output_dir / "app-alpha-9.conf").mkdir()
        reconciler.export("app", targets_for(processes), render, output_dir)

        assert (output_dir / "README").exists()
        assert (output_dir / "other-alpha-1.conf").exists()
        assert (output_dir / "app-alpha.conf.bak").exists()
        assert (output_dir / "app-alpha-9.conf").is_dir()

    def test_render_failure_leaves_directory_untouched(self, reconciler, processes, output_dir):
        touch(output_dir, "app-alpha-7.conf")

        def broken(target):
            if target.filename == "app-bravo-1.conf":
                raise RuntimeError("boom")
            return "new\n"

        with pytest.raises(RuntimeError):
            reconciler.export("app", targets_for(processes), broken, output_dir)

        assert sorted(p.name for p in output_dir.iterdir()) == ["app-alpha-7.conf"]

    def test_delete_failure_is_reported_not_fatal(self, reporter, processes, output_dir):
        touch(output_dir, "app-alpha-2.conf", "app-alpha-3.conf")
        reconciler = ExportReconciler(
            fs=FailingRemoveFileSystem({"app-alpha-2.conf"}), reporter=reporter
        )

        report = reconciler.export("app", targets_for(processes), render, output_dir)

        assert not report.ok
        assert [e.path.name for e in report.errors] == ["app-alpha-2.conf"]
        assert report.errors[0].operation == "delete"
        assert isinstance(report.errors[0].cause, PermissionError)
        assert reporter.errors == report.errors
        # remaining deletions and all writes still happen
        assert not (output_dir / "app-alpha-3.conf").exists()
        assert (output_dir / "app-alpha-2.conf").exists()
        assert len(report.written) == 5

    def test_deletes_before_writes(self, processes, output_dir):
        fs = MagicMock(spec=LocalFileSystem)
        fs.list_files.return_value = ["app-alpha-2.conf"]
        reconciler = ExportReconciler(fs=fs, reporter=MagicMock())

        reconciler.export("app", targets_for(processes), render, output_dir)

        calls = [c[0] for c in fs.method_calls]
        assert calls.index("remove") < calls.index("ensure_dir") < calls.index("write_text")

    def test_discover_failure_is_fatal(self, processes, output_dir):
        fs = MagicMock(spec=LocalFileSystem)
        fs.list_files.side_effect = FileSystemError(
            "Cannot list", operation="list", path=output_dir
        )
        reconciler = ExportReconciler(fs=fs, reporter=MagicMock())

        with pytest.raises(FileSystemError):
            reconciler.export("app", targets_for(processes), render, output_dir)
        fs.write_text.assert_not_called()
        fs.remove.assert_not_called()

    def test_write_failure_is_fatal(self, processes, output_dir):
        fs = MagicMock(spec=LocalFileSystem)
        fs.list_files.return_value = []
        fs.write_text.side_effect = FileSystemError(
            "Cannot write", operation="write", path=output_dir / "app-alpha.conf"
        )
        reconciler = ExportReconciler(fs=fs, reporter=MagicMock())

        with pytest.raises(FileSystemError) as exc_info:
            reconciler.export("app", targets_for(processes), render, output_dir)
        assert exc_info.value.operation == "write"
        assert fs.write_text.call_count == 1

    def test_reporter_callbacks(self, reconciler, reporter, processes, output_dir):
        touch(output_dir, "app-alpha-5.conf")
        reconciler.export("app", targets_for(processes), render, output_dir)

        assert reporter.deleted == [output_dir / "app-alpha-5.conf"]
        assert sorted(p.name for p in reporter.written) == sorted(
            t.filename for t in targets_for(processes)
        )

    def test_console_reporter_is_default(self):
        reconciler = ExportReconciler()
        assert isinstance(reconciler._reporter, ConsoleReporter)


class TestExportReport:
    """Tests for ExportReport."""

    def test_ok_without_errors(self, tmp_path):
        assert ExportReport(output_dir=tmp_path).ok

    def test_not_ok_with_errors(self, tmp_path):
        error = FileSystemError("x", operation="delete", path=tmp_path / "a")
        assert not ExportReport(output_dir=tmp_path, errors=[error]).ok
