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
# THE EXPORT ENGINE
# -----------------------------------------------------------------------------
# Orchestrates one export run:
#   Formation Resolver -> Instance Namer -> Template Renderer -> Reconciler
#
# All spec strings are parsed and every template is resolved before the
# output directory is touched.
# -----------------------------------------------------------------------------

from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from procfleet.core.formation import parse_signal_map, resolve_formation
from procfleet.core.namer import enumerate_targets
from procfleet.core.reconciler import ExportReconciler, ExportReport, ExportReporter
from procfleet.core.renderer import TemplateRenderer, build_search_path
from procfleet.core.settings import ExportSettings
from procfleet.domain.models import EngineContext, ExportTarget, ProcessSpec
from procfleet.infra.filesystem import LocalFileSystem

console = Console()


class ExportEngine:
    """
    Entry point for exporting a manifest to init-system unit files.

    Pipeline: spec strings -> EngineContext -> target set -> rendered files
    -> reconciled output directory.
    """

    def __init__(
        self,
        settings: ExportSettings | None = None,
        fs: LocalFileSystem | None = None,
        reporter: ExportReporter | None = None,
    ) -> None:
        self._settings = settings or ExportSettings()
        self._fs = fs
        self._reporter = reporter

    @property
    def settings(self) -> ExportSettings:
        return self._settings

    def build_context(
        self,
        processes: Sequence[ProcessSpec],
        app: str,
        formation: str | None = None,
        reload_signals: str | None = None,
        stop_signals: str | None = None,
        env: dict[str, str] | None = None,
        user: str | None = None,
        log_dir: str | None = None,
        root: Path | str = ".",
        base_port: int | None = None,
    ) -> EngineContext:
        """
        Parse the spec strings and assemble the render context.

        Raises:
            InvalidFormationSpec: If the formation spec is malformed.
            InvalidSignalSpec: If a signal spec is malformed.
            ValidationError: If a name or environment key is invalid.
        """
        names = [process.name for process in processes]
        return EngineContext(
            app=app,
            processes=list(processes),
            formation=resolve_formation(formation, names),
            env=dict(env or {}),
            reload_signals=parse_signal_map(reload_signals, names, kind="reload"),
            stop_signals=parse_signal_map(stop_signals, names, kind="stop"),
            default_reload_signal=self._settings.default_reload_signal,
            default_stop_signal=self._settings.default_stop_signal,
            base_port=base_port or self._settings.base_port,
            port_stride=self._settings.port_stride,
            user=user,
            log_dir=log_dir,
            root=str(root),
        )

    def plan(self, context: EngineContext) -> set[ExportTarget]:
        """Enumerate the target set for a context."""
        return enumerate_targets(
            context.app, context.processes, context.formation, extension=self._settings.extension
        )

    def renderer(
        self, template_dir: Path | str | None = None, home: Path | str | None = None
    ) -> TemplateRenderer:
        """Create a renderer over the override, home and built-in template directories."""
        return TemplateRenderer(
            build_search_path(
                self._settings.export_format,
                override_dir=template_dir,
                home=home,
                home_dir_name=self._settings.home_dir_name,
            )
        )

    def export_context(
        self,
        context: EngineContext,
        output_dir: Path | str,
        template_dir: Path | str | None = None,
        home: Path | str | None = None,
    ) -> ExportReport:
        """
        Export an already-built context into `output_dir`.

        Raises:
            TemplateNotFound: If a template is missing; nothing is written.
            FileSystemError: If the directory cannot be read or written.
        """
        targets = self.plan(context)
        renderer = self.renderer(template_dir, home)

        console.print(
            f"[cyan][ENGINE] Exporting {context.app} ({len(targets)} files) "
            f"as {escape(self._settings.export_format)} to {escape(str(output_dir))}[/cyan]"
        )

        reconciler = ExportReconciler(
            fs=self._fs, reporter=self._reporter, extension=self._settings.extension
        )
        report = reconciler.export(
            context.app,
            targets,
            lambda target: renderer.render(target, context),
            output_dir,
            process_names=context.process_names,
        )

        if report.ok:
            console.print(
                f"[green][ENGINE] Export complete: {len(report.written)} written, "
                f"{len(report.deleted)} removed[/green]"
            )
        else:
            console.print(
                f"[yellow][ENGINE] Export finished with {len(report.errors)} cleanup errors[/yellow]"
            )
        return report

    def export(
        self,
        processes: Sequence[ProcessSpec],
        app: str,
        output_dir: Path | str,
        formation: str | None = None,
        reload_signals: str | None = None,
        stop_signals: str | None = None,
        env: dict[str, str] | None = None,
        template_dir: Path | str | None = None,
        home: Path | str | None = None,
        user: str | None = None,
        log_dir: str | None = None,
        root: Path | str = ".",
        base_port: int | None = None,
    ) -> ExportReport:
        """
        Export a manifest into `output_dir`.

        Args:
            processes: Manifest processes, in Procfile order.
            app: Base application name.
            output_dir: Directory to reconcile.
            formation: Formation spec ("alpha=2,bravo=1"), None for one each.
            reload_signals: Reload signal overrides ("alpha=USR2").
            stop_signals: Stop signal overrides ("bravo=QUIT").
            env: Environment exported into every instance.
            template_dir: Template override directory.
            home: Home directory for user templates (defaults to the real one).
            user: User the processes run as (defaults to the app name).
            log_dir: Log directory (defaults to /var/log/<app>).
            root: Working directory of the processes.
            base_port: First port handed out (defaults to the settings).

        Returns:
            ExportReport for the run.
        """
        context = self.build_context(
            processes,
            app,
            formation=formation,
            reload_signals=reload_signals,
            stop_signals=stop_signals,
            env=env,
            user=user,
            log_dir=log_dir,
            root=root,
            base_port=base_port,
        )
        return self.export_context(context, output_dir, template_dir=template_dir, home=home)
