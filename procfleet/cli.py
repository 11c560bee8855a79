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
# PROCFLEET CLI
# -----------------------------------------------------------------------------
# Commands:
# - procfleet export LOCATION: Export the Procfile to unit files in LOCATION
# - procfleet check: Validate the Procfile and formation, list target files
#
# Formation and signal overrides fall back to PROCFLEET_FORMATION,
# PROCFLEET_RELOAD_SIGNALS and PROCFLEET_STOP_SIGNALS.
# -----------------------------------------------------------------------------

import sys
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from procfleet.core.engine import ExportEngine
from procfleet.core.formation import InvalidFormationSpec, InvalidSignalSpec
from procfleet.core.procfile import ProcfileError, load_env, load_procfile
from procfleet.core.renderer import TemplateNotFound, TemplateRenderError
from procfleet.core.settings import SettingsError, load_settings
from procfleet.infra.filesystem import FileSystemError

console = Console()

EXPORT_ERRORS = (
    InvalidFormationSpec,
    InvalidSignalSpec,
    ProcfileError,
    SettingsError,
    TemplateNotFound,
    TemplateRenderError,
    FileSystemError,
    ValidationError,
)


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red][ERROR] {escape(message)}[/bold red]")
    sys.exit(1)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Settings file (procfleet.yaml)")
@click.pass_context
def main(ctx, config_path):
    """procfleet - export Procfile formations to init-system unit files."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command("export")
@click.argument("location", type=click.Path(file_okay=False))
@click.option("--format", "-f", "export_format", help="Export format (default from settings)")
@click.option("--procfile", "-p", default="Procfile", show_default=True, type=click.Path(dir_okay=False))
@click.option("--env", "-e", "env_files", multiple=True, help="Env file(s); defaults to .env beside the Procfile")
@click.option("--app", "-a", help="Application name (defaults to the Procfile directory name)")
@click.option("--formation", "-m", envvar="PROCFLEET_FORMATION", help="Instance counts, e.g. web=2,worker=1")
@click.option("--reload-signals", envvar="PROCFLEET_RELOAD_SIGNALS", help="Reload signals, e.g. web=USR2")
@click.option("--stop-signals", envvar="PROCFLEET_STOP_SIGNALS", help="Stop signals, e.g. worker=QUIT")
@click.option("--template", "-t", type=click.Path(file_okay=False), help="Template override directory")
@click.option("--user", "-u", help="User to run processes as (defaults to the app name)")
@click.option("--log", "-l", "log_dir", help="Log directory (defaults to /var/log/<app>)")
@click.option("--root", "-d", type=click.Path(file_okay=False), help="Working directory (defaults to the Procfile directory)")
@click.option("--port", type=int, help="Base port (default from settings)")
@click.pass_context
def export_cmd(
    ctx, location, export_format, procfile, env_files, app, formation, reload_signals,
    stop_signals, template, user, log_dir, root, port,
):
    """Export the Procfile to unit files in LOCATION."""
    try:
        settings = load_settings(ctx.obj.get("config_path"))
        if export_format:
            settings = settings.model_copy(update={"export_format": export_format})

        procfile_path = Path(procfile).resolve()
        processes = load_procfile(procfile_path)
        root_dir = Path(root).resolve() if root else procfile_path.parent
        if env_files:
            env = load_env(env_files)
        elif (root_dir / ".env").exists():
            env = load_env([root_dir / ".env"])
        else:
            env = {}

        engine = ExportEngine(settings=settings)
        report = engine.export(
            processes,
            app or procfile_path.parent.name,
            location,
            formation=formation,
            reload_signals=reload_signals,
            stop_signals=stop_signals,
            env=env,
            template_dir=template,
            user=user,
            log_dir=log_dir,
            root=root_dir,
            base_port=port,
        )
    except EXPORT_ERRORS as e:
        _fail(str(e))

    if not report.ok:
        for error in report.errors:
            console.print(f"[red]  {escape(str(error.path))}: {escape(str(error.cause or error))}[/red]")
        _fail(f"{len(report.errors)} stale file(s) could not be removed")


@main.command("check")
@click.option("--procfile", "-p", default="Procfile", show_default=True, type=click.Path(dir_okay=False))
@click.option("--app", "-a", help="Application name (defaults to the Procfile directory name)")
@click.option("--formation", "-m", envvar="PROCFLEET_FORMATION", help="Instance counts, e.g. web=2,worker=1")
@click.pass_context
def check_cmd(ctx, procfile, app, formation):
    """Validate the Procfile and formation and list the files an export would write."""
    try:
        settings = load_settings(ctx.obj.get("config_path"))
        procfile_path = Path(procfile).resolve()
        processes = load_procfile(procfile_path)
        engine = ExportEngine(settings=settings)
        context = engine.build_context(processes, app or procfile_path.parent.name, formation=formation)
    except EXPORT_ERRORS as e:
        _fail(str(e))

    for target in sorted(engine.plan(context), key=lambda t: t.filename):
        click.echo(target.filename)


if __name__ == "__main__":
    main()
