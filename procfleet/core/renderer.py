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
# THE TEMPLATE RENDERER
# -----------------------------------------------------------------------------
# Responsibility: Turn an ExportTarget plus the EngineContext into unit-file
# text using Jinja2 templates.
#
# Template search path (first match wins, template by template):
#   1. Caller override directory (--template)
#   2. ~/.procfleet/templates/<format>/
#   3. Built-in templates bundled with procfleet
#
# Environment values are always single-quoted for a POSIX shell.
# -----------------------------------------------------------------------------

from collections.abc import Sequence
from pathlib import Path

import jinja2
from rich.console import Console
from rich.markup import escape

from procfleet.domain.models import EngineContext, ExportTarget, TargetKind

console = Console()

BUILTIN_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
DEFAULT_HOME_DIR_NAME = ".procfleet"

TEMPLATE_NAMES = {
    TargetKind.MASTER: "master.conf.j2",
    TargetKind.PROCESS_GROUP: "process_master.conf.j2",
    TargetKind.INSTANCE: "process.conf.j2",
}


class TemplateNotFound(Exception):
    """Raised when no directory in the search path holds a template."""

    def __init__(
        self,
        message: str,
        template_name: str,
        search_path: Sequence[Path],
        filename: str | None = None,
    ) -> None:
        super().__init__(message)
        self.template_name = template_name
        self.search_path = list(search_path)
        self.filename = filename


class TemplateRenderError(Exception):
    """Raised when a template exists but cannot be compiled or rendered."""

    def __init__(self, message: str, template_name: str, filename: str | None = None) -> None:
        super().__init__(message)
        self.template_name = template_name
        self.filename = filename


def shell_quote(value: object) -> str:
    """
    Quote a value as a single POSIX shell token.

    The value is always wrapped in single quotes and each embedded single
    quote is written as '\\''. Inside single quotes a POSIX shell keeps every
    other byte literally, backslashes included, so `d"\\|d` becomes `'d"\\|d'`.
    """
    return "'" + str(value).replace("'", "'\\''") + "'"


def build_search_path(
    export_format: str,
    override_dir: Path | str | None = None,
    home: Path | str | None = None,
    home_dir_name: str = DEFAULT_HOME_DIR_NAME,
) -> list[Path]:
    """
    Build the ordered template search path for an export format.

    Args:
        export_format: Export format name (e.g. "upstart").
        override_dir: Caller-supplied template directory, highest priority.
        home: Home directory to look for user templates in. Defaults to the
            current user's home; tests pass a temporary directory.
        home_dir_name: Name of the per-user configuration directory.

    Returns:
        Directories to search, highest priority first.
    """
    search_path: list[Path] = []
    if override_dir is not None:
        search_path.append(Path(override_dir).expanduser())

    home_path = Path(home) if home is not None else Path.home()
    search_path.append(home_path / home_dir_name / "templates" / export_format)
    search_path.append(BUILTIN_TEMPLATES_DIR / export_format)
    return search_path


class TemplateRenderer:
    """
    Renders export targets through a Jinja2 environment.

    The Jinja2 FileSystemLoader walks the search path in order for each
    template, so an override directory only needs the templates it changes.
    """

    def __init__(self, search_path: Sequence[Path | str]) -> None:
        """
        Initialize the renderer.

        Args:
            search_path: Template directories, highest priority first.
        """
        self._search_path = [Path(p) for p in search_path]
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader([str(p) for p in self._search_path]),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )
        self._env.filters["shell_quote"] = shell_quote

    @property
    def search_path(self) -> list[Path]:
        return list(self._search_path)

    def _load(self, template_name: str, filename: str | None = None) -> jinja2.Template:
        try:
            return self._env.get_template(template_name)
        except jinja2.TemplateNotFound as e:
            searched = ", ".join(str(p) for p in self._search_path)
            console.print(
                f"[red][RENDERER] Template not found for {escape(str(filename))}: "
                f"{escape(template_name)}[/red]"
            )
            raise TemplateNotFound(
                f"Template '{template_name}' for {filename} not found in: {searched}",
                template_name=template_name,
                search_path=self._search_path,
                filename=filename,
            ) from e
        except jinja2.TemplateSyntaxError as e:
            raise TemplateRenderError(
                f"Template '{template_name}' has a syntax error on line {e.lineno}: {e.message}",
                template_name=template_name,
                filename=filename,
            ) from e

    def context_for(self, target: ExportTarget, context: EngineContext) -> dict:
        """
        Build the template variables for one target.

        Every key is always present; keys that do not apply to the target
        kind are None.
        """
        variables = {
            "app": context.app,
            "user": context.effective_user,
            "log": context.effective_log_dir,
            "root": context.root,
            "env": dict(context.env),
            "processes": list(context.processes),
            "formation": {p.name: context.formation.count_for(p.name) for p in context.processes},
            "name": None,
            "command": None,
            "count": None,
            "num": None,
            "port": None,
            "reload_signal": None,
            "stop_signal": None,
        }

        if target.process_name is not None:
            process = context.process(target.process_name)
            variables.update(
                name=process.name,
                command=process.command,
                count=context.formation.count_for(process.name),
                reload_signal=context.reload_signal_for(process.name),
                stop_signal=context.stop_signal_for(process.name),
            )

        if target.index is not None:
            variables.update(
                num=target.index,
                port=context.port_for(target.process_name, target.index),
            )

        return variables

    def render(self, target: ExportTarget, context: EngineContext) -> str:
        """
        Render a target to unit-file text.

        Args:
            target: The unit file to render.
            context: Engine context; read, never modified.

        Returns:
            The rendered file content.

        Raises:
            TemplateNotFound: If no search path directory holds the template.
            TemplateRenderError: If the template is broken.
        """
        template_name = TEMPLATE_NAMES[target.kind]
        template = self._load(template_name, target.filename)
        try:
            return template.render(**self.context_for(target, context))
        except jinja2.TemplateError as e:
            raise TemplateRenderError(
                f"Cannot render '{template_name}' for {target.filename}: {e}",
                template_name=template_name,
                filename=target.filename,
            ) from e
