# -----------------------------------------------------------------------------
# CORE LAYER
# -----------------------------------------------------------------------------
# The export pipeline:
# - Formation Resolver: formation and signal spec parsing
# - Instance Namer: filenames and ownership of existing files
# - Template Renderer: Jinja2 templates over a search path
# - Export Reconciler: diff, delete stale, write current
# - ExportEngine: wires the four together
# -----------------------------------------------------------------------------

from .engine import ExportEngine
from .formation import InvalidFormationSpec, InvalidSignalSpec, parse_signal_map, resolve_formation
from .namer import enumerate_targets, is_owned_filename, parse_owned_filename, target_filename
from .procfile import ProcfileError, load_env, load_procfile, parse_procfile
from .reconciler import ConsoleReporter, ExportReconciler, ExportReport, ExportReporter
from .renderer import TemplateNotFound, TemplateRenderer, TemplateRenderError, build_search_path, shell_quote
from .settings import ExportSettings, SettingsError, load_settings

__all__ = [
    "ExportEngine",
    "InvalidFormationSpec", "InvalidSignalSpec", "parse_signal_map", "resolve_formation",
    "enumerate_targets", "is_owned_filename", "parse_owned_filename", "target_filename",
    "ProcfileError", "load_env", "load_procfile", "parse_procfile",
    "ConsoleReporter", "ExportReconciler", "ExportReport", "ExportReporter",
    "TemplateNotFound", "TemplateRenderer", "TemplateRenderError", "build_search_path", "shell_quote",
    "ExportSettings", "SettingsError", "load_settings",
]
