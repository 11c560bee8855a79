"""
procfleet - Export Procfile process formations to init-system unit files.

Renders one unit file per application, process group and process instance,
and keeps the target directory in sync across re-exports.
"""

__version__ = "0.1.0"
