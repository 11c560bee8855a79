# -----------------------------------------------------------------------------
# INFRASTRUCTURE LAYER
# -----------------------------------------------------------------------------
# Contains low-level infrastructure wrappers:
# - LocalFileSystem: list/mkdir/write/delete with structured FileSystemError
# -----------------------------------------------------------------------------

from .filesystem import FileSystemError, LocalFileSystem

__all__ = ["FileSystemError", "LocalFileSystem"]
