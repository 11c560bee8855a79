# -----------------------------------------------------------------------------
# DOMAIN LAYER
# -----------------------------------------------------------------------------
# Contains the export instructions (Pydantic models) shared by the
# Formation Resolver, Instance Namer, Template Renderer and Export Reconciler.
# -----------------------------------------------------------------------------

from .models import EngineContext, ExportTarget, Formation, ProcessSpec, TargetKind

__all__ = ["EngineContext", "ExportTarget", "Formation", "ProcessSpec", "TargetKind"]
