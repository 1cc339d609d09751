from .code_generation_orchestrator import CodeGenerationOrchestrator
from .design_resolver import DesignResolver
from .editor_sync_service import EditorSyncService
from .sketch_to_code_service import (
    SketchToCodeService,
    SlidingWindowRateLimiter,
    clean_code_output,
)

__all__ = [
    "CodeGenerationOrchestrator",
    "DesignResolver",
    "EditorSyncService",
    "SketchToCodeService",
    "SlidingWindowRateLimiter",
    "clean_code_output",
]
