"""Pydantic data models for the pipeline."""

from .enums import STAGE_ORDER, Severity, StageName, StageStatus
from .annotation import DEFAULT_CONFIDENCE, Annotation, Source, clamp_unit
from .stages import (
    AnnotationResult,
    AnnotationServiceResponse,
    Benchmark,
    CompetitiveAnalysis,
    CompetitorInsight,
    DominantColor,
    ResearchRequest,
    ResearchResponse,
    SynthesisResult,
    TrendInsight,
    UIElement,
    ValidationResult,
    VisionResult,
    VisualElements,
)
from .pipeline import (
    FinalResult,
    PipelineConfiguration,
    PipelineContext,
    PipelineOptions,
    PipelineResult,
    StageResult,
    StageSpec,
)

__all__ = [
    # Enums
    "Severity",
    "StageName",
    "StageStatus",
    "STAGE_ORDER",
    # Annotation
    "Annotation",
    "Source",
    "DEFAULT_CONFIDENCE",
    "clamp_unit",
    # Vision
    "DominantColor",
    "UIElement",
    "VisualElements",
    "VisionResult",
    # Annotation stage
    "AnnotationServiceResponse",
    "AnnotationResult",
    # Validation
    "ResearchRequest",
    "ResearchResponse",
    "CompetitorInsight",
    "TrendInsight",
    "Benchmark",
    "CompetitiveAnalysis",
    "ValidationResult",
    # Synthesis
    "SynthesisResult",
    # Pipeline
    "StageSpec",
    "PipelineConfiguration",
    "PipelineOptions",
    "PipelineContext",
    "StageResult",
    "FinalResult",
    "PipelineResult",
]
