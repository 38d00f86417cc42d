"""Pipeline-level contracts: configuration, context, and results."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .annotation import Annotation
from .enums import StageName, StageStatus
from .stages import AnnotationResult, SynthesisResult, ValidationResult, VisionResult


# =============================================================================
# Configuration
# =============================================================================

class StageSpec(BaseModel):
    """Declarative settings for one stage.

    ``timeout_ms`` and ``retry_count`` are carried for reporting; the executor
    does not enforce them.
    """

    model_config = ConfigDict(frozen=True)

    name: StageName
    enabled: bool = True
    timeout_ms: int = Field(default=30000, ge=0)
    retry_count: int = Field(default=0, ge=0)


class PipelineConfiguration(BaseModel):
    """Immutable per-run configuration."""

    model_config = ConfigDict(frozen=True)

    name: str = "comprehensive_analysis"
    description: str = ""
    stages: tuple[StageSpec, ...] = ()
    weights: dict[str, float] = Field(default_factory=dict)
    thresholds: dict[str, float] = Field(default_factory=dict)
    enabled: bool = True
    version: int = 1

    def get_stage(self, name: StageName) -> Optional[StageSpec]:
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None


class PipelineOptions(BaseModel):
    """Per-call overrides for a run."""

    skip_stages: list[StageName] = Field(default_factory=list)
    force_stages: list[StageName] = Field(default_factory=list)
    custom_weights: Optional[dict[str, float]] = None


# =============================================================================
# Context (owned by the orchestrator for one run)
# =============================================================================

class PipelineContext(BaseModel):
    """Accumulator threaded through the stages.

    Only the orchestrator writes to it. Stages get ``read_view()`` and return
    new data.
    """

    image_urls: list[str] = Field(default_factory=list)
    prompt: str = ""
    run_id: str
    actor_id: str

    vision_data: Optional[VisionResult] = None
    annotation_data: Optional[AnnotationResult] = None
    validation_data: Optional[ValidationResult] = None
    synthesis_result: Optional[SynthesisResult] = None

    def read_view(self) -> "PipelineContext":
        """Detached copy handed to a stage."""
        return self.model_copy(deep=True)


# =============================================================================
# Results
# =============================================================================

class StageResult(BaseModel):
    """Outcome of one attempted stage. One per stage, in execution order."""

    stage_name: StageName
    status: StageStatus
    data: Optional[Any] = None
    error: Optional[str] = None
    duration_ms: float = Field(default=0.0, ge=0.0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == StageStatus.SUCCESS


class FinalResult(BaseModel):
    annotations: list[Annotation] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    quality_scores: dict[str, float] = Field(default_factory=dict)
    processing_time_ms: float = 0.0


class PipelineResult(BaseModel):
    """Terminal output of one run."""

    run_id: str
    success: bool
    stages: list[StageResult] = Field(default_factory=list)
    final_result: FinalResult = Field(default_factory=FinalResult)
    error: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
