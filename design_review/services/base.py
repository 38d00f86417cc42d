"""Contracts for the external collaborators the pipeline talks to."""

from typing import Any, Optional, Protocol

from design_review.models import (
    AnnotationServiceResponse,
    CompetitiveAnalysis,
    PipelineConfiguration,
    ResearchRequest,
    ResearchResponse,
    StageName,
    StageStatus,
    VisionResult,
)


class VisionService(Protocol):
    def analyze(self, image_urls: list[str]) -> VisionResult: ...


class AnnotationService(Protocol):
    def analyze(
        self,
        image_urls: list[str],
        prompt: str,
        run_id: str,
    ) -> AnnotationServiceResponse:
        """Annotate images. ``prompt`` is used as given, never rebuilt."""
        ...


class ResearchService(Protocol):
    def research_topic(self, request: ResearchRequest) -> ResearchResponse: ...

    def get_competitive_analysis(
        self,
        subject: str,
        category_hint: Optional[str] = None,
    ) -> CompetitiveAnalysis: ...


class ConfigurationStore(Protocol):
    def get(self, name: str) -> Optional[PipelineConfiguration]:
        """Return the named configuration, or None when absent or disabled."""
        ...


class ProgressLogStore(Protocol):
    """Stage progress records. Callers treat every write as best-effort."""

    def log_stage_start(self, run_id: str, stage: StageName) -> None: ...

    def log_stage_completion(
        self,
        run_id: str,
        stage: StageName,
        status: StageStatus,
        data: Any,
        duration_ms: float,
        error: Optional[str] = None,
    ) -> None: ...
