"""Pipeline Orchestrator - Coordinates all pipeline stages.

Stages run in fixed order (vision, annotation, validation, synthesis). Each
enabled stage goes through the StageExecutor; a failed stage is recorded and
the next stage still runs against whatever context has accumulated. Only the
orchestrator writes to the context, and only with successful stage output.
"""

import time
from typing import Any, Callable, Optional

import structlog

from design_review.config import Settings
from design_review.models import (
    STAGE_ORDER,
    FinalResult,
    PipelineConfiguration,
    PipelineContext,
    PipelineOptions,
    PipelineResult,
    StageName,
    StageResult,
)
from design_review.pipeline.configuration import (
    load_configuration,
    resolve_weights,
    should_execute_stage,
)
from design_review.pipeline.executor import StageExecutor
from design_review.pipeline.rate_limit import RateLimitedCaller
from design_review.pipeline.scoring import calculate_quality_scores
from design_review.pipeline.stages import (
    rank_annotations,
    run_annotation_stage,
    run_synthesis_stage,
    run_validation_stage,
    run_vision_stage,
)
from design_review.services.base import (
    AnnotationService,
    ConfigurationStore,
    ProgressLogStore,
    ResearchService,
    VisionService,
)

logger = structlog.get_logger(__name__)

# Context slot filled by each stage's successful output
CONTEXT_SLOTS = {
    StageName.VISION: "vision_data",
    StageName.ANNOTATION: "annotation_data",
    StageName.VALIDATION: "validation_data",
    StageName.SYNTHESIS: "synthesis_result",
}


class PipelineOrchestrator:
    """Runs the analysis pipeline for one set of images and a prompt."""

    def __init__(
        self,
        vision_service: VisionService,
        annotation_service: AnnotationService,
        research_service: ResearchService,
        configuration_store: Optional[ConfigurationStore] = None,
        progress_log: Optional[ProgressLogStore] = None,
        rate_limiter: Optional[RateLimitedCaller] = None,
        configuration_name: str = "comprehensive_analysis",
        validation_max_annotations: int = 5,
    ):
        self.vision_service = vision_service
        self.annotation_service = annotation_service
        self.research_service = research_service
        self.configuration_store = configuration_store
        self.progress_log = progress_log
        self.rate_limiter = rate_limiter or RateLimitedCaller(min_interval=2.0)
        self.configuration_name = configuration_name
        self.validation_max_annotations = validation_max_annotations

    def load_configuration(self, name: Optional[str] = None) -> PipelineConfiguration:
        return load_configuration(self.configuration_store, name or self.configuration_name)

    def run(
        self,
        images: list[str],
        prompt: str,
        run_id: str,
        actor_id: str,
        options: Optional[PipelineOptions] = None,
        configuration: Optional[PipelineConfiguration] = None,
    ) -> PipelineResult:
        """Run every enabled stage and return the result. Never raises.

        Args:
            images: Image URLs, data URIs or local paths.
            prompt: Review request from the user.
            run_id: Run identifier (a UUID enables progress logging).
            actor_id: Who requested the run.
            options: Per-run stage skips/forces and weight overrides.
            configuration: Use this configuration instead of loading one.

        Returns:
            PipelineResult with one StageResult per attempted stage.
        """
        started = time.perf_counter()
        executor = StageExecutor(self.progress_log)
        stages: list[StageResult] = []

        logger.info("pipeline_start", run_id=run_id, actor_id=actor_id, images=len(images))

        try:
            options = options or PipelineOptions()
            configuration = configuration or self.load_configuration()
            context = PipelineContext(
                image_urls=list(images),
                prompt=prompt,
                run_id=run_id,
                actor_id=actor_id,
            )
            weights = resolve_weights(configuration, options)

            for stage in STAGE_ORDER:
                if not should_execute_stage(stage, configuration, options):
                    logger.info("stage_skipped", stage=stage.value, run_id=run_id)
                    continue

                stage_fn = self._stage_function(stage, context.read_view(), weights)
                result = executor.execute(stage, stage_fn, run_id)
                stages.append(result)

                if result.succeeded:
                    setattr(context, CONTEXT_SLOTS[stage], result.data)

            final_result = FinalResult(
                annotations=self._final_annotations(context),
                metadata=self._final_metadata(context, configuration, stages),
                quality_scores=calculate_quality_scores(stages, context),
                processing_time_ms=(time.perf_counter() - started) * 1000,
            )

            logger.info(
                "pipeline_complete",
                run_id=run_id,
                stages_run=len(stages),
                stages_failed=sum(1 for s in stages if not s.succeeded),
                annotations=len(final_result.annotations),
                overall_quality=round(final_result.quality_scores["overall_quality"], 3),
                duration_ms=round(final_result.processing_time_ms, 2),
            )
            return PipelineResult(
                run_id=run_id,
                success=True,
                stages=stages,
                final_result=final_result,
                warnings=list(executor.warnings),
            )

        except Exception as e:
            logger.error(
                "pipeline_failed",
                run_id=run_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return PipelineResult(
                run_id=run_id,
                success=False,
                stages=stages,
                final_result=FinalResult(
                    processing_time_ms=(time.perf_counter() - started) * 1000,
                ),
                error=str(e) or type(e).__name__,
                warnings=list(executor.warnings),
            )

    def _stage_function(
        self,
        stage: StageName,
        view: PipelineContext,
        weights: dict[str, float],
    ) -> Callable[[], Any]:
        if stage == StageName.VISION:
            return lambda: run_vision_stage(view, self.vision_service)
        if stage == StageName.ANNOTATION:
            return lambda: run_annotation_stage(view, self.annotation_service)
        if stage == StageName.VALIDATION:
            return lambda: run_validation_stage(
                view,
                self.research_service,
                self.rate_limiter,
                max_annotations=self.validation_max_annotations,
            )
        if stage == StageName.SYNTHESIS:
            return lambda: run_synthesis_stage(view, weights)
        raise ValueError(f"Unknown stage: {stage}")

    @staticmethod
    def _final_annotations(context: PipelineContext) -> list:
        """Prefer synthesis output; otherwise rank the raw annotation output."""
        if context.synthesis_result is not None:
            return list(context.synthesis_result.final_annotations)
        if context.annotation_data is not None:
            return rank_annotations(context.annotation_data.annotations)
        return []

    @staticmethod
    def _final_metadata(
        context: PipelineContext,
        configuration: PipelineConfiguration,
        stages: list[StageResult],
    ) -> dict[str, Any]:
        return {
            "configuration": configuration.name,
            "configuration_version": configuration.version,
            "actor_id": context.actor_id,
            "image_count": len(context.image_urls),
            "stages_executed": [s.stage_name.value for s in stages],
            "stages_failed": [s.stage_name.value for s in stages if not s.succeeded],
            "stage_budgets": {
                spec.name.value: {"timeout_ms": spec.timeout_ms, "retry_count": spec.retry_count}
                for spec in configuration.stages
            },
            "source": "synthesis" if context.synthesis_result is not None else "annotation",
            "model_used": context.annotation_data.model_used if context.annotation_data else None,
        }


def build_orchestrator(settings: Settings) -> PipelineOrchestrator:
    """Wire the production services and SQL stores from settings."""
    from design_review.services import GoogleVisionClient, LLMAnnotationService, PerplexityClient
    from design_review.storage import (
        SqlConfigurationStore,
        SqlProgressLogStore,
        create_engine_and_session,
    )

    _, session_factory = create_engine_and_session(settings.database_url)

    return PipelineOrchestrator(
        vision_service=GoogleVisionClient(
            api_key=settings.google_vision_api_key,
            base_url=settings.google_vision_base_url,
            max_results=settings.google_vision_max_results,
            timeout=settings.http_timeout_seconds,
        ),
        annotation_service=LLMAnnotationService(),
        research_service=PerplexityClient(
            api_key=settings.perplexity_api_key,
            base_url=settings.perplexity_base_url,
            model=settings.perplexity_model,
            timeout=settings.http_timeout_seconds,
        ),
        configuration_store=SqlConfigurationStore(session_factory),
        progress_log=SqlProgressLogStore(session_factory),
        rate_limiter=RateLimitedCaller(min_interval=settings.research_min_interval_seconds),
        configuration_name=settings.pipeline_config_name,
        validation_max_annotations=settings.validation_max_annotations,
    )
