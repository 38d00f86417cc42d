"""Stage 3: Validation - corroborate annotations against external research.

Only the first few annotations (by original order) are researched, one call
at a time through the rate limiter. Every failure mode degrades to leaving
annotations unvalidated; annotations are never lost here.
"""

import structlog

from design_review.models import (
    Annotation,
    PipelineContext,
    ResearchRequest,
    Source,
    ValidationResult,
    clamp_unit,
)
from design_review.pipeline.rate_limit import RateLimitedCaller
from design_review.pipeline.scoring import classify_support
from design_review.services.base import ResearchService

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ANNOTATIONS = 5
SOURCES_REQUESTED = 2
SOURCES_ATTACHED = 1
RESEARCH_DOMAIN = "ux"
RESEARCH_RECENCY = "year"
MAX_QUERY_LENGTH = 300

SUPPORTED_MULTIPLIER = 1.1
UNSUPPORTED_MULTIPLIER = 0.95
UNSUPPORTED_FLOOR = 0.6

COMPETITIVE_SUBJECT = "UX design patterns"
COMPETITIVE_CATEGORY_HINT = "web application"
CONTEXT_LIMIT = 3


def build_validation_query(annotation: Annotation) -> str:
    query = f"UX best practice validation: {annotation.title}. {annotation.description}"
    return query[:MAX_QUERY_LENGTH]


def adjust_confidence(confidence: float, supported: bool) -> float:
    """Raise supported confidence; lower unsupported, never below the floor."""
    if supported:
        return clamp_unit(confidence * SUPPORTED_MULTIPLIER)
    return clamp_unit(max(confidence * UNSUPPORTED_MULTIPLIER, UNSUPPORTED_FLOOR))


def mark_unvalidated(annotation: Annotation) -> Annotation:
    return annotation.model_copy(
        update={"perplexity_validated": False, "validation_sources": []}
    )


def _validate_annotation(
    annotation: Annotation,
    research_service: ResearchService,
    caller: RateLimitedCaller,
) -> Annotation:
    request = ResearchRequest(
        query=build_validation_query(annotation),
        domain=RESEARCH_DOMAIN,
        recency_filter=RESEARCH_RECENCY,
        max_sources=SOURCES_REQUESTED,
    )
    response = caller.call(lambda: research_service.research_topic(request))

    if not response.success or not response.content:
        logger.debug(
            "annotation_research_unsuccessful",
            annotation_id=annotation.id,
            error=response.error,
        )
        return mark_unvalidated(annotation)

    classification = classify_support(response.content, annotation)
    logger.debug(
        "annotation_validated",
        annotation_id=annotation.id,
        supported=classification.supported,
        score=round(classification.score, 2),
    )
    return annotation.model_copy(
        update={
            "perplexity_validated": True,
            "perplexity_support": classification.supported,
            "confidence": adjust_confidence(annotation.confidence, classification.supported),
            "validation_sources": list(response.sources[:SOURCES_ATTACHED]),
        }
    )


def run_validation_stage(
    context: PipelineContext,
    research_service: ResearchService,
    caller: RateLimitedCaller,
    max_annotations: int = DEFAULT_MAX_ANNOTATIONS,
) -> ValidationResult:
    """Research the top annotations and attach support signal and evidence."""
    annotations = context.annotation_data.annotations if context.annotation_data else []
    if not annotations:
        logger.info("validation_stage_no_annotations", run_id=context.run_id)
        return ValidationResult()

    try:
        return _validate(context.run_id, annotations, research_service, caller, max_annotations)
    except Exception as e:
        logger.error(
            "validation_stage_degraded",
            run_id=context.run_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ValidationResult(validated_annotations=[mark_unvalidated(a) for a in annotations])


def _validate(
    run_id: str,
    annotations: list[Annotation],
    research_service: ResearchService,
    caller: RateLimitedCaller,
    max_annotations: int,
) -> ValidationResult:
    selected = annotations[:max_annotations]
    processed: list[Annotation] = []
    research_calls = 0

    # One research call in flight at a time
    for annotation in selected:
        research_calls += 1
        try:
            processed.append(_validate_annotation(annotation, research_service, caller))
        except Exception as e:
            logger.warning(
                "annotation_validation_failed",
                run_id=run_id,
                annotation_id=annotation.id,
                error=str(e),
            )
            processed.append(mark_unvalidated(annotation))

    result = ValidationResult(
        validated_annotations=processed,
        validation_sources=_flatten_sources(processed),
        research_calls=research_calls,
    )

    validated_count = sum(1 for a in processed if a.perplexity_validated)
    if validated_count:
        try:
            analysis = caller.call(
                lambda: research_service.get_competitive_analysis(
                    COMPETITIVE_SUBJECT, COMPETITIVE_CATEGORY_HINT
                )
            )
            result.competitive_context = analysis.competitors[:CONTEXT_LIMIT]
            result.trend_insights = analysis.industry_trends[:CONTEXT_LIMIT]
            result.industry_context = analysis.benchmarks[:CONTEXT_LIMIT]
        except Exception as e:
            logger.warning("competitive_context_unavailable", run_id=run_id, error=str(e))

    logger.info(
        "validation_stage_summary",
        run_id=run_id,
        selected=len(selected),
        validated=validated_count,
        supported=sum(1 for a in processed if a.perplexity_support),
        research_calls=research_calls,
    )
    return result


def _flatten_sources(annotations: list[Annotation]) -> list[Source]:
    return [source for a in annotations for source in a.validation_sources]
