"""Stage 4: Synthesis - merge validation signal, rank, and score."""

from typing import Optional, Sequence

import structlog

from design_review.models import Annotation, PipelineContext, SynthesisResult, clamp_unit
from design_review.pipeline.scoring import (
    calculate_confidence_weights,
    calculate_priority_score,
    calculate_quality_metrics,
)

logger = structlog.get_logger(__name__)

MAX_FINAL_ANNOTATIONS = 20
VALIDATED_CONFIDENCE_BOOST = 1.2


def merge_validated(
    originals: Sequence[Annotation],
    validated: Sequence[Annotation],
) -> list[Annotation]:
    """Layer validation results onto the original annotations by id.

    Only counterparts that were actually validated count. Their support
    flag and sources are carried over and the original confidence is
    boosted. Duplicate ids keep their first occurrence.
    """
    counterparts = {a.id: a for a in validated if a.perplexity_validated}

    merged = []
    seen: set[str] = set()
    for annotation in originals:
        if annotation.id in seen:
            continue
        seen.add(annotation.id)

        counterpart = counterparts.get(annotation.id)
        if counterpart is None:
            merged.append(annotation)
            continue

        merged.append(
            annotation.model_copy(
                update={
                    "perplexity_validated": True,
                    "perplexity_support": counterpart.perplexity_support,
                    "validation_sources": list(counterpart.validation_sources),
                    "confidence": clamp_unit(annotation.confidence * VALIDATED_CONFIDENCE_BOOST),
                }
            )
        )
    return merged


def rank_annotations(
    annotations: Sequence[Annotation],
    limit: int = MAX_FINAL_ANNOTATIONS,
) -> list[Annotation]:
    """Sort by confidence (descending, stable) and keep the top ``limit``."""
    return sorted(annotations, key=lambda a: a.confidence, reverse=True)[:limit]


def _consolidate_insights(context: PipelineContext) -> list[str]:
    validation = context.validation_data
    if validation is None:
        return []

    insights = [trend.trend for trend in validation.trend_insights]
    insights.extend(
        competitor.market_position or competitor.name
        for competitor in validation.competitive_context
    )
    return list(dict.fromkeys(i for i in insights if i))


def run_synthesis_stage(
    context: PipelineContext,
    weights: Optional[dict[str, float]] = None,
) -> SynthesisResult:
    """Produce the final ranked, scored annotation list.

    ``weights`` are recorded in the result metadata; they do not change the
    scoring formulas.
    """
    originals = context.annotation_data.annotations if context.annotation_data else []
    validated = context.validation_data.validated_annotations if context.validation_data else []

    merged = merge_validated(originals, validated)
    ranked = rank_annotations(merged)
    final = [
        a.model_copy(update={"priority_score": calculate_priority_score(a)}) for a in ranked
    ]

    result = SynthesisResult(
        final_annotations=final,
        priority_scores={a.id: a.priority_score for a in final},
        quality_metrics=calculate_quality_metrics(final, context.vision_data),
        confidence_weights=calculate_confidence_weights(final),
        consolidated_insights=_consolidate_insights(context),
        metadata={
            "weights": dict(weights or {}),
            "candidate_count": len(merged),
            "validated_count": sum(1 for a in merged if a.perplexity_validated),
            "max_final_annotations": MAX_FINAL_ANNOTATIONS,
        },
    )

    logger.info(
        "synthesis_stage_summary",
        run_id=context.run_id,
        candidates=len(merged),
        final=len(final),
        average_confidence=round(result.quality_metrics["average_confidence"], 3),
    )
    return result
