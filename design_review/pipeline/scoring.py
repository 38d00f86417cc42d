"""Scoring: confidence weights, priority scores, quality metrics.

All functions here are pure. They read annotations and stage results and
return numbers; nothing is mutated.

The support classifier decides whether a block of research text backs an
annotation. It is a keyword heuristic and its word lists and thresholds are
fixed values, not tuning knobs.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from design_review.models import (
    Annotation,
    PipelineContext,
    Severity,
    StageResult,
    VisionResult,
    clamp_unit,
)

# Priority multipliers
CRITICAL_MULTIPLIER = 1.5
SUGGESTED_MULTIPLIER = 1.2
VALIDATED_PRIORITY_MULTIPLIER = 1.3

# Confidence-weight multipliers
HIGH_CONFIDENCE_THRESHOLD = 0.9
HIGH_CONFIDENCE_WEIGHT = 1.2
VALIDATED_WEIGHT = 1.1

# Diversity score assumes at most four categories/severities worth counting
DIVERSITY_NORMALIZER = 4

DEFAULT_ANNOTATION_QUALITY = 0.8

POSITIVE_INDICATORS = (
    "confirm",
    "support",
    "validate",
    "accurate",
    "correct",
    "proven",
    "effective",
    "recommend",
    "best practice",
    "improve",
    "enhance",
)
NEGATIVE_INDICATORS = (
    "contradict",
    "dispute",
    "incorrect",
    "outdated",
    "ineffective",
    "poor practice",
    "avoid",
    "problematic",
    "harmful",
)
SUPPORT_THRESHOLD = 0.5
MIN_MENTION_WORD_LENGTH = 4


# =============================================================================
# Support classifier
# =============================================================================

@dataclass(frozen=True)
class SupportClassification:
    """Breakdown of one support decision."""

    positive_count: int
    negative_count: int
    mention_count: int
    score: float

    @property
    def supported(self) -> bool:
        return self.score > SUPPORT_THRESHOLD


def classify_support(research_text: str, annotation: Annotation) -> SupportClassification:
    """Score how strongly research text corroborates an annotation.

    score = positives + 0.1 * mentions - 2 * negatives, supported iff > 0.5.
    Indicator counts are occurrence counts (substring matches, lower-cased).
    Mentions count the annotation's own words longer than three characters
    that appear anywhere in the research text.
    """
    text = (research_text or "").lower()

    positive_count = sum(text.count(word) for word in POSITIVE_INDICATORS)
    negative_count = sum(text.count(word) for word in NEGATIVE_INDICATORS)

    words = annotation.text.lower().split()
    mention_count = sum(
        1 for word in words if len(word) >= MIN_MENTION_WORD_LENGTH and word in text
    )

    score = positive_count + 0.1 * mention_count - 2 * negative_count
    return SupportClassification(
        positive_count=positive_count,
        negative_count=negative_count,
        mention_count=mention_count,
        score=score,
    )


# =============================================================================
# Per-annotation scores
# =============================================================================

def calculate_priority_score(annotation: Annotation) -> float:
    """Confidence boosted by severity and validation, clamped to [0, 1]."""
    score = annotation.confidence
    if annotation.severity == Severity.CRITICAL:
        score *= CRITICAL_MULTIPLIER
    elif annotation.severity == Severity.SUGGESTED:
        score *= SUGGESTED_MULTIPLIER
    if annotation.perplexity_validated:
        score *= VALIDATED_PRIORITY_MULTIPLIER
    return clamp_unit(score)


def calculate_priority_scores(annotations: Sequence[Annotation]) -> dict[str, float]:
    return {a.id: calculate_priority_score(a) for a in annotations}


def calculate_confidence_weight(annotation: Annotation) -> float:
    """Weight for downstream aggregation. Kept separate from priority."""
    weight = 1.0
    if annotation.confidence > HIGH_CONFIDENCE_THRESHOLD:
        weight *= HIGH_CONFIDENCE_WEIGHT
    if annotation.perplexity_validated:
        weight *= VALIDATED_WEIGHT
    return weight


def calculate_confidence_weights(annotations: Sequence[Annotation]) -> dict[str, float]:
    return {a.id: calculate_confidence_weight(a) for a in annotations}


# =============================================================================
# Annotation-set metrics
# =============================================================================

def calculate_diversity_score(annotations: Sequence[Annotation]) -> float:
    if not annotations:
        return 0.0
    categories = {a.category or "general" for a in annotations}
    severities = {a.severity for a in annotations}
    return (len(categories) * 0.6 + len(severities) * 0.4) / DIVERSITY_NORMALIZER


def calculate_quality_metrics(
    annotations: Sequence[Annotation],
    vision_data: Optional[VisionResult],
) -> dict[str, float]:
    count = len(annotations)
    if count:
        average_confidence = sum(a.confidence for a in annotations) / count
        validation_rate = sum(1 for a in annotations if a.perplexity_validated) / count
    else:
        average_confidence = 0.0
        validation_rate = 0.0

    return {
        "annotation_count": float(count),
        "average_confidence": average_confidence,
        "validation_rate": validation_rate,
        "vision_enhanced": 1.0 if vision_data is not None else 0.0,
        "diversity_score": calculate_diversity_score(annotations),
    }


# =============================================================================
# Pipeline-level scores
# =============================================================================

def calculate_data_richness(context: PipelineContext) -> float:
    score = 0.5
    if context.vision_data is not None:
        score += 0.2
    if context.validation_data is not None:
        score += 0.2
    if context.synthesis_result is not None:
        score += 0.1
    return min(score, 1.0)


def _completion_ratio(stages: Sequence[StageResult]) -> float:
    if not stages:
        return 0.0
    return sum(1 for s in stages if s.succeeded) / len(stages)


def calculate_overall_quality(stages: Sequence[StageResult], context: PipelineContext) -> float:
    annotation_quality = DEFAULT_ANNOTATION_QUALITY
    if context.synthesis_result is not None:
        annotation_quality = context.synthesis_result.quality_metrics.get(
            "average_confidence", DEFAULT_ANNOTATION_QUALITY
        )
    return (
        _completion_ratio(stages) * 0.4
        + calculate_data_richness(context) * 0.3
        + annotation_quality * 0.3
    )


def calculate_quality_scores(
    stages: Sequence[StageResult],
    context: PipelineContext,
) -> dict[str, float]:
    """Run-level quality summary returned in ``FinalResult.quality_scores``."""
    average_stage_time = (
        sum(s.duration_ms for s in stages) / len(stages) if stages else 0.0
    )
    return {
        "pipeline_completion": _completion_ratio(stages),
        "average_stage_time": average_stage_time,
        "data_richness": calculate_data_richness(context),
        "overall_quality": calculate_overall_quality(stages, context),
    }
