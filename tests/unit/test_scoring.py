"""Unit tests for scoring functions and the support classifier."""

import pytest

from design_review.models import (
    PipelineContext,
    Severity,
    StageName,
    StageResult,
    StageStatus,
    SynthesisResult,
    ValidationResult,
    VisionResult,
)
from design_review.pipeline.scoring import (
    calculate_confidence_weight,
    calculate_data_richness,
    calculate_diversity_score,
    calculate_priority_score,
    calculate_quality_metrics,
    calculate_quality_scores,
    classify_support,
)


class TestClassifySupport:
    """Tests for the support classifier."""

    def test_positive_text_is_supported(self, make_annotation):
        result = classify_support(
            "Studies confirm that high contrast is an effective best practice.",
            make_annotation(),
        )
        assert result.positive_count == 3
        assert result.negative_count == 0
        assert result.supported

    def test_negative_text_outweighs_positive(self, make_annotation):
        result = classify_support(
            "Some confirm this, but it is outdated and harmful.",
            make_annotation(),
        )
        assert result.positive_count == 1
        assert result.negative_count == 2
        assert result.score == pytest.approx(1 + 0.1 * result.mention_count - 4)
        assert not result.supported

    def test_occurrences_are_counted(self, make_annotation):
        result = classify_support("confirm confirm confirm", make_annotation())
        assert result.positive_count == 3

    def test_mentions_count_long_words_only(self, make_annotation):
        annotation = make_annotation(title="Fix the CTA", description="button contrast")
        result = classify_support("The button and its contrast, the CTA, fix", annotation)
        # "button" and "contrast" qualify; "fix", "the", "cta" are too short
        assert result.mention_count == 2

    def test_mentions_alone_can_support(self, make_annotation):
        annotation = make_annotation(
            title="Navigation labels",
            description="labels inside navigation menus truncated",
        )
        text = "navigation labels inside menus truncated"
        result = classify_support(text, annotation)
        assert result.positive_count == 0
        assert result.mention_count == 7
        assert result.score == pytest.approx(0.7)
        assert result.supported

    def test_threshold_is_strict(self, make_annotation):
        annotation = make_annotation(title="Spacing", description="spacing")
        result = classify_support("spacing", annotation)
        # 0.2 from two mentions
        assert result.score == pytest.approx(0.2)
        assert not result.supported

    def test_empty_text(self, make_annotation):
        result = classify_support("", make_annotation())
        assert result.score == 0
        assert not result.supported


class TestPriorityScore:
    """Tests for priority scoring."""

    @pytest.mark.parametrize(
        "severity,validated,expected",
        [
            (Severity.CRITICAL, False, 0.6),
            (Severity.SUGGESTED, False, 0.48),
            (Severity.IMPROVEMENT, False, 0.4),
            (Severity.CRITICAL, True, 0.78),
            (Severity.IMPROVEMENT, True, 0.52),
        ],
    )
    def test_multipliers(self, make_annotation, severity, validated, expected):
        annotation = make_annotation(
            severity=severity, confidence=0.4, perplexity_validated=validated
        )
        assert calculate_priority_score(annotation) == pytest.approx(expected)

    def test_clamped_to_one(self, make_annotation):
        annotation = make_annotation(
            severity=Severity.CRITICAL, confidence=0.95, perplexity_validated=True
        )
        assert calculate_priority_score(annotation) == 1.0


class TestConfidenceWeight:
    """Tests for confidence weights."""

    def test_base_weight(self, make_annotation):
        assert calculate_confidence_weight(make_annotation(confidence=0.9)) == 1.0

    def test_high_confidence_and_validated(self, make_annotation):
        annotation = make_annotation(confidence=0.95, perplexity_validated=True)
        assert calculate_confidence_weight(annotation) == pytest.approx(1.32)


class TestQualityMetrics:
    """Tests for annotation-set metrics."""

    def test_diversity_score(self, sample_annotations):
        # 3 categories, 3 severities
        expected = (3 * 0.6 + 3 * 0.4) / 4
        assert calculate_diversity_score(sample_annotations) == pytest.approx(expected)

    def test_empty_annotations(self):
        metrics = calculate_quality_metrics([], None)
        assert metrics == {
            "annotation_count": 0.0,
            "average_confidence": 0.0,
            "validation_rate": 0.0,
            "vision_enhanced": 0.0,
            "diversity_score": 0.0,
        }

    def test_metrics(self, make_annotation):
        annotations = [
            make_annotation("a1", confidence=0.6, perplexity_validated=True),
            make_annotation("a2", confidence=1.0),
        ]
        metrics = calculate_quality_metrics(annotations, VisionResult())
        assert metrics["annotation_count"] == 2
        assert metrics["average_confidence"] == pytest.approx(0.8)
        assert metrics["validation_rate"] == pytest.approx(0.5)
        assert metrics["vision_enhanced"] == 1.0


class TestQualityScores:
    """Tests for run-level quality scores."""

    def _stage(self, status, duration_ms):
        return StageResult(stage_name=StageName.VISION, status=status, duration_ms=duration_ms)

    def test_data_richness(self):
        context = PipelineContext(run_id="r", actor_id="u")
        assert calculate_data_richness(context) == pytest.approx(0.5)

        context.vision_data = VisionResult()
        context.validation_data = ValidationResult()
        context.synthesis_result = SynthesisResult()
        assert calculate_data_richness(context) == pytest.approx(1.0)

    def test_scores_without_synthesis_use_default_quality(self):
        context = PipelineContext(run_id="r", actor_id="u", vision_data=VisionResult())
        stages = [self._stage(StageStatus.SUCCESS, 10.0), self._stage(StageStatus.ERROR, 30.0)]

        scores = calculate_quality_scores(stages, context)

        assert scores["pipeline_completion"] == pytest.approx(0.5)
        assert scores["average_stage_time"] == pytest.approx(20.0)
        assert scores["data_richness"] == pytest.approx(0.7)
        assert scores["overall_quality"] == pytest.approx(0.5 * 0.4 + 0.7 * 0.3 + 0.8 * 0.3)

    def test_scores_use_synthesis_average_confidence(self):
        context = PipelineContext(
            run_id="r",
            actor_id="u",
            synthesis_result=SynthesisResult(quality_metrics={"average_confidence": 0.5}),
        )
        scores = calculate_quality_scores([self._stage(StageStatus.SUCCESS, 5.0)], context)
        assert scores["overall_quality"] == pytest.approx(1.0 * 0.4 + 0.6 * 0.3 + 0.5 * 0.3)

    def test_no_stages(self):
        scores = calculate_quality_scores([], PipelineContext(run_id="r", actor_id="u"))
        assert scores["pipeline_completion"] == 0.0
        assert scores["average_stage_time"] == 0.0
