"""Stage output models.

Stage Flow:
1. Vision        → VisionResult
2. Annotation    → AnnotationResult
3. Validation    → ValidationResult
4. Synthesis     → SynthesisResult

Every list field defaults to empty so downstream stages can read fields
unconditionally, even when the producing stage found nothing.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from .annotation import Annotation, Source


# =============================================================================
# Stage 1: Vision
# =============================================================================

class DominantColor(BaseModel):
    """A dominant image color as reported by the vision service."""

    color: str = Field(description="Hex color, e.g. '#1a2b3c'")
    score: float = 0.0
    pixel_fraction: float = 0.0


class UIElement(BaseModel):
    """A detected UI element (from an object or a text annotation)."""

    text: Optional[str] = None
    type: Optional[str] = None
    bounding_box: Optional[dict[str, Any]] = None
    confidence: float = 0.0
    source: str = "object_detection"


class VisualElements(BaseModel):
    """UI elements grouped by kind."""

    buttons: list[UIElement] = Field(default_factory=list)
    forms: list[UIElement] = Field(default_factory=list)
    navigation: list[UIElement] = Field(default_factory=list)
    content: list[UIElement] = Field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "buttons": len(self.buttons),
            "forms": len(self.forms),
            "navigation": len(self.navigation),
            "content": len(self.content),
        }


class VisionResult(BaseModel):
    """Low-level visual features for the input images."""

    image_count: int = 0
    text_annotations: list[dict[str, Any]] = Field(default_factory=list)
    label_annotations: list[dict[str, Any]] = Field(default_factory=list)
    face_annotations: list[dict[str, Any]] = Field(default_factory=list)
    object_annotations: list[dict[str, Any]] = Field(default_factory=list)
    web_detection: dict[str, Any] = Field(default_factory=dict)
    image_properties: dict[str, Any] = Field(default_factory=dict)
    safety_annotations: list[dict[str, Any]] = Field(default_factory=list)
    dominant_colors: list[DominantColor] = Field(default_factory=list)
    visual_elements: VisualElements = Field(default_factory=VisualElements)


# =============================================================================
# Stage 2: Annotation
# =============================================================================

class AnnotationServiceResponse(BaseModel):
    """What the generative annotation service returns."""

    annotations: list[Annotation] = Field(default_factory=list)
    raw_content: str = ""
    model_used: Optional[str] = None
    success: bool = True
    error: Optional[str] = None


class AnnotationResult(BaseModel):
    """Output of the annotation stage."""

    annotations: list[Annotation] = Field(default_factory=list)
    raw_content: str = ""
    model_used: str = "unknown"
    confidence: float = Field(default=0.85, ge=0.0, le=1.0)
    context_data: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Stage 3: Validation
# =============================================================================

class ResearchRequest(BaseModel):
    """A research query sent to the research service."""

    query: str
    domain: str = "ux"
    recency_filter: str = "month"
    max_sources: int = Field(default=5, ge=1)


class ResearchResponse(BaseModel):
    """Research service answer."""

    success: bool
    content: str = ""
    sources: list[Source] = Field(default_factory=list)
    related_questions: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class CompetitorInsight(BaseModel):
    name: str
    market_position: str = ""
    sources: list[Source] = Field(default_factory=list)


class TrendInsight(BaseModel):
    trend: str
    impact: str = "medium"
    description: str = ""
    sources: list[Source] = Field(default_factory=list)


class Benchmark(BaseModel):
    metric: str
    value: str = ""
    industry: str = "UX Design"
    source: Optional[Source] = None


class CompetitiveAnalysis(BaseModel):
    """Industry and competitor context from the research service."""

    competitors: list[CompetitorInsight] = Field(default_factory=list)
    industry_trends: list[TrendInsight] = Field(default_factory=list)
    benchmarks: list[Benchmark] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Output of the validation stage."""

    validated_annotations: list[Annotation] = Field(default_factory=list)
    industry_context: list[Benchmark] = Field(default_factory=list)
    trend_insights: list[TrendInsight] = Field(default_factory=list)
    competitive_context: list[CompetitorInsight] = Field(default_factory=list)
    validation_sources: list[Source] = Field(default_factory=list)
    research_calls: int = 0


# =============================================================================
# Stage 4: Synthesis
# =============================================================================

class SynthesisResult(BaseModel):
    """Final ranked annotations plus scoring detail."""

    final_annotations: list[Annotation] = Field(default_factory=list)
    priority_scores: dict[str, float] = Field(default_factory=dict)
    quality_metrics: dict[str, float] = Field(default_factory=dict)
    confidence_weights: dict[str, float] = Field(default_factory=dict)
    consolidated_insights: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
