"""Annotation and evidence models.

An annotation is created by the annotation stage and then layered on by
validation and synthesis. Stages never mutate an annotation in place; they
produce a new one with ``model_copy(update=...)``.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .enums import Severity

DEFAULT_CONFIDENCE = 0.8


def clamp_unit(value: float) -> float:
    """Clamp a score into [0, 1]."""
    return max(0.0, min(1.0, value))


class Source(BaseModel):
    """A piece of research evidence attached to an annotation."""

    title: str = ""
    url: str = ""
    snippet: str = ""
    domain: str = ""
    published_date: Optional[str] = None


class Annotation(BaseModel):
    """One design-feedback item."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    description: str = Field(
        default="",
        validation_alias=AliasChoices("description", "feedback"),
        description="The feedback text",
    )
    category: str = "general"
    severity: Severity = Severity.SUGGESTED
    confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)
    business_impact: Optional[str] = Field(
        None, validation_alias=AliasChoices("business_impact", "businessImpact")
    )
    implementation_effort: Optional[str] = Field(
        None, validation_alias=AliasChoices("implementation_effort", "implementationEffort")
    )

    # Validation layer
    perplexity_validated: bool = Field(
        False, validation_alias=AliasChoices("perplexity_validated", "perplexityValidated")
    )
    perplexity_support: bool = Field(
        False, validation_alias=AliasChoices("perplexity_support", "perplexitySupport")
    )
    validation_sources: list[Source] = Field(
        default_factory=list,
        validation_alias=AliasChoices("validation_sources", "validationSources"),
    )

    # Synthesis layer
    priority_score: Optional[float] = Field(None, ge=0.0, le=1.0)

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, value: Any) -> Any:
        if isinstance(value, Severity):
            return value
        normalized = str(value or "").strip().lower()
        if normalized in {s.value for s in Severity}:
            return normalized
        return Severity.SUGGESTED

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_CONFIDENCE
        return clamp_unit(float(value))

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        return str(value).strip() if value else "general"

    @property
    def text(self) -> str:
        """Title and feedback joined, used for research queries and matching."""
        return " ".join(part for part in (self.title, self.description) if part)
