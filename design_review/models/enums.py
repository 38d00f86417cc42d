"""Enumeration types for the pipeline models."""

from enum import Enum


class Severity(str, Enum):
    """How urgently a piece of design feedback should be acted on."""

    CRITICAL = "critical"
    SUGGESTED = "suggested"
    IMPROVEMENT = "improvement"


class StageName(str, Enum):
    """Pipeline stages, in canonical execution order."""

    VISION = "vision"
    ANNOTATION = "annotation"
    VALIDATION = "validation"
    SYNTHESIS = "synthesis"


class StageStatus(str, Enum):
    """Outcome of one attempted stage."""

    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"
    SKIPPED = "skipped"


# Fixed order the orchestrator walks through.
STAGE_ORDER: tuple[StageName, ...] = (
    StageName.VISION,
    StageName.ANNOTATION,
    StageName.VALIDATION,
    StageName.SYNTHESIS,
)
