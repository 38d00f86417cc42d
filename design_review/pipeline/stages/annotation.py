"""Stage 2: Annotation - generative design feedback.

The prompt sent to the annotation service is the caller's prompt plus, when
vision data is available, a short summary of what the vision stage found.
"""

from typing import Optional

import structlog

from design_review.config.prompts import VISION_CONTEXT_FOOTER, VISION_CONTEXT_HEADER
from design_review.exceptions import AnnotationServiceError, AnnotationTransportError
from design_review.models import AnnotationResult, PipelineContext, VisionResult
from design_review.services.base import AnnotationService

logger = structlog.get_logger(__name__)

STAGE_CONFIDENCE = 0.85


def build_vision_context(vision: VisionResult) -> str:
    """Compact text summary of a VisionResult."""
    lines = [VISION_CONTEXT_HEADER]
    if vision.dominant_colors:
        lines.append("Dominant Colors: " + ", ".join(c.color for c in vision.dominant_colors))
    if vision.text_annotations:
        lines.append(f"Text Elements Detected: {len(vision.text_annotations)} text elements")
    lines.append(
        "UI Elements: "
        + ", ".join(f"{count} {kind}" for kind, count in vision.visual_elements.counts().items())
    )
    lines.append("")
    lines.append(VISION_CONTEXT_FOOTER)
    return "\n".join(lines)


def build_enhanced_prompt(prompt: str, vision: Optional[VisionResult]) -> str:
    if vision is None:
        return prompt
    return f"{prompt}\n\n{build_vision_context(vision)}\n"


def run_annotation_stage(context: PipelineContext, service: AnnotationService) -> AnnotationResult:
    """Call the annotation service with the vision-augmented prompt.

    Raises:
        AnnotationTransportError: The service call itself raised.
        AnnotationServiceError: The service answered with ``success=False``
            or with no content at all.
    """
    prompt = build_enhanced_prompt(context.prompt, context.vision_data)

    logger.info(
        "annotation_stage_start",
        run_id=context.run_id,
        images=len(context.image_urls),
        has_vision_data=context.vision_data is not None,
    )

    try:
        response = service.analyze(context.image_urls, prompt, context.run_id)
    except Exception as e:
        raise AnnotationTransportError(f"Annotation service call failed: {e}") from e

    if not response.success:
        raise AnnotationServiceError(
            f"Annotation service reported failure: {response.error or 'unknown error'}"
        )
    if not response.annotations and not response.raw_content.strip():
        raise AnnotationServiceError("Annotation service returned no content")

    logger.info(
        "annotation_stage_summary",
        run_id=context.run_id,
        annotations=len(response.annotations),
        model=response.model_used,
    )
    return AnnotationResult(
        annotations=response.annotations,
        raw_content=response.raw_content,
        model_used=response.model_used or "unknown",
        confidence=STAGE_CONFIDENCE,
        context_data={
            "vision_context_included": context.vision_data is not None,
            "image_count": len(context.image_urls),
            "prompt_length": len(prompt),
        },
    )
