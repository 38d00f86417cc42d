"""Stage 1: Vision - low-level visual features for the input images."""

import structlog

from design_review.models import PipelineContext, VisionResult
from design_review.services.base import VisionService

logger = structlog.get_logger(__name__)


def run_vision_stage(context: PipelineContext, service: VisionService) -> VisionResult:
    """Extract text regions, colors and UI elements.

    Always returns a fully populated ``VisionResult``; with no images the
    service is not called and every field is empty.
    """
    if not context.image_urls:
        logger.info("vision_stage_no_images", run_id=context.run_id)
        return VisionResult()

    result = service.analyze(context.image_urls)

    logger.info(
        "vision_stage_summary",
        run_id=context.run_id,
        images=result.image_count,
        text_elements=len(result.text_annotations),
        dominant_colors=len(result.dominant_colors),
        **result.visual_elements.counts(),
    )
    return result
