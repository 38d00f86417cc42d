"""Pipeline configuration: built-in default, loading, and stage gating."""

from typing import Optional

import structlog

from design_review.exceptions import ConfigurationError
from design_review.models import (
    PipelineConfiguration,
    PipelineOptions,
    StageName,
    StageSpec,
)
from design_review.services.base import ConfigurationStore

logger = structlog.get_logger(__name__)

DEFAULT_CONFIGURATION_NAME = "comprehensive_analysis"


def default_configuration() -> PipelineConfiguration:
    """The configuration used whenever none can be loaded."""
    return PipelineConfiguration(
        name=DEFAULT_CONFIGURATION_NAME,
        description="Vision, annotation, research validation and synthesis",
        stages=(
            StageSpec(name=StageName.VISION, timeout_ms=30000, retry_count=2),
            StageSpec(name=StageName.ANNOTATION, timeout_ms=60000, retry_count=3),
            StageSpec(name=StageName.VALIDATION, timeout_ms=45000, retry_count=2),
            StageSpec(name=StageName.SYNTHESIS, timeout_ms=30000, retry_count=1),
        ),
        weights={
            "vision": 0.15,
            "annotation": 0.50,
            "validation": 0.25,
            "synthesis": 0.10,
        },
        thresholds={
            "min_confidence": 0.7,
            "min_annotations": 12,
            "max_annotations": 25,
            "quality_threshold": 0.8,
        },
        enabled=True,
        version=1,
    )


def load_configuration(
    store: Optional[ConfigurationStore],
    name: str = DEFAULT_CONFIGURATION_NAME,
) -> PipelineConfiguration:
    """Load a configuration, falling back to the default on any problem."""
    if store is None:
        return default_configuration()

    try:
        configuration = store.get(name)
    except ConfigurationError as e:
        logger.warning("configuration_load_failed", name=name, error=str(e))
        return default_configuration()
    except Exception as e:
        logger.warning(
            "configuration_store_unavailable",
            name=name,
            error=str(e),
            error_type=type(e).__name__,
        )
        return default_configuration()

    if configuration is None or not configuration.enabled:
        logger.warning("configuration_fallback_to_default", name=name)
        return default_configuration()

    logger.info("configuration_loaded", name=configuration.name, version=configuration.version)
    return configuration


def should_execute_stage(
    stage: StageName,
    configuration: PipelineConfiguration,
    options: Optional[PipelineOptions] = None,
) -> bool:
    """Force wins over skip and over the configured flag."""
    if options is not None:
        if stage in options.force_stages:
            return True
        if stage in options.skip_stages:
            return False

    spec = configuration.get_stage(stage)
    return True if spec is None else spec.enabled


def resolve_weights(
    configuration: PipelineConfiguration,
    options: Optional[PipelineOptions] = None,
) -> dict[str, float]:
    """Configuration weights with per-run overrides applied."""
    weights = dict(configuration.weights)
    if options is not None and options.custom_weights:
        weights.update(options.custom_weights)
    return weights
