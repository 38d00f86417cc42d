"""External service clients and their contracts."""

from .base import (
    AnnotationService,
    ConfigurationStore,
    ProgressLogStore,
    ResearchService,
    VisionService,
)
from .annotation import LLMAnnotationService
from .research import PerplexityClient
from .vision import GoogleVisionClient

__all__ = [
    "VisionService",
    "AnnotationService",
    "ResearchService",
    "ConfigurationStore",
    "ProgressLogStore",
    "GoogleVisionClient",
    "PerplexityClient",
    "LLMAnnotationService",
]
