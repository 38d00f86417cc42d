"""Exception hierarchy for the design review pipeline."""


class DesignReviewError(Exception):
    """Base error for the package."""


class ConfigurationError(DesignReviewError):
    """Pipeline configuration could not be read."""


class StageError(DesignReviewError):
    """A stage could not produce its result."""


class AnnotationTransportError(StageError):
    """The annotation service call itself failed."""


class AnnotationServiceError(StageError):
    """The annotation service answered but reported a failure or no content."""


class ServiceError(DesignReviewError):
    """An external service client failed."""


class VisionServiceError(ServiceError):
    """Vision extraction failed or is not configured."""


class ResearchServiceError(ServiceError):
    """Research service is not configured or returned an unusable answer."""


class LLMChainError(ServiceError):
    """Error during LLM chain execution."""


class ProgressLogError(DesignReviewError):
    """A progress log write failed."""
