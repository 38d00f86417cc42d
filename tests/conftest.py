"""Pytest configuration and fixtures."""

from typing import Any, Callable, Optional

import pytest

from design_review.exceptions import ProgressLogError
from design_review.models import (
    Annotation,
    AnnotationResult,
    AnnotationServiceResponse,
    CompetitiveAnalysis,
    PipelineConfiguration,
    PipelineContext,
    ResearchRequest,
    ResearchResponse,
    Severity,
    Source,
    VisionResult,
)
from design_review.pipeline.rate_limit import RateLimitedCaller

RUN_ID = "123e4567-e89b-42d3-a456-426614174000"


# =============================================================================
# Time
# =============================================================================

class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Services
# =============================================================================

class FakeVisionService:
    def __init__(self, result: Optional[VisionResult] = None, error: Optional[Exception] = None):
        self.result = result or VisionResult(image_count=1)
        self.error = error
        self.calls: list[list[str]] = []

    def analyze(self, image_urls: list[str]) -> VisionResult:
        self.calls.append(list(image_urls))
        if self.error is not None:
            raise self.error
        return self.result


class FakeAnnotationService:
    def __init__(
        self,
        annotations: Optional[list[Annotation]] = None,
        success: bool = True,
        error: Optional[str] = None,
        raw_content: str = '{"annotations": []}',
        raises: Optional[Exception] = None,
        model_used: str = "fake-vision-model",
    ):
        self.annotations = annotations or []
        self.success = success
        self.error = error
        self.raw_content = raw_content
        self.raises = raises
        self.model_used = model_used
        self.prompts: list[str] = []

    def analyze(
        self,
        image_urls: list[str],
        prompt: str,
        run_id: str,
    ) -> AnnotationServiceResponse:
        self.prompts.append(prompt)
        if self.raises is not None:
            raise self.raises
        return AnnotationServiceResponse(
            annotations=self.annotations,
            raw_content=self.raw_content,
            model_used=self.model_used,
            success=self.success,
            error=self.error,
        )


SUPPORTIVE_TEXT = "Research confirms this is an effective best practice and experts recommend it."


class FakeResearchService:
    """Research service driven by a responder function.

    Each call advances the clock by ``call_duration`` to simulate latency and
    records the clock reading at the start of the call.
    """

    def __init__(
        self,
        responder: Optional[Callable[[ResearchRequest], ResearchResponse]] = None,
        competitive: Optional[CompetitiveAnalysis] = None,
        competitive_error: Optional[Exception] = None,
        clock: Optional[FakeClock] = None,
        call_duration: float = 0.5,
    ):
        self.responder = responder or (lambda request: supportive_response())
        self.competitive = competitive or CompetitiveAnalysis()
        self.competitive_error = competitive_error
        self.clock = clock
        self.call_duration = call_duration
        self.requests: list[ResearchRequest] = []
        self.call_starts: list[float] = []
        self.call_ends: list[float] = []
        self.competitive_calls: list[tuple[str, Optional[str]]] = []

    def research_topic(self, request: ResearchRequest) -> ResearchResponse:
        self.requests.append(request)
        if self.clock is not None:
            self.call_starts.append(self.clock())
            self.clock.advance(self.call_duration)
            self.call_ends.append(self.clock())
        return self.responder(request)

    def get_competitive_analysis(
        self,
        subject: str,
        category_hint: Optional[str] = None,
    ) -> CompetitiveAnalysis:
        self.competitive_calls.append((subject, category_hint))
        if self.competitive_error is not None:
            raise self.competitive_error
        return self.competitive


def supportive_response() -> ResearchResponse:
    return ResearchResponse(
        success=True,
        content=SUPPORTIVE_TEXT,
        sources=[
            Source(
                title="NN/g",
                url="https://www.nngroup.com/articles/a",
                domain="www.nngroup.com",
            ),
            Source(title="Smashing", url="https://www.smashingmagazine.com/b"),
        ],
    )


def always_failing(request: ResearchRequest) -> ResearchResponse:
    raise RuntimeError("research provider unavailable")


# =============================================================================
# Stores
# =============================================================================

class InMemoryConfigurationStore:
    def __init__(self, configurations: Optional[dict[str, PipelineConfiguration]] = None):
        self.configurations = configurations or {}
        self.requested: list[str] = []

    def get(self, name: str) -> Optional[PipelineConfiguration]:
        self.requested.append(name)
        configuration = self.configurations.get(name)
        if configuration is None or not configuration.enabled:
            return None
        return configuration


class UnreachableConfigurationStore:
    def get(self, name: str) -> Optional[PipelineConfiguration]:
        raise ConnectionError("configuration database unreachable")


class RecordingProgressLog:
    def __init__(self, fail_start: bool = False, fail_completion: bool = False):
        self.fail_start = fail_start
        self.fail_completion = fail_completion
        self.events: list[tuple[Any, ...]] = []

    def log_stage_start(self, run_id, stage) -> None:
        if self.fail_start:
            raise ProgressLogError("start write failed")
        self.events.append(("start", run_id, stage))

    def log_stage_completion(self, run_id, stage, status, data, duration_ms, error=None) -> None:
        if self.fail_completion:
            raise ProgressLogError("completion write failed")
        self.events.append(("complete", run_id, stage, status, error))


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def run_id() -> str:
    return RUN_ID


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock: FakeClock) -> RateLimitedCaller:
    return RateLimitedCaller(min_interval=2.0, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def make_annotation() -> Callable[..., Annotation]:
    """Factory for annotations with sensible defaults."""

    def _make(
        annotation_id: str = "annotation_1",
        severity: Severity = Severity.SUGGESTED,
        confidence: float = 0.8,
        category: str = "visual_hierarchy",
        **overrides: Any,
    ) -> Annotation:
        return Annotation(
            id=annotation_id,
            title=overrides.pop("title", f"Improve {category.replace('_', ' ')}"),
            description=overrides.pop(
                "description", "Primary call to action blends into the background color."
            ),
            category=category,
            severity=severity,
            confidence=confidence,
            **overrides,
        )

    return _make


@pytest.fixture
def sample_annotations(make_annotation) -> list[Annotation]:
    """One annotation per severity."""
    return [
        make_annotation("annotation_1", Severity.CRITICAL, 0.8, "accessibility"),
        make_annotation("annotation_2", Severity.SUGGESTED, 0.8, "visual_hierarchy"),
        make_annotation("annotation_3", Severity.IMPROVEMENT, 0.8, "content"),
    ]


@pytest.fixture
def make_context(run_id) -> Callable[..., PipelineContext]:
    def _make(annotations: Optional[list[Annotation]] = None, **fields: Any) -> PipelineContext:
        if annotations is not None:
            fields["annotation_data"] = AnnotationResult(annotations=annotations)
        return PipelineContext(
            image_urls=fields.pop("image_urls", ["https://example.com/screen.png"]),
            prompt=fields.pop("prompt", "Review the checkout page"),
            run_id=fields.pop("run_id", run_id),
            actor_id=fields.pop("actor_id", "tester"),
            **fields,
        )

    return _make


@pytest.fixture
def progress_log() -> RecordingProgressLog:
    return RecordingProgressLog()
