"""Generative annotation service backed by a multimodal Ollama model."""

import base64
import mimetypes
from pathlib import Path
from typing import Optional

import httpx
import structlog
from langchain_core.language_models import BaseChatModel

from design_review.exceptions import LLMChainError
from design_review.llm.chains import parse_annotations, parse_json_response, run_annotation_chain
from design_review.llm.client import LLMSettings, create_vision_llm_client, get_llm_settings
from design_review.models import AnnotationServiceResponse

logger = structlog.get_logger(__name__)

DEFAULT_IMAGE_MIME = "image/png"


def _to_data_uri(content: bytes, mime_type: Optional[str]) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type or DEFAULT_IMAGE_MIME};base64,{encoded}"


class LLMAnnotationService:
    """Sends the prompt and images to the chat model and parses its reply."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        settings: Optional[LLMSettings] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.settings = settings or get_llm_settings()
        self.llm = llm or create_vision_llm_client(self.settings)
        self._http = http_client or httpx.Client(timeout=30.0, follow_redirects=True)

    @property
    def model_name(self) -> str:
        return getattr(self.llm, "model", None) or self.settings.model_name

    def load_image(self, image_url: str) -> str:
        """Return the image as a base64 data URI.

        Accepts ``data:`` URIs as-is, fetches http(s) URLs, and reads
        anything else as a local path.
        """
        if image_url.startswith("data:"):
            return image_url

        if image_url.startswith(("http://", "https://")):
            response = self._http.get(image_url)
            response.raise_for_status()
            mime_type = response.headers.get("content-type", "").split(";")[0] or None
            return _to_data_uri(response.content, mime_type)

        path = Path(image_url)
        mime_type, _ = mimetypes.guess_type(path.name)
        return _to_data_uri(path.read_bytes(), mime_type)

    def analyze(
        self,
        image_urls: list[str],
        prompt: str,
        run_id: str,
    ) -> AnnotationServiceResponse:
        """Annotate images with the given prompt.

        Transport failures (image loading, model call) propagate. A reply
        that cannot be parsed comes back as ``success=False``.
        """
        log = logger.bind(run_id=run_id, model=self.model_name)
        log.info("annotation_request_start", image_count=len(image_urls))

        images = [self.load_image(url) for url in image_urls]
        raw = run_annotation_chain(self.llm, prompt, images)

        try:
            payload = parse_json_response(raw)
        except LLMChainError as e:
            log.warning("annotation_reply_unparseable", error=str(e))
            return AnnotationServiceResponse(
                raw_content=raw,
                model_used=self.model_name,
                success=False,
                error=str(e),
            )

        annotations = parse_annotations(payload)
        log.info("annotation_request_complete", annotations=len(annotations))
        return AnnotationServiceResponse(
            annotations=annotations,
            raw_content=raw,
            model_used=self.model_name,
        )

    def close(self) -> None:
        self._http.close()
