"""Google Cloud Vision client.

Each image is sent to ``images:annotate`` separately and the per-image
responses are merged into one ``VisionResult``. A failing image contributes
nothing; the remaining images are still analyzed.
"""

import re
from typing import Any, Optional

import httpx
import structlog

from design_review.exceptions import VisionServiceError
from design_review.models import DominantColor, UIElement, VisionResult, VisualElements

logger = structlog.get_logger(__name__)

DEFAULT_FEATURES = (
    "TEXT_DETECTION",
    "LABEL_DETECTION",
    "FACE_DETECTION",
    "OBJECT_LOCALIZATION",
    "WEB_DETECTION",
    "IMAGE_PROPERTIES",
    "SAFE_SEARCH_DETECTION",
)

BUTTON_KEYWORDS = (
    "click", "submit", "send", "save", "delete", "edit", "view", "download",
    "buy", "purchase", "add", "remove", "login", "signup", "register",
    "search", "filter", "sort", "next", "previous", "back", "continue",
)
NAVIGATION_KEYWORDS = (
    "home", "about", "contact", "services", "products", "blog", "news",
    "help", "support", "faq", "terms", "privacy", "menu", "navigation",
)
TITLE_CASE_PATTERN = re.compile(r"^[A-Z][a-z]+( [A-Z][a-z]+)*$")
SHORT_LABEL_LENGTH = 20


def rgb_to_hex(color: dict[str, Any]) -> str:
    """Convert a Vision ``{red, green, blue}`` color into ``#rrggbb``."""
    channels = (round(color.get(key) or 0) for key in ("red", "green", "blue"))
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in channels)


def is_button_text(text: str) -> bool:
    stripped = text.strip()
    if any(keyword in stripped.lower() for keyword in BUTTON_KEYWORDS):
        return True
    return len(stripped) < SHORT_LABEL_LENGTH and bool(TITLE_CASE_PATTERN.match(stripped))


def is_navigation_text(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in NAVIGATION_KEYWORDS)


def extract_visual_elements(
    text_annotations: list[dict[str, Any]],
    object_annotations: list[dict[str, Any]],
) -> VisualElements:
    """Classify detected objects and text fragments into UI element groups."""
    elements = VisualElements()

    for obj in object_annotations:
        name = str(obj.get("name", ""))
        lowered = name.lower()
        box = obj.get("boundingPoly")
        score = float(obj.get("score") or 0.0)

        if "button" in lowered or "link" in lowered:
            elements.buttons.append(UIElement(text=name, bounding_box=box, confidence=score))
        elif "form" in lowered or "input" in lowered or "textbox" in lowered:
            elements.forms.append(UIElement(type=name, bounding_box=box, confidence=score))
        elif "menu" in lowered or "nav" in lowered:
            elements.navigation.append(UIElement(type=name, bounding_box=box, confidence=score))
        else:
            elements.content.append(UIElement(type=name, bounding_box=box, confidence=score))

    # Index 0 is the full-text block
    for text in text_annotations[1:]:
        description = str(text.get("description", ""))
        box = text.get("boundingPoly")

        if is_button_text(description):
            group, confidence = elements.buttons, 0.8
        elif is_navigation_text(description):
            group, confidence = elements.navigation, 0.7
        else:
            group, confidence = elements.content, 0.6

        group.append(
            UIElement(
                text=description,
                bounding_box=box,
                confidence=confidence,
                source="text_analysis",
            )
        )

    return elements


def process_annotation_response(annotation: dict[str, Any]) -> VisionResult:
    """Turn one ``responses[i]`` entry into a single-image ``VisionResult``."""
    text_annotations = annotation.get("textAnnotations") or []
    object_annotations = annotation.get("localizedObjectAnnotations") or []
    image_properties = annotation.get("imagePropertiesAnnotation") or {}
    colors = (image_properties.get("dominantColors") or {}).get("colors") or []
    safe_search = annotation.get("safeSearchAnnotation")

    return VisionResult(
        image_count=1,
        text_annotations=text_annotations,
        label_annotations=annotation.get("labelAnnotations") or [],
        face_annotations=annotation.get("faceAnnotations") or [],
        object_annotations=object_annotations,
        web_detection=annotation.get("webDetection") or {},
        image_properties=image_properties,
        safety_annotations=[safe_search] if safe_search else [],
        dominant_colors=[
            DominantColor(
                color=rgb_to_hex(c.get("color") or {}),
                score=float(c.get("score") or 0.0),
                pixel_fraction=float(c.get("pixelFraction") or 0.0),
            )
            for c in colors
        ],
        visual_elements=extract_visual_elements(text_annotations, object_annotations),
    )


def merge_vision_results(results: list[VisionResult], image_count: int) -> VisionResult:
    merged = VisionResult(image_count=image_count)
    for result in results:
        merged.text_annotations.extend(result.text_annotations)
        merged.label_annotations.extend(result.label_annotations)
        merged.face_annotations.extend(result.face_annotations)
        merged.object_annotations.extend(result.object_annotations)
        merged.safety_annotations.extend(result.safety_annotations)
        merged.dominant_colors.extend(result.dominant_colors)
        merged.web_detection.update(result.web_detection)
        merged.image_properties.update(result.image_properties)
        for group in ("buttons", "forms", "navigation", "content"):
            getattr(merged.visual_elements, group).extend(getattr(result.visual_elements, group))
    return merged


def _image_payload(image_url: str) -> dict[str, Any]:
    if image_url.startswith("data:"):
        # Inline images go in as base64 content
        return {"content": image_url.split(",", 1)[-1]}
    return {"source": {"imageUri": image_url}}


class GoogleVisionClient:
    """Synchronous Cloud Vision REST client."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://vision.googleapis.com/v1",
        max_results: int = 50,
        timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None,
        features: tuple[str, ...] = DEFAULT_FEATURES,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.max_results = max_results
        self.features = features
        self._client = http_client or httpx.Client(timeout=timeout)

    def analyze(self, image_urls: list[str]) -> VisionResult:
        if not self.api_key:
            raise VisionServiceError("Google Vision API key not configured")

        results = []
        for image_url in image_urls:
            try:
                results.append(self._analyze_image(image_url))
                logger.debug("vision_image_analyzed", image=image_url[:100])
            except (httpx.HTTPError, VisionServiceError) as e:
                logger.warning("vision_image_failed", image=image_url[:100], error=str(e))

        return merge_vision_results(results, image_count=len(image_urls))

    def _analyze_image(self, image_url: str) -> VisionResult:
        body = {
            "requests": [
                {
                    "image": _image_payload(image_url),
                    "features": [
                        {"type": feature, "maxResults": self.max_results}
                        for feature in self.features
                    ],
                }
            ]
        }
        response = self._client.post(
            f"{self.base_url}/images:annotate",
            params={"key": self.api_key},
            json=body,
        )
        response.raise_for_status()

        responses = response.json().get("responses") or [{}]
        annotation = responses[0]
        if annotation.get("error"):
            raise VisionServiceError(
                f"Google Vision API error: {annotation['error'].get('message', 'unknown')}"
            )
        return process_annotation_response(annotation)

    def close(self) -> None:
        self._client.close()
