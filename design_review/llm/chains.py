"""LangChain chain for design annotation plus reply parsing."""

import json
import re
from typing import Any

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from design_review.config.prompts import ANNOTATION_SYSTEM_PROMPT
from design_review.exceptions import LLMChainError
from design_review.models import Annotation

logger = structlog.get_logger(__name__)

FALLBACK_TITLE_LENGTH = 80


def _extract_json_from_text(text: str) -> str | None:
    """Return the first balanced JSON object in ``text``.

    Braces inside string literals are ignored so that feedback text such as
    "use {brand} colors" does not break the match.
    """
    brace_count = 0
    start_idx = None
    in_string = False
    escape_next = False

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if char == "\\" and in_string:
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            if brace_count == 0:
                start_idx = i
            brace_count += 1
        elif char == "}" and brace_count > 0:
            brace_count -= 1
            if brace_count == 0 and start_idx is not None:
                return text[start_idx:i + 1]

    return None


def _clean_json_string(text: str) -> str:
    """Strip BOM/zero-width characters and trailing commas."""
    text = text.strip("\ufeff\u200b\u200c\u200d")
    return re.sub(r",(\s*[}\]])", r"\1", text)


def parse_json_response(response: str) -> dict:
    """Parse the JSON object out of a model reply.

    Handles code fences, preamble text before the object, and trailing
    commas.

    Raises:
        LLMChainError: If no JSON object can be recovered.
    """
    if not response or not response.strip():
        raise LLMChainError("Empty response from LLM")

    text = response.strip()

    logger.debug(
        "raw_llm_response",
        response_length=len(text),
        preview=text[:500],
    )

    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.IGNORECASE)
    if fenced and fenced.group(1).strip().startswith("{"):
        text = fenced.group(1).strip()

    try:
        parsed = json.loads(_clean_json_string(text))
        if isinstance(parsed, dict):
            return parsed
        if isinstance(parsed, list):
            return {"annotations": parsed}
    except json.JSONDecodeError as e:
        logger.debug("direct_parse_failed", error=str(e))

    extracted = _extract_json_from_text(text)
    if extracted:
        try:
            return json.loads(_clean_json_string(extracted))
        except json.JSONDecodeError as e:
            logger.debug("extracted_parse_failed", error=str(e))

    logger.error(
        "json_parse_error",
        error="Could not extract valid JSON",
        response_preview=text[:300],
    )
    raise LLMChainError(f"Failed to parse LLM JSON response. Response preview: {text[:150]}")


def _fallback_annotation(item: Any, annotation_id: str) -> Annotation | None:
    """Build a minimal annotation from whatever text an invalid item carries."""
    if isinstance(item, str):
        text = item.strip()
        title = text[:FALLBACK_TITLE_LENGTH]
    elif isinstance(item, dict):
        title = str(item.get("title") or "").strip()
        text = str(item.get("feedback") or item.get("description") or title).strip()
    else:
        return None

    if not text:
        return None
    return Annotation(id=annotation_id, title=title, description=text)


def _generate_id(position: int, seen_ids: set[str]) -> str:
    annotation_id = f"annotation_{position}"
    suffix = 2
    while annotation_id in seen_ids:
        annotation_id = f"annotation_{position}_{suffix}"
        suffix += 1
    return annotation_id


def parse_annotations(payload: dict) -> list[Annotation]:
    """Validate raw annotation items, falling back per item instead of raising.

    Missing or duplicate ids become ``annotation_{n}`` (1-based position),
    suffixed ``_2``, ``_3``... when that id is already taken.
    Items that fail validation are replaced by a fallback record built from
    their text, or dropped when they carry none.
    """
    items = payload.get("annotations")
    if not isinstance(items, list):
        logger.warning("annotations_missing_from_payload", keys=list(payload.keys()))
        return []

    annotations: list[Annotation] = []
    seen_ids: set[str] = set()

    for n, item in enumerate(items, start=1):
        annotation_id = None
        if isinstance(item, dict) and item.get("id") not in (None, ""):
            candidate_id = str(item["id"])
            if candidate_id not in seen_ids:
                annotation_id = candidate_id
        if annotation_id is None:
            annotation_id = _generate_id(n, seen_ids)

        annotation = None
        if isinstance(item, dict):
            try:
                annotation = Annotation.model_validate({**item, "id": annotation_id})
            except ValidationError as e:
                logger.warning(
                    "annotation_validation_failed",
                    position=n,
                    errors=e.error_count(),
                )

        if annotation is None:
            annotation = _fallback_annotation(item, annotation_id)
            if annotation is None:
                logger.warning("annotation_dropped", position=n)
                continue

        seen_ids.add(annotation.id)
        annotations.append(annotation)

    return annotations


def build_annotation_messages(prompt: str, image_data_uris: list[str]) -> list:
    """System prompt plus one human message with text and image parts."""
    content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
    for uri in image_data_uris:
        content.append({"type": "image_url", "image_url": {"url": uri}})
    return [
        SystemMessage(content=ANNOTATION_SYSTEM_PROMPT),
        HumanMessage(content=content),
    ]


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    reraise=True,
)
def run_annotation_chain(
    llm: BaseChatModel,
    prompt: str,
    image_data_uris: list[str],
) -> str:
    """Send the prompt and images to the model and return the raw reply.

    Args:
        llm: Chat model that accepts image content parts.
        prompt: Fully constructed review prompt.
        image_data_uris: Images as base64 data URIs.

    Returns:
        Raw reply text.

    Raises:
        LLMChainError: If the model returns nothing.
    """
    chain = llm | StrOutputParser()

    logger.debug(
        "running_annotation_chain",
        prompt_length=len(prompt),
        image_count=len(image_data_uris),
    )

    response = chain.invoke(build_annotation_messages(prompt, image_data_uris))
    if not response or not response.strip():
        raise LLMChainError("Empty response from LLM")

    logger.debug(
        "annotation_raw_response",
        response_length=len(response),
        response_preview=response[:200],
    )
    return response
