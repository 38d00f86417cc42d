"""LLM client and chain configurations."""

from .client import LLMSettings, create_vision_llm_client, get_llm_settings
from .chains import parse_annotations, parse_json_response, run_annotation_chain

__all__ = [
    "LLMSettings",
    "get_llm_settings",
    "create_vision_llm_client",
    "run_annotation_chain",
    "parse_json_response",
    "parse_annotations",
]
