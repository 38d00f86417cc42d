"""Pipeline stages.

Each stage is a function of a read-only context view plus its service
collaborators, returning that stage's typed result.
"""

from .vision import run_vision_stage
from .annotation import build_enhanced_prompt, run_annotation_stage
from .validation import run_validation_stage
from .synthesis import rank_annotations, run_synthesis_stage

__all__ = [
    "run_vision_stage",
    "run_annotation_stage",
    "build_enhanced_prompt",
    "run_validation_stage",
    "run_synthesis_stage",
    "rank_annotations",
]
