"""Multi-stage design analysis pipeline."""

from .configuration import default_configuration, load_configuration, should_execute_stage
from .executor import StageExecutor, is_valid_run_id
from .orchestrator import PipelineOrchestrator, build_orchestrator
from .rate_limit import RateLimitedCaller

__all__ = [
    "PipelineOrchestrator",
    "build_orchestrator",
    "StageExecutor",
    "is_valid_run_id",
    "RateLimitedCaller",
    "default_configuration",
    "load_configuration",
    "should_execute_stage",
]
