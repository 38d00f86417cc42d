"""Stage executor: timing, error capture, best-effort progress logging."""

import re
import time
from typing import Any, Callable, Optional

import structlog

from design_review.models import StageName, StageResult, StageStatus
from design_review.services.base import ProgressLogStore

logger = structlog.get_logger(__name__)

RUN_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_run_id(run_id: Optional[str]) -> bool:
    return bool(run_id) and bool(RUN_ID_PATTERN.match(run_id))


class StageExecutor:
    """Runs one stage function and turns its outcome into a StageResult.

    Exceptions from the stage become ``status=error``. Progress-log writes
    never change the result: their failures, and a malformed run id that
    disables them, are recorded in ``warnings`` instead.
    """

    def __init__(
        self,
        progress_log: Optional[ProgressLogStore] = None,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self.progress_log = progress_log
        self._timer = timer
        self.warnings: list[str] = []

    def _warn(self, stage: StageName, message: str, **fields: Any) -> None:
        self.warnings.append(f"{stage.value}: {message}")
        logger.warning("progress_log_degraded", stage=stage.value, detail=message, **fields)

    def _log_start(self, run_id: str, stage: StageName) -> None:
        try:
            self.progress_log.log_stage_start(run_id, stage)
        except Exception as e:
            self._warn(stage, f"failed to log stage start: {e}")

    def _log_completion(
        self,
        run_id: str,
        stage: StageName,
        status: StageStatus,
        data: Any,
        duration_ms: float,
        error: Optional[str],
    ) -> None:
        try:
            self.progress_log.log_stage_completion(run_id, stage, status, data, duration_ms, error)
        except Exception as e:
            self._warn(stage, f"failed to log stage completion: {e}")

    def execute(self, stage: StageName, fn: Callable[[], Any], run_id: str) -> StageResult:
        log_enabled = self.progress_log is not None
        if log_enabled and not is_valid_run_id(run_id):
            self._warn(stage, f"invalid run id {run_id!r}, progress logging skipped")
            log_enabled = False

        if log_enabled:
            self._log_start(run_id, stage)

        logger.info("stage_start", stage=stage.value, run_id=run_id)
        started = self._timer()
        try:
            data = fn()
        except Exception as e:
            duration_ms = (self._timer() - started) * 1000
            error = str(e) or type(e).__name__
            logger.error(
                "stage_failed",
                stage=stage.value,
                run_id=run_id,
                error=error,
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
            )
            if log_enabled:
                self._log_completion(run_id, stage, StageStatus.ERROR, None, duration_ms, error)
            return StageResult(
                stage_name=stage,
                status=StageStatus.ERROR,
                error=error,
                duration_ms=duration_ms,
                metadata={"error_type": type(e).__name__},
            )

        duration_ms = (self._timer() - started) * 1000
        logger.info(
            "stage_complete",
            stage=stage.value,
            run_id=run_id,
            duration_ms=round(duration_ms, 2),
        )
        if log_enabled:
            self._log_completion(run_id, stage, StageStatus.SUCCESS, data, duration_ms, None)
        return StageResult(
            stage_name=stage,
            status=StageStatus.SUCCESS,
            data=data,
            duration_ms=duration_ms,
        )
