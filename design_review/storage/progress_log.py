"""SQL-backed stage progress log."""

from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from design_review.exceptions import ProgressLogError
from design_review.models import StageName, StageStatus
from design_review.storage.models import StageLogRecord

logger = structlog.get_logger(__name__)

RUNNING = "running"

_json_adapter = TypeAdapter(Any)


def to_json_data(data: Any) -> Any:
    """JSON-compatible form of a stage payload (pydantic models included)."""
    if data is None:
        return None
    return _json_adapter.dump_python(data, mode="json")


class SqlProgressLogStore:
    """Appends one ``analysis_stage_logs`` row per stage attempt."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def log_stage_start(self, run_id: str, stage: StageName) -> None:
        try:
            with self._session_factory() as session:
                session.add(
                    StageLogRecord(
                        run_id=run_id,
                        stage_name=stage.value,
                        stage_status=RUNNING,
                        started_at=datetime.utcnow(),
                    )
                )
                session.commit()
        except SQLAlchemyError as e:
            raise ProgressLogError(f"Failed to log start of {stage.value}: {e}") from e

    def log_stage_completion(
        self,
        run_id: str,
        stage: StageName,
        status: StageStatus,
        data: Any,
        duration_ms: float,
        error: Optional[str] = None,
    ) -> None:
        """Close the newest running row for (run, stage), or insert one."""
        try:
            output = to_json_data(data)
            with self._session_factory() as session:
                record = (
                    session.query(StageLogRecord)
                    .filter(
                        StageLogRecord.run_id == run_id,
                        StageLogRecord.stage_name == stage.value,
                        StageLogRecord.stage_status == RUNNING,
                    )
                    .order_by(StageLogRecord.id.desc())
                    .first()
                )
                if record is None:
                    record = StageLogRecord(run_id=run_id, stage_name=stage.value)
                    session.add(record)

                record.stage_status = status.value
                record.completed_at = datetime.utcnow()
                record.duration_ms = duration_ms
                record.output_data = output
                record.error_data = error
                session.commit()
        except (SQLAlchemyError, ValueError, TypeError) as e:
            raise ProgressLogError(f"Failed to log completion of {stage.value}: {e}") from e

    def get_stage_logs(self, run_id: str) -> list[StageLogRecord]:
        """All rows for a run in insertion order."""
        try:
            with self._session_factory() as session:
                records = (
                    session.query(StageLogRecord)
                    .filter(StageLogRecord.run_id == run_id)
                    .order_by(StageLogRecord.id)
                    .all()
                )
                session.expunge_all()
                return records
        except SQLAlchemyError as e:
            raise ProgressLogError(f"Failed to read logs for {run_id}: {e}") from e
