"""SQL-backed pipeline configuration store."""

from typing import Optional

import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from design_review.exceptions import ConfigurationError
from design_review.models import PipelineConfiguration, StageSpec
from design_review.storage.models import PipelineConfigurationRecord

logger = structlog.get_logger(__name__)


def record_to_configuration(record: PipelineConfigurationRecord) -> PipelineConfiguration:
    return PipelineConfiguration(
        name=record.name,
        description=record.description or "",
        stages=tuple(StageSpec.model_validate(stage) for stage in record.stages or []),
        weights=dict(record.weights or {}),
        thresholds=dict(record.thresholds or {}),
        enabled=record.enabled,
        version=record.version,
    )


class SqlConfigurationStore:
    """Reads and writes ``pipeline_configurations`` rows."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, name: str) -> Optional[PipelineConfiguration]:
        """Return the enabled configuration called ``name``, else None.

        Raises:
            ConfigurationError: On database failure or an unreadable record.
        """
        try:
            with self._session_factory() as session:
                record = (
                    session.query(PipelineConfigurationRecord)
                    .filter(PipelineConfigurationRecord.name == name)
                    .first()
                )
                if record is None:
                    logger.debug("configuration_not_found", name=name)
                    return None
                if not record.enabled:
                    logger.debug("configuration_disabled", name=name)
                    return None
                return record_to_configuration(record)
        except SQLAlchemyError as e:
            raise ConfigurationError(f"Failed to read configuration {name!r}: {e}") from e
        except ValidationError as e:
            raise ConfigurationError(f"Stored configuration {name!r} is invalid: {e}") from e

    def save(self, configuration: PipelineConfiguration) -> None:
        """Insert or replace the configuration with the same name."""
        stages = [stage.model_dump(mode="json") for stage in configuration.stages]
        try:
            with self._session_factory() as session:
                record = (
                    session.query(PipelineConfigurationRecord)
                    .filter(PipelineConfigurationRecord.name == configuration.name)
                    .first()
                )
                if record is None:
                    record = PipelineConfigurationRecord(name=configuration.name)
                    session.add(record)
                record.description = configuration.description
                record.stages = stages
                record.weights = dict(configuration.weights)
                record.thresholds = dict(configuration.thresholds)
                record.enabled = configuration.enabled
                record.version = configuration.version
                session.commit()
        except SQLAlchemyError as e:
            raise ConfigurationError(
                f"Failed to save configuration {configuration.name!r}: {e}"
            ) from e

        logger.info("configuration_saved", name=configuration.name, version=configuration.version)
