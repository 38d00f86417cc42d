"""Unit tests for the SQL configuration store and progress log."""

import pytest
from sqlalchemy.pool import StaticPool

from design_review.exceptions import ConfigurationError, ProgressLogError
from design_review.models import (
    Annotation,
    AnnotationResult,
    PipelineConfiguration,
    StageName,
    StageSpec,
    StageStatus,
)
from design_review.pipeline.configuration import default_configuration, load_configuration
from design_review.storage import (
    SqlConfigurationStore,
    SqlProgressLogStore,
    create_engine_and_session,
    init_db,
)
from design_review.storage.models import PipelineConfigurationRecord


@pytest.fixture
def engine_and_sessions():
    engine, session_factory = create_engine_and_session("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine, session_factory
    engine.dispose()


@pytest.fixture
def session_factory(engine_and_sessions):
    return engine_and_sessions[1]


@pytest.fixture
def config_store(session_factory):
    return SqlConfigurationStore(session_factory)


@pytest.fixture
def log_store(session_factory):
    return SqlProgressLogStore(session_factory)


class TestSqlConfigurationStore:
    """Tests for SqlConfigurationStore."""

    def test_save_and_get(self, config_store):
        config_store.save(default_configuration())

        loaded = config_store.get("comprehensive_analysis")

        assert loaded == default_configuration()

    def test_missing(self, config_store):
        assert config_store.get("nope") is None

    def test_disabled_is_hidden(self, config_store):
        config_store.save(PipelineConfiguration(name="paused", enabled=False))
        assert config_store.get("paused") is None

    def test_save_replaces(self, config_store, session_factory):
        config_store.save(PipelineConfiguration(name="fast", version=1))
        config_store.save(
            PipelineConfiguration(
                name="fast",
                version=2,
                stages=(StageSpec(name=StageName.VISION, enabled=False),),
            )
        )

        loaded = config_store.get("fast")

        assert loaded.version == 2
        assert loaded.get_stage(StageName.VISION).enabled is False
        with session_factory() as session:
            assert session.query(PipelineConfigurationRecord).count() == 1

    def test_invalid_record_raises(self, config_store, session_factory):
        with session_factory() as session:
            session.add(
                PipelineConfigurationRecord(name="broken", stages=[{"name": "teleport"}])
            )
            session.commit()

        with pytest.raises(ConfigurationError):
            config_store.get("broken")

    def test_invalid_record_falls_back_to_default(self, config_store, session_factory):
        with session_factory() as session:
            session.add(PipelineConfigurationRecord(name="broken", stages=[{"name": "teleport"}]))
            session.commit()

        assert load_configuration(config_store, "broken") == default_configuration()

    def test_missing_tables_raise(self):
        _, session_factory = create_engine_and_session("sqlite://", poolclass=StaticPool)
        with pytest.raises(ConfigurationError):
            SqlConfigurationStore(session_factory).get("comprehensive_analysis")


class TestSqlProgressLogStore:
    """Tests for SqlProgressLogStore."""

    def test_start_then_completion(self, log_store, run_id):
        log_store.log_stage_start(run_id, StageName.VISION)
        log_store.log_stage_completion(
            run_id, StageName.VISION, StageStatus.SUCCESS, {"image_count": 1}, 12.5
        )

        logs = log_store.get_stage_logs(run_id)

        assert len(logs) == 1
        assert logs[0].stage_name == "vision"
        assert logs[0].stage_status == "success"
        assert logs[0].duration_ms == 12.5
        assert logs[0].output_data == {"image_count": 1}
        assert logs[0].completed_at is not None

    def test_running_row_before_completion(self, log_store, run_id):
        log_store.log_stage_start(run_id, StageName.ANNOTATION)
        assert log_store.get_stage_logs(run_id)[0].stage_status == "running"

    def test_completion_without_start_inserts(self, log_store, run_id):
        log_store.log_stage_completion(
            run_id, StageName.SYNTHESIS, StageStatus.ERROR, None, 3.0, "scoring failed"
        )

        logs = log_store.get_stage_logs(run_id)

        assert len(logs) == 1
        assert logs[0].stage_status == "error"
        assert logs[0].error_data == "scoring failed"
        assert logs[0].output_data is None

    def test_model_payload_serialized(self, log_store, run_id):
        data = AnnotationResult(annotations=[Annotation(id="a1", title="Contrast")])

        log_store.log_stage_completion(run_id, StageName.ANNOTATION, StageStatus.SUCCESS, data, 1.0)

        output = log_store.get_stage_logs(run_id)[0].output_data
        assert output["annotations"][0]["id"] == "a1"
        assert output["annotations"][0]["severity"] == "suggested"

    def test_runs_are_separate(self, log_store, run_id):
        log_store.log_stage_start(run_id, StageName.VISION)
        log_store.log_stage_start("other-run", StageName.VISION)
        assert len(log_store.get_stage_logs(run_id)) == 1

    def test_missing_tables_raise(self, run_id):
        _, session_factory = create_engine_and_session("sqlite://", poolclass=StaticPool)
        store = SqlProgressLogStore(session_factory)

        with pytest.raises(ProgressLogError):
            store.log_stage_start(run_id, StageName.VISION)
