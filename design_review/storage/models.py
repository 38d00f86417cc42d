"""
ORM records for pipeline configuration and stage progress.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text

from design_review.storage.database import Base


class PipelineConfigurationRecord(Base):
    __tablename__ = "pipeline_configurations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    stages = Column(JSON, nullable=False, default=list)
    weights = Column(JSON, nullable=False, default=dict)
    thresholds = Column(JSON, nullable=False, default=dict)
    enabled = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<PipelineConfigurationRecord(name={self.name!r}, version={self.version}, enabled={self.enabled})>"


class StageLogRecord(Base):
    __tablename__ = "analysis_stage_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(64), nullable=False, index=True)
    stage_name = Column(String(50), nullable=False)
    stage_status = Column(String(20), nullable=False, default="running")
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    duration_ms = Column(Float, nullable=True)
    output_data = Column(JSON, nullable=True)
    error_data = Column(Text, nullable=True)

    def __repr__(self):
        return f"<StageLogRecord(run_id={self.run_id!r}, stage={self.stage_name!r}, status={self.stage_status!r})>"
