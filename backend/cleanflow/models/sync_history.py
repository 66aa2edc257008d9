"""Sync history model for tracking synchronization executions."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from cleanflow.database import Base
from cleanflow.models.types import JSONType


class SyncHistory(Base):
    """Append-only record of one sync run."""

    __tablename__ = "sync_history"

    id = Column(Integer, primary_key=True, index=True)
    sync_id = Column(String(50), nullable=False, unique=True, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    type = Column(String(20), nullable=False, default='manual')  # 'manual', 'scheduled'
    success = Column(Boolean, nullable=False)

    # {total, updated, created, skipped, errors}
    stats = Column(JSONType, nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # milliseconds
    error = Column(Text, nullable=True)

    # {host, database} the run talked to
    target = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SyncHistory(sync_id='{self.sync_id}', type='{self.type}', success={self.success})>"
