"""Integration config model: singleton row describing the external system."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from cleanflow.database import Base
from cleanflow.models.types import JSONType

INTEGRATION_CONFIG_ID = "integration_settings"


class IntegrationConfig(Base):
    """External bed-management database connection and mapping configuration."""

    __tablename__ = "integration_config"

    id = Column(String(50), primary_key=True, default=INTEGRATION_CONFIG_ID)
    enabled = Column(Boolean, nullable=False, default=False)

    # Connection
    host = Column(String(255), nullable=False, default='')
    port = Column(Integer, nullable=False, default=5432)
    database = Column(String(255), nullable=False, default='')
    username = Column(String(255), nullable=False, default='')
    password = Column(Text, nullable=True)  # Encrypted

    # Fetch and transformation
    sync_interval = Column(Integer, nullable=False, default=5)  # minutes
    query = Column(Text, nullable=False)
    status_mappings = Column(JSONType, nullable=False)
    field_mappings = Column(JSONType, nullable=False)
    transformation = Column(JSONType, nullable=True)

    # Audit trail of the last run
    last_sync = Column(DateTime(timezone=True), nullable=True)
    last_sync_stats = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<IntegrationConfig(enabled={self.enabled}, host='{self.host}', interval={self.sync_interval})>"
