"""Audit log model for tracking operator actions."""

from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func
from cleanflow.database import Base
from cleanflow.models.types import JSONType


class AuditLog(Base):
    """Audit trail for configuration changes, forced syncs and cleaning actions."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Action details
    action = Column(String(100), nullable=False)  # 'sync_forced', 'integration_config_saved', 'cleaning_started', ...
    entity_type = Column(String(50), nullable=True)  # 'location', 'mapping', 'integration_config'
    entity_id = Column(String(50), nullable=True)

    # User and context
    user = Column(String(100), nullable=True)
    details = Column(JSONType, nullable=True)

    # IP tracking (for web UI access audit)
    ip_address = Column(String(45), nullable=True)  # supports IPv6
    user_agent = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        Index('idx_audit_logs_action', 'action'),
        Index('idx_audit_logs_ip_created', 'ip_address', 'created_at'),
    )

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity='{self.entity_type}')>"
