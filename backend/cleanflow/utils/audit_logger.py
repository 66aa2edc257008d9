"""Audit trail helper for operator actions."""

import logging
from typing import Optional, Dict, Any, Union

from fastapi import Request
from sqlalchemy.orm import Session

from cleanflow.models.audit_log import AuditLog
from cleanflow.utils.ip_extractor import get_client_ip, get_user_agent

log = logging.getLogger(__name__)


def create_audit_log(
    db: Session,
    request: Request,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[Union[int, str]] = None,
    user: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Record an operator action with the caller's IP address and user agent.

    Args:
        db: Database session
        request: incoming request, used for IP/user-agent extraction
        action: what happened, e.g. 'sync_forced', 'integration_config_saved',
            'mapping_created', 'cleaning_finished'
        entity_type: 'location', 'mapping' or 'integration_config'
        entity_id: identifier of the affected entity
        user: username performing the action
        details: extra JSON context (never secrets)
    """
    audit_log = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        user=user,
        details=details,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)
    )

    db.add(audit_log)
    db.commit()
    db.refresh(audit_log)

    log.debug(f"Audit: {action} on {entity_type}:{entity_id} by {user}")
    return audit_log
