from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from eduhouse.access.principal import Principal
from eduhouse.models.audit import AuditLog


def log_action(
    db: Session,
    *,
    actor: Principal | None,
    action: str,
    entity_type: str,
    entity_id: UUID | int | str | None = None,
    status: str = 'success',
    details: dict[str, Any] | None = None,
) -> AuditLog:
    audit = AuditLog(
        actor_id=actor.id if actor else None,
        actor_kind=actor.kind.value if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        status=status,
        details_json=_json_safe(details or {}),
    )
    db.add(audit)
    db.flush()
    return audit


def _json_safe(value: Any) -> Any:
    """
    Convert UUID and other non-JSON-serializable types into safe representations.
    """
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value
