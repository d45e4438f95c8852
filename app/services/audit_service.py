import json
import uuid
from sqlalchemy import select
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog

def log_audit(db: Session, actor_user_id: str, action: str, entity_type: str, entity_id: str, details: dict | None = None):
    # Added to the caller's transaction; commits or rolls back with the change it describes
    db.add(AuditLog(
        id=str(uuid.uuid4()),
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    ))

def entity_history(db: Session, entity_type: str, entity_id: str) -> list[dict]:
    rows = db.execute(
        select(AuditLog)
        .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at)
    ).scalars()
    return [
        {"action": r.action, "actorId": r.actor_user_id, "at": r.created_at.isoformat(), "details": json.loads(r.details_json or "{}")}
        for r in rows
    ]
