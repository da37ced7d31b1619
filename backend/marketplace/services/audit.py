from sqlalchemy.orm import Session

from marketplace.auth import Actor
from marketplace.models.audit_event import AuditEvent


def record(db: Session, entity_type: str, entity_id: int, action: str, actor: Actor | None) -> AuditEvent:
    """
    Add an AuditEvent to the current session.
    The caller owns the transaction, so the event commits or rolls back with the change it describes.
    """
    event = AuditEvent(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor=actor.label if actor else "system",
    )
    db.add(event)
    return event
