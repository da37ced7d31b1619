"""Admin/demo endpoints: audit trail and reset for a fresh demo."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from marketplace.auth import Actor, require_roles
from marketplace.database import engine, get_db
from marketplace.models.audit_event import AuditEvent
from marketplace.models.base import Base
from marketplace.models.profile import Role
import marketplace.models  # noqa: F401
from marketplace.schemas.audit import AuditEventResponse
from marketplace.services.file_service import clear_uploads

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/audit", response_model=list[AuditEventResponse])
def list_audit_events(
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int = 200,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
):
    q = db.query(AuditEvent)
    if entity_type:
        q = q.filter(AuditEvent.entity_type == entity_type)
    if entity_id is not None:
        q = q.filter(AuditEvent.entity_id == entity_id)
    return q.order_by(AuditEvent.id.asc()).limit(limit).all()


@router.post("/reset")
def reset_demo(actor: Actor = Depends(require_roles(Role.ADMIN))):
    """Clear every table and uploaded file for a fresh demo."""
    if engine.dialect.name == "postgresql":
        # Terminate other DB connections so we can drop tables without waiting for locks.
        try:
            with engine.connect() as conn:
                conn.execute(text("""
                    SELECT pg_terminate_backend(pid) FROM pg_stat_activity
                    WHERE datname = current_database() AND pid <> pg_backend_pid()
                """))
                conn.commit()
        except Exception as e:
            logger.warning("Could not terminate other connections: %s. Proceeding anyway.", e)
        engine.dispose()
        # Raw DROP ... CASCADE in one connection so we never wait on pool/lock ordering.
        with engine.connect() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(text(f'DROP TABLE IF EXISTS "{table.name}" CASCADE'))
            conn.commit()
    else:
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    removed = clear_uploads()
    logger.info("reset_demo: tables recreated, %s uploads removed", removed)
    return {"status": "ok", "message": "All data and uploads cleared."}
