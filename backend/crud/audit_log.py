import logging

from sqlalchemy.orm import Session
from models.audit_log import AuditLog
from schemas.audit_log import AuditLogCreate

logger = logging.getLogger("audit_log")


def create_audit_log(db: Session, log_entry: AuditLogCreate):
    db_log_entry = AuditLog(**log_entry.model_dump())
    db.add(db_log_entry)
    db.commit()
    db.refresh(db_log_entry)
    return db_log_entry


def record_change(db: Session, table_name: str, record_id: int, action: str, user_id: str,
                  tenant_id: str, old_values=None, new_values=None):
    """Write an audit row after the business change has been committed.

    A failure here must not undo the committed document, so it is logged
    and the session is rolled back to a clean state.
    """
    try:
        log_entry = AuditLogCreate(
            table_name=table_name,
            record_id=record_id,
            changed_by=user_id,
            action=action,
            old_values=old_values or {},
            new_values=new_values or {},
            tenant_id=tenant_id,
        )
        return create_audit_log(db, log_entry)
    except Exception:
        logger.exception(f"Could not write audit log for {table_name}#{record_id} ({action})")
        db.rollback()
        return None
