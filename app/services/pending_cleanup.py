"""Delete pending registrations whose OTP window has passed."""
import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from app.database import SessionLocal
from app.models.pending_registration import PendingRegistration

log = logging.getLogger("uvicorn.error")


def purge_expired_pending_registrations(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    deleted = (
        db.query(PendingRegistration)
        .filter(PendingRegistration.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def run_pending_registration_cleanup_job() -> None:
    """Scheduler entry point: sweep expired pending registrations."""
    db: Session = SessionLocal()
    try:
        deleted = purge_expired_pending_registrations(db)
        if deleted:
            log.info("Pending registration cleanup: deleted %d expired record(s).", deleted)
    finally:
        db.close()
