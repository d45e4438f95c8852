import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError, OperationalError
from app.db.session import SessionLocal
from app.services import booking_service

logger = logging.getLogger(__name__)

def complete_elapsed_bookings(db: Session | None = None, now: datetime | None = None):
    own_session = db is None
    db = db or SessionLocal()
    try:
        try:
            done = booking_service.complete_elapsed_bookings(db, now or datetime.now(timezone.utc))
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
        if done:
            logger.info("bookings_completed", extra={"count": done})
        return {"completed": done}
    finally:
        if own_session:
            db.close()
