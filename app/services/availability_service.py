from datetime import datetime
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from app.models.booking import Booking
from app.models.enums import BookingStatus
from app.models.provider import Provider

# Only these hold a provider's time; rejected/cancelled/completed never block
BLOCKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


def windows_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    """Half-open [s, e) intervals: back-to-back windows do not overlap."""
    return s1 < e2 and s2 < e1


def query_bookings(
    db: Session,
    provider_id: str,
    status_in=BLOCKING_STATUSES,
    overlapping: tuple[datetime, datetime] | None = None,
) -> list[Booking]:
    stmt = select(Booking).where(
        Booking.provider_id == provider_id,
        Booking.status.in_([str(getattr(s, "value", s)) for s in status_in]),
    )
    if overlapping is not None:
        start, end = overlapping
        stmt = stmt.where(Booking.window_start < end, Booking.window_end > start)
    return list(db.execute(stmt.order_by(Booking.window_start)).scalars())


def is_overlapping(db: Session, provider_id: str, window_start: datetime, window_end: datetime) -> bool:
    return bool(query_bookings(db, provider_id, BLOCKING_STATUSES, (window_start, window_end)))


def lock_provider_schedule(db: Session, provider_id: str) -> bool:
    """Take the per-provider write lock for the rest of the transaction.

    A plain UPDATE is used instead of SELECT ... FOR UPDATE so SQLite
    serializes too (it ignores FOR UPDATE but takes its write lock here).
    Returns False when the provider does not exist.
    """
    res = db.execute(
        update(Provider)
        .where(Provider.id == provider_id)
        .values(schedule_version=Provider.schedule_version + 1)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


def busy_provider_ids(db: Session, now: datetime) -> set[str]:
    """Providers with a blocking booking whose window contains ``now`` (listing badge only)."""
    rows = db.execute(
        select(Booking.provider_id).where(
            Booking.status.in_(BLOCKING_STATUSES),
            Booking.window_start <= now,
            Booking.window_end > now,
        ).distinct()
    ).scalars()
    return set(rows)
