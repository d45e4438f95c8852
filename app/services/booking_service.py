import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.errors import (
    BookingNotFound,
    InvalidDuration,
    InvalidRequest,
    InvalidTransition,
    NotCancellable,
    PricingError,
    SchedulingConflict,
)
from app.models.booking import Booking
from app.models.enums import BookingKind, BookingStatus, PaymentStatus, Role
from app.models.payment import PaymentOrder
from app.models.provider import Provider
from app.models.types import utcnow
from app.models.user import User
from app.services.audit_service import log_audit
from app.services.availability_service import is_overlapping, lock_provider_schedule
from app.services.events import BookingChanged, publish
from app.services.pricing_service import RateCard, Timing, compute_price

logger = logging.getLogger(__name__)

S = BookingStatus
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.REJECTED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.COMPLETED}),
    S.REJECTED: frozenset(),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}


@dataclass
class BookingRequest:
    provider_id: str | None
    booking_kind: str | None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_hours: Decimal | None = None
    day: date | None = None
    notes: str | None = None


def assert_transition(current: str, target: BookingStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[BookingStatus(current)]:
        raise InvalidTransition(f"cannot move booking from {current} to {target.value}")


def _transition(db: Session, booking: Booking, target: BookingStatus, actor_id: str, details: dict | None = None) -> None:
    """Move ``booking`` to ``target`` if it is still in the status we read; no commit."""
    current = booking.status
    assert_transition(current, target)
    res = db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status == current)
        .values(status=target.value, updated_at=utcnow())
    )
    if res.rowcount != 1:
        db.refresh(booking)
        raise InvalidTransition(f"booking changed to {booking.status} concurrently")
    log_audit(db, actor_user_id=actor_id, action=f"booking.{target.value}", entity_type="booking",
              entity_id=booking.id, details={"from": current, **(details or {})})


def _validate_request(request: BookingRequest, client_id: str) -> BookingKind:
    if not client_id:
        raise InvalidRequest("an authenticated client is required")
    if not request.provider_id:
        raise InvalidRequest("provider is required")
    try:
        kind = BookingKind(request.booking_kind)
    except ValueError:
        raise InvalidRequest("booking kind must be 'hourly' or 'full_day'")
    if kind is BookingKind.HOURLY and request.start_time is None:
        raise InvalidRequest("start time is required for hourly bookings")
    if kind is BookingKind.FULL_DAY and request.day is None:
        raise InvalidRequest("date is required for full-day bookings")
    for value in (request.start_time, request.end_time):
        if value is not None and value.tzinfo is None:
            raise InvalidRequest("times must include a timezone offset")
    return kind


def create_booking(db: Session, request: BookingRequest, client_id: str, now: datetime | None = None) -> Booking:
    now = now or datetime.now(timezone.utc)
    kind = _validate_request(request, client_id)

    provider = db.get(Provider, request.provider_id)
    if not provider or not provider.is_available:
        raise InvalidRequest("provider is not available for booking")
    rate_card = RateCard(hourly_rate=Decimal(provider.hourly_rate), daily_rate=Decimal(provider.daily_rate))

    try:
        quote = compute_price(rate_card, kind, Timing(
            start_time=request.start_time,
            end_time=request.end_time,
            duration_hours=request.duration_hours,
            day=request.day,
        ))
    except InvalidDuration as e:
        raise PricingError(e.message)
    if quote.window_start < now:
        raise InvalidRequest("start time cannot be in the past")

    # Check-and-insert under the provider lock; released by commit/rollback
    try:
        if not lock_provider_schedule(db, provider.id):
            raise InvalidRequest("provider is not available for booking")
        if is_overlapping(db, provider.id, quote.window_start, quote.window_end):
            raise SchedulingConflict(
                "This provider is already booked during the selected time. Please choose a different time slot.",
                provider_id=provider.id,
            )
        booking = Booking(
            id=str(uuid.uuid4()),
            client_id=client_id,
            provider_id=provider.id,
            booking_kind=kind.value,
            window_start=quote.window_start,
            window_end=quote.window_end,
            duration_hours=quote.duration_hours,
            hourly_rate=rate_card.hourly_rate,
            daily_rate=rate_card.daily_rate,
            total_amount=quote.amount,
            currency=settings.CURRENCY,
            status=BookingStatus.PENDING.value,
            notes=(request.notes or None),
        )
        db.add(booking)
        log_audit(db, actor_user_id=client_id, action="booking.created", entity_type="booking", entity_id=booking.id,
                  details={"provider_id": provider.id, "amount": quote.amount, "kind": kind.value})
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info("booking_created", extra={"booking_id": booking.id, "provider_id": provider.id, "amount": str(quote.amount)})
    publish(BookingChanged(booking.id, booking.status))
    return booking


def get_client_booking(db: Session, booking_id: str, client_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b or b.client_id != client_id:
        raise BookingNotFound("booking not found", booking_id=booking_id, client_id=client_id)
    return b


def cancel_booking(db: Session, booking_id: str, actor_id: str, now: datetime | None = None) -> Booking:
    now = now or datetime.now(timezone.utc)
    b = db.get(Booking, booking_id)
    # Foreign and missing bookings answer the same way
    if not b or b.client_id != actor_id:
        raise NotCancellable("booking cannot be cancelled")
    if b.status != BookingStatus.PENDING.value:
        raise NotCancellable(f"only pending bookings can be cancelled (booking is {b.status})")
    if b.window_start <= now:
        raise NotCancellable("bookings that have already started cannot be cancelled")
    try:
        _transition(db, b, BookingStatus.CANCELLED, actor_id)
        db.commit()
    except InvalidTransition:
        db.rollback()
        raise NotCancellable("booking cannot be cancelled")
    db.refresh(b)
    publish(BookingChanged(b.id, b.status))
    return b


def confirm_booking(db: Session, booking: Booking, actor_id: str = "gateway") -> None:
    """pending -> confirmed. Payment verification only; the caller commits."""
    try:
        _transition(db, booking, BookingStatus.CONFIRMED, actor_id)
    except InvalidTransition:
        logger.error("booking_confirm_invalid_transition", extra={"booking_id": booking.id, "status": booking.status})
        raise


def mark_payment_failed(db: Session, booking: Booking, payment_id: str | None = None, signature: str | None = None) -> bool:
    """Fail the booking's open payment order; the booking stays pending so payment can be retried.

    Returns False when the order was no longer open. The caller commits.
    """
    res = db.execute(
        update(PaymentOrder)
        .where(PaymentOrder.booking_id == booking.id, PaymentOrder.status == PaymentStatus.CREATED.value)
        .values(status=PaymentStatus.FAILED.value, gateway_payment_id=payment_id,
                gateway_signature=signature, updated_at=utcnow())
    )
    if res.rowcount != 1:
        return False
    log_audit(db, actor_user_id="gateway", action="payment.failed", entity_type="booking", entity_id=booking.id,
              details={"payment_id": payment_id})
    return True


def reject_booking(db: Session, booking_id: str, actor: User) -> Booking:
    b = db.get(Booking, booking_id)
    if not b:
        raise BookingNotFound("booking not found", booking_id=booking_id)
    if actor.role != Role.ADMIN.value:
        provider = db.get(Provider, b.provider_id)
        if actor.role != Role.PROVIDER.value or not provider or provider.user_id != actor.id:
            raise BookingNotFound("booking not found", booking_id=booking_id, actor_id=actor.id)
    try:
        _transition(db, b, BookingStatus.REJECTED, actor.id)
        db.commit()
    except InvalidTransition:
        db.rollback()
        raise
    db.refresh(b)
    publish(BookingChanged(b.id, b.status))
    return b


def complete_elapsed_bookings(db: Session, now: datetime | None = None) -> int:
    """confirmed -> completed for every booking whose window has ended."""
    now = now or datetime.now(timezone.utc)
    due = db.execute(
        select(Booking).where(Booking.status == BookingStatus.CONFIRMED.value, Booking.window_end <= now)
    ).scalars().all()
    done = []
    for b in due:
        try:
            _transition(db, b, BookingStatus.COMPLETED, "system")
        except InvalidTransition:
            continue
        done.append(b.id)
    db.commit()
    for booking_id in done:
        publish(BookingChanged(booking_id, BookingStatus.COMPLETED.value))
    return len(done)


def list_client_bookings(db: Session, client_id: str) -> list[tuple[Booking, PaymentOrder | None]]:
    rows = db.execute(
        select(Booking, PaymentOrder)
        .outerjoin(PaymentOrder, PaymentOrder.booking_id == Booking.id)
        .where(Booking.client_id == client_id)
        .order_by(Booking.window_start.desc())
    ).all()
    return [(b, p) for b, p in rows]
