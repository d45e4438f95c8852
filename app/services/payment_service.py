"""Payment orders and gateway callback verification.

Money is handled in the base currency unit (rupees, 2 decimal places) until a
gateway order is opened; ``to_minor_units`` is the only place it becomes an
integer amount of paise.
"""
import hashlib
import hmac
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.errors import (
    AmountMismatch,
    BookingNotFound,
    InvalidRequest,
    InvalidTransition,
    OrderNotFound,
)
from app.models.booking import Booking
from app.models.enums import BookingStatus, PaymentStatus
from app.models.payment import PaymentOrder
from app.models.types import utcnow
from app.services.audit_service import log_audit
from app.services.booking_service import confirm_booking, mark_payment_failed
from app.services.events import BookingChanged, publish
from app.services.razorpay_client import RazorpayClient, RazorpayConfig, RazorpayError

logger = logging.getLogger(__name__)

# Terminal order status -> what the caller is told
OUTCOMES: dict[PaymentStatus, str] = {
    PaymentStatus.SUCCESS: "confirmed",
    PaymentStatus.FAILED: "failed",
}


@dataclass(frozen=True)
class VerificationResult:
    status: str  # confirmed|failed
    booking_status: str
    replayed: bool = False


def to_minor_units(amount: Decimal) -> int:
    """Base unit -> gateway unit (rupees -> paise)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def receipt_for(booking_id: str) -> str:
    # Razorpay caps receipts at 40 characters
    return f"bk_{booking_id.replace('-', '')}"


def expected_signature(secret: str, order_id: str, payment_id: str) -> str:
    msg = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), msg, hashlib.sha256).hexdigest()


def signature_matches(secret: str, order_id: str, payment_id: str, supplied: str) -> bool:
    if not secret or not supplied:
        return False
    expected = expected_signature(secret, order_id, payment_id)
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


def default_gateway() -> RazorpayClient:
    if not settings.RAZORPAY_SANDBOX and not (settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET):
        raise RazorpayError("Razorpay is not configured (missing env vars)")
    return RazorpayClient(RazorpayConfig(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        api_base=settings.RAZORPAY_API_BASE,
        timeout=settings.RAZORPAY_TIMEOUT,
        sandbox=settings.RAZORPAY_SANDBOX,
    ))


def _parse_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidRequest("amount must be a number")
    if not value.is_finite() or value <= 0:
        raise InvalidRequest("amount must be greater than zero")
    return value


def create_payment_order(db: Session, booking_id: str, amount, client_id: str, gateway: RazorpayClient) -> PaymentOrder:
    b = db.get(Booking, booking_id)
    if not b or b.client_id != client_id:
        raise BookingNotFound("booking not found", booking_id=booking_id, client_id=client_id)
    requested = _parse_amount(amount)
    if b.status != BookingStatus.PENDING.value:
        raise InvalidTransition(f"booking is {b.status}, not awaiting payment")

    if abs(Decimal(b.total_amount) - requested) > settings.AMOUNT_TOLERANCE:
        details = {"booking_id": b.id, "client_id": client_id, "requested": str(requested), "total": str(b.total_amount)}
        logger.warning("payment_amount_mismatch", extra=details)
        log_audit(db, actor_user_id=client_id, action="payment.amount_mismatch", entity_type="booking",
                  entity_id=b.id, details=details)
        db.commit()
        raise AmountMismatch("payment amount does not match booking total", **details)

    order = db.execute(select(PaymentOrder).where(PaymentOrder.booking_id == b.id)).scalar_one_or_none()
    if order and order.status == PaymentStatus.SUCCESS.value:
        raise InvalidTransition("booking is already paid")
    read_gateway_order_id = order.gateway_order_id if order else None

    # Always the stored total, never the client's figure
    amount_minor = to_minor_units(b.total_amount)
    receipt = receipt_for(b.id)
    gw = gateway.create_order(
        amount_minor=amount_minor,
        currency=b.currency,
        receipt=receipt,
        notes={"booking_id": b.id, "client_id": client_id},
    )
    gateway_order_id = str(gw.get("id") or "")
    if not gateway_order_id:
        raise RazorpayError("Razorpay returned no order id")

    now = utcnow()
    values = dict(
        amount=Decimal(b.total_amount),
        amount_minor=amount_minor,
        currency=b.currency,
        status=PaymentStatus.CREATED.value,
        gateway_order_id=gateway_order_id,
        gateway_payment_id=None,
        gateway_signature=None,
        receipt=str(gw.get("receipt") or receipt),
        updated_at=now,
    )
    try:
        if order is None:
            order = PaymentOrder(id=str(uuid.uuid4()), booking_id=b.id, client_id=client_id, created_at=now, **values)
            db.add(order)
            db.flush()
        else:
            # Reopen only the order we read; a verification may have settled it during the gateway call
            res = db.execute(
                update(PaymentOrder)
                .where(
                    PaymentOrder.id == order.id,
                    PaymentOrder.status.in_([PaymentStatus.CREATED.value, PaymentStatus.FAILED.value]),
                    PaymentOrder.gateway_order_id == read_gateway_order_id,
                )
                .values(**values)
            )
            if res.rowcount != 1:
                db.rollback()
                logger.warning("payment_order_reopen_lost",
                               extra={"booking_id": b.id, "gateway_order_id": gateway_order_id})
                raise InvalidTransition("the payment order changed while a new one was being opened")
        log_audit(db, actor_user_id=client_id, action="payment.order_created", entity_type="booking", entity_id=b.id,
                  details={"gateway_order_id": gateway_order_id, "amount_minor": amount_minor})
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidTransition("a payment order for this booking is already being created")
    db.refresh(order)
    logger.info("payment_order_created", extra={"booking_id": b.id, "gateway_order_id": gateway_order_id})
    return order


def _prior_outcome(db: Session, order: PaymentOrder) -> VerificationResult:
    b = db.get(Booking, order.booking_id)
    return VerificationResult(
        status=OUTCOMES[PaymentStatus(order.status)],
        booking_status=b.status if b else "",
        replayed=True,
    )


def verify_payment(
    db: Session,
    order_id: str,
    payment_id: str,
    signature: str,
    client_id: str,
    secret: str | None = None,
) -> VerificationResult:
    if not order_id or not payment_id or not signature:
        raise InvalidRequest("missing required payment parameters")
    secret = settings.RAZORPAY_KEY_SECRET if secret is None else secret

    order = db.execute(
        select(PaymentOrder).where(PaymentOrder.gateway_order_id == order_id, PaymentOrder.client_id == client_id)
    ).scalar_one_or_none()
    if not order:
        raise OrderNotFound("payment order not found", order_id=order_id, client_id=client_id)
    if order.status != PaymentStatus.CREATED.value:
        return _prior_outcome(db, order)
    b = db.get(Booking, order.booking_id)
    if not b:
        raise OrderNotFound("payment order not found", order_id=order_id, client_id=client_id)

    valid = signature_matches(secret, order_id, payment_id, signature)
    try:
        if valid:
            res = db.execute(
                update(PaymentOrder)
                .where(PaymentOrder.id == order.id, PaymentOrder.status == PaymentStatus.CREATED.value)
                .values(status=PaymentStatus.SUCCESS.value, gateway_payment_id=payment_id,
                        gateway_signature=signature, updated_at=utcnow())
            )
            claimed = res.rowcount == 1
            if claimed:
                confirm_booking(db, b)
                log_audit(db, actor_user_id=client_id, action="payment.success", entity_type="booking",
                          entity_id=b.id, details={"order_id": order_id, "payment_id": payment_id})
        else:
            claimed = mark_payment_failed(db, b, payment_id=payment_id, signature=signature)
            if claimed:
                log_audit(db, actor_user_id=client_id, action="payment.signature_mismatch", entity_type="booking",
                          entity_id=b.id, details={"order_id": order_id, "payment_id": payment_id})
        if not claimed:
            # Another verification finished first
            db.rollback()
            db.refresh(order)
            return _prior_outcome(db, order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if valid:
        logger.info("payment_verified", extra={"order_id": order_id, "booking_id": b.id})
    else:
        logger.warning("payment_signature_mismatch",
                       extra={"order_id": order_id, "payment_id": payment_id, "client_id": client_id, "booking_id": b.id})
    db.refresh(b)
    publish(BookingChanged(b.id, b.status))
    return VerificationResult(status=OUTCOMES[PaymentStatus.SUCCESS if valid else PaymentStatus.FAILED], booking_status=b.status)
