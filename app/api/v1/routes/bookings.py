from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user, engine_error
from app.models.booking import Booking
from app.models.payment import PaymentOrder
from app.models.user import User
from app.schemas.booking import BookingCreate, BookingOut, PaymentSummary
from app.services.booking_service import BookingRequest, cancel_booking, create_booking, list_client_bookings
from app.services.pricing_service import describe_booking_kind

router = APIRouter(tags=["bookings"])


def booking_out(b: Booking, payment: PaymentOrder | None = None) -> BookingOut:
    kind_label, duration = describe_booking_kind(b.window_start, b.window_end)
    return BookingOut(
        id=b.id,
        providerId=b.provider_id,
        clientId=b.client_id,
        bookingKind=b.booking_kind,
        kindLabel=kind_label,
        durationLabel=duration,
        windowStart=b.window_start,
        windowEnd=b.window_end,
        durationHours=b.duration_hours,
        hourlyRate=b.hourly_rate,
        dailyRate=b.daily_rate,
        totalAmount=b.total_amount,
        currency=b.currency,
        status=b.status,
        notes=b.notes,
        createdAt=b.created_at,
        updatedAt=b.updated_at,
        payment=PaymentSummary(status=payment.status, gatewayOrderId=payment.gateway_order_id, amount=payment.amount) if payment else None,
    )


@router.post("/bookings", response_model=BookingOut, status_code=201)
def create(body: BookingCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    try:
        booking = create_booking(db, BookingRequest(
            provider_id=body.providerId,
            booking_kind=body.bookingKind,
            start_time=body.startTime,
            end_time=body.endTime,
            duration_hours=body.durationHours,
            day=body.bookingDate,
            notes=body.notes,
        ), client_id=me.id)
    except ValueError as e:
        raise engine_error(e)
    return booking_out(booking)


@router.get("/bookings/mine", response_model=list[BookingOut])
def my_bookings(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return [booking_out(b, p) for b, p in list_client_bookings(db, me.id)]


@router.post("/bookings/{booking_id}/cancel")
def cancel(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    try:
        b = cancel_booking(db, booking_id, actor_id=me.id)
    except ValueError as e:
        raise engine_error(e)
    return {"ok": True, "id": b.id, "status": b.status}
