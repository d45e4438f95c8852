import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user, engine_error
from app.core.config import settings
from app.models.user import User
from app.schemas.payments import PaymentOrderCreate, PaymentOrderOut, VerifyPaymentRequest, VerifyPaymentOut
from app.services.payment_service import create_payment_order, default_gateway, verify_payment
from app.services.razorpay_client import RazorpayError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post("/payments/orders", response_model=PaymentOrderOut, status_code=201)
def create_order(body: PaymentOrderCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    try:
        order = create_payment_order(db, body.bookingId, body.amount, client_id=me.id, gateway=default_gateway())
    except RazorpayError as e:
        logger.error("razorpay_order_failed", extra={"booking_id": body.bookingId, "error": str(e)})
        raise HTTPException(status_code=502, detail="Payment gateway is unavailable. Please try again.")
    except ValueError as e:
        raise engine_error(e)
    return PaymentOrderOut(
        id=order.id,
        bookingId=order.booking_id,
        amount=order.amount,
        amountMinor=order.amount_minor,
        currency=order.currency,
        status=order.status,
        gatewayOrderId=order.gateway_order_id,
        keyId=settings.RAZORPAY_KEY_ID,
    )


@router.post("/payments/verify", response_model=VerifyPaymentOut)
def verify(body: VerifyPaymentRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    try:
        result = verify_payment(db, body.orderId, body.paymentId, body.signature, client_id=me.id)
    except ValueError as e:
        raise engine_error(e)
    return VerifyPaymentOut(status=result.status, bookingStatus=result.booking_status, replayed=result.replayed)
