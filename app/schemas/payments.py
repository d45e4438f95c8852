from decimal import Decimal
from pydantic import BaseModel


class PaymentOrderCreate(BaseModel):
    bookingId: str
    amount: Decimal  # base unit (e.g. 2000.00 rupees)


class PaymentOrderOut(BaseModel):
    id: str
    bookingId: str
    amount: Decimal
    amountMinor: int  # what the checkout widget is given (paise)
    currency: str
    status: str
    gatewayOrderId: str
    keyId: str = ""


class VerifyPaymentRequest(BaseModel):
    orderId: str
    paymentId: str
    signature: str


class VerifyPaymentOut(BaseModel):
    status: str  # confirmed|failed
    bookingStatus: str
    replayed: bool = False
