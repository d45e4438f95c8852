from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel
from typing import Optional

class BookingCreate(BaseModel):
    providerId: str
    bookingKind: str = "hourly"  # hourly|full_day
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    durationHours: Optional[Decimal] = None
    bookingDate: Optional[date] = None  # full_day only
    notes: Optional[str] = None

class QuoteRequest(BaseModel):
    providerId: str
    bookingKind: str = "hourly"
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    durationHours: Optional[Decimal] = None
    bookingDate: Optional[date] = None

class QuoteOut(BaseModel):
    amount: Decimal
    currency: str
    durationLabel: str
    durationHours: int
    windowStart: datetime
    windowEnd: datetime

class PaymentSummary(BaseModel):
    status: str
    gatewayOrderId: str
    amount: Decimal

class BookingOut(BaseModel):
    id: str
    providerId: str
    clientId: str
    bookingKind: str
    kindLabel: str = ""
    durationLabel: str = ""
    windowStart: datetime
    windowEnd: datetime
    durationHours: int
    hourlyRate: Decimal
    dailyRate: Decimal
    totalAmount: Decimal
    currency: str
    status: str
    notes: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime
    payment: Optional[PaymentSummary] = None
