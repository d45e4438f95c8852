from decimal import Decimal
from sqlalchemy import BigInteger, String, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.models.types import UTCDateTime, utcnow

class PaymentOrder(Base):
    __tablename__ = "payment_orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    client_id: Mapped[str] = mapped_column(String(36), index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))  # base unit (rupees)
    amount_minor: Mapped[int] = mapped_column(BigInteger)    # gateway unit (paise)
    currency: Mapped[str] = mapped_column(String(3), default="INR")
    status: Mapped[str] = mapped_column(String(20), default="created", index=True)  # created, success, failed

    gateway_order_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    gateway_payment_id: Mapped[str] = mapped_column(String(64), nullable=True)
    gateway_signature: Mapped[str] = mapped_column(String(128), nullable=True)
    receipt: Mapped[str] = mapped_column(String(64), default="")

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
