from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, Text, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.models.types import UTCDateTime, utcnow

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("window_end > window_start", name="ck_bookings_window_positive"),
        Index("ix_bookings_provider_window", "provider_id", "window_start", "window_end"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(36), index=True)
    provider_id: Mapped[str] = mapped_column(String(36), index=True)

    booking_kind: Mapped[str] = mapped_column(String(12), default="hourly")  # hourly|full_day
    window_start: Mapped[datetime] = mapped_column(UTCDateTime)
    window_end: Mapped[datetime] = mapped_column(UTCDateTime)
    duration_hours: Mapped[int] = mapped_column(Integer)  # billed whole hours

    # Rate card snapshot at creation time; provider rate edits never reprice a booking
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    currency: Mapped[str] = mapped_column(String(3), default="INR")

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, rejected, completed, cancelled
    notes: Mapped[str] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
