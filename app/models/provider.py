from decimal import Decimal
from sqlalchemy import String, Integer, Boolean, Float, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.models.types import UTCDateTime, utcnow

class Provider(Base):
    __tablename__ = "providers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=True)  # provider login, if any

    name: Mapped[str] = mapped_column(String(200))
    age: Mapped[int] = mapped_column(Integer, default=0)
    gender: Mapped[str] = mapped_column(String(10), default="Other")  # Male|Female|Other
    phone_number: Mapped[str] = mapped_column(String(30), default="")
    email_address: Mapped[str] = mapped_column(String(320), nullable=True)
    height_cm: Mapped[int] = mapped_column(Integer, default=0)
    weight_kg: Mapped[int] = mapped_column(Integer, default=0)
    years_experience: Mapped[int] = mapped_column(Integer, default=0)
    specialization: Mapped[str] = mapped_column(String(120), default="")
    base_city: Mapped[str] = mapped_column(String(120), default="", index=True)
    photo_url: Mapped[str] = mapped_column(String(512), nullable=True)
    government_id_url: Mapped[str] = mapped_column(String(512), default="")

    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    rating: Mapped[float] = mapped_column(Float, default=0.0)

    # Bumped under lock on every booking insert for this provider
    schedule_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
