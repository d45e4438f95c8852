from decimal import Decimal
from sqlalchemy import String, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.models.types import UTCDateTime, utcnow

class ProviderApplication(Base):
    __tablename__ = "provider_applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200))
    age: Mapped[int] = mapped_column(Integer)
    gender: Mapped[str] = mapped_column(String(10))
    phone_number: Mapped[str] = mapped_column(String(30))
    email_address: Mapped[str] = mapped_column(String(320), nullable=True)
    height_cm: Mapped[int] = mapped_column(Integer)
    weight_kg: Mapped[int] = mapped_column(Integer)
    years_experience: Mapped[int] = mapped_column(Integer)
    specialization: Mapped[str] = mapped_column(String(120))
    base_city: Mapped[str] = mapped_column(String(120))
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    daily_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    government_id_url: Mapped[str] = mapped_column(String(512))

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, approved, rejected
    provider_id: Mapped[str] = mapped_column(String(36), nullable=True)  # set on approval

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
