import uuid
from datetime import datetime, timezone
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import engine_error
from app.core.config import settings
from app.core.errors import InvalidDuration
from app.models.provider import Provider
from app.models.provider_application import ProviderApplication
from app.schemas.booking import QuoteRequest, QuoteOut
from app.schemas.provider import ProviderOut, ProviderApplicationIn, ProviderApplicationOut
from app.services.audit_service import log_audit
from app.services.availability_service import busy_provider_ids
from app.services.pricing_service import RateCard, Timing, compute_price

router = APIRouter(tags=["providers"])


def provider_out(p: Provider, busy: bool = False) -> ProviderOut:
    return ProviderOut(
        id=p.id,
        name=p.name,
        age=p.age,
        gender=p.gender,
        yearsExperience=p.years_experience,
        specialization=p.specialization,
        baseCity=p.base_city,
        heightCm=p.height_cm,
        weightKg=p.weight_kg,
        hourlyRate=p.hourly_rate,
        dailyRate=p.daily_rate,
        photoUrl=p.photo_url,
        rating=p.rating or 0.0,
        isAvailable=p.is_available,
        busy=busy,
    )


def application_out(a: ProviderApplication) -> ProviderApplicationOut:
    return ProviderApplicationOut(
        id=a.id,
        fullName=a.full_name,
        baseCity=a.base_city,
        hourlyRate=a.hourly_rate,
        fullDayRate=a.daily_rate,
        status=a.status,
        providerId=a.provider_id,
    )


@router.get("/public/providers", response_model=list[ProviderOut])
def list_providers(city: str | None = None, db: Session = Depends(get_db)):
    """Available providers, best rated first. ``busy`` is advisory: someone is on duty right now."""
    q = db.query(Provider).filter(Provider.is_available == True)
    if city:
        q = q.filter(Provider.base_city == city.strip())
    items = q.order_by(Provider.rating.desc()).all()
    busy = busy_provider_ids(db, datetime.now(timezone.utc))
    return [provider_out(p, busy=p.id in busy) for p in items]


@router.get("/public/providers/{provider_id}", response_model=ProviderOut)
def get_provider(provider_id: str, db: Session = Depends(get_db)):
    p = db.get(Provider, provider_id)
    if not p:
        raise HTTPException(status_code=404, detail="Not found")
    busy = busy_provider_ids(db, datetime.now(timezone.utc))
    return provider_out(p, busy=p.id in busy)


@router.post("/public/quote", response_model=QuoteOut)
def quote(body: QuoteRequest, db: Session = Depends(get_db)):
    """Price preview; same calculation the booking endpoint stores."""
    p = db.get(Provider, body.providerId)
    if not p:
        raise HTTPException(status_code=404, detail="Not found")
    try:
        q = compute_price(
            RateCard(hourly_rate=Decimal(p.hourly_rate), daily_rate=Decimal(p.daily_rate)),
            body.bookingKind,
            Timing(start_time=body.startTime, end_time=body.endTime, duration_hours=body.durationHours, day=body.bookingDate),
        )
    except InvalidDuration as e:
        raise engine_error(e)
    return QuoteOut(
        amount=q.amount,
        currency=settings.CURRENCY,
        durationLabel=q.duration_label,
        durationHours=q.duration_hours,
        windowStart=q.window_start,
        windowEnd=q.window_end,
    )


@router.post("/public/provider-applications", response_model=ProviderApplicationOut, status_code=201)
def submit_application(body: ProviderApplicationIn, db: Session = Depends(get_db)):
    a = ProviderApplication(
        id=str(uuid.uuid4()),
        full_name=body.fullName.strip(),
        age=body.age,
        gender=body.gender,
        phone_number=body.phoneNumber.strip(),
        email_address=(body.emailAddress or "").strip().lower() or None,
        height_cm=body.heightCm,
        weight_kg=body.weightKg,
        years_experience=body.yearsExperience,
        specialization=body.specialization,
        base_city=body.baseCity.strip(),
        hourly_rate=body.hourlyRate,
        daily_rate=body.fullDayRate,
        government_id_url=body.governmentIdUrl,
        status="pending",
    )
    db.add(a)
    log_audit(db, actor_user_id="public", action="provider_application.submitted", entity_type="provider_application", entity_id=a.id)
    db.commit()
    return application_out(a)
