import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles, engine_error
from app.api.v1.routes.bookings import booking_out
from app.api.v1.routes.providers import application_out, provider_out
from app.models.booking import Booking
from app.models.enums import ApplicationStatus, Role
from app.models.provider import Provider
from app.models.provider_application import ProviderApplication
from app.models.user import User
from app.core.security import hash_password
from app.schemas.auth import AdminUserCreate
from app.schemas.provider import ProviderUpdate
from app.services.audit_service import entity_history, log_audit
from app.services.booking_service import reject_booking

router = APIRouter(tags=["admin"])


@router.post("/admin/users", status_code=201)
def create_user(body: AdminUserCreate, db: Session = Depends(get_db),
                me: User = Depends(require_roles("admin"))):
    """Staff and provider accounts; customers sign up themselves."""
    email = body.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Valid email is required")
    if body.role not in {r.value for r in Role}:
        raise HTTPException(status_code=400, detail="invalid role")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="email already exists")
    password = body.tempPassword or uuid.uuid4().hex[:12]
    u = User(id=str(uuid.uuid4()), email=email, full_name=body.fullName, role=body.role,
             password_hash=hash_password(password))
    db.add(u)
    log_audit(db, actor_user_id=me.id, action="user.created", entity_type="user", entity_id=u.id, details={"role": body.role})
    db.commit()
    # Generated passwords are shown once
    return {"id": u.id, "email": u.email, "role": u.role, "tempPassword": None if body.tempPassword else password}


@router.post("/admin/bookings/{booking_id}/reject")
def reject(booking_id: str, db: Session = Depends(get_db),
           me: User = Depends(require_roles("admin", "provider"))):
    """Admins reject any pending booking; provider accounts only their own."""
    try:
        b = reject_booking(db, booking_id, actor=me)
    except ValueError as e:
        raise engine_error(e)
    return booking_out(b)


@router.get("/admin/bookings/{booking_id}/history")
def booking_history(booking_id: str, db: Session = Depends(get_db),
                    me: User = Depends(require_roles("admin"))):
    if not db.get(Booking, booking_id):
        raise HTTPException(status_code=404, detail="Not found")
    return entity_history(db, "booking", booking_id)


@router.get("/admin/provider-applications")
def list_applications(status: str | None = "pending", db: Session = Depends(get_db),
                      me: User = Depends(require_roles("admin"))):
    query = db.query(ProviderApplication)
    if status:
        query = query.filter(ProviderApplication.status == status)
    return [application_out(a) for a in query.order_by(ProviderApplication.created_at.asc()).all()]


def _pending_application(db: Session, application_id: str) -> ProviderApplication:
    a = db.get(ProviderApplication, application_id)
    if not a:
        raise HTTPException(status_code=404, detail="Application not found")
    if a.status != ApplicationStatus.PENDING.value:
        raise HTTPException(status_code=409, detail=f"Application already {a.status}")
    return a


@router.post("/admin/provider-applications/{application_id}/approve")
def approve_application(application_id: str, db: Session = Depends(get_db),
                        me: User = Depends(require_roles("admin"))):
    a = _pending_application(db, application_id)
    p = Provider(
        id=str(uuid.uuid4()),
        name=a.full_name,
        age=a.age,
        gender=a.gender,
        phone_number=a.phone_number,
        email_address=a.email_address,
        height_cm=a.height_cm,
        weight_kg=a.weight_kg,
        years_experience=a.years_experience,
        specialization=a.specialization,
        base_city=a.base_city,
        government_id_url=a.government_id_url,
        hourly_rate=a.hourly_rate,
        daily_rate=a.daily_rate,
        is_available=True,
        rating=0.0,
    )
    db.add(p)
    a.status = ApplicationStatus.APPROVED.value
    a.provider_id = p.id
    log_audit(db, actor_user_id=me.id, action="provider_application.approved", entity_type="provider_application",
              entity_id=a.id, details={"provider_id": p.id})
    db.commit()
    return application_out(a)


@router.post("/admin/provider-applications/{application_id}/reject")
def reject_application(application_id: str, db: Session = Depends(get_db),
                       me: User = Depends(require_roles("admin"))):
    a = _pending_application(db, application_id)
    a.status = ApplicationStatus.REJECTED.value
    log_audit(db, actor_user_id=me.id, action="provider_application.rejected", entity_type="provider_application", entity_id=a.id)
    db.commit()
    return application_out(a)


@router.patch("/admin/providers/{provider_id}")
def update_provider(provider_id: str, body: ProviderUpdate, db: Session = Depends(get_db),
                    me: User = Depends(require_roles("admin"))):
    """Edit rates/availability. Existing bookings keep their rate snapshot."""
    p = db.get(Provider, provider_id)
    if not p:
        raise HTTPException(status_code=404, detail="Not found")
    changes = body.model_dump(exclude_none=True)
    if "hourlyRate" in changes:
        p.hourly_rate = body.hourlyRate
    if "dailyRate" in changes:
        p.daily_rate = body.dailyRate
    if "isAvailable" in changes:
        p.is_available = body.isAvailable
    if "userId" in changes:
        linked = db.get(User, body.userId)
        if not linked or linked.role != Role.PROVIDER.value:
            raise HTTPException(status_code=400, detail="userId must be a provider account")
        p.user_id = linked.id
    log_audit(db, actor_user_id=me.id, action="provider.updated", entity_type="provider", entity_id=p.id, details=changes)
    db.commit()
    return provider_out(p)
