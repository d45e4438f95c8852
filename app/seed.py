import logging
import uuid
from decimal import Decimal

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.db.session import SessionLocal
from app.models.enums import Role
from app.models.provider import Provider
from app.models.user import User

logger = logging.getLogger(__name__)

# name, city, specialization, years, hourly, full day, rating
DEMO_PROVIDERS = [
    ("Arjun Rathore", "Mumbai", "Executive protection", 9, "800", "7500", 4.8),
    ("Meera Shekhawat", "Delhi", "Event security", 6, "650", "6000", 4.6),
    ("Vikram Sandhu", "Bengaluru", "Travel escort", 11, "900", "8500", 4.9),
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(id=str(uuid.uuid4()), email=email, full_name=name, role=role, password_hash=hash_password(password))
        db.add(user)
        db.flush()
    return user


def ensure_provider(db: Session, name: str, city: str, specialization: str, years: int,
                    hourly: str, daily: str, rating: float, user_id: str | None = None) -> Provider:
    provider = db.query(Provider).filter(Provider.name == name).first()
    if provider is None:
        provider = Provider(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            age=30 + years // 2,
            base_city=city,
            specialization=specialization,
            years_experience=years,
            hourly_rate=Decimal(hourly),
            daily_rate=Decimal(daily),
            rating=rating,
        )
        db.add(provider)
    return provider


def run(db: Session | None = None) -> None:
    db = db or SessionLocal()
    try:
        # Seeding before migrations must not crash the API
        if not inspect(db.get_bind()).has_table("users"):
            logger.warning("seed_skipped", extra={"reason": "tables missing, run alembic upgrade head"})
            return
        ensure_user(db, "admin@guardline.local", "admin12345", Role.ADMIN.value, "Admin")
        guard = ensure_user(db, "provider@guardline.local", "provider12345", Role.PROVIDER.value, DEMO_PROVIDERS[0][0])
        for i, row in enumerate(DEMO_PROVIDERS):
            ensure_provider(db, *row, user_id=guard.id if i == 0 else None)
        db.commit()
        logger.info("seed_done", extra={"providers": len(DEMO_PROVIDERS)})
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
