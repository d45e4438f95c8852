import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import LoginRequest, RegisterRequest, TokenPair
from app.models.enums import Role
from app.models.user import User
from app.core.security import REFRESH, verify_password, hash_password, create_access_token, create_refresh_token, token_subject
from app.api.deps import get_current_user

router = APIRouter(tags=["auth"])


def _tokens(user: User) -> TokenPair:
    return TokenPair(access_token=create_access_token(user.id), refresh_token=create_refresh_token(user.id))


def _active_user(db: Session, user_id: str | None) -> User:
    user = db.get(User, user_id) if user_id else None
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


@router.post("/auth/register", response_model=TokenPair, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Self-service sign-up; always a customer account."""
    email = body.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Valid email is required")
    if len(body.password) < 8:
        raise HTTPException(status_code=400, detail="Password too short")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=body.fullName.strip(),
        preferable_area=(body.preferableArea or "").strip(),
        role=Role.CUSTOMER.value,
        password_hash=hash_password(body.password),
    )
    db.add(user)
    db.commit()
    return _tokens(user)


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    # Same answer for unknown email and wrong password
    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _tokens(user)


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(refresh_token: str, db: Session = Depends(get_db)):
    user_id = token_subject(refresh_token, REFRESH)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    return _tokens(_active_user(db, user_id))


@router.get("/auth/me")
def me(me: User = Depends(get_current_user)):
    return {
        "id": me.id,
        "email": me.email,
        "fullName": me.full_name or "",
        "preferableArea": me.preferable_area or "",
        "role": me.role,
    }
