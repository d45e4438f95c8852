from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.security import ACCESS, token_subject
from app.models.user import User

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    """The authenticated caller; every booking/payment operation is scoped to this user's id."""
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = token_subject(creds.credentials, ACCESS)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard

def engine_error(e: ValueError) -> HTTPException:
    """Map a booking/payment engine failure to the HTTP response shown to the caller."""
    to_detail = getattr(e, "to_detail", None)
    if to_detail is None:
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=e.http_status, detail=to_detail())
