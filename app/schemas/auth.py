from pydantic import BaseModel
from typing import Optional

class LoginRequest(BaseModel):
    email: str
    password: str

class RegisterRequest(BaseModel):
    email: str  # plain str to allow .local and other dev domains
    password: str
    fullName: str = ""
    preferableArea: Optional[str] = ""

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class AdminUserCreate(BaseModel):
    email: str
    fullName: str = ""
    role: str = "provider"  # customer|provider|admin
    tempPassword: Optional[str] = None
