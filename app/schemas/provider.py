from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional


class ProviderOut(BaseModel):
    id: str
    name: str
    age: int
    gender: str
    yearsExperience: int
    specialization: str
    baseCity: str
    heightCm: int
    weightKg: int
    hourlyRate: Decimal
    dailyRate: Decimal
    photoUrl: Optional[str] = None
    rating: float
    isAvailable: bool
    busy: bool = False


class ProviderUpdate(BaseModel):
    hourlyRate: Optional[Decimal] = Field(default=None, gt=0)
    dailyRate: Optional[Decimal] = Field(default=None, gt=0)
    isAvailable: Optional[bool] = None
    userId: Optional[str] = None


class ProviderApplicationIn(BaseModel):
    fullName: str = Field(min_length=1)
    age: int = Field(ge=18, le=80)
    gender: str = Field(pattern="^(Male|Female|Other)$")
    phoneNumber: str = Field(min_length=6)
    emailAddress: Optional[str] = None
    heightCm: int = Field(gt=0)
    weightKg: int = Field(gt=0)
    yearsExperience: int = Field(ge=0)
    specialization: str
    baseCity: str
    hourlyRate: Decimal = Field(gt=0)
    fullDayRate: Decimal = Field(gt=0)
    governmentIdUrl: str = Field(min_length=1)  # already-uploaded document URL


class ProviderApplicationOut(BaseModel):
    id: str
    fullName: str
    baseCity: str
    hourlyRate: Decimal
    fullDayRate: Decimal
    status: str
    providerId: Optional[str] = None
