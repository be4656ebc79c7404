from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, validator

from training_portal.users.user_models import Role

# ==================== REQUEST SCHEMAS ====================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str
    password: str = Field(..., min_length=6)
    role: Role = Role.STUDENT

    roll_number: Optional[str] = None
    branch: Optional[str] = None
    section: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None

    @validator('email')
    def validate_email(cls, v):
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError('Invalid email address')
        return v

    @validator('role')
    def validate_role(cls, v):
        if v == Role.ADMIN:
            raise ValueError('Admin accounts cannot be registered')
        return v


class LoginRequest(BaseModel):
    email: str
    password: str

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    bio: Optional[str] = None

    # Applied to students only
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    section: Optional[str] = None

    # Applied to teachers only
    department: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None

# ==================== RESPONSE SCHEMAS ====================

class UserProfile(BaseModel):
    user_id: str
    name: str
    email: str
    role: Role
    bio: str = ""
    profile_picture: Optional[str] = None
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    section: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None
    verified_teacher: bool = False
    created_at: datetime


class TokenResponse(BaseModel):
    token: str
    user: UserProfile
