from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"  # operator account from configuration, never stored

# ==================== DATABASE MODELS ====================

class User(BaseModel):
    user_id: str  # USR_XXXXXX
    name: str
    email: str
    password_hash: str
    role: Role
    bio: str = ""
    profile_picture: Optional[str] = None

    # Student profile
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    section: Optional[str] = None

    # Teacher profile
    department: Optional[str] = None
    designation: Optional[str] = None
    phone: Optional[str] = None
    verified_teacher: bool = False  # Admin approval gate for teachers

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        use_enum_values = True
