from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EnrollmentAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


# Decisions are final: nothing leaves APPROVED or REJECTED
ACTION_RESULTS = {
    EnrollmentAction.APPROVE: EnrollmentStatus.APPROVED,
    EnrollmentAction.REJECT: EnrollmentStatus.REJECTED,
}

# ==================== DATABASE MODELS ====================

class Enrollment(BaseModel):
    enrollment_id: str  # ENR_XXXXXX
    student_id: str
    course_id: str
    status: EnrollmentStatus = EnrollmentStatus.PENDING
    enrolled_at: datetime = Field(default_factory=datetime.utcnow)
    approved_at: Optional[datetime] = None
    progress: int = Field(0, ge=0, le=100)  # derived from attendance
    days_completed: int = Field(0, ge=0)  # derived from attendance

    class Config:
        use_enum_values = True
