from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class CourseStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


# Allowed lifecycle moves; reaching COMPLETED additionally needs every day completed
STATUS_TRANSITIONS = {
    CourseStatus.DRAFT: {CourseStatus.ACTIVE},
    CourseStatus.ACTIVE: {CourseStatus.DRAFT, CourseStatus.COMPLETED},
    CourseStatus.COMPLETED: {CourseStatus.ACTIVE},
}

MIN_DAYS = 1
MAX_DAYS = 30

# ==================== DATABASE MODELS ====================

class SubSection(BaseModel):
    title: str = ""
    description: str = ""
    duration: str = ""  # e.g. "30 minutes"


class Topic(BaseModel):
    heading: str = ""
    description: str = ""
    sub_sections: List[SubSection] = []


class Section(BaseModel):
    """One scheduled day of a course"""
    day_number: int
    date: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None  # teacher user_id
    topics: List[Topic] = []


class Course(BaseModel):
    course_id: str  # CRS_XXXXXX
    course_code: str  # CRS0001
    title: str
    description: str = ""
    teacher_id: str
    total_days: int = Field(..., ge=MIN_DAYS, le=MAX_DAYS)
    sections: List[Section] = []
    status: CourseStatus = CourseStatus.DRAFT
    enrollment_enabled: bool = True
    start_date: datetime = Field(default_factory=datetime.utcnow)
    end_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        use_enum_values = True
