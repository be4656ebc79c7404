from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator

from training_portal.courses.course_models import MAX_DAYS, MIN_DAYS, CourseStatus, Topic

# ==================== REQUEST SCHEMAS ====================

class DayPlan(BaseModel):
    """Topics planned for one day; completion is never set through this schema"""
    day_number: Optional[int] = Field(None, ge=MIN_DAYS, le=MAX_DAYS)
    topics: List[Topic] = []


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    total_days: int = Field(..., ge=MIN_DAYS, le=MAX_DAYS)
    sections: List[DayPlan] = []
    start_date: Optional[datetime] = None

    @validator('title')
    def strip_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('title is required')
        return v


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    total_days: Optional[int] = Field(None, ge=MIN_DAYS, le=MAX_DAYS)
    sections: Optional[List[DayPlan]] = None
    start_date: Optional[datetime] = None
    status: Optional[CourseStatus] = None
    enrollment_enabled: Optional[bool] = None
