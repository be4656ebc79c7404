from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# ==================== ENUMS ====================

class DifficultyLevel(str, Enum):
    TOO_EASY = "too_easy"
    EASY = "easy"
    APPROPRIATE = "appropriate"
    CHALLENGING = "challenging"
    TOO_DIFFICULT = "too_difficult"


SURVEY_RATING_FIELDS = [
    "overall_satisfaction",
    "content_quality",
    "teaching_effectiveness",
    "course_material_quality",
    "practical_application",
]

# ==================== DATABASE MODELS ====================

class CompletionStats(BaseModel):
    total_days: int  # completed days at issue time
    attended_days: int
    attendance_percentage: int
    course_start_date: Optional[datetime] = None
    course_end_date: Optional[datetime] = None


class Certificate(BaseModel):
    certificate_id: str  # CRT_XXXXXX
    certificate_number: str  # SF-2025-XXXXXXXX-XXXX
    verification_code: str  # XXXX-XXXX-XXXX
    student_id: str
    course_id: str
    teacher_id: str
    student_name: str
    course_name: str
    teacher_name: str
    completion_stats: CompletionStats
    issued_at: datetime = Field(default_factory=datetime.utcnow)
    download_count: int = 0
    last_downloaded_at: Optional[datetime] = None
    is_valid: bool = True


class CourseStats(BaseModel):
    total_days: int
    attended_days: int
    attendance_percentage: int
    completion_date: datetime = Field(default_factory=datetime.utcnow)


class CourseSurvey(BaseModel):
    survey_id: str  # SRV_XXXXXX
    student_id: str
    course_id: str
    teacher_id: str
    overall_satisfaction: int = Field(..., ge=1, le=5)
    content_quality: int = Field(..., ge=1, le=5)
    teaching_effectiveness: int = Field(..., ge=1, le=5)
    course_material_quality: int = Field(..., ge=1, le=5)
    practical_application: int = Field(..., ge=1, le=5)
    difficulty_level: DifficultyLevel
    what_you_learned: str
    improvements: str
    recommend_to_others: bool
    additional_comments: str = ""
    course_stats: CourseStats
    certificate_issued: bool = False
    certificate_issued_at: Optional[datetime] = None
    certificate_number: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        use_enum_values = True
