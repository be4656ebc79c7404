from typing import Optional

from pydantic import BaseModel, Field, validator

from training_portal.certificates.certificate_models import DifficultyLevel


class SurveySubmit(BaseModel):
    overall_satisfaction: int = Field(..., ge=1, le=5)
    content_quality: int = Field(..., ge=1, le=5)
    teaching_effectiveness: int = Field(..., ge=1, le=5)
    course_material_quality: int = Field(..., ge=1, le=5)
    practical_application: int = Field(..., ge=1, le=5)
    difficulty_level: DifficultyLevel
    what_you_learned: str = Field(..., min_length=20)
    improvements: str = Field(..., min_length=20)
    recommend_to_others: bool
    additional_comments: Optional[str] = ""

    @validator("what_you_learned", "improvements")
    def strip_text(cls, v):
        v = v.strip()
        if len(v) < 20:
            raise ValueError("must be at least 20 characters")
        return v
