from typing import Optional

from pydantic import BaseModel, Field, validator

from training_portal.feedback.feedback_models import MAX_FEEDBACK_LENGTH


class FeedbackSubmit(BaseModel):
    course_id: str
    day_number: Optional[int] = Field(None, ge=1)
    feedback: str = Field(..., min_length=1, max_length=MAX_FEEDBACK_LENGTH)

    @validator("feedback")
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Feedback cannot be empty")
        return v
