from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

MAX_FEEDBACK_LENGTH = 2000


class Feedback(BaseModel):
    feedback_id: str  # FBK_XXXXXX
    student_id: str
    course_id: str
    day_number: Optional[int] = None  # None for feedback on the whole course
    feedback: str = Field(..., min_length=1, max_length=MAX_FEEDBACK_LENGTH)
    created_at: datetime = Field(default_factory=datetime.utcnow)
