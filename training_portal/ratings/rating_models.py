from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

MIN_RATING = 1
MAX_RATING = 5


class DayRating(BaseModel):
    rating_id: str  # RAT_XXXXXX
    student_id: str
    course_id: str
    day_number: int = Field(..., ge=1)
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
