from typing import Optional

from pydantic import BaseModel, Field

from training_portal.ratings.rating_models import MAX_RATING, MIN_RATING


class DayRatingSubmit(BaseModel):
    course_id: str
    day_number: int = Field(..., ge=1)
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: Optional[str] = ""
