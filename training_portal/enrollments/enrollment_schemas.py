from typing import List

from pydantic import BaseModel, Field

from training_portal.enrollments.enrollment_models import EnrollmentAction


class EnrollmentCreate(BaseModel):
    course_id: str


class BulkEnrollmentAction(BaseModel):
    enrollment_ids: List[str] = Field(..., min_length=1)
    action: EnrollmentAction
