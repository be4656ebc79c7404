from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class AttendanceEntry(BaseModel):
    student_id: str
    status: AttendanceStatus
    notes: str = ""

    class Config:
        use_enum_values = True


class MarkAttendanceRequest(BaseModel):
    course_id: str
    day_number: int = Field(..., ge=1)
    records: List[AttendanceEntry]
