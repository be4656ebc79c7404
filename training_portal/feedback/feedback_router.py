from typing import Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import get_db
from training_portal.core.permissions import (
    UserContext, get_current_student, get_current_teacher, verify_course_ownership
)
from training_portal.feedback import feedback_service as service
from training_portal.feedback.feedback_schemas import FeedbackSubmit

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.post("", status_code=201)
async def submit_feedback(
    data: FeedbackSubmit,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.submit_feedback(db, student, data.course_id, data.feedback, data.day_number)


@router.get("/my-feedback")
async def my_feedback(
    course_id: Optional[str] = None,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_my_feedback(db, student, course_id)


@router.get("/course/{course_id}")
async def course_feedback(
    course_id: str,
    day_number: Optional[int] = None,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    return await service.list_course_feedback(db, course_id, day_number)
