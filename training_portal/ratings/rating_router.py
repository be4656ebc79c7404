from fastapi import APIRouter, Depends, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import get_db
from training_portal.core.permissions import (
    UserContext, get_current_student, get_current_teacher, verify_course_ownership
)
from training_portal.ratings import rating_service as service
from training_portal.ratings.rating_schemas import DayRatingSubmit

router = APIRouter(prefix="/ratings", tags=["Ratings"])


@router.post("/day", status_code=201)
async def rate_day(
    data: DayRatingSubmit,
    response: Response,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Rate a completed day (201 on first rating, 200 when updating)
    """
    rating, created = await service.submit_day_rating(
        db, student, data.course_id, data.day_number, data.rating, data.comment
    )
    if not created:
        response.status_code = 200
    return rating


@router.get("/my")
async def my_rating(
    course_id: str,
    day_number: int,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_my_rating(db, student, course_id, day_number)


@router.get("/course/{course_id}/day/{day_number}")
async def day_ratings(
    course_id: str,
    day_number: int,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    return await service.list_day_ratings(db, course_id, day_number)
