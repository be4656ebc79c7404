from typing import Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.attendance import attendance_service as service
from training_portal.attendance.attendance_schemas import MarkAttendanceRequest
from training_portal.core.database import get_db
from training_portal.core.permissions import (
    UserContext, get_current_student, get_current_teacher, verify_course_ownership
)

router = APIRouter(prefix="/attendance", tags=["Attendance"])


@router.post("/mark")
async def mark_attendance(
    data: MarkAttendanceRequest,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Mark present/absent for a day and refresh each student's progress
    """
    course = await verify_course_ownership(db, data.course_id, teacher)
    records = await service.mark_attendance(
        db, teacher, course, data.day_number, [r.dict() for r in data.records]
    )
    return {"message": "Attendance marked successfully", "attendance_records": records}


@router.get("/course/{course_id}/day/{day_number}")
async def get_day_attendance(
    course_id: str,
    day_number: int,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    return await service.get_day_attendance(db, course_id, day_number)


@router.post("/course/{course_id}/day/{day_number}/complete")
async def complete_day(
    course_id: str,
    day_number: int,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    course = await verify_course_ownership(db, course_id, teacher)
    result = await service.change_day_completion(db, teacher, course, day_number, True)
    return {"message": "Day marked as complete and progress updated for all students", **result}


@router.post("/course/{course_id}/day/{day_number}/uncomplete")
async def uncomplete_day(
    course_id: str,
    day_number: int,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    course = await verify_course_ownership(db, course_id, teacher)
    result = await service.change_day_completion(db, teacher, course, day_number, False)
    return {"message": "Day unmarked as complete", **result}


@router.get("/history")
async def attendance_history(
    course_id: Optional[str] = None,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_history(db, teacher, course_id)


@router.get("/my-attendance")
async def my_attendance(
    course_id: Optional[str] = None,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_student_attendance(db, student, course_id)


@router.get("/report/{course_id}")
async def attendance_report(
    course_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    course = await verify_course_ownership(db, course_id, teacher)
    return await service.get_course_report(db, course)
