"""
Analytics API Router
Teacher dashboards over their own courses and the student's own dashboard
"""

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.analytics import analytics_service as service
from training_portal.core.database import get_db
from training_portal.core.permissions import UserContext, get_current_student, get_current_teacher

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/dashboard")
async def teacher_dashboard(
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.teacher_dashboard(db, teacher)


@router.get("/effectiveness")
async def effectiveness(
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.course_effectiveness(db, teacher)


@router.get("/distribution")
async def distribution(
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.enrollment_distribution(db, teacher)


@router.get("/attendance-summary")
async def attendance_summary(
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.attendance_summary(db, teacher)


@router.get("/student-dashboard")
async def student_dashboard(
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.student_dashboard(db, student)
