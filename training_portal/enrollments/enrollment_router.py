from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import get_db
from training_portal.core.permissions import UserContext, get_current_student, get_current_teacher
from training_portal.enrollments import enrollment_service as service
from training_portal.enrollments.enrollment_models import EnrollmentAction, EnrollmentStatus
from training_portal.enrollments.enrollment_schemas import BulkEnrollmentAction, EnrollmentCreate

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


@router.post("", status_code=201)
async def enroll(
    data: EnrollmentCreate,
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Request enrollment in an active course (starts as pending)
    """
    return await service.enroll_student(db, student, data.course_id)


@router.get("/pending")
async def pending_enrollments(
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_teacher_enrollments(db, teacher, EnrollmentStatus.PENDING)


@router.get("/approved")
async def approved_enrollments(
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_teacher_enrollments(db, teacher, EnrollmentStatus.APPROVED)


@router.get("/my-enrollments")
async def my_enrollments(
    student: UserContext = Depends(get_current_student),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_student_enrollments(db, student)


@router.put("/{enrollment_id}/approve")
async def approve_enrollment(
    enrollment_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.decide_enrollment(db, teacher, enrollment_id, EnrollmentAction.APPROVE)


@router.put("/{enrollment_id}/reject")
async def reject_enrollment(
    enrollment_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.decide_enrollment(db, teacher, enrollment_id, EnrollmentAction.REJECT)


@router.post("/bulk-action")
async def bulk_action(
    data: BulkEnrollmentAction,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    count = await service.bulk_decide(db, teacher, data.enrollment_ids, data.action)
    return {"message": f"{data.action.value} completed", "count": count}
