from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import get_db
from training_portal.core.permissions import (
    UserContext, get_current_teacher, get_current_user, verify_course_ownership
)
from training_portal.courses import course_service as service
from training_portal.courses.course_schemas import CourseCreate, CourseUpdate

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("")
async def list_available_courses(
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Active courses that are open for enrollment"""
    return await service.list_available_courses(db)


@router.get("/my-courses")
async def list_my_courses(
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Teachers get the courses they own, students the courses they are approved in
    """
    return await service.list_my_courses(db, user)


@router.get("/{course_id}")
async def get_course(
    course_id: str,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_course(db, course_id)


@router.post("", status_code=201)
async def create_course(
    data: CourseCreate,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.create_course(db, teacher, data.dict())


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    data: CourseUpdate,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    course = await verify_course_ownership(db, course_id, teacher)
    return await service.update_course(db, teacher, course, data.dict(exclude_none=True))


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    await service.delete_course(db, teacher, course_id)
    return {"message": "Course deleted successfully"}


@router.get("/{course_id}/students")
async def get_course_students(
    course_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    return await service.get_course_students(db, course_id)


@router.put("/{course_id}/toggle-enrollment")
async def toggle_enrollment(
    course_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    course = await verify_course_ownership(db, course_id, teacher)
    enabled = await service.toggle_enrollment(db, teacher, course)
    return {
        "message": "Enrollment enabled" if enabled else "Enrollment disabled",
        "enrollment_enabled": enabled
    }


@router.delete("/{course_id}/students/{enrollment_id}")
async def remove_student(
    course_id: str,
    enrollment_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await verify_course_ownership(db, course_id, teacher)
    await service.remove_student(db, teacher, course_id, enrollment_id)
    return {"message": "Student removed from course successfully"}


@router.put("/{course_id}/mark-completed")
async def mark_course_completed(
    course_id: str,
    teacher: UserContext = Depends(get_current_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Mark the whole course completed; every day must already be completed
    """
    course = await verify_course_ownership(db, course_id, teacher)
    course = await service.mark_course_completed(db, teacher, course)
    return {"message": "Course marked as completed", "course": course}
