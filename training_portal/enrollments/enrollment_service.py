import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.audit import log_audit
from training_portal.core.database import generate_id, serialize_mongo
from training_portal.core.errors import Forbidden, NotFound, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.courses.course_models import CourseStatus
from training_portal.courses.course_service import attach_teachers
from training_portal.enrollments.enrollment_models import (
    ACTION_RESULTS, Enrollment, EnrollmentAction, EnrollmentStatus
)

logger = logging.getLogger(__name__)


# ==================== LOOKUPS ====================

async def get_enrollment(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> Optional[dict]:
    return await db.enrollments.find_one({"student_id": student_id, "course_id": course_id})


async def find_enrollment_for_student(
    db: AsyncIOMotorDatabase,
    student_id: str,
    course_id: str,
    require_approved: bool = False
) -> dict:
    """
    Approved enrollment first; otherwise any enrollment unless require_approved.

    Raises:
        403: Not enrolled
    """
    enrollment = await db.enrollments.find_one({
        "student_id": student_id,
        "course_id": course_id,
        "status": EnrollmentStatus.APPROVED.value
    })

    if not enrollment and not require_approved:
        enrollment = await get_enrollment(db, student_id, course_id)

    if not enrollment:
        raise Forbidden("You are not enrolled in this course")

    return enrollment


async def _with_students_and_courses(db: AsyncIOMotorDatabase, enrollments: List[dict]) -> List[dict]:
    results = []
    for enr in enrollments:
        student = await db.users.find_one({"user_id": enr["student_id"]})
        course = await db.courses.find_one({"course_id": enr["course_id"]})
        enr = serialize_mongo(enr)
        enr["student"] = {
            "user_id": enr["student_id"],
            "name": student.get("name") if student else None,
            "email": student.get("email") if student else None,
            "roll_number": student.get("roll_number") if student else None,
            "branch": student.get("branch") if student else None,
            "section": student.get("section") if student else None,
        }
        enr["course"] = {
            "course_id": enr["course_id"],
            "title": course.get("title") if course else None,
            "course_code": course.get("course_code") if course else None,
        }
        results.append(enr)
    return results


# ==================== STUDENT ====================

async def enroll_student(db: AsyncIOMotorDatabase, student: UserContext, course_id: str) -> dict:
    """Request enrollment; the owning teacher must approve it"""
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    if course["status"] != CourseStatus.ACTIVE.value:
        raise ValidationFailed("Course is not available for enrollment")

    if not course.get("enrollment_enabled", True):
        raise ValidationFailed("Enrollment is currently disabled for this course")

    if await get_enrollment(db, student.user_id, course_id):
        raise ValidationFailed("Already enrolled or enrollment pending")

    enrollment = Enrollment(
        enrollment_id=generate_id("ENR"),
        student_id=student.user_id,
        course_id=course_id
    )

    doc = enrollment.dict()
    await db.enrollments.insert_one(doc)
    logger.info("Student %s requested enrollment in %s", student.user_id, course_id)

    return serialize_mongo(doc)


async def list_student_enrollments(db: AsyncIOMotorDatabase, student: UserContext) -> List[dict]:
    cursor = db.enrollments.find({"student_id": student.user_id}).sort("enrolled_at", -1)
    enrollments = await cursor.to_list(length=None)

    results = []
    for enr in enrollments:
        course = await db.courses.find_one({"course_id": enr["course_id"]})
        if not course:
            # Course deleted since the student enrolled
            continue
        enr = serialize_mongo(enr)
        enr["course"] = (await attach_teachers(db, [course]))[0]
        results.append(enr)

    return results


# ==================== TEACHER ====================

async def list_teacher_enrollments(
    db: AsyncIOMotorDatabase,
    teacher: UserContext,
    status: EnrollmentStatus
) -> List[dict]:
    """Enrollments with the given status across the teacher's own courses"""
    courses = await db.courses.find({"teacher_id": teacher.user_id}).to_list(length=None)
    course_ids = [c["course_id"] for c in courses]

    sort_field = "approved_at" if status == EnrollmentStatus.APPROVED else "enrolled_at"
    cursor = db.enrollments.find({
        "course_id": {"$in": course_ids},
        "status": status.value
    }).sort(sort_field, -1)

    return await _with_students_and_courses(db, await cursor.to_list(length=None))


def _decision_update(action: EnrollmentAction) -> dict:
    update = {"status": ACTION_RESULTS[action].value}
    if action == EnrollmentAction.APPROVE:
        update["approved_at"] = datetime.utcnow()
    return update


async def decide_enrollment(
    db: AsyncIOMotorDatabase,
    teacher: UserContext,
    enrollment_id: str,
    action: EnrollmentAction
) -> dict:
    """
    Approve or reject a pending enrollment of one of the teacher's courses

    Raises:
        404: Enrollment or its course not found
        403: Course owned by someone else
        400: Enrollment already decided
    """
    enrollment = await db.enrollments.find_one({"enrollment_id": enrollment_id})
    if not enrollment:
        raise NotFound("Enrollment not found")

    course = await db.courses.find_one({"course_id": enrollment["course_id"]})
    if not course:
        raise NotFound("Course not found")

    if course["teacher_id"] != teacher.user_id:
        raise Forbidden("Not authorized")

    if enrollment["status"] != EnrollmentStatus.PENDING.value:
        raise ValidationFailed(f"Enrollment already {enrollment['status']}")

    update = _decision_update(action)
    # Guard on status so a concurrent decision cannot be overwritten
    result = await db.enrollments.update_one(
        {"enrollment_id": enrollment_id, "status": EnrollmentStatus.PENDING.value},
        {"$set": update}
    )
    if result.modified_count == 0:
        raise ValidationFailed("Enrollment was already decided")

    await log_audit(db, teacher, f"{action.value}_enrollment", "enrollment", enrollment_id,
                    {"course_id": course["course_id"], "student_id": enrollment["student_id"]})
    logger.info("Enrollment %s %s by %s", enrollment_id, update["status"], teacher.user_id)

    enrollment.update(update)
    return serialize_mongo(enrollment)


async def bulk_decide(
    db: AsyncIOMotorDatabase,
    teacher: UserContext,
    enrollment_ids: List[str],
    action: EnrollmentAction
) -> int:
    """Apply a decision to the pending enrollments among the ids that belong to the teacher"""
    courses = await db.courses.find({"teacher_id": teacher.user_id}).to_list(length=None)
    course_ids = [c["course_id"] for c in courses]

    result = await db.enrollments.update_many(
        {
            "enrollment_id": {"$in": enrollment_ids},
            "course_id": {"$in": course_ids},
            "status": EnrollmentStatus.PENDING.value
        },
        {"$set": _decision_update(action)}
    )

    await log_audit(db, teacher, f"bulk_{action.value}_enrollment", "enrollment", ",".join(enrollment_ids),
                    {"modified": result.modified_count})
    return result.modified_count
