import logging
from datetime import datetime
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.attendance.attendance_service import get_course_report
from training_portal.core.audit import log_audit
from training_portal.core.auth_utils import create_access_token, verify_password
from training_portal.core.config import get_config
from training_portal.core.database import serialize_many
from training_portal.core.errors import NotFound, Unauthorized, ValidationFailed
from training_portal.core.permissions import ADMIN_USER_ID, UserContext
from training_portal.enrollments.enrollment_models import EnrollmentStatus
from training_portal.users.user_models import Role
from training_portal.users.user_service import public_profile

logger = logging.getLogger(__name__)


def admin_login(email: str, password: str) -> dict:
    """Check the single operator credential loaded from configuration"""
    config = get_config()
    email = email.strip().lower()

    if not config.admin_configured:
        logger.warning("Admin login attempted but no operator account is configured")
        raise Unauthorized("Invalid admin credentials")

    if email != config.ADMIN_EMAIL or not verify_password(password, config.ADMIN_PASSWORD_HASH):
        logger.warning("Failed admin login for %s", email)
        raise Unauthorized("Invalid admin credentials")

    return {
        "token": create_access_token(ADMIN_USER_ID, Role.ADMIN.value, {"email": config.ADMIN_EMAIL}),
        "user": {"email": config.ADMIN_EMAIL, "role": Role.ADMIN.value, "name": "Administrator"}
    }


async def list_users(db: AsyncIOMotorDatabase) -> dict:
    users = await db.users.find().sort("created_at", -1).to_list(length=None)
    users = [public_profile(u) for u in users]

    students = [u for u in users if u["role"] == Role.STUDENT.value]
    teachers = [u for u in users if u["role"] == Role.TEACHER.value]

    return {
        "total_users": len(users),
        "total_students": len(students),
        "total_teachers": len(teachers),
        "pending_teachers": len([t for t in teachers if not t.get("verified_teacher")]),
        "students": students,
        "teachers": teachers
    }


async def set_teacher_verification(
    db: AsyncIOMotorDatabase,
    admin: UserContext,
    user_id: str,
    verified: bool
) -> dict:
    user = await db.users.find_one({"user_id": user_id})
    if not user:
        raise NotFound("User not found")

    if user["role"] != Role.TEACHER.value:
        raise ValidationFailed("User is not a teacher")

    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {"verified_teacher": verified, "updated_at": datetime.utcnow()}}
    )

    action = "approve_teacher" if verified else "revoke_teacher"
    await log_audit(db, admin, action, "user", user_id)
    logger.info("Teacher %s verification set to %s", user_id, verified)

    user["verified_teacher"] = verified
    return public_profile(user)


async def delete_user(db: AsyncIOMotorDatabase, admin: UserContext, user_id: str):
    result = await db.users.delete_one({"user_id": user_id})
    if result.deleted_count == 0:
        raise NotFound("User not found")

    await log_audit(db, admin, "delete_user", "user", user_id)


# ==================== COURSES & REPORTS ====================

async def list_courses(db: AsyncIOMotorDatabase) -> List[dict]:
    """Every course, newest first, with its teacher and approved enrollment count"""
    courses = await db.courses.find({}, {"sections": 0}).sort("created_at", -1).to_list(length=None)

    counts = await db.enrollments.aggregate([
        {"$match": {"status": EnrollmentStatus.APPROVED.value}},
        {"$group": {"_id": "$course_id", "count": {"$sum": 1}}}
    ]).to_list(length=None)
    count_map = {c["_id"]: c["count"] for c in counts}

    results = []
    for course in serialize_many(courses):
        teacher = await db.users.find_one({"user_id": course["teacher_id"]})
        course["teacher"] = {
            "user_id": course["teacher_id"],
            "name": teacher.get("name") if teacher else None,
            "email": teacher.get("email") if teacher else None,
        }
        course["enrolled_count"] = count_map.get(course["course_id"], 0)
        results.append(course)
    return results


async def attendance_reports(db: AsyncIOMotorDatabase) -> List[dict]:
    courses = await db.courses.find().sort("created_at", -1).to_list(length=None)
    return [await get_course_report(db, course) for course in courses]


async def attendance_report(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")
    return await get_course_report(db, course)
