import logging
from datetime import datetime, timedelta
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.attendance.progress import recompute_course_progress
from training_portal.core.audit import log_audit
from training_portal.core.database import generate_id, serialize_many, serialize_mongo
from training_portal.core.errors import NotFound, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.courses.course_models import (
    STATUS_TRANSITIONS, Course, CourseStatus, Section, Topic
)
from training_portal.users.user_models import Role

logger = logging.getLogger(__name__)

COURSE_CODE_PREFIX = "CRS"


# ==================== SECTION HELPERS ====================

def build_sections(
    total_days: int,
    start_date: datetime,
    day_plans: Optional[List[dict]] = None,
    existing: Optional[List[dict]] = None
) -> List[dict]:
    """
    Produce exactly one section per day 1..total_days.

    Topics come from day_plans (by position) when given, else from the existing
    section of the same day. Completion state is always carried over from the
    existing sections so it can only change through complete/uncomplete.
    """
    existing_by_day = {s["day_number"]: s for s in (existing or [])}
    sections = []

    for index in range(total_days):
        day_number = index + 1
        previous = existing_by_day.get(day_number, {})

        if day_plans is not None and index < len(day_plans):
            topics = day_plans[index].get("topics", [])
        elif day_plans is not None:
            topics = []
        else:
            topics = previous.get("topics", [])

        section = Section(
            day_number=day_number,
            date=start_date + timedelta(days=index),
            completed=previous.get("completed", False),
            completed_at=previous.get("completed_at"),
            completed_by=previous.get("completed_by"),
            topics=[Topic(**t) if isinstance(t, dict) else t for t in topics]
        )
        sections.append(section.dict())

    return sections


def count_completed(sections: List[dict]) -> int:
    return len([s for s in sections if s.get("completed")])


def all_days_completed(sections: List[dict]) -> bool:
    return len(sections) > 0 and count_completed(sections) == len(sections)


def find_section(course: dict, day_number: int) -> Optional[dict]:
    for section in course.get("sections", []):
        if section.get("day_number") == day_number:
            return section
    return None


def check_status_transition(course: dict, new_status: CourseStatus, sections: List[dict]):
    """Validate a status change; every path to COMPLETED needs all days completed"""
    current = CourseStatus(course["status"])
    if new_status == current:
        return

    if new_status not in STATUS_TRANSITIONS[current]:
        raise ValidationFailed(f"Cannot change course status from {current.value} to {new_status.value}")

    if new_status == CourseStatus.COMPLETED and not all_days_completed(sections):
        raise ValidationFailed("Not all days are marked completed")


async def next_course_code(db: AsyncIOMotorDatabase) -> str:
    last = await db.courses.find_one(
        {"course_code": {"$regex": f"^{COURSE_CODE_PREFIX}\\d+$"}},
        sort=[("course_code", -1)]
    )
    next_number = 1
    if last:
        next_number = int(last["course_code"][len(COURSE_CODE_PREFIX):]) + 1
    return f"{COURSE_CODE_PREFIX}{next_number:04d}"


async def attach_teachers(db: AsyncIOMotorDatabase, courses: List[dict]) -> List[dict]:
    """Embed a small teacher summary in each course"""
    cache = {}
    for course in courses:
        teacher_id = course.get("teacher_id")
        if teacher_id not in cache:
            teacher = await db.users.find_one({"user_id": teacher_id})
            cache[teacher_id] = {
                "user_id": teacher_id,
                "name": teacher.get("name") if teacher else "Unknown",
                "email": teacher.get("email") if teacher else None,
                "department": teacher.get("department") if teacher else None,
                "designation": teacher.get("designation") if teacher else None,
            }
        course["teacher"] = cache[teacher_id]
    return serialize_many(courses)


# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, teacher: UserContext, data: dict) -> dict:
    """Create a draft course with one section per day"""
    start_date = data.get("start_date") or datetime.utcnow()

    course = Course(
        course_id=generate_id("CRS"),
        course_code=await next_course_code(db),
        title=data["title"],
        description=data.get("description", ""),
        teacher_id=teacher.user_id,
        total_days=data["total_days"],
        sections=build_sections(data["total_days"], start_date, data.get("sections") or None),
        start_date=start_date,
        end_date=start_date + timedelta(days=data["total_days"] - 1)
    )

    doc = course.dict()
    await db.courses.insert_one(doc)
    await log_audit(db, teacher, "create_course", "course", course.course_id)
    logger.info("Course %s created by %s", course.course_id, teacher.user_id)

    return serialize_mongo(doc)


async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")
    return (await attach_teachers(db, [course]))[0]


async def list_available_courses(db: AsyncIOMotorDatabase) -> List[dict]:
    """Courses a student can browse and request to join"""
    cursor = db.courses.find({
        "status": CourseStatus.ACTIVE.value,
        "enrollment_enabled": True
    }).sort("created_at", -1)
    return await attach_teachers(db, await cursor.to_list(length=None))


async def list_my_courses(db: AsyncIOMotorDatabase, user: UserContext) -> List[dict]:
    if user.role is Role.TEACHER:
        cursor = db.courses.find({"teacher_id": user.user_id}).sort("created_at", -1)
        courses = await cursor.to_list(length=None)
    elif user.role is Role.STUDENT:
        enrollments = await db.enrollments.find({
            "student_id": user.user_id,
            "status": "approved"
        }).to_list(length=None)
        course_ids = [e["course_id"] for e in enrollments]
        courses = await db.courses.find({"course_id": {"$in": course_ids}}).to_list(length=None)
    elif user.role is Role.ADMIN:
        courses = await db.courses.find().sort("created_at", -1).to_list(length=None)
    else:
        raise ValueError(f"Unhandled role: {user.role}")

    return await attach_teachers(db, courses)


async def update_course(db: AsyncIOMotorDatabase, teacher: UserContext, course: dict, data: dict) -> dict:
    """
    Update course fields. Sections are normalized to total_days and re-dated
    from start_date whenever either changes.
    """
    updates = {}

    for field in ("title", "description", "enrollment_enabled"):
        if data.get(field) is not None:
            updates[field] = data[field]

    total_days = data.get("total_days") or course["total_days"]
    start_date = data.get("start_date") or course.get("start_date") or datetime.utcnow()
    sections = course.get("sections", [])

    if (
        data.get("sections") is not None
        or data.get("total_days") is not None
        or data.get("start_date") is not None
    ):
        sections = build_sections(total_days, start_date, data.get("sections"), course.get("sections", []))
        updates.update({
            "total_days": total_days,
            "start_date": start_date,
            "end_date": start_date + timedelta(days=total_days - 1),
            "sections": sections
        })

    new_status = CourseStatus(data["status"]) if data.get("status") else CourseStatus(course["status"])
    check_status_transition(course, new_status, sections)
    if new_status.value != course["status"]:
        updates["status"] = new_status.value
        if new_status == CourseStatus.COMPLETED:
            updates["completed_at"] = datetime.utcnow()
        else:
            updates["completed_at"] = None
    elif new_status == CourseStatus.COMPLETED and not all_days_completed(sections):
        raise ValidationFailed("A completed course must keep every day completed")

    updates["updated_at"] = datetime.utcnow()
    await db.courses.update_one({"course_id": course["course_id"]}, {"$set": updates})
    await log_audit(db, teacher, "update_course", "course", course["course_id"],
                    {k: v for k, v in updates.items() if k != "sections"})

    if total_days != course["total_days"]:
        summary = await recompute_course_progress(db, course["course_id"])
        logger.info("Course %s resized to %d days, %d enrollments recomputed",
                    course["course_id"], total_days, summary["recomputed"])

    return await get_course(db, course["course_id"])


async def delete_course(db: AsyncIOMotorDatabase, teacher: UserContext, course_id: str):
    await db.courses.delete_one({"course_id": course_id})
    await log_audit(db, teacher, "delete_course", "course", course_id)
    logger.info("Course %s deleted by %s", course_id, teacher.user_id)


async def toggle_enrollment(db: AsyncIOMotorDatabase, teacher: UserContext, course: dict) -> bool:
    enabled = not course.get("enrollment_enabled", True)
    await db.courses.update_one(
        {"course_id": course["course_id"]},
        {"$set": {"enrollment_enabled": enabled, "updated_at": datetime.utcnow()}}
    )
    await log_audit(db, teacher, "toggle_enrollment", "course", course["course_id"], {"enabled": enabled})
    return enabled


async def mark_course_completed(db: AsyncIOMotorDatabase, teacher: UserContext, course: dict) -> dict:
    """Close the course; only allowed once every day is completed"""
    check_status_transition(course, CourseStatus.COMPLETED, course.get("sections", []))

    now = datetime.utcnow()
    await db.courses.update_one(
        {"course_id": course["course_id"]},
        {"$set": {"status": CourseStatus.COMPLETED.value, "completed_at": now, "updated_at": now}}
    )
    await log_audit(db, teacher, "mark_course_completed", "course", course["course_id"])
    logger.info("Course %s marked completed", course["course_id"])

    return await get_course(db, course["course_id"])


# ==================== DAY COMPLETION ====================

async def set_day_completion(
    db: AsyncIOMotorDatabase,
    teacher: UserContext,
    course: dict,
    day_number: int,
    completed: bool
) -> dict:
    """Flip one section's completion flag and stamp who/when"""
    if day_number < 1 or day_number > course["total_days"]:
        raise ValidationFailed("Invalid day number")

    if not completed and course["status"] == CourseStatus.COMPLETED.value:
        raise ValidationFailed("Course is already completed")

    sections = course.get("sections", [])
    section = find_section(course, day_number)
    if section is None:
        raise NotFound(f"Day {day_number} has no section")

    now = datetime.utcnow()
    section["completed"] = completed
    section["completed_at"] = now if completed else None
    section["completed_by"] = teacher.user_id if completed else None

    await db.courses.update_one(
        {"course_id": course["course_id"]},
        {"$set": {"sections": sections, "updated_at": now}}
    )

    action = "complete_day" if completed else "uncomplete_day"
    await log_audit(db, teacher, action, "course", course["course_id"], {"day_number": day_number})
    logger.info("Course %s day %s completed=%s", course["course_id"], day_number, completed)

    return section


# ==================== STUDENTS ====================

async def get_course_students(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    """Approved enrollments with the student's profile"""
    enrollments = await db.enrollments.find({
        "course_id": course_id,
        "status": "approved"
    }).to_list(length=None)

    results = []
    for enr in enrollments:
        student = await db.users.find_one({"user_id": enr["student_id"]})
        enr = serialize_mongo(enr)
        enr["student"] = {
            "user_id": enr["student_id"],
            "name": student.get("name") if student else None,
            "email": student.get("email") if student else None,
            "roll_number": student.get("roll_number") if student else None,
            "branch": student.get("branch") if student else None,
            "section": student.get("section") if student else None,
        }
        results.append(enr)

    return results


async def remove_student(db: AsyncIOMotorDatabase, teacher: UserContext, course_id: str, enrollment_id: str):
    enrollment = await db.enrollments.find_one({"enrollment_id": enrollment_id})
    if not enrollment:
        raise NotFound("Enrollment not found")

    if enrollment["course_id"] != course_id:
        raise ValidationFailed("Enrollment does not belong to this course")

    await db.enrollments.delete_one({"enrollment_id": enrollment_id})
    await log_audit(db, teacher, "remove_student", "enrollment", enrollment_id,
                    {"course_id": course_id, "student_id": enrollment["student_id"]})
