"""
Enrollment progress derived from attendance.

progress = round(present days / total days * 100), stored on the approved
enrollment together with days_completed. Both values are a pure function of
the stored attendance records, so recomputing is always safe to repeat.
"""

import logging
import math
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from training_portal.core.errors import NotFound

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (3.5 -> 4, 2.5 -> 3)"""
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: Optional[int]) -> int:
    """Whole-number percentage; an empty or missing whole gives 0"""
    if not whole or whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def compute_progress(days_completed: int, total_days: Optional[int]) -> int:
    return max(0, min(100, percentage(days_completed, total_days)))


async def count_present_days(
    db: AsyncIOMotorDatabase,
    student_id: str,
    course_id: str,
    total_days: Optional[int] = None
) -> int:
    """
    Distinct days with a present mark; a day never counts twice.
    Marks for days past total_days (left over after a course shrinks) are ignored.
    """
    query = {"student_id": student_id, "course_id": course_id, "status": "present"}
    if total_days is not None:
        query["day_number"] = {"$lte": total_days}

    records = await db.attendance.find(
        query,
        {"day_number": 1}
    ).to_list(length=None)
    return len({r["day_number"] for r in records})


async def recompute_progress(
    db: AsyncIOMotorDatabase,
    student_id: str,
    course_id: str,
    course: Optional[dict] = None
) -> dict:
    """
    Recount present days and persist days_completed/progress on the approved enrollment

    Raises:
        404: Course or approved enrollment not found
    """
    if course is None:
        course = await db.courses.find_one({"course_id": course_id})
        if not course:
            raise NotFound("Course not found")

    total_days = course.get("total_days") or 0
    days_completed = await count_present_days(db, student_id, course_id, total_days)
    progress = compute_progress(days_completed, total_days)

    result = await db.enrollments.update_one(
        {"student_id": student_id, "course_id": course_id, "status": "approved"},
        {"$set": {"days_completed": days_completed, "progress": progress}}
    )
    if result.matched_count == 0:
        raise NotFound("Approved enrollment not found")

    return {"days_completed": days_completed, "progress": progress}


async def recompute_course_progress(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    """
    Recompute progress for every approved enrollment of a course.

    Each enrollment is an independent write; a failure is logged and reported
    in "failed" and the loop moves on to the next student.
    """
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    enrollments = await db.enrollments.find(
        {"course_id": course_id, "status": "approved"}
    ).to_list(length=None)

    recomputed = 0
    failed = []
    for enrollment in enrollments:
        student_id = enrollment["student_id"]
        try:
            await recompute_progress(db, student_id, course_id, course)
            recomputed += 1
        except (PyMongoError, NotFound):
            logger.exception("Progress recompute failed for %s in %s", student_id, course_id)
            failed.append(student_id)

    if failed:
        logger.warning("Course %s: %d of %d enrollments not recomputed",
                       course_id, len(failed), len(enrollments))

    return {"recomputed": recomputed, "failed": failed}
