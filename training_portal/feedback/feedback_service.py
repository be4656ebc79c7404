import logging
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import generate_id, serialize_many, serialize_mongo
from training_portal.core.errors import NotFound, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.enrollments.enrollment_service import find_enrollment_for_student
from training_portal.feedback.feedback_models import Feedback

logger = logging.getLogger(__name__)


async def submit_feedback(
    db: AsyncIOMotorDatabase,
    student: UserContext,
    course_id: str,
    text: str,
    day_number: Optional[int] = None
) -> dict:
    """
    Free-text feedback on a day or on the whole course. Any number may be left.

    Raises:
        404: Course not found
        400: Day outside the course
        403: No approved enrollment
    """
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    if day_number is not None and day_number > course["total_days"]:
        raise ValidationFailed("Invalid day number")

    await find_enrollment_for_student(db, student.user_id, course_id, require_approved=True)

    feedback = Feedback(
        feedback_id=generate_id("FBK"),
        student_id=student.user_id,
        course_id=course_id,
        day_number=day_number,
        feedback=text
    )
    doc = feedback.dict()
    await db.feedback.insert_one(doc)
    logger.info("Feedback %s left by %s on %s", feedback.feedback_id, student.user_id, course_id)

    return serialize_mongo(doc)


async def list_course_feedback(db: AsyncIOMotorDatabase, course_id: str, day_number: Optional[int] = None) -> List[dict]:
    query = {"course_id": course_id}
    if day_number is not None:
        query["day_number"] = day_number

    entries = await db.feedback.find(query).sort("created_at", -1).to_list(length=None)

    results = []
    for entry in serialize_many(entries):
        student = await db.users.find_one({"user_id": entry["student_id"]})
        entry["student"] = {
            "user_id": entry["student_id"],
            "name": student.get("name") if student else None,
            "roll_number": (student or {}).get("roll_number") or "",
        }
        results.append(entry)
    return results


async def list_my_feedback(db: AsyncIOMotorDatabase, student: UserContext, course_id: Optional[str] = None) -> List[dict]:
    query = {"student_id": student.user_id}
    if course_id:
        query["course_id"] = course_id

    entries = await db.feedback.find(query).sort("created_at", -1).to_list(length=None)
    return serialize_many(entries)
