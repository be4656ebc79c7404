import logging
from datetime import datetime
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import generate_id, serialize_mongo
from training_portal.core.errors import NotFound, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.courses.course_service import find_section
from training_portal.enrollments.enrollment_service import find_enrollment_for_student
from training_portal.ratings.rating_models import DayRating

logger = logging.getLogger(__name__)


async def submit_day_rating(
    db: AsyncIOMotorDatabase,
    student: UserContext,
    course_id: str,
    day_number: int,
    rating: int,
    comment: Optional[str] = ""
) -> Tuple[dict, bool]:
    """
    Rate a day the teacher has completed. A second submission for the same day
    replaces the earlier rating.

    Returns:
        (rating document, created)

    Raises:
        404: Course not found
        400: Day not completed
        403: Not enrolled
    """
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    section = find_section(course, day_number)
    if not section or not section.get("completed"):
        raise ValidationFailed("Day not marked completed by teacher")

    await find_enrollment_for_student(db, student.user_id, course_id)

    key = {"student_id": student.user_id, "course_id": course_id, "day_number": day_number}
    existing = await db.day_ratings.find_one(key)

    if existing:
        update = {"rating": rating, "comment": comment or "", "updated_at": datetime.utcnow()}
        await db.day_ratings.update_one(key, {"$set": update})
        existing.update(update)
        return serialize_mongo(existing), False

    day_rating = DayRating(
        rating_id=generate_id("RAT"),
        rating=rating,
        comment=comment or "",
        **key
    )
    doc = day_rating.dict()
    await db.day_ratings.insert_one(doc)
    logger.info("Student %s rated %s day %s", student.user_id, course_id, day_number)

    return serialize_mongo(doc), True


async def get_my_rating(
    db: AsyncIOMotorDatabase,
    student: UserContext,
    course_id: str,
    day_number: int
) -> Optional[dict]:
    rating = await db.day_ratings.find_one({
        "student_id": student.user_id,
        "course_id": course_id,
        "day_number": day_number
    })
    return serialize_mongo(rating)


async def list_day_ratings(db: AsyncIOMotorDatabase, course_id: str, day_number: int) -> List[dict]:
    """All ratings for one day with the student's name and email"""
    ratings = await db.day_ratings.find({"course_id": course_id, "day_number": day_number}).to_list(length=None)

    results = []
    for rating in ratings:
        student = await db.users.find_one({"user_id": rating["student_id"]})
        rating = serialize_mongo(rating)
        rating["student"] = {
            "user_id": rating["student_id"],
            "name": student.get("name") if student else None,
            "email": student.get("email") if student else None,
        }
        results.append(rating)
    return results
