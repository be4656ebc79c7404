"""
Certificate eligibility.

A read-only report built fresh from the course, attendance, ratings, survey,
evaluation and certificate collections on every call. A student can download
a certificate once every day is completed, attendance over completed days
reaches the minimum, every completed day is rated, and a survey or evaluation
has been submitted.
"""

import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.attendance.progress import count_present_days, percentage
from training_portal.core.config import get_config
from training_portal.core.errors import NotFound
from training_portal.courses.course_service import count_completed
from training_portal.enrollments.enrollment_service import find_enrollment_for_student

logger = logging.getLogger(__name__)


def section_topic(section: dict) -> str:
    """First topic heading of a day, or "Day N" when it has none"""
    topics = section.get("topics") or []
    if topics and topics[0].get("heading"):
        return topics[0]["heading"]
    return f"Day {section['day_number']}"


def _format_date(value: Optional[datetime]) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    return "date not set"


async def find_pending_reviews(
    db: AsyncIOMotorDatabase,
    student_id: str,
    course_id: str,
    sections: List[dict]
) -> List[dict]:
    """One entry per completed day the student has not rated yet"""
    ratings = await db.day_ratings.find(
        {"student_id": student_id, "course_id": course_id},
        {"day_number": 1}
    ).to_list(length=None)
    rated_days = {r["day_number"] for r in ratings}

    pending = []
    for section in sections:
        if not section.get("completed") or section["day_number"] in rated_days:
            continue

        topic = section_topic(section)
        pending.append({
            "type": "day_feedback",
            "day_number": section["day_number"],
            "topic": topic,
            "date": section.get("date"),
            "message": f"Please submit feedback for {topic} ({_format_date(section.get('date'))})"
        })
    return pending


async def evaluate_eligibility(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> dict:
    """
    Build the certificate eligibility report for a student

    Raises:
        404: Course not found
        403: Student not enrolled
    """
    config = get_config()

    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    await find_enrollment_for_student(
        db, student_id, course_id, require_approved=config.ELIGIBILITY_REQUIRE_APPROVED
    )

    teacher = await db.users.find_one({"user_id": course["teacher_id"]})

    sections = course.get("sections", [])
    total_days = len(sections)
    completed_days = count_completed(sections)
    is_course_completed = total_days > 0 and completed_days == total_days

    attended_days = await count_present_days(db, student_id, course_id, total_days)
    attendance_percentage = percentage(attended_days, completed_days)
    meets_attendance = attendance_percentage >= config.MIN_ATTENDANCE_PERCENTAGE

    pending_reviews = await find_pending_reviews(db, student_id, course_id, sections)

    pair = {"student_id": student_id, "course_id": course_id}
    survey = await db.course_surveys.find_one(pair)
    evaluation = await db.evaluations.find_one(pair)
    certificate = await db.certificates.find_one(pair)

    survey_submitted = survey is not None or evaluation is not None
    logger.debug(
        "Eligibility %s/%s: %d/%d days completed, %s%% attendance, %d pending reviews",
        student_id, course_id, completed_days, total_days, attendance_percentage, len(pending_reviews)
    )

    return {
        "course_id": course_id,
        "course_name": course["title"],
        "teacher_name": teacher.get("name") if teacher else "Unknown",
        "is_course_completed": is_course_completed,
        "total_days": total_days,
        "completed_days": completed_days,
        "attended_days": attended_days,
        "attendance_percentage": attendance_percentage,
        "meets_attendance_requirement": meets_attendance,
        "pending_reviews": pending_reviews,
        "has_pending_reviews": len(pending_reviews) > 0,
        "survey_submitted": survey_submitted,
        "evaluation_submitted": evaluation is not None,
        "certificate_issued": certificate is not None,
        "certificate_number": certificate.get("certificate_number") if certificate else None,
        "can_download_certificate": (
            is_course_completed
            and meets_attendance
            and not pending_reviews
            and survey_submitted
        )
    }
