import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.attendance.progress import count_present_days, percentage
from training_portal.certificates.certificate_models import SURVEY_RATING_FIELDS, CourseStats, CourseSurvey
from training_portal.core.database import generate_id, serialize_many, serialize_mongo
from training_portal.core.errors import NotFound, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.courses.course_service import count_completed
from training_portal.enrollments.enrollment_service import find_enrollment_for_student

logger = logging.getLogger(__name__)


async def submit_survey(db: AsyncIOMotorDatabase, student: UserContext, course_id: str, data: dict) -> dict:
    """
    Store the completion survey with an attendance snapshot taken now

    Raises:
        404: Course not found
        403: Not enrolled
        400: Survey already submitted
    """
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    await find_enrollment_for_student(db, student.user_id, course_id)

    if await db.course_surveys.find_one({"student_id": student.user_id, "course_id": course_id}):
        raise ValidationFailed("Survey already submitted for this course")

    completed_days = count_completed(course.get("sections", []))
    attended_days = await count_present_days(db, student.user_id, course_id, course["total_days"])

    survey = CourseSurvey(
        survey_id=generate_id("SRV"),
        student_id=student.user_id,
        course_id=course_id,
        teacher_id=course["teacher_id"],
        course_stats=CourseStats(
            total_days=completed_days,
            attended_days=attended_days,
            attendance_percentage=percentage(attended_days, completed_days)
        ),
        **{**data, "additional_comments": data.get("additional_comments") or ""}
    )
    doc = survey.dict()
    await db.course_surveys.insert_one(doc)
    logger.info("Survey submitted by %s for %s", student.user_id, course_id)

    return serialize_mongo(doc)


def _survey_group(key: str) -> dict:
    group = {
        "_id": key,
        "total_surveys": {"$sum": 1},
        "recommend_count": {"$sum": {"$cond": ["$recommend_to_others", 1, 0]}},
        "certificates_issued": {"$sum": {"$cond": ["$certificate_issued", 1, 0]}},
    }
    for field in SURVEY_RATING_FIELDS:
        group[f"avg_{field}"] = {"$avg": f"${field}"}
    return group


async def get_survey_analytics(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    """Rating averages, recommend count and difficulty distribution for a course"""
    summary = await db.course_surveys.aggregate([
        {"$match": {"course_id": course_id}},
        {"$group": _survey_group("$course_id")}
    ]).to_list(length=None)

    distribution = await db.course_surveys.aggregate([
        {"$match": {"course_id": course_id}},
        {"$group": {"_id": "$difficulty_level", "count": {"$sum": 1}}}
    ]).to_list(length=None)

    analytics = None
    if summary:
        analytics = summary[0]
        analytics.pop("_id", None)

    surveys = await db.course_surveys.find({"course_id": course_id}).sort("created_at", -1).to_list(length=None)
    for survey in surveys:
        student = await db.users.find_one({"user_id": survey["student_id"]})
        survey["student"] = {"user_id": survey["student_id"], "name": student.get("name") if student else None}

    return {
        "analytics": analytics,
        "surveys": serialize_many(surveys),
        "difficulty_distribution": [{"difficulty_level": d["_id"], "count": d["count"]} for d in distribution]
    }


async def get_teacher_survey_analytics(db: AsyncIOMotorDatabase, teacher: UserContext) -> dict:
    """
    Survey totals across every course a teacher runs, plus a per-course breakdown.
    Courses without surveys are left out of the breakdown.
    """
    totals = await db.course_surveys.aggregate([
        {"$match": {"teacher_id": teacher.user_id}},
        {"$group": _survey_group("$teacher_id")}
    ]).to_list(length=None)

    analytics = None
    if totals:
        analytics = totals[0]
        analytics.pop("_id", None)

    per_course = await db.course_surveys.aggregate([
        {"$match": {"teacher_id": teacher.user_id}},
        {"$group": _survey_group("$course_id")}
    ]).to_list(length=None)

    breakdown = []
    for row in per_course:
        course = await db.courses.find_one({"course_id": row["_id"]}) or {}
        breakdown.append({
            "course_id": row["_id"],
            "course_name": course.get("title"),
            "survey_count": row["total_surveys"],
            "avg_satisfaction": row["avg_overall_satisfaction"],
            "recommend_count": row["recommend_count"],
            "recommend_percentage": percentage(row["recommend_count"], row["total_surveys"])
        })
    breakdown.sort(key=lambda b: b["course_name"] or "")

    return {"analytics": analytics, "course_breakdown": breakdown}
