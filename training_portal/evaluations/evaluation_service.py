import logging
from typing import Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import generate_id, serialize_mongo
from training_portal.core.errors import NotFound, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.courses.course_models import CourseStatus
from training_portal.courses.course_service import all_days_completed
from training_portal.enrollments.enrollment_service import find_enrollment_for_student
from training_portal.evaluations.evaluation_models import QUESTION_KEYS, Evaluation

logger = logging.getLogger(__name__)


def is_course_finished(course: dict) -> bool:
    """Every day completed, or the course itself closed"""
    return all_days_completed(course.get("sections", [])) or course.get("status") == CourseStatus.COMPLETED.value


async def submit_evaluation(
    db: AsyncIOMotorDatabase,
    student: UserContext,
    course_id: str,
    answers: Dict[str, str]
) -> dict:
    """
    Store the one evaluation a student may give for a finished course

    Raises:
        404: Course not found
        400: Course not finished, already submitted, or an answer missing
        403: Not enrolled
    """
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    if not is_course_finished(course):
        raise ValidationFailed("Course is not completed yet")

    await find_enrollment_for_student(db, student.user_id, course_id)

    if await db.evaluations.find_one({"student_id": student.user_id, "course_id": course_id}):
        raise ValidationFailed("Evaluation already submitted")

    for key in QUESTION_KEYS:
        if key not in answers:
            raise ValidationFailed(f"Missing answer for {key}")

    evaluation = Evaluation(
        evaluation_id=generate_id("EVL"),
        student_id=student.user_id,
        course_id=course_id,
        answers={key: answers[key] for key in QUESTION_KEYS}
    )
    doc = evaluation.dict()
    await db.evaluations.insert_one(doc)
    logger.info("Evaluation submitted by %s for %s", student.user_id, course_id)

    return serialize_mongo(doc)


async def get_my_evaluation(db: AsyncIOMotorDatabase, student: UserContext, course_id: str) -> dict:
    evaluation = await db.evaluations.find_one({"student_id": student.user_id, "course_id": course_id})
    if not evaluation:
        raise NotFound("Evaluation not found")

    course = await db.courses.find_one({"course_id": course_id}) or {}
    evaluation = serialize_mongo(evaluation)
    evaluation["course"] = {
        "course_id": course_id,
        "title": course.get("title"),
        "course_code": course.get("course_code")
    }
    return evaluation


async def list_course_evaluations(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    evaluations = await db.evaluations.find({"course_id": course_id}).to_list(length=None)

    results = []
    for evaluation in evaluations:
        student = await db.users.find_one({"user_id": evaluation["student_id"]})
        evaluation = serialize_mongo(evaluation)
        evaluation["student"] = {
            "user_id": evaluation["student_id"],
            "name": student.get("name") if student else None,
            "email": student.get("email") if student else None,
        }
        results.append(evaluation)
    return results


async def export_course_evaluations(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    """Anonymous responses laid out as Q1..Q20 columns"""
    course = await db.courses.find_one({"course_id": course_id})
    if not course:
        raise NotFound("Course not found")

    evaluations = await db.evaluations.find({"course_id": course_id}).to_list(length=None)
    columns = [key.upper() for key in QUESTION_KEYS]

    rows = []
    for evaluation in evaluations:
        answers = evaluation.get("answers") or {}
        rows.append({key.upper(): answers.get(key, "") for key in QUESTION_KEYS})

    return {
        "course": {
            "course_id": course_id,
            "title": course["title"],
            "course_code": course.get("course_code")
        },
        "total_responses": len(rows),
        "columns": columns,
        "data": rows
    }


async def list_public_courses(db: AsyncIOMotorDatabase) -> List[dict]:
    """Published or finished courses with their evaluation counts"""
    cursor = db.courses.find(
        {"status": {"$in": [CourseStatus.ACTIVE.value, CourseStatus.COMPLETED.value]}},
        {"sections": 0}
    ).sort("created_at", -1)
    courses = await cursor.to_list(length=None)

    results = []
    for course in courses:
        teacher = await db.users.find_one({"user_id": course["teacher_id"]})
        results.append({
            "course_id": course["course_id"],
            "course_code": course.get("course_code"),
            "title": course["title"],
            "description": course.get("description", ""),
            "status": course["status"],
            "total_days": course["total_days"],
            "created_at": course.get("created_at"),
            "teacher": {"name": teacher.get("name") if teacher else None},
            "evaluation_count": await db.evaluations.count_documents({"course_id": course["course_id"]})
        })
    return results
