"""
Dashboard figures for teachers and students.

Everything here is read-only and derived from courses, enrollments,
attendance, ratings and feedback. Attendance marks for days past a course's
total_days are not counted, the same as in progress.
"""

from collections import Counter, defaultdict
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.attendance.progress import percentage
from training_portal.core.database import serialize_many, serialize_mongo
from training_portal.core.permissions import UserContext
from training_portal.courses.course_models import CourseStatus
from training_portal.enrollments.enrollment_models import EnrollmentStatus


async def _teacher_courses(db: AsyncIOMotorDatabase, teacher: UserContext) -> List[dict]:
    return await db.courses.find({"teacher_id": teacher.user_id}).sort("created_at", -1).to_list(length=None)


async def _counted_attendance(db: AsyncIOMotorDatabase, courses: List[dict], **query) -> List[dict]:
    """Attendance for the given courses, restricted to each course's current days"""
    total_days = {c["course_id"]: c["total_days"] for c in courses}
    records = await db.attendance.find(
        {"course_id": {"$in": list(total_days)}, **query}
    ).to_list(length=None)
    return [r for r in records if r["day_number"] <= total_days[r["course_id"]]]


def _present_summary(records: List[dict]) -> dict:
    present = len([r for r in records if r["status"] == "present"])
    total = len(records)
    return {
        "present": present,
        "absent": total - present,
        "total": total,
        "percentage": percentage(present, total)
    }


# ==================== TEACHER ====================

async def teacher_dashboard(db: AsyncIOMotorDatabase, teacher: UserContext) -> dict:
    courses = await _teacher_courses(db, teacher)
    course_ids = [c["course_id"] for c in courses]

    enrollments = await db.enrollments.find({"course_id": {"$in": course_ids}}).to_list(length=None)
    approved = [e for e in enrollments if e["status"] == EnrollmentStatus.APPROVED.value]
    pending = [e for e in enrollments if e["status"] == EnrollmentStatus.PENDING.value]

    approved_per_course = Counter(e["course_id"] for e in approved)
    pending_per_course = Counter(e["course_id"] for e in pending)

    attendance = await _counted_attendance(db, courses)
    completed = len([c for c in courses if c["status"] == CourseStatus.COMPLETED.value])

    course_rows = []
    for course in serialize_many(courses):
        course.pop("sections", None)
        course["enrolled_count"] = approved_per_course[course["course_id"]]
        course["pending_count"] = pending_per_course[course["course_id"]]
        course_rows.append(course)

    return {
        "total_courses": len(courses),
        "active_courses": len([c for c in courses if c["status"] == CourseStatus.ACTIVE.value]),
        "total_students": len({e["student_id"] for e in approved}),
        "pending_requests": len(pending),
        "avg_attendance": _present_summary(attendance)["percentage"],
        "completion_rate": percentage(completed, len(courses)),
        "courses": course_rows
    }


async def course_effectiveness(db: AsyncIOMotorDatabase, teacher: UserContext) -> List[dict]:
    """
    Per course: approved students, share at 100% progress, mean day rating
    (None until someone rates) and how much feedback has been left.
    """
    courses = await _teacher_courses(db, teacher)
    course_ids = [c["course_id"] for c in courses]

    enrollments = await db.enrollments.find(
        {"course_id": {"$in": course_ids}, "status": EnrollmentStatus.APPROVED.value}
    ).to_list(length=None)
    ratings = await db.day_ratings.find({"course_id": {"$in": course_ids}}).to_list(length=None)
    feedback = await db.feedback.find({"course_id": {"$in": course_ids}}).to_list(length=None)

    by_course = defaultdict(list)
    for enrollment in enrollments:
        by_course[enrollment["course_id"]].append(enrollment)

    ratings_by_course = defaultdict(list)
    for rating in ratings:
        ratings_by_course[rating["course_id"]].append(rating["rating"])

    feedback_count = Counter(f["course_id"] for f in feedback)

    stats = []
    for course in courses:
        course_id = course["course_id"]
        students = by_course[course_id]
        finished = len([e for e in students if e.get("progress", 0) == 100])
        scores = ratings_by_course[course_id]
        stats.append({
            "course_id": course_id,
            "title": course["title"],
            "course_code": course.get("course_code"),
            "status": course["status"],
            "student_count": len(students),
            "completion_rate": percentage(finished, len(students)),
            "average_rating": round(sum(scores) / len(scores), 2) if scores else None,
            "rating_count": len(scores),
            "feedback_count": feedback_count[course_id]
        })
    return stats


async def enrollment_distribution(db: AsyncIOMotorDatabase, teacher: UserContext) -> List[dict]:
    courses = await _teacher_courses(db, teacher)
    enrollments = await db.enrollments.find({
        "course_id": {"$in": [c["course_id"] for c in courses]},
        "status": EnrollmentStatus.APPROVED.value
    }).to_list(length=None)
    counts = Counter(e["course_id"] for e in enrollments)

    return [
        {"course_id": c["course_id"], "course_name": c["title"], "enrollment_count": counts[c["course_id"]]}
        for c in courses
    ]


async def attendance_summary(db: AsyncIOMotorDatabase, teacher: UserContext) -> dict:
    courses = await _teacher_courses(db, teacher)
    attendance = await _counted_attendance(db, courses)

    per_course = defaultdict(list)
    for record in attendance:
        per_course[record["course_id"]].append(record)

    return {
        "overall": _present_summary(attendance),
        "by_course": [
            {"course_id": c["course_id"], "course_name": c["title"], **_present_summary(per_course[c["course_id"]])}
            for c in courses
        ]
    }


# ==================== STUDENT ====================

async def student_dashboard(db: AsyncIOMotorDatabase, student: UserContext) -> dict:
    """
    Overall attendance is present days over the total days of every approved
    course, so days not yet held count against it.
    """
    enrollments = await db.enrollments.find({"student_id": student.user_id}).to_list(length=None)
    approved = [e for e in enrollments if e["status"] == EnrollmentStatus.APPROVED.value]
    pending = [e for e in enrollments if e["status"] == EnrollmentStatus.PENDING.value]

    rows = []
    courses = []
    for enrollment in approved:
        course = await db.courses.find_one({"course_id": enrollment["course_id"]})
        if not course:
            continue
        courses.append(course)
        rows.append({
            "course": {
                "course_id": course["course_id"],
                "title": course["title"],
                "course_code": course.get("course_code"),
                "total_days": course["total_days"],
                "status": course["status"]
            },
            "progress": enrollment.get("progress", 0),
            "days_completed": enrollment.get("days_completed", 0),
            "enrollment": serialize_mongo(enrollment)
        })

    present = await _counted_attendance(db, courses, student_id=student.user_id, status="present")
    total_days = sum(c["total_days"] for c in courses)

    return {
        "total_enrolled": len(rows),
        "in_progress": len([
            r for r in rows
            if r["course"]["status"] == CourseStatus.ACTIVE.value and r["progress"] < 100
        ]),
        "completed": len([r for r in rows if r["progress"] == 100]),
        "overall_attendance": percentage(len(present), total_days),
        "pending_approvals": len(pending),
        "courses": rows
    }
