import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.attendance.progress import percentage, recompute_course_progress, recompute_progress
from training_portal.core.audit import log_audit
from training_portal.core.database import generate_id, serialize_many, serialize_mongo
from training_portal.core.errors import ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.courses.course_service import find_section, set_day_completion

logger = logging.getLogger(__name__)


def _student_summary(student: Optional[dict], student_id: str) -> dict:
    return {
        "user_id": student_id,
        "name": student.get("name") if student else None,
        "email": student.get("email") if student else None,
        "roll_number": (student or {}).get("roll_number") or "",
        "branch": (student or {}).get("branch") or "",
        "section": (student or {}).get("section") or "",
    }


async def _approved_enrollments(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    return await db.enrollments.find({"course_id": course_id, "status": "approved"}).to_list(length=None)


# ==================== MARKING ====================

async def mark_attendance(
    db: AsyncIOMotorDatabase,
    teacher: UserContext,
    course: dict,
    day_number: int,
    records: List[dict]
) -> List[dict]:
    """
    Upsert one attendance record per (student, course, day) and refresh each student's progress.
    Records for students without an approved enrollment are skipped.
    """
    if day_number < 1 or day_number > course["total_days"]:
        raise ValidationFailed("Invalid day number")

    course_id = course["course_id"]
    approved = {e["student_id"] for e in await _approved_enrollments(db, course_id)}

    saved = []
    for record in records:
        student_id = record["student_id"]
        if student_id not in approved:
            logger.warning("Skipping attendance for %s on %s: no approved enrollment", student_id, course_id)
            continue

        now = datetime.utcnow()
        key = {"student_id": student_id, "course_id": course_id, "day_number": day_number}
        await db.attendance.update_one(
            key,
            {
                "$set": {
                    "status": record["status"],
                    "notes": record.get("notes") or "",
                    "marked_by": teacher.user_id,
                    "marked_at": now
                },
                "$setOnInsert": {"attendance_id": generate_id("ATT")}
            },
            upsert=True
        )
        saved.append(serialize_mongo(await db.attendance.find_one(key)))

        await recompute_progress(db, student_id, course_id, course)

    await log_audit(db, teacher, "mark_attendance", "course", course_id,
                    {"day_number": day_number, "records": len(saved)})
    return saved


async def change_day_completion(
    db: AsyncIOMotorDatabase,
    teacher: UserContext,
    course: dict,
    day_number: int,
    completed: bool
) -> dict:
    """Mark or unmark a day and recompute progress for every approved student"""
    section = await set_day_completion(db, teacher, course, day_number, completed)
    summary = await recompute_course_progress(db, course["course_id"])
    return {"section": section, **summary}


# ==================== VIEWS ====================

async def get_day_attendance(db: AsyncIOMotorDatabase, course_id: str, day_number: int) -> List[dict]:
    """Approved students with their mark for one day (None when unmarked)"""
    enrollments = await _approved_enrollments(db, course_id)
    marks = await db.attendance.find({"course_id": course_id, "day_number": day_number}).to_list(length=None)
    by_student = {m["student_id"]: serialize_mongo(m) for m in marks}

    result = []
    for enr in enrollments:
        student = await db.users.find_one({"user_id": enr["student_id"]})
        mark = by_student.get(enr["student_id"])
        result.append({
            "student": _student_summary(student, enr["student_id"]),
            "enrollment_id": enr["enrollment_id"],
            "attendance": mark,
            "status": mark["status"] if mark else None
        })
    return result


async def get_history(db: AsyncIOMotorDatabase, teacher: UserContext, course_id: Optional[str] = None) -> List[dict]:
    """Records marked by this teacher grouped per course and day"""
    query = {"marked_by": teacher.user_id}
    if course_id:
        query["course_id"] = course_id

    records = await db.attendance.find(query).sort("marked_at", -1).to_list(length=None)

    groups = {}
    for record in serialize_many(records):
        key = (record["course_id"], record["day_number"])
        if key not in groups:
            groups[key] = {
                "course_id": record["course_id"],
                "day_number": record["day_number"],
                "date": record["marked_at"],
                "records": []
            }
        groups[key]["records"].append(record)

    result = []
    for group in groups.values():
        present = len([r for r in group["records"] if r["status"] == "present"])
        total = len(group["records"])
        group.update({
            "present_count": present,
            "absent_count": total - present,
            "total_count": total,
            "attendance_percentage": percentage(present, total)
        })
        result.append(group)
    return result


async def get_student_attendance(db: AsyncIOMotorDatabase, student: UserContext, course_id: Optional[str] = None) -> List[dict]:
    """Per-course present/absent counts for the calling student"""
    query = {"student_id": student.user_id}
    if course_id:
        query["course_id"] = course_id

    records = await db.attendance.find(query).sort("day_number", 1).to_list(length=None)

    stats = {}
    for record in serialize_many(records):
        cid = record["course_id"]
        if cid not in stats:
            course = await db.courses.find_one({"course_id": cid}) or {}
            stats[cid] = {
                "course": {
                    "course_id": cid,
                    "title": course.get("title"),
                    "course_code": course.get("course_code"),
                    "total_days": course.get("total_days", 0)
                },
                "total_days": course.get("total_days", 0),
                "present": 0,
                "absent": 0,
                "records": []
            }
        if record["day_number"] > stats[cid]["total_days"]:
            continue
        stats[cid]["records"].append(record)
        if record["status"] == "present":
            stats[cid]["present"] += 1
        else:
            stats[cid]["absent"] += 1

    for stat in stats.values():
        stat["attendance_percentage"] = percentage(stat["present"], stat["total_days"])
    return list(stats.values())


async def get_course_report(db: AsyncIOMotorDatabase, course: dict) -> dict:
    """Day-by-day roster plus a per-student summary"""
    course_id = course["course_id"]
    enrollments = await _approved_enrollments(db, course_id)
    total_days = course["total_days"]
    records = await db.attendance.find(
        {"course_id": course_id, "day_number": {"$lte": total_days}}
    ).to_list(length=None)
    teacher = await db.users.find_one({"user_id": course["teacher_id"]})

    students = {}
    for enr in enrollments:
        student = await db.users.find_one({"user_id": enr["student_id"]})
        students[enr["student_id"]] = _student_summary(student, enr["student_id"])

    marks = {(r["student_id"], r["day_number"]): r for r in records}

    days = []
    for day in range(1, total_days + 1):
        section = find_section(course, day) or {}
        topics = section.get("topics") or []
        roster = []
        for student_id, summary in students.items():
            mark = marks.get((student_id, day))
            roster.append({
                **summary,
                "status": mark["status"] if mark else "not-marked",
                "notes": mark.get("notes", "") if mark else ""
            })
        days.append({
            "day_number": day,
            "topic": topics[0].get("heading") if topics and topics[0].get("heading") else f"Day {day}",
            "completed": section.get("completed", False),
            "students": roster,
            "present_count": len([s for s in roster if s["status"] == "present"]),
            "absent_count": len([s for s in roster if s["status"] == "absent"]),
            "total_students": len(roster)
        })

    summary = []
    for student_id, info in students.items():
        present = len([r for r in records if r["student_id"] == student_id and r["status"] == "present"])
        absent = len([r for r in records if r["student_id"] == student_id and r["status"] == "absent"])
        summary.append({
            **info,
            "present_days": present,
            "absent_days": absent,
            "total_days": total_days,
            "percentage": percentage(present, total_days)
        })

    return {
        "course": {
            "course_id": course_id,
            "title": course["title"],
            "course_code": course.get("course_code"),
            "total_days": total_days,
            "teacher": teacher.get("name") if teacher else None
        },
        "days": days,
        "student_summary": summary,
        "total_students": len(students)
    }
