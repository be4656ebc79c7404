import logging
import secrets
import string
import time
from datetime import datetime
from typing import List, Optional

from fastapi.encoders import jsonable_encoder
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from training_portal.attendance.progress import count_present_days, percentage
from training_portal.certificates.certificate_models import Certificate, CompletionStats
from training_portal.certificates.eligibility import evaluate_eligibility
from training_portal.core.config import get_config
from training_portal.core.database import generate_id, serialize_many, serialize_mongo
from training_portal.core.errors import Conflict, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.courses.course_service import count_completed

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
BASE36_DIGITS = string.digits + string.ascii_uppercase
MAX_CODE_ATTEMPTS = 5


# ==================== CODES ====================

def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_certificate_number() -> str:
    """SF-{year}-{base36 ms timestamp}-{4 random base36}"""
    year = datetime.utcnow().year
    timestamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(BASE36_DIGITS) for _ in range(4))
    return f"SF-{year}-{timestamp}-{random_part}"


def generate_verification_code() -> str:
    """Twelve [A-Z0-9] characters grouped as XXXX-XXXX-XXXX"""
    chars = [secrets.choice(CODE_ALPHABET) for _ in range(12)]
    return "-".join("".join(chars[i:i + 4]) for i in range(0, 12, 4))


async def allocate_codes(db: AsyncIOMotorDatabase) -> tuple:
    """
    Pick a certificate number and verification code not used by any stored certificate

    Raises:
        409: No free pair found within MAX_CODE_ATTEMPTS
    """
    for _ in range(MAX_CODE_ATTEMPTS):
        number = generate_certificate_number()
        code = generate_verification_code()
        clash = await db.certificates.find_one({
            "$or": [{"certificate_number": number}, {"verification_code": code}]
        })
        if not clash:
            return number, code

    logger.error("Could not allocate a unique certificate number after %d attempts", MAX_CODE_ATTEMPTS)
    raise Conflict("Could not allocate a certificate number, please retry")


# ==================== ISSUING ====================

def check_gates(report: dict):
    """Raise the first unmet requirement, in the order a student has to fix them"""
    if not report["is_course_completed"]:
        raise ValidationFailed("Course is not yet completed")

    if not report["meets_attendance_requirement"]:
        minimum = get_config().MIN_ATTENDANCE_PERCENTAGE
        raise ValidationFailed(f"Attendance requirement not met. Minimum {minimum}% attendance required.")

    if report["pending_reviews"]:
        raise ValidationFailed({
            "message": "Please complete all pending reviews before downloading certificate",
            "pending_reviews": jsonable_encoder(report["pending_reviews"])
        })

    if not report["survey_submitted"]:
        raise ValidationFailed("Please complete the course evaluation first")


async def _create_certificate(db: AsyncIOMotorDatabase, student: UserContext, course: dict) -> dict:
    sections = course.get("sections", [])
    completed_days = count_completed(sections)
    attended_days = await count_present_days(db, student.user_id, course["course_id"], course["total_days"])
    teacher = await db.users.find_one({"user_id": course["teacher_id"]})

    number, code = await allocate_codes(db)

    certificate = Certificate(
        certificate_id=generate_id("CRT"),
        certificate_number=number,
        verification_code=code,
        student_id=student.user_id,
        course_id=course["course_id"],
        teacher_id=course["teacher_id"],
        student_name=student.name or "",
        course_name=course["title"],
        teacher_name=teacher.get("name") if teacher else "Unknown",
        completion_stats=CompletionStats(
            total_days=completed_days,
            attended_days=attended_days,
            attendance_percentage=percentage(attended_days, completed_days),
            course_start_date=sections[0].get("date") if sections else None,
            course_end_date=sections[-1].get("date") if sections else None
        )
    )
    doc = certificate.dict()
    await db.certificates.insert_one(doc)
    logger.info("Certificate %s issued to %s for %s", number, student.user_id, course["course_id"])

    await db.course_surveys.update_one(
        {"student_id": student.user_id, "course_id": course["course_id"]},
        {"$set": {
            "certificate_issued": True,
            "certificate_issued_at": doc["issued_at"],
            "certificate_number": number
        }}
    )
    return doc


async def issue_or_fetch_certificate(db: AsyncIOMotorDatabase, student: UserContext, course_id: str) -> dict:
    """
    Return the student's certificate for a course, creating it on first eligible call.
    Every call counts as a download.

    Raises:
        404: Course not found
        403: Not enrolled
        400: An eligibility requirement is unmet
    """
    report = await evaluate_eligibility(db, student.user_id, course_id)
    check_gates(report)

    pair = {"student_id": student.user_id, "course_id": course_id}
    if not await db.certificates.find_one(pair):
        course = await db.courses.find_one({"course_id": course_id})
        try:
            await _create_certificate(db, student, course)
        except DuplicateKeyError:
            # Lost a race for the same pair; the winner's certificate stands
            if not await db.certificates.find_one(pair):
                raise
            logger.info("Certificate for %s/%s created concurrently", student.user_id, course_id)

    certificate = await db.certificates.find_one_and_update(
        pair,
        {"$inc": {"download_count": 1}, "$set": {"last_downloaded_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER
    )
    return serialize_mongo(certificate)


# ==================== LOOKUPS ====================

async def verify_certificate(db: AsyncIOMotorDatabase, certificate_number: str) -> Optional[dict]:
    """Public view of a certificate, or None for an unknown number"""
    certificate = await db.certificates.find_one({"certificate_number": certificate_number})
    if not certificate:
        return None

    return {
        "valid": certificate.get("is_valid", True),
        "certificate": {
            "certificate_number": certificate["certificate_number"],
            "student_name": certificate["student_name"],
            "course_name": certificate["course_name"],
            "teacher_name": certificate["teacher_name"],
            "issued_at": certificate["issued_at"],
            "verification_code": certificate["verification_code"],
            "completion_stats": certificate["completion_stats"]
        }
    }


async def list_my_certificates(db: AsyncIOMotorDatabase, student: UserContext) -> List[dict]:
    cursor = db.certificates.find({"student_id": student.user_id}).sort("issued_at", -1)
    return serialize_many(await cursor.to_list(length=None))
