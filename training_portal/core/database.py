import logging
import secrets
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from training_portal.core.config import get_config

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None


def get_db_instance() -> AsyncIOMotorDatabase:
    """Get the process-wide database handle"""
    global _client
    config = get_config()
    if _client is None:
        _client = AsyncIOMotorClient(config.MONGO_URL)
    return _client[config.MONGO_DB_NAME]


def close_client():
    global _client
    if _client is not None:
        _client.close()
        _client = None


# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_db_instance()


# ==================== HELPERS ====================

def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    """Drop the internal ObjectId so documents can be returned as JSON"""
    if doc is None:
        return None
    doc.pop("_id", None)
    return doc


def serialize_many(docs: List[dict]) -> List[dict]:
    return [serialize_mongo(doc) for doc in docs]


# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Create MongoDB indexes
    Called during application startup
    """

    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("email", unique=True)
    await db.users.create_index("role")

    # Courses
    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index("course_code", unique=True)
    await db.courses.create_index([("teacher_id", 1), ("created_at", -1)])
    await db.courses.create_index([("status", 1), ("enrollment_enabled", 1)])

    # Enrollments
    await db.enrollments.create_index("enrollment_id", unique=True)
    await db.enrollments.create_index([("student_id", 1), ("course_id", 1)], unique=True)
    await db.enrollments.create_index([("course_id", 1), ("status", 1)])

    # Attendance
    await db.attendance.create_index(
        [("student_id", 1), ("course_id", 1), ("day_number", 1)],
        unique=True
    )
    await db.attendance.create_index([("course_id", 1), ("day_number", 1)])
    await db.attendance.create_index([("marked_by", 1), ("marked_at", -1)])

    # Day ratings
    await db.day_ratings.create_index(
        [("student_id", 1), ("course_id", 1), ("day_number", 1)],
        unique=True
    )

    # Evaluations and surveys
    await db.evaluations.create_index([("student_id", 1), ("course_id", 1)], unique=True)
    await db.course_surveys.create_index([("student_id", 1), ("course_id", 1)], unique=True)
    await db.course_surveys.create_index("teacher_id")

    # Free-text feedback
    await db.feedback.create_index([("course_id", 1), ("created_at", -1)])
    await db.feedback.create_index([("student_id", 1), ("created_at", -1)])

    # Certificates
    await db.certificates.create_index([("student_id", 1), ("course_id", 1)], unique=True)
    await db.certificates.create_index("certificate_number", unique=True)
    await db.certificates.create_index("verification_code")

    # Audit logs
    await db.audit_logs.create_index([("target_type", 1), ("target_id", 1)])
    await db.audit_logs.create_index([("actor_user_id", 1), ("timestamp", -1)])

    logger.info("Training portal indexes created")
