from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field

from training_portal.core.database import serialize_many
from training_portal.core.permissions import UserContext


class AuditLog(BaseModel):
    actor_user_id: str
    role: str  # teacher, admin
    action: str  # approve_enrollment, complete_day, issue_certificate, etc.
    target_type: str  # course, enrollment, user
    target_id: str
    metadata: dict = {}
    timestamp: datetime = Field(default_factory=datetime.utcnow)


async def log_audit(
    db: AsyncIOMotorDatabase,
    actor: UserContext,
    action: str,
    target_type: str,
    target_id: str,
    metadata: dict = None
):
    """
    Log all destructive or important teacher/admin actions for auditability

    Args:
        actor: UserContext performing the action
        action: Action performed (e.g., 'approve_enrollment', 'complete_day')
        target_type: Resource type (e.g., 'course', 'enrollment', 'user')
        target_id: ID of the resource
        metadata: Additional context (optional)
    """
    audit_log = AuditLog(
        actor_user_id=actor.user_id,
        role=actor.role.value,
        action=action,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {}
    )

    await db.audit_logs.insert_one(audit_log.dict())


async def get_audit_trail(
    db: AsyncIOMotorDatabase,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    actor_user_id: Optional[str] = None,
    action: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: int = 100
) -> List[dict]:
    """
    Newest-first audit entries. Every filter is optional and they combine,
    e.g. one teacher's enrollment decisions on one course since a date.
    """
    filters = {
        "target_type": target_type,
        "target_id": target_id,
        "actor_user_id": actor_user_id,
        "action": action,
    }
    query = {field: value for field, value in filters.items() if value}
    if since:
        query["timestamp"] = {"$gte": since}

    cursor = db.audit_logs.find(query).sort("timestamp", -1).limit(limit)
    return serialize_many(await cursor.to_list(length=limit))
