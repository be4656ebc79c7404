"""
Admin API Router
Operator login, teacher approval, user management, course and attendance reports,
progress reconciliation and the audit trail
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.admin import admin_service as service
from training_portal.attendance.progress import recompute_course_progress
from training_portal.core.audit import get_audit_trail, log_audit
from training_portal.core.database import get_db
from training_portal.core.errors import NotFound
from training_portal.core.permissions import UserContext, get_current_admin
from training_portal.users.user_schemas import LoginRequest

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/login")
async def admin_login(data: LoginRequest):
    return service.admin_login(data.email, data.password)


@router.get("/users")
async def list_users(
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_users(db)


@router.put("/approve-teacher/{user_id}")
async def approve_teacher(
    user_id: str,
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    user = await service.set_teacher_verification(db, admin, user_id, True)
    return {"message": "Teacher approved successfully", "user": user}


@router.put("/revoke-teacher/{user_id}")
async def revoke_teacher(
    user_id: str,
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    user = await service.set_teacher_verification(db, admin, user_id, False)
    return {"message": "Teacher approval revoked", "user": user}


@router.delete("/user/{user_id}")
async def delete_user(
    user_id: str,
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await service.delete_user(db, admin, user_id)
    return {"message": "User deleted successfully"}


@router.post("/courses/{course_id}/recompute-progress")
async def reconcile_course_progress(
    course_id: str,
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Re-derive progress for every approved enrollment of a course from stored attendance.
    Safe to repeat; repairs enrollments left stale by an interrupted fan-out.
    """
    if not await db.courses.find_one({"course_id": course_id}):
        raise NotFound("Course not found")

    summary = await recompute_course_progress(db, course_id)
    await log_audit(db, admin, "recompute_progress", "course", course_id, summary)
    return summary


@router.get("/audit-logs")
async def audit_logs(
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    actor_user_id: Optional[str] = None,
    action: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=500),
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    logs = await get_audit_trail(
        db,
        target_type=target_type,
        target_id=target_id,
        actor_user_id=actor_user_id,
        action=action,
        since=since,
        limit=limit
    )
    return {"logs": logs, "count": len(logs)}


@router.get("/courses")
async def list_courses(
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.list_courses(db)


@router.get("/attendance-reports")
async def attendance_reports(
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Day-by-day attendance and per-student summary for every course
    """
    return await service.attendance_reports(db)


@router.get("/attendance-reports/{course_id}")
async def attendance_report(
    course_id: str,
    admin: UserContext = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.attendance_report(db, course_id)
