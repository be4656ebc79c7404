from typing import Callable

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.auth_utils import verify_bearer_token
from training_portal.core.config import get_config
from training_portal.core.database import get_db
from training_portal.core.errors import Forbidden, NotFound, Unauthorized
from training_portal.users.user_models import Role

ADMIN_USER_ID = "ADMIN"


class UserContext:
    """
    Contains the validated caller and their role
    """
    def __init__(self, user_id: str, role: Role, profile: dict):
        self.user_id = user_id
        self.role = role
        self.name = profile.get("name")
        self.email = profile.get("email")
        self.verified_teacher = profile.get("verified_teacher", False)
        self.profile = profile

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


async def get_current_user(
    payload: dict = Depends(verify_bearer_token),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> UserContext:
    """
    Dependency: Resolves the bearer token to a UserContext

    Raises:
        401: Invalid token or unknown user
    """
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token: missing user_id")

    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise Unauthorized("Invalid token: unknown role")

    if role is Role.ADMIN:
        # The operator account lives in configuration, not in the users collection
        config = get_config()
        if not config.admin_configured or payload.get("email") != config.ADMIN_EMAIL:
            raise Unauthorized("Invalid admin token")
        return UserContext(ADMIN_USER_ID, Role.ADMIN, {"name": "Administrator", "email": config.ADMIN_EMAIL})

    user = await db.users.find_one({"user_id": user_id})
    if not user:
        raise Unauthorized("User no longer exists")

    # Role stored on the account is authoritative over the token claim
    return UserContext(user_id, Role(user["role"]), user)


def require_role(*roles: Role) -> Callable:
    """Build a dependency that only lets the given roles through"""
    allowed = frozenset(roles)

    async def dependency(user: UserContext = Depends(get_current_user)) -> UserContext:
        if user.role not in allowed:
            names = " or ".join(sorted(role.value for role in allowed))
            raise Forbidden(f"Access denied. {names.capitalize()} privileges required.")
        return user

    return dependency


get_current_student = require_role(Role.STUDENT)
get_current_teacher = require_role(Role.TEACHER)
get_current_admin = require_role(Role.ADMIN)


async def verify_course_ownership(
    db: AsyncIOMotorDatabase,
    course_id: str,
    teacher: UserContext
) -> dict:
    """
    Validates teacher owns this course

    Returns:
        dict: Course document

    Raises:
        404: Course not found
        403: Not the owner
    """
    course = await db.courses.find_one({"course_id": course_id})

    if not course:
        raise NotFound("Course not found")

    if course.get("teacher_id") != teacher.user_id:
        raise Forbidden("Not authorized")

    return course
