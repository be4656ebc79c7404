import logging
from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.auth_utils import create_access_token, hash_password, verify_password
from training_portal.core.database import generate_id, serialize_mongo
from training_portal.core.errors import NotFound, Unauthorized, ValidationFailed
from training_portal.core.permissions import UserContext
from training_portal.users.user_models import Role, User

logger = logging.getLogger(__name__)

STUDENT_FIELDS = ("roll_number", "branch", "section")
TEACHER_FIELDS = ("department", "designation", "phone")


def public_profile(user: dict) -> dict:
    """Strip secrets before returning a user document"""
    user = serialize_mongo(dict(user))
    user.pop("password_hash", None)
    return user


def role_profile_fields(role: Role) -> tuple:
    if role is Role.STUDENT:
        return STUDENT_FIELDS
    elif role is Role.TEACHER:
        return TEACHER_FIELDS
    elif role is Role.ADMIN:
        return ()
    raise ValueError(f"Unhandled role: {role}")


# ==================== REGISTRATION / LOGIN ====================

async def register_user(db: AsyncIOMotorDatabase, data: dict) -> dict:
    """Create a student or teacher account"""
    if await db.users.find_one({"email": data["email"]}):
        raise ValidationFailed("User already exists")

    role = Role(data["role"])
    profile = {field: data.get(field) for field in role_profile_fields(role)}

    user = User(
        user_id=generate_id("USR"),
        name=data["name"].strip(),
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=role,
        **profile
    )

    doc = user.dict()
    await db.users.insert_one(doc)
    logger.info("Registered %s %s", role.value, user.user_id)

    return {
        "token": create_access_token(user.user_id, role.value),
        "user": public_profile(doc)
    }


async def login_user(db: AsyncIOMotorDatabase, email: str, password: str) -> dict:
    user = await db.users.find_one({"email": email})
    if not user or not verify_password(password, user.get("password_hash", "")):
        logger.warning("Failed login for %s", email)
        raise Unauthorized("Invalid credentials")

    return {
        "token": create_access_token(user["user_id"], user["role"]),
        "user": public_profile(user)
    }


# ==================== PROFILE ====================

async def get_profile(db: AsyncIOMotorDatabase, user_id: str) -> dict:
    user = await db.users.find_one({"user_id": user_id})
    if not user:
        raise NotFound("User not found")
    return public_profile(user)


async def update_profile(db: AsyncIOMotorDatabase, user: UserContext, data: dict) -> dict:
    """Update common fields plus the fields belonging to the caller's role"""
    allowed = ("name", "bio") + role_profile_fields(user.role)
    updates = {k: v for k, v in data.items() if k in allowed and v is not None}
    updates["updated_at"] = datetime.utcnow()

    await db.users.update_one({"user_id": user.user_id}, {"$set": updates})
    return await get_profile(db, user.user_id)
