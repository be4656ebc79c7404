from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from training_portal.core.database import get_db
from training_portal.core.errors import Forbidden
from training_portal.core.permissions import UserContext, get_current_user
from training_portal.users import user_service as service
from training_portal.users.user_schemas import (
    LoginRequest, ProfileUpdate, RegisterRequest, TokenResponse, UserProfile
)

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
router = APIRouter(prefix="/users", tags=["Users"])


@auth_router.post("/register", response_model=TokenResponse, status_code=201)
async def register(data: RegisterRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Register a student or teacher account"""
    return await service.register_user(db, data.dict())


@auth_router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    return await service.login_user(db, data.email, data.password)


@router.get("/profile", response_model=UserProfile)
async def get_my_profile(
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    if user.is_admin:
        raise Forbidden("The operator account has no profile")
    return await service.get_profile(db, user.user_id)


@router.put("/profile", response_model=UserProfile)
async def update_my_profile(
    data: ProfileUpdate,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Update name, bio and the profile fields of the caller's role
    """
    if user.is_admin:
        raise Forbidden("The operator account has no profile")
    return await service.update_profile(db, user, data.dict(exclude_none=True))
