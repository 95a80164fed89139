"""
User Routes - profile of the signed-in user
"""
from fastapi import APIRouter, Depends
from auth import get_current_user_id
from service_modules.user_service import get_user_service, UserService
from models import UserProfileRequest, UserProfile

router = APIRouter()


@router.post("/api/users/me", response_model=UserProfile)
async def upsert_me(
    profile: UserProfileRequest,
    user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    """Create or update the caller's profile as reported by the identity provider."""
    return service.upsert_user(user_id, profile.email, profile.name, profile.phone_number)


@router.get("/api/users/me", response_model=UserProfile)
async def get_me(
    user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service)
):
    return service.get_user(user_id)
