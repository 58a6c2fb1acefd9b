# api/profile.py

from fastapi import APIRouter, HTTPException, Depends
from typing import Any, Dict, Optional

from models.schemas import ProfileComplete, ProfileUpdate, ProfileResponse
from services.auth_service import get_current_user_id
from services.supabase_service import get_supabase_service

router = APIRouter(prefix="/api/profile", tags=["profile"])

PROFILE_FIELDS = ("age", "gender", "height")


def get_profile_store():
    return get_supabase_service()


def to_profile_response(user_id: str, profile: Optional[Dict[str, Any]]) -> ProfileResponse:
    profile = profile or {}
    return ProfileResponse(
        id=user_id,
        age=profile.get('age'),
        gender=profile.get('gender'),
        height=profile.get('height'),
        profile_complete=all(profile.get(field) not in (None, "") for field in PROFILE_FIELDS),
        updated_at=profile.get('updated_at'),
    )


@router.get("", response_model=ProfileResponse)
async def get_profile(
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_profile_store),
):
    """Get the signed-in user's profile"""
    try:
        profile = await store.get_profile(user_id)
    except Exception as e:
        print(f"❌ Error fetching profile data: {e}")
        raise HTTPException(status_code=503, detail="Could not load your profile data")

    return to_profile_response(user_id, profile)


@router.post("/complete", response_model=ProfileResponse)
async def complete_profile(
    profile_data: ProfileComplete,
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_profile_store),
):
    """Store age, gender and height in one step"""
    try:
        profile = await store.upsert_profile(user_id, profile_data.model_dump())
    except Exception as e:
        print(f"❌ Error completing profile: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to complete profile: {e}")

    print(f"✅ Profile completed for user {user_id}")
    return to_profile_response(user_id, profile)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_profile_store),
):
    """Update one or more profile fields"""
    # Convert to dict and remove None values
    update_data = {k: v for k, v in profile_data.model_dump().items() if v is not None}
    if not update_data:
        raise HTTPException(status_code=400, detail="No profile fields to update")

    try:
        profile = await store.upsert_profile(user_id, update_data)
    except Exception as e:
        print(f"❌ Error updating profile: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update profile: {e}")

    return to_profile_response(user_id, profile)
