from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.database import get_db
from app.security import current_user_id
from models.user import UserProfile
from schemas.user import ProfileSetRequest, ProfileResponse

router = APIRouter()

@router.get("/profile", response_model=ProfileResponse | None)
async def get_profile(user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    profile = res.scalar_one_or_none()
    if not profile:
        return None
    return ProfileResponse(user_id=profile.user_id, user_name=profile.user_name or "")

@router.post("/profile", response_model=ProfileResponse)
async def set_profile(
    payload: ProfileSetRequest,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    res = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    profile = res.scalar_one_or_none()
    if profile:
        profile.user_name = payload.user_name
    else:
        profile = UserProfile(user_id=user_id, user_name=payload.user_name)
        db.add(profile)
    await db.commit()
    return ProfileResponse(user_id=user_id, user_name=payload.user_name)
