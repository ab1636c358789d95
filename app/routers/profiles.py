from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import CurrentUserId, OptionalUserId, get_profile_service
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])

Service = Annotated[ProfileService, Depends(get_profile_service)]

@router.get("/{username}")
async def get_profile(username: str, viewer_id: OptionalUserId, service: Service):
    return await service.get_profile(username, viewer_id)

@router.post("/{username}/follow")
async def follow_user(username: str, user_id: CurrentUserId, service: Service):
    return await service.set_follow(username, user_id, on=True)

@router.delete("/{username}/follow")
async def unfollow_user(username: str, user_id: CurrentUserId, service: Service):
    return await service.set_follow(username, user_id, on=False)
