from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import CurrentUserId, get_user_service
from app.schemas import UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/api/v1/user", tags=["user"])

Service = Annotated[UserService, Depends(get_user_service)]

@router.get("")
async def get_current_user(user_id: CurrentUserId, service: Service):
    return await service.get_current_user(user_id)

@router.put("")
async def update_user(data: UserUpdate, user_id: CurrentUserId, service: Service):
    return await service.update_user(user_id, data)
