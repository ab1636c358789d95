from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import get_auth_service
from app.schemas import LoginRequest, SignupRequest, TokenResponse
from app.services.auth_service import AuthService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

Service = Annotated[AuthService, Depends(get_auth_service)]

@router.post("/signup", status_code=201, response_model=TokenResponse)
async def signup(data: SignupRequest, service: Service):
    return await service.signup(data)

@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, service: Service):
    return await service.login(data)
