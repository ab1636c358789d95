"""Signup and login: the only places that issue bearer tokens."""
import logging

from app.errors import ConflictError, UnauthorizedError
from app.models import User
from app.repositories import DuplicateKeyError, UserRepository
from app.schemas import LoginRequest, SignupRequest
from app.security import create_access_token, hash_password, verify_password
from app.services.user_service import EMAIL_USERNAME_EXISTS

logger = logging.getLogger(__name__)

ACCOUNT_NOT_EXISTS = "Account does not exist"
WRONG_PASSWORD = "Wrong password"


class AuthService:
    def __init__(self, users: UserRepository) -> None:
        self._users = users

    async def signup(self, data: SignupRequest) -> dict:
        user = User(
            email=data.email,
            username=data.username,
            password_hash=hash_password(data.password),
        )
        try:
            await self._users.create(user)
        except DuplicateKeyError as exc:
            raise ConflictError(EMAIL_USERNAME_EXISTS) from exc

        logger.info("User %r signed up", user.username)
        return {"access_token": create_access_token(user.id, user.email)}

    async def login(self, data: LoginRequest) -> dict:
        user = await self._users.get_by_email(data.email)
        if user is None:
            raise UnauthorizedError(ACCOUNT_NOT_EXISTS)
        if not verify_password(data.password, user.password_hash):
            raise UnauthorizedError(WRONG_PASSWORD)

        logger.info("User %r logged in", user.username)
        return {"access_token": create_access_token(user.id, user.email)}
