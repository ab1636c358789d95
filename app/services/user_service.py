"""
User service - the authenticated user's own account.

Username and email uniqueness is enforced by the database; the repository
reports a clash as ``DuplicateKeyError`` which is translated to
``ConflictError`` here.
"""
import logging

from app.cache import RequestCache
from app.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from app.models import User
from app.repositories import DuplicateKeyError, UserRepository
from app.schemas import UserUpdate
from app.security import hash_password, verify_password
from app.serializers import user_to_dict

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"
EMAIL_USERNAME_EXISTS = "Email or username already exists"
CURRENT_PASSWORD_REQUIRED = "Please enter current password to change to new password"
CURRENT_PASSWORD_INVALID = "Current password is incorrect"

_PROFILE_FIELDS = ("email", "username", "bio", "image")


class UserService:
    def __init__(self, users: UserRepository, cache: RequestCache | None = None) -> None:
        self._users = users
        self._cache = cache

    async def _get_or_404(self, user_id: int) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    async def get_current_user(self, user_id: int) -> dict:
        user = await self._get_or_404(user_id)
        return {"user": user_to_dict(user)}

    async def update_user(self, user_id: int, data: UserUpdate) -> dict:
        """
        Partially update the account.  A password change needs both
        ``new_password`` and the correct ``current_password``; a
        ``current_password`` sent on its own is ignored.
        """
        user = await self._get_or_404(user_id)
        payload = data.model_dump(exclude_unset=True)
        fields = {k: payload[k] for k in _PROFILE_FIELDS if k in payload}
        # email and username are required columns; null means "leave as is".
        for key in ("email", "username"):
            if key in fields and fields[key] is None:
                del fields[key]

        if data.new_password:
            if not data.current_password:
                raise BadRequestError(CURRENT_PASSWORD_REQUIRED)
            if not verify_password(data.current_password, user.password_hash):
                raise UnauthorizedError(CURRENT_PASSWORD_INVALID)
            fields["password_hash"] = hash_password(data.new_password)

        try:
            await self._users.update(user, fields)
        except DuplicateKeyError as exc:
            raise ConflictError(EMAIL_USERNAME_EXISTS) from exc

        # Listings embed the author's username, bio and image.
        if self._cache is not None:
            await self._cache.invalidate_listings()
        logger.info("User %d updated fields: %s", user_id, ", ".join(sorted(fields)) or "none")
        return {"user": user_to_dict(user)}
