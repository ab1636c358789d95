"""Profile service - public user profiles and the follow edge."""
import logging

from app.errors import BadRequestError, NotFoundError
from app.models import User
from app.repositories import FollowRepository, UserRepository
from app.serializers import profile_to_dict
from app.services.user_service import USER_NOT_FOUND

logger = logging.getLogger(__name__)

CANNOT_FOLLOW_YOURSELF = "You cannot follow yourself"


class ProfileService:
    def __init__(self, users: UserRepository, follows: FollowRepository) -> None:
        self._users = users
        self._follows = follows

    async def _get_or_404(self, username: str) -> User:
        user = await self._users.get_by_username(username)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    async def get_profile(self, username: str, viewer_id: int | None = None) -> dict:
        user = await self._get_or_404(username)
        following = False
        if viewer_id is not None and viewer_id != user.id:
            following = await self._follows.exists(viewer_id, user.id)
        return {"profile": profile_to_dict(user, following)}

    async def set_follow(self, username: str, user_id: int, on: bool) -> dict:
        """
        Idempotently follow (*on*) or unfollow *username*.

        Following yourself is always rejected; unfollowing yourself is a
        no-op since that edge can never exist.
        """
        target = await self._get_or_404(username)
        if target.id == user_id:
            if on:
                raise BadRequestError(CANNOT_FOLLOW_YOURSELF)
            return {"profile": profile_to_dict(target, False)}

        if on:
            await self._follows.add(user_id, target.id)
        else:
            await self._follows.remove(user_id, target.id)

        logger.info("User %d %s %r", user_id, "followed" if on else "unfollowed", username)
        return {"profile": profile_to_dict(target, on)}
