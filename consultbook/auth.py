from typing import Any

import jwt
from fastapi import Depends, Path
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from consultbook.exceptions.auth import EmailNotVerifiedError, InvalidTokenError, PermissionDeniedError
from consultbook.schemas.user import Role, User, UserAccessToken
from consultbook.settings import settings


bearer = HTTPBearer(auto_error=False)


def decode_jwt(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=["HS256"], options={"require": ["exp"]})


async def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> User:
    if credentials is None:
        raise InvalidTokenError

    try:
        token = UserAccessToken.model_validate(decode_jwt(credentials.credentials))
    except (jwt.InvalidTokenError, ValidationError):
        raise InvalidTokenError

    if await token.is_revoked():
        raise InvalidTokenError

    return token.to_user()


user_auth: Any = Depends(get_current_user)


@Depends
async def require_verified_email(user: User = user_auth) -> None:
    if not user.email_verified and not user.admin:
        raise EmailNotVerifiedError


@Depends
async def require_consultant(user: User = user_auth) -> None:
    if user.role != Role.CONSULTANT and not user.admin:
        raise PermissionDeniedError


def get_user(require_self_or_admin: bool = False) -> Any:
    async def dependency(user_id: str = Path(), user: User = user_auth) -> str:
        if require_self_or_admin and user_id != user.id and not user.admin:
            raise PermissionDeniedError
        return user_id

    return Depends(dependency)
