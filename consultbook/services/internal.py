from datetime import timedelta
from enum import Enum

import jwt
from httpx import AsyncClient

from consultbook.settings import settings
from consultbook.utils.utc import utcnow


def create_internal_token(ttl: int = settings.internal_jwt_ttl) -> str:
    return jwt.encode(
        {"exp": utcnow() + timedelta(seconds=ttl), "aud": "internal"}, settings.jwt_secret, algorithm="HS256"
    )


class InternalService(Enum):
    NOTIFICATIONS = settings.notification_url

    @property
    def client(self) -> AsyncClient:
        return AsyncClient(
            base_url=self.value.rstrip("/"),
            headers={"Authorization": create_internal_token()},
            timeout=settings.notification_timeout,
        )
