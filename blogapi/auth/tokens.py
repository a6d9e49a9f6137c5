from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import jwt

from blogapi.errors import AuthError
from blogapi.utils import utcnow

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresIn": self.expires_in,
        }


class TokenIssuer:
    """Issues and verifies the two JWT families.

    Access and refresh tokens are signed with separate secrets and carry a
    ``type`` claim, so a token from one family never verifies as the other.
    Every token gets a random ``jti`` so two pairs issued within the same
    second still differ.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl_seconds: int,
        refresh_ttl_seconds: int,
    ) -> None:
        if access_secret == refresh_secret:
            raise ValueError("access and refresh secrets must differ")
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_ttl_seconds = access_ttl_seconds
        self.refresh_ttl_seconds = refresh_ttl_seconds

    def issue(self, account_id: int, now: datetime | None = None) -> TokenPair:
        moment = now or utcnow()
        return TokenPair(
            access_token=self._encode(account_id, ACCESS, moment),
            refresh_token=self._encode(account_id, REFRESH, moment),
            expires_in=self.access_ttl_seconds,
        )

    def verify_access(self, token: str) -> int:
        return self._decode(token, ACCESS)

    def verify_refresh(self, token: str) -> int:
        return self._decode(token, REFRESH)

    def _encode(self, account_id: int, token_type: str, moment: datetime) -> str:
        if token_type == ACCESS:
            secret, ttl = self.access_secret, self.access_ttl_seconds
        else:
            secret, ttl = self.refresh_secret, self.refresh_ttl_seconds
        payload = {
            "id": account_id,
            "type": token_type,
            "jti": secrets.token_urlsafe(16),
            "iat": moment,
            "exp": moment + timedelta(seconds=ttl),
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def _decode(self, token: str, token_type: str) -> int:
        if not token or not isinstance(token, str):
            raise AuthError("invalid_token")
        secret = self.access_secret if token_type == ACCESS else self.refresh_secret
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", "id"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("token_expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("invalid_token") from exc
        if payload.get("type") != token_type:
            raise AuthError("invalid_token")
        account_id = payload.get("id")
        if not isinstance(account_id, int) or isinstance(account_id, bool):
            raise AuthError("invalid_token")
        return account_id
