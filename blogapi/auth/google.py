"""Google OAuth: authorization redirect, code exchange and userinfo lookup."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from typing import Any, Mapping
from urllib.parse import urlencode

import httpx
import jwt

from blogapi.errors import AuthError
from blogapi.logging import get_logger

from .service import ExternalIdentity

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = ("openid", "profile", "email")
STATE_TTL_SECONDS = 600

logger = get_logger("auth.google")


def state_secret(secret: str) -> str:
    """Key for signing OAuth state, derived from the access-token secret."""
    return hmac.new(secret.encode(), b"blogapi-oauth-state", hashlib.sha256).hexdigest()


def create_state(secret: str, ttl_seconds: int = STATE_TTL_SECONDS) -> str:
    payload = {
        "nonce": secrets.token_urlsafe(16),
        "purpose": "oauth_state",
        "exp": int(time.time()) + ttl_seconds,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def verify_state(state: str | None, secret: str) -> bool:
    if not state:
        return False
    try:
        payload = jwt.decode(state, secret, algorithms=["HS256"])
    except jwt.InvalidTokenError:
        return False
    return payload.get("purpose") == "oauth_state"


class GoogleOAuthClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> ExternalIdentity:
        if not code:
            raise AuthError("validation", "Authorization code is required")
        tokens = self._request(
            "POST",
            TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        access_token = tokens.get("access_token")
        if not access_token:
            raise AuthError("upstream_unavailable", "Google did not return an access token")
        profile = self._request("GET", USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        return self._identity_from_profile(profile)

    def _identity_from_profile(self, profile: Mapping[str, Any]) -> ExternalIdentity:
        subject = profile.get("sub")
        email = profile.get("email")
        if not subject or not email:
            raise AuthError("upstream_unavailable", "Google profile is missing id or email")
        return ExternalIdentity(
            subject=str(subject),
            email=str(email),
            display_name=profile.get("name"),
            photo_url=profile.get("picture"),
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> Mapping[str, Any]:
        try:
            if self._http_client is not None:
                response = self._http_client.request(method, url, timeout=self.timeout_seconds, **kwargs)
            else:
                with httpx.Client() as client:
                    response = client.request(method, url, timeout=self.timeout_seconds, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Google OAuth request failed: %s %s", method, url, exc_info=True)
            raise AuthError("upstream_unavailable", "Google authentication failed") from exc
        if not isinstance(payload, Mapping):
            raise AuthError("upstream_unavailable", "Google authentication failed")
        return payload
