"""Account emails delivered through an HTTP email API (Resend-compatible).

Every send returns True/False and never raises: a failed delivery must not
undo the account change that preceded it.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger("blogapi.notifications")

DEFAULT_TIMEOUT_SECONDS = 10.0
APP_NAME = "Blog API"


class Notifier(Protocol):
    def send_verification_code(self, email: str, username: str, code: str) -> bool: ...

    def send_welcome(self, email: str, username: str) -> bool: ...

    def send_relogin_code(self, email: str, username: str, code: str) -> bool: ...


def _code_block(code: str, expiry_minutes: int) -> str:
    return (
        '<div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px; text-align: center;">'
        '<h3 style="margin: 0;">Your Verification Code</h3>'
        f'<div style="font-size: 32px; font-weight: bold; letter-spacing: 4px; margin: 10px 0;">{code}</div>'
        f'<p style="color: #666; margin: 0;">This code will expire in {expiry_minutes} minutes</p>'
        "</div>"
    )


class EmailNotifier:
    def __init__(
        self,
        api_key: str,
        sender: str,
        code_expiry_minutes: int,
        api_url: str = "https://api.resend.com/emails",
        http_client: httpx.Client | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.sender = sender
        self.code_expiry_minutes = code_expiry_minutes
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    def send_verification_code(self, email: str, username: str, code: str) -> bool:
        html = (
            f"<h2>Welcome to {APP_NAME}!</h2>"
            f"<p>Hello <strong>{username}</strong>,</p>"
            "<p>Thank you for registering. To complete your registration and start "
            "publishing blogs, please verify your email address.</p>"
            f"{_code_block(code, self.code_expiry_minutes)}"
            "<p>If you didn't create an account with us, please ignore this email.</p>"
        )
        return self._send(email, f"Email Verification - {APP_NAME}", html, "verification")

    def send_welcome(self, email: str, username: str) -> bool:
        html = (
            f"<h2>Welcome to {APP_NAME}!</h2>"
            f"<p>Hello <strong>{username}</strong>,</p>"
            "<p>Your email has been verified and your account is now active.</p>"
            "<ul><li>Create and publish blog posts</li>"
            "<li>Upload cover images for your blogs</li>"
            "<li>Comment on and like other blogs</li>"
            "<li>Bookmark your favorite posts</li></ul>"
            "<p>Happy blogging!</p>"
        )
        return self._send(email, f"Welcome to {APP_NAME}!", html, "welcome")

    def send_relogin_code(self, email: str, username: str, code: str) -> bool:
        html = (
            f"<p>Hello <strong>{username}</strong>,</p>"
            "<p>You have been inactive for over a week. Enter this code to finish signing in.</p>"
            f"{_code_block(code, self.code_expiry_minutes)}"
            "<p>If this wasn't you, you can ignore this email.</p>"
        )
        return self._send(email, f"Login Verification - {APP_NAME}", html, "relogin")

    def _send(self, to_email: str, subject: str, html: str, kind: str) -> bool:
        payload = {"from": self.sender, "to": to_email, "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            if self._http_client is not None:
                response = self._http_client.post(
                    self.api_url, json=payload, headers=headers, timeout=self.timeout_seconds
                )
            else:
                with httpx.Client() as client:
                    response = client.post(
                        self.api_url, json=payload, headers=headers, timeout=self.timeout_seconds
                    )
            response.raise_for_status()
        except httpx.HTTPError:
            logger.warning("Failed to send %s email", kind, exc_info=True)
            return False
        logger.info("Sent %s email", kind)
        return True


class NullNotifier:
    """Used when no email API key is configured; nothing is delivered."""

    def send_verification_code(self, email: str, username: str, code: str) -> bool:
        return self._skip("verification")

    def send_welcome(self, email: str, username: str) -> bool:
        return self._skip("welcome")

    def send_relogin_code(self, email: str, username: str, code: str) -> bool:
        return self._skip("relogin")

    def _skip(self, kind: str) -> bool:
        logger.warning("Email delivery disabled; %s email not sent", kind)
        return False
