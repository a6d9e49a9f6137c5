from __future__ import annotations

from datetime import timedelta

from blogapi.config import AuthConfig


def make_auth_config(**overrides) -> AuthConfig:
    values = dict(
        max_login_attempts=5,
        lock_duration=timedelta(minutes=30),
        verification_code_ttl=timedelta(minutes=10),
        access_token_ttl_seconds=900,
        refresh_token_ttl_seconds=7 * 86400,
        access_token_secret="access-secret",
        refresh_token_secret="refresh-secret",
        password_hash_rounds=1,
        login_rate_limit_max=100,
        login_rate_limit_window_seconds=60,
    )
    values.update(overrides)
    return AuthConfig(**values)


class RecordingNotifier:
    def __init__(self, delivered: bool = True) -> None:
        self.delivered = delivered
        self.sent: list[tuple] = []

    def send_verification_code(self, email: str, username: str, code: str) -> bool:
        self.sent.append(("verification", email, username, code))
        return self.delivered

    def send_welcome(self, email: str, username: str) -> bool:
        self.sent.append(("welcome", email, username))
        return self.delivered

    def send_relogin_code(self, email: str, username: str, code: str) -> bool:
        self.sent.append(("relogin", email, username, code))
        return self.delivered

    def last(self, kind: str) -> tuple:
        return [entry for entry in self.sent if entry[0] == kind][-1]


class RaisingNotifier(RecordingNotifier):
    def send_verification_code(self, email: str, username: str, code: str) -> bool:
        raise RuntimeError("smtp down")
