from __future__ import annotations

# Error codes grouped by the kind a client branches on.
ERROR_KINDS = {
    "validation": "validation",
    "email_taken": "conflict",
    "username_taken": "conflict",
    "conflict": "conflict",
    "not_found": "not_found",
    "invalid_credentials": "invalid_credentials",
    "locked": "locked",
    "invalid_code": "invalid_code",
    "already_verified": "already_verified",
    "invalid_token": "invalid_token",
    "token_expired": "expired_token",
    "forbidden": "forbidden",
    "rate_limited": "rate_limited",
    "upstream_unavailable": "upstream_unavailable",
}

DEFAULT_MESSAGES = {
    "validation": "Validation failed",
    "email_taken": "User with this email already exists",
    "username_taken": "Username is already taken",
    "conflict": "Account already exists",
    "not_found": "User not found",
    "invalid_credentials": "Invalid email or password",
    "locked": "Account is temporarily locked due to multiple failed login attempts. Please try again later.",
    "invalid_code": "Invalid or expired verification code",
    "already_verified": "Email is already verified",
    "invalid_token": "Invalid or expired token",
    "token_expired": "Invalid or expired token",
    "forbidden": "Insufficient permissions",
    "rate_limited": "Too many requests. Please try again later.",
    "upstream_unavailable": "Service temporarily unavailable",
}


class AuthError(Exception):
    def __init__(self, code: str, message: str | None = None) -> None:
        if code not in ERROR_KINDS:
            raise ValueError(f"Unknown auth error code: {code}")
        super().__init__(code)
        self.code = code
        self.message = message or DEFAULT_MESSAGES[code]

    @property
    def kind(self) -> str:
        return ERROR_KINDS[self.code]

    def __str__(self) -> str:
        return self.code
