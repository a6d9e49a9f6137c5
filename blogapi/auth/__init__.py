"""Account security: passwords, verification codes, lockout, tokens and login flows."""

from blogapi.errors import AuthError

from .codes import VerificationCodes
from .lockout import LockoutTracker
from .passwords import PasswordHasher
from .policy import is_allowed, require
from .rate_limit import RateLimiter
from .service import (
    AuthService,
    ExternalIdentity,
    LoginResult,
    RegistrationResult,
    VerificationResult,
)
from .tokens import TokenIssuer, TokenPair

__all__ = [
    "AuthError",
    "AuthService",
    "ExternalIdentity",
    "LockoutTracker",
    "LoginResult",
    "PasswordHasher",
    "RateLimiter",
    "RegistrationResult",
    "TokenIssuer",
    "TokenPair",
    "VerificationCodes",
    "VerificationResult",
    "is_allowed",
    "require",
]
