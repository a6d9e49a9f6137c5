from __future__ import annotations

import functools
import hmac
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from blogapi.config import AuthConfig
from blogapi.errors import AuthError
from blogapi.logging import log_auth_event
from blogapi.models import Account, Role
from blogapi.notifications import Notifier, NullNotifier
from blogapi.repositories import AccountRepository
from blogapi.utils import normalize_time, utcnow

from .codes import VerificationCodes
from .lockout import LockoutTracker
from .passwords import PasswordHasher
from .rate_limit import RateLimiter
from .tokens import TokenIssuer, TokenPair

logger = logging.getLogger("blogapi.auth.service")

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,30}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]{2,}$")
MIN_PASSWORD_LENGTH = 6
USERNAME_ATTEMPTS = 10


@dataclass(frozen=True)
class ExternalIdentity:
    subject: str
    email: str
    display_name: str | None = None
    photo_url: str | None = None


@dataclass(frozen=True)
class RegistrationResult:
    account_id: int
    email_sent: bool


@dataclass(frozen=True)
class VerificationResult:
    account: Account
    welcome_sent: bool


@dataclass(frozen=True)
class LoginResult:
    account: Account
    tokens: TokenPair | None = None
    pending: bool = False
    email_sent: bool | None = None
    created: bool = False


@functools.lru_cache(maxsize=4)
def _dummy_digest(rounds: int) -> str:
    return PasswordHasher(rounds).hash(secrets.token_urlsafe(16))


def _username_base(name: str) -> str:
    base = re.sub(r"\s+", "", name).lower()
    base = re.sub(r"[^a-z0-9_]", "", base)[:27]
    if len(base) < 3:
        base = f"user{base}"[:27]
    return base


class AuthService:
    def __init__(
        self,
        session: Session,
        config: AuthConfig,
        notifier: Notifier | None = None,
        rate_limiter: RateLimiter | None = None,
        hasher: PasswordHasher | None = None,
    ) -> None:
        self.session = session
        self.config = config
        self.accounts = AccountRepository(session)
        self.notifier = notifier or NullNotifier()
        self.rate_limiter = rate_limiter or RateLimiter(
            config.login_rate_limit_max, config.login_rate_limit_window_seconds
        )
        self.hasher = hasher or PasswordHasher(config.password_hash_rounds)
        self.codes = VerificationCodes(config.verification_code_ttl)
        self.lockout = LockoutTracker(config.max_login_attempts, config.lock_duration)
        self.tokens = TokenIssuer(
            access_secret=config.access_token_secret,
            refresh_secret=config.refresh_token_secret,
            access_ttl_seconds=config.access_token_ttl_seconds,
            refresh_ttl_seconds=config.refresh_token_ttl_seconds,
        )

    def register(self, username: str, email: str, password: str, now: datetime | None = None) -> RegistrationResult:
        moment = now or utcnow()
        username = (username or "").strip()
        normalized_email = (email or "").strip().lower()
        self._validate_registration(username, normalized_email, password)
        if self.accounts.find_by_email(normalized_email):
            raise AuthError("email_taken")
        if self.accounts.find_by_username(username):
            raise AuthError("username_taken")
        account = Account(
            username=username,
            email=normalized_email,
            password_hash=self.hasher.hash(password),
            role=Role.AUTHOR.value,
            is_verified=False,
            failed_login_attempts=0,
        )
        code = self.codes.generate(account, moment)
        self.accounts.create(account)
        email_sent = self._notify("verification", self.notifier.send_verification_code, account.email, account.username, code)
        log_auth_event("register", "success", account.id, {"email_sent": email_sent})
        return RegistrationResult(account_id=account.id, email_sent=email_sent)

    def verify_email(self, email: str, code: str, now: datetime | None = None) -> VerificationResult:
        moment = now or utcnow()
        account = self._require_account(email)
        if account.is_verified:
            raise AuthError("already_verified")
        if not self.codes.validate(account, code, moment):
            log_auth_event("verify_email", "invalid_code", account.id)
            raise AuthError("invalid_code")
        account.is_verified = True
        self.codes.consume(account)
        self.accounts.save(account)
        welcome_sent = self._notify("welcome", self.notifier.send_welcome, account.email, account.username)
        log_auth_event("verify_email", "success", account.id, {"welcome_sent": welcome_sent})
        return VerificationResult(account=account, welcome_sent=welcome_sent)

    def resend_verification(self, email: str, now: datetime | None = None) -> bool:
        moment = now or utcnow()
        account = self._require_account(email)
        if account.is_verified:
            raise AuthError("already_verified")
        code = self.codes.generate(account, moment)
        self.accounts.save(account)
        email_sent = self._notify("verification", self.notifier.send_verification_code, account.email, account.username, code)
        log_auth_event("resend_verification", "success", account.id, {"email_sent": email_sent})
        return email_sent

    def login(self, email: str, password: str, now: datetime | None = None) -> LoginResult:
        moment = now or utcnow()
        normalized_email = (email or "").strip().lower()
        if not self.rate_limiter.allow(normalized_email, moment):
            log_auth_event("login", "rate_limited")
            raise AuthError("rate_limited")
        account = self.accounts.find_by_email(normalized_email) if normalized_email else None
        if account is None:
            # same hashing cost as a real check so unknown emails are not distinguishable by timing
            self.hasher.verify(password or "", _dummy_digest(self.hasher.rounds))
            log_auth_event("login", "unknown_account")
            raise AuthError("invalid_credentials")
        if self.lockout.is_locked(account, moment):
            log_auth_event("login", "locked", account.id)
            raise AuthError("locked")
        if not self.hasher.verify(password or "", account.password_hash):
            self._register_failure(account, moment)
            raise AuthError("invalid_credentials")
        if account.failed_login_attempts or account.lock_until is not None:
            self.lockout.record_success(account)

        last_login = normalize_time(account.last_login)
        if last_login is not None and last_login < moment - self.config.relogin_after:
            code = self.codes.generate(account, moment)
            self.accounts.save(account)
            email_sent = self._notify("relogin", self.notifier.send_relogin_code, account.email, account.username, code)
            log_auth_event("login", "pending_reverification", account.id, {"email_sent": email_sent})
            return LoginResult(account=account, pending=True, email_sent=email_sent)

        tokens = self._start_session(account, moment)
        log_auth_event("login", "success", account.id)
        return LoginResult(account=account, tokens=tokens)

    def complete_pending_login(self, email: str, code: str, now: datetime | None = None) -> LoginResult:
        moment = now or utcnow()
        account = self._require_account(email)
        if not self.codes.validate(account, code, moment):
            log_auth_event("login_verify", "invalid_code", account.id)
            raise AuthError("invalid_code")
        self.codes.consume(account)
        tokens = self._start_session(account, moment)
        log_auth_event("login_verify", "success", account.id)
        return LoginResult(account=account, tokens=tokens)

    def refresh(self, refresh_token: str, now: datetime | None = None) -> TokenPair:
        moment = now or utcnow()
        try:
            account_id = self.tokens.verify_refresh(refresh_token)
        except AuthError as exc:
            log_auth_event("refresh", exc.code)
            raise AuthError("invalid_token") from exc
        account = self.accounts.find_by_id(account_id)
        if account is None or not account.refresh_token or not hmac.compare_digest(
            account.refresh_token.encode(), refresh_token.encode()
        ):
            log_auth_event("refresh", "stale_token", account_id)
            raise AuthError("invalid_token")
        tokens = self.tokens.issue(account.id, moment)
        if not self.accounts.rotate_refresh_token(account.id, refresh_token, tokens.refresh_token):
            log_auth_event("refresh", "lost_rotation", account.id)
            raise AuthError("invalid_token")
        self.accounts.reload(account)
        log_auth_event("refresh", "success", account.id)
        return tokens

    def logout(self, account: Account) -> None:
        account.refresh_token = None
        self.accounts.save(account)
        log_auth_event("logout", "success", account.id)

    def authenticate(self, access_token: str, now: datetime | None = None) -> Account:
        moment = now or utcnow()
        account_id = self.tokens.verify_access(access_token)
        account = self.accounts.find_by_id(account_id)
        if account is None:
            raise AuthError("invalid_token")
        if self.lockout.is_locked(account, moment):
            raise AuthError("locked")
        return account

    def login_external(self, identity: ExternalIdentity, now: datetime | None = None) -> LoginResult:
        moment = now or utcnow()
        email = identity.email.strip().lower()
        created = False
        account = self.accounts.find_by_google_id(identity.subject)
        if account is None:
            account = self.accounts.find_by_email(email)
            if account is not None:
                account.google_id = identity.subject
                account.is_verified = True
                if not account.profile_photo and identity.photo_url:
                    account.profile_photo = identity.photo_url
                log_auth_event("external_login", "linked", account.id)
            else:
                account = self._create_external_account(identity, email, moment)
                created = True
        tokens = self._start_session(account, moment)
        log_auth_event("external_login", "success", account.id, {"created": created})
        return LoginResult(account=account, tokens=tokens, created=created)

    def set_role(self, actor: Account, account_id: int, role: str) -> Account:
        if actor.id == account_id:
            raise AuthError("validation", "You cannot change your own role")
        if role not in {r.value for r in Role}:
            raise AuthError("validation", "Role must be one of viewer, author, admin")
        account = self.accounts.find_by_id(account_id)
        if account is None:
            raise AuthError("not_found")
        account.role = role
        self.accounts.save(account)
        log_auth_event("set_role", "success", account.id, {"role": role, "actor_id": actor.id})
        return account

    def _create_external_account(self, identity: ExternalIdentity, email: str, moment: datetime) -> Account:
        base = _username_base(identity.display_name or email.split("@")[0])
        for _ in range(USERNAME_ATTEMPTS):
            candidate = f"{base}{secrets.randbelow(1000)}"
            if self.accounts.find_by_username(candidate):
                continue
            account = Account(
                google_id=identity.subject,
                username=candidate,
                email=email,
                profile_photo=identity.photo_url,
                role=Role.AUTHOR.value,
                is_verified=True,
                failed_login_attempts=0,
            )
            try:
                return self.accounts.create(account)
            except AuthError as exc:
                if exc.code != "username_taken":
                    raise
        raise AuthError("conflict", "Could not allocate a unique username")

    def _start_session(self, account: Account, moment: datetime) -> TokenPair:
        tokens = self.tokens.issue(account.id, moment)
        account.refresh_token = tokens.refresh_token
        account.last_login = moment
        self.accounts.save(account)
        return tokens

    def _register_failure(self, account: Account, moment: datetime) -> None:
        if self.lockout.lock_expired(account, moment):
            self.lockout.record_success(account)
            self.accounts.save(account)
        attempts = self.accounts.increment_failed_attempts(account)
        locked = self.lockout.record_failure(account, moment, already_counted=True)
        if locked:
            self.accounts.save(account)
        log_auth_event("login", "locked_out" if locked else "bad_password", account.id, {"attempts": attempts})

    def _require_account(self, email: str) -> Account:
        normalized_email = (email or "").strip().lower()
        account = self.accounts.find_by_email(normalized_email) if normalized_email else None
        if account is None:
            raise AuthError("not_found")
        return account

    def _validate_registration(self, username: str, email: str, password: str) -> None:
        if not USERNAME_RE.match(username):
            raise AuthError(
                "validation",
                "Username must be 3-30 characters of letters, numbers, and underscores",
            )
        if len(email) > 255 or not EMAIL_RE.match(email):
            raise AuthError("validation", "Please provide a valid email")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError("validation", f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    def _notify(self, kind: str, send: Callable[..., bool], *args: str) -> bool:
        try:
            return bool(send(*args))
        except Exception:
            logger.warning("Notifier raised while sending %s email", kind, exc_info=True)
            return False
