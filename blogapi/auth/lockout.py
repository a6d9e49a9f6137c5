from __future__ import annotations

from datetime import datetime, timedelta

from blogapi.models import Account
from blogapi.utils import normalize_time, utcnow


class LockoutTracker:
    """Failed-login counter with a timed lock.

    Locked is derived from ``lock_until``; nothing is stored when a lock runs
    out. A lock that has run out restarts the count on the next failure.
    """

    def __init__(self, max_attempts: int, lock_duration: timedelta) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.lock_duration = lock_duration

    def is_locked(self, account: Account, now: datetime | None = None) -> bool:
        moment = now or utcnow()
        lock_until = normalize_time(account.lock_until)
        return lock_until is not None and lock_until > moment

    def lock_expired(self, account: Account, now: datetime | None = None) -> bool:
        moment = now or utcnow()
        lock_until = normalize_time(account.lock_until)
        return lock_until is not None and lock_until <= moment

    def record_failure(
        self,
        account: Account,
        now: datetime | None = None,
        already_counted: bool = False,
    ) -> bool:
        """Count a failed attempt and lock once the threshold is reached.

        Pass ``already_counted=True`` when the repository has incremented
        ``failed_login_attempts`` in SQL. Returns True when this call set the lock.
        """
        moment = now or utcnow()
        if not already_counted:
            if self.lock_expired(account, moment):
                self.record_success(account)
            account.failed_login_attempts = (account.failed_login_attempts or 0) + 1
        if account.failed_login_attempts >= self.max_attempts and not self.is_locked(account, moment):
            account.lock_until = moment + self.lock_duration
            return True
        return False

    def record_success(self, account: Account) -> None:
        account.failed_login_attempts = 0
        account.lock_until = None
