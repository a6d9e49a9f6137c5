from __future__ import annotations

import hmac
import secrets
from datetime import datetime, timedelta

from blogapi.models import Account
from blogapi.utils import normalize_time, utcnow

CODE_MIN = 100000
CODE_MAX = 999999


class VerificationCodes:
    """Six digit one-time codes bound to an expiry on the account row.

    Generating a code overwrites whatever code the account held before, so at
    most one code is outstanding. Validation never clears state; callers
    ``consume`` the code once the guarded action succeeds.
    """

    def __init__(self, ttl: timedelta) -> None:
        self.ttl = ttl

    def generate(self, account: Account, now: datetime | None = None) -> str:
        moment = now or utcnow()
        code = str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))
        account.verification_code = code
        account.verification_code_expiry = moment + self.ttl
        return code

    def validate(self, account: Account, code: str | None, now: datetime | None = None) -> bool:
        moment = now or utcnow()
        stored = account.verification_code
        expiry = normalize_time(account.verification_code_expiry)
        if not stored or expiry is None or not code:
            return False
        if expiry < moment:
            return False
        return hmac.compare_digest(stored.encode(), str(code).strip().encode())

    def consume(self, account: Account) -> None:
        account.verification_code = None
        account.verification_code_expiry = None
