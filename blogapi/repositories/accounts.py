from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from blogapi.errors import AuthError
from blogapi.models import Account

logger = logging.getLogger("blogapi.repositories.accounts")


class AccountRepository:
    """Account persistence over a caller-owned SQLAlchemy session.

    Database failures roll the session back and surface as
    ``AuthError("upstream_unavailable")``; unique-index violations on create
    surface as the matching conflict code.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, account_id: int) -> Account | None:
        with self._guard():
            return self.session.get(Account, account_id)

    def find_by_email(self, email: str) -> Account | None:
        normalized = email.strip().lower()
        if not normalized:
            return None
        with self._guard():
            return self.session.query(Account).filter_by(email=normalized).first()

    def find_by_username(self, username: str) -> Account | None:
        normalized = username.strip()
        if not normalized:
            return None
        with self._guard():
            return self.session.query(Account).filter_by(username=normalized).first()

    def find_by_google_id(self, google_id: str) -> Account | None:
        if not google_id:
            return None
        with self._guard():
            return self.session.query(Account).filter_by(google_id=google_id).first()

    def create(self, account: Account) -> Account:
        account.email = account.email.strip().lower()
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise AuthError(self._conflict_code(account)) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("account create failed", exc_info=True)
            raise AuthError("upstream_unavailable") from exc
        self.session.refresh(account)
        return account

    def save(self, account: Account) -> Account:
        with self._guard():
            self.session.add(account)
            self.session.commit()
            self.session.refresh(account)
        return account

    def reload(self, account: Account) -> Account:
        with self._guard():
            self.session.refresh(account)
        return account

    def increment_failed_attempts(self, account: Account) -> int:
        """Atomically bump the failure counter and reload it into ``account``."""
        stmt = (
            update(Account)
            .where(Account.id == account.id)
            .values(failed_login_attempts=Account.failed_login_attempts + 1)
            .execution_options(synchronize_session=False)
        )
        with self._guard():
            self.session.execute(stmt)
            self.session.commit()
            self.session.refresh(account)
        return account.failed_login_attempts

    def rotate_refresh_token(self, account_id: int, presented: str, replacement: str) -> bool:
        """Swap the stored refresh token only if it still equals ``presented``."""
        stmt = (
            update(Account)
            .where(Account.id == account_id, Account.refresh_token == presented)
            .values(refresh_token=replacement)
            .execution_options(synchronize_session=False)
        )
        with self._guard():
            result = self.session.execute(stmt)
            self.session.commit()
        return result.rowcount == 1

    def list_accounts(self, role: str | None = None) -> list[Account]:
        with self._guard():
            query = self.session.query(Account)
            if role:
                query = query.filter_by(role=role)
            return list(query.order_by(Account.id).all())

    def _conflict_code(self, account: Account) -> str:
        if self.find_by_email(account.email):
            return "email_taken"
        if self.find_by_username(account.username):
            return "username_taken"
        return "conflict"

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("account store unavailable", exc_info=True)
            raise AuthError("upstream_unavailable") from exc
