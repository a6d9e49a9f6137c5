from __future__ import annotations

import enum
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, UniqueConstraint, func

from .db import Base


class Role(str, enum.Enum):
    VIEWER = "viewer"
    AUTHOR = "author"
    ADMIN = "admin"


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("username", name="uq_accounts_username"),
        UniqueConstraint("email", name="uq_accounts_email"),
        UniqueConstraint("google_id", name="uq_accounts_google_id"),
        CheckConstraint("role IN ('viewer', 'author', 'admin')", name="ck_accounts_role"),
        CheckConstraint("password_hash IS NOT NULL OR google_id IS NOT NULL", name="ck_accounts_credential"),
    )

    id = Column(Integer, primary_key=True)
    username = Column(String(30), nullable=False)
    email = Column(String(255), nullable=False)
    google_id = Column(String(255))
    password_hash = Column(String)
    profile_photo = Column(String)
    role = Column(String(16), nullable=False, default=Role.VIEWER.value)
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_code = Column(String(6))
    verification_code_expiry = Column(DateTime(timezone=True))
    failed_login_attempts = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime(timezone=True))
    refresh_token = Column(String)
    last_login = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "is_verified": bool(self.is_verified),
            "profile_photo": self.profile_photo,
            "google_linked": self.google_id is not None,
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
