from __future__ import annotations

from passlib.hash import argon2


class PasswordHasher:
    """Salted argon2 digests; ``rounds`` is the argon2 time cost."""

    def __init__(self, rounds: int = 3) -> None:
        self.rounds = rounds
        self._handler = argon2.using(rounds=rounds)

    def hash(self, plaintext: str) -> str:
        return self._handler.hash(plaintext)

    def verify(self, plaintext: str, digest: str | None) -> bool:
        # external-identity accounts carry no digest
        if not digest:
            return False
        try:
            return self._handler.verify(plaintext, digest)
        except (TypeError, ValueError):
            return False
