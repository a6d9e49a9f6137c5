from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

import jwt

from blogapi.auth import AuthError, TokenIssuer


class TokenIssuerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.issuer = TokenIssuer(
            access_secret="access-secret",
            refresh_secret="refresh-secret",
            access_ttl_seconds=900,
            refresh_ttl_seconds=7 * 86400,
        )

    def test_issue_pair_round_trips_account_id(self) -> None:
        pair = self.issuer.issue(42)
        self.assertEqual(pair.expires_in, 900)
        self.assertNotEqual(pair.access_token, pair.refresh_token)
        self.assertEqual(self.issuer.verify_access(pair.access_token), 42)
        self.assertEqual(self.issuer.verify_refresh(pair.refresh_token), 42)
        self.assertEqual(
            pair.to_dict(),
            {"accessToken": pair.access_token, "refreshToken": pair.refresh_token, "expiresIn": 900},
        )

    def test_pairs_issued_in_same_instant_differ(self) -> None:
        moment = datetime.now(timezone.utc)
        first = self.issuer.issue(1, moment)
        second = self.issuer.issue(1, moment)
        self.assertNotEqual(first.refresh_token, second.refresh_token)

    def test_families_do_not_cross_verify(self) -> None:
        pair = self.issuer.issue(7)
        with self.assertRaises(AuthError) as ctx:
            self.issuer.verify_access(pair.refresh_token)
        self.assertEqual(ctx.exception.code, "invalid_token")
        with self.assertRaises(AuthError):
            self.issuer.verify_refresh(pair.access_token)

    def test_same_secret_with_wrong_type_claim_rejected(self) -> None:
        moment = datetime.now(timezone.utc)
        forged = jwt.encode(
            {"id": 7, "type": "refresh", "iat": moment, "exp": moment + timedelta(minutes=5)},
            "access-secret",
            algorithm="HS256",
        )
        with self.assertRaises(AuthError):
            self.issuer.verify_access(forged)

    def test_expired_token_reports_token_expired(self) -> None:
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        pair = self.issuer.issue(3, past)
        with self.assertRaises(AuthError) as ctx:
            self.issuer.verify_access(pair.access_token)
        self.assertEqual(ctx.exception.code, "token_expired")
        self.assertEqual(ctx.exception.kind, "expired_token")
        self.assertEqual(self.issuer.verify_refresh(pair.refresh_token), 3)

    def test_tampered_and_garbage_tokens_rejected(self) -> None:
        pair = self.issuer.issue(5)
        tampered = pair.access_token[:-2] + ("AA" if not pair.access_token.endswith("AA") else "BB")
        for token in (tampered, "garbage", ""):
            with self.subTest(token=token), self.assertRaises(AuthError) as ctx:
                self.issuer.verify_access(token)
            self.assertEqual(ctx.exception.code, "invalid_token")

    def test_shared_secret_is_refused(self) -> None:
        with self.assertRaises(ValueError):
            TokenIssuer("same", "same", 60, 120)


if __name__ == "__main__":
    unittest.main()
