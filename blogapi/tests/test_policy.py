from __future__ import annotations

import unittest

from blogapi.auth import AuthError, is_allowed, require
from blogapi.auth.policy import has_role
from blogapi.models import Account


def make_account(account_id: int, role: str, verified: bool = True) -> Account:
    return Account(id=account_id, username=f"user{account_id}", email=f"u{account_id}@x.com", role=role, is_verified=verified)


class PolicyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.viewer = make_account(1, "viewer")
        self.author = make_account(2, "author")
        self.admin = make_account(3, "admin")

    def test_role_ranking(self) -> None:
        self.assertTrue(has_role(self.admin, "author"))
        self.assertTrue(has_role(self.author, "viewer"))
        self.assertFalse(has_role(self.viewer, "author"))
        with self.assertRaises(AuthError):
            has_role(self.viewer, "superuser")

    def test_anonymous_may_only_read(self) -> None:
        self.assertTrue(is_allowed(None, "blog:read"))
        self.assertFalse(is_allowed(None, "blog:create"))
        self.assertFalse(is_allowed(None, "comment:create"))

    def test_authors_manage_only_their_own_posts(self) -> None:
        self.assertTrue(is_allowed(self.author, "blog:create"))
        self.assertTrue(is_allowed(self.author, "blog:update", owner_id=2))
        self.assertFalse(is_allowed(self.author, "blog:update", owner_id=5))
        self.assertFalse(is_allowed(self.author, "blog:delete"))
        self.assertFalse(is_allowed(self.viewer, "blog:create"))

    def test_admin_bypasses_ownership(self) -> None:
        self.assertTrue(is_allowed(self.admin, "blog:delete", owner_id=99))
        self.assertTrue(is_allowed(self.admin, "user:update_role"))
        self.assertFalse(is_allowed(self.author, "user:list"))

    def test_commenting_needs_verified_email(self) -> None:
        unverified = make_account(4, "viewer", verified=False)
        self.assertTrue(is_allowed(self.viewer, "comment:create"))
        self.assertFalse(is_allowed(unverified, "comment:create"))

    def test_require_raises_forbidden(self) -> None:
        require(self.admin, "user:list")
        with self.assertRaises(AuthError) as ctx:
            require(self.viewer, "user:list")
        self.assertEqual(ctx.exception.code, "forbidden")

    def test_unknown_action_is_rejected(self) -> None:
        with self.assertRaises(AuthError) as ctx:
            is_allowed(self.admin, "blog:publish")
        self.assertEqual(ctx.exception.code, "validation")


if __name__ == "__main__":
    unittest.main()
