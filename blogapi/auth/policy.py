from __future__ import annotations

from blogapi.errors import AuthError
from blogapi.models import Account, Role

ROLE_RANK = {Role.VIEWER.value: 0, Role.AUTHOR.value: 1, Role.ADMIN.value: 2}

# action -> minimum role
MINIMUM_ROLE = {
    "blog:read": Role.VIEWER.value,
    "blog:create": Role.AUTHOR.value,
    "blog:update": Role.AUTHOR.value,
    "blog:delete": Role.AUTHOR.value,
    "comment:create": Role.VIEWER.value,
    "comment:delete": Role.VIEWER.value,
    "user:list": Role.ADMIN.value,
    "user:update_role": Role.ADMIN.value,
    "user:delete": Role.ADMIN.value,
}

# below admin, these actions are limited to the resource owner
OWNER_SCOPED = frozenset({"blog:update", "blog:delete", "comment:delete"})
VERIFIED_ONLY = frozenset({"comment:create"})


def has_role(account: Account, required_role: str) -> bool:
    if required_role not in ROLE_RANK:
        raise AuthError("validation", f"Unknown role: {required_role}")
    return ROLE_RANK.get(account.role, -1) >= ROLE_RANK[required_role]


def is_allowed(account: Account | None, action: str, owner_id: int | None = None) -> bool:
    if action not in MINIMUM_ROLE:
        raise AuthError("validation", f"Unknown action: {action}")
    if account is None:
        return action == "blog:read"
    if not has_role(account, MINIMUM_ROLE[action]):
        return False
    if action in VERIFIED_ONLY and not account.is_verified:
        return False
    if action in OWNER_SCOPED and account.role != Role.ADMIN.value:
        return owner_id is not None and owner_id == account.id
    return True


def require(account: Account | None, action: str, owner_id: int | None = None) -> None:
    if not is_allowed(account, action, owner_id):
        raise AuthError("forbidden")
