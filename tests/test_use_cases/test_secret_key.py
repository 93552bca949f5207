"""Use case: a secret key unlocks a role, a user lookup unlocks admin."""
from __future__ import annotations

from enum import Enum

import pytest

from aumos_acl_graph import Acl, ContextScope


class Roles(str, Enum):
    PUBLIC = "public"
    HAS_SECRET_KEY = "has_secret_key"
    IS_ADMIN = "is_admin"


async def get_user(user_id: object) -> dict[str, object]:
    """Mock user lookup: 1 is an administrator, 2 a normal user."""
    if user_id == 1:
        return {"id": 1, "is_admin": True}
    if user_id == 2:
        return {"id": 2, "is_admin": False}
    raise LookupError("User not found")


async def has_secret_key(scope: ContextScope) -> bool:
    return scope.get("key") == "super_secret"


async def is_admin(scope: ContextScope) -> bool:
    scope["user"] = await get_user(scope.get("user_id"))
    return bool(scope["user"]["is_admin"])


@pytest.fixture()
def acl() -> Acl:
    return Acl(Roles.PUBLIC, [
        {
            "from": Roles.PUBLIC,
            "to": Roles.HAS_SECRET_KEY,
            "explain": "Super secret key must be passed",
            "check": has_secret_key,
        },
        {
            "from": Roles.HAS_SECRET_KEY,
            "to": Roles.IS_ADMIN,
            "explain": "User is an administrator",
            "check": is_admin,
        },
    ])


class TestSecretKey:
    @pytest.mark.asyncio
    async def test_wrong_or_missing_key_denied(self, acl: Acl) -> None:
        assert await acl.check(Roles.HAS_SECRET_KEY, {}) is None
        assert await acl.check(Roles.HAS_SECRET_KEY, {"key": "wrong_super_secret"}) is None

    @pytest.mark.asyncio
    async def test_right_key_allowed(self, acl: Acl) -> None:
        assert await acl.check(Roles.HAS_SECRET_KEY, {"key": "super_secret"}) is not None

    @pytest.mark.asyncio
    async def test_admin_denied_without_key(self, acl: Acl) -> None:
        assert await acl.check(Roles.IS_ADMIN, {}) is None
        assert await acl.check(Roles.IS_ADMIN, {"key": "wrong_super_secret", "user_id": 1}) is None

    @pytest.mark.asyncio
    async def test_admin_denied_for_non_admin_or_unknown_user(self, acl: Acl) -> None:
        assert await acl.check(Roles.IS_ADMIN, {"key": "super_secret", "user_id": 2}) is None
        assert await acl.check(Roles.IS_ADMIN, {"key": "super_secret", "user_id": 3}) is None

    @pytest.mark.asyncio
    async def test_admin_allowed_and_user_returned(self, acl: Acl) -> None:
        result = await acl.check(Roles.IS_ADMIN, {"key": "super_secret", "user_id": 1})
        assert result is not None
        assert result["user"] == {"id": 1, "is_admin": True}
        assert result["key"] == "super_secret"

    @pytest.mark.asyncio
    async def test_unknown_role_denied(self, acl: Acl) -> None:
        assert await acl.check("unknown_role", {}) is None
        assert await acl.check("unknown_role", {"key": "super_secret", "user_id": 1}) is None

    @pytest.mark.asyncio
    async def test_public_always_allowed(self, acl: Acl) -> None:
        assert await acl.check(Roles.PUBLIC, {}) is not None

    @pytest.mark.asyncio
    async def test_explain_unknown_user(self, acl: Acl) -> None:
        records = await acl.explain(Roles.IS_ADMIN, {"key": "super_secret", "user_id": 3})
        assert [(r.to, r.check_passed) for r in records] == [
            ("has_secret_key", True),
            ("is_admin", False),
        ]
        assert records[1].error == "LookupError('User not found')"


class TestMinimalScenario:
    """public -[key == 's']-> secret -[always]-> admin."""

    @pytest.fixture()
    def acl(self) -> Acl:
        async def key_matches(scope: ContextScope) -> bool:
            scope["key_checked"] = True
            return scope.get("key") == "s"

        return Acl("public", [
            {"from": "public", "to": "secret", "explain": "Key matches", "check": key_matches},
            {"from": "secret", "to": "admin", "explain": "Secret holders are admins"},
        ])

    @pytest.mark.asyncio
    async def test_secret_with_key(self, acl: Acl) -> None:
        assert await acl.check("secret", {"key": "s"}) is not None

    @pytest.mark.asyncio
    async def test_secret_with_wrong_key(self, acl: Acl) -> None:
        assert await acl.check("secret", {"key": "x"}) is None

    @pytest.mark.asyncio
    async def test_admin_with_key_includes_bound_context(self, acl: Acl) -> None:
        result = await acl.check("admin", {"key": "s"})
        assert result is not None
        assert result["key_checked"] is True

    @pytest.mark.asyncio
    async def test_admin_without_key(self, acl: Acl) -> None:
        assert await acl.check("admin", {}) is None
