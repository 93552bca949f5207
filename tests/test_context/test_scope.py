"""Tests for ContextScope and ContextKey."""
from __future__ import annotations

import pytest

from aumos_acl_graph.context.keys import ContextKey, key_name
from aumos_acl_graph.context.scope import ContextScope, ScopeFrozenError

USER = ContextKey("user", dict)
TOKEN = ContextKey("token", str, nullable=True)


@pytest.fixture()
def root() -> ContextScope:
    return ContextScope({"token": "abc", "entity_id": 7})


# ---------------------------------------------------------------------------
# Read-through
# ---------------------------------------------------------------------------

class TestReadThrough:
    def test_child_reads_parent_keys(self, root: ContextScope) -> None:
        child = root.child()
        assert child["token"] == "abc"

    def test_grandchild_reads_through_whole_chain(self, root: ContextScope) -> None:
        grandchild = root.child({"user": {"id": 1}}).child()
        assert grandchild["entity_id"] == 7
        assert grandchild["user"] == {"id": 1}

    def test_missing_key_raises_key_error(self, root: ContextScope) -> None:
        with pytest.raises(KeyError):
            root.child()["missing"]

    def test_get_returns_default(self, root: ContextScope) -> None:
        assert root.child().get("missing", "fallback") == "fallback"

    def test_local_binding_shadows_parent(self, root: ContextScope) -> None:
        child = root.child({"token": "xyz"})
        assert child["token"] == "xyz"
        assert root["token"] == "abc"


# ---------------------------------------------------------------------------
# Write isolation
# ---------------------------------------------------------------------------

class TestWriteIsolation:
    def test_child_write_invisible_to_parent(self, root: ContextScope) -> None:
        child = root.child()
        child["user"] = {"id": 1}
        assert "user" not in root

    def test_sibling_writes_are_isolated(self, root: ContextScope) -> None:
        left, right = root.child(), root.child()
        left["user"] = {"id": 1}
        right["user"] = {"id": 2}
        assert left["user"] == {"id": 1}
        assert right["user"] == {"id": 2}

    def test_parent_write_visible_to_existing_child(self, root: ContextScope) -> None:
        child = root.child()
        root["late"] = True
        assert child["late"] is True

    def test_delete_local_key(self, root: ContextScope) -> None:
        child = root.child({"user": 1})
        del child["user"]
        assert "user" not in child

    def test_delete_inherited_key_hides_it_locally_only(self, root: ContextScope) -> None:
        child = root.child()
        del child["token"]
        assert "token" not in child
        assert root["token"] == "abc"
        assert "token" not in child.child()

    def test_delete_missing_key_raises(self, root: ContextScope) -> None:
        with pytest.raises(KeyError):
            del root.child()["missing"]

    def test_rebinding_deleted_key(self, root: ContextScope) -> None:
        child = root.child()
        del child["token"]
        child["token"] = "new"
        assert child["token"] == "new"


# ---------------------------------------------------------------------------
# Layer views
# ---------------------------------------------------------------------------

class TestLayers:
    def test_bindings_are_local_only(self, root: ContextScope) -> None:
        child = root.child({"user": 1})
        assert child.bindings == {"user": 1}

    def test_bindings_exclude_deletions(self, root: ContextScope) -> None:
        child = root.child()
        del child["token"]
        assert child.bindings == {}

    def test_to_dict_flattens_closest_wins(self, root: ContextScope) -> None:
        child = root.child({"token": "xyz", "user": 1})
        assert child.to_dict() == {"token": "xyz", "entity_id": 7, "user": 1}

    def test_iteration_and_len_cover_chain(self, root: ContextScope) -> None:
        child = root.child({"user": 1})
        assert sorted(child) == ["entity_id", "token", "user"]
        assert len(child) == 3

    def test_mapping_equality(self, root: ContextScope) -> None:
        assert root == {"token": "abc", "entity_id": 7}

    def test_depth(self, root: ContextScope) -> None:
        assert root.depth == 0
        assert root.child().child().depth == 2

    def test_wrap_returns_existing_scope(self, root: ContextScope) -> None:
        assert ContextScope.wrap(root) is root

    def test_wrap_mapping_and_none(self) -> None:
        assert ContextScope.wrap({"a": 1})["a"] == 1
        assert len(ContextScope.wrap(None)) == 0


# ---------------------------------------------------------------------------
# Freezing
# ---------------------------------------------------------------------------

class TestFreeze:
    def test_frozen_scope_rejects_writes(self, root: ContextScope) -> None:
        frozen = root.child({"user": 1}).freeze()
        with pytest.raises(ScopeFrozenError):
            frozen["user"] = 2

    def test_frozen_scope_rejects_deletes(self, root: ContextScope) -> None:
        frozen = root.child({"user": 1}).freeze()
        with pytest.raises(ScopeFrozenError):
            del frozen["user"]

    def test_frozen_scope_keeps_reading_through(self, root: ContextScope) -> None:
        frozen = root.child({"user": 1}).freeze()
        assert frozen["token"] == "abc"
        assert frozen["user"] == 1

    def test_freeze_snapshots_local_layer(self, root: ContextScope) -> None:
        child = root.child({"user": 1})
        frozen = child.freeze()
        child["user"] = 2
        assert frozen["user"] == 1

    def test_children_of_frozen_scope_are_writable(self, root: ContextScope) -> None:
        grandchild = root.freeze().child()
        grandchild["x"] = 1
        assert grandchild["x"] == 1

    def test_frozen_error_is_type_error(self) -> None:
        assert issubclass(ScopeFrozenError, TypeError)


# ---------------------------------------------------------------------------
# Typed keys
# ---------------------------------------------------------------------------

class TestContextKey:
    def test_typed_write_and_read(self, root: ContextScope) -> None:
        child = root.child()
        child[USER] = {"id": 1}
        assert child["user"] == {"id": 1}
        assert child.require(USER) == {"id": 1}

    def test_typed_write_validates(self, root: ContextScope) -> None:
        with pytest.raises(TypeError, match="expects dict"):
            root.child()[USER] = "not a dict"

    def test_require_validates_untyped_writes(self, root: ContextScope) -> None:
        child = root.child({"user": "raw string"})
        with pytest.raises(TypeError):
            child.require(USER)

    def test_require_missing_key(self, root: ContextScope) -> None:
        with pytest.raises(KeyError):
            root.require(USER)

    def test_nullable_key_accepts_none(self, root: ContextScope) -> None:
        child = root.child()
        child[TOKEN] = None
        assert child.require(TOKEN) is None

    def test_contains_with_typed_key(self, root: ContextScope) -> None:
        assert TOKEN in root
        assert USER not in root

    def test_contains_with_bad_key_type(self, root: ContextScope) -> None:
        assert 42 not in root

    def test_key_name(self) -> None:
        assert key_name(USER) == "user"
        assert key_name("plain") == "plain"
        with pytest.raises(TypeError):
            key_name(3)
