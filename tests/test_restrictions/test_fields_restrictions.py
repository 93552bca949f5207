"""Tests for FieldsRestriction and FieldsByIdRestriction."""
from __future__ import annotations

import threading

import pytest

from aumos_acl_graph.restrictions import (
    FieldsByIdRestriction,
    FieldsRestriction,
    NoIdRestrictionError,
    RestrictionAccumulator,
)


# ---------------------------------------------------------------------------
# FieldsRestriction
# ---------------------------------------------------------------------------

class TestFieldsRestriction:
    @pytest.fixture()
    def fields(self) -> FieldsRestriction:
        fr = FieldsRestriction()
        fr.allow(["id", "name"])
        fr.allow(["name", "description"])
        return fr

    def test_starts_empty(self) -> None:
        fr = FieldsRestriction()
        assert fr.is_empty is True
        assert fr.field_is_allowed("id") is False

    def test_allows_explicitly_authorized_fields(self, fields: FieldsRestriction) -> None:
        assert fields.field_is_allowed("name") is True
        assert fields.field_is_allowed("id") is True

    def test_rejects_unknown_fields(self, fields: FieldsRestriction) -> None:
        assert fields.field_is_allowed("unknown_field") is False

    def test_fields_snapshot(self, fields: FieldsRestriction) -> None:
        assert fields.fields == frozenset({"id", "name", "description"})

    def test_order_of_grants_does_not_matter(self) -> None:
        first, second = FieldsRestriction(), FieldsRestriction()
        first.allow(["a"])
        first.allow(["b", "c"])
        second.allow(["b", "c"])
        second.allow(["a"])
        assert first.fields == second.fields

    def test_satisfies_accumulator_protocol(self) -> None:
        assert isinstance(FieldsRestriction(), RestrictionAccumulator)


# ---------------------------------------------------------------------------
# FieldsByIdRestriction
# ---------------------------------------------------------------------------

class TestFieldsByIdSpecifiedIds:
    @pytest.fixture()
    def fbi(self) -> FieldsByIdRestriction:
        restriction = FieldsByIdRestriction()
        restriction.allow_some([1, 2, 3], ["id", "name"])
        restriction.allow_some([2, 4], ["name", "description"])
        return restriction

    def test_has_id_restriction(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.has_id_restriction is True

    def test_allowed_ids(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.get_allowed_ids() == [1, 2, 3, 4]

    def test_allows_explicitly_authorized_fields(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.field_is_allowed(1, "name") is True
        assert fbi.field_is_allowed(2, "name") is True
        assert fbi.field_is_allowed(2, "description") is True

    def test_rejects_fields_on_wrong_id(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.field_is_allowed(1, "description") is False
        assert fbi.field_is_allowed(4, "id") is False
        assert fbi.field_is_allowed(5, "id") is False

    def test_rejects_unknown_fields(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.field_is_allowed(2, "unknown_field") is False


class TestFieldsByIdUnspecifiedIds:
    @pytest.fixture()
    def fbi(self) -> FieldsByIdRestriction:
        restriction = FieldsByIdRestriction()
        restriction.allow_all(["id", "name"])
        restriction.allow_all(["name", "description"])
        return restriction

    def test_has_no_id_restriction(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.has_id_restriction is False

    def test_asking_for_ids_raises(self, fbi: FieldsByIdRestriction) -> None:
        with pytest.raises(NoIdRestrictionError):
            fbi.get_allowed_ids()

    def test_allows_fields_on_any_id(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.field_is_allowed(1, "name") is True
        assert fbi.field_is_allowed(2, "id") is True

    def test_rejects_unknown_fields(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.field_is_allowed(2, "unknown_field") is False


class TestFieldsByIdMixed:
    @pytest.fixture()
    def fbi(self) -> FieldsByIdRestriction:
        restriction = FieldsByIdRestriction()
        restriction.allow_some([1, 2, 3], ["id", "name"])
        restriction.allow_some([2, 4], ["name", "description"])
        restriction.allow_all(["id", "age"])
        return restriction

    def test_has_no_id_restriction(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.has_id_restriction is False
        with pytest.raises(NoIdRestrictionError):
            fbi.get_allowed_ids()

    def test_allows_fields_from_both_grants(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.field_is_allowed(2, "id") is True
        assert fbi.field_is_allowed(666, "id") is True
        assert fbi.field_is_allowed(1, "name") is True
        assert fbi.field_is_allowed(2, "description") is True
        assert fbi.field_is_allowed(1, "age") is True

    def test_rejects_id_scoped_fields_on_other_ids(self, fbi: FieldsByIdRestriction) -> None:
        assert fbi.field_is_allowed(666, "name") is False
        assert fbi.field_is_allowed(666, "description") is False
        assert fbi.field_is_allowed(2, "unknown_field") is False


class TestFieldsByIdConcurrency:
    def test_concurrent_grants_are_all_kept(self) -> None:
        fbi = FieldsByIdRestriction()

        def grant(offset: int) -> None:
            for i in range(200):
                fbi.allow_some([offset * 1000 + i], ["name"])

        threads = [threading.Thread(target=grant, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(fbi.get_allowed_ids()) == 800

    def test_starts_empty(self) -> None:
        fbi = FieldsByIdRestriction()
        assert fbi.is_empty is True
        assert fbi.get_allowed_ids() == []

    def test_mixed_id_types_are_returned_unsorted(self) -> None:
        fbi = FieldsByIdRestriction()
        fbi.allow_some([2, "a"], ["name"])
        assert set(fbi.get_allowed_ids()) == {2, "a"}
