"""Unit tests for relgraph/store.py: the single relationship write path."""

from __future__ import annotations

import logging

import pytest

from relgraph.models import RelationshipType, invert
from relgraph.store import DataStore

RT = RelationshipType


# ---------------------------------------------------------------------------
# create_relationship
# ---------------------------------------------------------------------------


class TestCreateRelationship:
    @pytest.mark.parametrize("rel_type", list(RelationshipType))
    def test_reverse_type_is_inverse(self, rel_type: RelationshipType) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", rel_type)
        created = store.get_relationship(rid)
        assert created is not None
        assert created.reverse_type == invert(rel_type)

    def test_stamps_id_and_times(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.FRIEND, label="school")
        created = store.get_relationship(rid)
        assert rid
        assert created.label == "school"
        assert created.created_at == created.updated_at
        assert created.created_at is not None

    def test_ids_are_unique(self) -> None:
        store = DataStore()
        ids = {store.create_relationship("a", "b", RT.FRIEND) for _ in range(5)}
        assert len(ids) == 5

    def test_self_relationship_rejected(self, caplog: pytest.LogCaptureFixture) -> None:
        store = DataStore()
        with caplog.at_level(logging.WARNING):
            rid = store.create_relationship("a", "a", RT.SIBLING)
        assert rid == ""
        assert store.relationships == []
        assert "themselves" in caplog.text


# ---------------------------------------------------------------------------
# update_relationship
# ---------------------------------------------------------------------------


class TestUpdateRelationship:
    def test_type_change_recomputes_reverse(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.PARENT)
        updated = store.update_relationship(rid, type=RT.GRANDPARENT)
        assert updated.type == RT.GRANDPARENT
        assert updated.reverse_type == RT.GRANDCHILD

    def test_string_type_is_coerced(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.PARENT)
        updated = store.update_relationship(rid, type="aunt_uncle")
        assert updated.type is RT.AUNT_UNCLE
        assert updated.reverse_type is RT.NIECE_NEPHEW

    def test_partial_update_keeps_reverse(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.PARENT)
        updated = store.update_relationship(rid, label="adoptive", notes="since 2001")
        assert updated.type == RT.PARENT
        assert updated.reverse_type == RT.CHILD
        assert updated.label == "adoptive"

    def test_reverse_type_cannot_be_set_directly(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.PARENT)
        updated = store.update_relationship(rid, reverse_type=RT.SIBLING)
        assert updated.reverse_type == RT.CHILD

    def test_unknown_id_is_noop(self) -> None:
        store = DataStore()
        assert store.update_relationship("missing", type=RT.FRIEND) is None

    def test_explicit_none_leaves_required_fields_alone(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.PARENT)
        updated = store.update_relationship(rid, type=None, person_a_id=None, person_b_id=None, label="kept")

        assert updated.type == RT.PARENT
        assert updated.reverse_type == invert(updated.type)
        assert (updated.person_a_id, updated.person_b_id) == ("a", "b")
        assert updated.label == "kept"

    def test_optional_fields_can_be_cleared(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.FRIEND, label="school")
        assert store.update_relationship(rid, label=None).label is None

    def test_self_relationship_rejected(self, caplog: pytest.LogCaptureFixture) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.SIBLING)
        with caplog.at_level(logging.WARNING):
            assert store.update_relationship(rid, person_b_id="a") is None
        rel = store.get_relationship(rid)
        assert (rel.person_a_id, rel.person_b_id) == ("a", "b")
        assert "themselves" in caplog.text

    def test_swapping_endpoints_is_allowed(self) -> None:
        store = DataStore()
        rid = store.create_relationship("a", "b", RT.PARENT)
        updated = store.update_relationship(rid, person_a_id="b", person_b_id="a")
        assert (updated.person_a_id, updated.person_b_id) == ("b", "a")


# ---------------------------------------------------------------------------
# People and perspective helpers
# ---------------------------------------------------------------------------


def test_delete_person_cascades(family_store: DataStore) -> None:
    family_store.set_primary_user("dad")
    family_store.delete_person("dad")

    assert family_store.get_person("dad") is None
    assert all(not r.touches("dad") for r in family_store.relationships)
    assert family_store.settings.primary_user_id is None
    assert family_store.primary_user() is None


def test_delete_relationship(family_store: DataStore) -> None:
    assert family_store.delete_relationship("r5") is True
    assert family_store.delete_relationship("r5") is False
    assert family_store.get_relationship("r5") is None


def test_relationships_from_perspective(family_store: DataStore) -> None:
    assert family_store.relationships_from_perspective("kid", "dad") == [RT.CHILD]
    assert family_store.relationships_from_perspective("dad", "kid") == [RT.PARENT]
    assert family_store.relationships_from_perspective("kid", "nana") == []


def test_add_person_and_primary_user() -> None:
    store = DataStore()
    pid = store.add_person("Ada", "Lovelace", tags=["family"])
    store.set_primary_user(pid)
    me = store.primary_user()
    assert me is not None
    assert me.display_name == "Ada Lovelace"
    store.clear_primary_user()
    assert store.primary_user() is None
