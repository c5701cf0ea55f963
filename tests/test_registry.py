# -*- coding: utf-8 -*-
"""Tests for SchemaRegistry."""

import pytest

from multischema.exceptions import DuplicateSchemaIdError, SchemaNotFoundError
from multischema.models import SchemaEntry


def _entry(schema_id, schema=None, export_name=None):
    return SchemaEntry(
        id=schema_id,
        raw_schema=schema if schema is not None else {"type": "object"},
        export_name=export_name or schema_id.title(),
    )


# ==============================================================================
# CRUD
# ==============================================================================

class TestRegistryCrud:
    """Tests for add/get/remove/update."""

    def test_add_and_get(self, registry):
        """Added entries can be retrieved by id."""
        entry = _entry("user")
        registry.add_entry(entry)

        assert registry.get_entry("user") is entry
        assert registry.has_entry("user")
        assert "user" in registry
        assert registry.count == 1

    def test_get_missing_returns_none(self, registry):
        """Unknown ids give None."""
        assert registry.get_entry("nope") is None
        assert not registry.has_entry("nope")

    def test_duplicate_id_rejected(self, registry):
        """Adding an existing id raises and keeps the original entry."""
        first = _entry("user")
        registry.add_entry(first)

        with pytest.raises(DuplicateSchemaIdError) as exc_info:
            registry.add_entry(_entry("user", export_name="Other"))

        assert exc_info.value.schema_id == "user"
        assert registry.get_entry("user") is first

    def test_remove(self, registry):
        """remove_entry reports whether something was removed."""
        registry.add_entry(_entry("user"))

        assert registry.remove_entry("user") is True
        assert registry.remove_entry("user") is False
        assert len(registry) == 0

    def test_insertion_order(self, registry):
        """Snapshots follow insertion order."""
        for schema_id in ("c", "a", "b"):
            registry.add_entry(_entry(schema_id))

        assert registry.get_all_ids() == ["c", "a", "b"]
        assert [e.id for e in registry.get_all_entries()] == ["c", "a", "b"]

    def test_snapshots_are_copies(self, registry):
        """Mutating a returned list does not touch the registry."""
        registry.add_entry(_entry("user"))
        ids = registry.get_all_ids()
        ids.append("ghost")

        assert registry.get_all_ids() == ["user"]

    def test_clear(self, registry):
        registry.add_entry(_entry("a"))
        registry.add_entry(_entry("b"))
        registry.clear()

        assert registry.count == 0


# ==============================================================================
# Update
# ==============================================================================

class TestRegistryUpdate:
    """Tests for update_entry."""

    def test_update_merges_fields(self, registry):
        """Only the given fields change."""
        schema = {"type": "string"}
        registry.add_entry(_entry("name", schema, "Name"))

        updated = registry.update_entry("name", export_name="FullName")

        assert updated.export_name == "FullName"
        assert updated.raw_schema is schema
        assert registry.get_entry("name").export_name == "FullName"

    def test_update_never_rewrites_id(self, registry):
        """An id passed to update_entry is ignored."""
        registry.add_entry(_entry("user"))

        updated = registry.update_entry("user", id="other", export_name="Person")

        assert updated.id == "user"
        assert registry.has_entry("user")
        assert not registry.has_entry("other")

    def test_update_missing_raises(self, registry):
        with pytest.raises(SchemaNotFoundError):
            registry.update_entry("missing", export_name="X")

    def test_update_unknown_field_raises(self, registry):
        registry.add_entry(_entry("user"))

        with pytest.raises(ValueError):
            registry.update_entry("user", colour="blue")


# ==============================================================================
# Entry model
# ==============================================================================

class TestSchemaEntry:
    """Tests for the SchemaEntry model."""

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            _entry("   ")

    def test_raw_schema_kept_by_reference(self):
        """Pydantic must not copy the schema tree."""
        schema = {"type": "object", "properties": {}}
        schema["properties"]["self"] = schema

        entry = _entry("loop", schema)

        assert entry.raw_schema is schema
        assert entry.raw_schema["properties"]["self"] is schema
