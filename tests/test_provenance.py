# -*- coding: utf-8 -*-
"""Tests for the chain-hashed provenance tracker."""

import json

from multischema.provenance import ProvenanceTracker, hash_schema


class TestHashSchema:
    """Tests for hash_schema."""

    def test_key_order_does_not_matter(self):
        assert hash_schema({"a": 1, "b": 2}) == hash_schema({"b": 2, "a": 1})

    def test_different_trees_differ(self):
        assert hash_schema({"type": "string"}) != hash_schema({"type": "number"})

    def test_self_containing_tree(self, self_containing_schema):
        digest = hash_schema(self_containing_schema)

        assert len(digest) == 64


class TestProvenanceTracker:
    """Tests for recording and chain verification."""

    def test_record_links_entries(self):
        tracker = ProvenanceTracker()
        first = tracker.record("schema", "user", "register", hash_schema({}))
        second = tracker.record("schema", "post", "register", hash_schema({}))

        entries = tracker.get_all_entries()

        assert tracker.entry_count == 2
        assert [e.chain_hash for e in entries] == [first, second]
        assert first != second
        assert tracker.verify_chain()

    def test_get_chain_filters_by_entity(self):
        tracker = ProvenanceTracker()
        tracker.record("schema", "user", "register", "h1")
        tracker.record("schema", "post", "register", "h2")
        tracker.record("schema", "user", "remove", "h1")

        assert [e.action for e in tracker.get_chain("user")] == ["register", "remove"]
        assert tracker.get_chain("ghost") == []

    def test_tampering_is_detected(self):
        tracker = ProvenanceTracker()
        tracker.record("schema", "user", "register", "h1")
        tracker.record("schema", "post", "register", "h2")

        tracker.get_chain("user")[0].data_hash = "forged"

        assert not tracker.verify_chain()
        assert not tracker.verify_chain("user")

    def test_entity_check_ignores_other_entities(self):
        """Only the requested entity's entries are compared."""
        tracker = ProvenanceTracker()
        tracker.record("schema", "user", "register", "h1")
        tracker.record("schema", "post", "register", "h2")

        tracker.get_chain("post")[0].chain_hash = "broken"

        assert tracker.verify_chain("user")
        assert not tracker.verify_chain("post")

    def test_export_json(self):
        tracker = ProvenanceTracker()
        tracker.record("build", "build", "build", "h", details={"files": 2})

        records = json.loads(tracker.export_json())

        assert records[0]["entity_type"] == "build"
        assert records[0]["details"] == {"files": 2}
