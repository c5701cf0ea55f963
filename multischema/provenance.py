# -*- coding: utf-8 -*-
"""
Provenance Tracker - multischema

SHA-256 audit trail of project mutations: schema registration and removal,
builds and every generated artifact. Entries are chain-hashed in sequence,
so editing any recorded entry breaks verification of everything after it.

Example:
    >>> tracker = ProvenanceTracker()
    >>> tracker.record("schema", "user", "register", hash_schema({"type": "object"}))
    >>> assert tracker.verify_chain("user")
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _new_uuid() -> str:
    return str(uuid.uuid4())


def hash_schema(schema: Any) -> str:
    """SHA-256 of a schema tree.

    Trees that contain themselves cannot be serialized as JSON; their
    ``repr`` is hashed instead.
    """
    try:
        serialized = json.dumps(schema, sort_keys=True, default=str)
    except ValueError:
        serialized = repr(schema)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# ProvenanceEntry model
# ---------------------------------------------------------------------------


class ProvenanceEntry(BaseModel):
    """A single provenance chain entry.

    Attributes:
        entry_id: Unique entry identifier.
        entity_type: ``schema``, ``artifact`` or ``build``.
        entity_id: Schema id, output path or build identifier.
        action: ``register``, ``remove``, ``generate`` or ``build``.
        data_hash: SHA-256 of the entity data at this point.
        timestamp: When the action occurred.
        chain_hash: SHA-256 linking this entry to the previous one.
        details: Additional context.
    """

    entry_id: str = Field(default_factory=_new_uuid, description="Provenance entry ID")
    entity_type: str = Field(..., description="Entity type (schema, artifact, build)")
    entity_id: str = Field(..., description="Identifier of the affected entity")
    action: str = Field(..., description="Action performed")
    data_hash: str = Field(..., description="SHA-256 hash of entity data at this point")
    timestamp: datetime = Field(default_factory=_utcnow, description="Action timestamp")
    chain_hash: str = Field(default="", description="Chain hash linking to previous entry")
    details: Dict[str, Any] = Field(default_factory=dict, description="Additional context")


# ---------------------------------------------------------------------------
# ProvenanceTracker
# ---------------------------------------------------------------------------


class ProvenanceTracker:
    """Chain-hashed, in-memory log of project mutations."""

    _GENESIS_HASH = hashlib.sha256(b"multischema-genesis").hexdigest()

    def __init__(self) -> None:
        self._entries: List[ProvenanceEntry] = []
        self._last_chain_hash: str = self._GENESIS_HASH
        self._entity_index: Dict[str, List[int]] = {}
        logger.debug("ProvenanceTracker initialized")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        data_hash: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Append an entry linked to the previous one.

        Returns:
            The chain_hash of the new entry.
        """
        entry = ProvenanceEntry(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            data_hash=data_hash,
            details=details or {},
        )
        entry.chain_hash = self._next_chain_hash(self._last_chain_hash, entry)

        self._entity_index.setdefault(entity_id, []).append(len(self._entries))
        self._entries.append(entry)
        self._last_chain_hash = entry.chain_hash

        logger.debug(
            "Recorded provenance: %s %s %s (%s)",
            action, entity_type, entity_id, entry.entry_id,
        )
        return entry.chain_hash

    def get_chain(self, entity_id: str) -> List[ProvenanceEntry]:
        """Entries of one entity in chronological order."""
        return [self._entries[i] for i in self._entity_index.get(entity_id, [])]

    def verify_chain(self, entity_id: Optional[str] = None) -> bool:
        """Recompute chain hashes from genesis and compare.

        Args:
            entity_id: Only check this entity's entries; None checks all.

        Returns:
            True if the checked entries are intact.
        """
        checked = (
            set(self._entity_index.get(entity_id, []))
            if entity_id is not None
            else set(range(len(self._entries)))
        )

        current_hash = self._GENESIS_HASH
        for index, entry in enumerate(self._entries):
            expected = self._next_chain_hash(current_hash, entry)
            if index in checked and entry.chain_hash != expected:
                logger.warning(
                    "Chain verification failed at entry %s (index %d)",
                    entry.entry_id, index,
                )
                return False
            current_hash = expected
        return True

    def get_all_entries(self) -> List[ProvenanceEntry]:
        return list(self._entries)

    def export_json(self) -> str:
        """Export all provenance records as a JSON string."""
        records = [entry.model_dump(mode="json") for entry in self._entries]
        return json.dumps(records, indent=2, default=str)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @classmethod
    def _next_chain_hash(cls, previous: str, entry: ProvenanceEntry) -> str:
        entry_hash = cls._hash_dict({
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "action": entry.action,
            "data_hash": entry.data_hash,
            "timestamp": entry.timestamp.isoformat(),
        })
        return hashlib.sha256(f"{previous}:{entry_hash}".encode()).hexdigest()

    @staticmethod
    def _hash_dict(data: Dict[str, Any]) -> str:
        serialized = json.dumps(data, sort_keys=True, default=str)
        return hashlib.sha256(serialized.encode()).hexdigest()


__all__ = [
    "ProvenanceEntry",
    "ProvenanceTracker",
    "hash_schema",
]
