# -*- coding: utf-8 -*-
"""
Schema Registry

Thread-safe in-memory store mapping a schema identifier to its
SchemaEntry. Supports CRUD with duplicate-id rejection; the content of a
schema is never validated here (that is the orchestrator's job).

Example:
    >>> from multischema.registry import SchemaRegistry
    >>> registry = SchemaRegistry()
    >>> registry.add_entry(SchemaEntry(id="user", raw_schema={}, export_name="User"))
    >>> registry.get_entry("user").export_name
    'User'
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from multischema.exceptions import DuplicateSchemaIdError, SchemaNotFoundError
from multischema.models import SchemaEntry

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Thread-safe registry of schema documents keyed by identifier.

    Entries are kept in insertion order. Snapshots returned by
    ``get_all_entries`` / ``get_all_ids`` are new lists, so callers may
    mutate the registry while iterating over them.

    Example:
        >>> registry = SchemaRegistry()
        >>> registry.add_entry(entry)
        >>> registry.remove_entry("user")
        True
    """

    def __init__(self) -> None:
        self._entries: Dict[str, SchemaEntry] = {}
        self._lock = threading.RLock()
        logger.debug("SchemaRegistry initialized")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add_entry(self, entry: SchemaEntry) -> None:
        """Add a schema entry.

        Args:
            entry: Entry to register.

        Raises:
            DuplicateSchemaIdError: If an entry with the same id exists.
        """
        with self._lock:
            if entry.id in self._entries:
                raise DuplicateSchemaIdError(entry.id)
            self._entries[entry.id] = entry
            logger.info("Registered schema: %s (export=%s)", entry.id, entry.export_name)

    def get_entry(self, schema_id: str) -> Optional[SchemaEntry]:
        """Get a schema entry by id, or None if it is not registered."""
        with self._lock:
            return self._entries.get(schema_id)

    def has_entry(self, schema_id: str) -> bool:
        """Check whether a schema id is registered."""
        with self._lock:
            return schema_id in self._entries

    def get_all_entries(self) -> List[SchemaEntry]:
        """Snapshot of all entries in insertion order."""
        with self._lock:
            return list(self._entries.values())

    def get_all_ids(self) -> List[str]:
        """Snapshot of all schema ids in insertion order."""
        with self._lock:
            return list(self._entries.keys())

    def remove_entry(self, schema_id: str) -> bool:
        """Remove a schema entry.

        Returns:
            True if the entry existed and was removed.
        """
        with self._lock:
            if schema_id not in self._entries:
                logger.warning("Remove: schema not found: %s", schema_id)
                return False
            del self._entries[schema_id]
            logger.info("Removed schema: %s", schema_id)
            return True

    def update_entry(self, schema_id: str, **fields: Any) -> SchemaEntry:
        """Merge the given fields into an existing entry.

        Unspecified fields are left untouched and ``id`` is never
        rewritten, even if passed.

        Args:
            schema_id: Entry to update.
            **fields: Field names and new values.

        Returns:
            The updated entry.

        Raises:
            SchemaNotFoundError: If the id is not registered.
        """
        with self._lock:
            existing = self._entries.get(schema_id)
            if existing is None:
                raise SchemaNotFoundError(schema_id)

            fields.pop("id", None)
            unknown = [name for name in fields if name not in SchemaEntry.model_fields]
            if unknown:
                raise ValueError(f"Unknown SchemaEntry fields: {sorted(unknown)}")

            updated = existing.model_copy(update=fields)
            self._entries[schema_id] = updated
            logger.debug("Updated schema %s fields=%s", schema_id, sorted(fields))
            return updated

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    @property
    def count(self) -> int:
        """Return the number of registered schemas."""
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.count

    def __contains__(self, schema_id: object) -> bool:
        with self._lock:
            return schema_id in self._entries


__all__ = [
    "SchemaRegistry",
]
