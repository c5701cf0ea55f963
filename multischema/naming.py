# -*- coding: utf-8 -*-
"""
Export Name Resolution

Derives export identifiers for generated modules from schema ids and
detects export names shared by several documents.

Strategies:
    - ``schemaId``: PascalCase of the last ``/`` segment of the id
    - ``filename``: like ``schemaId`` but drops the file extension and a
      trailing ``.schema`` suffix
    - custom: a caller-supplied ``transform(schema_id) -> str``

Example:
    >>> resolver = DefaultNameResolver()
    >>> resolver.resolve_export_name("models/user-profile")
    'UserProfile'
"""

from __future__ import annotations

import logging
import re
from collections import OrderedDict
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from multischema.models import ConflictDetail, ConflictReport

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[-_./]")
_IDENTIFIER = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")
_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_$]")

# Reserved words of the generated (TypeScript) modules.
RESERVED_WORDS = frozenset({
    "abstract", "arguments", "await", "boolean", "break", "byte", "case",
    "catch", "char", "class", "const", "continue", "debugger", "default",
    "delete", "do", "double", "else", "enum", "eval", "export", "extends",
    "false", "final", "finally", "float", "for", "function", "goto", "if",
    "implements", "import", "in", "instanceof", "int", "interface", "let",
    "long", "native", "new", "null", "package", "private", "protected",
    "public", "return", "short", "static", "super", "switch", "synchronized",
    "this", "throw", "throws", "transient", "true", "try", "typeof", "var",
    "void", "volatile", "while", "with", "yield",
})


def to_pascal_case(value: str) -> str:
    """Convert kebab-case, snake_case, dotted or slashed text to PascalCase.

    Example:
        >>> to_pascal_case("user_profile-v2")
        'UserProfileV2'
    """
    words = _SEPARATORS.sub(" ", value).split()
    return "".join(word[:1].upper() + word[1:].lower() for word in words)


def strip_extension(name: str) -> str:
    """Remove the last ``.ext`` of a file name, if any."""
    return re.sub(r"\.[^.]+$", "", name)


def is_valid_identifier(name: str) -> bool:
    """Check the identifier syntax of generated modules."""
    return bool(_IDENTIFIER.match(name))


def sanitize_identifier(name: str) -> str:
    """Drop invalid characters and make sure the result starts validly."""
    sanitized = _INVALID_CHARS.sub("", name)
    if not sanitized or sanitized[0].isdigit():
        sanitized = f"Schema{sanitized}"
    return sanitized


# Pointer segments that only name a container of subschemas.
_CONTAINER_SEGMENTS = frozenset({"definitions", "$defs", "components", "schemas", "properties"})


def member_export_name(export_name: str, member_path: Sequence[str]) -> str:
    """Export name of a subschema a module exports next to its main schema.

    Container segments are dropped and the rest is appended to the
    document's export name, keeping the case of each segment.

    Example:
        >>> member_export_name("User", ["definitions", "Address"])
        'UserAddress'
    """
    words = [segment for segment in member_path if segment not in _CONTAINER_SEGMENTS]
    text = _SEPARATORS.sub(" ", " ".join(words or member_path))
    name = export_name + "".join(word[:1].upper() + word[1:] for word in text.split())
    return name if is_valid_identifier(name) else sanitize_identifier(name)


class DefaultNameResolver:
    """Schema-id based export naming with conflict detection.

    Attributes:
        strategy: ``schemaId``, ``filename`` or ``custom``.
    """

    def __init__(
        self,
        strategy: str = "schemaId",
        custom_transform: Optional[Callable[[str], str]] = None,
    ) -> None:
        if custom_transform is not None:
            strategy = "custom"
        if strategy not in ("schemaId", "filename", "custom"):
            raise ValueError(f"Unknown naming strategy: {strategy!r}")
        if strategy == "custom" and custom_transform is None:
            raise ValueError("Custom strategy requires custom_transform function")
        self.strategy = strategy
        self._custom_transform = custom_transform

    def resolve_export_name(self, schema_id: str) -> str:
        """Resolve a schema id to a valid export identifier."""
        if self.strategy == "custom":
            export_name = self._custom_transform(schema_id)  # type: ignore[misc]
            if is_valid_identifier(export_name):
                return export_name
        elif self.strategy == "filename":
            filename = schema_id.rsplit("/", 1)[-1]
            cleaned = re.sub(r"\.schema$", "", strip_extension(filename), flags=re.IGNORECASE)
            export_name = to_pascal_case(cleaned)
        else:
            export_name = to_pascal_case(schema_id.rsplit("/", 1)[-1])

        if not is_valid_identifier(export_name):
            export_name = sanitize_identifier(export_name)

        if export_name.lower() in RESERVED_WORDS:
            export_name = f"{export_name}Schema"

        return export_name

    def validate_export_name(self, name: str) -> bool:
        """Return True for a syntactically valid, non-reserved name."""
        return is_valid_identifier(name) and name.lower() not in RESERVED_WORDS

    def detect_conflicts(self, names: Mapping[str, str]) -> ConflictReport:
        """Detect export names used by more than one schema.

        Args:
            names: schema id -> export name.

        Returns:
            ConflictReport listing every shared export name.
        """
        by_export: Dict[str, List[str]] = OrderedDict()
        for schema_id, export_name in names.items():
            by_export.setdefault(export_name, []).append(schema_id)

        conflicts = [
            ConflictDetail(export_name=export_name, affected_schema_ids=schema_ids)
            for export_name, schema_ids in by_export.items()
            if len(schema_ids) > 1
        ]
        if conflicts:
            logger.debug("Export name conflicts: %s", [c.export_name for c in conflicts])
        return ConflictReport(has_conflicts=bool(conflicts), conflicts=conflicts)


__all__ = [
    "RESERVED_WORDS",
    "DefaultNameResolver",
    "is_valid_identifier",
    "member_export_name",
    "sanitize_identifier",
    "strip_extension",
    "to_pascal_case",
]
