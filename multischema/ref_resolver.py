# -*- coding: utf-8 -*-
"""
Reference Resolver

Classifies a ``$ref`` string found in a schema document and resolves it to
a target document plus an in-document path. Cross-document references also
get an ImportInfo (binding name, module path, import kind).

Supported forms:
    - ``#/definitions/Address``       internal, same document
    - ``user#/properties/id``         external by schema id
    - ``./user.json#/definitions/X``  external by file path
    - ``user``                        bare schema id, exact match only
    - ``schemas/user.json``           file path without a pointer

Resolution is a pure function of the registry state and its two inputs:
it never mutates the registry, and an unresolvable reference yields None
rather than an exception.

Example:
    >>> resolver = RefResolver(registry)
    >>> resolver.resolve("#/definitions/Address", "user").definition_path
    ['definitions', 'Address']
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Callable, List, Optional

from multischema.exceptions import UnresolvedRefError
from multischema.models import ImportInfo, ImportKind, RefResolution
from multischema.naming import strip_extension, to_pascal_case
from multischema.registry import SchemaRegistry

logger = logging.getLogger(__name__)

ImportPathTransformer = Callable[[str, str], str]

_SCHEMA_FILE_SUFFIX = re.compile(r"(\.schema)?\.(json|ya?ml)$", re.IGNORECASE)


def parse_pointer(pointer: str) -> List[str]:
    """Split a ``#/a/b`` style pointer into its non-empty segments.

    ``#``, ``#/`` and ``""`` all give an empty path; doubled or trailing
    slashes never produce empty segments.
    """
    if pointer.startswith("#"):
        pointer = pointer[1:]
    return [segment for segment in pointer.split("/") if segment]


def normalize_file_path(file_path: str) -> str:
    """Normalize a file-style reference target for comparison.

    Backslashes become ``/``, leading ``./`` and ``../`` are stripped,
    ``.schema.json`` / ``.json`` suffixes are removed and the result is
    lowercased.
    """
    normalized = file_path.replace("\\", "/")
    while True:
        if normalized.startswith("./"):
            normalized = normalized[2:]
        elif normalized.startswith("../"):
            normalized = normalized[3:]
        else:
            break
    lowered = normalized.lower()
    for suffix in (".schema.json", ".json"):
        if lowered.endswith(suffix):
            normalized = normalized[: -len(suffix)]
            break
    return normalized.lower()


def is_file_reference(target: str) -> bool:
    """True for a target written as a path rather than a bare schema id.

    Paths contain a ``/`` or ``\\`` separator or end in a schema file
    suffix (``.json``, ``.yaml``, ``.yml``).
    """
    return "/" in target or "\\" in target or bool(_SCHEMA_FILE_SUFFIX.search(target))


def paths_match(a: str, b: str) -> bool:
    """Equality or ``/``-boundary suffix match in either direction."""
    return a == b or a.endswith("/" + b) or b.endswith("/" + a)


def module_path_for(schema_id: str) -> str:
    """Module specifier of a document: its id without a schema-file suffix."""
    return _SCHEMA_FILE_SUFFIX.sub("", schema_id)


class RefResolver:
    """Default reference resolver backed by a SchemaRegistry.

    Attributes:
        import_path_transformer: Optional ``(from_id, module_path) -> str``
            hook applied last when computing module paths.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        import_path_transformer: Optional[ImportPathTransformer] = None,
    ) -> None:
        self._registry = registry
        self.import_path_transformer = import_path_transformer
        logger.debug("RefResolver initialized")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, ref: str, from_schema_id: str) -> Optional[RefResolution]:
        """Resolve a ``$ref`` relative to the document it occurs in.

        Args:
            ref: The reference string.
            from_schema_id: Document containing the reference.

        Returns:
            RefResolution, or None when the target is not registered.
        """
        if ref.startswith("#"):
            return RefResolution(
                target_schema_id=from_schema_id,
                definition_path=parse_pointer(ref),
                is_external=False,
            )

        if "#" in ref:
            target, pointer = ref.split("#", 1)
            target_schema_id = self.find_schema_id(target)
        else:
            target, pointer = ref, ""
            if is_file_reference(target):
                target_schema_id = self.find_schema_id(target)
            elif self._registry.has_entry(target):
                target_schema_id = target
            else:
                target_schema_id = None

        if target_schema_id is None:
            logger.debug("Unresolved $ref %r from %s", ref, from_schema_id)
            return None

        return RefResolution(
            target_schema_id=target_schema_id,
            definition_path=parse_pointer(pointer),
            is_external=True,
            import_info=self.create_import_info(target_schema_id, from_schema_id),
        )

    def resolve_or_raise(self, ref: str, from_schema_id: str) -> RefResolution:
        """Like resolve(), but raise UnresolvedRefError instead of returning None."""
        resolution = self.resolve(ref, from_schema_id)
        if resolution is None:
            raise UnresolvedRefError(ref, from_schema_id=from_schema_id)
        return resolution

    def find_schema_id(self, target: str) -> Optional[str]:
        """Map a reference target to a registered schema id.

        Exact id match wins; otherwise the first registered id (insertion
        order) whose normalized form matches the normalized target.
        """
        if not target:
            return None
        if self._registry.has_entry(target):
            return target

        normalized = normalize_file_path(target)
        for schema_id in self._registry.get_all_ids():
            if paths_match(normalized, normalize_file_path(schema_id)):
                return schema_id
        return None

    def create_import_info(self, target_schema_id: str, from_schema_id: str) -> ImportInfo:
        """Build the ImportInfo for a reference from one document to another."""
        last_segment = target_schema_id.rsplit("/", 1)[-1]
        import_name = to_pascal_case(strip_extension(last_segment))

        module_path = self.compute_module_path(target_schema_id, from_schema_id)
        if self.import_path_transformer is not None:
            module_path = self.import_path_transformer(from_schema_id, module_path)

        return ImportInfo(
            import_name=import_name,
            import_kind=ImportKind.NAMED,
            module_path=module_path,
            is_type_only=False,
        )

    @staticmethod
    def compute_module_path(target_schema_id: str, from_schema_id: str) -> str:
        """Same-directory targets get ``./name``; others use the target id."""
        target_module = module_path_for(target_schema_id)
        from_dir = posixpath.dirname(from_schema_id)
        target_dir = posixpath.dirname(target_module)

        if from_dir == target_dir:
            return f"./{posixpath.basename(target_module)}"
        return target_module


__all__ = [
    "ImportPathTransformer",
    "RefResolver",
    "is_file_reference",
    "module_path_for",
    "normalize_file_path",
    "parse_pointer",
    "paths_match",
]
