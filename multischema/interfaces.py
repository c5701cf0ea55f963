# -*- coding: utf-8 -*-
"""
Collaborator contracts of SchemaProject.

SchemaProject talks to its parser, name resolver, reference resolver and
file generator only through these protocols; the defaults are
DefaultSchemaParser, DefaultNameResolver, RefResolver and
SourceFileGenerator.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from multischema.builders import Builder
from multischema.import_manager import ImportManager
from multischema.models import ConflictReport, GeneratedArtifact, ImportInfo, RefResolution
from multischema.parsers.context import ParseContext


@runtime_checkable
class SchemaParser(Protocol):
    """Turns a schema node into a Builder."""

    def parse(self, node: Any, context: ParseContext) -> Builder:
        ...


@runtime_checkable
class NameResolver(Protocol):
    """Derives export names and reports export-name conflicts."""

    def resolve_export_name(self, schema_id: str) -> str:
        ...

    def validate_export_name(self, name: str) -> bool:
        ...

    def detect_conflicts(self, names: Mapping[str, str]) -> ConflictReport:
        ...


@runtime_checkable
class ReferenceResolver(Protocol):
    """Resolves ``$ref`` strings against the registered documents."""

    def resolve(self, ref: str, from_schema_id: str) -> Optional[RefResolution]:
        ...

    def create_import_info(self, target_schema_id: str, from_schema_id: str) -> ImportInfo:
        ...


@runtime_checkable
class FileGenerator(Protocol):
    """Renders generated modules and writes them out."""

    def generate_file(
        self,
        schema_id: str,
        builder: Builder,
        import_manager: ImportManager,
        export_name: str,
        members: Optional[Sequence[Tuple[str, Builder]]] = None,
    ) -> GeneratedArtifact:
        ...

    def generate_index(self, artifacts: Sequence[GeneratedArtifact]) -> GeneratedArtifact:
        ...

    def save_all(self, artifacts: Sequence[GeneratedArtifact]) -> List[str]:
        ...


__all__ = [
    "FileGenerator",
    "NameResolver",
    "ReferenceResolver",
    "SchemaParser",
]
