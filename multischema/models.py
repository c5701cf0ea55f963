# -*- coding: utf-8 -*-
"""
multischema Models

Enums and Pydantic models shared by the registry, the reference resolver,
the dependency graph and the project orchestrator.

Key models:
    - SchemaEntry / SchemaMetadata: one registered schema document
    - RefResolution / ImportInfo: result of resolving one $ref
    - DependencyGraph / GraphSummary: read-only graph snapshot
    - ValidationIssue / ValidationResult / BuildResult: structured reports
    - GeneratedArtifact: one rendered source module

Raw schema trees are stored as ``Any`` so Pydantic keeps the caller's
object by reference; the recursion guard depends on node identity.
"""

from __future__ import annotations

import hashlib
import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


# ===================================================================
# Enumerations
# ===================================================================


class ImportKind(str, Enum):
    """How a generated module binds an imported schema."""

    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace"


class ModuleFormat(str, Enum):
    """Import statement syntax of generated modules."""

    ESM = "esm"
    CJS = "cjs"


class IssueSeverity(str, Enum):
    """Severity of a validation or build issue."""

    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    """Codes of all issues reported by validate() and build()."""

    # Errors
    EXPORT_CONFLICT = "EXPORT_CONFLICT"
    INVALID_SCHEMA = "INVALID_SCHEMA"
    UNRESOLVED_REF = "UNRESOLVED_REF"
    IO_ERROR = "IO_ERROR"
    PARSE_FAILED = "PARSE_FAILED"
    GENERATION_FAILED = "GENERATION_FAILED"
    BUILD_FAILED = "BUILD_FAILED"
    # Warnings
    MISSING_REF = "MISSING_REF"
    CIRCULAR_REF = "CIRCULAR_REF"


# ===================================================================
# Reference resolution
# ===================================================================


class ImportInfo(BaseModel):
    """Information needed to import a schema exported by another module."""

    model_config = ConfigDict(frozen=True)

    import_name: str = Field(..., description="Local binding name (PascalCase)")
    import_kind: ImportKind = Field(default=ImportKind.NAMED, description="Binding style")
    module_path: str = Field(..., description="Module specifier of the target document")
    is_type_only: bool = Field(default=False, description="Set when the edge closes a cycle")

    def as_type_only(self) -> ImportInfo:
        """Return a copy promoted to a type-only import."""
        if self.is_type_only:
            return self
        return self.model_copy(update={"is_type_only": True})

    @property
    def key(self) -> str:
        """Deduplication key: module path plus binding name."""
        return f"{self.module_path}::{self.import_name}"


class RefResolution(BaseModel):
    """Immutable result of resolving one $ref against the registry."""

    model_config = ConfigDict(frozen=True)

    target_schema_id: str = Field(..., description="Document the reference points at")
    definition_path: List[str] = Field(default_factory=list, description="Path inside the target")
    is_external: bool = Field(default=False, description="True when the target is another document")
    import_info: Optional[ImportInfo] = Field(None, description="Present iff is_external")


# ===================================================================
# Build artifacts and registry entries
# ===================================================================


class GeneratedArtifact(BaseModel):
    """One rendered source module."""

    schema_id: str = Field(..., description="Document the module was generated from")
    export_name: str = Field(..., description="Exported binding")
    file_path: str = Field(..., description="Output path of the module")
    content: str = Field(..., description="Rendered module text")
    imports: List[ImportInfo] = Field(default_factory=list, description="Imports of the module")
    content_hash: str = Field(default="", description="SHA-256 of content")

    def model_post_init(self, __context: Any) -> None:
        if not self.content_hash:
            self.content_hash = hashlib.sha256(self.content.encode("utf-8")).hexdigest()


class SchemaMetadata(BaseModel):
    """Metadata associated with a registered schema."""

    original_file_path: Optional[str] = Field(None, description="File the schema was loaded from")
    module_format_override: Optional[ModuleFormat] = Field(None, description="Per-schema module format")
    is_external: bool = Field(default=False, description="Registered on behalf of another project")
    imported_from: Optional[str] = Field(None, description="Parent document for extracted definitions")


class SchemaEntry(BaseModel):
    """Single schema document in the registry."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(..., description="Unique document identifier")
    raw_schema: Any = Field(..., description="Schema tree, stored by reference")
    export_name: str = Field(..., description="Export name of the generated module")
    builder: Any = Field(None, description="Parsed builder, set during build")
    build_artifact: Optional[GeneratedArtifact] = Field(None, description="Generated module, set during build")
    metadata: SchemaMetadata = Field(default_factory=SchemaMetadata)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Reject empty identifiers."""
        if not v or not v.strip():
            raise ValueError("Schema id must be a non-empty string")
        return v


# ===================================================================
# Dependency graph snapshot
# ===================================================================


class GraphSummary(BaseModel):
    """Purely derived summary of a dependency graph."""

    node_count: int = Field(default=0, ge=0)
    edge_count: int = Field(default=0, ge=0)
    has_cycles: bool = False
    cycle_count: int = Field(default=0, ge=0)


class DependencyGraph(BaseModel):
    """Read-only snapshot of the document dependency graph."""

    model_config = ConfigDict(frozen=True)

    nodes: List[str] = Field(default_factory=list, description="Node ids in insertion order")
    edges: Dict[str, Set[str]] = Field(default_factory=dict, description="from -> targets")
    cycles: List[FrozenSet[str]] = Field(default_factory=list, description="Detected SCCs")

    def in_same_cycle(self, a: str, b: str) -> bool:
        """Return True if a and b belong to one recorded cycle component."""
        return any(a in scc and b in scc for scc in self.cycles)


# ===================================================================
# Name conflicts
# ===================================================================


class ConflictDetail(BaseModel):
    """Export name shared by several documents."""

    export_name: str
    affected_schema_ids: List[str] = Field(default_factory=list)


class ConflictReport(BaseModel):
    """Result of NameResolver.detect_conflicts()."""

    has_conflicts: bool = False
    conflicts: List[ConflictDetail] = Field(default_factory=list)


# ===================================================================
# Reports
# ===================================================================


class ValidationIssue(BaseModel):
    """One error or warning reported by validate() or build()."""

    code: IssueCode
    message: str
    schema_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def severity(self) -> IssueSeverity:
        """Warnings are MISSING_REF and CIRCULAR_REF; everything else is an error."""
        if self.code in (IssueCode.MISSING_REF, IssueCode.CIRCULAR_REF):
            return IssueSeverity.WARNING
        return IssueSeverity.ERROR


class ValidationResult(BaseModel):
    """Structured outcome of SchemaProject.validate()."""

    valid: bool = True
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)


class BuildResult(BaseModel):
    """Structured outcome of SchemaProject.build()."""

    success: bool = False
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    generated_artifacts: List[GeneratedArtifact] = Field(default_factory=list)
    build_order: List[str] = Field(default_factory=list)
    build_time_ms: float = Field(default=0.0, ge=0)

    @property
    def generated_files(self) -> List[str]:
        """Output paths of all generated artifacts."""
        return [artifact.file_path for artifact in self.generated_artifacts]


__all__ = [
    "ImportKind",
    "ModuleFormat",
    "IssueSeverity",
    "IssueCode",
    "ImportInfo",
    "RefResolution",
    "GeneratedArtifact",
    "SchemaMetadata",
    "SchemaEntry",
    "GraphSummary",
    "DependencyGraph",
    "ConflictDetail",
    "ConflictReport",
    "ValidationIssue",
    "ValidationResult",
    "BuildResult",
]
