# -*- coding: utf-8 -*-
"""
multischema: Multi-Document Schema to Zod Code Generator
========================================================

This package converts a set of JSON-Schema-like documents that reference
each other into generated Zod modules, one module per document, with
cross-document references wired as imports. It supports:

- Schema registration from dicts, JSON files and YAML files
- Reference resolution by schema id, by file path and inside a document
- Dependency graph with Tarjan cycle detection and topological ordering
- Lazy references for imports that close a cycle
- Recursion guard for documents whose trees contain themselves
- Definition extraction into separate documents
- SHA-256 provenance tracking and Prometheus metrics
- Configuration with MULTISCHEMA_ env prefix

Key Components:
    - registry: SchemaRegistry for document CRUD
    - ref_resolver: RefResolver for $ref classification and import info
    - dependency_graph: DependencyGraphBuilder for cycles and ordering
    - recursion_guard: RecursionGuard for self-containing trees
    - parsers: schema tree to builder tree
    - builders: Zod code builders
    - project: SchemaProject orchestrator
    - cli: ``multischema`` command line tool

Example:
    >>> from multischema import SchemaProject
    >>> project = SchemaProject()
    >>> project.add_schema("user", {"type": "object"})
    >>> project.add_schema("post", {"type": "object", "properties": {"author": {"$ref": "user"}}})
    >>> project.build().build_order
    ['user', 'post']
"""

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Configuration and errors
# ---------------------------------------------------------------------------
from multischema.config import (
    MultiSchemaConfig,
    configure_logging,
    get_config,
    reset_config,
    set_config,
)
from multischema.exceptions import (
    CycleDetectedError,
    DuplicateSchemaIdError,
    GraphError,
    MultiSchemaError,
    RegistryError,
    ResolutionError,
    SchemaLoadError,
    SchemaNotFoundError,
    UnresolvedRefError,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from multischema.models import (
    BuildResult,
    DependencyGraph,
    GeneratedArtifact,
    GraphSummary,
    ImportInfo,
    ImportKind,
    IssueCode,
    ModuleFormat,
    RefResolution,
    SchemaEntry,
    SchemaMetadata,
    ValidationIssue,
    ValidationResult,
)

# ---------------------------------------------------------------------------
# Core engine
# ---------------------------------------------------------------------------
from multischema.dependency_graph import DependencyGraphBuilder
from multischema.recursion_guard import RecursionGuard
from multischema.ref_resolver import RefResolver
from multischema.registry import SchemaRegistry

# ---------------------------------------------------------------------------
# Collaborators and orchestrator
# ---------------------------------------------------------------------------
from multischema.file_generator import SourceFileGenerator
from multischema.import_manager import ImportManager
from multischema.naming import DefaultNameResolver
from multischema.parsers import DefaultSchemaParser, ParseContext, parse_schema
from multischema.project import ProjectOptions, SchemaProject

__all__ = [
    "__version__",
    # config
    "MultiSchemaConfig",
    "configure_logging",
    "get_config",
    "reset_config",
    "set_config",
    # errors
    "CycleDetectedError",
    "DuplicateSchemaIdError",
    "GraphError",
    "MultiSchemaError",
    "RegistryError",
    "ResolutionError",
    "SchemaLoadError",
    "SchemaNotFoundError",
    "UnresolvedRefError",
    # models
    "BuildResult",
    "DependencyGraph",
    "GeneratedArtifact",
    "GraphSummary",
    "ImportInfo",
    "ImportKind",
    "IssueCode",
    "ModuleFormat",
    "RefResolution",
    "SchemaEntry",
    "SchemaMetadata",
    "ValidationIssue",
    "ValidationResult",
    # engine
    "DependencyGraphBuilder",
    "RecursionGuard",
    "RefResolver",
    "SchemaRegistry",
    # collaborators
    "DefaultNameResolver",
    "DefaultSchemaParser",
    "ImportManager",
    "ParseContext",
    "SourceFileGenerator",
    "parse_schema",
    # orchestrator
    "ProjectOptions",
    "SchemaProject",
]
