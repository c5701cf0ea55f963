# -*- coding: utf-8 -*-
"""
Schema Project

Orchestrates a set of schema documents: registration, validation,
dependency ordering and code generation.

Build pipeline:
    1. validate(): rebuild the dependency graph from every ``$ref``, detect
       cycles, report export conflicts, invalid roots and missing refs
    2. order: topological order (dependencies first); for cyclic graphs
       the strongly connected components in dependency order
    3. generate: parse each document with a fresh ParseContext; references
       that point back along a cycle are emitted lazily
    4. a failing document is recorded and skipped; the others still build

Example:
    >>> project = SchemaProject()
    >>> project.add_schema("user", {"type": "object", "properties": {"id": {"type": "string"}}})
    >>> project.add_schema("post", {"type": "object", "properties": {"author": {"$ref": "user"}}})
    >>> result = project.build()
    >>> result.build_order
    ['user', 'post']
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from multischema import metrics
from multischema.config import MultiSchemaConfig, get_config
from multischema.dependency_graph import DependencyGraphBuilder
from multischema.exceptions import (
    CycleDetectedError,
    DuplicateSchemaIdError,
    MultiSchemaError,
    SchemaLoadError,
)
from multischema.file_generator import SourceFileGenerator
from multischema.import_manager import ImportManager
from multischema.interfaces import FileGenerator, NameResolver, ReferenceResolver, SchemaParser
from multischema.models import (
    BuildResult,
    DependencyGraph,
    GeneratedArtifact,
    GraphSummary,
    IssueCode,
    ModuleFormat,
    RefResolution,
    SchemaEntry,
    SchemaMetadata,
    ValidationIssue,
    ValidationResult,
)
from multischema.naming import DefaultNameResolver, member_export_name
from multischema.parsers import (
    DefaultSchemaParser,
    ParseContext,
    extract_refs,
    is_external_ref,
    resolve_pointer,
    split_member_path,
)
from multischema.parsers.refs import MISSING
from multischema.provenance import ProvenanceTracker, hash_schema
from multischema.ref_resolver import ImportPathTransformer, RefResolver
from multischema.registry import SchemaRegistry

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")
_DEFINITION_KEYS = ("definitions", "$defs")


@dataclass
class ProjectOptions:
    """Collaborators and settings of a SchemaProject.

    Settings left as None are taken from the active MultiSchemaConfig.
    Collaborators left as None get the default implementation.
    """

    config: Optional[MultiSchemaConfig] = None
    out_dir: Optional[str] = None
    module_format: Optional[str] = None
    generate_index: Optional[bool] = None
    name_strategy: Optional[str] = None
    max_ref_depth: Optional[int] = None
    parse_max_depth: Optional[int] = None

    parser: Optional[SchemaParser] = None
    name_resolver: Optional[NameResolver] = None
    ref_resolver: Optional[ReferenceResolver] = None
    file_generator: Optional[FileGenerator] = None
    import_path_transformer: Optional[ImportPathTransformer] = None

    # Lift definitions/$defs into documents of their own.
    extract_definitions: bool = False
    definitions_dir: str = "definitions"
    definition_id: Optional[Callable[[str, str], str]] = None


class SchemaProject:
    """Multi-document schema project.

    Attributes:
        options: Options the project was created with.
        config: Effective configuration.
    """

    def __init__(self, options: Optional[ProjectOptions] = None) -> None:
        self.options = options or ProjectOptions()
        base = self.options.config or get_config()
        self.config = MultiSchemaConfig(
            out_dir=_pick(self.options.out_dir, base.out_dir),
            module_format=_pick(self.options.module_format, base.module_format),
            generate_index=_pick(self.options.generate_index, base.generate_index),
            max_ref_depth=_pick(self.options.max_ref_depth, base.max_ref_depth),
            parse_max_depth=_pick(self.options.parse_max_depth, base.parse_max_depth),
            name_strategy=_pick(self.options.name_strategy, base.name_strategy),
            log_level=base.log_level,
            enable_audit=base.enable_audit,
            enable_metrics=base.enable_metrics,
        )

        self._registry = SchemaRegistry()
        self._graph = DependencyGraphBuilder()
        self._missing_refs: Dict[str, List[str]] = {}
        self._member_paths: Dict[str, Dict[Tuple[str, ...], None]] = {}

        self._name_resolver: NameResolver = (
            self.options.name_resolver or DefaultNameResolver(strategy=self.config.name_strategy)
        )
        self._ref_resolver: ReferenceResolver = self.options.ref_resolver or RefResolver(
            self._registry, import_path_transformer=self.options.import_path_transformer,
        )
        self._parser: SchemaParser = self.options.parser or DefaultSchemaParser()
        self._file_generator: FileGenerator = self.options.file_generator or SourceFileGenerator(
            out_dir=self.config.out_dir,
            module_format=ModuleFormat(self.config.module_format),
        )
        self._provenance = ProvenanceTracker() if self.config.enable_audit else None

        logger.info(
            "SchemaProject initialized: out_dir=%s, format=%s, naming=%s",
            self.config.out_dir, self.config.module_format, self.config.name_strategy,
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_schema(
        self,
        schema_id: str,
        schema: Any,
        export_name: Optional[str] = None,
        metadata: Optional[SchemaMetadata] = None,
    ) -> SchemaEntry:
        """Register a schema document.

        The schema tree is stored by reference, not copied.

        Raises:
            DuplicateSchemaIdError: If ``schema_id`` is already registered.
        """
        return self._register(schema_id, schema, export_name, metadata, source="inline")

    def add_schema_from_file(
        self,
        file_path: str,
        schema_id: Optional[str] = None,
        export_name: Optional[str] = None,
    ) -> SchemaEntry:
        """Load a JSON (or YAML) schema file and register it.

        Args:
            file_path: Path of the schema file.
            schema_id: Document id; defaults to the path relative to the
                working directory, with ``/`` separators.
            export_name: Export name override.

        Raises:
            SchemaLoadError: If the file cannot be read or decoded.
            DuplicateSchemaIdError: If the id is already registered.
        """
        path = Path(file_path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaLoadError(
                f"Cannot read schema file {file_path}",
                schema_id=schema_id,
                file_path=str(file_path),
                cause=e,
            ) from e

        try:
            if path.suffix.lower() in _YAML_SUFFIXES:
                schema = yaml.safe_load(text)
            else:
                schema = json.loads(text)
        except (ValueError, yaml.YAMLError) as e:
            raise SchemaLoadError(
                f"Invalid schema file {file_path}",
                schema_id=schema_id,
                file_path=str(file_path),
                cause=e,
            ) from e

        metadata = SchemaMetadata(original_file_path=str(file_path))
        return self._register(
            schema_id or _default_schema_id(path), schema, export_name, metadata, source="file",
        )

    def remove_schema(self, schema_id: str) -> bool:
        """Unregister a document; returns False if it was not registered."""
        removed = self._registry.remove_entry(schema_id)
        if removed:
            logger.debug("Dropped schema %s from project", schema_id)
            metrics.record_removal(self._registry.count)
            if self._provenance is not None:
                self._provenance.record("schema", schema_id, "remove", hash_schema(None))
        return removed

    def _register(
        self,
        schema_id: str,
        schema: Any,
        export_name: Optional[str],
        metadata: Optional[SchemaMetadata],
        source: str,
    ) -> SchemaEntry:
        """Register a document, lifting its definitions when configured.

        A failed registration leaves the registry and the schema tree as
        they were: documents added on the way are removed and rewritten
        refs are restored.
        """
        if not (self.options.extract_definitions and isinstance(schema, dict)):
            return self._add_entry(schema_id, schema, export_name, metadata, source)

        known = set(self._registry.get_all_ids())
        undo: List[Tuple[Dict[str, Any], str, Any]] = []
        try:
            return self._register_with_definitions(
                schema_id, schema, export_name, metadata, source, undo,
            )
        except MultiSchemaError:
            for container, key, value in reversed(undo):
                container[key] = value
            for registered_id in reversed(self._registry.get_all_ids()):
                if registered_id not in known:
                    self.remove_schema(registered_id)
            logger.warning("Registration of %s rolled back", schema_id)
            raise

    def _add_entry(
        self,
        schema_id: str,
        schema: Any,
        export_name: Optional[str],
        metadata: Optional[SchemaMetadata],
        source: str,
    ) -> SchemaEntry:
        entry = SchemaEntry(
            id=schema_id,
            raw_schema=schema,
            export_name=export_name or self._name_resolver.resolve_export_name(schema_id),
            metadata=metadata or SchemaMetadata(),
        )
        self._registry.add_entry(entry)
        logger.debug("Added schema %s from %s (export %s)", schema_id, source, entry.export_name)

        metrics.record_registration(source, self._registry.count)
        if self._provenance is not None:
            self._provenance.record(
                "schema", schema_id, "register", hash_schema(schema),
                details={"export_name": entry.export_name, "source": source},
            )
        return entry

    # ------------------------------------------------------------------
    # Definition extraction
    # ------------------------------------------------------------------

    def _definition_id(self, parent_id: str, name: str) -> str:
        if self.options.definition_id is not None:
            return self.options.definition_id(parent_id, name)
        return f"{self.options.definitions_dir}/{name}"

    def _plan_definitions(self, schema_id: str, schema: Dict[str, Any]) -> Dict[str, str]:
        """Map ``#/definitions/<name>`` pointers to new document ids.

        Raises:
            DuplicateSchemaIdError: If a new id is already registered, equals
                the parent id or is produced twice.
        """
        planned: Dict[str, str] = {}
        for key in _DEFINITION_KEYS:
            definitions = schema.get(key)
            if not isinstance(definitions, dict):
                continue
            for name in definitions:
                definition_id = self._definition_id(schema_id, name)
                if (
                    definition_id == schema_id
                    or self._registry.has_entry(definition_id)
                    or definition_id in planned.values()
                ):
                    raise DuplicateSchemaIdError(
                        definition_id,
                        context={"imported_from": schema_id, "definition": f"#/{key}/{name}"},
                    )
                planned[f"#/{key}/{name}"] = definition_id
        return planned

    def _register_with_definitions(
        self,
        schema_id: str,
        schema: Dict[str, Any],
        export_name: Optional[str],
        metadata: Optional[SchemaMetadata],
        source: str,
        undo: List[Tuple[Dict[str, Any], str, Any]],
    ) -> SchemaEntry:
        lifted = self._plan_definitions(schema_id, schema)
        entry = self._add_entry(schema_id, schema, export_name, metadata, source)
        if lifted:
            self._extract_definitions(entry, lifted, undo)
        return entry

    def _extract_definitions(
        self,
        entry: SchemaEntry,
        lifted: Dict[str, str],
        undo: List[Tuple[Dict[str, Any], str, Any]],
    ) -> List[str]:
        """Register each definition of ``entry`` as a document of its own.

        Internal refs of the form ``#/definitions/<name>`` (or ``$defs``)
        anywhere in the parent tree are rewritten to the new document id,
        and each lifted definition is replaced by a ref to its document.
        Every in-place change is appended to ``undo``.
        """
        schema = entry.raw_schema
        _rewrite_refs(schema, lifted, undo)

        created = []
        for key in _DEFINITION_KEYS:
            definitions = schema.get(key)
            if not isinstance(definitions, dict):
                continue
            for name, definition in list(definitions.items()):
                definition_id = lifted[f"#/{key}/{name}"]
                definition_metadata = SchemaMetadata(
                    imported_from=entry.id,
                    original_file_path=entry.metadata.original_file_path,
                )
                if isinstance(definition, dict):
                    self._register_with_definitions(
                        definition_id, definition, None, definition_metadata, "definition", undo,
                    )
                else:
                    self._add_entry(definition_id, definition, None, definition_metadata, "definition")
                undo.append((definitions, name, definition))
                definitions[name] = {"$ref": definition_id}
                created.append(definition_id)

        logger.info("Extracted %d definition(s) from %s", len(created), entry.id)
        return created

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def _rebuild_graph(self) -> None:
        """Rebuild nodes and edges from scratch and detect cycles."""
        self._graph.clear()
        self._missing_refs = {}
        self._member_paths = {}

        entries = self._registry.get_all_entries()
        for entry in entries:
            self._graph.add_node(entry.id)

        for entry in entries:
            if not isinstance(entry.raw_schema, dict):
                continue
            for ref in extract_refs(entry.raw_schema, self.config.max_ref_depth):
                resolution = self._ref_resolver.resolve(ref, entry.id)
                if resolution is None:
                    if is_external_ref(ref):
                        self._missing_refs.setdefault(entry.id, []).append(ref)
                    continue
                if resolution.is_external:
                    self._graph.add_edge(entry.id, resolution.target_schema_id)
                    self._collect_member(entry.id, resolution)

        self._graph.detect_cycles()
        logger.debug("Dependency graph rebuilt: %s", self._graph.summary())

    def _collect_member(self, source_id: str, resolution: RefResolution) -> None:
        """Remember a subschema that the target module must export by name."""
        if not resolution.definition_path or resolution.target_schema_id == source_id:
            return
        target = self._registry.get_entry(resolution.target_schema_id)
        if target is None or resolve_pointer(target.raw_schema, resolution.definition_path) is MISSING:
            return
        member_path, _ = split_member_path(target.raw_schema, resolution.definition_path)
        if member_path:
            self._member_paths.setdefault(target.id, {})[tuple(member_path)] = None

    def _compute_build_order(self) -> List[str]:
        try:
            return self._graph.topological_sort()
        except CycleDetectedError as e:
            logger.info("Cycle at %s; using component build order", e.node)
            return self._fallback_build_order()

    def _fallback_build_order(self) -> List[str]:
        """Components in dependency order, members in insertion order."""
        return [node for component in self._graph.strongly_connected_components() for node in component]

    def get_dependency_graph(self) -> DependencyGraph:
        """Rebuild the graph and return a read-only snapshot."""
        self._rebuild_graph()
        return self._graph.snapshot()

    def get_build_order(self) -> List[str]:
        """Rebuild the graph and return the order build() would use."""
        self._rebuild_graph()
        return self._compute_build_order()

    def summary(self) -> GraphSummary:
        self._rebuild_graph()
        return self._graph.summary()

    def to_dot(self) -> str:
        """Rebuild the graph and render it as GraphViz DOT."""
        self._rebuild_graph()
        return self._graph.to_dot()

    def resolve_ref(self, ref: str, from_schema_id: str) -> Optional[RefResolution]:
        return self._ref_resolver.resolve(ref, from_schema_id)

    def get_registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def provenance(self) -> Optional[ProvenanceTracker]:
        return self._provenance

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """Check the project without generating anything.

        Errors: export-name conflicts, roots that are neither an object nor
        a boolean. Warnings: unresolved external refs, dependency cycles.
        """
        self._rebuild_graph()
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []
        entries = self._registry.get_all_entries()

        report = self._name_resolver.detect_conflicts({e.id: e.export_name for e in entries})
        for conflict in report.conflicts:
            errors.append(ValidationIssue(
                code=IssueCode.EXPORT_CONFLICT,
                message=(
                    f'Export name "{conflict.export_name}" is used by '
                    f"{', '.join(conflict.affected_schema_ids)}"
                ),
                schema_id=conflict.affected_schema_ids[0],
                details={
                    "export_name": conflict.export_name,
                    "affected_schema_ids": conflict.affected_schema_ids,
                },
            ))

        for entry in entries:
            if not isinstance(entry.raw_schema, (dict, bool)):
                errors.append(ValidationIssue(
                    code=IssueCode.INVALID_SCHEMA,
                    message=f"Schema {entry.id} must be an object or a boolean",
                    schema_id=entry.id,
                    details={"type": type(entry.raw_schema).__name__},
                ))

        for schema_id, refs in self._missing_refs.items():
            for ref in refs:
                warnings.append(ValidationIssue(
                    code=IssueCode.MISSING_REF,
                    message=f'Cannot resolve $ref "{ref}" in {schema_id}',
                    schema_id=schema_id,
                    details={"ref": ref},
                ))

        order = self._graph.nodes
        for cycle in self._graph.cycles:
            members = [node for node in order if node in cycle]
            warnings.append(ValidationIssue(
                code=IssueCode.CIRCULAR_REF,
                message=f"Circular reference: {' -> '.join(members)}",
                schema_id=members[0],
                details={"cycle": members},
            ))

        valid = not errors
        metrics.record_validation(valid, len(self._graph.cycles))
        logger.info(
            "Validation %s: %d error(s), %d warning(s)",
            "passed" if valid else "failed", len(errors), len(warnings),
        )
        return ValidationResult(valid=valid, errors=errors, warnings=warnings)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> BuildResult:
        """Generate one module per document.

        Returns:
            BuildResult; ``success`` is False if validation failed or any
            document failed to parse or render.
        """
        start = time.perf_counter()
        logger.info("Build started for %d schema(s)", self._registry.count)

        validation = self.validate()
        if not validation.valid:
            result = BuildResult(
                success=False,
                errors=validation.errors,
                warnings=validation.warnings,
                build_time_ms=_elapsed_ms(start),
            )
            metrics.record_build(False, result.build_time_ms / 1000.0)
            return result

        build_order = self._compute_build_order()
        snapshot = self._graph.snapshot()
        errors: List[ValidationIssue] = []
        warnings = list(validation.warnings)
        artifacts: List[GeneratedArtifact] = []

        for schema_id in build_order:
            artifact = self._build_document(schema_id, build_order, snapshot, errors, warnings)
            if artifact is not None:
                artifacts.append(artifact)

        if self.config.generate_index and artifacts:
            artifacts.append(self._file_generator.generate_index(artifacts))

        success = not errors
        result = BuildResult(
            success=success,
            errors=errors,
            warnings=warnings,
            generated_artifacts=artifacts,
            build_order=build_order,
            build_time_ms=_elapsed_ms(start),
        )

        metrics.record_build(success, result.build_time_ms / 1000.0)
        if self._provenance is not None:
            self._provenance.record(
                "build", "project", "build",
                hash_schema([a.content_hash for a in artifacts]),
                details={"success": success, "documents": len(build_order)},
            )
        logger.info(
            "Build %s in %.1fms: %d artifact(s), %d error(s)",
            "succeeded" if success else "failed",
            result.build_time_ms, len(artifacts), len(errors),
        )
        return result

    def _build_document(
        self,
        schema_id: str,
        build_order: List[str],
        snapshot: DependencyGraph,
        errors: List[ValidationIssue],
        warnings: List[ValidationIssue],
    ) -> Optional[GeneratedArtifact]:
        entry = self._registry.get_entry(schema_id)
        if entry is None:
            return None

        context = ParseContext.for_document(
            schema_id,
            entry.raw_schema,
            registry=self._registry,
            ref_resolver=self._ref_resolver,
            graph=snapshot,
            build_order=build_order,
            max_depth=self.config.parse_max_depth,
            max_ref_depth=self.config.max_ref_depth,
        )

        try:
            builder = self._parser.parse(entry.raw_schema, context)
            members = self._parse_members(entry, context)
        except Exception as e:
            logger.error("Failed to parse %s: %s", schema_id, e, exc_info=True)
            errors.append(ValidationIssue(
                code=IssueCode.PARSE_FAILED,
                message=f"Failed to parse {schema_id}: {e}",
                schema_id=schema_id,
                details={"error_type": type(e).__name__},
            ))
            metrics.record_document(False)
            return None

        module_format = entry.metadata.module_format_override or ModuleFormat(self.config.module_format)
        try:
            artifact = self._generator_for(module_format).generate_file(
                schema_id, builder, ImportManager(module_format), entry.export_name,
                members=members,
            )
        except Exception as e:
            logger.error("Failed to generate %s: %s", schema_id, e, exc_info=True)
            errors.append(ValidationIssue(
                code=IssueCode.GENERATION_FAILED,
                message=f"Failed to generate {schema_id}: {e}",
                schema_id=schema_id,
                details={"error_type": type(e).__name__},
            ))
            metrics.record_document(False)
            return None

        reported = set(self._missing_refs.get(schema_id, []))
        for ref in dict.fromkeys(context.stats.unresolved_references):
            if ref not in reported:
                warnings.append(ValidationIssue(
                    code=IssueCode.MISSING_REF,
                    message=f'Cannot resolve $ref "{ref}" in {schema_id}',
                    schema_id=schema_id,
                    details={"ref": ref},
                ))

        self._registry.update_entry(schema_id, builder=builder, build_artifact=artifact)
        metrics.record_document(True)
        metrics.record_references(
            lazy=len(context.stats.lazy_references),
            plain=len(context.stats.plain_references),
            unresolved=len(context.stats.unresolved_references),
        )
        if self._provenance is not None:
            self._provenance.record(
                "artifact", artifact.file_path, "generate", artifact.content_hash,
                details={"schema_id": schema_id},
            )
        return artifact

    def _parse_members(self, entry: SchemaEntry, context: ParseContext) -> List[Tuple[str, Any]]:
        members = []
        for member_path in self._member_paths.get(entry.id, {}):
            node = resolve_pointer(entry.raw_schema, list(member_path))
            builder = self._parser.parse(node, context.with_path(*member_path))
            members.append((member_export_name(entry.export_name, member_path), builder))
        return members

    def _generator_for(self, module_format: ModuleFormat) -> FileGenerator:
        generator = self._file_generator
        if isinstance(generator, SourceFileGenerator) and generator.module_format != module_format:
            return SourceFileGenerator(
                out_dir=generator.out_dir,
                module_format=module_format,
                extension=generator.extension,
            )
        return generator

    def save(self, result: BuildResult) -> List[str]:
        """Write the artifacts of a build through the file generator."""
        return self._file_generator.save_all(result.generated_artifacts)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def _default_schema_id(path: Path) -> str:
    try:
        relative = os.path.relpath(path)
    except ValueError:
        # Different drive on Windows.
        relative = str(path)
    return Path(relative).as_posix()


def _rewrite_refs(
    node: Any,
    mapping: Dict[str, str],
    undo: Optional[List[Tuple[Dict[str, Any], str, Any]]] = None,
) -> None:
    """Replace ``$ref`` values found in ``mapping`` throughout a tree."""
    visited = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if id(current) in visited:
            continue
        visited.add(id(current))
        if isinstance(current, dict):
            ref = current.get("$ref")
            if isinstance(ref, str) and ref in mapping:
                if undo is not None:
                    undo.append((current, "$ref", ref))
                current["$ref"] = mapping[ref]
            stack.extend(v for v in current.values() if isinstance(v, (dict, list)))
        elif isinstance(current, list):
            stack.extend(v for v in current if isinstance(v, (dict, list)))


__all__ = [
    "ProjectOptions",
    "SchemaProject",
]
