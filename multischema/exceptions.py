# -*- coding: utf-8 -*-
"""multischema Exception Hierarchy.

Exceptions raised by the multi-schema core. Structural problems found by
``SchemaProject.validate()`` are *reported*, not raised; the classes below
are reserved for programmer errors and for the few operations whose
contract is to raise (registry mutation, ``topological_sort``).

Exception Hierarchy:
    MultiSchemaError (base)
    ├── RegistryError
    │   ├── DuplicateSchemaIdError
    │   └── SchemaNotFoundError
    ├── ResolutionError
    │   └── UnresolvedRefError
    ├── GraphError
    │   └── CycleDetectedError
    └── SchemaLoadError

Example:
    >>> from multischema.exceptions import DuplicateSchemaIdError
    >>> raise DuplicateSchemaIdError("user")
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Dict, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class MultiSchemaError(Exception):
    """Base exception for all multischema errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g. "MS_REGISTRY_DUPLICATE_SCHEMA_ID_ERROR")
        schema_id: Identifier of the schema document involved (optional)
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "MS"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        schema_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            schema_id: Schema document the error relates to
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.schema_id = schema_id
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Derive an error code from the class name.

        Returns:
            Error code like "MS_GRAPH_CYCLE_DETECTED_ERROR"
        """
        error_type = re.sub(r"(?<!^)(?=[A-Z])", "_", self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "schema_id": self.schema_id,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to a JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        parts = [f"[{self.error_code}]"]
        if self.schema_id:
            parts.append(f"Schema: {self.schema_id}")
        parts.append(self.message)
        return " - ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"schema_id='{self.schema_id}')"
        )


# ==============================================================================
# Registry Exceptions
# ==============================================================================

class RegistryError(MultiSchemaError):
    """Base exception for schema registry errors."""
    ERROR_PREFIX = "MS_REGISTRY"


class DuplicateSchemaIdError(RegistryError):
    """A schema with the same identifier is already registered.

    Example:
        >>> raise DuplicateSchemaIdError("user")
    """

    def __init__(self, schema_id: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            f'Schema with ID "{schema_id}" already exists in registry',
            schema_id=schema_id,
            context=context,
        )


class SchemaNotFoundError(RegistryError):
    """The requested schema identifier is not registered."""

    def __init__(self, schema_id: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            f'Schema with ID "{schema_id}" not found in registry',
            schema_id=schema_id,
            context=context,
        )


# ==============================================================================
# Resolution Exceptions
# ==============================================================================

class ResolutionError(MultiSchemaError):
    """Base exception for reference resolution errors."""
    ERROR_PREFIX = "MS_RESOLUTION"


class UnresolvedRefError(ResolutionError):
    """A reference does not point at any registered document.

    Example:
        >>> raise UnresolvedRefError("missing#/x", from_schema_id="user")
    """

    def __init__(
        self,
        ref: str,
        from_schema_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = context or {}
        context["ref"] = ref
        super().__init__(
            f'Cannot resolve $ref "{ref}"',
            schema_id=from_schema_id,
            context=context,
        )
        self.ref = ref


# ==============================================================================
# Graph Exceptions
# ==============================================================================

class GraphError(MultiSchemaError):
    """Base exception for dependency graph errors."""
    ERROR_PREFIX = "MS_GRAPH"


class CycleDetectedError(GraphError):
    """A topological order was requested for a graph containing a cycle.

    Attributes:
        node: The node revisited while it was still on the DFS stack.
    """

    def __init__(self, node: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Cycle detected involving node: {node}",
            schema_id=node,
            context=context,
        )
        self.node = node


# ==============================================================================
# Loading Exceptions
# ==============================================================================

class SchemaLoadError(MultiSchemaError):
    """A schema file could not be read or decoded.

    Example:
        >>> raise SchemaLoadError(
        ...     message="Invalid JSON in schemas/user.json",
        ...     context={"file_path": "schemas/user.json", "cause": "Expecting value"}
        ... )
    """

    def __init__(
        self,
        message: str,
        schema_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        file_path: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize the load error.

        Args:
            message: Error message
            schema_id: Intended schema identifier
            context: Error context
            file_path: File that failed to load
            cause: Original exception
        """
        context = context or {}
        if file_path:
            context["file_path"] = file_path
        if cause:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, schema_id=schema_id, context=context)


__all__ = [
    "MultiSchemaError",
    "RegistryError",
    "DuplicateSchemaIdError",
    "SchemaNotFoundError",
    "ResolutionError",
    "UnresolvedRefError",
    "GraphError",
    "CycleDetectedError",
    "SchemaLoadError",
]
