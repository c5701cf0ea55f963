# -*- coding: utf-8 -*-
"""
multischema Configuration

Centralized configuration for the multi-schema code generator covering:
- Output directory, module format and index generation
- Traversal bounds for $ref extraction and the parse recursion guard
- Export-name strategy
- Logging level, audit trail and metrics toggles

All settings can be overridden via environment variables with the
``MULTISCHEMA_`` prefix (e.g. ``MULTISCHEMA_OUT_DIR``).

Example:
    >>> from multischema.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.out_dir, cfg.max_ref_depth)
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "MULTISCHEMA_"

_MODULE_FORMATS = ("esm", "cjs")
_NAME_STRATEGIES = ("schemaId", "filename")


# ---------------------------------------------------------------------------
# MultiSchemaConfig
# ---------------------------------------------------------------------------


@dataclass
class MultiSchemaConfig:
    """Complete configuration for a multi-schema project.

    Attributes:
        out_dir: Directory generated modules are written to.
        module_format: ``esm`` or ``cjs`` import statements.
        generate_index: Whether to emit an index module re-exporting all schemas.
        max_ref_depth: Maximum nesting depth scanned when extracting $refs.
        parse_max_depth: Re-entry budget of the recursion guard (None = 0).
        name_strategy: Export naming strategy (``schemaId`` or ``filename``).
        log_level: Python log level name for the package logger.
        enable_audit: Whether to record provenance audit entries.
        enable_metrics: Whether to update Prometheus metrics.
    """

    # -- Output --------------------------------------------------------------
    out_dir: str = "generated"
    module_format: str = "esm"
    generate_index: bool = True

    # -- Traversal bounds ----------------------------------------------------
    max_ref_depth: int = 100
    parse_max_depth: Optional[int] = None

    # -- Naming --------------------------------------------------------------
    name_strategy: str = "schemaId"

    # -- Logging -------------------------------------------------------------
    log_level: str = "INFO"

    # -- Auditing / metrics --------------------------------------------------
    enable_audit: bool = True
    enable_metrics: bool = True

    def __post_init__(self) -> None:
        if self.module_format not in _MODULE_FORMATS:
            raise ValueError(
                f"module_format must be one of {_MODULE_FORMATS}, got {self.module_format!r}"
            )
        if self.name_strategy not in _NAME_STRATEGIES:
            raise ValueError(
                f"name_strategy must be one of {_NAME_STRATEGIES}, got {self.name_strategy!r}"
            )
        if self.max_ref_depth < 0:
            raise ValueError("max_ref_depth must be >= 0")
        if self.parse_max_depth is not None and self.parse_max_depth < 0:
            raise ValueError("parse_max_depth must be >= 0")

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> MultiSchemaConfig:
        """Build a MultiSchemaConfig from environment variables.

        Every field can be overridden via ``MULTISCHEMA_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Integer values are parsed via ``int()``; an empty
        ``MULTISCHEMA_PARSE_MAX_DEPTH`` means "not configured".

        Returns:
            Populated MultiSchemaConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: Optional[int]) -> Optional[int]:
            val = _env(name)
            if val is None:
                return default
            if val.strip() == "":
                return None
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %s",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        config = cls(
            out_dir=_str("OUT_DIR", cls.out_dir),
            module_format=_str("MODULE_FORMAT", cls.module_format).lower(),
            generate_index=_bool("GENERATE_INDEX", cls.generate_index),
            max_ref_depth=_int("MAX_REF_DEPTH", cls.max_ref_depth) or 0,
            parse_max_depth=_int("PARSE_MAX_DEPTH", cls.parse_max_depth),
            name_strategy=_str("NAME_STRATEGY", cls.name_strategy),
            log_level=_str("LOG_LEVEL", cls.log_level),
            enable_audit=_bool("ENABLE_AUDIT", cls.enable_audit),
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
        )

        logger.info(
            "MultiSchemaConfig loaded: out_dir=%s, module_format=%s, "
            "generate_index=%s, max_ref_depth=%d, parse_max_depth=%s, "
            "name_strategy=%s, audit=%s",
            config.out_dir,
            config.module_format,
            config.generate_index,
            config.max_ref_depth,
            config.parse_max_depth,
            config.name_strategy,
            config.enable_audit,
        )
        return config


def configure_logging(config: Optional[MultiSchemaConfig] = None) -> None:
    """Apply the configured log level to the ``multischema`` package logger."""
    cfg = config or get_config()
    level = logging.getLevelName(cfg.log_level.upper())
    if not isinstance(level, int):
        logger.warning("Unknown log level %r, falling back to INFO", cfg.log_level)
        level = logging.INFO
    logging.getLogger("multischema").setLevel(level)


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[MultiSchemaConfig] = None
_config_lock = threading.Lock()


def get_config() -> MultiSchemaConfig:
    """Return the singleton MultiSchemaConfig, creating from env if needed."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = MultiSchemaConfig.from_env()
    return _config_instance


def set_config(config: MultiSchemaConfig) -> None:
    """Replace the singleton MultiSchemaConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("MultiSchemaConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "MultiSchemaConfig",
    "configure_logging",
    "get_config",
    "set_config",
    "reset_config",
]
