# -*- coding: utf-8 -*-
"""
Prometheus Metrics - multischema

Prometheus metrics for schema registration, validation and code
generation. Recording is skipped when ``enable_metrics`` is off in the
active MultiSchemaConfig.

Metrics:
    1. multischema_registrations_total (Counter)
    2. multischema_removals_total (Counter)
    3. multischema_validations_total (Counter)
    4. multischema_builds_total (Counter)
    5. multischema_build_duration_seconds (Histogram)
    6. multischema_documents_built_total (Counter)
    7. multischema_references_total (Counter)
    8. multischema_cycles_detected_total (Counter)
    9. multischema_schemas (Gauge)
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, Histogram

from multischema.config import get_config

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Registrations
multischema_registrations_total = Counter(
    "multischema_registrations_total",
    "Total schema documents registered",
    labelnames=["source"],
)

# 2. Removals
multischema_removals_total = Counter(
    "multischema_removals_total",
    "Total schema documents removed",
)

# 3. Validations
multischema_validations_total = Counter(
    "multischema_validations_total",
    "Total project validations performed",
    labelnames=["result"],
)

# 4. Builds
multischema_builds_total = Counter(
    "multischema_builds_total",
    "Total project builds performed",
    labelnames=["result"],
)

# 5. Build duration
multischema_build_duration_seconds = Histogram(
    "multischema_build_duration_seconds",
    "Project build duration in seconds",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

# 6. Documents built
multischema_documents_built_total = Counter(
    "multischema_documents_built_total",
    "Total schema documents generated",
    labelnames=["result"],
)

# 7. Cross-document references
multischema_references_total = Counter(
    "multischema_references_total",
    "Cross-document references emitted",
    labelnames=["kind"],
)

# 8. Cycles
multischema_cycles_detected_total = Counter(
    "multischema_cycles_detected_total",
    "Dependency cycles detected during validation",
)

# 9. Registered schemas
multischema_schemas = Gauge(
    "multischema_schemas",
    "Current number of registered schema documents",
)


def _enabled() -> bool:
    return get_config().enable_metrics


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_registration(source: str, total: int) -> None:
    """Record a schema registration.

    Args:
        source: ``inline`` or ``file``.
        total: Number of registered schemas afterwards.
    """
    if not _enabled():
        return
    multischema_registrations_total.labels(source=source).inc()
    multischema_schemas.set(total)


def record_removal(total: int) -> None:
    """Record a schema removal."""
    if not _enabled():
        return
    multischema_removals_total.inc()
    multischema_schemas.set(total)


def record_validation(valid: bool, cycle_count: int) -> None:
    """Record a validation and the cycles it found."""
    if not _enabled():
        return
    multischema_validations_total.labels(result="valid" if valid else "invalid").inc()
    if cycle_count:
        multischema_cycles_detected_total.inc(cycle_count)


def record_build(success: bool, duration_seconds: float) -> None:
    """Record a finished build.

    Args:
        success: Whether every document was generated.
        duration_seconds: Wall time of the build.
    """
    if not _enabled():
        return
    multischema_builds_total.labels(result="success" if success else "failure").inc()
    multischema_build_duration_seconds.observe(duration_seconds)


def record_document(success: bool) -> None:
    if not _enabled():
        return
    multischema_documents_built_total.labels(result="success" if success else "failure").inc()


def record_references(lazy: int, plain: int, unresolved: int) -> None:
    """Record the references emitted for one document."""
    if not _enabled():
        return
    if lazy:
        multischema_references_total.labels(kind="lazy").inc(lazy)
    if plain:
        multischema_references_total.labels(kind="plain").inc(plain)
    if unresolved:
        multischema_references_total.labels(kind="unresolved").inc(unresolved)


__all__ = [
    "record_build",
    "record_document",
    "record_references",
    "record_registration",
    "record_removal",
    "record_validation",
]
