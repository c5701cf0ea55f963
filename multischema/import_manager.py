# -*- coding: utf-8 -*-
"""
Import Manager

Collects the imports of one generated module, removes duplicates and
renders them as ESM ``import`` or CommonJS ``require`` statements.

Imports are keyed by ``(module_path, import_name)``. An import that is
type-only for one reference and plain for another is kept plain. Type-only
imports are still rendered as value imports: the lazy thunk that breaks a
cycle reads the binding at runtime.

Example:
    >>> manager = ImportManager()
    >>> manager.add_import(ImportInfo(import_name="User", module_path="./user"))
    >>> manager.render()
    'import { User } from "./user";'
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional

from multischema.builders import Builder
from multischema.models import ImportInfo, ImportKind, ModuleFormat

logger = logging.getLogger(__name__)


@dataclass
class _ImportRecord:
    info: ImportInfo
    export_name: str


class ImportManager:
    """Import collection for one generated module.

    Attributes:
        module_format: ``esm`` or ``cjs`` statement syntax.
    """

    def __init__(self, module_format: ModuleFormat = ModuleFormat.ESM) -> None:
        self.module_format = ModuleFormat(module_format)
        self._records: Dict[str, _ImportRecord] = OrderedDict()

    def add_import(self, info: ImportInfo, export_name: Optional[str] = None) -> None:
        """Register an import; ``export_name`` defaults to the binding."""
        record = self._records.get(info.key)
        if record is None:
            self._records[info.key] = _ImportRecord(info, export_name or info.import_name)
        elif record.info.is_type_only and not info.is_type_only:
            record.info = info

    def collect_from(self, builder: Builder) -> int:
        """Register the imports of every reference in a builder tree.

        Returns:
            Number of references that needed an import.
        """
        count = 0
        for reference in builder.iter_references():
            info = reference.get_import_info()
            if info is not None:
                self.add_import(info, reference.export_name)
                count += 1
        return count

    def get_imports(self) -> List[ImportInfo]:
        """Deduplicated imports in registration order."""
        return [record.info for record in self._records.values()]

    def has_imports(self) -> bool:
        return bool(self._records)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> str:
        """Render all import statements, one per line."""
        if self.module_format == ModuleFormat.CJS:
            return "\n".join(self._render_cjs())
        return "\n".join(self._render_esm())

    def _group_named(self) -> "OrderedDict[str, List[_ImportRecord]]":
        grouped: "OrderedDict[str, List[_ImportRecord]]" = OrderedDict()
        for record in self._records.values():
            if record.info.import_kind == ImportKind.NAMED:
                grouped.setdefault(record.info.module_path, []).append(record)
        return grouped

    @staticmethod
    def _specifier(record: _ImportRecord, separator: str) -> str:
        binding = record.info.import_name
        if record.export_name == binding:
            return binding
        return f"{record.export_name}{separator}{binding}"

    def _render_esm(self) -> List[str]:
        lines = []
        for module_path, records in self._group_named().items():
            names = ", ".join(self._specifier(r, " as ") for r in records)
            lines.append(f'import {{ {names} }} from "{module_path}";')
        for record in self._records.values():
            info = record.info
            if info.import_kind == ImportKind.DEFAULT:
                lines.append(f'import {info.import_name} from "{info.module_path}";')
            elif info.import_kind == ImportKind.NAMESPACE:
                lines.append(f'import * as {info.import_name} from "{info.module_path}";')
        return lines

    def _render_cjs(self) -> List[str]:
        lines = []
        for module_path, records in self._group_named().items():
            names = ", ".join(self._specifier(r, ": ") for r in records)
            lines.append(f'const {{ {names} }} = require("{module_path}");')
        for record in self._records.values():
            info = record.info
            if info.import_kind == ImportKind.DEFAULT:
                lines.append(f'const {info.import_name} = require("{info.module_path}").default;')
            elif info.import_kind == ImportKind.NAMESPACE:
                lines.append(f'const {info.import_name} = require("{info.module_path}");')
        return lines


__all__ = [
    "ImportManager",
]
