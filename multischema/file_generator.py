# -*- coding: utf-8 -*-
"""
Source File Generator

Renders one module per schema document and, optionally, an index module
re-exporting every schema. Generation only produces GeneratedArtifact
objects; ``save_all`` is the single place that touches the filesystem.

Layout:
    <out_dir>/<schema id without schema-file suffix>.ts
    <out_dir>/index.ts
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from multischema.builders import Builder
from multischema.import_manager import ImportManager
from multischema.models import GeneratedArtifact, ModuleFormat
from multischema.ref_resolver import module_path_for

logger = logging.getLogger(__name__)

INDEX_SCHEMA_ID = "__index__"


class SourceFileGenerator:
    """Zod module generator.

    Attributes:
        out_dir: Directory generated modules are placed in.
        module_format: ``esm`` or ``cjs``.
        extension: File extension of generated modules.
    """

    def __init__(
        self,
        out_dir: str = "generated",
        module_format: ModuleFormat = ModuleFormat.ESM,
        extension: str = ".ts",
    ) -> None:
        self.out_dir = out_dir
        self.module_format = ModuleFormat(module_format)
        self.extension = extension

    def output_path(self, schema_id: str) -> str:
        return posixpath.join(self.out_dir, module_path_for(schema_id) + self.extension)

    def generate_file(
        self,
        schema_id: str,
        builder: Builder,
        import_manager: ImportManager,
        export_name: str,
        members: Optional[Sequence[Tuple[str, Builder]]] = None,
    ) -> GeneratedArtifact:
        """Render the module of one document.

        The import manager is filled from the builders' references before
        rendering, so callers may pass an empty one. Member exports
        (subschemas other modules reference by pointer) are declared
        before the main export.
        """
        exports = list(members or []) + [(export_name, builder)]
        for _, export_builder in exports:
            import_manager.collect_from(export_builder)

        if self.module_format == ModuleFormat.CJS:
            lines = ['const { z } = require("zod");']
        else:
            lines = ['import { z } from "zod";']
        imports = import_manager.render()
        if imports:
            lines.append(imports)
        lines.append("")
        for name, export_builder in exports:
            body = export_builder.render()
            if self.module_format == ModuleFormat.CJS:
                lines.append(f"const {name} = {body};")
                lines.append(f"exports.{name} = {name};")
            else:
                lines.append(f"export const {name} = {body};")

        artifact = GeneratedArtifact(
            schema_id=schema_id,
            export_name=export_name,
            file_path=self.output_path(schema_id),
            content="\n".join(lines) + "\n",
            imports=import_manager.get_imports(),
        )
        logger.debug("Generated %s (%d imports)", artifact.file_path, len(artifact.imports))
        return artifact

    def generate_index(self, artifacts: Sequence[GeneratedArtifact]) -> GeneratedArtifact:
        """Render an index module re-exporting every generated schema."""
        lines = []
        for artifact in artifacts:
            if artifact.schema_id == INDEX_SCHEMA_ID:
                continue
            module_path = "./" + module_path_for(artifact.schema_id)
            if self.module_format == ModuleFormat.CJS:
                lines.append(
                    f'exports.{artifact.export_name} = require("{module_path}").{artifact.export_name};'
                )
            else:
                lines.append(f'export {{ {artifact.export_name} }} from "{module_path}";')

        return GeneratedArtifact(
            schema_id=INDEX_SCHEMA_ID,
            export_name="",
            file_path=posixpath.join(self.out_dir, "index" + self.extension),
            content="\n".join(lines) + "\n",
        )

    def save_all(self, artifacts: Sequence[GeneratedArtifact]) -> List[str]:
        """Write artifacts to disk, creating directories as needed.

        Returns:
            Paths written, in artifact order.
        """
        written = []
        for artifact in artifacts:
            path = Path(artifact.file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(artifact.content, encoding="utf-8")
            written.append(str(path))
        logger.info("Wrote %d file(s) to %s", len(written), self.out_dir)
        return written


__all__ = [
    "INDEX_SCHEMA_ID",
    "SourceFileGenerator",
]
