# -*- coding: utf-8 -*-
"""
multischema command line interface.

Commands:
    multischema validate schemas/*.json
    multischema build schemas/*.json --out-dir src/generated
    multischema graph schemas/*.json --dot
"""

import logging
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from multischema.config import MultiSchemaConfig, configure_logging
from multischema.exceptions import MultiSchemaError
from multischema.models import ValidationIssue
from multischema.project import ProjectOptions, SchemaProject

app = typer.Typer(help="Generate Zod modules from multiple JSON schema documents")
console = Console()
logger = logging.getLogger(__name__)


def _load_project(files: List[Path], options: ProjectOptions) -> SchemaProject:
    for file_path in files:
        if not file_path.exists():
            console.print(f"[red][ERROR][/red] Schema file not found: {file_path}")
            raise typer.Exit(1)

    project = SchemaProject(options)
    try:
        for file_path in files:
            project.add_schema_from_file(str(file_path))
    except MultiSchemaError as e:
        console.print(f"[red][ERROR][/red] {e.message}")
        raise typer.Exit(1)
    return project


def _print_issues(title: str, issues: List[ValidationIssue], color: str) -> None:
    if not issues:
        return
    table = Table(title=title)
    table.add_column("Code", style=color)
    table.add_column("Schema")
    table.add_column("Message")
    for issue in issues:
        table.add_row(issue.code.value, issue.schema_id or "-", issue.message)
    console.print(table)


def _options(verbose: bool, **overrides) -> ProjectOptions:
    config = MultiSchemaConfig.from_env()
    if verbose:
        config.log_level = "DEBUG"
    configure_logging(config)
    return ProjectOptions(config=config, **overrides)


@app.command("validate")
def validate(
    files: List[Path] = typer.Argument(..., help="Schema files (JSON or YAML)"),
    name_strategy: str = typer.Option("filename", "--name-strategy", help="schemaId or filename"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """
    Validate schema documents and their cross references.

    Examples:
        multischema validate schemas/user.json schemas/post.json
    """
    project = _load_project(files, _options(verbose, name_strategy=name_strategy))
    result = project.validate()

    _print_issues("Errors", result.errors, "red")
    _print_issues("Warnings", result.warnings, "yellow")

    if not result.valid:
        console.print(f"[red][ERROR][/red] Validation failed with {len(result.errors)} error(s)")
        raise typer.Exit(1)
    console.print(
        f"[green][OK][/green] {len(files)} schema(s) valid, {len(result.warnings)} warning(s)"
    )


@app.command("build")
def build(
    files: List[Path] = typer.Argument(..., help="Schema files (JSON or YAML)"),
    out_dir: Path = typer.Option(Path("generated"), "-o", "--out-dir", help="Output directory"),
    module_format: str = typer.Option("esm", "-f", "--format", help="Module format: esm or cjs"),
    index: bool = typer.Option(True, "--index/--no-index", help="Generate an index module"),
    name_strategy: str = typer.Option("filename", "--name-strategy", help="schemaId or filename"),
    extract_definitions: bool = typer.Option(
        False, "--extract-definitions", help="Emit definitions/$defs as separate modules",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose output"),
):
    """
    Generate one Zod module per schema document.

    Examples:
        multischema build schemas/*.json -o src/generated
        multischema build schemas/*.json -f cjs --no-index
    """
    if module_format not in ("esm", "cjs"):
        console.print(f"[red][ERROR][/red] Unknown format: {module_format}")
        raise typer.Exit(1)

    options = _options(
        verbose,
        out_dir=str(out_dir),
        module_format=module_format,
        generate_index=index,
        name_strategy=name_strategy,
        extract_definitions=extract_definitions,
    )
    project = _load_project(files, options)
    result = project.build()

    _print_issues("Errors", result.errors, "red")
    _print_issues("Warnings", result.warnings, "yellow")

    if result.generated_artifacts:
        written = project.save(result)
        for path in written:
            console.print(f"[blue][INFO][/blue] Wrote {path}")

    if not result.success:
        console.print(f"[red][ERROR][/red] Build failed with {len(result.errors)} error(s)")
        raise typer.Exit(1)
    console.print(
        f"\n[green][OK][/green] Generated {len(result.generated_artifacts)} file(s) "
        f"in {result.build_time_ms:.1f}ms"
    )


@app.command("graph")
def graph(
    files: List[Path] = typer.Argument(..., help="Schema files (JSON or YAML)"),
    dot: bool = typer.Option(False, "--dot", help="Print GraphViz DOT instead of the build order"),
):
    """
    Show the dependency graph of schema documents.

    Examples:
        multischema graph schemas/*.json
        multischema graph schemas/*.json --dot | dot -Tpng -o deps.png
    """
    project = _load_project(files, _options(False))

    if dot:
        typer.echo(project.to_dot(), nl=False)
        return

    order = project.get_build_order()
    summary = project.summary()
    console.print(f"[bold]Build order[/bold] ({summary.node_count} nodes, {summary.edge_count} edges)")
    for position, schema_id in enumerate(order, start=1):
        console.print(f"  {position}. {schema_id}")
    if summary.has_cycles:
        snapshot = project.get_dependency_graph()
        for cycle in snapshot.cycles:
            members = [node for node in snapshot.nodes if node in cycle]
            console.print(f"[yellow][WARN][/yellow] Cycle: {' -> '.join(members)}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
