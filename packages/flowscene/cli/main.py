"""Command-line interface for FlowScene.

Compiles saved editor graphs into Scene documents, reports diagnostics and
lists the variables a node can bind to.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from flowscene.core.batch import BatchExpander
from flowscene.core.caching import SnapshotCache
from flowscene.core.config.loader import GraphDocument, load_app_config, load_graph_document
from flowscene.core.config.models import AppConfig
from flowscene.core.diagnostics import CircularDependencyError, Diagnostic, PayloadError
from flowscene.core.engine import SceneCompiler
from flowscene.core.graph import build_index
from flowscene.core.utils.json import write_json
from flowscene.core.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)

_SEVERITY_STYLE = {"error": "red", "warning": "yellow"}


def _load(graph_path: str, config_path: str | None) -> tuple[GraphDocument, AppConfig] | None:
    """Load config (and configure logging) plus the graph document."""
    try:
        app_config = load_app_config(config_path)
    except ValueError as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        return None

    configure_logging(
        level=app_config.logging.level,
        format_string=app_config.logging.format,
        filename=app_config.logging.filename,
        structured=app_config.logging.structured,
    )

    path = Path(graph_path).resolve()
    if not path.exists():
        console.print(f"[red]ERROR: Graph file not found: {path}[/red]")
        return None
    try:
        document = load_graph_document(path)
    except ValueError as e:
        console.print(f"[red]ERROR: Could not load graph: {e}[/red]")
        return None
    return document, app_config


def _index_cache(app_config: AppConfig) -> SnapshotCache:
    return SnapshotCache(max_entries=app_config.compiler.index_cache_size)


def _build_compiler(app_config: AppConfig) -> SceneCompiler:
    return SceneCompiler(app_config.compiler, cache=_index_cache(app_config))


def print_diagnostics(diagnostics: Sequence[Diagnostic], title: str = "Diagnostics") -> None:
    """Render diagnostics as a table; prints nothing when there are none."""
    if not diagnostics:
        return
    table = Table(title=title, show_lines=False)
    table.add_column("Severity")
    table.add_column("Code")
    table.add_column("Node")
    table.add_column("Message")
    for d in diagnostics:
        style = _SEVERITY_STYLE.get(d.severity.value, "")
        table.add_row(
            f"[{style}]{d.severity.value}[/{style}]",
            d.code.value,
            d.node_id or "",
            d.message,
        )
    console.print(table)
    for d in diagnostics:
        if d.is_error and d.suggestions:
            console.print(f"[bold]{d.code.value}[/bold] suggestions:")
            for suggestion in d.suggestions:
                console.print(f"   - {suggestion}")


def _emit(document: dict[str, Any], output: str | None) -> None:
    if output:
        write_json(output, document)
        console.print(f"[green]📁 Scene written to:[/green] {output}")
    else:
        console.print_json(data=document)


def compile_command(args: argparse.Namespace) -> int:
    """Compile a graph file (optionally into batch variants)."""
    loaded = _load(args.graph, args.config)
    if loaded is None:
        return 1
    document, app_config = loaded
    compiler = _build_compiler(app_config)

    try:
        if args.batch:
            expander = BatchExpander(compiler, max_workers=args.workers)
            batch = expander.expand(document.graph, document.batch_overrides)
            result = batch.base
        else:
            result = compiler.compile(document.graph, document.batch_overrides)
    except PayloadError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    print_diagnostics(result.diagnostics)
    if result.scene is None:
        console.print(f"[red]❌ Compilation failed with {len(result.errors)} error(s)[/red]")
        return 1

    console.print(
        f"[green]✅ Compiled:[/green] {len(result.scene.objects)} objects, "
        f"{len(result.scene.animations)} tracks, {result.scene.duration:g}s"
    )

    if not args.batch:
        _emit(result.scene.to_wire(), args.output)
        return 0

    failed = 0
    variants: dict[str, Any] = {}
    for variant in batch.variants:
        print_diagnostics(variant.diagnostics, title=f"Variant {variant.key}")
        if variant.scene is None:
            failed += 1
            console.print(f"   ❌ {variant.key}: failed")
            continue
        variants[variant.key] = variant.scene.to_wire()
        console.print(f"   ✅ {variant.key}")

    console.print(f"\n📊 Variants: {len(batch.variants)} ({failed} failed)")
    _emit({"base": result.scene.to_wire(), "variants": variants}, args.output)
    return 1 if failed else 0


def validate_command(args: argparse.Namespace) -> int:
    """Compile without writing output; report diagnostics only."""
    loaded = _load(args.graph, args.config)
    if loaded is None:
        return 1
    document, app_config = loaded

    try:
        result = _build_compiler(app_config).compile(document.graph, document.batch_overrides)
    except PayloadError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    print_diagnostics(result.diagnostics)
    if result.ok:
        console.print(f"[green]✅ Graph is valid ({len(result.warnings)} warning(s))[/green]")
        return 0
    console.print(f"[red]❌ Graph is invalid ({len(result.errors)} error(s))[/red]")
    return 1


def variables_command(args: argparse.Namespace) -> int:
    """List result nodes a node may bind its fields to."""
    loaded = _load(args.graph, args.config)
    if loaded is None:
        return 1
    document, app_config = loaded

    try:
        index = build_index(document.graph, cache=_index_cache(app_config))
        refs = index.visible_variables(args.node_id)
    except KeyError:
        console.print(f"[red]ERROR: Node not found: {args.node_id}[/red]")
        return 1
    except (CircularDependencyError, PayloadError) as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    if not refs:
        console.print(f"No variables are visible to {args.node_id}")
        return 0
    table = Table(title=f"Variables visible to {args.node_id}")
    table.add_column("Id")
    table.add_column("Name")
    for ref in refs:
        table.add_row(ref.id, ref.display_name)
    console.print(table)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="flowscene",
        description="FlowScene - compile node graphs into animation scenes",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to app config YAML/JSON (default: flowscene.yaml if present)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    comp = sub.add_parser(
        "compile", parents=[common], help="Compile a graph into a Scene document"
    )
    comp.add_argument("graph", help="Path to graph document (JSON/YAML)")
    comp.add_argument("--batch", action="store_true", help="Expand batch override keys")
    comp.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for batch expansion (default: from config)",
    )
    comp.add_argument("--output", default=None, help="Write scene JSON here (default: stdout)")

    val = sub.add_parser(
        "validate", parents=[common], help="Validate a graph and print diagnostics"
    )
    val.add_argument("graph", help="Path to graph document (JSON/YAML)")

    var = sub.add_parser(
        "variables", parents=[common], help="List variables a node can bind to"
    )
    var.add_argument("graph", help="Path to graph document (JSON/YAML)")
    var.add_argument("node_id", help="Node to inspect")

    return p


_COMMANDS = {
    "compile": compile_command,
    "validate": validate_command,
    "variables": variables_command,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)
    sys.exit(_COMMANDS[args.cmd](args))


__all__ = ["build_arg_parser", "main", "print_diagnostics"]
