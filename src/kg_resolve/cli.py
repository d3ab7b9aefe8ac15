"""CLI interface for kg-resolve."""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from kg_resolve.config import PROJECT_FILE, ResolveConfig
from kg_resolve.errors import ResolutionError
from kg_resolve.resolve.models import MERGE_STRATEGIES, MergePreview

app = typer.Typer(
    name="kgr",
    help="Entity resolution and deduplication for property graphs",
    add_completion=True,
    rich_markup_mode="rich",
)

console = Console()

_CONFIDENCE_STYLE = {
    "exact": "bold green",
    "high": "green",
    "medium": "yellow",
    "low": "dim yellow",
    "uncertain": "dim",
}


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def _load_config(graph: str | None, audit: str | None) -> ResolveConfig:
    """Build config, with --graph/--audit flags taking priority."""
    config = ResolveConfig()
    if graph:
        config.graph_path = Path(graph)
    if audit:
        config.audit_path = Path(audit)
    return config


def _require_graph(config: ResolveConfig) -> None:
    if not config.graph_path.exists():
        console.print(f"[yellow]No graph found at {config.graph_path}.[/yellow]")
        console.print("Point [cyan]--graph[/cyan] at a graph JSON file or set it in kgr.yaml.")
        raise typer.Exit(1)


# ============================================================================
# Resolution Commands
# ============================================================================


@app.command()
def candidates(
    entity_type: str | None = typer.Option(None, "-t", "--type", help="Only consider this node label or entity type"),
    min_score: float | None = typer.Option(None, "--min-score", help="Score floor (default: thresholds.minimum)"),
    limit: int = typer.Option(100, "--limit", "-n", help="Maximum candidates to show"),
    include_resolved: bool = typer.Option(False, "--include-resolved", help="Also consider entities already merged elsewhere"),
    graph: str | None = typer.Option(None, "-g", "--graph", help="Graph JSON file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """List likely duplicate entity pairs, best first."""
    _setup_logging(verbose)
    config = _load_config(graph, None)
    _require_graph(config)

    from kg_resolve.pipeline import run_find_candidates

    try:
        result = run_find_candidates(
            config,
            entity_type=entity_type,
            min_score=min_score,
            limit=limit,
            include_resolved=include_resolved,
        )
    except ResolutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if not result.candidates:
        console.print("[green]No duplicates found![/green]")
        return

    table = Table(title="Duplicate Candidates", show_header=True, header_style="bold cyan")
    table.add_column("Score", justify="right")
    table.add_column("Confidence")
    table.add_column("Entity 1")
    table.add_column("Entity 2")
    table.add_column("Name", justify="right", style="dim")
    table.add_column("Type", justify="center", style="dim")

    for c in result.candidates:
        style = _CONFIDENCE_STYLE.get(c.confidence_level, "")
        table.add_row(
            f"{c.score:.3f}",
            f"[{style}]{c.confidence_level}[/{style}]" if style else c.confidence_level,
            f"{c.entity1.label} [dim]({c.entity1.uri})[/dim]",
            f"{c.entity2.label} [dim]({c.entity2.uri})[/dim]",
            f"{c.match_details.name_similarity:.2f}",
            "✓" if c.match_details.type_match else "✗",
        )

    console.print(table)
    if result.total_found > len(result.candidates):
        console.print(f"[dim]Showing {len(result.candidates)} of {result.total_found} candidates[/dim]")
    console.print()
    console.print("Next: [cyan]kgr merge SOURCE TARGET[/cyan] or [cyan]kgr auto-resolve[/cyan]")


@app.command()
def merge(
    source: str = typer.Argument(..., help="URI of the entity to fold away"),
    target: str = typer.Argument(..., help="URI of the canonical entity"),
    keep_source: bool = typer.Option(False, "--keep-source", help="Keep the source, marked as merged (soft merge)"),
    strategy: str | None = typer.Option(
        None, "--strategy", "-s", help=f"Property conflict policy: {', '.join(MERGE_STRATEGIES)}"
    ),
    user: str = typer.Option("system", "--user", "-u", help="Actor recorded in the audit trail"),
    graph: str | None = typer.Option(None, "-g", "--graph", help="Graph JSON file"),
    audit: str | None = typer.Option(None, "--audit", help="Merge audit YAML file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Merge SOURCE into TARGET, transferring all relationships."""
    _setup_logging(verbose)
    config = _load_config(graph, audit)
    _require_graph(config)

    from kg_resolve.pipeline import run_merge

    try:
        result = run_merge(
            config,
            source,
            target,
            keep_source=keep_source,
            merge_strategy=strategy,  # type: ignore[arg-type]
            user_id=user,
        )
    except ResolutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    console.print("[green]Merged![/green]")
    console.print(f"  Merge ID: {result.merge_id}")
    console.print(f"  Target: {result.target_uri}")
    console.print(f"  Relationships transferred: {result.relationships_transferred}")
    console.print(f"  Source: {'deleted' if result.source_deleted else 'kept (soft merge)'}")
    console.print()
    console.print(f"Undo with: [cyan]kgr undo {result.merge_id}[/cyan]")


@app.command(name="auto-resolve")
def auto_resolve(
    min_score: float | None = typer.Option(None, "--min-score", help="Merge pairs scoring at least this (default 0.85)"),
    max_merges: int | None = typer.Option(None, "--max-merges", help="Stop after this many merges (default 50)"),
    live: bool = typer.Option(False, "--live", help="Actually merge (default is a dry run)"),
    graph: str | None = typer.Option(None, "-g", "--graph", help="Graph JSON file"),
    audit: str | None = typer.Option(None, "--audit", help="Merge audit YAML file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Merge high-confidence duplicates in one bounded batch."""
    _setup_logging(verbose)
    config = _load_config(graph, audit)
    _require_graph(config)

    from kg_resolve.pipeline import run_auto_resolve

    try:
        result = run_auto_resolve(
            config,
            min_score=min_score,
            max_merges=max_merges,
            dry_run=not live,
        )
    except ResolutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if result.dry_run:
        console.print("[yellow]Dry run: nothing was changed.[/yellow]")
        for preview in result.merges:
            if isinstance(preview, MergePreview):
                console.print(f"  {preview.source} → {preview.target} [dim]({preview.score:.3f})[/dim]")
    else:
        console.print("[green]Auto-resolve complete![/green]")

    console.print(f"  Processed: {result.processed}")
    console.print(f"  {'Would merge' if result.dry_run else 'Merged'}: {result.merged}")
    console.print(f"  Skipped: {result.skipped}")
    if result.errors:
        console.print(f"  [red]Errors: {len(result.errors)}[/red]")
        for failure in result.errors:
            console.print(f"    {failure.source} → {failure.target}: {failure.error}")

    if result.dry_run and result.merged:
        console.print()
        console.print("Apply with: [cyan]kgr auto-resolve --live[/cyan]")


@app.command()
def history(
    uri: str = typer.Argument(..., help="Entity URI (as merge source or target)"),
    audit: str | None = typer.Option(None, "--audit", help="Merge audit YAML file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Show the merge history of an entity, newest first."""
    _setup_logging(verbose)
    config = _load_config(None, audit)

    from kg_resolve.pipeline import run_history

    try:
        records = run_history(config, uri)
    except ResolutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if not records:
        console.print(f"[dim]No merges recorded for {uri}[/dim]")
        return

    table = Table(title=f"Merge History: {uri}", show_header=True, header_style="bold cyan")
    table.add_column("Merge ID", style="dim")
    table.add_column("When")
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Strategy")
    table.add_column("By")
    table.add_column("Status")

    for record in records:
        table.add_row(
            record.merge_id,
            record.merged_at.strftime("%Y-%m-%d %H:%M:%S"),
            record.source_uri,
            record.target_uri,
            record.strategy,
            record.merged_by,
            "[yellow]undone[/yellow]" if record.is_undone else "[green]active[/green]",
        )

    console.print(table)


@app.command()
def undo(
    merge_id: str = typer.Argument(..., help="Merge ID from the audit trail"),
    graph: str | None = typer.Option(None, "-g", "--graph", help="Graph JSON file"),
    audit: str | None = typer.Option(None, "--audit", help="Merge audit YAML file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Restore the source entity of a merge from its snapshot."""
    _setup_logging(verbose)
    config = _load_config(graph, audit)
    _require_graph(config)

    from kg_resolve.pipeline import run_undo

    try:
        result = run_undo(config, merge_id)
    except ResolutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(f"[green]Restored {result.restored_uri}[/green]")
    console.print(f"  {result.message}")


# ============================================================================
# Utility Commands
# ============================================================================


@app.command()
def init(
    graph: str | None = typer.Option(None, "-g", "--graph", help="Graph JSON file to set in project config"),
) -> None:
    """Initialize a kg-resolve project in the current directory."""
    env_example_path = Path(".env.example")
    project_path = Path(PROJECT_FILE)

    if not env_example_path.exists() or typer.confirm("Overwrite existing .env.example?", default=False):
        env_template = """# kg-resolve Configuration
# Copy this file to .env to override kgr.yaml

# === Files ===
KGR_GRAPH_PATH=graph_data.json
KGR_AUDIT_PATH=merge_audit.yaml

# === Resolution ===
# KGR_AUTO_MIN_SCORE=0.85
# KGR_MAX_MERGES=50
# KGR_MERGE_STRATEGY=prefer_target
# KGR_THRESHOLDS__HIGH=0.85
"""
        env_example_path.write_text(env_template)
        console.print("[green]Created .env.example[/green]")

    if not project_path.exists() or typer.confirm(f"Overwrite existing {PROJECT_FILE}?", default=False):
        project_config = "# kg-resolve project config\n# All commands pick up these settings automatically.\n\n"
        if graph:
            project_config += f"graph: {graph}\n"
        else:
            project_config += "# graph: graph_data.json\n"
        project_config += "# audit: merge_audit.yaml\n"
        project_config += "# merge_strategy: prefer_target\n"
        project_config += "# blocking: prefix\n"
        project_config += "# thresholds:\n#   high: 0.85\n#   medium: 0.70\n"
        project_path.write_text(project_config)
        console.print(f"[green]Created {PROJECT_FILE}[/green]")

    console.print("\nNext steps:")
    console.print("  1. kgr candidates")
    console.print("  2. kgr auto-resolve        (dry run)")
    console.print("  3. kgr auto-resolve --live")
    raise typer.Exit(0)


@app.command()
def info(
    graph: str | None = typer.Option(None, "-g", "--graph", help="Graph JSON file"),
    audit: str | None = typer.Option(None, "--audit", help="Merge audit YAML file"),
) -> None:
    """Display project configuration and merge stats."""
    config = _load_config(graph, audit)

    table = Table(title="kg-resolve Project Info", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="dim")
    table.add_column("Value")

    t = config.thresholds
    table.add_row("Graph File", str(config.graph_path))
    table.add_row("Audit File", str(config.audit_path))
    table.add_row(
        "Thresholds",
        f"exact {t.exact_match:.2f} / high {t.high:.2f} / medium {t.medium:.2f} "
        f"/ low {t.low:.2f} / min {t.minimum:.2f}",
    )
    table.add_row("Merge Strategy", config.merge_strategy)
    table.add_row("Blocking", config.blocking)
    table.add_row("Auto-resolve", f"min score {config.auto_min_score:.2f}, max {config.max_merges} merges")

    try:
        if config.graph_path.exists():
            from kg_resolve.graph.knowledge_graph import KnowledgeGraph

            kg = KnowledgeGraph.load(config.graph_path, excluded_labels=config.excluded_node_labels)
            resolvable = len(kg.find_entities())
            table.add_row("Graph", f"{kg.entity_count} entities, {kg.relation_count} relations")
            table.add_row("Resolvable Entities", str(resolvable))
        else:
            table.add_row("Graph", "Not found")

        if config.audit_path.exists():
            from kg_resolve.resolve.io import read_audit_log

            records = read_audit_log(config.audit_path)
            undone = sum(1 for r in records if r.is_undone)
            table.add_row("Merges", f"{len(records) - undone} active, {undone} undone")
        else:
            table.add_row("Merges", "0")
    except ResolutionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(table)
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
