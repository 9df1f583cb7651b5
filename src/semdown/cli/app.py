"""Typer CLI application."""

from pathlib import Path
from typing import List, Optional

import typer

from semdown.ask import KeywordResolver, LLMResolver, QueryPlanner
from semdown.compiler import compile_file
from semdown.config.logging import setup_logging
from semdown.config.settings import get_settings
from semdown.errors import CompileError, GenerationError, ResolverError, UngroundedReferenceError
from semdown.generators import generate as generate_artifact
from semdown.generators import generate_many, list_kinds
from semdown.generators.describe import entity_bullets
from semdown.physical import map_physical, validate_physical
from semdown.utils.model_io import artifact_filename, write_artifact

app = typer.Typer(help="semdown: entity markdown to knowledge graph, schema and SQL artifacts")


def _compile(model: Path):
    try:
        return compile_file(model)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except CompileError as e:
        for diag in e.diagnostics:
            typer.echo(f"warning: {diag}", err=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def check(
    model: Path,
    strict: bool = typer.Option(False, "--strict", help="Exit 1 when the schema reports issues"),
):
    """
    Compile a model and report diagnostics.

    Args:
        model: Path to the model markdown file
        strict: Fail on schema issues instead of only printing them
    """
    setup_logging()
    graph = _compile(model)
    for diag in graph.diagnostics():
        typer.echo(f"warning: {diag}", err=True)
    issues = validate_physical(graph, map_physical(graph))
    for issue in issues:
        typer.echo(f"schema: [{issue.code}] {issue.message}", err=True)

    declared = len(graph.list_entities(include_stubs=False))
    typer.echo(
        f"✓ {declared} entities ({len(graph.entities) - declared} stubs), "
        f"{len(graph.attributes)} attributes, {len(graph.derived)} derived, "
        f"{len(graph.relationships)} relationships, {len(graph.constraints)} constraints, "
        f"{len(graph.subtype_rules)} subtype rules, {len(graph.warnings)} warnings, "
        f"{len(issues)} schema issues"
    )
    if strict and issues:
        raise typer.Exit(1)


@app.command()
def generate(
    model: Path,
    kind: str = typer.Option(..., "--kind", "-k", help="Artifact kind"),
    dialect: Optional[str] = typer.Option(None, "--dialect", "-d", help="SQL dialect"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output file (stdout if omitted)"),
):
    """
    Generate one artifact from a model.

    Args:
        model: Path to the model markdown file
    """
    setup_logging()
    dialect = dialect or get_settings().default_dialect
    graph = _compile(model)
    try:
        content = generate_artifact(dialect, kind, graph)
    except GenerationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if out is None:
        typer.echo(content, nl=False)
    else:
        write_artifact(content, out)
        typer.echo(f"✓ {kind} written to {out}", err=True)


@app.command()
def build(
    model: Path,
    out_dir: Optional[Path] = typer.Argument(None, help="Output directory (settings.output_dir if omitted)"),
    dialect: Optional[List[str]] = typer.Option(None, "--dialect", "-d", help="SQL dialect (repeatable)"),
    kind: Optional[List[str]] = typer.Option(None, "--kind", "-k", help="Artifact kind (repeatable)"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Worker threads"),
):
    """
    Generate several artifacts concurrently into a directory.

    Args:
        model: Path to the model markdown file
    """
    setup_logging()
    settings = get_settings()
    out_dir = Path(out_dir or settings.output_dir)
    dialects = dialect or [settings.default_dialect]
    kinds = kind or list_kinds()
    graph = _compile(model)

    run = generate_many(graph, [(k, d) for d in dialects for k in kinds], max_workers=workers)
    for key, content in run.artifacts.items():
        k, d = key.split(":", 1)
        path = write_artifact(content, out_dir / artifact_filename(k, d))
        typer.echo(f"✓ {key} -> {path}")
    for key, error in run.errors.items():
        typer.echo(f"✗ {key}: {error}", err=True)
    if not run.ok:
        raise typer.Exit(1)


@app.command()
def ask(
    model: Path,
    question: str,
    dialect: Optional[str] = typer.Option(None, "--dialect", "-d", help="SQL dialect"),
    llm: bool = typer.Option(False, "--llm", help="Resolve with the configured chat model"),
):
    """
    Plan a question into SQL over the logical views.

    Args:
        model: Path to the model markdown file
        question: Natural-language question
    """
    setup_logging()
    graph = _compile(model)
    resolver = LLMResolver() if llm else KeywordResolver()
    planner = QueryPlanner(graph, resolver, dialect or get_settings().default_dialect)
    try:
        plan = planner.plan(question)
    except (ResolverError, UngroundedReferenceError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(plan.sql)


@app.command()
def describe(model: Path, entity: Optional[str] = typer.Argument(None)):
    """
    Print the canonical model text of a model, or the facts of one entity.

    Args:
        model: Path to the model markdown file
        entity: Optional entity name
    """
    setup_logging()
    graph = _compile(model)
    if entity is None:
        typer.echo(generate_artifact("postgres", "graph-describe", graph), nl=False)
        return
    if not graph.has_entity(entity):
        typer.echo(f"Error: unknown entity '{entity}'", err=True)
        raise typer.Exit(1)
    ent = graph.get_entity(entity)
    typer.echo(f"**{ent.name}**" + (f": {ent.description}" if ent.description else ""))
    for bullet in entity_bullets(graph, ent.index):
        typer.echo(bullet)
    for d in graph.get_derived_attributes(ent.index):
        typer.echo(f"  derived: {d.name} ({d.semantic_type.value})")
    for candidate in graph.entities:
        if candidate.index != ent.index and graph.is_subtype(ent.index, candidate.index):
            typer.echo(f"  classifies as: {candidate.name}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
