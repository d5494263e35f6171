"""
quizbank CLI - administer the quiz content store.

Usage:
    quizbank init-db                         # Create tables
    quizbank import bash/bash-quiz.md        # Import one document
    quizbank reload-all                      # Re-import the whole local corpus
    quizbank topics --industry               # List industry-specific topics
    quizbank random bash -n 10               # Draw random questions
    quizbank validate / fix-integrity        # Topic record maintenance
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config import Settings, get_settings
from quizbank.content.catalog import TopicCatalog
from quizbank.content.importer import QuizImporter
from quizbank.content.scanner import scan_local_repo
from quizbank.db.database import Database
from quizbank.db.integrity import IntegrityValidator
from quizbank.db.repository import ContentRepository
from quizbank.exceptions import NameResolutionError, QuizImportError

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="quizbank",
    help="Quiz markdown import pipeline and content store",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def configure_logging(settings: Settings) -> None:
    """Route loguru to stderr (and optionally a rotating file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB")


@contextmanager
def open_database() -> Iterator[Database]:
    """Open the configured content store, creating tables if needed."""
    db = Database.from_settings(get_settings())
    try:
        db.init_db()
        yield db
    finally:
        db.dispose()


# =============================================================================
# Import Commands
# =============================================================================


@app.command("init-db")
def init_db() -> None:
    """Create the content store tables."""
    with open_database() as db:
        console.print(f"[green]Database ready:[/green] {db.engine.url.render_as_string(hide_password=True)}")


@app.command("import")
def import_document(
    file: Annotated[Path, typer.Argument(help="Quiz markdown file")],
    slug: Annotated[str | None, typer.Option("--slug", "-s", help="Topic slug (default: file name)")] = None,
    name: Annotated[str | None, typer.Option("--name", help="Fallback display name")] = None,
    industry: Annotated[bool, typer.Option("--industry", help="Mark topic industry-specific")] = False,
    commit: Annotated[str | None, typer.Option("--commit", "-c", help="Pinned corpus commit")] = None,
) -> None:
    """Import one quiz document."""
    if not file.exists():
        console.print(f"[red]Error: File not found: {file}[/red]")
        raise typer.Exit(1)

    with open_database() as db:
        importer = QuizImporter(db)
        try:
            outcome = importer.import_file(
                file,
                slug=slug,
                provided_name=name,
                industry_specific=industry,
                pinned_commit=commit,
            )
        except QuizImportError as e:
            console.print(
                f"[red]Import failed at stage '{e.stage}' "
                f"({e.question_count} questions parsed): {e}[/red]"
            )
            raise typer.Exit(1)
        except NameResolutionError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[red]Error: Could not read {file}: {e}[/red]")
            raise typer.Exit(1)

    console.print(
        f"[green]Imported {outcome.question_count} questions[/green] "
        f"into quiz '{outcome.quiz_slug}' (topic '{outcome.topic_name}')"
    )


@app.command("reload-all")
def reload_all(
    root: Annotated[Path | None, typer.Argument(help="Local corpus root")] = None,
    commit: Annotated[str | None, typer.Option("--commit", "-c", help="Pinned corpus commit")] = None,
) -> None:
    """Re-import every topic of the local corpus, preserving curated categories."""
    with open_database() as db:
        summary = QuizImporter(db).reload_all(root, pinned_commit=commit)

    if summary.total == 0:
        console.print(f"[yellow]No local topic files found in {root or get_settings().quiz_repo_root}[/yellow]")
        raise typer.Exit(1)

    console.print(
        f"Reloaded [green]{summary.succeeded}[/green]/{summary.total} topics "
        f"([red]{summary.failed} failed[/red]) in {summary.duration_ms}ms"
    )
    for error in summary.errors:
        console.print(f"  [red]-[/red] {error['slug']}: {error['error']}")


@app.command("local-topics")
def local_topics(
    root: Annotated[Path | None, typer.Argument(help="Local corpus root")] = None,
) -> None:
    """List topic documents found in the local corpus."""
    root = root or Path(get_settings().quiz_repo_root)
    topics = scan_local_repo(root)

    table = Table(title=f"Local topics in {root}")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("File", style="dim")
    for topic in topics:
        table.add_row(topic.slug, topic.name, str(topic.file))
    console.print(table)


# =============================================================================
# Retrieval Commands
# =============================================================================


@app.command("topics")
def list_topics(
    industry: Annotated[
        bool | None,
        typer.Option("--industry/--technical", help="Filter by category (default: all)"),
    ] = None,
) -> None:
    """List imported topics."""
    with open_database() as db:
        repo = ContentRepository(db)
        topics = repo.list_topics() if industry is None else repo.list_topics_by_category(industry)

    table = Table(title=f"{len(topics)} topics")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    for topic in topics:
        table.add_row(topic.slug, topic.name or "", "industry" if topic.industry_specific else "technical")
    console.print(table)


@app.command("latest")
def latest(topic_slug: Annotated[str, typer.Argument(help="Topic slug")]) -> None:
    """Show the latest quiz of a topic."""
    with open_database() as db:
        repo = ContentRepository(db)
        quiz = repo.get_latest_quiz(topic_slug)
        meta = repo.get_quiz_meta_with_counts(quiz.slug) if quiz else None

    if meta is None:
        console.print(f"[yellow]No quiz for topic '{topic_slug}'[/yellow]")
        raise typer.Exit(1)

    console.print(f"[bold cyan]{meta.title}[/bold cyan]")
    console.print(f"  Slug: {meta.slug}")
    console.print(f"  Questions: {meta.question_count}")


@app.command("questions")
def questions(
    quiz_slug: Annotated[str, typer.Argument(help="Quiz slug")],
    offset: Annotated[int, typer.Option("--offset", help="Skip this many questions")] = 0,
    limit: Annotated[int | None, typer.Option("--limit", "-l", help="Page size")] = None,
) -> None:
    """List a page of questions with their choices."""
    with open_database() as db:
        repo = ContentRepository(db)
        quiz = repo.get_quiz_by_slug(quiz_slug)
        if quiz is None:
            console.print(f"[yellow]Quiz '{quiz_slug}' not found[/yellow]")
            raise typer.Exit(1)
        page = repo.get_questions(quiz.id, offset=offset, limit=limit)

    for question in page:
        _print_question(question)


@app.command("random")
def random_questions(
    topic_slug: Annotated[str, typer.Argument(help="Topic slug")],
    count: Annotated[int | None, typer.Option("--count", "-n", help="Number of questions")] = None,
    exclude: Annotated[
        list[int] | None, typer.Option("--exclude", "-x", help="Question id to avoid (repeatable)")
    ] = None,
) -> None:
    """Draw random questions from the latest quiz of a topic."""
    with open_database() as db:
        draw = ContentRepository(db).draw_random_for_topic(topic_slug, count, exclude)

    if draw.status == "no_quiz":
        console.print(f"[yellow]Topic '{topic_slug}' has no quiz yet[/yellow]")
        raise typer.Exit(1)
    if draw.status == "no_questions":
        console.print(f"[yellow]Quiz '{draw.quiz.slug}' has no active questions[/yellow]")
        raise typer.Exit(1)

    for question in draw.questions:
        _print_question(question)


def _print_question(question) -> None:
    console.print(f"\n[bold]Q{question.number_in_source}[/bold] [dim](id {question.id}, {question.question_type})[/dim]")
    console.print(question.prompt_md, markup=False)
    if question.code_md:
        console.print(question.code_md, markup=False)
    for choice in question.choices:
        mark = "[green]x[/green]" if choice.is_correct else " "
        console.print(f"  [{mark}] {escape(choice.label_md)}")


# =============================================================================
# Maintenance Commands
# =============================================================================


@app.command("validate")
def validate() -> None:
    """Report corrupted topic records."""
    with open_database() as db:
        report = IntegrityValidator(db).validate()

    if report.valid:
        console.print(f"[green]All {report.topic_count} topics valid[/green]")
        return

    table = Table(title=f"{len(report.issues)} integrity issues")
    table.add_column("Type", style="yellow")
    table.add_column("Slug", style="cyan")
    table.add_column("Message")
    for issue in report.issues:
        table.add_row(issue.type, issue.slug, issue.message)
    console.print(table)
    raise typer.Exit(1)


@app.command("fix-integrity")
def fix_integrity() -> None:
    """Repair corrupted topic records."""
    with open_database() as db:
        result = IntegrityValidator(db).fix()

    console.print(f"[green]Applied {result.fixed_count} repairs[/green]")
    for repair in result.details:
        if repair.action == "deleted_duplicate":
            console.print(f"  [red]-[/red] {repair.old_slug}: {repair.reason}")
        else:
            console.print(f"  [green]+[/green] {repair.old_slug} / {repair.old_name} -> {repair.new_slug} / {repair.new_name}")


@app.command("export-topics")
def export_topics(path: Annotated[Path, typer.Argument(help="CSV output path")]) -> None:
    """Export curated topic categories to CSV."""
    with open_database() as db:
        count = TopicCatalog(db).export_csv(path)
    console.print(f"[green]Exported {count} topics to {path}[/green]")


@app.command("import-topics")
def import_topics(path: Annotated[Path, typer.Argument(help="CSV input path")]) -> None:
    """Load curated topic categories from CSV (overwrites categories)."""
    with open_database() as db:
        try:
            count = TopicCatalog(db).import_csv(path)
        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
    console.print(f"[green]Imported {count} topics from {path}[/green]")


@app.command("set-category")
def set_category(
    slugs: Annotated[list[str], typer.Argument(help="Topic slugs")],
    industry: Annotated[
        bool, typer.Option("--industry/--technical", help="Target category")
    ] = False,
) -> None:
    """Set the category of topics (administrative; may downgrade)."""
    updates = [{"slug": slug, "industry_specific": int(industry)} for slug in slugs]
    with open_database() as db:
        result = TopicCatalog(db).bulk_update_category(updates)
    console.print(f"[green]Updated {result.updated} topics[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
