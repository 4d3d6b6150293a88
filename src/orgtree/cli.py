"""CLI entry point for orgtree."""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.tree import Tree

from orgtree.config.loader import load_settings
from orgtree.models.config import OrgSettings
from orgtree.models.date import OrgDate
from orgtree.parser.document import OrgDocument
from orgtree.parser.headline import Headline
from orgtree.services.exceptions import FileModifiedError, HeadlineNotFoundError
from orgtree.services.file_operations import atomic_write, file_mtime
from orgtree.utils.logging import configure_logging, get_logger
from orgtree.utils.messages import echo_error, echo_info

logger = get_logger(__name__)
console = Console()


def _load_settings(config_path: Optional[Path]) -> OrgSettings:
    try:
        return load_settings(config_path)
    except Exception as e:
        logger.error("settings_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def _load_document(ctx: click.Context, path: Path) -> tuple[OrgDocument, float]:
    settings = _load_settings(ctx.obj.get("config_path"))
    try:
        mtime = file_mtime(path)
        return OrgDocument.load(path, settings), mtime
    except (OSError, UnicodeDecodeError) as e:
        echo_error(f"Cannot read {path}: {e}")
        ctx.exit(1)


def _headline_at(document: OrgDocument, line: int) -> Headline:
    try:
        return document.find_headline(line)
    except HeadlineNotFoundError as e:
        raise click.ClickException(str(e))


def _save(ctx: click.Context, document: OrgDocument, path: Path, mtime: float) -> None:
    try:
        atomic_write(path, document.text(), expected_mtime=mtime)
    except FileModifiedError as e:
        echo_error(f"{e}. Please re-run the command.")
        ctx.exit(1)
    except OSError as e:
        echo_error(f"Cannot write {path}: {e}")
        ctx.exit(1)
    logger.info("document_saved", path=str(path))


def _headline_label(headline: Headline) -> str:
    parts = []
    if headline.todo_keyword.value:
        color = "green" if headline.is_done() else "red"
        parts.append(f"[bold {color}]{headline.todo_keyword.value}[/]")
    if headline.priority:
        parts.append(f"[yellow]\\[#{headline.priority}][/]")
    elif headline.is_todo():
        # An open item without a cookie has the default priority
        parts.append(f"[dim]\\[#{headline.settings.priority_default}][/]")
    parts.append(headline.title)
    if headline.tags:
        parts.append(f"[cyan]{headline.tags_to_string()}[/]")
    return " ".join(parts)


@click.group()
@click.version_option(version="0.1.0", prog_name="orgtree")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/orgtree/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """orgtree: Inspect and edit headlines of org-mode files."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def show(ctx: click.Context, file: Path):
    """Print the headline tree of FILE."""
    document, _ = _load_document(ctx, file)
    tree = Tree(f"[bold]{file.name}[/]")

    def add(branch: Tree, headline: Headline) -> None:
        node = branch.add(_headline_label(headline))
        for child in headline.headlines:
            add(node, child)

    for headline in document.root.headlines:
        add(tree, headline)
    console.print(tree)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def dates(ctx: click.Context, file: Path):
    """List the dates of FILE that an agenda would show."""
    document, _ = _load_document(ctx, file)
    for headline in document.walk():
        for date in headline.get_valid_dates_for_agenda():
            kind = date.type.lower() if not date.is_none() else "plain"
            click.echo(
                f"{headline.range.start_line}\t{date.to_wrapped_string()}\t{kind}\t"
                f"{headline.get_category()}\t{headline.title}"
            )


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=int)
@click.argument("when")
@click.option("--deadline", is_flag=True, help="Set DEADLINE instead of SCHEDULED")
@click.pass_context
def schedule(ctx: click.Context, file: Path, line: int, when: str, deadline: bool):
    """Set the SCHEDULED (or DEADLINE) date of the headline on LINE.

    WHEN is a date such as 2024-01-31.
    """
    date = OrgDate.from_string(when)
    if date is None:
        raise click.BadParameter(f"Not a date: {when}", param_hint="WHEN")
    document, mtime = _load_document(ctx, file)
    headline = _headline_at(document, line)
    if deadline:
        headline.add_deadline_date(date)
    else:
        headline.add_scheduled_date(date)
    _save(ctx, document, file, mtime)
    label = "Deadline" if deadline else "Scheduled"
    click.echo(f"{label}: {headline.title} {date.to_wrapped_string()}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=int)
@click.option("--reopen", is_flag=True, help="Remove the CLOSED timestamp instead")
@click.pass_context
def close(ctx: click.Context, file: Path, line: int, reopen: bool):
    """Stamp (or remove) the CLOSED date of the headline on LINE."""
    document, mtime = _load_document(ctx, file)
    headline = _headline_at(document, line)
    changed = headline.remove_closed_date() if reopen else headline.add_closed_date()
    if changed is None:
        echo_info("Nothing to do")
        return
    _save(ctx, document, file, mtime)
    click.echo(f"{'Reopened' if reopen else 'Closed'}: {headline.title}")


@cli.command(name="set-property")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=int)
@click.argument("name")
@click.argument("value")
@click.pass_context
def set_property(ctx: click.Context, file: Path, line: int, name: str, value: str):
    """Set property NAME to VALUE on the headline on LINE."""
    document, mtime = _load_document(ctx, file)
    headline = _headline_at(document, line)
    result = headline.add_properties({name: value})
    _save(ctx, document, file, mtime)
    if result.is_new:
        click.echo(f"Created property drawer ending at line {result.end_line}")
    click.echo(f"{name}: {value}")


def _change_level(
    ctx: click.Context, file: Path, line: int, amount: int, cascade: bool, promote: bool
):
    document, mtime = _load_document(ctx, file)
    headline = _headline_at(document, line)
    if promote:
        applied = headline.promote(amount, cascade)
    else:
        applied = headline.demote(amount, cascade)
    if not applied:
        ctx.exit(1)
    _save(ctx, document, file, mtime)
    click.echo(f"Level {headline.level}: {headline.title}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=int)
@click.option("--amount", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--cascade", is_flag=True, help="Also promote child headlines")
@click.pass_context
def promote(ctx: click.Context, file: Path, line: int, amount: int, cascade: bool):
    """Move the headline on LINE up AMOUNT levels."""
    _change_level(ctx, file, line, amount, cascade, promote=True)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=int)
@click.option("--amount", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--cascade", is_flag=True, help="Also demote child headlines")
@click.pass_context
def demote(ctx: click.Context, file: Path, line: int, amount: int, cascade: bool):
    """Move the headline on LINE down AMOUNT levels."""
    _change_level(ctx, file, line, amount, cascade, promote=False)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
