"""Rich-aware presenters for CLI output."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich import box
from rich.table import Table
from rich.text import Text
import typer

from mdbook_tectonic.core.languages import LanguageTable
from mdbook_tectonic.core.pipeline import RenderResult

from .state import CLIState


if TYPE_CHECKING:  # pragma: no cover - typing only
    from rich.console import Console


_LOCATION_STYLES = {
    "tex": "bright_cyan",
    "pdf": "bright_green",
    "md": "cyan",
}


def _get_console(state: CLIState) -> Console | None:
    """Return the stdout console when it is attached to a terminal."""
    console = state.console
    if getattr(console, "is_terminal", False):
        return console
    return None


def _build_table(title: str | None, columns: Sequence[str]) -> Table:
    """Create a Rich table with the house style."""
    table = Table(title=title or None, box=box.SQUARE, show_edge=True, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    return table


def _format_path(path: Path) -> str:
    resolved = path.resolve()
    try:
        return str(resolved.relative_to(Path.cwd()))
    except ValueError:
        return str(resolved)


def _size_details(path: Path) -> str:
    """Return a human-readable size for a file if it exists."""
    try:
        size = path.stat().st_size
    except OSError:
        return ""
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.2f} MiB"
    if size >= 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size} B"


def _summary_rows(result: RenderResult) -> list[tuple[str, Path]]:
    rows: list[tuple[str, Path]] = []
    if result.markdown_path is not None:
        rows.append(("Markdown", result.markdown_path))
    if result.latex_path is not None:
        rows.append(("LaTeX", result.latex_path))
    if result.pdf_path is not None:
        rows.append(("PDF", result.pdf_path))
    rows.extend(("Image", image) for image in result.images)
    return rows


def present_render_summary(state: CLIState, result: RenderResult) -> None:
    """List the artefacts written by a render pass."""
    rows = _summary_rows(result)
    if not rows:
        return

    console = _get_console(state)
    if console is not None:
        table = _build_table(f"{result.title}", ["Artefact", "Location", "Size"])
        for artifact, path in rows:
            location = _format_path(path)
            style = _LOCATION_STYLES.get(path.suffix.lstrip(".").lower(), "magenta")
            table.add_row(artifact, Text(location, style=style), _size_details(path))
        console.print(table)
        return

    for artifact, path in rows:
        details = _size_details(path)
        suffix = f" ({details})" if details else ""
        typer.echo(f"{artifact}: {_format_path(path)}{suffix}")


def present_languages(state: CLIState, languages: LanguageTable) -> None:
    """Show every declared language with its highlighting rules."""
    aliases: dict[str, list[str]] = {}
    for alias, target in languages.aliases.items():
        aliases.setdefault(target, []).append(alias)

    console = _get_console(state)
    if console is not None:
        table = _build_table(
            "Languages",
            ["Name", "Aliases", "Keywords", "Secondary", "Comments", "Strings", "Case"],
        )
        for definition in languages:
            comments = [value for value in (definition.line_comment,) if value]
            if definition.block_comment:
                comments.append(" ".join(definition.block_comment))
            table.add_row(
                Text(definition.name, style="magenta"),
                ", ".join(sorted(aliases.get(definition.name, []))) or "-",
                str(len(definition.keywords)),
                str(len(definition.secondary_keywords)),
                "  ".join(comments) or "-",
                " ".join(definition.string_delimiters) or "-",
                "yes" if definition.case_sensitive else "no",
            )
        console.print(table)
        return

    for definition in languages:
        alias_list = sorted(aliases.get(definition.name, []))
        suffix = f" ({', '.join(alias_list)})" if alias_list else ""
        typer.echo(f"{definition.name}{suffix}")


def present_rule_descriptions(state: CLIState, rules: Sequence[Mapping[str, Any]]) -> None:
    """Render a diagnostic view of registered render rules."""
    if not rules:
        return

    console = _get_console(state)
    if console is not None:
        table = _build_table("Registered Rules", ["Phase", "Tag", "Name", "Priority"])
        for entry in rules:
            table.add_row(
                str(entry.get("phase", "")),
                str(entry.get("tag", "")),
                str(entry.get("name", "")),
                str(entry.get("priority", "")),
            )
        console.print(table)
        return

    typer.echo("Registered Rules:")
    for entry in rules:
        typer.echo(
            f"  - {entry.get('phase', '')}/{entry.get('tag', '')}: {entry.get('name', '')} "
            f"(priority={entry.get('priority', '')})"
        )


__all__ = [
    "present_languages",
    "present_render_summary",
    "present_rule_descriptions",
]
