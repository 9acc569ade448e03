"""Terminal output helpers for the wizard steps."""

import click

ICONS = {
    "success": "✓",
    "error": "✗",
    "warning": "⚠",
    "info": "ℹ",
    "bullet": "•",
}

_COLORS = {
    "success": "green",
    "error": "red",
    "warning": "yellow",
    "info": "cyan",
}


def header(text: str) -> None:
    """Print a section header."""
    click.echo()
    click.secho("=" * 60, fg="cyan")
    click.secho(f"  {text}", bold=True)
    click.secho("=" * 60, fg="cyan")
    click.echo()


def subheader(text: str) -> None:
    """Print a step header."""
    click.echo()
    click.secho(f"── {text} ──", fg="cyan")


def log(message: str, kind: str = "info") -> None:
    """Print a status line with an icon."""
    click.secho(f"{ICONS[kind]} {message}", fg=_COLORS.get(kind))


def dim(message: str) -> None:
    click.secho(message, dim=True)
