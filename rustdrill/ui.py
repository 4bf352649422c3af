"""Coloured status lines for warnings and successes."""

from __future__ import annotations

import os

import click

_WARN_EMOJI = "⚠️ "
_WARN_PLAIN = "!"
_SUCCESS_EMOJI = "✅"
_SUCCESS_PLAIN = "✓"


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _emit(emoji: str, plain: str, message: str, colour: str) -> None:
    symbol = plain if no_emoji() else emoji
    click.echo(f"{click.style(symbol, fg=colour)} {click.style(message, fg=colour)}")


def warn(message: str) -> None:
    """Print a red warning line."""
    _emit(_WARN_EMOJI, _WARN_PLAIN, message, "red")


def success(message: str) -> None:
    """Print a green success line."""
    _emit(_SUCCESS_EMOJI, _SUCCESS_PLAIN, message, "green")