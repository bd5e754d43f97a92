"""Helpers shared by CLI commands."""

import importlib

import click


def load_plugins(modules: tuple[str, ...]) -> None:
    """Import modules that register custom rules."""
    for name in modules:
        try:
            importlib.import_module(name)
        except ImportError as e:
            raise click.ClickException(f"Cannot import plugin '{name}': {e}") from e


def plugin_option(fn):
    return click.option(
        "--plugin",
        "plugins",
        multiple=True,
        metavar="MODULE",
        help="Module to import before running (registers custom rules).",
    )(fn)
