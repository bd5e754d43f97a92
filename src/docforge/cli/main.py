"""docforge CLI entry point."""

import logging

import click

from docforge.config import EngineConfig


@click.group()
@click.pass_context
def cli(ctx: click.Context):
    """docforge — tag-driven record validation CLI."""
    config = EngineConfig.from_env()
    try:
        level = config.logging_level
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    logging.basicConfig(level=level)
    ctx.obj = config


# Register subcommand groups
from docforge.cli.rules_cmd import describe, rules  # noqa: E402
from docforge.cli.tags_cmd import tags  # noqa: E402

cli.add_command(rules)
cli.add_command(describe)
cli.add_command(tags)
