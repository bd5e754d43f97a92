"""Tag commands — parse and lint."""

from pathlib import Path

import click
import yaml

from docforge.cli.plugins import load_plugins, plugin_option
from docforge.validation import (
    DirectiveKind,
    RuleKind,
    RuleRegistry,
    TagSyntaxError,
    parse_tag,
)


@click.group()
def tags():
    """Tag commands."""
    pass


@tags.command()
@click.argument("tag")
@click.option("--name", "source_name", default="field", help="Attribute name the tag is attached to.")
def parse(tag: str, source_name: str):
    """Show the directives a tag string parses to."""
    try:
        parsed = parse_tag(tag, source_name)
    except TagSyntaxError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(f"store name: {parsed.store_name}")
    if parsed.ignore:
        click.echo("ignored")
        return
    for directive in parsed.directives:
        detail = f" name={directive.name}" if directive.name else ""
        if directive.param is not None:
            detail += f" param={directive.param}"
        click.echo(f"  {directive.kind.value:<15} {directive.token}{detail}")


@tags.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Also report rule names that are not registered.",
)
@plugin_option
def lint(path: Path, strict: bool, plugins: tuple[str, ...]):
    """Check a YAML file of tags ({Model: {field: tag}})."""
    load_plugins(plugins)

    with path.open() as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise click.ClickException(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise click.ClickException(f"{path}: expected a mapping of models to fields")

    problems: list[str] = []
    checked = 0
    for model, fields in data.items():
        if not isinstance(fields, dict):
            problems.append(f"{model}: expected a mapping of fields to tags")
            continue
        for source_name, raw_tag in fields.items():
            checked += 1
            location = f"{model}.{source_name}"
            try:
                parsed = parse_tag(str(raw_tag or ""), str(source_name))
            except TagSyntaxError as e:
                problems.append(f"{location}: {e.reason}")
                continue
            if strict:
                problems.extend(
                    f"{location}: {message}" for message in _unknown_rules(parsed.rules)
                )

    for problem in problems:
        click.echo(click.style(problem, fg="red"))

    if problems:
        click.echo(click.style(f"\n{len(problems)} problem(s) found", fg="red", bold=True))
        raise SystemExit(1)

    click.echo(click.style(f"{checked} tag(s) OK.", fg="green", bold=True))


def _unknown_rules(rules) -> list[str]:
    messages = []
    for directive in rules:
        kind = (
            RuleKind.VALIDATION
            if directive.kind is DirectiveKind.VALIDATION
            else RuleKind.TRANSFORMATION
        )
        if not RuleRegistry.is_registered(directive.name, kind):
            messages.append(f"{kind.value} rule '{directive.name}' is not registered")
    return messages
