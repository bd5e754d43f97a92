"""Rule and descriptor inspection commands."""

import importlib

import click

from docforge.cli.plugins import load_plugins, plugin_option
from docforge.config import EngineConfig
from docforge.validation import (
    DocForgeError,
    RuleEngine,
    RuleRegistry,
)


@click.command()
@plugin_option
def rules(plugins: tuple[str, ...]):
    """List registered validation and transformation rules."""
    load_plugins(plugins)

    definitions = RuleRegistry.list_registered()
    if not definitions:
        click.echo("No rules registered.")
        return

    for definition in definitions:
        line = f"  {definition.kind.value:<15} {definition.name}"
        if definition.message:
            line += click.style(f"  {definition.message}", dim=True)
        click.echo(line)
    click.echo(f"\n{len(definitions)} rule(s) registered.")


@click.command()
@click.argument("target", metavar="MODULE:CLASS")
@click.pass_obj
def describe(config: EngineConfig | None, target: str):
    """Show how a record class is tagged."""
    module_name, sep, class_name = target.partition(":")
    if not sep or not module_name or not class_name:
        raise click.BadParameter("expected MODULE:CLASS", param_hint="TARGET")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.ClickException(f"Cannot import '{module_name}': {e}") from e

    record_type = getattr(module, class_name, None)
    if record_type is None:
        raise click.ClickException(f"'{module_name}' has no attribute '{class_name}'")

    engine = RuleEngine(config=config or EngineConfig.from_env())
    try:
        descriptor = engine.descriptor_for(record_type)
    except DocForgeError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(f"{descriptor.name} ({len(descriptor.fields)} fields)")
    for field in descriptor.fields:
        if field.ignore:
            click.echo(f"  - {field.source_name} (ignored)")
            continue
        parts = [d.token for d in field.rules]
        if field.omit_scopes:
            parts.extend(
                "omitempty" if s is None else f"omitempty_{s.value}"
                for s in field.omit_scopes
            )
        nested = f" -> {field.nested_type.__name__}" if field.nested_type else ""
        rendered = ", ".join(parts) if parts else "no directives"
        click.echo(f"  ✓ {field.source_name} as '{field.store_name}'{nested}: {rendered}")
