"""Expression CLI commands: eval and check."""

import click

from plugincore.errors import PluginCoreError
from plugincore.expressions import (
    evaluate_expression,
    has_marker,
    is_closed_numeric_expression,
    is_expression,
)
from plugincore.expressions.grammar import strip_marker, try_parse
from plugincore.expressions.parser import iter_identifiers


def _parse_vars(ctx, param, values: tuple[str, ...]) -> dict[str, str]:
    variables = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected name=value, got '{item}'.")
        variables[name.strip()] = value
    return variables


@click.command("eval")
@click.argument("expression")
@click.option(
    "--var",
    "variables",
    multiple=True,
    callback=_parse_vars,
    help="Variable as name=value. Values may themselves be expressions.",
)
@click.option(
    "--field",
    default="result",
    show_default=True,
    help="Name of the field the expression is the value of.",
)
def eval_cmd(expression: str, variables: dict[str, str], field: str):
    """Evaluate EXPRESSION against the given variables."""
    try:
        result = evaluate_expression(expression, field, [], variables)
    except PluginCoreError as e:
        click.echo(click.style(f"{e.name}: {e.message}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo("NaN" if result is None else result)


@click.command()
@click.argument("expression")
def check(expression: str):
    """Report whether EXPRESSION is a valid arithmetic expression."""
    if not (is_expression(expression) or is_closed_numeric_expression(expression)):
        click.echo(
            click.style(f"`{expression}` is not a valid arithmetic expression.", fg="red"),
            err=True,
        )
        raise SystemExit(1)

    ast = try_parse(strip_marker(expression))
    names = list(dict.fromkeys(node.name for node in iter_identifiers(ast)))

    click.echo(click.style(f"`{expression}` is a valid arithmetic expression.", fg="green"))
    if not has_marker(expression):
        click.echo(click.style("  (no `=` marker: it will not be evaluated)", fg="yellow"))
    if names:
        click.echo(f"  variables: {', '.join(names)}")
