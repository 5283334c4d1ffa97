"""plugincore CLI entry point."""

import logging

import click

from plugincore.config import PluginCoreConfig
from plugincore.errors import ConfigError


def configure_logging(config: PluginCoreConfig) -> None:
    """Send plugincore logs to stderr at the configured level."""
    logging.basicConfig(
        level=config.level,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Log level (overrides PLUGINCORE_LOG_LEVEL).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """plugincore: arithmetic expressions and plugin execution."""
    try:
        config = PluginCoreConfig.from_env()
        if log_level:
            config = PluginCoreConfig(
                log_level=log_level.upper(), mapping_mode=config.mapping_mode
            )
    except ConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    configure_logging(config)
    ctx.obj = config


# Register subcommands
from plugincore.cli.expression_cmd import check, eval_cmd  # noqa: E402
from plugincore.cli.run_cmd import run  # noqa: E402

cli.add_command(eval_cmd)
cli.add_command(check)
cli.add_command(run)
