"""Run CLI command: execute a plugin from a YAML manifest."""

import asyncio
from pathlib import Path

import click
import yaml

from plugincore.errors import PluginCoreError
from plugincore.manifest import load_manifest


@click.command()
@click.argument("manifest_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def run(settings, manifest_path: Path):
    """Execute the plugin described by MANIFEST_PATH and print its outputs."""
    try:
        manifest = load_manifest(manifest_path)
        outputs = asyncio.run(manifest.execute(settings))
    except PluginCoreError as e:
        click.echo(click.style(f"{e.name}: {e.message}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(yaml.safe_dump({"outputs": outputs}, sort_keys=False), nl=False)
