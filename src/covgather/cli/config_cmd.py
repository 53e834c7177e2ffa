"""covgather show-config command - print the resolved configuration."""

import json
from pathlib import Path

import click

from covgather.config import load_config
from covgather.core.errors import ConfigError


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
def show_config_command(path: Path) -> None:
    """Show the configuration resolved for PATH (default: current directory).

    Sources: defaults, ~/.config/covgather/config.yaml, PATH/.covgather/config.yaml
    and COVGATHER__SECTION__KEY environment variables.
    """
    try:
        config = load_config(path.resolve())
    except ConfigError as e:
        raise click.ClickException(e.message) from e
    click.echo(json.dumps(config.model_dump(), indent=2))
