"""covgather CLI - covgather command."""

import click

from covgather import __version__
from covgather.cli.config_cmd import show_config_command
from covgather.cli.gather import gather_command


@click.group()
@click.version_option(version=__version__, prog_name="covgather")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """covgather - collect gcov line coverage into a file/function/line model."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


cli.add_command(gather_command, name="gather")
cli.add_command(show_config_command, name="show-config")


if __name__ == "__main__":
    cli()
