import logging

import click

from .. import __version__
from .templates import template_group


@click.group()
@click.version_option(__version__, prog_name="minibars")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for engine diagnostics (defaults to the config file's)",
)
def minibars(log_level):
    """minibars - render mustache-like HTML templates."""
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    if log_level:
        logging.getLogger("minibars").setLevel(log_level.upper())


minibars.add_command(template_group)


if __name__ == "__main__":
    minibars()
