import click
import sys
import importlib.metadata
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of scriptdeps."""
    try:
        ver = importlib.metadata.version("scriptdeps")
        click.echo(f"scriptdeps {ver}")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of scriptdeps. Is it installed correctly?")
    except Exception as e:
        logger.error(f"An unexpected error occurred while determining the scriptdeps version: {e}")
        logger.exception(*sys.exc_info())
