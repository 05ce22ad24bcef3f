import click
import os
import shutil
import sys
from .. import config as config_module
from ..cli_logger import logger

@click.command()
@click.pass_context
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def clean(ctx, yes):
    """Delete every generated project and directive file."""
    conf = config_module.load_config(path=ctx.obj["path"])
    project_dir = config_module.get_resolver_settings(conf)["project_dir"]

    if not os.path.exists(project_dir):
        logger.info(f"Nothing to clean: {project_dir} does not exist.")
        return

    if not yes and not click.confirm(f"Delete all generated projects in {project_dir}?"):
        logger.info("Clean cancelled.")
        return

    try:
        shutil.rmtree(project_dir)
        logger.success(f"Removed {project_dir}")
    except OSError as e:
        logger.error(f"Error removing {project_dir}: {e}")
        logger.info("Please check file permissions and make sure no build is still running.")
    except Exception as e:
        logger.error(f"An unexpected error occurred while cleaning {project_dir}: {e}")
        logger.exception(*sys.exc_info())
