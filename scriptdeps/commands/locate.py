import click
import sys
from .. import config as config_module
from ..cli_logger import logger
from ..utils import ToolchainEnvironment, format_command, select_locator

@click.command()
@click.pass_context
@click.option("--runtime", type=click.Choice(["auto", "framework", "core"]), default=None, help="Force a runtime strategy.")
def locate(ctx, runtime):
    """Show which build tool would be used."""
    conf = config_module.load_config(path=ctx.obj["path"])
    settings = config_module.get_resolver_settings(conf)
    env = ToolchainEnvironment.current()
    try:
        locator = select_locator(env, runtime=runtime or settings["runtime"], tool_path=settings["tool_path"])
        tool = locator.locate(env)
    except Exception as e:
        logger.error(f"An unexpected error occurred while locating the build tool: {e}")
        logger.exception(*sys.exc_info())
        return

    if tool is None:
        logger.warning(f"No build tool found for the '{locator.name}' runtime.")
        if locator.name == "core":
            logger.info("Set DOTNET_HOST_PATH to the dotnet executable.")
        else:
            logger.info("Set VSINSTALLDIR to a Visual Studio installation.")
        return

    logger.success(f"Using the '{locator.name}' runtime.")
    click.echo(format_command([tool, *locator.command_prefix]))
