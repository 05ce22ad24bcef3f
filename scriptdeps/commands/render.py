import click
import os
from .. import config as config_module
from .. import resolver
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..utils import parse_package_request, write_project

@click.command()
@click.pass_context
@click.argument("spec")
@click.option("--target-framework", "-f", default=None, help="Target framework moniker, e.g. net8.0.")
@click.option("--output", "-o", default=None, help="Project file to write. Defaults to the per-request location.")
@handle_exceptions
def render(ctx, spec, target_framework, output):
    """Write the generated project for SPEC without building it."""
    conf = config_module.load_config(path=ctx.obj["path"])
    settings = config_module.get_resolver_settings(conf)
    target_framework = target_framework or settings["target_framework"]

    request = parse_package_request(spec)
    project_path = output or resolver.default_project_path(spec, target_framework, settings["project_dir"])
    written = write_project(project_path, target_framework, request.declarations, request.restore_sources)
    if written:
        logger.success(f"Wrote {len(written)} file(s) to {os.path.dirname(os.path.abspath(project_path))}")
    else:
        logger.info("Generated project is already up to date.")
    click.echo(project_path)
