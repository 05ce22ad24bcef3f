import click
import sys
from .. import config as config_module
from .. import resolver
from ..cli_logger import logger
from ..decorators import handle_exceptions

FAILURE_HINTS = {
    resolver.ResolutionFailure.TOOL_NOT_FOUND: "Set DOTNET_HOST_PATH, or tool_path under [resolver] in scriptdeps.toml.",
    resolver.ResolutionFailure.BUILD_FAILED: "Re-run with --binary-log and inspect msbuild.binlog next to the project.",
    resolver.ResolutionFailure.OUTPUT_MISSING: "The build succeeded but did not run the package management target.",
}

@click.command()
@click.pass_context
@click.argument("spec")
@click.option("--target-framework", "-f", default=None, help="Target framework moniker, e.g. net8.0.")
@click.option("--project-dir", default=None, help="Directory for generated projects.")
@click.option("--binary-log/--no-binary-log", default=None, help="Ask MSBuild for a binary diagnostic log.")
@click.option("--cleanup/--keep", default=None, help="Delete the generated project after reading the result.")
@handle_exceptions
def resolve(ctx, spec, target_framework, project_dir, binary_log, cleanup):
    """Resolve package references and print the directive lines.

    SPEC: Package references, e.g. "Newtonsoft.Json, 13.0.3".
    """
    conf = config_module.load_config(path=ctx.obj["path"])
    settings = config_module.get_resolver_settings(conf)
    context = resolver.ResolutionContext.from_settings(
        settings,
        target_framework=target_framework,
        project_dir=project_dir,
        binary_logging=binary_log,
        cleanup=cleanup,
    )

    logger.info(f"Resolving '{spec}' for {context.target_framework}...")
    result = resolver.resolve(spec, context)
    if not result.success:
        logger.error(f"Resolution failed: {result.failure.value}.")
        logger.info(FAILURE_HINTS[result.failure])
        sys.exit(1)

    for line in result.lines:
        click.echo(line)
