import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Directory containing scriptdeps.toml.")
@click.pass_context
def cli(ctx, path):
    """Resolve inline script package references with MSBuild."""
    ctx.obj = {"path": path}

cli.add_command(resolve)
cli.add_command(render)
cli.add_command(locate)
cli.add_command(clean)
cli.add_command(config)
cli.add_command(version)
cli.add_command(log)

if __name__ == '__main__':
    cli()
