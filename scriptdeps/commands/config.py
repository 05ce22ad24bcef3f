import click
import os
import json
from .. import config as config_module
from ..cli_logger import logger

RESOLVER_TABLE = "resolver"

def _require_config(ctx):
    """Load scriptdeps.toml, logging an error and returning None when it is missing."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(f"Error: No {config_module.CONFIG_FILE} found in {ctx.obj['path']}.")
        logger.info("Create one with 'scriptdeps config set resolver.target_framework <tfm>'.")
        return None
    return conf

def _split_key(key):
    keys = key.split('.')
    if keys[0] == RESOLVER_TABLE and len(keys) != 2:
        raise ValueError(f"Resolver settings take the form 'resolver.<name>', got '{key}'.")
    return keys

@click.group()
@click.pass_context
def config(ctx):
    """View or change resolver settings in scriptdeps.toml."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """Print scriptdeps.toml as written."""
    if _require_config(ctx) is None:
        return
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading {config_file_path}: {e}")
        logger.info("Please check file permissions.")

@config.command()
@click.option("--effective", is_flag=True, help="Show resolver settings merged with defaults.")
@click.pass_context
def list(ctx, effective):
    """List configuration as JSON."""
    if effective:
        conf = config_module.load_config(path=ctx.obj["path"])
        click.echo(json.dumps({RESOLVER_TABLE: config_module.get_resolver_settings(conf)}, indent=4))
        return
    conf = _require_config(ctx)
    if conf is not None:
        click.echo(json.dumps(conf, indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a value, e.g. 'resolver.target_framework'."""
    conf = _require_config(ctx)
    if conf is None:
        return

    value = conf
    try:
        for k in key.split('.'):
            value = value[k]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in {config_module.CONFIG_FILE}")
        return
    click.echo(value)

@config.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set(ctx, key, value):
    """Set a value, creating scriptdeps.toml if needed.

    Resolver settings are checked and stored with their proper type.
    """
    try:
        keys = _split_key(key)
        if keys[0] == RESOLVER_TABLE:
            value = config_module.coerce_resolver_setting(keys[1], value)
    except ValueError as e:
        logger.error(f"Error: {e}")
        return

    conf = config_module.load_config(path=ctx.obj["path"])
    table = conf
    for k in keys[:-1]:
        table = table.setdefault(k, {})
    table[keys[-1]] = value

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.success(f"Set '{key}' to {value!r}")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a key; resolver settings fall back to their defaults."""
    conf = _require_config(ctx)
    if conf is None:
        return

    keys = key.split('.')
    table = conf
    try:
        for k in keys[:-1]:
            table = table[k]
        del table[keys[-1]]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in {config_module.CONFIG_FILE}")
        return

    if config_module.save_config(conf, path=ctx.obj["path"]):
        if keys[0] == RESOLVER_TABLE and len(keys) == 2 and keys[1] in config_module.RESOLVER_DEFAULTS:
            logger.info(f"Unset '{key}'; using the default {config_module.RESOLVER_DEFAULTS[keys[1]]!r}")
        else:
            logger.info(f"Unset '{key}'")
