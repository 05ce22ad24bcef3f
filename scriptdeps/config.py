import toml
import os
from .cli_logger import logger

CONFIG_FILE = "scriptdeps.toml"

DEFAULT_PROJECT_DIR = os.path.join(os.path.expanduser("~"), ".scriptdeps", "projects")

RESOLVER_DEFAULTS = {
    "target_framework": "net8.0",
    "project_dir": DEFAULT_PROJECT_DIR,
    "binary_log": False,
    "cleanup": False,
    "runtime": "auto",
    "tool_path": "",
}

VALID_RUNTIMES = ("auto", "framework", "core")
BOOLEAN_SETTINGS = ("binary_log", "cleanup")

def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Loading configuration from {config_path}")
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False

def get_resolver_settings(conf):
    """Return the [resolver] table merged over the defaults."""
    settings = dict(RESOLVER_DEFAULTS)
    resolver_conf = conf.get("resolver", {}) if conf else {}
    if not isinstance(resolver_conf, dict):
        logger.warning("Ignoring [resolver] in scriptdeps.toml: expected a table.")
        return settings

    for key, value in resolver_conf.items():
        if key not in settings:
            logger.warning(f"Unknown resolver setting '{key}' in scriptdeps.toml. Ignoring it.")
            continue
        settings[key] = value

    for key in BOOLEAN_SETTINGS:
        settings[key] = as_bool(settings[key])

    if settings["runtime"] not in VALID_RUNTIMES:
        logger.warning(f"Invalid runtime '{settings['runtime']}'. Expected one of {', '.join(VALID_RUNTIMES)}; using 'auto'.")
        settings["runtime"] = "auto"

    settings["project_dir"] = os.path.expanduser(str(settings["project_dir"]))
    return settings

def as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)

def coerce_resolver_setting(key, value):
    """Convert a command-line string for ``[resolver] key`` to its stored type.

    Raises ValueError for unknown keys and invalid values.
    """
    if key not in RESOLVER_DEFAULTS:
        raise ValueError(f"Unknown resolver setting '{key}'. Valid settings: {', '.join(RESOLVER_DEFAULTS)}.")
    if key in BOOLEAN_SETTINGS:
        return as_bool(value)
    if key == "runtime" and value not in VALID_RUNTIMES:
        raise ValueError(f"Invalid runtime '{value}'. Expected one of {', '.join(VALID_RUNTIMES)}.")
    return value
