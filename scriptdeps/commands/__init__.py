from .resolve import resolve
from .render import render
from .locate import locate
from .clean import clean
from .config import config
from .version import version
from .log import log

__all__ = ["resolve", "render", "locate", "clean", "config", "version", "log"]
