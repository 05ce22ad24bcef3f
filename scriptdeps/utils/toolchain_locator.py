"""Find the MSBuild entry point appropriate to the runtime we are driving.

Two strategies exist. On the full .NET Framework, MSBuild.exe ships inside a
Visual Studio installation and is found by probing candidate roots. On the
self-contained runtime, the ``dotnet`` host runs ``dotnet msbuild``.

Nothing here reads ``os.environ`` or the process table directly: callers
hand in a :class:`ToolchainEnvironment`, and :meth:`ToolchainEnvironment.current`
is the single place that captures the real values.
"""
import os
import shutil
import sys
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Tuple

from ..cli_logger import logger

MSBUILD_RELATIVE_PATH = os.path.join("MSBuild", "Current", "Bin", "MSBuild.exe")
# Distance from the installed compiler directory to the Visual Studio root.
COMPILER_TO_ROOT_DEPTH = 5
DOTNET_HOST_PREFIX = "dotnet"


@dataclass(frozen=True)
class ToolchainEnvironment:
    environ: Mapping[str, str] = field(default_factory=dict)
    module_location: str = ""
    main_module_path: str = ""
    is_windows: bool = False
    file_exists: Callable[[str], bool] = os.path.isfile
    which: Callable[..., Optional[str]] = shutil.which

    @classmethod
    def current(cls, main_module_path=None):
        """Capture the real environment.

        Inside a Python process the main module is the interpreter, so a host
        that embeds scriptdeps passes its own executable as ``main_module_path``.
        """
        return cls(
            environ=dict(os.environ),
            module_location=os.path.dirname(os.path.abspath(__file__)),
            main_module_path=main_module_path or sys.executable or "",
            is_windows=sys.platform.startswith("win"),
        )

    def get(self, name):
        value = self.environ.get(name)
        return value if value else None

    def find_executable(self, name):
        """Look ``name`` up on this environment's PATH."""
        return self.which(name, path=self.environ.get("PATH", ""))


class ToolchainLocator:
    name = "base"
    # Arguments placed between the executable and the MSBuild arguments.
    command_prefix: Tuple[str, ...] = ()

    def locate(self, env: ToolchainEnvironment) -> Optional[str]:
        raise NotImplementedError


class FullFrameworkLocator(ToolchainLocator):
    name = "framework"

    def candidate_roots(self, env: ToolchainEnvironment):
        roots = []
        if env.module_location:
            parents = [os.pardir] * COMPILER_TO_ROOT_DEPTH
            roots.append(os.path.normpath(os.path.join(env.module_location, *parents)))

        vs_app_dir = env.get("VSAPPIDDIR")
        if vs_app_dir:
            roots.append(os.path.normpath(os.path.join(vs_app_dir, os.pardir, os.pardir)))

        vs_install_dir = env.get("VSINSTALLDIR")
        if vs_install_dir:
            roots.append(vs_install_dir)
        return roots

    def locate(self, env):
        for root in self.candidate_roots(env):
            candidate = os.path.normpath(os.path.join(root, MSBUILD_RELATIVE_PATH))
            if env.file_exists(candidate):
                logger.debug(f"Found MSBuild at {candidate}")
                return candidate
            logger.debug(f"No MSBuild at {candidate}")
        return None


class SelfContainedLocator(ToolchainLocator):
    name = "core"
    command_prefix = ("msbuild",)

    def locate(self, env):
        host_path = env.get("DOTNET_HOST_PATH")
        if host_path:
            logger.debug(f"Using DOTNET_HOST_PATH: {host_path}")
            return host_path

        main_module = env.main_module_path
        if main_module and os.path.basename(main_module).startswith(DOTNET_HOST_PREFIX):
            logger.debug(f"Using the current dotnet host: {main_module}")
            return main_module
        return None


class ExplicitToolLocator(ToolchainLocator):
    """Use a tool configured by the user: an existing path, or a command on PATH."""

    name = "explicit"

    def __init__(self, tool_path, command_prefix=()):
        self.tool_path = tool_path
        self.command_prefix = tuple(command_prefix)

    def locate(self, env):
        if not self.tool_path:
            return None
        if env.file_exists(self.tool_path):
            return self.tool_path
        found = env.find_executable(self.tool_path)
        if found:
            logger.debug(f"Resolved tool_path '{self.tool_path}' to {found}")
            return found
        logger.warning(f"Configured tool_path '{self.tool_path}' does not exist and is not on PATH.")
        return None


def is_running_on_core_runtime(env: ToolchainEnvironment) -> bool:
    if not env.main_module_path:
        return False
    deps_json = os.path.splitext(env.main_module_path)[0] + ".deps.json"
    return env.file_exists(deps_json)


def select_locator(env: ToolchainEnvironment, runtime="auto", tool_path="") -> ToolchainLocator:
    """Choose the locator once, from configuration and runtime detection."""
    if runtime == "framework":
        chosen = FullFrameworkLocator()
    elif runtime == "core":
        chosen = SelfContainedLocator()
    elif is_running_on_core_runtime(env) or not env.is_windows:
        chosen = SelfContainedLocator()
    else:
        chosen = FullFrameworkLocator()

    if tool_path:
        return ExplicitToolLocator(tool_path, chosen.command_prefix)
    return chosen


def locate(env: ToolchainEnvironment, runtime="auto", tool_path=""):
    """Return ``(tool_path_or_None, locator)`` for ``env``."""
    locator = select_locator(env, runtime=runtime, tool_path=tool_path)
    return locator.locate(env), locator
