import enum
import hashlib
import os
import shutil
from dataclasses import dataclass, field
from typing import List, Optional

from .cli_logger import logger
from .config import RESOLVER_DEFAULTS
from .utils import (
    ToolchainEnvironment,
    ProcessRunner,
    parse_package_request,
    select_locator,
    write_project,
    execute,
)
from .utils.project_synthesizer import PROJECT_FILE_NAME, LIBRARY_FILE_NAME, directive_file_path

REFERENCE_DIRECTIVE = "#r"
LOAD_DIRECTIVE = "#load"


class ResolutionFailure(enum.Enum):
    TOOL_NOT_FOUND = "tool-not-found"
    BUILD_FAILED = "build-failed"
    OUTPUT_MISSING = "output-missing"


@dataclass
class ResolutionContext:
    target_framework: str = RESOLVER_DEFAULTS["target_framework"]
    project_dir: str = RESOLVER_DEFAULTS["project_dir"]
    project_path: Optional[str] = None
    binary_logging: bool = False
    cleanup: bool = False
    runtime: str = "auto"
    tool_path: str = ""
    environment: Optional[ToolchainEnvironment] = None
    runner: Optional[ProcessRunner] = None

    @classmethod
    def from_settings(cls, settings, **overrides):
        context = cls(
            target_framework=settings["target_framework"],
            project_dir=settings["project_dir"],
            binary_logging=settings["binary_log"],
            cleanup=settings["cleanup"],
            runtime=settings["runtime"],
            tool_path=settings["tool_path"],
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(context, key, value)
        return context


@dataclass
class ResolutionResult:
    lines: List[str] = field(default_factory=list)
    failure: Optional[ResolutionFailure] = None
    project_path: Optional[str] = None
    output_path: Optional[str] = None

    @property
    def success(self):
        return self.failure is None

    @property
    def references(self):
        return [line for line in self.lines if line.startswith(REFERENCE_DIRECTIVE + " ")]

    @property
    def loads(self):
        return [line for line in self.lines if line.startswith(LOAD_DIRECTIVE + " ")]


def default_project_path(spec, target_framework, project_dir):
    """A stable per-request location, so different requests never share files."""
    key = hashlib.sha256(f"{target_framework}\n{spec}".encode("utf-8")).hexdigest()[:16]
    return os.path.join(project_dir, key, PROJECT_FILE_NAME)


def read_directive_lines(output_path):
    with open(output_path, "r", encoding="utf-8-sig") as f:
        return [line.rstrip("\r\n") for line in f]


def cleanup_project(project_path, remove_directory=False):
    """Remove the project file, its placeholder source and its directive file.

    With ``remove_directory`` the whole project directory goes too, including
    MSBuild's ``obj/`` folder and any ``msbuild.binlog``. Only pass it for a
    directory scriptdeps created for this request.
    """
    project_dir = os.path.dirname(os.path.abspath(project_path))
    if remove_directory:
        try:
            shutil.rmtree(project_dir)
            logger.debug(f"Removed {project_dir}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {project_dir}: {e}")
        return

    for path in (project_path, os.path.join(project_dir, LIBRARY_FILE_NAME), directive_file_path(project_path)):
        try:
            os.remove(path)
            logger.debug(f"Removed {path}")
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Could not remove {path}: {e}")


def resolve(spec, context=None):
    """Resolve a package reference spec into directive lines.

    Returns a :class:`ResolutionResult`; ``failure`` names the stage that
    failed and ``lines`` is empty in that case.
    """
    context = context or ResolutionContext()
    env = context.environment or ToolchainEnvironment.current()

    request = parse_package_request(spec)
    if not request.declarations:
        logger.warning(f"No packages were named in '{spec}'.")
    for declaration in request.declarations:
        logger.step_info(f"- {declaration.include} {declaration.version or '(latest)'}", indent=2)

    project_path = context.project_path or default_project_path(spec, context.target_framework, context.project_dir)
    logger.info(f"Writing project to {project_path}")
    write_project(project_path, context.target_framework, request.declarations, request.restore_sources)

    locator = select_locator(env, runtime=context.runtime, tool_path=context.tool_path)
    tool = locator.locate(env)
    if tool is None:
        logger.error(f"Could not locate a build tool ({locator.name} runtime).")
        return ResolutionResult(failure=ResolutionFailure.TOOL_NOT_FOUND, project_path=project_path)

    outcome = execute(
        tool,
        project_path,
        emit_diagnostic_log=context.binary_logging or request.binary_logging,
        runner=context.runner,
        command_prefix=locator.command_prefix,
    )
    if not outcome.success:
        failure = ResolutionFailure.BUILD_FAILED if outcome.exit_code != 0 else ResolutionFailure.OUTPUT_MISSING
        return ResolutionResult(failure=failure, project_path=project_path)

    try:
        lines = read_directive_lines(outcome.output_path)
    except FileNotFoundError:
        logger.error(f"Directive file {outcome.output_path} disappeared before it could be read.")
        return ResolutionResult(failure=ResolutionFailure.OUTPUT_MISSING, project_path=project_path)

    result = ResolutionResult(lines=lines, project_path=project_path, output_path=outcome.output_path)
    logger.success(f"Resolved {len(result.references)} reference(s) and {len(result.loads)} load script(s).")
    if context.cleanup:
        cleanup_project(project_path, remove_directory=context.project_path is None)
        result.output_path = None
    return result
