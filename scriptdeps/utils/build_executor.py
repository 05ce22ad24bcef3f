import os
from dataclasses import dataclass
from typing import Optional, Sequence

from ..cli_logger import logger
from .command_executor import ProcessRunner
from .project_synthesizer import PACKAGE_MANAGEMENT_TARGET, directive_file_path

RESTORE_FLAG = "-restore"
BINARY_LOG_FLAG = "-bl"


@dataclass(frozen=True)
class BuildOutcome:
    success: bool
    output_path: Optional[str] = None
    exit_code: Optional[int] = None


def build_arguments(tool, description_path, emit_diagnostic_log=False, command_prefix: Sequence[str] = ()):
    command = [tool, *command_prefix, RESTORE_FLAG]
    if emit_diagnostic_log:
        command.append(BINARY_LOG_FLAG)
    command.append(description_path)
    command.append(f"/t:{PACKAGE_MANAGEMENT_TARGET}")
    return command


def execute(tool, description_path, emit_diagnostic_log=False, runner=None, command_prefix=()):
    """Build ``description_path`` with ``tool`` and report the outcome.

    A missing tool fails immediately without spawning anything. Success
    needs both a zero exit code and the directive file on disk.
    """
    if not tool:
        logger.error("No build tool was found; skipping the build.")
        return BuildOutcome(success=False)

    runner = runner or ProcessRunner()
    command = build_arguments(tool, description_path, emit_diagnostic_log, command_prefix)
    exit_code = runner.run(command, cwd=os.path.dirname(os.path.abspath(description_path)))

    output_path = directive_file_path(description_path)
    if exit_code != 0:
        logger.error(f"Build of {description_path} exited with code {exit_code}.")
        return BuildOutcome(success=False, exit_code=exit_code)
    if not os.path.exists(output_path):
        logger.error(f"Build reported success but {output_path} was not produced.")
        return BuildOutcome(success=False, exit_code=exit_code)
    return BuildOutcome(success=True, output_path=output_path, exit_code=exit_code)
