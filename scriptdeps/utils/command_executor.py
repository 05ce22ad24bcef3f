import subprocess
import shlex
from ..cli_logger import logger


def format_command(command):
    """Render an argument list the way a shell would need it quoted."""
    return shlex.join(str(arg) for arg in command)


class ProcessRunner:
    """Runs a child process and returns its exit code.

    The child inherits our stdout and stderr, and the call blocks until it
    exits. There is no timeout; stopping a hung child is up to the caller.
    """

    def run(self, command, env=None, cwd=None):
        """
        Executes a command and waits for it to finish.

        Args:
            command (list): The command to execute as a list of strings.
            env (dict, optional): A dictionary of environment variables.
            cwd (str, optional): The working directory for the command.

        Returns:
            int: The exit code, or -1 if the process could not be started.
        """
        logger.info(f"Running: {format_command(command)}")
        try:
            result = subprocess.run(command, env=env, cwd=cwd, check=False)
            return result.returncode
        except FileNotFoundError as e:
            logger.error(f"Command not found: {e.filename}")
            return -1
        except OSError as e:
            logger.error(f"Could not start {command[0]}: {e}")
            return -1
