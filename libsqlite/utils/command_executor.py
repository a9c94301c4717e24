import subprocess
import shlex
from ..cli_logger import logger

def run_shell_command(command, stream_output=False, env=None, cwd=None):
    """
    Executes an external command, optionally streaming its output to the log.

    Args:
        command (list): The command to execute as a list of strings.
        stream_output (bool): If True, every output line is logged as it arrives
            and stdout is returned empty.
        env (dict, optional): A dictionary of environment variables.
        cwd (str, optional): The working directory for the command.

    Returns:
        A tuple (stdout, stderr, return_code). A command that cannot be started
        returns -1 as its return code.
    """
    logger.debug(f"Running: {shlex.join(command)}")
    try:
        if stream_output:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                bufsize=1,
                universal_newlines=True,
                env=env,
                cwd=cwd
            )
            for line in process.stdout:
                logger.step_info(line.rstrip(), indent=4)
            process.wait()
            return "", "", process.returncode

        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            env=env,
            check=False,
            cwd=cwd
        )
        return result.stdout, result.stderr, result.returncode

    except FileNotFoundError as e:
        logger.error(f"Command not found: {e.filename}")
        return "", str(e), -1
    except OSError as e:
        logger.error(f"Could not run {command[0]}: {e}")
        return "", str(e), -1
