"""
External command execution.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

# Exit code reported when a command could not run to completion
EXECUTION_FAULT = -1


def run_command(command: str, timeout: float | None = 30) -> tuple[int, str]:
    """
    Run a shell command and return its exit code and combined output.

    Args:
        command: Command line, interpreted by the system shell.
        timeout: Timeout in seconds, or None to wait indefinitely.

    Returns:
        Tuple of (exit_code, output). Timeouts and launch failures are
        reported as exit code -1 with a short message as output.
    """
    try:
        result = subprocess.run(
            command,
            shell=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
        return result.returncode, result.stdout or ""
    except subprocess.TimeoutExpired:
        logger.warning(f"Command timed out after {timeout}s: {command}")
        return EXECUTION_FAULT, f"Command timed out after {timeout}s"
    except OSError as e:
        logger.warning(f"Could not execute '{command}': {e}")
        return EXECUTION_FAULT, f"Could not execute command: {e}"
