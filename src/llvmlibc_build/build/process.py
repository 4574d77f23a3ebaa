"""Subprocess helpers shared by the build steps.

Every external tool (cmake, ar, cc) runs to completion with no timeout; a
hung tool hangs the build. KeyboardInterrupt is forwarded to the main thread
before being re-raised so Ctrl+C always stops the whole build.
"""

import _thread
import logging
import shlex
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Propagate KeyboardInterrupt to the main thread, then re-raise it.

    Raises:
        KeyboardInterrupt: Always
    """
    _thread.interrupt_main()
    raise ke


def format_command(cmd: Sequence[str]) -> str:
    return " ".join(shlex.quote(part) for part in cmd)


def run_tool(
    cmd: Sequence[str],
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> subprocess.CompletedProcess:
    """Run an external tool and capture its output.

    Args:
        cmd: Command line
        env: Full environment for the child (inherits ours when None)
        cwd: Working directory

    Returns:
        CompletedProcess; callers decide what a non-zero exit means
    """
    logger.debug("Running: %s", format_command(cmd))
    try:
        return subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            env=dict(env) if env is not None else None,
            cwd=str(cwd) if cwd is not None else None,
        )
    except KeyboardInterrupt as ke:
        handle_keyboard_interrupt_properly(ke)
        raise  # Never reached, but satisfies type checker


def describe_failure(what: str, result: subprocess.CompletedProcess) -> str:
    """Build the error text for a failed tool run."""
    error_msg = f"{what} (exit code {result.returncode})\n"
    error_msg += f"stderr: {result.stderr}\n"
    error_msg += f"stdout: {result.stdout}"
    return error_msg
