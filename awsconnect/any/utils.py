"""Subprocess helpers shared by the vault broker and the session launcher."""

import os
import shutil
import subprocess

from awsconnect.any.log import get_logger

LOGGER = get_logger("awsconnect.any.utils")


def _streams(capture: bool, passthrough_stderr: bool) -> tuple[int | None, int | None]:
    if not capture:
        return None, None
    return subprocess.PIPE, (None if passthrough_stderr else subprocess.PIPE)


def run_command(
    cmd: list[str],
    check: bool = True,
    capture: bool = True,
    env: dict[str, str] | None = None,
    timeout: int | None = None,
    passthrough_stderr: bool = False,
) -> subprocess.CompletedProcess:
    """
    Run a helper program (aws-vault, aws) to completion.

    stdin is always inherited so the program can read from the operator's
    terminal.

    Args:
    ----
        cmd: Program and arguments
        check: Raise CalledProcessError on a non-zero exit status
        capture: Collect stdout (and stderr unless passed through) as text
        env: Extra variables layered over a copy of os.environ
        timeout: Seconds to wait before giving up
        passthrough_stderr: Keep stderr on the terminal so MFA and SSO prompts
            stay visible while stdout is collected

    Returns:
    -------
        The finished process

    Raises:
    ------
        subprocess.CalledProcessError: On failure when check is set
        subprocess.TimeoutExpired: When the timeout elapses
        FileNotFoundError: If the program does not exist

    Example:
    -------
        ```python
        result = run_command(["aws-vault", "export", "--format=json", "dev"], passthrough_stderr=True)
        creds = json.loads(result.stdout)
        ```

    """
    stdout, stderr = _streams(capture, passthrough_stderr)
    merged_env = {**os.environ, **(env or {})}

    LOGGER.debug(f"Running: {cmd[0]} ({len(cmd) - 1} args)")
    return subprocess.run(
        cmd,
        stdout=stdout,
        stderr=stderr,
        text=True,
        check=check,
        env=merged_env,
        timeout=timeout,
    )


def find_executable(name: str) -> str | None:
    """Return the absolute path of ``name`` on PATH, or None."""
    path = shutil.which(name)
    if path is None:
        LOGGER.debug(f"{name} is not on PATH")
    return path
