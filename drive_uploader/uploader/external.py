"""
External-process upload collaborator.

Some deployments hand the rendered file to an upload script outside this
package instead of calling the Drive API in-process. The contract is
narrow: the command receives the resolved local path as its last
argument, and a non-zero exit code is surfaced as RemoteError.
"""

import shlex
import subprocess
from typing import Optional, Sequence, Union

from drive_uploader.errors import ConfigError, RemoteError, Stage
from drive_uploader.utils.logging import get_logger, log_function_call

logger = get_logger(__name__)


def build_command(command: Union[str, Sequence[str]], local_path: str) -> list:
    """Split command (shell-style when a string) and append local_path."""
    if isinstance(command, str):
        argv = shlex.split(command)
    else:
        argv = [str(part) for part in command]
    if not argv:
        raise ConfigError("External upload command must not be empty")
    return argv + [local_path]


@log_function_call
def run_external_upload(
    command: Union[str, Sequence[str]],
    local_path: str,
    timeout: Optional[float] = None,
) -> int:
    """
    Run an external upload command for local_path.

    Returns:
        The process exit code (always 0; failures raise)

    Raises:
        ConfigError: If the command is empty or cannot be started
        RemoteError: If the process exits non-zero or times out
    """
    argv = build_command(command, local_path)
    logger.info(f"Running external upload command: {argv[0]}")

    try:
        completed = subprocess.run(argv, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise ConfigError(f"External upload command not found: {argv[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise RemoteError(
            f"External upload command timed out after {timeout}s", stage=Stage.UPLOADING
        ) from e

    if completed.stdout:
        logger.info(completed.stdout.rstrip())
    if completed.returncode != 0:
        detail = (completed.stderr or "").strip() or "no error output"
        raise RemoteError(
            f"External upload command exited with code {completed.returncode}: {detail}",
            stage=Stage.UPLOADING,
        )
    return completed.returncode
