"""Subprocess execution with rich error context.

Every git invocation that is expected to succeed goes through
run_subprocess_with_context so failures surface as EngineError carrying the
operation, command, exit code and captured output.
"""

import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from wtt.core.errors import EngineError


def _decode(stream: str | bytes | None) -> str:
    if stream is None:
        return ""
    text = stream if isinstance(stream, str) else stream.decode("utf-8")
    return text.strip()


def run_subprocess_with_context(
    cmd: Sequence[str],
    operation_context: str,
    cwd: Path | None = None,
    check: bool = True,
    input: str | None = None,
    **kwargs: Any,
) -> subprocess.CompletedProcess[str]:
    """Execute subprocess with enriched error reporting for the integration layer.

    Wraps subprocess.run() to catch CalledProcessError and re-raise as EngineError
    with operation context, stderr output, and command details.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description of operation
        cwd: Working directory for command execution
        check: Whether to raise on non-zero exit (default: True)
        input: Text passed to the process on stdin
        **kwargs: Additional arguments passed to subprocess.run()

    Returns:
        CompletedProcess instance from subprocess.run()

    Raises:
        EngineError: If command fails or the binary is not found
    """
    try:
        return subprocess.run(
            list(cmd),
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=check,
            input=input,
            **kwargs,
        )

    except subprocess.CalledProcessError as e:
        cmd_str = " ".join(str(arg) for arg in cmd)
        stdout_text = _decode(e.stdout)
        stderr_text = _decode(e.stderr)

        error_msg = f"Failed to {operation_context}"
        error_msg += f"\nCommand: {cmd_str}"
        error_msg += f"\nExit code: {e.returncode}"
        if stdout_text:
            error_msg += f"\nstdout: {stdout_text}"
        if stderr_text:
            error_msg += f"\nstderr: {stderr_text}"

        raise EngineError(
            error_msg,
            command=[str(arg) for arg in cmd],
            returncode=e.returncode,
            stdout=stdout_text,
            stderr=stderr_text,
        ) from e

    except FileNotFoundError as e:
        cmd_str = " ".join(str(arg) for arg in cmd)
        error_msg = f"Command not found while trying to {operation_context}: {cmd[0]}"
        error_msg += f"\nFull command: {cmd_str}"
        raise EngineError(error_msg, command=[str(arg) for arg in cmd]) from e
