import contextlib
import logging
import shlex
import subprocess  # nosec B404
from pathlib import Path

import psutil

from .errors import ExternalCommandError

logger = logging.getLogger(__name__)


def output_detail(stdout: str, stderr: str) -> str:
    """Diagnostic text of a failed command: stderr first, stdout if it adds anything."""
    parts: list[str] = []
    for text in (stderr, stdout):
        text = (text or "").strip()
        if text and text not in parts:
            parts.append(text)
    return "\n".join(parts) or "no output"


def command_line(command: list[str]) -> str:
    return shlex.join(command)


def run_command(
    command: list[str],
    cwd: Path,
    *,
    error_cls: type[ExternalCommandError] = ExternalCommandError,
    combine_output: bool = False,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a command to completion and capture its output.

    Args:
        command: Full argv; ``command[0]`` is resolved on PATH.
        cwd: Working directory for the child.
        error_cls: Exception type raised on failure.
        combine_output: Merge stderr into stdout, as the tool would print it.
        check: Raise when the exit status is non-zero.

    Raises:
        ExternalCommandError: (as ``error_cls``) if the command cannot be
            started, or exits non-zero while ``check`` is set.
    """
    cmd_name = command[0] if command else "unknown"
    logger.debug("exec: %s (cwd=%s)", command_line(command), cwd)

    try:
        result = subprocess.run(  # nosec B603 B607
            command,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if combine_output else subprocess.PIPE,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise error_cls(f"{cmd_name} not found: {exc}", command=command) from exc
    except OSError as exc:
        raise error_cls(f"{cmd_name} failed to start: {exc}", command=command) from exc

    if check and result.returncode != 0:
        detail = output_detail(result.stdout or "", result.stderr or "")
        logger.debug("exec failed: %s (exit %d)", command_line(command), result.returncode)
        raise error_cls(
            f"{command_line(command)} failed (exit {result.returncode}): {detail}",
            command=command,
            returncode=result.returncode,
            detail=detail,
        )

    return result


def run_attached(
    command: list[str],
    cwd: Path,
    *,
    error_cls: type[ExternalCommandError] = ExternalCommandError,
) -> None:
    """Run a command with the terminal's stdin, stdout and stderr attached."""
    cmd_name = command[0] if command else "unknown"
    logger.debug("exec (attached): %s (cwd=%s)", command_line(command), cwd)

    try:
        returncode = subprocess.call(command, cwd=cwd)  # nosec B603 B607
    except FileNotFoundError as exc:
        raise error_cls(f"{cmd_name} not found: {exc}", command=command) from exc
    except OSError as exc:
        raise error_cls(f"{cmd_name} failed to start: {exc}", command=command) from exc

    if returncode != 0:
        raise error_cls(
            f"{command_line(command)} failed (exit {returncode})",
            command=command,
            returncode=returncode,
        )


def kill_process_tree(pid: int, timeout: float = 5.0) -> None:
    """Kill a process and all of its descendants, then reap them.

    `go test` runs the compiled test binary as a child; killing only go
    would leave the benchmark running.
    """
    try:
        root = psutil.Process(pid)
        procs = [*root.children(recursive=True), root]
    except psutil.Error:
        return

    for proc in procs:
        with contextlib.suppress(psutil.Error):
            proc.kill()
    _, alive = psutil.wait_procs(procs, timeout=timeout)
    for proc in alive:
        logger.warning("Process %d did not exit after kill", proc.pid)


__all__ = [
    "command_line",
    "output_detail",
    "kill_process_tree",
    "run_attached",
    "run_command",
]
