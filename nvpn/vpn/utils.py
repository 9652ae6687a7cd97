"""Utility functions for VPN management."""

from contextlib import contextmanager
import os
from pathlib import Path
import subprocess
import sys
import tempfile
import threading
from typing import IO, Iterator, List, Optional

from .commands import CommandError
from .models import CommandResult
from ..logging_utility import logger


class StreamTee(threading.Thread):
    """
    Read a text stream line by line into a buffer, echoing every line to
    `sink` as it arrives when one is given.
    """

    def __init__(self, stream: IO[str], sink: Optional[IO[str]] = None):
        super().__init__(daemon=True)
        self.stream = stream
        self.sink = sink
        self.lines: List[str] = []

    def run(self) -> None:
        try:
            for line in iter(self.stream.readline, ""):
                self.lines.append(line)
                if self.sink is not None:
                    self.sink.write(line)
                    self.sink.flush()
        finally:
            self.stream.close()

    def getvalue(self) -> str:
        return "".join(self.lines)


def run_command(
        cmd: list[str],
        check: bool = True,
        stream_stdout: bool = False,
        stream_stderr: bool = False,
) -> CommandResult:
    """
    Run a command to completion and return its captured output.

    Args:
        cmd: Command as list of strings
        check: Whether to raise exception on a non-zero exit
        stream_stdout: Also forward stdout to this process's stdout as it is produced
        stream_stderr: Also forward stderr to this process's stderr as it is produced

    Returns:
        CommandResult with stdout, stderr and the exit code
    """
    logger.debug(f"Running command: {' '.join(cmd)}")
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise CommandError(f"Command could not be started: {' '.join(cmd)}\n{e}") from e

    stdout_tee = StreamTee(proc.stdout, sys.stdout if stream_stdout else None)
    stderr_tee = StreamTee(proc.stderr, sys.stderr if stream_stderr else None)
    stdout_tee.start()
    stderr_tee.start()

    returncode = proc.wait()
    stdout_tee.join()
    stderr_tee.join()

    result = CommandResult(
        args=list(cmd),
        returncode=returncode,
        stdout=stdout_tee.getvalue(),
        stderr=stderr_tee.getvalue(),
    )
    logger.debug(f"Command exited with {returncode}: {cmd[0]}")
    if check and not result.ok:
        raise CommandError(f"Command failed: {' '.join(cmd)}\n{result.stderr}", result=result)
    return result


@contextmanager
def secret_file(contents: str, prefix: str = "nvpn", directory: Optional[Path] = None) -> Iterator[Path]:
    """
    Write `contents` to a fresh owner-only temporary file and yield its path.

    The file is removed when the block exits, however it exits.
    """
    fd, name = tempfile.mkstemp(prefix=prefix, dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(contents)
        yield path
    finally:
        if path.exists():
            path.unlink()
            logger.debug(f"Removed secrets file {path}")
