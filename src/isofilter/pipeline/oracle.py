"""The external sort process that groups equal canonical forms."""
from __future__ import annotations

import os
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import IO, Iterator, List, Optional

from isofilter.errors import ConfigurationError, OracleFailed


ISOFILTER_SORT = os.environ.get("ISOFILTER_SORT", "sort")

_SIZE_RE = re.compile(r"^(\d+)([KMG%])$")


def sort_available(program: Optional[str] = None) -> bool:
    """Returns True iff the sort program appears runnable."""
    return shutil.which(program or ISOFILTER_SORT) is not None


def parse_size(text: str) -> str:
    """Validate a sort memory budget: a number followed by K, M, G or %."""
    if not _SIZE_RE.match(text):
        raise ConfigurationError(f"bad sort memory size {text!r} (want e.g. 500M or 20%)")
    return text


@dataclass(frozen=True)
class OracleConfig:
    """
    program:     sort executable (default $ISOFILTER_SORT or 'sort')
    tempdir:     directory for sort's spill files
    buffer_size: main memory budget passed as 'sort -S'
    unique:      keep only the first line of each run of equal keys
    """

    program: str = ISOFILTER_SORT
    tempdir: Optional[str] = None
    buffer_size: Optional[str] = None
    unique: bool = False

    def validate(self) -> None:
        if self.tempdir is not None and not self.tempdir:
            raise ConfigurationError("-T needs a non-empty argument")
        if self.buffer_size is not None:
            parse_size(self.buffer_size)

    def argv(self) -> List[str]:
        cmd = [self.program]
        if self.tempdir is not None:
            cmd += ["-T", self.tempdir]
        if self.buffer_size is not None:
            cmd += ["-S", self.buffer_size]
        if self.unique:
            cmd.append("-u")
        # stable, keyed on the first blank-separated field only
        cmd += ["-s", "-k", "1,1"]
        return cmd

    def env(self) -> dict:
        env = dict(os.environ)
        env["LC_ALL"] = "C"
        return env


class OrderOracle:
    """Owns the sort subprocess and both of its streams.

    Use as a context manager.  Records are written with write(), the input
    is closed with close_input() (the only end-of-input signal sort gets),
    then lines() drains the sorted output and wait() reaps the process.
    Leaving the block on an exception closes both streams and kills the
    child before returning.
    """

    def __init__(self, config: OracleConfig):
        config.validate()
        self.config = config
        self.proc: Optional[subprocess.Popen] = None
        self._stderr: Optional[IO[bytes]] = None
        self.status: Optional[int] = None

    def __enter__(self) -> "OrderOracle":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None or self.status is None:
            self.abort()
        else:
            self._close_streams()

    def start(self) -> None:
        self._stderr = tempfile.TemporaryFile()
        try:
            self.proc = subprocess.Popen(
                self.config.argv(),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=self._stderr,
                env=self.config.env(),
                text=True,
                encoding="ascii",
            )
        except OSError as exc:
            self._stderr.close()
            self._stderr = None
            raise OracleFailed(f"can't start sort process {self.config.program!r}: {exc}") from exc

    def stderr_text(self) -> str:
        if self._stderr is None or self._stderr.closed:
            return ""
        self._stderr.seek(0)
        return self._stderr.read().decode("utf-8", errors="replace")

    def _failure(self, message: str) -> OracleFailed:
        return OracleFailed(message, status=self.status, stderr=self.stderr_text())

    def write(self, text: str) -> None:
        assert self.proc is not None and self.proc.stdin is not None
        try:
            self.proc.stdin.write(text)
        except BrokenPipeError as exc:
            self._reap()
            raise self._failure(
                f"sort process closed its input early (status {self.status})"
            ) from exc

    def close_input(self) -> None:
        assert self.proc is not None and self.proc.stdin is not None
        try:
            self.proc.stdin.close()
        except BrokenPipeError as exc:
            self._reap()
            raise self._failure(
                f"sort process closed its input early (status {self.status})"
            ) from exc

    def lines(self) -> Iterator[str]:
        """Sorted lines without terminators."""
        assert self.proc is not None and self.proc.stdout is not None
        for line in self.proc.stdout:
            if not line.endswith("\n"):
                self._reap()
                raise self._failure(f"sort output ended inside a record: {line!r}")
            yield line[:-1]

    def _reap(self) -> int:
        assert self.proc is not None
        self.status = self.proc.wait()
        return self.status

    def wait(self) -> int:
        """Reap the process; raise OracleFailed unless it exited with 0."""
        status = self._reap()
        if status < 0:
            raise self._failure(f"sort process killed (signal {-status})")
        if status != 0:
            raise self._failure(f"sort process exited abnormally (code {status})")
        return status

    def _close_streams(self) -> None:
        if self.proc is not None:
            for stream in (self.proc.stdin, self.proc.stdout):
                if stream is not None and not stream.closed:
                    try:
                        stream.close()
                    except BrokenPipeError:
                        pass
        if self._stderr is not None:
            self._stderr.close()

    def abort(self) -> None:
        """Tear down on an error path: kill the child and reap it."""
        if self.proc is not None and self.proc.poll() is None:
            self.proc.kill()
        self._close_streams()
        if self.proc is not None:
            self.status = self.proc.wait()
