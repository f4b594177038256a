"""Output providers: passthrough writers and optional stdout/stderr capture.

The provider is chosen once, when the agent starts. NullProvider leaves the
process streams alone. StdStreamProvider swaps sys.stdout and sys.stderr for
line-buffered capture streams that turn every written line into a log, and
restores the originals when disabled.
"""

import io
import logging
import sys
import threading
from collections.abc import Callable
from typing import TextIO

from vigilant.core.models import LogLevel
from vigilant.core.ports import LogFn, OutputProvider, PassthroughFn

logger = logging.getLogger(__name__)

_STDERR_LEVELS = frozenset({LogLevel.ERROR, LogLevel.WARN})


def _writer_for(stream_getter: Callable[[], TextIO | None]) -> PassthroughFn:
    def write(line: str) -> None:
        stream = stream_getter()
        if stream is not None:
            stream.write(line + "\n")
            stream.flush()

    return write


class NullProvider:
    """Captures nothing; passthrough goes to the current standard streams."""

    def enable(self, log_fn: LogFn) -> None:
        pass

    def disable(self) -> None:
        pass

    def passthrough_writer(self, level: LogLevel) -> PassthroughFn:
        if level in _STDERR_LEVELS:
            return _writer_for(lambda: sys.stderr)
        return _writer_for(lambda: sys.stdout)


class CaptureStream(io.TextIOBase):
    """Text stream that turns complete lines into logs.

    Writes made while a line is being logged (for example a warning printed
    by the logging module) go straight to the original stream so capture
    never recurses.
    """

    def __init__(
        self,
        original: TextIO,
        level: LogLevel,
        log_fn: LogFn,
        guard: threading.local,
    ) -> None:
        super().__init__()
        self._original = original
        self._level = level
        self._log_fn = log_fn
        self._guard = guard
        self._buffer = ""
        self._lock = threading.Lock()

    @property
    def original(self) -> TextIO:
        return self._original

    @property
    def encoding(self) -> str:  # type: ignore[override]
        return getattr(self._original, "encoding", "utf-8")

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return self._original.isatty()

    def fileno(self) -> int:
        return self._original.fileno()

    def write(self, text: str) -> int:
        if getattr(self._guard, "active", False):
            return self._original.write(text)

        with self._lock:
            self._buffer += text
            *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._emit(line)
        return len(text)

    def flush(self) -> None:
        self._original.flush()

    def flush_partial(self) -> None:
        """Log any buffered text that did not end with a newline."""
        with self._lock:
            remainder, self._buffer = self._buffer, ""
        self._emit(remainder)

    def _emit(self, line: str) -> None:
        line = line.rstrip()
        if not line:
            return
        self._guard.active = True
        try:
            self._log_fn(self._level, line)
        finally:
            self._guard.active = False


class StdStreamProvider:
    """Redirects sys.stdout to INFO logs and sys.stderr to ERROR logs."""

    def __init__(self) -> None:
        self._guard = threading.local()
        self._stdout: CaptureStream | None = None
        self._stderr: CaptureStream | None = None

    @property
    def enabled(self) -> bool:
        return self._stdout is not None

    def enable(self, log_fn: LogFn) -> None:
        if self.enabled:
            return
        self._stdout = CaptureStream(sys.stdout, LogLevel.INFO, log_fn, self._guard)
        self._stderr = CaptureStream(sys.stderr, LogLevel.ERROR, log_fn, self._guard)
        sys.stdout = self._stdout
        sys.stderr = self._stderr

    def disable(self) -> None:
        if self._stdout is None or self._stderr is None:
            return
        self._stdout.flush_partial()
        self._stderr.flush_partial()
        if sys.stdout is self._stdout:
            sys.stdout = self._stdout.original
        if sys.stderr is self._stderr:
            sys.stderr = self._stderr.original
        self._stdout = None
        self._stderr = None

    def passthrough_writer(self, level: LogLevel) -> PassthroughFn:
        if level in _STDERR_LEVELS:
            return _writer_for(
                lambda: self._stderr.original if self._stderr else sys.stderr
            )
        return _writer_for(lambda: self._stdout.original if self._stdout else sys.stdout)


def create_output_provider(autocapture: bool) -> OutputProvider:
    """Select the output provider once, probing for usable standard streams."""
    if not autocapture:
        return NullProvider()
    if sys.stdout is None or sys.stderr is None:
        logger.warning("Standard streams are unavailable; autocapture is disabled.")
        return NullProvider()
    return StdStreamProvider()
