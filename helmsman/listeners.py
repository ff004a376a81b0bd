"""
Output listener bus.

Overview
- ListenerSet: immutable collection of callbacks registered before a launch.
  • stdout / stderr: line listeners, called as listener(line) with the trailing
    newline stripped, in the order lines were produced on that stream.
  • start: called once as listener(process) right after the OS process exists.
  • exit: called once as listener(exit_code) after both streams were drained.
  Every on_*() method returns a new ListenerSet; nothing is mutated, so a set can
  be shared between runners without locking.

- LineCollector: line listener that accumulates lines (str() joins them).
- ExitCodeRecorder: exit listener that remembers the most recent exit code.
- PatternWaiter: line + exit listener that lets a caller block until a line
  matching a regular expression shows up on either stream. wait() raises
  ProcessTimeoutError when the bound elapses first, and ProcessExitedError when
  the process exits without ever printing a match.

Threading
- Line listeners run on the runner's reader threads (one per stream); exit
  listeners run on the thread that observed the exit. Listeners shared between
  both streams must therefore be thread-safe; the ones in this module are.
"""
import re
import threading
import time

from .faults import InvalidConfigurationError, ProcessExitedError, ProcessTimeoutError


def _callables(listeners, kind, /):
    listeners = tuple(listeners)
    for listener in listeners:
        if not callable(listener):
            raise TypeError(f"{kind} listeners must be callable")
    return listeners


class ListenerSet:
    __slots__ = ("_stdout", "_stderr", "_start", "_exit")

    def __init__(self, *, stdout=(), stderr=(), start=(), exit=()):
        self._stdout = _callables(stdout, "stdout")
        self._stderr = _callables(stderr, "stderr")
        self._start = _callables(start, "start")
        self._exit = _callables(exit, "exit")

    stdout = property(lambda self: self._stdout)
    stderr = property(lambda self: self._stderr)
    start = property(lambda self: self._start)
    exit = property(lambda self: self._exit)

    @property
    def streaming(self):
        """true when at least one line listener is registered."""
        return bool(self._stdout or self._stderr)

    def on_stdout(self, *listeners):
        return self.__replace__(stdout=self._stdout + listeners)

    def on_stderr(self, *listeners):
        return self.__replace__(stderr=self._stderr + listeners)

    def on_output(self, *listeners):
        """register listeners for both streams."""
        return self.__replace__(stdout=self._stdout + listeners, stderr=self._stderr + listeners)

    def on_start(self, *listeners):
        return self.__replace__(start=self._start + listeners)

    def on_exit(self, *listeners):
        return self.__replace__(exit=self._exit + listeners)

    def waiting_for(self, waiter, /):
        """
        register a PatternWaiter on both streams and as the first exit listener.
        """
        if not isinstance(waiter, PatternWaiter):
            raise TypeError("waiting_for() argument must be a PatternWaiter")
        return self.__replace__(
            stdout=self._stdout + (waiter,),
            stderr=self._stderr + (waiter,),
            exit=(waiter.exited,) + self._exit,
        )

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(**{
            "stdout": self._stdout,
            "stderr": self._stderr,
            "start": self._start,
            "exit": self._exit,
        } | overrides)

    def __eq__(self, other):
        if not isinstance(other, ListenerSet):
            return NotImplemented
        return (
            self._stdout == other._stdout and
            self._stderr == other._stderr and
            self._start == other._start and
            self._exit == other._exit
        )

    def __hash__(self):
        return hash((self._stdout, self._stderr, self._start, self._exit))

    def __repr__(self):
        return (
            f"ListenerSet(stdout={len(self._stdout)}, stderr={len(self._stderr)}, "
            f"start={len(self._start)}, exit={len(self._exit)})"
        )


class LineCollector:
    """accumulates every line it receives."""

    def __init__(self):
        self._lines = []
        self._lock = threading.Lock()

    def __call__(self, line, /):
        with self._lock:
            self._lines.append(line)

    @property
    def lines(self):
        with self._lock:
            return tuple(self._lines)

    def __str__(self):
        return "\n".join(self.lines)


class ExitCodeRecorder:
    """remembers the most recent exit code (None until the process exits)."""

    def __init__(self):
        self.exit_code = None

    def __call__(self, exit_code, /):
        self.exit_code = exit_code

    @property
    def succeeded(self):
        return self.exit_code == 0


class PatternWaiter:
    """
    blocks a waiter until a line matches `pattern`, for at most `timeout` seconds.

    matching uses re.search, so the pattern may match anywhere in the line.
    """

    def __init__(self, pattern, timeout, /):
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        if not isinstance(pattern, re.Pattern):
            raise TypeError("PatternWaiter 'pattern' must be a string or a compiled pattern")
        if isinstance(timeout, bool) or not isinstance(timeout, int | float):
            raise TypeError("PatternWaiter 'timeout' must be a number of seconds")
        if timeout <= 0:
            raise InvalidConfigurationError("PatternWaiter 'timeout' must be positive", timeout=timeout)
        self._pattern = pattern
        self._timeout = float(timeout)
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._line = None
        self._exit_code = None

    pattern = property(lambda self: self._pattern)
    timeout = property(lambda self: self._timeout)

    @property
    def matched(self):
        return self._line is not None

    def __call__(self, line, /):
        if self._event.is_set() or not self._pattern.search(line):
            return
        with self._lock:
            if not self._event.is_set():
                self._line = line
                self._event.set()

    def exited(self, exit_code, /):
        with self._lock:
            if not self._event.is_set():
                self._exit_code = exit_code
                self._event.set()

    def wait(self):
        """
        block until a match, the process exit, or the timeout.

        returns the matching line.
        """
        deadline = time.monotonic() + self._timeout
        while not self._event.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ProcessTimeoutError(
                    f"no line matching {self._pattern.pattern!r} within {self._timeout:g} seconds.",
                    timeout=self._timeout,
                )
            self._event.wait(remaining)
        if self._line is None:
            raise ProcessExitedError(
                f"process exited with code {self._exit_code} before printing a line matching "
                f"{self._pattern.pattern!r}.",
                exit_code=self._exit_code,
            )
        return self._line

    def __repr__(self):
        return f"PatternWaiter({self._pattern.pattern!r}, {self._timeout:g})"


__all__ = (
    "ListenerSet",
    "LineCollector",
    "ExitCodeRecorder",
    "PatternWaiter",
)
