"""
Future handle over one asynchronously launched process.

Overview
- ProcessFuture(handle, converter=str, lines=collector)
  • cancel(force=True): terminate the process (kill after a grace period).
    With force=False an already exited process is left alone and False is
    returned.
  • cancelled() / done(): non-blocking state queries.
  • result(timeout=None): block on the handle's completion event, then return
    converter("\n".join(stdout lines)). Raises ProcessCancelledError,
    ProcessExecutionError (non-zero exit) or ProcessTimeoutError.
- submit(command, ...): launch a command asynchronously with a stdout collector
  attached and wrap the handle in a ProcessFuture.
- DeployResult: converter for the output of a deployment.
"""
import threading
from dataclasses import dataclass

from .faults import ProcessCancelledError, ProcessExecutionError, ProcessTimeoutError
from .listeners import LineCollector, ListenerSet
from .process import Mode, ProcessRunner


class ProcessFuture:
    def __init__(self, handle, /, converter=str, *, lines=None):
        if not callable(converter):
            raise TypeError("ProcessFuture 'converter' must be callable")
        self._handle = handle
        self._converter = converter
        self._lines = lines
        self._cancelled = False
        self._lock = threading.Lock()

    handle = property(lambda self: self._handle)

    def cancel(self, force=True):
        """
        stop the process; returns False only when force is off and it already exited.
        """
        with self._lock:
            if not force and not self._handle.running:
                return False
            self._handle.terminate()
            self._cancelled = True
            return True

    def cancelled(self):
        return self._cancelled

    def done(self):
        return self._cancelled or self._handle.finished

    def result(self, timeout=None):
        """
        wait for the process and return its converted standard output.
        """
        if self._cancelled:
            raise ProcessCancelledError(f"{self._handle.command.tool} was cancelled.")
        if not self._handle.wait(timeout):
            raise ProcessTimeoutError(
                f"{self._handle.command.tool} did not finish within {timeout:g} seconds.",
                timeout=timeout,
            )
        if self._cancelled:
            raise ProcessCancelledError(f"{self._handle.command.tool} was cancelled.")
        if (exit_code := self._handle.exit_code) != 0:
            raise ProcessExecutionError(
                f"{self._handle.command.tool} exited with code {exit_code}.",
                exit_code=exit_code,
                command=str(self._handle.command),
            )
        output = "\n".join(self._lines.lines) if self._lines is not None else ""
        return self._converter(output)

    def __repr__(self):
        if self._cancelled:
            state = "cancelled"
        elif self._handle.finished:
            state = f"finished exit_code={self._handle.exit_code}"
        else:
            state = "running"
        return f"<ProcessFuture pid={self._handle.pid} {state}>"


def submit(command, /, *, listeners=None, converter=str, cwd=None, env=None):
    """
    launch `command` asynchronously and return a ProcessFuture over its stdout.
    """
    collector = LineCollector()
    listeners = (listeners if listeners is not None else ListenerSet()).on_stdout(collector)
    handle = ProcessRunner(listeners, mode=Mode.ASYNC).run(command, cwd=cwd, env=env)
    return ProcessFuture(handle, converter, lines=collector)


@dataclass(frozen=True, slots=True)
class DeployResult:
    """standard output of a finished deployment."""
    data: str

    @property
    def lines(self):
        return tuple(self.data.splitlines())


__all__ = (
    "ProcessFuture",
    "submit",
    "DeployResult",
)
