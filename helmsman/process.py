"""
Process runner.

Overview
- ProcessRunner: launches exactly one external process for a Command.
  • Mode.SYNC waits for the exit; a non-zero exit raises ProcessExecutionError.
  • Mode.ASYNC returns at once; an exit-watcher thread reports the exit code to
    the exit listeners and to the handle.
  • A launch failure (the OS could not create the process) raises
    ProcessLaunchError in both modes, since there is nothing to watch.
- ProcessHandle: the live process plus its working directory, environment
  overrides, reader threads and (eventually) its exit code.
- Capture / ProcessRunner.capturing(): preset that buffers both streams into
  strings and records the exit code.

Streams
- A stream with line listeners is piped and drained by its own daemon thread,
  line by line, in production order; a stream without listeners is inherited
  from this process. Asking for inherited output while line listeners are
  registered is a configuration error.
- Exit listeners fire only after both readers reached end of stream, so they
  observe every line.

Environment
- Overrides are merged over a copy of os.environ; os.environ is never touched.

Notes
- A runner is single-use; a second run() raises RunnerStateError.
- Ctrl+C while a synchronous run is waiting is a soft failure: an
  InterruptedWarning is emitted, the child keeps running under an exit watcher,
  and the handle is returned without an exit code.
"""
import enum
import logging
import os
import subprocess
import threading

from .command import Command
from .faults import (
    InterruptedWarning,
    InvalidConfigurationError,
    ProcessExecutionError,
    ProcessLaunchError,
    RunnerStateError,
    trigger,
)
from .listeners import ExitCodeRecorder, LineCollector, ListenerSet
from .utils import freeze, mirror

logger = logging.getLogger(__name__)

TERMINATE_GRACE = 5.0
READER_JOIN_TIMEOUT = 2.0


class Mode(enum.Enum):
    SYNC = "sync"
    ASYNC = "async"


def _dispatch(listeners, argument, /):
    for listener in listeners:
        try:
            listener(argument)
        except Exception:
            logger.exception("listener %r failed", listener)


def _drain(stream, listeners, /):
    try:
        for line in iter(stream.readline, ""):
            _dispatch(listeners, line.rstrip("\r\n"))
    finally:
        stream.close()


class ProcessHandle:
    """
    one launched OS process.

    the handle owns the reader threads and the exit watcher; close() joins the
    readers and is called on every path that observes the exit.
    """

    def __init__(self, process, command, /, *, cwd=None, env=None, mode=Mode.SYNC):
        self._process = process
        self._command = command
        self._cwd = cwd
        self._env = freeze(env)
        self._mode = mode
        self._readers = []
        self._exit_code = None
        self._finished = threading.Event()

    command = mirror("command")
    cwd = mirror("cwd")
    env = mirror("env")
    mode = mirror("mode")

    process = property(lambda self: self._process)
    pid = property(lambda self: self._process.pid)
    exit_code = property(lambda self: self._exit_code)

    @property
    def finished(self):
        """true once the exit was observed and the exit listeners ran."""
        return self._finished.is_set()

    @property
    def running(self):
        return self._process.poll() is None

    def wait(self, timeout=None):
        """
        block until the exit was observed; false if `timeout` elapsed first.
        """
        return self._finished.wait(timeout)

    def terminate(self, grace=TERMINATE_GRACE):
        """
        stop the process: terminate, then kill if it outlives `grace` seconds.

        returns the OS exit status, or None when the process had already exited.
        """
        if self._process.poll() is not None:
            return None
        logger.info("terminating pid %s", self._process.pid)
        self._process.terminate()
        try:
            return self._process.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            logger.warning("pid %s ignored terminate, killing it", self._process.pid)
            self._process.kill()
            return self._process.wait()

    def close(self, timeout=READER_JOIN_TIMEOUT):
        """join the reader threads (each for at most `timeout` seconds)."""
        current = threading.current_thread()
        for reader in self._readers:
            if reader is not current:
                reader.join(timeout=timeout)
            if reader.is_alive():
                logger.debug("reader %s still running after close()", reader.name)

    def _attach(self, stream, listeners, name, /):
        if stream is None:
            return
        reader = threading.Thread(
            target=_drain,
            args=(stream, listeners),
            name=f"helmsman-{name}-{self._process.pid}",
            daemon=True,
        )
        self._readers.append(reader)
        reader.start()

    def _complete(self, exit_code, listeners, /):
        self.close()
        self._exit_code = exit_code
        logger.debug("pid %s exited with code %s", self._process.pid, exit_code)
        _dispatch(listeners, exit_code)
        self._finished.set()

    def _supervise(self, listeners, /):
        watcher = threading.Thread(
            target=lambda: self._complete(self._process.wait(), listeners),
            name=f"helmsman-exit-{self._process.pid}",
            daemon=True,
        )
        watcher.start()

    def __repr__(self):
        state = "running" if self._exit_code is None else f"exit_code={self._exit_code}"
        return f"<ProcessHandle pid={self._process.pid} {state} {self._command}>"


class ProcessRunner:
    """
    launches one process with a fixed ListenerSet.

    Parameters
    - listeners: callbacks for output lines, start and exit (default: none).
    - mode: Mode.SYNC (wait for exit) or Mode.ASYNC (return immediately).
    - inherit: request inherited output; not allowed with line listeners.
    """

    def __init__(self, listeners=None, /, *, mode=Mode.SYNC, inherit=False):
        if listeners is None:
            listeners = ListenerSet()
        if not isinstance(listeners, ListenerSet):
            raise TypeError("ProcessRunner 'listeners' must be a ListenerSet")
        if not isinstance(mode, Mode):
            raise TypeError("ProcessRunner 'mode' must be a Mode")
        if inherit and listeners.streaming:
            raise InvalidConfigurationError(
                "output cannot be inherited while line listeners are registered.",
                hint="drop the line listeners or stop inheriting output",
            )
        self._listeners = listeners
        self._mode = mode
        self._inherit = inherit
        self._guard = threading.Lock()

    listeners = property(lambda self: self._listeners)
    mode = property(lambda self: self._mode)
    inherit = property(lambda self: self._inherit)

    @property
    def used(self):
        return self._guard.locked()

    @classmethod
    def capturing(cls, /, *, mode=Mode.SYNC):
        """
        build a runner that buffers both streams; returns (runner, capture).
        """
        capture = Capture()
        return cls(capture.listeners, mode=mode), capture

    def run(self, command, /, *, cwd=None, env=None):
        """
        launch `command` and return its ProcessHandle.

        Raises
        - RunnerStateError: this runner already launched a process.
        - ProcessLaunchError: the OS could not create the process.
        - ProcessExecutionError: (sync only) the process exited with a non-zero code.
        """
        if not self._guard.acquire(blocking=False):
            raise RunnerStateError("this runner has already launched a process.")

        if not isinstance(command, Command):
            command = Command(command)
        overrides = freeze(env)
        environment = os.environ.copy()
        environment.update(overrides)
        if cwd is not None:
            cwd = os.fspath(cwd)

        logger.info("submitting command: %s", command)
        if cwd is not None:
            logger.debug("working directory: %s", cwd)
        if overrides:
            logger.debug("environment overrides: %s", ", ".join(sorted(overrides)))

        try:
            process = subprocess.Popen(
                list(command),
                cwd=cwd,
                env=environment,
                stdout=subprocess.PIPE if self._listeners.stdout else None,
                stderr=subprocess.PIPE if self._listeners.stderr else None,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as error:
            logger.error("failed to start %s: %s", command.tool, error)
            raise ProcessLaunchError(
                f"failed to start {command.tool}: {error}",
                command=str(command),
            ) from error

        handle = ProcessHandle(process, command, cwd=cwd, env=overrides, mode=self._mode)
        _dispatch(self._listeners.start, process)
        handle._attach(process.stdout, self._listeners.stdout, "stdout")
        handle._attach(process.stderr, self._listeners.stderr, "stderr")

        if self._mode is Mode.ASYNC:
            handle._supervise(self._listeners.exit)
            return handle

        try:
            exit_code = process.wait()
        except KeyboardInterrupt:
            logger.warning("interrupted while waiting for pid %s", process.pid)
            handle._supervise(self._listeners.exit)
            trigger(InterruptedWarning(
                f"interrupted while waiting for {command.tool} (pid {process.pid}).",
                pid=process.pid,
            ))
            return handle

        handle._complete(exit_code, self._listeners.exit)
        if exit_code != 0:
            raise ProcessExecutionError(
                f"{command.tool} exited with code {exit_code}.",
                exit_code=exit_code,
                command=str(command),
            )
        return handle


class Capture:
    """buffered stdout, stderr and exit code of one run."""

    def __init__(self):
        self._stdout = LineCollector()
        self._stderr = LineCollector()
        self._exit = ExitCodeRecorder()

    @property
    def listeners(self):
        return ListenerSet(stdout=(self._stdout,), stderr=(self._stderr,), exit=(self._exit,))

    stdout = property(lambda self: str(self._stdout))
    stderr = property(lambda self: str(self._stderr))
    exit_code = property(lambda self: self._exit.exit_code)

    def __repr__(self):
        return f"<Capture exit_code={self.exit_code}>"


__all__ = (
    "Mode",
    "ProcessHandle",
    "ProcessRunner",
    "Capture",
)
