"""
Helmsman faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every failure the
  orchestration layer can surface (flag validation, configuration, process
  lifecycle, soft interrupts).
- HelmsmanException / HelmsmanWarning: base types that carry message + options
  and know how to render themselves through rich.
- trigger(): central entry point to surface a fault (raise, warn, or print in
  shell mode).

Taxonomy
- raised before any process exists
  • InvalidFlagError, InvalidConfigurationError, InvalidDirectoryError,
    SdkNotFoundError
- raised around a live process
  • ProcessLaunchError, ProcessExecutionError (carries exit_code),
    ProcessTimeoutError, ProcessExitedError, ProcessCancelledError,
    RunnerStateError
- soft failures
  • InterruptedWarning

Integration
- Library code raises faults directly. Front-ends that prefer friendly output
  call trigger(fault, shell=True) and get a rendered panel on stderr instead of
  a traceback.
- Hosts can remap codes through a __codes__ mapping and restyle output through
  a __styles__ mapping, both looked up in __main__.
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - flags (2110x)
      • UNKNOWN_FLAG, INVALID_FLAG_VALUE, MISSING_FLAG_VALUE
    - configuration (2120x)
      • INVALID_CONFIGURATION, INVALID_DIRECTORY, SDK_NOT_FOUND
    - process lifecycle (2130x)
      • PROCESS_LAUNCH_FAILURE, PROCESS_EXECUTION_FAILURE, PROCESS_TIMEOUT,
        PROCESS_EXITED, PROCESS_CANCELLED, RUNNER_STATE
    - warnings (22xxx)
      • INTERRUPTED

    spacing leaves room for additions without reshuffling existing codes.
    """
    # --- flag errors (211xx) ---
    UNKNOWN_FLAG                = 21101
    INVALID_FLAG_VALUE          = 21102
    MISSING_FLAG_VALUE          = 21103

    # --- configuration errors (212xx) ---
    INVALID_CONFIGURATION       = 21201
    INVALID_DIRECTORY           = 21202
    SDK_NOT_FOUND               = 21203

    # --- process errors (213xx) ---
    PROCESS_LAUNCH_FAILURE      = 21301
    PROCESS_EXECUTION_FAILURE   = 21302
    PROCESS_TIMEOUT             = 21303
    PROCESS_EXITED              = 21304
    PROCESS_CANCELLED           = 21305
    RUNNER_STATE                = 21306

    # --- warnings (22xxx) ---
    INTERRUPTED                 = 22301

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)
    fancy = fault.options.get("fancy", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    prog = text(getattr(main, "__prog__", "helmsman"), "prog-name")
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(fault.options["code"].normalize(), "code"),
        " | ",
        text(fault.options["title"].title(), "title"),
        " ]"
    )
    message = text(coalesce(fault.message, ""), "message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(fault.options["hint"], "hint"))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class HelmsmanException(Exception):
    """
    base of every helmsman error.

    class-level defaults (code, title, hint) can be overridden per instance
    through keyword options; any other keyword option is kept in the read-only
    `options` mapping and used by subclasses for structured fields.
    """
    code = FaultCode.INVALID_CONFIGURATION
    title = "error"
    hint = ""

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, type(self).title))
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).code,
            "title": type(self).title,
            "hint": type(self).hint,
        } | options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from None
        console.print(self)
        if self.options.get("deferred"):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidFlagError(HelmsmanException, ValueError):
    code = FaultCode.INVALID_FLAG_VALUE
    title = "invalid flag"
    hint = "check the flag against the flags accepted by this action"

    flag = property(lambda self: self.options.get("flag"))
    value = property(lambda self: self.options.get("value"))


class InvalidConfigurationError(HelmsmanException, ValueError):
    code = FaultCode.INVALID_CONFIGURATION
    title = "invalid configuration"
    hint = "fix the configuration before running the action again"


class InvalidDirectoryError(InvalidConfigurationError):
    code = FaultCode.INVALID_DIRECTORY
    title = "invalid directory"
    hint = "point the action at an existing directory"

    path = property(lambda self: self.options.get("path"))


class SdkNotFoundError(InvalidConfigurationError):
    code = FaultCode.SDK_NOT_FOUND
    title = "sdk not found"
    hint = "pass the root directory of an installed sdk"

    path = property(lambda self: self.options.get("path"))


class ProcessLaunchError(HelmsmanException, OSError):
    code = FaultCode.PROCESS_LAUNCH_FAILURE
    title = "process launch failure"
    hint = "make sure the tool exists and is executable"

    command = property(lambda self: self.options.get("command"))


class ProcessExecutionError(HelmsmanException):
    code = FaultCode.PROCESS_EXECUTION_FAILURE
    title = "process execution failure"
    hint = "inspect the tool output for the reason it failed"

    def __init__(self, message=Unset, /, *, exit_code, **options):
        if not isinstance(exit_code, int):
            raise TypeError("ProcessExecutionError 'exit_code' must be an integer")
        super().__init__(
            coalesce(message, f"process exited with code {exit_code}"),
            exit_code=exit_code,
            **options
        )

    exit_code = property(lambda self: self.options["exit_code"])


class ProcessTimeoutError(HelmsmanException, TimeoutError):
    code = FaultCode.PROCESS_TIMEOUT
    title = "process timeout"
    hint = "raise the timeout or check that the process is making progress"

    timeout = property(lambda self: self.options.get("timeout"))


class ProcessExitedError(HelmsmanException):
    code = FaultCode.PROCESS_EXITED
    title = "process exited"
    hint = "the process stopped before reporting that it was ready"

    exit_code = property(lambda self: self.options.get("exit_code"))


class ProcessCancelledError(HelmsmanException):
    code = FaultCode.PROCESS_CANCELLED
    title = "process cancelled"
    hint = "the invocation was cancelled before it produced a result"


class RunnerStateError(HelmsmanException, RuntimeError):
    code = FaultCode.RUNNER_STATE
    title = "runner already used"
    hint = "create a new runner for every process"


class HelmsmanWarning(UserWarning):
    code = FaultCode.INTERRUPTED
    title = "warning"
    hint = ""

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, type(self).title))
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).code,
            "title": type(self).title,
            "hint": type(self).hint,
        } | options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if not self.options.get("shell"):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InterruptedWarning(HelmsmanWarning):
    code = FaultCode.INTERRUPTED
    title = "interrupted"
    hint = "the process keeps running; cancel it explicitly if needed"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise errors are
      raised and warnings are emitted through the warnings module.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "HelmsmanException",
    "InvalidFlagError",
    "InvalidConfigurationError",
    "InvalidDirectoryError",
    "SdkNotFoundError",
    "ProcessLaunchError",
    "ProcessExecutionError",
    "ProcessTimeoutError",
    "ProcessExitedError",
    "ProcessCancelledError",
    "RunnerStateError",
    "HelmsmanWarning",
    "InterruptedWarning",
    "trigger",
)
