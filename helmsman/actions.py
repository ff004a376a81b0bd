"""
Actions: one orchestrated unit of work per class.

Overview
- Action: base class. An action is built from an Sdk and a caller flag map; the
  flags are resolved against the catalog and validated against the class-level
  `accepted` set when the action is constructed, so a bad flag never reaches a
  process.
  • invocation(): check preconditions and build the Invocation.
  • execute(listeners): run synchronously, return the finished ProcessHandle.
  • start(listeners, converter): run asynchronously, return a ProcessFuture.

- gcloud actions: Deploy, GenConfig, GenRepoInfoFile and the module actions
  (ListModules, StartModules, StopModules, DeleteModules, SetDefault,
  SetManagedBy, GetLogs).
- dev server: Run (optionally waits for the readiness line when started).
- appcfg: Stage.

Command shapes (gcloud decorations omitted)
- Deploy        gcloud app deploy <staged>/app.yaml [flags]            cwd=<staged>
- GenConfig     gcloud app gen-config [source] [flags]
- GetLogs       gcloud app modules get-logs <modules> [file] --version v [flags]
- DeleteModules gcloud app modules delete <modules|default> --version v [flags]
- SetManagedBy  gcloud app modules set-managed-by <modules> --version v --self|--google [flags]
- Run           dev_appserver.py <app.yaml...> [flags] [--jvm_flag f ...]
- Stage         java ... AppCfg stage <source> <destination> [--flag=value ...]
"""
import os
from pathlib import Path

from .args import path, repeated
from .command import require_directory
from .faults import InvalidConfigurationError
from .futures import DeployResult, submit
from .listeners import ListenerSet, PatternWaiter
from .options import Option
from .process import Mode, ProcessRunner
from .sdk import DEV_SERVER_READY, Sdk
from .validation import flagmap, validate


def _tokens(values, what, /):
    if values is None:
        return ()
    if isinstance(values, str | os.PathLike):
        values = (values,)
    values = tuple(os.fspath(value) for value in values)
    for value in values:
        if not value:
            raise InvalidConfigurationError(f"empty {what} given.")
    return values


class Action:
    name = "action"
    accepted = frozenset()

    def __init__(self, sdk, flags=None, /):
        if not isinstance(sdk, Sdk):
            raise TypeError(f"{type(self).__name__} 'sdk' must be an Sdk")
        self._sdk = sdk
        self._flags = flagmap(flags)
        validate(self._flags, self.accepted, action=self.name)

    sdk = property(lambda self: self._sdk)
    flags = property(lambda self: self._flags)

    def invocation(self):
        raise NotImplementedError

    def command(self):
        return self.invocation().command

    def execute(self, listeners=None, /, *, inherit=False):
        """
        run the action to completion.

        a non-zero exit raises ProcessExecutionError carrying the exit code.
        """
        invocation = self.invocation()
        runner = ProcessRunner(listeners, mode=Mode.SYNC, inherit=inherit)
        return runner.run(invocation.command, cwd=invocation.cwd, env=invocation.env)

    def start(self, listeners=None, /, converter=str):
        """start the action in the background and return its ProcessFuture."""
        invocation = self.invocation()
        return submit(
            invocation.command,
            listeners=listeners,
            converter=converter,
            cwd=invocation.cwd,
            env=invocation.env,
        )

    def __repr__(self):
        return f"<{type(self).__name__} flags={[option.long_form for option in self._flags]}>"


class Deploy(Action):
    name = "deploy"
    accepted = frozenset({
        Option.BUCKET,
        Option.DOCKER_BUILD,
        Option.FORCE,
        Option.IMAGE_URL,
        Option.PROJECT,
        Option.PROMOTE,
        Option.SERVER,
        Option.STOP_PREVIOUS_VERSION,
        Option.VERSION,
    })

    def __init__(self, sdk, staged, flags=None, /):
        super().__init__(sdk, flags)
        if staged is None:
            raise InvalidConfigurationError("a staging directory is required.")
        self._staged = staged

    def invocation(self):
        staged = require_directory(self._staged, what="staging directory")
        return self._sdk.gcloud(("deploy",), (staged / "app.yaml",), self._flags, cwd=staged)

    def start(self, listeners=None, /, converter=DeployResult):
        return super().start(listeners, converter)


class GenConfig(Action):
    name = "gen-config"
    accepted = frozenset({Option.CONFIG, Option.CUSTOM, Option.RUNTIME})

    def __init__(self, sdk, source=None, flags=None, /):
        super().__init__(sdk, flags)
        self._source = source

    def invocation(self):
        positionals = ()
        if self._source is not None and os.fspath(self._source):
            positionals = (require_directory(self._source, what="source directory"),)
        return self._sdk.gcloud(("gen-config",), positionals, self._flags)


class GenRepoInfoFile(Action):
    """writes source context files through gcloud beta debug source."""
    name = "gen-repo-info-file"

    def __init__(self, sdk, /, *, output_directory=None, source_directory=None):
        super().__init__(sdk)
        self._output_directory = output_directory
        self._source_directory = source_directory

    def invocation(self):
        positionals = [
            *path("output-directory", self._output_directory),
            *path("source-directory", self._source_directory),
        ]
        return self._sdk.gcloud(
            ("gen-repo-info-file",),
            positionals,
            self._flags,
            group=("beta", "debug", "source"),
        )


class Run(Action):
    """
    local development server.

    when the Sdk has a ready_timeout, start() blocks until the server prints its
    readiness line. if the wait fails for any reason (timeout, early exit,
    Ctrl+C) the server is cancelled before the error propagates.
    """
    name = "run"
    accepted = frozenset({
        Option.HOST,
        Option.PORT,
        Option.ADMIN_HOST,
        Option.ADMIN_PORT,
        Option.AUTH_DOMAIN,
        Option.STORAGE_PATH,
        Option.LOG_LEVEL,
        Option.MAX_MODULE_INSTANCES,
        Option.USE_MTIME_FILE_WATCHER,
        Option.THREADSAFE_OVERRIDE,
        Option.PYTHON_STARTUP_SCRIPT,
        Option.PYTHON_STARTUP_ARGS,
        Option.JVM_FLAG,
        Option.CUSTOM_ENTRYPOINT,
        Option.RUNTIME,
        Option.ALLOW_SKIPPED_FILES,
        Option.API_PORT,
        Option.AUTOMATIC_RESTART,
        Option.DEV_APPSERVER_LOG_LEVEL,
        Option.SKIP_SDK_UPDATE_CHECK,
        Option.DEFAULT_GCS_BUCKET_NAME,
    })

    def __init__(self, sdk, app_yamls, flags=None, /, *, java_home=None, jvm_flags=()):
        super().__init__(sdk, flags)
        self._app_yamls = _tokens(app_yamls, "app.yaml path")
        if not self._app_yamls:
            raise InvalidConfigurationError("at least one app.yaml is required.")
        self._java_home = java_home
        self._jvm_flags = _tokens(jvm_flags, "jvm flag")

    def invocation(self):
        env = {}
        if self._java_home:
            env["JAVA_HOME"] = os.fspath(self._java_home)
        return self._sdk.dev_appserver(
            self._app_yamls,
            self._flags,
            extra=repeated("jvm_flag", self._jvm_flags),
            env=env,
        )

    def start(self, listeners=None, /, converter=str):
        if (timeout := self._sdk.ready_timeout) is None:
            return super().start(listeners, converter)
        waiter = PatternWaiter(DEV_SERVER_READY, timeout)
        listeners = (listeners if listeners is not None else ListenerSet()).waiting_for(waiter)
        future = super().start(listeners, converter)
        try:
            waiter.wait()
        except BaseException:
            future.cancel()
            raise
        return future


class Stage(Action):
    name = "stage"
    accepted = frozenset({
        Option.ENABLE_QUICKSTART,
        Option.DISABLE_UPDATE_CHECK,
        Option.VERSION,
        Option.PROJECT,
        Option.ENABLE_JAR_SPLITTING,
        Option.JAR_SPLITTING_EXCLUDES,
        Option.RETAIN_UPLOAD_DIR,
        Option.COMPILE_ENCODING,
        Option.FORCE,
        Option.DELETE_JSPS,
        Option.ENABLE_JAR_CLASSES,
        Option.RUNTIME,
    })

    def __init__(self, sdk, source, destination, flags=None, /):
        super().__init__(sdk, flags)
        if destination is None or not os.fspath(destination):
            raise InvalidConfigurationError("a staging destination is required.")
        self._source = source
        self._destination = destination

    def invocation(self):
        source = require_directory(self._source, what="source directory")
        return self._sdk.appcfg(
            ("stage",),
            (source.absolute(), Path(self._destination).absolute()),
            self._flags,
        )


class _ModuleAction(Action):
    subcommand = None

    def __init__(self, sdk, modules, version, flags=None, /):
        super().__init__(sdk, flags)
        if not version:
            raise InvalidConfigurationError(f"the {self.name} command needs a version.")
        self._modules = _tokens(modules, "module name")
        self._version = version

    modules = property(lambda self: self._modules)
    version = property(lambda self: self._version)

    def positionals(self):
        return (*self._modules, "--version", self._version)

    def invocation(self):
        return self._sdk.gcloud(("modules", self.subcommand), self.positionals(), self._flags)


class StartModules(_ModuleAction):
    name = subcommand = "start"
    accepted = frozenset({Option.SERVER})


class StopModules(_ModuleAction):
    name = subcommand = "stop"
    accepted = frozenset({Option.SERVER})


class SetDefault(_ModuleAction):
    name = subcommand = "set-default"
    accepted = frozenset({Option.SERVER})


class DeleteModules(_ModuleAction):
    name = subcommand = "delete"
    accepted = frozenset({Option.SERVER})

    def positionals(self):
        return (*(self._modules or ("default",)), "--version", self._version)


class SetManagedBy(_ModuleAction):
    name = subcommand = "set-managed-by"
    accepted = frozenset({Option.INSTANCE, Option.SERVER})

    def __init__(self, sdk, modules, version, managed_by, flags=None, /):
        super().__init__(sdk, modules, version, flags)
        if managed_by not in (Option.SELF, Option.GOOGLE):
            raise InvalidConfigurationError(
                f"modules are managed by {Option.SELF.long_form} or {Option.GOOGLE.long_form}, not {managed_by!r}.",
            )
        self._managed_by = managed_by

    def positionals(self):
        return (*super().positionals(), self._managed_by.long_form)


class GetLogs(_ModuleAction):
    name = subcommand = "get-logs"
    accepted = frozenset({
        Option.APPEND,
        Option.DAYS,
        Option.DETAILS,
        Option.END_DATE,
        Option.SERVER,
        Option.SEVERITY,
        Option.VHOST,
    })

    def __init__(self, sdk, modules, version, flags=None, /, *, log_file=None):
        super().__init__(sdk, modules, version, flags)
        self._log_file = log_file

    def positionals(self):
        log_file = (os.fspath(self._log_file),) if self._log_file else ()
        return (*self._modules, *log_file, "--version", self._version)


class ListModules(Action):
    name = "list"
    accepted = frozenset({Option.SERVER})

    def __init__(self, sdk, modules=(), flags=None, /):
        super().__init__(sdk, flags)
        self._modules = _tokens(modules, "module name")

    modules = property(lambda self: self._modules)

    def invocation(self):
        return self._sdk.gcloud(("modules", "list"), self._modules, self._flags)


__all__ = (
    "Action",
    "Deploy",
    "GenConfig",
    "GenRepoInfoFile",
    "Run",
    "Stage",
    "StartModules",
    "StopModules",
    "SetDefault",
    "DeleteModules",
    "SetManagedBy",
    "GetLogs",
    "ListModules",
)
