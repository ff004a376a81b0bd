r"""
SDK layout and tool invocations.

Scope
- Sdk: the tools installed under one SDK root directory, handed in by the
  caller (discovering the installation is not this module's job).
  • gcloud:        <root>/bin/gcloud             (gcloud.cmd on Windows)
  • dev server:    <root>/bin/dev_appserver.py   (run through python on Windows)
  • appcfg:        java -cp <root>/platform/google_appengine/google/appengine/
                   tools/java/lib/appengine-tools-api.jar
                   com.google.appengine.tools.admin.AppCfg
- Invocation: the ready-to-run triple (command, environment overrides, cwd).

Decorations
- gcloud commands always end with --quiet, then --format <fmt> when an output
  format is configured, then --credential-file-override <file> when a
  credential file is configured (which also sets CLOUDSDK_APP_USE_GSUTIL=0).
- CLOUDSDK_METRICS_ENVIRONMENT[_VERSION] are exported when configured.
- dev server commands export CLOUDSDK_CORE_DISABLE_PROMPTS=1 so missing
  components are installed without prompting.
- appcfg receives the SDK root as a JVM system property on its command line.

Validation
- validate() checks the root is a directory and that gcloud and
  dev_appserver.py are regular files; validate_java_components() checks the
  appcfg jar. Both raise SdkNotFoundError and run before every command is built.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from .args import Style
from .command import Command, assemble
from .faults import InvalidConfigurationError, SdkNotFoundError
from .utils import freeze, mirror

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"

GCLOUD = Path("bin", "gcloud")
DEV_APPSERVER = Path("bin", "dev_appserver.py")
JAVA_APPENGINE_SDK = Path("platform", "google_appengine", "google", "appengine", "tools", "java", "lib")
JAVA_TOOLS_JAR = "appengine-tools-api.jar"
WINDOWS_BUNDLED_PYTHON = Path("platform", "bundledpython", "python.exe")
APPCFG_MAIN = "com.google.appengine.tools.admin.AppCfg"

DEV_SERVER_READY = r"Dev App Server is now running|INFO:oejs\.Server:main: Started"


@dataclass(frozen=True, slots=True)
class Invocation:
    """a command plus the environment overrides and working directory to run it with."""
    command: Command
    env: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    cwd: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "env", freeze(self.env))
        if self.cwd is not None:
            object.__setattr__(self, "cwd", os.fspath(self.cwd))


class Sdk:
    """
    an installed SDK rooted at `path`.

    Parameters
    - output_format: gcloud --format value (csv, json, yaml, ...).
    - metrics_environment / metrics_environment_version: reported to gcloud.
    - credential_file: gcloud credential override file.
    - ready_timeout: seconds an asynchronous dev server start waits for its
      readiness line; None disables waiting.
    """

    def __init__(
        self,
        path,
        /, *,
        output_format=None,
        metrics_environment=None,
        metrics_environment_version=None,
        credential_file=None,
        ready_timeout=None,
    ):
        if path is None or not os.fspath(path):
            raise SdkNotFoundError("sdk path was not provided.", path=None)
        if ready_timeout is not None:
            if isinstance(ready_timeout, bool) or not isinstance(ready_timeout, int | float):
                raise TypeError("Sdk 'ready_timeout' must be a number of seconds")
            if ready_timeout <= 0:
                raise InvalidConfigurationError(
                    "sdk readiness timeout must be positive.",
                    timeout=ready_timeout,
                )
        self._path = Path(path)
        self._output_format = output_format
        self._metrics_environment = metrics_environment
        self._metrics_environment_version = metrics_environment_version
        self._credential_file = None if credential_file is None else Path(credential_file)
        self._ready_timeout = ready_timeout

    path = mirror("path")
    output_format = mirror("output_format")
    metrics_environment = mirror("metrics_environment")
    metrics_environment_version = mirror("metrics_environment_version")
    credential_file = mirror("credential_file")
    ready_timeout = mirror("ready_timeout")

    @classmethod
    def from_settings(cls, settings, /):
        """build an Sdk from helmsman.config.Settings."""
        return cls(
            settings.sdk_path,
            output_format=settings.output_format,
            metrics_environment=settings.metrics_environment,
            metrics_environment_version=settings.metrics_environment_version,
            credential_file=settings.credential_file,
            ready_timeout=settings.ready_timeout,
        )

    @property
    def gcloud_path(self):
        if IS_WINDOWS:
            return self._path / GCLOUD.with_suffix(".cmd")
        return self._path / GCLOUD

    @property
    def dev_appserver_path(self):
        return self._path / DEV_APPSERVER

    @property
    def java_sdk_path(self):
        return self._path / JAVA_APPENGINE_SDK

    @property
    def tools_jar_path(self):
        return self.java_sdk_path / JAVA_TOOLS_JAR

    def python_path(self):
        """
        interpreter for dev_appserver.py on Windows.

        CLOUDSDK_PYTHON wins when set (and must exist); then the bundled python;
        then whatever "python" resolves to.
        """
        if configured := os.environ.get("CLOUDSDK_PYTHON"):
            if not Path(configured).exists():
                raise InvalidConfigurationError(
                    f"python binary not in specified location {configured}.",
                    path=configured,
                    hint="fix or unset CLOUDSDK_PYTHON",
                )
            return Path(configured)
        if (bundled := self._path / WINDOWS_BUNDLED_PYTHON).exists():
            return bundled
        logger.debug("no bundled python under %s, using the one on PATH", self._path)
        return Path("python")

    def validate(self):
        if not self._path.is_dir():
            raise SdkNotFoundError(f"sdk location {self._path} is not a directory.", path=str(self._path))
        if not self.gcloud_path.is_file():
            raise SdkNotFoundError(f"gcloud location {self.gcloud_path} is not a file.", path=str(self.gcloud_path))
        if not self.dev_appserver_path.is_file():
            raise SdkNotFoundError(
                f"dev_appserver.py location {self.dev_appserver_path} is not a file.",
                path=str(self.dev_appserver_path),
            )

    def validate_java_components(self):
        hint = "install them with 'gcloud components install app-engine-java'"
        if not self.java_sdk_path.is_dir():
            raise SdkNotFoundError(
                "java components are not installed.",
                path=str(self.java_sdk_path),
                hint=hint,
            )
        if not self.tools_jar_path.is_file():
            raise SdkNotFoundError(
                f"java tools jar location {self.tools_jar_path} is not a file.",
                path=str(self.tools_jar_path),
                hint=hint,
            )

    def gcloud(self, fixed=(), positionals=(), flags=None, /, *, group=("app",), cwd=None):
        """
        gcloud <group...> <fixed...> <positionals...> <flags...> --quiet [decorations]
        """
        self.validate()
        extra = ["--quiet"]
        env = {}
        if self._output_format:
            extra += ["--format", self._output_format]
        if self._credential_file is not None:
            extra += ["--credential-file-override", os.fspath(self._credential_file)]
            env["CLOUDSDK_APP_USE_GSUTIL"] = "0"
        if self._metrics_environment is not None:
            env["CLOUDSDK_METRICS_ENVIRONMENT"] = self._metrics_environment
        if self._metrics_environment_version is not None:
            env["CLOUDSDK_METRICS_ENVIRONMENT_VERSION"] = self._metrics_environment_version

        command = assemble(
            self.gcloud_path,
            (*group, *fixed),
            positionals,
            flags,
            style=Style.SPACED,
            extra=extra,
        )
        return Invocation(command, env, cwd)

    def dev_appserver(self, positionals=(), flags=None, /, *, extra=(), env=None, cwd=None):
        """
        [python] dev_appserver.py <positionals...> <flags...> <extra...>
        """
        self.validate()
        overrides = dict(env or {})
        overrides["CLOUDSDK_CORE_DISABLE_PROMPTS"] = "1"
        command = assemble(
            self.dev_appserver_path,
            (),
            positionals,
            flags,
            style=Style.PRESENCE,
            extra=extra,
        )
        if IS_WINDOWS:
            command = Command((os.fspath(self.python_path()), *command))
        return Invocation(command, overrides, cwd)

    def appcfg(self, fixed=(), positionals=(), flags=None, /, *, java=None, cwd=None):
        """
        java -Dappengine.sdk.root=<sdk> -cp <tools jar> AppCfg <fixed...> <positionals...> <flags...>
        """
        self.validate_java_components()
        if java is None:
            java = Path(home, "bin", "java") if (home := os.environ.get("JAVA_HOME")) else "java"
        command = assemble(
            java,
            (
                f"-Dappengine.sdk.root={self.java_sdk_path}",
                "-cp",
                os.fspath(self.tools_jar_path),
                APPCFG_MAIN,
                *fixed,
            ),
            positionals,
            flags,
            style=Style.EQUALS,
        )
        return Invocation(command, {}, cwd)

    def __repr__(self):
        return f"Sdk({os.fspath(self._path)!r})"


__all__ = (
    "Sdk",
    "Invocation",
    "DEV_SERVER_READY",
)
