"""
Helmsman settings.

Overview
- Settings: frozen dataclass with everything an Sdk and the logging setup need.
- Settings.from_environ(environ=os.environ): read HELMSMAN_* variables.

Variables
- HELMSMAN_SDK_PATH                     sdk root directory
- HELMSMAN_OUTPUT_FORMAT                gcloud --format value
- HELMSMAN_METRICS_ENVIRONMENT          CLOUDSDK_METRICS_ENVIRONMENT for gcloud
- HELMSMAN_METRICS_ENVIRONMENT_VERSION  CLOUDSDK_METRICS_ENVIRONMENT_VERSION for gcloud
- HELMSMAN_CREDENTIAL_FILE              gcloud credential override file
- HELMSMAN_READY_TIMEOUT                dev server readiness wait, in seconds
- HELMSMAN_LOG_LEVEL                    logging level name (default WARNING)

Empty variables count as unset. A malformed value raises
InvalidConfigurationError naming the variable.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .faults import InvalidConfigurationError

logger = logging.getLogger(__name__)

PREFIX = "HELMSMAN_"


@dataclass(frozen=True)
class Settings:
    sdk_path: Path | None = None
    output_format: str | None = None
    metrics_environment: str | None = None
    metrics_environment_version: str | None = None
    credential_file: Path | None = None
    ready_timeout: float | None = None
    log_level: str = "WARNING"

    @classmethod
    def from_environ(cls, environ=None):
        if environ is None:
            environ = os.environ

        def read(name):
            return environ.get(PREFIX + name) or None

        ready_timeout = read("READY_TIMEOUT")
        if ready_timeout is not None:
            try:
                ready_timeout = float(ready_timeout)
            except ValueError:
                raise InvalidConfigurationError(
                    f"{PREFIX}READY_TIMEOUT must be a number of seconds, not {ready_timeout!r}.",
                    variable=PREFIX + "READY_TIMEOUT",
                ) from None
            if ready_timeout <= 0:
                raise InvalidConfigurationError(
                    f"{PREFIX}READY_TIMEOUT must be positive.",
                    variable=PREFIX + "READY_TIMEOUT",
                )

        log_level = (read("LOG_LEVEL") or cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise InvalidConfigurationError(
                f"{PREFIX}LOG_LEVEL is not a logging level: {log_level!r}.",
                variable=PREFIX + "LOG_LEVEL",
                hint="use DEBUG, INFO, WARNING, ERROR or CRITICAL",
            )

        sdk_path = read("SDK_PATH")
        credential_file = read("CREDENTIAL_FILE")
        settings = cls(
            sdk_path=None if sdk_path is None else Path(sdk_path),
            output_format=read("OUTPUT_FORMAT"),
            metrics_environment=read("METRICS_ENVIRONMENT"),
            metrics_environment_version=read("METRICS_ENVIRONMENT_VERSION"),
            credential_file=None if credential_file is None else Path(credential_file),
            ready_timeout=ready_timeout,
            log_level=log_level,
        )
        logger.debug("settings loaded from environment: %r", settings)
        return settings


__all__ = (
    "Settings",
)
