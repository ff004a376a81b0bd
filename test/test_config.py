"""
Settings and logging setup tests.

Scope
- Settings.from_environ(): defaults, parsing, empty values, malformed values.
- log.configure() / log.configure_from(): handler installation, replacement,
  level checks and the level taken from Settings.

Conventions
- Test method names follow CamelCase per project convention.
- Environments are plain dicts; os.environ is never modified.
"""
import io
import logging
import unittest
from pathlib import Path
from unittest import TestCase

from rich.console import Console
from rich.logging import RichHandler

from helmsman import log
from helmsman.config import Settings
from helmsman.faults import InvalidConfigurationError


class SettingsTest(TestCase):
    def testDefaults(self):
        settings = Settings.from_environ({})
        self.assertEqual(settings, Settings())
        self.assertIsNone(settings.sdk_path)
        self.assertEqual(settings.log_level, "WARNING")

    def testReadsVariables(self):
        settings = Settings.from_environ({
            "HELMSMAN_SDK_PATH": "/opt/google-cloud-sdk",
            "HELMSMAN_OUTPUT_FORMAT": "json",
            "HELMSMAN_METRICS_ENVIRONMENT": "plugin",
            "HELMSMAN_METRICS_ENVIRONMENT_VERSION": "2.0",
            "HELMSMAN_CREDENTIAL_FILE": "/etc/credentials.json",
            "HELMSMAN_READY_TIMEOUT": "30",
            "HELMSMAN_LOG_LEVEL": "debug",
        })
        self.assertEqual(settings.sdk_path, Path("/opt/google-cloud-sdk"))
        self.assertEqual(settings.output_format, "json")
        self.assertEqual(settings.metrics_environment, "plugin")
        self.assertEqual(settings.metrics_environment_version, "2.0")
        self.assertEqual(settings.credential_file, Path("/etc/credentials.json"))
        self.assertEqual(settings.ready_timeout, 30.0)
        self.assertEqual(settings.log_level, "DEBUG")

    def testEmptyValuesAreUnset(self):
        settings = Settings.from_environ({"HELMSMAN_SDK_PATH": "", "HELMSMAN_READY_TIMEOUT": ""})
        self.assertIsNone(settings.sdk_path)
        self.assertIsNone(settings.ready_timeout)

    def testMalformedTimeoutRaises(self):
        with self.assertRaises(InvalidConfigurationError) as context:
            Settings.from_environ({"HELMSMAN_READY_TIMEOUT": "soon"})
        self.assertEqual(context.exception.options["variable"], "HELMSMAN_READY_TIMEOUT")

    def testNonPositiveTimeoutRaises(self):
        with self.assertRaises(InvalidConfigurationError):
            Settings.from_environ({"HELMSMAN_READY_TIMEOUT": "0"})

    def testUnknownLogLevelRaises(self):
        with self.assertRaises(InvalidConfigurationError) as context:
            Settings.from_environ({"HELMSMAN_LOG_LEVEL": "chatty"})
        self.assertEqual(context.exception.options["variable"], "HELMSMAN_LOG_LEVEL")

    def testFrozen(self):
        with self.assertRaises(AttributeError):
            Settings().log_level = "DEBUG"  # type: ignore[misc]


class ConfigureTest(TestCase):
    def setUp(self):
        logger = logging.getLogger(log.NAMESPACE)
        handlers = list(logger.handlers)
        level = logger.level

        def restore():
            logger.handlers[:] = handlers
            logger.setLevel(level)

        self.addCleanup(restore)
        self.logger = logger
        self.output = io.StringIO()
        self.console = Console(file=self.output, color_system=None, width=200)

    def testInstallsRichHandler(self):
        handler = log.configure("debug", console=self.console)
        self.assertIsInstance(handler, RichHandler)
        self.assertIn(handler, self.logger.handlers)
        self.assertEqual(self.logger.level, logging.DEBUG)

    def testSecondCallReplacesHandler(self):
        first = log.configure("INFO", console=self.console)
        second = log.configure(logging.WARNING, console=self.console)
        self.assertNotIn(first, self.logger.handlers)
        self.assertIn(second, self.logger.handlers)
        self.assertEqual(self.logger.level, logging.WARNING)

    def testRecordsReachConsole(self):
        log.configure("INFO", console=self.console)
        logging.getLogger("helmsman.process").info("submitting command: %s", "gcloud app deploy")
        self.assertIn("helmsman.process: submitting command: gcloud app deploy", self.output.getvalue())

    def testUnknownLevelRaises(self):
        with self.assertRaises(InvalidConfigurationError):
            log.configure("chatty", console=self.console)

    def testConfigureFromSettings(self):
        settings = Settings.from_environ({"HELMSMAN_LOG_LEVEL": "error"})
        handler = log.configure_from(settings, console=self.console)
        self.assertIn(handler, self.logger.handlers)
        self.assertEqual(self.logger.level, logging.ERROR)

    def testConfigureFromDefaultSettings(self):
        log.configure_from(Settings(), console=self.console)
        self.assertEqual(self.logger.level, logging.WARNING)

    def testPackageLoggerHasNullHandler(self):
        self.assertTrue(any(isinstance(handler, logging.NullHandler) for handler in self.logger.handlers))


if __name__ == "__main__":
    unittest.main()
