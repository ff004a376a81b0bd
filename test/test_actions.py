"""
Action tests.

Scope
- Construction-time flag validation (rejected flags never reach a process).
- Command shapes of every action against a fake SDK tree.
- Preconditions checked when the invocation is built (missing directories).
- POSIX only: execute()/start() against executable stand-ins for gcloud and
  dev_appserver.py, including the dev server readiness wait and the cleanup
  of a server whose wait failed.

Conventions
- Test method names follow CamelCase per project convention.
- helmsman.sdk.IS_WINDOWS is patched to False so shapes are platform neutral.
"""
import os
import stat
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest import TestCase, mock

from helmsman.actions import (
    DeleteModules,
    Deploy,
    GenConfig,
    GenRepoInfoFile,
    GetLogs,
    ListModules,
    Run,
    SetDefault,
    SetManagedBy,
    Stage,
    StartModules,
    StopModules,
)
from helmsman.faults import (
    InvalidConfigurationError,
    InvalidDirectoryError,
    InvalidFlagError,
    ProcessExecutionError,
    ProcessExitedError,
    ProcessTimeoutError,
)
from helmsman.futures import DeployResult, submit
from helmsman.listeners import PatternWaiter
from helmsman.options import Option
from helmsman.process import Capture
from helmsman.sdk import APPCFG_MAIN, Sdk


def touch(path, content=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class ActionTestCase(TestCase):
    def setUp(self):
        directory = tempfile.TemporaryDirectory()
        self.addCleanup(directory.cleanup)
        self.root = Path(directory.name)
        self.sdk_root = self.root / "sdk"
        self.gcloud = os.fspath(touch(self.sdk_root / "bin" / "gcloud"))
        self.dev_appserver = os.fspath(touch(self.sdk_root / "bin" / "dev_appserver.py"))
        self.sdk = Sdk(self.sdk_root)
        patcher = mock.patch("helmsman.sdk.IS_WINDOWS", False)
        patcher.start()
        self.addCleanup(patcher.stop)

    def directory(self, name):
        path = self.root / name
        path.mkdir()
        return path


class DeployTest(ActionTestCase):
    def testCommand(self):
        staged = self.directory("staged")
        deploy = Deploy(self.sdk, staged, {"server": "x.com", "promote": True, "version": "v1"})
        invocation = deploy.invocation()
        self.assertEqual(list(invocation.command), [
            self.gcloud,
            "app",
            "deploy",
            os.fspath(staged / "app.yaml"),
            "--server",
            "x.com",
            "--promote",
            "--version",
            "v1",
            "--quiet",
        ])
        self.assertEqual(invocation.cwd, os.fspath(staged))

    def testNoPromote(self):
        staged = self.directory("staged")
        command = Deploy(self.sdk, staged, {"promote": False}).command()
        self.assertEqual(list(command[-2:]), ["--no-promote", "--quiet"])

    def testUnacceptedFlagRaisesAtConstruction(self):
        with self.assertRaises(InvalidFlagError) as context:
            Deploy(self.sdk, self.root, {"admin_host": "localhost"})
        self.assertEqual(context.exception.flag, "--admin_host")
        self.assertIn("deploy", str(context.exception))

    def testMissingStagingDirectoryRaises(self):
        deploy = Deploy(self.sdk, self.root / "missing")
        with self.assertRaises(InvalidDirectoryError):
            deploy.invocation()

    def testNoStagingDirectoryRaises(self):
        with self.assertRaises(InvalidConfigurationError):
            Deploy(self.sdk, None)

    def testFlagsAreReadOnly(self):
        deploy = Deploy(self.sdk, self.root, {"server": "x.com"})
        self.assertEqual(dict(deploy.flags), {Option.SERVER: "x.com"})
        with self.assertRaises(TypeError):
            deploy.flags[Option.VERSION] = "v2"  # type: ignore[index]

    def testSdkIsRequired(self):
        with self.assertRaises(TypeError):
            Deploy(os.fspath(self.sdk_root), self.root)


class GenConfigTest(ActionTestCase):
    def testWithSource(self):
        source = self.directory("source")
        command = GenConfig(self.sdk, source, {"runtime": "java", "custom": True}).command()
        self.assertEqual(list(command[1:]), [
            "app", "gen-config", os.fspath(source), "--runtime", "java", "--custom", "--quiet",
        ])

    def testWithoutSource(self):
        self.assertEqual(list(GenConfig(self.sdk).command()[1:]), ["app", "gen-config", "--quiet"])

    def testMissingSourceRaises(self):
        with self.assertRaises(InvalidDirectoryError):
            GenConfig(self.sdk, self.root / "missing").invocation()

    def testIntegerFlagRejected(self):
        with self.assertRaises(InvalidFlagError):
            GenConfig(self.sdk, None, {"port": 8080})


class GenRepoInfoFileTest(ActionTestCase):
    def testCommand(self):
        output = self.root / "out"
        source = self.root / "src"
        command = GenRepoInfoFile(self.sdk, output_directory=output, source_directory=source).command()
        self.assertEqual(list(command[1:]), [
            "beta",
            "debug",
            "source",
            "gen-repo-info-file",
            "--output-directory",
            os.fspath(output),
            "--source-directory",
            os.fspath(source),
            "--quiet",
        ])

    def testDirectoriesAreOptional(self):
        command = GenRepoInfoFile(self.sdk).command()
        self.assertEqual(list(command[1:]), ["beta", "debug", "source", "gen-repo-info-file", "--quiet"])


class RunTest(ActionTestCase):
    def testCommandFollowsCatalogOrder(self):
        run = Run(
            self.sdk,
            ["app.yaml", Path("other", "app.yaml")],
            {"host": "localhost", "port": 8080, "use_mtime_file_watcher": True},
            java_home="/opt/jdk",
            jvm_flags=["-Xmx1g", "-Dfoo=bar"],
        )
        invocation = run.invocation()
        self.assertEqual(list(invocation.command), [
            self.dev_appserver,
            "app.yaml",
            os.fspath(Path("other", "app.yaml")),
            "--port",
            "8080",
            "--host",
            "localhost",
            "--use_mtime_file_watcher",
            "--jvm_flag",
            "-Xmx1g",
            "--jvm_flag",
            "-Dfoo=bar",
        ])
        self.assertEqual(dict(invocation.env), {
            "JAVA_HOME": os.fspath("/opt/jdk"),
            "CLOUDSDK_CORE_DISABLE_PROMPTS": "1",
        })

    def testFalseBooleanOmitted(self):
        command = Run(self.sdk, "app.yaml", {"automatic_restart": False}).command()
        self.assertEqual(list(command), [self.dev_appserver, "app.yaml"])

    def testInvalidIntegerRaises(self):
        with self.assertRaises(InvalidFlagError) as context:
            Run(self.sdk, "app.yaml", {"port": "eighty"})
        self.assertEqual(context.exception.value, "eighty")

    def testMissingIntegerValueRaises(self):
        with self.assertRaises(InvalidFlagError):
            Run(self.sdk, "app.yaml", {"admin_port": None})

    def testAppYamlRequired(self):
        with self.assertRaises(InvalidConfigurationError):
            Run(self.sdk, [])
        with self.assertRaises(InvalidConfigurationError):
            Run(self.sdk, [""])

    def testDeployFlagRejected(self):
        with self.assertRaises(InvalidFlagError):
            Run(self.sdk, "app.yaml", {"promote": True})


class StageTest(ActionTestCase):
    def setUp(self):
        super().setUp()
        touch(self.sdk.tools_jar_path)
        environ = mock.patch.dict(os.environ)
        environ.start()
        self.addCleanup(environ.stop)
        os.environ.pop("JAVA_HOME", None)

    def testCommand(self):
        source = self.directory("source")
        destination = self.root / "staged"
        command = Stage(self.sdk, source, destination, {"version": "v1", "enable_quickstart": True}).command()
        self.assertEqual(list(command), [
            "java",
            f"-Dappengine.sdk.root={self.sdk.java_sdk_path}",
            "-cp",
            os.fspath(self.sdk.tools_jar_path),
            APPCFG_MAIN,
            "stage",
            os.fspath(source.absolute()),
            os.fspath(destination.absolute()),
            "--enable_quickstart",
            "--version=v1",
        ])

    def testJavaHome(self):
        os.environ["JAVA_HOME"] = os.fspath(self.root / "jdk")
        command = Stage(self.sdk, self.directory("source"), self.root / "staged").command()
        self.assertEqual(command.tool, os.fspath(self.root / "jdk" / "bin" / "java"))

    def testMissingSourceRaises(self):
        with self.assertRaises(InvalidDirectoryError):
            Stage(self.sdk, self.root / "missing", self.root / "staged").invocation()

    def testDestinationRequired(self):
        with self.assertRaises(InvalidConfigurationError):
            Stage(self.sdk, self.root, None)

    def testPromoteRejected(self):
        with self.assertRaises(InvalidFlagError):
            Stage(self.sdk, self.root, self.root / "staged", {"promote": True})


class ModuleActionTest(ActionTestCase):
    def testStartStopAndSetDefault(self):
        for action, subcommand in ((StartModules, "start"), (StopModules, "stop"), (SetDefault, "set-default")):
            with self.subTest(subcommand=subcommand):
                command = action(self.sdk, ["frontend", "backend"], "v1", {"server": "x.com"}).command()
                self.assertEqual(list(command[1:]), [
                    "app", "modules", subcommand, "frontend", "backend", "--version", "v1",
                    "--server", "x.com", "--quiet",
                ])

    def testVersionRequired(self):
        with self.assertRaises(InvalidConfigurationError):
            SetDefault(self.sdk, ["frontend"], None)
        with self.assertRaises(InvalidConfigurationError):
            StartModules(self.sdk, ["frontend"], "")

    def testDeleteDefaultsToDefaultModule(self):
        command = DeleteModules(self.sdk, (), "v1").command()
        self.assertEqual(list(command[1:]), ["app", "modules", "delete", "default", "--version", "v1", "--quiet"])

    def testDeleteNamedModules(self):
        command = DeleteModules(self.sdk, "worker", "v1").command()
        self.assertEqual(list(command[4:6]), ["worker", "--version"])

    def testSetManagedBy(self):
        command = SetManagedBy(self.sdk, ["frontend"], "v1", Option.SELF, {"instance": "i1"}).command()
        self.assertEqual(list(command[1:]), [
            "app", "modules", "set-managed-by", "frontend", "--version", "v1", "--self",
            "--instance", "i1", "--quiet",
        ])

    def testSetManagedByRequiresSelfOrGoogle(self):
        with self.assertRaises(InvalidConfigurationError):
            SetManagedBy(self.sdk, ["frontend"], "v1", Option.SERVER)

    def testGetLogs(self):
        command = GetLogs(
            self.sdk,
            ["default"],
            "v1",
            {"vhost": "example.com", "days": 3, "details": True},
            log_file="out.log",
        ).command()
        self.assertEqual(list(command[1:]), [
            "app", "modules", "get-logs", "default", "out.log", "--version", "v1",
            "--days", "3", "--details", "--vhost", "example.com", "--quiet",
        ])

    def testGetLogsWithoutFile(self):
        command = GetLogs(self.sdk, ["default"], "v1").command()
        self.assertEqual(list(command[1:]), ["app", "modules", "get-logs", "default", "--version", "v1", "--quiet"])

    def testModuleFlagsAreRestricted(self):
        with self.assertRaises(InvalidFlagError):
            StopModules(self.sdk, ["frontend"], "v1", {"vhost": "example.com"})

    def testListModules(self):
        command = ListModules(self.sdk, (), {"server": "x.com"}).command()
        self.assertEqual(list(command[1:]), ["app", "modules", "list", "--server", "x.com", "--quiet"])


@unittest.skipIf(os.name == "nt", "executable stand-ins need a POSIX shebang")
class ExecutionTest(ActionTestCase):
    def setUp(self):
        super().setUp()
        if " " in sys.executable or len(sys.executable) > 120:
            self.skipTest("interpreter path cannot be used in a shebang line")

    def install(self, path, body):
        touch(Path(path), f"#!{sys.executable}\n" + textwrap.dedent(body))
        os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR)

    def testExecuteCapturesGcloudOutput(self):
        self.install(self.gcloud, """
            import sys
            print(" ".join(sys.argv[1:]))
        """)
        capture = Capture()
        ListModules(self.sdk, (), {"server": "x.com"}).execute(capture.listeners)
        self.assertEqual(capture.stdout, "app modules list --server x.com --quiet")
        self.assertEqual(capture.exit_code, 0)

    def testExecuteFailureRaises(self):
        self.install(self.gcloud, """
            import sys
            sys.exit(2)
        """)
        with self.assertRaises(ProcessExecutionError) as context:
            StartModules(self.sdk, ["frontend"], "v1").execute()
        self.assertEqual(context.exception.exit_code, 2)

    def testDeployStartReturnsDeployResult(self):
        self.install(self.gcloud, """
            import os
            print("deployed from " + os.path.basename(os.getcwd()))
        """)
        staged = self.directory("staged")
        result = Deploy(self.sdk, staged).start().result(10)
        self.assertIsInstance(result, DeployResult)
        self.assertEqual(result.data, "deployed from staged")

    def testRunWaitsForReadiness(self):
        self.install(self.dev_appserver, """
            import os, sys, time
            sys.stderr.write("JAVA_HOME=" + os.environ.get("JAVA_HOME", "") + "\\n")
            sys.stderr.write("INFO Dev App Server is now running\\n")
            sys.stderr.flush()
            time.sleep(30)
        """)
        sdk = Sdk(self.sdk_root, ready_timeout=10)
        future = Run(sdk, "app.yaml", java_home="/opt/jdk").start()
        self.addCleanup(future.cancel)
        self.assertFalse(future.done())
        self.assertTrue(future.handle.running)
        self.assertEqual(future.handle.env["JAVA_HOME"], "/opt/jdk")

    def testRunNotReadyInTimeRaises(self):
        self.install(self.dev_appserver, """
            import time
            time.sleep(30)
        """)
        sdk = Sdk(self.sdk_root, ready_timeout=0.5)
        with self.assertRaises(ProcessTimeoutError):
            Run(sdk, "app.yaml").start()

    def testRunExitingBeforeReadinessRaises(self):
        self.install(self.dev_appserver, """
            import sys
            sys.exit(4)
        """)
        sdk = Sdk(self.sdk_root, ready_timeout=10)
        with self.assertRaises(ProcessExitedError) as context:
            Run(sdk, "app.yaml").start()
        self.assertEqual(context.exception.exit_code, 4)

    def testRunWithoutTimeoutDoesNotWait(self):
        self.install(self.dev_appserver, """
            import time
            time.sleep(30)
        """)
        future = Run(self.sdk, "app.yaml").start()
        self.addCleanup(future.cancel)
        self.assertFalse(future.done())

    def started(self):
        futures = []

        def tracking(*args, **options):
            futures.append(submit(*args, **options))
            return futures[-1]

        patcher = mock.patch("helmsman.actions.submit", tracking)
        patcher.start()
        self.addCleanup(patcher.stop)
        return futures

    def testRunNotReadyInTimeIsCancelled(self):
        self.install(self.dev_appserver, """
            import time
            time.sleep(30)
        """)
        futures = self.started()
        with self.assertRaises(ProcessTimeoutError):
            Run(Sdk(self.sdk_root, ready_timeout=0.5), "app.yaml").start()
        [future] = futures
        self.assertTrue(future.cancelled())
        self.assertTrue(future.handle.wait(10))

    def testRunInterruptedWhileWaitingIsCancelled(self):
        self.install(self.dev_appserver, """
            import time
            time.sleep(30)
        """)
        futures = self.started()
        with mock.patch.object(PatternWaiter, "wait", side_effect=KeyboardInterrupt):
            with self.assertRaises(KeyboardInterrupt):
                Run(Sdk(self.sdk_root, ready_timeout=10), "app.yaml").start()
        [future] = futures
        self.assertTrue(future.cancelled())
        self.assertTrue(future.handle.wait(10))
        self.assertFalse(future.handle.running)


if __name__ == "__main__":
    unittest.main()
