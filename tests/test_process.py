from __future__ import annotations

import os
import unittest
from unittest import mock

from _testutil import ensure_repo_on_path


class TestProcess(unittest.TestCase):
    def setUp(self) -> None:
        ensure_repo_on_path()

    def test_resolve_command_uses_child_path(self) -> None:
        from paramvault.environ import Environ
        from paramvault.process import resolve_command

        found = resolve_command("sh", Environ(["PATH=/usr/bin:/bin"]))
        self.assertTrue(os.path.basename(found) == "sh")

        with self.assertRaises(FileNotFoundError):
            resolve_command("sh", Environ(["PATH=/nonexistent"]))
        with self.assertRaises(FileNotFoundError):
            resolve_command("definitely-not-a-command-xyz", Environ(["PATH=/usr/bin:/bin"]))

    def test_exec_command_replaces_process(self) -> None:
        from paramvault.environ import Environ
        from paramvault.process import exec_command

        env = Environ(["PATH=/usr/bin:/bin", "DB_USERNAME=admin"])
        with mock.patch("paramvault.process.os.execve") as execve:
            exec_command("sh", ["-c", "true"], env)

        argv0, argv, child_env = execve.call_args[0]
        self.assertEqual(os.path.basename(argv0), "sh")
        self.assertEqual(argv, ["sh", "-c", "true"])
        self.assertEqual(child_env, {"PATH": "/usr/bin:/bin", "DB_USERNAME": "admin"})


if __name__ == "__main__":
    unittest.main()
