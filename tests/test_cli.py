from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from _testutil import ensure_repo_on_path


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        ensure_repo_on_path()

        from paramvault.store.adapters.memory import MemoryStore

        self.store = MemoryStore.from_mapping({"/test/db/username": "admin", "/test/db/password": "pass"})

    def _run(self, *argv: str):
        from paramvault.cli import main

        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv), store=self.store)
        return code, out.getvalue(), err.getvalue()

    def test_put_get(self) -> None:
        code, _, _ = self._run("put", "test/db/username", "root")
        self.assertEqual(code, 0)

        code, out, _ = self._run("get", "/test/db/username", "--quiet")
        self.assertEqual((code, out), (0, "root\n"))

        code, out, _ = self._run("get", "/test/db/username")
        lines = out.splitlines()
        self.assertTrue(lines[0].startswith("Key\tValue\tVersion"))
        self.assertTrue(lines[1].startswith("/test/db/username\troot\t2\tfalse"))

    def test_put_from_stdin(self) -> None:
        with mock.patch("sys.stdin", io.StringIO("line one\nline two\n")):
            self._run("put", "/test/note", "-", "--singleline")
        code, out, _ = self._run("get", "/test/note", "-q")
        self.assertEqual(out, "line one\n")

    def test_get_missing_exits_1(self) -> None:
        code, _, err = self._run("get", "/test/missing")
        self.assertEqual(code, 1)
        self.assertIn("not found", err)

    def test_invalid_path_exits_1(self) -> None:
        code, _, err = self._run("get", "bad path")
        self.assertEqual(code, 1)
        self.assertIn("Invalid configuration path", err)

    def test_list(self) -> None:
        code, out, _ = self._run("list", "/test", "--expand")
        self.assertEqual(code, 0)
        rows = [line.split("\t") for line in out.splitlines()]
        self.assertEqual(rows[0], ["Key", "Version", "LastModified", "User", "Value"])
        self.assertEqual([(r[0], r[-1]) for r in rows[1:]], [("db/password", "pass"), ("db/username", "admin")])

    def test_delete(self) -> None:
        code, out, _ = self._run("delete", "/test/db/username")
        self.assertEqual((code, out), (0, "Removing `/test/db/username`\n"))

        code, _, err = self._run("delete", "/test/db", "--recursive")
        self.assertEqual(code, 1)
        self.assertIn("--force", err)

    def test_import_and_export(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "in.json"
            src.write_text(json.dumps({"api": {"token": "t0k"}}), encoding="utf-8")
            code, out, _ = self._run("import", "/prod", str(src), "--secret")
            self.assertEqual((code, out), (0, "Importing `/prod/api/token`\n"))

            dest = Path(td) / "out.env"
            code, _, _ = self._run("export", "prod", "--format", "dotenv", "-o", str(dest))
            self.assertEqual(code, 0)
            self.assertEqual(dest.read_text(encoding="utf-8"), 'API_TOKEN="t0k"\n')

    def test_exec_permissive(self) -> None:
        with mock.patch.dict(os.environ, {"HOME": "/tmp", "DB_USERNAME": "old"}, clear=True), mock.patch(
            "paramvault.cli.exec_command"
        ) as run:
            code, _, err = self._run("exec", "test", "--", "env", "-0")

        self.assertEqual(code, 0)
        command, args, env = run.call_args[0]
        self.assertEqual((command, args), ("env", ["-0"]))
        self.assertEqual(env.to_map(), {"HOME": "/tmp", "DB_USERNAME": "admin", "DB_PASSWORD": "pass"})
        self.assertIn("overwriting environment variable DB_USERNAME", err)

    def test_exec_strict_pristine(self) -> None:
        seed = {"HOME": "/tmp", "DB_USERNAME": "changeme", "DB_PASSWORD": "changeme"}
        with mock.patch.dict(os.environ, seed, clear=True), mock.patch("paramvault.cli.exec_command") as run:
            code, _, _ = self._run("exec", "--strict", "--pristine", "/test", "--", "env")

        self.assertEqual(code, 0)
        env = run.call_args[0][2]
        self.assertEqual(env.to_map(), {"DB_USERNAME": "admin", "DB_PASSWORD": "pass"})

    def test_exec_strict_failure_does_not_launch(self) -> None:
        seed = {"DB_USERNAME": "changeme", "EXTRA": "changeme"}
        with mock.patch.dict(os.environ, seed, clear=True), mock.patch("paramvault.cli.exec_command") as run:
            code, _, err = self._run("exec", "--strict", "/test", "--", "env")

        self.assertEqual(code, 1)
        self.assertIn("EXTRA", err)
        run.assert_not_called()

    def test_exec_requires_command(self) -> None:
        with mock.patch("paramvault.cli.exec_command") as run:
            code, _, err = self._run("exec", "/test")
        self.assertEqual(code, 1)
        self.assertIn("must specify command", err)
        run.assert_not_called()

    def test_null_backend_selected_from_flags(self) -> None:
        from paramvault.cli import main

        err = io.StringIO()
        with mock.patch.dict(os.environ, {"HOME": tempfile.gettempdir()}, clear=True), redirect_stderr(err):
            code = main(["--backend", "null", "get", "/test/k"])
        self.assertEqual(code, 1)
        self.assertIn("not implemented for the null store", err.getvalue())

    def test_version(self) -> None:
        from paramvault import __version__

        code, out, _ = self._run("version")
        self.assertEqual((code, out), (0, f"paramvault version {__version__}\n"))


if __name__ == "__main__":
    unittest.main()
