from __future__ import annotations

import unittest

from _testutil import ensure_repo_on_path


class TestStoreModels(unittest.TestCase):
    def test_parameter_name_key(self) -> None:
        ensure_repo_on_path()

        from paramvault.store.models import ParameterName

        self.assertEqual(ParameterName(path="/test/db", name="username").key, "/test/db/username")
        self.assertEqual(ParameterName(path="test/db/", name="username").key, "/test/db/username")
        self.assertEqual(ParameterName(path="/", name="k").key, "/k")

        name = ParameterName.from_key("test/db/username")
        self.assertEqual(name.path, "/test/db")
        self.assertEqual(name.name, "username")
        self.assertEqual(str(name), "/test/db/username")

    def test_key_grammar(self) -> None:
        ensure_repo_on_path()

        from paramvault.store.models import is_valid_key

        for key in ("/a", "/a/b.c/d-e_f", "/A1/2"):
            self.assertTrue(is_valid_key(key), key)
        for key in ("", "/", "a/b", "/a//b", "/a/b/", "/a b", "/a/$"):
            self.assertFalse(is_valid_key(key), key)

    def test_validate_path(self) -> None:
        ensure_repo_on_path()

        from paramvault.store.errors import ValidationError
        from paramvault.store.models import validate_path

        validate_path("prod/db")
        validate_path("/prod/db")
        for bad in ("", "/", "prod//db", "prod db", "prod/"):
            with self.assertRaises(ValidationError):
                validate_path(bad)

    def test_strip_prefix(self) -> None:
        ensure_repo_on_path()

        from paramvault.store.models import strip_prefix

        self.assertEqual(strip_prefix("/test/db/user", "/test"), "db/user")
        self.assertEqual(strip_prefix("/test/db/user", "test/"), "db/user")
        self.assertEqual(strip_prefix("/test/db/user", "/"), "test/db/user")
        self.assertEqual(strip_prefix("/testing/x", "/test"), "testing/x")
        self.assertEqual(strip_prefix("/test", "/test"), "test")

    def test_value_defaults(self) -> None:
        ensure_repo_on_path()

        from paramvault.store.models import Metadata, RawValue, Value

        v = Value()
        self.assertIsNone(v.value)
        self.assertEqual(v.meta, Metadata())
        self.assertEqual(RawValue(key="/k", value="v").value, "v")


if __name__ == "__main__":
    unittest.main()
