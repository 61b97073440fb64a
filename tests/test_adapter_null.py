from __future__ import annotations

import unittest

from _testutil import ensure_repo_on_path


class TestNullStore(unittest.TestCase):
    def test_every_operation_is_refused(self) -> None:
        ensure_repo_on_path()

        from paramvault.store.adapters.null import NullStore
        from paramvault.store.errors import NotSupportedError
        from paramvault.store.models import ParameterName, Value

        store = NullStore()
        name = ParameterName.from_key("/test/k")
        calls = [
            lambda: store.put(name, Value(value="v")),
            lambda: store.get(name),
            lambda: store.get(name, 1),
            lambda: store.list("/test", include_values=True),
            lambda: store.list_raw("/test"),
            lambda: store.delete(name),
        ]
        for call in calls:
            with self.assertRaises(NotSupportedError):
                call()

        self.assertEqual(store.describe()["backend"], "null")


if __name__ == "__main__":
    unittest.main()
