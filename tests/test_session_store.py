import os
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from backend.session_store import SqliteSessionStorage  # noqa: E402


class SessionStoreTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # nested path, the directory is created on first use
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "data", "session.sqlite")
        self.store = SqliteSessionStorage(self.db_path)

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_missing_key(self):
        self.assertIsNone(await self.store.get_item("sb-auth-token"))
        self.assertTrue(os.path.exists(self.db_path))

    async def test_set_overwrite_and_remove(self):
        await self.store.set_item("sb-auth-token", '{"access_token": "a"}')
        self.assertEqual(await self.store.get_item("sb-auth-token"), '{"access_token": "a"}')

        await self.store.set_item("sb-auth-token", '{"access_token": "b"}')
        self.assertEqual(await self.store.get_item("sb-auth-token"), '{"access_token": "b"}')

        await self.store.remove_item("sb-auth-token")
        self.assertIsNone(await self.store.get_item("sb-auth-token"))

    async def test_survives_a_new_instance(self):
        await self.store.set_item("code-verifier", "xyz")

        reopened = SqliteSessionStorage(self.db_path)

        self.assertEqual(await reopened.get_item("code-verifier"), "xyz")


if __name__ == "__main__":
    unittest.main()
