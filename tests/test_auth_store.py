import os
import sys
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from fakes import FakeAuthError, FakeSupabase, make_backend, make_session  # noqa: E402
from stores.auth import AuthStore  # noqa: E402


class AuthStoreTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.fake = FakeSupabase()
        self.uid = self.fake.auth.add_account("alice@example.com", "secret1")
        self.backend = make_backend(self.fake)
        self.store = AuthStore(self.backend)

        self.seen = []
        self.store.subscribe(self.seen.append)

    async def asyncTearDown(self):
        await self.store.stop()

    # ---------- startup ----------

    async def test_start_restores_persisted_session(self):
        self.fake.auth.session = make_session(self.uid, "alice@example.com")
        self.assertTrue(self.store.loading)

        await self.store.start()

        self.assertFalse(self.store.loading)
        self.assertEqual(self.store.user.email, "alice@example.com")
        self.assertEqual([u.id for u in self.seen], [self.uid])

    async def test_start_without_session(self):
        await self.store.start()

        self.assertFalse(self.store.loading)
        self.assertIsNone(self.store.user)
        self.assertEqual(self.seen, [])

    async def test_start_treats_session_errors_as_signed_out(self):
        self.fake.auth.get_session_error = FakeAuthError("boom", status=400)

        await self.store.start()

        self.assertFalse(self.store.loading)
        self.assertIsNone(self.store.user)

    async def test_missing_refresh_token_signs_out(self):
        self.fake.auth.get_session_error = FakeAuthError(
            "Invalid Refresh Token: Refresh Token Not Found",
            code="refresh_token_not_found",
            status=400,
        )

        self.assertIsNone(await self.backend.get_session())
        self.assertEqual(self.fake.auth.sign_out_calls, 1)

    async def test_refresh_session(self):
        self.fake.auth.session = make_session(self.uid, "alice@example.com", token="fresh")

        session = await self.backend.refresh_session()

        self.assertEqual(session.access_token, "fresh")
        self.assertEqual(session.user.email, "alice@example.com")

    # ---------- actions ----------

    async def test_sign_in_notifies_once(self):
        await self.store.start()

        user = await self.store.sign_in("alice@example.com", "secret1")
        await self.store.wait_idle()

        self.assertEqual(user.id, self.uid)
        # the SIGNED_IN push for the same user does not notify again
        self.assertEqual([u.id for u in self.seen], [self.uid])

    async def test_sign_in_with_wrong_password_raises(self):
        await self.store.start()

        with self.assertRaises(FakeAuthError):
            await self.store.sign_in("alice@example.com", "nope")
        self.assertIsNone(self.store.user)
        self.assertEqual(self.seen, [])

    async def test_sign_up_pending_confirmation_returns_none(self):
        self.fake.auth.confirm_email = True
        await self.store.start()

        self.assertIsNone(await self.store.sign_up("bob@example.com", "secret2"))
        self.assertIsNone(self.store.user)
        self.assertIn("bob@example.com", self.fake.auth.accounts)

    async def test_sign_up_signs_in_when_no_confirmation(self):
        await self.store.start()

        user = await self.store.sign_up("bob@example.com", "secret2")

        self.assertEqual(user.email, "bob@example.com")
        self.assertEqual(self.store.user.email, "bob@example.com")

    async def test_oauth_round_trip(self):
        await self.store.start()
        self.fake.auth.oauth_codes["code-123"] = "alice@example.com"

        url = await self.store.start_oauth("google")
        user = await self.store.complete_oauth(" code-123 ")

        self.assertIn("provider=google", url)
        self.assertEqual(user.id, self.uid)

    async def test_sign_out_clears_session(self):
        await self.store.start()
        await self.store.sign_in("alice@example.com", "secret1")

        await self.store.sign_out()
        await self.store.wait_idle()

        self.assertIsNone(self.store.user)
        self.assertEqual(self.seen[-1], None)

    # ---------- pushed session changes ----------

    async def test_signed_out_push_clears_session(self):
        self.fake.auth.session = make_session(self.uid, "alice@example.com")
        await self.store.start()

        self.fake.auth.emit("SIGNED_OUT", None)
        await self.store.wait_idle()

        self.assertIsNone(self.store.user)

    async def test_token_refresh_reads_the_stored_session(self):
        self.fake.auth.session = make_session(self.uid, "alice@example.com", token="old")
        await self.store.start()

        self.fake.auth.session = make_session(self.uid, "alice@example.com", token="new")
        pushed = make_session(self.uid, "alice@example.com", token="pushed")
        self.fake.auth.emit("TOKEN_REFRESHED", pushed)
        await self.store.wait_idle()

        self.assertEqual(self.store.session.access_token, "new")
        # same user, no identity change to report
        self.assertEqual(len(self.seen), 1)

    async def test_failing_listener_does_not_stop_later_pushes(self):
        await self.store.start()
        calls = []

        def flaky_listener(user):
            calls.append(user)
            if len(calls) == 1:
                raise RuntimeError("listener blew up")

        self.store.subscribe(flaky_listener)
        session = make_session(self.uid, "alice@example.com")

        self.fake.auth.emit("SIGNED_IN", session)
        await self.store.wait_idle()
        # a failed update leaves the store signed out
        self.assertIsNone(self.store.user)

        self.fake.auth.emit("SIGNED_IN", session)
        await self.store.wait_idle()
        self.assertEqual(self.store.user.id, self.uid)

    async def test_stop_unsubscribes_from_pushes(self):
        await self.store.start()
        self.assertEqual(len(self.fake.auth.listeners), 1)

        await self.store.stop()

        self.assertEqual(self.fake.auth.listeners, [])


if __name__ == "__main__":
    unittest.main()
