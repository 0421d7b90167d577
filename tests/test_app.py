"""Tests for the NotesApp intent layer."""

import asyncio
import unittest

from localnotes.app import NotesApp
from localnotes.domain import AccountExists, NoAccount, NotAuthenticated, WrongPassword
from localnotes.services import USERS_KEY, notes_key_for
from localnotes.storage import PersistentKVStore

from .helpers import AsyncStoreTestCase, StoreTestCase

ME = "me@example.com"
WAIT = 0.2  # comfortably longer than the test autosave delay


class NotesAppTestCase(StoreTestCase):

    def setUp(self):
        super().setUp()
        self.app = NotesApp(self.kv, self.settings)

    def sign_up(self, email=ME, password="secret"):
        result = self.app.authenticate(email, password, "signup")
        self.assertTrue(result)
        return result.email


class AuthenticateTest(NotesAppTestCase):

    def test_signup_signs_in(self):
        result = self.app.authenticate("Me@Example.com", "secret", "signup")
        self.assertTrue(result.success)
        self.assertEqual(result.email, ME)
        self.assertEqual(self.app.current_user, ME)
        self.assertEqual(self.app.sessions.current(), ME)

    def test_signin(self):
        self.sign_up()
        self.app.logout()
        result = self.app.authenticate(ME, "secret", "signin")
        self.assertTrue(result.success)
        self.assertEqual(result.email, ME)

    def test_failures(self):
        self.sign_up()
        self.app.logout()
        cases = [
            ("signin", "nobody@example.com", "secret", NoAccount, "No account found. Create one."),
            ("signin", ME, "wrong", WrongPassword, "Wrong password."),
            ("signup", "ME@example.com", "other", AccountExists, "Account exists. Sign in instead."),
        ]
        for mode, email, password, error, reason in cases:
            with self.subTest(mode=mode, error=error.__name__):
                result = self.app.authenticate(email, password, mode)
                self.assertFalse(result)
                self.assertIsInstance(result.error, error)
                self.assertEqual(result.reason, reason)
                self.assertIsNone(self.app.current_user)

    def test_failed_signin_keeps_existing_session(self):
        self.sign_up()
        self.assertFalse(self.app.authenticate(ME, "wrong"))
        self.assertEqual(self.app.current_user, ME)

    def test_malformed_account_record_fails_signin(self):
        self.kv.write(USERS_KEY, {ME: "garbage"})
        result = self.app.authenticate(ME, "secret", "signin")
        self.assertFalse(result)
        self.assertIsInstance(result.error, NoAccount)
        self.assertIsNone(self.app.current_user)

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            self.app.authenticate(ME, "secret", "register")


class SessionTest(NotesAppTestCase):

    def test_restore_after_restart(self):
        self.sign_up()
        reopened = NotesApp(PersistentKVStore(self.db_path), self.settings)
        self.assertEqual(reopened.current_user, ME)

    def test_session_for_missing_account_is_cleared(self):
        self.kv.write("session", "ghost@example.com")
        app = NotesApp(self.kv, self.settings)
        self.assertIsNone(app.current_user)
        self.assertIsNone(app.sessions.current())

    def test_logout(self):
        self.sign_up()
        self.app.create_note()
        self.app.logout()
        self.assertIsNone(self.app.current_user)
        self.assertIsNone(self.app.active_note_id)
        with self.assertRaises(NotAuthenticated):
            self.app.list_notes()

    def test_note_intents_require_session(self):
        calls = [
            self.app.create_note,
            self.app.list_notes,
            lambda: self.app.search_notes("x"),
            lambda: self.app.delete_note("1"),
            lambda: self.app.save_note("1", "t", "b"),
        ]
        for call in calls:
            with self.assertRaises(NotAuthenticated):
                call()

    def test_switching_accounts_swaps_collection(self):
        self.sign_up("a@example.com")
        a_note = self.app.create_note()
        self.app.logout()
        self.sign_up("b@example.com")
        self.assertEqual(self.app.list_notes(), [])
        self.assertIsNone(self.app.get_note(a_note))
        self.app.logout()
        self.app.authenticate("a@example.com", "secret")
        self.assertEqual([n.id for n in self.app.list_notes()], [a_note])


class NotesTest(NotesAppTestCase):

    def test_create_opens_note(self):
        self.sign_up()
        note_id = self.app.create_note()
        self.assertEqual(self.app.active_note_id, note_id)
        self.assertEqual(self.app.get_note(note_id).title, "Untitled")

    def test_edit_unknown_note(self):
        self.sign_up()
        self.assertFalse(self.app.edit_note("404", title="x"))
        self.assertEqual(self.app.save_status, "Saved")

    def test_delete_unknown_note(self):
        self.sign_up()
        self.assertFalse(self.app.delete_note("404"))

    def test_search(self):
        self.sign_up()
        a = self.app.create_note()
        self.app.save_note(a, "Grocery List", "milk")
        b = self.app.create_note()
        self.app.save_note(b, "Work", "grocery run at lunch")
        self.app.create_note()
        self.assertEqual([n.id for n in self.app.search_notes("grocery")], [b, a])
        self.assertEqual(len(self.app.search_notes("")), 3)
        self.assertEqual(self.app.search_notes("xyz"), [])

    def test_storage_warning(self):
        self.sign_up()
        self.assertIsNone(self.app.storage_warning)
        self.corrupt(notes_key_for(ME))
        self.assertEqual(self.app.list_notes(), [])
        self.assertIsNotNone(self.app.storage_warning)


class AutosaveIntentTest(AsyncStoreTestCase):

    def setUp(self):
        super().setUp()
        self.app = NotesApp(self.kv, self.settings)
        self.assertTrue(self.app.authenticate(ME, "secret", "signup"))

    async def test_edit_then_autosave(self):
        note_id = self.app.create_note()
        self.assertTrue(self.app.edit_note(note_id, title="Gro"))
        self.assertTrue(self.app.edit_note(note_id, title="Grocery"))
        self.assertTrue(self.app.edit_note(note_id, body="milk"))
        self.assertEqual(self.app.save_status, "Saving...")
        self.assertEqual(self.app.get_note(note_id).title, "Untitled")
        await asyncio.sleep(WAIT)
        self.assertEqual(self.app.save_status, "Saved")
        note = self.app.get_note(note_id)
        self.assertEqual((note.title, note.body), ("Grocery", "milk"))

    async def test_save_note_is_immediate(self):
        note_id = self.app.create_note()
        self.app.edit_note(note_id, title="draft")
        self.assertTrue(self.app.save_note(note_id, "final", "text"))
        self.assertEqual(self.app.save_status, "Saved")
        await asyncio.sleep(WAIT)
        note = self.app.get_note(note_id)
        self.assertEqual((note.title, note.body), ("final", "text"))

    async def test_opening_another_note_flushes_pending_edit(self):
        first = self.app.create_note()
        second = self.app.create_note()
        self.app.open_note(first)
        self.app.edit_note(first, body="unsaved")
        self.app.open_note(second)
        self.assertEqual(self.app.get_note(first).body, "unsaved")

    async def test_logout_discards_pending_edit_when_configured(self):
        self.app.autosave.flush_on_switch = False
        note_id = self.app.create_note()
        self.app.edit_note(note_id, body="abandoned")
        self.app.logout()
        await asyncio.sleep(WAIT)
        self.app.authenticate(ME, "secret")
        self.assertEqual(self.app.get_note(note_id).body, "")

    async def test_delete_active_note_closes_editor(self):
        keep = self.app.create_note()
        gone = self.app.create_note()
        self.app.edit_note(gone, body="pending")
        self.assertTrue(self.app.delete_note(gone))
        self.assertIsNone(self.app.active_note_id)
        self.assertEqual(self.app.save_status, "Saved")
        await asyncio.sleep(WAIT)
        self.assertEqual([n.id for n in self.app.list_notes()], [keep])


if __name__ == "__main__":
    unittest.main()
