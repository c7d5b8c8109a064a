# Unit tests for the session holder and chat transcripts
import unittest

from backend.chat_history import ChatHistory
from backend.errors import InvalidRequest, NotSignedIn
from backend.models import ChatTurn
from backend.session import SESSION_USER_KEY, Session
from backend.storage import MappingStore

MIND_MAP = {"topics": [{"topic": "Cells", "weightage": 8, "subtopics": []}]}


class TestSession(unittest.TestCase):
    def setUp(self):
        self.session_store = MappingStore()
        self.store = MappingStore()
        self.session = Session(self.session_store, self.store)

    def test_login_sets_identity(self):
        self.session.login("  alex ")
        self.assertEqual(self.session.user, "alex")
        self.assertEqual(self.session_store.get_item(SESSION_USER_KEY), "alex")
        self.assertTrue(self.session.is_signed_in)
        self.assertEqual(self.session.repository.identity, "alex")

    def test_blank_login_rejected(self):
        with self.assertRaises(InvalidRequest):
            self.session.login("   ")
        self.assertFalse(self.session.is_signed_in)

    def test_repository_requires_sign_in(self):
        with self.assertRaises(NotSignedIn):
            self.session.repository

    def test_logout_keeps_persisted_data(self):
        self.session.login("alex")
        self.session.repository.create(MIND_MAP, "text", "Bio")
        self.session.logout()
        self.assertIsNone(self.session.user)
        with self.assertRaises(NotSignedIn):
            self.session.repository

        self.session.login("alex")
        self.assertEqual([s.name for s in self.session.repository.list()], ["Bio"])

    def test_restore_from_session_store(self):
        self.session.login("alex")
        self.session.repository.create(MIND_MAP, "text", "Bio")

        fresh = Session(self.session_store, self.store)
        self.assertTrue(fresh.restore())
        self.assertEqual(fresh.repository.get_active().name, "Bio")

    def test_switching_user_switches_repository(self):
        self.session.login("alex")
        self.session.repository.create(MIND_MAP, "text", "Bio")
        self.session.login("sam")
        self.assertEqual(self.session.repository.list(), [])


class TestChatHistory(unittest.TestCase):
    def setUp(self):
        self.store = MappingStore()
        self.history = ChatHistory(self.store, "alex")

    def test_append_and_get(self):
        self.history.append("s1", ChatTurn(role="user", content="What is mitosis?"))
        self.history.append("s1", ChatTurn(role="assistant", content="Cell division.", from_syllabus=False))
        turns = self.history.get("s1")
        self.assertEqual([t.role for t in turns], ["user", "assistant"])
        self.assertIs(turns[1].from_syllabus, False)
        self.assertIn('"fromSyllabus": false', self.store.get_item("alex_chat_history_s1"))

    def test_transcripts_are_per_syllabus(self):
        self.history.append("s1", ChatTurn(role="user", content="one"))
        self.assertEqual(self.history.get("s2"), [])
        self.history.clear("s1")
        self.assertEqual(self.history.get("s1"), [])

    def test_unknown_role_rejected(self):
        with self.assertRaises(ValueError):
            self.history.append("s1", ChatTurn(role="system", content="x"))

    def test_bad_entries_are_skipped(self):
        self.store.set_item("alex_chat_history_s1", '[{"role": "user", "content": "hi"}, {"role": "bot"}, 3]')
        with self.assertLogs("backend.chat_history", level="WARNING"):
            turns = self.history.get("s1")
        self.assertEqual(turns, [ChatTurn(role="user", content="hi")])

    def test_unreadable_history_starts_fresh(self):
        self.store.set_item("alex_chat_history_s1", "{oops")
        with self.assertLogs("backend.chat_history", level="ERROR"):
            self.assertEqual(self.history.get("s1"), [])


if __name__ == "__main__":
    unittest.main()
