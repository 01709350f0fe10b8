import json
from unittest.mock import patch

from streamchat import Session, SYSTEM_PROMPT
from streamchat.core import ValidationError
from .test_base import BaseChatCLITest


class TestSession(BaseChatCLITest):
    def test_session_creation(self):
        """Test that a new session is created with correct initial values"""
        self.assertEqual(self.test_session.name, "test_session")
        self.assertEqual(self.test_session.model, "gpt-4o-mini")
        self.assertEqual(len(self.test_session.messages), 1)  # Should have system prompt
        self.assertEqual(self.test_session.messages[0], {"role": "system", "content": SYSTEM_PROMPT})
        self.assertFalse(self.test_session.include_time)

    def test_session_save_load(self):
        """Test that a session can be saved and loaded correctly"""
        self.test_session.conversation.add_user("Hello")
        self.test_session.conversation.add_assistant("Hi there!")
        self.test_session.include_time = True

        self.test_session.save()
        loaded_session = Session.load("test_session")

        self.assertEqual(loaded_session.name, self.test_session.name)
        self.assertEqual(loaded_session.model, self.test_session.model)
        self.assertEqual(loaded_session.messages, self.test_session.messages)
        self.assertTrue(loaded_session.include_time)

    def test_saved_file_layout(self):
        self.test_session.save()
        data = json.loads(self.test_session.path.read_text())
        self.assertEqual(set(data), {"model", "messages", "include_time", "updated_at"})
        self.assertFalse(self.test_session.path.with_suffix(".tmp").exists())

    def test_load_missing_session(self):
        with self.assertRaises(FileNotFoundError):
            Session.load("nope")

    def test_load_malformed_messages(self):
        self.test_sessions_dir.mkdir(parents=True)
        (self.test_sessions_dir / "bad.json").write_text(
            json.dumps({"model": "m", "messages": [{"role": "user", "content": 5}]})
        )
        with self.assertRaises(ValidationError):
            Session.load("bad")

    def test_persist_failure_is_reported_not_raised(self):
        self.test_session.conversation.add_user("keep me")
        with patch.object(Session, "save", side_effect=PermissionError("read-only")):
            with self.assertLogs("streamchat.core.session", level="ERROR"):
                self.assertFalse(self.test_session.persist())
        self.assertEqual(self.test_session.messages[-1]["content"], "keep me")

    def test_list_and_delete(self):
        self.assertEqual(Session.list_names(), [])
        self.test_session.save()
        Session(name="other", model="gpt-4o").save()

        self.assertEqual(Session.list_names(), ["other", "test_session"])
        Session.delete("other")
        self.assertEqual(Session.list_names(), ["test_session"])
        with self.assertRaises(FileNotFoundError):
            Session.delete("other")

    def test_path_names_rejected(self):
        for name in ("../x", "a/b", "a\\b", ".hidden", ""):
            self.assertFalse(Session.valid_name(name))
            with self.assertRaises(ValueError):
                Session.load(name)
            with self.assertRaises(ValueError):
                Session.delete(name)
        self.assertTrue(Session.valid_name("work-2024"))

    def test_load_non_object_file(self):
        self.test_sessions_dir.mkdir(parents=True)
        (self.test_sessions_dir / "bad.json").write_text("[1, 2]")
        with self.assertRaises(ValueError):
            Session.load("bad")
