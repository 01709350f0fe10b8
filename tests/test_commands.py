from pathlib import Path
from unittest.mock import patch

from streamchat import ChatCLI
from streamchat.core import SYSTEM_PROMPT, Message
from streamchat.core import commands as cmds
from .test_base import BaseChatCLITest


class TestCommands(BaseChatCLITest):
    def test_every_command_has_a_handler(self):
        """Dispatch is exhaustive over the command types"""
        self.assertEqual(set(self.chat_cli._handlers), set(cmds.ALL_COMMANDS))

    def test_model_switching(self):
        """Any non-empty model name is accepted and persisted"""
        self.chat_cli.handle_line("/model gpt-4.1")
        self.assertEqual(self.test_session.model, "gpt-4.1")

        self.chat_cli.handle_line("/model my-local-model")
        self.assertEqual(self.test_session.model, "my-local-model")
        self.assertTrue(self.test_session.path.exists())

        self.chat_cli.handle_line("/model a b")
        self.assertEqual(self.test_session.model, "my-local-model")  # Should not change

    @patch("streamchat.cli.questionary.select")
    def test_model_interactive(self, mock_select):
        """Interactive model selection uses questionary"""
        mock_select.return_value.ask.return_value = "gpt-4.1"

        self.chat_cli.handle_line("/model")

        mock_select.assert_called_once()
        self.assertEqual(self.test_session.model, "gpt-4.1")

    @patch("streamchat.cli.questionary.select")
    def test_model_picker_cancelled(self, mock_select):
        mock_select.return_value.ask.return_value = None
        self.chat_cli.handle_line("/model")
        self.assertEqual(self.test_session.model, "gpt-4o-mini")

    def test_clear_command_keeps_active_prompt(self):
        """Clearing drops the turns but not the active system prompt"""
        self.test_session.conversation.append(Message("system", "Custom"))
        self.test_session.conversation.add_user("Hello")
        self.test_session.conversation.add_assistant("Hi there!")

        self.chat_cli.handle_line("/clear")

        self.assertEqual(self.test_session.messages, [{"role": "system", "content": "Custom"}])

    def test_clear_twice_is_idempotent(self):
        self.test_session.conversation.add_user("Hello")
        self.chat_cli.handle_line("/clear")
        first = self.test_session.messages
        self.chat_cli.handle_line("/clear")
        self.assertEqual(self.test_session.messages, first)

    def test_sys_replaces_prompt_and_clears(self):
        self.test_session.conversation.add_user("Hello")

        self.chat_cli.handle_line("/sys Answer in French.")

        self.assertEqual(
            self.test_session.messages, [{"role": "system", "content": "Answer in French."}]
        )

    def test_sys_without_text_shows_prompt(self):
        self.chat_cli.handle_line("/sys")
        self.assertIn(SYSTEM_PROMPT, self.printed)
        self.assertEqual(len(self.test_session.messages), 1)

    def test_apply_preset(self):
        self.test_session.conversation.add_user("Hello")

        self.chat_cli.handle_line("/preset pirate")

        self.assertEqual(
            self.test_session.messages, [{"role": "system", "content": "Talk like a pirate."}]
        )

    def test_unknown_preset_leaves_conversation(self):
        self.test_session.conversation.add_user("Hello")
        self.chat_cli.handle_line("/preset nope")
        self.assertEqual(len(self.test_session.messages), 2)
        self.assertIn("Unknown preset", self.printed)

    @patch("streamchat.cli.questionary.select")
    def test_preset_picker(self, mock_select):
        mock_select.return_value.ask.return_value = "pirate"
        self.chat_cli.handle_line("/preset")
        self.assertEqual(self.test_session.conversation.system_prompt, "Talk like a pirate.")

    def test_time_hint_toggle(self):
        """Test enabling and disabling the time hint"""
        self.chat_cli.handle_line("/time on")
        self.assertTrue(self.test_session.include_time)

        self.chat_cli.handle_line("/time off")
        self.assertFalse(self.test_session.include_time)

        self.chat_cli.handle_line("/time sometimes")
        self.assertFalse(self.test_session.include_time)  # Should not change

    def test_time_hint_sent_but_not_stored(self):
        self.test_session.include_time = True

        self.chat_cli.submit("What time is it?")

        _, payload = self.transport.calls[0]
        self.assertEqual(payload[-1]["role"], "system")
        self.assertTrue(payload[-1]["content"].startswith("Current local time:"))
        self.assertEqual(
            [m["role"] for m in self.test_session.messages], ["system", "user", "assistant"]
        )

    def test_save_transcript(self):
        self.chat_cli.submit("hi")
        target = self.tmp_path / "out.md"

        self.chat_cli.handle_line(f"/save {target}")

        text = target.read_text()
        self.assertTrue(text.startswith("# Chat Transcript ("))
        self.assertIn("Model: gpt-4o-mini\n\n", text)
        self.assertIn("**USER**: hi\n\n**ASSISTANT**: Hi there!", text)
        self.assertNotIn("SYSTEM", text)

    def test_save_transcript_failure_reported(self):
        self.chat_cli.handle_line(f"/save {self.tmp_path / 'missing' / 'dir' / 'out.md'}")
        self.assertIn("Failed to save transcript", self.printed)

    def test_clip_saves_last_reply(self):
        self.chat_cli.handle_line("/clip")
        self.assertIn("No assistant reply", self.printed)
        self.assertFalse((self.tmp_path / "clip.txt").exists())

        self.chat_cli.submit("hi")
        self.chat_cli.handle_line("/clip")
        self.assertEqual((self.tmp_path / "clip.txt").read_text(), "Hi there!")

    def test_unknown_command(self):
        self.assertTrue(self.chat_cli.handle_line("/frobnicate"))
        self.assertIn("Unknown command: /frobnicate", self.printed)
        self.assertEqual(self.transport.calls, [])

    def test_bad_usage_printed(self):
        self.chat_cli.handle_line("/new")
        self.assertIn("Usage: /new <name>", self.printed)

    def test_help(self):
        self.chat_cli.handle_line("/help")
        self.assertIn("/multi", self.printed)

    def test_exit_returns_false(self):
        self.assertFalse(self.chat_cli.handle_line("/exit"))
        self.assertTrue(self.chat_cli.state.finished)
        self.assertTrue(self.test_session.path.exists())
