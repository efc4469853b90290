"""Tests for conversation history and messages."""

import unittest

from mnemo.chat.history import ConversationHistory
from mnemo.chat.message import ConversationMessage, FunctionCall


class TestConversationHistory(unittest.TestCase):
    """Test cases for ConversationHistory."""

    def setUp(self):
        self.history = ConversationHistory(system_message="Be brief.")

    def test_window_includes_system_message_first(self):
        self.history.add_user_message("hi")
        self.history.add_assistant_message("hello")

        self.assertEqual(
            [m.to_dict() for m in self.history.window()],
            [
                {"role": "system", "content": "Be brief."},
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello"},
            ]
        )

    def test_window_limits_recent_messages(self):
        for i in range(5):
            self.history.add_user_message(str(i))

        self.assertEqual([m.content for m in self.history.window(2)], ["Be brief.", "3", "4"])
        self.assertEqual([m.content for m in self.history.window(0)], ["Be brief."])

    def test_system_role_cannot_be_appended(self):
        with self.assertRaises(ValueError):
            self.history.add_message(ConversationMessage(role="system", content="sneaky"))

    def test_invalid_role(self):
        with self.assertRaises(ValueError):
            ConversationMessage(role="tool", content="result")

    def test_summary_truncates_long_messages(self):
        self.history.add_user_message("x" * 100)

        self.assertEqual(self.history.get_summary(), f"[USER]: {'x' * 80}...")


class TestFunctionCall(unittest.TestCase):
    """Test cases for FunctionCall."""

    def test_from_openai_shape_with_json_arguments(self):
        call = FunctionCall.from_dict({"function": {"name": "f", "arguments": '{"a": 1}'}})
        self.assertEqual(call, FunctionCall("f", {"a": 1}))

    def test_from_plain_shape(self):
        self.assertEqual(FunctionCall.from_dict({"name": "f"}), FunctionCall("f", {}))

    def test_missing_name(self):
        with self.assertRaises(ValueError):
            FunctionCall.from_dict({"arguments": {}})

    def test_invalid_json_arguments(self):
        with self.assertRaises(ValueError):
            FunctionCall.from_dict({"name": "f", "arguments": "{oops"})
