"""
Conversation history management.
"""

from typing import Dict, List, Optional

from .message import ConversationMessage


class ConversationHistory:
    """Append-only conversation history with a sliding prompt window."""

    def __init__(self, system_message: Optional[str] = None):
        """
        Initialize conversation history.

        Args:
            system_message: Optional initial system message
        """
        self.messages: List[ConversationMessage] = []
        self.system_message: Optional[ConversationMessage] = None
        if system_message:
            self.set_system_message(system_message)

    def set_system_message(self, content: str):
        """Set the system message."""
        self.system_message = ConversationMessage(role="system", content=content)

    def add_message(self, message: ConversationMessage) -> ConversationMessage:
        """Add a message to history."""
        if message.role == "system":
            raise ValueError("System messages are set with set_system_message()")
        self.messages.append(message)
        return message

    def add_user_message(self, content: str) -> ConversationMessage:
        """Add a user message."""
        return self.add_message(ConversationMessage(role="user", content=content))

    def add_assistant_message(self, content: str) -> ConversationMessage:
        """Add an assistant message."""
        return self.add_message(ConversationMessage(role="assistant", content=content))

    def window(self, max_messages: Optional[int] = None) -> List[ConversationMessage]:
        """
        Messages to send to the model: the system message plus the most recent history.

        Args:
            max_messages: Maximum history messages to include (None = all)
        """
        recent = self.messages
        if max_messages is not None and max_messages >= 0:
            recent = self.messages[-max_messages:] if max_messages else []

        messages = []
        if self.system_message:
            messages.append(self.system_message)
        messages.extend(recent)
        return messages

    def get_messages(self) -> List[Dict]:
        """Get messages in LLM format."""
        return [m.to_dict() for m in self.window()]

    def clear(self):
        """Clear conversation history (keeps system message)."""
        self.messages = []

    def get_summary(self) -> str:
        """Get a summary of the conversation."""
        if not self.messages:
            return "No messages yet"

        summary = []
        for msg in self.messages[-5:]:  # Last 5 messages
            role = msg.role.upper()
            content = msg.content[:80] + "..." if len(msg.content) > 80 else msg.content
            summary.append(f"[{role}]: {content}")

        return "\n".join(summary)

    def __len__(self) -> int:
        return len(self.messages)
