"""
Message representation for chat conversations.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ConversationMessage:
    """A single message in the conversation."""
    role: str  # 'system', 'user', 'assistant'
    content: str
    timestamp: datetime = field(default_factory=datetime.now, compare=False)

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Invalid role '{self.role}', expected one of {ROLES}")

    def to_dict(self) -> Dict:
        """Convert to dictionary for LLM API."""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class FunctionCall:
    """A function invocation emitted by the model."""
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> "FunctionCall":
        """
        Build a call from either ``{"name", "arguments"}`` or the OpenAI
        ``{"function": {"name", "arguments"}}`` shape.

        Arguments given as a JSON string are decoded.

        Raises:
            ValueError: If the name is missing or the arguments are not valid JSON
        """
        func = data.get("function", data)
        name = func.get("name")
        if not name:
            raise ValueError(f"Function call has no name: {data}")

        arguments = func.get("arguments") or {}
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError as e:
                raise ValueError(f"Arguments for '{name}' are not valid JSON: {e}") from e

        return cls(name=name, arguments=arguments)

    def to_dict(self) -> Dict:
        return {"name": self.name, "arguments": self.arguments}


@dataclass(frozen=True)
class Completion:
    """What the completer produced for one model turn."""
    response: str = ""
    function_calls: List[FunctionCall] = field(default_factory=list)

    @property
    def has_function_calls(self) -> bool:
        return bool(self.function_calls)
