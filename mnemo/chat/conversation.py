"""
Conversation loop - runs one user turn through the model and the tools.

A turn appends the user message, asks the completer for a response given the
system prompt, the recent history and the tool catalog, then either appends
the plain response or dispatches each emitted function call in order and
appends one assistant message per result.
"""

import asyncio
import json
import logging
from typing import Dict, List, Optional

from mnemo.errors import CompletionFailure

from .dispatcher import ToolDispatcher, TurnDispatch
from .history import ConversationHistory
from .message import Completion, ConversationMessage
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant running entirely on this device. "
    "You have a long-term memory: store facts the user shares that are worth "
    "remembering, and recall memories before answering questions about the past."
)


def build_system_prompt(base_prompt: str, registry: ToolRegistry) -> str:
    """
    Combine the base prompt with a description and usage example for every tool.

    Args:
        base_prompt: Base system message
        registry: Registry whose tools are offered to the model

    Returns:
        Full system prompt
    """
    tools = registry.describe()
    if not tools:
        return base_prompt

    tool_descriptions = []
    for i, tool in enumerate(tools, 1):
        params_desc = []
        for spec in tool.specs:
            description = f": {spec.description}" if spec.description else ""
            params_desc.append(f"     - {spec.describe()}{description}")

        # Concrete example with the actual parameter names
        example_args = {spec.name: f"<{spec.name}>" for spec in tool.specs if spec.required}
        example_json = json.dumps({"name": tool.name, "arguments": example_args})

        tool_descriptions.append(
            f"{i}. {tool.name}: {tool.description}\n"
            f"   Parameters:\n"
            f"{chr(10).join(params_desc) if params_desc else '     (none)'}\n"
            f"   Example:\n"
            f"   <tool_call>{example_json}</tool_call>"
        )

    return f"""{base_prompt}

Use tools when needed. You have access to the following tools:

{chr(10).join(tool_descriptions)}

Tool calling rules:
- Supply every parameter yourself from the conversation. Never ask the user for parameter values.
- To call a tool, output only the <tool_call> block with properly formatted JSON.
- You may emit several <tool_call> blocks in one response; they run in the order given."""


class ConversationLoop:
    """Orchestrates conversation turns between the user, the model and the tools."""

    def __init__(
        self,
        completer,
        dispatcher: ToolDispatcher,
        system_prompt: Optional[str] = None,
        history: Optional[ConversationHistory] = None,
        max_history_in_prompt: int = 20
    ):
        """
        Initialize the conversation loop.

        Args:
            completer: Completer capability (``async complete(messages, tools)``)
            dispatcher: Dispatcher bound to the tool registry
            system_prompt: Base system message (tool descriptions are appended)
            history: Existing history to continue (default: new empty history)
            max_history_in_prompt: Maximum history messages sent to the model
        """
        self.completer = completer
        self.dispatcher = dispatcher
        self.base_system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.history = history or ConversationHistory()
        self.max_history_in_prompt = max_history_in_prompt
        self._turn_lock = asyncio.Lock()
        self.refresh_system_prompt()

    @property
    def registry(self) -> ToolRegistry:
        return self.dispatcher.registry

    def refresh_system_prompt(self):
        """Rebuild the system message from the current tool catalog."""
        self.history.set_system_message(build_system_prompt(self.base_system_prompt, self.registry))

    async def run_turn(self, user_text: str) -> List[ConversationMessage]:
        """
        Process one user turn.

        Args:
            user_text: The user's message

        Returns:
            The assistant messages appended during this turn

        Raises:
            CompletionFailure: If the model call fails (the user message stays in history)
        """
        async with self._turn_lock:
            self.history.add_user_message(user_text)
            completion = await self._complete()

            if not completion.has_function_calls:
                return [self.history.add_assistant_message(completion.response)]

            if completion.response and logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Dropping plain response alongside tool calls: {completion.response[:100]}")

            outcome = await self.dispatcher.dispatch_all(completion.function_calls)
            self._log_outcome(outcome)
            return [self.history.add_assistant_message(result) for result in outcome.results]

    async def _complete(self) -> Completion:
        messages = self.history.window(self.max_history_in_prompt)
        tools = self.registry.describe()

        if logger.isEnabledFor(logging.DEBUG):
            total_chars = sum(len(m.content) for m in messages)
            logger.debug(f"Completing over {len(messages)} messages (~{total_chars // 4} tokens), {len(tools)} tools")

        try:
            return await self.completer.complete(messages, tools)
        except CompletionFailure:
            raise
        except Exception as e:
            logger.error(f"Completion failed: {e}")
            raise CompletionFailure(f"Model completion failed: {e}", cause=e) from e

    @staticmethod
    def _log_outcome(outcome: TurnDispatch):
        states = ", ".join(f"{c.name}={c.state.value}" for c in outcome.calls)
        logger.info(f"Dispatched {len(outcome.calls)} tool call(s): {states}")
        if outcome.skipped:
            logger.warning(f"Skipped {len(outcome.skipped)} tool call(s) after a failure")

    def clear_history(self):
        """Clear conversation history (keeps the system prompt)."""
        self.history.clear()

    def get_history_summary(self) -> str:
        return self.history.get_summary()

    def export_conversation(self) -> List[Dict]:
        """Export the full conversation, system prompt included."""
        return self.history.get_messages()
