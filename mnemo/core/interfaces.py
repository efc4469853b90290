"""
Capabilities consumed by the memory and chat layers.

The concrete adapters live next to the code that needs them
(``mnemo.tools.memory.embedder`` and ``mnemo.core.model_handler``);
everything else depends only on these protocols.
"""

from typing import List, Protocol, Sequence, runtime_checkable

from mnemo.chat.message import Completion, ConversationMessage
from mnemo.chat.tool import Tool


@runtime_checkable
class Embedder(Protocol):
    """Maps text to a fixed-length vector."""

    @property
    def dimension(self) -> int:
        ...

    async def embed(self, text: str) -> Sequence[float]:
        """Embed a single text. Failures raise, they never return a zero vector."""
        ...


@runtime_checkable
class Completer(Protocol):
    """Runs the language model over a conversation."""

    async def complete(
        self,
        messages: List[ConversationMessage],
        tools: List[Tool]
    ) -> Completion:
        """Return either a plain response or the function calls the model emitted."""
        ...
