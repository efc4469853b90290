"""
mnemo - on-device semantic memory and tool calling for a conversational agent.

Text is chunked, embedded and kept in a persistent vector store; the model's
function calls are validated and dispatched to tools such as store_memory and
recall_memory.
"""

__version__ = "0.1.0"

from mnemo.app import Assistant
from mnemo.chat.conversation import ConversationLoop
from mnemo.chat.dispatcher import ToolDispatcher
from mnemo.chat.registry import ToolRegistry
from mnemo.tools.memory.service import MemoryService
from mnemo.tools.memory.vector_store import VectorStore

__all__ = [
    "Assistant",
    "ConversationLoop",
    "ToolDispatcher",
    "ToolRegistry",
    "MemoryService",
    "VectorStore",
]
