"""Memory tools offered to the model: store_memory and recall_memory."""

import logging
from typing import Dict, List, Optional

from .service import MemoryService

logger = logging.getLogger(__name__)


class MemoryTool:
    """
    Exposes a MemoryService to the conversation as two tools.

    Both handlers are coroutines; the dispatcher awaits them, so a
    ``recall_memory`` later in the same turn sees what an earlier
    ``store_memory`` wrote.
    """

    STORE_TOOL_DEF = {
        "name": "store_memory",
        "description": (
            "Store important information in long-term memory so it can be recalled "
            "in future conversations. Use this for facts the user shares about "
            "themselves, their preferences, or anything they ask you to remember."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": "The information to remember, as a complete sentence"
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Optional keywords describing the information"
                }
            },
            "required": ["content"]
        }
    }

    RECALL_TOOL_DEF = {
        "name": "recall_memory",
        "description": (
            "Search long-term memory for information stored earlier. "
            "Use this before answering questions about the user or about things "
            "discussed in previous conversations."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "What to look for, phrased as a specific question or topic"
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return (default: 5)"
                }
            },
            "required": ["query"]
        }
    }

    def __init__(self, service: MemoryService, default_limit: int = 5):
        self.service = service
        self.default_limit = default_limit

    async def store_memory(self, content: str, tags: Optional[List[str]] = None) -> str:
        """Tool handler: ingest ``content`` with optional tags."""
        metadata: Dict = {"source": "chat"}
        if tags:
            metadata["tags"] = tags

        stored = await self.service.ingest(content, metadata)

        if stored == 0:
            return "Nothing stored - the information was empty."
        if stored == 1:
            return "Stored 1 new chunk in memory successfully."
        return f"Stored {stored} new chunks in memory successfully."

    async def recall_memory(self, query: str, limit: Optional[int] = None) -> str:
        """Tool handler: recall memories and format them for the model."""
        results = await self.service.recall(query, limit or self.default_limit)

        if not results:
            logger.info(f"No results found for query: {query}")
            return "No relevant information found in memory"

        return "\n".join(
            f"{i}. {r.content} (distance: {r.distance:.3f})"
            for i, r in enumerate(results, 1)
        )

    def register(self, registry):
        """Register both memory tools with a ToolRegistry."""
        registry.register_function(
            name=self.STORE_TOOL_DEF["name"],
            description=self.STORE_TOOL_DEF["description"],
            function=self.store_memory,
            parameters=self.STORE_TOOL_DEF["parameters"]
        )
        registry.register_function(
            name=self.RECALL_TOOL_DEF["name"],
            description=self.RECALL_TOOL_DEF["description"],
            function=self.recall_memory,
            parameters=self.RECALL_TOOL_DEF["parameters"]
        )
