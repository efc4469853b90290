"""
Assistant composition: wires configuration, memory, tools and the model together.
"""

import logging
from pathlib import Path
from typing import List, Optional

from mnemo.chat.conversation import ConversationLoop
from mnemo.chat.dispatcher import ToolDispatcher
from mnemo.chat.message import ConversationMessage
from mnemo.chat.registry import ToolRegistry
from mnemo.core.config import Config
from mnemo.tools.builtin import register_builtin_tools
from mnemo.tools.memory.chunker import TextChunker
from mnemo.tools.memory.service import MemoryService
from mnemo.tools.memory.tool import MemoryTool
from mnemo.tools.memory.vector_store import VectorStore

logger = logging.getLogger(__name__)


def create_embedder(config: Config):
    """Load the sentence-transformers embedder named in the configuration."""
    # torch is imported only when a real model is loaded
    from mnemo.tools.memory.embedder import SentenceTransformerEmbedder

    return SentenceTransformerEmbedder(
        model_name=config["MEMORY_EMBEDDING_MODEL"],
        cache_folder=config["MODEL_CACHE_DIR"],
        device=config["DEVICE"]
    )


def create_completer(config: Config):
    """Load the local GGUF chat model named in the configuration."""
    from mnemo.core.model_handler import ModelHandler

    if not config["MODEL_PATH"]:
        raise ValueError("MODEL_PATH is not configured (set it in config.env or pass --model)")

    return ModelHandler(
        model_path=config["MODEL_PATH"],
        n_ctx=config["MODEL_CONTEXT"],
        n_gpu_layers=config["MODEL_GPU_LAYERS"],
        temperature=config["TEMPERATURE"],
        max_tokens=config["MAX_TOKENS"],
        native_tools=config["MODEL_NATIVE_TOOLS"]
    )


def open_memory(config: Config, embedder) -> MemoryService:
    """Open the configured vector store and build a MemoryService on it."""
    store = VectorStore(
        Path(config["MEMORY_DIR"]),
        name=config["MEMORY_STORE_NAME"],
        dimension=embedder.dimension,
        metric=config["MEMORY_DISTANCE_METRIC"]
    )
    chunker = TextChunker(
        chunk_size=config["MEMORY_CHUNK_SIZE"],
        overlap=config["MEMORY_CHUNK_OVERLAP"]
    )
    return MemoryService(store, embedder, chunker=chunker, max_distance=config["MEMORY_MAX_DISTANCE"])


class Assistant:
    """
    A complete conversational agent with long-term memory.

    Components that are not passed in are built from the configuration;
    the embedder is shared between memory ingest and recall.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        embedder=None,
        completer=None,
        memory: Optional[MemoryService] = None
    ):
        self.config = config or Config()

        self.embedder = embedder or (memory.embedder if memory else create_embedder(self.config))
        self.memory = memory or open_memory(self.config, self.embedder)

        try:
            self.registry = ToolRegistry()
            MemoryTool(self.memory, default_limit=self.config["MEMORY_MAX_SEARCH_RESULTS"]).register(self.registry)
            register_builtin_tools(self.registry)
            self.dispatcher = ToolDispatcher(self.registry)

            self.completer = completer or create_completer(self.config)
            self.loop = ConversationLoop(
                self.completer,
                self.dispatcher,
                system_prompt=self.config["CHAT_SYSTEM_PROMPT"],
                max_history_in_prompt=self.config["CHAT_HISTORY_WINDOW"]
            )
        except Exception:
            # An injected memory service stays open for its owner
            if memory is None:
                self.memory.store.close()
            raise

        logger.info(f"Assistant ready with {len(self.registry)} tools: {', '.join(self.registry.names())}")

    async def send(self, user_text: str) -> List[ConversationMessage]:
        """Run one conversation turn and return the assistant messages it produced."""
        return await self.loop.run_turn(user_text)

    def close(self):
        """Close the memory store."""
        self.memory.store.close()

    def __enter__(self) -> "Assistant":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
