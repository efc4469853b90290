"""
Memory Tool Package - semantic memory backed by ChromaDB.

Main Components:
- TextChunker: Text chunking with overlap and natural boundaries
- VectorStore: ChromaDB-based vector storage with K-nearest-neighbour search
- MemoryService: Ingest and recall on top of chunker, embedder and store
- MemoryTool: store_memory / recall_memory tools for the conversation
- SentenceTransformerEmbedder: Sentence transformer embeddings
  (import from ``mnemo.tools.memory.embedder``, needs the ``embeddings`` extra)

Usage:
    from mnemo.tools.memory import MemoryService, VectorStore
    from mnemo.tools.memory.embedder import SentenceTransformerEmbedder

    embedder = SentenceTransformerEmbedder()
    store = VectorStore("data/memory", name="rag-db-v3", dimension=embedder.dimension)
    memory = MemoryService(store, embedder)

    # Store memory
    await memory.ingest("Some text to remember", {"source": "user"})

    # Recall memory
    results = await memory.recall("search query")
"""

from .chunker import Chunk, TextChunker
from .documents import Document, iter_documents, load_document
from .service import MemoryService, Recollection
from .tool import MemoryTool
from .vector_store import QueryResult, VectorStore

__all__ = [
    "Chunk",
    "TextChunker",
    "Document",
    "iter_documents",
    "load_document",
    "MemoryService",
    "Recollection",
    "MemoryTool",
    "QueryResult",
    "VectorStore",
]
