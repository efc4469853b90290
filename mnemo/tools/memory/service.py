"""Memory ingest and recall on top of the chunker, embedder and vector store."""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mnemo.errors import EmbeddingFailure

from .chunker import TextChunker
from .vector_store import VectorStore

logger = logging.getLogger(__name__)

# Reserved metadata key holding the chunk text
CONTENT_KEY = "content"


@dataclass(frozen=True)
class Recollection:
    """One recalled memory, closest first."""
    id: int
    content: str
    distance: float
    tags: Dict[str, Any] = field(default_factory=dict)


class MemoryService:
    """
    Semantic memory: chunk text, embed the chunks and search them later.

    The embedder is injected and shared with the rest of the application;
    store calls run in worker threads so independent ingests overlap and are
    serialized by the store's own lock.
    """

    def __init__(
        self,
        store: VectorStore,
        embedder,
        chunker: Optional[TextChunker] = None,
        max_distance: Optional[float] = None
    ):
        """
        Initialize the memory service.

        Args:
            store: Open vector store
            embedder: Embedder capability (``async embed(text)``)
            chunker: Text chunker (default: 1024 characters, 100 overlap)
            max_distance: Drop recall results farther than this (None = no cutoff)
        """
        self.store = store
        self.embedder = embedder
        self.chunker = chunker or TextChunker()
        self.max_distance = max_distance

    async def _embed(self, text: str) -> List[float]:
        try:
            vector = await self.embedder.embed(text)
        except EmbeddingFailure:
            raise
        except Exception as e:
            logger.error(f"Embedder failed: {e}")
            raise EmbeddingFailure(f"Embedder failed: {e}") from e

        return self._check_vector(vector)

    @staticmethod
    def _check_vector(vector: Optional[Sequence[float]]) -> List[float]:
        values = [float(v) for v in vector] if vector is not None else []
        if not values:
            raise EmbeddingFailure("Embedder returned an empty vector")
        if all(v == 0.0 for v in values):
            raise EmbeddingFailure("Embedder returned an all-zero vector")
        if not all(math.isfinite(v) for v in values):
            raise EmbeddingFailure("Embedder returned non-finite values")
        return values

    async def ingest(self, text: str, metadata: Optional[Dict[str, Any]] = None) -> int:
        """
        Chunk, embed and store a text.

        Chunks are stored one at a time in order. If a chunk fails the
        remaining ones are skipped and the chunks already stored stay.

        Args:
            text: Text to remember
            metadata: Tags stored with every chunk (must not use the ``content`` key)

        Returns:
            Number of chunks stored

        Raises:
            EmbeddingFailure: If the embedder fails on a chunk
        """
        tags = dict(metadata or {})
        tags.pop(CONTENT_KEY, None)

        chunks = self.chunker.split(text)
        if not chunks:
            logger.debug("Nothing to ingest (empty text)")
            return 0

        stored = 0
        for chunk in chunks:
            try:
                vector = await self._embed(chunk.text)
                record = {**tags, CONTENT_KEY: chunk.text}
                record_id = await asyncio.to_thread(self.store.add, vector, record)
            except Exception:
                logger.error(
                    f"Ingest stopped at chunk {chunk.ordinal + 1}/{len(chunks)} "
                    f"({stored} stored)"
                )
                raise
            stored += 1
            logger.debug(f"Stored chunk {chunk.ordinal} as record {record_id}")

        logger.info(f"Ingested {stored} chunk(s) into memory")
        return stored

    async def ingest_document(
        self,
        text: str,
        display_name: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> int:
        """Ingest a parsed document, tagging every chunk with its source name."""
        tags = dict(metadata or {})
        tags["source"] = display_name
        logger.info(f"Ingesting document: {display_name} ({len(text)} characters)")
        return await self.ingest(text, tags)

    async def recall(self, query: str, limit: int = 5) -> List[Recollection]:
        """
        Find the memories closest to a query.

        Args:
            query: Text to search for
            limit: Maximum number of results

        Returns:
            Recollections ordered by distance (closest first)

        Raises:
            ValueError: If limit is not positive
            EmbeddingFailure: If the query cannot be embedded
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        vector = await self._embed(query)
        results = await asyncio.to_thread(self.store.query, vector, limit)

        recollections = []
        for result in results:
            if self.max_distance is not None and result.distance > self.max_distance:
                continue
            tags = dict(result.metadata)
            content = tags.pop(CONTENT_KEY, "")
            recollections.append(Recollection(
                id=result.id,
                content=content,
                distance=result.distance,
                tags=tags
            ))

        logger.debug(f"Recall '{query}': {len(recollections)} of {len(results)} results kept")
        return recollections

    async def count(self) -> int:
        return await asyncio.to_thread(self.store.count)

    async def clear(self):
        """Forget every stored memory."""
        await asyncio.to_thread(self.store.clear)
