"""ChromaDB vector store for memory records."""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import chromadb
import numpy as np
from chromadb.config import Settings

from mnemo.errors import DimensionMismatch, InvalidVector, MetricMismatch, StoreClosed

logger = logging.getLogger(__name__)

SUPPORTED_METRICS = ("cosine", "l2")

# Record metadata is stored JSON-encoded under this single field
METADATA_FIELD = "metadata"

# Collection metadata key holding the next id to hand out
NEXT_ID_FIELD = "next_id"


@dataclass(frozen=True)
class QueryResult:
    """A stored record matched by a query."""
    id: int
    metadata: Dict[str, Any]
    distance: float


class _CollectionState:
    """Write lock and id counter shared by every handle on one collection."""

    def __init__(self, next_id: int):
        self.lock = threading.Lock()
        self.next_id = next_id


_states: Dict[Tuple[str, str], _CollectionState] = {}
_states_lock = threading.Lock()


class VectorStore:
    """
    Persistent store of (embedding, metadata) records with K-nearest-neighbour search.

    Each named store is one ChromaDB collection under ``storage_dir``. The
    dimension and distance metric are fixed when the store is created and are
    checked every time it is reopened.

    Distances:
        cosine: 1 - cosine similarity, in [0, 2]
        l2: squared Euclidean distance
    """

    def __init__(
        self,
        storage_dir: Path,
        name: str = "memory",
        dimension: int = 384,
        metric: str = "cosine"
    ):
        """
        Open (or create) a named vector store.

        Args:
            storage_dir: Directory for ChromaDB data
            name: Store name, one collection per name
            dimension: Embedding dimension
            metric: Distance metric, "cosine" or "l2"

        Raises:
            ValueError: If dimension or metric are invalid
            DimensionMismatch: If the store exists with another dimension
            MetricMismatch: If the store exists with another metric
        """
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        if metric not in SUPPORTED_METRICS:
            raise ValueError(f"Unsupported metric '{metric}', expected one of {SUPPORTED_METRICS}")

        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.name = name
        self.dimension = dimension
        self.metric = metric

        self.client = chromadb.PersistentClient(
            path=str(self.storage_dir / "chroma"),
            settings=Settings(anonymized_telemetry=False)
        )

        key = (str(self.storage_dir.resolve()), name)
        with _states_lock:
            self.collection = self._open_collection()
            if key not in _states:
                _states[key] = _CollectionState(self._stored_next_id())
            self._state = _states[key]

        logger.info(
            f"Opened vector store '{name}' ({dimension} dims, {metric}, "
            f"{self.collection.count()} records)"
        )

    def _collection_metadata(self, next_id: int = 1) -> Dict[str, Any]:
        return {
            "hnsw:space": self.metric,
            "metric": self.metric,
            "dimension": self.dimension,
            NEXT_ID_FIELD: next_id
        }

    def _open_collection(self):
        existing = {c if isinstance(c, str) else c.name for c in self.client.list_collections()}

        if self.name not in existing:
            return self.client.create_collection(
                name=self.name,
                metadata=self._collection_metadata(),
                embedding_function=None
            )

        collection = self.client.get_collection(name=self.name, embedding_function=None)
        stored = collection.metadata or {}

        stored_dimension = stored.get("dimension")
        if stored_dimension is not None and int(stored_dimension) != self.dimension:
            raise DimensionMismatch(self.name, int(stored_dimension), self.dimension)

        stored_metric = stored.get("metric") or stored.get("hnsw:space")
        if stored_metric is not None and stored_metric != self.metric:
            raise MetricMismatch(self.name, stored_metric, self.metric)

        return collection

    def _stored_next_id(self) -> int:
        ids = self.collection.get(include=[])["ids"]
        high_water = int((self.collection.metadata or {}).get(NEXT_ID_FIELD, 1))
        return max(high_water, max((int(i) for i in ids), default=0) + 1)

    def _save_next_id(self, next_id: int):
        # The distance function cannot be modified once the collection exists
        metadata = {
            key: value for key, value in self._collection_metadata(next_id).items()
            if key != "hnsw:space"
        }
        self.collection.modify(metadata=metadata)

    def _ensure_open(self):
        if self.collection is None:
            raise StoreClosed(f"Vector store '{self.name}' is closed")

    def _validate(self, embedding: Sequence[float]) -> List[float]:
        try:
            vector = np.asarray(embedding, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidVector(f"Embedding is not a numeric vector: {e}") from e

        if vector.ndim != 1 or vector.shape[0] != self.dimension:
            raise InvalidVector(
                f"Expected a vector of length {self.dimension} for store '{self.name}', "
                f"got shape {vector.shape}"
            )
        if not np.all(np.isfinite(vector)):
            raise InvalidVector("Embedding contains non-finite values")

        return vector.tolist()

    @property
    def closed(self) -> bool:
        return self.collection is None

    def add(self, embedding: Sequence[float], metadata: Optional[Dict[str, Any]] = None) -> int:
        """
        Store a record.

        Args:
            embedding: Vector of length ``dimension``
            metadata: JSON-serializable mapping stored with the vector

        Returns:
            The id assigned to the record

        Raises:
            InvalidVector: If the embedding does not fit this store
            StoreClosed: If the handle was closed
        """
        self._ensure_open()
        vector = self._validate(embedding)
        payload = json.dumps(metadata or {}, ensure_ascii=False)

        with self._state.lock:
            record_id = self._state.next_id
            self.collection.add(
                ids=[str(record_id)],
                embeddings=[vector],
                metadatas=[{METADATA_FIELD: payload}]
            )
            self._state.next_id = record_id + 1
            self._save_next_id(self._state.next_id)

        logger.debug(f"Stored record {record_id} in '{self.name}'")
        return record_id

    def query(self, embedding: Sequence[float], k: int = 5) -> List[QueryResult]:
        """
        Find the records closest to an embedding.

        Args:
            embedding: Query vector of length ``dimension``
            k: Maximum number of results

        Returns:
            Up to ``min(k, count)`` results ordered by distance, then id

        Raises:
            ValueError: If k is not positive
            InvalidVector: If the embedding does not fit this store
            StoreClosed: If the handle was closed
        """
        self._ensure_open()
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")
        vector = self._validate(embedding)

        collection_size = self.collection.count()
        if collection_size == 0:
            logger.debug(f"Vector store '{self.name}' is empty, no results to return")
            return []

        # Widen the candidate set until every record tied with the k-th distance is in it
        n_results = min(k, collection_size)
        while True:
            results = self.collection.query(
                query_embeddings=[vector],
                n_results=n_results,
                include=["metadatas", "distances"]
            )
            distances = results["distances"][0]
            if n_results >= collection_size or len(distances) < k:
                break
            if max(distances) > sorted(distances)[k - 1]:
                break
            n_results = min(n_results * 2, collection_size)

        matches = [
            QueryResult(
                id=int(record_id),
                metadata=self._decode(metadata),
                distance=max(0.0, float(distance))
            )
            for record_id, metadata, distance in zip(
                results["ids"][0], results["metadatas"][0], results["distances"][0]
            )
        ]
        matches.sort(key=lambda r: (r.distance, r.id))

        logger.debug(f"Search in '{self.name}': found {len(matches)} results")
        return matches[:k]

    def get(self, record_id: int) -> Optional[Dict[str, Any]]:
        """Return the metadata of a record, or None if it does not exist."""
        self._ensure_open()
        result = self.collection.get(ids=[str(record_id)], include=["metadatas"])
        if not result["ids"]:
            return None
        return self._decode(result["metadatas"][0])

    def delete(self, record_id: int) -> bool:
        """Delete a record by id. Returns False if it did not exist."""
        self._ensure_open()
        with self._state.lock:
            if not self.collection.get(ids=[str(record_id)], include=[])["ids"]:
                return False
            self.collection.delete(ids=[str(record_id)])
        logger.debug(f"Deleted record {record_id} from '{self.name}'")
        return True

    def count(self) -> int:
        """Number of records currently stored."""
        self._ensure_open()
        return self.collection.count()

    def clear(self):
        """Delete every record. Ids keep increasing afterwards, across restarts too."""
        self._ensure_open()
        with self._state.lock:
            self.client.delete_collection(self.name)
            self.collection = self.client.create_collection(
                name=self.name,
                metadata=self._collection_metadata(self._state.next_id),
                embedding_function=None
            )
        logger.info(f"Cleared vector store '{self.name}'")

    def close(self):
        """Release the collection; later operations raise StoreClosed."""
        if self.collection is not None:
            logger.debug(f"Closed vector store '{self.name}'")
        self.collection = None
        self.client = None

    def __enter__(self) -> "VectorStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @staticmethod
    def _decode(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not metadata or METADATA_FIELD not in metadata:
            return {}
        return json.loads(metadata[METADATA_FIELD])
