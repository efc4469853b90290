"""Embedding generation using sentence transformers."""

import asyncio
import logging
from typing import List, Optional

import numpy as np
import torch
from sentence_transformers import SentenceTransformer

from mnemo.errors import EmbeddingFailure

logger = logging.getLogger(__name__)


def detect_device(device: Optional[str] = None) -> str:
    """
    Resolve the torch device to run embeddings on.

    Args:
        device: "cuda", "mps", "cpu", or None/"auto" to pick the best available
    """
    if device and device != "auto":
        return device
    if torch.cuda.is_available():
        return "cuda"
    if torch.backends.mps.is_available():
        return "mps"
    return "cpu"


class SentenceTransformerEmbedder:
    """Embedder capability backed by a sentence-transformers model."""

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        cache_folder: Optional[str] = "models",
        device: Optional[str] = None
    ):
        """
        Initialize embedder.

        Args:
            model_name: HuggingFace model name or local path to model directory.
                        The default produces 384-dimensional vectors.
            cache_folder: Directory to cache/store downloaded models (default: "models")
            device: Device to run embeddings on. Options:
                   - None or "auto" (default): Auto-detect best device (cuda > mps > cpu)
                   - "cuda": NVIDIA GPU
                   - "mps": Apple Silicon GPU
                   - "cpu": CPU only
        """
        logger.info(f"Loading embedding model: {model_name}...")
        if cache_folder:
            logger.info(f"Using cache folder: {cache_folder}")

        self.device = detect_device(device)
        logger.info(f"Using device: {self.device}")

        self.model_name = model_name
        self.model = SentenceTransformer(model_name, cache_folder=cache_folder, device=self.device)
        self._dimension = int(self.model.get_sentence_embedding_dimension())

        logger.info(f"Embedding model loaded ({self._dimension} dimensions)")

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed_single(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Raises:
            EmbeddingFailure: If the model fails or returns an unusable vector
        """
        try:
            vector = self.model.encode([text], show_progress_bar=False)[0]
        except Exception as e:
            raise EmbeddingFailure(f"Embedding model '{self.model_name}' failed: {e}") from e

        if vector.shape[0] != self._dimension or not np.any(vector):
            raise EmbeddingFailure(f"Embedding model '{self.model_name}' returned an unusable vector")

        return vector.astype(float).tolist()

    async def embed(self, text: str) -> List[float]:
        """Embed a single text without blocking the event loop."""
        return await asyncio.to_thread(self.embed_single, text)
