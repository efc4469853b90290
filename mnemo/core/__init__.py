"""
Core components - configuration, capability interfaces and terminal UI.

The llama.cpp completer lives in ``mnemo.core.model_handler`` and is imported
explicitly, since it needs the optional ``llm`` extra.
"""

from .config import Config
from .interfaces import Completer, Embedder

__all__ = ['Config', 'Completer', 'Embedder']
