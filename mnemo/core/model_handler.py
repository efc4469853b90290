"""
Model Handler - Runs a local GGUF chat model as the conversation completer.
"""

import asyncio
import gc
import logging
import threading
import time
from pathlib import Path
from typing import List, Optional

from llama_cpp import Llama

from mnemo.chat.message import Completion, ConversationMessage
from mnemo.chat.tool import Tool
from mnemo.chat.tool_parser import parse_completion

logger = logging.getLogger(__name__)


class ModelHandler:
    """Local llama.cpp model exposed through the Completer capability."""

    def __init__(
        self,
        model_path: str,
        n_ctx: int = 8192,
        n_threads: int = 4,
        n_gpu_layers: int = -1,
        temperature: float = 0.7,
        max_tokens: int = 512,
        native_tools: bool = False
    ):
        """
        Initialize the model handler.

        Args:
            model_path: Path to GGUF model (required)
            n_ctx: Context size (default: 8192)
            n_threads: Number of threads (default: 4)
            n_gpu_layers: Number of layers to offload to GPU (default: -1 = all layers, 0 = CPU only)
                         Falls back to CPU if GPU support is not available
            temperature: Sampling temperature for chat turns
            max_tokens: Maximum tokens generated per turn
            native_tools: Pass tool definitions to llama.cpp's OpenAI-style tool calling.
                          When False the tools are described in the system prompt only and
                          the model answers with <tool_call> blocks.
        """
        if not model_path:
            raise ValueError("model_path is required")

        if not Path(model_path).exists():
            raise ValueError(f"Model not found: {model_path}")

        logger.info(f"Loading model: {Path(model_path).name}...")
        self.llm = Llama(
            model_path=str(model_path),
            n_ctx=n_ctx,
            n_threads=n_threads,
            n_gpu_layers=n_gpu_layers,  # -1 = all layers to GPU, 0 = CPU only
            verbose=False
        )
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.native_tools = native_tools
        # llama.cpp contexts are not thread-safe
        self._lock = threading.Lock()

        gpu_info = "GPU acceleration enabled" if n_gpu_layers != 0 else "CPU only"
        if n_gpu_layers != 0:
            gpu_info += " (will fall back to CPU if GPU unavailable)"
        logger.info(f"Model loaded (context: {n_ctx} tokens, {gpu_info})")

    def reset_state(self, deep_clean: bool = False):
        """
        Reset the model's KV cache to clear any accumulated state.

        Args:
            deep_clean: If True, also run garbage collection and brief pause
        """
        try:
            self.llm.reset()
            logger.debug("Model state reset")
        except AttributeError:
            # Older llama-cpp-python versions
            logger.debug("Model reset not available")

        if deep_clean:
            gc.collect()
            time.sleep(0.1)
            logger.debug("Deep clean completed")

    def chat(
        self,
        messages: List[dict],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[dict]] = None,
        tool_choice: Optional[str] = None
    ) -> dict:
        """
        Chat completion with optional tool calling support.

        Args:
            messages: List of message dictionaries with role and content
            max_tokens: Maximum tokens to generate (default: handler setting)
            temperature: Sampling temperature (default: handler setting)
            tools: Optional list of tool definitions for function calling
            tool_choice: Tool selection mode ("auto", "none", or specific tool name)

        Returns:
            Full response dictionary from llama_cpp
        """
        kwargs = {
            "messages": messages,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature if temperature is None else temperature
        }

        if tools:
            kwargs["tools"] = tools
            if tool_choice:
                kwargs["tool_choice"] = tool_choice

        with self._lock:
            # Clean KV cache per request to avoid contamination between turns
            self.reset_state()
            return self.llm.create_chat_completion(**kwargs)

    def n_ctx(self) -> int:
        return self.llm.n_ctx()

    async def complete(self, messages: List[ConversationMessage], tools: List[Tool]) -> Completion:
        """
        Run one model turn.

        Args:
            messages: System prompt and history
            tools: Tools the model may call

        Returns:
            Completion with the plain response or the parsed function calls
        """
        llm_tools = [tool.to_llm_format() for tool in tools] if self.native_tools else None
        response = await asyncio.to_thread(
            self.chat,
            [m.to_dict() for m in messages],
            tools=llm_tools
        )

        message = response['choices'][0]['message']
        if logger.isEnabledFor(logging.DEBUG):
            content = message.get('content') or ''
            content_preview = content[:300] + ("..." if len(content) > 300 else "")
            logger.debug(f"LLM response (first 300 chars): {content_preview}")

        return parse_completion(message)
