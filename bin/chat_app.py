#!/usr/bin/env python3
"""
Interactive Chat Application - Chat with long-term memory and tools.

Features:
- Conversational AI running a local GGUF model
- Long-term memory (store_memory / recall_memory tools)
- Demo tools (get_weather / send_email)
- Sequential dispatch of several tool calls per turn
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path to import mnemo package
sys.path.insert(0, str(Path(__file__).parent.parent))

from mnemo.app import Assistant
from mnemo.core.config import Config
from mnemo.core.ui import (
    ThinkingSpinner,
    console,
    print_assistant_messages,
    print_error,
    print_section,
    print_system_message,
)
from mnemo.errors import CompletionFailure, MnemoError


def setup_logging(verbose: bool = False, level_name: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(message)s' if not verbose else '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Suppress noisy loggers
    logging.getLogger('sentence_transformers').setLevel(logging.WARNING)
    logging.getLogger('chromadb').setLevel(logging.WARNING)


def load_system_prompt(prompt_arg: str) -> str:
    """
    Load system prompt from string or file.

    Args:
        prompt_arg: System prompt string or @filename to load from file

    Returns:
        System prompt string
    """
    if prompt_arg.startswith('@'):
        file_path = Path(prompt_arg[1:])
        if not file_path.exists():
            raise FileNotFoundError(f"System prompt file not found: {file_path}")
        return file_path.read_text(encoding='utf-8')
    return prompt_arg


async def interactive_chat(assistant: Assistant):
    """Interactive chat mode."""
    print_section("INTERACTIVE CHAT")

    console.print("\nCommands:")
    console.print("  - Type your message to chat")
    console.print("  - 'clear'   - Clear conversation history")
    console.print("  - 'summary' - Show conversation summary")
    console.print("  - 'quit'    - Exit (or Ctrl+C)")

    while True:
        user_input = (await asyncio.to_thread(console.input, "\n[bold cyan]You:[/] ")).strip()

        if not user_input:
            continue

        if user_input.lower() in ['quit', 'exit', 'q']:
            console.print("\nGoodbye!")
            break

        if user_input.lower() == 'clear':
            assistant.loop.clear_history()
            print_system_message("Conversation history cleared")
            continue

        if user_input.lower() == 'summary':
            console.print("\nConversation Summary:")
            console.print(assistant.loop.get_history_summary())
            continue

        try:
            with ThinkingSpinner("Thinking"):
                messages = await assistant.send(user_input)
        except CompletionFailure as e:
            print_error(f"Model call failed: {e}")
            continue

        print_assistant_messages([m.content for m in messages])


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Interactive Chat Application with long-term memory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run interactive chat (model path from config.env)
  python chat_app.py

  # With custom model
  python chat_app.py --model path/to/model.gguf

  # With custom system prompt
  python chat_app.py --system-prompt @docs/system-prompt.txt

  # Enable verbose logging
  python chat_app.py --verbose
        """
    )

    parser.add_argument("--config", type=str, default="config.env", help="Configuration file (default: config.env)")
    parser.add_argument("--model", type=str, help="Path to GGUF model (overrides MODEL_PATH)")
    parser.add_argument("--context", type=int, help="Context size in tokens (overrides MODEL_CONTEXT)")
    parser.add_argument(
        "--gpu-layers",
        type=int,
        help="Number of layers to offload to GPU (-1 = all, 0 = CPU only)"
    )
    parser.add_argument("--memory-dir", type=str, help="Memory storage directory (overrides MEMORY_DIR)")
    parser.add_argument(
        "--system-prompt",
        type=str,
        metavar="PROMPT",
        help="Custom system prompt (use @filename to load from file)"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    config = Config(args.config)
    setup_logging(verbose=args.verbose, level_name=config["LOG_LEVEL"])

    overrides = {
        "MODEL_PATH": args.model,
        "MODEL_CONTEXT": args.context,
        "MODEL_GPU_LAYERS": args.gpu_layers,
        "MEMORY_DIR": args.memory_dir,
    }
    config.config.update({key: value for key, value in overrides.items() if value is not None})
    if args.system_prompt:
        config.config["CHAT_SYSTEM_PROMPT"] = load_system_prompt(args.system_prompt)

    try:
        print_section("INITIALIZING CHAT APPLICATION")
        with Assistant(config) as assistant:
            print_system_message(f"Model ready (context: {assistant.completer.n_ctx():,} tokens)")
            stored = assistant.memory.store.count()
            if stored == 0:
                print_system_message("Memory store is empty (use memory_cli.py to add data)")
            else:
                print_system_message(f"Memory ready ({stored} records in '{config['MEMORY_STORE_NAME']}')")
            print_system_message(f"Tools: {', '.join(assistant.registry.names())}")

            asyncio.run(interactive_chat(assistant))

    except (KeyboardInterrupt, EOFError):
        console.print("\n\nInterrupted by user")
    except (MnemoError, ValueError) as e:
        print_error(str(e))
        if args.verbose:
            console.print_exception()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
