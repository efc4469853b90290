"""
UI utilities for terminal-based interactions.
"""

import sys
import threading
import time
from typing import List

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

# Global console instance for consistent rendering
console = Console()


def print_section(title: str):
    """Print a section header."""
    console.print()
    console.rule(f"[bold]{title}")


def print_assistant_messages(contents: List[str]):
    """
    Print the assistant messages of one turn as markdown.

    Args:
        contents: Message contents in the order they were appended
    """
    console.print()
    console.print("Assistant:", style="dim yellow")
    console.print("─" * console.width, style="dim")
    for content in contents:
        console.print(Markdown(content or "_(empty response)_"))
    console.print("─" * console.width, style="dim")


def print_system_message(text: str, style: str = "dim"):
    """Print a status line (tool calls, progress, warnings)."""
    console.print(f"  Info: {text}", style=style)


def print_error(text: str):
    console.print(f"Error: {text}", style="bold red")


def print_recollections(recollections) -> None:
    """
    Render recall results as a table, closest first.

    Args:
        recollections: Sequence of Recollection
    """
    if not recollections:
        console.print("No results found", style="dim")
        return

    table = Table(show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Distance", justify="right")
    table.add_column("Tags", style="cyan")
    table.add_column("Content")

    for i, item in enumerate(recollections, 1):
        tags = ", ".join(f"{k}={v}" for k, v in item.tags.items())
        table.add_row(str(i), f"{item.distance:.3f}", tags, item.content)

    console.print(table)


class ThinkingSpinner:
    """Animated spinner with an elapsed timer while a turn is in flight."""

    FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

    def __init__(self, message: str = "Thinking"):
        self.message = message
        self._stop = threading.Event()
        self._thread = None
        self._start_time = 0.0

    def _spin(self):
        idx = 0
        while not self._stop.is_set():
            elapsed = int(time.time() - self._start_time)
            minutes, seconds = divmod(elapsed, 60)
            time_str = f"{minutes}m {seconds}s" if minutes else f"{seconds}s"

            frame = self.FRAMES[idx % len(self.FRAMES)]
            sys.stdout.write(f"\r\033[2m{self.message} {frame} [{time_str}]\033[0m  ")
            sys.stdout.flush()
            self._stop.wait(0.1)
            idx += 1

        # Clear the spinner line
        sys.stdout.write("\r" + " " * (len(self.message) + 20) + "\r")
        sys.stdout.flush()

    def __enter__(self):
        self._start_time = time.time()
        self._stop.clear()
        self._thread = threading.Thread(target=self._spin, daemon=True)
        self._thread.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._stop.set()
        if self._thread:
            self._thread.join()
