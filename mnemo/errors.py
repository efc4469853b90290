"""
Error types raised by the memory and tool-calling layers.
"""

from typing import List, Optional


class MnemoError(Exception):
    """Base class for all mnemo errors."""


class EmbeddingFailure(MnemoError):
    """The embedder could not produce a usable vector."""


class StoreUnavailable(MnemoError):
    """The vector store is not open."""


class StoreClosed(StoreUnavailable):
    """An operation was attempted on a closed store handle."""


class DimensionMismatch(MnemoError):
    """A store was reopened with a dimension different from its persisted data."""

    def __init__(self, name: str, expected: int, actual: int):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Store '{name}' was created with dimension {expected}, "
            f"cannot reopen it with dimension {actual}"
        )


class MetricMismatch(MnemoError):
    """A store was reopened with a distance metric different from its persisted data."""

    def __init__(self, name: str, expected: str, actual: str):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Store '{name}' uses the '{expected}' metric, "
            f"cannot reopen it with '{actual}' (use a new store name)"
        )


class InvalidVector(MnemoError, ValueError):
    """A vector does not match the store's dimension or holds non-finite values."""


class UnknownTool(MnemoError, LookupError):
    """No tool with the requested name is registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name}")


class InvalidArguments(MnemoError, ValueError):
    """Function call arguments failed schema validation."""

    def __init__(self, tool_name: str, problems: List[str]):
        self.tool_name = tool_name
        self.problems = problems
        super().__init__(f"Invalid arguments for {tool_name}: {'; '.join(problems)}")


class CompletionFailure(MnemoError):
    """The language model call for a turn failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
