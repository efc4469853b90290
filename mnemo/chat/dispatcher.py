"""
Tool dispatcher - validates model function calls and runs their handlers.

Every call moves through a small state machine::

    RECEIVED -> VALIDATED -> EXECUTED
                          -> FAILED     (handler raised)
    RECEIVED -> REJECTED                (unknown tool or bad arguments)

The calls of one model turn are drained from an ordered queue one at a time,
because later calls may depend on the side effects of earlier ones
(store then recall). A rejected call does not stop the turn; a failed call
aborts the calls still queued behind it, which stay RECEIVED.
"""

import inspect
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from mnemo.errors import InvalidArguments, UnknownTool

from .message import FunctionCall
from .registry import ToolRegistry
from .schema import coerce_arguments
from .tool import Tool

logger = logging.getLogger(__name__)


class CallState(Enum):
    """Lifecycle of a single function call."""

    RECEIVED = "received"
    VALIDATED = "validated"
    EXECUTED = "executed"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class PendingCall:
    """A function call together with its dispatch state."""

    call: FunctionCall
    state: CallState = CallState.RECEIVED
    tool: Optional[Tool] = None
    arguments: Dict[str, Any] = field(default_factory=dict)
    result: Optional[str] = None
    error: Optional[str] = None
    execution_time: float = 0.0

    @property
    def name(self) -> str:
        return self.call.name

    @property
    def finished(self) -> bool:
        return self.state in (CallState.EXECUTED, CallState.REJECTED, CallState.FAILED)


@dataclass
class TurnDispatch:
    """Outcome of dispatching every function call of one model turn."""

    calls: List[PendingCall]

    @property
    def results(self) -> List[str]:
        """Display strings of the calls that produced one, in emission order."""
        return [c.result for c in self.calls if c.result is not None]

    @property
    def aborted(self) -> bool:
        return any(c.state is CallState.FAILED for c in self.calls)

    @property
    def skipped(self) -> List[PendingCall]:
        return [c for c in self.calls if c.state is CallState.RECEIVED]


class ToolDispatcher:
    """Routes function calls to registered tool handlers."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    def validate(self, pending: PendingCall) -> PendingCall:
        """Move a RECEIVED call to VALIDATED or REJECTED."""
        if pending.state is not CallState.RECEIVED:
            raise RuntimeError(f"Cannot validate call '{pending.name}' in state {pending.state.value}")

        try:
            tool = self.registry.resolve(pending.name)
        except UnknownTool as e:
            logger.error(f"Rejected call to unknown tool '{pending.name}'")
            return self._reject(pending, str(e), str(e))

        try:
            arguments = coerce_arguments(tool.name, tool.specs, pending.call.arguments)
        except InvalidArguments as e:
            logger.error(f"Rejected call to '{tool.name}': {'; '.join(e.problems)}")
            return self._reject(pending, str(e), self._format_parameter_error(tool, e))

        pending.tool = tool
        pending.arguments = arguments
        pending.state = CallState.VALIDATED
        return pending

    async def execute(self, pending: PendingCall) -> PendingCall:
        """Run the handler of a VALIDATED call, moving it to EXECUTED or FAILED."""
        if pending.state is not CallState.VALIDATED:
            raise RuntimeError(f"Cannot execute call '{pending.name}' in state {pending.state.value}")

        start_time = time.time()
        logger.info(f"Calling tool: {pending.name}")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"  Tool arguments: {pending.arguments}")

        try:
            result = pending.tool.function(**pending.arguments)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            pending.execution_time = time.time() - start_time
            logger.error(f"Tool '{pending.name}' failed after {pending.execution_time:.2f}s: {e}")
            pending.error = str(e)
            pending.result = f"Error executing {pending.name}: {e}"
            pending.state = CallState.FAILED
            return pending

        pending.execution_time = time.time() - start_time
        pending.result = self._format_result(pending.name, result)
        pending.state = CallState.EXECUTED

        logger.info(f"Tool '{pending.name}' completed in {pending.execution_time:.2f}s")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"  Tool result ({len(pending.result)} chars): {pending.result[:300]}")
        return pending

    async def run(self, pending: PendingCall) -> PendingCall:
        """Validate and, if accepted, execute a single call."""
        self.validate(pending)
        if pending.state is CallState.VALIDATED:
            await self.execute(pending)
        return pending

    async def dispatch(self, call: FunctionCall) -> str:
        """Dispatch one call and return its display-ready result."""
        pending = await self.run(PendingCall(call))
        return pending.result

    async def dispatch_all(self, calls: List[FunctionCall]) -> TurnDispatch:
        """
        Dispatch the calls of one model turn sequentially, in emission order.

        Args:
            calls: Function calls as emitted by the model

        Returns:
            TurnDispatch with one PendingCall per emitted call
        """
        pending_calls = [PendingCall(call) for call in calls]
        queue = deque(pending_calls)

        while queue:
            pending = await self.run(queue.popleft())
            if pending.state is CallState.FAILED and queue:
                logger.warning(
                    f"Aborting {len(queue)} remaining tool call(s) after '{pending.name}' failed"
                )
                break

        return TurnDispatch(calls=pending_calls)

    @staticmethod
    def _reject(pending: PendingCall, error: str, result: str) -> PendingCall:
        pending.error = error
        pending.result = result
        pending.state = CallState.REJECTED
        return pending

    @staticmethod
    def _format_result(name: str, result: Any) -> str:
        if result is None:
            return f"{name} completed"
        return str(result)

    @staticmethod
    def _format_parameter_error(tool: Tool, error: InvalidArguments) -> str:
        """Format a helpful error message for invalid parameters."""
        lines = [f"Invalid arguments for {tool.name}:"]
        lines.extend(f"  - {problem}" for problem in error.problems)
        if tool.specs:
            lines.append("Valid parameters for this tool:")
            for spec in tool.specs:
                description = f": {spec.description}" if spec.description else ""
                lines.append(f"  - {spec.describe()}{description}")
        return "\n".join(lines)
