"""Tool registry for managing the tools offered to the model."""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from mnemo.errors import UnknownTool

from .tool import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Static catalog of callable tools, kept in registration order."""

    def __init__(self, tools: Optional[List[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> Tool:
        """
        Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.info(f"Registered tool: {tool.name}")
        return tool

    def register_function(
        self,
        name: str,
        description: str,
        function: Callable[..., Any],
        parameters: Dict
    ) -> Tool:
        """
        Register a plain or async function as a tool.

        Args:
            name: Tool name (must be unique)
            description: Tool description for the model
            function: Handler invoked with the validated arguments
            parameters: JSON schema defining the tool's parameters
        """
        return self.register(Tool(
            name=name,
            description=description,
            function=function,
            parameters=parameters
        ))

    def resolve(self, name: str) -> Tool:
        """
        Get a tool by name.

        Raises:
            UnknownTool: If no tool has that name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def describe(self) -> List[Tool]:
        """Tools in registration order, for presentation to the model."""
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def get_tools_for_llm(self) -> List[Dict[str, Any]]:
        """Get tools in OpenAI function calling format."""
        return [tool.to_llm_format() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self.describe())

    def __len__(self) -> int:
        return len(self._tools)
