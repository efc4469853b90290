"""
Chat components - conversation loop, tool registry and function call dispatch.
"""

from .message import Completion, ConversationMessage, FunctionCall
from .tool import Tool
from .registry import ToolRegistry
from .dispatcher import CallState, ToolDispatcher, TurnDispatch
from .history import ConversationHistory
from .conversation import ConversationLoop
from .tool_parser import parse_completion, parse_xml_tool_calls, has_incomplete_tool_call

__all__ = [
    'Completion',
    'ConversationMessage',
    'FunctionCall',
    'Tool',
    'ToolRegistry',
    'CallState',
    'ToolDispatcher',
    'TurnDispatch',
    'ConversationHistory',
    'ConversationLoop',
    'parse_completion',
    'parse_xml_tool_calls',
    'has_incomplete_tool_call',
]
