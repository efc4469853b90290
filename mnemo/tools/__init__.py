"""
Tools for the main application.
"""

from .builtin import register_builtin_tools
from .memory.tool import MemoryTool

__all__ = ['MemoryTool', 'register_builtin_tools']
