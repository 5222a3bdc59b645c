"""
Ollama Agent Tools - demonstration tools the model may call.
"""

from ollama_agent.tools.base import Tool, ToolParameter, ToolResult, ToolRegistry
from ollama_agent.tools.executor import ToolExecutor
from ollama_agent.tools.filesystem import DEFAULT_FILESYSTEM, MockFileSystem

__all__ = [
    "Tool",
    "ToolParameter",
    "ToolResult",
    "ToolRegistry",
    "ToolExecutor",
    "DEFAULT_FILESYSTEM",
    "MockFileSystem",
]
