"""
Tool executor for Ollama Agent.
Dispatches tool calls requested by the model and normalizes every outcome into a ToolResult.
"""

from typing import Any, Optional

from ollama_agent.tools.base import ToolRegistry, ToolResult
from ollama_agent.tools.filesystem import MockFileSystem, filesystem_tools
from ollama_agent.tools.system import (
    Clock,
    GetAgentInfoTool,
    GetCurrentDateTool,
    GetCurrentTimeTool,
)
from ollama_agent.utils.logging import logger


class ToolExecutor:
    """
    Executes tools requested by the AI model.

    Failures never escape: unknown tools, bad parameters and exceptions raised
    inside a tool all come back as a ToolResult with ``error`` set.
    """

    def __init__(
        self,
        filesystem: Optional[MockFileSystem] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the tool executor.

        Args:
            filesystem: Mock filesystem the file tools read from. Defaults to the demo tree.
            clock: Callable returning the current datetime, for the time/date tools.
        """
        self.filesystem = filesystem or MockFileSystem()
        self.registry = ToolRegistry()

        self._register_default_tools(clock)

    def _register_default_tools(self, clock: Optional[Clock]):
        """Register default tools."""
        for tool in filesystem_tools(self.filesystem):
            self.registry.register(tool)

        self.registry.register(GetCurrentTimeTool(clock))
        self.registry.register(GetCurrentDateTool(clock))
        self.registry.register(GetAgentInfoTool(self.registry))

        logger.info(f"Registered {len(self.registry.list_all())} tools")

    def get_manifest(self) -> list[dict]:
        """Tool manifest in the format the chat endpoint expects."""
        return self.registry.get_schemas()

    def execute(self, tool_name: str, parameters: Optional[dict[str, Any]] = None) -> ToolResult:
        """
        Execute a tool with the given parameters.

        Args:
            tool_name: Name of the tool to execute
            parameters: Parameters for the tool

        Returns:
            ToolResult carrying either the output text or an error
        """
        tool = self.registry.get(tool_name)

        if not tool:
            return ToolResult.failure(tool_name, f"Unknown tool: {tool_name}")

        if not isinstance(parameters, dict):
            parameters = {}

        try:
            kwargs = tool.apply_defaults(parameters)
        except ValueError as e:
            return ToolResult.failure(tool_name, f"Invalid parameters for {tool_name}: {e}")

        try:
            logger.info(f"Executing tool: {tool_name} with params: {kwargs}")
            result = tool.execute(**kwargs)
            logger.info(f"Tool {tool_name} completed: success={result.success}")
            return result

        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}")
            return ToolResult.failure(tool_name, f"Tool execution failed: {e}")
