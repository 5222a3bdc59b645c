"""
Response formatter for tool results shown in the transcript.
"""

from ollama_agent.tools.base import ToolResult


class ResponseFormatter:
    """Converts tool results into transcript text."""

    @staticmethod
    def format_tool_result(result: ToolResult) -> str:
        """Tool-result block appended as its own assistant message on the live path."""
        if not result.success:
            return f"Tool error ({result.name}): {result.error}"
        return f"Tool result ({result.name}):\n{result.result}"

    @staticmethod
    def compose_reply(result: ToolResult) -> str:
        """Single reply string for Simulated mode: the result text itself, no wrapping."""
        if not result.success:
            return f"Error: {result.error}"
        return result.result
