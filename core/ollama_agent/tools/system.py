"""
Clock and self-description tools for Ollama Agent.
"""

import json
from datetime import datetime
from typing import Callable, Optional

from ollama_agent.config import API_VERSION
from ollama_agent.tools.base import Tool, ToolParameter, ToolRegistry, ToolResult

Clock = Callable[[], datetime]

AGENT_CAPABILITIES = [
    "File system operations",
    "Directory navigation",
    "File search",
    "Time and date queries",
    "Tool execution",
]


def format_time(now: datetime, fmt: str = "24h") -> str:
    """Render a time the way en-US clocks do: 2:05:09 PM or 14:05:09."""
    if fmt == "12h":
        hour = now.hour % 12 or 12
        suffix = "AM" if now.hour < 12 else "PM"
        return f"{hour}:{now.minute:02d}:{now.second:02d} {suffix}"
    return f"{now.hour:02d}:{now.minute:02d}:{now.second:02d}"


def format_date(now: datetime, fmt: str = "iso") -> str:
    if fmt == "us":
        return f"{now.month}/{now.day}/{now.year}"
    if fmt == "eu":
        return f"{now.day:02d}/{now.month:02d}/{now.year}"
    if fmt == "relative":
        return f"{now.strftime('%A')}, {now.strftime('%B')} {now.day}, {now.year}"
    return now.date().isoformat()


class GetCurrentTimeTool(Tool):
    """Report the current time."""

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(
            name="get_current_time",
            description="Get the current time",
            parameters=[
                ToolParameter(
                    name="format",
                    type="string",
                    description="Time format (12h or 24h)",
                    required=False,
                    default="24h",
                    enum=["12h", "24h"],
                ),
            ],
        )
        self.clock = clock or datetime.now

    def execute(self, format: str = "24h") -> ToolResult:
        return ToolResult(name=self.name, result=f"Current time: {format_time(self.clock(), format)}")


class GetCurrentDateTool(Tool):
    """Report the current date."""

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(
            name="get_current_date",
            description="Get the current date",
            parameters=[
                ToolParameter(
                    name="format",
                    type="string",
                    description="Date format",
                    required=False,
                    default="iso",
                    enum=["iso", "us", "eu", "relative"],
                ),
            ],
        )
        self.clock = clock or datetime.now

    def execute(self, format: str = "iso") -> ToolResult:
        return ToolResult(name=self.name, result=f"Current date: {format_date(self.clock(), format)}")


class GetAgentInfoTool(Tool):
    """Describe the agent, including every tool currently registered."""

    def __init__(self, registry: ToolRegistry):
        super().__init__(
            name="get_agent_info",
            description="Get information about the current agent",
            parameters=[],
        )
        self.registry = registry

    def execute(self) -> ToolResult:
        info = {
            "name": "Ollama Agent",
            "version": API_VERSION,
            "capabilities": AGENT_CAPABILITIES,
            "availableTools": self.registry.names(),
            "status": "Active and ready to assist",
        }
        return ToolResult(name=self.name, result=json.dumps(info, indent=2))
