"""
Base classes for Ollama Agent tools.
Defines the shared ToolResult contract and the tool manifest format sent to the model.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ToolResult:
    """
    Result of a tool execution.

    name: the tool that produced the result
    result: output text (empty when the tool failed)
    error: failure description; set means the call failed
    """

    name: str
    result: str = ""
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, name: str, error: str) -> "ToolResult":
        return cls(name=name, result="", error=error)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "result": self.result,
            "error": self.error,
            "success": self.success,
        }


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""
    name: str
    type: str  # "string", "integer", "boolean", "array"
    description: str
    required: bool = True
    default: Any = None
    enum: Optional[list[str]] = None

    def to_schema(self) -> dict:
        schema: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        if self.enum:
            schema["enum"] = list(self.enum)
        if self.default is not None:
            schema["default"] = self.default
        return schema


@dataclass
class Tool(ABC):
    """Base class for all tools."""
    name: str
    description: str
    parameters: list[ToolParameter] = field(default_factory=list)

    @abstractmethod
    def execute(self, **kwargs) -> ToolResult:
        """Execute the tool with given parameters."""
        pass

    def apply_defaults(self, parameters: dict) -> dict:
        """Fill in declared defaults and check required parameters are present."""
        resolved = {}
        for param in self.parameters:
            value = parameters.get(param.name)
            if value is None or value == "":
                if param.required:
                    raise ValueError(f"Missing required parameter: {param.name}")
                value = param.default
            resolved[param.name] = value
        return resolved

    def to_schema(self) -> dict:
        """Convert tool to JSON schema for LLM."""
        properties = {param.name: param.to_schema() for param in self.parameters}
        required = [param.name for param in self.parameters if param.required]

        parameters: dict[str, Any] = {
            "type": "object",
            "properties": properties,
        }
        if required:
            parameters["required"] = required

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


class ToolRegistry:
    """Registry of available tools, in registration order."""

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool):
        """Register a tool."""
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def list_all(self) -> list[Tool]:
        """List all registered tools."""
        return list(self._tools.values())

    def get_schemas(self) -> list[dict]:
        """Get JSON schemas for all tools (for LLM)."""
        return [tool.to_schema() for tool in self._tools.values()]
