"""Runtime module - live Ollama client and the offline simulator."""

from ollama_agent.runtime.ollama_client import (
    ChatIncrement,
    OllamaClient,
    OllamaConnectionError,
    ToolCall,
)
from ollama_agent.runtime.simulator import ResponseSimulator

__all__ = [
    "ChatIncrement",
    "OllamaClient",
    "OllamaConnectionError",
    "ToolCall",
    "ResponseSimulator",
]
