"""Ollama Agent - chat client for a local Ollama server with demo tools."""

__version__ = "1.0.0"
