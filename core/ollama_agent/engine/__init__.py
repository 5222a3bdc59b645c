"""Engine module - request building, intent detection and the conversation controller."""

from ollama_agent.engine.controller import ConversationController
from ollama_agent.engine.intent import IntentDetector
from ollama_agent.engine.request_builder import ChatRequest, build_chat_request

__all__ = [
    "ConversationController",
    "IntentDetector",
    "ChatRequest",
    "build_chat_request",
]
