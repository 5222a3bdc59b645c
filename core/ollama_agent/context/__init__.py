"""
Conversation state for the chat controller.

This module provides:
- ChatMessage: One transcript entry
- ConversationState: Transcript, selection and mode flags for a session
- ConnectionMode / TurnPhase: The controller's state machine positions
- Notification: User-visible notices
"""

from ollama_agent.context.conversation import (
    ChatMessage,
    ConnectionMode,
    ConversationState,
    Notification,
    TurnPhase,
)

__all__ = [
    "ChatMessage",
    "ConnectionMode",
    "ConversationState",
    "Notification",
    "TurnPhase",
]
