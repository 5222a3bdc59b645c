"""
Conversation state for a single chat session.

Holds the transcript plus everything the controller needs to run a turn:
the selected model and its capabilities, the input buffer, the pending image
and the mode flags. Only the ConversationController mutates it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from ollama_agent.models.capabilities import CapabilitySet
from ollama_agent.models.registry import ModelDescriptor


class ConnectionMode(str, Enum):
    """Which backend answers turns."""
    UNKNOWN = "unknown"        # Before the first probe
    PROBING = "probing"        # Probe in flight
    CONNECTED = "connected"    # Live Ollama server
    SIMULATED = "simulated"    # Local templates and heuristics


class TurnPhase(str, Enum):
    """Where the current turn is."""
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    WHOLE_RECEIVE = "whole_receive"
    TOOL_DISPATCH = "tool_dispatch"


@dataclass
class ChatMessage:
    """One transcript entry."""
    role: Literal["user", "assistant"]
    content: str
    image: Optional[str] = None  # data URL
    timestamp: datetime = field(default_factory=datetime.now)
    in_progress: bool = False

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "content": self.content,
            "image": self.image,
            "timestamp": self.timestamp.isoformat(),
            "in_progress": self.in_progress,
        }


@dataclass
class Notification:
    """A user-visible notice (shown as a toast by the UI)."""
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "variant": self.variant,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ConversationState:
    """
    Everything one chat session knows.

    Invariant: at most one message is in progress and, when present, it is
    the last one in ``messages``.
    """
    messages: list[ChatMessage] = field(default_factory=list)
    models: list[ModelDescriptor] = field(default_factory=list)
    selected_model: Optional[ModelDescriptor] = None
    capabilities: CapabilitySet = field(default_factory=CapabilitySet)
    input_buffer: str = ""
    pending_image: Optional[str] = None
    streaming_enabled: bool = True
    tools_enabled: bool = False
    mode: ConnectionMode = ConnectionMode.UNKNOWN
    phase: TurnPhase = TurnPhase.IDLE
    busy: bool = False

    @property
    def in_progress(self) -> Optional[ChatMessage]:
        if self.messages and self.messages[-1].in_progress:
            return self.messages[-1]
        return None

    @property
    def tools_active(self) -> bool:
        """Tools are offered only when the user wants them and the model supports them."""
        return self.tools_enabled and self.capabilities.tools

    def append(self, message: ChatMessage) -> ChatMessage:
        """Append a finished message, closing any in-progress one first."""
        self.finish_streaming()
        self.messages.append(message)
        return message

    def start_assistant(self) -> ChatMessage:
        """Append an empty assistant message that streamed text will grow."""
        self.finish_streaming()
        message = ChatMessage(role="assistant", content="", in_progress=True)
        self.messages.append(message)
        return message

    def extend_in_progress(self, fragment: str) -> ChatMessage:
        """Append text to the in-progress message, opening one if needed."""
        message = self.in_progress or self.start_assistant()
        message.content += fragment
        return message

    def finish_streaming(self) -> None:
        current = self.in_progress
        if current is not None:
            current.in_progress = False

    def reset_messages(self) -> None:
        self.messages = []

    def to_dict(self) -> dict:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "models": [m.model_dump() for m in self.models],
            "selected_model": self.selected_model.name if self.selected_model else None,
            "capabilities": self.capabilities.to_dict(),
            "input_buffer": self.input_buffer,
            "has_image": self.pending_image is not None,
            "streaming_enabled": self.streaming_enabled,
            "tools_enabled": self.tools_enabled,
            "mode": self.mode.value,
            "phase": self.phase.value,
            "busy": self.busy,
        }
