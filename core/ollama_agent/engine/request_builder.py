"""
Typed request bodies for POST /api/chat.
Optional fields stay None and are dropped on serialization.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from ollama_agent.config import DEFAULT_TEMPERATURE
from ollama_agent.context.conversation import ChatMessage


class OutboundMessage(BaseModel):
    """One history entry as Ollama expects it."""

    role: Literal["user", "assistant"]
    content: str
    images: Optional[list[str]] = None


class ChatOptions(BaseModel):
    temperature: float = DEFAULT_TEMPERATURE
    tools: Optional[list[dict[str, Any]]] = None


class ChatRequest(BaseModel):
    model: str
    messages: list[OutboundMessage] = Field(default_factory=list)
    stream: bool = True
    options: ChatOptions = Field(default_factory=ChatOptions)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def encode_image(data_url: str) -> str:
    """Strip the ``data:<mime>;base64,`` prefix; the transport wants bare base64."""
    if "," in data_url:
        return data_url.split(",", 1)[1]
    return data_url


def to_outbound(message: ChatMessage) -> OutboundMessage:
    return OutboundMessage(
        role=message.role,
        content=message.content,
        images=[encode_image(message.image)] if message.image else None,
    )


def build_chat_request(
    model: str,
    history: list[ChatMessage],
    stream: bool,
    tools: Optional[list[dict[str, Any]]] = None,
    temperature: float = DEFAULT_TEMPERATURE,
) -> ChatRequest:
    """
    Build the chat request for a turn.

    Args:
        model: Selected model name
        history: Full transcript, including the message just sent
        stream: Whether to ask for a streamed reply
        tools: Tool manifest, or None when tools are not offered this turn
    """
    return ChatRequest(
        model=model,
        messages=[to_outbound(m) for m in history],
        stream=stream,
        options=ChatOptions(temperature=temperature, tools=tools or None),
    )
