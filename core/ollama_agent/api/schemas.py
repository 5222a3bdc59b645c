"""Pydantic models for API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class SendMessageRequest(BaseModel):
    """Chat message request."""

    message: str


class MessageOut(BaseModel):
    role: str
    content: str
    image: Optional[str] = None
    timestamp: str
    in_progress: bool = False


class NotificationOut(BaseModel):
    title: str
    description: str
    variant: str
    timestamp: str


class CapabilitiesOut(BaseModel):
    vision: bool
    tools: bool
    multimodal: bool
    streaming: bool


class ConversationStateResponse(BaseModel):
    """Full conversation state as the browser page renders it."""

    messages: list[MessageOut]
    models: list[dict[str, Any]]
    selected_model: Optional[str] = None
    capabilities: CapabilitiesOut
    input_buffer: str
    has_image: bool
    streaming_enabled: bool
    tools_enabled: bool
    mode: str
    phase: str
    busy: bool
    notifications: list[NotificationOut] = []


class ModelsResponse(BaseModel):
    """Model list plus the current selection."""

    models: list[dict[str, Any]]
    mode: str
    selected_model: Optional[str] = None
    capabilities: CapabilitiesOut


class SelectModelRequest(BaseModel):
    name: str


class SettingsUpdateRequest(BaseModel):
    """Toggle update. Omitted fields are left unchanged."""

    streaming_enabled: Optional[bool] = None
    tools_enabled: Optional[bool] = None


class ChatTurnResponse(BaseModel):
    """Result of one turn: the transcript after it and any new notifications."""

    messages: list[MessageOut]
    notifications: list[NotificationOut] = []
    tool_used: Optional[dict[str, Any]] = None


class SuccessResponse(BaseModel):
    """Generic success response."""

    success: bool
    message: str | None = None
