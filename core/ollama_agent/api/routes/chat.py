"""Chat API routes."""

import asyncio
import json

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from ollama_agent.api.controller_store import get_controller
from ollama_agent.api.schemas import (
    ChatTurnResponse,
    ConversationStateResponse,
    SendMessageRequest,
    SettingsUpdateRequest,
    SuccessResponse,
)
from ollama_agent.context import Notification
from ollama_agent.engine.controller import ConversationController
from ollama_agent.utils.logging import logger

router = APIRouter(prefix="/chat", tags=["chat"])

# Running streamed turns, kept referenced until they finish
_turns: set[asyncio.Task] = set()


def _state_response(ctrl: ConversationController) -> ConversationStateResponse:
    data = ctrl.state.to_dict()
    data["notifications"] = [n.to_dict() for n in ctrl.notifications]
    return ConversationStateResponse(**data)


def _check_can_send(ctrl: ConversationController, message: str) -> None:
    if ctrl.state.selected_model is None:
        raise HTTPException(status_code=400, detail="No model selected")
    if ctrl.state.busy:
        raise HTTPException(status_code=409, detail="A message is being processed")
    if not message.strip():
        raise HTTPException(status_code=400, detail="Message is empty")


@router.get("/state", response_model=ConversationStateResponse)
async def get_state() -> ConversationStateResponse:
    """Full conversation state."""
    ctrl = await get_controller()
    return _state_response(ctrl)


@router.put("/settings", response_model=ConversationStateResponse)
async def update_settings(request: SettingsUpdateRequest) -> ConversationStateResponse:
    """Toggle streaming and tool use."""
    ctrl = await get_controller()
    if request.streaming_enabled is not None:
        ctrl.set_streaming_enabled(request.streaming_enabled)
    if request.tools_enabled is not None and not ctrl.set_tools_enabled(request.tools_enabled):
        raise HTTPException(status_code=400, detail="Selected model does not support tools")
    return _state_response(ctrl)


@router.post("/image", response_model=SuccessResponse)
async def upload_image(file: UploadFile = File(...)) -> SuccessResponse:
    """Attach an image to the next message."""
    ctrl = await get_controller()
    data = await file.read()
    if not ctrl.attach_image(data, file.content_type or "image/png"):
        raise HTTPException(status_code=400, detail="Selected model does not support images")
    logger.info(f"Attached image {file.filename} ({len(data)} bytes)")
    return SuccessResponse(success=True, message=file.filename)


@router.delete("/image", response_model=SuccessResponse)
async def remove_image() -> SuccessResponse:
    ctrl = await get_controller()
    ctrl.remove_image()
    return SuccessResponse(success=True)


@router.post("", response_model=ChatTurnResponse)
async def send_message(request: SendMessageRequest) -> ChatTurnResponse:
    """Run one turn and return the transcript after it."""
    ctrl = await get_controller()
    _check_can_send(ctrl, request.message)
    logger.info(f"Received message: {request.message[:50]}...")

    raised: list[Notification] = []

    def collect(event: str):
        if event == "notification":
            raised.append(ctrl.notifications[-1])

    unsubscribe = ctrl.subscribe(collect)
    try:
        sent = await ctrl.send_message(request.message)
    finally:
        unsubscribe()
    if not sent:
        raise HTTPException(status_code=409, detail="A message is being processed")

    return ChatTurnResponse(
        messages=[m.to_dict() for m in ctrl.state.messages],
        notifications=[n.to_dict() for n in raised],
        tool_used=ctrl.last_tool_result,
    )


@router.post("/stream")
async def send_message_stream(request: SendMessageRequest):
    """Run one turn, streaming transcript updates as SSE."""
    ctrl = await get_controller()
    _check_can_send(ctrl, request.message)
    logger.info(f"Received message: {request.message[:50]}...")

    queue: asyncio.Queue = asyncio.Queue()

    def on_event(event: str):
        # Snapshot at emit time
        if event == "notification":
            queue.put_nowait({"event": event, "notification": ctrl.notifications[-1].to_dict()})
        elif event == "messages":
            queue.put_nowait({"event": event, "messages": [m.to_dict() for m in ctrl.state.messages]})

    unsubscribe = ctrl.subscribe(on_event)
    turn = asyncio.create_task(ctrl.send_message(request.message))
    _turns.add(turn)

    def on_done(task: asyncio.Task):
        _turns.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Chat turn failed: {task.exception()!r}")
        queue.put_nowait(None)

    turn.add_done_callback(on_done)
    # Let the turn claim the busy flag before this request returns
    await asyncio.sleep(0)

    return StreamingResponse(
        _stream_response(queue, unsubscribe),
        media_type="text/event-stream",
    )


async def _stream_response(queue: asyncio.Queue, unsubscribe):
    """Stream transcript updates as SSE until the turn ends."""
    try:
        while True:
            payload = await queue.get()
            if payload is None:
                break
            yield f"data: {json.dumps(payload)}\n\n"
    finally:
        unsubscribe()
    yield "data: [DONE]\n\n"
