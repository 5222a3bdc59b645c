"""
Conversation controller: the only component that mutates ConversationState.

A turn goes user send -> request build -> live Ollama or simulator -> reply
assembled incrementally -> tool calls executed locally -> results appended to
the transcript. Listeners registered with ``subscribe`` hear about every change.
"""

import base64
from typing import Callable, Optional, Union

from ollama_agent.config import MAX_NOTIFICATIONS, NO_RESPONSE_PLACEHOLDER, SIMULATED_CHUNK_DELAY_MS
from ollama_agent.context import (
    ChatMessage,
    ConnectionMode,
    ConversationState,
    Notification,
    TurnPhase,
)
from ollama_agent.engine.intent import IntentDetector
from ollama_agent.engine.request_builder import build_chat_request
from ollama_agent.models.capabilities import CapabilityDetector, CapabilitySet
from ollama_agent.models.registry import ModelRegistry
from ollama_agent.runtime.ollama_client import OllamaClient, OllamaConnectionError, ToolCall
from ollama_agent.runtime.simulator import ResponseSimulator
from ollama_agent.tools.executor import ToolExecutor
from ollama_agent.utils.logging import logger
from ollama_agent.utils.response_formatter import ResponseFormatter

Listener = Callable[[str], None]
Notifier = Callable[[Notification], None]


class ConversationController:
    """
    Drives one chat session against a live Ollama server or the simulator.

    Connection mode is decided by ``connect()``: a successful model listing
    means Connected, any failure means Simulated with the mock model list.
    Turns are serialized by the busy flag, which is checked and set before
    the first suspension point of ``send_message``.
    """

    def __init__(
        self,
        client: Optional[OllamaClient] = None,
        executor: Optional[ToolExecutor] = None,
        simulator: Optional[ResponseSimulator] = None,
        detector: Optional[CapabilityDetector] = None,
        registry: Optional[ModelRegistry] = None,
        intents: Optional[IntentDetector] = None,
        chunk_delay_ms: float = SIMULATED_CHUNK_DELAY_MS,
        notifier: Optional[Notifier] = None,
    ):
        self.client = client or OllamaClient()
        self.executor = executor or ToolExecutor()
        self.simulator = simulator or ResponseSimulator()
        self.detector = detector or CapabilityDetector()
        self.registry = registry or ModelRegistry()
        self.intents = intents or IntentDetector()
        self.chunk_delay_ms = chunk_delay_ms
        self.notifier = notifier

        self.state = ConversationState()
        self.notifications: list[Notification] = []
        self.last_tool_result: Optional[dict] = None
        self._listeners: list[Listener] = []

    # === Observers ===

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Listener failed on {event}: {e}")

    def _notify(self, title: str, description: str, variant: str = "default") -> None:
        notification = Notification(title=title, description=description, variant=variant)
        self.notifications.append(notification)
        del self.notifications[:-MAX_NOTIFICATIONS]
        logger.info(f"{title}: {description}")
        if self.notifier:
            self.notifier(notification)
        self._emit("notification")

    # === Connection & Models ===

    async def connect(self) -> bool:
        """
        Probe the server and load the model list.

        Returns:
            True when Connected, False when falling back to Simulated mode
        """
        self.state.mode = ConnectionMode.PROBING
        self._emit("connection")

        try:
            data = await self.client.list_models()
        except OllamaConnectionError as e:
            logger.warning(f"Ollama probe failed: {e}")
            models = self.registry.load_fixture()
            self.state.mode = ConnectionMode.SIMULATED
            self._notify(
                "Connection Failed",
                f"Could not connect to Ollama at {self.client.base_url}. Make sure Ollama is running.",
                variant="destructive",
            )
            self._notify("Simulation Mode", "Using mock models for demonstration.")
        else:
            models = self.registry.load_payload(data)
            self.state.mode = ConnectionMode.CONNECTED
            self._notify("Connected to Ollama", f"Found {len(models)} models")

        self.state.models = list(models)
        self._reconcile_selection()
        self._emit("models")
        return self.state.mode == ConnectionMode.CONNECTED

    async def refresh(self) -> bool:
        """Rerun the connectivity probe on demand. Skipped while a turn is running."""
        if self.state.busy:
            logger.info("Refresh skipped: a turn is in progress")
            return self.state.mode == ConnectionMode.CONNECTED
        return await self.connect()

    def _reconcile_selection(self) -> None:
        selected = self.state.selected_model
        if selected is None:
            return
        current = self.registry.get(selected.name)
        if current is not None:
            self.state.selected_model = current
            return
        logger.info(f"Selected model {selected.name} is no longer available")
        self.state.selected_model = None
        self.state.capabilities = CapabilitySet()
        self.state.tools_enabled = False
        self.state.pending_image = None
        self.state.reset_messages()
        self._emit("messages")

    def select_model(self, name: str) -> bool:
        """Select a listed model. Clears the transcript and any pending image."""
        if self.state.busy:
            return False
        model = self.registry.get(name)
        if model is None:
            logger.warning(f"Unknown model: {name}")
            return False

        capabilities = self.detector.detect(model.name)
        self.state.selected_model = model
        self.state.capabilities = capabilities
        self.state.tools_enabled = capabilities.tools
        self.state.pending_image = None
        self.state.reset_messages()

        logger.info(f"Selected model {model.name}: {capabilities.to_dict()}")
        self._emit("model")
        self._emit("messages")
        return True

    # === Input ===

    def set_input(self, text: str) -> None:
        self.state.input_buffer = text
        self._emit("input")

    def attach_image(self, image: Union[str, bytes], mime_type: str = "image/png") -> bool:
        """
        Stage an image for the next message.

        Args:
            image: A data URL, or raw image bytes
            mime_type: MIME type used when building a data URL from bytes

        Returns:
            False when the selected model has no vision support
        """
        if not self.state.capabilities.vision:
            return False
        if isinstance(image, bytes):
            encoded = base64.b64encode(image).decode("ascii")
            image = f"data:{mime_type};base64,{encoded}"
        self.state.pending_image = image
        self._emit("image")
        return True

    def remove_image(self) -> None:
        self.state.pending_image = None
        self._emit("image")

    def set_streaming_enabled(self, enabled: bool) -> None:
        self.state.streaming_enabled = enabled
        self._emit("settings")

    def set_tools_enabled(self, enabled: bool) -> bool:
        """Toggle tool use. Turning tools on needs a tool-capable model."""
        if enabled and not self.state.capabilities.tools:
            return False
        self.state.tools_enabled = enabled
        self._emit("settings")
        return True

    # === Turns ===

    def can_send(self) -> bool:
        return (
            bool(self.state.input_buffer.strip())
            and self.state.selected_model is not None
            and not self.state.busy
        )

    async def send_message(self, text: Optional[str] = None) -> bool:
        """
        Run one turn with the buffered input (or ``text``, which replaces it).

        Returns:
            False without touching the transcript when the input is blank, no
            model is selected or a turn is already running
        """
        if text is not None and not self.state.busy:
            self.state.input_buffer = text
        if not self.can_send():
            return False

        # Claimed before any await
        self.state.busy = True
        self.state.phase = TurnPhase.SENDING

        content = self.state.input_buffer
        self.state.append(ChatMessage(role="user", content=content, image=self.state.pending_image))
        self.state.input_buffer = ""
        self.last_tool_result = None
        self._emit("messages")

        logger.info(f"Turn started ({self.state.mode.value}, model={self.state.selected_model.name})")
        try:
            if self.state.mode == ConnectionMode.CONNECTED:
                await self._send_live()
            else:
                await self._send_simulated(content)
        except OllamaConnectionError as e:
            logger.warning(f"Chat request failed: {e}")
            self._notify(
                "Error",
                "Failed to send message. Check your Ollama connection.",
                variant="destructive",
            )
        finally:
            self.state.finish_streaming()
            self.state.pending_image = None
            self.state.busy = False
            self.state.phase = TurnPhase.IDLE
            self._emit("messages")
            self._emit("turn")
            logger.info("Turn finished")

        return True

    async def _send_live(self) -> None:
        tools = self.executor.get_manifest() if self.state.tools_active else None
        request = build_chat_request(
            model=self.state.selected_model.name,
            history=self.state.messages,
            stream=self.state.streaming_enabled,
            tools=tools,
        )
        payload = request.to_payload()

        if request.stream:
            self.state.phase = TurnPhase.STREAMING
            self.state.start_assistant()
            self._emit("messages")

            async for increment in self.client.chat_stream(payload):
                if increment.content:
                    self.state.extend_in_progress(increment.content)
                    self._emit("messages")
                for call in increment.tool_calls:
                    self._dispatch_tool_call(call)
                    self.state.phase = TurnPhase.STREAMING
            return

        self.state.phase = TurnPhase.WHOLE_RECEIVE
        reply = await self.client.chat(payload)
        for call in reply.tool_calls:
            self._dispatch_tool_call(call)
        self.state.append(ChatMessage(role="assistant", content=reply.content or NO_RESPONSE_PLACEHOLDER))
        self._emit("messages")

    def _dispatch_tool_call(self, call: ToolCall) -> None:
        self.state.phase = TurnPhase.TOOL_DISPATCH
        logger.info(f"Executing tool: {call.name} with {call.arguments}")
        result = self.executor.execute(call.name, call.arguments)
        self.last_tool_result = result.to_dict()
        self.state.append(ChatMessage(role="assistant", content=ResponseFormatter.format_tool_result(result)))
        self._emit("messages")

    async def _send_simulated(self, content: str) -> None:
        intent = self.intents.detect(content) if self.state.tools_active else None
        if intent:
            tool_name, params = intent
            self.state.phase = TurnPhase.TOOL_DISPATCH
            logger.info(f"Executing tool: {tool_name} with {params}")
            result = self.executor.execute(tool_name, params)
            self.last_tool_result = result.to_dict()
            reply = ResponseFormatter.compose_reply(result)
        else:
            reply = self.simulator.generate(content, self.state.selected_model.name)

        if not self.state.streaming_enabled:
            self.state.phase = TurnPhase.WHOLE_RECEIVE
            self.state.append(ChatMessage(role="assistant", content=reply))
            self._emit("messages")
            return

        self.state.phase = TurnPhase.STREAMING
        self.state.start_assistant()
        self._emit("messages")
        await self.simulator.stream_text(reply, self._on_chunk, self.chunk_delay_ms)

    def _on_chunk(self, chunk: str) -> None:
        self.state.extend_in_progress(chunk)
        self._emit("messages")

    async def close(self) -> None:
        await self.client.close()
