"""
Tests for the conversation controller.

Tests cover:
- Connectivity probe and fallback to Simulated mode
- Model selection and input handling
- Simulated turns, with and without tool intents
- Live turns, streamed and whole, including tool calls
- Failure handling and the busy flag
"""

import asyncio
import json
import random

import httpx
import pytest
from httpx import Response

from ollama_agent.config import MAX_NOTIFICATIONS
from ollama_agent.context import ConnectionMode, TurnPhase
from ollama_agent.runtime.simulator import ResponseSimulator

TAGS = {
    "models": [
        {
            "name": "llama3.1:8b",
            "size": 4661224676,
            "digest": "sha256:42182419e950",
            "modified_at": "2024-01-15T10:30:00Z",
            "details": {"family": "llama", "format": "gguf", "parameter_size": "8B"},
        },
        {
            "name": "llava:7b",
            "size": 4109793677,
            "digest": "sha256:8dd30f6b0cb1",
            "modified_at": "2024-01-14T15:45:00Z",
        },
    ]
}


def _ndjson(*objects, extra_lines=()):
    lines = [json.dumps(o) for o in objects] + list(extra_lines)
    return ("\n".join(lines) + "\n").encode()


def _offline(ollama_mock):
    ollama_mock.get("/api/tags").mock(side_effect=httpx.ConnectError("refused"))


def _online(ollama_mock):
    ollama_mock.get("/api/tags").mock(return_value=Response(200, json=TAGS))


def _contents(ctrl):
    return [(m.role, m.content) for m in ctrl.state.messages]


# ─────────────────────────────────────────────────────────
# CONNECTIVITY
# ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_probe_failure_falls_back_to_simulation(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()

    connected = await ctrl.connect()

    assert connected is False
    assert ctrl.state.mode == ConnectionMode.SIMULATED
    names = [m.name for m in ctrl.state.models]
    assert len(names) == 4
    assert "llama3.1:8b" in names and "llava:7b" in names
    assert [n.title for n in ctrl.notifications] == ["Connection Failed", "Simulation Mode"]
    assert ctrl.notifications[0].variant == "destructive"


@pytest.mark.asyncio
async def test_probe_success_lists_models(ollama_mock, controller_factory):
    _online(ollama_mock)
    ctrl = controller_factory()

    assert await ctrl.connect() is True
    assert ctrl.state.mode == ConnectionMode.CONNECTED
    assert [m.name for m in ctrl.state.models] == ["llama3.1:8b", "llava:7b"]
    assert ctrl.notifications[-1].title == "Connected to Ollama"
    assert ctrl.notifications[-1].description == "Found 2 models"


@pytest.mark.asyncio
async def test_probe_missing_models_field(ollama_mock, controller_factory):
    ollama_mock.get("/api/tags").mock(return_value=Response(200, json={}))
    ctrl = controller_factory()

    await ctrl.connect()

    assert ctrl.state.mode == ConnectionMode.CONNECTED
    assert ctrl.state.models == []
    assert ctrl.notifications[-1].description == "Found 0 models"


@pytest.mark.asyncio
async def test_refresh_moves_simulated_to_connected(ollama_mock, controller_factory):
    route = ollama_mock.get("/api/tags")
    route.side_effect = [httpx.ConnectError("refused"), Response(200, json=TAGS)]
    ctrl = controller_factory()

    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")
    await ctrl.send_message("hello")

    await ctrl.refresh()

    assert ctrl.state.mode == ConnectionMode.CONNECTED
    assert ctrl.state.selected_model.name == "llama3.1:8b"
    assert len(ctrl.state.messages) == 2


@pytest.mark.asyncio
async def test_refresh_clears_selection_when_model_disappears(ollama_mock, controller_factory):
    route = ollama_mock.get("/api/tags")
    route.side_effect = [httpx.ConnectError("refused"), Response(200, json=TAGS)]
    ctrl = controller_factory()

    await ctrl.connect()
    ctrl.select_model("mistral:7b")
    await ctrl.send_message("hello")

    await ctrl.refresh()

    assert ctrl.state.selected_model is None
    assert ctrl.state.messages == []
    assert ctrl.state.tools_enabled is False


@pytest.mark.asyncio
async def test_refresh_while_busy_keeps_turn_intact(ollama_mock, controller_factory):
    route = ollama_mock.get("/api/tags")
    route.side_effect = [httpx.ConnectError("refused"), Response(200, json={"models": []})]
    gate = asyncio.Event()

    async def blocked_sleep(seconds):
        await gate.wait()

    ctrl = controller_factory(simulator=ResponseSimulator(rng=random.Random(0), sleep=blocked_sleep))
    await ctrl.connect()
    ctrl.select_model("llava:7b")
    notified = len(ctrl.notifications)

    turn = asyncio.create_task(ctrl.send_message("hello"))
    await asyncio.sleep(0)
    assert ctrl.state.busy is True

    assert await ctrl.refresh() is False
    assert route.call_count == 1
    assert len(ctrl.notifications) == notified
    assert ctrl.state.selected_model.name == "llava:7b"

    gate.set()
    await turn
    assert [m.role for m in ctrl.state.messages] == ["user", "assistant"]
    assert ctrl.state.messages[-1].in_progress is False


@pytest.mark.asyncio
async def test_notifications_are_capped(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()

    for _ in range(MAX_NOTIFICATIONS):
        await ctrl.refresh()

    assert len(ctrl.notifications) == MAX_NOTIFICATIONS
    assert ctrl.notifications[-1].title == "Simulation Mode"


# ─────────────────────────────────────────────────────────
# SELECTION & INPUT
# ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_switching_models_empties_transcript(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")
    ctrl.attach_image(b"abc")
    await ctrl.send_message("first")
    ctrl.attach_image(b"abc")

    assert ctrl.select_model("codellama:13b")

    assert ctrl.state.messages == []
    assert ctrl.state.pending_image is None
    assert ctrl.state.capabilities.tools is True
    assert ctrl.state.tools_enabled is True


@pytest.mark.asyncio
async def test_select_unknown_model(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")

    assert ctrl.select_model("gpt-4") is False
    assert ctrl.state.selected_model.name == "llava:7b"


@pytest.mark.asyncio
async def test_tools_toggle_needs_tool_capable_model(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")

    assert ctrl.state.tools_enabled is False
    assert ctrl.set_tools_enabled(True) is False
    assert ctrl.set_tools_enabled(False) is True


@pytest.mark.asyncio
async def test_image_requires_vision(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()

    ctrl.select_model("llama3.1:8b")
    assert ctrl.attach_image("data:image/png;base64,QUJD") is False
    assert ctrl.state.pending_image is None

    ctrl.select_model("llava:7b")
    assert ctrl.attach_image(b"abc", "image/jpeg") is True
    assert ctrl.state.pending_image == "data:image/jpeg;base64,YWJj"

    ctrl.remove_image()
    assert ctrl.state.pending_image is None


@pytest.mark.asyncio
async def test_send_preconditions(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()

    assert await ctrl.send_message("hello") is False

    ctrl.select_model("llama3.1:8b")
    assert await ctrl.send_message("   ") is False
    assert ctrl.state.messages == []


@pytest.mark.asyncio
async def test_send_clears_input_and_keeps_exact_text(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("mistral:7b")
    ctrl.set_tools_enabled(False)
    ctrl.set_input("  hello world  ")

    assert await ctrl.send_message() is True

    assert ctrl.state.input_buffer == ""
    assert ctrl.state.messages[0].role == "user"
    assert ctrl.state.messages[0].content == "  hello world  "
    assert ctrl.state.busy is False
    assert ctrl.state.phase == TurnPhase.IDLE


# ─────────────────────────────────────────────────────────
# SIMULATED TURNS
# ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_simulated_reply_is_a_template(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")

    await ctrl.send_message("tell me a joke")

    roles = [m.role for m in ctrl.state.messages]
    reply = ctrl.state.messages[-1]
    assert roles == ["user", "assistant"]
    assert "llava:7b" in reply.content
    assert "tell me a joke" in reply.content
    assert not reply.in_progress


@pytest.mark.asyncio
@pytest.mark.parametrize("streaming", [True, False])
async def test_simulated_time_question_uses_tool(ollama_mock, controller_factory, streaming):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")
    ctrl.set_streaming_enabled(streaming)

    await ctrl.send_message("what time is it")

    assert _contents(ctrl) == [
        ("user", "what time is it"),
        ("assistant", "Current time: 14:05:09"),
    ]


@pytest.mark.asyncio
async def test_simulated_tool_result_is_kept_for_the_turn(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")

    await ctrl.send_message("what time is it")
    assert ctrl.last_tool_result == {
        "name": "get_current_time",
        "success": True,
        "result": "Current time: 14:05:09",
        "error": None,
    }

    await ctrl.send_message("hello")
    assert ctrl.last_tool_result is None


@pytest.mark.asyncio
async def test_simulated_tool_error_is_composed(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("codellama:13b")

    await ctrl.send_message("read missing.txt")

    assert ctrl.state.messages[-1].content == "Error: File not found: missing.txt"


@pytest.mark.asyncio
async def test_simulated_tools_disabled_ignores_intent(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")
    ctrl.set_tools_enabled(False)

    await ctrl.send_message("what time is it")

    assert "Current time" not in ctrl.state.messages[-1].content
    assert "llama3.1:8b" in ctrl.state.messages[-1].content


@pytest.mark.asyncio
async def test_simulated_image_turn(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")
    ctrl.attach_image(b"abc")

    await ctrl.send_message("what is in this picture?")

    user = ctrl.state.messages[0]
    assert user.image == "data:image/png;base64,YWJj"
    assert ctrl.state.messages[-1].role == "assistant"
    assert ctrl.state.pending_image is None


@pytest.mark.asyncio
async def test_streaming_grows_a_single_in_progress_message(ollama_mock, controller_factory):
    _offline(ollama_mock)
    snapshots = []
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")

    def record(event):
        if event == "messages" and ctrl.state.busy:
            in_progress = [m for m in ctrl.state.messages if m.in_progress]
            if in_progress:
                snapshots.append((len(in_progress), in_progress[0] is ctrl.state.messages[-1], in_progress[0].content))

    ctrl.subscribe(record)
    await ctrl.send_message("hello")

    assert all(count == 1 and is_last for count, is_last, _ in snapshots)
    contents = [content for _, _, content in snapshots]
    final = ctrl.state.messages[-1].content
    assert contents[0] == ""
    assert contents[-1] == final
    assert all(final.startswith(s) for s in contents)


@pytest.mark.asyncio
async def test_second_send_while_busy_is_ignored(ollama_mock, controller_factory):
    _offline(ollama_mock)
    gate = asyncio.Event()

    async def blocked_sleep(seconds):
        await gate.wait()

    ctrl = controller_factory(simulator=ResponseSimulator(rng=random.Random(0), sleep=blocked_sleep))
    await ctrl.connect()
    ctrl.select_model("llava:7b")

    first = asyncio.create_task(ctrl.send_message("one"))
    await asyncio.sleep(0)
    assert ctrl.state.busy is True

    assert await ctrl.send_message("two") is False
    assert [m.content for m in ctrl.state.messages if m.role == "user"] == ["one"]

    gate.set()
    assert await first is True
    assert ctrl.state.busy is False
    assert len(ctrl.state.messages) == 2


# ─────────────────────────────────────────────────────────
# LIVE TURNS
# ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_live_stream_with_tool_calls(ollama_mock, controller_factory):
    _online(ollama_mock)
    captured = {}

    def handler(request):
        captured["json"] = json.loads(request.content.decode("utf-8"))
        return Response(200, content=_ndjson(
            {"message": {"content": "Let me check. "}},
            {"message": {"tool_calls": [
                {"function": {"name": "get_current_time", "arguments": {}}},
                {"function": {"name": "read_file", "arguments": '{"path": "nope.txt"}'}},
            ]}},
            {"message": {"content": "Done."}},
            {"message": {"content": ""}, "done": True},
        ))

    ollama_mock.post("/api/chat").mock(side_effect=handler)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")

    await ctrl.send_message("what time is it?")

    assert _contents(ctrl) == [
        ("user", "what time is it?"),
        ("assistant", "Let me check. "),
        ("assistant", "Tool result (get_current_time):\nCurrent time: 14:05:09"),
        ("assistant", "Tool error (read_file): File not found: nope.txt"),
        ("assistant", "Done."),
    ]
    assert not any(m.in_progress for m in ctrl.state.messages)

    payload = captured["json"]
    assert payload["model"] == "llama3.1:8b"
    assert payload["stream"] is True
    assert payload["options"]["temperature"] == 0.7
    assert [t["function"]["name"] for t in payload["options"]["tools"]][0] == "read_file"
    assert payload["messages"] == [{"role": "user", "content": "what time is it?"}]


@pytest.mark.asyncio
async def test_live_stream_ignores_malformed_lines(ollama_mock, controller_factory):
    _online(ollama_mock)
    ollama_mock.post("/api/chat").mock(return_value=Response(200, content=_ndjson(
        {"message": {"content": "Hi"}},
        {"message": {"content": " there"}},
        extra_lines=["{not json", "", "null"],
    )))
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")

    await ctrl.send_message("hello")

    assert _contents(ctrl)[-1] == ("assistant", "Hi there")


@pytest.mark.asyncio
async def test_live_request_omits_tools_when_disabled(ollama_mock, controller_factory):
    _online(ollama_mock)
    captured = {}

    def handler(request):
        captured["json"] = json.loads(request.content.decode("utf-8"))
        return Response(200, content=_ndjson({"message": {"content": "ok"}, "done": True}))

    ollama_mock.post("/api/chat").mock(side_effect=handler)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")
    ctrl.set_tools_enabled(False)

    await ctrl.send_message("hi")

    assert "tools" not in captured["json"]["options"]


@pytest.mark.asyncio
async def test_live_image_is_sent_as_base64(ollama_mock, controller_factory):
    _online(ollama_mock)
    captured = {}

    def handler(request):
        captured["json"] = json.loads(request.content.decode("utf-8"))
        return Response(200, content=_ndjson({"message": {"content": "A cat."}, "done": True}))

    ollama_mock.post("/api/chat").mock(side_effect=handler)
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")
    ctrl.attach_image("data:image/png;base64,QUJD")

    await ctrl.send_message("what is this?")

    assert captured["json"]["messages"][0]["images"] == ["QUJD"]
    assert ctrl.state.messages[0].image == "data:image/png;base64,QUJD"
    assert ctrl.state.pending_image is None


@pytest.mark.asyncio
async def test_live_whole_reply(ollama_mock, controller_factory):
    _online(ollama_mock)
    ollama_mock.post("/api/chat").mock(return_value=Response(200, json={
        "message": {
            "content": "Here you go.",
            "tool_calls": [{"function": {"name": "get_current_date", "arguments": {"format": "us"}}}],
        },
        "done": True,
    }))
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")
    ctrl.set_streaming_enabled(False)

    await ctrl.send_message("date?")

    assert _contents(ctrl) == [
        ("user", "date?"),
        ("assistant", "Tool result (get_current_date):\nCurrent date: 1/15/2024"),
        ("assistant", "Here you go."),
    ]


@pytest.mark.asyncio
async def test_live_whole_reply_without_content(ollama_mock, controller_factory):
    _online(ollama_mock)
    ollama_mock.post("/api/chat").mock(return_value=Response(200, json={"done": True}))
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")
    ctrl.set_streaming_enabled(False)

    await ctrl.send_message("hello")

    assert _contents(ctrl)[-1] == ("assistant", "No response")


@pytest.mark.asyncio
@pytest.mark.parametrize("streaming", [True, False])
async def test_transport_failure_notifies_and_releases_busy(ollama_mock, controller_factory, streaming):
    _online(ollama_mock)
    chat_route = ollama_mock.post("/api/chat").mock(return_value=Response(500))
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llava:7b")
    ctrl.set_streaming_enabled(streaming)
    ctrl.attach_image(b"abc")

    assert await ctrl.send_message("hello") is True

    assert ctrl.state.busy is False
    assert ctrl.state.pending_image is None
    assert ctrl.state.messages[0].content == "hello"
    assert not any(m.in_progress for m in ctrl.state.messages)
    error = ctrl.notifications[-1]
    assert error.title == "Error"
    assert error.description == "Failed to send message. Check your Ollama connection."

    # The controller accepts the next turn
    chat_route.mock(return_value=Response(200, json={"message": {"content": "ok"}}))
    ctrl.set_streaming_enabled(False)
    await ctrl.send_message("again")
    assert ctrl.state.messages[-1].content == "ok"


@pytest.mark.asyncio
async def test_network_error_mid_turn(ollama_mock, controller_factory):
    _online(ollama_mock)
    ollama_mock.post("/api/chat").mock(side_effect=httpx.ReadError("connection reset"))
    ctrl = controller_factory()
    await ctrl.connect()
    ctrl.select_model("llama3.1:8b")

    await ctrl.send_message("hi")

    assert ctrl.notifications[-1].title == "Error"
    assert ctrl.state.busy is False


# ─────────────────────────────────────────────────────────
# OBSERVERS
# ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_subscribe_and_unsubscribe(ollama_mock, controller_factory):
    _offline(ollama_mock)
    events = []
    ctrl = controller_factory()
    unsubscribe = ctrl.subscribe(events.append)

    await ctrl.connect()
    assert "models" in events
    assert "notification" in events

    unsubscribe()
    events.clear()
    ctrl.select_model("llava:7b")
    assert events == []


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_turn(ollama_mock, controller_factory):
    _offline(ollama_mock)
    ctrl = controller_factory()

    def broken(event):
        raise RuntimeError("boom")

    ctrl.subscribe(broken)
    await ctrl.connect()
    ctrl.select_model("llava:7b")

    assert await ctrl.send_message("hello") is True
    assert ctrl.state.messages[-1].role == "assistant"


@pytest.mark.asyncio
async def test_notifier_receives_notifications(ollama_mock, controller_factory):
    _offline(ollama_mock)
    received = []
    ctrl = controller_factory(notifier=received.append)

    await ctrl.connect()

    assert [n.title for n in received] == ["Connection Failed", "Simulation Mode"]
