from ollama_agent.context import ChatMessage
from ollama_agent.engine.request_builder import build_chat_request, encode_image


def test_payload_without_tools_or_images():
    history = [
        ChatMessage(role="user", content="hi"),
        ChatMessage(role="assistant", content="hello"),
        ChatMessage(role="user", content="again"),
    ]

    payload = build_chat_request("llama3.1:8b", history, stream=True).to_payload()

    assert payload == {
        "model": "llama3.1:8b",
        "messages": [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
            {"role": "user", "content": "again"},
        ],
        "stream": True,
        "options": {"temperature": 0.7},
    }


def test_images_are_bare_base64():
    history = [ChatMessage(role="user", content="what is this?", image="data:image/png;base64,QUJD")]

    payload = build_chat_request("llava:7b", history, stream=False).to_payload()

    assert payload["messages"][0]["images"] == ["QUJD"]
    assert payload["stream"] is False


def test_tools_included_when_given(executor):
    manifest = executor.get_manifest()

    payload = build_chat_request("mistral:7b", [], stream=True, tools=manifest).to_payload()

    assert payload["options"]["tools"] == manifest


def test_empty_tool_list_is_dropped():
    payload = build_chat_request("mistral:7b", [], stream=True, tools=[]).to_payload()

    assert "tools" not in payload["options"]


def test_encode_image_without_prefix():
    assert encode_image("QUJD") == "QUJD"
    assert encode_image("data:image/jpeg;base64,/9j/4AAQ") == "/9j/4AAQ"
