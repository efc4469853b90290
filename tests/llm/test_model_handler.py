"""Tests for the llama.cpp model handler."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("llama_cpp")

from mnemo.chat.message import ConversationMessage, FunctionCall  # noqa: E402
from mnemo.chat.tool import Tool  # noqa: E402
from mnemo.core.interfaces import Completer  # noqa: E402
from mnemo.core.model_handler import ModelHandler  # noqa: E402

WEATHER_TOOL = Tool(
    name="get_weather",
    description="Get current weather for a location",
    function=lambda location: location,
    parameters={
        "type": "object",
        "properties": {"location": {"type": "string"}},
        "required": ["location"]
    }
)


@pytest.fixture
def mock_llm():
    with patch("mnemo.core.model_handler.Llama") as mock_cls:
        llm = MagicMock()
        mock_cls.return_value = llm
        yield llm


@pytest.fixture
def model_path(tmp_path):
    path = tmp_path / "model.gguf"
    path.write_bytes(b"GGUF")
    return str(path)


def chat_response(message):
    return {"choices": [{"message": message}]}


def test_missing_model_path():
    with pytest.raises(ValueError, match="model_path is required"):
        ModelHandler(model_path="")


def test_nonexistent_model(tmp_path):
    with pytest.raises(ValueError, match="Model not found"):
        ModelHandler(model_path=str(tmp_path / "missing.gguf"))


def test_is_a_completer(mock_llm, model_path):
    assert isinstance(ModelHandler(model_path=model_path), Completer)


def test_complete_plain_response(mock_llm, model_path):
    mock_llm.create_chat_completion.return_value = chat_response(
        {"role": "assistant", "content": "Hello there!"}
    )
    handler = ModelHandler(model_path=model_path, temperature=0.2, max_tokens=64)

    completion = asyncio.run(handler.complete(
        [ConversationMessage(role="user", content="Hi")],
        [WEATHER_TOOL]
    ))

    assert completion.response == "Hello there!"
    assert completion.function_calls == []
    kwargs = mock_llm.create_chat_completion.call_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 64
    assert "tools" not in kwargs


def test_complete_parses_xml_tool_calls(mock_llm, model_path):
    mock_llm.create_chat_completion.return_value = chat_response({
        "role": "assistant",
        "content": '<tool_call>{"name": "get_weather", "arguments": {"location": "Paris"}}</tool_call>'
    })
    handler = ModelHandler(model_path=model_path)

    completion = asyncio.run(handler.complete([ConversationMessage(role="user", content="Weather?")], []))

    assert completion.function_calls == [FunctionCall(name="get_weather", arguments={"location": "Paris"})]


def test_native_tools_are_passed_to_llama(mock_llm, model_path):
    mock_llm.create_chat_completion.return_value = chat_response({
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": "call_0",
            "type": "function",
            "function": {"name": "get_weather", "arguments": '{"location": "Oslo"}'}
        }]
    })
    handler = ModelHandler(model_path=model_path, native_tools=True)

    completion = asyncio.run(handler.complete([ConversationMessage(role="user", content="Oslo?")], [WEATHER_TOOL]))

    assert mock_llm.create_chat_completion.call_args.kwargs["tools"] == [WEATHER_TOOL.to_llm_format()]
    assert completion.function_calls == [FunctionCall(name="get_weather", arguments={"location": "Oslo"})]


def test_each_request_resets_state(mock_llm, model_path):
    mock_llm.create_chat_completion.return_value = chat_response({"role": "assistant", "content": "ok"})
    handler = ModelHandler(model_path=model_path)

    handler.chat([{"role": "user", "content": "one"}])
    handler.chat([{"role": "user", "content": "two"}])

    assert mock_llm.reset.call_count == 2
