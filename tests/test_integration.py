"""Integration tests for the assembled assistant."""

import asyncio
from unittest.mock import patch

import pytest

from fakes import HashEmbedder, ScriptedCompleter
from mnemo.app import Assistant, create_completer
from mnemo.chat.message import Completion, FunctionCall
from mnemo.chat.tool_parser import parse_completion
from mnemo.core.config import Config
from mnemo.errors import DimensionMismatch, StoreClosed
from mnemo.tools.memory.vector_store import VectorStore


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    env_file = tmp_path / "config.env"
    env_file.write_text(
        f"MEMORY_DIR={tmp_path / 'memory'}\n"
        "MEMORY_STORE_NAME=integration\n"
        "MEMORY_MAX_SEARCH_RESULTS=3\n"
        "CHAT_SYSTEM_PROMPT=You remember things.\n"
    )
    return Config(str(env_file))


def run_turns(assistant, *texts):
    async def _run():
        return [await assistant.send(text) for text in texts]
    return asyncio.run(_run())


def test_store_then_recall_in_one_turn(config):
    completer = ScriptedCompleter([Completion(function_calls=[
        FunctionCall("store_memory", {"content": "The spare key is under the blue flowerpot"}),
        FunctionCall("recall_memory", {"query": "where is the spare key"}),
    ])])

    with Assistant(config, embedder=HashEmbedder(), completer=completer) as assistant:
        [messages] = run_turns(assistant, "Remember where the spare key is, then tell me")

    assert [m.role for m in messages] == ["assistant", "assistant"]
    assert messages[0].content == "Stored 1 new chunk in memory successfully."
    assert "The spare key is under the blue flowerpot" in messages[1].content


def test_xml_tool_calls_end_to_end(config):
    raw = {
        "role": "assistant",
        "content": (
            '<tool_call>{"name": "store_memory", "arguments": {"content": "Sam is allergic to peanuts"}}</tool_call>\n'
            '<tool_call>{"name": "get_weather", "arguments": {"location": "Boston"}}</tool_call>'
        )
    }
    completer = ScriptedCompleter([parse_completion(raw), Completion(response="Noted.")])

    with Assistant(config, embedder=HashEmbedder(), completer=completer) as assistant:
        first, second = run_turns(assistant, "Sam can't eat peanuts. Weather in Boston?", "Thanks")

        assert [m.content for m in first] == [
            "Stored 1 new chunk in memory successfully.",
            "Weather in Boston: Sunny, 72°F",
        ]
        assert [m.content for m in second] == ["Noted."]
        assert assistant.memory.store.count() == 1


def test_memories_survive_a_restart(config):
    store_turn = ScriptedCompleter([Completion(function_calls=[
        FunctionCall("store_memory", {"content": "The wifi password is hunter2"}),
    ])])
    with Assistant(config, embedder=HashEmbedder(), completer=store_turn) as assistant:
        run_turns(assistant, "Remember the wifi password")

    recall_turn = ScriptedCompleter([Completion(function_calls=[
        FunctionCall("recall_memory", {"query": "wifi password"}),
    ])])
    with Assistant(config, embedder=HashEmbedder(), completer=recall_turn) as assistant:
        [messages] = run_turns(assistant, "What is the wifi password?")

    assert messages[0].content.startswith("1. The wifi password is hunter2")


def test_assistant_wiring(config):
    completer = ScriptedCompleter([])

    with Assistant(config, embedder=HashEmbedder(dimension=32), completer=completer) as assistant:
        assert assistant.registry.names() == ["store_memory", "recall_memory", "get_weather", "send_email"]
        assert assistant.memory.store.dimension == 32
        assert assistant.memory.store.name == "integration"
        assert assistant.loop.history.system_message.content.startswith("You remember things.")

    with pytest.raises(StoreClosed):
        assistant.memory.store.count()


def test_changing_embedding_model_dimension_is_refused(config):
    Assistant(config, embedder=HashEmbedder(dimension=384), completer=ScriptedCompleter([])).close()

    with pytest.raises(DimensionMismatch):
        Assistant(config, embedder=HashEmbedder(dimension=256), completer=ScriptedCompleter([]))


def test_create_completer_requires_model_path(config):
    with patch.dict(config.config, {"MODEL_PATH": None}):
        with pytest.raises(ValueError, match="MODEL_PATH"):
            create_completer(config)


def test_store_is_closed_when_the_model_cannot_load(config):
    with patch.dict(config.config, {"MODEL_PATH": None}), \
            patch.object(VectorStore, "close", autospec=True) as close:
        with pytest.raises(ValueError, match="MODEL_PATH"):
            Assistant(config, embedder=HashEmbedder())

    close.assert_called_once()


def test_imports_work():
    """Test that all main modules can be imported."""
    import mnemo
    from mnemo.chat import ConversationLoop, ToolDispatcher, ToolRegistry  # noqa: F401
    from mnemo.core import Completer, Config, Embedder  # noqa: F401
    from mnemo.tools import MemoryTool, register_builtin_tools  # noqa: F401
    from mnemo.tools.memory import MemoryService, TextChunker, VectorStore  # noqa: F401

    assert mnemo.__version__ == "0.1.0"


def test_injected_embedder_is_shared_with_memory(config):
    embedder = HashEmbedder()
    with patch("mnemo.app.create_embedder") as mock_create, \
            patch("mnemo.app.open_memory") as mock_open:
        assistant = Assistant(config, embedder=embedder, completer=ScriptedCompleter([]))

    mock_create.assert_not_called()
    mock_open.assert_called_once_with(config, embedder)
    assert assistant.embedder is embedder
