from typing import Optional

import pytest
from conftest import BagOfWordsEmbedder, FakeBackend, InMemoryIndex, ScriptedReader
from rich.console import Console

from qmulo_chat.commands.builtins import build_default_registry
from qmulo_chat.commands.index import initialize_command_index
from qmulo_chat.commands.registry import CommandRegistry
from qmulo_chat.commands.router import CommandRouter
from qmulo_chat.console.session import SessionLoop, SessionState
from qmulo_chat.conversation.messages import Message
from qmulo_chat.errors import NetworkError


async def make_session(
    backend: FakeBackend,
    reader: ScriptedReader,
    registry: Optional[CommandRegistry] = None,
) -> SessionLoop:
    registry = registry if registry is not None else build_default_registry(reader)
    embedder = BagOfWordsEmbedder()
    index = InMemoryIndex()
    await initialize_command_index(registry, embedder, index)
    return SessionLoop(CommandRouter(registry, embedder, index), backend, reader)


@pytest.mark.asyncio
async def test_first_input_seeds_system_prompt(
    backend: FakeBackend, record_console: Console
) -> None:
    session = await make_session(backend, ScriptedReader())
    assert session.state is SessionState.awaiting_system_prompt

    await session.handle_input("You are a helpful assistant")

    assert session.state is SessionState.ready
    assert session.context is not None
    assert session.context.messages == (Message.system("You are a helpful assistant"),)
    assert backend.calls == []
    assert "Now you can start chatting" in record_console.export_text()


@pytest.mark.asyncio
async def test_first_input_is_never_routed(
    backend: FakeBackend, record_console: Console
) -> None:
    session = await make_session(backend, ScriptedReader())

    await session.handle_input("/retry")

    assert session.context is not None
    assert session.context.system_prompt == "/retry"
    assert "Executing command" not in record_console.export_text()


@pytest.mark.asyncio
async def test_prompt_is_sent_and_reply_displayed(
    backend: FakeBackend, record_console: Console
) -> None:
    session = await make_session(backend, ScriptedReader())
    await session.handle_input("sys")

    await session.handle_input("hello there")

    assert session.context is not None
    assert session.context.messages == (
        Message.system("sys"),
        Message.user("hello there"),
        Message.assistant("first reply"),
    )
    assert "first reply" in record_console.export_text()


@pytest.mark.asyncio
async def test_network_error_is_displayed_and_loop_continues(
    record_console: Console,
) -> None:
    backend = FakeBackend(error=NetworkError("LLM server unreachable"))
    session = await make_session(backend, ScriptedReader())
    await session.handle_input("sys")
    assert session.context is not None
    before = session.context.messages

    await session.handle_input("hello")

    assert session.state is SessionState.ready
    assert session.context.messages == before
    assert "error: LLM server unreachable" in record_console.export_text()


@pytest.mark.asyncio
async def test_prompt_after_failed_turn_is_sent_alone(
    record_console: Console,
) -> None:
    backend = FakeBackend(error=NetworkError("LLM server unreachable"))
    session = await make_session(backend, ScriptedReader())
    await session.handle_input("sys")
    await session.handle_input("first")

    backend.error = None
    backend.replies = ["answer"]
    await session.handle_input("second")

    assert backend.calls[-1] == (Message.system("sys"), Message.user("second"))
    assert session.context is not None
    assert session.context.messages == (
        Message.system("sys"),
        Message.user("second"),
        Message.assistant("answer"),
    )


@pytest.mark.asyncio
async def test_command_is_routed_and_announced(
    backend: FakeBackend, record_console: Console
) -> None:
    reader = ScriptedReader(["always answer in French"])
    session = await make_session(backend, reader)
    await session.handle_input("sys")

    await session.handle_input("/give the assistant a hint about how to behave")

    assert session.context is not None
    assert session.context.last_message == Message.system("always answer in French")
    output = record_console.export_text()
    assert "// Executing command 'hint'" in output


@pytest.mark.asyncio
async def test_retry_command_displays_new_reply(
    backend: FakeBackend, record_console: Console
) -> None:
    session = await make_session(backend, ScriptedReader())
    await session.handle_input("sys")
    await session.handle_input("tell me a joke")

    await session.handle_input("/retry the last response")

    assert session.context is not None
    assert session.context.last_message == Message.assistant("second reply")
    assert len(session.context) == 3
    assert "second reply" in record_console.export_text()


@pytest.mark.asyncio
async def test_router_error_is_displayed(
    backend: FakeBackend, record_console: Console
) -> None:
    session = await make_session(backend, ScriptedReader(), registry=CommandRegistry())
    await session.handle_input("sys")

    await session.handle_input("/anything")

    assert session.state is SessionState.ready
    assert "error: No commands are registered" in record_console.export_text()


@pytest.mark.asyncio
async def test_nested_command_is_displayed(
    backend: FakeBackend, record_console: Console
) -> None:
    reader = ScriptedReader(["/retry"])
    session = await make_session(backend, reader)
    await session.handle_input("sys")

    await session.handle_input("/overwrite the system prompt")

    assert session.context is not None
    assert session.context.system_prompt == "sys"
    assert "nested command input not permitted" in record_console.export_text()


@pytest.mark.asyncio
async def test_run_reads_until_reader_is_exhausted(
    backend: FakeBackend, record_console: Console
) -> None:
    reader = ScriptedReader(["sys", "hi"])
    session = await make_session(backend, reader)

    with pytest.raises(EOFError):
        await session.run()

    assert session.context is not None
    assert len(session.context) == 3
    assert "Enter the system prompt" in record_console.export_text()
