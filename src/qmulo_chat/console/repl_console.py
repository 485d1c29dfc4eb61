import logging
from typing import Generator, Optional

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.filters import completion_is_selected, has_completions
from prompt_toolkit.history import FileHistory
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.keys import Keys
from prompt_toolkit.shortcuts import PromptSession
from prompt_toolkit.styles import Style
from rich.panel import Panel

from qmulo_chat.commands.registry import CommandRegistry
from qmulo_chat.console import rendering
from qmulo_chat.console.input import COMMAND_SENTINEL
from qmulo_chat.console.session import SessionLoop
from qmulo_chat.conversation.backend import HttpLLMBackend
from qmulo_chat.runtime_config import RuntimeConfig, get_data_dir
from qmulo_chat.startup import build_router

logger = logging.getLogger(__name__)


class CommandCompleter(Completer):
    """Completes ``/`` followed by the start of a registered command id."""

    def __init__(self, registry: CommandRegistry) -> None:
        self._registry = registry

    def get_completions(
        self, document: Document, complete_event: CompleteEvent
    ) -> Generator[Completion, None, None]:
        text = document.text
        if document.cursor_position_row != 0 or not text.startswith(COMMAND_SENTINEL):
            return
        typed = text[len(COMMAND_SENTINEL) :].lower()
        for command in self._registry:
            if command.id.startswith(typed):
                yield Completion(
                    f"{COMMAND_SENTINEL}{command.id}",
                    start_position=-len(text),
                    display=f"{COMMAND_SENTINEL}{command.id:<12} {command.description}",
                )


class ReplConsole:
    """Console that runs the interactive chat session."""

    style: Style = Style.from_dict(
        {
            "prompt": "ansicyan bold",
            "completion-menu": "noinherit",
            "completion-menu.completion": "noinherit",
            "completion-menu.completion.current": "noinherit bold",
        }
    )

    config: RuntimeConfig
    prompt_session: Optional[PromptSession[str]]

    def __init__(self, config: RuntimeConfig) -> None:
        self.config = config
        self.prompt_session = None

    @staticmethod
    def on_completions_changed(buf: Buffer) -> None:
        state = buf.complete_state
        # A bare sentinel lists every command; nothing is picked until the user does
        if state and state.complete_index is None and buf.text != COMMAND_SENTINEL:
            state.complete_index = 0

    @staticmethod
    def should_accept_completion(buf: Buffer) -> bool:
        """Enter applies a completion only once one is typed toward or chosen."""
        state = buf.complete_state
        if state is None:
            return False
        return state.complete_index is not None or buf.text != COMMAND_SENTINEL

    def _get_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("enter", filter=has_completions)
        def accept_completion(event: KeyPressEvent) -> None:
            buffer = event.current_buffer
            state = buffer.complete_state

            if not self.should_accept_completion(buffer):
                return
            if not completion_is_selected():  # user never arrowed/tabbed
                state.complete_index = state.complete_index or 0  # type: ignore
            buffer.apply_completion(state.current_completion)  # type: ignore
            buffer.cancel_completion()
            buffer.validate_and_handle()

        # Support Ctrl+J for newline without submission.
        @kb.add("c-j", eager=True)
        def _(event: KeyPressEvent) -> None:
            """Insert newline on Ctrl+J (recommended Shift+Enter mapping in terminal)."""
            event.current_buffer.insert_text("\n")

        # Support Alt+Enter for newline without submission.
        @kb.add(Keys.Escape, Keys.Enter, eager=True)
        def _(event: KeyPressEvent) -> None:
            """Insert newline on Alt+Enter."""
            event.current_buffer.insert_text("\n")

        return kb

    def _create_prompt_session(self, registry: CommandRegistry) -> PromptSession[str]:
        # Store prompt history under the XDG data directory
        history_dir = get_data_dir()
        history_dir.mkdir(parents=True, exist_ok=True)
        history_path = history_dir / "prompt_history"

        session: PromptSession[str] = PromptSession(
            history=FileHistory(str(history_path)),
            completer=CommandCompleter(registry),
            style=self.style,
            complete_while_typing=True,
            key_bindings=self._get_key_bindings(),
        )
        session.default_buffer.on_completions_changed += self.on_completions_changed
        return session

    async def read_line(self, message: str = "") -> str:
        """Read one line (possibly multi-line text) from the terminal."""
        if message:
            rendering.console.print(message, style="dim cyan", markup=False)
        if self.prompt_session is None:
            raise RuntimeError("Prompt session has not been started")
        return await self.prompt_session.prompt_async([("class:prompt", "› ")])

    async def run(self) -> None:
        """Initialize the command index, then run the chat loop until exit."""
        rendering.console.print(
            Panel(
                f"[bold cyan]╭─ QMULO CHAT ─╮[/bold cyan]\n\n"
                f"[dim]LLM server:[/dim] [dim cyan]{self.config.llm_host}[/dim cyan]\n"
                f"[dim]Command index:[/dim] [dim cyan]{self.config.qdrant_url} "
                f"({self.config.collection_name})[/dim cyan]\n"
                f"[dim]Embedding model:[/dim] [dim cyan]{self.config.embedding_model}[/dim cyan]",
                expand=False,
            )
        )

        with rendering.console.status("Loading commands..."):
            router = await build_router(self.config, self)

        self.prompt_session = self._create_prompt_session(router.registry)
        session = SessionLoop(router, HttpLLMBackend(self.config.generate_url), self)

        try:
            logger.info("Starting chat session")
            await session.run()
        except (KeyboardInterrupt, EOFError):
            logger.info("Session ended by user")
