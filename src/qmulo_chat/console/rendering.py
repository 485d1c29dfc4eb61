from rich.console import Console, ConsoleOptions, RenderResult
from rich.markdown import Heading, Markdown

from qmulo_chat.conversation.messages import Message, Role


# Classes to override the default Markdown renderer
class PlainHeading(Heading):
    """Left-aligned, no panel."""

    def __rich_console__(
        self, console: Console, options: ConsoleOptions
    ) -> RenderResult:
        self.text.justify = "left"
        yield self.text


class PlainMarkdown(Markdown):
    elements = Markdown.elements.copy()
    elements["heading_open"] = PlainHeading


console = Console()


def render_message(msg: Message) -> None:
    """Render a single conversation message via Rich."""
    if msg.role is Role.assistant:
        md = PlainMarkdown(msg.content, code_theme="nord", hyperlinks=True)
        console.print(md)
        console.print()
    elif msg.role is Role.system:
        console.print(f"[dim]system› {msg.content}[/dim]")
    else:
        console.print(f"[dim]› {msg.content}[/dim]")


def render_notice(text: str) -> None:
    """Render a client-side ``// ...`` line."""
    console.print(f"// {text}", style="dim cyan", markup=False, highlight=False)


def render_error(text: str) -> None:
    console.print(f"error: {text}", style="bold red", markup=False, highlight=False)
    console.print()
