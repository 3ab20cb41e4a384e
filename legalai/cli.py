"""CLI entry point for LegalAI."""

import asyncio
import logging

import click
import uvicorn

from legalai.client.consumer import ChatController, ChatStreamClient
from legalai.client.store import ConversationStore
from legalai.models.conversation import MessageEvent
from legalai.services.config_manager import ConfigManager

SUGGESTED_QUERIES = [
    ("Rights under Constitution", "What are my fundamental rights under the Indian Constitution?"),
    ("Property Laws", "Explain the process of property registration in India"),
    ("Contract Basics", "What makes a contract legally valid in India?"),
    ("Consumer Rights", "How can I file a consumer complaint?"),
]

HELP_TEXT = "Commands: /new, /list, /switch <n>, /delete, /quit"


class TerminalRenderer:
    """Echo assistant text as it streams into the active conversation"""

    def __init__(self, store: ConversationStore):
        self.store = store
        self._printed: dict[str, int] = {}

    def on_message(self, event: MessageEvent):
        if event.conversation_id != self.store.active_id:
            return
        message = self.store.get(event.conversation_id).find_message(event.message_id)
        if message is None or message.role != "assistant":
            return
        if event.message_id not in self._printed:
            click.secho("LegalAI: ", fg="yellow", nl=False)
        start = self._printed.get(event.message_id, 0)
        click.echo(event.content[start:], nl=False)
        self._printed[event.message_id] = len(event.content)

    def on_typing(self, conversation_id: str, typing: bool):
        if typing and conversation_id == self.store.active_id:
            click.secho("LegalAI is typing...", dim=True)


def _print_welcome():
    click.secho("Welcome to LegalAI", bold=True)
    click.echo("Ask me anything about laws, rights, procedures, or legal documents.")
    for title, query in SUGGESTED_QUERIES:
        click.echo(f"  - {title}: {query}")
    click.echo(HELP_TEXT)


def _print_conversations(store: ConversationStore):
    for index, conversation in enumerate(store.list_conversations(), start=1):
        marker = "*" if conversation.id == store.active_id else " "
        click.echo(f"{marker} {index}. {conversation.title}")


async def _chat_loop(controller: ChatController):
    store = controller.store
    _print_welcome()

    while True:
        text = await asyncio.to_thread(click.prompt, "You", default="", show_default=False)
        command, _, arg = text.strip().partition(" ")

        if command == "/quit":
            return
        if command == "/new":
            store.select(store.create_conversation().id)
            _print_welcome()
        elif command == "/list":
            _print_conversations(store)
        elif command == "/switch":
            conversations = store.list_conversations()
            if not arg.isdigit() or not 1 <= int(arg) <= len(conversations):
                click.echo("Usage: /switch <n> (see /list)")
                continue
            store.select(conversations[int(arg) - 1].id)
            click.echo(f"Switched to: {store.active.title}")
        elif command == "/delete":
            await controller.delete_conversation(store.active_id)
            click.echo(f"Now in: {store.active.title}")
        elif command.startswith("/"):
            click.echo(HELP_TEXT)
        elif text.strip():
            await controller.send(store.active_id, text)
            click.echo()


@click.group()
@click.option("--log-level", default="WARNING", help="Logging level.")
def main(log_level: str):
    """LegalAI relay server and terminal chat client."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@main.command()
@click.option("--port", default=None, type=int, help="Port to serve on.")
@click.option("--host", default=None, help="Host to bind to.")
def serve(port: int | None, host: str | None):
    """Start the streaming relay."""
    server = ConfigManager.get_instance().get("server", {})
    host = host or server.get("host", "0.0.0.0")
    port = port or int(server.get("port", 8000))
    click.echo(f"Starting LegalAI relay on http://{host}:{port}")
    uvicorn.run("legalai.main:app", host=host, port=port, reload=False)


@main.command()
@click.option("--endpoint", default=None, help="Relay URL (defaults to client.endpoint).")
@click.option("--api-key", default=None, help="Bearer credential forwarded to the relay.")
def chat(endpoint: str | None, api_key: str | None):
    """Chat with LegalAI in the terminal."""
    cfg = ConfigManager.get_instance().get("client", {})
    client = ChatStreamClient(
        endpoint or cfg["endpoint"],
        api_key=api_key or cfg.get("apiKey") or None,
        connect_timeout=float(cfg.get("connectTimeout", 10)),
        read_timeout=float(cfg.get("readTimeout", 90)),
    )
    store = ConversationStore()
    renderer = TerminalRenderer(store)
    store.subscribe(renderer.on_message)
    store.subscribe_typing(renderer.on_typing)

    def notify(title: str, description: str):
        click.secho(f"\n{title}: {description}", fg="red", err=True)

    try:
        asyncio.run(_chat_loop(ChatController(store, client, notify)))
    except (KeyboardInterrupt, EOFError, click.Abort):
        click.echo()
