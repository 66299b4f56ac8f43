from typing import Callable, Optional

from loguru import logger
from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from . import contexts
from .chat_generator import ChatGenerator
from .errors import EmptyResponseError, StoreIOError
from .models import ChatMessage, Context, State, parse_timestamp
from .settings import AVAILABLE_MODELS, Settings
from .setup import mask_api_key, run_setup
from .store import StateStore

RECENT_MESSAGES = 4
PREVIEW_LENGTH = 50

COMPLETION_SCRIPT = """# bash/zsh completion for ask
_ask_completions() {{
    local cur prev opts models
    COMPREPLY=()
    cur="${{COMP_WORDS[COMP_CWORD]}}"
    prev="${{COMP_WORDS[COMP_CWORD-1]}}"
    opts="--setup --model --help --show-config --edit-config --clear --no-context --new-context --switch --list-contexts --delete-context --show-context --verbose completion"
    models="{models}"

    if [[ $prev == --model ]]; then
        COMPREPLY=( $(compgen -W "$models" -- $cur) )
        return 0
    fi

    if [[ $cur == -* ]]; then
        COMPREPLY=( $(compgen -W "$opts" -- $cur) )
        return 0
    fi
}}

complete -F _ask_completions ask
# To enable: source <(ask completion)
"""


def completion_script() -> str:
    return COMPLETION_SCRIPT.format(models=" ".join(AVAILABLE_MODELS))


def _preview(content: str) -> str:
    content = content.replace("\n", " ")
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH - 3] + "..."
    return content


def _format_updated(value: str) -> str:
    if not value:
        return "never"
    return parse_timestamp(value).strftime("%b %d, %H:%M")


def _is_auto_default(context: Context, state: State) -> bool:
    return context.name == contexts.DEFAULT_CONTEXT_NAME and len(state.contexts) == 1


class ChatInterface:
    """Command handlers behind the ``ask`` flags.

    Each handler loads state, runs context operations and saves. Errors from
    the core propagate to the caller.
    """

    def __init__(self, store: StateStore, settings: Settings, console: Optional[Console] = None,
                 generator_factory: Optional[Callable[[str, str], ChatGenerator]] = None):
        self.store = store
        self.settings = settings
        self.console = console or Console()
        self.generator_factory = generator_factory or ChatGenerator

    def display_message(self, message: ChatMessage):
        style = "green" if message.role == "assistant" else "blue"
        content = message.content
        if message.role == "user":
            content = f"You: {message.content}"

        self.console.print(Panel(
            Text(content, style="white"),
            title=f"[{style}]{message.role.title()}[/]",
            box=ROUNDED,
            border_style=style,
            width=min(100, self.console.width - 2)
        ))

    def clear(self) -> int:
        state = self.store.load()
        contexts.clear_current_context(state)
        self.store.save(state)
        self.console.print("[green]Conversation history cleared.[/]")
        return 0

    def new_context(self, name: str) -> int:
        state = self.store.load()
        context_id = contexts.create_context(state, name)
        self.store.save(state)
        self.console.print(f"[green]Created new context '{escape(name)}' with ID: {context_id}[/]")
        return 0

    def switch(self, identifier: str) -> int:
        state = self.store.load()
        context = contexts.switch_to(state, identifier)
        self.store.save(state)
        self.console.print(f"[green]Switched to context: {escape(context.name)} ({context.id})[/]")
        return 0

    def delete(self, identifier: str) -> int:
        state = self.store.load()
        context = contexts.delete_by_identifier(state, identifier)
        self.store.save(state)
        self.console.print(f"[green]Deleted context: {escape(context.name)} ({context.id})[/]")
        return 0

    def list_contexts(self) -> int:
        state = self.store.load()
        listed = contexts.list_contexts(state)

        if not listed:
            self.console.print("[yellow]No contexts found.[/]")
            self.console.print('Create a new context with: ask --new-context "context name"')
            return 0

        # Listing never creates the default context, so a stale or empty
        # selection is shown as-is
        current_id = state.current_context
        self.console.print("[bold]Available contexts:[/]\n")
        for i, context in enumerate(listed):
            marker = "▶" if context.id == current_id else " "
            name = context.name
            if _is_auto_default(context, state):
                name = "default (auto-created)"
            self.console.print(f"{marker} [cyan]{escape(name)}[/] ({context.id})", highlight=False)
            self.console.print(
                f"    Messages: {len(context.history)} | Updated: {_format_updated(context.updated)}",
                highlight=False,
            )
            if i < len(listed) - 1:
                self.console.print()
        return 0

    def show_context(self, identifier: str) -> int:
        state = self.store.load()
        context = contexts.resolve_identifier(state, identifier)
        self.console.print(f"[bold]{escape(context.name)}[/] ({context.id})", highlight=False)
        self.console.print(
            f"[dim]Created: {_format_updated(context.created)} | Updated: {_format_updated(context.updated)}[/]"
        )
        if not context.history:
            self.console.print("[yellow]No messages yet.[/]")
        for message in context.history:
            self.display_message(message)
        return 0

    def _print_recent(self, history):
        if not history:
            return
        self.console.print("  Recent conversation:")
        for message in history[-RECENT_MESSAGES:]:
            self.console.print(f"    {message.role}: {_preview(message.content)}", markup=False, highlight=False)

    def show_config(self) -> int:
        state = self.store.load()
        self.console.print("[bold]Current Ask CLI configuration:[/]")
        self.console.print(f"  Config file: {self.store.path}", highlight=False)
        self.console.print(f"  API Key: {mask_api_key(state.api_key)}", highlight=False)
        self.console.print(f"  Model: {state.model}", highlight=False)

        current = contexts.get_current_context(state)
        if current is not None:
            label = " (default)" if _is_auto_default(current, state) else ""
            self.console.print(f"  Current context: {escape(current.name)}{label} ({current.id})", highlight=False)
            self.console.print(f"  Conversation history: {len(current.history)} messages")
            self._print_recent(current.history)
        else:
            self.console.print(f"  Conversation history: {contexts.history_length(state)} messages (legacy)")
            self._print_recent(contexts.legacy_history(state))
        return 0

    def ask(self, prompt: str, model: Optional[str] = None, use_context: bool = True) -> int:
        state = self.store.load()

        if not state.api_key:
            self.console.print("[yellow]No configuration found. Starting setup process...[/]")
            run_setup(self.store)
            state = self.store.load()

        selected = state.current_context
        contexts.get_current_context(state)
        if state.current_context != selected:
            try:
                self.store.save(state)
            except StoreIOError as e:
                logger.warning("Failed to save configuration: {}", e)

        messages = []
        if use_context:
            messages.extend(contexts.get_current_context_history(state))
        messages.append(ChatMessage("user", prompt))

        generator = self.generator_factory(state.api_key, self.settings.api_base)
        try:
            reply = generator.complete(model or state.model, messages)
        except EmptyResponseError:
            self.console.print("[yellow]No response from model.[/]")
            return 1

        self.console.print(reply.content, markup=False, highlight=False)

        if use_context:
            contexts.add_to_current_context(state, "user", prompt)
            contexts.add_to_current_context(state, "assistant", reply.content)
            try:
                self.store.save(state)
            except StoreIOError as e:
                self.console.print(f"[yellow]Warning: failed to save conversation history: {escape(str(e))}[/]")
        return 0
