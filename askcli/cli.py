#!/usr/bin/env python3
import argparse
import sys

from loguru import logger
from rich.console import Console
from rich.markup import escape

from .errors import AskError, CompletionError
from .interface import ChatInterface, completion_script
from .settings import load_settings
from .setup import edit_config, run_setup
from .store import StateStore

console = Console(stderr=True)

EPILOG = """examples:
  ask "What is the capital of France?"
  ask --model gpt-4 "Explain quantum computing"
  ask --new-context "Python Project"
  ask --switch "Python Project"
  ask --clear
  source <(ask completion)
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ask",
        description="Get chat completion answers from the command line",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('prompt', nargs='*', help='Prompt to send')
    parser.add_argument('--setup', action='store_true', help='Run the interactive setup process')
    parser.add_argument('--model', help='Override the configured model for this request')
    parser.add_argument('--show-config', action='store_true', help='Show the current configuration and exit')
    parser.add_argument('--edit-config', action='store_true', help='Edit the current configuration')
    parser.add_argument('--clear', action='store_true', help='Clear conversation history of the current context')
    parser.add_argument('--no-context', action='store_true', help="Don't use conversation history for this request")

    group = parser.add_argument_group('context management')
    group.add_argument('--new-context', metavar='NAME', help='Create a new context with the given name')
    group.add_argument('--switch', metavar='ID_OR_NAME', help='Switch to context by ID or name')
    group.add_argument('--list-contexts', action='store_true', help='List all contexts')
    group.add_argument('--delete-context', metavar='ID_OR_NAME', help='Delete context by ID or name')
    group.add_argument('--show-context', metavar='ID_OR_NAME', help='Show the messages of a context')

    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    return parser


def configure_logging(level: str):
    logger.remove()
    logger.add(sys.stderr, level=level, format="<level>{level: <8}</level> | {message}")


def dispatch(args, store: StateStore, chat: ChatInterface) -> int:
    if args.setup:
        run_setup(store)
        return 0
    if args.show_config:
        return chat.show_config()
    if args.edit_config:
        edit_config(store)
        return 0
    if args.clear:
        return chat.clear()
    if args.new_context:
        return chat.new_context(args.new_context)
    if args.switch:
        return chat.switch(args.switch)
    if args.list_contexts:
        return chat.list_contexts()
    if args.delete_context:
        return chat.delete(args.delete_context)
    if args.show_context:
        return chat.show_context(args.show_context)

    if args.prompt == ['completion']:
        print(completion_script())
        return 0

    if not args.prompt:
        console.print("[red]No prompt provided.[/]")
        console.print('Usage: ask "your question here"')
        console.print("For help: ask --help")
        return 1

    return chat.ask(" ".join(args.prompt), model=args.model, use_context=not args.no_context)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    store = StateStore.default(settings)
    chat = ChatInterface(store, settings)
    try:
        return dispatch(args, store, chat)
    except CompletionError as e:
        console.print(f"[red]Request failed: {escape(str(e))}[/]")
        return 1
    except AskError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        return 1
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Aborted[/]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
