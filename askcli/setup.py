from rich.console import Console
from prompt_toolkit import PromptSession
from prompt_toolkit.shortcuts import confirm as pt_confirm

from .errors import SetupError
from .settings import AVAILABLE_MODELS
from .store import StateStore

console = Console()


def mask_api_key(key: str) -> str:
    if len(key) <= 8:
        return "********"
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


def _print_models():
    for i, model in enumerate(AVAILABLE_MODELS, start=1):
        console.print(f"  {i}. {model}")


def run_setup(store: StateStore, session=None, confirm=pt_confirm):
    """Interactive setup for API key and model"""
    session = session or PromptSession()
    state = store.load()

    console.print("\n[yellow]Welcome to Ask CLI setup![/]")
    console.print("This will configure your OpenAI API key and preferred model.\n")

    console.print("[blue]Step 1: OpenAI API key[/]")
    console.print("[dim]Get one at https://platform.openai.com/account/api-keys[/]")
    if state.api_key:
        if confirm("API key already configured. Update it?"):
            state.api_key = ""
        else:
            console.print("Keeping existing API key.")

    if not state.api_key:
        console.print("\n[green]Please enter your OpenAI API key:[/]")
        api_key = session.prompt("> ").strip()
        if not api_key:
            raise SetupError("API key cannot be empty")
        state.api_key = api_key

    console.print("\n[blue]Step 2: Choose your preferred model[/]")
    _print_models()
    change_model = True
    if state.model:
        console.print(f"\nCurrent model: [yellow]{state.model}[/]")
        change_model = confirm("Change it?")
        if not change_model:
            console.print("Keeping existing model.")

    if change_model:
        console.print(f"\n[green]Enter the number of your preferred model (1-{len(AVAILABLE_MODELS)}):[/]")
        choice = session.prompt("> ").strip()
        try:
            index = int(choice)
        except ValueError:
            index = 0
        if not 1 <= index <= len(AVAILABLE_MODELS):
            raise SetupError(f"invalid choice. Please select a number between 1 and {len(AVAILABLE_MODELS)}")
        state.model = AVAILABLE_MODELS[index - 1]

    store.save(state)

    console.print("\n[green]Setup complete![/]")
    console.print("[blue]Configuration saved to:[/]")
    console.print(f"[yellow]{store.path}[/]")
    console.print('\nYou can now run: ask "Your question here"')
    console.print("[dim]To reconfigure, run: ask --setup[/]\n")


def edit_config(store: StateStore, session=None):
    """Edit API key and model, blank input keeps the current value"""
    session = session or PromptSession()
    state = store.load()

    console.print("\n[yellow]Edit Ask CLI configuration[/]")
    console.print("[dim]Leave blank to keep the current value.[/]\n")

    console.print(f"Current API key: {mask_api_key(state.api_key)}")
    api_key = session.prompt("New API key: ").strip()
    if api_key:
        state.api_key = api_key

    console.print(f"\nCurrent model: {state.model}")
    console.print("Available models:")
    _print_models()
    choice = session.prompt("New model (number or name): ").strip()
    if choice:
        if choice.isdigit():
            index = int(choice)
            if not 1 <= index <= len(AVAILABLE_MODELS):
                raise SetupError(f"invalid choice. Please select a number between 1 and {len(AVAILABLE_MODELS)}")
            state.model = AVAILABLE_MODELS[index - 1]
        elif choice in AVAILABLE_MODELS:
            state.model = choice
        else:
            raise SetupError(f"invalid model name: {choice}")

    store.save(state)
    console.print("\n[green]Configuration updated successfully![/]")
