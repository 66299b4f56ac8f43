"""
Conversation context management.

Every function here works on an in-memory State; loading and saving is the
caller's job (see askcli.store).
"""
import uuid
from typing import List, Optional

from loguru import logger

from .errors import DuplicateNameError, NotFoundError
from .models import ChatMessage, Context, State, now_timestamp, parse_timestamp

DEFAULT_CONTEXT_NAME = "default"


def ensure_contexts_initialized(state: State):
    if state.contexts is None:
        state.contexts = {}


def _generate_id(state: State) -> str:
    while True:
        context_id = f"ctx_{uuid.uuid4().hex[:12]}"
        if context_id not in state.contexts:
            return context_id


def create_context(state: State, name: str) -> str:
    """Create an empty context called ``name``, make it current and return its id"""
    ensure_contexts_initialized(state)

    for context in state.contexts.values():
        if context.name == name:
            raise DuplicateNameError(name)

    context_id = _generate_id(state)
    now = now_timestamp()
    state.contexts[context_id] = Context(id=context_id, name=name, history=[], created=now, updated=now)
    state.current_context = context_id
    logger.debug("Created context {!r} ({})", name, context_id)
    return context_id


def switch_context(state: State, context_id: str):
    ensure_contexts_initialized(state)

    if context_id not in state.contexts:
        raise NotFoundError(context_id)
    state.current_context = context_id
    logger.debug("Switched to context {}", context_id)


def get_current_context(state: State) -> Optional[Context]:
    """Resolve the current context.

    With nothing selected, an empty store gets a fresh "default" context and a
    non-empty one selects its smallest id. A selected id that no longer exists
    yields None.
    """
    ensure_contexts_initialized(state)

    if not state.current_context:
        if not state.contexts:
            create_context(state, DEFAULT_CONTEXT_NAME)
        else:
            state.current_context = min(state.contexts)

    return state.contexts.get(state.current_context)


def get_current_context_history(state: State) -> List[ChatMessage]:
    context = get_current_context(state)
    if context is None:
        return []
    return list(context.history)


def add_to_current_context(state: State, role: str, content: str):
    context = get_current_context(state)
    if context is None:
        logger.warning("Current context {!r} not found, using legacy history", state.current_context)
        state.history.append(ChatMessage(role, content))
        return

    context.history.append(ChatMessage(role, content))
    context.updated = now_timestamp()


def clear_current_context(state: State):
    context = get_current_context(state)
    if context is None:
        logger.warning("Current context {!r} not found, clearing legacy history", state.current_context)
        state.history = []
        return

    context.history = []
    context.updated = now_timestamp()


def delete_context(state: State, context_id: str):
    ensure_contexts_initialized(state)

    if context_id not in state.contexts:
        raise NotFoundError(context_id)
    del state.contexts[context_id]
    logger.debug("Deleted context {}", context_id)

    if state.current_context == context_id:
        state.current_context = ""


def list_contexts(state: State) -> List[Context]:
    """All contexts, most recently updated first"""
    ensure_contexts_initialized(state)

    contexts = sorted(state.contexts.values(), key=lambda c: c.id)
    contexts.sort(key=lambda c: parse_timestamp(c.updated), reverse=True)
    return contexts


def resolve_identifier(state: State, identifier: str) -> Context:
    """Find a context by id, falling back to an exact name match"""
    ensure_contexts_initialized(state)

    context = state.contexts.get(identifier)
    if context is not None:
        return context

    for context in list_contexts(state):
        if context.name == identifier:
            return context

    raise NotFoundError(identifier)


def switch_to(state: State, identifier: str) -> Context:
    context = resolve_identifier(state, identifier)
    switch_context(state, context.id)
    return context


def delete_by_identifier(state: State, identifier: str) -> Context:
    context = resolve_identifier(state, identifier)
    delete_context(state, context.id)
    return context


def legacy_history(state: State) -> List[ChatMessage]:
    return list(state.history)


def history_length(state: State) -> int:
    return len(state.history)
