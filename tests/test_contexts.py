from __future__ import annotations

import pytest

from askcli import contexts
from askcli.errors import DuplicateNameError, NotFoundError
from askcli.models import ChatMessage, State, parse_timestamp


def test_ensure_contexts_initialized_is_idempotent() -> None:
    state = State()
    assert state.contexts is None

    contexts.ensure_contexts_initialized(state)
    assert state.contexts == {}

    context_id = contexts.create_context(state, "work")
    contexts.ensure_contexts_initialized(state)
    assert list(state.contexts) == [context_id]


def test_create_context_selects_new_context() -> None:
    state = State()
    context_id = contexts.create_context(state, "work")

    context = state.contexts[context_id]
    assert context_id.startswith("ctx_")
    assert context.id == context_id
    assert context.name == "work"
    assert context.history == []
    assert context.created == context.updated
    assert state.current_context == context_id


def test_create_context_rejects_duplicate_name() -> None:
    state = State()
    for name in ("a", "b", "c", "work"):
        contexts.create_context(state, name)

    with pytest.raises(DuplicateNameError):
        contexts.create_context(state, "work")
    assert len(state.contexts) == 4


def test_create_context_names_are_case_sensitive() -> None:
    state = State()
    contexts.create_context(state, "Work")
    contexts.create_context(state, "work")
    assert len(state.contexts) == 2


def test_created_ids_are_unique() -> None:
    state = State()
    ids = {contexts.create_context(state, f"ctx-{i}") for i in range(50)}
    assert len(ids) == 50


def test_switch_context() -> None:
    state = State()
    first = contexts.create_context(state, "first")
    contexts.create_context(state, "second")

    contexts.switch_context(state, first)
    assert state.current_context == first

    with pytest.raises(NotFoundError):
        contexts.switch_context(state, "ctx_missing")
    assert state.current_context == first


def test_get_current_context_creates_default_on_empty_state() -> None:
    state = State()
    context = contexts.get_current_context(state)

    assert context is not None
    assert context.name == "default"
    assert state.current_context == context.id
    assert len(state.contexts) == 1


def test_get_current_context_picks_smallest_id_when_unselected() -> None:
    state = State()
    contexts.create_context(state, "one")
    contexts.create_context(state, "two")
    state.current_context = ""

    context = contexts.get_current_context(state)
    assert context.id == min(state.contexts)
    assert state.current_context == context.id


def test_get_current_context_returns_none_for_stale_id() -> None:
    state = State()
    contexts.create_context(state, "one")
    state.current_context = "ctx_gone"

    assert contexts.get_current_context(state) is None
    assert contexts.get_current_context_history(state) == []
    assert state.current_context == "ctx_gone"


def test_add_to_current_context_appends_in_order() -> None:
    state = State()
    contexts.create_context(state, "chat")
    context = contexts.get_current_context(state)
    before = parse_timestamp(context.updated)

    contexts.add_to_current_context(state, "user", "hi")
    after_user = parse_timestamp(context.updated)
    contexts.add_to_current_context(state, "assistant", "hello")
    after_assistant = parse_timestamp(context.updated)

    assert contexts.get_current_context_history(state) == [
        ChatMessage("user", "hi"),
        ChatMessage("assistant", "hello"),
    ]
    assert before <= after_user <= after_assistant
    assert state.history == []


def test_history_copy_does_not_alias_context() -> None:
    state = State()
    contexts.add_to_current_context(state, "user", "hi")

    history = contexts.get_current_context_history(state)
    history.append(ChatMessage("user", "extra"))
    assert len(contexts.get_current_context_history(state)) == 1


def test_add_falls_back_to_legacy_history_for_stale_context() -> None:
    state = State()
    contexts.create_context(state, "chat")
    state.current_context = "ctx_gone"

    contexts.add_to_current_context(state, "user", "hi")
    assert state.history == [ChatMessage("user", "hi")]
    assert all(not c.history for c in state.contexts.values())


def test_clear_current_context() -> None:
    state = State()
    contexts.add_to_current_context(state, "user", "hi")
    contexts.add_to_current_context(state, "assistant", "hello")

    contexts.clear_current_context(state)
    assert contexts.get_current_context_history(state) == []


def test_clear_falls_back_to_legacy_history() -> None:
    state = State(history=[ChatMessage("user", "old")], contexts={}, current_context="ctx_gone")

    contexts.clear_current_context(state)
    assert state.history == []


def test_delete_current_context_clears_selection() -> None:
    state = State()
    keep = contexts.create_context(state, "keep")
    doomed = contexts.create_context(state, "doomed")

    contexts.delete_context(state, doomed)
    assert doomed not in state.contexts
    assert state.current_context == ""

    context = contexts.get_current_context(state)
    assert context is not None
    assert context.id == keep


def test_delete_other_context_keeps_selection() -> None:
    state = State()
    other = contexts.create_context(state, "other")
    current = contexts.create_context(state, "current")

    contexts.delete_context(state, other)
    assert state.current_context == current


def test_delete_only_context_recreates_default() -> None:
    state = State()
    only = contexts.create_context(state, "only")
    contexts.delete_context(state, only)

    context = contexts.get_current_context(state)
    assert context.name == "default"
    assert len(state.contexts) == 1


def test_delete_unknown_context() -> None:
    state = State()
    with pytest.raises(NotFoundError):
        contexts.delete_context(state, "ctx_missing")


def test_list_contexts_sorted_by_updated_descending() -> None:
    state = State()
    ids = [contexts.create_context(state, name) for name in ("t1", "t2", "t3")]
    state.contexts[ids[0]].updated = "2024-01-01T10:00:00+00:00"
    state.contexts[ids[1]].updated = "2024-01-02T10:00:00+00:00"
    state.contexts[ids[2]].updated = "2024-01-03T10:00:00+00:00"

    assert [c.name for c in contexts.list_contexts(state)] == ["t3", "t2", "t1"]


def test_list_contexts_compares_across_offsets() -> None:
    state = State()
    early = contexts.create_context(state, "early")
    late = contexts.create_context(state, "late")
    # 10:00+02:00 is 08:00 UTC, earlier than 09:00 UTC
    state.contexts[early].updated = "2024-01-01T10:00:00+02:00"
    state.contexts[late].updated = "2024-01-01T09:00:00+00:00"

    assert [c.name for c in contexts.list_contexts(state)] == ["late", "early"]


def test_list_contexts_empty() -> None:
    assert contexts.list_contexts(State()) == []


def test_resolve_identifier() -> None:
    state = State()
    context_id = contexts.create_context(state, "project")

    assert contexts.resolve_identifier(state, context_id).name == "project"
    assert contexts.resolve_identifier(state, "project").id == context_id
    with pytest.raises(NotFoundError):
        contexts.resolve_identifier(state, "Project")


def test_resolve_identifier_prefers_id_over_name() -> None:
    state = State()
    first = contexts.create_context(state, "first")
    # A context whose name equals another context's id
    contexts.create_context(state, first)

    assert contexts.resolve_identifier(state, first).name == "first"


def test_switch_and_delete_by_identifier() -> None:
    state = State()
    project = contexts.create_context(state, "project")
    contexts.create_context(state, "other")

    assert contexts.switch_to(state, "project").id == project
    assert state.current_context == project

    deleted = contexts.delete_by_identifier(state, "project")
    assert deleted.id == project
    assert state.current_context == ""
    with pytest.raises(NotFoundError):
        contexts.switch_to(state, "project")
