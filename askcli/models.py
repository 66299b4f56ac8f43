from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .errors import ParseError

DEFAULT_MODEL = "gpt-3.5-turbo"


def now_timestamp() -> str:
    """Current local time as ISO-8601 text with UTC offset"""
    return datetime.now().astimezone().isoformat()


def parse_timestamp(value: str) -> datetime:
    # Unparseable timestamps sort as oldest
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Any) -> "ChatMessage":
        if not isinstance(data, dict):
            raise ParseError(f"message must be an object, got {type(data).__name__}")
        role = data.get("role")
        content = data.get("content")
        if not isinstance(role, str) or not isinstance(content, str):
            raise ParseError("message requires string 'role' and 'content'")
        return cls(role, content)


def _parse_messages(data: Any, where: str) -> List[ChatMessage]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ParseError(f"{where} must be a list")
    return [ChatMessage.from_dict(item) for item in data]


@dataclass
class Context:
    id: str
    name: str
    history: List[ChatMessage] = field(default_factory=list)
    created: str = ""
    updated: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "history": [m.to_dict() for m in self.history],
            "created": self.created,
            "updated": self.updated,
        }

    @classmethod
    def from_dict(cls, data: Any, key: str) -> "Context":
        if not isinstance(data, dict):
            raise ParseError(f"context '{key}' must be an object")
        name = data.get("name", "")
        if not isinstance(name, str):
            raise ParseError(f"context '{key}' has a non-string name")
        return cls(
            id=key,
            name=name,
            history=_parse_messages(data.get("history"), f"history of context '{key}'"),
            created=data.get("created") or "",
            updated=data.get("updated") or "",
        )


@dataclass
class State:
    """The whole persisted document.

    ``history`` is the flat history written before contexts existed. It is kept
    apart from ``contexts`` so legacy documents keep working. ``contexts`` is
    ``None`` when the document has no mapping at all.
    """

    api_key: str = ""
    model: str = DEFAULT_MODEL
    history: List[ChatMessage] = field(default_factory=list)
    contexts: Optional[Dict[str, Context]] = None
    current_context: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"api_key": self.api_key, "model": self.model}
        if self.history:
            data["history"] = [m.to_dict() for m in self.history]
        if self.contexts:
            data["contexts"] = {cid: ctx.to_dict() for cid, ctx in self.contexts.items()}
        if self.current_context:
            data["current_context"] = self.current_context
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "State":
        if not isinstance(data, dict):
            raise ParseError("state document must be a JSON object")

        api_key = data.get("api_key", "")
        model = data.get("model", DEFAULT_MODEL)
        current = data.get("current_context", "")
        for key, value in (("api_key", api_key), ("model", model), ("current_context", current)):
            if not isinstance(value, str):
                raise ParseError(f"'{key}' must be a string")

        raw_contexts = data.get("contexts")
        contexts = None
        if raw_contexts is not None:
            if not isinstance(raw_contexts, dict):
                raise ParseError("'contexts' must be an object")
            contexts = {cid: Context.from_dict(raw, cid) for cid, raw in raw_contexts.items()}

        return cls(
            api_key=api_key,
            model=model,
            history=_parse_messages(data.get("history"), "history"),
            contexts=contexts,
            current_context=current,
        )
