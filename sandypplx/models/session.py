from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sandypplx.tools.tavily_search import SearchResult


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Phase(str, Enum):
    THINKING = "thinking"
    ANSWERING = "answering"


@dataclass(frozen=True)
class ConversationTurn:
    """One message of the conversation, frozen once the next turn begins.

    Assistant turns keep the sources they were grounded on.
    """

    role: Role
    raw_text: str
    turn_id: int = 0
    sources: tuple[SearchResult, ...] = field(default_factory=tuple)

    def to_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.raw_text}

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "raw_text": self.raw_text,
            "turn_id": self.turn_id,
            "sources": [s.to_dict() for s in self.sources],
        }


@dataclass(frozen=True)
class ParsedAssistantContent:
    thinking_text: str | None
    answer_text: str

    def to_dict(self) -> dict[str, Any]:
        return {"thinking": self.thinking_text, "answer": self.answer_text}
