from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    TURN_SUBMITTED = "turn_submitted"
    QUERY_REFORMULATED = "query_reformulated"
    SEARCH_STARTED = "search_started"
    SEARCH_RESULT_ARRIVED = "search_result_arrived"
    SEARCH_COMPLETED = "search_completed"
    SEARCH_FAILED = "search_failed"
    CHAT_CHUNK_ARRIVED = "chat_chunk_arrived"
    CHAT_COMPLETED = "chat_completed"
    CHAT_FAILED = "chat_failed"


def _jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


@dataclass
class SessionEvent:
    """A state transition for one turn of the session.

    Every event carries the id of the turn it belongs to so that events from a
    superseded turn can be recognized and dropped.
    """

    event: EventType
    turn_id: int
    data: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {"turn_id": self.turn_id, **_jsonable(self.data)}

    def format(self) -> str:
        return f"event: {self.event.value}\ndata: {json.dumps(self.to_payload())}\n\n"
