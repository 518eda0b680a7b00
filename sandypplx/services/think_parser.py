"""Incremental parser for the `<think>...</think>` answer protocol.

The answer stream optionally opens with a thinking segment wrapped in
`<think>` / `</think>`, followed by the Markdown answer. `ThinkScanner` is fed
one fragment at a time and only scans the new fragment (plus a withheld tail
that may still turn into a tag), so long streams are not re-scanned on every
chunk. Only the first tag pair counts; later tags are kept as literal text.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from sandypplx.models.session import ParsedAssistantContent, Phase

OPEN_TAG = "<think>"
CLOSE_TAG = "</think>"


class ScanState(str, Enum):
    BEFORE_THINK = "before_think"
    IN_THINK = "in_think"
    AFTER_THINK = "after_think"


def _partial_tag_length(text: str, tag: str) -> int:
    """Length of the longest suffix of `text` that is a proper prefix of `tag`."""
    for size in range(min(len(tag) - 1, len(text)), 0, -1):
        if text.endswith(tag[:size]):
            return size
    return 0


@dataclass(frozen=True)
class ThinkScanner:
    state: ScanState = ScanState.BEFORE_THINK
    lead: str = ""
    thinking: str = ""
    tail: str = ""
    pending: str = ""

    def feed(self, fragment: str) -> "ThinkScanner":
        if not fragment:
            return self

        state = self.state
        lead, thinking, tail = self.lead, self.thinking, self.tail
        text = self.pending + fragment
        pending = ""

        while text:
            if state is ScanState.BEFORE_THINK:
                idx = text.find(OPEN_TAG)
                if idx >= 0:
                    lead += text[:idx]
                    text = text[idx + len(OPEN_TAG):]
                    state = ScanState.IN_THINK
                    continue
                keep = _partial_tag_length(text, OPEN_TAG)
                lead += text[: len(text) - keep]
                pending = text[len(text) - keep:]
                break

            if state is ScanState.IN_THINK:
                idx = text.find(CLOSE_TAG)
                if idx >= 0:
                    thinking += text[:idx]
                    text = text[idx + len(CLOSE_TAG):]
                    state = ScanState.AFTER_THINK
                    continue
                keep = _partial_tag_length(text, CLOSE_TAG)
                thinking += text[: len(text) - keep]
                pending = text[len(text) - keep:]
                break

            tail += text
            break

        return ThinkScanner(
            state=state,
            lead=lead,
            thinking=thinking,
            tail=tail,
            pending=pending,
        )

    def finish(self) -> "ThinkScanner":
        """Flush a withheld partial tag as literal text (stream has ended)."""
        if not self.pending:
            return self
        if self.state is ScanState.BEFORE_THINK:
            return replace(self, lead=self.lead + self.pending, pending="")
        if self.state is ScanState.IN_THINK:
            return replace(self, thinking=self.thinking + self.pending, pending="")
        return replace(self, tail=self.tail + self.pending, pending="")

    @property
    def view(self) -> ParsedAssistantContent:
        if self.state is ScanState.BEFORE_THINK:
            return ParsedAssistantContent(thinking_text=None, answer_text=self.lead.strip())
        if self.state is ScanState.IN_THINK:
            return ParsedAssistantContent(thinking_text=self.thinking.strip(), answer_text="")
        return ParsedAssistantContent(
            thinking_text=self.thinking.strip(),
            answer_text=(self.lead + self.tail).strip(),
        )

    @property
    def phase(self) -> Phase:
        if self.state is ScanState.IN_THINK:
            return Phase.THINKING
        if self.state is ScanState.AFTER_THINK:
            return Phase.ANSWERING
        # Nothing but whitespace (or a partial opening tag) yet: still tentatively thinking.
        return Phase.ANSWERING if self.lead.strip() else Phase.THINKING


def parse_assistant_content(raw_text: str) -> ParsedAssistantContent:
    """One-shot parse of a complete assistant message."""
    return ThinkScanner().feed(raw_text).finish().view
