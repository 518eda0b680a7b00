"""Prompt templates for reformulation and answers, loaded from prompts.json."""
from __future__ import annotations

import json
from pathlib import Path
from string import Template
from typing import Any

PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


class PromptCatalog:
    """Dotted-key lookup into a JSON prompt file, reloaded when the file changes."""

    def __init__(self, path: Path):
        self.path = path
        self._entries: dict[str, Any] | None = None
        self._mtime_ns: int | None = None

    def _entries_for_current_file(self) -> dict[str, Any]:
        mtime_ns = self.path.stat().st_mtime_ns
        if self._entries is None or self._mtime_ns != mtime_ns:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError(f"Prompt catalog must be a JSON object: {self.path}")
            self._entries = payload
            self._mtime_ns = mtime_ns
        return self._entries

    def template(self, key: str) -> Template:
        node: Any = self._entries_for_current_file()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(f"Prompt key not found: {key}")
            node = node[part]
        if not isinstance(node, str):
            raise TypeError(f"Prompt key must map to a string: {key}")
        return Template(node)

    def render(self, key: str, **values: Any) -> str:
        template = self.template(key)
        try:
            return template.substitute(**values)
        except KeyError as exc:
            raise KeyError(f"Missing template value {exc.args[0]!r} for prompt '{key}'") from exc

    def reset(self) -> None:
        self._entries = None
        self._mtime_ns = None


catalog = PromptCatalog(PROMPTS_PATH)


def render_prompt(key: str, **values: Any) -> str:
    return catalog.render(key, **values)
