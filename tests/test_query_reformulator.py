from __future__ import annotations

import pytest

from sandypplx.models.session import ConversationTurn, Role
from sandypplx.services.query_reformulator import (
    QueryReformulator,
    build_reformulation_messages,
    normalize_reformulated_query,
)

PRIOR = (
    ConversationTurn(role=Role.USER, raw_text="Tell me about Starship", turn_id=1),
    ConversationTurn(role=Role.ASSISTANT, raw_text="<think>x</think>Starship is...", turn_id=1),
)


class TestNormalize:
    def test_markup_quotes_and_newlines(self):
        # Quotes are only trimmed at the outer boundary, so the inner opening quote stays.
        assert normalize_reformulated_query('  <b>foo bar</b>\n"baz"  ') == 'foo bar "baz'

    def test_wrapping_quotes_are_removed(self):
        assert normalize_reformulated_query('"SpaceX Starship next test date"\n') == (
            "SpaceX Starship next test date"
        )

    def test_newlines_become_spaces(self):
        assert normalize_reformulated_query("line one\nline two\r\nline three") == (
            "line one line two line three"
        )

    def test_markup_only_output_normalizes_to_empty(self):
        assert normalize_reformulated_query("<think></think>\n  \"\"  ") == ""


def test_build_messages_keeps_role_order_and_embeds_question():
    messages = build_reformulation_messages(PRIOR, "When is the next test?")

    assert [m["role"] for m in messages] == ["user", "assistant", "user"]
    assert messages[0]["content"] == "Tell me about Starship"
    assert messages[-1]["content"].endswith("When is the next test?")


@pytest.mark.asyncio
async def test_reformulate_streams_and_normalizes(fake_llm):
    llm = fake_llm(['"SpaceX Starship ', "next test ", 'launch date"'])
    reformulator = QueryReformulator(llm=llm, model="test-model")

    query = await reformulator.reformulate(PRIOR, "When is the next test?")

    assert query == "SpaceX Starship next test launch date"
    call = llm.calls[0]
    assert call["model"] == "test-model"
    assert call["temperature"] == pytest.approx(0.3)
    assert "reformulat" in call["system"].lower()
    assert llm.streams[0].closed


@pytest.mark.asyncio
async def test_empty_reformulation_falls_back_to_question(fake_llm):
    llm = fake_llm(["<b></b>", "\n", '""'])
    reformulator = QueryReformulator(llm=llm, model="test-model")

    assert await reformulator.reformulate(PRIOR, "When is the next test?") == "When is the next test?"


@pytest.mark.asyncio
async def test_generation_error_falls_back_to_question(fake_llm):
    llm = fake_llm(["partial", RuntimeError("upstream 503")])
    reformulator = QueryReformulator(llm=llm, model="test-model")

    assert await reformulator.reformulate(PRIOR, "When is the next test?") == "When is the next test?"


@pytest.mark.asyncio
async def test_first_turn_is_not_reformulated(fake_llm):
    llm = fake_llm()
    reformulator = QueryReformulator(llm=llm, model="test-model")

    assert await reformulator.reformulate((), "capital of France") == "capital of France"
    assert llm.calls == []
