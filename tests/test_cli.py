from __future__ import annotations

from datetime import date
from unittest.mock import patch

import pytest

from sandypplx import cli
from sandypplx.exceptions import SearchFailure
from sandypplx.services.answer_stream import AnswerStreamer
from sandypplx.services.chat_session import ChatSession
from sandypplx.services.query_reformulator import QueryReformulator
from sandypplx.tools.search_client import SearchClient
from sandypplx.tools.tavily_search import SearchResult


def _session(fetcher, answer_llm):
    return ChatSession(
        search_client=SearchClient(fetcher, delay_seconds=0),
        reformulator=QueryReformulator(llm=None, model="reformulation-model"),
        answer_streamer=AnswerStreamer(llm=answer_llm, model="answer-model"),
    )


def test_delta_only_returns_unprinted_suffix():
    assert cli._delta("Eval", "Evaluating") == "uating"
    assert cli._delta("", "abc") == "abc"
    assert cli._delta("abc", "xyz") == ""


@pytest.mark.asyncio
async def test_run_turn_prints_sources_thinking_and_answer(capsys, fake_llm, recording_fetcher, make_result):
    session = _session(
        recording_fetcher([make_result("Paris", 0.9)]),
        fake_llm(["<think>Check", "ing</think>", "Paris is the capital."]),
    )

    await cli.run_turn(session, "capital of France")

    out = capsys.readouterr().out
    assert "[1] Paris" in out
    assert "https://example.com/paris" in out
    assert "[*] Thinking" in out
    assert "Checking" in out
    assert "Paris is the capital." in out


@pytest.mark.asyncio
async def test_run_turn_reports_search_and_chat_failures(capsys, fake_llm, recording_fetcher):
    session = _session(
        recording_fetcher(SearchFailure("Failed to perform search", details="rate limited")),
        fake_llm([RuntimeError("boom")]),
    )

    await cli.run_turn(session, "q")

    out = capsys.readouterr().out
    assert "Error performing search: rate limited" in out
    assert "Sorry, there was an error processing your request." in out


def test_main_serve_runs_uvicorn():
    with patch("sandypplx.cli.configure_logging"), patch("uvicorn.run") as run:
        assert cli.main(["serve", "--port", "9000"]) == 0

    run.assert_called_once_with("sandypplx.main:app", host="127.0.0.1", port=9000, reload=False)


def test_main_ask_joins_question_words():
    with (
        patch("sandypplx.cli.configure_logging"),
        patch("sandypplx.cli.ChatSession"),
        patch("sandypplx.cli.run_turn") as run_turn,
        patch("sandypplx.cli.asyncio.run") as asyncio_run,
    ):
        assert cli.main(["ask", "capital", "of", "France"]) == 0

    assert run_turn.call_args.args[1] == "capital of France"
    asyncio_run.assert_called_once()


@pytest.mark.asyncio
async def test_run_turn_shows_published_date_when_known(capsys, fake_llm, recording_fetcher, make_result):
    dated = SearchResult(
        title="Launch recap",
        url="https://news.example.com/recap",
        content="c",
        score=0.8,
        published_date=date(2024, 5, 14),
    )
    session = _session(recording_fetcher([dated, make_result("Undated", 0.2)]), fake_llm(["answer"]))

    await cli.run_turn(session, "q")

    out = capsys.readouterr().out
    assert "https://news.example.com/recap (2024-05-14)" in out
    assert "https://example.com/undated\n" in out
