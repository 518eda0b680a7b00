from __future__ import annotations

from sandypplx.models.session import Phase
from sandypplx.services.think_parser import ScanState, ThinkScanner, parse_assistant_content


def _feed_all(chunks):
    scanner = ThinkScanner()
    views = []
    for chunk in chunks:
        scanner = scanner.feed(chunk)
        views.append((scanner.phase, scanner.view))
    return scanner, views


class TestParseAssistantContent:
    def test_complete_pair_splits_thinking_and_answer(self):
        parsed = parse_assistant_content("<think>A</think>B")

        assert parsed.thinking_text == "A"
        assert parsed.answer_text == "B"

    def test_unclosed_thinking_has_empty_answer(self):
        parsed = parse_assistant_content("<think>partial")

        assert parsed.thinking_text == "partial"
        assert parsed.answer_text == ""

    def test_text_without_delimiters_is_all_answer(self):
        raw = "  ## Heading\n\nJust an answer.  \n"
        parsed = parse_assistant_content(raw)

        assert parsed.thinking_text is None
        assert parsed.answer_text == raw.strip()

    def test_parse_is_idempotent_on_delimiter_free_text(self):
        once = parse_assistant_content("Plain answer with a < sign and a trailing <").answer_text
        twice = parse_assistant_content(once).answer_text

        assert once == "Plain answer with a < sign and a trailing <"
        assert twice == once

    def test_thinking_is_trimmed(self):
        parsed = parse_assistant_content("<think>\n  weigh sources \n</think>\n\nAnswer")

        assert parsed.thinking_text == "weigh sources"
        assert parsed.answer_text == "Answer"

    def test_only_first_pair_is_authoritative(self):
        parsed = parse_assistant_content("<think>one</think>Answer <think>two</think> end")

        assert parsed.thinking_text == "one"
        assert parsed.answer_text == "Answer <think>two</think> end"

    def test_text_before_opening_tag_joins_the_answer(self):
        parsed = parse_assistant_content("Intro <think>why</think>rest")

        assert parsed.thinking_text == "why"
        assert parsed.answer_text == "Intro rest"

    def test_stray_closing_tag_is_literal(self):
        parsed = parse_assistant_content("no opening</think> here")

        assert parsed.thinking_text is None
        assert parsed.answer_text == "no opening</think> here"


class TestThinkScanner:
    def test_split_tags_across_chunks(self):
        scanner, views = _feed_all(["<th", "ink>Eval", "uating sources</think>## Overview\n..."])

        assert [phase for phase, _ in views] == [Phase.THINKING, Phase.THINKING, Phase.ANSWERING]
        assert views[0][1].thinking_text is None
        assert views[0][1].answer_text == ""
        assert views[1][1].thinking_text == "Eval"
        assert views[2][1].thinking_text == "Evaluating sources"
        assert views[2][1].answer_text == "## Overview\n..."
        assert scanner.state is ScanState.AFTER_THINK

    def test_partial_closing_tag_is_withheld_until_resolved(self):
        scanner, views = _feed_all(["<think>abc</thi", "nk>done"])

        assert views[0][1].thinking_text == "abc"
        assert views[0][0] is Phase.THINKING
        assert views[1][1].thinking_text == "abc"
        assert views[1][1].answer_text == "done"

    def test_false_partial_tag_is_released_as_text(self):
        scanner, views = _feed_all(["<think>a </t", "able> b"])

        assert views[0][1].thinking_text == "a"
        assert views[1][1].thinking_text == "a </table> b"
        assert scanner.state is ScanState.IN_THINK

    def test_answer_without_thinking_switches_to_answering(self):
        scanner, views = _feed_all(["Hello", " world"])

        assert views[0][0] is Phase.ANSWERING
        assert views[1][1].answer_text == "Hello world"
        assert views[1][1].thinking_text is None

    def test_leading_whitespace_stays_in_thinking_phase(self):
        scanner = ThinkScanner().feed("\n  ")

        assert scanner.phase is Phase.THINKING

    def test_finish_flushes_withheld_text(self):
        scanner = ThinkScanner().feed("answer ending with <thi")

        assert scanner.view.answer_text == "answer ending with"
        assert scanner.finish().view.answer_text == "answer ending with <thi"

    def test_incremental_matches_one_shot(self):
        raw = "<think>Check [1] and [2]</think>\n## Overview\nParis is the capital.<think>x"
        scanner = ThinkScanner()
        for i in range(0, len(raw), 3):
            scanner = scanner.feed(raw[i:i + 3])

        assert scanner.finish().view == parse_assistant_content(raw)

    def test_empty_fragment_is_noop(self):
        scanner = ThinkScanner().feed("<think>x")

        assert scanner.feed("") is scanner
