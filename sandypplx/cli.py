"""SandyPPLX - chat over web search

Simple CLI for asking questions from the terminal or serving the API.
"""

import argparse
import asyncio
import sys

from sandypplx.services.chat_session import ChatSession
from sandypplx.services.logger import configure_logging
from sandypplx.services.session_state import APOLOGY_MESSAGE


def _delta(printed: str, current: str) -> str:
    """Part of `current` not yet printed; empty if the text was rewritten."""
    if current.startswith(printed):
        return current[len(printed):]
    return ""


async def run_turn(session: ChatSession, question: str) -> None:
    """Run one question and print the stream as it arrives."""
    printed_thinking = ""
    printed_answer = ""
    source_count = 0

    async for event in session.submit(question):
        event_type = event.event.value
        data = event.data
        state = session.state

        if event_type == "query_reformulated":
            print(f"[~] Search query: {data.get('query', '')}")

        elif event_type == "search_started":
            print("[~] Searching the web...")

        elif event_type == "search_result_arrived":
            source_count += 1
            result = data["result"]
            print(f"  [{source_count}] {result.title or result.url}")
            if result.published_date:
                print(f"      {result.url} ({result.published_date.isoformat()})")
            else:
                print(f"      {result.url}")

        elif event_type == "search_failed":
            print(f"[!] Error performing search: {data.get('message', 'Unknown error')}")

        elif event_type == "search_completed":
            print(f"[+] {data.get('results_count', 0)} sources")

        elif event_type == "chat_chunk_arrived":
            thinking = _delta(printed_thinking, state.thinking_text)
            if thinking:
                if not printed_thinking:
                    print("\n[*] Thinking")
                print(thinking, end="", flush=True)
                printed_thinking += thinking

            answer = _delta(printed_answer, state.answer_text)
            if answer:
                if not printed_answer:
                    print(f"\n\n{'=' * 50}")
                print(answer, end="", flush=True)
                printed_answer += answer

        elif event_type == "chat_completed":
            print("\n")

        elif event_type == "chat_failed":
            print(f"\n[!] {APOLOGY_MESSAGE}\n")


async def run_chat(session: ChatSession) -> None:
    print("Ask a question (empty line, 'exit' or Ctrl-D to quit).")
    while True:
        try:
            question = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        if question.strip().lower() in ("", "exit", "quit"):
            break
        await run_turn(session, question)


def serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run("sandypplx.main:app", host=host, port=port, reload=reload)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="SandyPPLX chat over web search")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask_parser = subparsers.add_parser("ask", help="Ask a single question")
    ask_parser.add_argument("question", nargs="+", help="Question text")

    subparsers.add_parser("chat", help="Interactive conversation with follow-ups")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
        return 0

    session = ChatSession()
    try:
        if args.command == "ask":
            asyncio.run(run_turn(session, " ".join(args.question)))
        else:
            asyncio.run(run_chat(session))
    except KeyboardInterrupt:
        print()
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
