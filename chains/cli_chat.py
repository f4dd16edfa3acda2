from __future__ import annotations

import argparse

from chains.grounded_answerer import GroundedAnswerer, QueryOutcome, QueryState
from chains.session import AssistantSession
from common.cli import Reader, Writer, parse_top_k
from common.config import yaml_config
from common.errors import FatalError
from common.logger import get_logger

log = get_logger(__name__)


def render_outcome(outcome: QueryOutcome, write: Writer = print) -> None:
    if outcome.state is QueryState.ERROR:
        write(f"Error: {outcome.error}")
    elif outcome.state is QueryState.REFUSED:
        write(outcome.answer)
    else:
        write(outcome.answer)
        write("")
        write("[Citations]")
        for c in outcome.citations:
            write(f"- {c}")
    write("")


def run_chat_loop(
    answerer: GroundedAnswerer,
    read: Reader = input,
    write: Writer = print,
    default_k: int | None = None,
) -> int:
    """
    Ask questions until an empty one is entered. Returns the number of
    questions processed.
    """
    default_k = default_k or yaml_config.retrieval.query_k
    handled = 0
    while True:
        question = read("Question (empty to exit): ").strip()
        if not question:
            break
        k = parse_top_k(read(f"TopK (default {default_k}): "), default_k)
        render_outcome(answerer.respond(question, k=k), write)
        handled += 1
    return handled


def main():
    parser = argparse.ArgumentParser(
        description="Ask questions over the indexed documents; refuses without evidence."
    )
    parser.add_argument("--collection", type=str, default=None)
    parser.add_argument("--k", type=int, default=yaml_config.retrieval.query_k)
    args = parser.parse_args()

    try:
        session = AssistantSession.open(collection_name=args.collection)
    except FatalError as e:
        log.error("Startup failed: %s", e, exc_info=True)
        raise SystemExit(1)

    with session:
        try:
            run_chat_loop(session.answerer(), default_k=args.k)
        except (EOFError, KeyboardInterrupt):
            print("")


if __name__ == "__main__":
    main()
