from __future__ import annotations

import argparse
import re
from typing import List

from langchain_core.documents import Document

from chains.grounding import format_citation
from chains.session import AssistantSession
from common.cli import Reader, Writer, parse_top_k
from common.config import yaml_config
from common.errors import FatalError
from common.logger import get_logger

log = get_logger(__name__)


def format_hit(doc: Document, snippet_chars: int | None = None) -> str:
    """`- [cite] snippet...` with whitespace collapsed."""
    snippet_chars = snippet_chars or yaml_config.retrieval.snippet_chars
    snippet = re.sub(r"\s+", " ", doc.page_content[:snippet_chars]).strip()
    return f"- {format_citation(doc.metadata or {})} {snippet}..."


def run_search_loop(
    store,
    read: Reader = input,
    write: Writer = print,
    default_k: int | None = None,
) -> int:
    """
    Inspection-only retrieval: prints what the vector store returns without
    scoring or generating. Empty query exits.
    """
    default_k = default_k or yaml_config.retrieval.search_k
    handled = 0
    while True:
        query = read("Query (empty to exit): ").strip()
        if not query:
            break
        k = parse_top_k(read(f"TopK (default {default_k}): "), default_k)

        try:
            results: List[Document] = store.similarity_search(query, k=k)
        except Exception as e:
            log.error("Similarity search failed: %s", e, exc_info=True)
            write(f"Error: {e}")
            write("")
            continue

        write(f"Results: {len(results)}")
        for r in results:
            write(format_hit(r))
        write("")
        handled += 1
    return handled


def main():
    parser = argparse.ArgumentParser(
        description="Inspect raw similarity search results from Chroma."
    )
    parser.add_argument("--collection", type=str, default=None)
    parser.add_argument("--k", type=int, default=yaml_config.retrieval.search_k)
    args = parser.parse_args()

    try:
        session = AssistantSession.open(collection_name=args.collection, with_llm=False)
    except FatalError as e:
        log.error("Startup failed: %s", e, exc_info=True)
        raise SystemExit(1)

    with session:
        try:
            run_search_loop(session.store, default_k=args.k)
        except (EOFError, KeyboardInterrupt):
            print("")


if __name__ == "__main__":
    main()
