from __future__ import annotations

from typing import Any, List, Mapping, Sequence

from langchain_core.documents import Document

from ingestion.metadata import get_number, get_string


def _page_label(page: float) -> str:
    return str(int(page)) if float(page).is_integer() else str(page)


def format_citation(meta: Mapping[str, Any]) -> str:
    """`[filename p.N]` when a page is known, `[filename]` otherwise."""
    filename = get_string(meta, "filename")
    if filename is None:
        filename = "unknown"
    page = get_number(meta, "page")
    if page is not None:
        return f"[{filename} p.{_page_label(page)}]"
    return f"[{filename}]"


def extract_citations(docs: Sequence[Document], limit: int = 5) -> List[str]:
    """
    Citation labels for the retrieved docs, deduplicated in first-seen order
    and capped at `limit`.
    """
    cites = dict.fromkeys(format_citation(d.metadata or {}) for d in docs)
    return list(cites)[:limit]


def build_context(docs: Sequence[Document]) -> str:
    """
    Render retrieved docs as `Source N [cite]` blocks in retrieval order.
    The caller bounds the doc list; nothing is truncated here.
    """
    return "\n\n".join(
        f"Source {i} {format_citation(d.metadata or {})}\n{d.page_content}"
        for i, d in enumerate(docs, start=1)
    )
