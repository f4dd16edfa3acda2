from __future__ import annotations

import hashlib
from typing import Iterable, List, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from common.config import yaml_config
from ingestion.document_models import Chunk, RawDoc
from ingestion.metadata import extract_page, get_string, sanitize_metadata


def sha1_text(s: str) -> str:
    return hashlib.sha1(s.encode("utf-8")).hexdigest()


def create_splitter(
    chunk_size: Optional[int] = None, chunk_overlap: Optional[int] = None
) -> RecursiveCharacterTextSplitter:
    """
    Overlapping character splitter used during ingestion.

    Smaller chunks sharpen retrieval; the overlap keeps definitions and
    sentences that straddle a boundary retrievable from either side.
    """
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size or yaml_config.chunking.chunk_size,
        chunk_overlap=(
            yaml_config.chunking.chunk_overlap if chunk_overlap is None else chunk_overlap
        ),
        separators=["\n\n", "\n", " ", ""],
    )


def chunk_documents(
    docs: Iterable[RawDoc],
    chunk_size: Optional[int] = None,
    chunk_overlap: Optional[int] = None,
) -> List[Chunk]:
    """
    Split documents into overlapping chunks.

    Each chunk carries the parent's sanitized metadata, a `page` (None when
    the loader gave none) and its position within the parent.
    """
    splitter = create_splitter(chunk_size, chunk_overlap)
    out: List[Chunk] = []
    for d in docs:
        base = sanitize_metadata(d.metadata)
        base["page"] = extract_page(d.metadata)
        source = get_string(base, "source") or ""
        for i, piece in enumerate(splitter.split_text(d.content)):
            cid = sha1_text(f"{source}::{base['page']}::{i}::{piece[:64]}")
            out.append(
                Chunk(
                    chunk_id=cid,
                    text=piece,
                    metadata={**base, "chunk_index": i},
                    content_sha1=sha1_text(piece),
                )
            )
    return out
