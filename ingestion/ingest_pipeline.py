from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import orjson
from tenacity import retry, stop_after_attempt, wait_exponential
from tqdm import tqdm

from common.config import env_settings, yaml_config
from common.logger import get_logger
from ingestion.chunkers import chunk_documents
from ingestion.document_models import Chunk
from ingestion.loaders import discover_files, load_documents
from vectorstore.chroma_store import ChromaStore

log = get_logger(__name__)


@dataclass(frozen=True)
class IngestReport:
    documents: int
    chunks: int
    collection: str


def _dedup_chunks(chunks: Iterable[Chunk]) -> List[Chunk]:
    """
    Drop repeated chunk ids (same source, page, position and prefix).
    """
    seen = set()
    uniq: List[Chunk] = []
    for c in chunks:
        if c.chunk_id not in seen:
            uniq.append(c)
            seen.add(c.chunk_id)
    return uniq


@retry(
    wait=wait_exponential(multiplier=1, min=1, max=8),
    stop=stop_after_attempt(3),
    reraise=True,
)
def _upsert_with_retry(store: ChromaStore, chunks: List[Chunk]) -> int:
    """
    Retry wrapper around Chroma upserts with exponential backoff.
    """
    return store.upsert_chunks(chunks)


def write_manifest(chunks: List[Chunk], collection_name: str) -> Path:
    manifest = [
        {
            "chunk_id": c.chunk_id,
            "filename": c.metadata.get("filename"),
            "source": c.metadata.get("source"),
            "type": c.metadata.get("type"),
            "page": c.metadata.get("page"),
            "chunk_index": c.metadata.get("chunk_index"),
            "sha1": c.content_sha1,
            "len": len(c.text),
        }
        for c in chunks
    ]
    out = yaml_config.app.cache_dir / f"manifest_{collection_name}.json"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(orjson.dumps(manifest, option=orjson.OPT_INDENT_2))
    log.info("Wrote manifest to %s", out)
    return out


def ingest_folder(
    input_dir: Path | None = None,
    collection_name: str | None = None,
    reset: Optional[bool] = None,
    store: Optional[ChromaStore] = None,
) -> Optional[IngestReport]:
    """
    Ingest documents from a local folder into Chroma.
    - Optionally resets the collection first
    - Loads PDF/TXT/MD and sanitizes metadata
    - Chunks and deduplicates
    - Upserts into the vector store
    - Writes manifest JSON
    Returns None when the folder holds no documents.
    """
    input_dir = input_dir or env_settings.data_dir or yaml_config.app.data_dir
    store = store or ChromaStore(collection_name=collection_name)
    reset = env_settings.reset_collection if reset is None else reset

    if reset:
        store.reset_collection()

    # 1) Load local files
    files = discover_files(input_dir)
    log.info("Discovered %d files in %s", len(files), input_dir)
    docs = load_documents(tqdm(files, desc="Loading files"))

    if not docs:
        log.warning("No documents found in: %s", input_dir)
        return None

    # 2) Chunk + dedup
    chunks = _dedup_chunks(chunk_documents(docs))

    # 3) Upsert
    total = _upsert_with_retry(store, chunks)
    log.info(
        "Ingest complete: %d chunks upserted into '%s'", total, store.collection_name
    )

    # 4) Manifest (for audit/debug)
    write_manifest(chunks, store.collection_name)

    return IngestReport(
        documents=len(docs), chunks=len(chunks), collection=store.collection_name
    )
