from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

import chromadb
from langchain_chroma import Chroma
from langchain_core.documents import Document
from langchain_huggingface import HuggingFaceEmbeddings

from common.config import env_settings, yaml_config
from common.logger import get_logger
from ingestion.document_models import Chunk

log = get_logger(__name__)


@dataclass(frozen=True)
class ChromaConn:
    host: str
    port: int
    ssl: bool


def parse_chroma_url(url: str) -> ChromaConn:
    """
    Split a CHROMA_URL such as http://localhost:8000 into host/port/ssl.
    A missing port falls back to 80 (http) or 443 (https); path and query are ignored.
    """
    u = urlparse(url)
    ssl = u.scheme == "https"
    port = u.port or (443 if ssl else 80)
    return ChromaConn(host=u.hostname or "localhost", port=port, ssl=ssl)


class ChromaStore:
    def __init__(
        self,
        persist_dir: Path | str | None = None,
        collection_name: str | None = None,
        chroma_url: str | None = None,
    ):
        """
        Wrapper for Chroma vector store with HuggingFace embeddings.
        Connects to a Chroma server when a URL is configured, otherwise
        persists locally. Defaults come from config/config.yaml and .env.
        """
        self.persist_dir = str(persist_dir or yaml_config.app.persist_dir)
        self.collection_name = (
            collection_name
            or env_settings.chroma_collection
            or yaml_config.app.collection
        )
        self.chroma_url = chroma_url or env_settings.chroma_url
        self.embeddings = HuggingFaceEmbeddings(
            model_name=yaml_config.vectorstore.embedding_model
        )
        self._client = self._make_client()
        self._db = self._open_collection()

    def _make_client(self) -> Optional[Any]:
        if not self.chroma_url:
            return None
        conn = parse_chroma_url(self.chroma_url)
        log.info("Connecting to Chroma at %s:%d (ssl=%s)", conn.host, conn.port, conn.ssl)
        return chromadb.HttpClient(host=conn.host, port=conn.port, ssl=conn.ssl)

    def _open_collection(self) -> Chroma:
        if self._client is not None:
            return Chroma(
                collection_name=self.collection_name,
                embedding_function=self.embeddings,
                client=self._client,
            )
        return Chroma(
            collection_name=self.collection_name,
            embedding_function=self.embeddings,
            persist_directory=self.persist_dir,
        )

    @property
    def db(self) -> Chroma:
        return self._db

    def reset_collection(self) -> None:
        """
        Drop and recreate the collection so re-ingesting a corpus does not
        duplicate vectors. A collection that is already gone is not an error.
        """
        try:
            self._db.delete_collection()
            log.info("Deleted collection: %s", self.collection_name)
        except Exception as e:
            log.warning("Could not delete collection '%s': %s", self.collection_name, e)
        self._db = self._open_collection()

    def upsert_chunks(self, chunks: Iterable[Chunk]) -> int:
        """
        Add a list of Chunk objects into Chroma.
        Deduplication should be done before calling this.
        """
        texts: List[str] = []
        metadatas: List[Dict[str, Any]] = []
        ids: List[str] = []

        for c in chunks:
            ids.append(c.chunk_id)
            texts.append(c.text)
            # Chroma rejects None values; a missing page reads back as None.
            meta = {k: v for k, v in c.metadata.items() if v is not None}
            metadatas.append(meta | {"content_sha1": c.content_sha1})

        if not ids:
            return 0

        self._db.add_texts(texts=texts, metadatas=metadatas, ids=ids)
        log.info(
            "Upserted %d chunks into collection '%s'", len(ids), self.collection_name
        )
        return len(ids)

    def similarity_search(self, query: str, k: int = 4) -> List[Document]:
        """Top-k chunks for the query, best match first."""
        return self._db.similarity_search(query, k=k)
