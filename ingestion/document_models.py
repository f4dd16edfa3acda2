from dataclasses import dataclass, field
from typing import Any, Mapping

from ingestion.metadata import MetadataValue


@dataclass(frozen=True)
class RawDoc:
    content: str  # full extracted text (one PDF page, or a whole text file)
    metadata: Mapping[str, Any] = field(default_factory=dict)  # loader-specific, untrusted


@dataclass(frozen=True)
class Chunk:
    chunk_id: str
    text: str
    metadata: Mapping[str, MetadataValue]  # { "filename", "source", "page", "type", "chunk_index" }
    content_sha1: str  # chunk-level hash
