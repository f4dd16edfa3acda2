from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from pypdf import PdfReader

from common.config import yaml_config
from common.logger import get_logger
from ingestion.document_models import RawDoc
from ingestion.metadata import extract_page, get_string, sanitize_metadata

log = get_logger(__name__)

ALLOWED_EXTS = (".pdf", ".txt", ".md")


def discover_files(root: Path) -> List[Path]:
    """
    Recursively find all supported files in the input directory.
    """
    paths: List[Path] = []
    for p in root.rglob("*"):
        if p.is_file() and p.suffix.lower() in ALLOWED_EXTS:
            paths.append(p)
    return sorted(paths)


def load_from_path(path: Path) -> Iterable[RawDoc]:
    """Load local files (.pdf, .txt, .md) with raw loader metadata."""
    ext = path.suffix.lower()
    if ext == ".pdf":
        yield from _load_pdf(path)
    elif ext in (".txt", ".md"):
        yield _load_text_file(path)
    else:
        log.warning("Skipping unsupported file: %s", path)


def _load_text_file(path: Path) -> RawDoc:
    txt = path.read_text(encoding="utf-8", errors="ignore")
    return RawDoc(content=txt, metadata={"source": str(path), "type": "text"})


def _load_pdf(path: Path) -> Iterable[RawDoc]:
    reader = PdfReader(str(path))
    pages = reader.pages
    # Limit by config if set, else all pages
    max_pages = yaml_config.app.max_pdf_pages or len(pages)
    info = dict(reader.metadata or {})

    for i, page in enumerate(pages[:max_pages]):
        text = page.extract_text() or ""
        if not text.strip():
            continue
        yield RawDoc(
            content=text,
            metadata={
                "source": str(path),
                "type": "pdf",
                "loc": {"pageNumber": i + 1},
                "pdf": {"totalPages": len(pages), "info": info},
            },
        )


def normalize_metadata(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Reduce loader metadata to the stored schema: filename, source, page, type.

    Loader metadata often carries nested objects (e.g. `loc`) that the vector
    store rejects, so only the fields we rely on are kept, then sanitized.
    """
    source = get_string(raw, "source") or ""
    normalized: Dict[str, Any] = {
        "filename": Path(source).name if source else "unknown",
        "source": source,
        "page": extract_page(raw),  # None for non-paged formats
        "type": get_string(raw, "type"),
    }
    return sanitize_metadata(normalized)


def load_documents(paths: Iterable[Path]) -> List[RawDoc]:
    """Load every path and return documents whose metadata is store-safe."""
    docs: List[RawDoc] = []
    for path in paths:
        for raw in load_from_path(path):
            docs.append(
                RawDoc(content=raw.content, metadata=normalize_metadata(raw.metadata))
            )
    return docs
