from __future__ import annotations

from typing import Any, Optional

from chains.grounded_answerer import GroundedAnswerer
from common.errors import StartupError
from common.logger import get_logger
from models.llm import load_chat_llm
from vectorstore.chroma_store import ChromaStore

log = get_logger(__name__)


class AssistantSession:
    """
    Holds the long-lived clients for one CLI run: the vector store and,
    for chat, the generation client. Built once before the first question,
    reused for every question, released by close().
    """

    def __init__(self, store: Any, llm: Optional[Any] = None):
        self.store = store
        self.llm = llm

    @classmethod
    def open(
        cls, collection_name: Optional[str] = None, with_llm: bool = True
    ) -> "AssistantSession":
        try:
            store = ChromaStore(collection_name=collection_name)
        except Exception as e:
            raise StartupError(f"Could not open vector store: {e}") from e

        llm = None
        if with_llm:
            try:
                llm = load_chat_llm("llm_qa")
            except Exception as e:
                raise StartupError(f"Could not build generation client: {e}") from e

        log.info("Session ready (collection '%s')", store.collection_name)
        return cls(store=store, llm=llm)

    def answerer(self, **overrides) -> GroundedAnswerer:
        if self.llm is None:
            raise StartupError("Session was opened without a generation client.")
        return GroundedAnswerer(store=self.store, llm=self.llm, **overrides)

    def close(self) -> None:
        self.store = None
        self.llm = None
        log.info("Session closed")

    def __enter__(self) -> "AssistantSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
