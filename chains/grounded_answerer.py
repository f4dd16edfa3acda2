from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence

from langchain_core.documents import Document

from chains.grounding import build_context, extract_citations
from chains.prompts import GROUNDED_QA_PROMPT, REFUSAL_MESSAGE
from common.config import yaml_config
from common.errors import GenerationError, RecoverableError, RetrievalError
from common.logger import get_logger
from retrieval.evidence import EvidencePolicy, EvidenceScore, evidence_score, is_sufficient

log = get_logger(__name__)


class SupportsSimilaritySearch(Protocol):
    def similarity_search(self, query: str, k: int = ...) -> List[Document]: ...


class SupportsInvoke(Protocol):
    def invoke(self, input: Any) -> Any: ...


class QueryState(str, Enum):
    RECEIVED = "received"
    RETRIEVED = "retrieved"
    REFUSED = "refused"
    GROUNDED = "grounded"
    GENERATING = "generating"
    ANSWERED = "answered"
    ERROR = "error"


TERMINAL_STATES = frozenset({QueryState.REFUSED, QueryState.ANSWERED, QueryState.ERROR})


@dataclass(frozen=True)
class QueryOutcome:
    """Result of one question: refused, answered, or failed on an external call."""

    state: QueryState
    answer: str = ""
    citations: List[str] = field(default_factory=list)
    score: Optional[EvidenceScore] = None
    retrieved: int = 0
    error: Optional[RecoverableError] = None

    @classmethod
    def failed(cls, error: RecoverableError) -> "QueryOutcome":
        return cls(state=QueryState.ERROR, error=error)


class GroundedAnswerer:
    """
    Question answering that only generates when retrieval found evidence:
      1) Retrieve top-k chunks from the vector store
      2) Score lexical overlap between the question and the top chunks
      3) Refuse with a fixed message when evidence is weak (no LLM call)
      4) Otherwise build a sourced context and ask the LLM
      5) Citations come from retrieval metadata, never from the model

    Defaults come from config/config.yaml; constructor args override.
    """

    def __init__(
        self,
        store: SupportsSimilaritySearch,
        llm: SupportsInvoke,
        policy: Optional[EvidencePolicy] = None,
        citation_limit: Optional[int] = None,
        default_k: Optional[int] = None,
    ):
        self.store = store
        self.llm = llm
        self.policy = policy or EvidencePolicy.from_config(yaml_config.evidence)
        self.citation_limit = citation_limit or yaml_config.citations.max_display
        self.default_k = default_k or yaml_config.retrieval.query_k

    def _enter(self, state: QueryState) -> QueryState:
        log.debug("Query state -> %s", state.value)
        return state

    def _retrieve(self, question: str, k: int) -> List[Document]:
        try:
            return list(self.store.similarity_search(question, k=k))
        except Exception as e:
            log.error("Similarity search failed: %s", e, exc_info=True)
            raise RetrievalError(f"Vector store search failed: {e}") from e

    def _generate(self, question: str, docs: Sequence[Document]) -> str:
        messages = GROUNDED_QA_PROMPT.format_messages(
            question=question, context=build_context(docs)
        )
        try:
            resp = self.llm.invoke(messages)
        except Exception as e:
            log.error("QA LLM invocation failed: %s", e, exc_info=True)
            raise GenerationError(f"Generation service call failed: {e}") from e
        content = getattr(resp, "content", resp)
        return str(content).strip()

    def ask(self, question: str, k: Optional[int] = None) -> QueryOutcome:
        """
        Answer one question. Returns a REFUSED or ANSWERED outcome; raises
        RetrievalError / GenerationError when an external call fails.
        """
        self._enter(QueryState.RECEIVED)
        question = question.strip()
        k = k or self.default_k

        log.info("Retrieving sources (k=%d)...", k)
        docs = self._retrieve(question, k)
        self._enter(QueryState.RETRIEVED)
        log.info("Retrieved chunks: %d", len(docs))

        score = evidence_score(question, docs, self.policy)
        log.info("Evidence score: %s", score.describe())

        if not is_sufficient(score, len(docs), self.policy):
            state = self._enter(QueryState.REFUSED)
            return QueryOutcome(
                state=state, answer=REFUSAL_MESSAGE, score=score, retrieved=len(docs)
            )

        self._enter(QueryState.GROUNDED)
        citations = extract_citations(docs, limit=self.citation_limit)

        self._enter(QueryState.GENERATING)
        log.info("Generating answer...")
        answer = self._generate(question, docs)

        state = self._enter(QueryState.ANSWERED)
        return QueryOutcome(
            state=state,
            answer=answer,
            citations=citations,
            score=score,
            retrieved=len(docs),
        )

    def respond(self, question: str, k: Optional[int] = None) -> QueryOutcome:
        """ask(), with recoverable failures folded into an ERROR outcome."""
        try:
            return self.ask(question, k=k)
        except RecoverableError as e:
            self._enter(QueryState.ERROR)
            return QueryOutcome.failed(e)
