"""
Lexical evidence gate run between retrieval and generation.

This is not a semantic score. It is a cheap, explainable guardrail that
rejects obviously out-of-domain questions before the LLM is called: if the
top retrieved chunks barely mention the question's words, we refuse instead
of generating.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

from langchain_core.documents import Document

from common.config import EvidenceConfig

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


@dataclass(frozen=True)
class EvidencePolicy:
    min_chunks: int = 2  # a single chunk is too easy to match by accident
    min_matched_tokens: int = 1
    min_overlap_ratio: float = 0.45
    top_n: int = 3  # chunks considered for scoring
    max_chars: int = 1600  # per-chunk cap, keeps the score stable for large chunks
    min_token_length: int = 3

    @classmethod
    def from_config(cls, cfg: EvidenceConfig) -> "EvidencePolicy":
        return cls(**cfg.model_dump())


DEFAULT_POLICY = EvidencePolicy()


@dataclass(frozen=True)
class EvidenceScore:
    matched_tokens: int
    total_tokens: int
    overlap_ratio: float

    def describe(self) -> str:
        return (
            f"matchedTokens={self.matched_tokens}, "
            f"totalTokens={self.total_tokens}, "
            f"overlapRatio={self.overlap_ratio:.3f}"
        )


def tokenize(text: str, min_length: int = 3) -> List[str]:
    """
    Lowercase alphanumeric tokens of at least `min_length` characters.
    No stopword list, so behaviour does not depend on the corpus language.
    """
    cleaned = _NON_ALNUM.sub(" ", text.lower())
    tokens = (t.strip() for t in cleaned.split())
    return [t for t in tokens if len(t) >= min_length]


def evidence_score(
    question: str,
    docs: Sequence[Document],
    policy: EvidencePolicy = DEFAULT_POLICY,
) -> EvidenceScore:
    """
    Fraction of distinct question tokens found verbatim in the top chunks.
    """
    # Unique tokens so repeated words do not dominate.
    q_tokens = list(dict.fromkeys(tokenize(question, policy.min_token_length)))
    total = len(q_tokens)
    if total == 0:
        return EvidenceScore(matched_tokens=0, total_tokens=0, overlap_ratio=0.0)

    hay = " ".join(
        d.page_content[: policy.max_chars] for d in docs[: policy.top_n]
    ).lower()

    matched = sum(1 for t in q_tokens if t in hay)
    return EvidenceScore(
        matched_tokens=matched, total_tokens=total, overlap_ratio=matched / total
    )


def is_sufficient(
    score: EvidenceScore, chunk_count: int, policy: EvidencePolicy = DEFAULT_POLICY
) -> bool:
    if chunk_count < policy.min_chunks:
        return False
    # An empty or punctuation-only question is never grounded, whatever the thresholds.
    if score.total_tokens == 0:
        return False
    if score.matched_tokens < policy.min_matched_tokens:
        return False
    if score.overlap_ratio < policy.min_overlap_ratio:
        return False
    return True


def has_enough_evidence(
    question: str,
    docs: Sequence[Document],
    policy: EvidencePolicy = DEFAULT_POLICY,
) -> bool:
    """
    Gate for generation. When this returns False the caller must refuse
    without invoking the LLM.
    """
    return is_sufficient(evidence_score(question, docs, policy), len(docs), policy)
