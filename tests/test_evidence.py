import pytest
from langchain_core.documents import Document

from common.config import EvidenceConfig
from retrieval.evidence import (
    DEFAULT_POLICY,
    EvidencePolicy,
    EvidenceScore,
    evidence_score,
    has_enough_evidence,
    is_sufficient,
    tokenize,
)


def doc(text: str, **meta) -> Document:
    return Document(page_content=text, metadata=meta)


def test_tokenize_examples():
    assert tokenize("Hello, World!") == ["hello", "world"]
    assert tokenize("a bb ccc") == ["ccc"]


def test_tokenize_replaces_non_ascii_and_punctuation():
    assert tokenize("Café-au-lait: naïve") == ["caf", "lait"]


def test_tokenize_keeps_digits_and_order():
    assert tokenize("Water boils at 100 degrees; 100!") == [
        "water",
        "boils",
        "100",
        "degrees",
        "100",
    ]


def test_tokenize_min_length_is_configurable():
    assert tokenize("a bb ccc", min_length=2) == ["bb", "ccc"]


@pytest.mark.parametrize("question", ["", "   ", "?!", "a an of"])
def test_empty_question_scores_zero_and_is_refused(question):
    docs = [doc("anything at all"), doc("more text")]
    assert evidence_score(question, docs) == EvidenceScore(0, 0, 0.0)
    assert has_enough_evidence(question, docs) is False


def test_empty_question_refused_even_with_permissive_policy():
    policy = EvidencePolicy(min_chunks=0, min_matched_tokens=0, min_overlap_ratio=0.0)
    assert has_enough_evidence("?", [doc("x")], policy) is False


def test_boiling_point_scenario():
    question = "What is the boiling point of water"
    docs = [
        doc("water boils at 100 degrees celsius boiling point"),
        doc("steam forms above 100 celsius"),
    ]
    score = evidence_score(question, docs)
    assert score.total_tokens == 5
    assert score.matched_tokens == 3
    assert score.overlap_ratio == pytest.approx(0.6)
    assert has_enough_evidence(question, docs) is True


def test_repeated_question_tokens_count_once():
    score = evidence_score("water water water", [doc("water")])
    assert (score.matched_tokens, score.total_tokens) == (1, 1)


def test_chunk_count_floor_beats_perfect_overlap():
    docs = [doc("boiling point of water")]
    assert evidence_score("boiling water", docs).overlap_ratio == 1.0
    assert has_enough_evidence("boiling water", docs) is False
    assert has_enough_evidence("boiling water", []) is False


def test_threshold_boundary():
    # five unique tokens: alpha bravo charlie delta echo
    question = "alpha bravo charlie delta echo"
    three = [doc("alpha bravo charlie"), doc("filler")]
    two = [doc("alpha bravo"), doc("filler")]

    assert evidence_score(question, three).overlap_ratio == pytest.approx(0.6)
    assert has_enough_evidence(question, three) is True

    assert evidence_score(question, two).overlap_ratio == pytest.approx(0.4)
    assert has_enough_evidence(question, two) is False


def test_only_top_n_chunks_are_scored():
    docs = [doc("one"), doc("two"), doc("three"), doc("needle")]
    assert evidence_score("needle", docs).matched_tokens == 0
    wide = EvidencePolicy(top_n=4)
    assert evidence_score("needle", docs, wide).matched_tokens == 1


def test_chunk_text_is_capped_before_matching():
    long_text = "x" * 1600 + " needle"
    docs = [doc(long_text), doc("filler")]
    assert evidence_score("needle", docs).matched_tokens == 0
    assert evidence_score("needle", docs, EvidencePolicy(max_chars=2000)).matched_tokens == 1


def test_matching_is_substring_and_case_insensitive():
    docs = [doc("BOILING Temperatures"), doc("filler")]
    score = evidence_score("boil temperature", docs)
    assert score.matched_tokens == 2


def test_chunks_are_joined_with_a_separator():
    # "wat" + "er" must not fuse across chunk boundaries
    docs = [doc("wat"), doc("er")]
    assert evidence_score("water", docs).matched_tokens == 0


def test_is_sufficient_checks_each_threshold():
    ok = EvidenceScore(matched_tokens=3, total_tokens=5, overlap_ratio=0.6)
    assert is_sufficient(ok, 2) is True
    assert is_sufficient(ok, 1) is False
    strict = EvidencePolicy(min_matched_tokens=4)
    assert is_sufficient(ok, 2, strict) is False
    assert is_sufficient(EvidenceScore(1, 3, 1 / 3), 2) is False


def test_policy_from_config_matches_defaults():
    assert EvidencePolicy.from_config(EvidenceConfig()) == DEFAULT_POLICY


def test_describe_formats_ratio():
    assert EvidenceScore(3, 5, 0.6).describe() == (
        "matchedTokens=3, totalTokens=5, overlapRatio=0.600"
    )
