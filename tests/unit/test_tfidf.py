"""
Unit tests for TF-IDF vector math.
"""

import math

import pytest
from vault_recall.embeddings.tfidf import (
    compute_idf,
    compute_tf,
    compute_tfidf,
    cosine_similarity,
    vector_norm,
)
from vault_recall.embeddings.tokenizer import tokenize


class TestTermFrequency:
    """Test normalized term frequencies"""
    
    def test_counts_normalized_by_length(self):
        """TF = count / total tokens"""
        tf = compute_tf(["apple", "banana", "apple"])
        assert tf["apple"] == pytest.approx(2 / 3)
        assert tf["banana"] == pytest.approx(1 / 3)
    
    def test_empty_tokens(self):
        """Empty input gives an empty vector, not an error"""
        assert compute_tf([]) == {}
    
    @pytest.mark.parametrize("text", [
        "Spaced repetition improves long-term memory retention",
        "apple banana apple cherry cherry cherry",
        "Garden design: compost, mulch and raised beds",
    ])
    def test_frequencies_sum_to_one(self, text):
        """Normalized frequencies of a non-empty document sum to 1"""
        tf = compute_tf(tokenize(text))
        assert sum(tf.values()) == pytest.approx(1.0)


class TestInverseDocumentFrequency:
    """Test corpus-wide IDF table"""
    
    def test_empty_corpus(self):
        """No documents, no IDF entries"""
        assert compute_idf([]) == {}
    
    def test_formula(self):
        """IDF = ln(N / (1 + df))"""
        docs = [
            {"apple": 1.0},
            {"banana": 1.0},
            {"cherry": 0.5, "banana": 0.5},
            {"mango": 1.0},
        ]
        idf = compute_idf(docs)
        assert idf["apple"] == pytest.approx(math.log(4 / 2))
        assert idf["banana"] == pytest.approx(math.log(4 / 3))
        assert set(idf) == {"apple", "banana", "cherry", "mango"}
    
    def test_ubiquitous_term_negative(self):
        """A term in every document gets ln(N/(1+N)) < 0"""
        docs = [{"common": 0.5, f"term{i}": 0.5} for i in range(5)]
        idf = compute_idf(docs)
        assert idf["common"] == pytest.approx(math.log(5 / 6))
        assert idf["common"] < 0
    
    def test_zero_frequency_not_counted(self):
        """Only nonzero frequencies count towards df"""
        idf = compute_idf([{"apple": 1.0, "ghost": 0.0}, {"banana": 1.0}])
        assert "ghost" not in idf


class TestTfidf:
    """Test TF-IDF weighting"""
    
    def test_product(self):
        """TF-IDF = TF × IDF"""
        tfidf = compute_tfidf({"apple": 0.5, "banana": 0.5}, {"apple": 2.0, "banana": 1.0})
        assert tfidf == {"apple": 1.0, "banana": 0.5}
    
    def test_non_positive_elided(self):
        """Terms with IDF ≤ 0 or missing from IDF are dropped"""
        tfidf = compute_tfidf(
            {"apple": 0.25, "common": 0.25, "zero": 0.25, "unknown": 0.25},
            {"apple": 1.0, "common": -0.2, "zero": 0.0},
        )
        assert tfidf == {"apple": 0.25}
    
    def test_ubiquitous_term_always_elided(self):
        """A term appearing in every document never survives"""
        docs = [compute_tf(["common", f"word{i}"]) for i in range(4)]
        idf = compute_idf(docs)
        for tf in docs:
            assert "common" not in compute_tfidf(tf, idf)


class TestCosineSimilarity:
    """Test sparse cosine similarity"""
    
    def test_self_similarity(self):
        """cos(v, v) = 1 for nonzero v"""
        v = {"apple": 0.3, "banana": 0.1, "cherry": 0.7}
        assert cosine_similarity(v, v) == pytest.approx(1.0)
    
    def test_empty_vector(self):
        """Similarity with an empty vector is 0, no division by zero"""
        v = {"apple": 0.3}
        assert cosine_similarity(v, {}) == 0.0
        assert cosine_similarity({}, v) == 0.0
        assert cosine_similarity({}, {}) == 0.0
    
    def test_orthogonal(self):
        """No shared terms → 0"""
        assert cosine_similarity({"apple": 1.0}, {"banana": 1.0}) == 0.0
    
    def test_known_value(self):
        """Dot product over shared terms divided by both norms"""
        a = {"apple": 1.0, "banana": 1.0}
        b = {"apple": 1.0}
        assert cosine_similarity(a, b) == pytest.approx(1 / math.sqrt(2))
    
    def test_symmetric_and_bounded(self):
        """Symmetric and within [0, 1] for nonnegative vectors"""
        a = {"apple": 0.2, "banana": 0.9, "mango": 0.1}
        b = {"banana": 0.4, "cherry": 0.6, "mango": 0.3}
        sim = cosine_similarity(a, b)
        assert sim == pytest.approx(cosine_similarity(b, a))
        assert 0.0 <= sim <= 1.0
    
    def test_norm(self):
        assert vector_norm({"a": 3.0, "b": 4.0}) == pytest.approx(5.0)
        assert vector_norm({}) == 0.0
