"""
TF-IDF vector math over sparse term maps.

Formulas:
    TF(t, d)     = count(t, d) / |d|
    IDF(t)       = ln(N / (1 + df(t)))
    TF-IDF(t, d) = TF(t, d) × IDF(t), kept only when > 0

Where:
    |d|   = number of tokens in document d
    N     = number of documents in the corpus
    df(t) = number of documents containing t at least once

Terms that appear in (almost) every document get IDF ≤ 0 and are dropped
from TF-IDF vectors, which removes noise from ubiquitous words.

Vectors are plain dicts {term: weight}; absent terms are implicitly 0.
"""

import math
from typing import Dict, Iterable, List, Mapping

SparseVector = Dict[str, float]


def compute_tf(tokens: List[str]) -> SparseVector:
    """
    Compute normalized term frequencies for one document.

    Args:
        tokens: Output of tokenize()

    Returns:
        {term: count / total_tokens}; empty dict for empty input

    Example:
        >>> compute_tf(["apple", "banana", "apple"])
        {'apple': 0.666..., 'banana': 0.333...}
    """
    total = len(tokens)
    if total == 0:
        return {}

    counts: Dict[str, int] = {}
    for token in tokens:
        counts[token] = counts.get(token, 0) + 1

    return {term: count / total for term, count in counts.items()}


def document_frequencies(tf_vectors: Iterable[Mapping[str, float]]) -> Dict[str, int]:
    """Count, per term, the number of vectors where it has nonzero frequency."""
    df: Dict[str, int] = {}
    for tf in tf_vectors:
        for term, value in tf.items():
            if value > 0:
                df[term] = df.get(term, 0) + 1
    return df


def idf_from_frequencies(df: Mapping[str, int], n_documents: int) -> SparseVector:
    """IDF table from precomputed document frequencies."""
    if n_documents == 0:
        return {}
    return {
        term: math.log(n_documents / (1 + freq))
        for term, freq in df.items()
        if freq > 0
    }


def compute_idf(tf_vectors: List[Mapping[str, float]]) -> SparseVector:
    """
    Compute the corpus-wide IDF table.

    Args:
        tf_vectors: One TF map per document in the corpus

    Returns:
        {term: ln(N / (1 + df))}; empty dict for an empty corpus
    """
    return idf_from_frequencies(document_frequencies(tf_vectors), len(tf_vectors))


def compute_tfidf(tf: Mapping[str, float], idf: Mapping[str, float]) -> SparseVector:
    """
    Weight a TF map by the IDF table.

    Terms missing from the IDF table count as IDF 0. Only strictly
    positive products are kept.
    """
    tfidf: SparseVector = {}
    for term, tf_value in tf.items():
        score = tf_value * idf.get(term, 0.0)
        if score > 0:
            tfidf[term] = score
    return tfidf


def vector_norm(vector: Mapping[str, float]) -> float:
    """Euclidean norm of a sparse vector."""
    return math.sqrt(sum(value * value for value in vector.values()))


def cosine_similarity(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """
    Cosine similarity between two sparse vectors.

    Returns 0.0 when either vector has zero norm. For nonnegative vectors
    (all TF-IDF vectors) the result lies in [0, 1].
    """
    norm_a = vector_norm(a)
    norm_b = vector_norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    # Iterate over the smaller vector
    if len(a) > len(b):
        a, b = b, a
    dot = sum(value * b[term] for term, value in a.items() if term in b)

    # Guard against rounding pushing identical vectors above 1.0
    return min(dot / (norm_a * norm_b), 1.0)
