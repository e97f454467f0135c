"""
Local TF-IDF indexing for notes.

Text similarity is purely frequency-statistical: no learned embeddings,
nothing leaves the machine.

Components:
- stemmer: Light suffix-stripping stemmer
- tokenizer: Text normalization into index terms
- tfidf: TF / IDF / TF-IDF vectors and cosine similarity
- markdown: Markdown cleanup before indexing
- engine: Corpus state, incremental updates, similarity search, snapshots
"""

from .stemmer import stem
from .tokenizer import tokenize
from .tfidf import compute_tf, compute_idf, compute_tfidf, cosine_similarity
from .markdown import indexable_content, snippet
from .engine import IndexEngine, SimilarNote

__all__ = [
    "stem",
    "tokenize",
    "compute_tf",
    "compute_idf",
    "compute_tfidf",
    "cosine_similarity",
    "indexable_content",
    "snippet",
    "IndexEngine",
    "SimilarNote",
]
