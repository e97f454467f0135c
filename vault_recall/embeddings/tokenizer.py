"""
Tokenizer for TF-IDF note indexing.

Tokenization pipeline:
1. Lowercase conversion
2. Replace non-word characters (punctuation, symbols) with whitespace
3. Replace digit runs with whitespace
4. Split on whitespace
5. Drop short tokens (≤ 2 chars) and stopwords (common English words)
6. Apply suffix stemming ("deployment" → "deploy", "notes" → "not")

Pure and deterministic: output order follows input order.
"""

import re
from typing import List

from .stemmer import stem

# Common English function words that carry no topical signal
STOPWORDS = frozenset([
    'a', 'an', 'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for',
    'of', 'with', 'by', 'from', 'is', 'it', 'its', 'this', 'that', 'are',
    'was', 'were', 'be', 'been', 'being', 'have', 'has', 'had', 'do', 'does',
    'did', 'will', 'would', 'could', 'should', 'may', 'might', 'can', 'shall',
    'not', 'no', 'nor', 'so', 'if', 'then', 'than', 'too', 'very', 'just',
    'about', 'above', 'after', 'again', 'all', 'also', 'am', 'any', 'as',
    'because', 'before', 'between', 'both', 'each', 'few', 'get', 'got',
    'he', 'her', 'here', 'him', 'his', 'how', 'i', 'into', 'like', 'make',
    'me', 'more', 'most', 'my', 'new', 'now', 'only', 'other', 'our', 'out',
    'over', 'own', 'same', 'she', 'some', 'such', 'up', 'us', 'we', 'what',
    'when', 'where', 'which', 'while', 'who', 'whom', 'why', 'you', 'your',
    'there', 'they', 'them', 'their', 'these', 'those', 'through', 'under',
    'until', 'well', 'much', 'many', 'still', 'even', 'back', 'down',
])

MIN_TOKEN_LENGTH = 3

_NON_WORD = re.compile(r'[^\w\s]')
_DIGITS = re.compile(r'\d+')


def tokenize(text: str) -> List[str]:
    """
    Tokenize note text into index terms.
    
    Args:
        text: Raw text (any content; None or empty yields [])
        
    Returns:
        List of normalized terms in input order
        
    Examples:
        >>> tokenize("Kubernetes deployments, in 2024!")
        ['kubernet', 'deployment']
        
        >>> tokenize("The cat")
        ['cat']
        
        >>> tokenize("   ")
        []
    """
    if not text:
        return []
    
    text = text.lower()
    text = _NON_WORD.sub(' ', text)
    text = _DIGITS.sub(' ', text)
    
    return [
        stem(token)
        for token in text.split()
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOPWORDS
    ]
