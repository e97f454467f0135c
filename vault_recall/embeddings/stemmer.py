"""
Light suffix-stripping stemmer for English note text.

Not a full Porter/Snowball stemmer: a fixed, ordered list of suffixes is
tried (most specific first) and the first match is stripped, provided the
remaining stem keeps at least 3 characters. Words that match no suffix lose
a trailing plural "s" (but not "ss").

It reduces recall variance between word forms and may occasionally
over-stem, which is acceptable for frequency-statistical similarity.

Examples:
- "deployment" → "deploy"
- "running" → "runn"
- "books" → "book"
- "glass" → "glass"
"""

# Order matters: the first matching suffix wins
SUFFIXES = (
    'tion', 'sion', 'ment', 'ness', 'ible', 'able', 'ful', 'less', 'ous',
    'ive', 'ing', 'ies', 'ied', 'ers', 'est', 'ity', 'aly', 'ely', 'ize',
    'ise', 'ify', 'ate', 'ent', 'ant', 'ary', 'ery', 'ory',
    'ly', 'ed', 'er', 'es', 'al', 'en',
)

# Words of this length or shorter are never stemmed
MIN_STEMMABLE_LENGTH = 5

# Shortest stem allowed to remain after stripping a suffix
MIN_STEM_LENGTH = 3


def stem(word: str) -> str:
    """
    Stem a single lowercase word.
    
    Args:
        word: Lowercase token (already stripped of punctuation and digits)
        
    Returns:
        Stemmed word (unchanged if no rule applies)
        
    Examples:
        >>> stem("deployment")
        'deploy'
        >>> stem("nation")
        'nation'
        >>> stem("cats")
        'cats'
    """
    if len(word) < MIN_STEMMABLE_LENGTH:
        return word
    
    for suffix in SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= MIN_STEM_LENGTH:
            return word[:-len(suffix)]
    
    # Plural "s" (keep "ss" endings like "glass", "process")
    if word.endswith('s') and not word.endswith('ss'):
        return word[:-1]
    
    return word
