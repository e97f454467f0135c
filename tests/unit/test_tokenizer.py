"""
Unit tests for the note tokenizer and suffix stemmer.
"""

import pytest
from vault_recall.embeddings.stemmer import stem
from vault_recall.embeddings.tokenizer import STOPWORDS, tokenize


class TestStemmer:
    """Test suffix stripping rules"""
    
    def test_first_matching_suffix_wins(self):
        """Suffixes are tried in order, most specific first"""
        assert stem("deployment") == "deploy"
        assert stem("running") == "runn"
        assert stem("happiness") == "happi"
    
    def test_minimum_stem_length(self):
        """A suffix is only stripped if at least 3 characters remain"""
        # "tion" would leave "na"
        assert stem("nation") == "nation"
        # "es" leaves exactly 3 characters
        assert stem("notes") == "not"
    
    def test_short_words_untouched(self):
        """Words of 4 characters or fewer are never stemmed"""
        assert stem("cats") == "cats"
        assert stem("used") == "used"
    
    def test_plural_s(self):
        """Trailing s is dropped when no suffix matched, but not ss"""
        assert stem("books") == "book"
        assert stem("glass") == "glass"
    
    def test_no_rule_applies(self):
        """Words without known suffixes stay as they are"""
        assert stem("apple") == "apple"
        assert stem("banana") == "banana"


class TestTokenizer:
    """Test tokenization pipeline"""
    
    def test_basic_tokenization(self):
        """Test lowercase + stemming on simple text"""
        tokens = tokenize("Kubernetes Deployment Strategies")
        assert tokens == ["kubernet", "deploy", "strateg"]
    
    def test_stopwords_removed(self):
        """Common English function words are dropped"""
        tokens = tokenize("the apple and the banana are with you")
        assert tokens == ["apple", "banana"]
        assert "the" in STOPWORDS
    
    def test_short_tokens_removed(self):
        """Tokens of 2 characters or fewer are dropped"""
        assert tokenize("go ab xyz") == ["xyz"]
    
    def test_punctuation_removal(self):
        """Punctuation splits tokens"""
        tokens = tokenize("apple,banana;cherry! (mango)")
        assert tokens == ["apple", "banana", "cherry", "mango"]
    
    def test_numbers_removed(self):
        """Digit runs are stripped, also inside words"""
        tokens = tokenize("Python 3.11 release 2024 abc123def")
        assert tokens == ["python", "release", "abc", "def"]
    
    def test_empty_input(self):
        """Test empty and whitespace-only input"""
        assert tokenize("") == []
        assert tokenize("   ") == []
        assert tokenize("\n\t") == []
        assert tokenize(None) == []
    
    def test_order_preserved(self):
        """Output follows input order, duplicates kept"""
        assert tokenize("cherry apple cherry") == ["cherry", "apple", "cherry"]
    
    def test_markdown_symbols(self):
        """Markdown syntax does not leak into tokens"""
        tokens = tokenize("## Garden **design** [[Compost]]")
        assert tokens == ["gard", "design", "compost"]
    
    @pytest.mark.parametrize("text", [
        "apple banana cherry mango",
        "kubernet deploy strateg",
        "python book design",
    ])
    def test_idempotent_on_tokenized_input(self, text):
        """Re-tokenizing already tokenized output yields the same sequence"""
        tokens = tokenize(text)
        assert tokenize(" ".join(tokens)) == tokens
    
    def test_deterministic(self):
        """Same input, same output"""
        text = "Spaced repetition improves long-term memory retention"
        assert tokenize(text) == tokenize(text)
