"""Vault Recall - local TF-IDF indexing and resurfacing of forgotten notes."""

__version__ = "0.1.0"
