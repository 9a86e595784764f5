"""
This package contains corpus readers exposing per-document term positions.
"""

# bring corpus classes directly into package namespace, to save some typing
from .textcorpus import PositionalTextCorpus  # noqa:F401
