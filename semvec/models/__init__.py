"""
This package contains the algorithms training term vectors from term co-occurrence within a sliding window.
"""

# bring model classes directly into package namespace, to save some typing
from .positional import PositionalMethod  # noqa:F401
from .negative_sampling import NegativeSamplingTable, SigmoidTable  # noqa:F401
from .termterm import DocumentQueue, TermTermVectors, TrainingConfig  # noqa:F401
