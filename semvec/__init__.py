"""
This package builds distributional term vectors (and optionally document vectors) from the term positions
of an indexed corpus, by sliding a context window over every document.

"""

__version__ = "0.1.0.dev0"

import logging

from semvec import (  # noqa:F401
    utils,
    vectors,
    vectorstore,
    interfaces,
    corpora,
    models,
)

logger = logging.getLogger("semvec")
if not logger.handlers:  # To ensure reload() doesn't add another one
    logger.addHandler(logging.NullHandler())
