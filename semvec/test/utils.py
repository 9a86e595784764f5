#!/usr/bin/env python
# encoding: utf-8

"""Module contains common utilities used in automated code tests for semvec modules.

Attributes:
-----------
common_texts : list of list of str
    Toy dataset.

Examples:
---------

It's easy to keep objects in temporary folder and reuse'em if needed:

.. sourcecode:: pycon

    >>> from semvec.corpora import PositionalTextCorpus
    >>> from semvec.models import TermTermVectors
    >>> from semvec.test.utils import get_tmpfile, common_texts
    >>>
    >>> model = TermTermVectors(PositionalTextCorpus(common_texts), dimension=50)
    >>> temp_path = get_tmpfile('toy_termterm')
    >>> model.save(temp_path)
    >>>
    >>> new_model = TermTermVectors.load(temp_path)

If you don't need to keep temporary objects on disk use :func:`~semvec.test.utils.temporary_file`.

"""

import contextlib
import tempfile
import os
import shutil


def get_tmpfile(suffix):
    """Get full path to file `suffix` in temporary folder.
    This function doesn't creates file (only generate unique name).
    Also, it may return different paths in consecutive calling.

    Parameters
    ----------
    suffix : str
        Suffix of file.

    Returns
    -------
    str
        Path to `suffix` file in temporary folder.

    """
    return os.path.join(tempfile.gettempdir(), suffix)


@contextlib.contextmanager
def temporary_file(name=""):
    """This context manager creates file `name` in temporary directory and returns its full path.
    Temporary directory with included files will deleted at the end of context. Note, it won't create file.

    Parameters
    ----------
    name : str
        Filename.

    Yields
    ------
    str
        Path to file `name` in temporary directory.

    """
    tmp = tempfile.mkdtemp()
    try:
        yield os.path.join(tmp, name)
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


# set up vars used in testing ("Deerwester" from the web tutorial)
common_texts = [
    ['human', 'interface', 'computer'],
    ['survey', 'user', 'computer', 'system', 'response', 'time'],
    ['eps', 'user', 'interface', 'system'],
    ['system', 'human', 'system', 'eps'],
    ['user', 'response', 'time'],
    ['trees'],
    ['graph', 'trees'],
    ['graph', 'minors', 'trees'],
    ['graph', 'minors', 'survey']
]
