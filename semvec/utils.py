#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""This module contains various general utility functions."""

from functools import wraps
import logging
import numbers
import pickle as _pickle
import threading

import numpy as np

from smart_open import open  # noqa:F401

logger = logging.getLogger(__name__)


def get_random_state(seed):
    """Generate :class:`numpy.random.RandomState` based on input seed.

    Parameters
    ----------
    seed : {None, int, :class:`numpy.random.RandomState`}
        Seed for random state.

    Returns
    -------
    :class:`numpy.random.RandomState`
        Random state. Its methods are safe to call from several threads at once.

    Raises
    ------
    ValueError
        If seed is not {None, int, RandomState}.

    """
    if seed is None or seed is np.random:
        return np.random.mtrand._rand
    if isinstance(seed, (numbers.Integral, np.integer)):
        return np.random.RandomState(seed)
    if isinstance(seed, np.random.RandomState):
        return seed
    raise ValueError('%r cannot be used to seed a np.random.RandomState instance' % seed)


def synchronous(tlockname):
    """A decorator to place an instance-based lock around a method.

    Notes
    -----
    Adapted from http://code.activestate.com/recipes/577105-synchronization-decorator-for-class-methods/

    """
    def _synched(func):
        @wraps(func)
        def _synchronizer(self, *args, **kwargs):
            tlock = getattr(self, tlockname)
            logger.debug("acquiring lock %r for %s", tlockname, func.__name__)

            with tlock:  # use lock as a context manager to perform safe acquire/release pairs
                logger.debug("acquired lock %r for %s", tlockname, func.__name__)
                result = func(self, *args, **kwargs)
                logger.debug("releasing lock %r for %s", tlockname, func.__name__)
                return result
        return _synchronizer
    return _synched


class AtomicCounter(object):
    """Integer counter that can be incremented from many threads without losing updates."""
    def __init__(self, value=0):
        self._value = value
        self._lock = threading.Lock()

    def increment(self, delta=1):
        """Add `delta` to the counter and return the new value."""
        with self._lock:
            self._value += delta
            return self._value

    def set(self, value):
        with self._lock:
            self._value = value

    @property
    def value(self):
        return self._value

    def __int__(self):
        return self._value

    def __getstate__(self):
        return {'_value': self._value}

    def __setstate__(self, state):
        self._value = state['_value']
        self._lock = threading.Lock()

    def __repr__(self):
        return "%s(%i)" % (self.__class__.__name__, self._value)


class SaveLoad(object):
    """Class which inherit from this class have save/load functions, which un/pickle them to disk.

    Warnings
    --------
    This uses pickle for de/serializing, so objects must not contain unpicklable attributes,
    such as lambda functions, locks etc. Subclasses holding locks drop them in `__getstate__`.

    """
    @classmethod
    def load(cls, fname):
        """Load a previously saved object (using :meth:`~semvec.utils.SaveLoad.save`) from file.

        Parameters
        ----------
        fname : str
            Path to file that contains needed object. Compressed ('.gz', '.bz2') and remote (s3://, ...)
            locations are supported through `smart_open`.

        Returns
        -------
        object
            Object loaded from `fname`.

        """
        logger.info("loading %s object from %s", cls.__name__, fname)
        obj = unpickle(fname)
        if not isinstance(obj, cls):
            raise TypeError("%s does not contain a %s object, but %r" % (fname, cls.__name__, type(obj)))
        logger.info("loaded %s", fname)
        return obj

    def save(self, fname_or_handle, pickle_protocol=_pickle.HIGHEST_PROTOCOL):
        """Save the object to file.

        Parameters
        ----------
        fname_or_handle : str or file-like
            Path to output file or already opened file-like object.
        pickle_protocol : int, optional
            Protocol number for pickle.

        """
        try:
            _pickle.dump(self, fname_or_handle, protocol=pickle_protocol)
            logger.info("saved %s object", self.__class__.__name__)
        except TypeError:  # `fname_or_handle` does not have write attribute
            logger.info("saving %s object under %s", self.__class__.__name__, fname_or_handle)
            pickle(self, fname_or_handle, protocol=pickle_protocol)
            logger.info("saved %s", fname_or_handle)


def pickle(obj, fname, protocol=_pickle.HIGHEST_PROTOCOL):
    """Pickle object `obj` to file `fname`, using smart_open so that `fname` can be on S3, HDFS, compressed etc.

    Parameters
    ----------
    obj : object
        Any python object.
    fname : str
        Path to pickle file.
    protocol : int, optional
        Pickle protocol number.

    """
    with open(fname, 'wb') as fout:  # 'b' for binary, needed on Windows
        _pickle.dump(obj, fout, protocol=protocol)


def unpickle(fname):
    """Load object from `fname`, using smart_open so that `fname` can be on S3, HDFS, compressed etc.

    Parameters
    ----------
    fname : str
        Path to pickle file.

    Returns
    -------
    object
        Python object loaded from `fname`.

    """
    with open(fname, 'rb') as f:
        return _pickle.load(f, encoding='latin1')


RULE_DEFAULT = 0
RULE_DISCARD = 1
RULE_KEEP = 2


def keep_vocab_item(word, count, min_count, trim_rule=None):
    """Check that should we keep `word` in vocab or remove.

    Parameters
    ----------
    word : str
        Input word.
    count : int
        Number of times that word appears in the corpus.
    min_count : int
        Frequency threshold for `word`.
    trim_rule : function, optional
        Function for trimming entities from vocab, default behaviour is `count >= min_count`.

    Returns
    -------
    bool
        True if `word` should stay, False otherwise.

    """
    default_res = count >= min_count

    if trim_rule is None:
        return default_res
    else:
        rule_res = trim_rule(word, count, min_count)
        if rule_res == RULE_KEEP:
            return True
        elif rule_res == RULE_DISCARD:
            return False
        else:
            return default_res
