#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Building blocks of skip-gram training with negative sampling (Mikolov et al. 2013):

* :class:`~semvec.models.negative_sampling.SigmoidTable` - precomputed logistic function,
* :class:`~semvec.models.negative_sampling.NegativeSamplingTable` - cumulative `frequency ** 0.75` table for
  drawing negative samples,
* :func:`~semvec.models.negative_sampling.train_sg_negative` - one stochastic gradient step for an input vector
  against one positive and several negative context vectors.

The tables are built once and only read afterwards, so they can be shared by all training threads.

"""

import logging
import math

import numpy as np
from scipy.special import expit

logger = logging.getLogger(__name__)

MAX_EXP = 6
"""Scalar products outside of [-MAX_EXP, MAX_EXP] are skipped by the embedding update."""

EXP_TABLE_SIZE = 1000


class SigmoidTable(object):
    """Logistic function looked up from a table covering [-max_exp, max_exp]."""
    def __init__(self, max_exp=MAX_EXP, table_size=EXP_TABLE_SIZE):
        self.max_exp = max_exp
        self.table_size = table_size
        self.table = expit((np.arange(table_size) / table_size * 2 - 1) * max_exp)

    def sigmoid(self, z):
        if z <= -self.max_exp:
            return 0.0
        if z >= self.max_exp:
            return 1.0
        return float(self.table[int((z + self.max_exp) * (self.table_size / self.max_exp / 2))])


class NegativeSamplingTable(object):
    """Cumulative-distribution table for drawing terms in proportion to `frequency ** power`.

    To draw a term, choose a uniform random number up to :attr:`total_pool` and return the term with the
    smallest cumulative key greater or equal to it (as if by `bisect_left` or `ndarray.searchsorted()`).

    Parameters
    ----------
    term_freqs : iterable of (str, int)
        Terms and their corpus frequencies. Terms with zero frequency can never be drawn and are skipped.
    power : float, optional
        Exponent applied to the frequencies.

    """
    def __init__(self, term_freqs=(), power=0.75):
        self.power = power
        keys, terms = [], []
        pool = 0.0
        for term, freq in term_freqs:
            if freq <= 0:
                continue
            pool += freq ** power
            keys.append(pool)
            terms.append(term)
        self.keys = np.array(keys, dtype=np.float64)
        self.terms = terms

    @property
    def total_pool(self):
        return float(self.keys[-1]) if len(self.keys) else 0.0

    def __len__(self):
        return len(self.terms)

    def ceiling(self, x):
        """Get the term with the smallest key greater or equal to `x`, or None if `x` exceeds all keys."""
        index = int(np.searchsorted(self.keys, x, side='left'))
        if index >= len(self.terms):
            return None
        return self.terms[index]

    def draw(self, random_state, exclude=None):
        """Draw one term, never returning `exclude`.

        Raises
        ------
        RuntimeError
            If the table holds no term other than `exclude`.

        """
        if not self.terms or (len(self.terms) == 1 and self.terms[0] == exclude):
            raise RuntimeError("cannot draw a negative sample: no term other than %r in the table" % (exclude, ))
        total_pool = self.total_pool
        while True:
            term = self.ceiling(random_state.random_sample() * total_pool)
            if term is not None and term != exclude:
                return term


def train_sg_negative(embedding_vector, context_vectors, context_labels, learning_rate, sigmoid_table, binary=False):
    """Update an input vector and its context vectors with one step of skip-gram negative sampling.

    For every context vector with label `y`, the error is `sigmoid(score) - y` for real vectors, or
    `floor(100 * (max(score, 0) - y) + 0.5)` for binary vectors, with `score` the scalar product of the two vectors.
    Both vectors then move by `-learning_rate * error` times the *other* vector's value before this step.
    Contexts whose score lies outside [-MAX_EXP, MAX_EXP] are left untouched.

    Parameters
    ----------
    embedding_vector : :class:`~semvec.vectors.Vector`
        The input vector being trained (a term's or a document's), updated in place.
    context_vectors : list of :class:`~semvec.vectors.Vector`
        The true context vector followed by the negative samples, updated in place.
    context_labels : list of int
        1 for the true context, 0 for negative samples.
    learning_rate : float
        Current learning rate (alpha).
    sigmoid_table : :class:`~semvec.models.negative_sampling.SigmoidTable`
        Precomputed logistic function.
    binary : bool, optional
        Use the rectified error for binary vectors.

    """
    for context_vector, label in zip(context_vectors, context_labels):
        duplicate = context_vector.copy()
        score = embedding_vector.dot(duplicate)
        if abs(score) > MAX_EXP:
            continue  # outsize scalar products tend to produce numerically unstable vectors

        if not binary:
            error = sigmoid_table.sigmoid(score) - label
        else:
            error = math.floor((max(score, 0.0) - label) * 100 + 0.5)  # halves round up

        gradient = -learning_rate * error
        context_vector.superpose(embedding_vector, gradient)
        embedding_vector.superpose(duplicate, gradient)
