#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Positional methods: how a co-occurring term's vector is folded into the focus term's vector.

Each :class:`~semvec.models.positional.PositionalMethod` maps to one encoding class. An encoding is built once
per training run, carries only the tables its method needs, and is applied once per (focus, co-occurring term)
pair of the sliding window by :meth:`~semvec.models.termterm.TermTermVectors.process_document`:

=====================  =============================================================================
BASIC                  superpose the elemental vector ("bag of words" within the window)
DIRECTIONAL            superpose the elemental vector shifted by -1 (left) or +1 (right)
PERMUTATION            superpose the elemental vector shifted by its offset from the focus term
PERMUTATIONPLUSBASIC   both BASIC and PERMUTATION
PROXIMITY              superpose the elemental vector bound to the number vector of its offset
EMBEDDINGS             skip-gram with negative sampling
=====================  =============================================================================

"""

from enum import Enum
import logging

from semvec.vectors import (
    VectorType, create_zero_vector, generate_random_vector, orthogonalize_vectors, shift_permutation,
)
from semvec.vectorstore import VectorStore
from semvec.models.negative_sampling import train_sg_negative

logger = logging.getLogger(__name__)


class PositionalMethod(Enum):
    BASIC = 'basic'
    DIRECTIONAL = 'directional'
    PERMUTATION = 'permutation'
    PERMUTATIONPLUSBASIC = 'permutationplusbasic'
    PROXIMITY = 'proximity'
    EMBEDDINGS = 'embeddings'


def permutation_cache(dimension, window_radius):
    """Shift permutations for every offset in [-window_radius, window_radius].

    Entry `i` shifts by `i - window_radius` places.

    """
    return [shift_permutation(dimension, i - window_radius) for i in range(2 * window_radius + 1)]


def directional_permutations(dimension):
    """Shift permutations for terms on the left (-1) and on the right (+1) of the focus term."""
    return [shift_permutation(dimension, -1), shift_permutation(dimension, 1)]


def number_vectors(vector_type, dimension, seedlength, start, end, random_state):
    """Vectors representing the integers in [start, end].

    Two random endpoint vectors (orthogonalized, for real vectors) are generated, and each number gets the
    normalized linear interpolation between them, so that nearby numbers have similar vectors.

    Returns
    -------
    :class:`~semvec.vectorstore.VectorStore`
        Number vectors keyed by the (int) number.

    """
    vector_type = VectorType(vector_type)
    left = generate_random_vector(vector_type, dimension, seedlength, random_state)
    right = generate_random_vector(vector_type, dimension, seedlength, random_state)
    if vector_type is VectorType.REAL:
        orthogonalize_vectors([left, right])

    store = VectorStore(vector_type, dimension)
    span = float(max(end - start, 1))
    for number in range(start, end + 1):
        proportion = (number - start) / span
        vector = create_zero_vector(vector_type, dimension)
        vector.superpose(left, 1.0 - proportion)
        vector.superpose(right, proportion)
        vector.normalize()
        store.put_vector(number, vector)
    logger.info("created %i number vectors for [%i, %i]", len(store), start, end)
    return store


class SuperpositionEncoding(object):
    """Base for the methods that add weighted elemental vectors into the focus term's semantic vector."""
    includes_focus = False

    def encode(self, elemental_vector, offset):
        """Yield the (vector, permutation) pairs to superpose for a co-occurring term at `offset`."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def apply(self, model, document, focus_term, coterm, offset):
        elemental_vector = model.elemental_vector(coterm)
        weight = model.corpus.global_term_weight(coterm, document.field)
        semantic_vector = model.semantic_vectors[focus_term]
        for vector, permutation in self.encode(elemental_vector, offset):
            semantic_vector.superpose(vector, weight, permutation)


class BasicEncoding(SuperpositionEncoding):
    def encode(self, elemental_vector, offset):
        yield elemental_vector, None


class PermutationEncoding(SuperpositionEncoding):
    def __init__(self, permutations, window_radius):
        self.permutations = permutations
        self.window_radius = window_radius

    def encode(self, elemental_vector, offset):
        yield elemental_vector, self.permutations[offset + self.window_radius]


class PermutationPlusBasicEncoding(PermutationEncoding):
    def encode(self, elemental_vector, offset):
        yield elemental_vector, None
        yield elemental_vector, self.permutations[offset + self.window_radius]


class DirectionalEncoding(SuperpositionEncoding):
    def __init__(self, permutations):
        self.permutations = permutations

    def encode(self, elemental_vector, offset):
        yield elemental_vector, self.permutations[0 if offset < 0 else 1]


class ProximityEncoding(SuperpositionEncoding):
    """Binds a copy of the elemental vector to the number vector of `offset + window_radius + 1`."""
    def __init__(self, number_vectors, window_radius):
        self.number_vectors = number_vectors
        self.window_radius = window_radius

    def encode(self, elemental_vector, offset):
        bound = elemental_vector.copy()
        bound.bind(self.number_vectors[offset + self.window_radius + 1])
        yield bound, None


class EmbeddingEncoding(object):
    """Skip-gram with negative sampling.

    The window position of the focus term itself trains only the document vector (if enabled); every other
    position trains both the focus term's vector and the document vector against the co-occurring term plus
    `negative` samples.

    """
    includes_focus = True

    def __init__(self, sampling_table, negative, sigmoid_table, binary=False, document_vectors=None):
        self.sampling_table = sampling_table
        self.negative = negative
        self.sigmoid_table = sigmoid_table
        self.binary = binary
        self.document_vectors = document_vectors

    def context(self, model, coterm):
        """Get the context vectors and labels: `coterm` (label 1) followed by `negative` samples (label 0)."""
        context_vectors = [model.elemental_vector(coterm)]
        context_labels = [1]
        while len(context_vectors) <= self.negative:
            sample = self.sampling_table.draw(model.random, exclude=coterm)
            context_vectors.append(model.elemental_vector(sample))
            context_labels.append(0)
        return context_vectors, context_labels

    def apply(self, model, document, focus_term, coterm, offset):
        context_vectors, context_labels = self.context(model, coterm)
        alpha = model.alpha

        if offset != 0:
            train_sg_negative(
                model.semantic_vectors[focus_term], context_vectors, context_labels,
                alpha, self.sigmoid_table, self.binary,
            )

        if self.document_vectors is not None:
            document_vector = self.document_vectors.get_or_create(document.doc_id, model.random_vector)
            train_sg_negative(
                document_vector, context_vectors, context_labels, alpha, self.sigmoid_table, self.binary,
            )
