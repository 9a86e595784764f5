#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Vector representations used for building term and document vectors.

The training code only relies on the small capability contract of :class:`~semvec.vectors.Vector`:
`copy`, `normalize`, `superpose` (weighted addition, optionally through a permutation), `bind`,
`dot` (raw scalar product) and `measure_overlap` (similarity). Two representations are provided:

* :class:`~semvec.vectors.RealVector` - dense float32 coordinates. Random elemental vectors are sparse ternary
  (`seedlength` entries set to +1 / -1), or dense small uniform values when `seedlength` equals the dimension,
  which is how embedding weights are initialized.
* :class:`~semvec.vectors.BinaryVector` - a bit vector. Superposition accumulates weighted votes which
  are tallied back into bits on :meth:`~semvec.vectors.BinaryVector.normalize`.

Permutations are integer arrays: superposing `other` through `permutation` adds `other[i]` into coordinate
`permutation[i]`. :func:`~semvec.vectors.shift_permutation` builds the cyclic shifts used for order and direction
encoding.

"""

from enum import Enum
import logging

import numpy as np
from numpy import float32 as REAL

logger = logging.getLogger(__name__)


class VectorType(Enum):
    REAL = 'real'
    BINARY = 'binary'


class Vector(object):
    """Interface for the vector representations."""
    vector_type = None

    @property
    def dimension(self):
        raise NotImplementedError('cannot instantiate abstract base class')

    def copy(self):
        raise NotImplementedError('cannot instantiate abstract base class')

    def is_zero(self):
        raise NotImplementedError('cannot instantiate abstract base class')

    def normalize(self):
        raise NotImplementedError('cannot instantiate abstract base class')

    def superpose(self, other, weight, permutation=None):
        """Add `weight` * `other` into this vector, in place.

        Parameters
        ----------
        other : :class:`~semvec.vectors.Vector`
            Vector of the same type and dimension.
        weight : float
            Scaling factor.
        permutation : numpy.ndarray of int, optional
            If given, coordinate `i` of `other` is added into coordinate `permutation[i]` of this vector.

        """
        raise NotImplementedError('cannot instantiate abstract base class')

    def bind(self, other):
        """Combine `other` into this vector, in place, with a non-additive binding operation."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def dot(self, other):
        """Scalar product with `other`, as used by the embedding updates."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def measure_overlap(self, other):
        """Similarity with `other`."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def to_array(self):
        """Get a float32 numpy representation, for serialization."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def _check_compatible(self, other):
        if other.vector_type is not self.vector_type or other.dimension != self.dimension:
            raise ValueError(
                "incompatible vectors: %s/%i vs %s/%i" % (
                    self.vector_type.value, self.dimension, other.vector_type.value, other.dimension,
                )
            )


class RealVector(Vector):
    """Dense real-valued vector."""
    vector_type = VectorType.REAL

    def __init__(self, coordinates):
        self.coordinates = np.asarray(coordinates, dtype=REAL)

    @property
    def dimension(self):
        return self.coordinates.shape[0]

    def copy(self):
        return RealVector(self.coordinates.copy())

    def is_zero(self):
        return not self.coordinates.any()

    def normalize(self):
        """Scale to unit length. Zero-vector will be unchanged."""
        veclen = np.sqrt(np.dot(self.coordinates, self.coordinates))
        if veclen > 0.0:
            self.coordinates /= veclen

    def superpose(self, other, weight, permutation=None):
        if permutation is None:
            self.coordinates += REAL(weight) * other.coordinates
        else:
            self.coordinates[permutation] += REAL(weight) * other.coordinates

    def bind(self, other):
        """Circular convolution of the two coordinate arrays."""
        self._check_compatible(other)
        n = self.dimension
        bound = np.fft.irfft(np.fft.rfft(self.coordinates) * np.fft.rfft(other.coordinates), n)
        self.coordinates[:] = bound

    def dot(self, other):
        return float(np.dot(self.coordinates, other.coordinates))

    def measure_overlap(self, other):
        """Cosine similarity; 0.0 if either vector is zero."""
        self._check_compatible(other)
        norms = np.linalg.norm(self.coordinates) * np.linalg.norm(other.coordinates)
        if not norms:
            return 0.0
        return float(np.dot(self.coordinates, other.coordinates) / norms)

    def to_array(self):
        return self.coordinates

    def __repr__(self):
        return "%s(dimension=%i)" % (self.__class__.__name__, self.dimension)


class BinaryVector(Vector):
    """Bit vector with a voting record.

    :meth:`superpose` adds `weight` votes for every bit set in `other` and `-weight` votes for every bit unset,
    :meth:`normalize` sets each bit from the sign of its votes (coordinates with no net vote keep their bit).

    """
    vector_type = VectorType.BINARY

    def __init__(self, bits, votes=None):
        self.bits = np.asarray(bits, dtype=bool)
        if votes is None:
            votes = np.zeros(self.bits.shape[0], dtype=REAL)
        self.votes = np.asarray(votes, dtype=REAL)

    @property
    def dimension(self):
        return self.bits.shape[0]

    def effective_bits(self):
        """Bits as they would be after :meth:`normalize`, without tallying the votes."""
        return np.where(self.votes != 0, self.votes > 0, self.bits)

    def copy(self):
        return BinaryVector(self.bits.copy(), self.votes.copy())

    def is_zero(self):
        return not self.effective_bits().any()

    def normalize(self):
        self.bits = self.effective_bits()
        self.votes = np.zeros(self.dimension, dtype=REAL)

    def superpose(self, other, weight, permutation=None):
        bipolar = np.where(other.effective_bits(), REAL(weight), REAL(-weight))
        if permutation is None:
            self.votes += bipolar
        else:
            self.votes[permutation] += bipolar

    def bind(self, other):
        """Exclusive or of the two bit patterns."""
        self._check_compatible(other)
        self.bits[:] = np.logical_xor(self.effective_bits(), other.effective_bits())
        self.votes[:] = 0

    def measure_overlap(self, other):
        """`1 - 2 * hamming_distance / dimension`, in [-1, 1]."""
        self._check_compatible(other)
        hamming = np.count_nonzero(self.effective_bits() != other.effective_bits())
        return 1.0 - 2.0 * hamming / self.dimension

    def dot(self, other):
        return self.measure_overlap(other)

    def to_array(self):
        return self.effective_bits().astype(REAL)

    def __repr__(self):
        return "%s(dimension=%i)" % (self.__class__.__name__, self.dimension)


def create_zero_vector(vector_type, dimension):
    """Create an all-zero vector of the requested type."""
    vector_type = VectorType(vector_type)
    if vector_type is VectorType.REAL:
        return RealVector(np.zeros(dimension, dtype=REAL))
    return BinaryVector(np.zeros(dimension, dtype=bool))


def generate_random_vector(vector_type, dimension, seedlength, random_state):
    """Create a random elemental vector.

    Parameters
    ----------
    vector_type : {:class:`~semvec.vectors.VectorType`, str}
        Representation.
    dimension : int
        Number of coordinates.
    seedlength : int
        Number of non-zero entries of a sparse real vector. A `seedlength` equal to `dimension` produces
        dense values uniformly drawn from [-0.5 / dimension, 0.5 / dimension). Ignored for binary vectors,
        which always get exactly half of their bits set.
    random_state : :class:`numpy.random.RandomState`
        Source of randomness.

    Returns
    -------
    :class:`~semvec.vectors.Vector`

    """
    vector_type = VectorType(vector_type)
    if vector_type is VectorType.BINARY:
        bits = np.zeros(dimension, dtype=bool)
        bits[random_state.permutation(dimension)[:dimension // 2]] = True
        return BinaryVector(bits)

    if seedlength >= dimension:
        return RealVector((random_state.random_sample(dimension).astype(REAL) - 0.5) / dimension)

    coordinates = np.zeros(dimension, dtype=REAL)
    nonzero = random_state.permutation(dimension)[:seedlength]
    coordinates[nonzero[:seedlength // 2]] = 1.0
    coordinates[nonzero[seedlength // 2:]] = -1.0
    return RealVector(coordinates)


def shift_permutation(dimension, shift):
    """Permutation that cyclically shifts coordinates by `shift` places (negative = to the left)."""
    return (np.arange(dimension) + shift) % dimension


def orthogonalize_vectors(vectors):
    """Orthogonalize real vectors in place using the Gram-Schmidt process.

    The result is order dependent: the `k`-th vector is made orthogonal to all the previous ones.
    All vectors end up normalized.

    Parameters
    ----------
    vectors : list of :class:`~semvec.vectors.RealVector`
        Vectors to process in place.

    Raises
    ------
    ValueError
        If some vector is not real, or the dimensions differ.

    """
    if not vectors:
        return
    dimension = vectors[0].dimension
    for k, kth_vector in enumerate(vectors):
        if kth_vector.vector_type is not VectorType.REAL:
            raise ValueError("can only orthogonalize real vectors, got %s" % kth_vector.vector_type.value)
        if kth_vector.dimension != dimension:
            raise ValueError("not all vectors have dimension %i" % dimension)
        kth_vector.normalize()
        for jth_vector in vectors[:k]:
            kth_vector.superpose(jth_vector, -kth_vector.dot(jth_vector))
            kth_vector.normalize()
