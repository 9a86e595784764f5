#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""In-memory mapping from keys (terms, document ids, numbers) to vectors.

Stores are shared between training threads. Lookups and assignments are plain dict operations; the only
compound operation, insert-if-absent, is guarded by a lock so that concurrent first sightings of the same
key agree on one vector:

.. sourcecode:: pycon

    >>> from semvec.vectors import VectorType, create_zero_vector
    >>> from semvec.vectorstore import VectorStore
    >>>
    >>> store = VectorStore(VectorType.REAL, 10)
    >>> vector = store.get_or_create('human', lambda: create_zero_vector(VectorType.REAL, 10))
    >>> vector is store['human']
    True

The vectors themselves are mutated in place by training without any locking.

"""

import logging
import threading

import numpy as np
from numpy import float32 as REAL

from semvec import utils
from semvec.vectors import BinaryVector, RealVector, VectorType

logger = logging.getLogger(__name__)


class VectorStore(utils.SaveLoad):
    def __init__(self, vector_type, dimension):
        self.vector_type = VectorType(vector_type)
        self.dimension = dimension
        self.vectors = {}
        self.lock = threading.Lock()

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self.lock = threading.Lock()

    def __len__(self):
        return len(self.vectors)

    def __contains__(self, key):
        return key in self.vectors

    def __getitem__(self, key):
        return self.vectors[key]

    def __iter__(self):
        return iter(list(self.vectors))

    def keys(self):
        return list(self.vectors)

    def items(self):
        return list(self.vectors.items())

    def get_vector(self, key, default=None):
        return self.vectors.get(key, default)

    def put_vector(self, key, vector):
        if vector.vector_type is not self.vector_type or vector.dimension != self.dimension:
            raise ValueError(
                "cannot store %s vector of dimension %i in a %s store of dimension %i" % (
                    vector.vector_type.value, vector.dimension, self.vector_type.value, self.dimension,
                )
            )
        self.vectors[key] = vector

    def get_or_create(self, key, factory):
        """Get the vector for `key`, inserting `factory()` first if `key` is missing.

        Safe to call from several threads: `factory` is called at most once per key and every caller
        gets the same vector object.

        """
        vector = self.vectors.get(key)
        if vector is not None:
            return vector
        with self.lock:
            vector = self.vectors.get(key)
            if vector is None:
                vector = factory()
                self.put_vector(key, vector)
            return vector

    def normalize_all(self):
        """Normalize every vector in place."""
        for vector in self.vectors.values():
            vector.normalize()

    def save_word2vec_format(self, fname, binary=False, key_formatter=str):
        """Store the vectors in the format used by the original C word2vec-tool.

        Parameters
        ----------
        fname : str
            File path (or smart_open URI) to save the vectors to.
        binary : bool, optional
            If True, the data will be saved in binary word2vec format (float32 values for real vectors,
            packed bits for binary vectors), else in plain text.
        key_formatter : function, optional
            Converts keys to the strings written to the file.

        """
        logger.info("storing %sx%s %s vectors into %s", len(self), self.dimension, self.vector_type.value, fname)
        with utils.open(fname, 'wb') as fout:
            fout.write(f"{len(self)} {self.dimension}\n".encode('utf8'))
            for key, vector in self.vectors.items():
                key = key_formatter(key)
                if binary:
                    if self.vector_type is VectorType.BINARY:
                        payload = np.packbits(vector.effective_bits()).tobytes()
                    else:
                        payload = vector.to_array().astype(REAL).tobytes()
                    fout.write(f"{key} ".encode('utf8') + payload + b"\n")
                else:
                    values = vector.to_array()
                    if self.vector_type is VectorType.BINARY:
                        line = ' '.join(str(int(val)) for val in values)
                    else:
                        line = ' '.join(repr(float(val)) for val in values)
                    fout.write(f"{key} {line}\n".encode('utf8'))

    @classmethod
    def load_word2vec_format(cls, fname, binary=False, vector_type=VectorType.REAL, encoding='utf8'):
        """Load vectors stored by :meth:`~semvec.vectorstore.VectorStore.save_word2vec_format`.

        Parameters
        ----------
        fname : str
            File path (or smart_open URI) to load from.
        binary : bool, optional
            Whether the file is in the binary variant of the format.
        vector_type : {:class:`~semvec.vectors.VectorType`, str}, optional
            Representation of the stored vectors.
        encoding : str, optional
            Encoding of the keys.

        Returns
        -------
        :class:`~semvec.vectorstore.VectorStore`

        """
        vector_type = VectorType(vector_type)
        logger.info("loading %s vectors from %s", vector_type.value, fname)
        with utils.open(fname, 'rb') as fin:
            header = fin.readline().decode(encoding)
            vocab_size, dimension = (int(x) for x in header.split())
            store = cls(vector_type, dimension)
            if vector_type is VectorType.BINARY:
                width = (dimension + 7) // 8
            else:
                width = dimension * np.dtype(REAL).itemsize
            for line_no in range(vocab_size):
                if binary:
                    key = _read_key(fin, encoding)
                    payload = fin.read(width)
                    if len(payload) != width:
                        raise EOFError("unexpected end of input; is count incorrect or file otherwise damaged?")
                    fin.read(1)  # trailing newline
                    if vector_type is VectorType.BINARY:
                        values = np.unpackbits(np.frombuffer(payload, dtype=np.uint8))[:dimension]
                    else:
                        values = np.frombuffer(payload, dtype=REAL).copy()
                else:
                    line = fin.readline()
                    if not line:
                        raise EOFError("unexpected end of input; is count incorrect or file otherwise damaged?")
                    parts = line.decode(encoding).rstrip().split(' ')
                    if len(parts) != dimension + 1:
                        raise ValueError("invalid vector on line %s (is this really the text format?)" % line_no)
                    key = parts[0]
                    values = np.array([float(x) for x in parts[1:]], dtype=REAL)
                if vector_type is VectorType.BINARY:
                    store.put_vector(key, BinaryVector(values > 0))
                else:
                    store.put_vector(key, RealVector(values))
        logger.info("loaded %s vectors of dimension %i from %s", len(store), dimension, fname)
        return store

    def __str__(self):
        return "%s(%s, vectors=%i, dimension=%i)" % (
            self.__class__.__name__, self.vector_type.value, len(self), self.dimension,
        )


def _read_key(fin, encoding):
    chars = []
    while True:
        ch = fin.read(1)
        if ch == b' ':
            break
        if ch == b'':
            raise EOFError("unexpected end of input; is count incorrect or file otherwise damaged?")
        if ch != b'\n':  # ignore newlines in front of words (some binary files have)
            chars.append(ch)
    return b''.join(chars).decode(encoding)
