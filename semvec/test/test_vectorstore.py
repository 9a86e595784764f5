#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""
Automated tests for the in-memory vector store and its persistence.
"""

import logging
import threading
import unittest

import numpy as np

from semvec.vectors import VectorType, create_zero_vector, generate_random_vector
from semvec.vectorstore import VectorStore
from semvec.test.utils import get_tmpfile, temporary_file


def random_store(vector_type, dimension=12, keys=('human', 'interface', 'computer')):
    random = np.random.RandomState(7)
    store = VectorStore(vector_type, dimension)
    for key in keys:
        store.put_vector(key, generate_random_vector(vector_type, dimension, dimension, random))
    return store


class TestVectorStore(unittest.TestCase):
    def test_put_and_get(self):
        store = VectorStore('real', 8)
        vector = create_zero_vector(VectorType.REAL, 8)
        store.put_vector('human', vector)
        self.assertIn('human', store)
        self.assertIs(store['human'], vector)
        self.assertIsNone(store.get_vector('graph'))
        self.assertEqual(len(store), 1)
        self.assertEqual(store.keys(), ['human'])

    def test_put_incompatible(self):
        store = VectorStore(VectorType.REAL, 8)
        self.assertRaises(ValueError, store.put_vector, 'human', create_zero_vector(VectorType.REAL, 4))
        self.assertRaises(ValueError, store.put_vector, 'human', create_zero_vector(VectorType.BINARY, 8))

    def test_get_or_create_is_idempotent(self):
        store = VectorStore(VectorType.REAL, 8)
        created = []

        def factory():
            created.append(1)
            return create_zero_vector(VectorType.REAL, 8)

        first = store.get_or_create('human', factory)
        second = store.get_or_create('human', factory)
        self.assertIs(first, second)
        self.assertEqual(len(created), 1)

    def test_get_or_create_concurrent(self):
        """Threads seeing a new key at the same time must all get the same vector."""
        store = VectorStore(VectorType.REAL, 8)
        barrier = threading.Barrier(8)
        results = []

        def first_sight():
            barrier.wait()
            results.append(store.get_or_create('human', lambda: create_zero_vector(VectorType.REAL, 8)))

        threads = [threading.Thread(target=first_sight) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(results), 8)
        self.assertTrue(all(vector is results[0] for vector in results))
        self.assertEqual(len(store), 1)

    def test_normalize_all(self):
        store = random_store(VectorType.REAL)
        store.normalize_all()
        for _, vector in store.items():
            self.assertAlmostEqual(vector.dot(vector), 1.0, places=5)

    def assert_stores_equal(self, store, loaded):
        self.assertEqual(sorted(store.keys()), sorted(loaded.keys()))
        self.assertEqual(loaded.dimension, store.dimension)
        self.assertIs(loaded.vector_type, store.vector_type)
        for key in store:
            self.assertTrue(np.allclose(store[key].to_array(), loaded[key].to_array()))

    def test_word2vec_format_text(self):
        store = random_store(VectorType.REAL)
        with temporary_file("vectors.txt") as fname:
            store.save_word2vec_format(fname)
            loaded = VectorStore.load_word2vec_format(fname)
        self.assert_stores_equal(store, loaded)

    def test_word2vec_format_binary(self):
        store = random_store(VectorType.REAL)
        with temporary_file("vectors.bin") as fname:
            store.save_word2vec_format(fname, binary=True)
            loaded = VectorStore.load_word2vec_format(fname, binary=True)
        self.assert_stores_equal(store, loaded)

    def test_word2vec_format_binary_vectors(self):
        store = random_store(VectorType.BINARY, dimension=20)
        for binary in (False, True):
            with temporary_file("vectors.bin") as fname:
                store.save_word2vec_format(fname, binary=binary)
                loaded = VectorStore.load_word2vec_format(fname, binary=binary, vector_type='binary')
            self.assert_stores_equal(store, loaded)

    def test_word2vec_format_compressed(self):
        store = random_store(VectorType.REAL)
        with temporary_file("vectors.txt.gz") as fname:
            store.save_word2vec_format(fname)
            loaded = VectorStore.load_word2vec_format(fname)
        self.assert_stores_equal(store, loaded)

    def test_key_formatter(self):
        store = random_store(VectorType.REAL, keys=(0, 1))
        with temporary_file("docvectors.txt") as fname:
            store.save_word2vec_format(fname, key_formatter=lambda doc_id: 'doc%i' % doc_id)
            loaded = VectorStore.load_word2vec_format(fname)
        self.assertEqual(sorted(loaded.keys()), ['doc0', 'doc1'])

    def test_truncated_file(self):
        store = random_store(VectorType.REAL)
        with temporary_file("vectors.txt") as fname:
            store.save_word2vec_format(fname)
            with open(fname, 'rb') as fin:
                lines = fin.readlines()
            with open(fname, 'wb') as fout:
                fout.writelines(lines[:-1])
            self.assertRaises(EOFError, VectorStore.load_word2vec_format, fname)

    def test_persistence(self):
        store = random_store(VectorType.BINARY)
        fname = get_tmpfile('semvec_vectorstore.tst')
        store.save(fname)
        loaded = VectorStore.load(fname)
        self.assert_stores_equal(store, loaded)
        # the lock is recreated on load
        loaded.get_or_create('graph', lambda: create_zero_vector(VectorType.BINARY, 12))
        self.assertIn('graph', loaded)


if __name__ == '__main__':
    logging.basicConfig(format='%(asctime)s : %(levelname)s : %(message)s', level=logging.DEBUG)
    unittest.main()
