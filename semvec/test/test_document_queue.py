#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""
Automated tests for the randomized-chunk document queue.
"""

import logging
import threading
import unittest

from testfixtures import log_capture

from semvec.corpora import PositionalTextCorpus
from semvec.models.termterm import DocumentQueue
from semvec.test.utils import common_texts


class UnreadableCorpus(PositionalTextCorpus):
    """Corpus failing to read some documents."""
    def __init__(self, documents, unreadable, **kwargs):
        super(UnreadableCorpus, self).__init__(documents, **kwargs)
        self.unreadable = unreadable

    def term_vector(self, doc_id, field):
        if doc_id in self.unreadable:
            raise IOError("cannot read document %i" % doc_id)
        return super(UnreadableCorpus, self).term_vector(doc_id, field)


def drain(queue):
    drawn = []
    while not queue.is_exhausted():
        document = queue.draw()
        if document is not None:
            drawn.append(document)
    return drawn


class TestDocumentQueue(unittest.TestCase):
    def setUp(self):
        self.corpus = PositionalTextCorpus(common_texts)

    def test_chunk_size_reduction(self):
        queue = DocumentQueue(self.corpus, ['contents'], chunk_size=100000, random_state=0)
        self.assertEqual(queue.chunk_size, 1)

        corpus = PositionalTextCorpus(common_texts * 5)
        queue = DocumentQueue(corpus, ['contents'], chunk_size=100000, random_state=0)
        self.assertEqual(queue.chunk_size, 4)

        queue = DocumentQueue(corpus, ['contents'], chunk_size=10, random_state=0)
        self.assertEqual(queue.chunk_size, 10)
        self.assertEqual(sorted(queue.start_points), [0, 10, 20, 30, 40])

    def test_every_document_once(self):
        queue = DocumentQueue(self.corpus, ['contents'], chunk_size=2, random_state=1)
        drawn = drain(queue)
        self.assertEqual(sorted(document.doc_id for document in drawn), list(range(len(common_texts))))
        self.assertEqual(queue.queued_count.value, len(common_texts))
        for document in drawn:
            self.assertEqual(document.field, 'contents')
            self.assertEqual(document.terms, self.corpus.term_vector(document.doc_id, 'contents'))

        # an exhausted queue yields nothing more in the same pass
        self.assertIsNone(queue.draw())
        self.assertEqual(queue.populate(), 0)
        self.assertTrue(queue.is_exhausted())

    def test_chunks_keep_document_order(self):
        queue = DocumentQueue(self.corpus, ['contents'], chunk_size=3, random_state=2)
        doc_ids = [document.doc_id for document in drain(queue)]
        for i in range(0, len(doc_ids), 3):
            chunk = doc_ids[i:i + 3]
            self.assertEqual(chunk, list(range(chunk[0], chunk[0] + 3)))
            self.assertEqual(chunk[0] % 3, 0)

    def test_exhausted_only_when_queue_empty(self):
        queue = DocumentQueue(self.corpus, ['contents'], chunk_size=9, random_state=0)
        self.assertEqual(queue.populate(), 9)
        self.assertEqual(len(queue.start_points), 0)

        # no chunks left, but the queue still holds documents
        self.assertEqual(queue.populate(), 0)
        self.assertEqual(queue.populate(), 0)
        self.assertFalse(queue.is_exhausted())
        self.assertEqual(len(queue), 9)

        for _ in range(9):
            self.assertIsNotNone(queue.draw())
        self.assertFalse(queue.is_exhausted())
        self.assertIsNone(queue.draw())
        self.assertTrue(queue.is_exhausted())

    def test_reset(self):
        queue = DocumentQueue(self.corpus, ['contents'], chunk_size=4, random_state=0)
        first = drain(queue)
        queue.reset()
        self.assertFalse(queue.is_exhausted())
        self.assertEqual(queue.queued_count.value, 0)
        self.assertEqual(len(queue.start_points), 3)
        second = drain(queue)
        self.assertEqual(sorted(d.doc_id for d in first), sorted(d.doc_id for d in second))

    def test_skips_empty_documents(self):
        corpus = PositionalTextCorpus([['human'], [], ['graph', 'trees']])
        queue = DocumentQueue(corpus, ['contents'], chunk_size=3, random_state=0)
        self.assertEqual(queue.populate(), 2)
        self.assertEqual(queue.queued_count.value, 3)
        self.assertEqual([document.doc_id for document in queue.queue], [0, 2])

    def test_fields(self):
        corpus = PositionalTextCorpus([{'title': ['graph'], 'contents': ['graph', 'trees']}, {'contents': ['trees']}])
        queue = DocumentQueue(corpus, ['title', 'contents'], chunk_size=2, random_state=0)
        self.assertEqual(queue.populate(), 3)
        # the queued counter counts documents, not fields
        self.assertEqual(queue.queued_count.value, 2)
        self.assertEqual([(d.doc_id, d.field) for d in queue.queue], [(0, 'title'), (0, 'contents'), (1, 'contents')])

    @log_capture()
    def test_unreadable_documents_are_skipped(self, loglines):
        corpus = UnreadableCorpus(common_texts, unreadable={2, 5})
        queue = DocumentQueue(corpus, ['contents'], chunk_size=3, random_state=0)
        drawn = drain(queue)
        self.assertEqual(sorted(document.doc_id for document in drawn), [0, 1, 3, 4, 6, 7, 8])
        self.assertIn("skipping document #2, field 'contents': cannot read document 2", str(loglines))
        self.assertIn("skipping document #5", str(loglines))

    def test_concurrent_draws(self):
        corpus = PositionalTextCorpus(common_texts * 20)
        queue = DocumentQueue(corpus, ['contents'], chunk_size=7, random_state=0)
        drawn = []
        lock = threading.Lock()

        def worker():
            for document in drain(queue):
                with lock:
                    drawn.append(document.doc_id)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(sorted(drawn), list(range(corpus.num_docs())))


if __name__ == '__main__':
    logging.basicConfig(format='%(asctime)s : %(levelname)s : %(message)s', level=logging.DEBUG)
    unittest.main()
