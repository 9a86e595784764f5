#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""
Introduction
============

Train term vectors from the co-occurrence of terms within a sliding window over positional documents.

Each term that passes the corpus' filter gets two vectors: an *elemental* vector (fixed random vector for the
random indexing methods, output weights for embeddings) and a *semantic* vector, learned from the elemental
vectors of the terms found near it. How a co-occurring term is folded into the focus term's semantic vector
depends on the :class:`~semvec.models.positional.PositionalMethod`; see :mod:`semvec.models.positional`.

Documents are streamed to a pool of worker threads in randomized chunks through a
:class:`~semvec.models.termterm.DocumentQueue`, so the whole corpus never has to be held in the queue at
once. The vector stores are shared by all workers without locking (asynchronous "Hogwild!" updates).

Usage examples
==============

Train BASIC term vectors over a toy corpus:

.. sourcecode:: pycon

    >>> from semvec.corpora import PositionalTextCorpus
    >>> from semvec.models import TermTermVectors
    >>> from semvec.test.utils import common_texts
    >>>
    >>> corpus = PositionalTextCorpus(common_texts)
    >>> model = TermTermVectors(corpus, dimension=100, seedlength=10, window_radius=2, workers=2)
    >>> vector = model.semantic_vectors['computer']

Train skip-gram embeddings with document vectors, and store them in the word2vec format:

.. sourcecode:: pycon

    >>> from semvec.test.utils import get_tmpfile
    >>>
    >>> model = TermTermVectors(
    ...     corpus, positional_method='embeddings', dimension=50, training_cycles=4, doc_vectors=True,
    ... )
    >>> model.semantic_vectors.save_word2vec_format(get_tmpfile("embeddingvectors.txt"))
    >>> model.save_document_vectors(get_tmpfile("docvectors.txt"))

Retrain over a new corpus, reusing the elemental vectors of a previous run:

.. sourcecode:: pycon

    >>> retrained = TermTermVectors(corpus, elemental_vectors=model.elemental_vectors, positional_method='basic')

"""

from collections import deque, namedtuple
import dataclasses
from dataclasses import dataclass
import logging
import math
from queue import Queue
import threading
from timeit import default_timer
import time
from typing import Optional, Tuple

from semvec import utils
from semvec.vectors import VectorType, create_zero_vector, generate_random_vector
from semvec.vectorstore import VectorStore
from semvec.models.negative_sampling import NegativeSamplingTable, SigmoidTable
from semvec.models.positional import (
    PositionalMethod, BasicEncoding, DirectionalEncoding, EmbeddingEncoding, PermutationEncoding,
    PermutationPlusBasicEncoding, ProximityEncoding, directional_permutations, number_vectors, permutation_cache,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 100000  # documents loaded into the queue per randomized chunk
POLL_INTERVAL = 0.01  # seconds between checks of the queue while workers are running
PROGRESS_STEP = 1000  # report progress every PROGRESS_STEP documents below LARGE_PROGRESS_STEP
LARGE_PROGRESS_STEP = 10000  # afterwards report, and update alpha, every LARGE_PROGRESS_STEP documents


@dataclass(frozen=True)
class TrainingConfig:
    """Immutable training parameters, shared by reference with every component of a training run.

    Enum fields also accept their string values, e.g. ``vector_type='binary'`` or
    ``positional_method='permutation'``.

    Raises
    ------
    ValueError
        If some parameter is out of range or an enum value is unknown.

    """
    dimension: int = 200  # number of coordinates of every vector
    vector_type: VectorType = VectorType.REAL
    seedlength: int = 10  # non-zero entries of sparse elemental vectors
    window_radius: int = 2
    positional_method: PositionalMethod = PositionalMethod.BASIC
    training_cycles: int = 0  # cycles run for 0..training_cycles, so 0 means a single pass
    workers: int = 3
    negative: int = 5  # negative samples per positive context, embeddings only
    sampling_threshold: float = -1.0  # subsampling of frequent terms is on only for 0 < threshold < 1
    subsample_in_window: bool = False  # draw the window radius uniformly from [1, window_radius] per focus term
    alpha: float = 0.025
    min_alpha: float = 0.0001
    chunk_size: int = CHUNK_SIZE
    doc_vectors: bool = False  # train document vectors alongside the embeddings
    seed: Optional[int] = None
    contents_fields: Optional[Tuple[str, ...]] = None  # defaults to all fields of the corpus

    def __post_init__(self):
        # frozen dataclass: normalize field values through object.__setattr__
        object.__setattr__(self, 'vector_type', VectorType(self.vector_type))
        method = self.positional_method
        if isinstance(method, str):
            method = method.lower()
        object.__setattr__(self, 'positional_method', PositionalMethod(method))
        if self.contents_fields is not None:
            if isinstance(self.contents_fields, str):
                object.__setattr__(self, 'contents_fields', (self.contents_fields, ))
            else:
                object.__setattr__(self, 'contents_fields', tuple(self.contents_fields))

        if self.dimension < 1:
            raise ValueError("dimension must be positive, got %r" % self.dimension)
        # real embeddings are initialized densely, whatever the seedlength
        dense = self.is_embeddings and self.vector_type is VectorType.REAL
        if not dense and not 1 <= self.seedlength <= self.dimension:
            raise ValueError("seedlength must be in [1, dimension=%i], got %r" % (self.dimension, self.seedlength))
        if self.window_radius < 1:
            raise ValueError("window_radius must be at least 1, got %r" % self.window_radius)
        if self.training_cycles < 0:
            raise ValueError("training_cycles must not be negative, got %r" % self.training_cycles)
        if self.workers < 1:
            raise ValueError("need at least one worker thread, got workers=%r" % self.workers)
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive, got %r" % self.chunk_size)
        if self.is_embeddings and self.negative < 1:
            raise ValueError("embeddings need at least one negative sample, got negative=%r" % self.negative)
        if not 0 < self.min_alpha <= self.alpha:
            raise ValueError("need 0 < min_alpha <= alpha, got alpha=%r min_alpha=%r" % (self.alpha, self.min_alpha))
        if self.contents_fields is not None and not self.contents_fields:
            raise ValueError("contents_fields must name at least one field")

    @property
    def is_embeddings(self):
        return self.positional_method is PositionalMethod.EMBEDDINGS

    @property
    def subsampling(self):
        """Whether frequent terms are subsampled."""
        return 0 < self.sampling_threshold < 1


DocumentTerms = namedtuple('DocumentTerms', 'doc_id field terms')
"""One queued unit of work: the term positions of one field of one document."""


class DocumentQueue(object):
    """Queue of documents to train on, filled in chunks of consecutive documents taken in random order.

    Shuffling the chunk start points rather than the documents randomizes training order without random
    access over the whole corpus, and keeps each chunk's documents in their original order.

    :meth:`draw` takes from the queue without locking; only refilling an empty queue in :meth:`draw` and
    :meth:`populate` are mutually exclusive, so that no chunk is loaded twice.

    Parameters
    ----------
    corpus : :class:`~semvec.interfaces.PositionalCorpusABC`
        Source of term positions.
    fields : iterable of str
        Fields to queue for every document.
    chunk_size : int, optional
        Documents per chunk. Reduced to a tenth of the corpus if larger than the corpus, so that even small
        corpora are read in several randomized chunks.
    random_state : :class:`numpy.random.RandomState`, optional
        Used to shuffle the chunk start points.

    """
    def __init__(self, corpus, fields, chunk_size=CHUNK_SIZE, random_state=None):
        self.corpus = corpus
        self.fields = tuple(fields)
        self.num_docs = corpus.num_docs()
        if chunk_size > self.num_docs:
            chunk_size = max(1, self.num_docs // 10)
            logger.info("small corpus of %i documents, reducing chunk size to %i", self.num_docs, chunk_size)
        self.chunk_size = chunk_size
        self.random = utils.get_random_state(random_state)

        self.lock = threading.RLock()
        self.queue = deque()
        self.start_points = deque()
        self.exhausted = threading.Event()
        self.queued_count = utils.AtomicCounter()
        self.reset()

    def reset(self):
        """Start a new pass: shuffle the chunk start points and empty the queue."""
        with self.lock:
            start_points = list(range(0, self.num_docs, self.chunk_size))
            self.random.shuffle(start_points)
            self.start_points = deque(start_points)
            self.queue.clear()
            self.queued_count.set(0)
            self.exhausted.clear()

    @utils.synchronous('lock')
    def populate(self):
        """Load the next randomized chunk of documents into the queue.

        Once there are no chunks left, mark the queue exhausted, but only if it is also empty.

        Returns
        -------
        int
            Number of (document, field) items added.

        """
        if self.queued_count.value >= self.num_docs or not self.start_points:
            if not self.queue:
                self.exhausted.set()
            return 0

        start = self.start_points.popleft()
        stop = min(start + self.chunk_size, self.num_docs)
        added = 0
        for doc_id in range(start, stop):
            self.queued_count.increment()
            for field in self.fields:
                try:
                    terms = self.corpus.term_vector(doc_id, field)
                except IOError as err:
                    logger.warning("skipping document #%i, field %r: %s", doc_id, field, err)
                    continue
                if terms:
                    self.queue.append(DocumentTerms(doc_id, field, terms))
                    added += 1
        if added:
            logger.info("queued %i documents from documents #%i-#%i", added, start, stop - 1)
        return added

    def draw(self):
        """Take the next document from the queue, refilling the queue first if it is empty.

        Returns
        -------
        :class:`~semvec.models.termterm.DocumentTerms` or None
            None if nothing could be loaded; check :meth:`is_exhausted` to tell a finished pass apart.

        """
        try:
            return self.queue.popleft()
        except IndexError:
            pass

        with self.lock:
            if not self.queue:
                self.populate()
            try:
                return self.queue.popleft()
            except IndexError:
                return None

    def is_exhausted(self):
        return self.exhausted.is_set()

    def __len__(self):
        return len(self.queue)


class TermTermVectors(utils.SaveLoad):
    def __init__(self, corpus=None, config=None, elemental_vectors=None, semantic_vectors=None, **params):
        """Train term vectors from term co-occurrence within a sliding window.

        Parameters
        ----------
        corpus : :class:`~semvec.interfaces.PositionalCorpusABC`, optional
            Corpus with term positions. If you don't supply `corpus`, the model is left uninitialized; call
            :meth:`build_vocab` and :meth:`train` yourself.
        config : :class:`~semvec.models.termterm.TrainingConfig`, optional
            Training parameters. Keyword `params` override its fields.
        elemental_vectors : :class:`~semvec.vectorstore.VectorStore`, optional
            Elemental vectors of a previous run, to retrain with. Terms without a vector get a new random one.
        semantic_vectors : :class:`~semvec.vectorstore.VectorStore`, optional
            Input weights of a previous embeddings run, to continue training from (embeddings only).
        **params
            Fields of :class:`~semvec.models.termterm.TrainingConfig`.

        Raises
        ------
        ValueError
            If the parameters are invalid, the supplied stores don't match them, or the corpus has no term
            positions.

        """
        if config is None:
            config = TrainingConfig(**params)
        elif params:
            config = dataclasses.replace(config, **params)

        if config.is_embeddings:
            if config.vector_type is VectorType.BINARY:
                logger.warning("binary vector embeddings are experimental")
            elif config.seedlength != config.dimension:
                logger.info("setting seedlength=%i to initialize dense embedding weights", config.dimension)
                config = dataclasses.replace(config, seedlength=config.dimension)
        elif semantic_vectors is not None:
            raise ValueError("initial semantic vectors can only be supplied for embeddings")
        self.config = config

        for store in (elemental_vectors, semantic_vectors):
            if store is None:
                continue
            if store.vector_type is not config.vector_type or store.dimension != config.dimension:
                raise ValueError(
                    "supplied %s vectors of dimension %i, but training %s vectors of dimension %i" % (
                        store.vector_type.value, store.dimension, config.vector_type.value, config.dimension,
                    )
                )

        self.random = utils.get_random_state(config.seed)
        self.retraining = elemental_vectors is not None
        if elemental_vectors is not None:
            logger.info("reusing %i elemental vectors", len(elemental_vectors))
            self.elemental_vectors = elemental_vectors
        else:
            self.elemental_vectors = VectorStore(config.vector_type, config.dimension)
        if semantic_vectors is not None:
            self.semantic_vectors = semantic_vectors
        else:
            self.semantic_vectors = VectorStore(config.vector_type, config.dimension)
        self.document_vectors = None
        self.number_vectors = None

        self.corpus = None
        self.contents_fields = ()
        self.total_count = 0
        self.subsampling_probabilities = {}
        self.sampling_table = None
        self.sigmoid_table = SigmoidTable()
        self.encoding = None

        self.alpha = config.alpha
        self.documents_processed = utils.AtomicCounter()

        if corpus is not None:
            self.build_vocab(corpus)
            self.train()

    @property
    def normalize_elemental(self):
        """Whether elemental vectors are normalized after training.

        Embedding output weights always are. Permutation methods normalize freshly generated elemental vectors,
        but leave vectors supplied for retraining as they were.

        """
        method = self.config.positional_method
        if method is PositionalMethod.EMBEDDINGS:
            return True
        permuted = method in (PositionalMethod.PERMUTATION, PositionalMethod.PERMUTATIONPLUSBASIC)
        return permuted and not self.retraining

    def random_vector(self):
        config = self.config
        return generate_random_vector(config.vector_type, config.dimension, config.seedlength, self.random)

    def zero_vector(self):
        return create_zero_vector(self.config.vector_type, self.config.dimension)

    def elemental_vector(self, term):
        """Get the elemental vector of `term`, creating a random one on first sight."""
        return self.elemental_vectors.get_or_create(term, self.random_vector)

    def build_vocab(self, corpus):
        """Create the initial vectors of all terms that pass the corpus' filter, and the sampling tables.

        Parameters
        ----------
        corpus : :class:`~semvec.interfaces.PositionalCorpusABC`
            Corpus with term positions.

        Raises
        ------
        ValueError
            If the corpus has no term positions.
        RuntimeError
            If embeddings are trained over fewer than two terms, leaving nothing to draw negative samples from.

        """
        if not corpus.has_positions():
            raise ValueError(
                "term-term training requires a corpus with term positions; rebuild the corpus with positions"
            )
        config = self.config
        self.corpus = corpus
        self.contents_fields = config.contents_fields or tuple(corpus.contents_fields)

        if config.is_embeddings:
            initial_vector = self.random_vector
        else:
            initial_vector = self.zero_vector

        sampling_freqs = []
        total_count, num_terms = 0, 0
        for field in self.contents_fields:
            for term in corpus.terms(field):
                freq = corpus.global_term_freq(term, field)
                total_count += freq
                if not corpus.term_filter(term, field):
                    continue
                num_terms += 1
                if config.is_embeddings:
                    sampling_freqs.append((term, freq))
                self.semantic_vectors.get_or_create(term, initial_vector)
                self.elemental_vector(term)
        self.total_count = total_count
        logger.info(
            "collected %i terms (%i vectors) from a corpus of %i raw words and %i documents",
            num_terms, len(self.semantic_vectors), total_count, corpus.num_docs(),
        )

        self.subsampling_probabilities = {}
        if config.subsampling and total_count:
            for field in self.contents_fields:
                for term in corpus.terms(field):
                    if term not in self.semantic_vectors:
                        continue
                    ratio = corpus.global_term_freq(term, field) / float(total_count)
                    if ratio > config.sampling_threshold:
                        discard = 1.0 - math.sqrt(config.sampling_threshold / ratio)
                        self.subsampling_probabilities[(field, term)] = discard
            logger.info(
                "sampling_threshold=%g selects %i terms for subsampling (%.1f raw words per document)",
                config.sampling_threshold, len(self.subsampling_probabilities),
                total_count / float(max(corpus.num_docs(), 1)),
            )

        if config.is_embeddings:
            self.sampling_table = NegativeSamplingTable(sampling_freqs)
            if len(self.sampling_table) < 2:
                raise RuntimeError(
                    "embeddings need at least two terms to draw negative samples from, got %i"
                    % len(self.sampling_table)
                )
            if config.doc_vectors:
                self.document_vectors = VectorStore(config.vector_type, config.dimension)
        self.encoding = self._make_encoding()

    def _make_encoding(self):
        config = self.config
        method = config.positional_method
        if method is PositionalMethod.BASIC:
            return BasicEncoding()
        if method is PositionalMethod.PERMUTATION:
            return PermutationEncoding(permutation_cache(config.dimension, config.window_radius), config.window_radius)
        if method is PositionalMethod.PERMUTATIONPLUSBASIC:
            return PermutationPlusBasicEncoding(
                permutation_cache(config.dimension, config.window_radius), config.window_radius,
            )
        if method is PositionalMethod.DIRECTIONAL:
            return DirectionalEncoding(directional_permutations(config.dimension))
        if method is PositionalMethod.PROXIMITY:
            self.number_vectors = number_vectors(
                config.vector_type, config.dimension, config.seedlength, 1, 2 * config.window_radius + 2, self.random,
            )
            return ProximityEncoding(self.number_vectors, config.window_radius)
        return EmbeddingEncoding(
            self.sampling_table, config.negative, self.sigmoid_table,
            binary=config.vector_type is VectorType.BINARY, document_vectors=self.document_vectors,
        )

    def train(self):
        """Run the training cycles over the corpus given to :meth:`build_vocab`.

        Returns
        -------
        int
            Number of (document, field) items processed over all cycles.

        Raises
        ------
        RuntimeError
            If there is no vocabulary to train.
        Exception
            Whatever stopped a worker thread, re-raised once all workers have finished.

        """
        if self.corpus is None or not len(self.semantic_vectors):
            raise RuntimeError("you must first build vocabulary before training the model")
        config = self.config
        logger.info(
            "training %s model with %i workers on %i vectors and %i documents: dimension=%i window_radius=%i",
            config.positional_method.value, config.workers, len(self.semantic_vectors),
            self.corpus.num_docs(), config.dimension, config.window_radius,
        )

        self.alpha = config.alpha
        self.documents_processed.set(0)
        job_queue = DocumentQueue(self.corpus, self.contents_fields, config.chunk_size, self.random)

        for cycle in range(config.training_cycles + 1):
            start = default_timer()
            job_queue.reset()
            job_queue.populate()

            failures = Queue()
            workers = [
                threading.Thread(target=self._worker_loop, args=(job_queue, thread_no, failures))
                for thread_no in range(config.workers)
            ]
            for thread in workers:
                thread.daemon = True  # make interrupting the process with ctrl+c easier
                thread.start()

            # keep the queue ahead of the workers until they all find it exhausted
            while any(thread.is_alive() for thread in workers):
                if not job_queue.is_exhausted() and len(job_queue) < job_queue.chunk_size / 4:
                    job_queue.populate()
                time.sleep(POLL_INTERVAL)

            if not failures.empty():
                raise failures.get()

            logger.info(
                "training cycle %i: queued %i documents in %.2fs, alpha %.6f",
                cycle, job_queue.queued_count.value, default_timer() - start, self.alpha,
            )

        logger.info("trained %i term vectors", len(self.semantic_vectors))
        if self.normalize_elemental:
            logger.info("normalizing %i elemental vectors", len(self.elemental_vectors))
            self.elemental_vectors.normalize_all()
        if self.document_vectors is not None:
            logger.info("normalizing %i document vectors", len(self.document_vectors))
            self.document_vectors.normalize_all()
        return self.documents_processed.value

    def _worker_loop(self, job_queue, thread_no, failures):
        """Train on documents drawn from `job_queue` until it is exhausted.

        Called in parallel by all worker threads. Worker #0 also recomputes the learning rate from the
        overall progress, when it starts and then every :data:`LARGE_PROGRESS_STEP` documents.

        An error other than the per-document `IndexError` ends the pass for all workers: it is put on
        `failures` for :meth:`train` to re-raise, and the queue is marked exhausted.

        Parameters
        ----------
        job_queue : :class:`~semvec.models.termterm.DocumentQueue`
            Shared queue of documents.
        thread_no : int
            Number of this worker.
        failures : :class:`queue.Queue`
            Collects the exceptions that stopped workers.

        """
        try:
            self._train_from_queue(job_queue, thread_no)
        except Exception as err:
            logger.exception("worker #%i failed", thread_no)
            failures.put(err)
            job_queue.exhausted.set()

    def _train_from_queue(self, job_queue, thread_no):
        start = default_timer()
        processed, skipped = 0, 0
        if thread_no == 0:
            self._update_alpha()  # catch up with the cycles already completed
        while not job_queue.is_exhausted():
            document = job_queue.draw()
            if document is None:
                continue
            try:
                self.process_document(document)
            except IndexError as err:
                logger.warning("skipping document #%i, field %r: %s", document.doc_id, document.field, err)
                skipped += 1
                continue
            processed += 1

            step = LARGE_PROGRESS_STEP if processed >= LARGE_PROGRESS_STEP else PROGRESS_STEP
            if processed % step == 0:
                logger.info(
                    "worker #%i: processed %i documents in %.1f min",
                    thread_no, processed, (default_timer() - start) / 60.0,
                )
                if thread_no == 0 and processed % LARGE_PROGRESS_STEP == 0:
                    self._update_alpha()
        logger.debug("worker #%i exiting, processed %i documents, skipped %i", thread_no, processed, skipped)

    def _get_next_alpha(self):
        """Get the learning rate, decayed linearly with the share of documents processed over all cycles."""
        start_alpha = self.config.alpha
        end_alpha = self.config.min_alpha
        total_documents = (self.config.training_cycles + 1) * self.corpus.num_docs()
        progress = self.documents_processed.value / float(max(total_documents, 1))
        next_alpha = start_alpha - (start_alpha - end_alpha) * progress
        return max(end_alpha, next_alpha)

    def _update_alpha(self):
        self.alpha = self._get_next_alpha()
        logger.info("updated alpha to %.6f", self.alpha)

    def process_document(self, document):
        """Slide the window over one document and update the vectors of every focus term.

        Terms without a vector are squeezed out of the sequence and frequent terms are subsampled, so that the
        window covers positions of the compressed sequence rather than of the original document.

        Parameters
        ----------
        document : :class:`~semvec.models.termterm.DocumentTerms`
            Term positions of one document field.

        """
        config = self.config
        sequence = []
        for term, positions in document.terms:
            if term not in self.semantic_vectors:
                continue
            discard = self.subsampling_probabilities.get((document.field, term))
            for position in positions:
                if discard is None or not self.random.random_sample() < discard:
                    sequence.append((position, term))
        sequence.sort()
        terms = [term for _, term in sequence]

        encoding = self.encoding
        for focus, focus_term in enumerate(terms):
            radius = config.window_radius
            if config.subsample_in_window:
                radius = self.random.randint(config.window_radius) + 1
            for cursor in range(max(0, focus - radius), min(focus + radius, len(terms))):
                if cursor == focus and not encoding.includes_focus:
                    continue
                encoding.apply(self, document, focus_term, terms[cursor], cursor - focus)
        self.documents_processed.increment()

    def save_document_vectors(self, fname, binary=False):
        """Store the document vectors in the word2vec format, keyed by the corpus' external document ids.

        Raises
        ------
        ValueError
            If the model has no document vectors.

        """
        if self.document_vectors is None:
            raise ValueError("document vectors are only trained with positional_method='embeddings', doc_vectors=True")
        self.document_vectors.save_word2vec_format(fname, binary=binary, key_formatter=self.corpus.external_doc_id)

    def __str__(self):
        return "%s<terms=%i, method=%s, dimension=%i, window_radius=%i, alpha=%g>" % (
            self.__class__.__name__, len(self.semantic_vectors), self.config.positional_method.value,
            self.config.dimension, self.config.window_radius, self.alpha,
        )
