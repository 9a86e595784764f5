#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""In-memory positional corpus over already tokenized documents.

Each document is either a list of tokens (stored in the single field ``contents``), or a dict mapping field
names to lists of tokens. Token positions are their offsets within the field:

.. sourcecode:: pycon

    >>> from semvec.corpora import PositionalTextCorpus
    >>>
    >>> corpus = PositionalTextCorpus([['human', 'interface', 'human'], ['graph', 'trees']])
    >>> corpus.term_vector(0, 'contents')
    [TermPositions(term='human', positions=[0, 2]), TermPositions(term='interface', positions=[1])]
    >>> corpus.global_term_freq('human', 'contents')
    2

"""

from collections import Counter, defaultdict
import logging
import math

from semvec import utils
from semvec.interfaces import PositionalCorpusABC, TermPositions

logger = logging.getLogger(__name__)

TERM_WEIGHTS = ('none', 'idf', 'logentropy', 'sqrt')


def df2idf(docfreq, totaldocs, log_base=2.0, add=0.0):
    r"""Compute inverse-document-frequency for a term with the given document frequency `docfreq`:
    :math:`idf = add + log_{log\_base} \frac{totaldocs}{docfreq}`

    """
    return add + math.log(float(totaldocs) / docfreq) / math.log(log_base)


class PositionalTextCorpus(PositionalCorpusABC):
    """Corpus reader holding term positions, term statistics and the term filter in memory.

    Parameters
    ----------
    documents : iterable of {list of str, dict of (str, list of str)}
        Tokenized documents.
    doc_ids : list of str, optional
        External document names, in the same order as `documents`. Defaults to the document's index.
    min_frequency : int, optional
        Terms occurring fewer times in a field are filtered out.
    max_frequency : int, optional
        Terms occurring more times in a field are filtered out.
    stoplist : iterable of str, optional
        Terms that are always filtered out.
    trim_rule : function, optional
        Vocabulary trimming rule, see :func:`~semvec.utils.keep_vocab_item`.
    term_weight : {'none', 'idf', 'logentropy', 'sqrt'}, optional
        Global term weighting used when superposing vectors.

    """
    def __init__(
            self, documents, doc_ids=None, min_frequency=0, max_frequency=None, stoplist=(),
            trim_rule=None, term_weight='none',
        ):
        if term_weight not in TERM_WEIGHTS:
            raise ValueError("unknown term_weight %r, expected one of %s" % (term_weight, ', '.join(TERM_WEIGHTS)))
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency
        self.stoplist = frozenset(stoplist)
        self.trim_rule = trim_rule
        self.term_weight = term_weight

        self.documents = []
        self.term_freqs = defaultdict(Counter)
        self.doc_freqs = defaultdict(Counter)
        fields = []
        for document in documents:
            if not isinstance(document, dict):
                document = {'contents': document}
            term_vectors = {}
            for field, tokens in document.items():
                if field not in fields:
                    fields.append(field)
                positions = defaultdict(list)
                for position, token in enumerate(tokens):
                    positions[token].append(position)
                self.term_freqs[field].update(tokens)
                self.doc_freqs[field].update(positions.keys())
                term_vectors[field] = [TermPositions(term, positions[term]) for term in sorted(positions)]
            self.documents.append(term_vectors)
        self.contents_fields = tuple(fields) or ('contents',)

        if doc_ids is None:
            self.doc_ids = None
        else:
            self.doc_ids = list(doc_ids)
            if len(self.doc_ids) != len(self.documents):
                raise ValueError("got %i doc_ids for %i documents" % (len(self.doc_ids), len(self.documents)))

        self.weights = {field: self._compute_weights(field) for field in self.contents_fields}
        logger.info(
            "built %s from %i documents with %i unique terms in %i fields",
            self.__class__.__name__, len(self.documents),
            sum(len(freqs) for freqs in self.term_freqs.values()), len(self.contents_fields),
        )

    @classmethod
    def from_file(cls, fname, lowercase=False, encoding='utf8', **kwargs):
        """Read one document per line, tokens separated by whitespace.

        Parameters
        ----------
        fname : str
            Path or smart_open URI; compressed files are decompressed transparently.
        lowercase : bool, optional
            Lowercase all tokens.
        encoding : str, optional
            Text encoding.
        **kwargs
            Passed to the constructor.

        """
        logger.info("reading documents from %s", fname)
        documents = []
        with utils.open(fname, 'rb') as fin:
            for line in fin:
                line = line.decode(encoding)
                if lowercase:
                    line = line.lower()
                documents.append(line.split())
        return cls(documents, **kwargs)

    def _compute_weights(self, field):
        num_docs = len(self.documents)
        freqs = self.term_freqs[field]
        if self.term_weight == 'none':
            return None
        if self.term_weight == 'idf':
            return {term: df2idf(df, num_docs) for term, df in self.doc_freqs[field].items()}
        if self.term_weight == 'sqrt':
            return {term: 1.0 / math.sqrt(freq) for term, freq in freqs.items()}

        # log entropy: 1 + sum_j p_ij * log(p_ij) / log(num_docs + 1), p_ij = tf_ij / gf_i
        entropy = defaultdict(float)
        for term_vectors in self.documents:
            for term, positions in term_vectors.get(field, ()):
                p = float(len(positions)) / freqs[term]
                entropy[term] += p * math.log(p)
        return {term: 1.0 + entropy[term] / math.log(num_docs + 1) for term in freqs}

    def __len__(self):
        return len(self.documents)

    def num_docs(self):
        return len(self.documents)

    def has_positions(self):
        return True

    def terms(self, field):
        return iter(sorted(self.term_freqs.get(field, ())))

    def term_vector(self, doc_id, field):
        return self.documents[doc_id].get(field)

    def global_term_freq(self, term, field):
        return self.term_freqs[field][term]

    def global_term_weight(self, term, field):
        weights = self.weights.get(field)
        if weights is None:
            return 1.0
        return weights.get(term, 0.0)

    def term_filter(self, term, field):
        if term in self.stoplist:
            return False
        freq = self.term_freqs[field][term]
        if not freq:
            return False
        if self.max_frequency is not None and freq > self.max_frequency:
            return False
        return utils.keep_vocab_item(term, freq, self.min_frequency, self.trim_rule)

    def external_doc_id(self, doc_id):
        if self.doc_ids is None:
            return str(doc_id)
        return self.doc_ids[doc_id]
