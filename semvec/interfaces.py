#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""Basic interfaces used across the whole semvec package.

The interfaces are realized as abstract base classes. Subclasses should inherit from these interfaces
and implement the missing methods.

"""

from collections import namedtuple
import logging

from semvec import utils


logger = logging.getLogger(__name__)


TermPositions = namedtuple('TermPositions', 'term positions')
"""One term of a document's term vector: the term text plus the sorted positions at which it occurs.
The term's in-document frequency is ``len(positions)``."""


class PositionalCorpusABC(utils.SaveLoad):
    """Interface for corpus readers that expose per-document term positions.

    Documents are addressed by an internal integer id in ``range(num_docs())``. Each document may have several
    fields (e.g. title, contents); term vectors, frequencies, weights and filtering are per field.

    This is the only view of the corpus the training code in :mod:`semvec.models.termterm` needs:

    * the number of documents, and a way to map internal ids to external names,
    * for each (document, field) the sequence of :class:`~semvec.interfaces.TermPositions`,
    * global statistics per term: the collection frequency and a global weight,
    * the inclusion filter deciding which terms get vectors at all.

    """
    contents_fields = ('contents',)

    def num_docs(self):
        """Get the number of documents in the corpus."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def has_positions(self):
        """Whether the corpus stores term positions (term-term training is impossible without them)."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def terms(self, field):
        """Iterate over all distinct terms of `field`."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def term_vector(self, doc_id, field):
        """Get the term positions of one document field.

        Returns
        -------
        list of :class:`~semvec.interfaces.TermPositions` or None
            None if the document has no positional data for this field.

        Raises
        ------
        IOError
            If the document could not be read.

        """
        raise NotImplementedError('cannot instantiate abstract base class')

    def global_term_freq(self, term, field):
        """Get the number of occurrences of `term` in `field` across the whole corpus."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def global_term_weight(self, term, field):
        """Get the global weight used when superposing the vector of `term`."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def term_filter(self, term, field):
        """Whether `term` should get a vector."""
        raise NotImplementedError('cannot instantiate abstract base class')

    def external_doc_id(self, doc_id):
        """Get the external name of a document, used when writing document vectors."""
        return str(doc_id)
