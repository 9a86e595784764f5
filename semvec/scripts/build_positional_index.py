#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html


"""
USAGE: %(program)s CORPUS [-output_dir DIR] [-dimension DIM] [-seedlength SEED] [-window_radius RADIUS]
[-positional_method METHOD] [-vector_type TYPE] [-training_cycles CYCLES] [-threads THREADS] [-negative NEG]
[-sample SAMPLE] [-min_count MIN-COUNT] [-term_weight WEIGHT] [-doc_vectors] [-binary]

Trains term vectors from the co-occurrence of terms within a sliding window over the text file CORPUS,
one document per line with whitespace separated tokens. CORPUS may be compressed (.gz, .bz2) or remote
(s3://, http://, ...).

Writes to the output directory:
        termtermvectors.(txt|bin)
                The learned semantic term vectors.
        elementalvectors.(txt|bin)
                The elemental vectors; pass them to -initial_elemental_vectors to retrain over another corpus.
        docvectors.(txt|bin)
                Document vectors, with -positional_method embeddings -doc_vectors.
        numbervectors.(txt|bin)
                The vectors encoding window offsets, with -positional_method proximity.

Example: python -m semvec.scripts.build_positional_index data.txt.gz -output_dir vectors \
         -positional_method permutation -dimension 512 -window_radius 3 -threads 4
"""

import argparse
import logging
import os
import sys

from semvec.corpora.textcorpus import PositionalTextCorpus, TERM_WEIGHTS
from semvec.models.positional import PositionalMethod
from semvec.models.termterm import TermTermVectors
from semvec.vectors import VectorType
from semvec.vectorstore import VectorStore

logger = logging.getLogger(__name__)


def build_positional_index(args):
    """Read the corpus, train the vectors and write them out, as configured by the parsed command line `args`.

    Returns
    -------
    :class:`~semvec.models.termterm.TermTermVectors`
        The trained model.

    """
    corpus = PositionalTextCorpus.from_file(
        args.corpus, lowercase=args.lowercase, min_frequency=args.min_count,
        max_frequency=args.max_count, term_weight=args.term_weight,
    )

    elemental_vectors, semantic_vectors = None, None
    if args.initial_elemental_vectors:
        elemental_vectors = VectorStore.load_word2vec_format(
            args.initial_elemental_vectors, binary=args.binary, vector_type=args.vector_type,
        )
    if args.initial_semantic_vectors:
        semantic_vectors = VectorStore.load_word2vec_format(
            args.initial_semantic_vectors, binary=args.binary, vector_type=args.vector_type,
        )

    model = TermTermVectors(
        corpus, elemental_vectors=elemental_vectors, semantic_vectors=semantic_vectors,
        dimension=args.dimension, vector_type=args.vector_type, seedlength=args.seedlength,
        window_radius=args.window_radius, positional_method=args.positional_method,
        training_cycles=args.training_cycles, workers=args.threads, negative=args.negative,
        sampling_threshold=args.sample, subsample_in_window=args.subsample_in_window,
        alpha=args.alpha, min_alpha=args.min_alpha, doc_vectors=args.doc_vectors, seed=args.seed,
    )

    suffix = '.bin' if args.binary else '.txt'
    os.makedirs(args.output_dir, exist_ok=True)
    model.semantic_vectors.save_word2vec_format(
        os.path.join(args.output_dir, 'termtermvectors' + suffix), binary=args.binary,
    )
    model.elemental_vectors.save_word2vec_format(
        os.path.join(args.output_dir, 'elementalvectors' + suffix), binary=args.binary,
    )
    if model.document_vectors is not None:
        model.save_document_vectors(os.path.join(args.output_dir, 'docvectors' + suffix), binary=args.binary)
    if model.number_vectors is not None:
        model.number_vectors.save_word2vec_format(
            os.path.join(args.output_dir, 'numbervectors' + suffix), binary=args.binary,
        )
    return model


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description=__doc__.split('\n\n')[1], formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("corpus", help="Text file with one document per line")
    parser.add_argument("-output_dir", help="Write the vector files to directory OUTPUT_DIR", default=".")
    parser.add_argument("-dimension", help="Set size of vectors; default is 200", type=int, default=200)
    parser.add_argument(
        "-seedlength", help="Set number of non-zero entries of sparse elemental vectors; default is 10",
        type=int, default=10,
    )
    parser.add_argument(
        "-window_radius", help="Set number of terms on each side of the focus term; default is 2",
        type=int, default=2,
    )
    parser.add_argument(
        "-positional_method", help="Set how term order is encoded; default is basic",
        choices=[method.value for method in PositionalMethod], default=PositionalMethod.BASIC.value,
    )
    parser.add_argument(
        "-vector_type", help="Set vector representation; default is real",
        choices=[vector_type.value for vector_type in VectorType], default=VectorType.REAL.value,
    )
    parser.add_argument(
        "-training_cycles", help="Run more training cycles after the first one (default 0)", type=int, default=0,
    )
    parser.add_argument("-threads", help="Use THREADS threads (default 3)", type=int, default=3)
    parser.add_argument(
        "-negative", help="Number of negative examples for embeddings; default is 5", type=int, default=5,
    )
    parser.add_argument(
        "-sample",
        help="Set threshold for occurrence of terms. "
             "Those that appear with higher frequency in the training data will be randomly down-sampled; "
             "default is -1 (off), useful range is (0, 1e-3)",
        type=float, default=-1.0,
    )
    parser.add_argument(
        "-subsample_in_window", help="Draw the window radius at random for every focus term",
        action="store_true",
    )
    parser.add_argument("-alpha", help="Set the starting learning rate; default is 0.025", type=float, default=0.025)
    parser.add_argument("-min_alpha", help="Set the final learning rate; default is 0.0001", type=float, default=0.0001)
    parser.add_argument(
        "-min_count", help="This will discard terms that appear less than MIN_COUNT times; default is 0",
        type=int, default=0,
    )
    parser.add_argument("-max_count", help="This will discard terms that appear more than MAX_COUNT times", type=int)
    parser.add_argument(
        "-term_weight", help="Set global weighting of superposed vectors; default is none",
        choices=TERM_WEIGHTS, default='none',
    )
    parser.add_argument("-lowercase", help="Lowercase the corpus", action="store_true")
    parser.add_argument("-doc_vectors", help="Train document vectors too (embeddings only)", action="store_true")
    parser.add_argument("-initial_elemental_vectors", help="Retrain with the elemental vectors from this file")
    parser.add_argument(
        "-initial_semantic_vectors", help="Continue training embeddings from the term vectors in this file",
    )
    parser.add_argument("-binary", help="Read and write vectors in binary mode", action="store_true")
    parser.add_argument("-seed", help="Seed for the random number generator", type=int)
    return parser.parse_args(argv)


if __name__ == "__main__":
    logging.basicConfig(format='%(asctime)s : %(threadName)s : %(levelname)s : %(message)s', level=logging.INFO)
    logger.info("running %s", " ".join(sys.argv))

    args = parse_args()
    model = build_positional_index(args)
    logger.info("trained %s", model)

    logger.info("finished running %s", os.path.basename(sys.argv[0]))
