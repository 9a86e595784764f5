#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Licensed under the GNU LGPL v2.1 - https://www.gnu.org/licenses/old-licenses/lgpl-2.1.en.html

"""
Run with::

    python ./setup.py install
"""

from pathlib import Path

from setuptools import find_packages, setup

# packages included for build-testing everywhere
core_testenv = [
    'pytest',
    'pytest-cov',
    'testfixtures',
]

install_requires = [
    'numpy >= 1.18.5',
    'scipy >= 1.7.0',
    'smart_open >= 1.8.1',
]

setup(
    name='semvec',
    version='0.1.0.dev0',
    description='Python framework for training term vectors from positional co-occurrence',
    long_description=Path("README.md").read_text(),
    long_description_content_type='text/markdown',
    packages=find_packages(include=['semvec', 'semvec.*']),

    license='LGPL-2.1-only',

    keywords='Random Indexing, Reflective Random Indexing, Holographic Reduced Representations, '
        'Binary Spatter Codes, Permutation, Skip-gram, Negative Sampling, word2vec',

    platforms='any',

    zip_safe=False,

    classifiers=[  # from https://pypi.org/classifiers/
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Science/Research',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Topic :: Scientific/Engineering :: Information Analysis',
        'Topic :: Text Processing :: Linguistic',
    ],

    test_suite="semvec.test",
    python_requires='>=3.8',
    install_requires=install_requires,
    tests_require=core_testenv,
    extras_require={
        'test': core_testenv,
    },

    include_package_data=True,
)
