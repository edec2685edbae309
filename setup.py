#!/usr/bin/env python

"""Setup file and install script for STAR two-pass RNA-seq alignment"""

import os
import subprocess

import setuptools

VERSION = '0.2.0'

# add version number and git commit hash of the current revision to version.py
try:
    git_run = subprocess.run(['git', 'rev-parse', '--short', 'HEAD'], stdout=subprocess.PIPE,
                             stderr=subprocess.DEVNULL)
    git_run.check_returncode()
except (subprocess.SubprocessError, OSError):
    commit_hash = ''
else:
    commit_hash = git_run.stdout.strip().decode()

here = os.path.dirname(os.path.abspath(__file__))
with open(os.path.join(here, 'staralign', 'pipeline', 'version.py'), 'w') as version_file:
    version_file.writelines([f'__version__ = "{VERSION}"\n',
                             f'__git_revision__ = "{commit_hash}"\n'])

# STAR, samtools and qbatch are installed separately, for instance via Conda
setuptools.setup(
    name='staralign',
    version=VERSION,
    description='Resumable STAR two-pass alignment pipeline for RNA-seq',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    scripts=['scripts/staralign_pipeline.py'],
    python_requires='>=3.7',
    install_requires=[
        'biopython',
        'logbook',
        'pandas',
        'pyyaml',
        'toolz',
    ],
    extras_require={
        'test': ['mock', 'pytest', 'pytest-mock'],
    },
)
