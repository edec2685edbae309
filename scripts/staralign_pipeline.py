#!/usr/bin/env python -Es
"""Align RNA-seq reads to a genome using STAR two-pass alignment.

Splits input FASTQ files into chunks, builds a genome index, aligns a first
pass to discover splice junctions, re-indexes with well supported junctions,
aligns a second pass and merges chunk alignments into one BAM per sample.
Work is submitted to the cluster with qbatch. Completed stages write
`<stage>.done` markers in the working directory, so re-running the same
command after a failure resumes from the failed stage.

Usage:
  staralign_pipeline.py --workdir STR --RNA-seq-dir STR --ref-genome STR
     [--runtime HH:MM:SS] [--sj-support INT] [--debug [INT]] [--config YAML]

Exit codes: 1 for input or stage failures, 2 for invalid options and 127
when qbatch, STAR or samtools are not available.
"""
import sys

from staralign.pipeline import clargs

if __name__ == "__main__":
    sys.exit(clargs.run(sys.argv[1:]))
