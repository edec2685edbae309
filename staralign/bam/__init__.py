"""Functionality to manage BAM files produced by alignment.
"""
import os

from staralign import utils
from staralign.ngsalign import star


def merge_command(samtools, bam_files, out_file, num_cores=10):
    """Merge chunk level BAM files into a single per-sample BAM.
    """
    return "{samtools} merge -f -@ {num_cores} {out_file} {bams}".format(
        samtools=samtools, num_cores=num_cores, out_file=out_file,
        bams=" ".join(bam_files))

def merged_bam(out_dir, name):
    return os.path.join(out_dir, "%s.bam" % name)

def merge_commands(samtools, samples, mapping_dir, out_dir, num_cores=10):
    """One merge command per sample, using the exact chunk BAMs from alignment.

    samples maps a sample name to its alignment units.
    """
    cmds = []
    for name, units in samples.items():
        bam_files = [star.sorted_bam(mapping_dir, u) for u in units]
        cmds.append(merge_command(samtools, bam_files, merged_bam(out_dir, name), num_cores))
    return cmds

def missing_merged(samples, out_dir):
    """Merged BAM files which are absent or empty.
    """
    return [merged_bam(out_dir, name) for name in samples
            if not utils.file_exists(merged_bam(out_dir, name))]
