"""Build STAR genome indexing and alignment command lines.

Alignment runs in two passes: the first discovers splice junctions against a
plain genome index, the second aligns against an index rebuilt with the
filtered junctions from the first pass.
"""
import os

from staralign import utils

SORTED_BAM_SUFFIX = "Aligned.sortedByCoord.out.bam"
SJ_SUFFIX = "SJ.out.tab"


def index_command(star_path, ref_file, index_dir, work_dir, num_cores=64,
                  max_ram=225000000000, sjdb_file=None, overhang=None):
    """Command to create a STAR index, optionally including splice junctions.
    """
    cmd = ("cd {work_dir} && {star_path} --runMode genomeGenerate "
           "--runThreadN {num_cores} --genomeDir {index_dir} "
           "--genomeFastaFiles {ref_file} ")
    if sjdb_file:
        cmd += "--sjdbFileChrStartEnd {sjdb_file} "
    cmd += "--limitGenomeGenerateRAM={max_ram}"
    if sjdb_file and overhang:
        cmd += " --sjdbOverhang {overhang}"
    return cmd.format(**locals())

def out_prefix(out_dir, unit):
    return os.path.join(out_dir, "%s_%s" % (unit.sample, unit.chunk))

def align_command(star_path, index_dir, unit, out_dir, num_cores=32, sjdb_file=None):
    """Command to align a single or paired chunk, writing a coordinate sorted BAM.
    """
    fastq_files = " ".join(unit.reads)
    prefix = out_prefix(out_dir, unit)
    cmd = ("{star_path} --genomeDir {index_dir} --readFilesIn {fastq_files} "
           "--outSAMtype BAM SortedByCoordinate --outFileNamePrefix {prefix} "
           "--runThreadN {num_cores} --chimOutType SeparateSAMold --chimSegmentMin 20 ")
    if sjdb_file:
        cmd += "--sjdbFileChrStartEnd {sjdb_file} "
    cmd += ("--chimJunctionOverhangMin 20 --outSAMstrandField intronMotif "
            "--alignSoftClipAtReferenceEnds No")
    return cmd.format(**locals())

def align_commands(star_path, index_dir, units, out_dir, num_cores=32, sjdb_file=None):
    """Alignment commands for all units, paired chunks before single end chunks.
    """
    paired = [u for u in units if len(u.reads) == 2]
    single = [u for u in units if len(u.reads) == 1]
    return [align_command(star_path, index_dir, u, out_dir, num_cores, sjdb_file)
            for u in paired + single]

def sorted_bam(out_dir, unit):
    return out_prefix(out_dir, unit) + SORTED_BAM_SUFFIX

def splicejunction_files(out_dir):
    """
    locate the splice junction files written by STAR into an alignment directory
    """
    return [f for f in utils.sorted_glob(os.path.join(out_dir, "*%s" % SJ_SUFFIX))
            if os.path.isfile(f)]
