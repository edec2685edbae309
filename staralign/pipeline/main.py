"""Main entry point for STAR two-pass RNA-seq alignment.

Handles running the full pipeline: split reads into chunks, index the
genome, align a first pass to discover splice junctions, re-index with the
supported junctions, align a second pass and merge chunks per sample.
"""
import os

from staralign import bam, log, utils
from staralign.bam import fastq
from staralign.log import logger
from staralign.ngsalign import star
from staralign.pipeline import config_utils, version
from staralign.pipeline.stages import LocalStage, Stage, run_stages
from staralign.rnaseq import junctions

REQUIRED_PROGRAMS = ["qbatch", "STAR", "samtools"]
SJDB_FILE = "sjdb.out"


class ValidationError(Exception):
    pass


def run_main(workdir, rnaseq_dir, ref_genome, runtime=None, sj_support=None,
             debug=0, config_file=None, command=None):
    """Run the two-pass alignment pipeline, resuming from completed stages.
    """
    config = config_utils.load_config(config_file)
    config["debug"] = bool(debug)
    _validate_inputs(workdir, rnaseq_dir, ref_genome)
    workdir = os.path.abspath(workdir)
    log.setup_local_logging(config, workdir)
    programs = dict((p, config_utils.get_program(p, config)) for p in REQUIRED_PROGRAMS)
    runtime = config_utils.validate_runtime(runtime or config_utils.get_algorithm("runtime", config))
    sj_support = int(sj_support if sj_support is not None
                     else config_utils.get_algorithm("sj_support", config))

    logger.info("Starting staralign")
    if command:
        logger.info("Command-line: %s" % command)
    logger.info("Version: %s" % version.__version__)
    params = [("WORKDIR", workdir), ("RNADIR", os.path.abspath(rnaseq_dir)),
              ("GENOME", os.path.abspath(ref_genome)), ("RUNTIME", runtime),
              ("SJSUPPORT", sj_support)]
    for name, val in params:
        logger.info("PARAM: %s = %s" % (name, val))

    fmt = fastq.detect_fastq_format(rnaseq_dir)
    files = fastq.find_read_files(os.path.abspath(rnaseq_dir), fmt)
    no_end = fastq.files_without_read_end(files, fmt)
    if no_end:
        raise ValidationError("FASTQ files must end in 1 or 2 before %s: %s"
                              % (fmt, ", ".join(os.path.basename(f) for f in no_end)))
    read_end = fastq.read_end_mode(files, fmt)
    overhang = fastq.estimate_overhang(files, fmt)
    for name, val in [("READLEN", overhang), ("READEND", read_end), ("FQFORMAT", fmt)]:
        logger.info("PARAM: %s = %s" % (name, val))

    dirs = setup_directories(workdir)
    stages = build_stages(dirs, programs, config, files, fmt, os.path.abspath(ref_genome),
                          overhang, sj_support)
    ran = run_stages(stages, workdir, config, runtime, local_threads=int(debug or 0))
    if not ran:
        logger.info("All stages already complete, nothing to do.")
    logger.info("Finished staralign, merged BAM files in %s" % dirs["final"])
    return dirs["final"]

def _validate_inputs(workdir, rnaseq_dir, ref_genome):
    if not workdir or not os.path.isdir(workdir):
        raise ValidationError("WORKDIR not defined or does not exist")
    elif not rnaseq_dir or not os.path.isdir(rnaseq_dir):
        raise ValidationError("RNADIR not defined or does not exist")
    elif not ref_genome or not os.path.isfile(ref_genome):
        raise ValidationError("GENOME not defined or does not exist")

def setup_directories(workdir):
    dirs = {"work": workdir,
            "index1": os.path.join(workdir, "Index", "1st_Index"),
            "index2": os.path.join(workdir, "Index", "2nd_Index"),
            "split": os.path.join(workdir, "Split_Fastq"),
            "mapping1": os.path.join(workdir, "RNA_Mapping", "1st_Mapping"),
            "mapping2": os.path.join(workdir, "RNA_Mapping", "2nd_Mapping"),
            "final": os.path.join(workdir, "Final_Bam")}
    for d in dirs.values():
        utils.safe_makedir(d)
    return dirs

def build_stages(dirs, programs, config, files, fmt, ref_genome, overhang, sj_support):
    """Define the ordered pipeline stages and how each generates its commands.
    """
    sjdb_file = os.path.join(dirs["work"], SJDB_FILE)
    split_r = config_utils.get_resources("split", config)
    index_r = config_utils.get_resources("index", config)
    align_r = config_utils.get_resources("align", config)
    merge_r = config_utils.get_resources("merge", config)
    star_path = programs["STAR"]

    def _split():
        return fastq.split_commands(files, fmt, dirs["split"],
                                    config_utils.get_algorithm("split_lines", config))

    def _index(index_dir, sjdb=None):
        def generate():
            return [star.index_command(star_path, ref_genome, index_dir, dirs["work"],
                                       index_r["cores"], index_r["ram"], sjdb,
                                       overhang if sjdb else None)]
        return generate

    def _align(index_dir, out_dir, sjdb=None):
        def generate():
            return star.align_commands(star_path, index_dir, fastq.chunk_groups(dirs["split"]),
                                       out_dir, align_r["cores"], sjdb)
        return generate

    def _find_sj():
        junctions.collect_junctions(dirs["mapping1"], sjdb_file, sj_support, config)

    def _check_sj():
        if not utils.file_exists(sjdb_file):
            return ["no splice junctions with support above %s in %s" % (sj_support, sjdb_file)]
        return []

    def _samples():
        return fastq.group_by_sample(fastq.chunk_groups(dirs["split"]))

    def _merge():
        return bam.merge_commands(programs["samtools"], _samples(), dirs["mapping2"],
                                  dirs["final"], merge_r["cores"])

    def _check_merge():
        return ["missing or empty merged BAM %s" % f
                for f in bam.missing_merged(_samples(), dirs["final"])]

    return [Stage("Split_Files", _split, split_r),
            Stage("1st_Index", _index(dirs["index1"]), index_r),
            Stage("1st_Align", _align(dirs["index1"], dirs["mapping1"]), align_r),
            LocalStage("Find_SJ", _find_sj, _check_sj),
            Stage("2nd_Index", _index(dirs["index2"], sjdb_file), index_r),
            Stage("2nd_Align", _align(dirs["index2"], dirs["mapping2"], sjdb_file), align_r),
            Stage("Merge_Bam", _merge, merge_r, verify=_check_merge)]
