"""Parsing of command line arguments and mapping of failures to exit codes.
"""
import argparse
import os
import subprocess
import sys

from staralign.log import logger
from staralign.pipeline import config_utils, main, version
from staralign.pipeline.stages import StageFailure

EXIT_FAILURE = 1
EXIT_MISSING_CMD = 127


def parse_cl_args(in_args):
    """Parse input commandline arguments into keyword arguments for run_main.

    Invalid options exit with status 2 from argparse.
    """
    description = ("Run a pipeline to align RNA-seq reads to a genome using STAR "
                   "two-pass alignment, submitting work through qbatch.")
    epilog = ("FASTQ files should end in [1,2] followed by .fastq, .fq, .fastq.gz or "
              ".fq.gz, be adapter trimmed and be the only FASTQ files in the "
              "RNA-seq directory. Pass absolute paths, since they are used in "
              "cluster submissions.")
    parser = argparse.ArgumentParser(description=description, epilog=epilog)
    parser.add_argument("--workdir",
                        help="Path for working directory")
    parser.add_argument("--RNA-seq-dir", dest="rnaseq_dir",
                        help="Path for directory with RNA-seq files")
    parser.add_argument("--ref-genome",
                        help="Path for genome fasta file")
    parser.add_argument("--runtime", metavar="HH:MM:SS",
                        help="Runtime for job submissions [12:0:0]")
    parser.add_argument("--sj-support", type=int,
                        help="Minimum support for splice junctions [20]")
    parser.add_argument("--debug", type=int, nargs="?", const=1, default=0,
                        help="Debug mode to run test data on a local number of threads")
    parser.add_argument("--config",
                        help="YAML configuration with program locations and resources")
    parser.add_argument("-v", "--version", action="version",
                        version="%(prog)s " + version.__version__)
    args = parser.parse_args(in_args)
    return {"workdir": args.workdir,
            "rnaseq_dir": args.rnaseq_dir,
            "ref_genome": args.ref_genome,
            "runtime": args.runtime,
            "sj_support": args.sj_support,
            "debug": args.debug,
            "config_file": args.config}

def run(in_args):
    """Run the pipeline from commandline arguments, returning an exit code.
    """
    kwargs = parse_cl_args(in_args)
    kwargs["command"] = " ".join([os.path.basename(sys.argv[0])] + list(in_args))
    try:
        main.run_main(**kwargs)
    except config_utils.CmdNotFound as e:
        logger.error("ERROR: %s" % e)
        return EXIT_MISSING_CMD
    except (main.ValidationError, ValueError) as e:
        logger.error("ERROR: %s" % e)
        return EXIT_FAILURE
    except (StageFailure, subprocess.CalledProcessError) as e:
        logger.error("ERROR: %s" % e)
        return EXIT_FAILURE
    return 0
