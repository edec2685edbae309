"""Collect splice junctions from a first alignment pass for re-indexing.

STAR reports junctions per alignment in SJ.out.tab with columns: chromosome,
first intron base, last intron base, strand (0 undefined, 1 +, 2 -), intron
motif, annotated flag, uniquely mapping reads, multimapping reads and
maximum overhang. Junctions are summed over all chunks of all samples and
only those with enough unique read support are kept.
"""
import pandas as pd

from staralign import utils
from staralign.distributed.transaction import file_transaction
from staralign.log import logger
from staralign.ngsalign import star

SJ_COLUMNS = ["chrom", "start", "end", "strand", "motif", "annotated",
              "unique", "multi", "overhang"]
OUT_COLUMNS = ["chrom", "start", "end", "strand", "motif", "support"]
STRANDS = {0: ".", 1: "+", 2: "-"}


def read_junctions(sj_file):
    df = pd.read_csv(sj_file, sep="\t", header=None, names=SJ_COLUMNS,
                     dtype={"chrom": str})
    return df

def aggregate_junctions(sj_files):
    """Sum unique read support for each junction over all input files.

    Rows without unique read support are dropped before summing.
    """
    frames = [read_junctions(f) for f in sj_files if utils.file_exists(f)]
    if not frames:
        return pd.DataFrame(columns=OUT_COLUMNS)
    df = pd.concat(frames, ignore_index=True)
    df = df[df["unique"] > 0]
    df = df.assign(strand=df["strand"].map(STRANDS).fillna("."))
    out = (df.groupby(["chrom", "start", "end", "strand", "motif"], sort=False)["unique"]
           .sum().reset_index().rename(columns={"unique": "support"}))
    return out[OUT_COLUMNS]

def filter_junctions(df, min_support):
    """Keep junctions with support strictly above the threshold, sorted by position.
    """
    df = df[df["support"] > int(min_support)]
    return df.sort_values(["chrom", "start"], kind="mergesort").reset_index(drop=True)

def write_sjdb(sj_files, out_file, min_support, config=None):
    """Write filtered junctions in the tab delimited format STAR reads with --sjdbFileChrStartEnd.
    """
    df = filter_junctions(aggregate_junctions(sj_files), min_support)
    logger.info("Keeping %s splice junctions with support above %s from %s files" %
                (len(df), min_support, len(sj_files)))
    with file_transaction(config, out_file) as tx_out_file:
        df.to_csv(tx_out_file, sep="\t", header=False, index=False)
    return out_file

def collect_junctions(mapping_dir, out_file, min_support, config=None):
    """Build sjdb.out from all first pass junction files in a mapping directory.
    """
    sj_files = star.splicejunction_files(mapping_dir)
    if not sj_files:
        logger.warning("No splice junction files found in %s" % mapping_dir)
    return write_sjdb(sj_files, out_file, min_support, config)
