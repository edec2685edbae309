"""Discover input FASTQ files, group them into samples and prepare split chunks.

Input files end with the read end (1 or 2) directly before the FASTQ
extension, for example `sampleA_R1.fastq.gz` and `sampleA_R2.fastq.gz`.
"""
import collections
import os
import re

from Bio import SeqIO

from staralign import utils
from staralign.log import logger

# Checked in priority order, the first format found is used for the run
FASTQ_FORMATS = [".fastq", ".fq", ".fastq.gz", ".fq.gz"]
READ_ENDS = ("1", "2")

AlignUnit = collections.namedtuple("AlignUnit", ["sample", "chunk", "reads"])

_chunk_pat = re.compile(r"^(?P<stem>.+)_(?P<chunk>\d{4,})$")

def detect_fastq_format(in_dir):
    """Identify the FASTQ extension used by files in the input directory.
    """
    fnames = [f for f in os.listdir(in_dir) if os.path.isfile(os.path.join(in_dir, f))]
    for fmt in FASTQ_FORMATS:
        if any(f.endswith(fmt) for f in fnames):
            return fmt
    raise ValueError("Fastq files could not be found in %s" % in_dir)

def find_read_files(in_dir, fmt):
    """Retrieve all FASTQ files with the given format, sorted by name.
    """
    return utils.sort_filenames([os.path.join(in_dir, f) for f in os.listdir(in_dir)
                                 if f.endswith(fmt)])

def read_end(fname, fmt):
    stem = file_stem(fname, fmt)
    return stem[-1] if stem and stem[-1] in READ_ENDS else None

def file_stem(fname, fmt):
    base = os.path.basename(fname)
    return base[:len(base) - len(fmt)] if base.endswith(fmt) else base

def files_without_read_end(files, fmt):
    """Input files whose name does not end in a read end before the extension.
    """
    return [f for f in files if read_end(f, fmt) is None]

def read_end_mode(files, fmt):
    """Decide if the run is single end, paired end or a mix of both.
    """
    r1 = [f for f in files if read_end(f, fmt) == "1"]
    r2 = [f for f in files if read_end(f, fmt) == "2"]
    if r2 and len(r1) == len(r2):
        return "pair"
    elif not r2:
        return "single"
    else:
        return "both"

def rstrip_extra(fname):
    """Strip extraneous, non-discriminative filename info from the end of a file.
    """
    to_strip = ("_R", ".R", "-R", "_", ".", "-")
    while fname.endswith(to_strip):
        for x in to_strip:
            if fname.endswith(x):
                fname = fname[:len(fname) - len(x)]
                break
    return fname

def sample_name(sample):
    """Clean name for a sample, used to name merged output BAM files.
    """
    return rstrip_extra(sample) or sample

def estimate_maximum_read_length(fastq_file, quality_format="fastq-sanger",
                                 nreads=250):
    """
    estimate maximum read length of a fastq file from the first reads
    """
    lengths = []
    with utils.open_possible_gzip(fastq_file) as in_handle:
        for i, rec in enumerate(SeqIO.parse(in_handle, quality_format)):
            if i >= nreads:
                break
            lengths.append(len(rec.seq))
    return max(lengths) if lengths else 0

def estimate_overhang(files, fmt, nreads=250):
    """Splice junction overhang for indexing: maximum read-1 length minus one.
    """
    r1_files = [f for f in files if read_end(f, fmt) == "1"] or files
    max_length = max([estimate_maximum_read_length(f, nreads=nreads) for f in r1_files] or [0])
    if max_length < 2:
        raise ValueError("Could not estimate read length from %s" % ", ".join(r1_files))
    return max_length - 1

def split_commands(files, fmt, split_dir, lines=4000000):
    """Commands to split each FASTQ into fixed size chunks named <stem>_NNNN.
    """
    cmds = []
    for fname in files:
        prefix = os.path.join(split_dir, "%s_" % file_stem(fname, fmt))
        if utils.is_gzipped(fname):
            cmds.append("zcat {fname} | split -dl {lines} -a 4 - {prefix}".format(**locals()))
        else:
            cmds.append("split -dl {lines} -a 4 {fname} {prefix}".format(**locals()))
    return cmds

def list_chunks(split_dir):
    """Retrieve split FASTQ chunks, keyed by (sample, chunk) and read end.
    """
    chunks = collections.defaultdict(dict)
    for fname in sorted(os.listdir(split_dir)):
        match = _chunk_pat.match(fname)
        if not match:
            continue
        stem = match.group("stem")
        end = stem[-1]
        if end not in READ_ENDS:
            logger.warning("Skipping split file without read end: %s" % fname)
            continue
        chunks[(stem[:-1], match.group("chunk"))][end] = os.path.join(split_dir, fname)
    return chunks

def chunk_groups(split_dir):
    """Group split chunks into alignment units: paired (r1, r2) or single (r1,).
    """
    units = []
    for (sample, chunk), ends in sorted(list_chunks(split_dir).items()):
        if "1" not in ends:
            raise ValueError("Found read 2 chunk without a matching read 1: %s" % ends["2"])
        reads = (ends["1"], ends["2"]) if "2" in ends else (ends["1"],)
        units.append(AlignUnit(sample, chunk, reads))
    return units

def group_by_sample(units):
    """Organize alignment units by cleaned sample name.
    """
    out = collections.OrderedDict()
    for unit in units:
        out.setdefault(sample_name(unit.sample), []).append(unit)
    return out
