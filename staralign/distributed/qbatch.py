"""Commandline interaction with the qbatch cluster job submission tool.

qbatch takes a file of shell commands, one job per line, and submits them
to the cluster scheduler. With `-W` it blocks until every job finishes and
each job writes its stderr to `<log_dir>/<name>.e<jobid>`.
"""
import glob
import os

from staralign import utils
from staralign.log import logger
from staralign.provenance import do

def submit_cl(qbatch, submit_file, log_dir, name, resources, runtime=None,
              local_threads=0, wait=True):
    """Build the qbatch command line for submitting a file of commands.

    resources holds scheduler hints: `threads` (-p), `memory` (-R, in Gb)
    and `max_concurrent` (-S). `local_threads` runs jobs on the local
    machine instead of the cluster (-T).
    """
    cl = [qbatch, "submit"]
    local_threads = resources.get("local_threads") or local_threads
    if local_threads:
        cl += ["-T", str(local_threads)]
    if wait:
        cl += ["-W"]
    if resources.get("memory"):
        cl += ["-R", str(resources["memory"])]
    if resources.get("threads"):
        cl += ["-p", str(resources["threads"])]
    if resources.get("max_concurrent"):
        cl += ["-S", str(resources["max_concurrent"])]
    if runtime:
        cl += ["-t", str(runtime)]
    cl += ["-n", name, submit_file, log_dir]
    return cl

def submit(qbatch, submit_file, log_dir, name, resources, runtime=None,
           local_threads=0):
    """Submit a file of commands and block until the scheduler reports completion.
    """
    utils.safe_makedir(log_dir)
    cl = submit_cl(qbatch, submit_file, log_dir, name, resources, runtime,
                   local_threads)
    do.run(cl, "Submitting %s to batch scheduler" % os.path.basename(submit_file))
    return log_dir

def job_logs(log_dir, name):
    """Retrieve per-job stderr logs written by the scheduler for a submission.
    """
    return sorted(glob.glob(os.path.join(log_dir, "%s.e*" % name)))

def count_tokens(log_dir, name, token):
    """Count occurrences of a success token across a submission's job logs.
    """
    total = 0
    for log_file in job_logs(log_dir, name):
        with open(log_file, errors="replace") as in_handle:
            total += in_handle.read().count(token)
    logger.debug("Found %s occurrences of '%s' in %s" % (total, token, log_dir))
    return total

def with_token(cmd, token):
    """Suffix a command so it reports the success token on stderr when it exits cleanly.

    Failures anywhere in a pipe, such as a truncated gzip input, count as failures.
    """
    return "( set -o pipefail; %s ) && echo '%s' 1>&2" % (cmd, token)

def touch(fname):
    """Write an empty marker file.
    """
    utils.safe_makedir(os.path.dirname(fname))
    with open(fname, "w"):
        pass
    return fname
