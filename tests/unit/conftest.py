"""Shared fixtures for unit tests.

External tools are never run: batch submissions are replaced by a fake
scheduler writing the job logs and outputs a successful run would leave.
"""
import gzip
import os

import pytest

from staralign.pipeline import config_utils

TOKEN = config_utils.DEFAULT_ALGORITHM["success_token"]


def write_fastq(fname, nreads=10, length=50):
    """Write a FASTQ file of identical reads, gzipped if named .gz."""
    opener = gzip.open if fname.endswith(".gz") else open
    with opener(fname, "wt") as out_handle:
        for i in range(nreads):
            out_handle.write("@read%s\n%s\n+\n%s\n" % (i, "A" * length, "I" * length))
    return fname


def write_job_logs(log_dir, name, n, token=TOKEN):
    """Write n scheduler job logs each holding the success token."""
    os.makedirs(log_dir, exist_ok=True)
    for i in range(n):
        with open(os.path.join(log_dir, "%s.e%s" % (name, 1000 + i)), "w") as out_handle:
            out_handle.write("starting job\n%s\n" % token)


def submitted_commands(submit_file):
    with open(submit_file) as in_handle:
        return [l for l in in_handle.read().splitlines() if l.strip()]


@pytest.fixture
def fastq_writer():
    return write_fastq


@pytest.fixture
def no_program_lookup(mocker):
    """Resolve external programs to their bare names."""
    yield mocker.patch('staralign.pipeline.config_utils.get_program',
                       side_effect=lambda name, config, default=None: name)


@pytest.fixture
def fake_scheduler(mocker):
    """Replace qbatch submission with a scheduler running every command successfully.

    Stage outputs are created through `outputs`, a dictionary of stage name
    to callable taking the work directory. `failures` maps a stage name to
    the number of jobs which should not report success.
    """
    class FakeScheduler(object):
        def __init__(self):
            self.outputs = {}
            self.failures = {}
            self.submitted = []

        def __call__(self, qbatch_cmd, submit_file, log_dir, name, resources,
                     runtime=None, local_threads=0):
            stage = name.replace(".submit", "")
            work_dir = os.path.dirname(submit_file)
            self.submitted.append(stage)
            if stage in self.outputs:
                self.outputs[stage](work_dir)
            n = len(submitted_commands(submit_file)) - self.failures.get(stage, 0)
            write_job_logs(log_dir, name, n)
            return log_dir

    scheduler = FakeScheduler()
    mocker.patch('staralign.distributed.qbatch.submit', side_effect=scheduler)
    return scheduler


@pytest.fixture
def read_submitted():
    return submitted_commands
