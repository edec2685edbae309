import os
import subprocess

import mock
import pytest

from staralign.bam import fastq
from staralign.distributed import qbatch


class TestSubmitCl(object):

    def test_cluster_submission(self):
        resources = {"threads": 16, "memory": 5, "max_concurrent": 4}
        cl = qbatch.submit_cl("qbatch", "/w/1st_Align.submit", "/w/BATCH_1st_Align",
                              "1st_Align.submit", resources, runtime="12:0:0")
        assert cl == ["qbatch", "submit", "-W", "-R", "5", "-p", "16", "-S", "4",
                      "-t", "12:0:0", "-n", "1st_Align.submit",
                      "/w/1st_Align.submit", "/w/BATCH_1st_Align"]

    def test_debug_runs_on_local_threads(self):
        cl = qbatch.submit_cl("qbatch", "s", "l", "n", {}, local_threads=2)
        assert cl[:4] == ["qbatch", "submit", "-T", "2"]
        assert "-t" not in cl

    def test_stage_local_threads_win(self):
        cl = qbatch.submit_cl("qbatch", "s", "l", "n", {"local_threads": 10})
        assert cl[2:4] == ["-T", "10"]


def test_submit_runs_and_creates_log_dir(tmpdir, mocker):
    run = mocker.patch('staralign.distributed.qbatch.do.run')
    log_dir = str(tmpdir.join("BATCH_Split_Files"))
    qbatch.submit("qbatch", "/w/Split_Files.submit", log_dir, "Split_Files.submit",
                  {"local_threads": 10})
    assert os.path.isdir(log_dir)
    run.assert_called_once_with(
        ["qbatch", "submit", "-T", "10", "-W", "-n", "Split_Files.submit",
         "/w/Split_Files.submit", log_dir], mock.ANY)


@pytest.mark.parametrize(('contents', 'expected'), [
    (["TOKEN\n", "TOKEN\n"], 2),
    (["TOKEN\n", "error: out of memory\n"], 1),
    (["TOKEN\nTOKEN\n"], 2),
    ([], 0),
])
def test_count_tokens(tmpdir, contents, expected):
    for i, content in enumerate(contents):
        tmpdir.join("1st_Align.submit.e%s" % i).write(content)
    tmpdir.join("1st_Align.submit.o0").write("TOKEN\n")
    assert qbatch.count_tokens(str(tmpdir), "1st_Align.submit", "TOKEN") == expected


def test_count_tokens_missing_dir(tmpdir):
    assert qbatch.count_tokens(str(tmpdir.join("missing")), "x.submit", "TOKEN") == 0


def test_with_token():
    assert (qbatch.with_token("a | b", "DONE") ==
            "( set -o pipefail; a | b ) && echo 'DONE' 1>&2")


@pytest.mark.parametrize(('truncate', 'expected'), [(False, 1), (True, 0)])
def test_token_only_after_complete_gzip_split(tmpdir, fastq_writer, truncate, expected):
    in_file = fastq_writer(str(tmpdir.join("S1_R1.fastq.gz")), nreads=200)
    if truncate:
        with open(in_file, "rb") as in_handle:
            data = in_handle.read()
        with open(in_file, "wb") as out_handle:
            out_handle.write(data[:30])
    split_dir = str(tmpdir.mkdir("Split_Fastq"))
    cmd = fastq.split_commands([in_file], ".fastq.gz", split_dir, lines=400)[0]
    run = subprocess.run(["bash", "-c", qbatch.with_token(cmd, "TOKEN")],
                         stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    assert run.stderr.decode().count("TOKEN") == expected


def test_touch(tmpdir):
    fname = str(tmpdir.join("sub", "Split_Files.done"))
    qbatch.touch(fname)
    assert os.path.exists(fname)
