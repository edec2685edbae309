import gzip
import os

from staralign import utils


def test_file_exists_requires_content(tmpdir):
    fname = tmpdir.join("sjdb.out")
    fname.write("")
    assert not utils.file_exists(str(fname))
    fname.write("chr1\t100\t200\n")
    assert utils.file_exists(str(fname))
    assert not utils.file_exists(None)


def test_open_possible_gzip_reads_text(tmpdir):
    fname = str(tmpdir.join("S1_R1.fastq.gz"))
    with gzip.open(fname, "wt") as out_handle:
        out_handle.write("@r1\nACGT\n")
    with utils.open_possible_gzip(fname) as in_handle:
        assert in_handle.readline() == "@r1\n"


def test_sort_filenames_ignores_directories():
    files = ["/b/S2_R1.fq", "/a/S1_R2.fq", "/c/S1_R1.fq"]
    assert utils.sort_filenames(files) == ["/c/S1_R1.fq", "/a/S1_R2.fq", "/b/S2_R1.fq"]


def test_remove_safe_handles_dirs_and_missing(tmpdir):
    log_dir = tmpdir.mkdir("BATCH_1st_Align")
    log_dir.join("1st_Align.submit.e1").write("x")
    utils.remove_safe(str(log_dir))
    assert not os.path.exists(str(log_dir))
    utils.remove_safe(str(log_dir))

