import pytest

from staralign.pipeline import clargs, config_utils, main, stages


class TestCommandLine(object):

    def test_parse_args(self):
        kwargs = clargs.parse_cl_args(["--workdir", "/w", "--RNA-seq-dir", "/r",
                                       "--ref-genome", "/g.fa", "--sj-support", "5",
                                       "--debug"])
        assert kwargs["rnaseq_dir"] == "/r"
        assert kwargs["sj_support"] == 5
        assert kwargs["debug"] == 1
        assert kwargs["runtime"] is None

    def test_bad_option_exits_2(self):
        with pytest.raises(SystemExit) as excinfo:
            clargs.parse_cl_args(["--workdir", "/w", "--bogus"])
        assert excinfo.value.code == 2

    def test_missing_directory_is_validation_failure(self, tmpdir, mocker):
        genome = tmpdir.join("genome.fa")
        genome.write(">chr1\nACGT\n")
        logger = mocker.patch('staralign.pipeline.clargs.logger')
        assert clargs.parse_cl_args(["--ref-genome", str(genome)])["workdir"] is None
        assert clargs.run(["--RNA-seq-dir", str(tmpdir), "--ref-genome", str(genome)]) == 1
        logger.error.assert_called_once_with("ERROR: WORKDIR not defined or does not exist")

    @pytest.mark.parametrize(('error', 'code'), [
        (config_utils.CmdNotFound("STAR not in PATH"), 127),
        (main.ValidationError("WORKDIR not defined or does not exist"), 1),
        (stages.StageFailure("1st_Align", "found 1 of 2"), 1),
        (ValueError("Runtime must be in HH:MM:SS format: 12h"), 1),
    ])
    def test_exit_codes(self, mocker, error, code):
        mocker.patch('staralign.pipeline.clargs.main.run_main', side_effect=error)
        args = ["--workdir", "/w", "--RNA-seq-dir", "/r", "--ref-genome", "/g.fa"]
        assert clargs.run(args) == code

    def test_success_exit_code(self, mocker):
        run_main = mocker.patch('staralign.pipeline.clargs.main.run_main')
        args = ["--workdir", "/w", "--RNA-seq-dir", "/r", "--ref-genome", "/g.fa",
                "--runtime", "2:0:0"]
        assert clargs.run(args) == 0
        assert run_main.call_args[1]["runtime"] == "2:0:0"
