import subprocess

import pytest

from staralign.provenance import do


def test_run_logs_command(mocker):
    logger_cl = mocker.patch('staralign.provenance.do.logger_cl')
    do.run(["true", 10], "Check true")
    logger_cl.debug.assert_called_once_with("true 10")


def test_run_logs_output_at_debug(mocker):
    logger = mocker.patch('staralign.provenance.do.logger')
    do.run(["echo", "1st_Align.submit submitted"])
    logger.debug.assert_called_once_with("1st_Align.submit submitted")


def test_run_raises_on_failure(mocker):
    logger = mocker.patch('staralign.provenance.do.logger')
    with pytest.raises(subprocess.CalledProcessError) as excinfo:
        do.run(["bash", "-c", "echo broken && exit 3"], "Failing command")
    assert excinfo.value.returncode == 3
    assert "broken" in excinfo.value.cmd
    logger.exception.assert_called_once_with("Failed running: Failing command")
