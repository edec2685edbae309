"""Centralize running of external commands, providing logging and tracking.
"""
import collections
import subprocess

from staralign.log import logger, logger_cl


def run(cmd, descr=None, log_error=True):
    """Run the provided command, logging details and checking for errors.

    cmd is a list of program and arguments, run without a shell.
    """
    cmd = [str(x) for x in cmd]
    if descr:
        logger.debug(descr)
    try:
        logger_cl.debug(" ".join(cmd))
        _do_run(cmd)
    except (subprocess.CalledProcessError, IOError):
        if log_error:
            logger.exception("Failed running: %s" % (descr or " ".join(cmd)))
        raise

def _do_run(cmd):
    """Perform running and check results, raising errors for issues.
    """
    s = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
                         close_fds=True)
    debug_stdout = collections.deque(maxlen=100)
    while 1:
        line = s.stdout.readline().decode("utf-8", errors="replace")
        if line.rstrip():
            debug_stdout.append(line)
            logger.debug(line.rstrip())
        exitcode = s.poll()
        if exitcode is not None:
            for line in s.stdout:
                debug_stdout.append(line.decode("utf-8", errors="replace"))
            if exitcode != 0:
                error_msg = " ".join(cmd) + "\n" + "".join(debug_stdout)
                s.communicate()
                s.stdout.close()
                raise subprocess.CalledProcessError(exitcode, error_msg)
            else:
                break
    s.communicate()
    s.stdout.close()
