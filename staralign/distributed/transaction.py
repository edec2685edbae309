"""Write pipeline outputs through a temporary file, so restarts never see half-written files.

Submit files, `sjdb.out` and the stage manifest are written to a temporary
directory beside the final location and moved into place only when the
write finishes.
"""
import contextlib
import os
import shutil
import tempfile

import toolz as tz

from staralign import utils

DEFAULT_TMP = "staraligntx"
INCOMPLETE_SUFFIX = ".staraligntmp"


def _get_base_tmpdir(config, fallback_base_dir):
    config_tmpdir = tz.get_in(("resources", "tmp", "dir"), config)
    return config_tmpdir or os.path.join(fallback_base_dir, DEFAULT_TMP)

@contextlib.contextmanager
def tx_tmpdir(config, base_dir):
    """Create a temporary directory under the configured tmp dir or `<base_dir>/staraligntx`.
    """
    tmpdir_base = utils.get_abspath(_get_base_tmpdir(config, base_dir))
    utils.safe_makedir(tmpdir_base)
    tmp_dir = tempfile.mkdtemp(dir=tmpdir_base)
    try:
        yield tmp_dir
    finally:
        utils.remove_safe(tmp_dir)

@contextlib.contextmanager
def file_transaction(config, out_file):
    """Yield a temporary path for out_file, moving it into place if the block finishes.

    On an exception the temporary file is discarded and out_file is left as it was.
    """
    out_file = os.path.abspath(out_file)
    with tx_tmpdir(config, os.path.dirname(out_file)) as tmp_dir:
        tx_file = os.path.join(tmp_dir, os.path.basename(out_file))
        yield tx_file
        if os.path.exists(tx_file):
            _move_with_sizecheck(tx_file, out_file)

def _move_with_sizecheck(tx_file, final_file):
    """Move a finished file into place, checking nothing was lost in the transfer.

    A `.staraligntmp` flag beside the destination exists only while moving,
    so a leftover flag marks an interrupted move.
    """
    flag_file = final_file + INCOMPLETE_SUFFIX
    open(flag_file, "w").close()
    want_size = os.path.getsize(tx_file)
    shutil.move(tx_file, final_file)
    got_size = os.path.getsize(final_file)
    if want_size != got_size:
        raise IOError("Incomplete move of %s to %s: expected %s bytes, found %s"
                      % (tx_file, final_file, want_size, got_size))
    utils.remove_safe(flag_file)
