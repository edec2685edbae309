"""Utility functionality for logging.
"""
import os
import sys

import logbook

from staralign import utils

LOG_NAME = "staralign"

def get_log_dir(config, work_dir=None):
    d = config.get("log_dir")
    if not d and work_dir:
        d = os.path.join(work_dir, "log")
    return d

logger = logbook.Logger(LOG_NAME)
logger_cl = logbook.Logger(LOG_NAME + "-commands")

def _is_cl(record, _):
    return record.channel == LOG_NAME + "-commands"

def _not_cl(record, handler):
    return not _is_cl(record, handler)

class CloseableNestedSetup(logbook.NestedSetup):
    def close(self):
        for obj in self.objects:
            if hasattr(obj, "close"):
                obj.close()

def _create_log_handler(config, work_dir=None):
    logbook.set_datetime_format("utc")
    handlers = [logbook.NullHandler()]
    format_str = "".join(["[{record.time:%Y-%m-%dT%H:%MZ}] " if config.get("include_time", True) else "",
                          "[{record.channel}] {record.level_name}: {record.message}"])

    log_dir = get_log_dir(config, work_dir)
    if log_dir:
        utils.safe_makedir(log_dir)
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s.log" % LOG_NAME),
                                            format_string=format_str, level="INFO",
                                            filter=_not_cl))
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s-debug.log" % LOG_NAME),
                                            format_string=format_str, level="DEBUG", bubble=True,
                                            filter=_not_cl))
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s-commands.log" % LOG_NAME),
                                            format_string=format_str, level="DEBUG",
                                            filter=_is_cl))
    level = "DEBUG" if config.get("debug") else "INFO"
    handlers.append(logbook.StreamHandler(sys.stderr, format_string=format_str, bubble=True,
                                          level=level, filter=_not_cl))
    return CloseableNestedSetup(handlers)

def setup_local_logging(config=None, work_dir=None):
    """Setup logging for a run, directing messages to log files and stderr.

    The pipeline runs in a single process and delegates parallelism to the
    batch scheduler, so all records are handled locally.
    """
    if config is None: config = {}
    handler = _create_log_handler(config, work_dir)
    handler.push_application()
    return handler
