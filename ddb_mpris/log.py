"""Timestamped logging to stderr and, when configured, a log file."""

import sys
import time

from . import config


def log(message: str):
    """Log to stderr and to the configured log file"""
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    log_msg = f"{timestamp} {message}"
    print(log_msg, file=sys.stderr, flush=True)
    if not config.LOG_FILE:
        return
    try:
        with open(config.LOG_FILE, 'a') as f:
            f.write(log_msg + "\n")
    except OSError:
        pass


def debug(message: str):
    """Log only when DDB_MPRIS_DEBUG is set"""
    if config.DEBUG:
        log(message)
