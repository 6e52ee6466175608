"""
Common interface for status messages of the fzfopen modules.

Nothing is logged until `enable()` was called, which is done by the
command-line interface. Messages go to `stderr`.
"""
import logging

DEFAULT_NAME = 'fzf-open'
DEFAULT_FORMAT = '%(name)s: %(message)s'

def make_stderr_handler(format=DEFAULT_FORMAT):
    """
    Return a `logging.StreamHandler()` writing to `stderr` with `format`.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format))
    return handler

def get_logger(name=DEFAULT_NAME, level=logging.INFO):
    """
    Return the logger called `name` with its level set to `level`. A
    `stderr` handler is attached on first request. Later requests for the
    same name only change the level, so handlers don't pile up.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(make_stderr_handler())
        logger.propagate = False
    logger.setLevel(level)
    return logger

# The logger behind `debug()`, `info()`, `warning()` and `error()`. These
# are called from the main thread as well as from the background lookups.
# `None` means that logging is disabled.
LOGGER = None

def enable(name=DEFAULT_NAME, level=logging.INFO):
    """
    Route messages of at least `level` to the logger called `name`.
    """
    global LOGGER
    LOGGER = get_logger(name, level)

def disable():
    """
    Disable logging by setting `LOGGER` to `None`.
    """
    global LOGGER
    LOGGER = None

def _log(level, message):
    """
    Log `message` with `level` on `LOGGER`. Do nothing, if it is `None`.
    """
    if LOGGER is not None:
        LOGGER.log(level, message)

def debug(message):
    """
    Log `message` with level `DEBUG`. Shown when running with `-v`.
    """
    _log(logging.DEBUG, message)

def info(message):
    """
    Log `message` with level `INFO`.
    """
    _log(logging.INFO, message)

def warning(message):
    """
    Log `message` with level `WARNING`.
    """
    _log(logging.WARNING, message)

def error(message):
    """
    Log `message` with level `ERROR`. Still shown when running with `-q`.
    """
    _log(logging.ERROR, message)
