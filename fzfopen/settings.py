"""
Configuration stuff.
"""
# Stdlib
import os
import sys
# 3rd party
from xdg.BaseDirectory import xdg_config_home
# fzfopen package
from . import logger

class ConfigError(Exception):
    """
    Used to indicate a fatal configuration problem, e.g. neither the
    configured starting directory nor the home directory are usable.
    """
    pass

# Generic opener ("open with the default handler") per platform
DEFAULT_STARTER = 'open' if sys.platform == 'darwin' else 'xdg-open'

# Default configuration
config = {
    'starter': DEFAULT_STARTER,
    'terminal': 'alacritty',
    'win-title-flag': '--title',
    'win-title': 'fzf-open-run',
    'hold-flag': '--hold',
    'starting-dir': '~',
    'spawn-term': False,
    'keep-open': False,
    'interactive-shell': False,
    'picker': 'fzf',
    'picker-prompt': 'Select file> ',
    'picker-output': '/tmp/fzf-open',
    'picker-timeout': 300.0,
    'mime-command': 'file --brief --mime-type',
    'mime-timeout': 1.0,
    'lookup-timeout': 0.1,
    'shell-timeout': 0.2,
    # Commands per application, the selected path is appended last
    'pdf-viewer': 'zathura',
    'docx-viewer': 'libreoffice --writer',
    'image-viewer': 'imv',
    'video-player': 'mpv',
    'spreadsheet-editor': 'libreoffice --calc',
    'web-browser': 'firefox',
    'text-editor': 'alacritty -e nvim',
}

# Keys whose values are converted by `get_bool()` / `float()` when read
BOOLEAN_KEYS = frozenset(['spawn-term', 'keep-open', 'interactive-shell'])
FLOAT_KEYS = frozenset(['picker-timeout', 'mime-timeout',
                        'lookup-timeout', 'shell-timeout'])

# Keys written by older versions, mapped to their current name
KEY_ALIASES = {
    'opener': 'starter',
}

CONFIG_DIRNAME = 'fzf-open'
CONFIG_FILENAME = 'config'

TRUE_STRINGS = frozenset(['1', 't', 'true', 'y', 'yes', 'on'])
FALSE_STRINGS = frozenset(['0', 'f', 'false', 'n', 'no', 'off'])

def update_config(configuration={}):
    """
    Update default configuration with the result of `get_user_config()` and
    after that with the given `configuration`-dictionary.

    "Updating" means: If the same key exists in at least two dictionaries,
    then the latter one's value is used. Otherwise the key is just added.
    Thus, an empty dictionary will result in no change.
    """
    for cfg in (get_user_config(), configuration):
        config.update(cfg)

def get_user_config(filename=None):
    """
    Return the parsed contents of the user's configuration file as a
    dictionary. In case that no such file could be found, an empty
    dictionary will be returned. If `filename` is `None`, the default
    location given by `get_config_path()` is used.
    """
    path = filename or get_config_path()
    if not os.path.exists(path):
        return {}
    logger.info('Found config file {0!r}'.format(path))
    try:
        return get_config_entries(path)
    except OSError as exc:
        logger.warning('Unable to read config file: {0}'.format(exc))
        return {}

def ensure_config_file(path=None):
    """
    Create the configuration directory and an empty config file at `path`
    (defaults to `get_config_path()`) unless they exist. Failing to do so is
    logged as a warning, since the program works without a config file.
    """
    if path is None:
        path = get_config_path()
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        if not os.path.exists(path):
            open(path, 'a').close()
            logger.info('Created empty config file {0!r}'.format(path))
    except OSError as exc:
        msg = 'Unable to create config file {0!r}: {1}'
        logger.warning(msg.format(path, exc))

def get_config_path(filename=None):
    """
    Return a XDG-compliant path based on given `filename`. If `filename` is
    `None`, the `CONFIG_FILENAME` will be used. The file is expected inside
    the program's own subdirectory of the user's configuration directory.
    """
    if filename is None:
        filename = CONFIG_FILENAME
    if os.path.dirname(filename):
        raise ValueError('filename may not contain any path separator')
    return os.path.join(xdg_config_home, CONFIG_DIRNAME, filename)

def get_config_entries(path):
    """
    Read a configuration file from the given path and return a dictionary,
    which contains the file's entries with their values already converted.
    """
    with open(path) as config_file:
        return dict(iter_converted_entries(iter_config_entries(config_file)))

def iter_config_entries(lines):
    """
    Iterate over the given configuration lines, which may be either a file-like
    object or a list of strings and return a `(key, value)`-pair for each line.
    Parsing is done according to the following rules:

    Each line must use the scheme `KEY = value` to define an item. Only the
    first `=` is used as the separator, any further `=`-chars remain inside
    the value. A line starting with `#` is a comment. Whitespace around key
    and value is ignored, as are empty lines. Keys are normalized, so that
    `SPAWN_TERM` becomes `spawn-term`. A non-empty line without a separator
    is logged as a warning and then skipped. Note that keys and values will
    always be strings.
    """
    for index, line in enumerate(lines):
        code = line.strip()
        if not code or code.startswith('#'):
            continue
        if '=' not in code:
            msg = 'Skipping invalid line {0} in config: {1!r}'
            logger.warning(msg.format(index + 1, code))
            continue
        key, value = code.split('=', 1)
        yield (normalize_key(key), value.strip())

def iter_converted_entries(entries):
    """
    Convert the values of the given `(key, value)`-pairs according to their
    key's type. Entries with an unconvertible value are logged and dropped.
    """
    for key, value in entries:
        try:
            if key in BOOLEAN_KEYS:
                value = get_bool(value)
            elif key in FLOAT_KEYS:
                value = float(value)
        except ValueError:
            msg = 'Invalid value for {0} in config: {1!r}'
            logger.warning(msg.format(key, value))
            continue
        yield (key, value)

def normalize_key(key):
    """
    Return the internal name for a config file key, e.g. `SPAWN_TERM`
    becomes `spawn-term` and `OPENER` becomes `starter`.
    """
    key = key.strip().lower().replace('_', '-')
    return KEY_ALIASES.get(key, key)

def get_bool(value):
    """
    Interpret `value` as a boolean. Booleans are returned unchanged, strings
    like "yes", "true" or "1" (case-insensitive) are true, their counterparts
    are false. Anything else raises `ValueError`.
    """
    if isinstance(value, bool):
        return value
    lowered = value.strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValueError('Not a boolean: {0!r}'.format(value))

def expand_path(path):
    """
    Expand "~" and environment variables inside `path`.
    """
    if not path:
        return path
    return os.path.expandvars(os.path.expanduser(path))
