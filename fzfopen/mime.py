"""
Determine a file's MIME-type, either by its extension or by asking an
external tool (`file --brief --mime-type` by default).
"""
# Stdlib
import os
import shlex
import subprocess
import threading

# fzfopen package
from . import logger

# Types which are common enough to not bother the external tool with
EXTENSION_MIMETYPES = {
    'txt': 'text/plain',
    'md': 'text/markdown',
    'csv': 'text/csv',
    'html': 'text/html',
    'htm': 'text/html',
    'json': 'application/json',
    'xml': 'application/xml',
    'pdf': 'application/pdf',
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'svg': 'image/svg+xml',
    'mp4': 'video/mp4',
    'mkv': 'video/x-matroska',
    'webm': 'video/webm',
    'mp3': 'audio/mpeg',
}

DEFAULT_COMMAND = 'file --brief --mime-type'
DEFAULT_TIMEOUT = 1.0

def get_extension(path):
    """
    Return the lowercased extension of `path` without its leading dot or an
    empty string if there is none. Note that a dotfile like ".bashrc" is
    not considered to have an extension.
    """
    return os.path.splitext(os.path.basename(path))[1][1:].lower()

class MimeResolver(object):
    """
    Remember the MIME-type of each queried path for the rest of the run.

    Lookups never raise. An empty string means that the type is unknown.
    The `path_cache` is used to locate the external tool given by
    `command`, which gets the path appended as its last argument and is
    killed after `timeout` seconds.
    """
    def __init__(self, path_cache, command=DEFAULT_COMMAND,
                 timeout=DEFAULT_TIMEOUT):
        self.path_cache = path_cache
        if isinstance(command, str):
            command = shlex.split(command)
        self.command = list(command)
        self.timeout = timeout
        self._mimetypes = {}
        self._lock = threading.Lock()

    def cached(self, path):
        with self._lock:
            return self._mimetypes.get(os.path.abspath(path))

    def _store(self, path, mimetype):
        with self._lock:
            return self._mimetypes.setdefault(path, mimetype)

    def get_mimetype(self, path):
        """
        Return the MIME-type of `path`. The extension table is consulted
        first, then the external tool. If the tool can't be found, doesn't
        answer in time or fails, an empty string is returned. Only the
        results of the first two cases are remembered.
        """
        path = os.path.abspath(path)
        mimetype = self.cached(path)
        if mimetype is not None:
            return mimetype
        shortcut = EXTENSION_MIMETYPES.get(get_extension(path))
        if shortcut:
            return self._store(path, shortcut)
        if not self.command:
            return ''
        program = self.path_cache.get_path(self.command[0])
        if program is None:
            logger.debug('No MIME tool available, type of {0!r} is unknown'
                         .format(path))
            return ''
        args = [program] + self.command[1:] + [path]
        mimetype = self.query(args)
        if mimetype is None:
            return ''
        return self._store(path, mimetype)

    def query(self, args):
        """
        Run the tool given by `args` and return the first line of its output
        with surrounding whitespace removed. Return `None` on failure.
        """
        try:
            result = subprocess.run(
                args, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL, timeout=self.timeout,
                universal_newlines=True
            )
        except subprocess.TimeoutExpired:
            logger.warning('MIME query timed out: {0}'.format(' '.join(args)))
            return None
        except OSError as exc:
            logger.warning('MIME query failed: {0}'.format(exc))
            return None
        if result.returncode != 0:
            msg = 'MIME query exited with status {0}: {1}'
            logger.debug(msg.format(result.returncode, ' '.join(args)))
            return None
        lines = result.stdout.strip().splitlines()
        return lines[0].strip() if lines else ''
