"""
Detect the shell which runs the picker command.
"""
# Stdlib
from concurrent import futures
import os
import threading

# fzfopen package
from . import logger
from .pathcache import PathCache, ResolveError

VALID_SHELLS = frozenset(['bash', 'zsh', 'fish', 'dash', 'sh',
                          'ksh', 'csh', 'tcsh'])

# Highest priority first
CANDIDATE_SHELLS = ('zsh', 'bash', 'fish', 'dash', 'sh')

FALLBACK_SHELL = 'sh'

DEFAULT_TIMEOUT = 0.2

class ShellDetector(object):
    """
    Determine the user's interactive shell at most once.

    The shell named by the `SHELL` environment variable is taken if it is
    one of `VALID_SHELLS`. Otherwise all `CANDIDATE_SHELLS` are looked up
    concurrently via the given `PathCache` and the best one that could be
    found within `timeout` seconds is taken. "Best" means the first one
    in `CANDIDATE_SHELLS`, regardless of which lookup finished first. If
    none is found, `FALLBACK_SHELL` is used.
    """
    def __init__(self, path_cache, timeout=DEFAULT_TIMEOUT, environ=None,
                 candidates=CANDIDATE_SHELLS):
        self.path_cache = path_cache
        self.timeout = timeout
        self.environ = os.environ if environ is None else environ
        self.candidates = tuple(candidates)
        self._shell = None
        self._path = None
        self._lock = threading.Lock()
        self._start_lock = threading.Lock()
        self._thread = None

    @property
    def shell(self):
        return self.detect()

    @property
    def path(self):
        """
        The absolute path of the detected shell or `None` if it is unknown
        (e.g. when the fallback shell was chosen). Detects if needed.
        """
        self.detect()
        return self._path

    @property
    def detected(self):
        return self._shell is not None

    def start(self):
        """
        Run `detect()` inside a background thread. Calling this more than
        once has no further effect.
        """
        with self._start_lock:
            if self._thread is None and self._shell is None:
                self._thread = threading.Thread(
                    target=self.detect, name='shell-detector', daemon=True
                )
                self._thread.start()

    def detect(self):
        """
        Return the shell's name. Detection only runs on the first call,
        concurrent callers block until it is done. The result is never
        empty and never changes afterwards.
        """
        with self._lock:
            if self._shell is None:
                self._shell, self._path = self._detect()
                logger.debug('Using shell {0!r}'.format(self._shell))
            return self._shell

    def _detect(self):
        # Returns a `(name, path)`-pair, path may be `None`
        declared = self.environ.get('SHELL', '')
        name = os.path.basename(declared)
        if name in VALID_SHELLS:
            path = declared if os.path.isabs(declared) else None
            if path and not os.path.isfile(path):
                path = None
            return name, path
        found = self._probe_candidates()
        if found:
            return found
        msg = 'No usable shell found within {0}s, falling back to {1!r}'
        logger.warning(msg.format(self.timeout, FALLBACK_SHELL))
        return FALLBACK_SHELL, None

    def _probe_candidates(self):
        executor = futures.ThreadPoolExecutor(
            max_workers=len(self.candidates) or 1,
            thread_name_prefix='shell-probe'
        )
        try:
            pending = [
                executor.submit(self.path_cache.resolve, name, self.timeout)
                for name in self.candidates
            ]
            futures.wait(pending, timeout=self.timeout)
        finally:
            # Unfinished probes are left alone, their results are ignored
            executor.shutdown(wait=False)
        for name, future in zip(self.candidates, pending):
            if not future.done():
                continue
            try:
                path = future.result()
            except ResolveError:
                continue
            return name, path
        return None

_default_detector = None
_default_lock = threading.Lock()

def get_detector(path_cache=None):
    """
    Return the process-wide detector, creating it on first use. Given
    `path_cache` is only taken into account by that first call.
    """
    global _default_detector
    with _default_lock:
        if _default_detector is None:
            cache = path_cache if path_cache is not None else PathCache()
            _default_detector = ShellDetector(cache)
        return _default_detector

def detect_shell(path_cache=None):
    return get_detector(path_cache).detect()
