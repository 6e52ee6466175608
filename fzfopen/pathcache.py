"""
Memoized lookup of executables inside the directories named by PATH.

A `PathCache` is created once at start-up and handed to everything that
needs to run an external program. Its `prewarm()` method resolves a list
of commonly used commands in background threads, so that the synchronous
lookups done later on (when the picker has returned) usually hit the cache.
"""
# Stdlib
from concurrent import futures
import os
import threading

# fzfopen package
from . import logger

# Names which are understood by any shell and need no lookup
SHELL_BUILTINS = frozenset(['cd', 'echo', 'exit'])

# Programs worth resolving before they are actually needed
COMMON_COMMANDS = (
    'fzf', 'file', 'xdg-open', 'alacritty',
    'zsh', 'bash', 'fish', 'dash', 'sh',
    'nvim', 'zathura', 'imv', 'mpv', 'libreoffice', 'firefox',
)

DEFAULT_TIMEOUT = 0.1

class ResolveError(LookupError):
    """
    Base class for failed command lookups.
    """
    pass

class CommandNotFound(ResolveError):
    pass

class ResolveTimeout(ResolveError):
    """
    Used when a lookup didn't finish in time. The lookup itself may still
    succeed later on, so this is not the same as `CommandNotFound`.
    """
    pass

class PathCache(object):
    """
    A thread-safe mapping from command names to absolute executable paths.

    Only successful lookups are stored. An entry is never replaced once it
    was written, since resolving the same name twice yields the same path.
    Misses and timeouts are not stored, so a later call will search again.
    """
    def __init__(self, timeout=DEFAULT_TIMEOUT, max_workers=None):
        self.timeout = timeout
        self._paths = {}
        self._lock = threading.Lock()
        if max_workers is None:
            max_workers = len(COMMON_COMMANDS)
        self._executor = futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix='path-lookup'
        )
        self._prewarm_lock = threading.Lock()
        self._prewarm_futures = None

    def __contains__(self, name):
        return self.cached(name) is not None

    def __len__(self):
        with self._lock:
            return len(self._paths)

    def cached(self, name):
        """
        Return the stored path for `name` or `None`. Never searches.
        """
        with self._lock:
            return self._paths.get(name)

    def _store(self, name, path):
        # First committed value wins
        with self._lock:
            return self._paths.setdefault(name, path)

    def _store_late(self, name):
        def callback(future):
            if not future.cancelled() and future.exception() is None:
                path = future.result()
                if path is not None:
                    self._store(name, path)
        return callback

    def resolve(self, name, timeout=None):
        """
        Return the absolute path of the executable called `name`.

        Shell built-ins resolve to themselves. An absolute `name` is only
        checked for existence, while a relative name containing a directory
        part is refused. Anything else is searched inside the PATH. The
        search is done by a worker thread and waited for at most `timeout`
        seconds (the cache's default timeout if `None`).

        Raise `CommandNotFound` if there is no such command and
        `ResolveTimeout` if the search took too long. In the latter case
        the search is left running and its result will still be cached.
        """
        if not name:
            raise CommandNotFound('Got an empty command name')
        if name in SHELL_BUILTINS:
            return name
        path = self.cached(name)
        if path is not None:
            return path
        if os.path.isabs(name):
            if os.path.isfile(name):
                return name
            raise CommandNotFound('No such file: {0!r}'.format(name))
        if os.path.dirname(name):
            msg = 'Refusing to search relative path {0!r}'
            raise CommandNotFound(msg.format(name))
        if timeout is None:
            timeout = self.timeout
        future = self._executor.submit(search_path, name)
        try:
            path = future.result(timeout=timeout)
        except futures.TimeoutError:
            future.add_done_callback(self._store_late(name))
            msg = 'Lookup of {0!r} timed out after {1}s'
            raise ResolveTimeout(msg.format(name, timeout))
        if path is None:
            raise CommandNotFound('Command not found: {0!r}'.format(name))
        return self._store(name, path)

    def get_path(self, name, timeout=None):
        """
        Like `resolve()`, but return `None` instead of raising. A timeout is
        logged as a warning, while an unknown command is just noted.
        """
        try:
            return self.resolve(name, timeout)
        except ResolveTimeout as exc:
            logger.warning(str(exc))
        except CommandNotFound as exc:
            logger.debug(str(exc))
        return None

    def prewarm(self, names=COMMON_COMMANDS):
        """
        Resolve each of `names` in its own background task and return the
        list of futures. This is done at most once per cache, any further
        call returns the futures of the first one. Failing lookups are
        silently ignored.
        """
        with self._prewarm_lock:
            if self._prewarm_futures is None:
                self._prewarm_futures = [
                    self._executor.submit(self._warm, name) for name in names
                ]
            return list(self._prewarm_futures)

    def _warm(self, name):
        if name in SHELL_BUILTINS or self.cached(name) is not None:
            return
        path = search_path(name)
        if path is not None:
            self._store(name, path)
            logger.debug('Cached {0!r} as {1!r}'.format(name, path))

    def wait_prewarm(self, timeout=None):
        """
        Block until the pre-warming tasks are done or `timeout` expired.
        Return `True` if all of them finished.
        """
        with self._prewarm_lock:
            pending = list(self._prewarm_futures or [])
        done, not_done = futures.wait(pending, timeout=timeout)
        return not not_done

    def close(self):
        """
        Stop accepting new lookups. Running ones are not waited for.
        """
        self._executor.shutdown(wait=False)

### Low-level functions

def splitenv(varname):
    """
    Get the environment variable `varname`s contents and split them at their
    platform-dependent path separator (`:` on POSIX, `;` on Windows). Return
    the result as a list, which may be empty if there is no content.
    """
    value = os.getenv(varname, '')
    return value.split(os.pathsep) if value else []

def get_path_dirs():
    """
    Parse the environment variable PATH and return a list of all names
    that refer to an existing directory, keeping their order.
    """
    return [name for name in splitenv('PATH') if os.path.isdir(name)]

def search_path(name):
    """
    Return the first non-empty executable file called `name` inside the
    PATH directories or `None` if there is none.
    """
    for path_dir in get_path_dirs():
        path = os.path.join(path_dir, name)
        if is_executable_file(path):
            return path
    return None

def is_executable_file(path):
    """
    Return True if given path refers to a non-empty executable file,
    otherwise False.
    """
    return (os.access(path, os.X_OK) and
            os.path.isfile(path) and
            os.path.getsize(path) > 0)
