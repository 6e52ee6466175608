"""
Basic functionality to open files with an application.
"""
# Stdlib
import os
import shlex
import subprocess

# fzfopen package
from . import logger, settings
from .dispatch import select_app, select_by_extension
from .mime import get_extension

class LaunchError(Exception):
    """
    Used to indicate that a given file could not be opened by any
    application, including the starter.
    """
    pass

### High-level functions

def open_file(path, path_cache, mime_resolver, apps=None, starter=None):
    """
    Open the file at `path` with the most reasonable application and return
    the identifier of the application that was used or `None` if the file
    was handed to the starter.

    The application is chosen by `choose_app()`. Its command-line is taken
    from `apps`, which maps application identifiers to command-lines and
    defaults to `fzfopen.settings.config`. If no application is associated
    with the file, or if it fails to start, the file is passed to the
    starter via `open_with_starter()`. In case that this does not succeed
    either, a `LaunchError` is raised.

    Note that nothing waits for the launched application, so "success" only
    means that it could be started.
    """
    if apps is None:
        apps = settings.config
    app = choose_app(path, mime_resolver)
    if app is not None:
        cmdline = apps.get(app)
        if cmdline and launch(cmdline, path, path_cache):
            logger.info('Opened {0!r} with {1}'.format(path, app))
            return app
        msg = 'Unable to open {0!r} with {1}, trying the starter instead'
        logger.warning(msg.format(path, app))
    if open_with_starter(path, path_cache, starter):
        logger.info('Opened {0!r} with the starter'.format(path))
        return None
    raise LaunchError('Unable to open {0!r}'.format(path))

def choose_app(path, mime_resolver):
    """
    Return the application identifier for `path` or `None`. The MIME-type
    is only requested from `mime_resolver`, if the file's extension alone
    does not lead to an application.
    """
    extension = get_extension(path)
    if extension:
        app = select_by_extension(extension)
        if app is not None:
            return app
    return select_app(extension, mime_resolver.get_mimetype(path))

def launch(cmdline, path, path_cache):
    """
    Start the command given by `cmdline` with `path` appended as its last
    argument and return `True` on success. The command's program name is
    located via `path_cache`. `False` is returned if the program is unknown
    or could not be started. Errors are logged, not raised.

    The process is started by `start_detached()` and never waited for.
    """
    try:
        args = parse_commandline(cmdline)
    except ValueError as exc:
        logger.error('Invalid command-line {0!r}: {1}'.format(cmdline, exc))
        return False
    if not args:
        return False
    program = path_cache.get_path(args[0])
    if program is None:
        logger.warning('Command not found: {0!r}'.format(args[0]))
        return False
    try:
        start_detached([program] + args[1:] + [path])
    except OSError as exc:
        logger.error('Unable to start {0!r}: {1}'.format(program, exc))
        return False
    return True

def open_with_starter(path, path_cache, starter=None):
    """
    Hand `path` to the starter, i.e. the platform's generic opener, and
    return `True` if it could be started.

    Note that the starter is defined inside `fzfopen.settings.config` and
    may be overridden by passing `starter`.
    """
    if starter is None:
        starter = settings.config['starter']
    return launch(starter, path, path_cache)

### Low-level functions

def parse_commandline(cmdline):
    """
    Split given cmdline string into a list of arguments matching Unix-like
    shell behavior. Return an empty list if no arguments remain after that.
    Complain about syntax errors by raising `ValueError`.

    Note that each "~" or "~home" at the start of an argument is understood
    and expanded to the user's home directory. Any other type of expansion
    is not supported.
    """
    if not isinstance(cmdline, str):
        raise TypeError('cmdline must be a string')
    return [os.path.expanduser(arg) for arg in shlex.split(cmdline)]

def start_detached(args):
    """
    Start a process for `args` without connecting its standard streams and
    inside a new session, so that signals sent to our process group (e.g.
    by hitting Ctrl+C) don't reach it. Return the `subprocess.Popen`-object.
    """
    return subprocess.Popen(args,
                            stdin=subprocess.DEVNULL,
                            stdout=subprocess.DEVNULL,
                            stderr=subprocess.DEVNULL,
                            close_fds=True,
                            start_new_session=True)
