"""
Let the user pick a file by running fzf.

fzf is run by a shell, either inside the current terminal or inside a new
terminal window. It writes the chosen path (relative to the starting
directory) into a temporary file, which is read and removed afterwards.
"""
# Stdlib
import os
import shlex
import subprocess

# fzfopen package
from . import logger, settings
from .settings import ConfigError, expand_path

# Exit status of fzf (and the shell running it) after Ctrl+C or Esc
EXIT_INTERRUPTED = 130

class PickerError(Exception):
    """
    Used when the picker (or the terminal hosting it) could not be started.
    """
    pass

def get_home_dir():
    """
    Return the user's home directory. Raise `ConfigError` if it can't be
    determined.
    """
    home = os.path.expanduser('~')
    if home == '~' or not home:
        raise ConfigError('Could not determine the home directory')
    return home

def validate_starting_dir(path):
    """
    Return the absolute version of `path` if it refers to an existing
    directory. "~" and environment variables are expanded before. An
    invalid `path` is replaced by the user's home directory and a warning
    is logged. If that doesn't exist either, `ConfigError` is raised.
    """
    expanded = expand_path(path)
    if expanded and os.path.isdir(expanded):
        return os.path.abspath(expanded)
    home = get_home_dir()
    msg = 'Starting directory {0!r} is invalid, falling back to {1!r}'
    logger.warning(msg.format(path, home))
    if not os.path.isdir(home):
        msg = 'Fallback starting directory {0!r} is invalid, too'
        raise ConfigError(msg.format(home))
    return home

def build_picker_command(starting_dir, output_path, picker='fzf',
                         prompt='Select file> '):
    """
    Return a shell command-line, which runs `picker` inside `starting_dir`
    and redirects its output to `output_path`. The shell replaces itself
    with `picker`, so killing the started process stops the picker, too.
    """
    command = 'cd {0} && exec {1} --prompt={2} --border --no-multi > {3}'
    return command.format(
        shlex.quote(starting_dir), shlex.quote(picker),
        shlex.quote(prompt), shlex.quote(output_path)
    )

def build_argv(command, shell, config=None):
    """
    Return the arguments to run the shell command-line `command` with
    `shell`. Depending on `config` (defaults to `fzfopen.settings.config`)
    this is done inside a new terminal window, possibly held open after the
    command has finished, and the shell may be started in interactive mode
    in order to pick up the user's shell setup (e.g. `FZF_DEFAULT_COMMAND`).
    """
    if config is None:
        config = settings.config
    shell_args = [shell]
    if config['interactive-shell']:
        shell_args.append('-i')
    shell_args += ['-c', command]
    if not config['spawn-term']:
        return shell_args
    args = shlex.split(config['terminal'])
    if config['keep-open'] and config['hold-flag']:
        args.append(config['hold-flag'])
    if config['win-title-flag']:
        args += [config['win-title-flag'], config['win-title']]
    return args + ['-e'] + shell_args

def pick(starting_dir, shell, config=None, timeout=None):
    """
    Run the picker inside `starting_dir` using `shell` and return the
    absolute path of the chosen file or `None` if nothing was chosen.

    "Nothing" also covers a cancelled picker, a picker that exited with
    an error and one that did not finish within `timeout` seconds (in which
    case it gets killed). `timeout` defaults to the `picker-timeout` config
    value. Raise `PickerError` if the picker could not be started at all.
    """
    if config is None:
        config = settings.config
    if timeout is None:
        timeout = config['picker-timeout']
    output_path = config['picker-output']
    remove_file(output_path)
    command = build_picker_command(starting_dir, output_path,
                                   config['picker'], config['picker-prompt'])
    argv = build_argv(command, shell, config)
    logger.debug('Running picker: {0}'.format(' '.join(argv)))
    try:
        process = subprocess.Popen(argv)
    except OSError as exc:
        raise PickerError('Unable to run the picker: {0}'.format(exc))
    try:
        returncode = process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
        remove_file(output_path)
        logger.warning('Picker did not finish within {0}s'.format(timeout))
        return None
    if returncode == EXIT_INTERRUPTED:
        remove_file(output_path)
        logger.debug('Picker was cancelled')
        return None
    if returncode != 0:
        remove_file(output_path)
        logger.debug('Picker exited with status {0}'.format(returncode))
        return None
    selection = read_selection(output_path)
    if not selection:
        return None
    path = os.path.join(starting_dir, selection)
    if not os.path.exists(path):
        logger.warning('Selected path does not exist: {0!r}'.format(path))
        return None
    return path

def read_selection(output_path):
    """
    Return the stripped contents of the picker's output file and remove the
    file. An empty string is returned if the file is missing or unreadable.
    """
    try:
        with open(output_path) as output_file:
            return output_file.read().strip()
    except FileNotFoundError:
        return ''
    except OSError as exc:
        msg = 'Unable to read picker output {0!r}: {1}'
        logger.warning(msg.format(output_path, exc))
        return ''
    finally:
        remove_file(output_path)

def remove_file(path):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
