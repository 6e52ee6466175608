"""
Command-line interface: pick a file with fzf and open it.
"""
# Stdlib
import argparse
import logging

# fzfopen package
from . import __version__, logger, settings
from .launcher import LaunchError, open_file
from .mime import MimeResolver
from .pathcache import PathCache
from .picker import PickerError, pick, validate_starting_dir
from .settings import ConfigError
from .shell import ShellDetector

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

def make_parser():
    parser = argparse.ArgumentParser(
        prog='fzf-open',
        description='Pick a file with fzf and open it with a suitable '
                    'application.'
    )
    parser.add_argument('-n', '--new-terminal', action='store_true',
                        help='run fzf inside a new terminal window')
    parser.add_argument('-d', '--dir', metavar='DIR',
                        help='starting directory for fzf')
    parser.add_argument('-t', '--terminal', metavar='COMMAND',
                        help='terminal emulator command')
    parser.add_argument('-k', '--keep-open', action='store_true',
                        help='keep the new terminal window open')
    parser.add_argument('-i', '--interactive', action='store_true',
                        help='run fzf inside an interactive shell')
    parser.add_argument('-o', '--opener', metavar='COMMAND',
                        help='generic opener used when no application fits')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true',
                           help='show debug messages')
    verbosity.add_argument('-q', '--quiet', action='store_true',
                           help='only show errors')
    parser.add_argument('--version', action='version',
                        version='%(prog)s ' + __version__)
    return parser

def get_overrides(args):
    """
    Return the configuration entries given by the parsed command-line
    `args`. Switches which were not given are left out, so that they don't
    override the config file.
    """
    overrides = {}
    if args.new_terminal:
        overrides['spawn-term'] = True
    if args.keep_open:
        overrides['keep-open'] = True
    if args.interactive:
        overrides['interactive-shell'] = True
    if args.dir:
        overrides['starting-dir'] = args.dir
    if args.terminal:
        overrides['terminal'] = args.terminal
    if args.opener:
        overrides['starter'] = args.opener
    return overrides

def get_log_level(args):
    if args.verbose:
        return logging.DEBUG
    if args.quiet:
        return logging.ERROR
    return logging.INFO

def main(argv=None):
    """
    Run the program and return its exit code.

    The config file is loaded first, since it may change the timeouts of
    the path cache and of shell detection. Pre-warming of the path cache
    and shell detection are then started in the background, so that they
    run while the starting directory is checked.
    """
    args = make_parser().parse_args(argv)
    logger.enable(level=get_log_level(args))
    settings.ensure_config_file()
    settings.update_config(get_overrides(args))
    config = settings.config
    path_cache = PathCache(timeout=config['lookup-timeout'])
    path_cache.prewarm()
    detector = ShellDetector(path_cache, timeout=config['shell-timeout'])
    detector.start()
    try:
        return run(path_cache, detector)
    except KeyboardInterrupt:
        return EXIT_SUCCESS
    finally:
        path_cache.close()

def run(path_cache, detector):
    config = settings.config
    try:
        starting_dir = validate_starting_dir(config['starting-dir'])
    except ConfigError as exc:
        logger.error(str(exc))
        return EXIT_FAILURE
    shell_name = detector.detect()
    shell = detector.path or path_cache.get_path(shell_name) or shell_name
    try:
        path = pick(starting_dir, shell, config)
    except PickerError as exc:
        logger.error(str(exc))
        return EXIT_SUCCESS
    if path is None:
        return EXIT_SUCCESS
    mime_resolver = MimeResolver(path_cache, config['mime-command'],
                                 config['mime-timeout'])
    try:
        open_file(path, path_cache, mime_resolver, config)
    except LaunchError as exc:
        logger.error(str(exc))
        return EXIT_FAILURE
    return EXIT_SUCCESS
