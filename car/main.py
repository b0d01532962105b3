"""
Main entry point into the car script.
"""
import argparse
import sys
from typing import Any, Dict, List, Optional


__all__ = ['main']

_VERSION_ = '0.1.0'
_DESCRIPTION_ = """
Command line tool for creating compressed archives.
"""
_CREATE_DESCRIPTION_ = """
Create a compressed archive from the list of sources and write it to the
destination. Tar is the default format; --type is ignored when the format is
zip, since zip comes with its own compression.
"""
_NOTES_ = """
Settings can also come from CAR_* environment variables and a JSON config
file. Command flags take precedence over both.
"""

# Positional arguments and options that aren't settings
_NOT_SETTINGS = ('command', 'destination', 'sources')


def _add_bool(parser: argparse.ArgumentParser, flag: str, help_text: str):
    parser.add_argument(
        flag,
        action=argparse.BooleanOptionalAction,
        default=argparse.SUPPRESS,
        help=help_text,
    )


def _add_setting(parser: argparse.ArgumentParser, flag: str, help_text: str,
                 dest: Optional[str] = None):
    # Values are kept as strings; ConfigProvider does the typed conversion
    parser.add_argument(
        flag,
        dest=dest or flag.lstrip('-'),
        default=argparse.SUPPRESS,
        help=help_text,
    )


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='car',
        description=_DESCRIPTION_,
        epilog=_NOTES_,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {_VERSION_}',
    )
    subparsers = parser.add_subparsers(dest='command', metavar='command')
    subparsers.required = True

    create = subparsers.add_parser(
        'create',
        description=_CREATE_DESCRIPTION_,
        epilog=_NOTES_,
        help='create a compressed archive from the sources',
    )
    create.add_argument(
        'destination',
        nargs='?',
        default='',
        help='path of the archive to write',
    )
    create.add_argument(
        'sources',
        nargs='*',
        help='files and directories to archive',
    )
    _add_bool(create, '--logging', 'enable/disable log output')
    _add_setting(create, '--type', 'tar compression type (ignored for zip)')
    _add_setting(create, '--format', 'archive format: tar (default) or zip')
    _add_bool(create, '--usefullpath', 'keep the full source path in archive entries')
    _add_setting(create, '--owner', 'owner uid for tar entries')
    _add_setting(create, '--group', 'group gid for tar entries')
    _add_setting(create, '--mode', 'permission bits for tar entries, e.g. 0644')
    _add_setting(create, '--exclude-ext', 'comma-separated extensions to exclude')
    _add_setting(create, '--include-ext', 'comma-separated extensions to include')
    _add_setting(create, '--exclude-anchored', 'path prefix to exclude')
    _add_setting(create, '--include-anchored', 'path prefix to include')
    _add_bool(create, '--verbose', 'verbose output')
    _add_setting(create, '--config', 'JSON config file', dest='configfilename')
    _add_setting(create, '--logfile', 'write JSON structured logs to LOGFILE')
    return parser.parse_args(argv)


def _flag_values(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        key: value
        for key, value in vars(args).items()
        if key not in _NOT_SETTINGS
    }


def _create(args: argparse.Namespace) -> str:
    from .config import ConfigProvider
    from .logger import configure_logging
    from .resolver import resolve
    from .runner import ArchiveExecutor

    config = ConfigProvider.load(flags=_flag_values(args))
    logger = configure_logging(config)
    logger.debug('Create %s from %s', args.destination, args.sources)

    plan = resolve(config, args.destination, args.sources)
    return ArchiveExecutor().run(plan)


def main(argv: Optional[List[str]] = None) -> int:
    # For setup.py, the commands require dependencies that haven't yet been
    # installed. In order to use `main` as an entry point, we need to move
    # these imports here.
    from .errors import CarError

    args = _parse_args(argv)
    try:
        message = _create(args)
    except CarError as ex:
        print(f'[ERROR] {ex}', file=sys.stderr)
        return 1

    print(message)
    return 0
