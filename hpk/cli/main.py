"""Main CLI entry point for hpk-exec."""

import argparse
import sys
from typing import Optional

from .commands import exec_string_command, run_command


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--config',
        type=str,
        help='Path to launcher configuration YAML file'
    )
    parser.add_argument(
        '--env',
        action='append',
        metavar='KEY=VALUE',
        help='Environment overlay entry (can be specified multiple times)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error log output'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default=None,
        help='Set log level (default: from config, else info)'
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the hpk-exec CLI."""
    parser = argparse.ArgumentParser(
        prog='hpk-exec',
        description='Run external programs with captured output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run a program and wait for it')
    _add_common_arguments(run_parser)
    run_parser.add_argument(
        '--dir',
        type=str,
        default='',
        help='Working directory for the program'
    )
    # Both write to stdout
    output_mode = run_parser.add_mutually_exclusive_group()
    output_mode.add_argument(
        '--stream',
        action='store_true',
        help='Stream output while the program runs'
    )
    output_mode.add_argument(
        '--json',
        action='store_true',
        help='Print the execution result as JSON'
    )
    run_parser.add_argument('program', type=str, help='Program to run')
    run_parser.add_argument('arguments', nargs=argparse.REMAINDER, help='Program arguments')

    # Exec-string command
    string_parser = subparsers.add_parser('exec-string', help='Run a space-delimited command line')
    _add_common_arguments(string_parser)
    string_parser.add_argument('command_line', type=str, help='Command line, split on single spaces')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'run':
        return run_command(parsed_args)
    elif parsed_args.command == 'exec-string':
        return exec_string_command(parsed_args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
