"""Run and exec-string command implementations."""

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Callable, Optional, Tuple

from hpk.config import LauncherConfig, load_config
from hpk.exceptions import ConfigValidationError, ExecutionFailure, InvalidCommand, StartFailure
from hpk.process import CommandLauncher
from hpk.types import ExecutionResult


logger = logging.getLogger(__name__)

# Shell convention for "command not found"
START_FAILURE_EXIT_CODE = 127


def setup_logging(args: Namespace, default_level: str = 'info') -> None:
    """Configure root logging from CLI flags, falling back to the config level."""
    level_name = args.log_level or default_level
    log_level = getattr(logging, level_name.upper())
    if args.debug:
        log_level = logging.DEBUG
    elif args.quiet:
        log_level = logging.ERROR

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def build_launcher(args: Namespace) -> Tuple[Optional[CommandLauncher], int]:
    """
    Load configuration and construct the launcher.

    Returns:
        Tuple of (launcher, exit_code) - launcher is None when configuration failed
    """
    try:
        config: LauncherConfig = load_config(Path(args.config) if args.config else None)
        config = config.with_environment(args.env or [])
    except ConfigValidationError as e:
        setup_logging(args)
        for error in e.errors:
            logger.error(f"Validation error: {error.message}")
        return None, e.exit_code
    except ValueError as e:
        setup_logging(args)
        logger.error(f"Validation error: {e}")
        return None, 2

    setup_logging(args, config.log_level)
    if config.source:
        logger.debug(f"Loaded configuration: {config.source}")
    return config.create_launcher(), 0


def _write_stdout(data: bytes) -> None:
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def _exit_code(result: ExecutionResult) -> int:
    if result.success:
        return 0
    if result.returncode is None or result.returncode <= 0:
        # Killed by a signal or output copy failed
        return 1
    return result.returncode


def _execute(name: str, run: Callable[[], bytes]) -> Tuple[Optional[ExecutionResult], int]:
    try:
        output = run()
    except InvalidCommand as e:
        logger.error(str(e))
        return None, 2
    except StartFailure as e:
        logger.error(str(e))
        return None, START_FAILURE_EXIT_CODE
    except ExecutionFailure as e:
        # Output is printed separately, log the cause only
        logger.error(f"{name} failed: {e.__cause__}")
        return e.result, _exit_code(e.result)
    return ExecutionResult(output=output, success=True, returncode=0), 0


def run_command(args: Namespace) -> int:
    """Run a program to completion and relay its output and exit status."""
    launcher, exit_code = build_launcher(args)
    if launcher is None:
        return exit_code

    arguments = list(args.arguments)
    if arguments and arguments[0] == '--':
        arguments = arguments[1:]

    if args.stream:
        sink = sys.stdout.buffer
        sys.stdout.flush()
        result, exit_code = _execute(
            args.program,
            lambda: launcher.logged_execute_in_directory(args.dir, sink, args.program, *arguments),
        )
    else:
        result, exit_code = _execute(
            args.program,
            lambda: launcher.execute_in_directory(args.dir, args.program, *arguments),
        )

    if result is not None:
        if args.json:
            print(json.dumps(result.to_state_dict(), indent=2))
        elif not args.stream:
            _write_stdout(result.output)

    return exit_code


def exec_string_command(args: Namespace) -> int:
    """Run a space-delimited command line and relay its output and exit status."""
    launcher, exit_code = build_launcher(args)
    if launcher is None:
        return exit_code

    result, exit_code = _execute(
        args.command_line,
        lambda: launcher.execute_string(args.command_line),
    )
    if result is not None:
        _write_stdout(result.output)
    return exit_code
