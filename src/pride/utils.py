"""
General utility functions for pride.

This module provides common functionality used across the workspace tooling
including:
- Logging configuration with stdout/stderr separation
- Subprocess execution with output forwarded to loggers
- Executable discovery
- Path removal that treats links, files and directories alike
- Per-command caching in the Typer context

The logger function configures logging with INFO to stdout and WARNING+ to stderr,
respecting the LOG_LEVEL environment variable.
"""

import functools
import logging
import os
import pathlib
import shutil
import subprocess
import sys
import threading
from collections import deque
from collections.abc import Iterator
from os import PathLike
from typing import Any, Callable, TextIO, TypeVar

import typer

T = TypeVar("T")


def logger(name: str | None = None, validate_name: bool = True) -> logging.Logger:
    """
    Get a configured logger instance.

    Configures a logger with stdout for INFO and stderr for WARNING and above.
    The log level can be controlled via the LOG_LEVEL environment variable.

    Args:
        name: Name of the logger. Defaults to the current directory name.
              If "__main__", uses the stem of the current file.
        validate_name: Whether to validate and potentially shorten the logger name.

    Returns:
        A configured logging.Logger instance.
    """
    _configure_root_logger()
    if not name:
        name = pathlib.Path.cwd().name
    elif validate_name:
        if name == "__main__":
            name = __file__
        name_file = run_catching(pathlib.Path, name)
        if name_file and name_file.is_file():
            name = name_file.stem
    return logging.getLogger(name)


@functools.cache
def _configure_root_logger():
    """
    Configure the root logger with stdout and stderr handlers.

    Logs up to INFO level are directed to stdout, while WARNING and above
    are directed to stderr.
    """

    def _create_handler(
        stream: TextIO,
        level: int,
        filter_fn: Callable[[logging.LogRecord], bool] | None = None,
    ) -> logging.Handler:
        """Create a stream handler with an optional filter."""
        handler = logging.StreamHandler(stream)  # type: ignore[arg-type]
        handler.setLevel(level)
        if filter_fn is not None:
            handler.addFilter(filter_fn)
        return handler

    handlers = [
        _create_handler(
            sys.stdout, logging.DEBUG, lambda record: record.levelno <= logging.INFO
        ),
        _create_handler(
            sys.stderr, logging.WARNING, lambda record: record.levelno > logging.INFO
        ),
    ]

    log_level_env = os.getenv("LOG_LEVEL", "").upper()
    log_level = logging.getLevelNamesMapping().get(log_level_env, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def _logger():
    """Get the internal utils logger for debug output."""
    return logger("utils", validate_name=False)


def _run_catching_handler(e: Exception, message: str = None) -> T:
    """Default handler for run_catching that logs errors at DEBUG level."""
    _logger().debug("%s: %s", message or "Exception suppressed", e)
    return None


def run_catching(
    fn: Callable[..., T],
    *args: Any,
    exception_handler: Callable[[Exception], T] | None = _run_catching_handler,
    **kwargs: Any,
) -> T:
    """
    Execute a function and catch exceptions with a handler.

    Used for best-effort operations such as closing process streams, where a
    failure should not mask the primary result.

    Args:
        fn: Function to call.
        *args: Positional arguments for the function.
        exception_handler: Callback to handle exceptions. Defaults to logging and returning None.
        **kwargs: Keyword arguments for the function.

    Returns:
        The function result, or the result of the exception handler on failure.
    """
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        if exception_handler is not None:
            return exception_handler(e)


def command_meta_cache(
    ctx: typer.Context,
    key: str,
    value_factory: Callable[[], T],
    on_close: Callable[[T], None] = None,
) -> T:
    """
    Cache a value in the Typer context metadata with optional cleanup.

    Stores a value that should only be computed once per command invocation.
    Automatically handles cleanup when the command completes if `on_close` is provided.

    Args:
        ctx: Typer context.
        key: Cache key for storage.
        value_factory: Function to create the value if not already cached.
        on_close: Optional callback for cleanup when the context closes.

    Returns:
        The cached or newly created value.
    """
    if key not in ctx.meta:
        value = value_factory()
        _logger().debug("Meta cache update: key:%s value:%s", key, value)
        ctx.meta[key] = value
        if on_close is not None:
            ctx.call_on_close(lambda: on_close(value))
        return value
    else:
        return ctx.meta[key]


def delete_path(path: pathlib.Path) -> bool:
    """
    Remove a path whether it is a symbolic link, a file or a directory tree.

    Links are unlinked without following them, so the target of a linked
    module directory is left untouched.

    Args:
        path: Path to remove.

    Returns:
        True if something was removed, False if the path did not exist.
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    elif path.is_dir():
        shutil.rmtree(path)
        return True
    return False


def process_run(
    args: list[Any] | str,
    cwd: os.PathLike | str | None = None,
    stderr_log_level: int | None = logging.DEBUG,
    check: bool = True,
    strip: bool = True,
) -> str:
    """
    Execute a command synchronously and return its stdout as a string.

    Args:
        args: Command and arguments as a list or a single string.
        cwd: Directory to run the command in.
        stderr_log_level: Log level for stderr output (default DEBUG). Set to None to suppress.
        check: If True, raises subprocess.CalledProcessError on non-zero exit.
        strip: Whether to strip leading/trailing whitespace from the output.

    Returns:
        The command's stdout as a string.

    Raises:
        subprocess.CalledProcessError: If check is True and the command fails.
    """
    lines = list(
        process_start(args, cwd=cwd, stderr_log_level=stderr_log_level, check=check)
    )
    output = "\n".join(lines)
    if strip:
        output = output.strip()
    return output


def process_start(
    args: list[Any] | str,
    cwd: os.PathLike | str | None = None,
    stdout_log_level: int | None = None,
    stderr_log_level: int | None = logging.DEBUG,
    check: bool = True,
    log: logging.Logger | None = None,
) -> Iterator[str]:
    """
    Execute a command and yield its stdout line by line.

    Runs a subprocess and provides its output incrementally through an iterator.
    Stderr is drained on a background thread and logged so that long-running
    tools cannot block on a full pipe.

    Args:
        args: Command and arguments as a list or a single string.
        cwd: Directory to run the command in.
        stdout_log_level: Logging level for stdout. If set, each line is also logged.
        stderr_log_level: Log level for stderr output (default DEBUG). Set to None to suppress.
        check: If True, raises subprocess.CalledProcessError on non-zero exit.
        log: Logger receiving the output lines. Defaults to the utils logger.

    Yields:
        Each line of the command's stdout.

    Raises:
        subprocess.CalledProcessError: If check is True and the command fails.
    """
    if isinstance(args, str):
        process_args = [args]
    else:
        process_args = [
            os.fspath(arg) if isinstance(arg, PathLike) else str(arg) for arg in args
        ]
    log = log or _logger()
    _logger().debug("Executing command: %s cwd:%s", process_args, cwd)
    proc = subprocess.Popen(
        process_args,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE if stderr_log_level is not None else subprocess.DEVNULL,
        text=True,
        bufsize=1,
    )

    thread: threading.Thread | None = None
    try:
        if stderr_log_level is not None:
            thread = threading.Thread(
                target=lambda s, lvl: deque(
                    _process_read_stream(s, lvl, log), maxlen=0
                ),
                args=(proc.stderr, stderr_log_level),
                daemon=True,
            )
            thread.start()
        # noinspection PyTypeChecker
        yield from _process_read_stream(proc.stdout, stdout_log_level, log)
    finally:
        for out_stream in [proc.stdout, proc.stderr]:
            if out_stream:
                run_catching(out_stream.close)
        if thread:
            thread.join()
        ret = proc.wait()

        if check and ret != 0:
            raise subprocess.CalledProcessError(
                ret,
                process_args,
            )


def _process_read_stream(
    out_stream: TextIO, log_level: int | None, log: logging.Logger
) -> Iterator[str]:
    """
    Internal helper to read lines from a stream and optionally log them.

    Args:
        out_stream: The stream to read from
        log_level: The log level to use for each line, or None to skip logging
        log: The logger receiving each line

    Yields:
        Each line read from the stream
    """
    for out_line in iter(out_stream.readline, ""):
        out_line = out_line.rstrip()
        if log_level is not None:
            log.log(log_level, out_line)
        yield out_line


@functools.lru_cache(maxsize=None)
def which(name: str) -> pathlib.Path | None:
    """
    Locate an executable in the system path.

    Finds the absolute path to a tool (like `git` or `gradle`) needed by pride.
    Caches results to avoid repeated filesystem lookups.

    Args:
        name: Name or path of the executable to find.

    Returns:
        Path to the executable if found, otherwise None.
    """
    path = run_catching(shutil.which, name)
    if path:
        return pathlib.Path(path)
    else:
        file = pathlib.Path(name)
        if file.is_file() and os.access(file, os.X_OK):
            return file
    _logger().warning(f"Executable not found: {name}")
    return None
