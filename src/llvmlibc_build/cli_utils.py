"""CLI utility functions for llvmlibc-build.

This module provides common utilities used across CLI commands including:
- Logging setup
- Configuration loading for a source root
- Error handling and formatting
- Path validation
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from llvmlibc_build.config import DEFAULT_CONFIG_NAME, LibcConfig, load_libc_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_console_handler: Optional[logging.Handler] = None


def setup_logging(verbose: bool = False) -> None:
    """Send library logging to stderr; stdout is reserved for cargo directives."""
    global _console_handler

    # Configure root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if _console_handler is not None:
        logger.removeHandler(_console_handler)
    _console_handler = logging.StreamHandler(sys.stderr)
    _console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_console_handler)


class ConfigResolver:
    """Builds the LibcConfig for a source root."""

    @staticmethod
    def resolve_config(
        source_root: Path,
        config_path: Optional[Path] = None,
        with_scudo: bool = True,
    ) -> LibcConfig:
        """Create the preset for ``source_root`` and apply its llvmlibc.ini.

        Args:
            source_root: Directory holding src/libc and src/compiler-rt
            config_path: Explicit INI file (``<source_root>/llvmlibc.ini``
                is used when present and this is None)
            with_scudo: Start from the scudo preset

        Returns:
            Resolved LibcConfig

        Raises:
            LibcConfigError: If the INI file is invalid
        """
        src = source_root.resolve() / "src"
        if with_scudo:
            base = LibcConfig.new_with_scudo(src / "libc", src / "compiler-rt")
        else:
            base = LibcConfig.new_default(src / "libc")

        if config_path is None:
            candidate = source_root / DEFAULT_CONFIG_NAME
            if not candidate.exists():
                return base
            config_path = candidate

        return load_libc_config(config_path, base)


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message to stderr.

        Args:
            title: Error title (e.g., "CMake build failed")
            message: Error message details
        """
        print(file=sys.stderr)
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}", file=sys.stderr)
        print(file=sys.stderr)
        print(message, file=sys.stderr)
        print(file=sys.stderr)

    @staticmethod
    def print_success(message: str) -> None:
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}", file=sys.stderr)

    @staticmethod
    def print_warning(message: str) -> None:
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}", file=sys.stderr)

    @staticmethod
    def handle_build_error(title: str, error: Exception) -> None:
        """Report a fatal build error and exit with status 1."""
        ErrorFormatter.print_error(title, str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:", file=sys.stderr)
            print(traceback.format_exc(), file=sys.stderr)

        sys.exit(1)


class PathValidator:
    """Validates source root paths."""

    @staticmethod
    def validate_source_root(source_root: Path) -> None:
        """Validate that the source root exists and contains src/libc.

        Raises:
            SystemExit: If the path is missing or has no src/libc
        """
        if not source_root.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: Not a directory: {source_root}{ErrorFormatter.RESET}",
                file=sys.stderr,
            )
            sys.exit(2)
        if not (source_root / "src" / "libc").is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: No src/libc in {source_root}{ErrorFormatter.RESET}",
                file=sys.stderr,
            )
            sys.exit(2)
