"""
Command-line interface for llvmlibc-build.

This module provides the `llvmlibc-build` CLI tool, normally run from a cargo
build script to build LLVM libc and print the linker directives.
"""

import argparse
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from llvmlibc_build.build import (
    ArchiveError,
    CMakeConfig,
    CMakeError,
    CompilationError,
    LibcBuildOrchestrator,
    PlaceholderArchiveError,
)
from llvmlibc_build.cli_utils import (
    ConfigResolver,
    ErrorFormatter,
    PathValidator,
    setup_logging,
)
from llvmlibc_build.config import LibcConfigError, MissingEnvironmentError
from llvmlibc_build.config.environment import ToolchainEnvironmentError

# Used outside cargo, when neither -o nor OUT_DIR is given
DEFAULT_OUT_DIR = Path("target") / "llvmlibc"


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    source_root: Path
    out_dir: Optional[Path] = None
    config: Optional[Path] = None
    placeholders: List[str] = field(default_factory=list)
    placeholder_dir: Optional[Path] = None
    verbose: bool = False


@dataclass
class DefinesArgs:
    """Arguments for the defines command."""

    source_root: Path
    config: Optional[Path] = None
    scudo: bool = True


def resolve_out_dir(source_root: Path, out_dir: Optional[Path]) -> Optional[Path]:
    """Pick the output directory; None leaves it to OUT_DIR."""
    if out_dir is not None:
        return out_dir
    if os.environ.get("OUT_DIR"):
        return None
    return source_root / DEFAULT_OUT_DIR


def build_command(args: BuildArgs) -> None:
    """Build LLVM libc and print cargo linker directives.

    Examples:
        llvmlibc-build build                  # Build from the current directory
        llvmlibc-build build -o target/libc   # Explicit output directory
        llvmlibc-build build --placeholder unwind
    """
    try:
        config = ConfigResolver.resolve_config(args.source_root, args.config)
        orchestrator = LibcBuildOrchestrator(
            args.source_root,
            out_dir=resolve_out_dir(args.source_root, args.out_dir),
            config=config,
            placeholder_libs=args.placeholders,
            placeholder_dir=args.placeholder_dir,
            verbose=args.verbose,
        )
        result = orchestrator.build()
    except LibcConfigError as e:
        ErrorFormatter.handle_build_error("Invalid configuration", e)
    except ToolchainEnvironmentError as e:
        ErrorFormatter.handle_build_error("Environment error", e)
    except CMakeError as e:
        ErrorFormatter.handle_build_error("CMake build failed", e)
    except (ArchiveError, CompilationError) as e:
        ErrorFormatter.handle_build_error("Archive creation failed", e)
    except PlaceholderArchiveError as e:
        ErrorFormatter.handle_build_error("Placeholder archives need review", e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)
    else:
        result.directives.emit()
        if args.verbose:
            ErrorFormatter.print_success(f"Build successful ({result.build_time:.1f}s)")


def defines_command(args: DefinesArgs) -> None:
    """Print the CMake definitions a build would use, one KEY=VALUE per line."""
    try:
        config = ConfigResolver.resolve_config(args.source_root, args.config, args.scudo)
    except LibcConfigError as e:
        ErrorFormatter.handle_build_error("Invalid configuration", e)
        return

    defines = CMakeConfig.from_libc_config(config).defines
    for key in sorted(defines):
        print(f"{key}={defines[key]}")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llvmlibc-build",
        description="Build LLVM libc for static linking into a cargo crate",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build libc, libm and libstartup.a and print linker directives",
    )
    build_parser.add_argument(
        "source_root",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Directory holding src/libc and src/compiler-rt (default: current directory)",
    )
    build_parser.add_argument(
        "-o",
        "--out-dir",
        type=Path,
        default=None,
        help="Output directory (default: $OUT_DIR, else <source_root>/target/llvmlibc)",
    )
    build_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: <source_root>/llvmlibc.ini if present)",
    )
    build_parser.add_argument(
        "--placeholder",
        dest="placeholders",
        action="append",
        default=[],
        metavar="NAME",
        help="Provide an empty lib<NAME>.a (repeatable, e.g. --placeholder unwind)",
    )
    build_parser.add_argument(
        "--placeholder-dir",
        type=Path,
        default=None,
        help="Directory where reviewed placeholder archives are kept (default: <source_root>/placeholders)",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Defines command
    defines_parser = subparsers.add_parser(
        "defines",
        help="Print the CMake definitions for the configuration",
    )
    defines_parser.add_argument(
        "source_root",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Directory holding src/libc (default: current directory)",
    )
    defines_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: <source_root>/llvmlibc.ini if present)",
    )
    defines_parser.add_argument(
        "--no-scudo",
        dest="scudo",
        action="store_false",
        help="Leave the scudo allocator out of the build",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(getattr(parsed_args, "verbose", False))

    if parsed_args.command == "build":
        PathValidator.validate_source_root(parsed_args.source_root)
        build_command(
            BuildArgs(
                source_root=parsed_args.source_root,
                out_dir=parsed_args.out_dir,
                config=parsed_args.config,
                placeholders=parsed_args.placeholders,
                placeholder_dir=parsed_args.placeholder_dir,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "defines":
        defines_command(
            DefinesArgs(
                source_root=parsed_args.source_root,
                config=parsed_args.config,
                scudo=parsed_args.scudo,
            )
        )


if __name__ == "__main__":
    main()
