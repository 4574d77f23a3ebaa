"""Compilation Executor.

This module compiles single standalone source files outside of the CMake
build, such as the assembly stubs behind placeholder archives.

Design:
    - Compilers are given by name or path and resolved on PATH
    - Target triple is passed with --target when set
    - Compiler output is captured and reported on failure
"""

import shutil
import sys
from pathlib import Path
from typing import List, Mapping, Optional

from .process import describe_failure, run_tool


class CompilationError(Exception):
    """Raised when compilation operations fail."""
    pass


class CompilationExecutor:
    """Runs the C compiler on single source files."""

    def __init__(
        self,
        compiler: str,
        target_triple: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        show_progress: bool = False,
    ):
        """Initialize compilation executor.

        Args:
            compiler: Compiler executable name or path (e.g. "clang")
            target_triple: Triple passed as --target, if any
            env: Environment for the compiler process
            show_progress: Whether to show compilation progress
        """
        self.compiler = compiler
        self.target_triple = target_triple
        self.env = env
        self.show_progress = show_progress

    def resolve_compiler(self) -> str:
        """Find the compiler executable.

        Raises:
            CompilationError: If the compiler cannot be found
        """
        path = self.env.get("PATH") if self.env is not None else None
        resolved = shutil.which(self.compiler, path=path)
        if resolved is None:
            raise CompilationError(
                f"Compiler not found: {self.compiler}. Set CC or install it on PATH."
            )
        return resolved

    def compile_source(
        self,
        source_path: Path,
        output_path: Path,
        compile_flags: Optional[List[str]] = None,
    ) -> Path:
        """Compile a single source file to an object file.

        Args:
            source_path: Path to source file
            output_path: Path for output object file
            compile_flags: Extra compilation flags

        Returns:
            Path to generated object file

        Raises:
            CompilationError: If compilation fails
        """
        if not source_path.exists():
            raise CompilationError(f"Source file not found: {source_path}")

        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = [self.resolve_compiler()]
        if self.target_triple:
            cmd.append(f"--target={self.target_triple}")
        cmd.extend(compile_flags or [])
        cmd.extend(["-c", str(source_path)])
        cmd.extend(["-o", str(output_path)])

        if self.show_progress:
            print(f"Compiling {source_path.name}...", file=sys.stderr)

        try:
            result = run_tool(cmd, env=self.env)
        except OSError as e:
            raise CompilationError(f"Failed to compile {source_path.name}: {e}") from e

        if result.returncode != 0:
            raise CompilationError(
                describe_failure(f"Compilation failed for {source_path.name}", result)
            )

        if not output_path.exists():
            raise CompilationError(f"Object file was not created: {output_path}")

        return output_path
