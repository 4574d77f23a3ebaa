"""CMake project handle.

This module drives an out-of-tree CMake build of a source directory:
collecting ``-D`` definitions, configuring the build tree and building named
targets.

Design:
    - Definitions live in a plain key -> string map (last write wins)
    - The build tree is always ``<out_dir>/build``
    - Configure runs before the first build and whenever definitions or the
      target triple change
    - Any non-zero exit from cmake raises CMakeError; nothing is retried
"""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import psutil

from ..config.libc_config import LibcConfig
from .process import describe_failure, format_command, run_tool

logger = logging.getLogger(__name__)


class CMakeError(Exception):
    """Raised when configuring or building with CMake fails."""
    pass


class CMakeConfig:
    """Configures and builds one CMake source directory.

    Example:
        cmake_cfg = CMakeConfig.from_libc_config(config, out_dir=Path("out"))
        cmake_cfg.target("x86_64-unknown-linux-gnu")
        root = cmake_cfg.build("libc")
        # libraries end up under root / "build" / "lib"
    """

    def __init__(
        self,
        source_dir: Union[str, Path],
        out_dir: Optional[Path] = None,
        cmake: str = "cmake",
        profile: str = "Release",
        generator: Optional[str] = None,
        jobs: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
        show_progress: bool = False,
    ):
        """Initialize the CMake handle.

        Args:
            source_dir: Directory holding the top-level CMakeLists.txt
            out_dir: Output root (defaults to OUT_DIR in ``env``)
            cmake: cmake executable
            profile: CMAKE_BUILD_TYPE / --config value
            generator: CMake generator name (cmake's default when None)
            jobs: Parallel build jobs (NUM_JOBS, else the CPU count)
            env: Environment for cmake and the compilers it runs
            show_progress: Print configure/build progress
        """
        self.source_dir = Path(source_dir)
        self.env: Dict[str, str] = dict(env) if env is not None else dict(os.environ)
        self.out_dir = out_dir
        self.cmake = cmake
        self.profile = profile
        self.generator = generator
        self.jobs = jobs
        self.show_progress = show_progress
        self.target_triple: Optional[str] = None
        self._defines: Dict[str, str] = {}
        self._configured_with: Optional[Tuple[Optional[str], Dict[str, str]]] = None

    @classmethod
    def from_libc_config(cls, config: LibcConfig, **kwargs) -> "CMakeConfig":
        """Create a handle for ``config.path`` holding every definition of ``config``."""
        cmake_cfg = cls(config.path, **kwargs)
        config.add_to_cmake(cmake_cfg)
        return cmake_cfg

    def define(self, key: str, value: Union[str, Path]) -> "CMakeConfig":
        """Set a ``-D<key>=<value>`` definition, replacing any earlier value."""
        self._defines[key] = str(value)
        return self

    @property
    def defines(self) -> Dict[str, str]:
        return dict(self._defines)

    def target(self, triple: str) -> "CMakeConfig":
        """Set the target triple passed to the C and C++ compilers."""
        self.target_triple = triple
        return self

    def get_out_dir(self) -> Path:
        """Resolve the output root.

        Raises:
            CMakeError: If neither out_dir nor OUT_DIR is set
        """
        if self.out_dir is not None:
            return self.out_dir
        out_dir = self.env.get("OUT_DIR")
        if not out_dir:
            raise CMakeError(
                "No output directory: pass out_dir or set OUT_DIR in the environment"
            )
        return Path(out_dir)

    def get_build_dir(self) -> Path:
        return self.get_out_dir() / "build"

    def get_jobs(self) -> int:
        if self.jobs is not None:
            return self.jobs
        num_jobs = self.env.get("NUM_JOBS")
        if num_jobs and num_jobs.isdigit():
            return int(num_jobs)
        return psutil.cpu_count(logical=True) or 1

    def configure_command(self) -> List[str]:
        """Build the cmake configure command line."""
        out_dir = self.get_out_dir()
        cmd = [
            self.cmake,
            str(self.source_dir),
            "-B",
            str(self.get_build_dir()),
            f"-DCMAKE_BUILD_TYPE={self.profile}",
            f"-DCMAKE_INSTALL_PREFIX={out_dir}",
        ]
        if self.generator:
            cmd.extend(["-G", self.generator])
        if self.target_triple:
            cmd.append(f"-DCMAKE_C_COMPILER_TARGET={self.target_triple}")
            cmd.append(f"-DCMAKE_CXX_COMPILER_TARGET={self.target_triple}")
        # Sorted so identical configurations produce identical command lines
        for key in sorted(self._defines):
            cmd.append(f"-D{key}={self._defines[key]}")
        return cmd

    def build_command(self, target: Optional[str] = None) -> List[str]:
        """Build the ``cmake --build`` command line for a target."""
        cmd = [
            self.cmake,
            "--build",
            str(self.get_build_dir()),
            "--config",
            self.profile,
        ]
        if target:
            cmd.extend(["--target", target])
        cmd.extend(["--parallel", str(self.get_jobs())])
        return cmd

    def configure(self) -> None:
        """Run the configure step.

        Raises:
            CMakeError: If cmake cannot be run or configuration fails
        """
        self.get_build_dir().mkdir(parents=True, exist_ok=True)
        if self.show_progress:
            print(
                f"Configuring {self.source_dir.name} in {self.get_build_dir()}...",
                file=sys.stderr,
            )
        self._run(self.configure_command(), f"CMake configure failed for {self.source_dir}")
        self._configured_with = self._configuration()

    def build(self, target: Optional[str] = None) -> Path:
        """Build a target, configuring first when needed.

        Args:
            target: CMake target name (the default target when None)

        Returns:
            Output root directory; the build tree is ``<root>/build``

        Raises:
            CMakeError: If configuring or building fails
        """
        if self._configured_with != self._configuration():
            self.configure()

        if self.show_progress:
            print(f"Building target {target or '<default>'}...", file=sys.stderr)
        self._run(self.build_command(target), f"CMake build failed for target {target}")
        return self.get_out_dir()

    def _configuration(self) -> Tuple[Optional[str], Dict[str, str]]:
        return self.target_triple, dict(self._defines)

    def _run(self, cmd: List[str], what: str) -> None:
        try:
            result = run_tool(cmd, env=self.env)
        except OSError as e:
            raise CMakeError(f"Failed to run {format_command(cmd)}: {e}") from e

        if result.returncode != 0:
            raise CMakeError(describe_failure(what, result))
        logger.debug("%s", result.stdout)
