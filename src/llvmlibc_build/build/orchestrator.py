"""
Build orchestration for LLVM libc.

This module coordinates the whole libc build, from the configuration model
to the linker directives handed back to cargo:
- Source path resolution and configuration presets
- Toolchain defaulting (CC/CXX) and target triple selection
- CMake configuration and per-target builds
- Startup object collection and the merged libstartup.a archive
- Optional placeholder archives
- Linker directive emission

Any failure aborts the build; a partially built libc is never linked.
"""

import logging
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..config.environment import (
    MissingEnvironmentError,
    ToolchainEnvironment,
    apply_toolchain_defaults,
    resolve_environment,
)
from ..config.libc_config import LibcConfig
from .archive_creator import ArchiveCreator, PlaceholderResult
from .cmake import CMakeConfig
from .compilation_executor import CompilationExecutor
from .linkage import LinkDirectives

logger = logging.getLogger(__name__)

# Built in this order; the first target's output root is the canonical one
LIBC_TARGETS = (
    "libc",
    "libm",
    "libc.startup.linux.crt1.__relocatable__",
    "libc.startup.linux.crti",
    "libc.startup.linux.crtn",
)

STARTUP_LIBRARY = "startup"
STATIC_LIBS = ("c", "m", STARTUP_LIBRARY)

# Reviewed placeholder archives live here, relative to the source root
DEFAULT_PLACEHOLDER_DIR = Path("placeholders")

TOTAL_PHASES = 7


class BuildOrchestratorError(Exception):
    """Exception raised for build orchestration errors."""
    pass


class PlaceholderArchiveError(BuildOrchestratorError):
    """Raised when placeholder archives were created and must be reviewed."""

    def __init__(self, results: Sequence[PlaceholderResult]):
        self.results = list(results)
        paths = "\n".join(f"  {result.path}" for result in self.results)
        super().__init__(
            "New placeholder archives were created:\n"
            + paths
            + "\nInspect them and commit them to the repository, then rerun the build."
        )


@dataclass(frozen=True)
class StartupObjects:
    """Startup object files produced by the libc build tree."""

    crt1: Path
    crti: Path
    crtn: Path

    def as_list(self) -> List[Path]:
        return [self.crt1, self.crti, self.crtn]


def startup_object_paths(root: Path) -> StartupObjects:
    """Locate the startup objects under a CMake output root."""
    startup_dir = root / "build" / "startup" / "linux"
    cmake_files = startup_dir / "CMakeFiles"
    return StartupObjects(
        crt1=startup_dir / "crt1.o",
        crti=cmake_files / "libc.startup.linux.crti.dir" / "crti.cpp.o",
        crtn=cmake_files / "libc.startup.linux.crtn.dir" / "crtn.cpp.o",
    )


def library_dir(root: Path) -> Path:
    return root / "build" / "lib"


@dataclass
class BuildResult:
    """Result of a complete libc build."""

    out_dir: Path
    lib_dir: Path
    startup_archive: Path
    directives: LinkDirectives
    placeholders: List[PlaceholderResult] = field(default_factory=list)
    build_time: float = 0.0


class LibcBuildOrchestrator:
    """
    Orchestrates the complete LLVM libc build.

    Phases:
    1. Resolve the libc and compiler-rt source trees and the configuration
    2. Default CC/CXX and resolve the target triple
    3. Configure CMake from the configuration
    4. Build libc, libm and the three startup objects
    5. Locate the startup objects
    6. Merge them into libstartup.a (plus any placeholder archives)
    7. Produce the linker directives

    Example usage:
        orchestrator = LibcBuildOrchestrator(Path("."), verbose=True)
        result = orchestrator.build()
        result.directives.emit()
    """

    def __init__(
        self,
        source_root: Path,
        environ: Optional[Mapping[str, str]] = None,
        out_dir: Optional[Path] = None,
        config: Optional[LibcConfig] = None,
        placeholder_libs: Sequence[str] = (),
        placeholder_dir: Optional[Path] = None,
        archive_creator: Optional[ArchiveCreator] = None,
        cmake: str = "cmake",
        verbose: bool = False,
    ):
        """
        Initialize build orchestrator.

        Args:
            source_root: Directory holding src/libc and src/compiler-rt
            environ: Environment to build with (defaults to a copy of os.environ)
            out_dir: Output root (defaults to OUT_DIR)
            config: Build configuration (defaults to the scudo preset)
            placeholder_libs: Libraries to satisfy with placeholder archives
            placeholder_dir: Where reviewed placeholder archives are kept
                (defaults to <source_root>/placeholders)
            archive_creator: Archive creator (one using ``ar`` when None)
            cmake: cmake executable
            verbose: Enable verbose output
        """
        self.source_root = Path(source_root)
        self.environ: Dict[str, str] = dict(environ if environ is not None else os.environ)
        self.out_dir = out_dir
        self.config = config
        self.placeholder_libs = list(placeholder_libs)
        self.placeholder_dir = placeholder_dir
        self.archive_creator = archive_creator or ArchiveCreator(show_progress=verbose)
        self.cmake = cmake
        self.verbose = verbose

    def _phase(self, number: int, message: str) -> None:
        if self.verbose:
            print(f"[{number}/{TOTAL_PHASES}] {message}", file=sys.stderr)
        logger.info("%s", message)

    def get_source_paths(self) -> Tuple[Path, Path]:
        """Absolute paths of the libc and compiler-rt source trees."""
        src = self.source_root.resolve() / "src"
        return src / "libc", src / "compiler-rt"

    def build(self) -> BuildResult:
        """
        Execute the complete build.

        Returns:
            BuildResult with the output paths and linker directives

        Raises:
            MissingEnvironmentError: If a required variable is unset
            CMakeError: If configuring or building any target fails
            ArchiveError: If the archiver fails
            CompilationError: If a placeholder stub fails to compile
            PlaceholderArchiveError: If placeholder archives were newly created
        """
        start_time = time.time()

        self._phase(1, "Resolving sources and configuration...")
        libc_path, compiler_rt_path = self.get_source_paths()
        config = self.config or LibcConfig.new_with_scudo(libc_path, compiler_rt_path)

        self._phase(2, "Resolving toolchain...")
        env = apply_toolchain_defaults(dict(self.environ))
        toolchain = resolve_environment(env)
        if self.verbose:
            print(f"      CC={toolchain.cc} CXX={toolchain.cxx}", file=sys.stderr)
            print(f"      Target: {toolchain.target_triple}", file=sys.stderr)

        self._phase(3, "Configuring CMake...")
        cmake_cfg = self.create_cmake_config(config, toolchain, env)

        self._phase(4, f"Building {len(LIBC_TARGETS)} targets...")
        root = self.build_targets(cmake_cfg)

        self._phase(5, "Locating startup objects...")
        startup = startup_object_paths(root)
        lib_dir = library_dir(root)

        self._phase(6, "Creating archives...")
        startup_archive = self.archive_creator.create_archive(
            lib_dir / f"lib{STARTUP_LIBRARY}.a", startup.as_list()
        )
        placeholders = self.create_placeholders(toolchain, env, root, lib_dir)

        self._phase(7, "Emitting linker directives...")
        directives = self.link_directives(lib_dir, placeholders)

        return BuildResult(
            out_dir=root,
            lib_dir=lib_dir,
            startup_archive=startup_archive,
            directives=directives,
            placeholders=placeholders,
            build_time=time.time() - start_time,
        )

    def create_cmake_config(
        self, config: LibcConfig, toolchain: ToolchainEnvironment, env: Mapping[str, str]
    ) -> CMakeConfig:
        """Create the CMake handle for a configuration and toolchain."""
        out_dir = self.out_dir or toolchain.out_dir
        if out_dir is None:
            raise MissingEnvironmentError(
                "Required environment variable OUT_DIR is not set and no output "
                + "directory was given."
            )

        cmake_cfg = CMakeConfig.from_libc_config(
            config,
            out_dir=out_dir,
            cmake=self.cmake,
            jobs=toolchain.num_jobs,
            env=env,
            show_progress=self.verbose,
        )
        cmake_cfg.target(toolchain.target_triple)
        return cmake_cfg

    def build_targets(self, cmake_cfg: CMakeConfig) -> Path:
        """Build every libc target in order, returning the first output root."""
        first, *rest = LIBC_TARGETS
        root = cmake_cfg.build(first)
        for target in rest:
            cmake_cfg.build(target)
        return root

    def get_placeholder_dir(self) -> Path:
        """Directory holding the reviewed placeholder archives."""
        if self.placeholder_dir is not None:
            return self.placeholder_dir
        return self.source_root.resolve() / DEFAULT_PLACEHOLDER_DIR

    def create_placeholders(
        self,
        toolchain: ToolchainEnvironment,
        env: Mapping[str, str],
        root: Path,
        lib_dir: Path,
    ) -> List[PlaceholderResult]:
        """Synthesize the configured placeholder archives.

        Reviewed archives are kept in the placeholder directory and copied
        into ``lib_dir`` so they link from the same search path as libc.

        Raises:
            PlaceholderArchiveError: If any archive did not exist before
        """
        if not self.placeholder_libs:
            return []

        compiler = CompilationExecutor(
            toolchain.cc,
            target_triple=toolchain.target_triple,
            env=env,
            show_progress=self.verbose,
        )
        destination_dir = self.get_placeholder_dir()
        staging_dir = root / "placeholders"

        results = [
            self.archive_creator.create_placeholder_archive(
                compiler, name, staging_dir, destination_dir / f"lib{name}.a"
            )
            for name in self.placeholder_libs
        ]

        new_archives = [result for result in results if result.needs_review]
        if new_archives:
            raise PlaceholderArchiveError(new_archives)

        for result in results:
            self.archive_creator.copy_archive(result.path, lib_dir / result.path.name)
        return results

    def link_directives(
        self, lib_dir: Path, placeholders: Sequence[PlaceholderResult] = ()
    ) -> LinkDirectives:
        """Build the linker directives for the produced libraries."""
        directives = LinkDirectives(search_paths=[lib_dir], static_libs=list(STATIC_LIBS))
        directives.static_libs.extend(result.name for result in placeholders)
        return directives
