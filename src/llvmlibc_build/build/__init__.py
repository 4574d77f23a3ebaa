"""
Build system components for llvmlibc-build.

This module provides the build system implementation including:
- CMake configuration and target builds
- Static archive creation (ar)
- Placeholder archive synthesis
- Build orchestration and linker directives
"""

from .archive_creator import (
    ArchiveCreator,
    ArchiveError,
    PlaceholderOutcome,
    PlaceholderResult,
)
from .cmake import CMakeConfig, CMakeError
from .compilation_executor import CompilationError, CompilationExecutor
from .linkage import LinkDirectives
from .orchestrator import (
    BuildOrchestratorError,
    BuildResult,
    LibcBuildOrchestrator,
    PlaceholderArchiveError,
)

__all__ = [
    "ArchiveCreator",
    "ArchiveError",
    "PlaceholderOutcome",
    "PlaceholderResult",
    "CMakeConfig",
    "CMakeError",
    "CompilationError",
    "CompilationExecutor",
    "LinkDirectives",
    "BuildOrchestratorError",
    "BuildResult",
    "LibcBuildOrchestrator",
    "PlaceholderArchiveError",
]
