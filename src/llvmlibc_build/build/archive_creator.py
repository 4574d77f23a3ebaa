"""Archive Creator.

This module handles creating static library archives (.a files) from object
files using the archiver tool (ar).

Design:
    - Wraps ``ar rs <archive> <objects...>``
    - Members are added in exactly the order given
    - Placeholder archives are compiled from an assembly stub and are only
      copied to their destination when it does not exist yet
"""

import logging
import shutil
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from .compilation_executor import CompilationExecutor
from .process import describe_failure, run_tool

logger = logging.getLogger(__name__)

# An empty object is enough to give the linker a library to open
PLACEHOLDER_STUB = """\
    .text
    .section .note.GNU-stack,"",@progbits
"""


class ArchiveError(Exception):
    """Raised when archive creation operations fail."""
    pass


class PlaceholderOutcome(Enum):
    """What happened to a placeholder archive's destination."""

    REUSED = "reused"
    NEEDS_REVIEW = "needs-review"


@dataclass(frozen=True)
class PlaceholderResult:
    """Result of synthesizing one placeholder archive."""

    name: str
    path: Path
    outcome: PlaceholderOutcome

    @property
    def needs_review(self) -> bool:
        return self.outcome is PlaceholderOutcome.NEEDS_REVIEW


class ArchiveCreator:
    """Creates static library archives from object files.

    This class handles:
    - Running archiver (ar) commands
    - Validating archive creation
    - Synthesizing placeholder archives for libraries with no content
    """

    def __init__(self, ar: str = "ar", show_progress: bool = False):
        """Initialize archive creator.

        Args:
            ar: Archiver executable name or path
            show_progress: Whether to show archive creation progress
        """
        self.ar = ar
        self.show_progress = show_progress

    def create_archive(self, archive_path: Path, object_files: Sequence[Path]) -> Path:
        """Create a static library archive holding exactly the given objects.

        Args:
            archive_path: Path for output .a file
            object_files: Object file paths, in member order

        Returns:
            Path to generated archive file

        Raises:
            ArchiveError: If archive creation fails
        """
        if not object_files:
            raise ArchiveError("No object files provided for archive")

        missing = [obj for obj in object_files if not obj.exists()]
        if missing:
            raise ArchiveError(
                "Object files not found: " + ", ".join(str(obj) for obj in missing)
            )

        archive_path.parent.mkdir(parents=True, exist_ok=True)
        # ar r keeps stale members, so start from an empty archive
        if archive_path.exists():
            archive_path.unlink()

        # 'rs' flags: r=insert/replace, s=write symbol index (ranlib)
        cmd = [self.ar, "rs", str(archive_path)]
        cmd.extend(str(obj) for obj in object_files)

        if self.show_progress:
            print(
                f"Creating {archive_path.name} from {len(object_files)} object files...",
                file=sys.stderr,
            )

        try:
            result = run_tool(cmd)
        except OSError as e:
            raise ArchiveError(f"Failed to run archiver {self.ar}: {e}") from e

        if result.returncode != 0:
            raise ArchiveError(
                describe_failure(f"Archive creation failed for {archive_path.name}", result)
            )

        if not archive_path.exists():
            raise ArchiveError(f"Archive was not created: {archive_path}")

        logger.debug("Created %s (%d bytes)", archive_path, archive_path.stat().st_size)
        return archive_path

    def create_placeholder_archive(
        self,
        compiler: CompilationExecutor,
        name: str,
        staging_dir: Path,
        destination: Path,
        stub_source: Optional[Path] = None,
    ) -> PlaceholderResult:
        """Synthesize ``lib<name>.a`` from an assembly stub.

        The stub is always compiled and archived in ``staging_dir``. The
        archive is copied to ``destination`` only when nothing is there yet;
        an existing destination is left byte-for-byte untouched.

        Args:
            compiler: Executor used to assemble the stub
            name: Library name without the ``lib`` prefix
            staging_dir: Scratch directory for the stub, object and archive
            destination: Where the placeholder archive is kept
            stub_source: Assembly source (a minimal stub is written when None)

        Returns:
            PlaceholderResult; NEEDS_REVIEW when the destination was just created

        Raises:
            CompilationError: If the stub fails to compile
            ArchiveError: If archiving or copying fails
        """
        existed = destination.exists()

        staging_dir.mkdir(parents=True, exist_ok=True)
        if stub_source is None:
            stub_source = staging_dir / f"{name}_stub.S"
            stub_source.write_text(PLACEHOLDER_STUB, encoding="utf-8")

        stub_object = compiler.compile_source(stub_source, staging_dir / f"{name}_stub.o")

        staged_archive = staging_dir / f"lib{name}.a"
        self.create_archive(staged_archive, [stub_object])

        if existed:
            logger.debug("Placeholder %s already present, reusing", destination)
            return PlaceholderResult(name, destination, PlaceholderOutcome.REUSED)

        self.copy_archive(staged_archive, destination)
        if self.show_progress:
            print(f"Created placeholder archive {destination}", file=sys.stderr)
        return PlaceholderResult(name, destination, PlaceholderOutcome.NEEDS_REVIEW)

    def copy_archive(self, source: Path, destination: Path) -> Path:
        """Copy an archive, creating the destination directory.

        Raises:
            ArchiveError: If the copy fails
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            raise ArchiveError(f"Failed to copy {source} to {destination}: {e}") from e
        return destination
