"""Linker directives for the enclosing cargo build."""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TextIO


@dataclass
class LinkDirectives:
    """Native search paths and static libraries the host must link against."""

    search_paths: List[Path] = field(default_factory=list)
    static_libs: List[str] = field(default_factory=list)

    def to_cargo_lines(self) -> List[str]:
        lines = [f"cargo:rustc-link-search=native={path}" for path in self.search_paths]
        lines.extend(f"cargo:rustc-link-lib=static={lib}" for lib in self.static_libs)
        return lines

    def emit(self, stream: Optional[TextIO] = None) -> None:
        """Write the directives, one per line (to stdout by default)."""
        if stream is None:
            stream = sys.stdout
        for line in self.to_cargo_lines():
            stream.write(line + "\n")
        stream.flush()
