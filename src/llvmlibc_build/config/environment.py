"""
Toolchain environment resolution.

Reads the compiler selection and target architecture the enclosing cargo
build hands us through environment variables. Resolution works on an explicit
mapping so callers (and tests) never have to touch the real process
environment; ``apply_toolchain_defaults`` fills in the compiler defaults on a
copy that is then passed to every subprocess.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

DEFAULT_CC = "clang"
DEFAULT_CXX = "clang++"

# vendor-os-abi appended to CARGO_CFG_TARGET_ARCH
TRIPLE_SUFFIX = "unknown-linux-gnu"


class ToolchainEnvironmentError(Exception):
    """Raised when the build environment is unusable."""

    pass


class MissingEnvironmentError(ToolchainEnvironmentError):
    """Raised when a required environment variable is not set."""

    pass


@dataclass(frozen=True)
class ToolchainEnvironment:
    """Resolved toolchain settings for one build."""

    cc: str
    cxx: str
    target_arch: str
    target_triple: str
    out_dir: Optional[Path] = None
    num_jobs: Optional[int] = None


def target_triple_for(arch: str) -> str:
    """Compose the target triple for a cargo target architecture."""
    return f"{arch}-{TRIPLE_SUFFIX}"


def apply_toolchain_defaults(
    environ: MutableMapping[str, str]
) -> MutableMapping[str, str]:
    """Set CXX and CC to the default compilers when they are unset.

    Args:
        environ: Mutable environment mapping, updated in place

    Returns:
        The same mapping
    """
    if "CXX" not in environ:
        environ["CXX"] = DEFAULT_CXX
    if "CC" not in environ:
        environ["CC"] = DEFAULT_CC
    return environ


def require_env(environ: Mapping[str, str], name: str) -> str:
    """Return a required environment variable.

    Raises:
        MissingEnvironmentError: If the variable is unset or empty
    """
    value = environ.get(name)
    if not value:
        raise MissingEnvironmentError(
            f"Required environment variable {name} is not set. "
            + "Run this build from cargo or export it explicitly."
        )
    return value


def resolve_environment(
    environ: Optional[Mapping[str, str]] = None
) -> ToolchainEnvironment:
    """
    Resolve compilers, target triple and build directories from an environment.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        ToolchainEnvironment with defaults applied

    Raises:
        MissingEnvironmentError: If CARGO_CFG_TARGET_ARCH is missing
        ToolchainEnvironmentError: If NUM_JOBS is not an integer
    """
    if environ is None:
        environ = os.environ

    arch = require_env(environ, "CARGO_CFG_TARGET_ARCH")

    out_dir = environ.get("OUT_DIR")
    num_jobs = environ.get("NUM_JOBS")
    if num_jobs is not None:
        try:
            jobs: Optional[int] = int(num_jobs)
        except ValueError as e:
            raise ToolchainEnvironmentError(f"NUM_JOBS is not an integer: {num_jobs!r}") from e
    else:
        jobs = None

    return ToolchainEnvironment(
        cc=environ.get("CC", DEFAULT_CC),
        cxx=environ.get("CXX", DEFAULT_CXX),
        target_arch=arch,
        target_triple=target_triple_for(arch),
        out_dir=Path(out_dir) if out_dir else None,
        num_jobs=jobs,
    )
