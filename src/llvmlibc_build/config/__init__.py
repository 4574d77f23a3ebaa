"""Configuration modules for llvmlibc-build."""

from .environment import (
    MissingEnvironmentError,
    ToolchainEnvironment,
    ToolchainEnvironmentError,
    apply_toolchain_defaults,
    resolve_environment,
)
from .ini_loader import DEFAULT_CONFIG_NAME, LibcConfigError, load_libc_config
from .libc_config import LibcConfig
from .options import (
    CodegenOpts,
    ErrnoMode,
    MathOptimization,
    MathOpts,
    PrintfOpts,
    PThreadOpts,
    QSortImpl,
    ScanfOpts,
    SetjmpOpts,
    StringOpts,
    TimeOpts,
)

__all__ = [
    "LibcConfig",
    "CodegenOpts",
    "ErrnoMode",
    "MathOptimization",
    "MathOpts",
    "PrintfOpts",
    "PThreadOpts",
    "QSortImpl",
    "ScanfOpts",
    "SetjmpOpts",
    "StringOpts",
    "TimeOpts",
    "LibcConfigError",
    "DEFAULT_CONFIG_NAME",
    "load_libc_config",
    "ToolchainEnvironment",
    "ToolchainEnvironmentError",
    "MissingEnvironmentError",
    "apply_toolchain_defaults",
    "resolve_environment",
]
