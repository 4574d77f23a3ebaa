"""
Build option groups for the LLVM libc CMake configuration.

Each option group knows how to write itself into a CMake definition store via
``add_to_cmake``. Booleans always emit ``"true"``/``"false"``, enums emit their
fixed constant, and optional values are only emitted when set.

Usage:
    cmake_cfg = CMakeConfig(libc_path)
    PrintfOpts(disable_float=True).add_to_cmake(cmake_cfg)
    ErrnoMode.THREAD_LOCAL.add_to_cmake(cmake_cfg)
"""

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Protocol, Tuple


# Separator CMake uses for list values
LIST_SEPARATOR = ";"


class DefinitionStore(Protocol):
    """Anything that accepts ``-D`` style key/value definitions."""

    def define(self, key: str, value: str) -> object:
        ...


def bool_to_str(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True)
class CodegenOpts:
    """Code generation hardening knobs."""

    strong_stack_protector: bool = False
    keep_frame_pointer: bool = False

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define(
            "LIBC_CONF_ENABLE_STRONG_STACK_PROTECTOR",
            bool_to_str(self.strong_stack_protector),
        )
        store.define("LIBC_CONF_KEEP_FRAME_POINTER", bool_to_str(self.keep_frame_pointer))


@unique
class ErrnoMode(Enum):
    """Where libc keeps ``errno``."""

    DEFAULT = "LIBC_ERRNO_MODE_DEFAULT"
    UNDEFINED = "LIBC_ERRNO_MODE_UNDEFINED"
    THREAD_LOCAL = "LIBC_ERRNO_MODE_THREAD_LOCAL"
    SHARED = "LIBC_ERRNO_MODE_SHARED"
    EXTERNAL = "LIBC_ERRNO_MODE_EXTERNAL"
    SYSTEM = "LIBC_ERRNO_MODE_SYSTEM"

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define("LIBC_CONF_ERRNO_MODE", self.value)


@unique
class MathOptimization(Enum):
    SKIP_ACCURATE_PASS = "LIBC_MATH_SKIP_ACCURATE_PASS"
    SMALL_TABLES = "LIBC_MATH_SMALL_TABLES"
    NO_ERRNO = "LIBC_MATH_NO_ERRNO"
    NO_EXCEPT = "LIBC_MATH_NO_EXCEPT"
    FAST = "LIBC_MATH_FAST"


@dataclass(frozen=True)
class MathOpts:
    """Math library options.

    Attributes:
        frexp_inf_nan_exponent: Exponent value frexp reports for inf/nan
            (left to the libc default when None)
        optimizations: Ordered optimization flags; duplicates are kept
    """

    frexp_inf_nan_exponent: Optional[str] = None
    optimizations: Tuple[MathOptimization, ...] = ()

    def add_to_cmake(self, store: DefinitionStore) -> None:
        if self.frexp_inf_nan_exponent is not None:
            store.define("LIBC_CONF_FREXP_INF_NAN_EXPONENT", self.frexp_inf_nan_exponent)
        optimizations = LIST_SEPARATOR.join(opt.value for opt in self.optimizations)
        store.define("LIBC_CONF_MATH_OPTIMIZATIONS", optimizations)


@dataclass(frozen=True)
class PrintfOpts:
    """printf family feature switches."""

    disable_fixed_point: bool = False
    disable_float: bool = False
    disable_index_mode: bool = False
    disable_strerror: bool = False
    disable_write_int: bool = False
    float_to_str_no_specialize_ld: bool = False
    float_to_str_use_dyadic_float: bool = False
    float_to_str_use_mega_long_double_table: bool = False

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define(
            "LIBC_CONF_PRINTF_DISABLE_FIXED_POINT", bool_to_str(self.disable_fixed_point)
        )
        store.define("LIBC_CONF_PRINTF_DISABLE_FLOAT", bool_to_str(self.disable_float))
        store.define(
            "LIBC_CONF_PRINTF_DISABLE_INDEX_MODE", bool_to_str(self.disable_index_mode)
        )
        store.define("LIBC_CONF_PRINTF_DISABLE_STRERROR", bool_to_str(self.disable_strerror))
        store.define("LIBC_CONF_PRINTF_DISABLE_WRITE_INT", bool_to_str(self.disable_write_int))
        store.define(
            "LIBC_CONF_PRINTF_FLOAT_TO_STR_NO_SPECIALIZE_LD",
            bool_to_str(self.float_to_str_no_specialize_ld),
        )
        store.define(
            "LIBC_CONF_PRINTF_FLOAT_TO_STR_USE_DYADIC_FLOAT",
            bool_to_str(self.float_to_str_use_dyadic_float),
        )
        store.define(
            "LIBC_CONF_PRINTF_FLOAT_TO_STR_USE_MEGA_LONG_DOUBLE_TABLE",
            bool_to_str(self.float_to_str_use_mega_long_double_table),
        )


@dataclass(frozen=True)
class PThreadOpts:
    raw_mutex_default_spin_count: int = 100
    rwlock_default_spin_count: int = 100
    timeout_ensure_monotonicity: bool = True

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define(
            "LIBC_CONF_PTHREAD_RAW_MUTEX_DEFAULT_SPIN_COUNT",
            str(self.raw_mutex_default_spin_count),
        )
        store.define(
            "LIBC_CONF_PTHREAD_RWLOCK_DEFAULT_SPIN_COUNT",
            str(self.rwlock_default_spin_count),
        )
        store.define(
            "LIBC_CONF_PTHREAD_TIMEOUT_ENSURE_MONOTONICITY",
            bool_to_str(self.timeout_ensure_monotonicity),
        )


@unique
class QSortImpl(Enum):
    QUICK_SORT = "LIBC_QSORT_QUICK_SORT"
    HEAP_SORT = "LIBC_QSORT_HEAP_SORT"

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define("LIBC_CONF_QSORT_IMPL", self.value)


@dataclass(frozen=True)
class ScanfOpts:
    disable_float: bool = False
    disable_index_mode: bool = False

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define("LIBC_CONF_SCANF_DISABLE_FLOAT", bool_to_str(self.disable_float))
        store.define("LIBC_CONF_SCANF_DISABLE_INDEX_MODE", bool_to_str(self.disable_index_mode))


@dataclass(frozen=True)
class SetjmpOpts:
    aarch64_restore_platform_register: bool = False

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define(
            "LIBC_CONF_SETJMP_AARCH64_RESTORE_PLATFORM_REGISTER",
            bool_to_str(self.aarch64_restore_platform_register),
        )


@dataclass(frozen=True)
class StringOpts:
    memset_x86_use_software_prefetch: bool = False
    unsafe_wide_read: bool = False

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define(
            "LIBC_CONF_MEMSET_X86_USE_SOFTWARE_PREFETCH",
            bool_to_str(self.memset_x86_use_software_prefetch),
        )
        store.define("LIBC_CONF_STRING_UNSAFE_WIDE_READ", bool_to_str(self.unsafe_wide_read))


@dataclass(frozen=True)
class TimeOpts:
    force_64bit: bool = False

    def add_to_cmake(self, store: DefinitionStore) -> None:
        store.define("LIBC_CONF_TIME_64BIT", bool_to_str(self.force_64bit))
