"""
Root LLVM libc build configuration.

LibcConfig describes one libc build invocation: where the libc sources live,
whether to do a full (standalone) build, an optional compiler-rt tree used to
bundle the scudo allocator, and every option group from ``options``.

Usage:
    config = LibcConfig.new_with_scudo(Path("src/libc"), Path("src/compiler-rt"))
    config = config.with_printf(PrintfOpts(disable_float=True))
    cmake_cfg = CMakeConfig.from_libc_config(config)
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Union

from .options import (
    CodegenOpts,
    DefinitionStore,
    ErrnoMode,
    MathOpts,
    PrintfOpts,
    PThreadOpts,
    QSortImpl,
    ScanfOpts,
    SetjmpOpts,
    StringOpts,
    TimeOpts,
    bool_to_str,
)

# Definitions forced whenever scudo is bundled from a compiler-rt tree
SCUDO_DEFINES = {
    "COMPILER_RT_BUILD_SCUDO_STANDALONE_WITH_LLVM_LIBC": "ON",
    "COMPILER_RT_SCUDO_STANDALONE_BUILD_SHARED": "OFF",
    "LLVM_LIBC_INCLUDE_SCUDO": "ON",
    "COMPILER_RT_STANDALONE_BUILD": "ON",
}


@dataclass(frozen=True)
class LibcConfig:
    """Complete, immutable description of one LLVM libc build."""

    path: Path
    full_build: bool = True
    with_scudo: Optional[Path] = None
    codegen_opts: CodegenOpts = field(default_factory=CodegenOpts)
    errno_mode: ErrnoMode = ErrnoMode.DEFAULT
    null_checks: bool = True
    math_opts: MathOpts = field(default_factory=MathOpts)
    printf_opts: PrintfOpts = field(default_factory=PrintfOpts)
    pthread_opts: PThreadOpts = field(default_factory=PThreadOpts)
    qsort_impl: QSortImpl = QSortImpl.QUICK_SORT
    scanf_opts: ScanfOpts = field(default_factory=ScanfOpts)
    setjmp_opts: SetjmpOpts = field(default_factory=SetjmpOpts)
    string_opts: StringOpts = field(default_factory=StringOpts)
    time_opts: TimeOpts = field(default_factory=TimeOpts)

    @classmethod
    def new_default(cls, path: Union[str, Path]) -> "LibcConfig":
        """Default configuration for the libc sources at ``path``."""
        return cls(path=Path(path))

    @classmethod
    def new_with_scudo(
        cls, path: Union[str, Path], with_scudo: Union[str, Path]
    ) -> "LibcConfig":
        """Default configuration that also bundles scudo from a compiler-rt tree."""
        return replace(cls.new_default(path), with_scudo=Path(with_scudo))

    def with_codegen(self, codegen_opts: CodegenOpts) -> "LibcConfig":
        return replace(self, codegen_opts=codegen_opts)

    def with_errno_mode(self, errno_mode: ErrnoMode) -> "LibcConfig":
        return replace(self, errno_mode=errno_mode)

    def with_math(self, math_opts: MathOpts) -> "LibcConfig":
        return replace(self, math_opts=math_opts)

    def with_printf(self, printf_opts: PrintfOpts) -> "LibcConfig":
        return replace(self, printf_opts=printf_opts)

    def with_pthread(self, pthread_opts: PThreadOpts) -> "LibcConfig":
        return replace(self, pthread_opts=pthread_opts)

    def with_qsort_impl(self, qsort_impl: QSortImpl) -> "LibcConfig":
        return replace(self, qsort_impl=qsort_impl)

    def with_scanf(self, scanf_opts: ScanfOpts) -> "LibcConfig":
        return replace(self, scanf_opts=scanf_opts)

    def with_setjmp(self, setjmp_opts: SetjmpOpts) -> "LibcConfig":
        return replace(self, setjmp_opts=setjmp_opts)

    def with_string(self, string_opts: StringOpts) -> "LibcConfig":
        return replace(self, string_opts=string_opts)

    def with_time(self, time_opts: TimeOpts) -> "LibcConfig":
        return replace(self, time_opts=time_opts)

    def add_to_cmake(self, store: DefinitionStore) -> None:
        """
        Write every definition implied by this configuration into ``store``.

        Args:
            store: Definition store (normally a CMakeConfig)
        """
        store.define("LLVM_COMPILER_IS_GCC_COMPATIBLE", "ON")
        store.define("LLVM_RUNTIMES_BUILD", "ON")
        store.define("LLVM_LIBC_FULL_BUILD", bool_to_str(self.full_build))
        if self.with_scudo is not None:
            store.define("LLVM_LIBC_COMPILER_RT_PATH", str(self.with_scudo))
            for key, value in SCUDO_DEFINES.items():
                store.define(key, value)
        self.codegen_opts.add_to_cmake(store)
        self.errno_mode.add_to_cmake(store)
        store.define("LIBC_CONF_NULL_CHECKS", bool_to_str(self.null_checks))
        self.math_opts.add_to_cmake(store)
        self.printf_opts.add_to_cmake(store)
        self.pthread_opts.add_to_cmake(store)
        self.qsort_impl.add_to_cmake(store)
        self.scanf_opts.add_to_cmake(store)
        self.setjmp_opts.add_to_cmake(store)
        self.string_opts.add_to_cmake(store)
        self.time_opts.add_to_cmake(store)
