"""llvmlibc-build: configure, build and package LLVM libc for static linking."""

__version__ = "0.1.0"
