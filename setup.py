"""
Setup file.
"""

from setuptools import find_packages, setup

KEYWORDS = "llvm libc cmake cargo build-script static-library toolchain"


if __name__ == "__main__":
    setup(
        name="llvmlibc-build",
        version="0.1.0",
        description="Configure, build and package LLVM libc for static linking",
        keywords=KEYWORDS,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=["psutil"],
        extras_require={"test": ["pytest"]},
        entry_points={
            "console_scripts": ["llvmlibc-build=llvmlibc_build.cli:main"],
        },
    )
