"""
Unit tests for CMakeConfig.

Tests definition handling, command construction and error reporting with
subprocess execution mocked out.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from llvmlibc_build.build.cmake import CMakeConfig, CMakeError
from llvmlibc_build.config import LibcConfig


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def cmake_cfg(tmp_path):
    return CMakeConfig(tmp_path / "libc", out_dir=tmp_path / "out", jobs=4, env={"PATH": "/usr/bin"})


class TestDefinitions:
    """Test the definition store."""

    def test_define_last_write_wins(self, cmake_cfg):
        cmake_cfg.define("KEY", "one")
        cmake_cfg.define("KEY", "two")

        assert cmake_cfg.defines == {"KEY": "two"}

    def test_define_returns_self(self, cmake_cfg):
        assert cmake_cfg.define("A", "1").define("B", "2") is cmake_cfg

    def test_define_stringifies_paths(self, cmake_cfg):
        cmake_cfg.define("P", Path("/x/y"))

        assert cmake_cfg.defines["P"] == str(Path("/x/y"))

    def test_defines_is_a_copy(self, cmake_cfg):
        cmake_cfg.defines["X"] = "1"

        assert "X" not in cmake_cfg.defines

    def test_from_libc_config(self, tmp_path):
        """Test a handle built from a LibcConfig holds all its definitions."""
        config = LibcConfig.new_with_scudo(tmp_path / "libc", tmp_path / "compiler-rt")
        cmake_cfg = CMakeConfig.from_libc_config(config, out_dir=tmp_path / "out", env={})

        assert cmake_cfg.source_dir == tmp_path / "libc"
        assert cmake_cfg.defines["LLVM_LIBC_INCLUDE_SCUDO"] == "ON"
        assert cmake_cfg.defines["LIBC_CONF_QSORT_IMPL"] == "LIBC_QSORT_QUICK_SORT"


class TestOutDir:
    """Test output directory resolution."""

    def test_explicit(self, tmp_path):
        cmake_cfg = CMakeConfig(tmp_path, out_dir=tmp_path / "o", env={"OUT_DIR": "/elsewhere"})

        assert cmake_cfg.get_out_dir() == tmp_path / "o"
        assert cmake_cfg.get_build_dir() == tmp_path / "o" / "build"

    def test_from_env(self, tmp_path):
        cmake_cfg = CMakeConfig(tmp_path, env={"OUT_DIR": str(tmp_path / "cargo-out")})

        assert cmake_cfg.get_out_dir() == tmp_path / "cargo-out"

    def test_missing(self, tmp_path):
        cmake_cfg = CMakeConfig(tmp_path, env={})

        with pytest.raises(CMakeError) as exc_info:
            cmake_cfg.get_out_dir()

        assert "OUT_DIR" in str(exc_info.value)


class TestJobs:
    """Test parallelism selection."""

    def test_explicit(self, tmp_path):
        assert CMakeConfig(tmp_path, jobs=3, env={"NUM_JOBS": "9"}).get_jobs() == 3

    def test_num_jobs_env(self, tmp_path):
        assert CMakeConfig(tmp_path, env={"NUM_JOBS": "9"}).get_jobs() == 9

    def test_cpu_count_fallback(self, tmp_path):
        with patch("llvmlibc_build.build.cmake.psutil.cpu_count", return_value=12):
            assert CMakeConfig(tmp_path, env={}).get_jobs() == 12

    def test_cpu_count_unknown(self, tmp_path):
        with patch("llvmlibc_build.build.cmake.psutil.cpu_count", return_value=None):
            assert CMakeConfig(tmp_path, env={}).get_jobs() == 1


class TestCommands:
    """Test command line construction."""

    def test_configure_command(self, cmake_cfg, tmp_path):
        cmake_cfg.define("ZED", "1").define("ALPHA", "true")
        cmd = cmake_cfg.configure_command()

        assert cmd[:4] == ["cmake", str(tmp_path / "libc"), "-B", str(tmp_path / "out" / "build")]
        assert "-DCMAKE_BUILD_TYPE=Release" in cmd
        assert f"-DCMAKE_INSTALL_PREFIX={tmp_path / 'out'}" in cmd
        # user definitions are sorted by key
        assert cmd[-2:] == ["-DALPHA=true", "-DZED=1"]

    def test_configure_command_with_target(self, cmake_cfg):
        cmake_cfg.target("x86_64-unknown-linux-gnu")
        cmd = cmake_cfg.configure_command()

        assert "-DCMAKE_C_COMPILER_TARGET=x86_64-unknown-linux-gnu" in cmd
        assert "-DCMAKE_CXX_COMPILER_TARGET=x86_64-unknown-linux-gnu" in cmd

    def test_configure_command_with_generator(self, tmp_path):
        cmake_cfg = CMakeConfig(tmp_path, out_dir=tmp_path, generator="Ninja", env={})
        cmd = cmake_cfg.configure_command()

        index = cmd.index("-G")
        assert cmd[index + 1] == "Ninja"

    def test_build_command(self, cmake_cfg, tmp_path):
        cmd = cmake_cfg.build_command("libm")

        assert cmd == [
            "cmake",
            "--build",
            str(tmp_path / "out" / "build"),
            "--config",
            "Release",
            "--target",
            "libm",
            "--parallel",
            "4",
        ]

    def test_build_command_default_target(self, cmake_cfg):
        assert "--target" not in cmake_cfg.build_command()


class TestBuild:
    """Test configure/build execution."""

    def test_build_configures_once(self, cmake_cfg, tmp_path):
        """Test configure runs before the first build only."""
        with patch("llvmlibc_build.build.cmake.run_tool", return_value=_completed()) as mock_run:
            root1 = cmake_cfg.build("libc")
            root2 = cmake_cfg.build("libm")

        commands = [call.args[0] for call in mock_run.call_args_list]
        assert len(commands) == 3
        assert "--build" not in commands[0]
        assert commands[1][-3] == "libc"
        assert commands[2][-3] == "libm"
        assert root1 == root2 == tmp_path / "out"

    def test_build_reconfigures_after_define(self, cmake_cfg):
        with patch("llvmlibc_build.build.cmake.run_tool", return_value=_completed()) as mock_run:
            cmake_cfg.build("libc")
            cmake_cfg.define("NEW", "1")
            cmake_cfg.build("libc")

        configure_calls = [
            call for call in mock_run.call_args_list if "--build" not in call.args[0]
        ]
        assert len(configure_calls) == 2

    def test_build_reconfigures_after_target_change(self, cmake_cfg):
        """Test a new triple reaches CMake instead of the stale one."""
        cmake_cfg.target("x86_64-unknown-linux-gnu")
        with patch("llvmlibc_build.build.cmake.run_tool", return_value=_completed()) as mock_run:
            cmake_cfg.build("libc")
            cmake_cfg.target("aarch64-unknown-linux-gnu")
            cmake_cfg.build("libc")

        configure_calls = [
            call.args[0] for call in mock_run.call_args_list if "--build" not in call.args[0]
        ]
        assert len(configure_calls) == 2
        assert "-DCMAKE_C_COMPILER_TARGET=aarch64-unknown-linux-gnu" in configure_calls[1]

    def test_progress_goes_to_stderr(self, tmp_path, capsys):
        cmake_cfg = CMakeConfig(tmp_path / "libc", out_dir=tmp_path / "out", jobs=1, env={}, show_progress=True)
        with patch("llvmlibc_build.build.cmake.run_tool", return_value=_completed()):
            cmake_cfg.build("libc")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Building target libc" in captured.err

    def test_environment_is_passed(self, cmake_cfg):
        with patch("llvmlibc_build.build.cmake.run_tool", return_value=_completed()) as mock_run:
            cmake_cfg.build("libc")

        assert mock_run.call_args.kwargs["env"] == {"PATH": "/usr/bin"}

    def test_creates_build_dir(self, cmake_cfg, tmp_path):
        with patch("llvmlibc_build.build.cmake.run_tool", return_value=_completed()):
            cmake_cfg.build("libc")

        assert (tmp_path / "out" / "build").is_dir()

    def test_configure_failure(self, cmake_cfg):
        with patch(
            "llvmlibc_build.build.cmake.run_tool",
            return_value=_completed(1, stderr="CMake Error: bad compiler"),
        ):
            with pytest.raises(CMakeError) as exc_info:
                cmake_cfg.build("libc")

        assert "configure failed" in str(exc_info.value)
        assert "bad compiler" in str(exc_info.value)

    def test_build_failure(self, cmake_cfg):
        results = [_completed(), _completed(2, stderr="ninja: build stopped")]
        with patch("llvmlibc_build.build.cmake.run_tool", side_effect=results):
            with pytest.raises(CMakeError) as exc_info:
                cmake_cfg.build("libm")

        assert "target libm" in str(exc_info.value)

    def test_cmake_not_installed(self, cmake_cfg):
        with patch(
            "llvmlibc_build.build.cmake.run_tool",
            side_effect=FileNotFoundError("No such file: cmake"),
        ):
            with pytest.raises(CMakeError) as exc_info:
                cmake_cfg.build("libc")

        assert "Failed to run" in str(exc_info.value)
