"""
Unit tests for CompilationExecutor.
"""

import subprocess
from unittest.mock import patch

import pytest

from llvmlibc_build.build.compilation_executor import CompilationError, CompilationExecutor


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestCompilationExecutor:
    """Test suite for CompilationExecutor."""

    @pytest.fixture
    def source(self, tmp_path):
        path = tmp_path / "stub.S"
        path.write_text(".text\n")
        return path

    @pytest.fixture
    def executor(self):
        return CompilationExecutor("clang", target_triple="x86_64-unknown-linux-gnu")

    def test_compile_command(self, executor, source, tmp_path):
        """Test the compiler command line."""
        output = tmp_path / "out" / "stub.o"

        def fake_run(cmd, **kwargs):
            output.write_bytes(b"obj")
            return _completed()

        with patch(
            "llvmlibc_build.build.compilation_executor.shutil.which",
            return_value="/usr/bin/clang",
        ), patch(
            "llvmlibc_build.build.compilation_executor.run_tool", side_effect=fake_run
        ) as mock_run:
            result = executor.compile_source(source, output, ["-fPIC"])

        assert result == output
        assert mock_run.call_args.args[0] == [
            "/usr/bin/clang",
            "--target=x86_64-unknown-linux-gnu",
            "-fPIC",
            "-c",
            str(source),
            "-o",
            str(output),
        ]
        assert output.parent.is_dir()

    def test_no_target_flag_without_triple(self, source, tmp_path):
        output = tmp_path / "stub.o"

        def fake_run(cmd, **kwargs):
            output.write_bytes(b"obj")
            return _completed()

        with patch(
            "llvmlibc_build.build.compilation_executor.shutil.which",
            return_value="/usr/bin/cc",
        ), patch(
            "llvmlibc_build.build.compilation_executor.run_tool", side_effect=fake_run
        ) as mock_run:
            CompilationExecutor("cc").compile_source(source, output)

        assert not any(arg.startswith("--target") for arg in mock_run.call_args.args[0])

    def test_compiler_not_found(self, executor, source, tmp_path):
        with patch(
            "llvmlibc_build.build.compilation_executor.shutil.which", return_value=None
        ):
            with pytest.raises(CompilationError) as exc_info:
                executor.compile_source(source, tmp_path / "stub.o")

        assert "Compiler not found: clang" in str(exc_info.value)

    def test_compiler_lookup_uses_env_path(self, source):
        executor = CompilationExecutor("clang", env={"PATH": "/opt/llvm/bin"})
        with patch(
            "llvmlibc_build.build.compilation_executor.shutil.which",
            return_value="/opt/llvm/bin/clang",
        ) as mock_which:
            assert executor.resolve_compiler() == "/opt/llvm/bin/clang"

        mock_which.assert_called_once_with("clang", path="/opt/llvm/bin")

    def test_source_not_found(self, executor, tmp_path):
        with pytest.raises(CompilationError) as exc_info:
            executor.compile_source(tmp_path / "missing.S", tmp_path / "stub.o")

        assert "Source file not found" in str(exc_info.value)

    def test_compile_failure(self, executor, source, tmp_path):
        with patch(
            "llvmlibc_build.build.compilation_executor.shutil.which",
            return_value="/usr/bin/clang",
        ), patch(
            "llvmlibc_build.build.compilation_executor.run_tool",
            return_value=_completed(1, stderr="error: unknown directive"),
        ):
            with pytest.raises(CompilationError) as exc_info:
                executor.compile_source(source, tmp_path / "stub.o")

        assert "unknown directive" in str(exc_info.value)

    def test_object_not_created(self, executor, source, tmp_path):
        with patch(
            "llvmlibc_build.build.compilation_executor.shutil.which",
            return_value="/usr/bin/clang",
        ), patch(
            "llvmlibc_build.build.compilation_executor.run_tool", return_value=_completed()
        ):
            with pytest.raises(CompilationError) as exc_info:
                executor.compile_source(source, tmp_path / "stub.o")

        assert "was not created" in str(exc_info.value)
