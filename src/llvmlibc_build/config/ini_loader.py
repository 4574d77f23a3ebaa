"""
llvmlibc.ini configuration loader.

This module reads per-project overrides for the libc build from an INI file
and applies them on top of a LibcConfig preset.

Example llvmlibc.ini:
    [libc]
    errno_mode = thread_local
    qsort_impl = heap_sort

    [math]
    optimizations = skip_accurate_pass, small_tables

    [printf]
    disable_float = true

Usage:
    base = LibcConfig.new_default(Path("src/libc"))
    config = load_libc_config(Path("llvmlibc.ini"), base)
"""

import configparser
import dataclasses
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Type, TypeVar

from .libc_config import LibcConfig
from .options import ErrnoMode, MathOptimization, MathOpts, QSortImpl

DEFAULT_CONFIG_NAME = "llvmlibc.ini"

E = TypeVar("E", bound=Enum)

# section name -> LibcConfig field
OPTION_SECTIONS = {
    "codegen": "codegen_opts",
    "math": "math_opts",
    "printf": "printf_opts",
    "pthread": "pthread_opts",
    "scanf": "scanf_opts",
    "setjmp": "setjmp_opts",
    "string": "string_opts",
    "time": "time_opts",
}

LIBC_KEYS = {"full_build", "null_checks", "errno_mode", "qsort_impl", "scudo"}


class LibcConfigError(Exception):
    """Exception raised for llvmlibc.ini configuration errors."""

    pass


class _Reader:
    """Typed access to one INI file with errors that name file, section and key."""

    def __init__(self, ini_path: Path, parser: configparser.ConfigParser):
        self.ini_path = ini_path
        self.parser = parser

    def _fail(self, section: str, key: str, message: str) -> LibcConfigError:
        return LibcConfigError(f"{self.ini_path}: [{section}] {key}: {message}")

    def get_bool(self, section: str, key: str) -> bool:
        try:
            return self.parser.getboolean(section, key)
        except ValueError as e:
            raise self._fail(section, key, "expected a boolean") from e

    def get_int(self, section: str, key: str) -> int:
        try:
            value = self.parser.getint(section, key)
        except ValueError as e:
            raise self._fail(section, key, "expected an integer") from e
        if value < 0:
            raise self._fail(section, key, "must not be negative")
        return value

    def get_str(self, section: str, key: str) -> str:
        return self.parser.get(section, key)

    def get_enum(self, section: str, key: str, enum_type: Type[E]) -> E:
        return self.parse_enum(section, key, self.parser.get(section, key), enum_type)

    def get_enum_list(self, section: str, key: str, enum_type: Type[E]) -> List[E]:
        raw = self.parser.get(section, key)
        return [
            self.parse_enum(section, key, item, enum_type)
            for item in re.split(r"[,\s]+", raw.strip())
            if item
        ]

    def parse_enum(self, section: str, key: str, raw: str, enum_type: Type[E]) -> E:
        name = raw.strip().upper()
        try:
            return enum_type[name]
        except KeyError:
            choices = ", ".join(member.name.lower() for member in enum_type)
            raise self._fail(
                section, key, f"unknown value '{raw.strip()}' (expected one of: {choices})"
            ) from None


def _read_group(reader: _Reader, section: str, group: Any) -> Any:
    """Apply one INI section on top of an option group instance."""
    fields = {f.name: f for f in dataclasses.fields(group)}
    overrides: Dict[str, Any] = {}

    for key in reader.parser[section]:
        if key not in fields:
            raise LibcConfigError(
                f"{reader.ini_path}: unknown option '{key}' in section [{section}]. "
                + f"Valid options: {', '.join(fields)}"
            )
        if isinstance(group, MathOpts) and key == "optimizations":
            overrides[key] = tuple(
                reader.get_enum_list(section, key, MathOptimization)
            )
        elif isinstance(group, MathOpts) and key == "frexp_inf_nan_exponent":
            overrides[key] = reader.get_str(section, key)
        elif isinstance(getattr(group, key), bool):
            overrides[key] = reader.get_bool(section, key)
        else:
            overrides[key] = reader.get_int(section, key)

    return dataclasses.replace(group, **overrides)


def load_libc_config(ini_path: Path, base: LibcConfig) -> LibcConfig:
    """
    Load an llvmlibc.ini file and apply it to a base configuration.

    Args:
        ini_path: Path to the INI file
        base: Preset the file's values override

    Returns:
        New LibcConfig with the file's overrides applied

    Raises:
        LibcConfigError: If the file is missing, unparsable, or holds
            unknown sections, keys or values
    """
    if not ini_path.exists():
        raise LibcConfigError(f"Configuration file not found: {ini_path}")

    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read(ini_path, encoding="utf-8")
    except configparser.Error as e:
        raise LibcConfigError(f"Failed to parse {ini_path}: {e}") from e

    # [DEFAULT] keys would leak into every section
    if parser.defaults():
        raise LibcConfigError(
            f"{ini_path}: [{parser.default_section}] is not supported; "
            + "set options in their own section"
        )

    reader = _Reader(ini_path, parser)
    overrides: Dict[str, Any] = {}

    for section in parser.sections():
        if section == "libc":
            overrides.update(_read_libc_section(reader))
        elif section in OPTION_SECTIONS:
            field_name = OPTION_SECTIONS[section]
            overrides[field_name] = _read_group(reader, section, getattr(base, field_name))
        else:
            valid = ", ".join(["libc"] + list(OPTION_SECTIONS))
            raise LibcConfigError(
                f"{ini_path}: unknown section [{section}]. Valid sections: {valid}"
            )

    return dataclasses.replace(base, **overrides)


def _read_libc_section(reader: _Reader) -> Dict[str, Any]:
    ini_path = reader.ini_path
    overrides: Dict[str, Any] = {}
    for key in reader.parser["libc"]:
        if key not in LIBC_KEYS:
            raise LibcConfigError(
                f"{ini_path}: unknown option '{key}' in section [libc]. "
                + f"Valid options: {', '.join(sorted(LIBC_KEYS))}"
            )
        if key in ("full_build", "null_checks"):
            overrides[key] = reader.get_bool("libc", key)
        elif key == "errno_mode":
            overrides[key] = reader.get_enum("libc", key, ErrnoMode)
        elif key == "qsort_impl":
            overrides[key] = reader.get_enum("libc", key, QSortImpl)
        else:
            scudo = reader.get_str("libc", key).strip()
            if not scudo:
                overrides["with_scudo"] = None
            else:
                scudo_path = Path(scudo)
                if not scudo_path.is_absolute():
                    scudo_path = ini_path.parent / scudo_path
                overrides["with_scudo"] = scudo_path.resolve()
    return overrides
