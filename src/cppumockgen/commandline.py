# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Commandline client for the CppUTest mock generator."""

from __future__ import annotations

import argparse
import locale
import logging
import os
import shlex
import subprocess
import sys
import textwrap
from typing import Optional

from cppumockgen import config
from cppumockgen import generator
from cppumockgen import utils

_logger = logging.getLogger(__name__)

_parser = argparse.ArgumentParser(
    prog="cppumockgen",
    description="Create CppUTest mocks and expectations for a C/C++ header",
    formatter_class=argparse.RawTextHelpFormatter,
    epilog=textwrap.dedent(
        """
Output paths may be directories, in which case the file names are
derived from the input file. Use @ to print to stdout.

Type overrides have the form <key>=<TYPE>[:<ARG>][~<EXPECT_TYPE>][/<ARG_EXPR>],
where <key> is <function>#<param> or <function>@ for a single parameter
or return value, or #<type>/@<type> for every parameter or return value
of a type. In <ARG_EXPR>, $ stands for the parameter.

Config files hold further options, separated by whitespace. Relative
paths in config files are resolved against the including file.

The clang-library-file parameter must either be specified using the
command line interface, or by setting the CLANG_LIBRARY_FILE environment
variable.
        """
    ),
)
_parser.add_argument("input_path", help="path to the mocked header")
_parser.add_argument(
    "--mock-output",
    "-m",
    nargs="?",
    const="",
    default=None,
    help="mock output directory or file path",
)
_parser.add_argument(
    "--expect-output",
    "-e",
    nargs="?",
    const="",
    default=None,
    help="expectation output directory or file path",
)
_parser.add_argument(
    "--cpp",
    "-x",
    action="store_true",
    help="force interpretation of the input file as C++",
)
_parser.add_argument("--std", "-s", default=None, help="language standard")
_parser.add_argument(
    "--underlying-typedef",
    "-u",
    action="store_true",
    help="use the underlying type of typedefs as parameter-of-type tag",
)
_parser.add_argument(
    "--include-path",
    "-I",
    action="append",
    default=[],
    help="include path",
)
_parser.add_argument(
    "--type-override",
    "-t",
    action="append",
    default=[],
    help="override the mocked type of a parameter or return value",
)
# Config files are expanded before parsing, see ``expand_config_files``.
_parser.add_argument(
    "--config-file",
    "-f",
    action="append",
    default=[],
    help="read further options from a file",
)
_parser.add_argument(
    "--regen",
    "-r",
    action="store_true",
    help="reuse the generation options of an existing output file",
)
_parser.add_argument(
    "--clang-library-file",
    "-l",
    default=os.environ.get("CLANG_LIBRARY_FILE", None),
    help="path to the libclang .dll/.so/.dylib",
)
_parser.add_argument("--verbose", "-v", action="store_true", help="verbose logging")
_parser.add_argument(
    "--version", action="version", version=f"%(prog)s {utils.VERSION}"
)

_CONFIG_FILE_OPTIONS = ("-f", "--config-file")


def _read_config_file(path: str) -> list[str]:
    try:
        with open(path, "r") as f:
            content = f.read()
    except OSError:
        raise utils.CppUMockGenRuntimeError(
            f"Configuration file '{path}' could not be opened."
        )
    try:
        return shlex.split(content)
    except ValueError as e:
        raise utils.CppUMockGenRuntimeError(f"In configuration file '{path}': {e}")


def expand_config_files(
    args: list[str], base: str = "", processed: Optional[set[str]] = None
) -> list[str]:
    """Replace every config file option in ``args`` by the file's
    content.

    Config files may include further config files. Each file is only
    read once.

    Args:
        args: Commandline arguments
        base: Directory against which relative paths are resolved
        processed: Absolute paths of the files read so far

    Raises:
        utils.CppUMockGenRuntimeError: If a config file cannot be read
    """
    if processed is None:
        processed = set()
    result = []
    it = iter(args)
    for each in it:
        if each in _CONFIG_FILE_OPTIONS:
            path = next(it, None)
            if path is None:
                # Leave the error message to the parser.
                result.append(each)
                continue
        elif each.startswith("--config-file="):
            path = each[len("--config-file=") :]
        elif each.startswith("-f") and len(each) > 2:
            path = each[2:]
        else:
            result.append(each)
            continue
        path = os.path.normpath(os.path.join(base, path))
        absolute = os.path.abspath(path)
        if absolute in processed:
            continue
        processed.add(absolute)
        _logger.debug("Reading config file '%s'", path)
        result += expand_config_files(
            _read_config_file(path), os.path.dirname(path), processed
        )
    return result


def generation_options(args: argparse.Namespace) -> str:
    """Render the options which influence the generated code, so that
    they can be recorded in the output files."""
    result = []
    if args.cpp:
        result.append("-x")
    if args.std:
        result += ["-s", shlex.quote(args.std)]
    if args.underlying_typedef:
        result.append("-u")
    for each in args.type_override:
        result += ["-t", shlex.quote(each)]
    return " ".join(result)


def _regenerated_options(args: argparse.Namespace) -> list[str]:
    """Read the generation options from the first existing output
    file."""
    candidates = []
    if args.mock_output is not None:
        candidates.append(
            generator.mock_output_path(args.mock_output, args.input_path)
        )
    if args.expect_output is not None:
        candidates += generator.expectation_output_paths(
            args.expect_output, args.input_path
        )
    for path in candidates:
        if path != generator.STDOUT and os.path.isfile(path):
            options = generator.extract_generation_options(generator.read_file(path))
            if options is not None:
                _logger.info("Reusing generation options of '%s'", path)
                return shlex.split(options)
    raise utils.CppUMockGenRuntimeError(
        "No previously generated output file with generation options found."
    )


def parse_args(args: list[str]) -> argparse.Namespace:
    args = expand_config_files(args)
    result = _parser.parse_args(args)
    if result.regen:
        result = _parser.parse_args(args + _regenerated_options(result))

    if result.mock_output is None and result.expect_output is None:
        raise utils.CppUMockGenRuntimeError(
            "At least the mock generation option (-m) or the expectation"
            " generation option (-e) must be specified."
        )

    result.parameter_overrides = []
    result.type_overrides = []
    for each in result.type_override:
        if each.startswith((config.PARAMETER_SEPARATOR, config.RETURN_SEPARATOR)):
            result.type_overrides.append(each)
        else:
            result.parameter_overrides.append(each)
    result.generation_options = generation_options(result)

    result.flags = []
    # Apply isysroot default on macOS.
    if sys.platform == "darwin":
        tmp = subprocess.check_output(["xcrun", "--show-sdk-path"])
        if sys.stdout.encoding is not None:
            encoding = sys.stdout.encoding
        else:
            encoding = locale.getpreferredencoding()
        sdk = tmp.decode(encoding).rstrip("\n")
        result.flags.append("-isysroot")
        result.flags.append(sdk)

    include = os.environ.get("CPPUMOCKGEN_INCLUDE", None)
    if include is not None:
        result.flags.append("-I")
        result.flags.append(include)

    return result


# This method is the entry point of the cppumockgen script.
def main() -> None:
    try:
        args = parse_args(sys.argv[1:])
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(name)s: %(levelname)s: %(message)s",
        )
        generator.main(args)
    except utils.CppUMockGenRuntimeError as e:
        print(f"cppumockgen: error: {e}", file=sys.stderr)
        sys.exit(1)
