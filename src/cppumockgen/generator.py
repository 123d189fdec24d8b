# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""The main generator function."""

from __future__ import annotations

import dataclasses
import logging
import os
import re
import sys
from typing import Optional

from cppumockgen import config
from cppumockgen import expectation
from cppumockgen import mock
from cppumockgen import signature
from cppumockgen import translator
from cppumockgen import utils

_logger = logging.getLogger(__name__)

CPP_EXTENSIONS = {".hpp", ".hxx", ".hh"}
STDOUT = "@"
MOCK_SUFFIX = "_mock.cpp"
EXPECT_SUFFIX = "_expect"
USER_CODE_BEGIN = "CPPUMOCKGEN_USER_CODE_BEGIN"
USER_CODE_END = "CPPUMOCKGEN_USER_CODE_END"
GENERATION_OPTIONS = " * Generation options: "
MOCK_SUPPORT_INCLUDE = "#include <CppUTestExt/MockSupport.h>\n"
WRAPPER_INCLUDE = "#include <CppUMockGen.hpp>\n"

_USER_CODE_BEGIN_REGEX = re.compile(r"(?://|/\*)\s*" + USER_CODE_BEGIN)
_USER_CODE_END_REGEX = re.compile(r"(?://|/\*)\s*" + USER_CODE_END)


@dataclasses.dataclass
class GeneratedUnit:
    """Generated code of a translation unit, in declaration order."""

    mocks: list[str] = dataclasses.field(default_factory=list)
    prototypes: list[str] = dataclasses.field(default_factory=list)
    implementations: list[str] = dataclasses.field(default_factory=list)

    def __len__(self) -> int:
        return len(self.mocks)


def generate(root: translator.Node, cfg: config.Config) -> GeneratedUnit:
    """Generate mocks and expectations for every mockable declaration
    below ``root``.

    Declarations with unsupported types are reported and skipped.
    Redeclarations are mocked once.

    Args:
        root: The translated unit
        cfg: Generation options
    """
    result = GeneratedUnit()
    seen = set()
    for node in root.iter_declarations():
        cursor = node.cursor
        if not signature.is_mockable(cursor):
            _logger.debug("Skipping '%s'", cursor.displayname)
            continue
        usr = cursor.canonical.get_usr()
        if usr in seen:
            continue
        seen.add(usr)
        try:
            sig = signature.Signature.from_node(node, cfg)
        except utils.UnsupportedTypeError as e:
            _logger.warning("%s; '%s' is not mocked", e, cursor.displayname)
            continue
        result.mocks.append(mock.render_mock(sig))
        result.prototypes.append(expectation.render_prototypes(sig))
        result.implementations.append(expectation.render_implementations(sig))
    return result


def interpret_as_cpp(input_path: str, force_cpp: bool = False) -> bool:
    _, extension = os.path.splitext(input_path)
    return force_cpp or extension in CPP_EXTENSIONS


def banner(generation_options: str) -> str:
    result = "/*\n"
    result += f" * This file has been auto-generated by CppUMockGen v{utils.VERSION}.\n"
    result += " *\n"
    result += " * Contents will NOT be preserved if it is regenerated!!!\n"
    if generation_options:
        result += " *\n"
        result += GENERATION_OPTIONS + generation_options + "\n"
    result += " */\n"
    result += "\n"
    return result


def _include_input(input_path: str, cpp: bool) -> str:
    result = f'#include "{os.path.basename(input_path)}"\n'
    if not cpp:
        result = 'extern "C" {\n' + result + "}\n"
    return result


def mock_file(
    unit: GeneratedUnit,
    input_path: str,
    cpp: bool,
    generation_options: str = "",
    user_code: str = "",
) -> str:
    """Compose the mock source file.

    Args:
        unit: The generated code
        input_path: The path of the mocked header
        cpp: Whether the header is C++
        generation_options: Options recorded in the banner
        user_code: Code preserved from a previous version of the file
    """
    result = banner(generation_options)
    result += _include_input(input_path, cpp)
    result += "\n"
    result += MOCK_SUPPORT_INCLUDE
    result += "\n"
    result += f"// {USER_CODE_BEGIN}\n"
    result += user_code
    result += f"// {USER_CODE_END}\n"
    result += "\n"
    result += "".join(each + "\n" for each in unit.mocks)
    return result


def expectation_header(
    unit: GeneratedUnit, input_path: str, cpp: bool, generation_options: str = ""
) -> str:
    result = banner(generation_options)
    result += WRAPPER_INCLUDE
    result += "\n"
    result += _include_input(input_path, cpp)
    result += "\n"
    result += MOCK_SUPPORT_INCLUDE
    result += "\n"
    result += "".join(each + "\n" for each in unit.prototypes)
    return result


def expectation_source(
    unit: GeneratedUnit, header_path: str, generation_options: str = ""
) -> str:
    result = banner(generation_options)
    result += f'#include "{os.path.basename(header_path)}"\n'
    result += "\n"
    result += "".join(each + "\n" for each in unit.implementations)
    return result


def extract_user_code(text: str) -> str:
    """Return the user code section of a previously generated file.

    An unterminated section is discarded.
    """
    result = ""
    capturing = False
    for line in text.splitlines(keepends=True):
        if _USER_CODE_BEGIN_REGEX.search(line):
            capturing = True
        elif _USER_CODE_END_REGEX.search(line):
            capturing = False
        elif capturing:
            result += line
    if capturing:
        return ""
    return result


def extract_generation_options(text: str) -> Optional[str]:
    """Return the generation options recorded in the banner of a
    previously generated file, or ``None`` if there are none."""
    for line in text.splitlines():
        if line.startswith(GENERATION_OPTIONS):
            return line[len(GENERATION_OPTIONS) :]
        if line.startswith(" */"):
            break
    return None


def mock_output_path(path: str, input_path: str) -> str:
    if path == STDOUT:
        return path
    if not path or os.path.isdir(path):
        stem, _ = os.path.splitext(os.path.basename(input_path))
        return os.path.join(path, stem + MOCK_SUFFIX)
    return path


def expectation_output_paths(path: str, input_path: str) -> tuple[str, str]:
    """Return the paths of the expectation header and source."""
    if path == STDOUT:
        return path, path
    if not path or os.path.isdir(path):
        stem, _ = os.path.splitext(os.path.basename(input_path))
        stem = os.path.join(path, stem + EXPECT_SUFFIX)
    else:
        stem, _ = os.path.splitext(path)
    return stem + ".hpp", stem + ".cpp"


def read_file(path: str) -> str:
    """Raises:
    utils.CppUMockGenRuntimeError: If ``path`` cannot be read
    """
    try:
        with open(path, "r") as f:
            return f.read()
    except OSError as e:
        raise utils.CppUMockGenRuntimeError(
            f"File '{path}' could not be read: {e.strerror}"
        )


def _write(path: str, content: str) -> None:
    if path == STDOUT:
        sys.stdout.write(content)
        return
    try:
        with open(path, "w") as f:
            f.write(content)
    except OSError as e:
        raise utils.CppUMockGenRuntimeError(
            f"Output file '{path}' could not be opened: {e.strerror}"
        )
    _logger.info("Generated '%s'", path)


def main(args) -> None:
    """Generate mock and expectation files and save them on disk.

    Args:
        args: Holds the commandline arguments

    The ``args`` parameter is required to have the fields produced by
    ``commandline.parse_args``: ``input_path``, ``mock_output``,
    ``expect_output``, ``cpp``, ``std``, ``include_path``, ``flags``,
    ``underlying_typedef``, ``parameter_overrides``, ``type_overrides``,
    ``generation_options`` and ``clang_library_file``.

    Raises:
        utils.CppUMockGenRuntimeError:
            If the clang library file is not set, the input contains no
            mockable declaration, or reading/writing any of the
            specified files fails
    """
    if not args.clang_library_file:
        raise utils.CppUMockGenRuntimeError(
            "clang library file path not set. Specify the path to the clang"
            " .dll/.so/.dylib using the --clang-library-file command line"
            " argument or by setting the environment variable"
            " CLANG_LIBRARY_FILE."
        )
    translator.set_library_file(args.clang_library_file)

    cpp = interpret_as_cpp(args.input_path, args.cpp)
    cfg = config.Config(
        args.underlying_typedef, args.parameter_overrides, args.type_overrides
    )
    flags = translator.compiler_flags(cpp, args.std, args.include_path) + args.flags
    root = translator.translate_file(args.input_path, flags)
    unit = generate(root, cfg)
    if not unit:
        raise utils.CppUMockGenRuntimeError(
            f"The input file '{args.input_path}' does not contain any mockable function."
        )

    if args.mock_output is not None:
        path = mock_output_path(args.mock_output, args.input_path)
        user_code = ""
        if path != STDOUT and os.path.isfile(path):
            user_code = extract_user_code(read_file(path))
        _write(
            path,
            mock_file(unit, args.input_path, cpp, args.generation_options, user_code),
        )

    if args.expect_output is not None:
        header_path, source_path = expectation_output_paths(
            args.expect_output, args.input_path
        )
        _write(
            header_path,
            expectation_header(unit, args.input_path, cpp, args.generation_options),
        )
        _write(
            source_path,
            expectation_source(unit, header_path, args.generation_options),
        )
