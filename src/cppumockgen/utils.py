# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

from typing import Iterable, Optional

VERSION = "0.6.0"

INDENT_WIDTH = 4


def indent(value: str, depth: int = 1, width: int = INDENT_WIDTH) -> str:
    """Indent a string according to depth.

    Args:
        value: The string to indent
        depth: The depth of the string (number of tabs/indents)
        width: Indent width
    """
    result = value
    result = depth * width * " " + result
    result = result.replace("\n", "\n" + depth * width * " ")
    return result


def statement_block(statements: Iterable[str]) -> str:
    """Render a C++ compound statement from ``statements``.

    Every statement is put on its own line, indented once. The result
    is terminated by a newline.

    Example:
        >>> statement_block(['int x = 0;', 'return x;'])
        '{\\n    int x = 0;\\n    return x;\\n}\\n'
    """
    result = "{\n"
    result += "".join(indent(each) + "\n" for each in statements)
    result += "}\n"
    return result


def strip_prefix(value: str, prefix: str) -> str:
    if value.startswith(prefix):
        return value[len(prefix) :]
    return value


class CppUMockGenRuntimeError(Exception):
    pass


class UnsupportedTypeError(CppUMockGenRuntimeError):
    """Raised if a type cannot be mapped onto the mock library's API.

    Args:
        type_spelling: The spelling of the offending type
        location: Source location of the declaration, if known
    """

    def __init__(self, type_spelling: str, location: Optional[str] = None) -> None:
        self.type_spelling = type_spelling
        self.location = location
        message = f"Unsupported type '{type_spelling}'"
        if location:
            message = f"{location}: {message}"
        super().__init__(message)
