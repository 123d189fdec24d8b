# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""libclang wrapper module.

This module translates a C or C++ header into the corresponding AST
using ``translate``. Before calling ``translate``, you must set the path
to the ``libclang.dll/.so/.dylib`` _file_ using ``set_library_file``.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

import clang.cindex

from cppumockgen import utils

_logger = logging.getLogger(__name__)

DIAGNOSTIC_FORMAT_OPTIONS = (
    clang.cindex.Diagnostic.DisplaySourceLocation
    | clang.cindex.Diagnostic.DisplayColumn
    | clang.cindex.Diagnostic.DisplaySourceRanges
    | clang.cindex.Diagnostic.DisplayOption
    | clang.cindex.Diagnostic.DisplayCategoryId
    | clang.cindex.Diagnostic.DisplayCategoryName
)

DECLARATION_CURSORS = {
    clang.cindex.CursorKind.FUNCTION_DECL,
    clang.cindex.CursorKind.CXX_METHOD,
    clang.cindex.CursorKind.CONSTRUCTOR,
    clang.cindex.CursorKind.DESTRUCTOR,
}

# Scopes whose members may hold mockable declarations. Nothing inside a
# template is mockable.
SCOPE_CURSORS = {
    clang.cindex.CursorKind.NAMESPACE,
    clang.cindex.CursorKind.CLASS_DECL,
    clang.cindex.CursorKind.STRUCT_DECL,
    clang.cindex.CursorKind.LINKAGE_SPEC,
    clang.cindex.CursorKind.UNEXPOSED_DECL,  # extern "C" on older libclang
}


def set_library_file(file: str) -> None:
    """Args:
    file: path to libclang dynamic library.

    libclang can only be configured before it is first used; later calls
    are ignored.
    """
    if clang.cindex.Config.loaded:
        _logger.debug("libclang already loaded, ignoring '%s'", file)
        return
    clang.cindex.Config.set_library_file(file)


def compiler_flags(
    interpret_as_cpp: bool,
    std: Optional[str] = None,
    include_paths: Optional[list[str]] = None,
) -> list[str]:
    """Assemble the libclang command line for a header.

    Args:
        interpret_as_cpp: Parse as C++ instead of C
        std: Language standard, for example ``'c++11'``
        include_paths: Additional include directories
    """
    result = ["-x", "c++" if interpret_as_cpp else "c"]
    if std:
        result.append(f"-std={std}")
    result += [f"-I{each}" for each in include_paths or []]
    return result


class Node:
    """Wrapper class for ``clang.cindex.Cursor`` which tracks file
    membership."""

    def __init__(self, cursor: clang.cindex.Cursor, path: str) -> None:
        """Args:
        cursor: The wrapper cursor
        path: The file that the cursor belongs to
        """
        self._cursor = cursor
        self._path = path

    @property
    def cursor(self) -> clang.cindex.Cursor:
        return self._cursor

    @property
    def path(self) -> str:
        return self._path

    def get_children(self) -> list[Node]:
        """Get all children from the same file."""
        return [
            Node(each, self._path)
            for each in self._cursor.get_children()
            if str(each.location.file) == self._path
        ]

    def iter_declarations(self) -> Iterator[Node]:
        """Yield every function, method, constructor and destructor
        declared in the node's file, in source order.

        Namespaces, classes, structs and ``extern "C"`` blocks are
        searched recursively.
        """
        for each in self.get_children():
            kind = each.cursor.kind
            if kind in DECLARATION_CURSORS:
                yield each
            elif kind in SCOPE_CURSORS:
                yield from each.iter_declarations()


def translate_file(path: str, compiler_flags: Optional[list[str]] = None) -> Node:
    """Translate the content of ``path`` into its AST.

    Args:
        path: The path to the file
        compiler_flags: A list of compiler flags used for parsing

    Raises:
        clang.cindex.LibclangError:
            If the libclang path is not set or not found (see
            ``set_library_file``)
        utils.CppUMockGenRuntimeError:
            If ``path`` cannot be read or the parser fails
    """
    try:
        with open(path, "r") as f:
            source = f.read()
    except OSError as e:
        raise utils.CppUMockGenRuntimeError(
            f"Input file '{path}' could not be read: {e.strerror}"
        )
    return translate(path, source, compiler_flags)


def translate(
    path: str, source: str, compiler_flags: Optional[list[str]] = None
) -> Node:
    """Translate a string with C or C++ code into its AST.

    Args:
        path: The path of the parsed file
        source: The header's source
        compiler_flags:
            A list of compiler flags used for parsing; the language
            defaults to C++ unless the flags select one with ``-x``

    Raises:
        clang.cindex.LibclangError:
            If the libclang path is not set or not found (see
            ``set_library_file``)
        utils.CppUMockGenRuntimeError:
            If ``path`` is empty or the parser reports errors

    Note: The ``path`` parameter is required due to ``clang`` details.
    It need not be a real path, but it must be non-empty. Choosing a
    unique name is useful, as it is used in clang's diagnostics.
    """
    if not path:
        raise utils.CppUMockGenRuntimeError(
            "translate failed: Parameter 'path' is empty. Expected non-empty string"
        )

    if compiler_flags is None:
        compiler_flags = []
    if "-x" not in compiler_flags:
        compiler_flags = ["-x", "c++"] + compiler_flags

    index = clang.cindex.Index.create()
    try:
        tu = index.parse(path, compiler_flags, unsaved_files=[(path, source)])
    except clang.cindex.TranslationUnitLoadError as e:
        raise utils.CppUMockGenRuntimeError(str(e))

    errors = []
    for each in tu.diagnostics:
        formatted = each.format(DIAGNOSTIC_FORMAT_OPTIONS)
        if each.severity >= clang.cindex.Diagnostic.Error:
            errors.append(formatted)
        elif each.severity == clang.cindex.Diagnostic.Warning:
            _logger.warning("Parser warning: %s", formatted)
    if errors:
        error = "Clang failed. Details:\n\n"
        error += "\n".join("\t" + each for each in errors)
        raise utils.CppUMockGenRuntimeError(error)

    return Node(tu.cursor, path)
