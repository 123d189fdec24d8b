# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Names of mocked declarations and their expectation helpers."""

from __future__ import annotations

import re

import clang.cindex

EXPECT_NAMESPACE = "expect"
SCOPE_SUFFIX = "$"
DESTRUCTOR_SUFFIX = "$dtor"
CONSTRUCTOR_SUFFIX = "$ctor"

# Semantic parents which do not contribute to a qualified name.
_TRANSPARENT_SCOPES = {
    clang.cindex.CursorKind.LINKAGE_SPEC,
    clang.cindex.CursorKind.UNEXPOSED_DECL,
}

_LEADING_KEYWORDS = re.compile(r"^(?:(?:const|volatile|struct|class|union|enum)\s+)+")
_TRAILING_DECLARATORS = re.compile(r"(?:\s*(?:\*|&|\bconst\b|\bvolatile\b))+\s*$")


def scopes(cursor: clang.cindex.Cursor) -> list[str]:
    """Return the names of the semantic parents of ``cursor``, outermost
    first.

    Anonymous scopes and ``extern "C"`` blocks are left out.
    """
    result = []
    parent = cursor.semantic_parent
    while parent is not None and parent.kind != clang.cindex.CursorKind.TRANSLATION_UNIT:
        if parent.kind not in _TRANSPARENT_SCOPES and parent.spelling:
            result.append(parent.spelling)
        parent = parent.semantic_parent
    return result[::-1]


def qualified_name(cursor: clang.cindex.Cursor) -> str:
    """Return the ``::``-joined path of ``cursor``, for example
    ``ns1::class1::~class1``."""
    return "::".join(scopes(cursor) + [cursor.spelling])


def owner_class(cursor: clang.cindex.Cursor) -> str:
    """Return the qualified name of the class that ``cursor`` is a
    member of."""
    return qualified_name(cursor.semantic_parent)


def expectation_name(cursor: clang.cindex.Cursor) -> str:
    """Return the name of the expectation helper of ``cursor``.

    Destructors become ``<class>$dtor`` and constructors
    ``<class>$ctor``; every other name, operators included, is kept.
    """
    if cursor.kind == clang.cindex.CursorKind.DESTRUCTOR:
        return cursor.spelling[1:] + DESTRUCTOR_SUFFIX
    if cursor.kind == clang.cindex.CursorKind.CONSTRUCTOR:
        return cursor.spelling + CONSTRUCTOR_SUFFIX
    return cursor.spelling


def wrap_in_expect_namespace(content: str, namespaces: list[str]) -> str:
    """Wrap ``content`` in ``namespace expect { namespace <ns>$ { ... } }``.

    Args:
        content: Newline-terminated code
        namespaces: The scopes of the mocked declaration, outermost first

    Example:
        >>> wrap_in_expect_namespace('int x;\\n', ['ns1', 'class1'])
        'namespace expect { namespace ns1$ { namespace class1$ {\\nint x;\\n} } }\\n'
    """
    names = [EXPECT_NAMESPACE] + [each + SCOPE_SUFFIX for each in namespaces]
    result = " ".join(f"namespace {each} {{" for each in names) + "\n"
    result += content
    result += " ".join("}" for _ in names) + "\n"
    return result


def bare_type_spelling(spelling: str) -> str:
    """Strip cv-qualifiers, elaborated type keywords and declarators from
    a type spelling.

    Example:
        >>> bare_type_spelling('const struct Struct1 *')
        'Struct1'
    """
    result = _LEADING_KEYWORDS.sub("", spelling.strip())
    result = _TRAILING_DECLARATORS.sub("", result)
    return result
