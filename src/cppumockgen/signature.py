# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Mockable declarations.

``is_mockable`` decides whether a declaration gets a mock at all;
``Signature.from_node`` collects everything the renderers need.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Optional

import clang.cindex

from cppumockgen import config
from cppumockgen import naming
from cppumockgen import translator
from cppumockgen import types
from cppumockgen import utils

_logger = logging.getLogger(__name__)

CursorKind = clang.cindex.CursorKind
AccessSpecifier = clang.cindex.AccessSpecifier

UNNAMED_PREFIX = "_unnamedArg"

_CLASSES = {CursorKind.CLASS_DECL, CursorKind.STRUCT_DECL}
_TEMPLATES = {
    CursorKind.CLASS_TEMPLATE,
    CursorKind.CLASS_TEMPLATE_PARTIAL_SPECIALIZATION,
    CursorKind.FUNCTION_TEMPLATE,
}


class Kind(enum.Enum):
    FUNCTION = "function"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    DESTRUCTOR = "destructor"


_KINDS = {
    CursorKind.FUNCTION_DECL: Kind.FUNCTION,
    CursorKind.CXX_METHOD: Kind.METHOD,
    CursorKind.CONSTRUCTOR: Kind.CONSTRUCTOR,
    CursorKind.DESTRUCTOR: Kind.DESTRUCTOR,
}


class ExceptionSpec(enum.Enum):
    NONE = ""
    NOEXCEPT = "noexcept"
    THROW_NONE = "throw()"
    THROW_ANY = "throw(...)"
    # Dynamic specifications listing types are not reproduced.
    THROW = "throw(__put_exception_types_manually_here__)"


_EXCEPTION_SPECS = {
    clang.cindex.ExceptionSpecificationKind.BASIC_NOEXCEPT: ExceptionSpec.NOEXCEPT,
    clang.cindex.ExceptionSpecificationKind.COMPUTED_NOEXCEPT: ExceptionSpec.NOEXCEPT,
    clang.cindex.ExceptionSpecificationKind.DYNAMIC_NONE: ExceptionSpec.THROW_NONE,
    clang.cindex.ExceptionSpecificationKind.MS_ANY: ExceptionSpec.THROW_ANY,
    clang.cindex.ExceptionSpecificationKind.DYNAMIC: ExceptionSpec.THROW,
}


@dataclasses.dataclass
class Parameter:
    """A parameter of a mocked declaration.

    Parameters collected by ``Signature.from_node`` have exactly one of
    ``classification`` and ``override`` set. ``pointee_spelling`` is the
    type that a pointer, reference or array parameter refers to.
    """

    name: str
    type_spelling: str
    classification: Optional[types.TypeClassification] = None
    override: Optional[config.OverrideSpec] = None
    pointee_spelling: Optional[str] = None

    @property
    def mocked(self) -> Optional[types.MockedType]:
        if self.override is not None:
            return self.override.kind
        if self.classification is None:
            return None
        return self.classification.mocked

    @property
    def skipped(self) -> bool:
        return self.mocked == types.MockedType.SKIP

    def declaration(self) -> str:
        """Render the parameter as it appears in the mock's head.

        Example:
            >>> Parameter('p', 'int *[]').declaration()
            'int * p[]'
        """
        if self.skipped:
            return self.type_spelling
        return declare(self.type_spelling, self.name)


@dataclasses.dataclass
class Signature:
    kind: Kind
    qualified_name: str
    expectation_name: str
    emission_namespaces: list[str]
    parameters: list[Parameter]
    result_spelling: str
    result: Optional[types.TypeClassification] = None
    result_override: Optional[config.OverrideSpec] = None
    is_const_method: bool = False
    is_static_method: bool = False
    exception_spec: ExceptionSpec = ExceptionSpec.NONE
    owner_class: Optional[str] = None
    location: str = ""
    is_variadic: bool = False

    @property
    def is_method(self) -> bool:
        """``True`` if calls are made on an object."""
        if self.is_static_method:
            return False
        return self.kind in {Kind.METHOD, Kind.DESTRUCTOR}

    @property
    def returns(self) -> bool:
        return self.result is not None or self.result_override is not None

    @classmethod
    def from_node(cls, node: translator.Node, cfg: config.Config) -> Signature:
        """Collect the signature of a mockable declaration.

        Args:
            node: The node of a function, method, constructor or
                destructor
            cfg: Generation options

        Raises:
            utils.UnsupportedTypeError:
                If a parameter or the return type cannot be mocked and
                no override applies
        """
        cursor = node.cursor
        kind = _KINDS[cursor.kind]
        qualified_name = naming.qualified_name(cursor)
        location = format_location(cursor)
        try:
            return cls._from_cursor(cursor, kind, qualified_name, location, cfg)
        except utils.UnsupportedTypeError as e:
            raise utils.UnsupportedTypeError(e.type_spelling, location) from e

    @classmethod
    def _from_cursor(
        cls,
        cursor: clang.cindex.Cursor,
        kind: Kind,
        qualified_name: str,
        location: str,
        cfg: config.Config,
    ) -> Signature:
        result_spelling = ""
        result = None
        result_override = None
        if kind in {Kind.FUNCTION, Kind.METHOD}:
            result_type = cursor.result_type
            result_spelling = result_type.spelling
            if not types.is_void(result_type):
                result_override = config.resolve_return(
                    cfg, qualified_name, result_spelling
                )
            if result_override is None:
                result = types.classify(result_type, types.Context.RETURN)

        parameters = []
        for i, arg in enumerate(cursor.get_arguments()):
            name = arg.spelling or f"{UNNAMED_PREFIX}{i}"
            spelling = arg.type.spelling
            override = config.resolve_parameter(cfg, qualified_name, name, spelling)
            classification = None
            if override is None:
                classification = types.classify(
                    arg.type, types.Context.ARGUMENT, cfg.use_underlying_typedef
                )
            target = types.target_type(arg.type)
            parameters.append(
                Parameter(
                    name,
                    spelling,
                    classification,
                    override,
                    target.spelling if target is not None else None,
                )
            )

        is_variadic = is_variadic_function(cursor)
        if is_variadic:
            _logger.warning(
                "%s: Variadic arguments of '%s' are not checked",
                location,
                qualified_name,
            )

        owner_class = None
        if kind != Kind.FUNCTION:
            owner_class = naming.owner_class(cursor)

        return cls(
            kind=kind,
            qualified_name=qualified_name,
            expectation_name=naming.expectation_name(cursor),
            emission_namespaces=naming.scopes(cursor),
            parameters=parameters,
            result_spelling=result_spelling,
            result=result,
            result_override=result_override,
            is_const_method=kind == Kind.METHOD and cursor.is_const_method(),
            is_static_method=kind == Kind.METHOD and cursor.is_static_method(),
            exception_spec=exception_spec(cursor),
            owner_class=owner_class,
            location=location,
            is_variadic=is_variadic,
        )


def declare(spelling: str, name: str) -> str:
    """Declare a variable ``name`` of type ``spelling``.

    Example:
        >>> declare('void (*)(int)', 'cb')
        'void (*cb)(int)'
    """
    if "(*)" in spelling:
        return spelling.replace("(*)", f"(*{name})", 1)
    head, bracket, tail = spelling.partition("[")
    if bracket:
        return f"{head.rstrip()} {name}[{tail}"
    return f"{spelling} {name}"


def is_variadic_function(cursor: clang.cindex.Cursor) -> bool:
    """Check if ``cursor`` declares a C-style ``...`` parameter."""
    type_ = cursor.type
    return (
        type_.kind == clang.cindex.TypeKind.FUNCTIONPROTO
        and type_.is_function_variadic()
    )


def format_location(cursor: clang.cindex.Cursor) -> str:
    location = cursor.location
    return f"{location.file}:{location.line}:{location.column}"


def exception_spec(cursor: clang.cindex.Cursor) -> ExceptionSpec:
    """Return the exception specification as written in the declaration.

    Implicit specifications (for example of destructors) are ignored.
    """
    tokens = [each.spelling for each in cursor.get_tokens()]
    if "noexcept" not in tokens and "throw" not in tokens:
        return ExceptionSpec.NONE
    kind = cursor.exception_specification_kind
    if kind == clang.cindex.ExceptionSpecificationKind.COMPUTED_NOEXCEPT:
        start = tokens.index("noexcept")
        if tokens[start + 1 : start + 4] == ["(", "false", ")"]:
            return ExceptionSpec.NONE
    result = _EXCEPTION_SPECS.get(kind, ExceptionSpec.NONE)
    if result == ExceptionSpec.THROW:
        _logger.warning(
            "%s: Dynamic exception specification of '%s' must be completed manually",
            format_location(cursor),
            naming.qualified_name(cursor),
        )
    return result


def _is_accessible(cursor: clang.cindex.Cursor) -> bool:
    """Check that every class enclosing ``cursor`` is reachable from
    namespace scope."""
    parent = cursor.semantic_parent
    while parent is not None and parent.kind != CursorKind.TRANSLATION_UNIT:
        if parent.kind in _TEMPLATES:
            return False
        if parent.kind in _CLASSES:
            if parent.access_specifier not in {
                AccessSpecifier.PUBLIC,
                AccessSpecifier.NONE,
                AccessSpecifier.INVALID,
            }:
                return False
            if parent.get_num_template_arguments() > 0:
                return False
        parent = parent.semantic_parent
    return True


def is_mockable(cursor: clang.cindex.Cursor) -> bool:
    """Check if a mock can be generated for ``cursor``.

    Declarations which are defined anywhere in the unit, templates and
    members of inaccessible classes are never mockable. Methods must be
    public or virtual and not pure, constructors must not be private.
    Destructors of accessible classes are always mockable.
    """
    kind = _KINDS.get(cursor.kind)
    if kind is None:
        return False
    if cursor.get_definition() is not None:
        return False
    if cursor.get_num_template_arguments() > 0:
        return False
    if not _is_accessible(cursor):
        return False
    access = cursor.access_specifier
    if kind == Kind.METHOD:
        if cursor.is_pure_virtual_method():
            return False
        return access == AccessSpecifier.PUBLIC or cursor.is_virtual_method()
    if kind == Kind.CONSTRUCTOR:
        return access != AccessSpecifier.PRIVATE
    return True
