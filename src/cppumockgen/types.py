# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Classification of C/C++ types onto the typed API of CppUTest's mock
support.

Every parameter and every non-void return value (a _slot_) of a mocked
declaration is mapped onto a ``MockedType``, which selects the
``withXParameter``/``returnXValue`` call used for the slot, plus a few
rendering hints. The result is a ``TypeClassification``:

```python
classification = types.classify(cursor.result_type, types.Context.RETURN)
```

Classification is a pure function of the type, the context and the
``use_underlying_typedef`` flag. Types that cannot be expressed raise
``utils.UnsupportedTypeError``.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Optional

import clang.cindex

from cppumockgen import naming
from cppumockgen import utils

TypeKind = clang.cindex.TypeKind


class MockedType(enum.Enum):
    BOOL = "Bool"
    INT = "Int"
    UNSIGNED_INT = "UnsignedInt"
    LONG = "Long"
    UNSIGNED_LONG = "UnsignedLong"
    DOUBLE = "Double"
    STRING = "String"
    POINTER = "Pointer"
    CONST_POINTER = "ConstPointer"
    OUTPUT = "Output"
    INPUT_OF_TYPE = "InputOfType"
    OUTPUT_OF_TYPE = "OutputOfType"
    INPUT_POD = "InputPOD"
    OUTPUT_POD = "OutputPOD"
    MEMORY_BUFFER = "MemoryBuffer"
    SKIP = "Skip"

    @property
    def is_primitive(self) -> bool:
        """Return ``True`` for the slots that carry no metadata besides
        the value."""
        return self in _PRIMITIVE_SLOTS


_PRIMITIVE_SLOTS = {
    MockedType.BOOL,
    MockedType.INT,
    MockedType.UNSIGNED_INT,
    MockedType.LONG,
    MockedType.UNSIGNED_LONG,
    MockedType.DOUBLE,
    MockedType.STRING,
    MockedType.POINTER,
    MockedType.CONST_POINTER,
}

# C++ type that the mock library natively stores for a slot.
NATIVE_TYPES = {
    MockedType.BOOL: "bool",
    MockedType.INT: "int",
    MockedType.UNSIGNED_INT: "unsigned int",
    MockedType.LONG: "long",
    MockedType.UNSIGNED_LONG: "unsigned long",
    MockedType.DOUBLE: "double",
    MockedType.STRING: "const char *",
    MockedType.POINTER: "void *",
    MockedType.CONST_POINTER: "const void *",
}


# Infix of the mock library's ``with<X>Parameter``/``return<X>Value``.
API_NAMES = {
    MockedType.BOOL: "Bool",
    MockedType.INT: "Int",
    MockedType.UNSIGNED_INT: "UnsignedInt",
    MockedType.LONG: "LongInt",
    MockedType.UNSIGNED_LONG: "UnsignedLongInt",
    MockedType.DOUBLE: "Double",
    MockedType.STRING: "String",
    MockedType.POINTER: "Pointer",
    MockedType.CONST_POINTER: "ConstPointer",
}


class Context(enum.Enum):
    RETURN = "return"
    ARGUMENT = "argument"


class Reference(enum.Enum):
    NONE = ""
    LVALUE = "&"
    RVALUE = "&&"


# Type kind -> (mocked type, narrower than the library's native type)
PRIMITIVES = {
    TypeKind.BOOL: (MockedType.BOOL, False),
    TypeKind.INT: (MockedType.INT, False),
    TypeKind.UINT: (MockedType.UNSIGNED_INT, False),
    TypeKind.SHORT: (MockedType.INT, True),
    TypeKind.USHORT: (MockedType.UNSIGNED_INT, True),
    TypeKind.CHAR_S: (MockedType.INT, True),
    TypeKind.CHAR_U: (MockedType.INT, True),
    TypeKind.SCHAR: (MockedType.INT, True),
    TypeKind.UCHAR: (MockedType.UNSIGNED_INT, True),
    TypeKind.LONG: (MockedType.LONG, False),
    TypeKind.ULONG: (MockedType.UNSIGNED_LONG, False),
    TypeKind.FLOAT: (MockedType.DOUBLE, True),
    TypeKind.DOUBLE: (MockedType.DOUBLE, False),
    TypeKind.WCHAR: (MockedType.INT, True),
    TypeKind.CHAR16: (MockedType.UNSIGNED_INT, True),
    TypeKind.CHAR32: (MockedType.UNSIGNED_LONG, True),
}

_CHARACTERS = {TypeKind.CHAR_S, TypeKind.CHAR_U}
_BYTES = {TypeKind.CHAR_S, TypeKind.CHAR_U, TypeKind.SCHAR, TypeKind.UCHAR}
_ARRAYS = {TypeKind.INCOMPLETEARRAY, TypeKind.CONSTANTARRAY}
_REFERENCES = {
    TypeKind.LVALUEREFERENCE: Reference.LVALUE,
    TypeKind.RVALUEREFERENCE: Reference.RVALUE,
}


@dataclasses.dataclass
class TypeClassification:
    """The result of classifying one slot.

    ``cast_required`` is set if the value must be ``static_cast`` when
    it crosses the mock library: narrowing a returned value back to the
    declared type, or converting an enumerator argument to ``int``. The
    target of that cast is ``cast_type``.

    ``dereference_needed`` means the slot is handed over by address: an
    argument is passed as ``&p``, a returned pointer is dereferenced.

    ``value_type`` is the C++ type that the expectation helper accepts
    for the slot. ``buffer`` marks output slots whose size is unknown,
    so the helper takes an additional ``size_t`` argument.
    """

    mocked: MockedType
    rendered_type: str
    cast_required: bool = False
    dereference_needed: bool = False
    is_const: bool = False
    is_pointer_like: bool = False
    underlying_struct_name: Optional[str] = None
    array_decayed: bool = False
    reference: Reference = Reference.NONE
    cast_type: Optional[str] = None
    typedef_cast: bool = False
    value_type: str = ""
    buffer: bool = False


def classify(
    type_: clang.cindex.Type,
    context: Context,
    use_underlying_typedef: bool = False,
) -> Optional[TypeClassification]:
    """Classify a parameter or return type.

    Args:
        type_: The declared type of the slot
        context: Whether ``type_`` is a return or a parameter type
        use_underlying_typedef:
            Tag objects passed by type with the name of the underlying
            record instead of the typedef name

    Returns:
        The classification, or ``None`` for a ``void`` return type

    Raises:
        utils.UnsupportedTypeError:
            If ``type_`` cannot be passed through the mock library
    """
    if context == Context.RETURN:
        return _classify_return(type_)
    return _classify_argument(type_, use_underlying_typedef)


def desugar(type_: clang.cindex.Type) -> clang.cindex.Type:
    """Remove elaborated type sugar (``struct S``, ``ns::T``) but keep
    typedefs."""
    while type_.kind == TypeKind.ELABORATED:
        type_ = type_.get_named_type()
    return type_


def target_type(type_: clang.cindex.Type) -> Optional[clang.cindex.Type]:
    """The type that a pointer, reference or array refers to, or
    ``None``. Typedefs are looked through only if they hide the
    indirection."""
    for each in (desugar(type_), type_.get_canonical()):
        if each.kind == TypeKind.POINTER or each.kind in _REFERENCES:
            return each.get_pointee()
        if each.kind in _ARRAYS:
            return each.element_type
    return None


def is_record(type_: clang.cindex.Type) -> bool:
    """Canonical record check; template specializations are exposed as
    ``UNEXPOSED`` by some libclang versions."""
    return type_.get_canonical().kind == TypeKind.RECORD


def is_typedef(type_: clang.cindex.Type) -> bool:
    return desugar(type_).kind == TypeKind.TYPEDEF


def is_void(type_: clang.cindex.Type) -> bool:
    return type_.get_canonical().kind == TypeKind.VOID


def value_spelling(type_: clang.cindex.Type) -> str:
    """The spelling of ``type_`` without a top-level ``const``."""
    return utils.strip_prefix(type_.spelling, "const ")


def const_pointer_to(spelling: str) -> str:
    """Spell a pointer to const ``spelling``.

    Example:
        >>> const_pointer_to('int')
        'const int*'
        >>> const_pointer_to('int *')
        'int *const*'
    """
    if spelling.endswith("*"):
        return spelling + "const*"
    return "const " + spelling + "*"


def _is_const(type_: clang.cindex.Type) -> bool:
    return type_.is_const_qualified() or type_.get_canonical().is_const_qualified()


def _unsupported(type_: clang.cindex.Type) -> utils.UnsupportedTypeError:
    return utils.UnsupportedTypeError(type_.spelling)


def _classify_return(type_: clang.cindex.Type) -> Optional[TypeClassification]:
    if is_void(type_):
        return None
    rendered = type_.spelling
    if is_typedef(type_):
        return _classify_typedef_return(type_)
    kind = desugar(type_).kind
    if kind in PRIMITIVES:
        mocked, narrow = PRIMITIVES[kind]
        return TypeClassification(
            mocked,
            rendered,
            cast_required=narrow,
            cast_type=rendered if narrow else None,
            is_const=type_.is_const_qualified(),
            value_type=rendered,
        )
    if kind == TypeKind.ENUM:
        return TypeClassification(
            MockedType.INT,
            rendered,
            cast_required=True,
            cast_type=rendered,
            is_const=type_.is_const_qualified(),
            value_type=rendered,
        )
    if kind == TypeKind.POINTER:
        return _classify_pointer_return(type_)
    if kind in _REFERENCES:
        pointee = type_.get_pointee()
        if pointee.get_canonical().kind == TypeKind.FUNCTIONPROTO:
            raise _unsupported(type_)
        const = _is_const(pointee)
        return TypeClassification(
            MockedType.CONST_POINTER if const else MockedType.POINTER,
            rendered,
            cast_required=True,
            cast_type=pointee.spelling + "*",
            dereference_needed=True,
            is_const=const,
            is_pointer_like=True,
            reference=_REFERENCES[kind],
            value_type=pointee.spelling + " &",
        )
    if is_record(type_):
        return _record_return(type_, rendered)
    raise _unsupported(type_)


def _record_return(type_: clang.cindex.Type, rendered: str) -> TypeClassification:
    # Objects are returned through a pointer to an expected instance.
    value = value_spelling(type_)
    return TypeClassification(
        MockedType.CONST_POINTER,
        rendered,
        cast_required=True,
        cast_type=f"const {value}*",
        dereference_needed=True,
        is_const=True,
        underlying_struct_name=naming.bare_type_spelling(value),
        value_type=f"const {value} &",
    )


def _classify_pointer_return(type_: clang.cindex.Type) -> TypeClassification:
    rendered = type_.spelling
    pointee = type_.get_pointee()
    canonical = pointee.get_canonical()
    if canonical.kind == TypeKind.FUNCTIONPROTO:
        raise _unsupported(type_)
    const = _is_const(pointee)
    bare_kind = desugar(pointee).kind
    result = TypeClassification(
        MockedType.CONST_POINTER if const else MockedType.POINTER,
        rendered,
        is_const=const,
        is_pointer_like=True,
        value_type=rendered,
    )
    if bare_kind == TypeKind.VOID:
        return result
    if bare_kind in _CHARACTERS and const:
        result.mocked = MockedType.STRING
        return result
    result.cast_required = True
    result.cast_type = pointee.spelling + "*"
    return result


def _classify_typedef_return(type_: clang.cindex.Type) -> TypeClassification:
    rendered = type_.spelling
    canonical = type_.get_canonical()
    if canonical.kind == TypeKind.RECORD:
        return _record_return(type_, rendered)
    result = TypeClassification(
        MockedType.INT,
        rendered,
        cast_required=True,
        cast_type=rendered,
        is_const=type_.is_const_qualified(),
        value_type=rendered,
    )
    if canonical.kind in PRIMITIVES:
        result.mocked, _ = PRIMITIVES[canonical.kind]
    elif canonical.kind == TypeKind.ENUM:
        result.mocked = MockedType.INT
    elif canonical.kind == TypeKind.POINTER:
        pointee = canonical.get_pointee()
        if pointee.kind == TypeKind.FUNCTIONPROTO:
            raise _unsupported(type_)
        result.is_pointer_like = True
        if pointee.kind in _CHARACTERS and pointee.is_const_qualified():
            result.mocked = MockedType.STRING
        elif pointee.is_const_qualified():
            result.mocked = MockedType.CONST_POINTER
        else:
            result.mocked = MockedType.POINTER
    elif canonical.kind in _REFERENCES:
        pointee = canonical.get_pointee()
        const = pointee.is_const_qualified()
        result.mocked = MockedType.CONST_POINTER if const else MockedType.POINTER
        result.cast_type = pointee.spelling + "*"
        result.dereference_needed = True
        result.is_pointer_like = True
        result.reference = _REFERENCES[canonical.kind]
        result.typedef_cast = True
        result.value_type = pointee.spelling + " &"
    else:
        raise _unsupported(type_)
    return result


def _classify_argument(
    type_: clang.cindex.Type, use_underlying_typedef: bool
) -> TypeClassification:
    rendered = type_.spelling
    if is_typedef(type_):
        return _classify_typedef_argument(type_, use_underlying_typedef)
    kind = desugar(type_).kind
    if kind in PRIMITIVES:
        mocked, _ = PRIMITIVES[kind]
        return TypeClassification(
            mocked, rendered, is_const=type_.is_const_qualified(), value_type=rendered
        )
    if kind == TypeKind.ENUM:
        return _enum_argument(type_, rendered)
    if kind == TypeKind.POINTER:
        return _classify_pointee(
            type_.get_pointee(), rendered, False, use_underlying_typedef
        )
    if kind in _REFERENCES:
        pointee = type_.get_pointee()
        pointee_kind = pointee.get_canonical().kind
        if kind == TypeKind.RVALUEREFERENCE and (
            pointee_kind in PRIMITIVES or pointee_kind == TypeKind.ENUM
        ):
            # Moved-from scalars are matched by value.
            result = _classify_argument(pointee, use_underlying_typedef)
            result.rendered_type = rendered
            result.reference = Reference.RVALUE
            return result
        result = _classify_pointee(pointee, rendered, True, use_underlying_typedef)
        result.reference = _REFERENCES[kind]
        return result
    if kind in _ARRAYS:
        return _classify_array(type_)
    if is_record(type_):
        return _record_argument(type_, rendered, use_underlying_typedef)
    raise _unsupported(type_)


def _enum_argument(type_: clang.cindex.Type, rendered: str) -> TypeClassification:
    return TypeClassification(
        MockedType.INT,
        rendered,
        cast_required=True,
        cast_type="int",
        is_const=type_.is_const_qualified(),
        value_type=rendered,
    )


def _type_tag(type_: clang.cindex.Type, use_underlying_typedef: bool) -> str:
    """Name under which objects of ``type_`` are registered with
    ``withParameterOfType``."""
    if use_underlying_typedef:
        return naming.bare_type_spelling(type_.get_canonical().spelling)
    return naming.bare_type_spelling(type_.spelling)


def _record_argument(
    type_: clang.cindex.Type, rendered: str, use_underlying_typedef: bool
) -> TypeClassification:
    tag = _type_tag(type_, use_underlying_typedef)
    return TypeClassification(
        MockedType.INPUT_OF_TYPE,
        rendered,
        dereference_needed=True,
        is_const=type_.is_const_qualified(),
        underlying_struct_name=tag,
        value_type=f"const {value_spelling(type_)}&",
    )


def _classify_pointee(
    pointee: clang.cindex.Type,
    rendered: str,
    by_reference: bool,
    use_underlying_typedef: bool,
) -> TypeClassification:
    """Classify a pointer or reference parameter by its target."""
    canonical = pointee.get_canonical()
    const = _is_const(pointee)
    bare_kind = desugar(pointee).kind
    result = TypeClassification(
        MockedType.OUTPUT,
        rendered,
        dereference_needed=by_reference,
        is_const=const,
        is_pointer_like=True,
    )
    # References are passed by address, so the expectation takes a
    # pointer to the target.
    pointer_type = pointee.spelling + " *" if by_reference else rendered

    if canonical.kind == TypeKind.VOID:
        result.mocked = MockedType.CONST_POINTER if const else MockedType.POINTER
        result.value_type = pointer_type
    elif canonical.kind == TypeKind.RECORD:
        result.mocked = MockedType.INPUT_OF_TYPE if const else MockedType.OUTPUT_OF_TYPE
        result.underlying_struct_name = _type_tag(pointee, use_underlying_typedef)
        result.value_type = const_pointer_to(value_spelling(pointee))
    elif canonical.kind in PRIMITIVES or canonical.kind in {
        TypeKind.ENUM,
        TypeKind.POINTER,
    }:
        if const and not by_reference and bare_kind in _CHARACTERS:
            result.mocked = MockedType.STRING
            result.value_type = rendered
        elif const:
            result.mocked = MockedType.CONST_POINTER
            result.value_type = pointer_type
        elif not by_reference and canonical.kind in _BYTES:
            result.buffer = True
            result.value_type = NATIVE_TYPES[MockedType.CONST_POINTER]
        else:
            result.value_type = const_pointer_to(pointee.spelling)
    else:
        raise _unsupported(pointee)
    return result


def _classify_array(type_: clang.cindex.Type) -> TypeClassification:
    element = type_.element_type
    const = _is_const(element)
    result = TypeClassification(
        MockedType.CONST_POINTER if const else MockedType.OUTPUT,
        type_.spelling,
        is_const=const,
        is_pointer_like=True,
        array_decayed=True,
    )
    if const:
        result.value_type = element.spelling + " *"
    else:
        result.buffer = True
        result.value_type = NATIVE_TYPES[MockedType.CONST_POINTER]
    return result


def _classify_typedef_argument(
    type_: clang.cindex.Type, use_underlying_typedef: bool
) -> TypeClassification:
    rendered = type_.spelling
    canonical = type_.get_canonical()
    typedef_const = type_.is_const_qualified()
    if canonical.kind in PRIMITIVES:
        mocked, _ = PRIMITIVES[canonical.kind]
        return TypeClassification(
            mocked, rendered, is_const=typedef_const, value_type=rendered
        )
    if canonical.kind == TypeKind.ENUM:
        return _enum_argument(type_, rendered)
    if canonical.kind == TypeKind.RECORD:
        return _record_argument(type_, rendered, use_underlying_typedef)
    if canonical.kind == TypeKind.POINTER:
        pointee = canonical.get_pointee()
        if pointee.kind == TypeKind.FUNCTIONPROTO:
            raise _unsupported(type_)
        result = TypeClassification(
            MockedType.POINTER,
            rendered,
            is_const=pointee.is_const_qualified(),
            is_pointer_like=True,
            value_type=rendered,
        )
        if pointee.kind in _CHARACTERS and pointee.is_const_qualified():
            result.mocked = MockedType.STRING
        elif pointee.is_const_qualified():
            result.mocked = MockedType.CONST_POINTER
        return result
    if canonical.kind in _REFERENCES:
        pointee = canonical.get_pointee()
        const = pointee.is_const_qualified()
        return TypeClassification(
            MockedType.CONST_POINTER if const else MockedType.POINTER,
            rendered,
            dereference_needed=True,
            is_const=const,
            is_pointer_like=True,
            reference=_REFERENCES[canonical.kind],
            value_type=pointee.spelling + " *",
        )
    if canonical.kind in _ARRAYS:
        const = typedef_const or canonical.element_type.is_const_qualified()
        result = TypeClassification(
            MockedType.CONST_POINTER if const else MockedType.OUTPUT,
            rendered,
            is_const=const,
            is_pointer_like=True,
            value_type=NATIVE_TYPES[MockedType.CONST_POINTER],
        )
        result.buffer = not const
        return result
    raise _unsupported(type_)
