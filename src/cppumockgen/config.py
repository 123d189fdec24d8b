# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Type override options.

An override replaces the classification of a single slot. Overrides are
passed as options of the form

    <key>=<TYPE>[:<ARG>][~<EXPECT_TYPE>][/<ARG_EXPR>]

where ``<key>`` is ``<function>#<param>`` or ``<function>@`` (parameter
overrides) or ``#<type>``/``@<type>`` (type overrides); ``@`` stands for
the return value.
"""

from __future__ import annotations

import dataclasses
from typing import Iterable, Optional

from cppumockgen import types
from cppumockgen import utils

PLACEHOLDER = "$"
RETURN_SEPARATOR = "@"
PARAMETER_SEPARATOR = "#"

_SIMPLE_TYPES = {
    "Bool": types.MockedType.BOOL,
    "Int": types.MockedType.INT,
    "UnsignedInt": types.MockedType.UNSIGNED_INT,
    "Long": types.MockedType.LONG,
    "LongInt": types.MockedType.LONG,
    "UnsignedLong": types.MockedType.UNSIGNED_LONG,
    "UnsignedLongInt": types.MockedType.UNSIGNED_LONG,
    "Double": types.MockedType.DOUBLE,
    "String": types.MockedType.STRING,
    "Pointer": types.MockedType.POINTER,
    "ConstPointer": types.MockedType.CONST_POINTER,
    "Output": types.MockedType.OUTPUT,
    "InputPOD": types.MockedType.INPUT_POD,
    "OutputPOD": types.MockedType.OUTPUT_POD,
    "Skip": types.MockedType.SKIP,
}

# Types which need an argument after ``:``.
_ARGUMENT_TYPES = {
    "InputOfType": types.MockedType.INPUT_OF_TYPE,
    "OutputOfType": types.MockedType.OUTPUT_OF_TYPE,
    "MemoryBuffer": types.MockedType.MEMORY_BUFFER,
}


@dataclasses.dataclass
class OverrideSpec:
    kind: types.MockedType
    expr_front: str = ""
    expr_back: str = ""
    exposed_type_name: Optional[str] = None
    expectation_arg_type_name: Optional[str] = None
    has_size_placeholder: bool = False
    size_expr_front: str = ""
    size_expr_back: str = ""

    def apply(self, expr: str) -> str:
        """Wrap the argument or return expression ``expr``."""
        return self.expr_front + expr + self.expr_back

    def size_expr(self, name: str) -> str:
        """Return the byte count of a ``MemoryBuffer`` slot named
        ``name``."""
        if self.has_size_placeholder:
            return self.size_expr_front + name + self.size_expr_back
        return self.size_expr_front


def is_return_key(key: str) -> bool:
    return key.startswith(RETURN_SEPARATOR) or key.endswith(RETURN_SEPARATOR)


def parse_override(option: str) -> tuple[str, OverrideSpec]:
    """Parse an override option.

    Args:
        option: The option, for example ``'f#p=InputOfType:Struct1'``

    Returns:
        The key and the parsed spec

    Raises:
        utils.CppUMockGenRuntimeError: If ``option`` is malformed
    """
    key, sep, value = option.partition("=")
    if not sep:
        raise utils.CppUMockGenRuntimeError(f"Invalid override option <{option}>.")
    if not key:
        raise utils.CppUMockGenRuntimeError(
            f"Override option key cannot be empty <{option}>."
        )
    if not value:
        raise utils.CppUMockGenRuntimeError(
            f"Override option spec cannot be empty <{option}>."
        )

    value, sep, arg_expr = value.partition("/")
    if sep and not arg_expr:
        raise utils.CppUMockGenRuntimeError(
            f"Override option argument expression cannot be empty if specified <{option}>."
        )
    if sep and PLACEHOLDER not in arg_expr:
        raise utils.CppUMockGenRuntimeError(
            "Override option argument expression does not contain parameter "
            f"name placeholder ($) <{option}>."
        )
    value, sep, expect_type = value.partition("~")
    if sep and not expect_type:
        raise utils.CppUMockGenRuntimeError(
            f"Override option expectation type cannot be empty if specified <{option}>."
        )
    type_name, sep, argument = value.partition(":")
    if not type_name:
        raise utils.CppUMockGenRuntimeError(
            f"Override option type cannot be empty <{option}>."
        )

    if type_name in _SIMPLE_TYPES and not sep:
        spec = OverrideSpec(_SIMPLE_TYPES[type_name])
    elif type_name in _ARGUMENT_TYPES and argument:
        spec = OverrideSpec(_ARGUMENT_TYPES[type_name])
    elif type_name in _ARGUMENT_TYPES:
        raise utils.CppUMockGenRuntimeError(
            f"Override option type '{type_name}' requires an argument <{option}>."
        )
    else:
        raise utils.CppUMockGenRuntimeError(f"Invalid override option type <{option}>.")

    if spec.kind == types.MockedType.MEMORY_BUFFER:
        front, placeholder, back = argument.partition(PLACEHOLDER)
        spec.has_size_placeholder = bool(placeholder)
        spec.size_expr_front = front
        spec.size_expr_back = back
    elif argument:
        spec.exposed_type_name = argument
    if expect_type:
        spec.expectation_arg_type_name = expect_type
    if arg_expr:
        spec.expr_front, _, spec.expr_back = arg_expr.partition(PLACEHOLDER)

    if is_return_key(key) and not spec.kind.is_primitive:
        raise utils.CppUMockGenRuntimeError(
            f"Override option type '{type_name}' cannot be applied to return types <{option}>."
        )
    return key, spec


def _build_table(options: Iterable[str]) -> dict[str, OverrideSpec]:
    result = {}
    for each in options:
        key, spec = parse_override(each)
        if key in result:
            raise utils.CppUMockGenRuntimeError(
                f"Override option key <{key}> can only be passed once."
            )
        result[key] = spec
    return result


class Config:
    """Generation options shared by every declaration of a unit.

    Args:
        use_underlying_typedef:
            Register objects passed by typedef'ed type with the name of
            the underlying record
        parameter_overrides:
            Options keyed by ``<function>#<param>`` or ``<function>@``
        type_overrides: Options keyed by ``#<type>`` or ``@<type>``

    Raises:
        utils.CppUMockGenRuntimeError: If an option is malformed
    """

    def __init__(
        self,
        use_underlying_typedef: bool = False,
        parameter_overrides: Optional[Iterable[str]] = None,
        type_overrides: Optional[Iterable[str]] = None,
    ) -> None:
        self._use_underlying_typedef = use_underlying_typedef
        self._parameter_overrides = _build_table(parameter_overrides or [])
        self._type_overrides = _build_table(type_overrides or [])
        for key in self._type_overrides:
            if not key.startswith((RETURN_SEPARATOR, PARAMETER_SEPARATOR)):
                raise utils.CppUMockGenRuntimeError(
                    f"Type override option key <{key}> must start with '@' or '#'."
                )

    @property
    def use_underlying_typedef(self) -> bool:
        return self._use_underlying_typedef

    def get_parameter_override(self, key: str) -> Optional[OverrideSpec]:
        return self._parameter_overrides.get(key)

    def get_type_override(self, key: str) -> Optional[OverrideSpec]:
        return self._type_overrides.get(key)


def resolve_return(
    config: Config, function: str, spelling: str
) -> Optional[OverrideSpec]:
    """Find the override for the return value of ``function``.

    The identifier key ``<function>@`` takes precedence over the type
    key ``@<spelling>``.
    """
    spec = config.get_parameter_override(function + RETURN_SEPARATOR)
    if spec is None:
        spec = config.get_type_override(RETURN_SEPARATOR + spelling)
    return spec


def resolve_parameter(
    config: Config, function: str, parameter: str, spelling: str
) -> Optional[OverrideSpec]:
    """Find the override for ``parameter`` of ``function``.

    The identifier key ``<function>#<parameter>`` takes precedence over
    the type key ``#<spelling>``.
    """
    spec = config.get_parameter_override(function + PARAMETER_SEPARATOR + parameter)
    if spec is None:
        spec = config.get_type_override(PARAMETER_SEPARATOR + spelling)
    return spec
