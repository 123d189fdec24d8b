# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Rendering of mock function bodies."""

from __future__ import annotations

from cppumockgen import config
from cppumockgen import signature
from cppumockgen import types
from cppumockgen import utils

MockedType = types.MockedType


def render_mock(sig: signature.Signature) -> str:
    """Render the out-of-class definition which forwards a call to the
    mock support.

    Args:
        sig: The signature of the mocked declaration

    Returns:
        The definition, terminated by a newline
    """
    chain = actual_call(sig)
    chain += "".join(parameter_call(each) for each in sig.parameters)
    if sig.returns:
        statement = "return " + return_expression(sig, chain)
    else:
        statement = chain
    return head(sig) + "\n" + utils.statement_block([statement + ";"])


def head(sig: signature.Signature) -> str:
    """Render return type, qualified name, parameter list and qualifiers
    of the mock."""
    params = [each.declaration() for each in sig.parameters]
    if sig.is_variadic:
        params.append("...")
    result = f"{sig.qualified_name}({', '.join(params)})"
    if sig.kind in {signature.Kind.FUNCTION, signature.Kind.METHOD}:
        result = f"{sig.result_spelling} {result}"
    if sig.is_const_method:
        result += " const"
    if sig.exception_spec != signature.ExceptionSpec.NONE:
        result += " " + sig.exception_spec.value
    return result


def actual_call(sig: signature.Signature) -> str:
    result = f'mock().actualCall("{sig.qualified_name}")'
    if sig.is_method:
        receiver = "this"
        if sig.is_const_method:
            receiver = f"const_cast<{sig.owner_class}*>(this)"
        result += f".onObject({receiver})"
    return result


def parameter_call(param: signature.Parameter) -> str:
    """Render the ``with...Parameter`` call of ``param``; skipped
    parameters render as the empty string."""
    if param.override is not None:
        return _overridden_parameter_call(param.name, param.override)

    classification = param.classification
    name = param.name
    expr = name
    if classification.dereference_needed:
        expr = "&" + expr
    if classification.cast_required:
        expr = f"static_cast<{classification.cast_type}>({expr})"

    mocked = classification.mocked
    if mocked.is_primitive:
        return f'.with{types.API_NAMES[mocked]}Parameter("{name}", {expr})'
    if mocked == MockedType.OUTPUT:
        return f'.withOutputParameter("{name}", {expr})'
    tag = classification.underlying_struct_name
    if mocked == MockedType.INPUT_OF_TYPE:
        return f'.withParameterOfType("{tag}", "{name}", {expr})'
    if mocked == MockedType.OUTPUT_OF_TYPE:
        return f'.withOutputParameterOfType("{tag}", "{name}", {expr})'
    raise AssertionError(f"Unexpected classification {mocked} of '{name}'")


def _memory_buffer(expr: str) -> str:
    return f"static_cast<const unsigned char *>(static_cast<const void *>({expr}))"


def _overridden_parameter_call(name: str, spec: config.OverrideSpec) -> str:
    expr = spec.apply(name)
    kind = spec.kind
    if kind == MockedType.SKIP:
        return ""
    if kind.is_primitive:
        return f'.with{types.API_NAMES[kind]}Parameter("{name}", {expr})'
    if kind in {MockedType.OUTPUT, MockedType.OUTPUT_POD}:
        return f'.withOutputParameter("{name}", {expr})'
    if kind == MockedType.INPUT_OF_TYPE:
        return f'.withParameterOfType("{spec.exposed_type_name}", "{name}", {expr})'
    if kind == MockedType.OUTPUT_OF_TYPE:
        return (
            f'.withOutputParameterOfType("{spec.exposed_type_name}", "{name}", {expr})'
        )
    if kind == MockedType.INPUT_POD:
        size = f"sizeof(*{expr})"
    else:
        size = spec.size_expr(name)
    return f'.withMemoryBufferParameter("{name}", {_memory_buffer(expr)}, {size})'


def return_expression(sig: signature.Signature, chain: str) -> str:
    """Append the ``return...Value`` call to ``chain`` and convert its
    result to the declared return type."""
    spec = sig.result_override
    if spec is not None:
        value = f"{chain}.return{types.API_NAMES[spec.kind]}Value()"
        return spec.apply(value)

    classification = sig.result
    result = f"{chain}.return{types.API_NAMES[classification.mocked]}Value()"
    if classification.cast_required:
        result = f"static_cast<{classification.cast_type}>({result})"
    if classification.dereference_needed:
        result = "*" + result
    if classification.reference == types.Reference.RVALUE:
        result = f"std::move({result})"
    if classification.typedef_cast:
        result = f"static_cast<{classification.rendered_type}>({result})"
    return result
