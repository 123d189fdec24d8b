# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Rendering of expectation helpers.

Every mocked declaration gets a pair of helpers in the ``expect``
namespace: one registering a single call, one registering
``__numCalls__`` calls. The single-call helper forwards to the other.

```cpp
namespace expect { namespace ns1$ {
MockExpectedCall& f(CppUMockGen::Parameter<int> p);
MockExpectedCall& f(unsigned int __numCalls__, CppUMockGen::Parameter<int> p);
} }
```

Arguments which are passed as ``CppUMockGen::IgnoreParameter::YES`` are
not checked.
"""

from __future__ import annotations

import dataclasses
from typing import Optional

from cppumockgen import naming
from cppumockgen import signature
from cppumockgen import types
from cppumockgen import utils

MockedType = types.MockedType

EXPECTED_CALL_TYPE = "MockExpectedCall&"
WRAPPER = "CppUMockGen::Parameter"
IGNORE_DEFAULT = "::CppUMockGen::IgnoreParameter::YES"
NUM_CALLS = "__numCalls__"
OBJECT = "__object__"
RETURN = "__return__"
EXPECTED_CALL = "__expectedCall__"
IGNORE_OTHER_PARAMS = "__ignoreOtherParams__"
SIZE_PREFIX = "__sizeof_"


@dataclasses.dataclass
class Slot:
    """Formals and matcher statement of one parameter.

    ``wrapped`` slots use the ``Parameter<>`` wrapper, so their matcher
    is only applied if the argument is not ignored.
    """

    formals: list[str]
    names: list[str]
    statement: str
    wrapped: bool = True


def render_prototypes(sig: signature.Signature) -> str:
    """Render the declarations of both helpers of ``sig``, wrapped in
    the helper's namespaces."""
    slots = _slots(sig)
    one = _formals(sig, slots, with_defaults=True)
    many = [f"unsigned int {NUM_CALLS}"] + one
    content = f"{EXPECTED_CALL_TYPE} {sig.expectation_name}({', '.join(one)});\n"
    content += f"{EXPECTED_CALL_TYPE} {sig.expectation_name}({', '.join(many)});\n"
    return naming.wrap_in_expect_namespace(content, sig.emission_namespaces)


def render_implementations(sig: signature.Signature) -> str:
    """Render the definitions of both helpers of ``sig``, wrapped in
    the helper's namespaces."""
    slots = _slots(sig)
    one = _formals(sig, slots, with_defaults=False)
    many = [f"unsigned int {NUM_CALLS}"] + one

    names = ["1"]
    if sig.is_method:
        names.append(OBJECT)
    for each in slots:
        names += each.names
    if sig.returns:
        names.append(RETURN)

    content = f"{EXPECTED_CALL_TYPE} {sig.expectation_name}({', '.join(one)})\n"
    content += utils.statement_block(
        [f"return {sig.expectation_name}({', '.join(names)});"]
    )
    content += f"{EXPECTED_CALL_TYPE} {sig.expectation_name}({', '.join(many)})\n"
    content += utils.statement_block(_body(sig, slots))
    return naming.wrap_in_expect_namespace(content, sig.emission_namespaces)


def _formals(
    sig: signature.Signature, slots: list[Slot], with_defaults: bool
) -> list[str]:
    result = []
    if sig.is_method:
        formal = f"{WRAPPER}<const {sig.owner_class}*> {OBJECT}"
        if with_defaults and sig.kind == signature.Kind.DESTRUCTOR:
            formal += f" = {IGNORE_DEFAULT}"
        result.append(formal)
    for each in slots:
        result += each.formals
    if sig.returns:
        result.append(f"{return_type(sig)} {RETURN}")
    return result


def _body(sig: signature.Signature, slots: list[Slot]) -> list[str]:
    skipping = any(each.skipped for each in sig.parameters)
    tracks_ignored = not skipping and any(each.wrapped for each in slots)

    result = []
    if tracks_ignored:
        result.append(f"bool {IGNORE_OTHER_PARAMS} = false;")
    result.append(
        f"{EXPECTED_CALL_TYPE} {EXPECTED_CALL} = "
        f'mock().expectNCalls({NUM_CALLS}, "{sig.qualified_name}");'
    )
    if sig.is_method:
        result.append(
            f"if(!{OBJECT}.isIgnored()) {{ {EXPECTED_CALL}.onObject("
            f"const_cast<{sig.owner_class}*>({OBJECT}.getValue())); }}"
        )
    for each in slots:
        name = each.names[0]
        if not each.wrapped:
            result.append(each.statement)
        elif skipping:
            result.append(f"if (!{name}.isIgnored()) {{ {each.statement} }}")
        else:
            result.append(
                f"if ({name}.isIgnored()) {{ {IGNORE_OTHER_PARAMS} = true; }} "
                f"else {{ {each.statement} }}"
            )
    if sig.returns:
        result.append(f"{EXPECTED_CALL}.andReturnValue({return_value(sig)});")
    if skipping:
        result.append(f"{EXPECTED_CALL}.ignoreOtherParameters();")
    elif tracks_ignored:
        result.append(
            f"if ({IGNORE_OTHER_PARAMS}) {{ {EXPECTED_CALL}.ignoreOtherParameters(); }}"
        )
    result.append(f"return {EXPECTED_CALL};")
    return result


def _slots(sig: signature.Signature) -> list[Slot]:
    result = []
    for each in sig.parameters:
        if each.skipped:
            continue
        if each.override is not None:
            result.append(_overridden_slot(each))
        else:
            result.append(_classified_slot(each))
    return result


def _wrapped(value_type: str, name: str, statement: str) -> Slot:
    return Slot([f"{WRAPPER}<{value_type}> {name}"], [name], statement)


def _buffer(name: str, statement: str, value_type: Optional[str] = None) -> Slot:
    """A slot which is passed as pointer with an explicit byte count."""
    size = SIZE_PREFIX + name
    if value_type is None:
        formal = f"{types.NATIVE_TYPES[MockedType.CONST_POINTER]} {name}"
        return Slot([formal, f"size_t {size}"], [name, size], statement, False)
    formals = [f"{WRAPPER}<{value_type}> {name}", f"size_t {size}"]
    return Slot(formals, [name, size], statement)


def _output_returning(name: str, value: str, size: str) -> str:
    return f'{EXPECTED_CALL}.withOutputParameterReturning("{name}", {value}, {size});'


def _classified_slot(param: signature.Parameter) -> Slot:
    classification = param.classification
    mocked = classification.mocked
    name = param.name
    value = f"{name}.getValue()"

    if mocked.is_primitive:
        if classification.cast_required:
            value = f"static_cast<{classification.cast_type}>({value})"
        call = f'with{types.API_NAMES[mocked]}Parameter("{name}", {value})'
        return _wrapped(classification.value_type, name, f"{EXPECTED_CALL}.{call};")
    if mocked == MockedType.OUTPUT:
        if classification.buffer:
            return _buffer(name, _output_returning(name, name, SIZE_PREFIX + name))
        statement = _output_returning(name, value, f"sizeof(*{value})")
        return _wrapped(classification.value_type, name, statement)

    tag = classification.underlying_struct_name
    if classification.dereference_needed and not classification.is_pointer_like:
        # Records passed by value are held by reference.
        value = f"&{value}"
    if mocked == MockedType.INPUT_OF_TYPE:
        call = f'withParameterOfType("{tag}", "{name}", {value})'
    else:
        call = f'withOutputParameterOfTypeReturning("{tag}", "{name}", {value})'
    return _wrapped(classification.value_type, name, f"{EXPECTED_CALL}.{call};")


def _pointed_type(param: signature.Parameter) -> str:
    """The type that a pointer or reference parameter refers to, without
    ``const``."""
    result = param.pointee_spelling
    if result is None:
        result = param.type_spelling.rstrip(" *&")
    return utils.strip_prefix(result, "const ")


def _overridden_slot(param: signature.Parameter) -> Slot:
    spec = param.override
    kind = spec.kind
    name = param.name
    value = f"{name}.getValue()"
    custom_type = spec.expectation_arg_type_name

    if kind.is_primitive:
        value_type = custom_type or types.NATIVE_TYPES[kind]
        call = f'with{types.API_NAMES[kind]}Parameter("{name}", {value})'
        return _wrapped(value_type, name, f"{EXPECTED_CALL}.{call};")
    if kind == MockedType.OUTPUT:
        if custom_type is None:
            return _buffer(name, _output_returning(name, name, SIZE_PREFIX + name))
        statement = _output_returning(name, value, f"sizeof(*{value})")
        return _wrapped(types.const_pointer_to(custom_type), name, statement)
    if kind in {MockedType.INPUT_OF_TYPE, MockedType.OUTPUT_OF_TYPE}:
        value_type = types.const_pointer_to(custom_type or spec.exposed_type_name)
        if kind == MockedType.INPUT_OF_TYPE:
            call = f'withParameterOfType("{spec.exposed_type_name}", "{name}", {value})'
        else:
            call = (
                f'withOutputParameterOfTypeReturning("{spec.exposed_type_name}", '
                f'"{name}", {value})'
            )
        return _wrapped(value_type, name, f"{EXPECTED_CALL}.{call};")
    if kind in {MockedType.INPUT_POD, MockedType.OUTPUT_POD}:
        value_type = types.const_pointer_to(custom_type or _pointed_type(param))
        if kind == MockedType.INPUT_POD:
            buffer = f"static_cast<const unsigned char *>(static_cast<const void *>({value}))"
            statement = (
                f'{EXPECTED_CALL}.withMemoryBufferParameter("{name}", {buffer}, '
                f"sizeof(*{value}));"
            )
        else:
            statement = _output_returning(name, value, f"sizeof(*{value})")
        return _wrapped(value_type, name, statement)

    # MemoryBuffer
    if custom_type is None:
        value_type = types.NATIVE_TYPES[MockedType.CONST_POINTER]
        buffer = f"static_cast<const unsigned char *>({value})"
    else:
        value_type = types.const_pointer_to(custom_type)
        buffer = f"static_cast<const unsigned char *>(static_cast<const void *>({value}))"
    statement = (
        f'{EXPECTED_CALL}.withMemoryBufferParameter("{name}", {buffer}, '
        f"{SIZE_PREFIX}{name});"
    )
    return _buffer(name, statement, value_type)


def return_type(sig: signature.Signature) -> str:
    """The type of the ``__return__`` formal."""
    spec = sig.result_override
    if spec is not None:
        return spec.expectation_arg_type_name or types.NATIVE_TYPES[spec.kind]
    return sig.result.value_type


def return_value(sig: signature.Signature) -> str:
    """The argument of ``andReturnValue``."""
    if sig.result_override is not None:
        return RETURN
    classification = sig.result
    native = types.NATIVE_TYPES[classification.mocked]
    if classification.dereference_needed:
        return f"static_cast<{native}>(&{RETURN})"
    if classification.cast_required:
        return f"static_cast<{native}>({RETURN})"
    return RETURN
