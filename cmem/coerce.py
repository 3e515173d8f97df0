# cmem/coerce.py
"""
Literal coercion matrix.

``coerce`` converts a runtime value to another type; the ``literal_to_*``
accessors are the same conversions specialised to one target kind and are
what ``coerce`` itself dispatches to, so the two always agree.

    from \\ to   int        double     char          string
    int          -          exact      mod 256       fail
    double       trunc      -          trunc, 256    fail
    char         code       code       -             1-char string
    string       fail       fail       1 char only   -
"""

from __future__ import annotations

import math
from typing import Callable, Dict

from cmem.errors import CmemErrorCodes, RuntimeError as CmemRuntimeError
from cmem.values import (
    Literal,
    LiteralKind,
    RuntimeValue,
    TypeTag,
    Void,
)

__all__ = [
    "coerce",
    "literal_to_int",
    "literal_to_double",
    "literal_to_char",
    "literal_to_string",
]


def _fail(source: str, target: str, reason: str = "") -> CmemRuntimeError:
    suffix = f" {reason}" if reason else ""
    return CmemRuntimeError(
        f"Cannot coerce {source} to {target}.{suffix}",
        code=CmemErrorCodes.INVALID_COERCION,
    )


def _truncate(value: float, target: str) -> int:
    if math.isnan(value) or math.isinf(value):
        raise _fail("double", target, f"{value} has no integer value.")
    return math.trunc(value)


def literal_to_int(literal: Literal) -> Literal:
    kind = literal.kind
    if kind is LiteralKind.INT:
        return literal
    if kind is LiteralKind.DOUBLE:
        return Literal.of_int(_truncate(literal.value, "int"))
    if kind is LiteralKind.CHAR:
        return Literal.of_int(literal.value)
    raise _fail(kind.value, "int")


def literal_to_double(literal: Literal) -> Literal:
    kind = literal.kind
    if kind is LiteralKind.DOUBLE:
        return literal
    if kind in (LiteralKind.INT, LiteralKind.CHAR):
        try:
            return Literal.of_double(float(literal.value))
        except OverflowError:
            raise _fail(kind.value, "double", "The value is too large for a double.") from None
    raise _fail(kind.value, "double")


def literal_to_char(literal: Literal) -> Literal:
    kind = literal.kind
    if kind is LiteralKind.CHAR:
        return literal
    if kind is LiteralKind.INT:
        return Literal.of_char(literal.value % 256)
    if kind is LiteralKind.DOUBLE:
        return Literal.of_char(_truncate(literal.value, "char") % 256)
    text = literal.value
    if len(text) != 1:
        raise _fail("string", "char", f"Expected exactly 1 character, got {len(text)}.")
    code = ord(text)
    if code > 255:
        raise _fail("string", "char", f"Character code {code} does not fit in a byte.")
    return Literal.of_char(code)


def literal_to_string(literal: Literal) -> Literal:
    kind = literal.kind
    if kind is LiteralKind.STRING:
        return literal
    if kind is LiteralKind.CHAR:
        return Literal.of_string(chr(literal.value))
    raise _fail(kind.value, "string")


_BY_KIND: Dict[LiteralKind, Callable[[Literal], Literal]] = {
    LiteralKind.INT: literal_to_int,
    LiteralKind.DOUBLE: literal_to_double,
    LiteralKind.CHAR: literal_to_char,
    LiteralKind.STRING: literal_to_string,
}


def coerce(value: RuntimeValue, target: TypeTag) -> RuntimeValue:
    """Convert *value* to *target*.

    Pointer targets take the ``int`` coercion of the literal and retag it,
    which is how ``(int*) malloc(4)`` produces a pointer.

    Raises ``cmem.errors.RuntimeError`` for every unsupported conversion,
    including anything involving ``void`` or native functions.
    """
    if isinstance(value, Void):
        raise _fail("void", target.value)
    if target is TypeTag.VOID:
        raise _fail(value.type.value, "void")
    if value.is_native_function or target is TypeTag.NATIVE_FUNCTION:
        raise _fail(value.type.value, target.value)
    if value.type is target:
        return value

    converted = _BY_KIND[target.literal_kind](value.literal)
    return RuntimeValue(target, converted)
