#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cmem/operators.py
=================

Arithmetic operators ``+ - * /`` over literals.

Every operator walks the same promotion ladder:

1. both operands ``int``/``double`` — integer domain when both are ``int``,
   otherwise both are widened to ``double``;
2. both operands ``int``/``char`` — byte domain (masked to 0-255) when both
   are ``char``, otherwise both are widened to ``int``;
3. ``+`` only: both operands ``char``/``string`` — string concatenation;
4. anything else is a ``Runtime error`` naming the operator and both kinds.

Integer and char division floor toward negative infinity.  Division by
zero is a ``Runtime error`` in every domain.
"""

from __future__ import annotations

import operator as _op
from typing import Callable, Dict, Optional

from cmem.coerce import literal_to_double, literal_to_int, literal_to_string
from cmem.errors import (
    CmemErrorCodes,
    InternalError,
    RuntimeError as CmemRuntimeError,
)
from cmem.values import Literal, LiteralKind

__all__ = [
    "OPERATORS",
    "apply_operator",
    "operator_plus",
    "operator_minus",
    "operator_multiply",
    "operator_divide",
]

BinaryFn = Callable[[Literal, Literal], Literal]

_NUMERIC = (LiteralKind.INT, LiteralKind.DOUBLE)
_INTEGRAL = (LiteralKind.INT, LiteralKind.CHAR)
_TEXTUAL = (LiteralKind.CHAR, LiteralKind.STRING)


# ═══════════════════════════════════════════════════════════════════════════
# PER-DOMAIN HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def _require(kind: LiteralKind, left: Literal, right: Literal) -> None:
    if left.kind is not kind or right.kind is not kind:
        raise InternalError(
            f"Unexpected literal kinds {left.kind.value} and {right.kind.value} "
            f"for {kind.value} arithmetic.",
            code=CmemErrorCodes.INVARIANT_VIOLATED,
        )


def _check_divisor(symbol: str, right: Literal) -> None:
    if symbol == "/" and right.value == 0:
        raise CmemRuntimeError(
            "operator/: Division by zero.",
            code=CmemErrorCodes.DIVISION_BY_ZERO,
        )


def _int_arith(symbol: str, fn: Callable, left: Literal, right: Literal) -> Literal:
    _require(LiteralKind.INT, left, right)
    _check_divisor(symbol, right)
    return Literal.of_int(fn(left.value, right.value))


def _double_arith(symbol: str, fn: Callable, left: Literal, right: Literal) -> Literal:
    _require(LiteralKind.DOUBLE, left, right)
    _check_divisor(symbol, right)
    return Literal.of_double(float(fn(left.value, right.value)))


def _char_arith(symbol: str, fn: Callable, left: Literal, right: Literal) -> Literal:
    _require(LiteralKind.CHAR, left, right)
    _check_divisor(symbol, right)
    return Literal.of_char(fn(left.value, right.value) & 0xFF)


def _string_concat(left: Literal, right: Literal) -> Literal:
    _require(LiteralKind.STRING, left, right)
    return Literal.of_string(left.value + right.value)


# ═══════════════════════════════════════════════════════════════════════════
# PROMOTION LADDER
# ═══════════════════════════════════════════════════════════════════════════

def _mismatch(symbol: str, left: Literal, right: Literal) -> CmemRuntimeError:
    return CmemRuntimeError(
        f"operator{symbol}: Cannot coerce {left.kind.value} and "
        f"{right.kind.value} to the same type.",
        code=CmemErrorCodes.INVALID_OPERANDS,
    )


def _arithmetic(symbol: str, int_fn: Callable, double_fn: Callable,
                left: Literal, right: Literal) -> Optional[Literal]:
    """Steps 1 and 2 of the ladder; ``None`` when neither applies."""
    if left.kind in _NUMERIC and right.kind in _NUMERIC:
        if left.kind is LiteralKind.INT and right.kind is LiteralKind.INT:
            return _int_arith(symbol, int_fn, left, right)
        return _double_arith(
            symbol, double_fn, literal_to_double(left), literal_to_double(right)
        )

    if left.kind in _INTEGRAL and right.kind in _INTEGRAL:
        if left.kind is LiteralKind.CHAR and right.kind is LiteralKind.CHAR:
            return _char_arith(symbol, int_fn, left, right)
        return _int_arith(symbol, int_fn, literal_to_int(left), literal_to_int(right))

    return None


def operator_plus(left: Literal, right: Literal) -> Literal:
    result = _arithmetic("+", _op.add, _op.add, left, right)
    if result is not None:
        return result

    if left.kind in _TEXTUAL and right.kind in _TEXTUAL:
        return _string_concat(literal_to_string(left), literal_to_string(right))

    raise _mismatch("+", left, right)


def operator_minus(left: Literal, right: Literal) -> Literal:
    result = _arithmetic("-", _op.sub, _op.sub, left, right)
    if result is not None:
        return result

    if left.kind is LiteralKind.STRING and right.kind is LiteralKind.STRING:
        raise CmemRuntimeError(
            "operator-: Invalid type string for operator -",
            code=CmemErrorCodes.INVALID_OPERANDS,
        )

    raise _mismatch("-", left, right)


def operator_multiply(left: Literal, right: Literal) -> Literal:
    result = _arithmetic("*", _op.mul, _op.mul, left, right)
    if result is not None:
        return result
    raise _mismatch("*", left, right)


def operator_divide(left: Literal, right: Literal) -> Literal:
    result = _arithmetic("/", _op.floordiv, _op.truediv, left, right)
    if result is not None:
        return result
    raise _mismatch("/", left, right)


OPERATORS: Dict[str, BinaryFn] = {
    "+": operator_plus,
    "-": operator_minus,
    "*": operator_multiply,
    "/": operator_divide,
}


def apply_operator(symbol: str, left: Literal, right: Literal) -> Literal:
    """Apply the operator spelled *symbol* to two literals."""
    fn = OPERATORS.get(symbol)
    if fn is None:
        raise InternalError(
            f"Unexpected operator {symbol}.",
            code=CmemErrorCodes.UNEXPECTED_NODE,
        )
    return fn(left, right)
