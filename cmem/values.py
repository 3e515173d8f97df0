#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cmem/values.py
==============

Typed value model for the evaluator.

- **LiteralKind** — the four primitive kinds: int, double, char, string
- **Literal** — a payload of exactly one kind
- **TypeTag** — every type the language can name, pointers included
- **RuntimeValue** — a (type, literal-or-native-function) pair
- **VOID** — the "no value" marker returned by declarations and
  void builtins
- **NativeFunctionDefinition** — the declared signature of a builtin

Constructors validate their invariants; a mismatched pair raises
``InternalError`` because only a bug in the evaluator can build one.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple, Union

from cmem.errors import CmemErrorCodes, InternalError, SyntaxError as CmemSyntaxError

if TYPE_CHECKING:
    from cmem.builtins import Builtin

__all__ = [
    "LiteralKind",
    "TypeTag",
    "Literal",
    "Parameter",
    "NativeFunctionDefinition",
    "RuntimeValue",
    "Void",
    "VOID",
    "Result",
]


class LiteralKind(enum.Enum):
    INT = "int"
    DOUBLE = "double"
    CHAR = "char"
    STRING = "string"


class TypeTag(enum.Enum):
    """Types nameable by the language."""

    VOID = "void"
    INT = "int"
    CHAR = "char"
    DOUBLE = "double"
    STRING = "string"
    INT_PTR = "int*"
    CHAR_PTR = "char*"
    NATIVE_FUNCTION = "nativeFunction"

    @property
    def is_pointer(self) -> bool:
        return self.value.endswith("*")

    @property
    def literal_kind(self) -> Optional[LiteralKind]:
        """Kind of literal a value of this type carries (pointers hold ints)."""
        if self.is_pointer:
            return LiteralKind.INT
        if self in (TypeTag.VOID, TypeTag.NATIVE_FUNCTION):
            return None
        return LiteralKind(self.value)

    @classmethod
    def for_literal(cls, kind: LiteralKind) -> "TypeTag":
        return cls(kind.value)

    @classmethod
    def parse(cls, name: str) -> "TypeTag":
        """Look a type up by its source spelling (``"int*"``, ``"char"``...)."""
        try:
            return cls(name)
        except ValueError:
            raise CmemSyntaxError(
                f"Unknown type {name}.", code=CmemErrorCodes.UNKNOWN_TYPE
            ) from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Literal:
    """A primitive value; ``value`` always agrees with ``kind``.

    ``char`` literals hold their byte code (0-255), not a one-character str.
    """

    kind: LiteralKind
    value: Union[int, float, str]

    def __post_init__(self) -> None:
        v = self.value
        if self.kind is LiteralKind.INT:
            ok = isinstance(v, int) and not isinstance(v, bool)
        elif self.kind is LiteralKind.DOUBLE:
            ok = isinstance(v, float)
        elif self.kind is LiteralKind.CHAR:
            ok = isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 255
        else:
            ok = isinstance(v, str)
        if not ok:
            raise InternalError(
                f"Literal of kind {self.kind.value} cannot hold {v!r}.",
                code=CmemErrorCodes.INVARIANT_VIOLATED,
            )

    @classmethod
    def of_int(cls, value: int) -> "Literal":
        return cls(LiteralKind.INT, value)

    @classmethod
    def of_double(cls, value: float) -> "Literal":
        return cls(LiteralKind.DOUBLE, value)

    @classmethod
    def of_char(cls, value: int) -> "Literal":
        return cls(LiteralKind.CHAR, value)

    @classmethod
    def of_string(cls, value: str) -> "Literal":
        return cls(LiteralKind.STRING, value)

    def __repr__(self) -> str:
        return f"{self.kind.value}({self.value!r})"


@dataclass(frozen=True)
class Parameter:
    """One declared builtin parameter.

    A parameter with ``type=None`` is a type placeholder: the call site must
    pass a type (``sizeof(int)``) rather than a value.
    """

    name: str
    type: Optional[TypeTag] = None

    @property
    def accepts_type(self) -> bool:
        return self.type is None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": "type" if self.accepts_type else "value",
            "type": None if self.type is None else self.type.value,
        }


@dataclass(frozen=True)
class NativeFunctionDefinition:
    """Signature of a builtin; the body is looked up by ``builtin``."""

    builtin: "Builtin"
    parameters: Tuple[Parameter, ...]

    @property
    def name(self) -> str:
        return self.builtin.value

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(frozen=True)
class RuntimeValue:
    type: TypeTag
    payload: Union[Literal, NativeFunctionDefinition]

    def __post_init__(self) -> None:
        if self.type is TypeTag.NATIVE_FUNCTION:
            if not isinstance(self.payload, NativeFunctionDefinition):
                raise InternalError(
                    f"Type nativeFunction requires a function definition, got {self.payload!r}.",
                    code=CmemErrorCodes.INVARIANT_VIOLATED,
                )
            return
        expected = self.type.literal_kind
        if expected is None:
            raise InternalError(
                f"Type {self.type.value} cannot be stored in a runtime value.",
                code=CmemErrorCodes.INVARIANT_VIOLATED,
            )
        if not isinstance(self.payload, Literal) or self.payload.kind is not expected:
            raise InternalError(
                f"Type {self.type.value} does not match payload {self.payload!r}.",
                code=CmemErrorCodes.INVARIANT_VIOLATED,
            )

    @classmethod
    def of_literal(cls, literal: Literal) -> "RuntimeValue":
        """Wrap *literal* with the type inferred from its kind."""
        return cls(TypeTag.for_literal(literal.kind), literal)

    @property
    def is_native_function(self) -> bool:
        return self.type is TypeTag.NATIVE_FUNCTION

    @property
    def literal(self) -> Literal:
        if not isinstance(self.payload, Literal):
            raise InternalError(
                f"Expected a literal value, got native function {self.payload.name}.",
                code=CmemErrorCodes.INVARIANT_VIOLATED,
            )
        return self.payload

    def __repr__(self) -> str:
        if self.is_native_function:
            return f"<nativeFunction {self.payload.name}>"
        return f"<{self.type.value} {self.literal.value!r}>"


class Void:
    """Singleton "no value" result."""

    _instance: Optional["Void"] = None

    def __new__(cls) -> "Void":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "VOID"


VOID = Void()

Result = Union[RuntimeValue, Void]
