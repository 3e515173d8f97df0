#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
cmem/builtins.py
================

Native functions installed into every engine's global scope.

Each builtin is declared as data (``BuiltinSpec``: name, parameters,
return type) and bound to a handler in ``BUILTIN_HANDLERS``.  The engine
validates arity and argument types against the declared parameters before
a handler runs, so handlers only re-check what the signature cannot say.

Built-in Functions
------------------
- **malloc(size: int) -> int** — reserve ``size`` heap bytes
- **clear()** — clear the console command history
- **setDisplayBase(base: int)** — display values in base 10 or 16
- **sizeof(type) -> int** — 4 for ``int``, 1 for every other sized type
- **reset()** — zero the heap and forget every allocation
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    MutableMapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from cmem.ast_nodes import TypeNode
from cmem.errors import (
    CmemErrorCodes,
    InternalError,
    RuntimeError as CmemRuntimeError,
)
from cmem.values import (
    VOID,
    Literal,
    NativeFunctionDefinition,
    Parameter,
    Result,
    RuntimeValue,
    TypeTag,
)

if TYPE_CHECKING:
    from cmem.engine import EngineState

logger = logging.getLogger(__name__)

__all__ = [
    "Builtin",
    "BuiltinSpec",
    "BUILTIN_SPECS",
    "BUILTIN_HANDLERS",
    "DISPLAY_BASES",
    "TYPE_SIZES",
    "install_builtins",
    "invoke_builtin",
    "registry_as_dict",
]

Argument = Union[RuntimeValue, TypeNode]
Handler = Callable[["EngineState", Sequence[Argument]], Result]

DISPLAY_BASES = (10, 16)

# Byte size of every sizeable type; absent types are rejected by sizeof.
TYPE_SIZES: Dict[TypeTag, int] = {
    TypeTag.INT: 4,
    TypeTag.CHAR: 1,
    TypeTag.DOUBLE: 1,
    TypeTag.INT_PTR: 1,
    TypeTag.CHAR_PTR: 1,
    TypeTag.NATIVE_FUNCTION: 1,
}


class Builtin(enum.Enum):
    MALLOC = "malloc"
    CLEAR = "clear"
    SET_DISPLAY_BASE = "setDisplayBase"
    SIZEOF = "sizeof"
    RESET = "reset"


@dataclass(frozen=True)
class BuiltinSpec:
    """Declared contract of one builtin."""

    builtin: Builtin
    parameters: Tuple[Parameter, ...]
    returns: TypeTag
    summary: str

    @property
    def name(self) -> str:
        return self.builtin.value

    def definition(self) -> NativeFunctionDefinition:
        return NativeFunctionDefinition(self.builtin, self.parameters)

    def signature(self) -> str:
        params = ", ".join(
            p.name if p.accepts_type else f"{p.type.value} {p.name}"
            for p in self.parameters
        )
        return f"{self.returns.value} {self.name}({params})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "params": [p.to_dict() for p in self.parameters],
            "returns": self.returns.value,
            "summary": self.summary,
        }


BUILTIN_SPECS: Dict[Builtin, BuiltinSpec] = {
    spec.builtin: spec
    for spec in (
        BuiltinSpec(
            Builtin.MALLOC,
            (Parameter("size", TypeTag.INT),),
            TypeTag.INT,
            "Reserve size contiguous heap bytes and return the start address.",
        ),
        BuiltinSpec(
            Builtin.CLEAR,
            (),
            TypeTag.VOID,
            "Clear the command history.",
        ),
        BuiltinSpec(
            Builtin.SET_DISPLAY_BASE,
            (Parameter("base", TypeTag.INT),),
            TypeTag.VOID,
            "Display integers in base 10 or 16.",
        ),
        BuiltinSpec(
            Builtin.SIZEOF,
            (Parameter("type"),),
            TypeTag.INT,
            "Byte size of a type: int is 4, every other type is 1.",
        ),
        BuiltinSpec(
            Builtin.RESET,
            (),
            TypeTag.VOID,
            "Zero the heap and release every allocation.",
        ),
    )
}


# ═══════════════════════════════════════════════════════════════════════════
# HANDLERS
# ═══════════════════════════════════════════════════════════════════════════

def _int_argument(name: str, args: Sequence[Argument], index: int) -> int:
    arg = args[index]
    if isinstance(arg, TypeNode):
        raise CmemRuntimeError(
            f"Cannot call {name} with a type",
            code=CmemErrorCodes.INVALID_ARGUMENT,
        )
    if arg.type is not TypeTag.INT:
        raise InternalError(
            f"Expected argument {index} to be of type int, but got {arg.type.value}.",
            code=CmemErrorCodes.INVARIANT_VIOLATED,
        )
    return arg.literal.value


def _malloc(state: "EngineState", args: Sequence[Argument]) -> Result:
    if any(isinstance(arg, TypeNode) for arg in args):
        raise CmemRuntimeError(
            "Cannot call malloc with a type",
            code=CmemErrorCodes.INVALID_ARGUMENT,
        )
    size = _int_argument("malloc", args, 0)
    address = state.memory.malloc(size)
    return RuntimeValue(TypeTag.INT, Literal.of_int(address))


def _clear(state: "EngineState", args: Sequence[Argument]) -> Result:
    state.clear_history()
    return VOID


def _set_display_base(state: "EngineState", args: Sequence[Argument]) -> Result:
    base = _int_argument("setDisplayBase", args, 0)
    if base not in DISPLAY_BASES:
        raise CmemRuntimeError(
            f"Invalid base {base}. Must be 10 or 16.",
            code=CmemErrorCodes.INVALID_ARGUMENT,
        )
    state.display_base = base
    return VOID


def _sizeof(state: "EngineState", args: Sequence[Argument]) -> Result:
    if len(args) != 1:
        raise CmemRuntimeError(
            f"Expected 1 argument for sizeof, but got {len(args)}.",
            code=CmemErrorCodes.INVALID_ARGUMENT,
        )
    arg = args[0]
    if not isinstance(arg, TypeNode):
        raise InternalError(
            'Expected argument 0 to be of type "type", but got a runtime value.',
            code=CmemErrorCodes.INVARIANT_VIOLATED,
        )
    size = TYPE_SIZES.get(arg.type)
    if size is None:
        raise CmemRuntimeError(
            f'Cannot call sizeof on type "{arg.type.value}".',
            code=CmemErrorCodes.INVALID_ARGUMENT,
        )
    return RuntimeValue(TypeTag.INT, Literal.of_int(size))


def _reset(state: "EngineState", args: Sequence[Argument]) -> Result:
    state.memory.reset()
    return VOID


BUILTIN_HANDLERS: Dict[Builtin, Handler] = {
    Builtin.MALLOC: _malloc,
    Builtin.CLEAR: _clear,
    Builtin.SET_DISPLAY_BASE: _set_display_base,
    Builtin.SIZEOF: _sizeof,
    Builtin.RESET: _reset,
}


# ═══════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

def install_builtins(scope: MutableMapping[str, RuntimeValue]) -> None:
    """Bind every builtin name in *scope* to its native function value."""
    for spec in BUILTIN_SPECS.values():
        scope[spec.name] = RuntimeValue(TypeTag.NATIVE_FUNCTION, spec.definition())


def invoke_builtin(
    definition: NativeFunctionDefinition,
    state: "EngineState",
    args: Sequence[Argument],
) -> Result:
    handler: Optional[Handler] = BUILTIN_HANDLERS.get(definition.builtin)
    if handler is None:
        raise InternalError(
            f"No handler registered for builtin {definition.name}.",
            code=CmemErrorCodes.INVARIANT_VIOLATED,
        )
    logger.debug("call %s(%s)", definition.name, ", ".join(map(repr, args)))
    return handler(state, args)


def registry_as_dict() -> Dict[str, Dict[str, Any]]:
    return {spec.name: spec.to_dict() for spec in BUILTIN_SPECS.values()}
