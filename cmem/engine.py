"""
cmem/engine.py
==============

Tree-walking evaluator for console statements.

This module provides:

* ``EngineConfig``  – configuration dataclass (memory size, display base)
* ``EngineState``   – everything evaluation mutates: the global scope, the
  memory, the display base and the history-clearing hook
* ``Engine``        – ``evaluate(statement)`` over the nodes of
  ``cmem.ast_nodes``

A failed evaluation keeps whatever side effects happened before the
failure; there is no rollback.

Usage::

    engine = Engine(EngineConfig(memory_size=64))
    engine.evaluate(parse_statement("int* p = malloc(4)"))
    engine.evaluate(parse_statement("*p = 300"))
    engine.heap_bytes()[0]   # 44
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple, Union

from cmem.ast_nodes import (
    AssignmentNode,
    CastNode,
    DeclarationNode,
    DereferenceNode,
    FunctionCallNode,
    IdentifierNode,
    LiteralNode,
    OperatorNode,
    ParenthesisNode,
    StatementNode,
    TypeNode,
)
from cmem.builtins import DISPLAY_BASES, install_builtins, invoke_builtin
from cmem.coerce import coerce, literal_to_int
from cmem.errors import (
    CmemErrorCodes,
    InternalError,
    RuntimeError as CmemRuntimeError,
    TypeError as CmemTypeError,
)
from cmem.memory import DEFAULT_MEMORY_SIZE, Memory
from cmem.operators import apply_operator
from cmem.values import (
    VOID,
    Literal,
    NativeFunctionDefinition,
    Result,
    RuntimeValue,
    TypeTag,
    Void,
)

logger = logging.getLogger(__name__)

__all__ = ["EngineConfig", "EngineState", "Engine"]


@dataclass
class EngineConfig:
    """Tuning knobs for a new engine."""
    memory_size: int = DEFAULT_MEMORY_SIZE
    display_base: int = 16

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.memory_size <= 0:
            warnings.append("memory_size must be positive")
        if self.display_base not in DISPLAY_BASES:
            warnings.append("display_base must be 10 or 16")
        return warnings


class EngineState:
    """Mutable state shared by every evaluation on one engine."""

    def __init__(
        self,
        config: EngineConfig,
        on_clear: Optional[Callable[[], None]] = None,
    ) -> None:
        self.memory = Memory(config.memory_size)
        self.display_base = config.display_base
        self.scope: Dict[str, RuntimeValue] = {}
        self.on_clear = on_clear
        install_builtins(self.scope)

    def clear_history(self) -> None:
        if self.on_clear is None:
            logger.debug("clear() called with no history attached")
            return
        self.on_clear()


class Engine:
    """Evaluates one statement tree at a time against its own state."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        on_clear: Optional[Callable[[], None]] = None,
    ) -> None:
        config = config or EngineConfig()
        for w in config.validate():
            logger.warning("EngineConfig: %s", w)
        if config.memory_size <= 0:
            config = replace(config, memory_size=DEFAULT_MEMORY_SIZE)
        if config.display_base not in DISPLAY_BASES:
            config = replace(config, display_base=16)
        self.config = config
        self.state = EngineState(self.config, on_clear)
        self._dispatch: Dict[type, Callable[..., Result]] = {
            LiteralNode: self._eval_literal,
            OperatorNode: self._eval_operator,
            CastNode: self._eval_cast,
            ParenthesisNode: self._eval_parenthesis,
            DeclarationNode: self._eval_declaration,
            IdentifierNode: self._eval_identifier,
            AssignmentNode: self._eval_assignment,
            FunctionCallNode: self._eval_function_call,
            DereferenceNode: self._eval_dereference,
        }

    # -- Public ------------------------------------------------------------

    @property
    def display_base(self) -> int:
        return self.state.display_base

    @property
    def scope(self) -> Dict[str, RuntimeValue]:
        return self.state.scope

    def heap_bytes(self) -> bytes:
        return self.state.memory.heap.snapshot()

    def evaluate(self, statement: StatementNode) -> Result:
        """Evaluate *statement*, returning a runtime value or ``VOID``."""
        handler = self._dispatch.get(type(statement))
        if handler is None:
            raise InternalError(
                f"Unexpected statement node type {type(statement).__name__}.",
                code=CmemErrorCodes.UNEXPECTED_NODE,
            )
        result = handler(statement)
        logger.debug("%s -> %r", type(statement).__name__, result)
        return result

    # -- Node handlers -----------------------------------------------------

    def _eval_literal(self, node: LiteralNode) -> Result:
        return RuntimeValue.of_literal(node.literal)

    def _eval_operator(self, node: OperatorNode) -> Result:
        symbol = node.operator.value
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if isinstance(left, Void):
            raise CmemRuntimeError(
                f"Left-hand side of operator {symbol} is void.",
                code=CmemErrorCodes.VOID_VALUE,
            )
        if isinstance(right, Void):
            raise CmemRuntimeError(
                f"Right-hand side of operator {symbol} is void.",
                code=CmemErrorCodes.VOID_VALUE,
            )
        for side, value in (("left", left), ("right", right)):
            if not isinstance(value.payload, Literal):
                raise CmemRuntimeError(
                    f'Expected {side} value to be of type "literal", but got '
                    f"{value.type.value}.",
                    code=CmemErrorCodes.INVALID_OPERANDS,
                )

        return RuntimeValue.of_literal(
            apply_operator(symbol, left.literal, right.literal)
        )

    def _eval_cast(self, node: CastNode) -> Result:
        result = self.evaluate(node.statement)
        if isinstance(result, Void):
            raise CmemRuntimeError(
                f'Type "void" cannot be cast to {node.type.type.value}.',
                code=CmemErrorCodes.VOID_VALUE,
            )
        return coerce(result, node.type.type)

    def _eval_parenthesis(self, node: ParenthesisNode) -> Result:
        return self.evaluate(node.statement)

    def _eval_declaration(self, node: DeclarationNode) -> Result:
        declared = node.type.type
        name = node.identifier.identifier

        if declared is TypeTag.VOID:
            raise CmemTypeError(
                'Cannot declare variable of type "void".',
                code=CmemErrorCodes.VOID_DECLARATION,
            )

        if declared is TypeTag.STRING:
            value = RuntimeValue(TypeTag.STRING, Literal.of_string(""))
        else:
            value = coerce(RuntimeValue.of_literal(Literal.of_int(0)), declared)

        if name in self.state.scope:
            logger.debug("redeclaring %s as %s", name, declared.value)
        self.state.scope[name] = value
        return VOID

    def _eval_identifier(self, node: IdentifierNode) -> Result:
        return self._lookup(node.identifier)

    def _eval_assignment(self, node: AssignmentNode) -> Result:
        left = node.left

        if isinstance(left, DereferenceNode):
            # The target address is resolved and range-checked before the
            # right-hand side runs.
            _, address = self._resolve_pointer(left)
            value = self._evaluate_value(
                node.right, "Cannot assign void to variable."
            )
            return self.state.memory.store(address, value)

        if isinstance(left, DeclarationNode):
            self.evaluate(left)
            name = left.identifier.identifier
        elif isinstance(left, IdentifierNode):
            name = left.identifier
        else:
            raise InternalError(
                "Unexpected assignment left-hand side node type "
                f"{type(left).__name__}.",
                code=CmemErrorCodes.UNEXPECTED_NODE,
            )

        value = self._evaluate_value(node.right, "Cannot assign void to variable.")
        stored = coerce(value, self._lookup(name).type)
        self.state.scope[name] = stored
        return stored

    def _eval_function_call(self, node: FunctionCallNode) -> Result:
        name = node.function_name.identifier
        callee = self.evaluate(node.function_name)

        if isinstance(callee, Void) or not isinstance(
            callee.payload, NativeFunctionDefinition
        ):
            raise CmemTypeError(
                f"Identifier {name} is not a function.",
                code=CmemErrorCodes.NOT_CALLABLE,
            )
        func = callee.payload

        args: List[Union[RuntimeValue, TypeNode]] = []
        for arg in node.arguments:
            if isinstance(arg, TypeNode):
                args.append(arg)
                continue
            evaluated = self.evaluate(arg)
            # Void arguments are dropped and surface as an arity mismatch.
            if not isinstance(evaluated, Void):
                args.append(evaluated)

        if len(args) != func.arity:
            plural = "" if func.arity == 1 else "s"
            raise CmemTypeError(
                f"Expected {func.arity} argument{plural} for function {name}, "
                f"but got {len(args)}.",
                code=CmemErrorCodes.ARITY_MISMATCH,
            )

        for i, (param, arg) in enumerate(zip(func.parameters, args)):
            if param.accepts_type:
                if not isinstance(arg, TypeNode):
                    raise CmemTypeError(
                        f"Expected argument {i} to be of type type, but got a "
                        "runtime value."
                    )
                continue
            if isinstance(arg, TypeNode):
                raise CmemTypeError(
                    f"Expected argument {i} to be a runtime value, but got a type."
                )
            if arg.type is not param.type:
                raise CmemTypeError(
                    f"{name}: Expected argument {i} to be of type "
                    f"{param.type.value}, but got {arg.type.value}."
                )

        return invoke_builtin(func, self.state, args)

    def _eval_dereference(self, node: DereferenceNode) -> Result:
        pointer, address = self._resolve_pointer(node)
        return self.state.memory.load(address, pointer.type)

    # -- Helpers -----------------------------------------------------------

    def _lookup(self, name: str) -> RuntimeValue:
        value = self.state.scope.get(name)
        if value is None:
            raise CmemRuntimeError(
                f"Identifier {name} is not defined.",
                code=CmemErrorCodes.UNDEFINED_IDENTIFIER,
            )
        return value

    def _evaluate_value(self, statement: StatementNode, void_message: str) -> RuntimeValue:
        result = self.evaluate(statement)
        if isinstance(result, Void):
            raise CmemRuntimeError(void_message, code=CmemErrorCodes.VOID_VALUE)
        return result

    def _resolve_pointer(self, node: DereferenceNode) -> Tuple[RuntimeValue, int]:
        pointer = self._evaluate_value(
            node.statement, "Cannot dereference void value."
        )
        address = self._pointer_address(pointer)
        self.state.memory.heap.check_address(address)
        return pointer, address

    def _pointer_address(self, value: RuntimeValue) -> int:
        """Address held by a pointer value; the same rule for reads and writes."""
        if value.is_native_function:
            raise CmemTypeError(
                "Cannot dereference native function.",
                code=CmemErrorCodes.NOT_A_POINTER,
            )
        if not value.type.is_pointer:
            raise CmemTypeError(
                f"Cannot dereference non-pointer type {value.type.value}.",
                code=CmemErrorCodes.NOT_A_POINTER,
            )
        return literal_to_int(value.literal).value
