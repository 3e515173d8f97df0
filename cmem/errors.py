# cmem/errors.py
"""
cmem Error Types

Every failure raised while parsing or evaluating a console line is a
``CmemError``.  The console shows the message text to the user; nothing
inside the evaluator recovers from these errors.

Error Hierarchy:
────────────────
┌─────────────────────────────────────────────────────────────────────┐
│  CmemError (base)                                                   │
│  ├── SyntaxError     - Console text the grammar cannot parse        │
│  ├── TypeError       - Call-site arity/type mismatch, bad decls     │
│  ├── RuntimeError    - Invalid operation on well-formed input       │
│  └── InternalError   - Evaluator bugs / malformed AST (unreachable) │
└─────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Codes follow the pattern CMEM-NNNN:
  - 1000-1999: Syntax errors
  - 2000-2999: Type errors
  - 5000-5999: Runtime errors
  - 9000-9999: Internal errors

Example Usage:
──────────────
    from cmem.errors import RuntimeError as CmemRuntimeError, CmemErrorCodes

    raise CmemRuntimeError(
        "Identifier x is not defined.",
        code=CmemErrorCodes.UNDEFINED_IDENTIFIER,
    )
"""

from __future__ import annotations

from enum import Enum, auto, unique
from typing import Any, Dict, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorKind(Enum):
    """
    Top-level classification of an error.

    The value is the prefix shown to the user in front of the message.
    """

    SYNTAX = "Syntax error"
    TYPE = "Type error"
    RUNTIME = "Runtime error"
    INTERNAL = "Internal error"


@unique
class ErrorCategory(Enum):
    """Fine-grained error categories for filtering and tests."""

    # Syntax
    INVALID_SYNTAX = auto()
    UNKNOWN_TYPE = auto()
    INVALID_LITERAL = auto()

    # Type
    ARITY_MISMATCH = auto()
    ARGUMENT_MISMATCH = auto()
    NOT_CALLABLE = auto()
    INVALID_DECLARATION = auto()
    NOT_A_POINTER = auto()

    # Runtime
    EXECUTION_ERROR = auto()
    UNDEFINED_SYMBOL = auto()
    INVALID_COERCION = auto()
    INVALID_OPERANDS = auto()
    DIVISION_BY_ZERO = auto()
    VOID_VALUE = auto()
    MEMORY_ERROR = auto()
    INVALID_ARGUMENT = auto()

    # Internal
    INTERNAL_ERROR = auto()
    INVARIANT_BROKEN = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``CMEM-NNNN``.
    """

    __slots__ = ("number", "category", "kind")

    PREFIX = "CMEM"

    def __init__(
        self,
        number: int,
        category: ErrorCategory,
        kind: ErrorKind,
    ) -> None:
        self.number = number
        self.category = category
        self.kind = kind

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.PREFIX}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash(self.number)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class CmemErrorCodes:
    """Predefined error codes."""

    # ═══════════════════════════════════════════════════════════════════════════
    # SYNTAX ERRORS (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    INVALID_SYNTAX = ErrorCode(1000, ErrorCategory.INVALID_SYNTAX, ErrorKind.SYNTAX)
    UNKNOWN_TYPE = ErrorCode(1001, ErrorCategory.UNKNOWN_TYPE, ErrorKind.SYNTAX)
    INVALID_LITERAL = ErrorCode(1002, ErrorCategory.INVALID_LITERAL, ErrorKind.SYNTAX)

    # ═══════════════════════════════════════════════════════════════════════════
    # TYPE ERRORS (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    ARITY_MISMATCH = ErrorCode(2000, ErrorCategory.ARITY_MISMATCH, ErrorKind.TYPE)
    ARGUMENT_MISMATCH = ErrorCode(2001, ErrorCategory.ARGUMENT_MISMATCH, ErrorKind.TYPE)
    NOT_CALLABLE = ErrorCode(2002, ErrorCategory.NOT_CALLABLE, ErrorKind.TYPE)
    VOID_DECLARATION = ErrorCode(2003, ErrorCategory.INVALID_DECLARATION, ErrorKind.TYPE)
    NOT_A_POINTER = ErrorCode(2004, ErrorCategory.NOT_A_POINTER, ErrorKind.TYPE)

    # ═══════════════════════════════════════════════════════════════════════════
    # RUNTIME ERRORS (5000-5999)
    # ═══════════════════════════════════════════════════════════════════════════

    RUNTIME_ERROR = ErrorCode(5000, ErrorCategory.EXECUTION_ERROR, ErrorKind.RUNTIME)
    UNDEFINED_IDENTIFIER = ErrorCode(5001, ErrorCategory.UNDEFINED_SYMBOL, ErrorKind.RUNTIME)
    INVALID_COERCION = ErrorCode(5002, ErrorCategory.INVALID_COERCION, ErrorKind.RUNTIME)
    INVALID_OPERANDS = ErrorCode(5003, ErrorCategory.INVALID_OPERANDS, ErrorKind.RUNTIME)
    DIVISION_BY_ZERO = ErrorCode(5004, ErrorCategory.DIVISION_BY_ZERO, ErrorKind.RUNTIME)
    VOID_VALUE = ErrorCode(5005, ErrorCategory.VOID_VALUE, ErrorKind.RUNTIME)
    ADDRESS_OUT_OF_RANGE = ErrorCode(5006, ErrorCategory.MEMORY_ERROR, ErrorKind.RUNTIME)
    OUT_OF_MEMORY = ErrorCode(5007, ErrorCategory.MEMORY_ERROR, ErrorKind.RUNTIME)
    INVALID_ARGUMENT = ErrorCode(5008, ErrorCategory.INVALID_ARGUMENT, ErrorKind.RUNTIME)

    # ═══════════════════════════════════════════════════════════════════════════
    # INTERNAL ERRORS (9000-9999)
    # ═══════════════════════════════════════════════════════════════════════════

    INTERNAL_ERROR = ErrorCode(9000, ErrorCategory.INTERNAL_ERROR, ErrorKind.INTERNAL)
    INVARIANT_VIOLATED = ErrorCode(9001, ErrorCategory.INVARIANT_BROKEN, ErrorKind.INTERNAL)
    UNEXPECTED_NODE = ErrorCode(9002, ErrorCategory.INVARIANT_BROKEN, ErrorKind.INTERNAL)


# Convenient access to error codes
E = CmemErrorCodes


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class CmemError(Exception):
    """
    Base exception for all cmem errors.

    ``str(error)`` renders the user-facing line, e.g.
    ``"Runtime error: Identifier x is not defined."``.
    """

    default_code: ErrorCode = CmemErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.column = column

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "kind": self.kind.value,
            "category": self.code.category.name,
            "message": self.message,
            "column": self.column,
        }

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SyntaxError(CmemError):
    """Console text that does not match the statement grammar."""

    default_code = CmemErrorCodes.INVALID_SYNTAX


class TypeError(CmemError):
    """Static-shaped mismatch: call arity/types, non-callables, void decls."""

    default_code = CmemErrorCodes.ARGUMENT_MISMATCH


class RuntimeError(CmemError):
    """User-triggered invalid operation on well-formed input."""

    default_code = CmemErrorCodes.RUNTIME_ERROR


class InternalError(CmemError):
    """Evaluator invariant violation (should never happen)."""

    default_code = CmemErrorCodes.INTERNAL_ERROR


__all__ = [
    "ErrorKind",
    "ErrorCategory",
    "ErrorCode",
    "CmemErrorCodes",
    "E",
    "CmemError",
    "SyntaxError",
    "TypeError",
    "RuntimeError",
    "InternalError",
]
