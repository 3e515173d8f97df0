# tests/conftest.py
"""
Shared fixtures and AST builders for the cmem test-suite.
"""

import pytest

from cmem.ast_nodes import (
    AssignmentNode,
    BinOp,
    CastNode,
    DeclarationNode,
    DereferenceNode,
    FunctionCallNode,
    IdentifierNode,
    LiteralNode,
    OperatorNode,
    ParenthesisNode,
    TypeNode,
)
from cmem.console import Console
from cmem.engine import Engine, EngineConfig
from cmem.values import Literal, RuntimeValue, TypeTag


# ── Literal / value builders ─────────────────────────────────────

def i(value):
    return Literal.of_int(value)


def d(value):
    return Literal.of_double(value)


def c(value):
    if isinstance(value, str):
        value = ord(value)
    return Literal.of_char(value)


def s(value):
    return Literal.of_string(value)


def rv(literal, type_=None):
    if type_ is None:
        return RuntimeValue.of_literal(literal)
    return RuntimeValue(type_, literal)


# ── AST builders ─────────────────────────────────────────────────

def lit(literal):
    return LiteralNode(literal)


def ident(name):
    return IdentifierNode(name)


def typ(name):
    return TypeNode(TypeTag(name))


def decl(type_name, name):
    return DeclarationNode(identifier=ident(name), type=typ(type_name))


def op(symbol, left, right):
    return OperatorNode(operator=BinOp(symbol), left=left, right=right)


def cast(type_name, statement):
    return CastNode(type=typ(type_name), statement=statement)


def paren(statement):
    return ParenthesisNode(statement)


def deref(statement):
    return DereferenceNode(statement)


def assign(left, right):
    return AssignmentNode(left=left, right=right)


def call(name, *arguments):
    return FunctionCallNode(function_name=ident(name), arguments=list(arguments))


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def engine():
    return Engine()


@pytest.fixture
def small_engine():
    return Engine(EngineConfig(memory_size=16))


@pytest.fixture
def console():
    return Console()
