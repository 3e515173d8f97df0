# cmem/ast_nodes.py
"""
Statement AST consumed by the evaluator.

Nodes are produced by ``cmem.grammar`` (or any other front end) and are
assumed well-formed; the evaluator treats a malformed node as an internal
error, not a user error.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Union

from cmem.values import Literal, TypeTag


# ── Enums ────────────────────────────────────────────────────────

class BinOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


# ── Leaves ───────────────────────────────────────────────────────

@dataclass
class TypeNode:
    type: TypeTag


@dataclass
class LiteralNode:
    literal: Literal


@dataclass
class IdentifierNode:
    identifier: str


@dataclass
class DeclarationNode:
    identifier: IdentifierNode
    type: TypeNode


# ── Compound statements ──────────────────────────────────────────

@dataclass
class OperatorNode:
    operator: BinOp
    left: StatementNode
    right: StatementNode


@dataclass
class CastNode:
    type: TypeNode
    statement: StatementNode


@dataclass
class ParenthesisNode:
    statement: StatementNode


@dataclass
class DereferenceNode:
    statement: StatementNode


@dataclass
class AssignmentNode:
    left: Union[DeclarationNode, IdentifierNode, DereferenceNode]
    right: StatementNode


@dataclass
class FunctionCallNode:
    function_name: IdentifierNode
    arguments: list[Union[StatementNode, TypeNode]]


StatementNode = Union[
    LiteralNode, OperatorNode, CastNode, ParenthesisNode, DeclarationNode,
    IdentifierNode, AssignmentNode, FunctionCallNode, DereferenceNode,
]

STATEMENT_NODE_TYPES = (
    LiteralNode, OperatorNode, CastNode, ParenthesisNode, DeclarationNode,
    IdentifierNode, AssignmentNode, FunctionCallNode, DereferenceNode,
)


# ── Serialisation ────────────────────────────────────────────────

def _node_type(node: Any) -> str:
    name = type(node).__name__[: -len("Node")]
    return name[0].lower() + name[1:]


def node_to_dict(node: Any) -> Any:
    """JSON-friendly dump of an AST, keyed by ``nodeType``."""
    if isinstance(node, list):
        return [node_to_dict(n) for n in node]
    if isinstance(node, Enum):
        return node.value
    if isinstance(node, Literal):
        return {"nodeType": node.kind.value, node.kind.value: node.value}
    if not hasattr(node, "__dataclass_fields__"):
        return node
    out = {"nodeType": _node_type(node)}
    for f in fields(node):
        out[f.name] = node_to_dict(getattr(node, f.name))
    return out
