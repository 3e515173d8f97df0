"""
grammar.py — console statement grammar
=======================================

Turns one console line into a ``cmem.ast_nodes`` statement tree.

Usage::

    from cmem.grammar import parse_statement

    node = parse_statement("int* p = (int*) malloc(sizeof(int))")

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
from typing import Any, List

from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

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
    StatementNode,
    TypeNode,
)
from cmem.errors import CmemError, CmemErrorCodes, SyntaxError as CmemSyntaxError
from cmem.values import Literal, TypeTag

logger = logging.getLogger(__name__)

__all__ = ["STATEMENT_GRAMMAR", "parse_statement"]


# ═══════════════════════════════════════════════════════════════════
#  PART 1: GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

STATEMENT_GRAMMAR = Grammar(r'''
    statement       = _ statement_body _ ";"? _
    statement_body  = assignment / declaration / expression

    # ─────────────────────────────────────────────────────────────
    # Declarations & assignment
    # ─────────────────────────────────────────────────────────────

    declaration     = type_name _ identifier
    assignment      = assign_target _ "=" _ expression
    assign_target   = declaration / deref_target / identifier
    deref_target    = "*" _ unary

    # ─────────────────────────────────────────────────────────────
    # Expressions (left-associative, * / bind tighter than + -)
    # ─────────────────────────────────────────────────────────────

    expression      = term (_ add_op _ term)*
    term            = unary (_ mul_op _ unary)*
    unary           = dereference / cast / primary
    dereference     = "*" _ unary
    cast            = "(" _ type_name _ ")" _ unary
    primary         = call / literal / group / identifier
    group           = "(" _ expression _ ")"

    call            = identifier _ "(" _ arguments? _ ")"
    arguments       = argument (_ "," _ argument)*
    argument        = type_argument / expression
    type_argument   = type_name &(_ (")" / ","))

    add_op          = ~r"[+-]"
    mul_op          = ~r"[*/]"

    # ─────────────────────────────────────────────────────────────
    # Types, names and literals
    # ─────────────────────────────────────────────────────────────

    type_name       = type_keyword (_ "*")?
    type_keyword    = ~r"(void|int|char|double|string)(?![A-Za-z0-9_])"
    identifier      = !type_keyword ~r"[A-Za-z_][A-Za-z0-9_]*"

    literal         = double_lit / hex_lit / int_lit / char_lit / string_lit
    double_lit      = ~r"-?[0-9]+\.[0-9]*([eE][-+]?[0-9]+)?"
    hex_lit         = ~r"-?0[xX][0-9a-fA-F]+"
    int_lit         = ~r"-?[0-9]+"
    char_lit        = ~r"'(\\.|[^'\\])'"
    string_lit      = ~r'"(\\.|[^"\\])*"'

    _               = ~r"\s*"
''')


# ═══════════════════════════════════════════════════════════════════
#  PART 2: PARSE TREE → AST
# ═══════════════════════════════════════════════════════════════════

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


def _unescape(body: str) -> str:
    out: List[str] = []
    chars = iter(body)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        if nxt not in _ESCAPES:
            raise CmemSyntaxError(
                f"Unknown escape sequence \\{nxt}.",
                code=CmemErrorCodes.INVALID_LITERAL,
            )
        out.append(_ESCAPES[nxt])
    return "".join(out)


def _repeated(visited: Any) -> list:
    """Children of a ``*``/``?`` node; parsimonious gives a bare Node when empty."""
    return visited if isinstance(visited, list) else []


class StatementBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into a statement AST."""

    unwrapped_exceptions = (CmemError,)

    def generic_visit(self, node, visited_children):
        return visited_children or node

    # ── Statements ───────────────────────────────────────────────

    def visit_statement(self, node, visited_children):
        _, body, *_ = visited_children
        return body

    def visit_statement_body(self, node, visited_children):
        return visited_children[0]

    def visit_declaration(self, node, visited_children):
        type_node, _, identifier = visited_children
        return DeclarationNode(identifier=identifier, type=type_node)

    def visit_assignment(self, node, visited_children):
        target, _, _, _, value = visited_children
        return AssignmentNode(left=target, right=value)

    def visit_assign_target(self, node, visited_children):
        return visited_children[0]

    def visit_deref_target(self, node, visited_children):
        return DereferenceNode(statement=visited_children[2])

    # ── Expressions ──────────────────────────────────────────────

    def _fold(self, visited_children):
        first, rest = visited_children
        result = first
        for _, op, _, operand in _repeated(rest):
            result = OperatorNode(operator=op, left=result, right=operand)
        return result

    def visit_expression(self, node, visited_children):
        return self._fold(visited_children)

    def visit_term(self, node, visited_children):
        return self._fold(visited_children)

    def visit_add_op(self, node, visited_children):
        return BinOp(node.text)

    def visit_mul_op(self, node, visited_children):
        return BinOp(node.text)

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_dereference(self, node, visited_children):
        return DereferenceNode(statement=visited_children[2])

    def visit_cast(self, node, visited_children):
        _, _, type_node, _, _, _, operand = visited_children
        return CastNode(type=type_node, statement=operand)

    def visit_primary(self, node, visited_children):
        return visited_children[0]

    def visit_group(self, node, visited_children):
        return ParenthesisNode(statement=visited_children[2])

    def visit_call(self, node, visited_children):
        name, _, _, _, args, _, _ = visited_children
        arguments = _repeated(args)
        return FunctionCallNode(
            function_name=name,
            arguments=arguments[0] if arguments else [],
        )

    def visit_arguments(self, node, visited_children):
        first, rest = visited_children
        return [first] + [arg for _, _, _, arg in _repeated(rest)]

    def visit_argument(self, node, visited_children):
        return visited_children[0]

    def visit_type_argument(self, node, visited_children):
        return visited_children[0]

    # ── Types, names, literals ───────────────────────────────────

    def visit_type_name(self, node, visited_children):
        return TypeNode(TypeTag.parse("".join(node.text.split())))

    def visit_identifier(self, node, visited_children):
        return IdentifierNode(node.text)

    def visit_literal(self, node, visited_children):
        return visited_children[0]

    def visit_double_lit(self, node, visited_children):
        return LiteralNode(Literal.of_double(float(node.text)))

    def _int_literal(self, node, base):
        try:
            value = int(node.text, base)
        except ValueError:
            raise CmemSyntaxError(
                f"Integer literal of {len(node.text)} characters is too long.",
                code=CmemErrorCodes.INVALID_LITERAL,
                column=node.start,
            ) from None
        return LiteralNode(Literal.of_int(value))

    def visit_hex_lit(self, node, visited_children):
        return self._int_literal(node, 16)

    def visit_int_lit(self, node, visited_children):
        return self._int_literal(node, 10)

    def visit_char_lit(self, node, visited_children):
        text = _unescape(node.text[1:-1])
        code = ord(text)
        if code > 255:
            raise CmemSyntaxError(
                f"Character {node.text} does not fit in a byte.",
                code=CmemErrorCodes.INVALID_LITERAL,
                column=node.start,
            )
        return LiteralNode(Literal.of_char(code))

    def visit_string_lit(self, node, visited_children):
        return LiteralNode(Literal.of_string(_unescape(node.text[1:-1])))


def parse_statement(text: str) -> StatementNode:
    """Parse one console line into a statement tree.

    Raises ``cmem.errors.SyntaxError`` when *text* is not a statement.
    """
    try:
        tree: Node = STATEMENT_GRAMMAR.parse(text)
    except IncompleteParseError as exc:
        raise CmemSyntaxError(
            f"Unexpected input at column {exc.pos + 1}: {text[exc.pos:]!r}",
            column=exc.pos,
        ) from None
    except ParseError as exc:
        raise CmemSyntaxError(
            f"Could not parse {text.strip()!r} (stopped at column {exc.pos + 1}).",
            column=exc.pos,
        ) from None
    statement = StatementBuilder().visit(tree)
    logger.debug("parsed %r -> %r", text, statement)
    return statement
