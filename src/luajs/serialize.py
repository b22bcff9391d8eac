"""Serialization of tokens and AST nodes to JSON-compatible dicts."""

from __future__ import annotations

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    ExpressionStmt,
    Function,
    Grouping,
    If,
    Index,
    Literal,
    Return,
    Stmt,
    Table,
    Unary,
    Var,
    Variable,
    While,
)
from .tokens import Token


def serialize(obj: object) -> object:
    """Recursively serialize an object to a JSON-compatible structure."""
    if obj is None:
        return None
    if isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [serialize(x) for x in obj]
    if isinstance(obj, Token):
        return _serialize_token(obj)
    if isinstance(obj, (ExpressionStmt, Function, If, Return, Var, While, Block)):
        return _serialize_stmt(obj)
    return _serialize_expr(obj)


def _serialize_token(tok: Token) -> dict[str, object]:
    return {
        "kind": tok.kind.name,
        "lexeme": tok.lexeme,
        "literal": tok.literal,
        "line": tok.line,
    }


def _serialize_expr(obj: object) -> dict[str, object]:
    """Serialize Expr variants."""
    d: dict[str, object] = {}
    if isinstance(obj, Binary):
        d["_type"] = "Binary"
        d["left"] = serialize(obj.left)
        d["op"] = obj.op.lexeme
        d["right"] = serialize(obj.right)
    elif isinstance(obj, Grouping):
        d["_type"] = "Grouping"
        d["expr"] = serialize(obj.expr)
    elif isinstance(obj, Literal):
        d["_type"] = "Literal"
        d["value"] = obj.value
    elif isinstance(obj, Unary):
        d["_type"] = "Unary"
        d["op"] = obj.op.lexeme
        d["operand"] = serialize(obj.operand)
    elif isinstance(obj, Variable):
        d["_type"] = "Variable"
        d["name"] = obj.name.lexeme
        d["line"] = obj.name.line
    elif isinstance(obj, Assign):
        d["_type"] = "Assign"
        d["name"] = obj.name.lexeme
        d["value"] = serialize(obj.value)
    elif isinstance(obj, Call):
        d["_type"] = "Call"
        d["callee"] = serialize(obj.callee)
        d["args"] = serialize(obj.args)
        d["line"] = obj.paren.line
    elif isinstance(obj, Table):
        d["_type"] = "Table"
        d["entries"] = [
            {"key": serialize(e.key), "value": serialize(e.value)}
            for e in obj.entries
        ]
    elif isinstance(obj, Index):
        d["_type"] = "Index"
        d["table"] = serialize(obj.table)
        d["key"] = serialize(obj.key)
    else:
        raise TypeError("cannot serialize " + type(obj).__name__)
    return d


def _serialize_stmt(obj: Stmt) -> dict[str, object]:
    """Serialize Stmt variants."""
    d: dict[str, object] = {}
    if isinstance(obj, ExpressionStmt):
        d["_type"] = "ExpressionStmt"
        d["expr"] = serialize(obj.expr)
    elif isinstance(obj, Function):
        d["_type"] = "Function"
        d["name"] = obj.name.lexeme
        d["params"] = [p.lexeme for p in obj.params]
        d["body"] = serialize(obj.body)
        d["line"] = obj.name.line
    elif isinstance(obj, If):
        d["_type"] = "If"
        d["cond"] = serialize(obj.cond)
        d["then"] = serialize(obj.then_branch)
        d["else"] = serialize(obj.else_branch)
    elif isinstance(obj, Return):
        d["_type"] = "Return"
        d["value"] = serialize(obj.value)
        d["line"] = obj.keyword.line
    elif isinstance(obj, Var):
        d["_type"] = "Var"
        d["name"] = obj.name.lexeme
        d["initializer"] = serialize(obj.initializer)
        d["line"] = obj.name.line
    elif isinstance(obj, While):
        d["_type"] = "While"
        d["cond"] = serialize(obj.cond)
        d["body"] = serialize(obj.body)
    elif isinstance(obj, Block):
        d["_type"] = "Block"
        d["statements"] = serialize(obj.statements)
    return d


def tokens_to_list(tokens: list[Token]) -> list[object]:
    """Serialize a token list."""
    return [_serialize_token(t) for t in tokens]


def program_to_list(statements: list[Stmt]) -> list[object]:
    """Serialize top-level statements."""
    return [serialize(s) for s in statements]
