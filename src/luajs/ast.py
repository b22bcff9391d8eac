"""Lua AST — parse-time node definitions.

Nodes are built once by the parser and never mutated afterwards. Child
sequences are tuples so a finished tree cannot be edited in place. Each node
keeps the tokens it came from where the emitter or diagnostics need the
original lexeme or line.

The node set is closed: `Expr` and `Stmt` are unions over every variant, and
the emitter handles each of them.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(frozen=True)
class Binary:
    """left op right.

    Invariants:
    - op is one of + - * / == != < <= > >= and or
    """

    left: Expr
    op: Token
    right: Expr


@dataclass(frozen=True)
class Grouping:
    """( expr )."""

    expr: Expr


@dataclass(frozen=True)
class Literal:
    """Number, string, or nil.

    Numbers are always floats; nil is None.
    """

    value: float | str | None


@dataclass(frozen=True)
class Unary:
    """op operand. Only prefix minus exists."""

    op: Token
    operand: Expr


@dataclass(frozen=True)
class Variable:
    """Variable reference."""

    name: Token


@dataclass(frozen=True)
class Assign:
    """name = value. The target is always a bare variable."""

    name: Token
    value: Expr


@dataclass(frozen=True)
class Call:
    """callee(args).

    paren is the closing ')' and locates errors about the call.
    """

    callee: Expr
    paren: Token
    args: tuple[Expr, ...]


@dataclass(frozen=True)
class TableEntry:
    """One table constructor entry. key is None for positional entries."""

    key: Expr | None
    value: Expr


@dataclass(frozen=True)
class Table:
    """{ entries }.

    Invariants:
    - entries keep source order
    - `name = v` entries carry a string Literal key
    """

    entries: tuple[TableEntry, ...]

    def is_array(self) -> bool:
        """True when no entry carries a key (includes the empty table)."""
        for entry in self.entries:
            if entry.key is not None:
                return False
        return True


@dataclass(frozen=True)
class Index:
    """table[key] or table.name.

    Dot access is parsed into a string Literal key, so both forms share this
    node and the emitter picks the surface syntax from the key.
    """

    table: Expr
    key: Expr


Expr = Binary | Grouping | Literal | Unary | Variable | Assign | Call | Table | Index


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(frozen=True)
class ExpressionStmt:
    """Expression evaluated for its side effect: expr ;"""

    expr: Expr


@dataclass(frozen=True)
class Function:
    """function name(params) body end.

    Invariants:
    - len(params) <= 255
    """

    name: Token
    params: tuple[Token, ...]
    body: tuple[Stmt, ...]


@dataclass(frozen=True)
class If:
    """if cond then stmt [else stmt] end."""

    cond: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(frozen=True)
class Return:
    """return [value] ;"""

    keyword: Token
    value: Expr | None


@dataclass(frozen=True)
class Var:
    """local name [= initializer] ;"""

    name: Token
    initializer: Expr | None


@dataclass(frozen=True)
class While:
    """while cond do stmt end."""

    cond: Expr
    body: Stmt


@dataclass(frozen=True)
class Block:
    """{ statements }."""

    statements: tuple[Stmt, ...]


Stmt = ExpressionStmt | Function | If | Return | Var | While | Block
