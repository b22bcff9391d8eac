"""JavaScript emitter — renders the Lua AST as JavaScript source.

This is intentionally "total" over the node set in `luajs/ast.py`: if a new
node type is added, this emitter should be updated alongside it.

Every node renders to a string; compound constructs indent the text their
children already produced instead of tracking a column while emitting.
"""

from __future__ import annotations

import re

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Expr,
    ExpressionStmt,
    Function,
    Grouping,
    If,
    Index,
    Literal,
    Return,
    Stmt,
    Table,
    TableEntry,
    Unary,
    Var,
    Variable,
    While,
)
from .tokens import TokenKind

INDENT: str = "  "

BINARY_OPS: dict[TokenKind, str] = {
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.STAR: "*",
    TokenKind.SLASH: "/",
    TokenKind.EQUAL: "===",
    TokenKind.NOT_EQUAL: "!==",
    TokenKind.LESS: "<",
    TokenKind.LESS_EQUAL: "<=",
    TokenKind.GREATER: ">",
    TokenKind.GREATER_EQUAL: ">=",
    TokenKind.AND: "&&",
    TokenKind.OR: "||",
}

# Lua globals rewritten to their JavaScript counterpart when called.
BUILTIN_CALLS: dict[str, str] = {
    "print": "console.log",
}

_JS_IDENT = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def emit(statements: list[Stmt]) -> str:
    """Render top-level statements as JavaScript source."""
    return "\n".join(_stmt(s) for s in statements)


def escape_string(value: str) -> str:
    """Escape a string for use in a string literal (without quotes)."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
        .replace("\f", "\\f")
        .replace("\v", "\\v")
        .replace("\x00", "\\x00")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def js_number(value: float) -> str:
    """Format a float the way JavaScript's Number#toString does."""
    if value != value:
        return "NaN"
    if value == float("inf"):
        return "Infinity"
    if value == float("-inf"):
        return "-Infinity"
    if value == 0:
        return "0"
    if value < 0:
        return "-" + js_number(-value)
    # repr gives the shortest round-tripping digits, as JavaScript does;
    # only the layout around them differs.
    mantissa, _, exp = repr(value).partition("e")
    int_part, _, frac_part = mantissa.partition(".")
    all_digits = int_part + frac_part
    stripped = all_digits.lstrip("0")
    point = len(int_part) + (int(exp) if exp else 0) - (len(all_digits) - len(stripped))
    digits = stripped.rstrip("0")
    k = len(digits)
    if k <= point <= 21:
        return digits + "0" * (point - k)
    if 0 < point <= 21:
        return digits[:point] + "." + digits[point:]
    if -6 < point <= 0:
        return "0." + "0" * -point + digits
    e = point - 1
    sign = "+" if e >= 0 else "-"
    head = digits if k == 1 else digits[0] + "." + digits[1:]
    return head + "e" + sign + str(abs(e))


def _indent(code: str) -> str:
    lines: list[str] = []
    for line in code.split("\n"):
        lines.append(INDENT + line if line else line)
    return "\n".join(lines)


def _braced(code: str) -> str:
    if code == "":
        return "{\n}"
    return "{\n" + _indent(code) + "\n}"


# ── Statements ──────────────────────────────────────────────


def _stmt(stmt: Stmt) -> str:
    match stmt:
        case ExpressionStmt(expr=expr):
            return _expr(expr) + ";"
        case Function(name=name, params=params, body=body):
            param_list = ", ".join(p.lexeme for p in params)
            body_code = "\n".join(_stmt(s) for s in body)
            return "function " + name.lexeme + "(" + param_list + ") " + _braced(body_code)
        case If(cond=cond, then_branch=then_branch, else_branch=else_branch):
            code = "if (" + _expr(cond) + ") " + _braced(_stmt(then_branch))
            if else_branch is not None:
                code += " else " + _braced(_stmt(else_branch))
            return code
        case Return(value=value):
            if value is None:
                return "return;"
            return "return " + _expr(value) + ";"
        case Var(name=name, initializer=initializer):
            if initializer is None:
                return "let " + name.lexeme + ";"
            return "let " + name.lexeme + " = " + _expr(initializer) + ";"
        case While(cond=cond, body=body):
            return "while (" + _expr(cond) + ") " + _braced(_stmt(body))
        case Block(statements=statements):
            return "\n".join(_stmt(s) for s in statements)
    raise TypeError("unhandled stmt type: " + type(stmt).__name__)


# ── Expressions ─────────────────────────────────────────────


def _expr(expr: Expr) -> str:
    match expr:
        case Binary(left=left, op=op, right=right):
            return "(" + _expr(left) + " " + _binary_op(op.kind) + " " + _expr(right) + ")"
        case Grouping(expr=inner):
            return "(" + _expr(inner) + ")"
        case Literal(value=value):
            return _literal(value)
        case Unary(op=op, operand=operand):
            return "(" + op.lexeme + _expr(operand) + ")"
        case Variable(name=name):
            return name.lexeme
        case Assign(name=name, value=value):
            return name.lexeme + " = " + _expr(value)
        case Call(callee=callee, args=args):
            return _call(_expr(callee), args)
        case Table():
            return _table(expr)
        case Index(table=table, key=key):
            return _index_target(table) + _index_suffix(key)
    raise TypeError("unhandled expr type: " + type(expr).__name__)


def _binary_op(kind: TokenKind) -> str:
    if kind not in BINARY_OPS:
        raise ValueError("unknown binary operator: " + kind.name)
    return BINARY_OPS[kind]


def _literal(value: float | str | None) -> str:
    if value is None:
        return "null"
    if isinstance(value, str):
        return _string_literal(value)
    return js_number(value)


def _string_literal(value: str) -> str:
    return f'"{escape_string(value)}"'


def _call(callee: str, args: tuple[Expr, ...]) -> str:
    args_str = ", ".join(_expr(a) for a in args)
    target = BUILTIN_CALLS.get(callee, callee)
    return target + "(" + args_str + ")"


def _table(table: Table) -> str:
    if table.is_array():
        return "[" + ", ".join(_expr(e.value) for e in table.entries) + "]"
    parts: list[str] = []
    position = 0
    for entry in table.entries:
        if entry.key is None:
            # Positional entries take Lua's implicit 1-based keys.
            position += 1
            parts.append(str(position) + ": " + _expr(entry.value))
        else:
            parts.append(_table_key(entry) + ": " + _expr(entry.value))
    return "{" + ", ".join(parts) + "}"


def _table_key(entry: TableEntry) -> str:
    key = entry.key
    if isinstance(key, Literal):
        return _literal(key.value)
    return "[" + _expr(key) + "]"


def _index_target(table: Expr) -> str:
    code = _expr(table)
    if isinstance(table, Literal) and isinstance(table.value, float):
        # 1.x would read as a malformed number literal
        return "(" + code + ")"
    return code


def _index_suffix(key: Expr) -> str:
    if isinstance(key, Literal) and isinstance(key.value, str):
        if _JS_IDENT.match(key.value):
            return "." + key.value
        return "[" + _string_literal(key.value) + "]"
    return "[" + _expr(key) + "]"
