"""Lua to JavaScript transpiler — public API."""

from __future__ import annotations

from .ast import Expr as Expr, Stmt as Stmt
from .parse import ParseError as ParseError, Parser as Parser, parse as parse_tokens
from .pipeline import (
    TranspileError as TranspileError,
    TranspileResult as TranspileResult,
    transpile as transpile,
    try_transpile as try_transpile,
)
from .tokens import LexError as LexError, Token as Token, tokenize as tokenize


def parse_source(source: str) -> list[Stmt]:
    """Tokenize and parse Lua source into top-level statements."""
    return parse_tokens(tokenize(source))
