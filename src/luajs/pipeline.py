"""Lua to JavaScript pipeline: tokenize, parse, emit."""

from __future__ import annotations

from dataclasses import dataclass

from .emit import emit
from .parse import ParseError, Parser
from .tokens import LexError, tokenize

ERROR_PREFIX: str = "transpile error: "


class TranspileError(Exception):
    """A lex or parse failure surfaced by the pipeline.

    The message is the stage's message behind a fixed prefix; the stage error
    itself is kept in `cause`.
    """

    def __init__(self, cause: LexError | ParseError):
        self.cause: LexError | ParseError = cause
        self.line: int = cause.line
        super().__init__(ERROR_PREFIX + str(cause))


@dataclass
class TranspileResult:
    """Outcome of one transpilation: output on success, error otherwise."""

    output: str | None = None
    error: LexError | ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def try_transpile(source: str) -> TranspileResult:
    """Transpile Lua source, reporting user errors in the result."""
    try:
        tokens = tokenize(source)
        statements = Parser(tokens).parse_program()
    except (LexError, ParseError) as e:
        return TranspileResult(error=e)
    return TranspileResult(output=emit(statements))


def transpile(source: str) -> str:
    """Transpile Lua source to JavaScript. Raises TranspileError."""
    result = try_transpile(source)
    if result.error is not None:
        raise TranspileError(result.error) from result.error
    assert result.output is not None
    return result.output
