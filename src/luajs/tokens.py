"""Lua tokenizer — lexes source into a flat token list."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    """Closed set of lexical categories."""

    # Keywords
    FUNCTION = "function"
    LOCAL = "local"
    IF = "if"
    THEN = "then"
    ELSE = "else"
    END = "end"
    WHILE = "while"
    DO = "do"
    RETURN = "return"
    AND = "and"
    OR = "or"
    NIL = "nil"

    # Operators
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    ASSIGN = "="
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="

    # Punctuation
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    COMMA = ","
    DOT = "."
    SEMICOLON = ";"
    COLON = ":"

    # Literals
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"

    EOF = "EOF"


KEYWORDS: dict[str, TokenKind] = {
    "function": TokenKind.FUNCTION,
    "local": TokenKind.LOCAL,
    "if": TokenKind.IF,
    "then": TokenKind.THEN,
    "else": TokenKind.ELSE,
    "end": TokenKind.END,
    "while": TokenKind.WHILE,
    "do": TokenKind.DO,
    "return": TokenKind.RETURN,
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "nil": TokenKind.NIL,
}

SINGLE_CHARS: dict[str, TokenKind] = {
    "(": TokenKind.LEFT_PAREN,
    ")": TokenKind.RIGHT_PAREN,
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
    "[": TokenKind.LEFT_BRACKET,
    "]": TokenKind.RIGHT_BRACKET,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    ";": TokenKind.SEMICOLON,
    ":": TokenKind.COLON,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
}

# First char -> (kind alone, kind when followed by '=')
EQUAL_PAIRS: dict[str, tuple[TokenKind, TokenKind]] = {
    "=": (TokenKind.ASSIGN, TokenKind.EQUAL),
    "<": (TokenKind.LESS, TokenKind.LESS_EQUAL),
    ">": (TokenKind.GREATER, TokenKind.GREATER_EQUAL),
}


class LexError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int, char: str = ""):
        self.msg: str = msg
        self.line: int = line
        self.char: str = char
        super().__init__(msg + " at line " + str(line))


@dataclass(frozen=True)
class Token:
    """A token with kind, source lexeme, parsed literal, and line."""

    kind: TokenKind
    lexeme: str
    literal: float | str | None
    line: int

    def __repr__(self) -> str:
        return (
            "Token("
            + self.kind.name
            + ", "
            + repr(self.lexeme)
            + ", "
            + str(self.line)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def tokenize(source: str) -> list[Token]:
    """Tokenize Lua source into a flat list ending with an EOF token."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r":
            pos += 1
            continue

        # Line comment: --
        if c == "-" and pos + 1 < length and source[pos + 1] == "-":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_pos = pos
        start_line = line

        # String literal: "..." (no escapes, may span lines)
        if c == '"':
            pos += 1
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    line += 1
                pos += 1
            if pos >= length:
                raise LexError("unterminated string", start_line, '"')
            pos += 1  # skip closing "
            value = source[start_pos + 1 : pos - 1]
            tokens.append(
                Token(TokenKind.STRING, source[start_pos:pos], value, start_line)
            )
            continue

        # Number: digits, optionally '.' digits
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
            if (
                pos + 1 < length
                and source[pos] == "."
                and _is_digit(source[pos + 1])
            ):
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            raw = source[start_pos:pos]
            tokens.append(Token(TokenKind.NUMBER, raw, float(raw), start_line))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
            word = source[start_pos:pos]
            kind = KEYWORDS.get(word, TokenKind.IDENTIFIER)
            tokens.append(Token(kind, word, None, start_line))
            continue

        # '=', '<', '>' with optional trailing '='
        if c in EQUAL_PAIRS:
            alone, with_equal = EQUAL_PAIRS[c]
            if pos + 1 < length and source[pos + 1] == "=":
                tokens.append(Token(with_equal, c + "=", None, start_line))
                pos += 2
            else:
                tokens.append(Token(alone, c, None, start_line))
                pos += 1
            continue

        # '!' is only valid as '!='
        if c == "!":
            if pos + 1 < length and source[pos + 1] == "=":
                tokens.append(Token(TokenKind.NOT_EQUAL, "!=", None, start_line))
                pos += 2
                continue
            raise LexError("unexpected character '!'", line, c)

        if c in SINGLE_CHARS:
            tokens.append(Token(SINGLE_CHARS[c], c, None, start_line))
            pos += 1
            continue

        raise LexError("unexpected character " + repr(c), line, c)

    tokens.append(Token(TokenKind.EOF, "", None, line))
    return tokens
