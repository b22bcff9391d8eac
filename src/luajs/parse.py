"""Lua parser — recursive descent, one method per grammar production.

Grammar, lowest precedence first:

    declaration = "function" function | "local" var_decl | statement
    statement   = if | while | block | return | expr_stmt
    expression  = assignment
    assignment  = NAME "=" assignment | or
    or          = and ( "or" and )*
    and         = equality ( "and" equality )*
    equality    = comparison ( ( "==" | "!=" ) comparison )*
    comparison  = term ( ( "<" | "<=" | ">" | ">=" ) term )*
    term        = factor ( ( "+" | "-" ) factor )*
    factor      = unary ( ( "*" | "/" ) unary )*
    unary       = "-" unary | call
    call        = primary ( "(" args ")" | "." NAME | "[" expression "]" )*
    primary     = NUMBER | STRING | "nil" | NAME | table | "(" expression ")"
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass

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
from .tokens import Token, TokenKind

MAX_ARGS: int = 255

# Recursive productions open at once (parentheses, unary minus, nested
# statements). Each level costs about a dozen Python frames.
MAX_NESTING: int = 50

# Height of a finished tree. The emitter and serializer recurse once per level,
# so long operator or call chains count here even though they parse in a loop.
MAX_DEPTH: int = 100

# Tokens that begin a new statement; synchronize() stops in front of them.
STATEMENT_STARTS: set[TokenKind] = {
    TokenKind.FUNCTION,
    TokenKind.LOCAL,
    TokenKind.IF,
    TokenKind.WHILE,
    TokenKind.RETURN,
}

EQUALITY_OPS: tuple[TokenKind, ...] = (TokenKind.EQUAL, TokenKind.NOT_EQUAL)

COMPARISON_OPS: tuple[TokenKind, ...] = (
    TokenKind.LESS,
    TokenKind.LESS_EQUAL,
    TokenKind.GREATER,
    TokenKind.GREATER_EQUAL,
)


class ParseError(Exception):
    """Parse error located at the offending token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        if token.kind == TokenKind.EOF:
            where = "line " + str(token.line) + " at end of input"
        else:
            where = "line " + str(token.line) + " near '" + token.lexeme + "'"
        super().__init__(where + ": " + msg)


class Parser:
    """Recursive descent parser for Lua.

    Errors that leave the token stream consistent (bad assignment targets,
    too many parameters or arguments) are recorded and parsing goes on.
    Other errors abort the current top-level declaration; the parser then
    synchronizes and keeps scanning so that later declarations are still
    checked. Every error lands in `errors`, and `parse_program` raises the
    first one once the whole input has been seen.

    Nesting is bounded twice: `depth` counts open recursive productions
    against MAX_NESTING while parsing, and each finished declaration is
    checked against MAX_DEPTH before it is kept.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.depth: int = 0
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.current().kind == TokenKind.EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if not self.at_end():
            self.pos += 1
        return tok

    def at(self, kind: TokenKind) -> bool:
        return self.current().kind == kind

    def match(self, *kinds: TokenKind) -> bool:
        for kind in kinds:
            if self.at(kind):
                self.advance()
                return True
        return False

    def expect(self, kind: TokenKind, msg: str) -> Token:
        if self.at(kind):
            return self.advance()
        raise self.error(self.current(), msg)

    def error(self, token: Token, msg: str) -> ParseError:
        return ParseError(msg, token)

    def report(self, token: Token, msg: str) -> None:
        """Record an error without unwinding."""
        self.errors.append(self.error(token, msg))

    def enter(self, what: str) -> None:
        """Open one recursive production; fail past MAX_NESTING."""
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise self.error(self.current(), what + " nested too deeply")

    def leave(self) -> None:
        self.depth -= 1

    def check_depth(self, stmt: Stmt) -> None:
        """Report a declaration whose tree is taller than MAX_DEPTH.

        Walks with an explicit stack so the check itself cannot overflow.
        """
        stack: list[tuple[object, int, Token]] = [(stmt, 1, self.previous())]
        while stack:
            node, height, near = stack.pop()
            children: list[object] = []
            for f in fields(node):
                value = getattr(node, f.name)
                if isinstance(value, Token):
                    near = value
                elif isinstance(value, tuple):
                    children.extend(v for v in value if not isinstance(v, Token))
                elif is_dataclass(value):
                    children.append(value)
            if height > MAX_DEPTH:
                self.report(near, "expression nested too deeply")
                return
            for child in children:
                stack.append((child, height + 1, near))

    def synchronize(self) -> None:
        """Skip to the next statement boundary after an error."""
        self.advance()
        while not self.at_end():
            if self.previous().kind == TokenKind.SEMICOLON:
                return
            if self.current().kind in STATEMENT_STARTS:
                return
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at_end():
            try:
                stmt = self.parse_declaration()
                self.check_depth(stmt)
                stmts.append(stmt)
            except ParseError as e:
                self.errors.append(e)
                self.depth = 0
                self.synchronize()
        if self.errors:
            raise self.errors[0]
        return stmts

    def parse_declaration(self) -> Stmt:
        if self.match(TokenKind.FUNCTION):
            return self.parse_function()
        if self.match(TokenKind.LOCAL):
            return self.parse_var_decl()
        return self.parse_statement()

    def parse_function(self) -> Function:
        self.enter("function")
        name = self.expect(TokenKind.IDENTIFIER, "expected function name")
        self.expect(TokenKind.LEFT_PAREN, "expected '(' after function name")
        params: list[Token] = []
        if not self.at(TokenKind.RIGHT_PAREN):
            params.append(self.expect(TokenKind.IDENTIFIER, "expected parameter name"))
            while self.match(TokenKind.COMMA):
                if len(params) >= MAX_ARGS:
                    self.report(
                        self.current(),
                        "can't have more than " + str(MAX_ARGS) + " parameters",
                    )
                params.append(
                    self.expect(TokenKind.IDENTIFIER, "expected parameter name")
                )
        self.expect(TokenKind.RIGHT_PAREN, "expected ')' after parameters")
        body: list[Stmt] = []
        while not self.at(TokenKind.END) and not self.at_end():
            body.append(self.parse_declaration())
        self.expect(TokenKind.END, "expected 'end' after function body")
        self.leave()
        return Function(name, tuple(params), tuple(body))

    def parse_var_decl(self) -> Var:
        name = self.expect(TokenKind.IDENTIFIER, "expected variable name")
        initializer: Expr | None = None
        if self.match(TokenKind.ASSIGN):
            initializer = self.parse_expression()
        self.expect(TokenKind.SEMICOLON, "expected ';' after variable declaration")
        return Var(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_statement(self) -> Stmt:
        self.enter("statement")
        stmt: Stmt
        if self.match(TokenKind.IF):
            stmt = self.parse_if()
        elif self.match(TokenKind.WHILE):
            stmt = self.parse_while()
        elif self.match(TokenKind.LEFT_BRACE):
            stmt = Block(self.parse_block())
        elif self.match(TokenKind.RETURN):
            stmt = self.parse_return()
        else:
            stmt = self.parse_expression_stmt()
        self.leave()
        return stmt

    def parse_if(self) -> If:
        cond = self.parse_expression()
        self.expect(TokenKind.THEN, "expected 'then' after condition")
        then_branch = self.parse_statement()
        else_branch: Stmt | None = None
        if self.match(TokenKind.ELSE):
            else_branch = self.parse_statement()
        self.expect(TokenKind.END, "expected 'end' after if statement")
        return If(cond, then_branch, else_branch)

    def parse_while(self) -> While:
        cond = self.parse_expression()
        self.expect(TokenKind.DO, "expected 'do' after condition")
        body = self.parse_statement()
        self.expect(TokenKind.END, "expected 'end' after while body")
        return While(cond, body)

    def parse_block(self) -> tuple[Stmt, ...]:
        stmts: list[Stmt] = []
        while not self.at(TokenKind.RIGHT_BRACE) and not self.at_end():
            stmts.append(self.parse_declaration())
        self.expect(TokenKind.RIGHT_BRACE, "expected '}' after block")
        return tuple(stmts)

    def parse_return(self) -> Return:
        keyword = self.previous()
        value: Expr | None = None
        if not self.at(TokenKind.SEMICOLON):
            value = self.parse_expression()
        self.expect(TokenKind.SEMICOLON, "expected ';' after return value")
        return Return(keyword, value)

    def parse_expression_stmt(self) -> ExpressionStmt:
        expr = self.parse_expression()
        self.expect(TokenKind.SEMICOLON, "expected ';' after expression")
        return ExpressionStmt(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        self.enter("expression")
        expr = self.parse_or()
        if self.match(TokenKind.ASSIGN):
            equals = self.previous()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                expr = Assign(expr.name, value)
            else:
                self.report(equals, "invalid assignment target")
        self.leave()
        return expr

    def parse_or(self) -> Expr:
        left = self.parse_and()
        while self.match(TokenKind.OR):
            op = self.previous()
            left = Binary(left, op, self.parse_and())
        return left

    def parse_and(self) -> Expr:
        left = self.parse_equality()
        while self.match(TokenKind.AND):
            op = self.previous()
            left = Binary(left, op, self.parse_equality())
        return left

    def parse_equality(self) -> Expr:
        left = self.parse_comparison()
        while self.match(*EQUALITY_OPS):
            op = self.previous()
            left = Binary(left, op, self.parse_comparison())
        return left

    def parse_comparison(self) -> Expr:
        left = self.parse_term()
        while self.match(*COMPARISON_OPS):
            op = self.previous()
            left = Binary(left, op, self.parse_term())
        return left

    def parse_term(self) -> Expr:
        left = self.parse_factor()
        while self.match(TokenKind.PLUS, TokenKind.MINUS):
            op = self.previous()
            left = Binary(left, op, self.parse_factor())
        return left

    def parse_factor(self) -> Expr:
        left = self.parse_unary()
        while self.match(TokenKind.STAR, TokenKind.SLASH):
            op = self.previous()
            left = Binary(left, op, self.parse_unary())
        return left

    def parse_unary(self) -> Expr:
        if self.match(TokenKind.MINUS):
            op = self.previous()
            self.enter("expression")
            operand = self.parse_unary()
            self.leave()
            return Unary(op, operand)
        return self.parse_call()

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.match(TokenKind.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenKind.DOT):
                name = self.expect(TokenKind.IDENTIFIER, "expected field name after '.'")
                expr = Index(expr, Literal(name.lexeme))
            elif self.match(TokenKind.LEFT_BRACKET):
                key = self.parse_expression()
                self.expect(TokenKind.RIGHT_BRACKET, "expected ']' after index")
                expr = Index(expr, key)
            else:
                return expr

    def finish_call(self, callee: Expr) -> Call:
        args: list[Expr] = []
        if not self.at(TokenKind.RIGHT_PAREN):
            args.append(self.parse_expression())
            while self.match(TokenKind.COMMA):
                if len(args) >= MAX_ARGS:
                    self.report(
                        self.current(),
                        "can't have more than " + str(MAX_ARGS) + " arguments",
                    )
                args.append(self.parse_expression())
        paren = self.expect(TokenKind.RIGHT_PAREN, "expected ')' after arguments")
        return Call(callee, paren, tuple(args))

    def parse_primary(self) -> Expr:
        tok = self.current()
        if tok.kind == TokenKind.NUMBER or tok.kind == TokenKind.STRING:
            self.advance()
            return Literal(tok.literal)
        if tok.kind == TokenKind.NIL:
            self.advance()
            return Literal(None)
        if tok.kind == TokenKind.IDENTIFIER:
            self.advance()
            return Variable(tok)
        if tok.kind == TokenKind.LEFT_BRACE:
            self.advance()
            return self.parse_table()
        if tok.kind == TokenKind.LEFT_PAREN:
            self.advance()
            expr = self.parse_expression()
            self.expect(TokenKind.RIGHT_PAREN, "expected ')' after expression")
            return Grouping(expr)
        raise self.error(tok, "expected expression")

    def parse_table(self) -> Table:
        """Table = '{' ( Entry ( ',' Entry )* ','? )? '}'"""
        entries: list[TableEntry] = []
        while not self.at(TokenKind.RIGHT_BRACE):
            entries.append(self.parse_table_entry())
            if not self.match(TokenKind.COMMA):
                break
        self.expect(TokenKind.RIGHT_BRACE, "expected '}' after table entries")
        return Table(tuple(entries))

    def parse_table_entry(self) -> TableEntry:
        if self.match(TokenKind.LEFT_BRACKET):
            key = self.parse_expression()
            self.expect(TokenKind.RIGHT_BRACKET, "expected ']' after table key")
            self.expect(TokenKind.ASSIGN, "expected '=' after table key")
            return TableEntry(key, self.parse_expression())
        if self.at(TokenKind.IDENTIFIER) and self.peek(1).kind == TokenKind.ASSIGN:
            name = self.advance()
            self.advance()
            return TableEntry(Literal(name.lexeme), self.parse_expression())
        return TableEntry(None, self.parse_expression())


def parse(tokens: list[Token]) -> list[Stmt]:
    """Parse a token list into top-level statements."""
    return Parser(tokens).parse_program()
