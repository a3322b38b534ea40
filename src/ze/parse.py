"""Ze parser — recursive descent, one method per grammar production."""

from __future__ import annotations

from .ast import (
    Assign,
    Binary,
    Block,
    BreakStmt,
    Call,
    ClassStmt,
    ContinueStmt,
    Expr,
    ExprStmt,
    FunctionLit,
    FunctionStmt,
    Get,
    Grouping,
    IfStmt,
    Literal,
    Logical,
    PrintStmt,
    ReturnStmt,
    Sequence,
    Set,
    Stmt,
    Ternary,
    This,
    Unary,
    Variable,
    VarStmt,
    WhileStmt,
)
from .diagnostics import StaticError
from .tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_STRING, Token

MAX_ARGS = 255

# Tokens that begin a declaration or statement; resynchronization stops here.
SYNC_KEYWORDS: set[str] = {
    "class",
    "fun",
    "var",
    "for",
    "if",
    "while",
    "print",
    "return",
    "break",
    "continue",
}


class ParseError(StaticError):
    """Parse error located at a token."""

    def __init__(self, msg: str, tok: Token):
        if tok.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + tok.lexeme + "'"
        super().__init__(msg, tok.line, where)
        self.token: Token = tok


class Parser:
    """Recursive descent parser for Ze.

    Syntax errors inside a declaration are recorded in `errors` and parsing
    resumes at the next statement boundary, so one pass reports as many
    errors as it can.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.errors: list[ParseError] = []
        self.loop_depth: int = 0

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
        return self.current().type == TK_EOF

    def advance(self) -> Token:
        tok = self.current()
        if not self.at_end():
            self.pos += 1
        return tok

    def at(self, type_: str) -> bool:
        return self.current().type == type_

    def match(self, *types: str) -> bool:
        for type_ in types:
            if self.at(type_):
                self.advance()
                return True
        return False

    def expect(self, type_: str, msg: str) -> Token:
        if self.at(type_):
            return self.advance()
        raise self.error(msg)

    def error(self, msg: str) -> ParseError:
        return ParseError(msg, self.current())

    def report(self, msg: str, tok: Token) -> None:
        """Record an error without unwinding."""
        self.errors.append(ParseError(msg, tok))

    def synchronize(self) -> None:
        self.advance()
        while not self.at_end():
            if self.previous().type == ";":
                return
            if self.current().type in SYNC_KEYWORDS:
                return
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                stmts.append(stmt)
        return stmts

    def parse_declaration(self) -> Stmt | None:
        try:
            if self.at("class"):
                return self.parse_class_decl()
            if self.at("fun") and self.peek(1).type == TK_IDENT:
                self.advance()
                return self.parse_function("function")
            if self.at("var"):
                return self.parse_var_decl()
            return self.parse_stmt()
        except ParseError as e:
            self.errors.append(e)
            self.synchronize()
            return None

    def parse_class_decl(self) -> ClassStmt:
        self.expect("class", "Expect 'class'.")
        name = self.expect(TK_IDENT, "Expect class name.")
        self.expect("{", "Expect '{' before class body.")
        methods: list[FunctionStmt] = []
        while not self.at("}") and not self.at_end():
            methods.append(self.parse_function("method"))
        self.expect("}", "Expect '}' after class body.")
        return ClassStmt(name, methods)

    def parse_function(self, kind: str) -> FunctionStmt:
        """Function = IDENT '(' Params? ')' Block, for declarations and methods."""
        name = self.expect(TK_IDENT, "Expect " + kind + " name.")
        self.expect("(", "Expect '(' after " + kind + " name.")
        function = self.parse_function_rest(kind)
        return FunctionStmt(name, function)

    def parse_function_rest(self, kind: str) -> FunctionLit:
        """Params and body, after the opening '(' has been consumed."""
        params: list[Token] = []
        if not self.at(")"):
            while True:
                if len(params) >= MAX_ARGS:
                    self.report(
                        "Can't have more than " + str(MAX_ARGS) + " parameters.",
                        self.current(),
                    )
                params.append(self.expect(TK_IDENT, "Expect parameter name."))
                if not self.match(","):
                    break
        self.expect(")", "Expect ')' after parameters.")
        self.expect("{", "Expect '{' before " + kind + " body.")
        enclosing_loops = self.loop_depth
        self.loop_depth = 0
        try:
            body = self.parse_block_body()
        finally:
            self.loop_depth = enclosing_loops
        return FunctionLit(params, body)

    def parse_var_decl(self) -> VarStmt:
        self.expect("var", "Expect 'var'.")
        name = self.expect(TK_IDENT, "Expect variable name.")
        initializer: Expr | None = None
        if self.match("="):
            initializer = self.parse_expr()
        self.expect(";", "Expect ';' after variable declaration.")
        return VarStmt(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        if self.match("print"):
            return self.parse_print_stmt()
        if self.match("for"):
            return self.parse_for_stmt()
        if self.match("if"):
            return self.parse_if_stmt()
        if self.match("return"):
            return self.parse_return_stmt()
        if self.match("while"):
            return self.parse_while_stmt()
        if self.match("break"):
            return BreakStmt(self.parse_loop_jump("break"))
        if self.match("continue"):
            return ContinueStmt(self.parse_loop_jump("continue"))
        if self.match("{"):
            return Block(self.parse_block_body())
        return self.parse_expr_stmt()

    def parse_block_body(self) -> list[Stmt]:
        """Declarations up to the closing '}', which is consumed."""
        stmts: list[Stmt] = []
        while not self.at("}") and not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                stmts.append(stmt)
        self.expect("}", "Expect '}' after block.")
        return stmts

    def parse_print_stmt(self) -> PrintStmt:
        value = self.parse_expr()
        self.expect(";", "Expect ';' after value.")
        return PrintStmt(value)

    def parse_expr_stmt(self) -> ExprStmt:
        expr = self.parse_expr()
        self.expect(";", "Expect ';' after expression.")
        return ExprStmt(expr)

    def parse_if_stmt(self) -> IfStmt:
        self.expect("(", "Expect '(' after 'if'.")
        cond = self.parse_expr()
        self.expect(")", "Expect ')' after if condition.")
        then_branch = self.parse_stmt()
        else_branch: Stmt | None = None
        if self.match("else"):
            else_branch = self.parse_stmt()
        return IfStmt(cond, then_branch, else_branch)

    def parse_while_stmt(self) -> WhileStmt:
        self.expect("(", "Expect '(' after 'while'.")
        cond = self.parse_expr()
        self.expect(")", "Expect ')' after condition.")
        body = self.parse_loop_body()
        return WhileStmt(cond, body)

    def parse_for_stmt(self) -> Stmt:
        """For = 'for' '(' Init Cond? ';' Incr? ')' Body, desugared to while."""
        self.expect("(", "Expect '(' after 'for'.")
        initializer: Stmt | None
        if self.match(";"):
            initializer = None
        elif self.at("var"):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        cond: Expr | None = None
        if not self.at(";"):
            cond = self.parse_expr()
        self.expect(";", "Expect ';' after loop condition.")

        increment: Expr | None = None
        if not self.at(")"):
            increment = self.parse_expr()
        self.expect(")", "Expect ')' after for clauses.")

        body = self.parse_loop_body()
        if increment is not None:
            body = Block([body, ExprStmt(increment)], loop_increment=True)
        if cond is None:
            cond = Literal(True)
        loop: Stmt = WhileStmt(cond, body)
        if initializer is not None:
            loop = Block([initializer, loop])
        return loop

    def parse_loop_body(self) -> Stmt:
        self.loop_depth += 1
        try:
            return self.parse_stmt()
        finally:
            self.loop_depth -= 1

    def parse_loop_jump(self, word: str) -> Token:
        keyword = self.previous()
        if self.loop_depth == 0:
            self.report("Must be inside a loop to use '" + word + "'.", keyword)
        self.expect(";", "Expect ';' after '" + word + "'.")
        return keyword

    def parse_return_stmt(self) -> ReturnStmt:
        keyword = self.previous()
        value: Expr | None = None
        if not self.at(";"):
            value = self.parse_expr()
        self.expect(";", "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_sequence()

    def parse_sequence(self) -> Expr:
        """Sequence = Conditional ( ',' Conditional )*"""
        first = self.parse_conditional()
        if not self.at(","):
            return first
        exprs: list[Expr] = [first]
        while self.match(","):
            exprs.append(self.parse_conditional())
        return Sequence(exprs)

    def parse_conditional(self) -> Expr:
        """Conditional = Assignment ( '?' Conditional ':' Conditional )?"""
        expr = self.parse_assignment()
        if self.match("?"):
            then_expr = self.parse_conditional()
            self.expect(":", "Expect ':' after then branch of conditional expression.")
            else_expr = self.parse_conditional()
            return Ternary(expr, then_expr, else_expr)
        return expr

    def parse_assignment(self) -> Expr:
        """Assignment = Or ( '=' Conditional )?"""
        expr = self.parse_or()
        if self.at("="):
            equals = self.advance()
            value = self.parse_conditional()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.obj, expr.name, value)
            self.report("Invalid assignment target.", equals)
        return expr

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.parse_and()
        while self.at("or"):
            op = self.advance()
            right = self.parse_and()
            left = Logical(left, op, right)
        return left

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.parse_equality()
        while self.at("and"):
            op = self.advance()
            right = self.parse_equality()
            left = Logical(left, op, right)
        return left

    def parse_equality(self) -> Expr:
        """Equality = Comparison ( ( '!=' | '==' ) Comparison )*"""
        left = self.parse_comparison()
        while self.at("!=") or self.at("=="):
            op = self.advance()
            right = self.parse_comparison()
            left = Binary(left, op, right)
        return left

    def parse_comparison(self) -> Expr:
        """Comparison = Term ( ( '>' | '>=' | '<' | '<=' ) Term )*"""
        left = self.parse_term()
        while self.at(">") or self.at(">=") or self.at("<") or self.at("<="):
            op = self.advance()
            right = self.parse_term()
            left = Binary(left, op, right)
        return left

    def parse_term(self) -> Expr:
        """Term = Factor ( ( '-' | '+' ) Factor )*"""
        left = self.parse_factor()
        while self.at("-") or self.at("+"):
            op = self.advance()
            right = self.parse_factor()
            left = Binary(left, op, right)
        return left

    def parse_factor(self) -> Expr:
        """Factor = Unary ( ( '/' | '*' ) Unary )*"""
        left = self.parse_unary()
        while self.at("/") or self.at("*"):
            op = self.advance()
            right = self.parse_unary()
            left = Binary(left, op, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.at("!") or self.at("-"):
            op = self.advance()
            operand = self.parse_unary()
            return Unary(op, operand)
        return self.parse_call()

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.parse_primary()
        while True:
            if self.match("("):
                expr = self.finish_call(expr)
            elif self.match("."):
                name = self.expect(TK_IDENT, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        args: list[Expr] = []
        if not self.at(")"):
            while True:
                if len(args) >= MAX_ARGS:
                    self.report(
                        "Can't have more than " + str(MAX_ARGS) + " arguments.",
                        self.current(),
                    )
                args.append(self.parse_conditional())
                if not self.match(","):
                    break
        paren = self.expect(")", "Expect ')' after arguments.")
        return Call(callee, paren, args)

    def parse_primary(self) -> Expr:
        """Parse a primary expression."""
        tok = self.current()

        if tok.type == "false":
            self.advance()
            return Literal(False)
        if tok.type == "true":
            self.advance()
            return Literal(True)
        if tok.type == "nil":
            self.advance()
            return Literal(None)
        if tok.type == TK_NUMBER or tok.type == TK_STRING:
            self.advance()
            return Literal(tok.literal)
        if tok.type == "this":
            self.advance()
            return This(tok)
        if tok.type == TK_IDENT:
            self.advance()
            return Variable(tok)
        if tok.type == "(":
            self.advance()
            inner = self.parse_expr()
            self.expect(")", "Expect ')' after expression.")
            return Grouping(inner)
        if tok.type == "fun":
            self.advance()
            self.expect("(", "Expect '(' after 'fun'.")
            return self.parse_function_rest("function")

        raise self.error("Expect expression.")


def parse_tokens(tokens: list[Token]) -> tuple[list[Stmt], list[ParseError]]:
    """Parse a token list. Returns (statements, errors)."""
    parser = Parser(tokens)
    stmts = parser.parse_program()
    return stmts, parser.errors
