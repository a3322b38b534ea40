"""Ze resolver — static scope analysis over a parsed program.

Computes, for every local variable use, how many environments separate the
use from its declaration. The interpreter walks exactly that many links at
run time, so each scope opened here mirrors one environment the interpreter
creates: blocks, function calls, and the `this` environment of bound methods.
"""

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
from .tokens import TK_EOF, Token


FN_NONE = "none"
FN_FUNCTION = "function"
FN_METHOD = "method"
FN_INITIALIZER = "initializer"

CLASS_NONE = "none"
CLASS_CLASS = "class"

DECLARED = "declared"
DEFINED = "defined"
READ = "read"


class ResolveError(StaticError):
    """Static scope violation located at a token."""

    def __init__(self, msg: str, tok: Token):
        if tok.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + tok.lexeme + "'"
        super().__init__(msg, tok.line, where)
        self.token: Token = tok


class _Local:
    def __init__(self, name: Token, state: str):
        self.name: Token = name
        self.state: str = state


class Resolver:
    def __init__(self, locals_: dict[Expr, int] | None = None) -> None:
        self.locals: dict[Expr, int] = locals_ if locals_ is not None else {}
        self.errors: list[ResolveError] = []
        self.scopes: list[dict[str, _Local]] = []
        self.current_function: str = FN_NONE
        self.current_class: str = CLASS_NONE
        self.loop_depth: int = 0

    def error(self, msg: str, tok: Token) -> None:
        self.errors.append(ResolveError(msg, tok))

    # ── Scope management ──────────────────────────────────────

    def begin_scope(self) -> None:
        self.scopes.append({})

    def end_scope(self) -> None:
        scope = self.scopes.pop()
        for local in scope.values():
            if local.state == DEFINED:
                self.error("Local variable is not used.", local.name)

    def declare(self, name: Token) -> None:
        if len(self.scopes) == 0:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error("Already a variable with this name in this scope.", name)
        scope[name.lexeme] = _Local(name, DECLARED)

    def define(self, name: Token) -> None:
        if len(self.scopes) == 0:
            return
        self.scopes[-1][name.lexeme].state = DEFINED

    def resolve_local(self, expr: Expr, name: Token, is_read: bool) -> None:
        i = len(self.scopes) - 1
        while i >= 0:
            scope = self.scopes[i]
            if name.lexeme in scope:
                self.locals[expr] = len(self.scopes) - 1 - i
                if is_read:
                    scope[name.lexeme].state = READ
                return
            i -= 1
        # Not found: global, resolved dynamically.

    # ── Statements ────────────────────────────────────────────

    def resolve_stmts(self, stmts: list[Stmt]) -> None:
        for stmt in stmts:
            self.resolve_stmt(stmt)

    def resolve_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Block):
            self.begin_scope()
            self.resolve_stmts(stmt.statements)
            self.end_scope()
        elif isinstance(stmt, VarStmt):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
        elif isinstance(stmt, FunctionStmt):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt.function, FN_FUNCTION)
        elif isinstance(stmt, ClassStmt):
            self.resolve_class(stmt)
        elif isinstance(stmt, ExprStmt):
            self.resolve_expr(stmt.expr)
        elif isinstance(stmt, PrintStmt):
            self.resolve_expr(stmt.expr)
        elif isinstance(stmt, IfStmt):
            self.resolve_expr(stmt.cond)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, WhileStmt):
            self.resolve_expr(stmt.cond)
            self.loop_depth += 1
            self.resolve_stmt(stmt.body)
            self.loop_depth -= 1
        elif isinstance(stmt, BreakStmt):
            if self.loop_depth == 0:
                self.error("Can't use 'break' outside of a loop.", stmt.keyword)
        elif isinstance(stmt, ContinueStmt):
            if self.loop_depth == 0:
                self.error("Can't use 'continue' outside of a loop.", stmt.keyword)
        elif isinstance(stmt, ReturnStmt):
            if self.current_function == FN_NONE:
                self.error("Can't return from top-level code.", stmt.keyword)
            if stmt.value is not None:
                if self.current_function == FN_INITIALIZER:
                    self.error("Can't return a value from an initializer.", stmt.keyword)
                self.resolve_expr(stmt.value)
        else:
            raise AssertionError("unknown statement " + type(stmt).__name__)

    def resolve_class(self, stmt: ClassStmt) -> None:
        enclosing_class = self.current_class
        self.current_class = CLASS_CLASS
        self.declare(stmt.name)
        self.define(stmt.name)

        # Mirrors the environment `bind` creates around each method's closure.
        self.begin_scope()
        self.scopes[-1]["this"] = _Local(stmt.name, READ)
        for method in stmt.methods:
            kind = FN_METHOD
            if method.name.lexeme == "init":
                kind = FN_INITIALIZER
            self.resolve_function(method.function, kind)
        self.end_scope()

        self.current_class = enclosing_class

    def resolve_function(self, function: FunctionLit, kind: str) -> None:
        enclosing_function = self.current_function
        enclosing_loops = self.loop_depth
        self.current_function = kind
        self.loop_depth = 0

        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        self.resolve_stmts(function.body)
        self.end_scope()

        self.current_function = enclosing_function
        self.loop_depth = enclosing_loops

    # ── Expressions ───────────────────────────────────────────

    def resolve_expr(self, expr: Expr) -> None:
        if isinstance(expr, Variable):
            if len(self.scopes) > 0:
                local = self.scopes[-1].get(expr.name.lexeme)
                if local is not None and local.state == DECLARED:
                    self.error("Can't read local variable in its own initializer.", expr.name)
            self.resolve_local(expr, expr.name, True)
        elif isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name, False)
        elif isinstance(expr, This):
            if self.current_class == CLASS_NONE:
                self.error("Can't use 'this' outside of a class.", expr.keyword)
                return
            self.resolve_local(expr, expr.keyword, True)
        elif isinstance(expr, FunctionLit):
            self.resolve_function(expr, FN_FUNCTION)
        elif isinstance(expr, (Binary, Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
        elif isinstance(expr, Unary):
            self.resolve_expr(expr.operand)
        elif isinstance(expr, Grouping):
            self.resolve_expr(expr.inner)
        elif isinstance(expr, Ternary):
            self.resolve_expr(expr.cond)
            self.resolve_expr(expr.then_expr)
            self.resolve_expr(expr.else_expr)
        elif isinstance(expr, Sequence):
            for sub in expr.exprs:
                self.resolve_expr(sub)
        elif isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for arg in expr.args:
                self.resolve_expr(arg)
        elif isinstance(expr, Get):
            self.resolve_expr(expr.obj)
        elif isinstance(expr, Set):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.obj)
        elif isinstance(expr, Literal):
            return
        else:
            raise AssertionError("unknown expression " + type(expr).__name__)


# ============================================================
# PUBLIC API
# ============================================================


def resolve(
    stmts: list[Stmt], locals_: dict[Expr, int] | None = None
) -> tuple[dict[Expr, int], list[ResolveError]]:
    """Resolve a parsed program. Returns (side-table, errors).

    Pass an existing side-table to extend it, as a REPL does line by line.
    """
    resolver = Resolver(locals_)
    resolver.resolve_stmts(stmts)
    return resolver.locals, resolver.errors
