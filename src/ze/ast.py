"""Ze AST — parse-time node definitions.

Nodes use identity equality and hashing (eq=False): the resolver's side-table
is keyed on the node objects themselves, so two syntactically identical
expressions are always distinct keys.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import Token


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(eq=False)
class Expr:
    """Base for all expressions."""


@dataclass(eq=False)
class Literal(Expr):
    """Number, string, true, false, nil."""

    value: float | str | bool | None


@dataclass(eq=False)
class Grouping(Expr):
    """( expr )."""

    inner: Expr


@dataclass(eq=False)
class Unary(Expr):
    """op operand, op is '!' or '-'."""

    op: Token
    operand: Expr


@dataclass(eq=False)
class Binary(Expr):
    """left op right for arithmetic, comparison, and equality."""

    left: Expr
    op: Token
    right: Expr


@dataclass(eq=False)
class Logical(Expr):
    """left and/or right, short-circuiting."""

    left: Expr
    op: Token
    right: Expr


@dataclass(eq=False)
class Ternary(Expr):
    """cond ? then_expr : else_expr."""

    cond: Expr
    then_expr: Expr
    else_expr: Expr


@dataclass(eq=False)
class Sequence(Expr):
    """a, b, c; yields the last."""

    exprs: list[Expr]


@dataclass(eq=False)
class Variable(Expr):
    """Bare name reference."""

    name: Token


@dataclass(eq=False)
class Assign(Expr):
    """name = value."""

    name: Token
    value: Expr


@dataclass(eq=False)
class Call(Expr):
    """callee(args). paren is the closing ')' for error lines."""

    callee: Expr
    paren: Token
    args: list[Expr]


@dataclass(eq=False)
class FunctionLit(Expr):
    """fun (params) { body }. Also the body of declared functions and methods."""

    params: list[Token]
    body: list[Stmt]


@dataclass(eq=False)
class Get(Expr):
    """obj.name."""

    obj: Expr
    name: Token


@dataclass(eq=False)
class Set(Expr):
    """obj.name = value."""

    obj: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class This(Expr):
    """this."""

    keyword: Token


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(eq=False)
class Stmt:
    """Base for all statements."""


@dataclass(eq=False)
class ExprStmt(Stmt):
    """Bare expression as statement."""

    expr: Expr


@dataclass(eq=False)
class PrintStmt(Stmt):
    """print expr;"""

    expr: Expr


@dataclass(eq=False)
class VarStmt(Stmt):
    """var name = initializer?;"""

    name: Token
    initializer: Expr | None


@dataclass(eq=False)
class Block(Stmt):
    """{ statements }.

    loop_increment marks the body of a desugared `for`: its last statement is
    the increment clause, which still runs when the user body hits `continue`.
    """

    statements: list[Stmt]
    loop_increment: bool = False


@dataclass(eq=False)
class IfStmt(Stmt):
    """if (cond) then_branch else else_branch?"""

    cond: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(eq=False)
class WhileStmt(Stmt):
    """while (cond) body. Also the target of `for` desugaring."""

    cond: Expr
    body: Stmt


@dataclass(eq=False)
class BreakStmt(Stmt):
    """break;"""

    keyword: Token


@dataclass(eq=False)
class ContinueStmt(Stmt):
    """continue;"""

    keyword: Token


@dataclass(eq=False)
class FunctionStmt(Stmt):
    """fun name(params) { body }, or a method inside a class body."""

    name: Token
    function: FunctionLit


@dataclass(eq=False)
class ReturnStmt(Stmt):
    """return value?;"""

    keyword: Token
    value: Expr | None


@dataclass(eq=False)
class ClassStmt(Stmt):
    """class Name { methods }."""

    name: Token
    methods: list[FunctionStmt]
