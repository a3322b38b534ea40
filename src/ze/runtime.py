"""Ze runtime — tree-walking evaluation of a resolved program.

Runs statements against a chain of environments. Variable uses recorded in the
resolver's side-table are looked up at a fixed distance; everything else is a
global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import sys
import time
from typing import Callable, TextIO

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
from .tokens import Token

# Each Ze call nests a handful of Python frames.
RECURSION_LIMIT = 10000


# ============================================================
# Diagnostics
# ============================================================


class ZeRuntimeError(Exception):
    """Error raised while evaluating; aborts the rest of the run."""

    def __init__(self, msg: str, token: Token):
        super().__init__(msg)
        self.msg = msg
        self.token = token

    def format(self) -> str:
        return self.msg + "\n[line " + str(self.token.line) + "]"


# ============================================================
# Values
# ============================================================


class Value:
    """A runtime value."""

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass
class VNil(Value):
    def to_string(self) -> str:
        return "none"


@dataclass(eq=False)
class VBool(Value):
    value: bool

    def to_string(self) -> str:
        return "true" if self.value else "false"

    def __hash__(self) -> int:
        return hash(("bool", self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VBool) and self.value == other.value


@dataclass(eq=False)
class VNumber(Value):
    value: float

    def to_string(self) -> str:
        # Integral values print in full decimal, never with an exponent.
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)

    def __hash__(self) -> int:
        return hash(("number", self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VNumber) and self.value == other.value


@dataclass(eq=False)
class VString(Value):
    value: str

    def to_string(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(("string", self.value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VString) and self.value == other.value


@dataclass(eq=False)
class VNative(Value):
    name: str
    params: int
    fn: Callable[[Interpreter, list[Value]], Value]

    def arity(self) -> int:
        return self.params

    def call(self, interpreter: Interpreter, args: list[Value]) -> Value:
        return self.fn(interpreter, args)

    def to_string(self) -> str:
        return f"<native fn {self.name}>"


@dataclass(eq=False)
class VFunction(Value):
    name: str | None
    declaration: FunctionLit
    closure: Environment
    is_initializer: bool = False

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: VInstance) -> VFunction:
        env = Environment(self.closure)
        env.define("this", instance)
        return VFunction(self.name, self.declaration, env, self.is_initializer)

    def call(self, interpreter: Interpreter, args: list[Value]) -> Value:
        env = Environment(self.closure)
        for i, param in enumerate(self.declaration.params):
            env.define(param.lexeme, args[i])
        try:
            interpreter.execute_block(self.declaration.body, env)
        except _Return as r:
            if self.is_initializer:
                return self.closure.get_at(0, "this")
            return r.value
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        return VNil()

    def to_string(self) -> str:
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"


@dataclass(eq=False)
class VClass(Value):
    name: str
    methods: dict[str, VFunction]

    def find_method(self, name: str) -> VFunction | None:
        return self.methods.get(name)

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: Interpreter, args: list[Value]) -> Value:
        instance = VInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, args)
        return instance

    def to_string(self) -> str:
        return self.name


@dataclass(eq=False, repr=False)
class VInstance(Value):
    klass: VClass
    fields: dict[str, Value] = field(default_factory=dict)

    def get(self, name: Token) -> Value:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise ZeRuntimeError(f"Undefined property '{name.lexeme}'.", name)

    def set(self, name: Token, value: Value) -> None:
        self.fields[name.lexeme] = value

    def to_string(self) -> str:
        return f"{self.klass.name} instance"

    def __repr__(self) -> str:
        return f"VInstance({self.klass.name})"


CALLABLE_TYPES = (VNative, VFunction, VClass)


def _literal_value(value: float | str | bool | None) -> Value:
    if value is None:
        return VNil()
    if isinstance(value, bool):
        return VBool(value)
    if isinstance(value, float):
        return VNumber(value)
    return VString(value)


def is_truthy(v: Value) -> bool:
    if isinstance(v, VNil):
        return False
    if isinstance(v, VBool):
        return v.value
    return True


def values_equal(a: Value, b: Value) -> bool:
    if isinstance(a, VNil) and isinstance(b, VNil):
        return True
    if isinstance(a, VNil) or isinstance(b, VNil):
        return False
    return a == b


def stringify(v: Value) -> str:
    return v.to_string()


# ============================================================
# Control flow signals (internal)
# ============================================================


class _Signal(Exception):
    pass


@dataclass
class _Return(_Signal):
    value: Value


class _Break(_Signal):
    pass


class _Continue(_Signal):
    pass


# ============================================================
# Environments
# ============================================================


class Environment:
    """One scope's bindings plus a fixed link to the enclosing scope."""

    def __init__(self, enclosing: Environment | None = None) -> None:
        self.values: dict[str, Value] = {}
        self.enclosing: Environment | None = enclosing

    def define(self, name: str, value: Value) -> None:
        self.values[name] = value

    def get(self, name: Token) -> Value:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise ZeRuntimeError(f"Undefined variable '{name.lexeme}'.", name)

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                raise AssertionError("no environment at distance " + str(distance))
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Value:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Value) -> None:
        self.ancestor(distance).values[name.lexeme] = value


# ============================================================
# Interpreter
# ============================================================


class Interpreter:
    def __init__(self, stdout: TextIO | None = None) -> None:
        self.stdout: TextIO = stdout if stdout is not None else sys.stdout
        self.globals = Environment()
        self.environment = self.globals
        self.locals: dict[Expr, int] = {}
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)
        for name, native in NATIVES.items():
            self.globals.define(name, native)

    def interpret(self, stmts: list[Stmt]) -> ZeRuntimeError | None:
        """Run statements in order. Returns the runtime error that stopped them, if any."""
        try:
            for stmt in stmts:
                self.execute(stmt)
        except ZeRuntimeError as e:
            return e
        return None

    # ---- Statements --------------------------------------------------------

    def execute(self, stmt: Stmt) -> None:
        if isinstance(stmt, ExprStmt):
            self.evaluate(stmt.expr)
            return

        if isinstance(stmt, PrintStmt):
            value = self.evaluate(stmt.expr)
            print(stringify(value), file=self.stdout)
            return

        if isinstance(stmt, VarStmt):
            value: Value = VNil()
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
            return

        if isinstance(stmt, Block):
            self.execute_block(
                stmt.statements,
                Environment(self.environment),
                loop_increment=stmt.loop_increment,
            )
            return

        if isinstance(stmt, IfStmt):
            if is_truthy(self.evaluate(stmt.cond)):
                self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                self.execute(stmt.else_branch)
            return

        if isinstance(stmt, WhileStmt):
            while is_truthy(self.evaluate(stmt.cond)):
                try:
                    self.execute(stmt.body)
                except _Break:
                    break
                except _Continue:
                    continue
            return

        if isinstance(stmt, BreakStmt):
            raise _Break()

        if isinstance(stmt, ContinueStmt):
            raise _Continue()

        if isinstance(stmt, FunctionStmt):
            name = stmt.name.lexeme
            self.environment.define(name, VFunction(name, stmt.function, self.environment))
            return

        if isinstance(stmt, ReturnStmt):
            result: Value = VNil()
            if stmt.value is not None:
                result = self.evaluate(stmt.value)
            raise _Return(result)

        if isinstance(stmt, ClassStmt):
            methods: dict[str, VFunction] = {}
            for method in stmt.methods:
                mname = method.name.lexeme
                methods[mname] = VFunction(
                    mname, method.function, self.environment, mname == "init"
                )
            self.environment.define(stmt.name.lexeme, VClass(stmt.name.lexeme, methods))
            return

        raise AssertionError("unknown statement " + type(stmt).__name__)

    def execute_block(
        self, stmts: list[Stmt], env: Environment, *, loop_increment: bool = False
    ) -> None:
        previous = self.environment
        self.environment = env
        try:
            if loop_increment:
                # [body, increment]: a `continue` out of the body still increments.
                try:
                    self.execute(stmts[0])
                except _Continue:
                    pass
                self.execute(stmts[1])
            else:
                for stmt in stmts:
                    self.execute(stmt)
        finally:
            self.environment = previous

    # ---- Expressions -------------------------------------------------------

    def evaluate(self, expr: Expr) -> Value:
        if isinstance(expr, Literal):
            return _literal_value(expr.value)

        if isinstance(expr, Grouping):
            return self.evaluate(expr.inner)

        if isinstance(expr, Variable):
            return self._lookup_variable(expr.name, expr)

        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.define(expr.name.lexeme, value)
            return value

        if isinstance(expr, Unary):
            operand = self.evaluate(expr.operand)
            if expr.op.type == "-":
                if not isinstance(operand, VNumber):
                    raise ZeRuntimeError(
                        f"Operand of '{expr.op.lexeme}' must be a number.", expr.op
                    )
                return VNumber(-operand.value)
            return VBool(not is_truthy(operand))

        if isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self._eval_binary(expr.op, left, right)

        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.op.type == "or":
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)

        if isinstance(expr, Ternary):
            if is_truthy(self.evaluate(expr.cond)):
                return self.evaluate(expr.then_expr)
            return self.evaluate(expr.else_expr)

        if isinstance(expr, Sequence):
            result: Value = VNil()
            for sub in expr.exprs:
                result = self.evaluate(sub)
            return result

        if isinstance(expr, Call):
            return self._eval_call(expr)

        if isinstance(expr, FunctionLit):
            return VFunction(None, expr, self.environment)

        if isinstance(expr, Get):
            obj = self.evaluate(expr.obj)
            if not isinstance(obj, VInstance):
                raise ZeRuntimeError("Only instances have properties.", expr.name)
            return obj.get(expr.name)

        if isinstance(expr, Set):
            obj = self.evaluate(expr.obj)
            if not isinstance(obj, VInstance):
                raise ZeRuntimeError("Only instances have fields.", expr.name)
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value

        if isinstance(expr, This):
            return self._lookup_variable(expr.keyword, expr)

        raise AssertionError("unknown expression " + type(expr).__name__)

    def _lookup_variable(self, name: Token, expr: Expr) -> Value:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _eval_call(self, call: Call) -> Value:
        callee = self.evaluate(call.callee)
        args = [self.evaluate(a) for a in call.args]
        if not isinstance(callee, CALLABLE_TYPES):
            raise ZeRuntimeError("Can only call functions and classes.", call.paren)
        arity = callee.arity()
        if len(args) != arity:
            raise ZeRuntimeError(
                f"Expected {arity} arguments but got {len(args)}.", call.paren
            )
        try:
            return callee.call(self, args)
        except RecursionError:
            raise ZeRuntimeError("Stack overflow.", call.paren) from None

    def _eval_binary(self, op: Token, left: Value, right: Value) -> Value:
        kind = op.type
        if kind == "==":
            return VBool(values_equal(left, right))
        if kind == "!=":
            return VBool(not values_equal(left, right))

        if kind == "+":
            if isinstance(left, VNumber) and isinstance(right, VNumber):
                return VNumber(left.value + right.value)
            if isinstance(left, VString) and isinstance(right, VString):
                return VString(left.value + right.value)
            if isinstance(left, VString) and isinstance(right, VNumber):
                return VString(left.value + repr(right.value))
            if isinstance(left, VNumber) and isinstance(right, VString):
                return VString(repr(left.value) + right.value)
            raise ZeRuntimeError("Operands of '+' must be two numbers or two strings.", op)

        if not isinstance(left, VNumber) or not isinstance(right, VNumber):
            raise ZeRuntimeError(f"Operands of '{op.lexeme}' must be numbers.", op)
        a = left.value
        b = right.value
        if kind == "-":
            return VNumber(a - b)
        if kind == "*":
            return VNumber(a * b)
        if kind == "/":
            if b == 0.0:
                raise ZeRuntimeError("Divide by zero.", op)
            return VNumber(a / b)
        if kind == ">":
            return VBool(a > b)
        if kind == ">=":
            return VBool(a >= b)
        if kind == "<":
            return VBool(a < b)
        if kind == "<=":
            return VBool(a <= b)

        raise ZeRuntimeError(f"Unknown operator '{op.lexeme}'.", op)


# ---- Natives ---------------------------------------------------------------


def _native_clock(interpreter: Interpreter, args: list[Value]) -> Value:
    return VNumber(time.time())


NATIVES: dict[str, VNative] = {
    "clock": VNative("clock", 0, _native_clock),
}
