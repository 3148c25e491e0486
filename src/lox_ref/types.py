from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, TextIO, Tuple
from typing_extensions import TypeAlias
from .tree import Node, node_line

# ---------- Value Model ----------

@dataclass(frozen=True)
class LoxNil:
    def __repr__(self) -> str:
        return "nil"

@dataclass(frozen=True)
class LoxNumber:
    value: float
    def __repr__(self) -> str:
        v = self.value
        if not v.is_integer():
            return repr(v)
        # int() drops the sign of -0.0
        return "-0" if math.copysign(1.0, v) < 0 and v == 0 else str(int(v))

@dataclass(frozen=True)
class LoxString:
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(frozen=True)
class LoxBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class LoxFn:
    """User function: parameter names plus the body block. No captured scope."""
    name: str
    params: Tuple[str, ...]
    body: Node
    def __repr__(self) -> str:
        return f"<fn {self.name}>"

NativeFn = Callable[[], object]

@dataclass(frozen=True)
class LoxNative:
    """Zero-argument host callable."""
    name: str
    fn: NativeFn = field(compare=False)
    def __repr__(self) -> str:
        return f"<native fn {self.name}>"

LoxValue: TypeAlias = (
    LoxNil
    | LoxNumber
    | LoxString
    | LoxBool
    | LoxFn
    | LoxNative
)

def kind_name(value: LoxValue) -> str:
    match value:
        case LoxNil():
            return "nil"
        case LoxNumber():
            return "number"
        case LoxString():
            return "string"
        case LoxBool():
            return "boolean"
        case LoxFn():
            return "function"
        case LoxNative():
            return "native function"
        case _:
            return type(value).__name__

# ---------- Control flow ----------

@dataclass(frozen=True)
class Returning:
    """Outcome of a `return` statement travelling up to the call boundary."""
    value: LoxValue

# ---------- Environment ----------

class Frame:
    """One lexical scope linked to its enclosing scope."""

    def __init__(self, parent: Optional['Frame']=None, out: Optional[TextIO]=None):
        self.parent = parent
        self.vars: Dict[str, LoxValue] = {}
        self.out: TextIO

        if out is not None:
            self.out = out
        elif parent is not None:
            self.out = parent.out
        else:
            self.out = sys.stdout

        if parent is None and Builtins.natives:
            for name, native in Builtins.natives.items():
                self.vars[name] = native

    def child(self) -> 'Frame':
        return Frame(parent=self)

    def define(self, name: str, val: LoxValue) -> None:
        self.vars[name] = val

    def get(self, name: str) -> LoxValue:
        frame: Optional[Frame] = self

        while frame is not None:
            if name in frame.vars:
                return frame.vars[name]
            frame = frame.parent

        raise LoxNameError(name)

    def assign(self, name: str, val: LoxValue) -> None:
        frame: Optional[Frame] = self

        while frame is not None:
            if name in frame.vars:
                frame.vars[name] = val
                return
            frame = frame.parent

        raise LoxNameError(name)

# ---------- Exceptions ----------

class LoxRuntimeError(Exception):
    line: Optional[int]

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.line = None

    def attach(self, node: Node) -> None:
        """Record the source line of the innermost node that failed."""
        if self.line is None:
            self.line = node_line(node)

    def __str__(self) -> str:
        if self.line is None:
            return self.message

        return f"[line {self.line}] {self.message}"

class LoxOperandError(LoxRuntimeError):
    def __init__(self, op: str, operand: LoxValue, expected: str):
        super().__init__(f"Operand of '{op}' must be {expected}; got {kind_name(operand)}")
        self.op = op
        self.operand = operand

class LoxOperandsError(LoxRuntimeError):
    def __init__(self, op: str, left: LoxValue, right: LoxValue):
        super().__init__(f"Invalid operand types for '{op}': left={kind_name(left)} right={kind_name(right)}")
        self.op = op
        self.left = left
        self.right = right

class LoxNameError(LoxRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Undefined variable '{name}'")
        self.name = name

class LoxUndefinedCalleeError(LoxRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Undefined function '{name}'")
        self.name = name

class LoxNotCallableError(LoxRuntimeError):
    def __init__(self, name: str, value: LoxValue):
        super().__init__(f"'{name}' is a {kind_name(value)}, not a function")
        self.name = name
        self.value = value

class LoxArityError(LoxRuntimeError):
    def __init__(self, name: str, expected: int, got: int):
        super().__init__(f"{name} expects {expected} argument(s); got {got}")
        self.name = name
        self.expected = expected
        self.got = got

class Builtins:
    natives: Dict[str, LoxNative] = {}
