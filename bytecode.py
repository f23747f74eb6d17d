from dataclasses import dataclass
from typing import NewType, Union

from errors import CompileError


INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

# Heap index. Kept apart from Integer so stack entries are never mistaken for values.
Address = NewType("Address", int)


@dataclass(frozen=True)
class Integer:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Bool:
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class Null:
    def __str__(self) -> str:
        return "null"


NULL = Null()

Value = Union[Integer, Bool, Null]


# opcode -> operand kind ("value", "address" or None)
OPCODES = {
    "STORE": "value",
    "PUSH": "address",
    "COPY": None,
    "MOVE": None,
    "AR": None,
    "DUP": None,
    "SWAP": None,
    "JUMP": None,
    "EQUAL": None,
    "NOT": None,
    "INC": None,
    "DEC": None,
    "ADD": None,
    "SUB": None,
    "MUL": None,
    "DIV": None,
}


def is_value(value) -> bool:
    if isinstance(value, Integer):
        return (
            isinstance(value.value, int)
            and not isinstance(value.value, bool)
            and INT_MIN <= value.value <= INT_MAX
        )
    if isinstance(value, Bool):
        return isinstance(value.value, bool)
    return isinstance(value, Null)


def is_address(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def check_instruction(opcode, arg):
    kind = OPCODES.get(opcode, False)
    if kind is False:
        raise CompileError(f"Unknown opcode: {opcode!r}")
    if kind == "value":
        if not is_value(arg):
            raise CompileError(f"{opcode} expects a value operand, got {arg!r}")
    elif kind == "address":
        if not is_address(arg):
            raise CompileError(f"{opcode} expects a non-negative address, got {arg!r}")
    elif arg is not None:
        raise CompileError(f"{opcode} takes no operand, got {arg!r}")


def format_value(value) -> str:
    return str(value)


def format_instruction(ins) -> str:
    opcode, arg = ins
    if arg is None:
        return opcode.lower()
    return f"{opcode.lower()} {format_value(arg)}"


class BytecodeProgram:
    def __init__(self):
        self.instructions = []   # list of (OPCODE, arg)
        self.debug = []          # list of debug dicts (e.g. {"line": int, "column": int}) aligned with instructions

    def emit(self, opcode, arg=None, debug=None):
        # returns instruction index
        check_instruction(opcode, arg)
        self.instructions.append((opcode, arg))
        self.debug.append(debug)
        return len(self.instructions) - 1

    def __len__(self):
        return len(self.instructions)
