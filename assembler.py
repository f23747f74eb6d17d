"""Text form of VM programs.

One instruction per line::

    store 5      # heap[AR] := 5
    push 0
    add

Mnemonics are case-insensitive. ``store`` takes an integer, ``true``,
``false`` or ``null``; ``push`` takes a non-negative address. ``#`` starts
a comment.
"""

from bytecode import OPCODES, Address, BytecodeProgram, Bool, Integer, NULL, format_instruction
from errors import CompileError
from lexer import Lexer


def _operand(opcode, tok):
    kind = OPCODES[opcode]
    if kind == "value":
        if tok.type == "NUMBER":
            return Integer(tok.value)
        if tok.type == "BOOL":
            return Bool(tok.value)
        if tok.type == "NULL":
            return NULL
        raise CompileError(f"{opcode.lower()} expects an integer, true, false or null", tok.line, tok.column)
    if tok.type != "NUMBER" or tok.value < 0:
        raise CompileError(f"{opcode.lower()} expects a non-negative address", tok.line, tok.column)
    return Address(tok.value)


def assemble(text: str):
    bc = BytecodeProgram()
    lexer = Lexer(text)
    tok = lexer.get_next_token()

    while tok.type != "EOF":
        if tok.type == "NEWLINE":
            tok = lexer.get_next_token()
            continue

        if tok.type != "IDENT":
            raise CompileError(f"Expected instruction mnemonic, got {tok.value!r}", tok.line, tok.column)
        opcode = tok.value.upper()
        if opcode not in OPCODES:
            raise CompileError(f"Unknown instruction: {tok.value}", tok.line, tok.column)
        debug = {"line": tok.line, "column": tok.column}

        tok = lexer.get_next_token()
        arg = None
        if OPCODES[opcode] is not None:
            if tok.type in ("NEWLINE", "EOF"):
                raise CompileError(f"{opcode.lower()} is missing its operand", debug["line"], debug["column"])
            arg = _operand(opcode, tok)
            tok = lexer.get_next_token()

        if tok.type not in ("NEWLINE", "EOF"):
            raise CompileError(f"Unexpected operand for {opcode.lower()}", tok.line, tok.column)

        bc.emit(opcode, arg, debug=debug)

    return bc


def disassemble(program) -> str:
    instructions = getattr(program, "instructions", program)
    return "\n".join(format_instruction(ins) for ins in instructions) + "\n"


def listing(program):
    instructions = getattr(program, "instructions", program)
    return [f"{i:04d}  {format_instruction(ins)}" for i, ins in enumerate(instructions)]
