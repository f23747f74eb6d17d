from ast_nodes import Program, Literal, Binary
from bytecode import Address, BytecodeProgram, Integer
from errors import CompileError
from lexer import Lexer
from parser import Parser


BINARY_OPCODES = {
    "+": "ADD",
    "-": "SUB",
    "*": "MUL",
    "/": "DIV",
}

# Heap slot holding the running result
ACCUMULATOR = 0


class Compiler:
    def __init__(self, reclaim: bool = False):
        self.bc = BytecodeProgram()
        # Reset AR after each operation so operand slots get reused.
        self.reclaim = reclaim

    def _debug_for(self, node):
        line = getattr(node, "line", None)
        if line is None:
            return None
        return {"line": line, "column": getattr(node, "column", None)}

    def emit(self, opcode, arg=None, node=None):
        return self.bc.emit(opcode, arg, debug=self._debug_for(node))

    def compile(self, node):
        # entry point
        if not isinstance(node, Program):
            raise CompileError("Compiler expects a Program node at the top")
        self.compile_expr(node.expr)
        return self.bc

    def compile_expr(self, node):
        # Unwind the left-nested chain so long expressions don't hit the recursion limit.
        chain = []
        while isinstance(node, Binary):
            chain.append(node)
            node = node.left

        if not isinstance(node, Literal):
            raise CompileError(f"Unknown node type: {type(node).__name__}")
        self.emit("STORE", Integer(node.value), node)

        for binary in reversed(chain):
            if not isinstance(binary.right, Literal):
                raise CompileError("Right operand must be a literal", binary.line, binary.column)
            opcode = BINARY_OPCODES.get(binary.op)
            if opcode is None:
                raise CompileError(f"Unknown operator: {binary.op}", binary.line, binary.column)

            # accumulator address is on the stack; store the operand on top of it
            self.emit("STORE", Integer(binary.right.value), binary.right)
            self.emit(opcode, node=binary)

            if self.reclaim:
                # AR := accumulator + 1, freeing the operand slot
                self.emit("PUSH", Address(ACCUMULATOR + 1), binary)
                self.emit("AR", node=binary)


def compile_source(source: str, reclaim: bool = False):
    lexer = Lexer(source)
    parser = Parser(lexer)
    program = parser.parse()
    return Compiler(reclaim=reclaim).compile(program)
