import sys

from bytecode import INT_MAX, INT_MIN, Address, Bool, Integer, NULL, check_instruction, format_instruction, format_value
from errors import ArithmeticFault, StackUnderflow, StepLimitExceeded, VMFault
from heap import Heap


# Default heap capacity (slots)
HEAP_SIZE = 5

BINARY_OPS = ("ADD", "SUB", "MUL", "DIV", "EQUAL")
UNARY_OPS = ("NOT", "INC", "DEC")


def truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def checked(n: int) -> int:
    if n < INT_MIN or n > INT_MAX:
        raise ArithmeticFault(f"integer overflow: {n}")
    return n


class VM:
    def __init__(
        self,
        bytecode_program,
        heap_size: int = HEAP_SIZE,
        trace: bool = False,
        trace_stream=None,
        max_steps: int | None = None,
    ):
        instructions = getattr(bytecode_program, "instructions", bytecode_program)
        self.instructions = tuple(instructions)
        for opcode, arg in self.instructions:
            check_instruction(opcode, arg)
        self.debug = getattr(bytecode_program, "debug", None) or [None] * len(self.instructions)

        self.heap = Heap(heap_size)
        self.stack: list[Address] = []  # heap addresses, never values
        self.pc = 0                      # program counter
        self.ar = Address(0)             # address register: next free heap slot
        self.jumped = False

        self.max_steps = max_steps  # set to an int to guard against infinite jump loops
        self.steps = 0

        self.trace_enabled = trace
        self.trace_stream = trace_stream

    def pop(self) -> Address:
        if not self.stack:
            raise StackUnderflow("Stack underflow")
        return self.stack.pop()

    def snapshot(self):
        return {
            "pc": self.pc,
            "ar": self.ar,
            "stack": list(self.stack),
            "heap": self.heap.snapshot(),
        }

    def result(self, address: Address = Address(0)):
        return self.heap.load(address)

    def _trace(self, ip: int, ins, skipped: bool):
        stream = self.trace_stream or sys.stderr
        heap = ", ".join(format_value(v) for v in self.heap)
        note = " (type mismatch, skipped)" if skipped else ""
        print(
            f"TRACE ip={ip:04d} {format_instruction(ins)} pc={self.pc} ar={self.ar} stack={self.stack} heap=[{heap}]{note}",
            file=stream,
        )

    def _allocate(self, value):
        # write into heap[AR], push the new address, bump AR
        address = self.ar
        self.heap.store(address, value)
        self.stack.append(address)
        self.ar = Address(address + 1)

    def _binary(self, opcode, left: int, right: int):
        if opcode == "EQUAL":
            return Bool(left == right)
        if opcode == "ADD":
            return Integer(checked(left + right))
        if opcode == "SUB":
            return Integer(checked(left - right))
        if opcode == "MUL":
            return Integer(checked(left * right))
        if right == 0:
            raise ArithmeticFault("division by zero")
        return Integer(checked(truncating_div(left, right)))

    def execute(self, opcode, arg) -> bool:
        """Apply one instruction to the machine state.

        Returns True when the instruction was skipped because its operand
        slots held the wrong variant. PC is left to the caller except for a
        taken JUMP, which sets it directly.
        """
        if opcode == "STORE":
            self._allocate(arg)
            return False

        if opcode == "COPY":
            address = self.pop()
            self._allocate(self.heap.load(address))
            return False

        if opcode == "MOVE":
            address = self.pop()
            self._allocate(self.heap.load(address))
            self.heap.store(address, NULL)
            return False

        if opcode == "AR":
            self.ar = self.pop()
            return False

        if opcode == "PUSH":
            self.stack.append(Address(arg))
            return False

        if opcode == "DUP":
            address = self.pop()
            self.stack.append(address)
            self.stack.append(address)
            return False

        if opcode == "SWAP":
            a = self.pop()
            b = self.pop()
            self.stack.append(a)
            self.stack.append(b)
            return False

        if opcode == "JUMP":
            address = self.pop()
            condition = self.heap.load(address)
            target = self.pop()
            if isinstance(condition, Bool) and condition.value:
                self.pc = target
                self.jumped = True
            return False

        if opcode in BINARY_OPS:
            address = self.pop()
            base = self.pop()
            right = self.heap.load(address)
            left = self.heap.load(base)
            if not (isinstance(left, Integer) and isinstance(right, Integer)):
                return True
            self.heap.store(base, self._binary(opcode, left.value, right.value))
            self.stack.append(base)
            return False

        if opcode in UNARY_OPS:
            address = self.pop()
            value = self.heap.load(address)
            skipped = True
            if opcode == "NOT" and isinstance(value, Bool):
                self.heap.store(address, Bool(not value.value))
                skipped = False
            elif opcode == "INC" and isinstance(value, Integer):
                self.heap.store(address, Integer(checked(value.value + 1)))
                skipped = False
            elif opcode == "DEC" and isinstance(value, Integer):
                self.heap.store(address, Integer(checked(value.value - 1)))
                skipped = False
            # unary instructions hand their address back even when skipped
            self.stack.append(address)
            return skipped

        raise VMFault(f"Unknown opcode: {opcode}")

    def _annotate(self, fault: VMFault, ip: int):
        # attach the failing instruction and machine state once, at the innermost frame
        if fault.ip is not None:
            return
        fault.ip = ip
        fault.instruction = self.instructions[ip] if ip < len(self.instructions) else None
        fault.snapshot = self.snapshot()
        fault.location = self.debug[ip] if ip < len(self.debug) else None

    def step(self) -> bool:
        if self.pc >= len(self.instructions):
            return True

        ip = self.pc
        ins = self.instructions[ip]
        opcode, arg = ins

        self.jumped = False
        try:
            skipped = self.execute(opcode, arg)
        except VMFault as e:
            self._annotate(e, ip)
            raise
        if not self.jumped:
            self.pc += 1

        if self.trace_enabled:
            self._trace(ip, ins, skipped)

        return self.pc >= len(self.instructions)

    def run(self):
        while self.pc < len(self.instructions):
            if self.max_steps is not None:
                self.steps += 1
                if self.steps > self.max_steps:
                    fault = StepLimitExceeded("Step limit exceeded (possible infinite loop)")
                    self._annotate(fault, self.pc)
                    raise fault

            halted = self.step()
            if halted:
                break
        return self.heap
