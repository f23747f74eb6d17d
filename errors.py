class LadyGreyError(Exception):
    pass


class CompileError(LadyGreyError):
    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return f"Compile error: {self.message}"
        return f"Compile error: {self.message} at line {self.line}, col {self.column}"


class VMFault(LadyGreyError):
    """Fatal fault raised by the VM. The run cannot be resumed afterwards.

    ``VM.step`` fills in ``ip``, ``instruction``, ``snapshot`` and
    ``location`` before the fault leaves the machine.
    """

    kind = "VMFault"

    def __init__(self, message: str, ip: int | None = None, instruction=None, snapshot=None):
        super().__init__(message)
        self.message = message
        self.ip = ip
        self.instruction = instruction
        self.snapshot = snapshot  # {"pc", "ar", "stack", "heap"}
        self.location = None      # debug info of the failing instruction ({"line", "column"})

    def format(self, indent: str = "") -> str:
        lines = [f"{indent}{self.kind}: {self.message}"]
        if self.ip is not None:
            lines.append(f"{indent}  ip={self.ip:04d} instruction={self.instruction!r}")
        if self.location and self.location.get("line") is not None:
            lines.append(f"{indent}  at line {self.location['line']}, col {self.location.get('column')}")
        if self.snapshot is not None:
            snap = self.snapshot
            lines.append(f"{indent}  pc={snap['pc']} ar={snap['ar']}")
            lines.append(f"{indent}  stack={snap['stack']}")
            heap = ", ".join(str(v) for v in snap["heap"])
            lines.append(f"{indent}  heap=[{heap}]")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


class StackUnderflow(VMFault):
    kind = "StackUnderflow"


class HeapOutOfBounds(VMFault):
    kind = "HeapOutOfBounds"


class ArithmeticFault(VMFault):
    kind = "ArithmeticFault"


class StepLimitExceeded(VMFault):
    kind = "StepLimitExceeded"
