class ASTNode:
    # Optional source position (1-based). Parser sets these.
    line: int | None = None
    column: int | None = None


class Program(ASTNode):
    def __init__(self, expr):
        self.expr = expr


class Literal(ASTNode):
    def __init__(self, value):
        self.value = value  # int


class Binary(ASTNode):
    def __init__(self, left, op, right):
        self.left = left    # accumulated expression so far
        self.op = op        # "+", "-", "*", "/"
        self.right = right  # always a Literal (flat grammar)
