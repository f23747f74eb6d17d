from ast_nodes import Program, Literal, Binary
from errors import CompileError


OPERATOR_TOKENS = ("PLUS", "MINUS", "STAR", "SLASH")


class Parser:
    def __init__(self, lexer):
        self.lexer = lexer
        self.current_token = self.lexer.get_next_token()

    # move to next token, but only if it matches what we expect
    def eat(self, token_type):
        if self.current_token.type == token_type:
            self.current_token = self.lexer.get_next_token()
        else:
            tok = self.current_token
            raise CompileError(f"Expected {token_type}, got {self.describe(tok)}", tok.line, tok.column)

    def error_here(self, message):
        tok = self.current_token
        raise CompileError(message, tok.line, tok.column)

    def describe(self, tok):
        if tok.type == "EOF":
            return "end of input"
        if tok.value is not None:
            return f"'{tok.value}'"
        return tok.type

    # expressions may span lines
    def skip_newlines(self):
        while self.current_token.type == "NEWLINE":
            self.eat("NEWLINE")

    # program -> expr EOF
    def parse(self):
        self.skip_newlines()
        if self.current_token.type == "EOF":
            self.error_here("Empty expression")

        node = self.expr()

        self.skip_newlines()
        if self.current_token.type != "EOF":
            self.error_here(f"Expected operator, got {self.describe(self.current_token)}")
        return Program(node)

    # expr -> literal (OPERATOR literal)*, strictly left to right
    def expr(self):
        node = self.literal()

        self.skip_newlines()
        while self.current_token.type in OPERATOR_TOKENS:
            op_token = self.current_token
            self.eat(op_token.type)
            right = self.literal()
            node = Binary(node, op_token.value, right)
            node.line = op_token.line
            node.column = op_token.column
            self.skip_newlines()

        return node

    def literal(self):
        self.skip_newlines()
        tok = self.current_token
        if tok.type != "NUMBER":
            if tok.type == "EOF":
                self.error_here("Missing operand at end of input")
            self.error_here(f"Expected integer literal, got {self.describe(tok)}")
        self.eat("NUMBER")
        node = Literal(tok.value)
        node.line = tok.line
        node.column = tok.column
        return node
