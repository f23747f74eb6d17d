import re

from bytecode import INT_MAX, INT_MIN
from errors import CompileError


INTEGER_RE = re.compile(r"[+-]?[0-9]+")

OPERATORS = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "STAR",
    "/": "SLASH",
}


class Token:
    def __init__(self, type, value=None, line=1, column=1):
        self.type = type
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self):
        if self.value is not None:
            return f"{self.type}({self.value})"
        return f"{self.type}"


class Lexer:
    """Whitespace-delimited tokenizer shared by the expression front end and the assembler.

    A token is a maximal run of non-whitespace characters, so ``1+2`` is a
    single (invalid) word rather than three tokens.
    """

    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.current_char = text[0] if text else None
        self.line = 1
        self.column = 1

    def advance(self):
        # track line/column based on current_char before moving
        if self.current_char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    # skip whitespace except newlines
    def skip_whitespace(self):
        while self.current_char and self.current_char != "\n" and self.current_char.isspace():
            self.advance()

    def skip_comment(self):
        while self.current_char and self.current_char != "\n":
            self.advance()

    def read_word(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and not self.current_char.isspace():
            result += self.current_char
            self.advance()

        if result in OPERATORS:
            return Token(OPERATORS[result], result, line=start_line, column=start_col)

        if INTEGER_RE.fullmatch(result):
            value = int(result)
            if value < INT_MIN or value > INT_MAX:
                raise CompileError(f"Integer literal out of range: {result}", start_line, start_col)
            return Token("NUMBER", value, line=start_line, column=start_col)

        if result == "true":
            return Token("BOOL", True, line=start_line, column=start_col)
        if result == "false":
            return Token("BOOL", False, line=start_line, column=start_col)
        if result == "null":
            return Token("NULL", line=start_line, column=start_col)

        if result.isidentifier():
            return Token("IDENT", result, line=start_line, column=start_col)

        raise CompileError(f"Invalid token '{result}'", start_line, start_col)

    def get_next_token(self):
        while self.current_char:

            # NEWLINE is a real token (the assembler is line oriented)
            if self.current_char == "\n":
                start_line, start_col = self.line, self.column
                self.advance()
                return Token("NEWLINE", line=start_line, column=start_col)

            if self.current_char.isspace():
                self.skip_whitespace()
                continue

            if self.current_char == "#":
                self.skip_comment()
                continue

            return self.read_word()

        return Token("EOF", line=self.line, column=self.column)

    def tokenize(self):
        tokens = []
        while True:
            tok = self.get_next_token()
            tokens.append(tok)
            if tok.type == "EOF":
                return tokens
