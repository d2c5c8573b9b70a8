from collections import namedtuple

# Token types produced by the lexer
NUMBER = 'NUMBER'
IDENTIFIER = 'IDENTIFIER'
EQUALS = 'EQUALS'
LPAREN = 'LPAREN'
RPAREN = 'RPAREN'
ANGLE = 'ANGLE'
DOTS = 'DOTS'
COMMA = 'COMMA'
LBRACKET = 'LBRACKET'
RBRACKET = 'RBRACKET'
CHAR = 'CHAR'

# Single characters that map straight onto a token type
SINGLE_CHAR_TOKENS = {
    '=': EQUALS,
    '(': LPAREN,
    ')': RPAREN,
    ',': COMMA,
    '[': LBRACKET,
    ']': RBRACKET,
    '<': ANGLE,
    '>': ANGLE,
}

# Only these separate tokens; any other whitespace character is a CHAR token
WHITESPACE = ' \t\r\n'

COMMENT_OPEN = '/-'
COMMENT_CLOSE = '-/'


# Token represents a single unit of TBT source with its position
class Token(namedtuple('Token', ['type', 'value', 'line', 'column'])):
    __slots__ = ()

    def __str__(self):
        return f"Token({self.type}, {self.value!r}, line={self.line}, col={self.column})"


# Lexer breaks TBT source code into a flat list of tokens.
# It never raises: characters it does not know become CHAR tokens and the
# parser decides what to do with them.
class Lexer:
    def __init__(self, text):
        self.text = text          # Source code to tokenize
        self.pos = 0              # Current position in text
        self.line = 1             # Current line number
        self.column = 1           # Current column number
        self.tokens = []          # List of tokens

    def tokenize(self):
        while self.pos < len(self.text):
            char = self.text[self.pos]

            if char in WHITESPACE:
                self._advance()
                continue

            # Block comments: /- ... -/ (may span lines)
            if self.text.startswith(COMMENT_OPEN, self.pos):
                self._skip_comment()
                continue

            if '0' <= char <= '9':
                self.tokens.append(self._number())
            elif _is_ascii_word_char(char):
                line, column = self.line, self.column
                self.tokens.append(Token(IDENTIFIER, self._read_word(), line, column))
            elif char == '.':
                self.tokens.append(self._dots())
            elif char in SINGLE_CHAR_TOKENS:
                self.tokens.append(Token(SINGLE_CHAR_TOKENS[char], char, self.line, self.column))
                self._advance()
            else:
                self.tokens.append(Token(CHAR, char, self.line, self.column))
                self._advance()
        return self.tokens

    # Helper methods for tokenization
    def _advance(self):
        if self.text[self.pos] == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1

    def _skip_comment(self):
        self._advance()
        self._advance()
        while self.pos < len(self.text):
            if self.text.startswith(COMMENT_CLOSE, self.pos):
                self._advance()
                self._advance()
                return
            self._advance()

    def _read_word(self):
        start = self.pos
        while self.pos < len(self.text) and _is_ascii_word_char(self.text[self.pos]):
            self._advance()
        return self.text[start:self.pos]

    def _number(self):
        start = self.pos
        line, column = self.line, self.column
        while self.pos < len(self.text) and self.text[self.pos] in '0123456789':
            self._advance()
        return Token(NUMBER, int(self.text[start:self.pos]), line, column)

    def _dots(self):
        start = self.pos
        line, column = self.line, self.column
        while self.pos < len(self.text) and self.text[self.pos] == '.':
            self._advance()
        return Token(DOTS, self.text[start:self.pos], line, column)


def _is_ascii_word_char(char):
    return char == '_' or ('a' <= char <= 'z') or ('A' <= char <= 'Z') or ('0' <= char <= '9')


def tokenize(source):
    """Tokenize TBT source text.

    Args:
        source (str): The program text

    Returns:
        list: Token objects in source order
    """
    return Lexer(source).tokenize()
