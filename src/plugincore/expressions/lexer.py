"""Lexer/tokenizer for plugincore arithmetic expressions.

Converts expression strings into a stream of tokens for the parser.

Token types:
- Literals: NUMBER
- Operands: IDENTIFIER (bare field name), QUOTED (quoted field name)
- Operators: PLUS, MINUS, MULTIPLY, DIVIDE
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator


class TokenType(Enum):
    """Types of tokens in the expression language."""

    # Literals
    NUMBER = auto()

    # Operands referencing record fields
    IDENTIFIER = auto()  # carbon-product
    QUOTED = auto()      # "energy/year" or 'energy/year'

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    MULTIPLY = auto()    # *
    DIVIDE = auto()      # /

    # End of input
    EOF = auto()


OPERATOR_TYPES = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.MULTIPLY: "*",
    TokenType.DIVIDE: "/",
}


@dataclass(frozen=True)
class Token:
    """A single token from the lexer.

    Attributes:
        type: The token type
        value: Number value, field name (quotes removed) or operator symbol
        position: Character position in the source string
    """

    type: TokenType
    value: str | int | float | None
    position: int

    @property
    def is_operator(self) -> bool:
        return self.type in OPERATOR_TYPES

    @property
    def is_operand(self) -> bool:
        return self.type in (TokenType.NUMBER, TokenType.IDENTIFIER, TokenType.QUOTED)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, pos={self.position})"


class LexerError(Exception):
    """Error during lexical analysis."""

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} at position {position}")


# Token patterns (order matters - identifiers before numbers so "2a" stays a name)
TOKEN_PATTERNS = [
    # Whitespace (skip)
    (r"\s+", None),

    # Operators
    (r"\+", TokenType.PLUS),
    (r"-", TokenType.MINUS),
    (r"\*", TokenType.MULTIPLY),
    (r"/", TokenType.DIVIDE),

    # Quoted field names
    (r'"[^"]+"', TokenType.QUOTED),
    (r"'[^']+'", TokenType.QUOTED),

    # Bare field names: alphanumeric runs joined by "-", at least one letter
    (r"[0-9]*[a-zA-Z][a-zA-Z0-9]*(?:-[a-zA-Z0-9]+)*", TokenType.IDENTIFIER),

    # Numbers (integer and decimal)
    (r"\d+\.\d+", TokenType.NUMBER),
    (r"\d+", TokenType.NUMBER),
]


class Lexer:
    """Tokenizer for arithmetic expressions.

    Usage:
        lexer = Lexer('2 * "energy/year" + carbon')
        for token in lexer:
            print(token)
    """

    def __init__(self, source: str):
        self.source = source
        self.position = 0
        self._compiled_patterns = [
            (re.compile(pattern), token_type)
            for pattern, token_type in TOKEN_PATTERNS
        ]

    def __iter__(self) -> Iterator[Token]:
        """Iterate over all tokens in the source."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def next_token(self) -> Token:
        """Get the next token from the source."""
        while self.position < len(self.source):
            for pattern, token_type in self._compiled_patterns:
                match = pattern.match(self.source, self.position)
                if match:
                    break
            else:
                raise LexerError(
                    f"Unexpected character '{self.source[self.position]}'",
                    self.position,
                )

            value = match.group()
            start = self.position
            self.position = match.end()

            if token_type is None:
                continue

            token_value: str | int | float = value
            if token_type == TokenType.NUMBER:
                token_value = float(value) if "." in value else int(value)
            elif token_type == TokenType.QUOTED:
                token_value = value[1:-1]

            return Token(token_type, token_value, start)

        return Token(TokenType.EOF, None, self.position)

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source and return list of tokens."""
        return list(self)
