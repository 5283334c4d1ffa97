"""Parser for plugincore arithmetic expressions.

Converts a stream of tokens into an Abstract Syntax Tree (AST).
Uses recursive descent parsing with operator precedence.

Grammar:
    expression := term (("+" | "-") term)*
    term       := operand (("*" | "/") operand)*
    operand    := NUMBER | IDENTIFIER | QUOTED

Operator Precedence (lowest to highest):
1. + -
2. * /

Equal precedence associates left to right. There is no grouping and no unary
minus.
"""

from dataclasses import dataclass
from typing import Iterator

from plugincore.expressions.lexer import Lexer, Token, TokenType


# -----------------------------------------------------------------------------
# AST Node Types
# -----------------------------------------------------------------------------


@dataclass
class ASTNode:
    """Base class for AST nodes."""
    pass


@dataclass
class Literal(ASTNode):
    """A numeric literal."""
    value: int | float


@dataclass
class Identifier(ASTNode):
    """A field reference, bare or quoted."""
    name: str
    quoted: bool = False


@dataclass
class BinaryOp(ASTNode):
    """Binary operation (e.g., a + b, x / y)."""
    operator: str
    left: ASTNode
    right: ASTNode


def iter_identifiers(node: ASTNode) -> Iterator[Identifier]:
    """Yield identifiers in source (left-to-right) order."""
    if isinstance(node, Identifier):
        yield node
    elif isinstance(node, BinaryOp):
        yield from iter_identifiers(node.left)
        yield from iter_identifiers(node.right)


def count_operators(node: ASTNode) -> int:
    if isinstance(node, BinaryOp):
        return 1 + count_operators(node.left) + count_operators(node.right)
    return 0


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


class ParseError(Exception):
    """Error during parsing."""

    def __init__(self, message: str, token: Token):
        self.token = token
        super().__init__(f"{message} at position {token.position}")


class Parser:
    """Recursive descent parser for arithmetic expressions.

    Usage:
        parser = Parser('carbon * 2 + 1')
        ast = parser.parse()
    """

    def __init__(self, source: str):
        self.source = source
        self.tokens = Lexer(source).tokenize()
        self.position = 0

    def parse(self) -> ASTNode:
        """Parse the expression and return the AST root."""
        if not self.tokens or self.tokens[0].type == TokenType.EOF:
            raise ParseError("Empty expression", Token(TokenType.EOF, None, 0))

        ast = self._parse_additive()

        if not self._is_at_end():
            raise ParseError(
                f"Unexpected token '{self._current().value}'",
                self._current(),
            )

        return ast

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _current(self) -> Token:
        if self.position >= len(self.tokens):
            return Token(TokenType.EOF, None, len(self.source))
        return self.tokens[self.position]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _advance(self) -> Token:
        token = self._current()
        self.position += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        return self._current().type in types

    # -------------------------------------------------------------------------
    # Parsing methods (in order of precedence, lowest to highest)
    # -------------------------------------------------------------------------

    def _parse_additive(self) -> ASTNode:
        """Parse additive expression (+, -)."""
        left = self._parse_multiplicative()

        while self._match(TokenType.PLUS, TokenType.MINUS):
            op = "+" if self._advance().type == TokenType.PLUS else "-"
            right = self._parse_multiplicative()
            left = BinaryOp(op, left, right)

        return left

    def _parse_multiplicative(self) -> ASTNode:
        """Parse multiplicative expression (*, /)."""
        left = self._parse_operand()

        while self._match(TokenType.MULTIPLY, TokenType.DIVIDE):
            op = "*" if self._advance().type == TokenType.MULTIPLY else "/"
            right = self._parse_operand()
            left = BinaryOp(op, left, right)

        return left

    def _parse_operand(self) -> ASTNode:
        token = self._current()

        if token.type == TokenType.NUMBER:
            self._advance()
            return Literal(token.value)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(str(token.value))

        if token.type == TokenType.QUOTED:
            self._advance()
            return Identifier(str(token.value), quoted=True)

        if token.type == TokenType.EOF:
            raise ParseError("Expected operand after operator", token)

        raise ParseError(f"Unexpected token '{token.value}'", token)


def parse(source: str) -> ASTNode:
    """Convenience function to parse an expression string.

    Args:
        source: The expression string, without the leading ``=``

    Returns:
        The AST root node
    """
    return Parser(source).parse()
