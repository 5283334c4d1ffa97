"""Arithmetic expressions for plugin configs and records.

This module provides:
- Lexer: Tokenizes expression strings
- Parser: Produces AST from tokens
- grammar helpers: is_expression, extract_variable and friends
- ExpressionEvaluator: Resolves an expression against a record context
- record helpers: evaluate_record, evaluate_config
"""

from plugincore.expressions.evaluator import (
    ExpressionEvaluator,
    evaluate_arithmetic_output,
    evaluate_expression,
    evaluate_simple,
)
from plugincore.expressions.grammar import (
    evaluate_closed_numeric_expression,
    extract_variable,
    extract_variable_name,
    has_marker,
    is_closed_numeric_expression,
    is_expression,
)
from plugincore.expressions.lexer import Lexer, LexerError, Token, TokenType
from plugincore.expressions.parser import (
    ASTNode,
    BinaryOp,
    Identifier,
    Literal,
    ParseError,
    Parser,
    parse,
)
from plugincore.expressions.records import (
    evaluate_config,
    evaluate_record,
    validate_arithmetic_expression,
)

__all__ = [
    # Evaluator
    "ExpressionEvaluator",
    "evaluate_arithmetic_output",
    "evaluate_expression",
    "evaluate_simple",
    # Grammar
    "evaluate_closed_numeric_expression",
    "extract_variable",
    "extract_variable_name",
    "has_marker",
    "is_closed_numeric_expression",
    "is_expression",
    # Lexer
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    # Parser
    "ASTNode",
    "BinaryOp",
    "Identifier",
    "Literal",
    "ParseError",
    "Parser",
    "parse",
    # Records
    "evaluate_config",
    "evaluate_record",
    "validate_arithmetic_expression",
]
