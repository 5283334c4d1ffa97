"""Tests for the plugincore expression engine.

Tests cover:
- Lexer: Tokenization of expression strings
- Parser: AST generation from tokens
- Grammar helpers: shape checks and variable extraction
- Evaluator: Expression evaluation against records
"""

import pytest

from plugincore.errors import (
    DivisionByZeroError,
    MissingVariableError,
    NonNumericVariableError,
    WrongArithmeticExpressionError,
)
from plugincore.expressions import (
    BinaryOp,
    ExpressionEvaluator,
    Identifier,
    Lexer,
    LexerError,
    Literal,
    ParseError,
    Token,
    TokenType,
    evaluate_arithmetic_output,
    evaluate_closed_numeric_expression,
    evaluate_expression,
    evaluate_simple,
    extract_variable,
    extract_variable_name,
    has_marker,
    is_closed_numeric_expression,
    is_expression,
    parse,
)
from plugincore.expressions.parser import count_operators, iter_identifiers


# =============================================================================
# Lexer Tests
# =============================================================================


class TestLexer:
    """Tests for the expression lexer."""

    def test_tokenize_mixed_expression(self):
        tokens = Lexer('2 * "energy/year" + carbon').tokenize()

        assert tokens == [
            Token(TokenType.NUMBER, 2, 0),
            Token(TokenType.MULTIPLY, "*", 2),
            Token(TokenType.QUOTED, "energy/year", 4),
            Token(TokenType.PLUS, "+", 18),
            Token(TokenType.IDENTIFIER, "carbon", 20),
            Token(TokenType.EOF, None, 26),
        ]

    def test_tokenize_decimal(self):
        tokens = Lexer("3.5").tokenize()
        assert tokens[0] == Token(TokenType.NUMBER, 3.5, 0)

    def test_hyphenated_name_is_one_identifier(self):
        tokens = Lexer("carbon-product").tokenize()
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "carbon-product"
        assert tokens[1].type == TokenType.EOF

    def test_single_quoted_name(self):
        tokens = Lexer("'cpu/energy'").tokenize()
        assert tokens[0] == Token(TokenType.QUOTED, "cpu/energy", 0)

    def test_operator_flags(self):
        plus, number = Lexer("+ 1").tokenize()[:2]
        assert plus.is_operator and not plus.is_operand
        assert number.is_operand and not number.is_operator

    @pytest.mark.parametrize("source,position", [("2%5", 1), ("param1$2", 6), ("2^5", 1)])
    def test_unsupported_character(self, source, position):
        with pytest.raises(LexerError) as exc_info:
            Lexer(source).tokenize()
        assert exc_info.value.position == position


# =============================================================================
# Parser Tests
# =============================================================================


class TestParser:
    """Tests for the recursive descent parser."""

    def test_multiplication_binds_tighter(self):
        assert parse("1 + 2 * 3") == BinaryOp(
            "+", Literal(1), BinaryOp("*", Literal(2), Literal(3))
        )

    def test_left_associative(self):
        assert parse("8 - 3 - 1") == BinaryOp(
            "-", BinaryOp("-", Literal(8), Literal(3)), Literal(1)
        )

    def test_quoted_identifier(self):
        assert parse('2 * "energy/year"') == BinaryOp(
            "*", Literal(2), Identifier("energy/year", quoted=True)
        )

    def test_single_operand(self):
        assert parse("carbon") == Identifier("carbon")

    def test_identifiers_in_source_order(self):
        ast = parse("a * b + c / d")
        assert [node.name for node in iter_identifiers(ast)] == ["a", "b", "c", "d"]
        assert count_operators(ast) == 3

    def test_empty_expression(self):
        with pytest.raises(ParseError, match="Empty expression"):
            parse("   ")

    def test_trailing_operator(self):
        with pytest.raises(ParseError, match="Expected operand after operator"):
            parse("2 *")

    def test_missing_operator(self):
        with pytest.raises(ParseError, match="Unexpected token"):
            parse("2 3")

    def test_leading_operator(self):
        with pytest.raises(ParseError):
            parse("* 2")


# =============================================================================
# Grammar Tests
# =============================================================================


class TestGrammar:
    """Tests for expression shape checks."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("=3*carbon", True),
            ("=param1+5/2", True),
            ("=param1^2", False),
            ("=param1+", False),
            ("=carbon", True),
            ('=2 * "energy-per-year"', True),
            ("3*carbon", True),
            ("cpu/energy", False),
            ("carbon-product", False),
            ("carbon", False),
            ("=2^5", False),
            ("= 2 *", False),
            (5, False),
            (None, False),
        ],
    )
    def test_is_expression(self, value, expected):
        assert is_expression(value) is expected

    def test_has_marker(self):
        assert has_marker("=a+b")
        assert has_marker("  =a+b")
        assert not has_marker("a+b")
        assert not has_marker(3)

    def test_closed_numeric(self):
        assert is_closed_numeric_expression("= 2 + 3")
        assert is_closed_numeric_expression("2.5*4")
        assert is_closed_numeric_expression("5")
        assert not is_closed_numeric_expression("=2+a")
        assert not is_closed_numeric_expression(5)

    def test_evaluate_closed_numeric(self):
        assert evaluate_closed_numeric_expression("=1.5*2") == 3
        assert isinstance(evaluate_closed_numeric_expression("=1.5*2"), int)
        assert evaluate_closed_numeric_expression("1/4") == 0.25
        assert evaluate_closed_numeric_expression("=2+3*4") == 14

    def test_extract_variable_name(self):
        assert extract_variable_name('=2 * "energy-per-year"') == "energy-per-year"
        assert extract_variable_name("=3*carbon") == "carbon"
        assert extract_variable_name("cpu/energy") == "cpu/energy"
        assert extract_variable_name("=10/2") is None
        assert extract_variable_name(4) is None

    def test_extract_variable(self):
        assert extract_variable("=3*carbon") == "carbon"
        assert extract_variable("=10/2") == 5
        assert extract_variable("2*3+1") == 7
        assert extract_variable(4) == 4
        assert extract_variable("") == ""


# =============================================================================
# Evaluator Tests
# =============================================================================


class TestEvaluator:
    """Tests for expression evaluation against a context."""

    def test_variable_operand(self):
        assert evaluate_expression("=3*carbon", "input-parameter", [], {"carbon": 3}) == 9

    def test_numeric_strings_are_numbers(self):
        assert evaluate_expression("=a+b", "sum", [], {"a": "2", "b": 3.5}) == 5.5

    def test_quoted_operand(self):
        context = {"energy/year": 10000}
        assert evaluate_expression('=2 * "energy/year"', "x", [], context) == 20000

    def test_precedence(self):
        assert evaluate_expression("=2+3*4", "x", [], {}) == 14

    def test_integral_result_is_int(self):
        result = evaluate_expression("=a/2", "x", [], {"a": 10})
        assert result == 5
        assert isinstance(result, int)

    def test_non_expressions_unchanged(self):
        assert evaluate_expression("hello", "x", [], {}) == "hello"
        assert evaluate_expression("3*carbon", "x", [], {"carbon": 1}) == "3*carbon"
        assert evaluate_expression(5, "x", [], {}) == 5
        assert evaluate_expression(None, "x", [], {}) is None

    def test_timestamp_returned_from_context(self):
        context = {"timestamp": "2023-07-06T00:00"}
        assert evaluate_expression("=1+1", "timestamp", [], context) == "2023-07-06T00:00"

    def test_field_outside_allow_list(self):
        assert evaluate_expression("=a*2", "other", ["x"], {"a": 2}) == "=a*2"

    def test_wrong_operator(self):
        with pytest.raises(WrongArithmeticExpressionError) as exc_info:
            evaluate_expression("=2%5", "x", [], {})
        assert exc_info.value.message == (
            "The operator in `=2%5` should be one of these arithmetic operators: "
            "*, +, - or /."
        )

    def test_incomplete_expression(self):
        with pytest.raises(WrongArithmeticExpressionError) as exc_info:
            evaluate_expression("=a*", "coefficient", [], {"a": 1})
        assert exc_info.value.message.startswith(
            "The `coefficient` contains an invalid arithmetic expression."
        )

    def test_literal_division_by_zero(self):
        with pytest.raises(DivisionByZeroError) as exc_info:
            evaluate_expression("=10/0", "x", [], {})
        assert exc_info.value.message == (
            "The input expression contains a division by zero: `10/0`."
        )

    def test_variable_division_by_zero(self):
        with pytest.raises(DivisionByZeroError, match="`10/0`"):
            evaluate_expression("=10/param3", "x", [], {"param3": 0})

    def test_zero_numerator(self):
        assert evaluate_expression("=param3/10", "x", [], {"param3": 0}) == 0

    def test_missing_variable(self):
        with pytest.raises(MissingVariableError) as exc_info:
            evaluate_expression("=a*b", "x", [], {"a": 1})
        assert exc_info.value.message == (
            "`b` is missing from the input array, or has nullish value."
        )

    def test_nullish_variable(self):
        with pytest.raises(MissingVariableError):
            evaluate_expression("=a*2", "x", [], {"a": None})

    def test_non_numeric_variable(self):
        with pytest.raises(NonNumericVariableError) as exc_info:
            evaluate_expression("=a*2", "x", [], {"a": "abc"})
        assert exc_info.value.message == (
            "The value of the `a` parameter in the input array is not a number."
        )

    def test_boolean_is_not_a_number(self):
        with pytest.raises(NonNumericVariableError):
            evaluate_expression("=a*2", "x", [], {"a": True})

    def test_nested_expression_operand(self):
        context = {"a": "=b*2", "b": 3}
        assert evaluate_expression("=a+1", "c", [], context) == 7

    def test_nested_closed_numeric_operand(self):
        assert evaluate_expression("=a*3", "b", [], {"a": "1+1"}) == 6

    def test_circular_reference(self):
        context = {"a": "=b+1", "b": "=a+1"}
        with pytest.raises(WrongArithmeticExpressionError, match="circular reference"):
            evaluate_expression("=a+1", "c", [], context)

    def test_self_reference(self):
        with pytest.raises(WrongArithmeticExpressionError, match="circular reference"):
            ExpressionEvaluator({"a": "=a+1"}).evaluate("=a+1", "a")

    def test_overflow_to_nan_is_none(self):
        context = {"a": 1e308}
        assert evaluate_expression("=a*10-a*10", "x", [], context) is None

    def test_overflow_to_infinity(self):
        with pytest.raises(DivisionByZeroError):
            evaluate_expression("=a*10", "x", [], {"a": 1e308})

    def test_allow_list_extended_for_operands(self):
        context = {"b": "=c+1", "c": 1}
        assert evaluate_expression("=b*2", "a", ["a"], context) == 4


class TestEvaluateSimple:
    def test_closed_expressions(self):
        assert evaluate_simple("=2+3") == 5
        assert evaluate_simple("2+3") == 5
        assert evaluate_simple("4") == 4

    def test_other_values_unchanged(self):
        assert evaluate_simple("=a+b") == "=a+b"
        assert evaluate_simple("carbon") == "carbon"
        assert evaluate_simple(7) == 7
        assert evaluate_simple(["=1+1"]) == ["=1+1"]


class TestEvaluateArithmeticOutput:
    def test_output_expression_replaces_key(self):
        output = {"duration": 1, "=2*result": 5}
        assert evaluate_arithmetic_output("=2*result", output) == {
            "duration": 1,
            "result": 10,
        }

    def test_plain_parameter_copied(self):
        output = {"carbon-product": 9}
        assert evaluate_arithmetic_output("carbon-product", output) == {"carbon-product": 9}

    def test_unmarked_expression_rejected(self):
        with pytest.raises(WrongArithmeticExpressionError):
            evaluate_arithmetic_output("3*carbon", {"3*carbon": 1})

    def test_non_numeric_raw_value(self):
        with pytest.raises(NonNumericVariableError):
            evaluate_arithmetic_output("=2*result", {"=2*result": "abc"})

    def test_input_row_not_mutated(self):
        output = {"=result/2": 8}
        evaluate_arithmetic_output("=result/2", output)
        assert output == {"=result/2": 8}

    def test_output_expression_addition(self):
        assert evaluate_arithmetic_output("=result+15", {"=result+15": 5}) == {"result": 20}

    def test_output_expression_from_raw_value(self):
        assert evaluate_arithmetic_output("=2*result", {"=2*result": 10}) == {"result": 20}
