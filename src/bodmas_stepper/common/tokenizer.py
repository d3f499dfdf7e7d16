"""Split arithmetic expressions into typed tokens and render them back to text."""
import string
from typing import List, Sequence

from bodmas_stepper.common.errors import LexError
from bodmas_stepper.common.models import Number, NumberToken, OperatorToken, ParenToken, Token

OPERATOR_SYMBOLS = "^*/+-"

# Results are rounded to this many decimal places to hide floating-point noise
DECIMAL_PLACES = 6


class ExpressionTokenizer:
    """
    Turn expression text into a flat list of number, operator and paren tokens.

    Rules:
        - Whitespace is insignificant and stripped before scanning.
        - Digits and decimal points are consumed greedily into one number.
        - A ``-`` at the start, after an operator or after ``(`` is the sign of the
          following number when a digit or decimal point comes next.
        - There is no implicit multiplication: ``2(3+4)`` tokenizes, but the
          evaluator rejects it.

    Examples:
        - ``"2 + -3"`` -> ``2``, ``+``, ``-3``
        - ``"(1-2)"`` -> ``(``, ``1``, ``-``, ``2``, ``)``
    """

    @staticmethod
    def _is_number_char(char: str) -> bool:
        """
        Determine if a character can be part of a numeric literal.

        :param str char: Single character

        :return: True for ASCII digits and the decimal point
        :rtype: bool
        """
        return char in string.digits or char == "."

    @staticmethod
    def _scan_number(text: str, start: int) -> int:
        """Return the index just past the run of number characters starting at ``start``."""
        end = start
        while end < len(text) and ExpressionTokenizer._is_number_char(text[end]):
            end += 1
        return end

    @staticmethod
    def _parse_number(literal: str) -> float:
        """
        Convert a numeric literal to a float.

        :param str literal: Literal such as ``"12"``, ``"-0.5"`` or ``".25"``

        :return: Parsed value
        :rtype: float
        :raises LexError: If the literal is malformed (e.g. ``"1.2.3"``)
        """
        try:
            return float(literal)
        except ValueError as exc:
            raise LexError(f"Invalid number in expression: {literal}") from exc

    @staticmethod
    def _starts_operand(tokens: Sequence[Token]) -> bool:
        """True when the next token must be an operand, so ``-`` acts as a sign."""
        if not tokens:
            return True
        previous = tokens[-1]
        if isinstance(previous, OperatorToken):
            return True
        return isinstance(previous, ParenToken) and previous.is_open

    @staticmethod
    def tokenize(expression: str) -> List[Token]:
        """
        Split an arithmetic expression into tokens.

        :param str expression: Arithmetic expression, e.g. ``"2 * (3 + -1)"``

        :return: List of tokens in source order
        :rtype: List[Token]
        :raises LexError: On unsupported characters or malformed numbers
        """
        text = "".join(expression.split())
        tokens: List[Token] = []
        index = 0

        while index < len(text):
            char = text[index]

            if ExpressionTokenizer._is_number_char(char):
                end = ExpressionTokenizer._scan_number(text, index)
                tokens.append(NumberToken(value=ExpressionTokenizer._parse_number(text[index:end])))
                index = end
                continue

            if char in "()":
                tokens.append(ParenToken(symbol=char))
                index += 1
                continue

            if char in OPERATOR_SYMBOLS:
                next_index = index + 1
                if (
                    char == "-"
                    and ExpressionTokenizer._starts_operand(tokens)
                    and next_index < len(text)
                    and ExpressionTokenizer._is_number_char(text[next_index])
                ):
                    # Signed literal: merge the minus into the number
                    end = ExpressionTokenizer._scan_number(text, next_index)
                    tokens.append(NumberToken(value=ExpressionTokenizer._parse_number(text[index:end])))
                    index = end
                    continue

                tokens.append(OperatorToken(symbol=char))
                index += 1
                continue

            raise LexError(f"Unexpected character: {char}")

        return tokens


def format_number(value: float) -> Number:
    """
    Round a value to the fixed decimal tolerance.

    Integral results come back as ``int`` so that ``0.1 + 0.2`` renders as
    ``0.3`` and ``6 / 2`` as ``3``, while ``3 / 2`` stays ``1.5``.

    :param float value: Raw arithmetic result

    :return: Rounded value, as int when integral
    :rtype: Number
    """
    rounded = round(float(value), DECIMAL_PLACES)
    if rounded.is_integer():
        return int(rounded)
    return rounded


def render_number(value: float) -> str:
    """Render a number in canonical positional form, never in exponent notation."""
    value = format_number(value)
    if isinstance(value, int):
        return str(value)
    return f"{value:.{DECIMAL_PLACES}f}".rstrip("0").rstrip(".")


def render_token(token: Token) -> str:
    if isinstance(token, NumberToken):
        return render_number(token.value)
    return token.symbol


def render_tokens(tokens: Sequence[Token]) -> str:
    """
    Render tokens as space-separated text that tokenizes back to the same stream.

    :param Sequence[Token] tokens: Tokens to render

    :return: Text such as ``"12 / ( 2 + 1 ) + 3"``
    :rtype: str
    """
    return " ".join(render_token(token) for token in tokens)


tokenize = ExpressionTokenizer.tokenize
