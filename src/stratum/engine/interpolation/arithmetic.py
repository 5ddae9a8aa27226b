"""Restricted arithmetic for the ``math`` resolver.

Grammar::

    expression := term (("+" | "-") term)*
    term       := factor (("*" | "/") factor)*
    factor     := "-" factor | primary
    primary    := NUMBER | "(" expression ")"

Numbers are integers or decimals. Evaluation uses exact fractions, so
``0.1 + 0.2`` is ``0.3`` and integral results print without a decimal point.
"""

from __future__ import annotations

import re
from fractions import Fraction

_ALLOWED = re.compile(r"^[0-9.+\-*/()\s]*$")
_TOKEN = re.compile(r"\s*(?:(\d+\.\d+|\.\d+|\d+)|(.))")


class ExpressionError(ValueError):
    """Malformed or unsafe arithmetic expression."""


def evaluate(expression: str) -> Fraction:
    if not _ALLOWED.match(expression):
        raise ExpressionError(f"Invalid characters in math expression '{expression}'")
    tokens = _tokenize(expression)
    if not tokens:
        raise ExpressionError("Empty math expression")
    return _Parser(tokens).parse()


def format_number(value: Fraction) -> str:
    if value.denominator == 1:
        return str(value.numerator)
    return repr(float(value))


def evaluate_to_string(expression: str) -> str:
    return format_number(evaluate(expression))


def _tokenize(expression: str) -> list[str | Fraction]:
    tokens: list[str | Fraction] = []
    for number, operator in _TOKEN.findall(expression.strip()):
        if number:
            tokens.append(Fraction(number))
        elif operator and not operator.isspace():
            if operator == ".":
                raise ExpressionError(f"Unexpected '.' in math expression '{expression}'")
            tokens.append(operator)
    return tokens


class _Parser:
    def __init__(self, tokens: list[str | Fraction]) -> None:
        self._tokens = tokens
        self._position = 0

    def parse(self) -> Fraction:
        value = self._expression()
        if self._position != len(self._tokens):
            raise ExpressionError(f"Unexpected token '{self._tokens[self._position]}'")
        return value

    def _peek(self) -> str | Fraction | None:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _next(self) -> str | Fraction:
        token = self._peek()
        if token is None:
            raise ExpressionError("Unexpected end of math expression")
        self._position += 1
        return token

    def _expression(self) -> Fraction:
        value = self._term()
        while self._peek() in ("+", "-"):
            if self._next() == "+":
                value += self._term()
            else:
                value -= self._term()
        return value

    def _term(self) -> Fraction:
        value = self._factor()
        while self._peek() in ("*", "/"):
            operator = self._next()
            right = self._factor()
            if operator == "*":
                value *= right
            elif right == 0:
                raise ExpressionError("Division by zero")
            else:
                value /= right
        return value

    def _factor(self) -> Fraction:
        if self._peek() == "-":
            self._next()
            return -self._factor()
        return self._primary()

    def _primary(self) -> Fraction:
        token = self._next()
        if isinstance(token, Fraction):
            return token
        if token == "(":
            value = self._expression()
            if self._next() != ")":
                raise ExpressionError("Unbalanced parentheses")
            return value
        raise ExpressionError(f"Unexpected token '{token}'")


__all__ = ["ExpressionError", "evaluate", "evaluate_to_string", "format_number"]
