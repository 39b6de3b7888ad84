"""
Constraint expression language for Pips puzzles.

Every puzzle cell carries a small relation over the pip values of named
cells, e.g. ``A>4``, ``A=B=C`` or ``A+B+C=10``. Supported syntax:

- arithmetic: ``+ - * /`` and parentheses, unary minus
- comparisons: ``> < >= <=`` (one per expression)
- equality chains and equations: ``A=B=C``, ``A+B=C``
- identifiers: one or more letters; numbers: non-negative decimals

Implicit multiplication (``2A``) is not supported and fails to parse.
"""

import re
from enum import Enum
from functools import lru_cache
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from ..config import MIN_PIP, MAX_PIP, EQUALITY_EPSILON, DIVISION_EPSILON, EXPRESSION_CACHE_SIZE


class ExpressionError(ValueError):
    """Raised when an expression cannot be parsed"""


class ZeroDivisorError(ExpressionError):
    """Raised when a divisor is (nearly) zero"""


class ExpressionKind(Enum):
    """How an expression string is interpreted"""
    COMPARISON = "comparison"
    EQUATION = "equation"
    EQUALITY = "equality"
    ARITHMETIC = "arithmetic"


IDENTIFIER_PATTERN = re.compile(r"[A-Za-z]+")
COMPARATOR_PATTERN = re.compile(r"(>=|<=|>|<)")
ARITHMETIC_OPERATORS = ("+", "-", "*", "/")
NUMBER_CHARS = "0123456789."


class ArithmeticParser:
    """
    Recursive descent parser for numeric arithmetic.

    Grammar::

        expr   := term (('+'|'-') term)*
        term   := factor (('*'|'/') factor)*
        factor := NUMBER | '(' expr ')' | '-' factor
    """

    def __init__(self, text: str, division_epsilon: float = DIVISION_EPSILON):
        self.text = text
        self.pos = 0
        self.division_epsilon = division_epsilon

    def parse(self) -> float:
        """Parse the whole text and return its value."""
        self._skip_whitespace()
        if self.pos >= len(self.text):
            raise ExpressionError("Empty operand")

        value = self._parse_expression()

        self._skip_whitespace()
        if self.pos < len(self.text):
            raise ExpressionError(f"Unexpected character: {self.text[self.pos]!r}")

        return value

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _skip_whitespace(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _parse_expression(self) -> float:
        value = self._parse_term()

        self._skip_whitespace()
        while self._peek() in ("+", "-"):
            operator = self._peek()
            self.pos += 1
            term = self._parse_term()
            value = value + term if operator == "+" else value - term
            self._skip_whitespace()

        return value

    def _parse_term(self) -> float:
        value = self._parse_factor()

        self._skip_whitespace()
        while self._peek() in ("*", "/"):
            operator = self._peek()
            self.pos += 1
            factor = self._parse_factor()

            if operator == "*":
                value *= factor
            else:
                if abs(factor) < self.division_epsilon:
                    raise ZeroDivisorError("Division by zero")
                value /= factor

            self._skip_whitespace()

        return value

    def _parse_factor(self) -> float:
        self._skip_whitespace()
        ch = self._peek()

        if ch == "(":
            self.pos += 1
            value = self._parse_expression()
            self._skip_whitespace()
            if self._peek() != ")":
                raise ExpressionError("Missing closing parenthesis")
            self.pos += 1
            return value

        if ch == "-":
            self.pos += 1
            return -self._parse_factor()

        if ch and ch in NUMBER_CHARS:
            start = self.pos
            while self._peek() and self._peek() in NUMBER_CHARS:
                self.pos += 1
            literal = self.text[start:self.pos]
            try:
                return float(literal)
            except ValueError:
                raise ExpressionError(f"Malformed number: {literal!r}") from None

        if not ch:
            raise ExpressionError("Unexpected end of expression")
        raise ExpressionError(f"Unexpected character: {ch!r}")


@lru_cache(maxsize=EXPRESSION_CACHE_SIZE)
def _identifiers(expr: str) -> FrozenSet[str]:
    return frozenset(IDENTIFIER_PATTERN.findall(expr))


@lru_cache(maxsize=EXPRESSION_CACHE_SIZE)
def _classify(expr: str) -> ExpressionKind:
    if COMPARATOR_PATTERN.search(expr):
        return ExpressionKind.COMPARISON
    if "=" in expr:
        if any(op in expr for op in ARITHMETIC_OPERATORS):
            return ExpressionKind.EQUATION
        return ExpressionKind.EQUALITY
    return ExpressionKind.ARITHMETIC


@lru_cache(maxsize=EXPRESSION_CACHE_SIZE)
def _token_pattern(name: str) -> "re.Pattern":
    return re.compile(rf"\b{re.escape(name)}\b")


class ExpressionEvaluator:
    """
    Evaluates constraint expressions against full or partial bindings.

    With every identifier bound the expression is simply evaluated. With some
    identifiers still unbound the evaluator answers whether the expression can
    still hold, using a cheap feasibility policy:

    1. an equality chain whose bound identifiers already disagree fails;
    2. an addition-only equation with exactly one unbound identifier is solved
       for that identifier, which must land on an integer inside the pip range;
    3. everything else is optimistically feasible.

    The third rule accepts placements that may fail later; search has to find
    those contradictions once more cells are bound.
    """

    def __init__(self, min_pip: int = MIN_PIP, max_pip: int = MAX_PIP,
                 epsilon: float = EQUALITY_EPSILON,
                 division_epsilon: float = DIVISION_EPSILON):
        if min_pip > max_pip:
            raise ValueError(f"Invalid pip range: {min_pip}..{max_pip}")
        self.min_pip = min_pip
        self.max_pip = max_pip
        self.epsilon = epsilon
        self.division_epsilon = division_epsilon

    @staticmethod
    def variables(expr: str) -> FrozenSet[str]:
        """Identifiers referenced by the expression."""
        return _identifiers(expr)

    @staticmethod
    def classify(expr: str) -> ExpressionKind:
        """Classify an expression: comparison, equation, equality chain or arithmetic."""
        return _classify(expr)

    @staticmethod
    def substitute(expr: str, bindings: Mapping[str, int]) -> str:
        """
        Replace bound identifiers with their values.

        Longer names are replaced first and only whole tokens are matched, so
        ``AB`` is never rewritten through ``A`` and ``2A`` stays unparseable.
        """
        result = expr
        for name in sorted(bindings, key=len, reverse=True):
            value = bindings[name]
            text = str(value) if value >= 0 else f"({value})"
            result = _token_pattern(name).sub(text, result)
        return result

    def evaluate_arithmetic(self, expr: str) -> float:
        """Evaluate a purely numeric arithmetic expression."""
        return ArithmeticParser(expr, self.division_epsilon).parse()

    def in_pip_range(self, value: float) -> bool:
        """True if value is (within epsilon) an integer inside the pip range."""
        nearest = round(value)
        return (abs(value - nearest) < self.epsilon and
                self.min_pip <= nearest <= self.max_pip)

    def evaluate(self, expr: Optional[str], bindings: Optional[Mapping[str, int]] = None,
                 domino_check: bool = True) -> bool:
        """
        Decide whether an expression is satisfied (or still satisfiable).

        Args:
            expr: Expression text, e.g. ``"A+B+C=10"``
            bindings: Known identifier values
            domino_check: Apply the pip-range feasibility policy when some
                identifiers are unbound; otherwise partial bindings always pass

        Returns:
            True if satisfied or still feasible, False otherwise
        """
        if expr is None or not expr.strip():
            return True

        bindings = bindings or {}
        names = self.variables(expr)
        missing = [name for name in names if name not in bindings]

        if missing:
            if not domino_check:
                return True
            return self._partially_feasible(expr, bindings, names, missing)

        text = self.substitute(expr, {name: bindings[name] for name in names})
        return self._evaluate_full(self.classify(expr), text)

    def _evaluate_full(self, kind: ExpressionKind, text: str) -> bool:
        if kind is ExpressionKind.COMPARISON:
            try:
                return self._compare(text)
            except ExpressionError:
                return True

        if kind is ExpressionKind.EQUALITY:
            try:
                return self._all_equal(text.split("="))
            except ExpressionError:
                return True

        if kind is ExpressionKind.EQUATION:
            try:
                return self._all_equal(text.split("="))
            except ExpressionError:
                return False

        try:
            return self.evaluate_arithmetic(text) != 0
        except ExpressionError:
            return False

    def _compare(self, text: str) -> bool:
        left, operator, right = COMPARATOR_PATTERN.split(text, maxsplit=1)
        a = self.evaluate_arithmetic(left)
        b = self.evaluate_arithmetic(right)

        if operator == ">=":
            return a >= b
        if operator == "<=":
            return a <= b
        if operator == ">":
            return a > b
        return a < b

    def _all_equal(self, parts) -> bool:
        values = [self.evaluate_arithmetic(part) for part in parts]
        first = values[0]
        return all(abs(value - first) < self.epsilon for value in values[1:])

    def _partially_feasible(self, expr: str, bindings: Mapping[str, int],
                            names: FrozenSet[str], missing) -> bool:
        kind = self.classify(expr)

        if kind is ExpressionKind.EQUALITY:
            known = {bindings[name] for name in names if name in bindings}
            return len(known) <= 1

        if kind is ExpressionKind.EQUATION and len(missing) == 1 and self._is_additive(expr):
            return self._required_value_feasible(expr, bindings, missing[0])

        return True

    @staticmethod
    def _is_additive(expr: str) -> bool:
        return expr.count("=") == 1 and not any(op in expr for op in ("-", "*", "/"))

    def _required_value_feasible(self, expr: str, bindings: Mapping[str, int], name: str) -> bool:
        """Solve ``lhs = rhs`` for the single unbound identifier and check its range."""
        known = {var: bindings[var] for var in self.variables(expr) if var in bindings}
        left, right = expr.split("=")
        try:
            left_offset, left_count = self._linear_side(left, known, name)
            right_offset, right_count = self._linear_side(right, known, name)
        except ExpressionError:
            return True

        coefficient = left_count - right_count
        if coefficient == 0:
            return True

        required = (right_offset - left_offset) / coefficient
        return self.in_pip_range(required)

    def _linear_side(self, side: str, bindings: Mapping[str, int], name: str) -> Tuple[float, int]:
        pattern = _token_pattern(name)
        occurrences = len(pattern.findall(side))
        zeroed = pattern.sub("0", side)
        return self.evaluate_arithmetic(self.substitute(zeroed, bindings)), occurrences


_default_evaluator = ExpressionEvaluator()


def evaluate(expr: Optional[str], bindings: Optional[Dict[str, int]] = None,
             domino_check: bool = True) -> bool:
    """Evaluate with the classic 0..6 pip range."""
    return _default_evaluator.evaluate(expr, bindings, domino_check)
