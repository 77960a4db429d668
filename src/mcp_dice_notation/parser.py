from __future__ import annotations

import logging

from .errors import (
    EmptyInput,
    InvalidDiceCount,
    InvalidDieSize,
    InvalidModifier,
    InvalidNotation,
    TooManyDice,
    UnsupportedOperator,
)
from .models import (
    Binary,
    BinaryOp,
    Comparison,
    ComparisonCondition,
    Constant,
    DiceExpression,
    DropHighest,
    DropLowest,
    Exploding,
    ExplodeCondition,
    KeepHighest,
    KeepLowest,
    MaxCondition,
    ParsedRollRequest,
    Repeat,
    RerollCondition,
    Rerolling,
    Simple,
    SuccessCounting,
    SuccessFailure,
    ValueCondition,
)


logger = logging.getLogger(__name__)

MAX_DICE = 10
MAX_REPEATS = 100

# Bounds on expression size; parser and evaluator both recurse per level.
MAX_OPERATORS = 100
MAX_NESTING = 50

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_UNSUPPORTED_OPERATORS = {"%", "^", "&", "|", "=", "\\"}

# Characters after which a '-' directly followed by a digit is binary minus.
_MINUS_AFTER = {")", "!"}

_PRECEDENCE: dict[str, int] = {"+": 1, "-": 1, "*": 2, "/": 2, "//": 2}


def _is_digit(ch: str) -> bool:
    return ch != "" and ch in "0123456789"


class DiceParser:
    """Recursive-descent parser for dice notation.

    Grammar, lowest precedence first::

        expression := term (('+' | '-') term)*
        term       := factor (('*' | '/' | '//') factor)*
        factor     := '(' expression ')' | dice_term | constant
        dice_term  := [count] 'd' sides [modifier] [repeat_suffix]

    Whitespace may appear between any two tokens. The parser reads the input
    once, left to right; the only lookahead is bounded (dice term detection,
    the ``x`` repeat suffix and binary minus).
    """

    def __init__(self, text: str, max_dice: int = MAX_DICE) -> None:
        self.text = text
        self.pos = 0
        self.max_dice = max_dice
        self.operators = 0
        self.depth = 0

    def parse(self) -> DiceExpression:
        expr = self._expression()
        self._skip_whitespace()

        if not self._at_end():
            ch = self._peek()
            if ch in _UNSUPPORTED_OPERATORS:
                raise UnsupportedOperator(ch, self.text)
            raise self._invalid(f"Unexpected character {ch!r} at position {self.pos}")

        logger.debug("Parsed %r as %r", self.text, expr)
        return expr

    # -- grammar rules -----------------------------------------------------

    def _expression(self) -> DiceExpression:
        left = self._term()
        while True:
            op = self._additive_op()
            if op is None:
                return left
            self._count_operator()
            self.pos += 1
            left = Binary(left=left, op=op, right=self._term())

    def _term(self) -> DiceExpression:
        left = self._factor()
        while True:
            op = self._multiplicative_op()
            if op is None:
                return left
            self._count_operator()
            self.pos += len(op)
            left = Binary(left=left, op=op, right=self._factor())

    def _factor(self) -> DiceExpression:
        self._skip_whitespace()

        if self._peek() == "(":
            self.pos += 1
            self.depth += 1
            if self.depth > MAX_NESTING:
                raise self._invalid(f"Parentheses nested deeper than {MAX_NESTING} levels")
            expr = self._expression()
            self._skip_whitespace()
            if self._peek() != ")":
                raise self._invalid("Expected closing parenthesis ')'")
            self.pos += 1
            self.depth -= 1
            return expr

        if self._looks_like_dice():
            return self._dice_term()
        return self._constant()

    def _count_operator(self) -> None:
        self.operators += 1
        if self.operators > MAX_OPERATORS:
            raise self._invalid(f"Expression has more than {MAX_OPERATORS} operators")

    def _dice_term(self) -> DiceExpression:
        self._skip_whitespace()

        count = self._number() if _is_digit(self._peek()) else 1
        if count == 0:
            raise InvalidDiceCount(str(count))
        if count > self.max_dice:
            raise TooManyDice(count, self.max_dice)

        self._skip_whitespace()
        if self._peek() != "d":
            raise self._invalid("Expected 'd' in dice notation")
        self.pos += 1

        sides = self._number()
        if sides <= 0:
            raise InvalidDieSize(str(sides))

        expr = self._modifier(count, sides)
        return self._repeat_suffix(expr)

    def _modifier(self, count: int, sides: int) -> DiceExpression:
        self._skip_whitespace()
        ch = self._peek()

        if ch in ("K", "k"):
            self.pos += 1
            keep = self._optional_count()
            if keep == 0:
                raise self._invalid("Must keep at least one die")
            if keep > count:
                raise self._invalid("Cannot keep more dice than rolled")
            if ch == "K":
                return KeepHighest(count=count, sides=sides, keep=keep)
            return KeepLowest(count=count, sides=sides, keep=keep)

        if ch == "x":
            # 'x<n>' drops the n lowest dice when n < count, otherwise it is a repeat suffix.
            end = self._scan_repeat(self.pos)
            if end is not None:
                digits = self.text[self._skip_from(self.pos + 1) : end]
                if int(digits) >= count:
                    return Simple(count=count, sides=sides)

        if ch in ("X", "x"):
            self.pos += 1
            drop = self._optional_count()
            if drop == 0:
                raise self._invalid("Must drop at least one die")
            if drop >= count:
                raise self._invalid("Cannot drop all dice")
            if ch == "X":
                return DropHighest(count=count, sides=sides, drop=drop)
            return DropLowest(count=count, sides=sides, drop=drop)

        if ch == "!":
            self.pos += 1
            self._skip_whitespace()
            return Exploding(count=count, sides=sides, condition=self._explode_condition())

        if ch in (">", "<"):
            return self._success(count, sides)

        if ch in ("r", "R"):
            self.pos += 1
            self._skip_whitespace()
            return Rerolling(
                count=count,
                sides=sides,
                condition=self._reroll_condition(),
                reroll_type="once" if ch == "r" else "continuous",
            )

        return Simple(count=count, sides=sides)

    def _success(self, count: int, sides: int) -> DiceExpression:
        comparison = self._comparison()
        target = self._number()

        self._skip_whitespace()
        if self._peek() != "f":
            return SuccessCounting(count=count, sides=sides, target=target, comparison=comparison)

        self.pos += 1
        self._skip_whitespace()
        if self._peek() not in (">", "<"):
            raise self._invalid("Expected '>' or '<' after 'f'")
        failure_comparison = self._comparison()
        failure_target = self._number()

        if failure_comparison == comparison:
            raise self._invalid(
                "Success and failure conditions cannot both be greater than or both less than"
            )

        return SuccessFailure(
            count=count,
            sides=sides,
            success_target=target,
            success_comparison=comparison,
            failure_target=failure_target,
            failure_comparison=failure_comparison,
        )

    def _explode_condition(self) -> ExplodeCondition:
        ch = self._peek()
        if ch in (">", "<"):
            comparison = self._comparison()
            return ComparisonCondition(comparison=comparison, value=self._number())
        if _is_digit(ch):
            return ValueCondition(value=self._number())
        return MaxCondition()

    def _reroll_condition(self) -> RerollCondition:
        ch = self._peek()
        if ch in (">", "<"):
            comparison = self._comparison()
            return ComparisonCondition(comparison=comparison, value=self._number())
        if _is_digit(ch):
            return ValueCondition(value=self._number())
        raise self._invalid("Expected reroll condition after 'r' or 'R'")

    def _repeat_suffix(self, expr: DiceExpression) -> DiceExpression:
        self._skip_whitespace()
        if self._peek() != "x" or self._scan_repeat(self.pos) is None:
            return expr

        self.pos += 1
        times = self._number()
        if times == 0:
            raise self._invalid("Repeat count must be positive")
        if times > MAX_REPEATS:
            raise self._invalid(f"Repeat count {times} exceeds the maximum of {MAX_REPEATS}")
        return Repeat(expression=expr, times=times)

    def _constant(self) -> Constant:
        self._skip_whitespace()
        start = self.pos
        value = self._number()

        if self._peek() == "." and _is_digit(self._peek(1)):
            self.pos += 1
            while _is_digit(self._peek()):
                self.pos += 1
            raise InvalidModifier(self.text[start : self.pos])

        return Constant(value=value)

    # -- tokens --------------------------------------------------------------

    def _number(self) -> int:
        self._skip_whitespace()
        start = self.pos

        if self._peek() == "-":
            self.pos += 1
        while _is_digit(self._peek()):
            self.pos += 1

        literal = self.text[start : self.pos]
        if not literal or literal == "-":
            raise self._invalid("Expected number")

        value = int(literal)
        if not _INT_MIN <= value <= _INT_MAX:
            raise self._invalid(f"Invalid number: '{literal}'")
        return value

    def _optional_count(self) -> int:
        self._skip_whitespace()
        if _is_digit(self._peek()):
            return self._number()
        return 1

    def _comparison(self) -> Comparison:
        ch = self._peek()
        self.pos += 1
        return ">" if ch == ">" else "<"

    def _additive_op(self) -> BinaryOp | None:
        self._skip_whitespace()
        ch = self._peek()
        if ch == "+":
            return "+"
        if ch != "-":
            return None

        if not _is_digit(self._peek(1)):
            return "-"
        # "-3" directly after an operator or '(' is a negative constant, not subtraction.
        prev = self.text[self.pos - 1] if self.pos > 0 else ""
        if prev and (prev.isspace() or prev.isalnum() or prev in _MINUS_AFTER):
            return "-"
        return None

    def _multiplicative_op(self) -> BinaryOp | None:
        self._skip_whitespace()
        ch = self._peek()
        if ch == "*":
            return "*"
        if ch == "/":
            return "//" if self._peek(1) == "/" else "/"
        return None

    # -- lookahead -----------------------------------------------------------

    def _looks_like_dice(self) -> bool:
        pos = self._skip_from(self.pos)
        while pos < len(self.text) and _is_digit(self.text[pos]):
            pos += 1
        pos = self._skip_from(pos)
        return pos < len(self.text) and self.text[pos] == "d"

    def _scan_repeat(self, pos: int) -> int | None:
        """Return the end of an ``x<digits>`` run starting at ``pos``, or None."""
        if pos >= len(self.text) or self.text[pos] != "x":
            return None

        pos = self._skip_from(pos + 1)
        start = pos
        while pos < len(self.text) and _is_digit(self.text[pos]):
            pos += 1
        return pos if pos > start else None

    # -- cursor --------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)

    def _skip_whitespace(self) -> None:
        self.pos = self._skip_from(self.pos)

    def _skip_from(self, pos: int) -> int:
        while pos < len(self.text) and self.text[pos].isspace():
            pos += 1
        return pos

    def _invalid(self, reason: str) -> InvalidNotation:
        return InvalidNotation(self.text, reason)


def parse(text: str, max_dice: int = MAX_DICE) -> DiceExpression:
    return DiceParser(text, max_dice=max_dice).parse()


def _format_comparison(comparison: Comparison, value: int) -> str:
    return f"{comparison}{value}"


def _format_condition(condition: ExplodeCondition) -> str:
    if isinstance(condition, MaxCondition):
        return ""
    if isinstance(condition, ValueCondition):
        return str(condition.value)
    return _format_comparison(condition.comparison, condition.value)


def _format_dice(count: int, sides: int) -> str:
    return f"{count}d{sides}" if count != 1 else f"d{sides}"


def format_expression(expr: DiceExpression) -> str:
    """Render an expression back into canonical notation.

    Parsing the result gives back an equal expression for anything the
    parser produces.
    """

    if isinstance(expr, Constant):
        return str(expr.value)

    if isinstance(expr, Binary):
        precedence = _PRECEDENCE[expr.op]
        left = format_expression(expr.left)
        right = format_expression(expr.right)
        if isinstance(expr.left, Binary) and _PRECEDENCE[expr.left.op] < precedence:
            left = f"({left})"
        if isinstance(expr.right, Binary) and _PRECEDENCE[expr.right.op] <= precedence:
            right = f"({right})"
        return f"{left} {expr.op} {right}"

    if isinstance(expr, Repeat):
        return f"{format_expression(expr.expression)}x{expr.times}"

    base = _format_dice(expr.count, expr.sides)

    if isinstance(expr, Simple):
        return base
    if isinstance(expr, KeepHighest):
        return f"{base}K{expr.keep}"
    if isinstance(expr, KeepLowest):
        return f"{base}k{expr.keep}"
    if isinstance(expr, DropHighest):
        return f"{base}X{expr.drop}"
    if isinstance(expr, DropLowest):
        return f"{base}x" if expr.drop == 1 else f"{base}x{expr.drop}"
    if isinstance(expr, Exploding):
        return f"{base}!{_format_condition(expr.condition)}"
    if isinstance(expr, SuccessCounting):
        return f"{base}{_format_comparison(expr.comparison, expr.target)}"
    if isinstance(expr, SuccessFailure):
        success = _format_comparison(expr.success_comparison, expr.success_target)
        failure = _format_comparison(expr.failure_comparison, expr.failure_target)
        return f"{base}{success}f{failure}"
    if isinstance(expr, Rerolling):
        flag = "r" if expr.reroll_type == "once" else "R"
        return f"{base}{flag}{_format_condition(expr.condition)}"

    raise TypeError(f"Unknown dice expression: {expr!r}")


def parse_request(text: str, max_dice: int = MAX_DICE) -> ParsedRollRequest:
    if not text or not text.strip():
        raise EmptyInput()

    normalized = text.strip()
    expression = parse(normalized, max_dice=max_dice)

    return ParsedRollRequest(
        input=text,
        normalized_input=normalized,
        expression=expression,
        normalized_expression=format_expression(expression),
    )
