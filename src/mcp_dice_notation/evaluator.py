"""Evaluate parsed dice expressions against a random source.

Each node yields an :class:`Outcome`: the flat list of values a caller sees
(individual dice, modifiers, collapsed products) and the arithmetic total
of the node. Evaluation never mutates the expression; the only side effect
is drawing numbers from the random source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import InvalidNotation
from .models import (
    Binary,
    Constant,
    DiceExpression,
    DropHighest,
    DropLowest,
    Exploding,
    KeepHighest,
    KeepLowest,
    Repeat,
    Rerolling,
    Simple,
    SuccessCounting,
    SuccessFailure,
    compare,
    condition_met,
)
from .rng import RandomSource, system_random


logger = logging.getLogger(__name__)

# Per-die safety caps for conditions that could otherwise never stop.
MAX_EXPLOSIONS = 100
MAX_REROLLS = 100

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


@dataclass(frozen=True)
class Outcome:
    values: list[int]
    total: int


def _roll_dice(rng: RandomSource, count: int, sides: int) -> list[int]:
    return [rng.randint(1, sides) for _ in range(count)]


def _truncating_div(dividend: int, divisor: int) -> int:
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend >= 0) == (divisor >= 0) else -quotient


def _explode(rng: RandomSource, expr: Exploding) -> list[int]:
    results: list[int] = []
    for _ in range(expr.count):
        current = rng.randint(1, expr.sides)
        results.append(current)

        explosions = 0
        while condition_met(expr.condition, current, expr.sides):
            if explosions == MAX_EXPLOSIONS:
                logger.debug("Explosion cap of %d reached for d%d", MAX_EXPLOSIONS, expr.sides)
                break
            current = rng.randint(1, expr.sides)
            results.append(current)
            explosions += 1

    return results


def _reroll(rng: RandomSource, expr: Rerolling) -> list[int]:
    limit = 1 if expr.reroll_type == "once" else MAX_REROLLS

    results: list[int] = []
    for _ in range(expr.count):
        current = rng.randint(1, expr.sides)

        rerolls = 0
        while condition_met(expr.condition, current, expr.sides):
            if rerolls == limit:
                if expr.reroll_type == "continuous":
                    logger.debug("Reroll cap of %d reached for d%d", MAX_REROLLS, expr.sides)
                break
            current = rng.randint(1, expr.sides)
            rerolls += 1

        results.append(current)

    return results


def _combine(expr: Binary, left: Outcome, right: Outcome) -> Outcome:
    outcome = _apply(expr, left, right)
    if not all(_INT_MIN <= value <= _INT_MAX for value in (*outcome.values, outcome.total)):
        raise InvalidNotation("integer overflow", "Result is outside the 32-bit integer range")
    return outcome


def _apply(expr: Binary, left: Outcome, right: Outcome) -> Outcome:
    if expr.op == "+":
        return Outcome(values=left.values + right.values, total=left.total + right.total)

    if expr.op == "-":
        negated = [-value for value in right.values]
        return Outcome(values=left.values + negated, total=left.total - right.total)

    if expr.op == "*":
        total = left.total * right.total
    else:
        if right.total == 0:
            raise InvalidNotation("division by zero", "Cannot divide by zero")
        if expr.op == "/":
            total = _truncating_div(left.total, right.total)
        else:
            total = left.total // right.total

    # A bare constant on the right is kept as a modifier marker after the
    # collapsed left side; floor division marks it with a negative sign.
    if isinstance(expr.right, Constant):
        marker = -expr.right.value if expr.op == "//" else expr.right.value
        return Outcome(values=[left.total, marker], total=total)

    return Outcome(values=[total], total=total)


def _evaluate(expr: DiceExpression, rng: RandomSource) -> Outcome:
    if isinstance(expr, Constant):
        return Outcome(values=[expr.value], total=expr.value)

    if isinstance(expr, Binary):
        left = _evaluate(expr.left, rng)
        right = _evaluate(expr.right, rng)
        return _combine(expr, left, right)

    if isinstance(expr, Repeat):
        values: list[int] = []
        total = 0
        for _ in range(expr.times):
            outcome = _evaluate(expr.expression, rng)
            values.extend(outcome.values)
            total += outcome.total
        return Outcome(values=values, total=total)

    if isinstance(expr, SuccessCounting):
        rolls = _roll_dice(rng, expr.count, expr.sides)
        successes = sum(1 for roll in rolls if compare(roll, expr.comparison, expr.target))
        return Outcome(values=[successes], total=successes)

    if isinstance(expr, SuccessFailure):
        net = 0
        for roll in _roll_dice(rng, expr.count, expr.sides):
            # Both tests apply to every roll; they are not mutually exclusive.
            if compare(roll, expr.success_comparison, expr.success_target):
                net += 1
            if compare(roll, expr.failure_comparison, expr.failure_target):
                net -= 1
        return Outcome(values=[net], total=net)

    if isinstance(expr, Simple):
        rolls = _roll_dice(rng, expr.count, expr.sides)
    elif isinstance(expr, KeepHighest):
        rolls = sorted(_roll_dice(rng, expr.count, expr.sides), reverse=True)[: expr.keep]
    elif isinstance(expr, KeepLowest):
        rolls = sorted(_roll_dice(rng, expr.count, expr.sides))[: expr.keep]
    elif isinstance(expr, DropHighest):
        rolls = sorted(_roll_dice(rng, expr.count, expr.sides))[: expr.count - expr.drop]
    elif isinstance(expr, DropLowest):
        rolls = sorted(_roll_dice(rng, expr.count, expr.sides), reverse=True)[
            : expr.count - expr.drop
        ]
    elif isinstance(expr, Exploding):
        rolls = _explode(rng, expr)
    elif isinstance(expr, Rerolling):
        rolls = _reroll(rng, expr)
    else:
        raise TypeError(f"Unknown dice expression: {expr!r}")

    return Outcome(values=rolls, total=sum(rolls))


def evaluate_outcome(expr: DiceExpression, rng: RandomSource | None = None) -> Outcome:
    """Evaluate ``expr`` and return both its values and its total."""

    return _evaluate(expr, rng if rng is not None else system_random())


def evaluate(expr: DiceExpression, rng: RandomSource | None = None) -> list[int]:
    return evaluate_outcome(expr, rng).values
