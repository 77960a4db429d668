from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from .config import settings
from .errors import (
    DiceError,
    EmptyInput,
    InvalidDiceCount,
    InvalidDieSize,
    InvalidNotation,
    TooManyDice,
)
from .evaluator import Outcome, evaluate_outcome
from .models import DiceExpression
from .parser import parse, parse_request
from .rng import RandomSource, describe, seeded_random, system_random


# Raised as-is so callers can branch on them; everything else becomes InvalidNotation.
_PASS_THROUGH = (TooManyDice, InvalidDiceCount, InvalidDieSize)


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _as_public_error(error: DiceError, notation: str) -> DiceError:
    if isinstance(error, _PASS_THROUGH):
        return error
    reason = error.reason if isinstance(error, InvalidNotation) else error.detail
    return InvalidNotation(notation, reason)


def _roll_outcome(
    notation: str,
    expression: DiceExpression,
    rng: RandomSource,
) -> Outcome:
    try:
        return evaluate_outcome(expression, rng)
    except DiceError as e:
        raise _as_public_error(e, notation) from e


def roll(notation: str, rng: RandomSource | None = None, max_dice: int | None = None) -> list[int]:
    """Roll ``notation`` and return every die result and modifier, in order.

    ``"2d6 + 3"`` gives the two dice followed by ``3``; a subtracted or
    floor-divided constant comes back negative. Multiplication and division
    collapse their left side into one value.

    Raises:
        EmptyInput: If the notation is blank.
        TooManyDice, InvalidDiceCount, InvalidDieSize: For those specific problems.
        InvalidNotation: For anything else, carrying the original input.
    """

    if not notation or not notation.strip():
        raise EmptyInput()

    limit = max_dice if max_dice is not None else settings.max_dice
    try:
        expression = parse(notation.strip(), max_dice=limit)
    except DiceError as e:
        raise _as_public_error(e, notation) from e

    if rng is None:
        rng = system_random()
    return _roll_outcome(notation, expression, rng).values


def _default_rng() -> tuple[RandomSource, int | None]:
    if settings.rng_seed is not None:
        return seeded_random(settings.rng_seed), settings.rng_seed
    return system_random(), None


def roll_from_text(text: str, rng: RandomSource | None = None) -> dict[str, Any]:
    """Parse, validate, then roll. Raises DiceError for invalid input."""

    try:
        parsed = parse_request(text, max_dice=settings.max_dice)
    except EmptyInput:
        raise
    except DiceError as e:
        raise _as_public_error(e, text) from e

    seed = None
    if rng is None:
        rng, seed = _default_rng()

    outcome = _roll_outcome(text, parsed.expression, rng)

    rng_info: dict[str, Any] = {
        "source": describe(rng),
        "nonce": str(uuid.uuid4()),
    }
    if seed is not None:
        rng_info["seed"] = seed

    return {
        "request_id": uuid.uuid4().hex,
        "timestamp": _now_utc_iso(),
        "input": text,
        "normalized_expression": parsed.normalized_expression,
        "rng": rng_info,
        "results": outcome.values,
        "total": outcome.total,
        "explanation": f"{parsed.normalized_expression}: {outcome.values} => {outcome.total}",
    }
