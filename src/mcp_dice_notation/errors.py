from __future__ import annotations


class DiceError(ValueError):
    """User-facing dice errors (fail-fast, no partial result).

    Messages start with a stable bracketed code, e.g. ``[TOO_MANY_DICE]``.
    """

    code = "DICE_ERROR"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"[{self.code}] {detail}")


class EmptyInput(DiceError):
    code = "EMPTY_INPUT"

    def __init__(self) -> None:
        super().__init__("Empty dice notation provided")


class InvalidNotation(DiceError):
    code = "INVALID_NOTATION"

    def __init__(self, input: str, reason: str) -> None:
        self.input = input
        self.reason = reason
        super().__init__(f"Invalid dice notation '{input}': {reason}")


class InvalidDieSize(DiceError):
    code = "INVALID_DIE_SIZE"

    def __init__(self, size: str) -> None:
        self.size = size
        super().__init__(f"Invalid die size '{size}': must be a positive integer")


class InvalidDiceCount(DiceError):
    code = "INVALID_DICE_COUNT"

    def __init__(self, count: str) -> None:
        self.count = count
        super().__init__(f"Invalid dice count '{count}': must be a positive integer")


class InvalidModifier(DiceError):
    code = "INVALID_MODIFIER"

    def __init__(self, modifier: str) -> None:
        self.modifier = modifier
        super().__init__(f"Invalid modifier '{modifier}': must be a valid integer")


class UnsupportedOperator(DiceError):
    code = "UNSUPPORTED_OPERATOR"

    def __init__(self, operator: str, input: str) -> None:
        self.operator = operator
        self.input = input
        super().__init__(f"Unsupported operator '{operator}' in dice notation '{input}'")


class TooManyDice(DiceError):
    code = "TOO_MANY_DICE"

    def __init__(self, count: int, max: int) -> None:
        self.count = count
        self.max = max
        super().__init__(f"Too many dice '{count}': maximum allowed is {max}")
