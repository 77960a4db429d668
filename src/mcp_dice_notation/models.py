from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias


Comparison: TypeAlias = Literal[">", "<"]
BinaryOp: TypeAlias = Literal["+", "-", "*", "/", "//"]
RerollType: TypeAlias = Literal["once", "continuous"]


@dataclass(frozen=True)
class MaxCondition:
    """Explode when a die shows its highest face."""


@dataclass(frozen=True)
class ValueCondition:
    value: int


@dataclass(frozen=True)
class ComparisonCondition:
    comparison: Comparison
    value: int


ExplodeCondition: TypeAlias = MaxCondition | ValueCondition | ComparisonCondition
RerollCondition: TypeAlias = ValueCondition | ComparisonCondition


def compare(roll: int, comparison: Comparison, target: int) -> bool:
    if comparison == ">":
        return roll > target
    return roll < target


def condition_met(condition: ExplodeCondition, roll: int, sides: int) -> bool:
    if isinstance(condition, MaxCondition):
        return roll == sides
    if isinstance(condition, ValueCondition):
        return roll == condition.value
    return compare(roll, condition.comparison, condition.value)


@dataclass(frozen=True)
class Simple:
    count: int
    sides: int


@dataclass(frozen=True)
class KeepHighest:
    count: int
    sides: int
    keep: int


@dataclass(frozen=True)
class KeepLowest:
    count: int
    sides: int
    keep: int


@dataclass(frozen=True)
class DropHighest:
    count: int
    sides: int
    drop: int


@dataclass(frozen=True)
class DropLowest:
    count: int
    sides: int
    drop: int


@dataclass(frozen=True)
class Exploding:
    count: int
    sides: int
    condition: ExplodeCondition


@dataclass(frozen=True)
class SuccessCounting:
    count: int
    sides: int
    target: int
    comparison: Comparison


@dataclass(frozen=True)
class SuccessFailure:
    count: int
    sides: int
    success_target: int
    success_comparison: Comparison
    failure_target: int
    failure_comparison: Comparison


@dataclass(frozen=True)
class Rerolling:
    count: int
    sides: int
    condition: RerollCondition
    reroll_type: RerollType


@dataclass(frozen=True)
class Repeat:
    expression: DiceExpression
    times: int


@dataclass(frozen=True)
class Binary:
    left: DiceExpression
    op: BinaryOp
    right: DiceExpression


@dataclass(frozen=True)
class Constant:
    value: int


DiceTerm: TypeAlias = (
    Simple
    | KeepHighest
    | KeepLowest
    | DropHighest
    | DropLowest
    | Exploding
    | SuccessCounting
    | SuccessFailure
    | Rerolling
)

DiceExpression: TypeAlias = DiceTerm | Repeat | Binary | Constant


@dataclass(frozen=True)
class ParsedRollRequest:
    input: str
    normalized_input: str
    expression: DiceExpression
    normalized_expression: str
