import pytest

from mcp_dice_notation.errors import (
    DiceError,
    EmptyInput,
    InvalidDiceCount,
    InvalidDieSize,
    InvalidModifier,
    InvalidNotation,
    TooManyDice,
    UnsupportedOperator,
)
from mcp_dice_notation.parser import parse, parse_request


@pytest.mark.parametrize(
    ("text", "error", "prefix"),
    [
        ("0d6", InvalidDiceCount, "[INVALID_DICE_COUNT]"),
        ("11d6", TooManyDice, "[TOO_MANY_DICE]"),
        ("2d6 + (3d4 * 11d6)", TooManyDice, "[TOO_MANY_DICE]"),
        ("2d0", InvalidDieSize, "[INVALID_DIE_SIZE]"),
        ("2d-6", InvalidDieSize, "[INVALID_DIE_SIZE]"),
        ("2d6 + 1.5", InvalidModifier, "[INVALID_MODIFIER]"),
        ("2d6 % 3", UnsupportedOperator, "[UNSUPPORTED_OPERATOR]"),
        ("2d6 ^ 2", UnsupportedOperator, "[UNSUPPORTED_OPERATOR]"),
        ("3d6K4", InvalidNotation, "[INVALID_NOTATION]"),
        ("3d6K0", InvalidNotation, "[INVALID_NOTATION]"),
        ("3d6X3", InvalidNotation, "[INVALID_NOTATION]"),
        ("3d6x3x2", InvalidNotation, "[INVALID_NOTATION]"),
        ("1d6x", InvalidNotation, "[INVALID_NOTATION]"),
        ("5d10>6f>3", InvalidNotation, "[INVALID_NOTATION]"),
        ("5d10<6f<3", InvalidNotation, "[INVALID_NOTATION]"),
        ("5d10>6f3", InvalidNotation, "[INVALID_NOTATION]"),
        ("5d10>", InvalidNotation, "[INVALID_NOTATION]"),
        ("4d6r", InvalidNotation, "[INVALID_NOTATION]"),
        ("3d6x0", InvalidNotation, "[INVALID_NOTATION]"),
        ("10d6x300000", InvalidNotation, "[INVALID_NOTATION]"),
        ("10d6x2147483647", InvalidNotation, "[INVALID_NOTATION]"),
        ("(2d6 + 3", InvalidNotation, "[INVALID_NOTATION]"),
        ("2d6 + 3)", InvalidNotation, "[INVALID_NOTATION]"),
        ("2d", InvalidNotation, "[INVALID_NOTATION]"),
        ("2D6", InvalidNotation, "[INVALID_NOTATION]"),
        ("2d6 +", InvalidNotation, "[INVALID_NOTATION]"),
        ("2d6 3", InvalidNotation, "[INVALID_NOTATION]"),
        ("invalid", InvalidNotation, "[INVALID_NOTATION]"),
        ("99999999999", InvalidNotation, "[INVALID_NOTATION]"),
    ],
)
def test_parse_rejections(text, error, prefix):
    with pytest.raises(error) as exc:
        parse(text)
    assert str(exc.value).startswith(prefix)


@pytest.mark.parametrize(
    ("text", "reason"),
    [
        ("3d6K4", "Cannot keep more dice than rolled"),
        ("3d6X3", "Cannot drop all dice"),
        ("5d10>6f>3", "Success and failure conditions cannot both be greater than or both less than"),
        ("5d10>6f3", "Expected '>' or '<' after 'f'"),
        ("4d6r", "Expected reroll condition after 'r' or 'R'"),
        ("3d6x0", "Must drop at least one die"),
        ("3d6X0", "Must drop at least one die"),
        ("3d6K2x0", "Repeat count must be positive"),
        ("10d6x300000", "Repeat count 300000 exceeds the maximum of 100"),
        ("(2d6 + 3", "Expected closing parenthesis ')'"),
        ("2d6 + 3)", "Unexpected character ')' at position 7"),
        ("2d6 +", "Expected number"),
        ("99999999999", "Invalid number: '99999999999'"),
    ],
)
def test_rejection_reasons(text, reason):
    with pytest.raises(InvalidNotation) as exc:
        parse(text)
    assert exc.value.reason == reason
    assert exc.value.input == text


def test_too_many_dice_reports_count_and_ceiling():
    with pytest.raises(TooManyDice) as exc:
        parse("26d6", max_dice=25)
    assert (exc.value.count, exc.value.max) == (26, 25)


def test_count_check_runs_before_size_check():
    with pytest.raises(InvalidDiceCount):
        parse("0d0")


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_parse_request_rejects_blank_input(text):
    with pytest.raises(EmptyInput) as exc:
        parse_request(text)
    assert str(exc.value).startswith("[EMPTY_INPUT]")


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse("nonsense")
    assert issubclass(TooManyDice, DiceError)


def test_long_operator_chain_is_rejected():
    text = " + ".join(["1"] * 1200)
    with pytest.raises(InvalidNotation) as exc:
        parse(text)
    assert exc.value.reason == "Expression has more than 100 operators"


def test_deep_nesting_is_rejected():
    text = "(" * 400 + "1" + ")" * 400
    with pytest.raises(InvalidNotation) as exc:
        parse(text)
    assert exc.value.reason == "Parentheses nested deeper than 50 levels"


def test_limits_admit_their_bounds():
    assert parse(" + ".join(["1"] * 101)) is not None
    assert parse("(" * 50 + "1" + ")" * 50) == parse("1")
