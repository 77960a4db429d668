import pytest

from mcp_dice_notation.server import roll_dice


def test_roll_dice_returns_audit_record():
    result = roll_dice("2d6 + 3")

    assert result["results"][-1] == 3
    assert result["total"] == sum(result["results"])
    assert result["normalized_expression"] == "2d6 + 3"


@pytest.mark.parametrize(
    ("text", "prefix"),
    [
        ("", "[EMPTY_INPUT]"),
        ("11d6", "[TOO_MANY_DICE]"),
        ("2d6 % 3", "[INVALID_NOTATION]"),
    ],
)
def test_roll_dice_rejections(text, prefix):
    with pytest.raises(ValueError) as exc:
        roll_dice(text)
    assert str(exc.value).startswith(prefix)
