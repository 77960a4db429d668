from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from .config import settings
from .dice import DiceError, roll_from_text


logger = logging.getLogger(__name__)

mcp = FastMCP("mcp-dice-notation")


@mcp.tool()
def roll_dice(text: str):
    """Roll dice from standard notation, e.g. '4d6K3 + 2d8 - 1'.

    Supports keep/drop (K k X x), exploding (!), success counting (> <, f),
    rerolls (r R), repeats (x<N>) and + - * / // with parentheses.

    Input: text (string)
    Output: structured JSON with audit details + explanation

    Raises a hard error (exception) on invalid input.
    """

    try:
        return roll_from_text(text)
    except DiceError as e:
        logger.info("Rejected roll %r: %s", text, e)
        # Fail-fast: surface stable error codes in the message.
        raise ValueError(str(e)) from None


def run() -> None:
    logging.basicConfig(level=settings.log_level.upper())
    # Default transport is stdio, which works well for MCP client integration.
    mcp.run()


if __name__ == "__main__":
    run()
