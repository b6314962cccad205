"""
AT command line formatting.
"""

from typing import Iterable

from ..exceptions import UnsupportedArgument
from ..types import Arg

QUERY = "?"


def quote(value: Arg) -> str:
    """
    Render one argument for the wire.

    Strings are double-quoted, except the query marker ``?``; integers are
    written in decimal.

    Raises:
        UnsupportedArgument: For any other type (``bool`` included)
    """
    if isinstance(value, str):
        if value == QUERY:
            return value
        return f'"{value}"'
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise UnsupportedArgument(f"Unsupported argument type: {type(value).__name__}")


def quotes(values: Iterable[Arg]) -> str:
    """Comma-join quoted arguments, preserving order."""
    return ",".join(quote(value) for value in values)


def format_command(name: str, *args: Arg) -> str:
    """
    Build a command line.

    Example:

    .. code-block:: python

        format_command("+CMGS", "+15551234")  # 'AT+CMGS="+15551234"\\r\\n'
        format_command("+CPMS", "?")          # 'AT+CPMS=?\\r\\n'
        format_command("+CSCA?")              # 'AT+CSCA?\\r\\n'
    """
    line = "AT" + name
    if args:
        line += "=" + quotes(args)
    return line + "\r\n"


def normalize_command(cmd: str) -> str:
    """
    Normalize a raw AT command typed by a user.

    Ensures the command starts with "AT" and ends with "\\r\\n".
    """
    cmd = cmd.strip()

    if not cmd.upper().startswith("AT"):
        cmd = "AT" + cmd

    return cmd + "\r\n"
