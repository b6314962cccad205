"""
Packet parser.

Classifies one bounded reply (terminal status, header line, accumulated body)
into a typed Packet. Handles:

- bare terminal statuses (OK / ERROR / +CMS ERROR / +CME ERROR)
- +CMGR (read message), +CMGL (list messages)
- +CPMS (storage areas / storage counts)
- +CSCA (service center address)
- +CMTI, +ZPASR, +ZDONR notifications
"""

import logging
from datetime import datetime
from typing import Optional, Type, TypeVar

from ..exceptions import ProtocolError
from ..types import (
    Arg,
    ERROR,
    Message,
    MessageNotification,
    NetworkStatus,
    OK,
    PDU_STATUS_MAP,
    Packet,
    SMSCAddress,
    ServiceStatus,
    StorageAreas,
    StorageInfo,
    UnknownPacket,
)

logger = logging.getLogger(__name__)

# Time format in AT protocol, without the trailing zone (e.g. "+00")
TIME_FORMAT = "%y/%m/%d,%H:%M:%S"

T = TypeVar("T")


def is_final_status(line: str) -> bool:
    """Check whether a line terminates a command's reply."""
    return (
        line == "OK"
        or line == "ERROR"
        or "+CMS ERROR" in line
        or "+CME ERROR" in line
    )


def parse_time(value: str) -> Optional[datetime]:
    """
    Parse an AT formatted time, e.g. ``"23/01/15,10:30:45+00"``.

    The 3-character zone suffix is discarded.

    Returns:
        Naive datetime, or None when the value is malformed
    """
    if len(value) <= 3:
        return None
    try:
        return datetime.strptime(value[:-3], TIME_FORMAT)
    except ValueError:
        logger.debug(f"Ignoring malformed timestamp: {value!r}")
        return None


def split_args(text: str) -> list[str]:
    """
    Split an argument list on commas outside double quotes.

    ``'"a,b",1,,"c"'`` -> ``['"a,b"', '1', '', '"c"']``
    """
    tokens = []
    current = []
    in_quotes = False
    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        if char == "," and not in_quotes:
            tokens.append("".join(current))
            current = []
            continue
        current.append(char)
    tokens.append("".join(current))
    return tokens


def unquote(token: str) -> Arg:
    """Unquote one token to a string, or to an int if it is numeric."""
    token = token.strip()
    if token.startswith('"'):
        return token.strip('"')
    try:
        return int(token)
    except ValueError:
        return token


def unquotes(text: str) -> list[Arg]:
    """Unquote a parameter list to values."""
    return [unquote(token) for token in split_args(text)]


def strings_unquotes(text: str) -> tuple[str, ...]:
    """Unquote a parameter list to strings."""
    return tuple(str(arg) for arg in unquotes(text))


def _field(args: list[Arg], i: int, kind: Type[T], header: str) -> T:
    """Typed access to argument ``i`` of a header."""
    if i >= len(args):
        raise ProtocolError(
            f"Missing argument {i} in {header.split(':', 1)[0]} reply",
            response=[header]
        )
    value = args[i]
    if not isinstance(value, kind):
        expected = "|".join(k.__name__ for k in kind) if isinstance(kind, tuple) else kind.__name__
        raise ProtocolError(
            f"Argument {i} of {header.split(':', 1)[0]} reply is "
            f"{type(value).__name__}, expected {expected}",
            response=[header]
        )
    return value


def _status_field(args: list[Arg], i: int, header: str) -> str:
    # Text mode reports "REC READ"; PDU mode reports 1
    value = _field(args, i, (str, int), header)
    if isinstance(value, int):
        return PDU_STATUS_MAP.get(value, str(value))
    return value


def _status_packet(status: str) -> Packet:
    return OK() if status == "OK" else ERROR()


def _parse_cmgr(args: list[Arg], header: str, body: str) -> Message:
    if len(args) > 1 and args[1] == "":
        # CMGF=0: the body is the raw PDU
        return Message(body=body)
    return Message(
        status=_status_field(args, 0, header),
        telephone=str(_field(args, 1, (str, int), header)),
        timestamp=parse_time(_field(args, 3, str, header)),
        body=body,
    )


def _parse_cmgl(status: str, args: list[Arg], header: str, body: str) -> Message:
    # Telephone is an int on some devices, a string on others
    telephone = _field(args, 2, (str, int), header)
    timestamp = None
    if len(args) > 4:
        timestamp = parse_time(_field(args, 4, str, header))
    return Message(
        index=_field(args, 0, int, header),
        status=_status_field(args, 1, header),
        telephone=str(telephone),
        timestamp=timestamp,
        body=body,
        last=status != "",
    )


def _parse_cpms(raw: str, args: list[Arg], header: str) -> Optional[Packet]:
    if raw.startswith("("):
        # query response: ("A","B","C"),("A","B","C"),("A","B","C")
        groups = raw.removeprefix("(").removesuffix(")").split("),(", 2)
        if len(groups) != 3:
            raise ProtocolError(
                f"Expected 3 storage groups, got {len(groups)}",
                response=[header]
            )
        return StorageAreas(*(strings_unquotes(group) for group in groups))

    # set response: 0,100,0,100,0,100 (older devices report only two areas)
    counts = [arg for arg in args if isinstance(arg, int)]
    if len(counts) == 6:
        return StorageInfo(*counts)
    if len(counts) == 4:
        return StorageInfo(*counts, 0, 0)
    return None


def parse_packet(status: str, header: str, body: str) -> Optional[Packet]:
    """
    Parse one bounded reply.

    Args:
        status: Terminal status line, "" for a listing continuation
        header: Reply header line (e.g., '+CMTI: "SM",4'), "" if none
        body: Lines following the header, joined with newlines

    Returns:
        The Packet, or None for replies that are deliberately dropped

    Raises:
        ProtocolError: If a known header has missing or mistyped fields
    """
    if header == "" and is_final_status(status):
        return _status_packet(status)

    if ":" not in header:
        return UnknownPacket(header, ())

    name, raw = header.split(":", 1)
    raw = raw.strip()
    args = unquotes(raw)

    if name == "+ZUSIMR":
        # message storage unset nag
        return None
    if name == "+ZPASR":
        return ServiceStatus(_field(args, 0, str, header))
    if name == "+ZDONR":
        return NetworkStatus(_field(args, 0, str, header))
    if name == "+CMTI":
        return MessageNotification(_field(args, 0, str, header), _field(args, 1, int, header))
    if name == "+CSCA":
        return SMSCAddress(tuple(args))
    if name == "+CMGR":
        return _parse_cmgr(args, header, body)
    if name == "+CMGL":
        return _parse_cmgl(status, args, header, body)
    if name == "+CPMS":
        packet = _parse_cpms(raw, args, header)
        if packet is not None:
            return packet
    if name == "":
        return _status_packet(status)

    return UnknownPacket(name, tuple(args))
