"""
Data types and structures for smsmodem.

Every reply the modem produces is parsed into exactly one ``Packet`` kind.
The family is closed: consumers should go through
:func:`expect_packet` rather than probing types ad hoc.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional, Type, TypeVar, Union

from .exceptions import ProtocolError

Arg = Union[str, int]


class EncodeMode(Enum):
    """Active SMS character set (AT+CSCS)."""
    GSM = "GSM"
    UCS2 = "UCS2"


class MessageFormat(IntEnum):
    """SMS message format modes (AT+CMGF)."""
    PDU_MODE = 0
    TEXT_MODE = 1


class SMSStatus(Enum):
    """SMS message status values."""
    REC_UNREAD = "REC UNREAD"      # Received unread
    REC_READ = "REC READ"          # Received read
    STO_UNSENT = "STO UNSENT"      # Stored unsent
    STO_SENT = "STO SENT"          # Stored sent
    ALL = "ALL"                    # All messages


# PDU mode reports <stat> as a number
PDU_STATUS_MAP = {
    0: SMSStatus.REC_UNREAD.value,
    1: SMSStatus.REC_READ.value,
    2: SMSStatus.STO_UNSENT.value,
    3: SMSStatus.STO_SENT.value,
    4: SMSStatus.ALL.value,
}


class Packet:
    """Base class of every parsed modem reply."""

    __slots__ = ()


@dataclass(frozen=True)
class OK(Packet):
    """Bare successful terminal status."""


@dataclass(frozen=True)
class ERROR(Packet):
    """Bare failure terminal status (ERROR, +CMS ERROR, +CME ERROR)."""


@dataclass(frozen=True)
class Message(Packet):
    """
    A stored SMS message from AT+CMGR or one entry of AT+CMGL.

    ``last`` is only set on the final entry of a listing.
    """
    index: Optional[int] = None
    status: str = ""
    telephone: str = ""
    timestamp: Optional[datetime] = None
    body: str = ""
    last: bool = False


class MessageList(list):
    """Ordered ``Message`` entries of one AT+CMGL listing."""

    def __repr__(self) -> str:
        return f"MessageList({list.__repr__(self)})"


@dataclass(frozen=True)
class MessageNotification(Packet):
    """New message indication (+CMTI)."""
    storage: str
    index: int


@dataclass(frozen=True)
class ServiceStatus(Packet):
    """Service status report (+ZPASR), e.g. "GPRS" or "No Service"."""
    status: str


@dataclass(frozen=True)
class NetworkStatus(Packet):
    """Network operator report (+ZDONR)."""
    status: str


@dataclass(frozen=True)
class SMSCAddress(Packet):
    """Service center address (+CSCA): address followed by its type."""
    args: tuple[Arg, ...] = ()


@dataclass(frozen=True)
class StorageAreas(Packet):
    """Supported storage areas (AT+CPMS=?), one sequence per memory slot."""
    read: tuple[str, ...]
    write: tuple[str, ...]
    receive: tuple[str, ...]


@dataclass(frozen=True)
class StorageInfo(Packet):
    """Used/total counts for the three preferred storage areas (+CPMS)."""
    used1: int
    total1: int
    used2: int
    total2: int
    used3: int
    total3: int


@dataclass(frozen=True)
class UnknownPacket(Packet):
    """Any header no rule matches."""
    name: str
    args: tuple[Arg, ...] = ()


# MessageList spans several replies and is assembled by the caller, so it is
# not itself produced by the parser.
PACKET_KINDS = (
    OK,
    ERROR,
    Message,
    MessageNotification,
    ServiceStatus,
    NetworkStatus,
    SMSCAddress,
    StorageAreas,
    StorageInfo,
    UnknownPacket,
)


@dataclass
class Reply:
    """
    Envelope delivered on the response channel.

    Attributes:
        status: Terminal status line ("" for a listing continuation)
        packet: Parsed packet, if any
        error: Error to raise in the waiting caller instead of returning
    """
    status: str = ""
    packet: Optional[Packet] = None
    error: Optional[Exception] = field(default=None, repr=False)

    @property
    def is_final(self) -> bool:
        """True when this reply ends the command's response."""
        return self.status != ""


P = TypeVar("P", bound=Packet)


def expect_packet(packet: Optional[Packet], kind: Type[P], command: Optional[str] = None) -> P:
    """
    Narrow a packet to the kind an operation requires.

    Raises:
        ProtocolError: If the packet is of any other kind
    """
    if not isinstance(packet, kind):
        raise ProtocolError(
            f"Expected {kind.__name__}, got {type(packet).__name__}",
            command=command,
            response=[repr(packet)]
        )
    return packet
