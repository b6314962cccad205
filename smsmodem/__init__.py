"""
smsmodem - Python library for driving GSM modems over AT commands.
"""

from .version import __version__
from .modem import GSMModem
from .core import MockTransport
from .session import Session

from .types import (
    Packet,
    OK,
    ERROR,
    Message,
    MessageList,
    MessageNotification,
    ServiceStatus,
    NetworkStatus,
    SMSCAddress,
    StorageAreas,
    StorageInfo,
    UnknownPacket,
    EncodeMode,
    MessageFormat,
    SMSStatus,
)

from .exceptions import (
    ModemError,
    TransportError,
    DeviceDisconnectedError,
    DeviceError,
    ProtocolError,
    ATTimeoutError,
    UnsupportedArgument,
    ModemNotStartedError,
)

__all__ = [
    "__version__",
    "GSMModem",
    "MockTransport",
    "Session",
    "Packet",
    "OK",
    "ERROR",
    "Message",
    "MessageList",
    "MessageNotification",
    "ServiceStatus",
    "NetworkStatus",
    "SMSCAddress",
    "StorageAreas",
    "StorageInfo",
    "UnknownPacket",
    "EncodeMode",
    "MessageFormat",
    "SMSStatus",
    "ModemError",
    "TransportError",
    "DeviceDisconnectedError",
    "DeviceError",
    "ProtocolError",
    "ATTimeoutError",
    "UnsupportedArgument",
    "ModemNotStartedError",
]
