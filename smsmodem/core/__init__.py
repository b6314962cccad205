"""
Core modem infrastructure.

Provides low-level building blocks for modem communication:
- Transport: Byte stream abstraction
- LineReader: Reply line framing
- Formatter: AT command line rendering
- ProtocolEngine: Reply state machine
- Protocol: AT command round trips
- OOB: Unsolicited packet handling
- ModemCore: Coordination of all core components
"""

from .transport import Transport, SerialTransport, LoggingTransport, MockTransport
from .lines import LineReader
from .formatter import quote, quotes, format_command, normalize_command
from .engine import ProtocolEngine, Request
from .protocol import ATProtocol
from .oob import OOBChannel, OOBCallback
from .modem import ModemCore

__all__ = [
    "Transport",
    "SerialTransport",
    "LoggingTransport",
    "MockTransport",
    "LineReader",
    "quote",
    "quotes",
    "format_command",
    "normalize_command",
    "ProtocolEngine",
    "Request",
    "ATProtocol",
    "OOBChannel",
    "OOBCallback",
    "ModemCore",
]
