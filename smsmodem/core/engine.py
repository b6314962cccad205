"""
AT protocol state machine.

Turns the stream of reply lines into bounded (status, header, body) triples,
separating solicited replies from unsolicited notifications.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .lines import PROMPT
from .transport import Transport
from ..exceptions import ProtocolError
from ..parsers.packet import is_final_status, parse_packet
from ..types import Packet, Reply

logger = logging.getLogger(__name__)

_COMMAND_PREFIX = re.compile(r"AT(\+[A-Z]+)")
_LINE_BREAKS = re.compile(r"[\r\n]")

CTRL_Z = "\x1a"


@dataclass
class Request:
    """
    One outgoing command.

    Attributes:
        line: Complete command line including CRLF
        body: Text sent after the device's "> " prompt, terminated by Ctrl+Z
    """
    line: str
    body: Optional[str] = None


class ProtocolEngine:
    """
    Line classifier and reply accumulator.

    State held across lines:

    - ``echo``: last transmitted line, without terminator
    - ``body_echo``: lines of the last body written after a prompt
    - ``expected_prefix``: "+XXXX" token of the last command, "" if none
    - ``header``: reply header awaiting its terminal status, "" if none
    - ``body``: lines accumulated after ``header``

    Not thread-safe: the engine thread is the only caller.
    """

    def __init__(
        self,
        transport: Transport,
        deliver: Callable[[Reply], None],
        publish: Callable[[Packet], None]
    ) -> None:
        """
        Args:
            transport: Transport that command lines are written to
            deliver: Receives solicited replies (response channel)
            publish: Receives packets parsed from unsolicited lines
        """
        self.transport = transport
        self._deliver = deliver
        self._publish = publish

        self.echo = ""
        self.body_echo: list[str] = []
        self.expected_prefix = ""
        self.header = ""
        self.body: list[str] = []
        self.pending_body: Optional[str] = None

    def transmit(self, request: Request) -> None:
        """
        Write a command line to the transport.

        Raises:
            TransportError: If the write fails
        """
        if self.header:
            logger.warning(f"Discarding unfinished reply: {self.header}")
            self.header = ""
            self.body = []

        match = _COMMAND_PREFIX.search(request.line)
        self.expected_prefix = match.group(1) if match else ""
        self.echo = request.line.rstrip("\r\n")
        self.body_echo = []
        self.pending_body = request.body

        logger.debug(f"Transmitting: {self.echo} (prefix: {self.expected_prefix or '-'})")
        self.transport.write(request.line.encode("utf-8"))

    def handle_line(self, line: str) -> None:
        """Classify one incoming line and advance the state."""
        if self._is_echo(line):
            logger.debug(f"Ignoring echo: {line}")
        elif self.expected_prefix and line.startswith(self.expected_prefix):
            # first or next entry of a (possibly multi-entry) reply, e.g. CMGL
            if self.header:
                self._flush("")
            self.header = line
        elif is_final_status(line):
            self._flush(line)
        elif self.header:
            self.body.append(line)
        elif line == PROMPT:
            self._send_body()
        else:
            self._handle_unsolicited(line)

    def _flush(self, status: str) -> None:
        """Finalize the pending header/body into a reply."""
        header = self.header
        body = "\n".join(self.body)
        self.header = ""
        self.body = []
        if status:
            # the reply is complete; later lines with this prefix are unsolicited
            self.expected_prefix = ""

        try:
            packet = parse_packet(status, header, body)
        except ProtocolError as e:
            logger.error(f"Failed to parse reply {header!r}: {e}")
            self._deliver(Reply(status=status, error=e))
            return

        if packet is None:
            if not status:
                logger.debug(f"Dropping continuation: {header}")
                return
            packet = parse_packet(status, "", "")

        logger.debug(f"Reply: {packet} (status: {status or '-'})")
        self._deliver(Reply(status=status, packet=packet))

    def _send_body(self) -> None:
        """Write the pending body once the device prompts for it."""
        if self.pending_body is None:
            logger.debug("Ignoring data prompt, no body pending")
            return

        body = self.pending_body
        self.pending_body = None
        self.echo = body.rstrip("\r\n")
        self.body_echo = [part for part in _LINE_BREAKS.split(body) if part]
        logger.debug(f"Prompt received, sending body ({len(body)} chars)")
        self.transport.write((body + CTRL_Z).encode("utf-8"))

    def _is_echo(self, line: str) -> bool:
        # some devices echo body lines behind a fresh "> " prompt
        text = line[len(PROMPT):] if line.startswith(PROMPT) else line
        if text in self.body_echo:
            # each body line is echoed once
            self.body_echo.remove(text)
            if text == self.echo:
                self.echo = ""
            return True
        return line == self.echo or bool(text) and text == self.echo

    def _handle_unsolicited(self, line: str) -> None:
        try:
            packet = parse_packet("OK", line, "")
        except ProtocolError as e:
            logger.warning(f"Dropping malformed notification {line!r}: {e}")
            return

        if packet is None:
            logger.debug(f"Ignoring notification: {line}")
            return

        self._publish(packet)
