"""
AT command round trips.

Caller-side half of the protocol: formats commands, hands them to the engine
thread and waits, with a deadline, for the replies that complete them.
"""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from .engine import Request
from .formatter import format_command, normalize_command
from ..exceptions import ATTimeoutError, DeviceError, ModemNotStartedError
from ..types import ERROR, Arg, Packet, Reply

logger = logging.getLogger(__name__)


class ATProtocol:
    """
    AT command protocol handler.

    Serializes round trips so that exactly one command is outstanding at a
    time, and bounds every wait with a deadline.
    """

    def __init__(
        self,
        default_timeout: float = 5.0,
        is_running: Optional[Callable[[], bool]] = None
    ) -> None:
        """
        Initialize AT protocol handler.

        Args:
            default_timeout: Default round-trip deadline in seconds
            is_running: Reports whether the engine thread is alive
        """
        self.default_timeout = default_timeout
        self._is_running = is_running or (lambda: True)

        # One outstanding command at a time; re-entrant for multi-step calls
        self._at_lock = threading.RLock()

        self._requests: "queue.Queue[Request]" = queue.Queue()
        self._responses: "queue.Queue[Reply]" = queue.Queue()

        logger.info("Initialized AT protocol handler")

    @property
    def lock(self) -> threading.RLock:
        """Lock held for the duration of a round trip."""
        return self._at_lock

    # Engine thread side

    def deliver(self, reply: Reply) -> None:
        """Put a solicited reply on the response channel."""
        self._responses.put(reply)

    def next_request(self) -> Optional[Request]:
        """Take the next outgoing request, if any, without waiting."""
        try:
            return self._requests.get_nowait()
        except queue.Empty:
            return None

    def fail_pending(self, error: Exception) -> None:
        """Wake a waiting caller with an error (engine is going away)."""
        self._responses.put(Reply(status="", error=error))

    # Caller side

    def send_command(
        self,
        cmd: str,
        *args: Arg,
        body: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> Packet:
        """
        Send a command and wait for its terminal reply.

        Args:
            cmd: Command name (e.g., "+CMGR", "Z", "+CSCA?")
            *args: Command arguments (str or int)
            body: Text to send after the "> " prompt, if the command takes one
            timeout: Round-trip deadline in seconds (uses default if None)

        Returns:
            Packet of the terminal reply

        Raises:
            ATTimeoutError: If no terminal reply arrives in time
            DeviceError: If the reply is ERROR / +CMS ERROR / +CME ERROR
            ProtocolError: If the reply could not be parsed
            UnsupportedArgument: If an argument cannot be formatted
        """
        return self.exchange(format_command(cmd, *args), body=body, timeout=timeout)

    def send_raw(self, cmd: str, timeout: Optional[float] = None) -> Packet:
        """Send a raw AT line (e.g., "AT+CSQ" or "+CSQ")."""
        return self.exchange(normalize_command(cmd), timeout=timeout)

    def exchange(
        self,
        line: str,
        body: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> Packet:
        """Transmit a formatted line and return the packet of its terminal reply."""
        return self.exchange_all(line, body=body, timeout=timeout)[-1]

    def exchange_all(
        self,
        line: str,
        body: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> list[Packet]:
        """
        Transmit a formatted line and collect every reply up to the terminal one.

        Listing commands produce one reply per entry; all others produce one.

        Returns:
            Packets in arrival order, the terminal reply's packet last
        """
        command = line.strip()
        timeout_val = timeout if timeout is not None else self.default_timeout

        with self._at_lock:
            if not self._is_running():
                raise ModemNotStartedError(
                    "Modem engine is not running", command=command
                )

            self._discard_stale(command)

            logger.debug(f"Sending AT command: {command}")
            self._requests.put(Request(line=line, body=body))

            end_time = time.monotonic() + timeout_val
            packets = []
            while True:
                reply = self._receive(command, end_time)
                if reply.packet is not None:
                    packets.append(reply.packet)
                if reply.is_final:
                    break

            logger.debug(f"Received response: {packets}")
            return packets

    def _receive(self, command: str, end_time: float) -> Reply:
        remaining = end_time - time.monotonic()
        try:
            reply = self._responses.get(timeout=max(remaining, 0))
        except queue.Empty:
            logger.error(f"AT command timed out: {command}")
            raise ATTimeoutError(f"AT command timed out: {command}", command=command) from None

        if reply.error is not None:
            if getattr(reply.error, "command", None) is None:
                reply.error.command = command
            raise reply.error

        if reply.is_final and (reply.status != "OK" or isinstance(reply.packet, ERROR)):
            logger.error(f"AT command returned {reply.status}: {command}")
            raise DeviceError(
                f"AT command {command} returned {reply.status}",
                status=reply.status,
                command=command,
                response=[reply.status]
            )

        return reply

    def _discard_stale(self, command: str) -> None:
        """Drop replies left behind by a call that timed out."""
        while True:
            try:
                stale = self._responses.get_nowait()
            except queue.Empty:
                return
            logger.warning(f"Discarding stale reply before {command}: {stale}")

    def close(self) -> None:
        """Release queued requests and replies."""
        for channel in (self._requests, self._responses):
            while True:
                try:
                    channel.get_nowait()
                except queue.Empty:
                    break
        logger.debug("Released AT protocol channels")
