"""
Core modem class coordinating transport, protocol engine, and OOB handling.

This is the foundation that feature managers build upon.
"""

import logging
import threading
from typing import Callable, Optional, Type

from .engine import ProtocolEngine
from .formatter import format_command
from .lines import LineReader
from .oob import OOBCallback, OOBChannel
from .protocol import ATProtocol
from .transport import Transport
from ..exceptions import DeviceDisconnectedError, ModemNotStartedError, TransportError
from ..types import Arg, Packet

logger = logging.getLogger(__name__)


class ModemCore:
    """
    Core modem functionality.

    Coordinates:
    - Transport layer (byte stream to the device)
    - Engine thread (line reader + protocol state machine, sole owner of the
      transport)
    - Protocol layer (caller-side round trips)
    - OOB channel (unsolicited packets)

    This class provides the foundation for feature-specific managers.
    """

    def __init__(
        self,
        transport: Transport,
        timeout: float = 5.0,
        log_oob: bool = False,
        max_oob_queue_size: int = 16,
        on_disconnect: Optional[Callable[[Exception], None]] = None
    ) -> None:
        """
        Initialize modem core.

        Args:
            transport: Transport instance for communication
            timeout: Default round-trip deadline for AT commands
            log_oob: Whether to log OOB packets at INFO level
            max_oob_queue_size: Maximum OOB packets to queue
            on_disconnect: Optional callback for disconnection events
        """
        self.transport = transport
        self.protocol = ATProtocol(default_timeout=timeout, is_running=self.is_running)
        self.oob = OOBChannel(
            max_queue_size=max_oob_queue_size,
            log_packets=log_oob
        )
        self.engine = ProtocolEngine(
            transport,
            deliver=self.protocol.deliver,
            publish=self.oob.put
        )

        # Engine thread management
        self._engine_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False
        self._closed = False
        self._on_disconnect = on_disconnect

        self._disconnected = False

        logger.info("Initialized ModemCore")

    def start(self) -> None:
        """
        Start the engine thread.

        The engine thread alternates between transmitting queued commands and
        reading the transport, routing each line through the state machine to
        either the response channel or the OOB channel.
        """
        if self._running:
            logger.warning("ModemCore already started")
            return
        if self._closed:
            raise ModemNotStartedError("ModemCore has been closed")

        self._disconnected = False

        self._stop_event.clear()
        self._engine_thread = threading.Thread(
            target=self._engine_loop,
            daemon=True,
            name="ModemEngineThread"
        )
        self._running = True
        self._engine_thread.start()
        logger.info("Started modem engine thread")

    def stop(self) -> None:
        """
        Stop the engine thread.

        Signals the thread and waits for it to terminate.
        """
        if self._engine_thread is None:
            return

        logger.info("Stopping modem engine thread...")
        self._stop_event.set()

        self._engine_thread.join(timeout=2.0)
        if self._engine_thread.is_alive():
            logger.warning("Engine thread did not terminate in time")
        self._engine_thread = None

        self._running = False
        logger.info("Stopped modem engine thread")

    def close(self) -> None:
        """
        Close the modem connection.

        Stops the engine thread first, then closes the transport, then
        releases the response and OOB channels.
        """
        logger.info("Closing modem connection")
        self.stop()
        self.transport.close()
        self.protocol.close()
        self.oob.close()
        self._closed = True
        logger.info("Modem connection closed")

    def _engine_loop(self) -> None:
        """
        Run the protocol engine until stopped or the transport fails.

        Each iteration transmits any queued requests, then performs one
        transport read and classifies the lines it completed.
        """
        logger.debug("Engine thread started")
        reader = LineReader(self.transport)

        try:
            while not self._stop_event.is_set():
                request = self.protocol.next_request()
                while request is not None:
                    self.engine.transmit(request)
                    request = self.protocol.next_request()

                for line in reader.poll():
                    logger.debug(f"Engine received: {line}")
                    self.engine.handle_line(line)

        except TransportError as e:
            if self._stop_event.is_set():
                logger.debug(f"Transport closed during shutdown: {e}")
            else:
                logger.error(f"Transport failed, stopping engine thread: {e}")
                self._disconnected = isinstance(e, DeviceDisconnectedError)
                self._running = False
                self.protocol.fail_pending(e)

                if self._on_disconnect:
                    self._on_disconnect(e)
        except Exception as e:
            logger.exception(f"Engine thread crashed: {e}")
            self._running = False
            self.protocol.fail_pending(e)
        finally:
            self._running = False

        logger.debug("Engine thread stopped")

    def register_oob_callback(self, kind: Type[Packet], callback: OOBCallback) -> None:
        """
        Register a callback for unsolicited packets of one kind.

        Example:

        .. code-block:: python

            core.register_oob_callback(MessageNotification, lambda p: print(p.index))
        """
        self.oob.register_callback(kind, callback)

    def unregister_oob_callback(self, kind: Type[Packet]) -> bool:
        """Unregister an OOB callback."""
        return self.oob.unregister_callback(kind)

    def send_command(
        self,
        cmd: str,
        *args: Arg,
        body: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> Packet:
        """
        Send an AT command.

        This is a convenience wrapper around protocol.send_command().
        """
        return self.protocol.send_command(cmd, *args, body=body, timeout=timeout)

    def send_listing(
        self,
        cmd: str,
        *args: Arg,
        timeout: Optional[float] = None
    ) -> list[Packet]:
        """Send a listing command and return every entry's packet in order."""
        return self.protocol.exchange_all(format_command(cmd, *args), timeout=timeout)

    def send_raw_at(self, cmd: str, timeout: Optional[float] = None) -> Packet:
        """Send a raw AT command line."""
        return self.protocol.send_raw(cmd, timeout=timeout)

    def is_running(self) -> bool:
        """Check if the engine thread is running."""
        return self._running

    def is_disconnected(self) -> bool:
        """
        Check if the device was disconnected during operation.

        This typically indicates a physical disconnection or USB port issue.
        """
        return self._disconnected

    def __enter__(self):
        """Context manager entry."""
        if not self._running:
            self.start()
        return self

    def __exit__(self, *exc):
        """Context manager exit."""
        self.close()
