"""
Main GSMModem class.

User-facing API that owns the engine, the session and the SMS manager.
"""

import logging
from typing import Callable, Optional, Type

from .core import LoggingTransport, ModemCore, OOBCallback, OOBChannel, SerialTransport, Transport
from .exceptions import DeviceError, ProtocolError
from .features import SMSManager
from .session import Session
from .types import Arg, EncodeMode, MessageFormat, Packet

logger = logging.getLogger(__name__)

# AT+CNMI: route new-message indications to the terminal as +CMTI
CNMI_SETTINGS = (2, 2, 0, 1, 0)


class GSMModem:
    """
    Main interface for GSM modem control.

    Provides a high-level API for modem operations:

    - sms: reading, listing, sending and deleting messages, storage and
      character set management
    - oob: unsolicited packets (e.g., new message notifications)

    Example usage with context manager:

    .. code-block:: python

        with GSMModem(port="/dev/ttyUSB0") as modem:
            for msg in modem.sms.list_messages():
                print(f"{msg.telephone}: {msg.body}")

            modem.register_oob_callback(
                MessageNotification, lambda p: print(f"New SMS at {p.index}")
            )

    Example usage with manual lifecycle management:

    .. code-block:: python

        modem = GSMModem(port="/dev/ttyUSB0")
        modem.start()
        # ... use modem ...
        modem.close()
    """

    def __init__(
        self,
        port: Optional[str] = None,
        transport: Optional[Transport] = None,
        baudrate: int = 115200,
        timeout: float = 5.0,
        send_timeout: float = 30.0,
        encode_mode: EncodeMode = EncodeMode.GSM,
        debug: bool = False,
        log_oob: bool = False,
        max_oob_queue_size: int = 16,
        initialize: bool = True,
        auto_start: bool = False,
        on_disconnect: Optional[Callable[[Exception], None]] = None
    ) -> None:
        """
        Initialize GSMModem.

        Args:
            port: Serial port path (e.g., "/dev/ttyUSB0"). Either port or transport required.
            transport: Custom transport instance (for testing). Overrides port if provided.
            baudrate: Serial port baud rate (default: 115200)
            timeout: Round-trip deadline for AT commands in seconds (default: 5.0)
            send_timeout: Round-trip deadline for sending SMS (default: 30.0)
            encode_mode: Character set selected by initialization (default: GSM)
            debug: Wrap the transport so every read/write/close is logged
            log_oob: Log OOB packets at INFO level instead of DEBUG
            max_oob_queue_size: Maximum unsolicited packets to queue (default: 16)
            initialize: Run the initialization sequence on start (default: True)
            auto_start: Automatically start the engine thread (default: False)
            on_disconnect: Optional callback function called when device disconnects.
                          Signature: callback(exception: Exception) -> None

        Raises:
            ValueError: If neither port nor transport is provided
            TransportError: If serial port cannot be opened
        """
        if transport is None and port is None:
            raise ValueError("Either 'port' or 'transport' must be provided")

        if transport is None:
            transport = SerialTransport(port=port, baudrate=baudrate)
            logger.info(f"Created serial transport for {port}")

        if debug:
            transport = LoggingTransport(transport)

        self._core = ModemCore(
            transport=transport,
            timeout=timeout,
            log_oob=log_oob,
            max_oob_queue_size=max_oob_queue_size,
            on_disconnect=on_disconnect
        )

        self.session = Session(encode_mode=encode_mode)
        self.sms = SMSManager(self._core, self.session, send_timeout=send_timeout)
        self._initialize = initialize

        logger.info("Initialized GSMModem")

        if auto_start:
            self.start()

    def start(self) -> None:
        """
        Start the modem engine thread.

        Runs :meth:`initialize` afterwards unless the modem was created with
        ``initialize=False``.
        """
        self._core.start()
        logger.info("Modem started")

        if self._initialize:
            self.initialize()

    def initialize(self) -> None:
        """
        Bring the modem into a known state.

        Resets settings, selects the character set (recording the service
        center address under both character sets where the device supports
        UCS2), switches to SMS text mode and routes new-message indications
        to the terminal.

        Errors from the reset, text mode and routing steps are logged and
        tolerated; devices commonly answer them with benign errors.
        """
        self._tolerate(lambda: self._core.send_command(""), "Attention")
        self._tolerate(lambda: self._core.send_command("Z"), "Reset")
        logger.info("Reset")

        if self.session.encode_mode == EncodeMode.UCS2:
            self.sms.refresh_smsc(EncodeMode.GSM)
            self.sms.change_to_ucs2()
        else:
            # UCS2 is only visited to record its SMSC form; GSM-only devices refuse it
            try:
                self.sms.change_to_ucs2()
            except (DeviceError, ProtocolError) as e:
                logger.warning(f"UCS2 character set unavailable, continuing in GSM: {e}")
            self.sms.change_to_gsm()

        if self._tolerate(lambda: self.sms.set_message_format(MessageFormat.TEXT_MODE), "Set SMS text mode"):
            logger.info("Set SMS text mode")

        if self._tolerate(lambda: self._core.send_command("+CNMI", *CNMI_SETTINGS), "Set SMS delivery"):
            logger.info("Set SMS delivery")

    @staticmethod
    def _tolerate(step: Callable[[], object], what: str) -> bool:
        try:
            step()
            return True
        except DeviceError as e:
            logger.warning(f"{what} failed, continuing: {e}")
            return False

    def stop(self) -> None:
        """Stop the modem engine thread."""
        self._core.stop()
        logger.info("Modem stopped")

    def close(self) -> None:
        """
        Close the modem connection.

        Stops the engine thread, closes the transport and releases the
        response and OOB channels.
        """
        self._core.close()
        logger.info("Modem closed")

    @property
    def oob(self) -> OOBChannel:
        """Channel of unsolicited packets."""
        return self._core.oob

    def register_oob_callback(self, kind: Type[Packet], callback: OOBCallback) -> None:
        """
        Register a callback for unsolicited packets of one kind.

        Args:
            kind: Packet class to match (e.g., MessageNotification)
            callback: Function to call when a matching packet arrives.
                     Signature: callback(packet: Packet) -> None

        Example:

        .. code-block:: python

            def on_sms(packet):
                print(f"New SMS in {packet.storage} at {packet.index}")

            modem.register_oob_callback(MessageNotification, on_sms)
        """
        self._core.register_oob_callback(kind, callback)

    def unregister_oob_callback(self, kind: Type[Packet]) -> bool:
        """
        Unregister an OOB callback.

        Returns:
            True if callback was removed, False if not found
        """
        return self._core.unregister_oob_callback(kind)

    def send_command(self, cmd: str, *args: Arg, timeout: Optional[float] = None) -> Packet:
        """
        Send a formatted AT command not covered by the managers.

        Example:

        .. code-block:: python

            packet = modem.send_command("+CSQ")
        """
        return self._core.send_command(cmd, *args, timeout=timeout)

    def send_raw_at(self, cmd: str, timeout: Optional[float] = None) -> Packet:
        """
        Send a raw AT command line.

        For advanced users who need to send commands not covered by the
        managers.

        Example:

        .. code-block:: python

            packet = modem.send_raw_at("AT+CSCA?")
        """
        return self._core.send_raw_at(cmd, timeout=timeout)

    @property
    def is_running(self) -> bool:
        """Check if the modem engine thread is running."""
        return self._core.is_running()

    @property
    def is_disconnected(self) -> bool:
        """Check if the device was disconnected."""
        return self._core.is_disconnected()

    def __enter__(self):
        """
        Context manager entry.

        Automatically starts the modem if not already running.
        """
        if not self.is_running:
            self.start()
        return self

    def __exit__(self, *exc):
        """
        Context manager exit.

        Automatically closes the modem connection.
        """
        self.close()

    def __repr__(self) -> str:
        """String representation of modem."""
        status = "running" if self.is_running else "stopped"
        return f"<GSMModem status={status} mode={self.session.encode_mode.value}>"
