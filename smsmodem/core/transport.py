"""
Transport layer abstraction for modem communication.

Provides a duplex byte stream abstraction with dependency injection support:
a pyserial implementation, a diagnostic wrapper that logs all traffic, and a
scripted mock for tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Optional

import serial
from serial import SerialException

from ..exceptions import TransportError, DeviceDisconnectedError

logger = logging.getLogger(__name__)

# Phrases pyserial uses when the underlying device goes away
_DISCONNECT_PHRASES = (
    "device disconnected",
    "device reports readiness to read but returned no data",
    "no such device",
    "device not configured",
    "input/output error",
)


class Transport(ABC):
    """Abstract base class for modem transport."""

    @abstractmethod
    def read(self, size: int = 1024) -> bytes:
        """
        Read an arbitrary chunk of available bytes.

        Blocks for at most the transport's poll interval and returns an empty
        bytes object when nothing arrived in that time.

        Args:
            size: Maximum number of bytes to return

        Raises:
            TransportError: If the read fails
        """
        pass

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write data to the transport.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written

        Raises:
            TransportError: If write fails
        """
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if transport is open."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""
        pass


class SerialTransport(Transport):
    """Serial port transport implementation."""

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        poll_interval: float = 0.05
    ) -> None:
        """
        Initialize serial transport.

        Args:
            port: Serial port path (e.g., /dev/ttyUSB0)
            baudrate: Baud rate for serial communication
            poll_interval: Longest time a single read blocks, in seconds

        Raises:
            TransportError: If serial port cannot be opened
        """
        self.port = port
        self.baudrate = baudrate
        self.poll_interval = poll_interval

        try:
            self._serial = serial.Serial(
                port=port,
                baudrate=baudrate,
                timeout=poll_interval
            )
            logger.info(f"Opened serial port {port} at {baudrate} baud")
        except SerialException as e:
            logger.error(f"Failed to open serial port {port}: {e}")
            raise TransportError(f"Failed to open serial port {port}: {e}") from e

    def read(self, size: int = 1024) -> bytes:
        """Read whatever the serial port has buffered, waiting for at least one byte."""
        try:
            waiting = self._serial.in_waiting
            data = self._serial.read(min(max(waiting, 1), size))
            if data:
                logger.debug(f"Read {len(data)} bytes: {data}")
            return data
        except SerialException as e:
            error_str = str(e).lower()

            if any(phrase in error_str for phrase in _DISCONNECT_PHRASES):
                logger.error(f"Device disconnected: {e}")
                raise DeviceDisconnectedError(
                    f"Serial device disconnected: {e}",
                    response=[str(e)]
                ) from e

            logger.error(f"Serial read failed: {e}")
            raise TransportError(f"Serial read failed: {e}") from e

    def write(self, data: bytes) -> int:
        """Write data to serial port."""
        try:
            written = self._serial.write(data)
            logger.debug(f"Wrote {written} bytes: {data}")
            return written
        except SerialException as e:
            logger.error(f"Serial write failed: {e}")
            raise TransportError(f"Serial write failed: {e}") from e

    def is_open(self) -> bool:
        """Check if serial port is open."""
        return bool(self._serial and self._serial.is_open)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial and self._serial.is_open:
            self._serial.close()
            logger.info(f"Closed serial port {self.port}")


class LoggingTransport(Transport):
    """
    Diagnostic pass-through wrapper.

    Logs every read, write and close of the wrapped transport at DEBUG level,
    including failures, without altering results or exceptions.
    """

    def __init__(self, inner: Transport) -> None:
        self.inner = inner

    def read(self, size: int = 1024) -> bytes:
        try:
            data = self.inner.read(size)
        except TransportError as e:
            logger.debug(f"Read() failed: {e}")
            raise
        if data:
            logger.debug(f"Read({data!r}) = {len(data)}")
        return data

    def write(self, data: bytes) -> int:
        try:
            written = self.inner.write(data)
        except TransportError as e:
            logger.debug(f"Write({data!r}) failed: {e}")
            raise
        logger.debug(f"Write({data!r}) = {written}")
        return written

    def is_open(self) -> bool:
        return self.inner.is_open()

    def close(self) -> None:
        self.inner.close()
        logger.debug("Close()")


class MockTransport(Transport):
    """
    Mock transport for testing.

    Simulates a modem without hardware. Replies queued with
    :meth:`add_response` become readable when the next write arrives, the
    way a device answers a command; lines passed to :meth:`inject` are
    readable immediately, like unsolicited notifications.
    """

    def __init__(self, read_timeout: float = 0.01) -> None:
        """
        Initialize mock transport.

        Args:
            read_timeout: How long ``read`` waits for data before returning b""
        """
        self._open = True
        self._read_timeout = read_timeout
        self._input_buffer: Deque[bytes] = deque()
        self._response_queue: Deque[list[str]] = deque()
        self._cond = threading.Condition()
        self.written: list[bytes] = []
        logger.info("Initialized MockTransport")

    @staticmethod
    def _frame(line: str) -> bytes:
        # The data prompt arrives without a terminator
        if line == "> ":
            return line.encode("utf-8")
        return (line + "\r\n").encode("utf-8")

    def add_response(self, lines: list[str]) -> None:
        """
        Queue a reply to be released by the next write.

        Args:
            lines: Reply lines (e.g., ["+CSQ: 24,99", "OK"])
        """
        with self._cond:
            self._response_queue.append(list(lines))
            logger.debug(f"Added mock response: {lines}")

    def inject(self, lines: list[str]) -> None:
        """Make lines readable right away, without waiting for a write."""
        with self._cond:
            for line in lines:
                self._input_buffer.append(self._frame(line))
            self._cond.notify_all()
            logger.debug(f"Injected mock lines: {lines}")

    def inject_raw(self, data: bytes) -> None:
        """Make raw bytes readable right away (for framing tests)."""
        with self._cond:
            self._input_buffer.append(data)
            self._cond.notify_all()

    def _check_open(self) -> None:
        if not self._open:
            raise DeviceDisconnectedError(
                "MockTransport is closed (simulating device disconnection)",
                response=["MockTransport closed"]
            )

    def write(self, data: bytes) -> int:
        """Record the write and release the next queued reply."""
        with self._cond:
            self._check_open()
            logger.debug(f"Mock write: {data}")
            self.written.append(data)
            if self._response_queue:
                for line in self._response_queue.popleft():
                    self._input_buffer.append(self._frame(line))
                self._cond.notify_all()
        return len(data)

    def read(self, size: int = 1024) -> bytes:
        """Return the next buffered chunk, or b"" after the read timeout."""
        with self._cond:
            self._check_open()
            if not self._input_buffer:
                self._cond.wait(self._read_timeout)
                self._check_open()
            if not self._input_buffer:
                return b""
            chunk = self._input_buffer.popleft()
            if len(chunk) > size:
                self._input_buffer.appendleft(chunk[size:])
                chunk = chunk[:size]
            logger.debug(f"Mock read: {chunk}")
            return chunk

    @property
    def sent_lines(self) -> list[str]:
        """Decoded writes with line terminators stripped."""
        return [data.decode("utf-8").rstrip("\r\n") for data in self.written]

    def is_open(self) -> bool:
        """Check if mock transport is open."""
        return self._open

    def close(self) -> None:
        """Close mock transport."""
        with self._cond:
            self._open = False
            self._cond.notify_all()
        logger.info("Closed MockTransport")

    def clear_responses(self) -> None:
        """Clear all queued responses (useful for testing)."""
        with self._cond:
            self._response_queue.clear()
            logger.debug("Cleared mock response queue")
