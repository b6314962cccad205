"""
Exceptions for smsmodem.

Provides detailed error information for debugging modem communication issues.
"""

from typing import Optional


class ModemError(Exception):
    """
    Base exception for GSM modem errors.

    All smsmodem exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        response: Optional[list[str]] = None
    ) -> None:
        """
        Initialize exception with context.

        Args:
            message: Error description
            command: AT command that caused the error (if applicable)
            response: Modem response (if applicable)
        """
        self.command = command
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with context."""
        parts = [super().__str__()]

        if self.command:
            parts.append(f"Command: {self.command}")

        if self.response:
            parts.append(f"Response: {self.response}")

        return " | ".join(parts)


class TransportError(ModemError):
    """
    Raised when the transport layer fails.

    This indicates:
    - Serial port issues
    - Connection lost
    - Hardware communication failure

    Not retried; a transport error stops the engine thread.
    """
    pass


class DeviceDisconnectedError(TransportError):
    """
    Raised when the device is disconnected during operation.

    This is a fatal error that requires closing and reopening the connection.
    """
    pass


class DeviceError(ModemError):
    """
    Raised when the modem answers a command with a failure status.

    The terminal line is one of ``ERROR``, ``+CMS ERROR: <n>`` or
    ``+CME ERROR: <n>`` and is kept verbatim in ``status``.
    """

    def __init__(
        self,
        message: str,
        status: str = "ERROR",
        command: Optional[str] = None,
        response: Optional[list[str]] = None
    ) -> None:
        self.status = status
        super().__init__(message, command=command, response=response)


class ProtocolError(ModemError):
    """
    Raised when a reply does not have the expected shape.

    This indicates:
    - A different Packet kind than the operation requires
    - Missing or wrongly typed fields in a reply header
    """
    pass


class ATTimeoutError(ProtocolError):
    """
    Raised when no terminal reply arrives before the round-trip deadline.

    This typically indicates:
    - Modem is not responding
    - A reply line was lost on the wire
    - Command takes longer than the deadline
    """
    pass


class UnsupportedArgument(ModemError, TypeError):
    """
    Raised when a command argument cannot be rendered on the wire.

    Only ``str`` and ``int`` arguments are representable.
    """
    pass


class ModemNotStartedError(ModemError):
    """
    Raised when attempting to use the modem before starting the engine thread,
    or after it has stopped.
    """
    pass
