"""
Line reader.

Turns the transport's byte stream into reply lines.
"""

import logging
import re
from typing import Iterator

from .transport import Transport

logger = logging.getLogger(__name__)

PROMPT = "> "

_TERMINATORS = re.compile(rb"[\r\n]")


class LineReader:
    """
    Splits transport bytes into text lines.

    Lines end at CR and/or LF; the terminator is stripped and empty lines are
    never surfaced. The data prompt ("> ") is the one exception to framing:
    the device sends it without a terminator, so a buffer holding nothing but
    the prompt is surfaced as a line of its own.

    Iterating a reader never ends on its own; a ``TransportError`` raised by
    the transport propagates out of the iteration and is the only way it
    stops.
    """

    def __init__(self, transport: Transport, chunk_size: int = 256, encoding: str = "utf-8") -> None:
        self.transport = transport
        self.chunk_size = chunk_size
        self.encoding = encoding
        self._buffer = b""

    def poll(self) -> list[str]:
        """
        Perform one transport read.

        Returns:
            Lines completed by this read, possibly none
        """
        chunk = self.transport.read(self.chunk_size)
        if not chunk:
            return []

        self._buffer += chunk
        parts = _TERMINATORS.split(self._buffer)
        self._buffer = parts.pop()

        lines = [part.decode(self.encoding, errors="ignore") for part in parts if part]

        if self._buffer == PROMPT.encode(self.encoding):
            self._buffer = b""
            lines.append(PROMPT)

        return lines

    def __iter__(self) -> Iterator[str]:
        while True:
            yield from self.poll()
