"""
Pytest configuration and fixtures.

Provides shared test fixtures for smsmodem tests.
"""

import pytest
import logging

from smsmodem.core import MockTransport, ModemCore, ProtocolEngine
from smsmodem import GSMModem


# Enable logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture
def mock_transport():
    """
    Create a MockTransport instance for testing.

    Example:
        def test_something(mock_transport):
            mock_transport.add_response(["OK"])
            # ... test code ...
    """
    transport = MockTransport()
    yield transport
    transport.close()


@pytest.fixture
def modem_core(mock_transport):
    """
    Create a started ModemCore instance with MockTransport.

    Example:
        def test_at_command(modem_core, mock_transport):
            mock_transport.add_response(["OK"])
            packet = modem_core.send_command("+CMGD", 1)
    """
    core = ModemCore(transport=mock_transport, timeout=2.0)
    core.start()
    yield core
    core.close()


@pytest.fixture
def modem(mock_transport):
    """
    Create a started GSMModem instance with MockTransport.

    The initialization sequence is skipped so tests only script the replies
    for the commands they exercise.
    """
    modem_instance = GSMModem(transport=mock_transport, timeout=2.0, initialize=False)
    modem_instance.start()
    yield modem_instance
    modem_instance.close()


class Recorder:
    """Collects what a ProtocolEngine delivers and publishes."""

    def __init__(self):
        self.replies = []
        self.oob = []

    def deliver(self, reply):
        self.replies.append(reply)

    def publish(self, packet):
        self.oob.append(packet)

    @property
    def packets(self):
        return [reply.packet for reply in self.replies]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def engine(mock_transport, recorder):
    """ProtocolEngine driven directly, without the engine thread."""
    return ProtocolEngine(mock_transport, deliver=recorder.deliver, publish=recorder.publish)


@pytest.fixture
def cmgl_transcript():
    """Two-entry AT+CMGL reply in text mode."""
    return [
        '+CMGL: 1,"REC UNREAD","+15551234",,"23/01/15,10:30:45+00"',
        "First message",
        '+CMGL: 2,"REC READ","+15555678",,"23/01/15,11:00:00+00"',
        "Second message",
        "OK",
    ]
