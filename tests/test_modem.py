"""
Tests for GSMModem lifecycle and initialization.
"""

import pytest
from smsmodem import (
    DeviceError,
    EncodeMode,
    GSMModem,
    MessageFormat,
    MockTransport,
    ModemNotStartedError,
)
from smsmodem.core import LoggingTransport

pytestmark = pytest.mark.timeout(10)

UCS2_SMSC = "002B0039003800390033003500300030003000310035003000300030"
GSM_SMSC = "+989350001500"


def _script_gsm_initialization(transport, cmgf=("OK",)):
    transport.add_response(["OK"])                               # AT
    transport.add_response(["OK"])                               # ATZ
    transport.add_response(["OK"])                               # AT+CSCS="UCS2"
    transport.add_response(["OK"])                               # AT+CSMP
    transport.add_response([f'+CSCA: "{UCS2_SMSC}",145', "OK"])  # AT+CSCA?
    transport.add_response(["OK"])                               # AT+CSCA=
    transport.add_response(["OK"])                               # AT+CSCS="GSM"
    transport.add_response(["OK"])                               # AT+CSMP
    transport.add_response([f'+CSCA: "{GSM_SMSC}",145', "OK"])   # AT+CSCA?
    transport.add_response(["OK"])                               # AT+CSCA=
    transport.add_response(list(cmgf))                           # AT+CMGF=1
    transport.add_response(["OK"])                               # AT+CNMI


class TestInitialization:
    """Test the start-up command sequence."""

    def test_gsm_sequence(self):
        transport = MockTransport()
        _script_gsm_initialization(transport)

        modem = GSMModem(transport=transport)
        modem.start()

        assert transport.sent_lines == [
            "AT",
            "ATZ",
            'AT+CSCS="UCS2"',
            "AT+CSMP=49,167,0,8",
            "AT+CSCA?",
            f'AT+CSCA="{UCS2_SMSC}",145',
            'AT+CSCS="GSM"',
            "AT+CSMP=49,167,0,0",
            "AT+CSCA?",
            f'AT+CSCA="{GSM_SMSC}",145',
            "AT+CMGF=1",
            "AT+CNMI=2,2,0,1,0",
        ]
        assert modem.session.encode_mode == EncodeMode.GSM
        assert modem.session.get_smsc(EncodeMode.UCS2) == UCS2_SMSC
        assert modem.session.get_smsc(EncodeMode.GSM) == GSM_SMSC
        assert modem.session.message_format == MessageFormat.TEXT_MODE

        modem.close()

    def test_ucs2_sequence(self):
        transport = MockTransport()
        transport.add_response(["OK"])                               # AT
        transport.add_response(["OK"])                               # ATZ
        transport.add_response([f'+CSCA: "{GSM_SMSC}",145', "OK"])   # AT+CSCA?
        transport.add_response(["OK"])                               # AT+CSCA=
        transport.add_response(["OK"])                               # AT+CSCS="UCS2"
        transport.add_response(["OK"])                               # AT+CSMP
        transport.add_response([f'+CSCA: "{UCS2_SMSC}",145', "OK"])  # AT+CSCA?
        transport.add_response(["OK"])                               # AT+CSCA=
        transport.add_response(["OK"])                               # AT+CMGF=1
        transport.add_response(["OK"])                               # AT+CNMI

        modem = GSMModem(transport=transport, encode_mode=EncodeMode.UCS2)
        modem.start()

        assert transport.sent_lines[2:8] == [
            "AT+CSCA?",
            f'AT+CSCA="{GSM_SMSC}",145',
            'AT+CSCS="UCS2"',
            "AT+CSMP=49,167,0,8",
            "AT+CSCA?",
            f'AT+CSCA="{UCS2_SMSC}",145',
        ]
        assert modem.session.encode_mode == EncodeMode.UCS2
        assert modem.session.get_smsc() == UCS2_SMSC
        assert modem.session.get_smsc(EncodeMode.GSM) == GSM_SMSC

        modem.close()

    def test_text_mode_failure_is_tolerated(self):
        transport = MockTransport()
        _script_gsm_initialization(transport, cmgf=("ERROR",))

        modem = GSMModem(transport=transport)
        modem.start()

        assert transport.sent_lines[-1] == "AT+CNMI=2,2,0,1,0"
        assert modem.session.message_format is None

        modem.close()

    def test_gsm_only_device(self):
        transport = MockTransport()
        transport.add_response(["OK"])                               # AT
        transport.add_response(["OK"])                               # ATZ
        transport.add_response(["ERROR"])                            # AT+CSCS="UCS2"
        transport.add_response(["OK"])                               # AT+CSCS="GSM"
        transport.add_response(["OK"])                               # AT+CSMP
        transport.add_response([f'+CSCA: "{GSM_SMSC}",145', "OK"])   # AT+CSCA?
        transport.add_response(["OK"])                               # AT+CSCA=
        transport.add_response(["OK"])                               # AT+CMGF=1
        transport.add_response(["OK"])                               # AT+CNMI

        modem = GSMModem(transport=transport)
        modem.start()

        assert transport.sent_lines == [
            "AT",
            "ATZ",
            'AT+CSCS="UCS2"',
            'AT+CSCS="GSM"',
            "AT+CSMP=49,167,0,0",
            "AT+CSCA?",
            f'AT+CSCA="{GSM_SMSC}",145',
            "AT+CMGF=1",
            "AT+CNMI=2,2,0,1,0",
        ]
        assert modem.session.encode_mode == EncodeMode.GSM
        assert modem.session.get_smsc(EncodeMode.GSM) == GSM_SMSC
        assert modem.session.get_smsc(EncodeMode.UCS2) is None

        modem.close()

    def test_gsm_character_set_failure_is_fatal(self):
        transport = MockTransport()
        transport.add_response(["OK"])                               # AT
        transport.add_response(["OK"])                               # ATZ
        transport.add_response(["ERROR"])                            # AT+CSCS="UCS2"
        transport.add_response(["ERROR"])                            # AT+CSCS="GSM"

        modem = GSMModem(transport=transport)
        with pytest.raises(DeviceError):
            modem.start()

        modem.close()

    def test_ucs2_character_set_failure_is_fatal(self):
        transport = MockTransport()
        transport.add_response(["OK"])                               # AT
        transport.add_response(["OK"])                               # ATZ
        transport.add_response([f'+CSCA: "{GSM_SMSC}",145', "OK"])   # AT+CSCA?
        transport.add_response(["OK"])                               # AT+CSCA=
        transport.add_response(["ERROR"])                            # AT+CSCS="UCS2"

        modem = GSMModem(transport=transport, encode_mode=EncodeMode.UCS2)
        with pytest.raises(DeviceError):
            modem.start()

        modem.close()


class TestLifecycle:
    """Test start/close behaviour."""

    def test_requires_port_or_transport(self):
        with pytest.raises(ValueError):
            GSMModem()

    def test_not_started(self):
        modem = GSMModem(transport=MockTransport(), initialize=False)

        with pytest.raises(ModemNotStartedError):
            modem.sms.delete_message(1)

        modem.close()

    def test_close_releases_everything(self):
        transport = MockTransport()
        modem = GSMModem(transport=transport, initialize=False)
        modem.start()
        assert modem.is_running is True

        modem.close()

        assert modem.is_running is False
        assert transport.is_open() is False
        assert modem.oob.get() is None
        assert modem.is_disconnected is False

    def test_send_after_close(self):
        modem = GSMModem(transport=MockTransport(), initialize=False)
        modem.start()
        modem.close()

        with pytest.raises(ModemNotStartedError):
            modem.sms.delete_message(1)
        with pytest.raises(ModemNotStartedError):
            modem.start()

    def test_context_manager(self):
        transport = MockTransport()

        with GSMModem(transport=transport, initialize=False) as modem:
            assert modem.is_running is True
            transport.add_response(["OK"])
            modem.sms.delete_message(1)

        assert modem.is_running is False
        assert transport.is_open() is False

    def test_debug_wraps_transport(self):
        transport = MockTransport()
        modem = GSMModem(transport=transport, initialize=False, debug=True)
        modem.start()

        assert isinstance(modem._core.transport, LoggingTransport)
        transport.add_response(["+CSQ: 24,99", "OK"])
        packet = modem.send_raw_at("AT+CSQ")

        assert packet.name == "+CSQ"
        assert packet.args == (24, 99)
        modem.close()

    def test_repr(self):
        modem = GSMModem(transport=MockTransport(), initialize=False)

        assert repr(modem) == "<GSMModem status=stopped mode=GSM>"
        modem.close()
