"""
Tests for the packet parser.
"""

from datetime import datetime

import pytest
from smsmodem.exceptions import ProtocolError
from smsmodem.parsers import is_final_status, parse_packet, parse_time, split_args, unquote, unquotes
from smsmodem.types import (
    ERROR,
    OK,
    Message,
    MessageNotification,
    NetworkStatus,
    ServiceStatus,
    SMSCAddress,
    StorageAreas,
    StorageInfo,
    UnknownPacket,
)


class TestHelpers:
    """Test argument helpers."""

    def test_split_args_respects_quotes(self):
        assert split_args('"a,b",1,,"c"') == ['"a,b"', "1", "", '"c"']

    def test_unquote(self):
        assert unquote('"SM"') == "SM"
        assert unquote(" 4") == 4
        assert unquote("") == ""
        assert unquote("abc") == "abc"

    def test_unquotes(self):
        assert unquotes('"+15551234",145') == ["+15551234", 145]

    @pytest.mark.parametrize("line", ["OK", "ERROR", "+CMS ERROR: 321", "+CME ERROR: 10"])
    def test_final_statuses(self, line):
        assert is_final_status(line)

    @pytest.mark.parametrize("line", ["", "> ", "+CMTI: \"SM\",4", "OKAY", "AT"])
    def test_non_final_lines(self, line):
        assert not is_final_status(line)

    def test_parse_time_drops_zone(self):
        assert parse_time("23/01/15,10:30:45+00") == datetime(2023, 1, 15, 10, 30, 45)

    @pytest.mark.parametrize("value", ["", "+00", "garbage+00", "23/13/45,99:99:99+00"])
    def test_parse_time_malformed(self, value):
        assert parse_time(value) is None


class TestStatusPackets:
    """Test bare terminal statuses."""

    def test_ok(self):
        assert parse_packet("OK", "", "") == OK()

    def test_error(self):
        assert parse_packet("ERROR", "", "") == ERROR()

    def test_cms_error(self):
        assert parse_packet("+CMS ERROR: 321", "", "") == ERROR()


class TestNotifications:
    """Test unsolicited packet kinds."""

    def test_cmti(self):
        assert parse_packet("OK", '+CMTI: "SM",4', "") == MessageNotification("SM", 4)

    def test_zpasr(self):
        assert parse_packet("OK", '+ZPASR: "GPRS"', "") == ServiceStatus("GPRS")

    def test_zdonr(self):
        assert parse_packet("OK", '+ZDONR: "Operator",432,11,"CS_ONLY","ROAM_OFF"', "") == NetworkStatus("Operator")

    def test_zusimr_is_dropped(self):
        assert parse_packet("OK", "+ZUSIMR:2", "") is None

    def test_cmti_missing_index(self):
        with pytest.raises(ProtocolError):
            parse_packet("OK", '+CMTI: "SM"', "")

    def test_cmti_mistyped_index(self):
        with pytest.raises(ProtocolError):
            parse_packet("OK", '+CMTI: "SM","four"', "")


class TestSMSC:
    def test_csca(self):
        assert parse_packet("OK", '+CSCA: "+989350001500",145', "") == SMSCAddress(("+989350001500", 145))


class TestReadMessage:
    """Test +CMGR replies."""

    def test_text_mode(self):
        packet = parse_packet(
            "OK",
            '+CMGR: "REC READ","+15551234",,"23/01/15,10:30:45+00"',
            "Hello there",
        )
        assert packet == Message(
            status="REC READ",
            telephone="+15551234",
            timestamp=datetime(2023, 1, 15, 10, 30, 45),
            body="Hello there",
        )

    def test_multi_line_body(self):
        packet = parse_packet(
            "OK",
            '+CMGR: "REC UNREAD","+15551234",,"23/01/15,10:30:45+00"',
            "line one\nline two",
        )
        assert packet.body == "line one\nline two"

    def test_pdu_mode(self):
        packet = parse_packet("OK", "+CMGR: 0,,24", "07911326040000F0040B911346610089F60000208062917314080CC8F71D14969741F977FD07")
        assert packet == Message(body="07911326040000F0040B911346610089F60000208062917314080CC8F71D14969741F977FD07")

    def test_malformed_timestamp(self):
        packet = parse_packet("OK", '+CMGR: "REC READ","+15551234",,"not a time"', "Hi")
        assert packet.timestamp is None
        assert packet.body == "Hi"

    def test_numeric_status(self):
        packet = parse_packet("OK", '+CMGR: 1,"+15551234",,"23/01/15,10:30:45+00"', "Hi")
        assert packet.status == "REC READ"

    def test_missing_timestamp_field(self):
        with pytest.raises(ProtocolError):
            parse_packet("OK", '+CMGR: "REC READ","+15551234"', "Hi")


class TestListMessages:
    """Test +CMGL entries."""

    def test_continuation_entry(self):
        packet = parse_packet(
            "",
            '+CMGL: 1,"REC UNREAD","+15551234",,"23/01/15,10:30:45+00"',
            "First message",
        )
        assert packet == Message(
            index=1,
            status="REC UNREAD",
            telephone="+15551234",
            timestamp=datetime(2023, 1, 15, 10, 30, 45),
            body="First message",
            last=False,
        )

    def test_final_entry(self):
        packet = parse_packet(
            "OK",
            '+CMGL: 2,"REC READ","+15555678",,"23/01/15,11:00:00+00"',
            "Second message",
        )
        assert packet.index == 2
        assert packet.last is True

    def test_integer_telephone_without_timestamp(self):
        packet = parse_packet("OK", '+CMGL: 3,"REC READ",15551234', "Body")
        assert packet.telephone == "15551234"
        assert packet.timestamp is None

    def test_mistyped_index(self):
        with pytest.raises(ProtocolError):
            parse_packet("OK", '+CMGL: "x","REC READ","+15551234"', "Body")


class TestStorage:
    """Test +CPMS replies."""

    def test_storage_areas(self):
        packet = parse_packet(
            "OK",
            '+CPMS: ("SM","SM","SM"),("SM","SM","SM"),("MT","MT","MT")',
            "",
        )
        assert packet == StorageAreas(
            read=("SM", "SM", "SM"),
            write=("SM", "SM", "SM"),
            receive=("MT", "MT", "MT"),
        )

    def test_storage_areas_of_different_lengths(self):
        packet = parse_packet("OK", '+CPMS: ("SM","ME"),("SM"),("SM","ME","MT")', "")
        assert packet.read == ("SM", "ME")
        assert packet.write == ("SM",)
        assert packet.receive == ("SM", "ME", "MT")

    def test_storage_areas_wrong_group_count(self):
        with pytest.raises(ProtocolError):
            parse_packet("OK", '+CPMS: ("SM","ME"),("SM")', "")

    def test_storage_info(self):
        assert parse_packet("OK", "+CPMS: 0,100,0,100,0,100", "") == StorageInfo(0, 100, 0, 100, 0, 100)

    def test_storage_info_query_form(self):
        packet = parse_packet("OK", '+CPMS: "SM",3,50,"SM",3,50,"SM",3,50', "")
        assert packet == StorageInfo(3, 50, 3, 50, 3, 50)

    def test_storage_info_two_areas(self):
        assert parse_packet("OK", "+CPMS: 1,20,2,30", "") == StorageInfo(1, 20, 2, 30, 0, 0)

    def test_unexpected_count_is_unknown(self):
        assert parse_packet("OK", "+CPMS: 1,2,3", "") == UnknownPacket("+CPMS", (1, 2, 3))


class TestUnknown:
    def test_unknown_header(self):
        assert parse_packet("OK", "+CSQ: 24,99", "") == UnknownPacket("+CSQ", (24, 99))

    def test_header_without_colon(self):
        assert parse_packet("OK", "RING", "") == UnknownPacket("RING", ())

    def test_message_reference(self):
        assert parse_packet("OK", "+CMGS: 12", "") == UnknownPacket("+CMGS", (12,))
