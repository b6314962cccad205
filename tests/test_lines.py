"""
Tests for the line reader.
"""

import pytest
from smsmodem.core import LineReader, MockTransport
from smsmodem.exceptions import DeviceDisconnectedError


def test_splits_and_strips_terminators(mock_transport):
    mock_transport.inject_raw(b'+CMTI: "SM",4\r\n\r\nOK\r\n')
    reader = LineReader(mock_transport)

    assert reader.poll() == ['+CMTI: "SM",4', "OK"]


def test_lone_cr_and_lf_terminate_lines(mock_transport):
    mock_transport.inject_raw(b"first\rsecond\nthird\r\n")
    reader = LineReader(mock_transport)

    assert reader.poll() == ["first", "second", "third"]


def test_line_split_across_reads(mock_transport):
    reader = LineReader(mock_transport)

    mock_transport.inject_raw(b"+CSQ: 2")
    assert reader.poll() == []

    mock_transport.inject_raw(b"4,99\r\nOK\r")
    assert reader.poll() == ["+CSQ: 24,99", "OK"]

    mock_transport.inject_raw(b"\n")
    assert reader.poll() == []


def test_empty_lines_are_suppressed(mock_transport):
    mock_transport.inject_raw(b"\r\n\r\n\n\r")
    reader = LineReader(mock_transport)

    assert reader.poll() == []


def test_idle_read_returns_no_lines(mock_transport):
    reader = LineReader(mock_transport)

    assert reader.poll() == []


def test_unterminated_prompt_is_surfaced(mock_transport):
    mock_transport.inject_raw(b"\r\n> ")
    reader = LineReader(mock_transport)

    assert reader.poll() == ["> "]


def test_partial_line_is_not_mistaken_for_prompt(mock_transport):
    mock_transport.inject_raw(b">")
    reader = LineReader(mock_transport)

    assert reader.poll() == []


def test_iteration_yields_lines_in_order():
    transport = MockTransport()
    transport.inject(["one", "two"])
    transport.inject(["three"])

    lines = iter(LineReader(transport))

    assert [next(lines), next(lines), next(lines)] == ["one", "two", "three"]
    transport.close()


def test_iteration_ends_only_on_transport_error():
    transport = MockTransport()
    transport.inject(["last"])
    lines = iter(LineReader(transport))

    assert next(lines) == "last"

    transport.close()
    with pytest.raises(DeviceDisconnectedError):
        next(lines)
