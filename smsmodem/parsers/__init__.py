"""
Reply parsers.

Turns bounded modem replies into typed Packets.
"""

from .packet import (
    is_final_status,
    parse_packet,
    parse_time,
    split_args,
    unquote,
    unquotes,
)

__all__ = [
    "is_final_status",
    "parse_packet",
    "parse_time",
    "split_args",
    "unquote",
    "unquotes",
]
