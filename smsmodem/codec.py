"""
Character codecs for SMS payloads.

Implements the two character sets the modem is switched between:

- GSM 03.38 default alphabet (7-bit), with the escape-prefixed extension table
- UCS2 as hex text: every character rendered as 4 uppercase hex digits

Both tables are keyed by code point and used in both directions. Characters
that have no table entry are passed through verbatim when encoding, and any
input that does not match a table entry is passed through verbatim when
decoding.
"""

import re

# GSM 7-bit default alphabet, indexed by septet value
GSM7_BASIC = (
    "@£$¥èéùìòÇ\nØø\rÅåΔ_ΦΓΛΩΠΨΣΘΞ\x1bÆæßÉ !\"#¤%&'()*+,-./0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNOPQRSTUVWXYZÄÖÑÜ§¿abcdefghijklmnopqrstuvwxyzäöñüà"
)

GSM7_ESCAPE = 0x1B

# GSM 7-bit extended characters (escaped with 0x1B)
GSM7_EXTENDED = {
    "\f": 0x0A,  # Form feed
    "^": 0x14,   # Caret
    "{": 0x28,   # Left brace
    "}": 0x29,   # Right brace
    "\\": 0x2F,  # Backslash
    "[": 0x3C,   # Left bracket
    "~": 0x3D,   # Tilde
    "]": 0x3E,   # Right bracket
    "|": 0x40,   # Pipe
    "€": 0x65,   # Euro sign
}

GSM_ENCODE: dict[str, str] = {
    char: chr(code)
    for code, char in enumerate(GSM7_BASIC)
    if code != GSM7_ESCAPE
}
GSM_ENCODE.update({
    char: chr(GSM7_ESCAPE) + chr(code)
    for char, code in GSM7_EXTENDED.items()
})

GSM_DECODE: dict[str, str] = {code: char for char, code in GSM_ENCODE.items()}


def _ucs2_range(first: int, last: int) -> list[str]:
    return [chr(cp) for cp in range(first, last + 1)]


UCS2_CHARACTERS = (
    ["\n", "\r"]
    + _ucs2_range(0x20, 0x7E)        # printable ASCII
    + _ucs2_range(0x0621, 0x063A)    # Arabic letters hamza..ghain
    + _ucs2_range(0x0640, 0x064A)    # tatweel, feh..yeh
    + _ucs2_range(0x064B, 0x0652)    # harakat
    + ["،", "؛", "؟"]  # Arabic comma, semicolon, question mark
    + ["پ", "چ", "ژ", "ک", "گ", "ی"]  # Persian-specific letters
    + ["\u200c", "\u200d"]          # zero-width non-joiner, joiner
    + _ucs2_range(0x0660, 0x0669)    # Arabic-Indic digits
    + _ucs2_range(0x06F0, 0x06F9)    # Persian digits
)

UCS2_ENCODE: dict[str, str] = {char: f"{ord(char):04X}" for char in UCS2_CHARACTERS}

UCS2_DECODE: dict[str, str] = {code: char for char, code in UCS2_ENCODE.items()}

_HEX_UNIT = re.compile(r"[0-9A-Fa-f]{4}")


def gsm_encode(text: str) -> str:
    """
    Encode text to GSM 03.38 septets, one character per septet.

    Extended characters become a two-septet escape sequence.

    Args:
        text: Text to encode

    Returns:
        Septet string (``ord()`` of every character is the septet value)
    """
    return "".join(GSM_ENCODE.get(char, char) for char in text)


def gsm_decode(data: str) -> str:
    """
    Decode a GSM 03.38 septet string back to text.

    Args:
        data: Septet string as produced by :func:`gsm_encode`

    Returns:
        Decoded text
    """
    result = []
    i = 0
    while i < len(data):
        pair = data[i:i + 2]
        if len(pair) == 2 and ord(pair[0]) == GSM7_ESCAPE and pair in GSM_DECODE:
            result.append(GSM_DECODE[pair])
            i += 2
            continue
        result.append(GSM_DECODE.get(data[i], data[i]))
        i += 1
    return "".join(result)


def pack_septets(septets: list[int]) -> bytes:
    """Pack 7-bit septets into 8-bit octets."""
    if not septets:
        return b''

    octets = []
    bits = 0
    bits_count = 0

    for septet in septets:
        bits |= (septet & 0x7F) << bits_count
        bits_count += 7

        while bits_count >= 8:
            octets.append(bits & 0xFF)
            bits >>= 8
            bits_count -= 8

    if bits_count > 0:
        octets.append(bits & 0xFF)

    return bytes(octets)


def unpack_septets(octets: bytes, length: int) -> list[int]:
    """Unpack 8-bit octets into ``length`` 7-bit septets."""
    if not octets or length == 0:
        return []

    septets = []
    bits = 0
    bits_count = 0

    for octet in octets:
        bits |= octet << bits_count
        bits_count += 8

        while bits_count >= 7 and len(septets) < length:
            septets.append(bits & 0x7F)
            bits >>= 7
            bits_count -= 7

        if len(septets) >= length:
            break

    return septets[:length]


def gsm_pack(text: str) -> bytes:
    """
    Encode text to the packed 7-bit wire form used in PDUs.

    Characters outside the alphabet keep their code point truncated to
    7 bits, so only alphabet text survives packing unchanged.

    Returns:
        Packed octets
    """
    return pack_septets([ord(c) for c in gsm_encode(text)])


def gsm_unpack(data: bytes, length: int) -> str:
    """
    Decode packed 7-bit data.

    Args:
        data: Packed octets
        length: Number of septets (not bytes!)
    """
    return gsm_decode("".join(chr(s) for s in unpack_septets(data, length)))


def ucs2_encode(text: str) -> str:
    """
    Encode text to UCS2 hex, e.g. ``"Hi"`` -> ``"00480069"``.

    Args:
        text: Text to encode

    Returns:
        Concatenated 4-digit uppercase hex code units
    """
    return "".join(UCS2_ENCODE.get(char, char) for char in text)


def ucs2_decode(data: str) -> str:
    """
    Decode UCS2 hex text back to characters.

    Args:
        data: Hex text as produced by :func:`ucs2_encode`

    Returns:
        Decoded text
    """
    result = []
    i = 0
    while i < len(data):
        unit = data[i:i + 4]
        if _HEX_UNIT.fullmatch(unit):
            # a whole code unit, decoded or passed through as is
            result.append(UCS2_DECODE.get(unit.upper(), unit))
            i += 4
            continue
        result.append(data[i])
        i += 1
    return "".join(result)
