"""
Text extraction from ID3v2 USLT/SYLT frame payloads.

Payload layout (http://id3.org/id3v2.4.0-frames):

    [encoding:1][language:3][description][terminator][text][terminator]
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

ID3_TEXT_ENCODING_ISO_8859_1 = 0
ID3_TEXT_ENCODING_UTF_16 = 1
ID3_TEXT_ENCODING_UTF_16BE = 2
ID3_TEXT_ENCODING_UTF_8 = 3

_HEADER_LEN = 4  # encoding byte + language code

_UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")


def _single_byte_terminator(encoding: int) -> bool:
    # anything but the two UTF-16 variants decodes as a single-byte charset
    return encoding not in (ID3_TEXT_ENCODING_UTF_16, ID3_TEXT_ENCODING_UTF_16BE)


def _codec_for(encoding: int, chunk: bytes) -> str:
    if encoding == ID3_TEXT_ENCODING_UTF_16:
        # no BOM: big endian, the ID3v2 default
        return "utf-16" if chunk[:2] in _UTF16_BOMS else "utf-16-be"
    if encoding == ID3_TEXT_ENCODING_UTF_16BE:
        return "utf-16-be"
    if encoding == ID3_TEXT_ENCODING_UTF_8:
        return "utf-8"
    return "latin-1"


def _index_of_zero(data: bytes, start: int) -> int:
    i = data.find(b"\x00", start)
    return len(data) if i < 0 else i


def _index_of_eos(data: bytes, start: int, encoding: int) -> int:
    pos = _index_of_zero(data, start)
    if _single_byte_terminator(encoding):
        return pos

    # UTF-16: only an aligned double zero ends the string
    while pos < len(data) - 1:
        if pos % 2 == 0 and data[pos + 1] == 0:
            return pos
        pos = _index_of_zero(data, pos + 1)
    return len(data)


def decode_uslt_frame(data: bytes) -> str | None:
    """
    Returns the lyrics text of the frame, "" if the text field is empty or
    out of bounds, or None if the frame is too short to carry a header.
    """
    if len(data) < _HEADER_LEN:
        logger.debug("USLT frame too short (%d bytes)", len(data))
        return None

    encoding = data[0]
    rest = bytes(data[_HEADER_LEN:])

    desc_end = _index_of_eos(rest, 0, encoding)
    text_start = desc_end + (1 if _single_byte_terminator(encoding) else 2)
    text_end = _index_of_eos(rest, text_start, encoding)

    if text_end <= text_start or text_end > len(rest):
        return ""
    chunk = rest[text_start:text_end]
    return chunk.decode(_codec_for(encoding, chunk), errors="replace")
