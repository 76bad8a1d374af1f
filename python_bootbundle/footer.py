"""Bundle footer codec.

Every bundle ends with a fixed 13-byte trailer::

    [stub bytes][payload bytes]["PYBND"][payload size, uint64 little-endian]

The loader only ever looks at the last ``FOOTER_LEN`` bytes, so detection
cost does not depend on the payload size.
"""

from dataclasses import dataclass
import struct
from typing import BinaryIO


FOOTER_MAGIC: bytes = b"PYBND"

_FOOTER_STRUCT: struct.Struct = struct.Struct("<5sQ")

FOOTER_LEN: int = _FOOTER_STRUCT.size

_MAX_PAYLOAD_SIZE: int = 2**64 - 1

FOOTER_VALID: str = "valid"
FOOTER_NOT_PRESENT: str = "not_present"
FOOTER_TOO_SHORT: str = "too_short"


@dataclass(frozen=True, slots=True)
class FooterResult:
    """Outcome of decoding a footer.

    :ivar kind: One of ``valid``, ``not_present`` or ``too_short``.
    :ivar payload_size: Recorded payload length (``0`` unless ``kind`` is ``valid``).
    """

    kind: str
    payload_size: int


def encode_footer(writer: BinaryIO, payload_size: int) -> None:
    """Append a footer for a payload of ``payload_size`` bytes.

    :param writer: Binary stream positioned right after the payload.
    :param payload_size: Number of payload bytes preceding the footer.
    :raises ValueError: If the size does not fit in an unsigned 64-bit integer.
    """

    if payload_size < 0 or payload_size > _MAX_PAYLOAD_SIZE:
        raise ValueError(f"payload_size out of range for a footer: {payload_size}")
    writer.write(_FOOTER_STRUCT.pack(FOOTER_MAGIC, payload_size))


def decode_footer(reader: BinaryIO) -> FooterResult:
    """Decode the footer at the reader's current position.

    A missing footer is an expected outcome (the bare stub has none), so this
    reports it instead of raising.

    :param reader: Binary stream positioned at the first footer byte.
    :returns: Decoded footer result.
    """

    raw: bytes = reader.read(FOOTER_LEN)
    if len(raw) < FOOTER_LEN:
        return FooterResult(kind=FOOTER_TOO_SHORT, payload_size=0)

    magic: bytes
    payload_size: int
    magic, payload_size = _FOOTER_STRUCT.unpack(raw)
    if magic != FOOTER_MAGIC:
        return FooterResult(kind=FOOTER_NOT_PRESENT, payload_size=0)
    return FooterResult(kind=FOOTER_VALID, payload_size=payload_size)
