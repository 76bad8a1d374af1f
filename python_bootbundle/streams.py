"""Chunked stream copying shared by the builder and the extractor."""

from typing import BinaryIO


COPY_CHUNK_SIZE: int = 1024 * 1024


def copy_stream(*, src: BinaryIO, dst: BinaryIO, length: int | None = None) -> int:
    """Copy ``src`` to ``dst`` in chunks.

    Short reads are retried; copying stops once ``length`` bytes are written
    or the source runs dry, whichever comes first.

    :param src: Source stream.
    :param dst: Destination stream.
    :param length: Number of bytes wanted, or ``None`` to copy to EOF.
    :returns: Number of bytes copied.
    """

    copied: int = 0
    while length is None or copied < length:
        want: int = COPY_CHUNK_SIZE if length is None else min(COPY_CHUNK_SIZE, length - copied)
        chunk: bytes = src.read(want)
        if len(chunk) == 0:
            break
        dst.write(chunk)
        copied += len(chunk)
    return copied
